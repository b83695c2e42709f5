"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from ledger_backend.app.api.v1.endpoints import (
    auth,
    accounts_general,
    accounts_detail,
    ledgers,
    journal_ledgers,
    posting,
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Chart of accounts
router.include_router(accounts_general.router)
router.include_router(accounts_detail.router)

# Ledger lines and their journal mirror
router.include_router(ledgers.router)
router.include_router(journal_ledgers.router)

# Posting workflows
router.include_router(posting.router)
