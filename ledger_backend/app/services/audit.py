"""
Audit logging service for posting workflows and bookkeeping changes.

Provides centralized logging for compliance and security monitoring.
"""

import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from ledger_backend.app.models.audit_log import AuditLog

logger = logging.getLogger("ledger.audit")


class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"

    # Posting
    LEDGERS_POSTED = "LEDGERS_POSTED"
    LEDGERS_UNPOSTED = "LEDGERS_UNPOSTED"
    BALANCE_POSTED = "BALANCE_POSTED"
    BALANCE_UNPOSTED = "BALANCE_UNPOSTED"
    SHU_POSTED = "SHU_POSTED"
    ACCOUNTING_YEAR_CLOSED = "ACCOUNTING_YEAR_CLOSED"
    NERACA_AKHIR_POSTED = "NERACA_AKHIR_POSTED"

    # Chart of accounts
    ACCOUNT_GENERAL_CREATED = "ACCOUNT_GENERAL_CREATED"
    ACCOUNT_GENERAL_UPDATED = "ACCOUNT_GENERAL_UPDATED"
    ACCOUNT_GENERAL_DELETED = "ACCOUNT_GENERAL_DELETED"
    ACCOUNT_DETAIL_CREATED = "ACCOUNT_DETAIL_CREATED"
    ACCOUNT_DETAIL_UPDATED = "ACCOUNT_DETAIL_UPDATED"
    ACCOUNT_DETAIL_DELETED = "ACCOUNT_DETAIL_DELETED"

    # Ledgers
    LEDGERS_CREATED = "LEDGERS_CREATED"
    LEDGER_UPDATED = "LEDGER_UPDATED"
    LEDGER_DELETED = "LEDGER_DELETED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log an event to the audit log and commit it.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_user_action(
    db: AsyncSession,
    current_user: dict,
    action: str,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an action performed by the authenticated user (JWT payload)."""
    return await log_event(
        db=db,
        action=action,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        metadata=metadata
    )


async def log_committed_action(
    db: AsyncSession,
    current_user: dict,
    action: str,
    metadata: Optional[Dict[str, Any]] = None
) -> Optional[AuditLog]:
    """
    Audit an action whose own transaction has already committed.

    A failed audit insert is logged and rolled back instead of failing the
    request, since the audited change cannot be undone at this point.
    """
    try:
        return await log_user_action(db, current_user, action, metadata=metadata)
    except SQLAlchemyError:
        logger.exception(
            "Audit log write failed for committed action",
            extra={"action": action, "actor_id": current_user.get("user_id"), "audit_metadata": metadata},
        )
        await db.rollback()
        return None


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    username: Optional[str],
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an authentication event (login success/failure)."""
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_username=username,
        ip_address=ip_address,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    actor_id: Optional[int] = None,
    limit: int = 100
) -> list[AuditLog]:
    """Retrieve audit trail with optional filtering, most recent first."""
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)

    if actor_id:
        query = query.where(AuditLog.actor_id == actor_id)

    result = await db.execute(query.limit(limit))
    return result.scalars().all()
