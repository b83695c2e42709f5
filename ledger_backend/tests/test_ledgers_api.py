"""
Ledger and journal ledger API tests.
"""

import re
import pytest

from conftest import fetch_ledgers

REFERENCE_PATTERN = re.compile(r"^REF\d{8}[0-9A-F]{6}$")


def line(account_number="1101", transaction_type="DEBIT", amount="100.00", ledger_type="KAS_MASUK"):
    return {
        "amount": amount,
        "description": f"Setoran {account_number}",
        "ledger_type": ledger_type,
        "transaction_type": transaction_type,
        "account_detail_account_number": account_number,
    }


def balanced_batch(ledger_date="2024-01-15"):
    return {
        "ledger_date": ledger_date,
        "ledgers": [line("1101", "DEBIT", "250.75"), line("4101", "CREDIT", "250.75")],
    }


@pytest.fixture
async def posted_batch(client, chart, kasir_headers, akuntan_headers):
    """One batch recorded by a cashier and posted by an accountant."""
    response = await client.post("/v1/ledgers", json=balanced_batch(), headers=kasir_headers)
    assert response.status_code == 201
    response = await client.post("/v1/posting/ledger", json={"ledger_date": "2024-01-15"}, headers=akuntan_headers)
    assert response.status_code == 200
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_batch_shares_reference_and_date(client, chart, kasir_headers, kasir_user):
    response = await client.post("/v1/ledgers", json=balanced_batch(), headers=kasir_headers)

    assert response.status_code == 201
    data = response.json()
    assert REFERENCE_PATTERN.match(data["reference_number"])
    assert len(data["ledgers"]) == 2
    for ledger in data["ledgers"]:
        assert ledger["reference_number"] == data["reference_number"]
        assert ledger["ledger_date"].startswith("2024-01-15")
        assert ledger["posting_status"] == "PENDING"
        assert ledger["posting_at"] is None
        assert ledger["created_by"] == kasir_user.id

    credit_line = data["ledgers"][1]
    assert credit_line["amount"] == "250.75"
    assert credit_line["account_general_account_number"] == "4100"


@pytest.mark.asyncio
async def test_each_batch_gets_its_own_reference(client, chart, kasir_headers):
    first = await client.post("/v1/ledgers", json=balanced_batch(), headers=kasir_headers)
    second = await client.post("/v1/ledgers", json=balanced_batch(), headers=kasir_headers)

    assert first.json()["reference_number"] != second.json()["reference_number"]


@pytest.mark.asyncio
@pytest.mark.parametrize("line_count", [0, 101])
async def test_batch_size_limits(client, chart, kasir_headers, line_count):
    payload = {"ledger_date": "2024-01-15", "ledgers": [line() for _ in range(line_count)]}

    response = await client.post("/v1/ledgers", json=payload, headers=kasir_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_non_positive_amount_rejected(client, chart, kasir_headers):
    payload = {"ledger_date": "2024-01-15", "ledgers": [line(amount="0")]}

    response = await client.post("/v1/ledgers", json=payload, headers=kasir_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_detail_account_rejects_whole_batch(client, chart, kasir_headers):
    payload = {"ledger_date": "2024-01-15", "ledgers": [line("1101"), line("9999", "CREDIT")]}

    response = await client.post("/v1/ledgers", json=payload, headers=kasir_headers)

    assert response.status_code == 404
    assert response.json()["error_code"] == "ACCOUNT_NOT_FOUND"
    assert await fetch_ledgers() == []


@pytest.mark.asyncio
async def test_nasabah_cannot_record_ledgers(client, chart, nasabah_headers):
    response = await client.post("/v1/ledgers", json=balanced_batch(), headers=nasabah_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_ledgers_with_filters(client, chart, kasir_headers):
    await client.post("/v1/ledgers", json=balanced_batch("2024-01-15"), headers=kasir_headers)
    await client.post("/v1/ledgers", json=balanced_batch("2024-01-16"), headers=kasir_headers)

    response = await client.get("/v1/ledgers", headers=kasir_headers)
    data = response.json()
    assert data["total"] == 4
    assert data["ledgers"][0]["ledger_date"].startswith("2024-01-16")

    response = await client.get(
        "/v1/ledgers",
        params={"date_from": "2024-01-15", "date_to": "2024-01-15", "transaction_type": "CREDIT"},
        headers=kasir_headers
    )
    data = response.json()
    assert data["total"] == 1
    assert data["ledgers"][0]["account_detail_account_number"] == "4101"


@pytest.mark.asyncio
async def test_update_pending_ledger(client, chart, kasir_headers):
    created = await client.post("/v1/ledgers", json=balanced_batch(), headers=kasir_headers)
    ledger_id = created.json()["ledgers"][0]["id"]

    response = await client.patch(
        f"/v1/ledgers/{ledger_id}",
        json={"amount": "300", "account_detail_account_number": "1102"},
        headers=kasir_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["amount"] == "300.00"
    assert data["account_detail_account_number"] == "1102"
    assert data["account_general_account_number"] == "1100"


@pytest.mark.asyncio
async def test_delete_pending_ledger(client, chart, kasir_headers):
    created = await client.post("/v1/ledgers", json=balanced_batch(), headers=kasir_headers)
    ledger_id = created.json()["ledgers"][0]["id"]

    response = await client.delete(f"/v1/ledgers/{ledger_id}", headers=kasir_headers)
    assert response.status_code == 200

    response = await client.get(f"/v1/ledgers/{ledger_id}", headers=kasir_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_posted_ledgers_are_immutable(client, kasir_headers, posted_batch):
    ledger_id = posted_batch["ledgers"][0]["id"]

    response = await client.patch(f"/v1/ledgers/{ledger_id}", json={"amount": "1"}, headers=kasir_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "LEDGER_POSTED"

    response = await client.delete(f"/v1/ledgers/{ledger_id}", headers=kasir_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "LEDGER_POSTED"


@pytest.mark.asyncio
async def test_journal_ledgers_mirror_posted_lines(client, nasabah_headers, posted_batch):
    response = await client.get("/v1/journal-ledgers", headers=nasabah_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    by_account = {j["account_detail_account_number"]: j for j in data["journal_ledgers"]}
    assert by_account["1101"]["debit"] == "250.75"
    assert by_account["1101"]["credit"] == "0.00"
    assert by_account["4101"]["credit"] == "250.75"
    assert all(j["posting_status"] == "PENDING" for j in data["journal_ledgers"])

    journal_id = by_account["4101"]["id"]
    response = await client.get(f"/v1/journal-ledgers/{journal_id}", headers=nasabah_headers)
    assert response.status_code == 200
    assert response.json()["ledger_id"] == posted_batch["ledgers"][1]["id"]

    response = await client.get(
        "/v1/journal-ledgers", params={"account_general_account_number": "1100"}, headers=nasabah_headers
    )
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_missing_journal_ledger(client, nasabah_headers):
    response = await client.get("/v1/journal-ledgers/999", headers=nasabah_headers)
    assert response.status_code == 404
