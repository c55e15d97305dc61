"""Tests for ledger webhook retries and outbox delivery"""

import asyncio
import pytest
import httpx
from sqlalchemy.orm import Session
from planning_gateway.infrastructure.clients.ledger import LedgerClient
from planning_gateway.infrastructure.database.models import OutboundWebhook
from planning_gateway.infrastructure.database.repositories import OutboxRepository
from planning_gateway.services.outbox import DEBT_PAYMENT_POSTED, deliver_pending

LEDGER_URL = "http://ledger.test/mock-ledger"


def scripted_client(statuses: list[int], calls: list[httpx.Request], max_retries: int = 5) -> LedgerClient:
    """Ledger client whose transport answers with ``statuses`` in order"""
    remaining = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(remaining.pop(0))

    return LedgerClient(
        webhook_url=LEDGER_URL,
        max_retries=max_retries,
        backoff_base=0,
        transport=httpx.MockTransport(handler),
    )


def test_send_succeeds_first_try():
    calls = []
    client = scripted_client([200], calls)

    attempts = asyncio.run(client.send_payment_event({"event": DEBT_PAYMENT_POSTED}))

    assert attempts == 1
    assert len(calls) == 1
    assert str(calls[0].url) == LEDGER_URL


def test_send_retries_server_errors():
    calls = []
    client = scripted_client([503, 500, 200], calls)

    attempts = asyncio.run(client.send_payment_event({"event": DEBT_PAYMENT_POSTED}))

    assert attempts == 3
    assert len(calls) == 3


def test_send_gives_up_after_max_retries():
    calls = []
    client = scripted_client([500, 500, 500], calls, max_retries=3)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.send_payment_event({"event": DEBT_PAYMENT_POSTED}))
    assert len(calls) == 3


def test_send_does_not_retry_client_errors():
    calls = []
    client = scripted_client([422], calls)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.send_payment_event({"event": DEBT_PAYMENT_POSTED}))
    assert len(calls) == 1


def test_send_retries_network_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200)

    client = LedgerClient(webhook_url=LEDGER_URL, backoff_base=0, transport=httpx.MockTransport(handler))

    assert asyncio.run(client.send_payment_event({})) == 2


def test_target_url_overrides_configured_url():
    calls = []
    client = scripted_client([200], calls)

    asyncio.run(client.send_payment_event({}, target_url="http://other.test/hook"))

    assert str(calls[0].url) == "http://other.test/hook"


def test_deliver_pending_marks_rows(db: Session):
    outbox = OutboxRepository(db)
    delivered_row = outbox.enqueue(DEBT_PAYMENT_POSTED, {"schedule_id": "s1"}, LEDGER_URL)
    rejected_row = outbox.enqueue(DEBT_PAYMENT_POSTED, {"schedule_id": "s2"}, "http://ledger.test/reject")
    db.commit()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400 if request.url.path == "/reject" else 200)

    client = LedgerClient(backoff_base=0, transport=httpx.MockTransport(handler))
    delivered, failed = asyncio.run(deliver_pending(db, client))

    assert (delivered, failed) == (1, 1)
    assert delivered_row.status == "delivered"
    assert rejected_row.status == "failed"
    for row in (delivered_row, rejected_row):
        assert row.attempts == 1
        assert row.last_attempt_at is not None


def test_deliver_pending_skips_finished_rows(db: Session):
    row = OutboxRepository(db).enqueue(DEBT_PAYMENT_POSTED, {}, LEDGER_URL)
    row.status = "delivered"
    db.commit()

    calls = []
    delivered, failed = asyncio.run(deliver_pending(db, scripted_client([200], calls)))

    assert (delivered, failed) == (0, 0)
    assert calls == []
    assert db.query(OutboundWebhook).one().attempts == 0
