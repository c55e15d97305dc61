"""Delivery of queued ledger postings"""

import logging
from datetime import datetime, timezone
from typing import Tuple

import httpx
from sqlalchemy.orm import Session, sessionmaker

from planning_gateway.infrastructure.clients.ledger import LedgerClient
from planning_gateway.infrastructure.database.repositories import OutboxRepository

logger = logging.getLogger(__name__)

DEBT_PAYMENT_POSTED = "DEBT_PAYMENT_POSTED"


async def deliver_pending(db: Session, ledger_client: LedgerClient, limit: int = 50) -> Tuple[int, int]:
    """
    Deliver pending outbox rows to the ledger.

    Each call is one delivery round per row; the client retries inside the
    round. A row that fails its round is marked ``failed`` and left for
    operator replay. Commits after every row so one bad row never holds back
    the others.

    Returns:
        (delivered, failed) counts
    """
    delivered = failed = 0
    for webhook in OutboxRepository(db).list_pending(limit=limit):
        webhook.attempts += 1
        webhook.last_attempt_at = datetime.now(timezone.utc)
        try:
            await ledger_client.send_payment_event(webhook.payload, webhook.target_url)
            webhook.status = "delivered"
            delivered += 1
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            webhook.status = "failed"
            failed += 1
            logger.error(f"Ledger delivery failed: {e}", extra={"webhook_id": webhook.id})
        db.commit()

    return delivered, failed


async def dispatch_ledger_events(session_factory: sessionmaker, ledger_client: LedgerClient) -> None:
    """Background task run after a confirmation commits"""
    db = session_factory()
    try:
        await deliver_pending(db, ledger_client)
    finally:
        db.close()
