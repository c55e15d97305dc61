"""Ledger webhook client with exponential backoff retry logic"""

import httpx
import asyncio
from typing import Dict, Any, Optional
from planning_gateway.config import settings
from planning_gateway.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class LedgerClient:
    """Client for posting confirmed debt payments to the ledger service"""

    def __init__(
        self,
        webhook_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url or settings.ledger_webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    async def send_payment_event(self, payload: Dict[str, Any], target_url: str | None = None) -> int:
        """
        Send a debt payment event to the ledger with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s, 16s (base^attempt)
        - Retries on 5xx errors and network failures; 4xx fails immediately
        - Tracks latency histogram and failure counter

        Args:
            payload: Event data to send to ledger
            target_url: Override for the configured webhook URL

        Returns:
            Number of attempts it took to deliver

        Raises:
            httpx.HTTPStatusError, httpx.RequestError: After the final failed attempt
        """
        url = target_url or self.webhook_url
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(url, json=payload)
                        response.raise_for_status()
                        return attempt + 1

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    client_error = isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500
                    if client_error or attempt >= self.max_retries:
                        raise

                    # Exponential backoff: 1s, 2s, 4s, 8s, 16s
                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
