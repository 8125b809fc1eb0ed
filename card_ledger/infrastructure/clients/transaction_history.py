"""General transaction ledger client with exponential backoff retry logic"""

import asyncio
import logging

import httpx

from card_ledger.config import settings
from card_ledger.domain.models import ExpenseRecord
from card_ledger.infrastructure.observability.metrics import history_failure_counter, history_latency_histogram

logger = logging.getLogger(__name__)


class TransactionHistoryClient:
    """Client writing expense records to the user-facing transaction history"""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.transaction_history_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.history_max_retries
        self.backoff_base = settings.history_backoff_base

    async def send_expense(self, record: ExpenseRecord) -> None:
        """
        Deliver an expense record, retrying on 5xx errors and network failures.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - 4xx responses are not retried

        Raises:
            httpx.HTTPError: after the final failed attempt
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with history_latency_histogram.time():
                        response = await client.post(self.base_url, json=record.to_payload())
                        response.raise_for_status()
                        return  # Success

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    history_failure_counter.inc()
                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        raise

                except httpx.RequestError:
                    attempt += 1
                    history_failure_counter.inc()
                    if attempt >= self.max_retries:
                        raise

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)

    async def record_expense(self, record: ExpenseRecord) -> None:
        """
        Best-effort delivery used after a payment commits.

        The payment is already durable; a lost history entry is logged, never raised.
        """
        try:
            await self.send_expense(record)
        except httpx.HTTPError as e:
            logger.warning(
                f"Transaction history write failed: {e}",
                extra={"card_id": record.card_id, "amount_cents": record.amount_cents},
            )
