"""HTTP settlement gateway.

POST {settlement_url}/settlements
    {"lend_order_id", "borrow_order_id", "message": [u8], "signature": [u8], "timestamp_ms"}

The attestation is verified against the registered attestor key first;
an invalid one is never forwarded.
"""
import logging

import httpx

from src.eq_attestation.domain.signature import require_attested_match
from src.eq_settlement.domain.gateway import SettlementSubmission

logger = logging.getLogger(__name__)


class HttpSettlementGateway:
    def __init__(
        self,
        settlement_url: str,
        public_key: bytes,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = settlement_url.rstrip("/")
        self._public_key = public_key
        self._client = client or httpx.AsyncClient(timeout=10.0)

    async def submit(self, submission: SettlementSubmission) -> None:
        att = submission.attestation
        require_attested_match(
            att, submission.lend_order_id, submission.borrow_order_id, self._public_key
        )
        payload = {
            "lend_order_id": submission.lend_order_id,
            "borrow_order_id": submission.borrow_order_id,
            "timestamp_ms": att.timestamp_ms,
            **att.to_chain(),
        }
        resp = await self._client.post(f"{self._url}/settlements", json=payload)
        resp.raise_for_status()
        logger.info(
            "Settlement accepted: %s/%s -> %d",
            submission.lend_order_id,
            submission.borrow_order_id,
            resp.status_code,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
