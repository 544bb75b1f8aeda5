"""Settlement collaborator contract.

Receives an attested match and commits (or rejects) the on-chain transfer.
The matching core never re-ingests the outcome as Ledger state.
"""
import logging
from dataclasses import dataclass
from typing import Protocol

from src.eq_attestation.domain.models import Attestation
from src.eq_attestation.domain.signature import require_attested_match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementSubmission:
    lend_order_id: str
    borrow_order_id: str
    attestation: Attestation


class SettlementGateway(Protocol):
    async def submit(self, submission: SettlementSubmission) -> None: ...


class RecordingSettlementGateway:
    """Verifies and records submissions in memory. Default when no settlement URL is set."""

    def __init__(self, public_key: bytes | None = None) -> None:
        self._public_key = public_key
        self.submissions: list[SettlementSubmission] = []

    async def submit(self, submission: SettlementSubmission) -> None:
        key = self._public_key or submission.attestation.public_key
        require_attested_match(
            submission.attestation, submission.lend_order_id, submission.borrow_order_id, key
        )
        self.submissions.append(submission)
        logger.info(
            "Settlement recorded: %s/%s", submission.lend_order_id, submission.borrow_order_id
        )
