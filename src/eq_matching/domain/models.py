from dataclasses import dataclass

from src.eq_fairness.domain.models import FairnessResponse
from src.eq_ledger.domain.models import Order, Position


@dataclass
class MatchResult:
    """A committed, attested match passed on to settlement."""

    lend_order: Order
    borrow_order: Order
    fairness: FairnessResponse
    lending_position: Position
    borrowing_position: Position


@dataclass
class SubmitResult:
    """Outcome of submit_order: the stored order and at most one match.

    attestation_error carries the EnclaveUnavailable message when the
    automatic match attempt could not be attested; the order stays pending.
    """

    order: Order
    match: MatchResult | None = None
    attestation_error: str | None = None
