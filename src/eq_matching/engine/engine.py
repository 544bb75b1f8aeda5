"""MatchingEngine — orchestrates order placement, fairness attestation and positions.

Flow per attempt:
    select counter-order -> score -> sign -> re-check pending -> mark matched
    -> materialize positions -> dispatch to settlement (fire-and-forget)

Attempts are serialized per asset. Nothing touches the Ledger until the
attestation is in hand, so an unavailable or slow enclave leaves both
orders pending with no positions.
"""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime

from src.eq_attestation.engine.service import AttestationService
from src.eq_common.datetime_utils import to_epoch_ms, utc_now
from src.eq_common.errors import (
    EnclaveUnavailableError,
    OrderNotPendingError,
    SignatureInvalidError,
)
from src.eq_fairness.domain.models import (
    FairnessOptions,
    FairnessRequest,
    FairnessResponse,
)
from src.eq_fairness.engine.scorer import DEFAULT_OPTIONS, compute_score
from src.eq_ledger.domain.models import Order, Position
from src.eq_ledger.engine.ledger import Ledger
from src.eq_matching.domain.models import MatchResult, SubmitResult
from src.eq_matching.engine.matching_algo import orient, select_counter_order
from src.eq_oracle.domain.models import PriceOracle
from src.eq_position.domain.liquidation import LiquidationAssessment
from src.eq_position.engine import lifecycle
from src.eq_position.engine.factory import DEFAULT_POLICY, CollateralPolicy, materialize
from src.eq_priority.domain.registry import PriorityStatusProvider
from src.eq_settlement.domain.gateway import SettlementGateway, SettlementSubmission

logger = logging.getLogger(__name__)


class MatchingEngine:
    def __init__(
        self,
        ledger: Ledger,
        attestor: AttestationService,
        priority: PriorityStatusProvider | None = None,
        settlement: SettlementGateway | None = None,
        oracle: PriceOracle | None = None,
        fairness_options: FairnessOptions = DEFAULT_OPTIONS,
        collateral_policy: CollateralPolicy = DEFAULT_POLICY,
        max_price_age_seconds: float = 60.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ledger = ledger
        self._attestor = attestor
        self._priority = priority
        self._settlement = settlement
        self._oracle = oracle
        self._fairness = fairness_options
        self._collateral = collateral_policy
        self._max_price_age = max_price_age_seconds
        self._clock = clock
        self._asset_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._settlement_tasks: set[asyncio.Task[None]] = set()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def attestor(self) -> AttestationService:
        return self._attestor

    def now(self) -> datetime:
        return self._clock()

    # --- Orders ---

    async def submit_order(self, order: Order) -> SubmitResult:
        """Insert, then make one match attempt. Raises InvalidOrderError only.

        Attestation failures (unavailable enclave, unverifiable signature) leave
        the order pending and are reported in attestation_error.
        """
        self._ledger.insert(order)
        try:
            match = await self.attempt_match(order.id)
        except (EnclaveUnavailableError, SignatureInvalidError) as exc:
            logger.warning("Order %s left pending: %s", order.id, exc.message)
            return SubmitResult(order=order, attestation_error=exc.message)
        return SubmitResult(order=order, match=match)

    def cancel_order(self, order_id: str) -> Order:
        return self._ledger.cancel(order_id)

    async def attempt_match(self, order_id: str, timeout: float | None = None) -> MatchResult | None:
        """One match attempt for a pending order. None means no match.

        Raises OrderNotFoundError, OrderNotPendingError, EnclaveUnavailableError,
        SignatureInvalidError.
        """
        order = self._ledger.get_order(order_id)
        if not order.is_pending:
            raise OrderNotPendingError(order.id, order.status.value)

        async with self._asset_locks[order.asset]:
            if not order.is_pending:
                logger.info("Order %s left pending before its match attempt ran", order.id)
                return None
            candidate = select_counter_order(order, self._ledger)
            if candidate is None:
                logger.debug("No compatible counter-order for %s", order.id)
                return None

            lend, borrow = orient(order, candidate)
            request = await self._fairness_request(lend, borrow)
            scored = compute_score(request, self._fairness)
            now = self._clock()
            attestation = await self._attestor.sign(
                lend.id, borrow.id, scored.score, to_epoch_ms(now), timeout=timeout
            )

            # Either side may have been cancelled while the enclave was signing
            if not (lend.is_pending and borrow.is_pending):
                logger.warning("Match %s/%s aborted: order no longer pending", lend.id, borrow.id)
                return None
            try:
                self._ledger.mark_matched(lend.id, borrow.id, scored.score, now)
            except OrderNotPendingError:
                logger.warning("Match %s/%s aborted: lost race to mark matched", lend.id, borrow.id)
                return None

            lending, borrowing = materialize(lend, borrow, now, self._collateral)
            self._ledger.record_positions(lending, borrowing)
            result = MatchResult(
                lend_order=lend,
                borrow_order=borrow,
                fairness=FairnessResponse(
                    score=scored.score,
                    final_rate=scored.final_rate,
                    breakdown=scored.breakdown,
                    attestation=attestation,
                ),
                lending_position=lending,
                borrowing_position=borrowing,
            )

        logger.info(
            "Matched %s/%s: %s %s score=%d clearing=%s%%",
            lend.id, borrow.id, lending.amount, lending.asset, scored.score, scored.final_rate,
        )
        self._dispatch_settlement(result)
        return result

    async def _fairness_request(self, lend: Order, borrow: Order) -> FairnessRequest:
        priority = False
        if self._priority is not None:
            priority = (
                await self._priority.is_priority_eligible(lend.owner)
                or await self._priority.is_priority_eligible(borrow.owner)
            )
        return FairnessRequest(
            lend_order_id=lend.id,
            borrow_order_id=borrow.id,
            lend_amount=lend.amount,
            borrow_amount=borrow.amount,
            lend_rate=lend.rate,
            borrow_rate=borrow.rate,
            distinct_counterparties=lend.owner.lower() != borrow.owner.lower(),
            priority=priority,
        )

    # --- Positions ---

    def get_position(self, position_id: str) -> Position:
        return self._ledger.get_position(position_id)

    def repay_position(self, position_id: str) -> Position:
        return lifecycle.repay(self._ledger, position_id, self._clock())

    async def assess_position(self, position_id: str) -> LiquidationAssessment:
        return await lifecycle.assess(
            self._ledger, position_id, self._clock(), self._oracle, self._max_price_age
        )

    async def liquidate_position(self, position_id: str) -> Position:
        return await lifecycle.liquidate(
            self._ledger, position_id, self._clock(), self._oracle, self._max_price_age
        )

    # --- Settlement ---

    def _dispatch_settlement(self, result: MatchResult) -> None:
        if self._settlement is None:
            return
        submission = SettlementSubmission(
            lend_order_id=result.lend_order.id,
            borrow_order_id=result.borrow_order.id,
            attestation=result.fairness.attestation,
        )
        task = asyncio.create_task(self._settle(submission))
        self._settlement_tasks.add(task)
        task.add_done_callback(self._settlement_tasks.discard)

    async def _settle(self, submission: SettlementSubmission) -> None:
        if self._settlement is None:
            return
        try:
            await self._settlement.submit(submission)
        except Exception:
            # Settlement outcome is the collaborator's concern; Ledger state stands
            logger.exception(
                "Settlement of %s/%s failed", submission.lend_order_id, submission.borrow_order_id
            )

    async def drain_settlements(self) -> None:
        """Wait for in-flight settlement dispatches (shutdown, tests)."""
        if self._settlement_tasks:
            await asyncio.gather(*list(self._settlement_tasks))

    async def aclose(self) -> None:
        """Release collaborator connections (remote enclave, oracle, settlement)."""
        await self._attestor.aclose()
        for collaborator in (self._oracle, self._settlement):
            close = getattr(collaborator, "aclose", None)
            if close is not None:
                await close()
