"""Unit tests for MatchingEngine orchestration: matching, attestation, races, settlement."""
import asyncio
import json
import logging
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from src.eq_attestation.domain.message import decode_tail, message_matches
from src.eq_attestation.domain.signature import verify
from src.eq_attestation.engine.service import AttestationService
from src.eq_attestation.engine.signer import LocalKeySigner
from src.eq_attestation.infrastructure.enclave_client import RemoteEnclaveSigner
from src.eq_common.datetime_utils import add_days, to_epoch_ms
from src.eq_common.enums import OrderSide, OrderStatus, PositionRole
from src.eq_common.errors import (
    EnclaveUnavailableError,
    OrderNotPendingError,
    SignatureInvalidError,
)
from src.eq_ledger.domain.invariants import verify_ledger_invariants
from src.eq_ledger.domain.models import Order
from src.eq_ledger.engine.ledger import Ledger
from src.eq_matching.engine.engine import MatchingEngine
from src.eq_oracle.domain.models import InMemoryPriceOracle
from src.eq_oracle.infrastructure.pyth import PythPriceOracle
from src.eq_priority.domain.registry import InMemoryPriorityRegistry
from src.eq_settlement.domain.gateway import RecordingSettlementGateway
from src.eq_settlement.infrastructure.http_gateway import HttpSettlementGateway


def _make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "0x01",
        "side": OrderSide.LEND,
        "asset": "USDC",
        "amount": Decimal("1000"),
        "rate": Decimal("5"),
        "ltv": Decimal("70"),
        "term_days": 30,
        "owner": "0xlender",
    }
    defaults.update(kwargs)
    return Order(**defaults)


def _borrow(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "0x02",
        "side": OrderSide.BORROW,
        "rate": Decimal("7"),
        "ltv": Decimal("60"),
        "owner": "0xborrower",
    }
    defaults.update(kwargs)
    return _make_order(**defaults)


class GatedSigner:
    """Holds every signature until released, so tests can act mid-attestation."""

    mode = "local"

    def __init__(self) -> None:
        self._inner = LocalKeySigner.generate()
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    @property
    def public_key(self) -> bytes:
        return self._inner.public_key

    async def sign(self, message: bytes) -> bytes:
        self.started.set()
        await self.release.wait()
        return await self._inner.sign(message)


class TestBasicMatch:
    async def test_lend_then_borrow(self, engine: MatchingEngine, ledger: Ledger) -> None:
        first = await engine.submit_order(_make_order())
        assert first.match is None
        assert first.attestation_error is None

        result = await engine.submit_order(_borrow())
        match = result.match
        assert match is not None
        assert match.lend_order.id == "0x01"
        assert match.borrow_order.id == "0x02"
        assert ledger.get_order("0x01").status == OrderStatus.MATCHED
        assert ledger.get_order("0x02").status == OrderStatus.MATCHED
        assert ledger.get_order("0x01").fairness_score == match.fairness.score
        assert match.fairness.score == 92
        assert match.fairness.final_rate == Decimal("6")

    async def test_positions_from_match(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order())
        match = (await engine.submit_order(_borrow())).match
        assert match is not None
        lending, borrowing = match.lending_position, match.borrowing_position
        assert lending.role == PositionRole.LENDING
        assert borrowing.role == PositionRole.BORROWING
        assert lending.rate == Decimal("5")
        assert borrowing.rate == Decimal("7")
        assert lending.start_date == engine.now()
        assert lending.end_date == add_days(engine.now(), 30)
        assert lending.counterpart_id == borrowing.id

    async def test_attestation_verifies(self, engine: MatchingEngine, attestor: AttestationService) -> None:
        await engine.submit_order(_make_order())
        match = (await engine.submit_order(_borrow())).match
        assert match is not None
        att = match.fairness.attestation
        assert verify(att.message, att.signature, attestor.public_key)
        assert message_matches(att.message, "0x01", "0x02", score=match.fairness.score)
        assert decode_tail(att.message) == (match.fairness.score, to_epoch_ms(engine.now()))

    async def test_mid_size_reference_pair(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order(amount=Decimal("5000")))
        match = (await engine.submit_order(_borrow(amount=Decimal("5000")))).match
        assert match is not None
        assert match.fairness.score == 80


class TestNoMatch:
    async def test_rate_gap(self, engine: MatchingEngine, ledger: Ledger) -> None:
        await engine.submit_order(_make_order(rate=Decimal("8")))
        result = await engine.submit_order(_borrow(rate=Decimal("7")))
        assert result.match is None
        assert ledger.get_order("0x01").is_pending
        assert ledger.get_order("0x02").is_pending
        assert ledger.positions() == []

    async def test_ltv_too_high(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order())
        assert (await engine.submit_order(_borrow(ltv=Decimal("80")))).match is None

    async def test_term_too_long(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order(term_days=30))
        assert (await engine.submit_order(_borrow(term_days=60))).match is None

    async def test_other_asset(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order())
        assert (await engine.submit_order(_borrow(asset="SUI"))).match is None


class TestPartialSize:
    async def test_smaller_side_sets_amount(self, engine: MatchingEngine, ledger: Ledger) -> None:
        await engine.submit_order(_make_order(amount=Decimal("10000")))
        match = (await engine.submit_order(_borrow(amount=Decimal("2500")))).match
        assert match is not None
        assert match.lending_position.amount == Decimal("2500")
        assert match.borrowing_position.amount == Decimal("2500")
        # the larger order is consumed whole, never split
        assert ledger.get_order("0x01").status == OrderStatus.MATCHED
        assert list(ledger.list_pending(OrderSide.LEND, "USDC")) == []
        assert verify_ledger_invariants(ledger) == []


class TestFirstComeFirstServed:
    async def test_oldest_compatible_wins(self, engine: MatchingEngine, ledger: Ledger) -> None:
        await engine.submit_order(_make_order(id="0x01"))
        await engine.submit_order(_make_order(id="0x03"))
        match = (await engine.submit_order(_borrow(id="0x02"))).match
        assert match is not None
        assert match.lend_order.id == "0x01"
        assert ledger.get_order("0x03").is_pending


class TestEnclaveUnavailable:
    async def test_orders_stay_pending(self, ledger: Ledger) -> None:
        engine = MatchingEngine(ledger=ledger, attestor=AttestationService())
        await engine.submit_order(_make_order())
        result = await engine.submit_order(_borrow())
        assert result.match is None
        assert result.attestation_error is not None
        assert ledger.get_order("0x01").is_pending
        assert ledger.get_order("0x02").is_pending
        assert ledger.get_order("0x01").fairness_score is None
        assert ledger.positions() == []

    async def test_attempt_match_raises(self, ledger: Ledger) -> None:
        engine = MatchingEngine(ledger=ledger, attestor=AttestationService())
        ledger.insert(_make_order())
        ledger.insert(_borrow())
        with pytest.raises(EnclaveUnavailableError):
            await engine.attempt_match("0x02")

    async def test_retry_after_enclave_returns(self, ledger: Ledger, signer: LocalKeySigner) -> None:
        down = MatchingEngine(ledger=ledger, attestor=AttestationService())
        await down.submit_order(_make_order())
        await down.submit_order(_borrow())
        up = MatchingEngine(ledger=ledger, attestor=AttestationService(signer=signer))
        assert await up.attempt_match("0x02") is not None


class TestSignatureInvalid:
    def _foreign_key_engine(self, ledger: Ledger) -> MatchingEngine:
        registered = LocalKeySigner.generate()
        impostor = LocalKeySigner.generate()

        async def handler(request: httpx.Request) -> httpx.Response:
            sig = await impostor.sign(bytes.fromhex(json.loads(request.content)["message"]))
            return httpx.Response(200, json={"signature": sig.hex()})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        signer = RemoteEnclaveSigner("http://enclave", registered.public_key, client)
        return MatchingEngine(ledger=ledger, attestor=AttestationService(signer=signer))

    def _assert_untouched(self, ledger: Ledger) -> None:
        assert ledger.get_order("0x01").is_pending
        assert ledger.get_order("0x02").is_pending
        assert ledger.get_order("0x01").fairness_score is None
        assert ledger.positions() == []
        assert verify_ledger_invariants(ledger) == []

    async def test_submit_reports_error(self, ledger: Ledger) -> None:
        engine = self._foreign_key_engine(ledger)
        await engine.submit_order(_make_order())
        result = await engine.submit_order(_borrow())
        assert result.match is None
        assert result.order.id == "0x02"
        assert result.attestation_error is not None
        assert "registered key" in result.attestation_error
        self._assert_untouched(ledger)

    async def test_attempt_match_raises(self, ledger: Ledger) -> None:
        engine = self._foreign_key_engine(ledger)
        ledger.insert(_make_order())
        ledger.insert(_borrow())
        with pytest.raises(SignatureInvalidError):
            await engine.attempt_match("0x02")
        self._assert_untouched(ledger)


class TestRaces:
    async def test_cancel_during_attestation_aborts(self, ledger: Ledger) -> None:
        signer = GatedSigner()
        engine = MatchingEngine(ledger=ledger, attestor=AttestationService(signer=signer))
        await engine.submit_order(_make_order())
        task = asyncio.create_task(engine.submit_order(_borrow()))
        await signer.started.wait()
        engine.cancel_order("0x01")
        signer.release.set()
        result = await task
        assert result.match is None
        assert ledger.get_order("0x01").status == OrderStatus.CANCELLED
        assert ledger.get_order("0x02").is_pending
        assert ledger.get_order("0x02").fairness_score is None
        assert ledger.positions() == []

    async def test_concurrent_attempts_match_once(self, engine: MatchingEngine, ledger: Ledger) -> None:
        ledger.insert(_borrow(id="0x02"))
        ledger.insert(_make_order(id="0x01"))
        ledger.insert(_make_order(id="0x03"))
        results = await asyncio.gather(engine.attempt_match("0x01"), engine.attempt_match("0x03"))
        assert sum(r is not None for r in results) == 1
        assert len(ledger.positions_for_order("0x02")) == 1
        assert verify_ledger_invariants(ledger) == []

    async def test_attempt_on_matched_order(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order())
        await engine.submit_order(_borrow())
        with pytest.raises(OrderNotPendingError):
            await engine.attempt_match("0x01")


class TestPriority:
    async def test_priority_owner_gets_bonus(self, ledger: Ledger, attestor: AttestationService) -> None:
        engine = MatchingEngine(
            ledger=ledger, attestor=attestor, priority=InMemoryPriorityRegistry({"0xLENDER"})
        )
        await engine.submit_order(_make_order(amount=Decimal("50000")))
        match = (await engine.submit_order(_borrow(amount=Decimal("50000")))).match
        assert match is not None
        assert match.fairness.breakdown.priority_bonus == 25
        assert match.fairness.score == 90

    async def test_priority_checked_for_both_owners(
        self, ledger: Ledger, attestor: AttestationService
    ) -> None:
        priority = AsyncMock()
        priority.is_priority_eligible.side_effect = [False, True]
        engine = MatchingEngine(ledger=ledger, attestor=attestor, priority=priority)
        await engine.submit_order(_make_order())
        match = (await engine.submit_order(_borrow())).match
        assert match is not None
        assert match.fairness.breakdown.priority_bonus == 25
        priority.is_priority_eligible.assert_any_await("0xlender")
        priority.is_priority_eligible.assert_any_await("0xborrower")

    async def test_same_owner_no_diversity(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order(owner="0xAbC"))
        match = (await engine.submit_order(_borrow(owner="0xabc"))).match
        assert match is not None
        assert match.fairness.breakdown.diversity_bonus == 0


class TestSettlementDispatch:
    async def test_submission_recorded(self, ledger: Ledger, attestor: AttestationService) -> None:
        gateway = RecordingSettlementGateway(attestor.public_key)
        engine = MatchingEngine(ledger=ledger, attestor=attestor, settlement=gateway)
        await engine.submit_order(_make_order())
        await engine.submit_order(_borrow())
        await engine.drain_settlements()
        [submission] = gateway.submissions
        assert submission.lend_order_id == "0x01"
        assert submission.borrow_order_id == "0x02"

    async def test_rejected_settlement_keeps_match(
        self, ledger: Ledger, attestor: AttestationService, caplog: pytest.LogCaptureFixture
    ) -> None:
        gateway = RecordingSettlementGateway(LocalKeySigner.generate().public_key)
        engine = MatchingEngine(ledger=ledger, attestor=attestor, settlement=gateway)
        await engine.submit_order(_make_order())
        with caplog.at_level(logging.ERROR):
            await engine.submit_order(_borrow())
            await engine.drain_settlements()
        assert gateway.submissions == []
        assert ledger.get_order("0x01").status == OrderStatus.MATCHED
        assert "Settlement of 0x01/0x02 failed" in caplog.text

    async def test_unexpected_gateway_error_logged(
        self, ledger: Ledger, attestor: AttestationService, caplog: pytest.LogCaptureFixture
    ) -> None:
        gateway = AsyncMock()
        gateway.submit.side_effect = RuntimeError("boom")
        engine = MatchingEngine(ledger=ledger, attestor=attestor, settlement=gateway)
        await engine.submit_order(_make_order())
        with caplog.at_level(logging.ERROR):
            await engine.submit_order(_borrow())
            await engine.drain_settlements()
        gateway.submit.assert_awaited_once()
        assert ledger.get_order("0x02").status == OrderStatus.MATCHED
        assert "Settlement of 0x01/0x02 failed" in caplog.text


class TestShutdown:
    async def test_aclose_closes_http_clients(self, ledger: Ledger) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        clients = [httpx.AsyncClient(transport=httpx.MockTransport(handler)) for _ in range(3)]
        key = LocalKeySigner.generate().public_key
        engine = MatchingEngine(
            ledger=ledger,
            attestor=AttestationService(signer=RemoteEnclaveSigner("http://enclave", key, clients[0])),
            oracle=PythPriceOracle(client=clients[1]),
            settlement=HttpSettlementGateway("http://settle", key, clients[2]),
        )
        await engine.aclose()
        assert all(c.is_closed for c in clients)

    async def test_aclose_with_in_memory_collaborators(
        self, ledger: Ledger, attestor: AttestationService
    ) -> None:
        engine = MatchingEngine(
            ledger=ledger,
            attestor=attestor,
            oracle=InMemoryPriceOracle(),
            settlement=RecordingSettlementGateway(attestor.public_key),
        )
        await engine.aclose()
        await engine.aclose()


class TestReferenceScenarios:
    async def test_compatible_pair_commits(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order(term_days=30))
        match = (await engine.submit_order(_borrow(term_days=20))).match
        assert match is not None
        assert match.lending_position.amount == Decimal("1000")
        assert match.lending_position.rate == Decimal("5")
        assert match.borrowing_position.rate == Decimal("7")
        assert match.borrowing_position.term_days == 20

    async def test_borrow_ltv_above_ceiling(self, engine: MatchingEngine, ledger: Ledger) -> None:
        await engine.submit_order(_make_order(term_days=30))
        result = await engine.submit_order(_borrow(term_days=20, ltv=Decimal("80")))
        assert result.match is None
        assert ledger.get_order("0x01").is_pending
        assert ledger.get_order("0x02").is_pending

    async def test_small_lend_large_borrow(self, engine: MatchingEngine) -> None:
        await engine.submit_order(_make_order(amount=Decimal("500")))
        match = (await engine.submit_order(_borrow(amount=Decimal("2000")))).match
        assert match is not None
        assert match.lending_position.amount == Decimal("500")
        assert match.borrowing_position.amount == Decimal("500")
