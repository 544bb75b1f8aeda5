"""Integration-test fixtures.

Each test gets a fresh MatchingEngine (and Ledger) injected through the
get_matching_engine dependency, so tests never share book state.
"""
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.eq_attestation.engine.service import AttestationService
from src.eq_attestation.engine.signer import LocalKeySigner
from src.eq_common.datetime_utils import utc_now
from src.eq_ledger.engine.ledger import Ledger
from src.eq_matching.application.service import get_matching_engine
from src.eq_matching.engine.engine import MatchingEngine
from src.eq_oracle.domain.models import InMemoryPriceOracle
from src.eq_settlement.domain.gateway import RecordingSettlementGateway
from src.main import app


@pytest.fixture
def api_engine() -> MatchingEngine:
    attestor = AttestationService(signer=LocalKeySigner.generate())
    oracle = InMemoryPriceOracle()
    oracle.set_price("SUI", Decimal("3.5"), utc_now())
    return MatchingEngine(
        ledger=Ledger(),
        attestor=attestor,
        settlement=RecordingSettlementGateway(attestor.public_key),
        oracle=oracle,
    )


@pytest_asyncio.fixture
async def client(api_engine: MatchingEngine) -> AsyncIterator[AsyncClient]:
    app.dependency_overrides[get_matching_engine] = lambda: api_engine
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await api_engine.drain_settlements()
    app.dependency_overrides.clear()
