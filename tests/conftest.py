"""Shared test fixtures."""

from datetime import UTC, datetime

import pytest

from src.eq_attestation.engine.service import AttestationService
from src.eq_attestation.engine.signer import LocalKeySigner
from src.eq_ledger.engine.ledger import Ledger
from src.eq_matching.engine.engine import MatchingEngine

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def signer() -> LocalKeySigner:
    return LocalKeySigner.generate()


@pytest.fixture
def attestor(signer: LocalKeySigner) -> AttestationService:
    return AttestationService(signer=signer, timeout=1.0)


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


@pytest.fixture
def engine(ledger: Ledger, attestor: AttestationService) -> MatchingEngine:
    return MatchingEngine(ledger=ledger, attestor=attestor, clock=lambda: FIXED_NOW)
