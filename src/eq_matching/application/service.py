# src/eq_matching/application/service.py
"""Builds the process-wide MatchingEngine from settings.

Routers receive it through the get_matching_engine dependency, so tests swap
in their own engine with app.dependency_overrides.
"""
import logging
from typing import Any

from config.settings import settings as default_settings
from src.eq_attestation.engine.service import AttestationService
from src.eq_fairness.domain.models import FairnessOptions
from src.eq_ledger.engine.ledger import Ledger
from src.eq_matching.engine.engine import MatchingEngine
from src.eq_oracle.domain.models import InMemoryPriceOracle, PriceOracle
from src.eq_oracle.infrastructure.pyth import PythPriceOracle
from src.eq_position.engine.factory import CollateralPolicy
from src.eq_priority.domain.registry import InMemoryPriorityRegistry
from src.eq_settlement.domain.gateway import RecordingSettlementGateway, SettlementGateway
from src.eq_settlement.infrastructure.http_gateway import HttpSettlementGateway

logger = logging.getLogger(__name__)

_engine: MatchingEngine | None = None


def _build_oracle(settings: Any) -> PriceOracle:
    if settings.PRICE_ORACLE == "pyth":
        return PythPriceOracle(settings.PYTH_HERMES_URL, timeout=settings.ORACLE_TIMEOUT_SECONDS)
    return InMemoryPriceOracle()


def _build_settlement(settings: Any, attestor: AttestationService) -> SettlementGateway | None:
    if not attestor.available:
        return None
    if settings.SETTLEMENT_URL:
        return HttpSettlementGateway(settings.SETTLEMENT_URL, attestor.public_key)
    return RecordingSettlementGateway(attestor.public_key)


def build_matching_engine(settings: Any = default_settings) -> MatchingEngine:
    attestor = AttestationService.from_settings(settings)
    engine = MatchingEngine(
        ledger=Ledger(),
        attestor=attestor,
        priority=InMemoryPriorityRegistry(),
        settlement=_build_settlement(settings, attestor),
        oracle=_build_oracle(settings),
        fairness_options=FairnessOptions.from_settings(settings),
        collateral_policy=CollateralPolicy.from_settings(settings),
        max_price_age_seconds=settings.PRICE_MAX_AGE_SECONDS,
    )
    logger.info("Matching engine ready (attestor: %s)", attestor.describe().mode)
    return engine


def get_matching_engine() -> MatchingEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = build_matching_engine()
    return _engine
