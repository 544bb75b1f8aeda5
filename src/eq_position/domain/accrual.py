"""Simple (non-compounding) pro-rata interest.

accrued = floor(amount_base * rate_bps * elapsed_ms / (10000 * MS_PER_YEAR))

Computed in asset base units so the floor lands on the smallest movable unit,
and recomputed on every read. Nothing is stored incrementally.
"""
from datetime import datetime
from decimal import Decimal

from src.eq_common.datetime_utils import MS_PER_YEAR, elapsed_ms
from src.eq_common.units import from_base_units, rate_to_bps, to_base_units


def accrued_base_units(amount_base: int, rate_bps: int, elapsed: int) -> int:
    if amount_base <= 0 or rate_bps <= 0 or elapsed <= 0:
        return 0
    return (amount_base * rate_bps * elapsed) // (10000 * MS_PER_YEAR)


def accrued_interest(
    amount: Decimal, asset: str, rate: Decimal, start: datetime, now: datetime
) -> Decimal:
    """Interest owed on `amount` of `asset` at annual `rate`% from start to now."""
    units = accrued_base_units(
        to_base_units(amount, asset), rate_to_bps(rate), elapsed_ms(start, now)
    )
    return from_base_units(units, asset)
