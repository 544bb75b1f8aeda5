"""Price oracle contract: get_price(asset) -> PriceQuote."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from src.eq_common.errors import PriceUnavailableError


@dataclass(frozen=True)
class PriceQuote:
    asset: str
    price: Decimal
    as_of: datetime
    # Set when the source could not be refreshed and this is the last known value
    stale: bool = False

    def age_seconds(self, now: datetime) -> float:
        return max((now - self.as_of).total_seconds(), 0.0)


class PriceOracle(Protocol):
    async def get_price(self, asset: str) -> PriceQuote: ...


class InMemoryPriceOracle:
    """Prices pushed by the caller. Used when no live feed is configured."""

    def __init__(self) -> None:
        self._quotes: dict[str, PriceQuote] = {}

    def set_price(self, asset: str, price: Decimal, as_of: datetime) -> None:
        key = asset.upper()
        self._quotes[key] = PriceQuote(key, price, as_of)

    async def get_price(self, asset: str) -> PriceQuote:
        quote = self._quotes.get(asset.upper())
        if quote is None:
            raise PriceUnavailableError(asset)
        return quote
