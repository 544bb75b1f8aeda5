"""Pyth Hermes price client.

GET {hermes_url}/api/latest_price_feeds?ids[]=<feed>
    -> [{"id": ..., "price": {"price": "123456", "expo": -8, "publish_time": 1700000000}}]

price = price * 10^expo, as_of = publish_time. A failed refresh never blocks:
the last known quote is returned flagged stale, and callers decide whether
its age is acceptable.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal

import httpx

from src.eq_common.errors import PriceUnavailableError
from src.eq_oracle.domain.models import PriceQuote

logger = logging.getLogger(__name__)

PYTH_FEED_IDS: dict[str, str] = {
    "SUI": "0x23d7315113f5b1d3ba7a83604c44b94d79f4fd69af77f804fc7f920a6dc65744",
    "BTC": "0xe62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43",
    "ETH": "0xff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace",
    "USDC": "0xeaa020c61cc479712813461ce153894a96a6c00b21ed0cfc2798d1f9a9e9c94a",
    "USDT": "0x2b89b9dc8fdf9f34709a5b106b472f0f39bb6ca9ce04b0fd7f2e971688e2e53b",
}


class PythPriceOracle:
    def __init__(
        self,
        hermes_url: str = "https://hermes.pyth.network",
        timeout: float = 2.0,
        client: httpx.AsyncClient | None = None,
        feed_ids: dict[str, str] | None = None,
    ) -> None:
        self._url = hermes_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._feed_ids = feed_ids or PYTH_FEED_IDS
        self._last_known: dict[str, PriceQuote] = {}

    async def get_price(self, asset: str) -> PriceQuote:
        key = asset.upper()
        feed_id = self._feed_ids.get(key)
        if feed_id is None:
            raise PriceUnavailableError(asset)
        try:
            quote = await self._fetch(key, feed_id)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            last = self._last_known.get(key)
            if last is None:
                raise PriceUnavailableError(asset) from exc
            logger.warning("Pyth refresh for %s failed (%s); serving last known quote", key, exc)
            return PriceQuote(last.asset, last.price, last.as_of, stale=True)
        self._last_known[key] = quote
        return quote

    async def _fetch(self, asset: str, feed_id: str) -> PriceQuote:
        resp = await self._client.get(
            f"{self._url}/api/latest_price_feeds", params={"ids[]": feed_id}
        )
        resp.raise_for_status()
        feed = resp.json()[0]["price"]
        price = Decimal(str(feed["price"])).scaleb(int(feed["expo"]))
        as_of = datetime.fromtimestamp(int(feed["publish_time"]), tz=timezone.utc)
        return PriceQuote(asset, price, as_of)

    async def aclose(self) -> None:
        await self._client.aclose()
