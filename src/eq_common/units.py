"""Decimal <-> asset-native base unit arithmetic.

Order and position amounts are Decimal in display units (1000 USDC).
Interest accrual is computed in integer base units (micro-USDC, MIST) so the
floor in the accrual formula lands on the smallest unit the ledger can move.
Rates are annualized percentages (5 = 5%); 1% = 100 bps.
"""

from decimal import ROUND_DOWN, Decimal

ASSET_DECIMALS: dict[str, int] = {
    "USDC": 6,
    "USDT": 6,
    "SUI": 9,
    "WETH": 8,
    "WBTC": 8,
}
DEFAULT_DECIMALS = 9


def asset_decimals(asset: str) -> int:
    return ASSET_DECIMALS.get(asset.upper(), DEFAULT_DECIMALS)


def to_base_units(amount: Decimal, asset: str) -> int:
    """1000 USDC -> 1_000_000_000. Sub-unit dust is truncated."""
    scale = Decimal(10) ** asset_decimals(asset)
    return int((amount * scale).to_integral_value(rounding=ROUND_DOWN))


def from_base_units(units: int, asset: str) -> Decimal:
    return Decimal(units).scaleb(-asset_decimals(asset))


def rate_to_bps(rate: Decimal) -> int:
    """Annual percentage -> basis points: Decimal('5.25') -> 525.

    Sub-bps precision is floored (5.125 -> 512) so accrual never exceeds the agreed rate.
    """
    return int((rate * 100).to_integral_value(rounding=ROUND_DOWN))


def format_amount(amount: Decimal, asset: str) -> str:
    """Decimal('1234.5'), 'USDC' -> '1,234.500000 USDC'."""
    places = asset_decimals(asset)
    quantized = amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)
    return f"{quantized:,} {asset}"
