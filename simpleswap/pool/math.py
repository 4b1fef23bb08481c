"""Constant product pricing for the exchange pool.

The pool charges no fee, so a trade of ``amount_in`` against reserves
``(reserve_in, reserve_out)`` yields

    amount_out = floor(amount_in * reserve_out / (reserve_in + amount_in))

The full product is formed before the single division, so truncation only
ever rounds the output down, in favour of the pool.
"""

from simpleswap.constants import PRICE_SCALE
from simpleswap.safe_int import S


def quote(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Calculate output amount for a given input.

    Args:
        amount_in: Input asset amount
        reserve_in: Reserve of the input asset in the pool
        reserve_out: Reserve of the output asset in the pool

    Returns:
        Output asset amount, or 0 for degenerate input (zero input or
        empty output reserve)
    """
    if amount_in <= 0:
        return 0
    if reserve_out <= 0 or reserve_in < 0:
        return 0

    numerator = S(amount_in) * S(reserve_out)
    denominator = S(reserve_in) + S(amount_in)

    return (numerator // denominator).value


def spot_price(reserve_base: int, reserve_quote: int) -> int:
    """Price of one unit of the base asset in the quote asset, scaled by 1e18.

    Returns 0 while the base reserve is empty.
    """
    if reserve_base <= 0 or reserve_quote <= 0:
        return 0
    return (S(reserve_quote) * S(PRICE_SCALE) // S(reserve_base)).value


__all__ = ["quote", "spot_price"]
