"""SimpleSwap - a two-asset constant product exchange."""

__version__ = "0.1.0"

from simpleswap.errors import PoolError, PoolErrorKind  # noqa: E402
from simpleswap.ledger import Asset, Ledger  # noqa: E402
from simpleswap.pool import ExchangePool, PoolConfig, quote  # noqa: E402

__all__ = [
    "ExchangePool",
    "PoolConfig",
    "quote",
    "Ledger",
    "Asset",
    "PoolError",
    "PoolErrorKind",
    "__version__",
]
