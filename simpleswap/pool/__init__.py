"""Constant product exchange pool."""

from simpleswap.pool.config import DEFAULT_POOL_CONFIG, PoolConfig
from simpleswap.pool.exchange import ExchangePool
from simpleswap.pool.math import quote, spot_price

__all__ = [
    "ExchangePool",
    "PoolConfig",
    "DEFAULT_POOL_CONFIG",
    "quote",
    "spot_price",
]
