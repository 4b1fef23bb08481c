"""Pydantic models for SimpleSwap events and shared types."""

from simpleswap.models.events import LiquidityAdded, PoolEvent, Swap
from simpleswap.models.types import (
    Address,
    Uint256,
    is_valid_address,
    is_zero_address,
    normalize_address,
)

__all__ = [
    # Events
    "PoolEvent",
    "LiquidityAdded",
    "Swap",
    # Types
    "Address",
    "Uint256",
    "normalize_address",
    "is_valid_address",
    "is_zero_address",
]
