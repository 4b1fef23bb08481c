"""Exchange pool error classes.

Every failure refuses the whole operation. Each error maps to one
PoolErrorKind and carries the revert reason of the pool contract as its
message, plus structured details callers can inspect without parsing text.
"""

from enum import Enum
from typing import Any, ClassVar


class PoolErrorKind(str, Enum):
    """Closed set of pool failure kinds."""

    # Configuration
    INVALID_ASSET = "invalid_asset"
    IDENTICAL_ASSETS = "identical_assets"
    # Input validation
    INSUFFICIENT_LIQUIDITY_AMOUNT = "insufficient_liquidity_amount"
    INSUFFICIENT_INPUT_AMOUNT = "insufficient_input_amount"
    INVALID_RECIPIENT = "invalid_recipient"
    # State preconditions
    INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"
    REENTRANT_CALL = "reentrant_call"
    # Economic guard
    INSUFFICIENT_OUTPUT_AMOUNT = "insufficient_output_amount"
    # Collaborator
    TRANSFER_FAILED = "transfer_failed"


class PoolError(Exception):
    """Base error for exchange pool operations."""

    kind: ClassVar[PoolErrorKind]
    reason: ClassVar[str]

    def __init__(self, message: str | None = None, **details: Any) -> None:
        super().__init__(message or self.reason)
        self.details = details

    @property
    def message(self) -> str:
        return str(self.args[0])

    def to_dict(self) -> dict[str, Any]:
        """Structured form used by the HTTP layer and log records."""
        return {"error": self.kind.value, "detail": self.message, **self.details}


class InvalidAsset(PoolError):
    """An asset identifier is the null address or malformed."""

    kind = PoolErrorKind.INVALID_ASSET
    reason = "Invalid token address"


class IdenticalAssets(PoolError):
    """Both asset identifiers name the same asset."""

    kind = PoolErrorKind.IDENTICAL_ASSETS
    reason = "Identical token addresses"


class InsufficientLiquidityAmount(PoolError):
    """add_liquidity called with a zero (or negative) amount."""

    kind = PoolErrorKind.INSUFFICIENT_LIQUIDITY_AMOUNT
    reason = "Insufficient liquidity amount"


class InsufficientInputAmount(PoolError):
    """Swap called with a zero (or negative) input amount."""

    kind = PoolErrorKind.INSUFFICIENT_INPUT_AMOUNT
    reason = "Insufficient input amount"


class InvalidRecipient(PoolError):
    """Swap output addressed to the null address."""

    kind = PoolErrorKind.INVALID_RECIPIENT
    reason = "Invalid recipient"


class InsufficientLiquidity(PoolError):
    """One of the reserves involved in the swap is empty."""

    kind = PoolErrorKind.INSUFFICIENT_LIQUIDITY
    reason = "Insufficient liquidity"


class ReentrantCall(PoolError):
    """A mutating operation was entered while another one is in flight."""

    kind = PoolErrorKind.REENTRANT_CALL
    reason = "ReentrancyGuard: reentrant call"


class InsufficientOutputAmount(PoolError):
    """Quoted output is below the caller's minimum."""

    kind = PoolErrorKind.INSUFFICIENT_OUTPUT_AMOUNT
    reason = "Insufficient output amount"


class TransferFailed(PoolError):
    """The asset ledger refused a transfer into or out of the pool."""

    kind = PoolErrorKind.TRANSFER_FAILED
    reason = "Transfer failed"
