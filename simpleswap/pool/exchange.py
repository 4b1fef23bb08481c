"""Two-asset constant product exchange pool.

The pool keeps two reserve counters that cache its custody balances on the
ledger. Reserves grow through add_liquidity and shift through swaps; there is
no withdrawal path.

Every mutating operation runs inside one ledger transaction under a
reentrancy guard. All validation happens before the first transfer, the quote
is taken from reserves captured once up front, and the reserves are written
only after both legs of a swap have succeeded. Any failure, including one
raised by an asset's transfer hook, reverts balances and reserves together.
A hook failure other than a pool error surfaces as TransferFailed.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from simpleswap.errors import (
    IdenticalAssets,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityAmount,
    InsufficientOutputAmount,
    InvalidAsset,
    InvalidRecipient,
    PoolError,
    ReentrantCall,
    TransferFailed,
)
from simpleswap.ledger import Ledger, TransferError, UnknownAsset
from simpleswap.models.events import LiquidityAdded, PoolEvent, Swap
from simpleswap.models.types import is_valid_address, is_zero_address, normalize_address
from simpleswap.pool.config import DEFAULT_POOL_CONFIG, PoolConfig
from simpleswap.pool.math import quote, spot_price
from simpleswap.safe_int import S

logger = structlog.get_logger()



class ExchangePool:
    """Constant product pool for one pair of assets.

    Creating the pool registers it on the ledger under a fresh custody
    address. Providers and traders must approve that address on the
    respective asset before calling add_liquidity or a swap.

    Args:
        ledger: Ledger hosting the two assets
        asset_a: Address of the first asset
        asset_b: Address of the second asset
        config: Creation options (default: DEFAULT_POOL_CONFIG)

    Raises:
        InvalidAsset: If either address is null or malformed
        IdenticalAssets: If both addresses are equal and the config forbids it
    """

    quote = staticmethod(quote)

    def __init__(
        self,
        ledger: Ledger,
        asset_a: str,
        asset_b: str,
        config: PoolConfig | None = None,
    ) -> None:
        self.config = config or DEFAULT_POOL_CONFIG

        for asset in (asset_a, asset_b):
            if is_zero_address(asset) or not is_valid_address(normalize_address(asset)):
                logger.warning("pool_creation_rejected", asset=asset, reason=InvalidAsset.reason)
                raise InvalidAsset(asset=asset)

        asset_a = normalize_address(asset_a)
        asset_b = normalize_address(asset_b)
        if asset_a == asset_b and not self.config.allow_identical_assets:
            logger.warning("pool_creation_rejected", asset=asset_a, reason=IdenticalAssets.reason)
            raise IdenticalAssets(asset=asset_a)

        self._ledger = ledger
        self._asset_a = asset_a
        self._asset_b = asset_b
        self._reserve_a = 0
        self._reserve_b = 0
        self._events: list[PoolEvent] = []
        self._entered = False

        self.address = ledger.new_account()
        ledger.register(self)

        logger.info("pool_created", pool=self.address, asset_a=asset_a, asset_b=asset_b)

    def __repr__(self) -> str:
        return (
            f"ExchangePool(address={self.address!r}, asset_a={self._asset_a!r}, "
            f"asset_b={self._asset_b!r}, reserves=({self._reserve_a}, {self._reserve_b}))"
        )

    @property
    def asset_a(self) -> str:
        return self._asset_a

    @property
    def asset_b(self) -> str:
        return self._asset_b

    @property
    def reserve_a(self) -> int:
        return self._reserve_a

    @property
    def reserve_b(self) -> int:
        return self._reserve_b

    @property
    def events(self) -> tuple[PoolEvent, ...]:
        """Committed events, oldest first."""
        return tuple(self._events)

    # --- Queries ---

    def get_reserves(self) -> tuple[int, int]:
        """Current reserves as (reserve_a, reserve_b)."""
        return self._reserve_a, self._reserve_b

    def get_price(self) -> int:
        """Spot price of asset A in asset B, scaled by 1e18 (0 while empty)."""
        return spot_price(self._reserve_a, self._reserve_b)

    def quote_a_for_b(self, amount_in: int) -> int:
        """Output of asset B for ``amount_in`` of asset A at current reserves."""
        return quote(amount_in, self._reserve_a, self._reserve_b)

    def quote_b_for_a(self, amount_in: int) -> int:
        """Output of asset A for ``amount_in`` of asset B at current reserves."""
        return quote(amount_in, self._reserve_b, self._reserve_a)

    # --- Mutations ---

    def add_liquidity(self, provider: str, amount_a: int, amount_b: int) -> LiquidityAdded:
        """Deposit both assets into the reserves.

        Any ratio is accepted; a deposit off the current ratio moves the price.

        Args:
            provider: Account supplying both assets
            amount_a: Amount of asset A, must be positive
            amount_b: Amount of asset B, must be positive

        Returns:
            The emitted LiquidityAdded event

        Raises:
            InsufficientLiquidityAmount: If either amount is zero
            TransferFailed: If the ledger or an asset hook refuses either pull
            ReentrantCall: If entered while another operation is in flight
        """
        with self._operation("add_liquidity"):
            if amount_a <= 0 or amount_b <= 0:
                raise InsufficientLiquidityAmount(amount_a=amount_a, amount_b=amount_b)

            reserve_a, reserve_b = self._reserve_a, self._reserve_b

            self._pull(self._asset_a, provider, amount_a)
            self._pull(self._asset_b, provider, amount_b)

            self._set_reserves(
                (S(reserve_a) + S(amount_a)).to_uint256(),
                (S(reserve_b) + S(amount_b)).to_uint256(),
            )

            event = LiquidityAdded(
                provider=normalize_address(provider),
                amount_a=amount_a,
                amount_b=amount_b,
            )
            self._ledger.append(self._events, event)

        logger.info(
            "liquidity_added",
            pool=self.address,
            provider=event.provider,
            amount_a=amount_a,
            amount_b=amount_b,
            reserve_a=self._reserve_a,
            reserve_b=self._reserve_b,
        )
        return event

    def swap_a_for_b(
        self,
        sender: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
    ) -> Swap:
        """Sell ``amount_in`` of asset A for asset B delivered to ``recipient``.

        Raises:
            InsufficientInputAmount: If amount_in is zero
            InvalidRecipient: If recipient is null, malformed or the pool itself
            InsufficientLiquidity: If either reserve is empty
            InsufficientOutputAmount: If the quote is below min_amount_out
            TransferFailed: If the ledger or an asset hook refuses the pull or
                the push
            ReentrantCall: If entered while another operation is in flight
        """
        return self._swap(sender, amount_in, min_amount_out, recipient, a_for_b=True)

    def swap_b_for_a(
        self,
        sender: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
    ) -> Swap:
        """Sell ``amount_in`` of asset B for asset A delivered to ``recipient``.

        Mirror image of swap_a_for_b; raises the same errors.
        """
        return self._swap(sender, amount_in, min_amount_out, recipient, a_for_b=False)

    def _swap(
        self,
        sender: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        *,
        a_for_b: bool,
    ) -> Swap:
        operation = "swap_a_for_b" if a_for_b else "swap_b_for_a"
        with self._operation(operation):
            if amount_in <= 0:
                raise InsufficientInputAmount(amount_in=amount_in)
            if not self._is_valid_recipient(recipient):
                raise InvalidRecipient(recipient=recipient)

            if a_for_b:
                asset_in, asset_out = self._asset_a, self._asset_b
                reserve_in, reserve_out = self._reserve_a, self._reserve_b
            else:
                asset_in, asset_out = self._asset_b, self._asset_a
                reserve_in, reserve_out = self._reserve_b, self._reserve_a

            if reserve_in == 0 or reserve_out == 0:
                raise InsufficientLiquidity(reserve_in=reserve_in, reserve_out=reserve_out)

            amount_out = quote(amount_in, reserve_in, reserve_out)
            if amount_out < min_amount_out:
                raise InsufficientOutputAmount(amount_out=amount_out, min_amount_out=min_amount_out)

            self._pull(asset_in, sender, amount_in)
            self._push(asset_out, recipient, amount_out)

            # Written from the captured reserves, never re-read after transfers
            new_reserve_in = (S(reserve_in) + S(amount_in)).to_uint256()
            new_reserve_out = (S(reserve_out) - S(amount_out)).value
            if a_for_b:
                self._set_reserves(new_reserve_in, new_reserve_out)
            else:
                self._set_reserves(new_reserve_out, new_reserve_in)

            event = Swap(
                sender=normalize_address(sender),
                amount_a_in=amount_in if a_for_b else 0,
                amount_b_in=0 if a_for_b else amount_in,
                amount_a_out=0 if a_for_b else amount_out,
                amount_b_out=amount_out if a_for_b else 0,
                recipient=normalize_address(recipient),
            )
            self._ledger.append(self._events, event)

        logger.info(
            "swap_executed",
            pool=self.address,
            direction=operation,
            sender=event.sender,
            recipient=event.recipient,
            amount_in=amount_in,
            amount_out=amount_out,
            reserve_a=self._reserve_a,
            reserve_b=self._reserve_b,
        )
        return event

    # --- Internals ---

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Serialize, guard against reentry, and make the body atomic."""
        with self._ledger.transaction():
            if self._entered:
                logger.warning("reentrant_call_rejected", pool=self.address, operation=name)
                raise ReentrantCall(operation=name)
            self._entered = True
            try:
                yield
            except PoolError as err:
                if not isinstance(err, ReentrantCall):
                    logger.warning(
                        "pool_operation_rejected",
                        pool=self.address,
                        operation=name,
                        kind=err.kind.value,
                        reason=err.message,
                        **err.details,
                    )
                raise
            finally:
                self._entered = False

    def _is_valid_recipient(self, recipient: str) -> bool:
        """Null, malformed and the pool's own custody address are refused."""
        if not isinstance(recipient, str) or is_zero_address(recipient):
            return False
        recipient = normalize_address(recipient)
        return is_valid_address(recipient) and recipient != self.address

    def _set_reserves(self, reserve_a: int, reserve_b: int) -> None:
        self._ledger.assign(self, "_reserve_a", reserve_a)
        self._ledger.assign(self, "_reserve_b", reserve_b)

    def _pull(self, asset: str, owner: str, amount: int) -> None:
        try:
            self._ledger.asset(asset).transfer_from(self.address, owner, self.address, amount)
        except PoolError:
            raise
        except Exception as err:
            raise TransferFailed(
                _refusal_reason(err), asset=asset, source=owner, amount=amount
            ) from err

    def _push(self, asset: str, recipient: str, amount: int) -> None:
        try:
            self._ledger.asset(asset).transfer(self.address, recipient, amount)
        except PoolError:
            raise
        except Exception as err:
            raise TransferFailed(
                _refusal_reason(err), asset=asset, recipient=recipient, amount=amount
            ) from err


def _refusal_reason(err: Exception) -> str:
    """Ledger reasons pass through; anything raised by asset code is named."""
    if isinstance(err, (TransferError, UnknownAsset)):
        return str(err)
    return f"{type(err).__name__}: {err}"
