"""In-memory asset ledger.

Plays the role of the host chain for the exchange pool: it hosts fungible
assets (ERC20-style balances and allowances), issues account addresses, and
gives callers all-or-nothing transactions.

Contract state is written through the ledger (``write``, ``assign``,
``append``), which keeps an undo journal while a transaction is open. A
transaction remembers the journal length on entry; if its body raises, the
entries recorded since then are undone in reverse order, the way a reverted
call leaves no trace on chain. The journal is dropped when the outermost
transaction commits, so rollback cost is proportional to the writes made,
not to the number of accounts.

Assets may carry transfer hooks. Hooks are arbitrary callables run after
each balance move and model the untrusted code an asset contract can execute
during a transfer, including calls back into the pool.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable, Iterator, MutableMapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from simpleswap.constants import UINT256_MAX
from simpleswap.models.types import is_zero_address, normalize_address
from simpleswap.safe_int import S

logger = structlog.get_logger()

# Called as hook(asset, sender, recipient, amount) after every balance move
TransferHook = Callable[["Asset", str, str, int], None]

_MISSING = object()


class TransferError(Exception):
    """The ledger refused a mint, approval or transfer."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class UnknownAsset(LookupError):
    """No asset is deployed at the given address."""

    pass


@dataclass
class Asset:
    """A fungible asset hosted on a Ledger.

    Amounts are plain non-negative integers in the asset's smallest unit.
    All account arguments are addresses; they are normalized to lowercase.
    """

    ledger: Ledger = field(repr=False)
    address: str
    name: str
    symbol: str
    total_supply: int = 0
    _balances: dict[str, int] = field(default_factory=dict, repr=False)
    _allowances: dict[tuple[str, str], int] = field(default_factory=dict, repr=False)
    _hooks: list[TransferHook] = field(default_factory=list, repr=False)

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def add_transfer_hook(self, hook: TransferHook) -> None:
        """Register a callable to run after every transfer of this asset."""
        self._hooks.append(hook)

    def mint(self, to: str, amount: int) -> None:
        """Create ``amount`` new units owned by ``to``.

        Raises:
            TransferError: If ``to`` is the null address or amount is negative
            Uint256Overflow: If total supply would exceed uint256
        """
        if is_zero_address(to):
            raise TransferError("ERC20: mint to the zero address")
        _check_amount(amount)
        ledger = self.ledger
        with ledger.transaction():
            ledger.assign(self, "total_supply", (S(self.total_supply) + S(amount)).to_uint256())
            to = normalize_address(to)
            ledger.write(self._balances, to, self.balance_of(to) + amount)
        logger.debug("asset_minted", asset=self.symbol, to=to, amount=amount)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Let ``spender`` move up to ``amount`` of ``owner``'s balance.

        An allowance of UINT256_MAX is infinite and never decremented.
        """
        if is_zero_address(owner) or is_zero_address(spender):
            raise TransferError("ERC20: approve to the zero address")
        _check_amount(amount)
        with self.ledger.transaction():
            key = (normalize_address(owner), normalize_address(spender))
            self.ledger.write(self._allowances, key, amount)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        """Move ``amount`` from ``sender`` to ``to``.

        Raises:
            TransferError: On insufficient balance, null recipient or negative amount
        """
        with self.ledger.transaction():
            self._move(normalize_address(sender), to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        """Move ``amount`` from ``owner`` to ``to`` using ``spender``'s allowance.

        Raises:
            TransferError: On insufficient allowance or balance, null recipient
                or negative amount
        """
        _check_amount(amount)
        with self.ledger.transaction():
            key = (normalize_address(owner), normalize_address(spender))
            allowed = self._allowances.get(key, 0)
            if allowed != UINT256_MAX:
                if allowed < amount:
                    raise TransferError("ERC20: insufficient allowance")
                self.ledger.write(self._allowances, key, allowed - amount)
            self._move(key[0], to, amount)

    def _move(self, sender: str, to: str, amount: int) -> None:
        if is_zero_address(to):
            raise TransferError("ERC20: transfer to the zero address")
        _check_amount(amount)
        to = normalize_address(to)

        sender_balance = self._balances.get(sender, 0)
        if sender_balance < amount:
            raise TransferError("ERC20: transfer amount exceeds balance")
        self.ledger.write(self._balances, sender, sender_balance - amount)
        self.ledger.write(self._balances, to, self._balances.get(to, 0) + amount)

        for hook in list(self._hooks):
            hook(self, sender, to, amount)


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"Amount must be int, got {type(amount).__name__}")
    if amount < 0:
        raise TransferError("ERC20: invalid amount")
    S(amount).to_uint256()


class Contract(Protocol):
    """Anything living at a ledger address."""

    address: str


class Ledger:
    """Host for contracts and accounts with globally serialized transactions.

    Every state change goes through ``transaction()``, which holds a
    re-entrant process-wide lock, so at most one top-level operation is in
    flight. Nested transactions act as savepoints: a failing inner body
    rolls back only its own writes.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._contracts: dict[str, Contract] = {}
        self._journal: list[Callable[[], None]] = []
        self._depth = 0
        # Address 0 is the null identifier; issue from 1 upward
        self._address_counter = itertools.count(1)

    def new_account(self) -> str:
        """Issue a fresh, never-null account address."""
        with self._lock:
            return f"0x{next(self._address_counter):040x}"

    def register(self, contract: Contract) -> None:
        """Make a contract reachable at its address."""
        with self._lock:
            self.write(self._contracts, normalize_address(contract.address), contract)

    def deploy_asset(self, name: str, symbol: str) -> Asset:
        """Deploy a new asset with zero supply at a fresh address."""
        with self._lock:
            asset = Asset(ledger=self, address=self.new_account(), name=name, symbol=symbol)
            self.register(asset)
        logger.info("asset_deployed", address=asset.address, name=name, symbol=symbol)
        return asset

    def asset(self, address: str) -> Asset:
        """Look up a deployed asset.

        Raises:
            UnknownAsset: If no asset lives at ``address``
        """
        contract = self._contracts.get(normalize_address(address))
        if not isinstance(contract, Asset):
            raise UnknownAsset(f"No asset deployed at {address}")
        return contract

    def is_asset(self, address: str) -> bool:
        return isinstance(self._contracts.get(normalize_address(address)), Asset)

    # --- Journaled writes ---

    def write(self, mapping: MutableMapping[Any, Any], key: Any, value: Any) -> None:
        """Set ``mapping[key]``, undoable by the enclosing transaction."""
        old = mapping.get(key, _MISSING)
        mapping[key] = value
        if old is _MISSING:
            self._record(lambda: mapping.pop(key, None))
        else:
            self._record(lambda: mapping.__setitem__(key, old))

    def assign(self, obj: object, name: str, value: Any) -> None:
        """Set an attribute, undoable by the enclosing transaction."""
        old = getattr(obj, name)
        setattr(obj, name, value)
        self._record(lambda: setattr(obj, name, old))

    def append(self, items: list[Any], item: Any) -> None:
        """Append to a list, undoable by the enclosing transaction."""
        size = len(items)
        items.append(item)
        self._record(lambda: items.__delitem__(slice(size, None)))

    def _record(self, undo: Callable[[], None]) -> None:
        if self._depth:
            self._journal.append(undo)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the body atomically: on any exception, undo its writes."""
        with self._lock:
            savepoint = len(self._journal)
            self._depth += 1
            try:
                yield
            except BaseException:
                while len(self._journal) > savepoint:
                    self._journal.pop()()
                logger.debug("ledger_transaction_reverted", undone_from=savepoint)
                raise
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._journal.clear()
