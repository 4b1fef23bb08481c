"""Tests for the exchange pool."""

import pytest

from simpleswap.errors import (
    IdenticalAssets,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityAmount,
    InsufficientOutputAmount,
    InvalidAsset,
    InvalidRecipient,
    PoolErrorKind,
    ReentrantCall,
    TransferFailed,
)
from simpleswap.models.events import LiquidityAdded, Swap
from simpleswap.pool import ExchangePool, PoolConfig, quote
from tests.helpers import (
    INITIAL_LIQUIDITY,
    INITIAL_SUPPLY,
    UNKNOWN_ADDRESS,
    ZERO_ADDRESS,
    ether,
    fund_account,
)


class TestCreation:
    """Tests for pool creation."""

    def test_sets_asset_addresses(self, pool, asset_a, asset_b):
        """Pool records both asset addresses."""
        assert pool.asset_a == asset_a.address
        assert pool.asset_b == asset_b.address

    def test_starts_with_zero_reserves(self, pool):
        """A new pool holds nothing."""
        assert pool.get_reserves() == (0, 0)
        assert pool.events == ()

    def test_zero_address_asset_a_rejected(self, ledger, asset_b):
        """Null first asset fails with InvalidAsset."""
        with pytest.raises(InvalidAsset, match="Invalid token address"):
            ExchangePool(ledger, ZERO_ADDRESS, asset_b.address)

    def test_zero_address_asset_b_rejected(self, ledger, asset_a):
        """Null second asset fails with InvalidAsset."""
        with pytest.raises(InvalidAsset) as exc_info:
            ExchangePool(ledger, asset_a.address, ZERO_ADDRESS)
        assert exc_info.value.kind is PoolErrorKind.INVALID_ASSET
        assert exc_info.value.details == {"asset": ZERO_ADDRESS}

    def test_malformed_asset_rejected(self, ledger, asset_a):
        """Non-address identifiers are treated as invalid assets."""
        with pytest.raises(InvalidAsset):
            ExchangePool(ledger, asset_a.address, "0x1234")
        with pytest.raises(InvalidAsset):
            ExchangePool(ledger, "", asset_a.address)

    def test_identical_assets_rejected_by_default(self, ledger, asset_a):
        """A single-asset pool is refused unless explicitly allowed."""
        with pytest.raises(IdenticalAssets):
            ExchangePool(ledger, asset_a.address, asset_a.address)

    def test_identical_assets_allowed_by_config(self, ledger, asset_a):
        """PoolConfig can opt into a degenerate single-asset pool."""
        pool = ExchangePool(
            ledger,
            asset_a.address,
            asset_a.address,
            PoolConfig(allow_identical_assets=True),
        )
        assert pool.get_reserves() == (0, 0)

    def test_each_pool_gets_own_address(self, ledger, asset_a, asset_b, pool):
        """Pools on the same ledger have distinct custody addresses."""
        other = ExchangePool(ledger, asset_a.address, asset_b.address)
        assert other.address != pool.address
        assert other.address != ZERO_ADDRESS


class TestAddLiquidity:
    """Tests for add_liquidity."""

    def test_adds_initial_liquidity(self, pool, owner, asset_a, asset_b):
        """Reserves and custody balances grow by exactly the deposit."""
        event = pool.add_liquidity(owner, ether(100), ether(100))

        assert event == LiquidityAdded(provider=owner, amount_a=ether(100), amount_b=ether(100))
        assert pool.events == (event,)
        assert pool.get_reserves() == (ether(100), ether(100))
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY - ether(100)
        assert asset_b.balance_of(owner) == INITIAL_SUPPLY - ether(100)
        assert asset_a.balance_of(pool.address) == ether(100)
        assert asset_b.balance_of(pool.address) == ether(100)

    def test_accumulates_at_any_ratio(self, pool, owner, addr1):
        """No proportionality check: later deposits may move the price."""
        pool.add_liquidity(owner, 100, 100)
        pool.add_liquidity(addr1, 50, 7)

        assert pool.get_reserves() == (150, 107)
        assert [e.provider for e in pool.events] == [owner, addr1]

    @pytest.mark.parametrize(("amount_a", "amount_b"), [(0, 100), (100, 0), (0, 0), (-1, 100)])
    def test_zero_amounts_rejected(self, pool, owner, asset_a, amount_a, amount_b):
        """Either amount zero fails and leaves everything unchanged."""
        with pytest.raises(InsufficientLiquidityAmount, match="Insufficient liquidity amount"):
            pool.add_liquidity(owner, amount_a, amount_b)

        assert pool.get_reserves() == (0, 0)
        assert pool.events == ()
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY

    def test_insufficient_balance_rejected(self, pool, addr1):
        """Ledger refusal surfaces as TransferFailed with the ledger's reason."""
        with pytest.raises(TransferFailed, match="ERC20: transfer amount exceeds balance"):
            pool.add_liquidity(addr1, ether(2000), ether(2000))
        assert pool.get_reserves() == (0, 0)

    def test_second_pull_failure_reverts_first(self, pool, owner, asset_a, asset_b):
        """If asset B cannot be pulled, the asset A pull is undone."""
        asset_b.approve(owner, pool.address, 10)

        with pytest.raises(TransferFailed, match="insufficient allowance") as exc_info:
            pool.add_liquidity(owner, 100, 100)

        assert isinstance(exc_info.value.__cause__, Exception)
        assert pool.get_reserves() == (0, 0)
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY
        assert asset_a.balance_of(pool.address) == 0
        assert asset_b.allowance(owner, pool.address) == 10

    def test_unapproved_provider_rejected(self, deployment, pool):
        """A holder who never approved the pool cannot deposit."""
        holder = deployment.ledger.new_account()
        fund_account(deployment, holder, approve=False)

        with pytest.raises(TransferFailed, match="insufficient allowance"):
            pool.add_liquidity(holder, 1, 1)

    def test_unknown_asset_surfaces_as_transfer_failure(self, ledger, asset_a, owner):
        """A pool over an address with no asset cannot pull it."""
        pool = ExchangePool(ledger, asset_a.address, UNKNOWN_ADDRESS)
        asset_a.approve(owner, pool.address, 100)

        with pytest.raises(TransferFailed, match="No asset deployed"):
            pool.add_liquidity(owner, 100, 100)
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY


class TestSwapping:
    """Tests for swap_a_for_b and swap_b_for_a."""

    def test_swap_a_for_b(self, seeded_pool, owner, addr1, asset_a, asset_b):
        """Selling A moves reserves and pays B to the recipient."""
        amount_in = ether(10)
        expected_out = quote(amount_in, INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)

        event = seeded_pool.swap_a_for_b(owner, amount_in, expected_out, addr1)

        assert event == Swap(
            sender=owner,
            amount_a_in=amount_in,
            amount_b_in=0,
            amount_a_out=0,
            amount_b_out=expected_out,
            recipient=addr1,
        )
        assert seeded_pool.get_reserves() == (
            INITIAL_LIQUIDITY + amount_in,
            INITIAL_LIQUIDITY - expected_out,
        )
        assert asset_b.balance_of(addr1) == INITIAL_SUPPLY + expected_out
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY - INITIAL_LIQUIDITY - amount_in

    def test_swap_b_for_a(self, seeded_pool, owner, addr1, asset_a):
        """Selling B is the mirror image."""
        amount_in = ether(10)
        expected_out = quote(amount_in, INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)

        event = seeded_pool.swap_b_for_a(owner, amount_in, expected_out, addr1)

        assert (event.amount_a_in, event.amount_b_in) == (0, amount_in)
        assert (event.amount_a_out, event.amount_b_out) == (expected_out, 0)
        assert seeded_pool.get_reserves() == (
            INITIAL_LIQUIDITY - expected_out,
            INITIAL_LIQUIDITY + amount_in,
        )
        assert asset_a.balance_of(addr1) == INITIAL_SUPPLY + expected_out

    def test_small_integer_scenario(self, pool, owner, addr1):
        """100/100 pool, sell 10: floor(10 * 100 / 110) = 9."""
        pool.add_liquidity(owner, 100, 100)

        event = pool.swap_a_for_b(owner, 10, pool.quote(10, 100, 100), addr1)

        assert event.amount_b_out == 9
        assert pool.get_reserves() == (110, 91)

    def test_reserves_track_custody_balances(self, seeded_pool, owner, addr1, asset_a, asset_b):
        """After a sequence of trades the counters equal the pool's holdings."""
        seeded_pool.swap_a_for_b(owner, ether(3), 0, addr1)
        seeded_pool.swap_b_for_a(addr1, ether(7), 0, owner)
        seeded_pool.add_liquidity(addr1, 5, 11)
        seeded_pool.swap_a_for_b(addr1, 12345, 0, addr1)

        reserve_a, reserve_b = seeded_pool.get_reserves()
        assert reserve_a == asset_a.balance_of(seeded_pool.address)
        assert reserve_b == asset_b.balance_of(seeded_pool.address)

    def test_output_below_minimum_rejected(self, seeded_pool, owner, addr1, asset_a):
        """Slippage guard refuses the trade and carries both amounts."""
        amount_in = ether(10)
        expected_out = seeded_pool.quote_a_for_b(amount_in)

        with pytest.raises(InsufficientOutputAmount, match="Insufficient output amount") as exc:
            seeded_pool.swap_a_for_b(owner, amount_in, expected_out + ether(1), addr1)

        assert exc.value.details == {
            "amount_out": expected_out,
            "min_amount_out": expected_out + ether(1),
        }
        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY - INITIAL_LIQUIDITY

    @pytest.mark.parametrize("direction", ["swap_a_for_b", "swap_b_for_a"])
    def test_zero_input_rejected(self, seeded_pool, owner, addr1, direction):
        """Zero input fails with InsufficientInputAmount."""
        with pytest.raises(InsufficientInputAmount, match="Insufficient input amount"):
            getattr(seeded_pool, direction)(owner, 0, 0, addr1)

    @pytest.mark.parametrize("direction", ["swap_a_for_b", "swap_b_for_a"])
    def test_zero_recipient_rejected(self, seeded_pool, owner, direction):
        """Output to the null address fails with InvalidRecipient."""
        expected_out = quote(ether(10), INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)
        with pytest.raises(InvalidRecipient, match="Invalid recipient"):
            getattr(seeded_pool, direction)(owner, ether(10), expected_out, ZERO_ADDRESS)

    def test_input_checked_before_recipient(self, seeded_pool, owner):
        """With both problems present, the input amount is reported."""
        with pytest.raises(InsufficientInputAmount):
            seeded_pool.swap_a_for_b(owner, 0, 0, ZERO_ADDRESS)

    @pytest.mark.parametrize("direction", ["swap_a_for_b", "swap_b_for_a"])
    def test_empty_pool_rejected(self, pool, owner, addr1, direction):
        """No quote is possible from an empty pool."""
        with pytest.raises(InsufficientLiquidity, match="Insufficient liquidity"):
            getattr(pool, direction)(owner, ether(10), 0, addr1)

    def test_empty_pool_reports_reserves(self, pool, owner, addr1, asset_a):
        """InsufficientLiquidity carries the reserves it saw; nothing moves."""
        with pytest.raises(InsufficientLiquidity) as exc_info:
            pool.swap_a_for_b(owner, 1, 0, addr1)

        assert exc_info.value.details == {"reserve_in": 0, "reserve_out": 0}
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY

    def test_insufficient_input_balance_rejected(self, seeded_pool, deployment, addr1):
        """Trader without the input asset gets TransferFailed and nothing moves."""
        trader = deployment.ledger.new_account()
        deployment.asset_a.approve(trader, seeded_pool.address, ether(1))

        with pytest.raises(TransferFailed, match="exceeds balance"):
            seeded_pool.swap_a_for_b(trader, ether(1), 0, addr1)
        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)

    def test_failed_push_reverts_pull(self, seeded_pool, owner, addr1, asset_a, asset_b):
        """A hook refusing the outbound leg undoes the inbound leg too."""

        def refuse_payouts(asset, sender, recipient, amount):
            if sender == seeded_pool.address:
                raise RuntimeError("payout blocked")

        asset_b.add_transfer_hook(refuse_payouts)

        with pytest.raises(TransferFailed, match="RuntimeError: payout blocked") as exc_info:
            seeded_pool.swap_a_for_b(owner, ether(10), 0, addr1)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.details["recipient"] == addr1

        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY - INITIAL_LIQUIDITY
        assert asset_a.balance_of(seeded_pool.address) == INITIAL_LIQUIDITY
        assert asset_b.balance_of(addr1) == INITIAL_SUPPLY
        assert len(seeded_pool.events) == 1

    @pytest.mark.parametrize("direction", ["swap_a_for_b", "swap_b_for_a"])
    def test_pool_as_recipient_rejected(self, seeded_pool, owner, asset_a, asset_b, direction):
        """Paying the output back into custody would desync the reserves."""
        with pytest.raises(InvalidRecipient) as exc_info:
            getattr(seeded_pool, direction)(owner, ether(1), 0, seeded_pool.address.upper())

        assert exc_info.value.details == {"recipient": seeded_pool.address.upper()}
        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)
        assert asset_a.balance_of(seeded_pool.address) == INITIAL_LIQUIDITY
        assert asset_b.balance_of(seeded_pool.address) == INITIAL_LIQUIDITY

    @pytest.mark.parametrize("recipient", ["not-an-address", "0x1234", "0x" + "zz" * 20])
    def test_malformed_recipient_rejected(self, seeded_pool, owner, asset_a, recipient):
        """A malformed recipient is refused before any transfer runs."""
        moves = []

        def record(asset, sender, to, amount):
            moves.append((sender, to, amount))

        asset_a.add_transfer_hook(record)

        with pytest.raises(InvalidRecipient):
            seeded_pool.swap_a_for_b(owner, 10, 0, recipient)

        assert moves == []
        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)

    def test_hook_failure_on_pull_is_transfer_failure(self, seeded_pool, owner, addr1, asset_a):
        """Any refusal by asset code on the inbound leg maps to TransferFailed."""

        def refuse_deposits(asset, sender, recipient, amount):
            raise ValueError("frozen account")

        asset_a.add_transfer_hook(refuse_deposits)

        with pytest.raises(TransferFailed) as exc_info:
            seeded_pool.swap_a_for_b(owner, 10, 0, addr1)

        assert exc_info.value.message == "ValueError: frozen account"
        assert exc_info.value.details["source"] == owner
        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)

    def test_successive_swaps_use_updated_reserves(self, seeded_pool, owner, addr1):
        """The second trade is priced off the first trade's reserves."""
        first = seeded_pool.swap_a_for_b(owner, ether(10), 0, addr1)
        reserve_a, reserve_b = seeded_pool.get_reserves()

        second = seeded_pool.swap_a_for_b(owner, ether(10), 0, addr1)

        assert second.amount_b_out == quote(ether(10), reserve_a, reserve_b)
        assert second.amount_b_out < first.amount_b_out


class TestReentrancy:
    """Tests for the reentrancy guard."""

    def test_reentrant_swap_from_hook_fails_outer(self, seeded_pool, owner, addr1, asset_a):
        """A hook calling back into the pool aborts the whole outer swap."""
        seen_reserves = []

        def reenter(asset, sender, recipient, amount):
            if recipient == seeded_pool.address:
                seen_reserves.append(seeded_pool.get_reserves())
                seeded_pool.swap_a_for_b(owner, 1, 0, owner)

        asset_a.add_transfer_hook(reenter)

        with pytest.raises(ReentrantCall, match="reentrant call") as exc_info:
            seeded_pool.swap_a_for_b(owner, ether(10), 0, addr1)

        assert exc_info.value.details == {"operation": "swap_a_for_b"}
        # Reads during the operation still see the committed reserves
        assert seen_reserves == [(INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)]
        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)
        assert asset_a.balance_of(owner) == INITIAL_SUPPLY - INITIAL_LIQUIDITY

    def test_reentrant_add_liquidity_fails(self, pool, owner, asset_b):
        """add_liquidity is guarded too."""

        def reenter(asset, sender, recipient, amount):
            pool.add_liquidity(owner, 1, 1)

        asset_b.add_transfer_hook(reenter)

        with pytest.raises(ReentrantCall):
            pool.add_liquidity(owner, 100, 100)
        assert pool.get_reserves() == (0, 0)

    def test_guard_released_after_failure(self, seeded_pool, owner, addr1):
        """A failed operation leaves the pool usable."""
        with pytest.raises(InsufficientOutputAmount):
            seeded_pool.swap_a_for_b(owner, 10, 10**30, addr1)

        event = seeded_pool.swap_a_for_b(owner, 10, 0, addr1)
        assert event.amount_a_in == 10

    def test_swallowed_reentry_lets_outer_commit(self, seeded_pool, owner, addr1, asset_a):
        """If the hook swallows the refusal, only the outer trade happens."""
        refusals = []

        def reenter(asset, sender, recipient, amount):
            if recipient == seeded_pool.address:
                try:
                    seeded_pool.swap_a_for_b(owner, 1, 0, owner)
                except ReentrantCall as err:
                    refusals.append(err)

        asset_a.add_transfer_hook(reenter)
        seeded_pool.swap_a_for_b(owner, ether(10), 0, addr1)

        assert len(refusals) == 1
        assert seeded_pool.get_reserves()[0] == INITIAL_LIQUIDITY + ether(10)
        assert len(seeded_pool.events) == 2

    def test_other_pool_changes_roll_back_with_outer(self, deployment, owner, addr1):
        """Work done on a second pool from a hook is undone when the outer fails."""
        ledger = deployment.ledger
        first = deployment.pool
        second = ExchangePool(ledger, deployment.asset_a.address, deployment.asset_b.address)
        for asset in (deployment.asset_a, deployment.asset_b):
            asset.approve(owner, second.address, 10**30)

        def side_deposit(asset, sender, recipient, amount):
            if recipient == first.address and asset is deployment.asset_b:
                second.add_liquidity(owner, 5, 5)
                raise RuntimeError("abort after side effect")

        deployment.asset_b.add_transfer_hook(side_deposit)

        with pytest.raises(TransferFailed, match="abort after side effect"):
            first.add_liquidity(owner, 100, 100)

        assert second.get_reserves() == (0, 0)
        assert second.events == ()
        assert deployment.asset_a.balance_of(second.address) == 0


class TestQueries:
    """Tests for read-only queries."""

    def test_price_of_empty_pool_is_zero(self, pool):
        """No reserves, no price."""
        assert pool.get_price() == 0

    def test_price_scaled_by_1e18(self, pool, owner):
        """Price of A in B is reserve_b / reserve_a in 1e18 units."""
        pool.add_liquidity(owner, ether(100), ether(250))
        assert pool.get_price() == ether(25) // 10

    def test_directional_quotes(self, pool, owner):
        """quote_a_for_b and quote_b_for_a use the matching reserve order."""
        pool.add_liquidity(owner, 1000, 4000)
        assert pool.quote_a_for_b(100) == quote(100, 1000, 4000)
        assert pool.quote_b_for_a(100) == quote(100, 4000, 1000)

    def test_queries_do_not_mutate(self, seeded_pool):
        """Quotes leave the reserves alone."""
        seeded_pool.quote_a_for_b(ether(50))
        seeded_pool.get_price()
        assert seeded_pool.get_reserves() == (INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)
