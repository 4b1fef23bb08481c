"""Pydantic request/response models for the exchange pool API.

Amounts travel as decimal strings so uint256 values survive JSON clients
that only have double-precision numbers.
"""

from pydantic import BaseModel, Field

from simpleswap.models.types import Address, Uint256


class AddLiquidityRequest(BaseModel):
    """Body of POST /liquidity."""

    provider: Address
    amount_a: Uint256 = Field(alias="amountA")
    amount_b: Uint256 = Field(alias="amountB")

    model_config = {"populate_by_name": True}


class SwapRequest(BaseModel):
    """Body of POST /swap/a-for-b and POST /swap/b-for-a."""

    sender: Address
    amount_in: Uint256 = Field(alias="amountIn")
    min_amount_out: Uint256 = Field(default="0", alias="minAmountOut")
    recipient: Address

    model_config = {"populate_by_name": True}


class ReservesResponse(BaseModel):
    reserve_a: Uint256 = Field(alias="reserveA")
    reserve_b: Uint256 = Field(alias="reserveB")

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class PriceResponse(BaseModel):
    """Spot price of asset A in asset B, scaled by 1e18."""

    price: Uint256


class PoolInfoResponse(BaseModel):
    address: Address
    asset_a: Address = Field(alias="assetA")
    asset_b: Address = Field(alias="assetB")
    deployer: Address | None = None

    model_config = {"populate_by_name": True}


class MintRequest(BaseModel):
    """Body of POST /mint: credit ``account`` with both test assets."""

    account: Address
    amount_a: Uint256 = Field(alias="amountA")
    amount_b: Uint256 = Field(alias="amountB")

    model_config = {"populate_by_name": True}


class ApproveRequest(BaseModel):
    """Body of POST /approve: let the pool spend ``owner``'s assets."""

    owner: Address
    amount_a: Uint256 = Field(alias="amountA")
    amount_b: Uint256 = Field(alias="amountB")

    model_config = {"populate_by_name": True}


class AccountResponse(BaseModel):
    """Balances of an account and the allowances it granted the pool."""

    account: Address
    balance_a: Uint256 = Field(alias="balanceA")
    balance_b: Uint256 = Field(alias="balanceB")
    allowance_a: Uint256 = Field(alias="allowanceA")
    allowance_b: Uint256 = Field(alias="allowanceB")

    model_config = {"populate_by_name": True}
