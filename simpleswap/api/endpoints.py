"""API endpoints for the exchange pool."""

import structlog
from fastapi import APIRouter, Depends, Path, Query

from simpleswap.api.models import (
    AccountResponse,
    AddLiquidityRequest,
    ApproveRequest,
    MintRequest,
    PoolInfoResponse,
    PriceResponse,
    QuoteResponse,
    ReservesResponse,
    SwapRequest,
)
from simpleswap.constants import UINT256_MAX
from simpleswap.deployment import Deployment, get_default_deployment
from simpleswap.models.events import LiquidityAdded, Swap
from simpleswap.models.types import normalize_address
from simpleswap.pool import quote as pool_quote

logger = structlog.get_logger()

router = APIRouter()


def get_deployment() -> Deployment:
    """Dependency provider for the served deployment.

    Override this in tests to inject a prepared deployment:
        app.dependency_overrides[get_deployment] = lambda: deployment
    """
    return get_default_deployment()


@router.get("/pool")
def pool_info(deployment: Deployment = Depends(get_deployment)) -> PoolInfoResponse:
    """Addresses of the pool and its two assets."""
    pool = deployment.pool
    return PoolInfoResponse(
        address=pool.address,
        asset_a=pool.asset_a,
        asset_b=pool.asset_b,
        deployer=deployment.deployer,
    )


@router.get("/reserves")
def reserves(deployment: Deployment = Depends(get_deployment)) -> ReservesResponse:
    reserve_a, reserve_b = deployment.pool.get_reserves()
    return ReservesResponse(reserve_a=reserve_a, reserve_b=reserve_b)


@router.get("/quote")
def quote(
    amount_in: int = Query(alias="amountIn", ge=0, le=UINT256_MAX),
    reserve_in: int = Query(alias="reserveIn", ge=0, le=UINT256_MAX),
    reserve_out: int = Query(alias="reserveOut", ge=0, le=UINT256_MAX),
) -> QuoteResponse:
    """Pure constant product quote; never fails for in-range input."""
    return QuoteResponse(amount_out=pool_quote(amount_in, reserve_in, reserve_out))


@router.get("/price")
def price(deployment: Deployment = Depends(get_deployment)) -> PriceResponse:
    return PriceResponse(price=deployment.pool.get_price())


@router.post("/liquidity")
def add_liquidity(
    request: AddLiquidityRequest,
    deployment: Deployment = Depends(get_deployment),
) -> LiquidityAdded:
    """Deposit both assets from ``provider`` into the pool.

    Pool failures propagate as PoolError and are rendered by the
    application's exception handler.
    """
    logger.info(
        "received_add_liquidity",
        provider=request.provider,
        amount_a=request.amount_a,
        amount_b=request.amount_b,
    )
    return deployment.pool.add_liquidity(
        request.provider,
        int(request.amount_a),
        int(request.amount_b),
    )


@router.post("/swap/a-for-b")
def swap_a_for_b(
    request: SwapRequest,
    deployment: Deployment = Depends(get_deployment),
) -> Swap:
    logger.info(
        "received_swap",
        direction="a_for_b",
        sender=request.sender,
        amount_in=request.amount_in,
    )
    return deployment.pool.swap_a_for_b(
        request.sender,
        int(request.amount_in),
        int(request.min_amount_out),
        request.recipient,
    )


@router.post("/swap/b-for-a")
def swap_b_for_a(
    request: SwapRequest,
    deployment: Deployment = Depends(get_deployment),
) -> Swap:
    logger.info(
        "received_swap",
        direction="b_for_a",
        sender=request.sender,
        amount_in=request.amount_in,
    )
    return deployment.pool.swap_b_for_a(
        request.sender,
        int(request.amount_in),
        int(request.min_amount_out),
        request.recipient,
    )


# --- Test asset faucet ---


def _account_state(deployment: Deployment, account: str) -> AccountResponse:
    pool = deployment.pool.address
    return AccountResponse(
        account=normalize_address(account),
        balance_a=deployment.asset_a.balance_of(account),
        balance_b=deployment.asset_b.balance_of(account),
        allowance_a=deployment.asset_a.allowance(account, pool),
        allowance_b=deployment.asset_b.allowance(account, pool),
    )


@router.get("/accounts/{account}")
def account_state(
    account: str = Path(pattern=r"^0x[a-fA-F0-9]{40}$"),
    deployment: Deployment = Depends(get_deployment),
) -> AccountResponse:
    """Balances of ``account`` and its allowances to the pool."""
    return _account_state(deployment, account)


@router.post("/mint")
def mint(
    request: MintRequest,
    deployment: Deployment = Depends(get_deployment),
) -> AccountResponse:
    """Mint both assets to ``account``, like the mock tokens' public mint.

    Ledger refusals propagate as TransferError and are rendered by the
    application's exception handler.
    """
    logger.info(
        "received_mint",
        account=request.account,
        amount_a=request.amount_a,
        amount_b=request.amount_b,
    )
    with deployment.ledger.transaction():
        deployment.asset_a.mint(request.account, int(request.amount_a))
        deployment.asset_b.mint(request.account, int(request.amount_b))
    return _account_state(deployment, request.account)


@router.post("/approve")
def approve(
    request: ApproveRequest,
    deployment: Deployment = Depends(get_deployment),
) -> AccountResponse:
    """Set ``owner``'s allowances to the pool on both assets."""
    logger.info(
        "received_approve",
        owner=request.owner,
        amount_a=request.amount_a,
        amount_b=request.amount_b,
    )
    pool = deployment.pool.address
    with deployment.ledger.transaction():
        deployment.asset_a.approve(request.owner, pool, int(request.amount_a))
        deployment.asset_b.approve(request.owner, pool, int(request.amount_b))
    return _account_state(deployment, request.owner)
