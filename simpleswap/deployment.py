"""Ledger + pool bundle served by the HTTP API.

A Deployment is one ledger hosting two freshly deployed assets and the pool
trading them. The default deployment is created lazily from environment
variables the first time it is requested, and is seeded the usual way: a
deployer account is funded with both assets, approves the pool, and adds the
initial liquidity.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass

import structlog

from simpleswap.constants import UINT256_MAX
from simpleswap.ledger import Asset, Ledger
from simpleswap.models.types import normalize_address
from simpleswap.pool import ExchangePool, PoolConfig

logger = structlog.get_logger()

# Seed amounts of the default deployment, per asset (18 decimals)
DEFAULT_INITIAL_SUPPLY = 1000 * 10**18
DEFAULT_INITIAL_LIQUIDITY = 100 * 10**18


@dataclass
class Deployment:
    """A ledger with two assets and the pool between them."""

    ledger: Ledger
    asset_a: Asset
    asset_b: Asset
    pool: ExchangePool
    deployer: str | None = None


def deploy(
    asset_a_symbol: str = "TK0",
    asset_b_symbol: str = "TK1",
    config: PoolConfig | None = None,
    ledger: Ledger | None = None,
) -> Deployment:
    """Deploy two assets and a pool for them on ``ledger`` (or a new one).

    Args:
        asset_a_symbol: Symbol of the first asset
        asset_b_symbol: Symbol of the second asset
        config: Pool creation options
        ledger: Ledger to deploy on; a fresh one is created if None

    Returns:
        The new Deployment
    """
    ledger = ledger or Ledger()
    asset_a = ledger.deploy_asset(f"Token {asset_a_symbol}", asset_a_symbol)
    asset_b = ledger.deploy_asset(f"Token {asset_b_symbol}", asset_b_symbol)
    pool = ExchangePool(ledger, asset_a.address, asset_b.address, config)
    return Deployment(ledger=ledger, asset_a=asset_a, asset_b=asset_b, pool=pool)


def seed(
    deployment: Deployment,
    deployer: str | None = None,
    supply: int = DEFAULT_INITIAL_SUPPLY,
    liquidity: int = DEFAULT_INITIAL_LIQUIDITY,
) -> str:
    """Fund a deployer, approve the pool and add the initial liquidity.

    Args:
        deployment: Deployment to seed
        deployer: Deployer address; a fresh account is issued if None
        supply: Amount of each asset minted to the deployer
        liquidity: Amount of each asset deposited; 0 leaves the pool empty

    Returns:
        The deployer address
    """
    deployer = normalize_address(deployer, validate=True) if deployer else None
    deployer = deployer or deployment.ledger.new_account()

    with deployment.ledger.transaction():
        for asset in (deployment.asset_a, deployment.asset_b):
            asset.mint(deployer, supply)
            asset.approve(deployer, deployment.pool.address, UINT256_MAX)
        if liquidity:
            deployment.pool.add_liquidity(deployer, liquidity, liquidity)

    deployment.deployer = deployer
    logger.info(
        "deployment_seeded",
        deployer=deployer,
        supply=supply,
        liquidity=liquidity,
    )
    return deployer


_default_deployment: Deployment | None = None
_default_lock = threading.Lock()


def _create_default_deployment() -> Deployment:
    """Create and seed the default deployment.

    Configuration via environment variables:
    - SIMPLESWAP_ASSET_A_SYMBOL / SIMPLESWAP_ASSET_B_SYMBOL (default: TK0 / TK1)
    - SIMPLESWAP_DEPLOYER: Deployer address (default: a freshly issued account)
    - SIMPLESWAP_INITIAL_SUPPLY: Minted to the deployer per asset (default: 1000e18)
    - SIMPLESWAP_INITIAL_LIQUIDITY: Seeded into the pool per asset (default: 100e18)
    """
    symbol_a = os.environ.get("SIMPLESWAP_ASSET_A_SYMBOL", "TK0")
    symbol_b = os.environ.get("SIMPLESWAP_ASSET_B_SYMBOL", "TK1")
    supply = int(os.environ.get("SIMPLESWAP_INITIAL_SUPPLY", str(DEFAULT_INITIAL_SUPPLY)))
    liquidity = int(
        os.environ.get("SIMPLESWAP_INITIAL_LIQUIDITY", str(DEFAULT_INITIAL_LIQUIDITY))
    )

    deployment = deploy(symbol_a, symbol_b)
    seed(deployment, os.environ.get("SIMPLESWAP_DEPLOYER"), supply, liquidity)
    logger.info(
        "default_deployment_created",
        pool=deployment.pool.address,
        asset_a=deployment.asset_a.address,
        asset_b=deployment.asset_b.address,
        deployer=deployment.deployer,
    )
    return deployment


def get_default_deployment() -> Deployment:
    """Return the process-wide default deployment, creating it on first use."""
    global _default_deployment
    with _default_lock:
        if _default_deployment is None:
            _default_deployment = _create_default_deployment()
        return _default_deployment
