"""Pytest configuration and fixtures."""

import pytest

from simpleswap.deployment import Deployment
from simpleswap.ledger import Asset, Ledger
from simpleswap.pool import ExchangePool
from tests.helpers import INITIAL_LIQUIDITY, make_funded_deployment


@pytest.fixture
def funded() -> tuple[Deployment, list[str]]:
    """A fresh deployment with two funded, pool-approved accounts."""
    return make_funded_deployment(accounts=2)


@pytest.fixture
def deployment(funded: tuple[Deployment, list[str]]) -> Deployment:
    return funded[0]


@pytest.fixture
def owner(funded: tuple[Deployment, list[str]]) -> str:
    return funded[1][0]


@pytest.fixture
def addr1(funded: tuple[Deployment, list[str]]) -> str:
    return funded[1][1]


@pytest.fixture
def ledger(deployment: Deployment) -> Ledger:
    return deployment.ledger


@pytest.fixture
def asset_a(deployment: Deployment) -> Asset:
    return deployment.asset_a


@pytest.fixture
def asset_b(deployment: Deployment) -> Asset:
    return deployment.asset_b


@pytest.fixture
def pool(deployment: Deployment) -> ExchangePool:
    """An empty pool between two funded accounts' assets."""
    return deployment.pool


@pytest.fixture
def seeded_pool(pool: ExchangePool, owner: str) -> ExchangePool:
    """The pool after ``owner`` added INITIAL_LIQUIDITY of each asset."""
    pool.add_liquidity(owner, INITIAL_LIQUIDITY, INITIAL_LIQUIDITY)
    return pool
