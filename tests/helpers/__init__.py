"""Test helpers module for shared test utilities.

- constants: amounts and addresses used across tests
- factories: funded deployment builders
"""

from tests.helpers.constants import (
    INITIAL_LIQUIDITY,
    INITIAL_SUPPLY,
    MAX_APPROVAL,
    UNKNOWN_ADDRESS,
    ZERO_ADDRESS,
    ether,
)
from tests.helpers.factories import fund_account, make_funded_deployment

__all__ = [
    # Constants
    "ether",
    "INITIAL_SUPPLY",
    "INITIAL_LIQUIDITY",
    "MAX_APPROVAL",
    "UNKNOWN_ADDRESS",
    "ZERO_ADDRESS",
    # Factories
    "fund_account",
    "make_funded_deployment",
]
