"""Protocol constants for the SimpleSwap exchange.

Centralizes the null address and numeric bounds shared by the ledger and pool.
"""

# The null identifier: never a valid asset, recipient or account
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Maximum uint256 value. Amounts and reserves must stay within this bound
UINT256_MAX = 2**256 - 1

# Spot prices are expressed as integers scaled by 1e18 (ether units)
PRICE_SCALE = 10**18
