"""Pool configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PoolConfig:
    """Creation-time options for an exchange pool.

    Attributes:
        allow_identical_assets: If False (default), creating a pool whose two
            assets are the same address fails with IdenticalAssets. If True,
            such a degenerate single-asset pool is accepted.
    """

    allow_identical_assets: bool = False


# Default configuration instance
DEFAULT_POOL_CONFIG = PoolConfig()
