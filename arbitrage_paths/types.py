"""
Core data types for arbitrage path discovery.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from .utils import normalize_address


@dataclass(frozen=True)
class Token:
    """
    Represents an ingested ERC-20 token.

    Attributes:
        address: Lower-cased token address (primary key)
        symbol: Display symbol (e.g., "WETH")
        name: Human readable name
        decimals: Decimal precision, kept as stored by the ingester
    """

    address: str
    symbol: str = ""
    name: str = ""
    decimals: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Token":
        keys = row.keys()
        return cls(
            address=normalize_address(row["address"]),
            symbol=row["symbol"] or "",
            name=(row["name"] if "name" in keys else "") or "",
            decimals=row["decimals"] if "decimals" in keys else None,
        )


@dataclass(frozen=True)
class Pool:
    """
    Represents a liquidity pool, the undirected edge source of the token graph.

    Attributes:
        pool_address: Lower-cased pool contract address (unique)
        dex_type: DEX tag taken from the source file (e.g., "uniswapV2")
        token0: Lower-cased address of token0
        token1: Lower-cased address of token1
        fee_tier: Fee tier as stored (e.g., "3000"), optional
    """

    pool_address: str
    dex_type: str
    token0: str
    token1: str
    fee_tier: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Pool":
        return cls(
            pool_address=normalize_address(row["pool_address"]),
            dex_type=row["dex_type"],
            token0=normalize_address(row["token0"]),
            token1=normalize_address(row["token1"]),
            fee_tier=row["fee_tier"],
        )


@dataclass(frozen=True)
class PoolEdge:
    """One directed traversal of a pool: from the owning token to ``to_token``."""

    pool: str
    to_token: str


@dataclass
class ArbitragePath:
    """
    A discovered cycle, buffered until its flush commits.

    Attributes:
        tokens: Token addresses visited, anchor at both ends (length + 1 items)
        pools: Pool addresses traversed, one per step
        length: Number of steps
        swap_path: Symbols joined by the separator (e.g., "WETH-USDC-DAI-WETH")
    """

    tokens: List[str]
    pools: List[str]
    length: int
    swap_path: str


@dataclass(frozen=True)
class ArbitrageStep:
    """
    One directed pool traversal within a persisted path.

    Attributes:
        path_id: Store-assigned id of the owning path
        step_index: Zero-based position within the path
        pool_address: Pool used for this step
        from_token: Token swapped in
        to_token: Token swapped out
        is_forward: True if the swap follows the pool's token0 -> token1 order
    """

    path_id: int
    step_index: int
    pool_address: str
    from_token: str
    to_token: str
    is_forward: bool

    def as_row(self) -> Tuple[int, int, str, str, str, int]:
        return (
            self.path_id,
            self.step_index,
            self.pool_address,
            self.from_token,
            self.to_token,
            1 if self.is_forward else 0,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ArbitrageStep":
        return cls(
            path_id=row["path_id"],
            step_index=row["step_index"],
            pool_address=row["pool_address"],
            from_token=row["from_token"],
            to_token=row["to_token"],
            is_forward=bool(row["is_forward"]),
        )


@dataclass
class DiscoveryStats:
    """Counters reported at the end of a discovery run."""

    paths_found: int = 0
    paths_written: int = 0
    steps_written: int = 0
    flush_count: int = 0
    skipped_steps: int = 0
    frames_examined: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0
    anchor: Optional[str] = None
