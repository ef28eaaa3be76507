"""
Utility functions for swap operations on discovered paths.

Covers swap direction relative to a pool's token ordering, the human
readable swap-path string, and expansion of a path into its step rows.
"""

from typing import Dict, List, Mapping, Sequence

from .exceptions import MissingPoolError, MissingSymbolError
from .types import ArbitragePath, ArbitrageStep, Pool
from .utils import get_logger

logger = get_logger(__name__)

DEFAULT_SEPARATOR = "-"


def is_forward_swap(from_token: str, pool: Pool) -> bool:
    """Determine if swap is in forward direction (token0 -> token1)."""
    return from_token == pool.token0


def other_token(token: str, pool: Pool) -> str:
    """Get the other token in a pool."""
    return pool.token1 if token == pool.token0 else pool.token0


def can_swap(token_a: str, token_b: str, pool: Pool) -> bool:
    """Check whether ``pool`` connects ``token_a`` and ``token_b`` in either order."""
    return (token_a == pool.token0 and token_b == pool.token1) or (
        token_a == pool.token1 and token_b == pool.token0
    )


def lookup_symbol(address: str, symbol_cache: Mapping[str, str]) -> str:
    """
    Return the cached symbol for ``address``.

    Raises:
        MissingSymbolError: If the address is not cached or has an empty symbol
    """
    symbol = symbol_cache.get(address)
    if not symbol:
        raise MissingSymbolError(f"Symbol not found for token: {address}", address=address)
    return symbol


def build_swap_path(
    tokens: Sequence[str],
    symbol_cache: Mapping[str, str],
    separator: str = DEFAULT_SEPARATOR,
) -> str:
    """
    Join the symbols of ``tokens`` into a swap-path string such as
    "WETH-USDC-DAI-WETH". Unknown tokens fall back to their raw address.
    """
    symbols = []
    for address in tokens:
        try:
            symbols.append(lookup_symbol(address, symbol_cache))
        except MissingSymbolError as e:
            logger.warning(str(e))
            symbols.append(address)
    return separator.join(symbols)


def make_arbitrage_path(
    tokens: Sequence[str],
    pools: Sequence[str],
    symbol_cache: Mapping[str, str],
    separator: str = DEFAULT_SEPARATOR,
) -> ArbitragePath:
    """Wrap an enumerated ``(tokens, pools)`` pair into an ArbitragePath."""
    return ArbitragePath(
        tokens=list(tokens),
        pools=list(pools),
        length=len(tokens) - 1,
        swap_path=build_swap_path(tokens, symbol_cache, separator),
    )


def resolve_step(
    path_id: int,
    step_index: int,
    pool_address: str,
    from_token: str,
    to_token: str,
    pool_cache: Mapping[str, Pool],
) -> ArbitrageStep:
    """
    Build one step row, taking its direction from the cached pool.

    Raises:
        MissingPoolError: If ``pool_address`` is not in the pool cache
    """
    pool = pool_cache.get(pool_address)
    if pool is None:
        raise MissingPoolError(
            f"Pool {pool_address} missing from pool cache",
            pool_address=pool_address,
            details={"path_id": path_id, "step_index": step_index},
        )
    return ArbitrageStep(
        path_id=path_id,
        step_index=step_index,
        pool_address=pool_address,
        from_token=from_token,
        to_token=to_token,
        is_forward=is_forward_swap(from_token, pool),
    )


def generate_steps(
    path: ArbitragePath, path_id: int, pool_cache: Dict[str, Pool]
) -> List[ArbitrageStep]:
    """
    Expand a path into its ordered step rows (step index 0..length-1).

    Steps whose pool is missing from the cache are skipped and logged; this
    means the graph and the cache disagree, which should never happen.
    """
    steps: List[ArbitrageStep] = []

    for i in range(path.length):
        try:
            steps.append(
                resolve_step(
                    path_id,
                    i,
                    path.pools[i],
                    path.tokens[i],
                    path.tokens[i + 1],
                    pool_cache,
                )
            )
        except MissingPoolError as e:
            logger.error(f"Skipping step {i} of path {path_id}: {e} (cache inconsistency)")

    return steps
