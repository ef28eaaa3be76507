"""
Anchor token resolution.

The anchor is the token every cycle starts and ends at. It is looked up by
address first and by symbol second, then checked for pool connectivity
before any search begins.
"""

from typing import Iterable

from .exceptions import AnchorDisconnectedError, AnchorNotFoundError
from .graph import TokenGraph
from .types import Token
from .utils import get_logger, normalize_address

logger = get_logger(__name__)

DEFAULT_ANCHOR_SYMBOL = "WETH"


def resolve_anchor(
    tokens: Iterable[Token],
    anchor_address: str,
    anchor_symbol: str = DEFAULT_ANCHOR_SYMBOL,
) -> Token:
    """
    Find the anchor token in the token set.

    Args:
        tokens: Ingested tokens
        anchor_address: Configured anchor address (any case)
        anchor_symbol: Symbol used when the address is not present

    Returns:
        The matching token record

    Raises:
        AnchorNotFoundError: If neither the address nor the symbol matches
    """
    tokens = list(tokens)
    wanted_address = normalize_address(anchor_address)
    logger.info(f"Looking for anchor token at address: {wanted_address}")

    for token in tokens:
        if normalize_address(token.address) == wanted_address:
            return token

    logger.warning(f"Anchor not found at expected address: {wanted_address}")
    wanted_symbol = (anchor_symbol or "").lower()
    logger.info(f"Trying to find anchor by symbol {anchor_symbol!r}...")

    if wanted_symbol:
        for token in tokens:
            if token.symbol and token.symbol.lower() == wanted_symbol:
                logger.info(f"Found anchor by symbol: {token.symbol} at {token.address}")
                return token

    raise AnchorNotFoundError(
        f"Anchor token not found (address={wanted_address}, symbol={anchor_symbol}) "
        "- ensure token data is loaded",
        address=wanted_address,
        symbol=anchor_symbol,
    )


def validate_anchor_connectivity(graph: TokenGraph, anchor: Token) -> int:
    """
    Ensure the anchor has at least one pool edge.

    Returns:
        Number of directed edges leaving the anchor

    Raises:
        AnchorDisconnectedError: If the anchor has no pool connections
    """
    connections = graph.degree(anchor.address)
    if connections == 0:
        raise AnchorDisconnectedError(
            f"Anchor token {anchor.symbol or anchor.address} has no liquidity pools "
            "- cannot find arbitrage paths",
            address=anchor.address,
        )

    logger.info(f"Found anchor token: {anchor.symbol} at {anchor.address}")
    logger.info(
        f"Anchor has {connections} pool connections, "
        f"{graph.reachable_token_count(anchor.address)} reachable tokens"
    )
    return connections
