"""
Token graph construction for arbitrage path discovery.

Every pool contributes two directed edges, token0 -> token1 and
token1 -> token0, so the adjacency is symmetric by construction. Edge lists
keep pool input order, which fixes the order cycles are emitted in.
"""

from typing import Dict, Iterable, List, Optional

import networkx as nx

from .types import Pool, PoolEdge
from .utils import get_logger, timing_decorator

logger = get_logger(__name__)


@timing_decorator
def build_adjacency(pools: Iterable[Pool]) -> Dict[str, List[PoolEdge]]:
    """
    Build the token adjacency mapping from a collection of pools.

    Args:
        pools: Pools in the order they should be explored

    Returns:
        Mapping of token address to its outgoing edges, covering every token
        referenced by any pool. Self-referential pools yield two edges.
    """
    adjacency: Dict[str, List[PoolEdge]] = {}

    for pool in pools:
        adjacency.setdefault(pool.token0, []).append(
            PoolEdge(pool=pool.pool_address, to_token=pool.token1)
        )
        adjacency.setdefault(pool.token1, []).append(
            PoolEdge(pool=pool.pool_address, to_token=pool.token0)
        )

    return adjacency


class TokenGraph:
    """Read-only view over the pool cache and its adjacency mapping."""

    def __init__(self, pools: Iterable[Pool]):
        self.pools: Dict[str, Pool] = {}
        for pool in pools:
            self.pools[pool.pool_address] = pool

        self.adjacency = build_adjacency(self.pools.values())
        self._nx_graph: Optional[nx.MultiGraph] = None

        logger.info(
            f"Adjacency map constructed: {self.token_count} tokens, "
            f"{self.edge_count} directed edges from {len(self.pools)} pools"
        )

    @property
    def token_count(self) -> int:
        return len(self.adjacency)

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.adjacency.values())

    def edges_from(self, token: str) -> List[PoolEdge]:
        """Outgoing edges of ``token`` in stored order (empty if unknown)."""
        return self.adjacency.get(token, [])

    def degree(self, token: str) -> int:
        return len(self.edges_from(token))

    def get_pool(self, pool_address: str) -> Optional[Pool]:
        return self.pools.get(pool_address)

    def to_networkx(self) -> nx.MultiGraph:
        """Undirected multigraph with one edge per pool, keyed by pool address."""
        if self._nx_graph is None:
            graph = nx.MultiGraph()
            for pool in self.pools.values():
                graph.add_edge(pool.token0, pool.token1, key=pool.pool_address)
            self._nx_graph = graph
        return self._nx_graph

    def reachable_token_count(self, token: str) -> int:
        """
        Number of other tokens connected to ``token`` through any chain of pools.

        Tokens outside this component can never appear in a cycle through
        ``token``; a small component usually points at an ingestion gap.
        """
        graph = self.to_networkx()
        if token not in graph:
            return 0
        return len(nx.node_connected_component(graph, token)) - 1
