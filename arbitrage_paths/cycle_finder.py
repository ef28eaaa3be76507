"""
Depth-bounded cycle enumeration over the token graph.

The search is a recursive, back-tracking depth-first walk from the anchor
token back to the anchor. Path state (token list, pool list, used-pool set)
is mutated in place with strict push/pop discipline, and every emitted cycle
is a fresh copy, so no branch can observe another branch's state.

The enumerator is a plain generator: it never awaits, which keeps the DFS
stack synchronous between the consumer's suspension points.
"""

from typing import Callable, Iterator, List, Optional, Set, Tuple

from .exceptions import ValidationError
from .graph import TokenGraph
from .utils import get_logger

logger = get_logger(__name__)

Cycle = Tuple[List[str], List[str]]


class CycleEnumerator:
    """
    Enumerates pool-simple cycles through an anchor token.

    Args:
        graph: Token graph to search
        anchor: Anchor token address (as stored in the adjacency mapping)
        min_depth: Minimum cycle length in steps (inclusive)
        max_depth: Maximum cycle length in steps (inclusive)
        allow_interior_anchor: If True, a walk that returns to the anchor
            before ``min_depth`` keeps going through it; otherwise that
            branch is pruned and the anchor only appears at both ends
        should_stop: Optional callable polled on every frame; once it returns
            True the enumeration ends early
    """

    def __init__(
        self,
        graph: TokenGraph,
        anchor: str,
        min_depth: int,
        max_depth: int,
        allow_interior_anchor: bool = False,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        if min_depth < 1:
            raise ValidationError(f"min_depth must be >= 1, got {min_depth}")
        if max_depth < min_depth:
            raise ValidationError(
                f"max_depth ({max_depth}) must be >= min_depth ({min_depth})"
            )

        self.graph = graph
        self.anchor = anchor
        self.min_depth = min_depth
        self.max_depth = max_depth
        self.allow_interior_anchor = allow_interior_anchor
        self.should_stop = should_stop

        self.frames_examined = 0
        self.stopped_early = False

    def iter_cycles(self) -> Iterator[Cycle]:
        """
        Yield ``(tokens, pools)`` for every qualifying cycle in DFS pre-order.

        ``tokens`` has ``len(pools) + 1`` entries and starts and ends at the
        anchor; ``pools`` never repeats a pool address.
        """
        self.frames_examined = 0
        self.stopped_early = False

        path_tokens = [self.anchor]
        path_pools: List[str] = []
        used_pools: Set[str] = set()

        yield from self._dfs(self.anchor, path_tokens, path_pools, used_pools)

        if self.stopped_early:
            logger.warning(
                f"Cycle enumeration stopped early after {self.frames_examined} frames"
            )

    def _dfs(
        self,
        current: str,
        path_tokens: List[str],
        path_pools: List[str],
        used_pools: Set[str],
    ) -> Iterator[Cycle]:
        if self.stopped_early:
            return
        if self.should_stop is not None and self.should_stop():
            self.stopped_early = True
            return

        self.frames_examined += 1

        # Pruning bound: a path with max_depth steps is never extended
        if len(path_pools) >= self.max_depth:
            return

        new_length = len(path_pools) + 1

        for edge in self.graph.edges_from(current):
            if edge.pool in used_pools:
                continue

            if edge.to_token == self.anchor:
                if new_length >= self.min_depth:
                    yield (path_tokens + [edge.to_token], path_pools + [edge.pool])
                    continue
                if not self.allow_interior_anchor:
                    continue

            if new_length >= self.max_depth:
                continue

            path_tokens.append(edge.to_token)
            path_pools.append(edge.pool)
            used_pools.add(edge.pool)
            try:
                yield from self._dfs(edge.to_token, path_tokens, path_pools, used_pools)
            finally:
                used_pools.discard(edge.pool)
                path_pools.pop()
                path_tokens.pop()

            if self.stopped_early:
                return
