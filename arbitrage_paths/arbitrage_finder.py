"""
Arbitrage path discovery orchestration.

Ties the pieces of a discovery run together: load the pool and token caches
from the store, build the token graph, resolve and validate the anchor, then
stream cycles from the enumerator into the batch processor and drain it.
"""

import asyncio
import time
from typing import Dict, Optional

from .anchor import resolve_anchor, validate_anchor_connectivity
from .batch_processor import BatchProcessor
from .config_loader import DiscoveryConfig, RuntimeConfig
from .cycle_finder import CycleEnumerator
from .graph import TokenGraph
from .store import PathStore
from .swap_utils import make_arbitrage_path
from .types import DiscoveryStats, Token
from .utils import format_duration, get_logger

logger = get_logger(__name__)


class ArbitrageFinder:
    """Runs one anchored cycle search and persists every discovered path."""

    def __init__(self, store: PathStore, config: Optional[DiscoveryConfig] = None):
        self.store = store
        self.config = config or DiscoveryConfig()
        self.stats = DiscoveryStats()

        self.graph: Optional[TokenGraph] = None
        self.symbol_cache: Dict[str, str] = {}
        self.anchor: Optional[Token] = None

        self._cancel_event = asyncio.Event()
        self._deadline: Optional[float] = None

    def cancel(self) -> None:
        """Ask a running search to stop; paths found so far are still flushed."""
        self._cancel_event.set()

    def _should_stop(self) -> bool:
        if self._cancel_event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    async def load_caches(self) -> TokenGraph:
        """Load pools and tokens from the store and build the graph and symbol cache."""
        logger.info("Loading tokens and pools into memory...")

        pools = await self.store.load_pools()
        tokens = await self.store.load_tokens()

        self.symbol_cache = {token.address: token.symbol for token in tokens}
        self.graph = TokenGraph(pools)
        self.anchor = resolve_anchor(
            tokens, self.config.anchor_address, self.config.anchor_symbol
        )

        logger.info(f"Loaded {len(tokens)} tokens and {len(pools)} pools")
        return self.graph

    async def find_arbitrage_paths(self) -> int:
        """
        Discover and persist all cycles through the anchor.

        Returns:
            Number of paths committed to the store

        Raises:
            AnchorNotFoundError: If the anchor is not among the loaded tokens
            AnchorDisconnectedError: If the anchor has no pools
            StorageError: If a flush fails; earlier flushes stay committed
        """
        config = self.config
        started = time.perf_counter()
        self.stats = DiscoveryStats()
        self._cancel_event.clear()

        graph = await self.load_caches()
        anchor = self.anchor
        validate_anchor_connectivity(graph, anchor)
        self.stats.anchor = anchor.address

        logger.info(
            f"Finding arbitrage paths starting from {anchor.symbol or anchor.address} "
            f"(depth {config.min_depth}-{config.max_depth})..."
        )

        self._deadline = None
        if config.search_timeout_seconds is not None:
            self._deadline = time.monotonic() + config.search_timeout_seconds

        enumerator = CycleEnumerator(
            graph,
            anchor.address,
            config.min_depth,
            config.max_depth,
            allow_interior_anchor=config.allow_interior_anchor,
            should_stop=self._should_stop,
        )
        processor = BatchProcessor(
            self.store,
            graph.pools,
            batch_size=config.path_batch_size,
            flush_interval_ms=config.flush_interval_ms,
        )

        await processor.start()
        last_yield = time.monotonic()
        try:
            for tokens, pools in enumerator.iter_cycles():
                path = make_arbitrage_path(
                    tokens, pools, self.symbol_cache, config.swap_path_separator
                )
                await processor.add_path(path)
                self.stats.paths_found += 1

                if self.stats.paths_found % config.progress_log_interval == 0:
                    logger.info(
                        f"Progress: {self.stats.paths_found} paths found, "
                        f"{processor.paths_written} written"
                    )

                # The DFS never awaits; time-based ticks keep the flush
                # interval and let cancel() callers run
                now = time.monotonic()
                if now - last_yield >= processor.flush_interval:
                    last_yield = now
                    await processor.tick()

            await processor.finalize()
        except BaseException:
            await processor.close()
            raise
        finally:
            self.stats.paths_written = processor.paths_written
            self.stats.steps_written = processor.steps_written
            self.stats.flush_count = processor.flush_count
            self.stats.skipped_steps = processor.skipped_steps
            self.stats.frames_examined = enumerator.frames_examined
            self.stats.cancelled = enumerator.stopped_early
            self.stats.duration_seconds = time.perf_counter() - started

        if self.stats.cancelled:
            logger.warning(
                f"Search stopped before completion; {self.stats.paths_written} paths saved"
            )
        logger.info(
            f"Total arbitrage paths found: {self.stats.paths_found} "
            f"({self.stats.steps_written} steps) in {format_duration(self.stats.duration_seconds)}"
        )
        if self.stats.skipped_steps:
            logger.warning(
                f"{self.stats.skipped_steps} steps skipped due to missing pools"
            )
        return self.stats.paths_written


async def run_discovery(config: RuntimeConfig, store: PathStore) -> int:
    """Run a discovery with ``config.discovery`` against ``store``; returns paths written."""
    finder = ArbitrageFinder(store, config.discovery)
    return await finder.find_arbitrage_paths()
