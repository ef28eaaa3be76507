"""
Arbitrage Path Discovery.

Enumerates cyclic token-swap routes through an anchor token across a graph
of DEX liquidity pools and persists every route, with its swap steps, to
SQLite in transactional batches.
"""

from arbitrage_paths.version import __version__

PROJECT_NAME = "arbitrage-paths"
VERSION = __version__

from arbitrage_paths.arbitrage_finder import ArbitrageFinder, run_discovery
from arbitrage_paths.batch_processor import BatchProcessor, BatchState
from arbitrage_paths.config_loader import RuntimeConfig, load_config
from arbitrage_paths.cycle_finder import CycleEnumerator
from arbitrage_paths.data_loader import DataLoader
from arbitrage_paths.graph import TokenGraph, build_adjacency
from arbitrage_paths.store import PathStore
from arbitrage_paths.types import (
    ArbitragePath,
    ArbitrageStep,
    DiscoveryStats,
    Pool,
    PoolEdge,
    Token,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "ArbitrageFinder",
    "run_discovery",
    "BatchProcessor",
    "BatchState",
    "RuntimeConfig",
    "load_config",
    "CycleEnumerator",
    "DataLoader",
    "TokenGraph",
    "build_adjacency",
    "PathStore",
    "ArbitragePath",
    "ArbitrageStep",
    "DiscoveryStats",
    "Pool",
    "PoolEdge",
    "Token",
]
