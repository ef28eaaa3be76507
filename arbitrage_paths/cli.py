"""
Command line interface for arbitrage path discovery.

Commands:
    load-data        Load DEX pool data from JSON files into the database
    find-paths       Find arbitrage paths (requires data to be loaded first)
    full-pipeline    Run load-data then find-paths
    validate-config  Validate a YAML configuration file and exit
"""

import argparse
import asyncio
import dataclasses
import sys
from typing import List, Optional

from dotenv import load_dotenv

from . import logging_config
from .arbitrage_finder import run_discovery
from .config_loader import RuntimeConfig, load_config
from .data_loader import DataLoader
from .exceptions import ArbitragePathError, ConfigurationError
from .store import PathStore
from .utils import get_logger

logger = get_logger(__name__)

COMMANDS = ("load-data", "find-paths", "full-pipeline", "validate-config")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arbitrage-paths",
        description="Discover cyclic arbitrage paths across DEX liquidity pools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  arbitrage-paths load-data --json-folder ./data
  arbitrage-paths find-paths --config configs/discovery.yaml
  arbitrage-paths full-pipeline --db dex_pools.db --log-level DEBUG
        """,
    )
    parser.add_argument("command", choices=COMMANDS, help="Operation to run")
    parser.add_argument("--config", help="Path to YAML configuration file")
    parser.add_argument("--db", help="SQLite database path (overrides config)")
    parser.add_argument(
        "--json-folder", help="Folder with DEX JSON exports (overrides config)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides config)",
    )
    return parser


def apply_cli_overrides(config: RuntimeConfig, args: argparse.Namespace) -> RuntimeConfig:
    """Return ``config`` with any command line overrides applied."""
    if args.db:
        config = dataclasses.replace(
            config, database=dataclasses.replace(config.database, path=args.db)
        )
    if args.json_folder:
        config = dataclasses.replace(
            config, data=dataclasses.replace(config.data, json_folder=args.json_folder)
        )
    if args.log_level:
        config = dataclasses.replace(
            config, logging=dataclasses.replace(config.logging, level=args.log_level)
        )
    return config


async def load_data(config: RuntimeConfig, store: PathStore) -> int:
    if not config.data.json_folder:
        raise ConfigurationError(
            "No JSON folder configured; set data.json_folder, ARB_JSON_FOLDER or --json-folder"
        )
    loader = DataLoader(store, config.data.json_folder)
    return await loader.load_all_pool_data()


async def run_command(command: str, config: RuntimeConfig) -> int:
    """Run one command against the configured database; returns the exit code."""
    async with PathStore(config.database.path) as store:
        if command in ("load-data", "full-pipeline"):
            pairs = await load_data(config, store)
            logger.info(f"Loaded {pairs} pairs into {config.database.path}")

        if command in ("find-paths", "full-pipeline"):
            paths = await run_discovery(config, store)
            logger.info(f"Operation completed. Found {paths} arbitrage paths.")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()

    try:
        config = apply_cli_overrides(load_config(args.config), args)
    except ArbitragePathError as e:
        logging_config.setup()
        logger.error(f"Failed to load configuration: {e}")
        return 1

    logging_config.setup_from_name(config.logging.level)

    if args.command == "validate-config":
        logger.info(f"Configuration '{config.name}' is valid")
        return 0

    try:
        return asyncio.run(run_command(args.command, config))
    except ArbitragePathError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
