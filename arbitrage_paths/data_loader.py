"""
Loads DEX pool exports into the store.

Each export is a JSON file named ``<dexType>-<n>.json`` holding either
``data.pairs`` (V2 style) or, for ``uniswapV3``, ``data.pools``. Every pair
contributes its two tokens and the pool itself; duplicates are ignored so
files can be re-loaded safely.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from .exceptions import DataError
from .store import PathStore
from .types import Pool, Token
from .utils import get_logger, normalize_address

logger = get_logger(__name__)

UNISWAP_V3 = "uniswapV3"
DEFAULT_FEE_TIER = "3000"


def extract_dex_type(file_name: str) -> str:
    """Extract the DEX type from a file name ("uniswapV3-10.json" -> "uniswapV3")."""
    return Path(file_name).name.split("-")[0]


def parse_token(raw: Mapping[str, Any]) -> Token:
    decimals = raw.get("decimals")
    return Token(
        address=normalize_address(raw["id"]),
        symbol=raw.get("symbol") or "",
        name=raw.get("name") or "",
        decimals=str(decimals) if decimals is not None else None,
    )


def parse_pool(raw: Mapping[str, Any], dex_type: str) -> Pool:
    fee_tier = raw.get("feeTier") if dex_type == UNISWAP_V3 else DEFAULT_FEE_TIER
    return Pool(
        pool_address=normalize_address(raw["id"]),
        dex_type=dex_type,
        token0=normalize_address(raw["token0"]["id"]),
        token1=normalize_address(raw["token1"]["id"]),
        fee_tier=str(fee_tier) if fee_tier is not None else None,
    )


class DataLoader:
    """Reads every JSON export in a folder and inserts its tokens and pools."""

    def __init__(self, store: PathStore, json_folder: Union[str, Path]):
        self.store = store
        self.json_folder = Path(json_folder)
        self.files_loaded = 0
        self.pairs_loaded = 0

    def list_files(self) -> List[Path]:
        if not self.json_folder.is_dir():
            raise DataError(
                f"JSON folder not found: {self.json_folder}", source=str(self.json_folder)
            )
        return sorted(p for p in self.json_folder.iterdir() if p.suffix == ".json")

    async def load_all_pool_data(self) -> int:
        """
        Load all DEX pool data from the JSON folder.

        Returns:
            Number of pairs processed across all files

        Raises:
            DataError: If the folder is missing or a file is not valid pool data
            StorageError: If inserting a file's rows fails
        """
        files = self.list_files()
        logger.info(f"Found {len(files)} JSON files to process in {self.json_folder}")

        total = 0
        for file_path in files:
            total += await self.load_file(file_path)

        logger.info(f"All pool data loaded: {total} pairs from {len(files)} files")
        return total

    async def load_file(self, file_path: Union[str, Path]) -> int:
        """Load one export file in a single transaction; returns pairs processed."""
        file_path = Path(file_path)
        dex_type = extract_dex_type(file_path.name)
        logger.info(f"Processing file: {file_path.name} ({dex_type})")

        pairs = self._read_pairs(file_path, dex_type)
        if not pairs:
            logger.warning(f"No pairs/pools found in {file_path.name}")
            return 0

        try:
            parsed = [
                (parse_token(pair["token0"]), parse_token(pair["token1"]), parse_pool(pair, dex_type))
                for pair in pairs
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise DataError(
                f"Malformed pair in {file_path.name}: {e}", source=str(file_path)
            ) from e

        async with self.store.transaction(operation="load_data"):
            for token0, token1, pool in parsed:
                await self.store.insert_token(token0)
                await self.store.insert_token(token1)
                await self.store.insert_pool(pool)

        self.files_loaded += 1
        self.pairs_loaded += len(parsed)
        logger.info(f"Processed {len(parsed)} pairs from {file_path.name}")
        return len(parsed)

    def _read_pairs(self, file_path: Path, dex_type: str) -> List[Dict[str, Any]]:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise DataError(f"Invalid JSON in {file_path.name}: {e}", source=str(file_path)) from e
        except OSError as e:
            raise DataError(f"Failed to read {file_path}: {e}", source=str(file_path)) from e

        data = document.get("data") if isinstance(document, dict) else None
        if not isinstance(data, dict):
            return []
        key = "pools" if dex_type == UNISWAP_V3 else "pairs"
        return data.get(key) or []
