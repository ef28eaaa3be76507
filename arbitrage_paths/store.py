"""
SQLite-backed store for pools, tokens and discovered arbitrage paths.

A PathStore wraps a single aiosqlite connection and is passed explicitly to
every component that needs it. SQLite does not allow interleaved
transactions on one connection, so callers must serialize their use of
``transaction()``; the batch processor does this with its flush guard.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

import aiosqlite

from .exceptions import StorageError
from .types import ArbitrageStep, Pool, Token
from .utils import ensure_path_exists, get_logger

logger = get_logger(__name__)

DEFAULT_DATABASE_PATH = "dex_pools.db"
MEMORY_DATABASE = ":memory:"


class PathStore:
    """Async store handle with schema management, transactions and queries."""

    def __init__(self, db_path: str = DEFAULT_DATABASE_PATH):
        self.db_path = str(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    async def __aenter__(self) -> "PathStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StorageError(
                "Database not connected. Call connect() first.", operation="connect"
            )
        return self._conn

    async def connect(self) -> "PathStore":
        """Open the connection (idempotent) and make sure the schema exists."""
        if self._conn is not None:
            return self

        if self.db_path != MEMORY_DATABASE:
            ensure_path_exists(self.db_path, is_file=True)

        try:
            # Autocommit mode: transactions are opened explicitly with BEGIN
            conn = await aiosqlite.connect(self.db_path, isolation_level=None)
            conn.row_factory = aiosqlite.Row

            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA synchronous=NORMAL")
            await conn.execute("PRAGMA cache_size=10000")
            await conn.execute("PRAGMA temp_store=MEMORY")
            await conn.execute("PRAGMA foreign_keys=ON")
        except aiosqlite.Error as e:
            raise StorageError(
                f"Failed to open database {self.db_path}: {e}", operation="connect"
            ) from e

        self._conn = conn
        await self.initialize_schema()
        logger.info(f"Database connected: {self.db_path}")
        return self

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("Database connection closed.")

    async def initialize_schema(self) -> None:
        """Create all required tables and indexes."""
        conn = self.connection
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tbl_dex_pool (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                dex_type TEXT NOT NULL,
                pool_address TEXT NOT NULL,
                fee_tier TEXT,
                token0 TEXT NOT NULL,
                token1 TEXT NOT NULL,
                UNIQUE(pool_address)
            )
        """
        )
        await conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_pool_tokens ON tbl_dex_pool(token0, token1)
        """
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tbl_dex_token (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                address TEXT UNIQUE NOT NULL,
                name TEXT,
                symbol TEXT,
                decimals TEXT
            )
        """
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tbl_dex_arbitrage_path (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                length INTEGER NOT NULL,
                swap_path TEXT NOT NULL,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tbl_dex_arbitrage_step (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                path_id INTEGER NOT NULL,
                step_index INTEGER NOT NULL,
                pool_address TEXT NOT NULL,
                from_token TEXT NOT NULL,
                to_token TEXT NOT NULL,
                is_forward BOOLEAN NOT NULL,
                UNIQUE(path_id, step_index),
                FOREIGN KEY (path_id) REFERENCES tbl_dex_arbitrage_path(id)
            )
        """
        )
        await conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_step_path_id ON tbl_dex_arbitrage_step(path_id)
        """
        )

    @asynccontextmanager
    async def transaction(self, operation: str = "transaction"):
        """
        Run the enclosed block as one atomic transaction.

        Commits on success. On any failure the transaction is rolled back;
        database errors are re-raised as StorageError, anything else as is.
        """
        conn = self.connection
        if conn.in_transaction:
            raise StorageError(
                f"Cannot start {operation}: a transaction is already open",
                operation=operation,
            )

        try:
            await conn.execute("BEGIN TRANSACTION")
        except aiosqlite.Error as e:
            raise StorageError(f"{operation} failed to begin: {e}", operation=operation) from e

        try:
            yield self
            await conn.commit()
        except BaseException as e:
            try:
                await conn.rollback()
            except aiosqlite.Error as rollback_error:
                logger.error(f"Rollback of {operation} failed: {rollback_error}")
            if isinstance(e, aiosqlite.Error):
                raise StorageError(f"{operation} failed: {e}", operation=operation) from e
            raise

    # Writes -------------------------------------------------------------

    async def insert_path(self, length: int, swap_path: str) -> int:
        """Insert a path row and return its store-assigned id."""
        cursor = await self.connection.execute(
            "INSERT INTO tbl_dex_arbitrage_path (length, swap_path) VALUES (?, ?)",
            (length, swap_path),
        )
        try:
            return cursor.lastrowid
        finally:
            await cursor.close()

    async def insert_steps(self, steps: Sequence[ArbitrageStep]) -> int:
        """Insert step rows with one prepared statement; returns the row count."""
        if not steps:
            return 0
        await self.connection.executemany(
            """
            INSERT INTO tbl_dex_arbitrage_step
            (path_id, step_index, pool_address, from_token, to_token, is_forward)
            VALUES (?, ?, ?, ?, ?, ?)
        """,
            [step.as_row() for step in steps],
        )
        return len(steps)

    async def insert_token(self, token: Token) -> None:
        """Insert a token, ignoring duplicates."""
        await self.connection.execute(
            "INSERT OR IGNORE INTO tbl_dex_token (address, name, symbol, decimals) "
            "VALUES (?, ?, ?, ?)",
            (token.address, token.name, token.symbol, token.decimals),
        )

    async def insert_pool(self, pool: Pool) -> None:
        """Insert a pool, ignoring duplicates."""
        await self.connection.execute(
            "INSERT OR IGNORE INTO tbl_dex_pool "
            "(dex_type, pool_address, fee_tier, token0, token1) VALUES (?, ?, ?, ?, ?)",
            (pool.dex_type, pool.pool_address, pool.fee_tier, pool.token0, pool.token1),
        )

    # Reads --------------------------------------------------------------

    async def load_pools(self) -> List[Pool]:
        """All pools in insertion order."""
        async with self.connection.execute(
            "SELECT dex_type, pool_address, fee_tier, token0, token1 "
            "FROM tbl_dex_pool ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [Pool.from_row(row) for row in rows]

    async def load_tokens(self) -> List[Token]:
        """All tokens in insertion order."""
        async with self.connection.execute(
            "SELECT address, name, symbol, decimals FROM tbl_dex_token ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [Token.from_row(row) for row in rows]

    async def count_paths(self) -> int:
        async with self.connection.execute(
            "SELECT COUNT(*) FROM tbl_dex_arbitrage_path"
        ) as cursor:
            row = await cursor.fetchone()
        return row[0]

    async def count_steps(self) -> int:
        async with self.connection.execute(
            "SELECT COUNT(*) FROM tbl_dex_arbitrage_step"
        ) as cursor:
            row = await cursor.fetchone()
        return row[0]

    async def fetch_paths(self) -> List[Dict[str, Any]]:
        """Path rows ordered by id."""
        async with self.connection.execute(
            "SELECT id, length, swap_path FROM tbl_dex_arbitrage_path ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def fetch_steps(self, path_id: int) -> List[ArbitrageStep]:
        """Step rows of one path ordered by step index."""
        async with self.connection.execute(
            "SELECT path_id, step_index, pool_address, from_token, to_token, is_forward "
            "FROM tbl_dex_arbitrage_step WHERE path_id = ? ORDER BY step_index",
            (path_id,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [ArbitrageStep.from_row(row) for row in rows]
