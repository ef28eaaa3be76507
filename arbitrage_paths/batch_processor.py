"""
Batch processing of discovered arbitrage paths.

Discovered paths are appended to an in-memory buffer and written to the
store in transactional batches. A flush is triggered when the buffer reaches
the batch size, when the flush interval elapses (by a periodic background task
or an in-band tick() from the producer), and once more when the run
finishes. Only one flush runs at a time: the store cannot interleave
transactions, so a trigger that finds a flush in flight does nothing and
leaves the backlog to the next flush.

Lifecycle:
    start()    -> Accumulating, periodic task running
    add_path() -> may flush when the buffer is full
    tick()     -> may flush when the interval has elapsed, then yields
    finalize() -> Draining: wait for the in-flight flush, stop the timer,
                  write everything left, Closed
    close()    -> stop the timer without writing (failure path)
"""

import asyncio
import time
from enum import Enum
from typing import Dict, List, Optional

from .exceptions import StorageError, ValidationError
from .store import PathStore
from .swap_utils import generate_steps
from .types import ArbitragePath, ArbitrageStep, Pool
from .utils import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 1000
DEFAULT_FLUSH_INTERVAL_MS = 1000
LOGGED_PATHS = 5


class BatchState(Enum):
    """Lifecycle of a BatchProcessor within one discovery run."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"
    DRAINING = "draining"
    CLOSED = "closed"


class BatchProcessor:
    """Buffers arbitrage paths and persists them with their steps in batches."""

    def __init__(
        self,
        store: PathStore,
        pool_cache: Dict[str, Pool],
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS,
    ):
        if batch_size <= 0:
            raise ValidationError(f"batch_size must be > 0, got {batch_size}")
        if flush_interval_ms <= 0:
            raise ValidationError(
                f"flush_interval_ms must be > 0, got {flush_interval_ms}"
            )

        self.store = store
        self.pool_cache = pool_cache
        self.batch_size = batch_size
        self.flush_interval = flush_interval_ms / 1000.0

        self.state = BatchState.IDLE
        self._buffer: List[ArbitragePath] = []
        self._flush_lock = asyncio.Lock()
        self._flush_task: Optional[asyncio.Task] = None
        self._failure: Optional[BaseException] = None
        self._last_flush_at = time.monotonic()

        self.paths_added = 0
        self.paths_written = 0
        self.steps_written = 0
        self.skipped_steps = 0
        self.flush_count = 0

    @property
    def pending(self) -> int:
        """Number of buffered paths not yet committed."""
        return len(self._buffer)

    @property
    def is_flushing(self) -> bool:
        return self._flush_lock.locked()

    async def start(self) -> None:
        """Reset the buffer and start the periodic flush task."""
        if self._flush_task is not None:
            raise StorageError("Batch processor already started", operation="start")

        self._buffer = []
        self._failure = None
        self._last_flush_at = time.monotonic()
        self.state = BatchState.ACCUMULATING
        self._flush_task = asyncio.create_task(self._background_flush())
        logger.info(
            f"Batch processor initialized (batch_size={self.batch_size}, "
            f"flush_interval={self.flush_interval:.3f}s)"
        )

    async def add_path(self, path: ArbitragePath) -> None:
        """Buffer a path, flushing when the buffer is full and no flush is running."""
        self._raise_if_failed()
        if self.state in (BatchState.DRAINING, BatchState.CLOSED):
            raise StorageError(
                f"Cannot add paths while {self.state.value}", operation="add_path"
            )

        self._buffer.append(path)
        self.paths_added += 1

        if self.paths_added <= LOGGED_PATHS:
            logger.info(f"Arbitrage path {self.paths_added}: {path.swap_path}")

        if len(self._buffer) >= self.batch_size:
            if self.is_flushing:
                logger.debug("Batch flush already in progress, skipping...")
                return
            logger.info(f"Batch full ({len(self._buffer)} paths), processing...")
            await self.flush()

    @property
    def flush_due(self) -> bool:
        """True if paths are buffered and a flush interval has passed since the last flush."""
        if not self._buffer:
            return False
        return time.monotonic() - self._last_flush_at >= self.flush_interval

    async def tick(self) -> int:
        """
        Flush if the interval has elapsed, then yield to the event loop.

        Producers that run without awaiting the store call this between
        emissions, so buffered paths respect the flush interval even when the
        periodic task gets no chance to wake up.
        """
        self._raise_if_failed()
        written = 0
        if self.flush_due and not self.is_flushing:
            logger.debug("Flush interval elapsed, processing...")
            written = await self.flush()
        await asyncio.sleep(0)
        return written

    async def flush(self) -> int:
        """
        Write the current buffer in one transaction.

        Returns the number of paths written; 0 if the buffer was empty or a
        flush was already in flight.
        """
        if self.is_flushing:
            logger.debug("Batch flush already in progress, skipping...")
            return 0
        async with self._flush_lock:
            return await self._flush_locked()

    async def finalize(self) -> int:
        """
        Drain the buffer after the search has finished.

        Waits for an in-flight flush, cancels the periodic task, then writes
        everything left regardless of the batch size.
        """
        self._raise_if_failed()

        async with self._flush_lock:
            self.state = BatchState.DRAINING
            await self._cancel_flush_task()
            self._raise_if_failed()

            remaining = len(self._buffer)
            written = 0
            if remaining:
                logger.info(f"Final batch flush ({remaining} remaining paths)...")
                written = await self._flush_locked()

        self.state = BatchState.CLOSED
        logger.info(
            f"Batch processor finalized: {self.paths_written} paths, "
            f"{self.steps_written} steps in {self.flush_count} flushes"
        )
        return written

    async def close(self) -> None:
        """Stop the periodic task without writing; used when a run fails."""
        await self._cancel_flush_task()
        if self._buffer:
            logger.warning(f"Discarding {len(self._buffer)} unflushed paths")
        self.state = BatchState.CLOSED

    async def _flush_locked(self) -> int:
        count = len(self._buffer)
        if count == 0:
            logger.debug("No paths to flush")
            return 0

        # Paths appended while the transaction awaits the store stay buffered
        batch = self._buffer[:count]
        previous_state = self.state
        self.state = BatchState.FLUSHING
        started = time.perf_counter()
        logger.info(f"Flushing {count} paths to database...")

        step_count = 0
        skipped = 0
        try:
            async with self.store.transaction(operation="flush"):
                steps: List[ArbitrageStep] = []
                for path in batch:
                    path_id = await self.store.insert_path(path.length, path.swap_path)
                    path_steps = generate_steps(path, path_id, self.pool_cache)
                    skipped += path.length - len(path_steps)
                    steps.extend(path_steps)
                step_count = await self.store.insert_steps(steps)
        except StorageError as e:
            logger.error(f"Error during batch flush: {e}")
            raise
        except Exception as e:
            logger.error(f"Error during batch flush: {e}")
            raise StorageError(f"Batch flush failed: {e}", operation="flush") from e
        finally:
            self.state = previous_state

        del self._buffer[:count]
        self.paths_written += count
        self.steps_written += step_count
        self.skipped_steps += skipped
        self.flush_count += 1
        self._last_flush_at = time.monotonic()

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Batch flush completed: {count} paths, {step_count} steps in {elapsed_ms:.0f}ms"
        )
        return count

    async def _background_flush(self) -> None:
        """Periodically flush a non-empty buffer when no flush is running."""
        logger.debug("Started background flush task")

        while True:
            try:
                await asyncio.sleep(self.flush_interval)
                if self._buffer and not self.is_flushing:
                    await self.flush()
            except asyncio.CancelledError:
                logger.debug("Background flush task cancelled")
                raise
            except Exception as e:
                # Surfaced to the run by the next add_path()/finalize()
                logger.error(f"Error in periodic flush: {e}")
                self._failure = e
                return

    async def _cancel_flush_task(self) -> None:
        task = self._flush_task
        self._flush_task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _raise_if_failed(self) -> None:
        if self._failure is None:
            return
        failure = self._failure
        if isinstance(failure, StorageError):
            raise failure
        raise StorageError(f"Periodic flush failed: {failure}", operation="flush") from failure
