"""Integration tests for batched path persistence."""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest

from arbitrage_paths.batch_processor import BatchProcessor, BatchState
from arbitrage_paths.exceptions import StorageError, ValidationError
from arbitrage_paths.store import PathStore
from arbitrage_paths.swap_utils import make_arbitrage_path

# Long enough that the timer never fires during a test
NO_TIMER_MS = 60_000


@pytest.fixture
def pool_cache(triangle):
    return {p.pool_address: p for p in triangle["pools"]}


@pytest.fixture
def paths(triangle, weth):
    symbols = {t.address: t.symbol for t in triangle["tokens"]}
    a, b = triangle["a"], triangle["b"]
    p, q, r = (pool.pool_address for pool in triangle["pools"])
    return [
        make_arbitrage_path([weth, a, b, weth], [p, q, r], symbols),
        make_arbitrage_path([weth, b, a, weth], [r, q, p], symbols),
        make_arbitrage_path([weth, a, b, weth], [p, q, r], symbols),
    ]


class TestBatchProcessor:
    def test_invalid_settings(self, pool_cache):
        store = PathStore(":memory:")
        with pytest.raises(ValidationError):
            BatchProcessor(store, pool_cache, batch_size=0)
        with pytest.raises(ValidationError):
            BatchProcessor(store, pool_cache, flush_interval_ms=0)

    @pytest.mark.asyncio
    async def test_size_triggered_flushes(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=2, flush_interval_ms=NO_TIMER_MS)
            await processor.start()

            await processor.add_path(paths[0])
            assert processor.flush_count == 0
            await processor.add_path(paths[1])
            assert processor.flush_count == 1
            assert await store.count_paths() == 2

            await processor.add_path(paths[2])
            assert processor.pending == 1

            assert await processor.finalize() == 1
            assert processor.flush_count == 2
            assert processor.paths_written == 3
            assert processor.steps_written == 9
            assert processor.state is BatchState.CLOSED

            rows = await store.fetch_paths()
            ids = [row["id"] for row in rows]
            assert len(set(ids)) == 3
            assert ids == sorted(ids)
            assert [row["swap_path"] for row in rows] == [p.swap_path for p in paths]

    @pytest.mark.asyncio
    async def test_steps_reconstruct_tokens(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, flush_interval_ms=NO_TIMER_MS)
            await processor.start()
            await processor.add_path(paths[1])
            await processor.finalize()

            path_id = (await store.fetch_paths())[0]["id"]
            steps = await store.fetch_steps(path_id)

            assert [s.step_index for s in steps] == [0, 1, 2]
            assert [s.from_token for s in steps] + [steps[-1].to_token] == paths[1].tokens
            assert [s.pool_address for s in steps] == paths[1].pools

    @pytest.mark.asyncio
    async def test_periodic_flush(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=100, flush_interval_ms=20)
            await processor.start()

            await processor.add_path(paths[0])
            for _ in range(100):
                await asyncio.sleep(0.02)
                if processor.flush_count:
                    break

            assert processor.flush_count == 1
            assert processor.pending == 0
            assert await store.count_paths() == 1
            assert await processor.finalize() == 0

    @pytest.mark.asyncio
    async def test_trigger_during_flush_is_noop(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=2, flush_interval_ms=NO_TIMER_MS)
            await processor.start()

            async with processor._flush_lock:
                assert processor.is_flushing
                await processor.add_path(paths[0])
                await processor.add_path(paths[1])
                await processor.add_path(paths[2])
                assert await processor.flush() == 0
                assert processor.pending == 3

            assert await store.count_paths() == 0
            assert await processor.finalize() == 3
            assert await store.count_paths() == 3

    @pytest.mark.asyncio
    async def test_failed_flush_rolls_back(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=2, flush_interval_ms=NO_TIMER_MS)
            await processor.start()

            with patch.object(store, "insert_steps", AsyncMock(side_effect=RuntimeError("disk full"))):
                await processor.add_path(paths[0])
                with pytest.raises(StorageError, match="disk full"):
                    await processor.add_path(paths[1])

            assert await store.count_paths() == 0
            assert await store.count_steps() == 0
            assert processor.paths_written == 0
            assert processor.pending == 2
            await processor.close()

    @pytest.mark.asyncio
    async def test_earlier_flushes_survive_failure(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=1, flush_interval_ms=NO_TIMER_MS)
            await processor.start()
            await processor.add_path(paths[0])

            with patch.object(store, "insert_path", AsyncMock(side_effect=RuntimeError("locked"))):
                with pytest.raises(StorageError):
                    await processor.add_path(paths[1])

            assert await store.count_paths() == 1
            assert processor.paths_written == 1
            await processor.close()

    @pytest.mark.asyncio
    async def test_periodic_failure_surfaces_on_next_add(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=100, flush_interval_ms=10)
            await processor.start()

            with patch.object(store, "insert_path", AsyncMock(side_effect=RuntimeError("io error"))):
                await processor.add_path(paths[0])
                for _ in range(100):
                    await asyncio.sleep(0.01)
                    if processor._failure is not None:
                        break

            with pytest.raises(StorageError, match="io error"):
                await processor.add_path(paths[1])
            with pytest.raises(StorageError):
                await processor.finalize()

            await processor.close()
            assert await store.count_paths() == 0

    @pytest.mark.asyncio
    async def test_missing_pool_step_skipped(self, tmp_path, pool_cache, paths):
        del pool_cache[paths[0].pools[1]]
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, flush_interval_ms=NO_TIMER_MS)
            await processor.start()
            await processor.add_path(paths[0])
            await processor.finalize()

            assert processor.paths_written == 1
            assert processor.steps_written == 2
            assert processor.skipped_steps == 1

    @pytest.mark.asyncio
    async def test_add_after_finalize_rejected(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, flush_interval_ms=NO_TIMER_MS)
            await processor.start()
            await processor.finalize()

            with pytest.raises(StorageError):
                await processor.add_path(paths[0])

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self, tmp_path, pool_cache):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, flush_interval_ms=NO_TIMER_MS)
            await processor.start()
            with pytest.raises(StorageError, match="already started"):
                await processor.start()
            await processor.close()

    @pytest.mark.asyncio
    async def test_close_discards_without_writing(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, flush_interval_ms=NO_TIMER_MS)
            await processor.start()
            await processor.add_path(paths[0])
            await processor.close()

            assert processor.state is BatchState.CLOSED
            assert await store.count_paths() == 0

    @pytest.mark.asyncio
    async def test_tick_flushes_once_interval_elapsed(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=100, flush_interval_ms=50)
            await processor.start()

            await processor.add_path(paths[0])
            assert processor.flush_due is False
            assert await processor.tick() == 0

            # Blocks the loop, as a busy path search does
            time.sleep(0.08)
            assert processor.flush_due is True
            assert await processor.tick() == 1

            assert processor.pending == 0
            assert processor.flush_due is False
            assert await store.count_paths() == 1
            await processor.finalize()

    @pytest.mark.asyncio
    async def test_tick_raises_flush_failure(self, tmp_path, pool_cache, paths):
        async with PathStore(str(tmp_path / "test.db")) as store:
            processor = BatchProcessor(store, pool_cache, batch_size=100, flush_interval_ms=10)
            await processor.start()
            await processor.add_path(paths[0])

            with patch.object(store, "insert_path", AsyncMock(side_effect=RuntimeError("io error"))):
                time.sleep(0.02)
                with pytest.raises(StorageError, match="io error"):
                    await processor.tick()

            await processor.close()
            assert await store.count_paths() == 0
