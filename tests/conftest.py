"""Shared fixtures for arbitrage path discovery tests."""

import logging

import pytest

from arbitrage_paths.types import Pool, Token

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"


def _address(n: int) -> str:
    return "0x" + format(n, "040x")


@pytest.fixture(autouse=True)
def restore_package_loggers():
    """CLI runs detach package loggers from the root; reattach them for caplog."""
    yield
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("arbitrage_paths") and isinstance(logger, logging.Logger):
            logger.propagate = True


@pytest.fixture
def weth():
    return WETH


@pytest.fixture
def address():
    """Factory for deterministic 0x-prefixed test addresses."""
    return _address


@pytest.fixture
def make_pool():
    counter = {"n": 0}

    def _make(token0, token1, pool_address=None, dex_type="uniswapV2", fee_tier="3000"):
        counter["n"] += 1
        return Pool(
            pool_address=pool_address or _address(0xF000 + counter["n"]),
            dex_type=dex_type,
            token0=token0,
            token1=token1,
            fee_tier=fee_tier,
        )

    return _make


@pytest.fixture
def triangle():
    """WETH-A via P, A-B via Q, B-WETH via R."""
    a, b = _address(0xA), _address(0xB)
    tokens = [
        Token(address=WETH, symbol="WETH", name="Wrapped Ether", decimals="18"),
        Token(address=a, symbol="AAA", name="Token A", decimals="18"),
        Token(address=b, symbol="BBB", name="Token B", decimals="6"),
    ]
    pools = [
        Pool(pool_address=_address(0x1001), dex_type="uniswapV2", token0=WETH, token1=a, fee_tier="3000"),
        Pool(pool_address=_address(0x1002), dex_type="uniswapV2", token0=a, token1=b, fee_tier="3000"),
        Pool(pool_address=_address(0x1003), dex_type="uniswapV2", token0=b, token1=WETH, fee_tier="3000"),
    ]
    return {"tokens": tokens, "pools": pools, "a": a, "b": b}


@pytest.fixture
def k4():
    """WETH plus three tokens with one pool between every pair."""
    names = [WETH, _address(0xA), _address(0xB), _address(0xC)]
    symbols = ["WETH", "AAA", "BBB", "CCC"]
    tokens = [Token(address=n, symbol=s, name=s, decimals="18") for n, s in zip(names, symbols)]
    pools = []
    n = 0
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            n += 1
            pools.append(
                Pool(
                    pool_address=_address(0x2000 + n),
                    dex_type="uniswapV2",
                    token0=names[i],
                    token1=names[j],
                    fee_tier="3000",
                )
            )
    return {"tokens": tokens, "pools": pools}


@pytest.fixture
def seed_store():
    """Returns a coroutine function that inserts tokens and pools into a store."""

    async def _seed(store, tokens, pools):
        async with store.transaction(operation="seed"):
            for token in tokens:
                await store.insert_token(token)
            for pool in pools:
                await store.insert_pool(pool)

    return _seed
