"""Tests for token graph construction."""

import networkx as nx

from arbitrage_paths.graph import TokenGraph, build_adjacency
from arbitrage_paths.types import PoolEdge


def test_adjacency_has_two_edges_per_pool(k4):
    adjacency = build_adjacency(k4["pools"])
    assert sum(len(edges) for edges in adjacency.values()) == 2 * len(k4["pools"])


def test_adjacency_is_symmetric(triangle):
    adjacency = build_adjacency(triangle["pools"])
    for token, edges in adjacency.items():
        for edge in edges:
            assert PoolEdge(pool=edge.pool, to_token=token) in adjacency[edge.to_token]


def test_adjacency_keeps_pool_order(triangle, weth):
    p, q, r = triangle["pools"]
    adjacency = build_adjacency(triangle["pools"])

    assert adjacency[weth] == [
        PoolEdge(pool=p.pool_address, to_token=triangle["a"]),
        PoolEdge(pool=r.pool_address, to_token=triangle["b"]),
    ]


def test_self_loop_counts_twice(make_pool, weth):
    loop = make_pool(weth, weth)
    adjacency = build_adjacency([loop])

    assert adjacency[weth] == [
        PoolEdge(pool=loop.pool_address, to_token=weth),
        PoolEdge(pool=loop.pool_address, to_token=weth),
    ]


def test_empty_pool_set():
    graph = TokenGraph([])
    assert graph.token_count == 0
    assert graph.edge_count == 0


class TestTokenGraph:
    def test_counts(self, triangle):
        graph = TokenGraph(triangle["pools"])
        assert graph.token_count == 3
        assert graph.edge_count == 6

    def test_edges_from_unknown_token(self, triangle, address):
        graph = TokenGraph(triangle["pools"])
        assert graph.edges_from(address(0xDEAD)) == []
        assert graph.degree(address(0xDEAD)) == 0

    def test_pool_lookup(self, triangle):
        graph = TokenGraph(triangle["pools"])
        pool = triangle["pools"][1]
        assert graph.get_pool(pool.pool_address) == pool

    def test_networkx_view_has_one_edge_per_pool(self, k4):
        nx_graph = TokenGraph(k4["pools"]).to_networkx()
        assert isinstance(nx_graph, nx.MultiGraph)
        assert nx_graph.number_of_edges() == len(k4["pools"])

    def test_reachable_token_count(self, triangle, make_pool, address, weth):
        island = make_pool(address(0x51), address(0x52))
        graph = TokenGraph(triangle["pools"] + [island])

        assert graph.reachable_token_count(weth) == 2
        assert graph.reachable_token_count(address(0x51)) == 1
        assert graph.reachable_token_count(address(0xDEAD)) == 0
