"""networkx views of adjacency mappings."""

from __future__ import annotations

from typing import Iterable, Mapping

import networkx as nx


def build_digraph(adjacency: Mapping[str, Iterable[str]]) -> nx.DiGraph:
    """Return a directed graph with one edge per listed neighbour."""

    graph = nx.DiGraph()
    for node, neighbors in adjacency.items():
        graph.add_node(node)
        graph.add_edges_from((node, nxt) for nxt in neighbors)
    return graph


def reachable_count(adjacency: Mapping[str, Iterable[str]], start: str) -> int:
    """Number of nodes reachable from ``start`` along directed edges.

    ``start`` is counted even when it has no adjacency entry.
    """

    graph = build_digraph(adjacency)
    if start not in graph:
        return 1
    return len(nx.descendants(graph, start)) + 1


__all__ = ["build_digraph", "reachable_count"]
