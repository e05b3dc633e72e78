from __future__ import annotations

from typing import Iterable

from .models import Relationship


def build_adjacency(relationships: Iterable[Relationship]) -> dict[str, list[str]]:
    """Index active relationships by table, in both directions.

    Each table's neighbour list keeps the order of the relationship list.
    """
    adjacency: dict[str, list[str]] = {}
    for rel in relationships:
        if not rel.is_active:
            continue
        adjacency.setdefault(rel.from_table, []).append(rel.to_table)
        adjacency.setdefault(rel.to_table, []).append(rel.from_table)
    return adjacency


def neighbor_tables(adjacency: dict[str, list[str]], seeds: Iterable[str]) -> list[str]:
    """Tables one hop away from any seed, deduplicated in first-seen order.

    A seed adjacent to another seed is listed like any other neighbour.
    """
    seen: set[str] = set()
    neighbors: list[str] = []
    for seed in seeds:
        for table in adjacency.get(seed, []):
            if table not in seen:
                seen.add(table)
                neighbors.append(table)
    return neighbors
