"""Resolve a test selector to a node in the test tree.

A selector is either an exact ``nodeIdentifier`` (for example
``"LoginTests/testValidLogin()"``) or the 1-based index printed next to each
test case in the listing view. Identifiers are tried first; only when no node
carries that identifier is the selector read as an index.

Every lookup walks the forest in the same depth-first, pre-order, document
order, so the index printed by the listing always resolves back to the same
test case.
"""
from __future__ import annotations

import re
from typing import Iterator, Optional, Sequence

from xcresult_explorer.results import TestNode

_INDEX_RE = re.compile(r"\+?[0-9]+")


def walk(nodes: Sequence[TestNode]) -> Iterator[tuple[TestNode, int]]:
    """Yield ``(node, depth)`` for every node, pre-order, in document order."""
    stack: list[tuple[TestNode, int]] = [(node, 0) for node in reversed(nodes)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))


def iter_test_cases(nodes: Sequence[TestNode]) -> Iterator[TestNode]:
    for node, _ in walk(nodes):
        if node.is_test_case:
            yield node


def enumerate_test_cases(nodes: Sequence[TestNode]) -> list[tuple[int, TestNode]]:
    """Number test cases from 1 in traversal order."""
    return list(enumerate(iter_test_cases(nodes), start=1))


def find_by_identifier(identifier: str, nodes: Sequence[TestNode]) -> Optional[TestNode]:
    for node, _ in walk(nodes):
        if node.node_identifier == identifier:
            return node
    return None


def find_by_index(index: int, nodes: Sequence[TestNode]) -> Optional[TestNode]:
    if index < 1:
        return None
    for position, node in enumerate(iter_test_cases(nodes), start=1):
        if position == index:
            return node
    return None


def parse_index(key: str) -> Optional[int]:
    """Read ``key`` as a positive integer index, or return None."""
    if not _INDEX_RE.fullmatch(key):
        return None
    value = int(key)
    return value if value >= 1 else None


def resolve(key: str, nodes: Sequence[TestNode]) -> Optional[TestNode]:
    """Find a node by exact identifier, falling back to positional index.

    Returns None when nothing matches; never raises for an unknown key.
    """
    node = find_by_identifier(key, nodes)
    if node is not None:
        return node
    index = parse_index(key)
    if index is None:
        return None
    return find_by_index(index, nodes)
