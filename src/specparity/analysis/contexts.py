"""Scenario counting inside RSpec trees.

A header's scenarios are its immediate ``context`` children, plus one for
the whole set of examples declared directly under it.
"""

from __future__ import annotations

from collections.abc import Iterable

from specparity.analysis.locator import unit_headers
from specparity.syntax.nodes import Call, Const, Node, Program, Str, walk


def _with_focus_variants(*names: str) -> frozenset[str]:
    return frozenset(variant for name in names for variant in (name, f"f{name}", f"x{name}"))


CONTEXT_METHODS = _with_focus_variants("context")
HEADER_METHODS = _with_focus_variants("describe", "context")
EXAMPLE_METHODS = _with_focus_variants("it", "example", "specify", "scenario") | {"its"}


def _is_rspec_call(node: Node, names: frozenset[str]) -> bool:
    if not isinstance(node, Call) or node.name not in names:
        return False
    receiver = node.receiver
    return receiver is None or (isinstance(receiver, Const) and receiver.name == "RSpec")


def header_title(node: Call) -> str | None:
    """Literal title of a ``describe``/``context`` call, else None."""
    if not _is_rspec_call(node, HEADER_METHODS) or not node.args:
        return None
    first = node.args[0]
    return first.value if isinstance(first, Str) else None


def find_headers(tree: Program, titles: Iterable[str]) -> list[Call]:
    """Outermost header calls in ``tree`` titled one of ``titles``.

    A matching header nested inside another match is part of the outer
    header's scenarios and is not counted again.
    """
    wanted = set(titles)
    found: list[Call] = []
    seen: set[int] = set()
    for node in walk(tree):
        if not isinstance(node, Call) or node.block is None or header_title(node) not in wanted:
            continue
        if any(id(ancestor) in seen for ancestor in node.ancestors()):
            continue
        seen.add(id(node))
        found.append(node)
    return found


def scenario_count(header: Call) -> int:
    if header.block is None:
        return 0
    statements = header.block.body
    contexts = sum(1 for child in statements if _is_rspec_call(child, CONTEXT_METHODS))
    has_examples = any(_is_rspec_call(child, EXAMPLE_METHODS) for child in statements)
    return contexts + (1 if has_examples else 0)


def count_contexts(tree: Program, titles: Iterable[str]) -> int | None:
    """Scenarios under every header titled one of ``titles``; None if none exist."""
    headers = find_headers(tree, titles)
    if not headers:
        return None
    return sum(scenario_count(header) for header in headers)


def count_unit_contexts(tree: Program, unit_name: str) -> int | None:
    """Scenarios directly under the unit's own ``describe``; None if absent."""
    headers = [header for header in unit_headers(tree, unit_name) if header.block is not None]
    if not headers:
        return None
    return sum(scenario_count(header) for header in headers)
