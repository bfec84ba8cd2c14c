"""Branch count versus spec scenario count for one routine."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog

from specparity.analysis.branches import count_branches
from specparity.analysis.contexts import count_contexts, count_unit_contexts
from specparity.analysis.locator import SpecFileCache
from specparity.analysis.matcher import DescribeAliasTable, HeaderKey
from specparity.syntax.nodes import Node

log = structlog.get_logger()


@dataclass(frozen=True)
class Comparison:
    sufficient: bool
    branch_count: int
    context_count: int

    @property
    def deficit(self) -> int:
        return max(0, self.branch_count - self.context_count)


def _sum_counts(counts: Iterable[int | None]) -> int | None:
    found = [count for count in counts if count is not None]
    return sum(found) if found else None


def context_total(
    candidates: Iterable[Path],
    key: HeaderKey,
    aliases: DescribeAliasTable,
    cache: SpecFileCache,
) -> int | None:
    """Scenarios under ``key`` and its aliases, summed across every candidate."""
    titles = [str(key), *(str(alias) for alias in aliases.aliases_for(key))]
    return _sum_counts(count_contexts(cache.parse(path).root, titles) for path in candidates)


def unit_context_total(
    candidates: Iterable[Path], unit_name: str, cache: SpecFileCache
) -> int | None:
    return _sum_counts(count_unit_contexts(cache.parse(path).root, unit_name) for path in candidates)


def compare(
    body: Sequence[Node],
    candidates: Iterable[Path],
    key: HeaderKey,
    aliases: DescribeAliasTable,
    cache: SpecFileCache,
    *,
    ignore_memoization: bool = True,
    relaxed_unit: str | None = None,
) -> Comparison | None:
    """Compare ``body``'s branches with the scenarios documenting it.

    With ``relaxed_unit`` set, scenarios are counted directly under that
    unit's ``describe`` instead of a routine header. Returns None when no
    header exists in any candidate; a missing header is a coverage problem,
    not a scenario shortfall.
    """
    branches = count_branches(body, ignore_memoization=ignore_memoization)
    paths = list(candidates)
    if relaxed_unit is not None:
        contexts = unit_context_total(paths, relaxed_unit, cache)
    else:
        contexts = context_total(paths, key, aliases, cache)
    if contexts is None:
        log.debug("comparator.no_header", key=str(key), unit=relaxed_unit)
        return None
    return Comparison(
        sufficient=branches <= 1 or contexts >= branches,
        branch_count=branches,
        context_count=contexts,
    )
