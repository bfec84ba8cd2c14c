"""Analysis engines: visibility, spec location, coverage matching, branch comparison."""

from specparity.analysis.branches import count_branches
from specparity.analysis.comparator import Comparison, compare
from specparity.analysis.contexts import count_contexts, count_unit_contexts
from specparity.analysis.locator import (
    SpecCandidates,
    SpecFileCache,
    SpecLocator,
    expected_spec_path,
    is_checkable,
    project_relative,
)
from specparity.analysis.matcher import DescribeAliasTable, HeaderKey, covers, expected_headers
from specparity.analysis.units import RoutineDefinition, Scope, Unit, collect_routines
from specparity.analysis.visibility import Visibility, VisibilityResolver

__all__ = [
    "Comparison",
    "DescribeAliasTable",
    "HeaderKey",
    "RoutineDefinition",
    "Scope",
    "SpecCandidates",
    "SpecFileCache",
    "SpecLocator",
    "Unit",
    "Visibility",
    "VisibilityResolver",
    "collect_routines",
    "compare",
    "count_branches",
    "count_contexts",
    "count_unit_contexts",
    "covers",
    "expected_headers",
    "expected_spec_path",
    "is_checkable",
    "project_relative",
]
