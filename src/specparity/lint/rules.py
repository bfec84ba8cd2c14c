"""Runners for the three RSpecParity checks."""

from __future__ import annotations

from collections.abc import Iterator

from specparity.analysis.comparator import compare
from specparity.analysis.locator import (
    SpecCandidates,
    is_checkable,
    matches_skip_path,
    project_relative,
)
from specparity.analysis.matcher import (
    DescribeAliasTable,
    HeaderKey,
    covers,
    expected_headers,
    has_examples_for_unit,
)
from specparity.analysis.units import (
    RoutineDefinition,
    collect_routines,
    infer_unit_name,
    unit_of,
)
from specparity.analysis.visibility import VisibilityResolver, count_public_routines
from specparity.config.constants import (
    FILE_HAS_SPEC,
    PUBLIC_METHOD_HAS_SPEC,
    SUFFICIENT_CONTEXTS,
)
from specparity.config.models import MethodCheckConfig
from specparity.core.progress import pluralize
from specparity.lint.checks import AnalysisContext
from specparity.lint.models import Diagnostic
from specparity.syntax.nodes import ClassDef, Location, ModuleDef, walk

MISSING_SPEC_FILE = "Missing spec file. Expected {spec_path}"
MISSING_METHOD_SPEC = "Missing spec for public method `{name}`. Expected {expected} in {spec_path}"
INSUFFICIENT_CONTEXTS = (
    "Method `{name}` has {branches} but only {contexts} in spec. "
    "Add {missing} to cover all branches."
)


def _diagnostic(
    context: AnalysisContext,
    loc: Location | None,
    message: str,
    source: str,
    code: str,
    details: dict[str, int] | None = None,
) -> Diagnostic:
    return Diagnostic(
        path=str(context.path),
        line=loc.line if loc else 1,
        column=loc.column if loc else 0,
        end_line=loc.end_line if loc else None,
        end_column=loc.end_column if loc else None,
        message=message,
        source=source,
        code=code,
        details=details or {},
    )


def _unit_names(context: AnalysisContext) -> list[str]:
    names = [
        unit_of(node).name
        for node in walk(context.parsed.root)
        if isinstance(node, ClassDef | ModuleDef)
    ]
    if not names:
        inferred = infer_unit_name(context.path)
        if inferred:
            names.append(inferred)
    return names


def _public_routines(
    context: AnalysisContext, resolver: VisibilityResolver
) -> Iterator[tuple[RoutineDefinition, SpecCandidates]]:
    """Public routines that have at least one applicable spec file."""
    for definition in collect_routines(context.parsed.root, context.path):
        if definition.unit is None or not resolver.is_public(definition):
            continue
        candidates = context.candidates_for(definition.unit.name)
        if not candidates:
            continue
        yield definition, candidates


def _relaxed(
    context: AnalysisContext,
    definition: RoutineDefinition,
    options: MethodCheckConfig,
    resolver: VisibilityResolver,
) -> bool:
    """Single-public-method unit under a SkipMethodDescribeFor path."""
    if definition.unit is None:
        return False
    if not matches_skip_path(context.path, options.skip_method_describe_for):
        return False
    return count_public_routines(definition.unit, resolver) == 1


# =============================================================================
# RSpecParity/FileHasSpec
# =============================================================================


def file_has_spec(context: AnalysisContext) -> Iterator[Diagnostic]:
    """Report a source file none of whose units has a spec file."""
    if not is_checkable(context.path):
        return
    names = _unit_names(context)
    located = [context.candidates_for(name) for name in names]
    if any(located):
        return
    base_path = located[0].base_path if located else None
    if base_path is None:
        return
    yield _diagnostic(
        context,
        context.parsed.root.loc,
        MISSING_SPEC_FILE.format(spec_path=project_relative(base_path, context.path)),
        FILE_HAS_SPEC,
        "missing_spec_file",
    )


# =============================================================================
# RSpecParity/PublicMethodHasSpec
# =============================================================================


def public_method_has_spec(context: AnalysisContext) -> Iterator[Diagnostic]:
    """Report public methods with no describe/context/example naming them."""
    if not is_checkable(context.path):
        return
    options = context.config.public_method_has_spec
    resolver = VisibilityResolver(excluded_patterns=options.excluded_patterns)
    aliases = DescribeAliasTable.from_config(options.describe_aliases)

    for definition, candidates in _public_routines(context, resolver):
        unit = definition.unit
        assert unit is not None
        if _relaxed(context, definition, options, resolver):
            if has_examples_for_unit(candidates, unit.name, context.cache):
                continue
        elif covers(candidates, definition.name, definition.scope, aliases, context.cache):
            continue

        expected = " or ".join(expected_headers(definition.name, definition.scope, aliases))
        spec_path = candidates.primary
        assert spec_path is not None
        yield _diagnostic(
            context,
            definition.loc,
            MISSING_METHOD_SPEC.format(
                name=definition.name,
                expected=expected,
                spec_path=project_relative(spec_path, context.path),
            ),
            PUBLIC_METHOD_HAS_SPEC,
            "missing_method_spec",
        )


# =============================================================================
# RSpecParity/SufficientContexts
# =============================================================================


def sufficient_contexts(context: AnalysisContext) -> Iterator[Diagnostic]:
    """Report methods with more branches than spec contexts."""
    if not is_checkable(context.path):
        return
    options = context.config.sufficient_contexts
    resolver = VisibilityResolver(excluded_patterns=options.excluded_patterns)
    aliases = DescribeAliasTable.from_config(options.describe_aliases)

    for definition, candidates in _public_routines(context, resolver):
        unit = definition.unit
        assert unit is not None
        relaxed = _relaxed(context, definition, options, resolver)
        comparison = compare(
            definition.node.body,
            candidates,
            HeaderKey(scope=definition.scope, name=definition.name),
            aliases,
            context.cache,
            ignore_memoization=options.ignore_memoization,
            relaxed_unit=unit.name if relaxed else None,
        )
        if comparison is None or comparison.sufficient:
            continue

        yield _diagnostic(
            context,
            definition.loc,
            INSUFFICIENT_CONTEXTS.format(
                name=definition.name,
                branches=pluralize(comparison.branch_count, "branch", "branches"),
                contexts=pluralize(comparison.context_count, "context"),
                missing=pluralize(comparison.deficit, "more context"),
            ),
            SUFFICIENT_CONTEXTS,
            "insufficient_contexts",
            details={
                "branch_count": comparison.branch_count,
                "context_count": comparison.context_count,
                "deficit": comparison.deficit,
            },
        )
