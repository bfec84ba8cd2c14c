"""Visibility resolution for routine definitions.

Resolution is a two-phase fold over the statements of the enclosing scope:

1. Targeted overrides (``private :name``, ``private_class_method :name``)
   are collected into a mapping, independent of where they appear.
2. Section markers (a bare ``private``) are folded in source order up to
   the statement holding the definition.

An inline modifier wrapping the definition (``private def name``) wins
outright, and a targeted override beats the ambient cursor.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

import structlog

from specparity.analysis.units import (
    RoutineDefinition,
    Scope,
    Unit,
    collect_routines,
    enclosing_unit_node,
    inside_inner_unit,
    is_class_methods_block,
    is_excluded_name,
)
from specparity.syntax.nodes import (
    Block,
    Call,
    ClassDef,
    MethodDef,
    ModuleDef,
    Node,
    Program,
    SingletonClass,
    SingletonMethodDef,
    body_of,
    literal_text,
)

log = structlog.get_logger()


class Visibility(Enum):
    PUBLIC = "public"
    NON_PUBLIC = "non_public"


# Markers shifting the instance namespace (also used inside `class << self`).
INSTANCE_MARKERS: dict[str, Visibility] = {
    "public": Visibility.PUBLIC,
    "private": Visibility.NON_PUBLIC,
    "protected": Visibility.NON_PUBLIC,
}

# Markers for `def self.x` routines declared directly in a unit body.
TYPE_MARKERS: dict[str, Visibility] = {
    "public_class_method": Visibility.PUBLIC,
    "private_class_method": Visibility.NON_PUBLIC,
}

ScopeNode = ClassDef | ModuleDef | SingletonClass | Block | Program


@dataclass
class VisibilityState:
    """State machine for one scope body.

    ``cursor`` is the ambient visibility; ``overrides`` maps routine names
    to the visibility of the last targeted call naming them.
    """

    markers: dict[str, Visibility]
    sections: bool = True
    cursor: Visibility = Visibility.PUBLIC
    overrides: dict[str, Visibility] = field(default_factory=dict)

    def collect_overrides(self, statements: Iterable[Node]) -> None:
        for statement in statements:
            marker = self._marker(statement)
            if marker is None:
                continue
            for arg in marker.args:
                name = literal_text(arg)
                if name is not None:
                    self.overrides[name] = self.markers[marker.name]

    def fold_sections(self, statements: Iterable[Node], stop: Node | None) -> None:
        if not self.sections:
            return
        for statement in statements:
            if statement is stop:
                break
            marker = self._marker(statement)
            if marker is not None and not marker.args:
                self.cursor = self.markers[marker.name]

    def visibility_of(self, name: str) -> Visibility:
        return self.overrides.get(name, self.cursor)

    def _marker(self, node: Node) -> Call | None:
        if (
            isinstance(node, Call)
            and node.receiver is None
            and node.block is None
            and node.name in self.markers
        ):
            return node
        return None


def _enclosing_scope(node: Node) -> ScopeNode | None:
    for ancestor in node.ancestors():
        if isinstance(ancestor, ClassDef | ModuleDef | SingletonClass | Program):
            return ancestor
        if isinstance(ancestor, Block) and is_class_methods_block(ancestor):
            return ancestor
    return None


def _statement_in(scope: Node, node: Node) -> Node | None:
    """The direct statement of ``scope`` that contains ``node``."""
    current = node
    for ancestor in node.ancestors():
        if ancestor is scope:
            return current
        current = ancestor
    return None


def _inline_marker(node: Node) -> Call | None:
    parent = node.parent
    if (
        isinstance(parent, Call)
        and parent.receiver is None
        and any(arg is node for arg in parent.args)
    ):
        return parent
    return None


@dataclass
class VisibilityResolver:
    """Decides whether a routine is part of its unit's public contract."""

    excluded_patterns: Sequence[str] = ()

    def resolve(self, definition: RoutineDefinition) -> Visibility:
        if is_excluded_name(definition.name, self.excluded_patterns):
            return Visibility.NON_PUBLIC
        if definition.loc is None:
            return Visibility.NON_PUBLIC
        if inside_inner_unit(definition.node):
            return Visibility.NON_PUBLIC
        return self.visibility_of(definition.node)

    def visibility_of(self, node: MethodDef | SingletonMethodDef) -> Visibility:
        """Visibility from markers alone, ignoring the exclusion policy."""
        scope = _enclosing_scope(node)
        if scope is None:
            return Visibility.PUBLIC

        # `def self.x` in a unit body only answers to the class-method markers.
        singleton = isinstance(node, SingletonMethodDef)
        markers = TYPE_MARKERS if singleton else INSTANCE_MARKERS

        inline = _inline_marker(node)
        if inline is not None and inline.name in markers:
            return markers[inline.name]

        state = VisibilityState(markers=markers, sections=not singleton)
        statements = body_of(scope)
        if isinstance(scope, SingletonClass | Block):
            # Type-level groupings also honor `private_class_method :x` on the unit.
            unit_node = enclosing_unit_node(scope)
            if unit_node is not None:
                outer = VisibilityState(markers=TYPE_MARKERS, sections=False)
                outer.collect_overrides(unit_node.body)
                state.overrides.update(outer.overrides)
        state.collect_overrides(statements)
        state.fold_sections(statements, _statement_in(scope, node))
        return state.visibility_of(node.name)

    def is_public(self, definition: RoutineDefinition) -> bool:
        return self.resolve(definition) is Visibility.PUBLIC


def count_public_routines(unit: Unit, resolver: VisibilityResolver) -> int:
    """Public, non-excluded instance routines declared directly in ``unit``."""
    if unit.node is None:
        return 0
    count = 0
    for definition in collect_routines(unit.node):
        if definition.scope is not Scope.INSTANCE:
            continue
        if enclosing_unit_node(definition.node) is not unit.node:
            continue
        if resolver.is_public(definition):
            count += 1
    log.debug("visibility.public_routines", unit=unit.name, count=count)
    return count
