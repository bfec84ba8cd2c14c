"""Units and routine definitions derived from a parsed source file.

A *unit* is the class or module that owns a routine; a *routine* is a
``def`` in one of two namespaces: instance (``#name`` headers) or type-level
(``.name`` headers).
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath

from specparity.config.constants import EXCLUDED_HOOK_METHODS, EXCLUDED_METHODS
from specparity.syntax.nodes import (
    Block,
    Call,
    ClassDef,
    Location,
    MethodDef,
    ModuleDef,
    Node,
    SingletonClass,
    SingletonMethodDef,
    UnitNode,
    walk,
)

# Grouping block from ActiveSupport::Concern whose defs become class methods.
CLASS_METHODS_BLOCK = "class_methods"


class Scope(Enum):
    """Namespace a routine lives in."""

    INSTANCE = "instance"
    TYPE = "type"

    @property
    def sigil(self) -> str:
        return "#" if self is Scope.INSTANCE else "."

    @property
    def opposite(self) -> Scope:
        return Scope.TYPE if self is Scope.INSTANCE else Scope.INSTANCE

    @classmethod
    def from_sigil(cls, sigil: str) -> Scope:
        return cls.TYPE if sigil == "." else cls.INSTANCE


@dataclass(frozen=True)
class Unit:
    """A class- or module-like declaration.

    ``node`` is None when the file declares no class and the name was
    inferred from the file name.
    """

    name: str
    namespace: tuple[str, ...]
    node: UnitNode | None
    statements: tuple[Node, ...]

    @property
    def short_name(self) -> str:
        return self.name.rsplit("::", 1)[-1]


@dataclass(frozen=True)
class RoutineDefinition:
    name: str
    scope: Scope
    unit: Unit | None
    loc: Location | None
    node: MethodDef | SingletonMethodDef

    @property
    def header_key(self) -> str:
        """Header key such as ``#perform`` or ``.find_by_name``."""
        return f"{self.scope.sigil}{self.name}"


def enclosing_unit_node(node: Node) -> UnitNode | None:
    for ancestor in node.ancestors():
        if isinstance(ancestor, ClassDef | ModuleDef):
            return ancestor
    return None


def _qualified_parts(unit_node: UnitNode) -> list[str]:
    parts = unit_node.name.lstrip(":").split("::")
    for ancestor in unit_node.ancestors():
        if isinstance(ancestor, ClassDef | ModuleDef):
            parts = ancestor.name.lstrip(":").split("::") + parts
    return parts


def infer_unit_name(source_path: PurePath | str) -> str | None:
    """``app/services/user_creator.rb`` → ``UserCreator``."""
    stem = PurePath(source_path).stem
    if not stem:
        return None
    return "".join(part.capitalize() for part in stem.split("_"))


def unit_of(unit_node: UnitNode) -> Unit:
    parts = _qualified_parts(unit_node)
    return Unit(
        name="::".join(parts),
        namespace=tuple(parts[:-1]),
        node=unit_node,
        statements=unit_node.body,
    )


def unit_for(node: Node, source_path: PurePath | str | None) -> Unit | None:
    """The unit owning ``node``; falls back to the file name."""
    unit_node = enclosing_unit_node(node)
    if unit_node is not None:
        return unit_of(unit_node)
    if source_path is None:
        return None
    name = infer_unit_name(source_path)
    if name is None:
        return None
    return Unit(name=name, namespace=(), node=None, statements=())


def is_class_methods_block(node: Node) -> bool:
    return (
        isinstance(node, Block)
        and isinstance(node.parent, Call)
        and node.parent.name == CLASS_METHODS_BLOCK
    )


def in_type_grouping(node: Node) -> bool:
    """True inside ``class << self`` or a ``class_methods do`` block of the same unit."""
    for ancestor in node.ancestors():
        if isinstance(ancestor, ClassDef | ModuleDef):
            return False
        if isinstance(ancestor, SingletonClass) and ancestor.is_self:
            return True
        if is_class_methods_block(ancestor):
            return True
    return False


def scope_of(node: MethodDef | SingletonMethodDef) -> Scope:
    if isinstance(node, SingletonMethodDef) or in_type_grouping(node):
        return Scope.TYPE
    return Scope.INSTANCE


def definition_for(
    node: MethodDef | SingletonMethodDef, source_path: PurePath | str | None
) -> RoutineDefinition:
    return RoutineDefinition(
        name=node.name,
        scope=scope_of(node),
        unit=unit_for(node, source_path),
        loc=node.loc,
        node=node,
    )


def collect_routines(
    root: Node, source_path: PurePath | str | None = None
) -> Iterator[RoutineDefinition]:
    """Every routine definition under ``root`` in source order."""
    for node in walk(root):
        if isinstance(node, MethodDef | SingletonMethodDef):
            yield definition_for(node, source_path)


def is_excluded_name(name: str, patterns: Sequence[str] = ()) -> bool:
    """Constructor, lifecycle hooks, and callback-style names are never checked."""
    if name in EXCLUDED_METHODS or name in EXCLUDED_HOOK_METHODS:
        return True
    return any(re.search(pattern, name) for pattern in patterns)


def _defines_methods(statements: Sequence[Node]) -> bool:
    for child in statements:
        if isinstance(child, MethodDef | SingletonMethodDef):
            return True
        if (
            isinstance(child, SingletonClass)
            and child.is_self
            and any(isinstance(c, MethodDef) for c in child.body)
        ):
            return True
    return False


def inside_inner_unit(node: Node) -> bool:
    """True when the owning unit is nested in a class that has its own methods.

    Such units are structural helpers of the outer class, not part of a
    public contract its spec file is expected to cover.
    """
    unit_node = enclosing_unit_node(node)
    if unit_node is None:
        return False
    return any(
        isinstance(ancestor, ClassDef) and _defines_methods(ancestor.body)
        for ancestor in unit_node.ancestors()
    )
