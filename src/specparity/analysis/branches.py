"""Decision-branch counting for routine bodies.

Every conditional construct contributes its explicit arms:

* ``if``/``unless`` chains: one per arm plus one for a trailing ``else``
* statement modifiers: 1
* ternaries: 2
* ``case``: one per ``when``/``in`` plus one for ``else``
* ``||=`` and ``&&=``: 2

Memoization guards on instance-variable storage contribute nothing while
``ignore_memoization`` is on. Constructs nested inside a guard still count.
A routine always has at least one branch.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from specparity.syntax.nodes import (
    Assign,
    Call,
    Case,
    ClassDef,
    Conditional,
    Defined,
    Index,
    InstanceVar,
    MethodDef,
    ModuleDef,
    Node,
    OpAssign,
    Return,
    SingletonClass,
    SingletonMethodDef,
    children,
    literal_text,
)

SHORT_CIRCUIT_OPERATORS = frozenset({"||=", "&&="})

# Predicates meaning "nothing stored yet" on the guarded field.
EMPTY_PREDICATES = frozenset({"nil?", "blank?", "empty?"})

# Predicates meaning "already stored" on the guarded field.
PRESENT_PREDICATES = frozenset({"present?"})

_NESTED_SCOPES = (ClassDef, ModuleDef, SingletonClass, MethodDef, SingletonMethodDef)


def _walk_body(body: Sequence[Node]) -> Iterator[Node]:
    """Pre-order walk that does not enter nested definitions."""
    stack = list(reversed(body))
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, _NESTED_SCOPES):
            continue
        stack.extend(reversed(children(node)))


def is_field_storage(node: Node) -> bool:
    """``@x``, ``@x[:k]`` and deeper element references rooted at a field."""
    if isinstance(node, InstanceVar):
        return True
    if isinstance(node, Index):
        return is_field_storage(node.receiver)
    return False


def field_key(node: Node | None) -> str | None:
    """Comparable key for field storage, or None."""
    if isinstance(node, InstanceVar):
        return node.name
    if isinstance(node, Index):
        base = field_key(node.receiver)
        if base is None:
            return None
        parts = []
        for arg in node.args:
            text = literal_text(arg)
            if text is None:
                return None
            parts.append(text)
        return f"{base}[{','.join(parts)}]"
    return None


def _stored(node: Node | None, key: str) -> bool:
    return field_key(node) == key


def _already_computed(condition: Node | None, key: str) -> bool:
    """``defined?(@x)``, ``@x`` or ``@x.present?``."""
    if isinstance(condition, Defined):
        return _stored(condition.operand, key)
    if isinstance(condition, Call):
        return (
            condition.name in PRESENT_PREDICATES
            and not condition.args
            and _stored(condition.receiver, key)
        )
    return _stored(condition, key)


def _not_yet_computed(condition: Node | None, key: str) -> bool:
    """``@x.nil?``, ``@x.blank?`` or ``@x.empty?``."""
    return (
        isinstance(condition, Call)
        and condition.name in EMPTY_PREDICATES
        and not condition.args
        and _stored(condition.receiver, key)
    )


def _guards_assignment(node: Conditional) -> bool:
    """``@x = v if @x.nil?`` / ``@x = v unless @x`` and block forms of both."""
    if node.orelse or len(node.arms) != 1:
        return False
    arm = node.arms[0]
    if len(arm.body) != 1 or not isinstance(arm.body[0], Assign):
        return False
    key = field_key(arm.body[0].target)
    if key is None:
        return False
    if node.negated:
        return _already_computed(arm.condition, key)
    return _not_yet_computed(arm.condition, key)


def _guards_return(node: Conditional) -> bool:
    """``return @x if defined?(@x)`` / ``return @x if @x``."""
    if node.kind != "modifier" or node.negated or len(node.arms) != 1:
        return False
    arm = node.arms[0]
    if len(arm.body) != 1 or not isinstance(arm.body[0], Return):
        return False
    key = field_key(arm.body[0].value)
    if key is None:
        return False
    return _already_computed(arm.condition, key)


def is_memoization_guard(node: Node) -> bool:
    if isinstance(node, OpAssign):
        return node.operator == "||=" and is_field_storage(node.target)
    if isinstance(node, Conditional) and node.kind != "ternary":
        return _guards_return(node) or _guards_assignment(node)
    return False


def branch_contribution(node: Node) -> int:
    """Branches contributed by ``node`` alone, ignoring its children."""
    if isinstance(node, Conditional):
        if node.kind == "ternary":
            return 2
        if node.kind == "modifier":
            return 1
        return max(1, len(node.arms) + (1 if node.orelse is not None else 0))
    if isinstance(node, Case):
        return max(1, len(node.arms) + (1 if node.orelse is not None else 0))
    if isinstance(node, OpAssign) and node.operator in SHORT_CIRCUIT_OPERATORS:
        return 2
    return 0


def count_branches(body: Sequence[Node], ignore_memoization: bool = True) -> int:
    """Number of distinct paths through ``body``; at least 1."""
    total = 0
    for node in _walk_body(body):
        if ignore_memoization and is_memoization_guard(node):
            continue
        total += branch_contribution(node)
    return max(1, total)
