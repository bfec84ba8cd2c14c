"""Typed syntax tree consumed by the analysis engines.

The engines never touch tree-sitter objects. A parser adapter (see
``specparity.syntax.ruby``) converts the concrete tree into the closed set
of variants below once per file; after ``link_parents`` has run the tree is
treated as immutable.

Traversal helpers dispatch with an exhaustive ``match`` so a new variant
fails type checking at every site that has not been taught about it.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypeAlias, assert_never


@dataclass(frozen=True, slots=True)
class Location:
    """Source span. Lines are 1-based, columns 0-based."""

    line: int
    column: int
    end_line: int
    end_column: int


class SyntaxNode:
    """Behaviour shared by every node variant."""

    loc: Location | None
    parent: Node | None = None

    def ancestors(self) -> Iterator[Node]:
        """Yield enclosing nodes, innermost first."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent


@dataclass(eq=False)
class Program(SyntaxNode):
    body: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class ClassDef(SyntaxNode):
    """``class Name < Super ... end``. ``name`` is the constant path as written."""

    name: str
    superclass: Node | None
    body: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class ModuleDef(SyntaxNode):
    name: str
    body: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class SingletonClass(SyntaxNode):
    """``class << target ... end``."""

    target: Node
    body: tuple[Node, ...]
    loc: Location | None = None

    @property
    def is_self(self) -> bool:
        return isinstance(self.target, SelfRef)


@dataclass(eq=False)
class MethodDef(SyntaxNode):
    """``def name ... end``."""

    name: str
    body: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class SingletonMethodDef(SyntaxNode):
    """``def receiver.name ... end`` (usually ``def self.name``)."""

    receiver: Node
    name: str
    body: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class Block(SyntaxNode):
    """The ``do ... end`` / ``{ ... }`` attached to a call."""

    body: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class Call(SyntaxNode):
    """A method call. Receiverless zero-argument calls include bare ``private``."""

    receiver: Node | None
    name: str
    args: tuple[Node, ...]
    block: Block | None = None
    loc: Location | None = None


@dataclass(eq=False)
class Arm(SyntaxNode):
    """One guarded arm of a conditional or ``case``."""

    condition: Node | None
    body: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class Conditional(SyntaxNode):
    """An if/unless chain, a statement modifier, or a ternary.

    ``kind`` is one of ``if``, ``unless``, ``modifier`` or ``ternary``.
    ``negated`` is set for ``unless`` and ``unless`` modifiers.
    """

    kind: str
    arms: tuple[Arm, ...]
    orelse: tuple[Node, ...] | None = None
    negated: bool = False
    loc: Location | None = None


@dataclass(eq=False)
class Case(SyntaxNode):
    subject: Node | None
    arms: tuple[Arm, ...]
    orelse: tuple[Node, ...] | None = None
    loc: Location | None = None


@dataclass(eq=False)
class OpAssign(SyntaxNode):
    """``target op= value`` such as ``@x ||= compute``."""

    target: Node
    operator: str
    value: Node
    loc: Location | None = None


@dataclass(eq=False)
class Assign(SyntaxNode):
    target: Node
    value: Node
    loc: Location | None = None


@dataclass(eq=False)
class Return(SyntaxNode):
    value: Node | None
    loc: Location | None = None


@dataclass(eq=False)
class Defined(SyntaxNode):
    """``defined?(operand)``."""

    operand: Node
    loc: Location | None = None


@dataclass(eq=False)
class Index(SyntaxNode):
    """``receiver[args]``."""

    receiver: Node
    args: tuple[Node, ...]
    loc: Location | None = None


@dataclass(eq=False)
class InstanceVar(SyntaxNode):
    name: str
    loc: Location | None = None


@dataclass(eq=False)
class Identifier(SyntaxNode):
    name: str
    loc: Location | None = None


@dataclass(eq=False)
class SelfRef(SyntaxNode):
    loc: Location | None = None


@dataclass(eq=False)
class Const(SyntaxNode):
    """A constant or constant path (``Foo::Bar``)."""

    name: str
    loc: Location | None = None


@dataclass(eq=False)
class Symbol(SyntaxNode):
    value: str
    loc: Location | None = None


@dataclass(eq=False)
class Str(SyntaxNode):
    """String literal. ``value`` is None when the string interpolates."""

    value: str | None
    loc: Location | None = None


@dataclass(eq=False)
class Other(SyntaxNode):
    """Any construct the engines do not distinguish, keeping its children."""

    kind: str
    children: tuple[Node, ...] = ()
    loc: Location | None = None


Node: TypeAlias = (
    Program
    | ClassDef
    | ModuleDef
    | SingletonClass
    | MethodDef
    | SingletonMethodDef
    | Block
    | Call
    | Arm
    | Conditional
    | Case
    | OpAssign
    | Assign
    | Return
    | Defined
    | Index
    | InstanceVar
    | Identifier
    | SelfRef
    | Const
    | Symbol
    | Str
    | Other
)

UnitNode: TypeAlias = ClassDef | ModuleDef
"""Declarations that open a Unit."""


def children(node: Node) -> tuple[Node, ...]:
    """Direct children in source order."""
    match node:
        case Program(body=body) | ModuleDef(body=body) | MethodDef(body=body) | Block(body=body):
            return body
        case ClassDef(superclass=superclass, body=body):
            return ((superclass,) if superclass is not None else ()) + body
        case SingletonClass(target=target, body=body):
            return (target, *body)
        case SingletonMethodDef(receiver=receiver, body=body):
            return (receiver, *body)
        case Call(receiver=receiver, args=args, block=block):
            head = (receiver,) if receiver is not None else ()
            tail = (block,) if block is not None else ()
            return head + args + tail
        case Arm(condition=condition, body=body):
            return ((condition,) if condition is not None else ()) + body
        case Conditional(arms=arms, orelse=orelse):
            return arms + (orelse or ())
        case Case(subject=subject, arms=arms, orelse=orelse):
            return ((subject,) if subject is not None else ()) + arms + (orelse or ())
        case OpAssign(target=target, value=value) | Assign(target=target, value=value):
            return (target, value)
        case Return(value=value):
            return (value,) if value is not None else ()
        case Defined(operand=operand):
            return (operand,)
        case Index(receiver=receiver, args=args):
            return (receiver, *args)
        case Other(children=kids):
            return kids
        case InstanceVar() | Identifier() | SelfRef() | Const() | Symbol() | Str():
            return ()
        case _:
            assert_never(node)


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal including ``node`` itself."""
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def descendants(node: Node) -> Iterator[Node]:
    """Pre-order traversal excluding ``node`` itself."""
    iterator = walk(node)
    next(iterator)
    yield from iterator


def link_parents(root: Node) -> Node:
    """Set ``parent`` on every node below ``root`` and return ``root``."""
    root.parent = None
    for node in walk(root):
        for child in children(node):
            child.parent = node
    return root


def body_of(node: Node) -> tuple[Node, ...]:
    """Statement sequence of a scope-opening node (empty for other nodes)."""
    match node:
        case (
            Program(body=body)
            | ClassDef(body=body)
            | ModuleDef(body=body)
            | SingletonClass(body=body)
            | MethodDef(body=body)
            | SingletonMethodDef(body=body)
            | Block(body=body)
        ):
            return body
        case Call(block=block):
            return block.body if block is not None else ()
        case (
            Arm()
            | Conditional()
            | Case()
            | OpAssign()
            | Assign()
            | Return()
            | Defined()
            | Index()
            | InstanceVar()
            | Identifier()
            | SelfRef()
            | Const()
            | Symbol()
            | Str()
            | Other()
        ):
            return ()
        case _:
            assert_never(node)


def literal_text(node: Node | None) -> str | None:
    """Text of a string or symbol literal, else None."""
    match node:
        case Str(value=value):
            return value
        case Symbol(value=value):
            return value
        case _:
            return None
