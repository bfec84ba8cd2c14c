"""Tree-sitter parsing of Ruby source and spec files.

Converts the concrete tree-sitter-ruby tree into the node model in
``specparity.syntax.nodes``. Parsing never raises on malformed input:
tree-sitter always yields a tree, and syntax errors are only counted.

Usage::

    parser = RubyParser()
    parsed = parser.parse(Path("app/models/user.rb"))
    for node in walk(parsed.root):
        ...
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import tree_sitter

from specparity.config.constants import RUBY_EXTENSION
from specparity.core.errors import ParseError
from specparity.syntax.nodes import (
    Arm,
    Assign,
    Block,
    Call,
    Case,
    ClassDef,
    Conditional,
    Const,
    Defined,
    Identifier,
    Index,
    InstanceVar,
    Location,
    MethodDef,
    ModuleDef,
    Node,
    OpAssign,
    Other,
    Program,
    Return,
    SelfRef,
    SingletonClass,
    SingletonMethodDef,
    Str,
    Symbol,
    link_parents,
)

log = structlog.get_logger()

GRAMMAR_MODULE = "tree_sitter_ruby"

# Wrapper nodes whose named children are a plain statement sequence.
_SEQUENCE_TYPES = frozenset({"body_statement", "then", "else", "block_body", "program"})

_SKIPPED_TYPES = frozenset({"comment", "heredoc_body", "empty_statement"})


@dataclass
class ParsedSource:
    """Result of parsing one Ruby file."""

    path: Path
    text: str
    root: Program
    error_count: int
    total_nodes: int

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0


def _text(ts_node: Any) -> str:
    return ts_node.text.decode("utf-8", errors="replace") if ts_node.text else ""


def _name(ts_node: Any) -> str:
    name = ts_node.child_by_field_name("name")
    return _text(name) if name is not None else ""


def _location(ts_node: Any) -> Location:
    return Location(
        line=ts_node.start_point[0] + 1,
        column=ts_node.start_point[1],
        end_line=ts_node.end_point[0] + 1,
        end_column=ts_node.end_point[1],
    )


def _field_ids(ts_node: Any, names: tuple[str, ...]) -> set[int]:
    ids: set[int] = set()
    for name in names:
        for child in ts_node.children_by_field_name(name):
            ids.add(child.id)
    return ids


class _Converter:
    """Builds node-model variants from tree-sitter nodes."""

    def statements(self, ts_node: Any | None) -> tuple[Node, ...]:
        if ts_node is None:
            return ()
        if ts_node.type in _SEQUENCE_TYPES:
            return tuple(
                self.statement(child)
                for child in ts_node.named_children
                if child.type not in _SKIPPED_TYPES
            )
        return (self.statement(ts_node),)

    def statement(self, ts_node: Any) -> Node:
        # A bare identifier statement is a receiverless call (`private`, `helper`).
        if ts_node.type == "identifier":
            return Call(receiver=None, name=_text(ts_node), args=(), loc=_location(ts_node))
        return self.convert(ts_node)

    def body(self, ts_node: Any, *header_fields: str) -> tuple[Node, ...]:
        body = ts_node.child_by_field_name("body")
        if body is not None:
            return self.statements(body)
        # Older grammars inline the body; drop the header fields instead.
        header = _field_ids(ts_node, header_fields)
        return tuple(
            self.statement(child)
            for child in ts_node.named_children
            if child.id not in header and child.type not in _SKIPPED_TYPES
        )

    def optional(self, ts_node: Any | None) -> Node | None:
        return self.convert(ts_node) if ts_node is not None else None

    def required(self, ts_node: Any | None) -> Node:
        if ts_node is None:
            return Other(kind="missing")
        return self.convert(ts_node)

    def convert(self, ts_node: Any) -> Node:
        handler = getattr(self, f"_convert_{ts_node.type}", None)
        if handler is not None:
            return handler(ts_node)  # type: ignore[no-any-return]
        return Other(
            kind=ts_node.type,
            children=tuple(
                self.convert(child)
                for child in ts_node.named_children
                if child.type not in _SKIPPED_TYPES
            ),
            loc=_location(ts_node),
        )

    # -- declarations -------------------------------------------------------

    def _convert_program(self, ts_node: Any) -> Program:
        return Program(body=self.statements(ts_node), loc=_location(ts_node))

    def _convert_class(self, ts_node: Any) -> ClassDef:
        name = ts_node.child_by_field_name("name")
        superclass = ts_node.child_by_field_name("superclass")
        super_expr = None
        if superclass is not None and superclass.named_children:
            super_expr = self.convert(superclass.named_children[0])
        return ClassDef(
            name=_text(name) if name is not None else "",
            superclass=super_expr,
            body=self.body(ts_node, "name", "superclass"),
            loc=_location(ts_node),
        )

    def _convert_module(self, ts_node: Any) -> ModuleDef:
        name = ts_node.child_by_field_name("name")
        return ModuleDef(
            name=_text(name) if name is not None else "",
            body=self.body(ts_node, "name"),
            loc=_location(ts_node),
        )

    def _convert_singleton_class(self, ts_node: Any) -> SingletonClass:
        value = ts_node.child_by_field_name("value")
        return SingletonClass(
            target=self.convert(value) if value is not None else SelfRef(),
            body=self.body(ts_node, "value"),
            loc=_location(ts_node),
        )

    def _convert_method(self, ts_node: Any) -> MethodDef:
        return MethodDef(
            name=_name(ts_node),
            body=self.body(ts_node, "name", "parameters"),
            loc=_location(ts_node),
        )

    def _convert_singleton_method(self, ts_node: Any) -> SingletonMethodDef:
        receiver = ts_node.child_by_field_name("object")
        return SingletonMethodDef(
            receiver=self.convert(receiver) if receiver is not None else SelfRef(),
            name=_name(ts_node),
            body=self.body(ts_node, "object", "name", "parameters"),
            loc=_location(ts_node),
        )

    # -- calls and blocks ---------------------------------------------------

    def _convert_call(self, ts_node: Any) -> Call:
        method = ts_node.child_by_field_name("method")
        arguments = ts_node.child_by_field_name("arguments")
        block = ts_node.child_by_field_name("block")
        if block is None:
            block = next(
                (c for c in ts_node.named_children if c.type in ("do_block", "block")), None
            )
        args: tuple[Node, ...] = ()
        if arguments is not None:
            args = tuple(
                self.convert(child)
                for child in arguments.named_children
                if child.type not in _SKIPPED_TYPES
            )
        return Call(
            receiver=self.optional(ts_node.child_by_field_name("receiver")),
            name=_text(method) if method is not None else "call",
            args=args,
            block=self._block(block) if block is not None else None,
            loc=_location(ts_node),
        )

    def _block(self, ts_node: Any) -> Block:
        return Block(body=self.body(ts_node, "parameters"), loc=_location(ts_node))

    _convert_do_block = _block
    _convert_block = _block

    # -- control flow -------------------------------------------------------

    def _chain(self, ts_node: Any, kind: str, negated: bool) -> Conditional:
        arms = [
            Arm(
                condition=self.optional(ts_node.child_by_field_name("condition")),
                body=self.statements(ts_node.child_by_field_name("consequence")),
                loc=_location(ts_node),
            )
        ]
        orelse: tuple[Node, ...] | None = None
        alternative = ts_node.child_by_field_name("alternative")
        while alternative is not None:
            if alternative.type == "elsif":
                arms.append(
                    Arm(
                        condition=self.optional(alternative.child_by_field_name("condition")),
                        body=self.statements(alternative.child_by_field_name("consequence")),
                        loc=_location(alternative),
                    )
                )
                alternative = alternative.child_by_field_name("alternative")
            else:
                orelse = self.statements(alternative)
                alternative = None
        return Conditional(
            kind=kind, arms=tuple(arms), orelse=orelse, negated=negated, loc=_location(ts_node)
        )

    def _convert_if(self, ts_node: Any) -> Conditional:
        return self._chain(ts_node, "if", negated=False)

    def _convert_unless(self, ts_node: Any) -> Conditional:
        return self._chain(ts_node, "unless", negated=True)

    def _modifier(self, ts_node: Any, negated: bool) -> Conditional:
        body = ts_node.child_by_field_name("body")
        arm = Arm(
            condition=self.optional(ts_node.child_by_field_name("condition")),
            body=(self.statement(body),) if body is not None else (),
            loc=_location(ts_node),
        )
        return Conditional(kind="modifier", arms=(arm,), negated=negated, loc=_location(ts_node))

    def _convert_if_modifier(self, ts_node: Any) -> Conditional:
        return self._modifier(ts_node, negated=False)

    def _convert_unless_modifier(self, ts_node: Any) -> Conditional:
        return self._modifier(ts_node, negated=True)

    def _convert_conditional(self, ts_node: Any) -> Conditional:
        consequence = ts_node.child_by_field_name("consequence")
        alternative = ts_node.child_by_field_name("alternative")
        arm = Arm(
            condition=self.optional(ts_node.child_by_field_name("condition")),
            body=(self.convert(consequence),) if consequence is not None else (),
            loc=_location(ts_node),
        )
        return Conditional(
            kind="ternary",
            arms=(arm,),
            orelse=(self.convert(alternative),) if alternative is not None else (),
            loc=_location(ts_node),
        )

    def _case(self, ts_node: Any) -> Case:
        arms: list[Arm] = []
        orelse: tuple[Node, ...] | None = None
        for child in ts_node.named_children:
            if child.type in ("when", "in_clause"):
                patterns = tuple(
                    self.convert(pattern) for pattern in child.children_by_field_name("pattern")
                )
                arms.append(
                    Arm(
                        condition=Other(kind="patterns", children=patterns, loc=_location(child)),
                        body=self.statements(child.child_by_field_name("body")),
                        loc=_location(child),
                    )
                )
            elif child.type == "else":
                orelse = self.statements(child)
        return Case(
            subject=self.optional(ts_node.child_by_field_name("value")),
            arms=tuple(arms),
            orelse=orelse,
            loc=_location(ts_node),
        )

    _convert_case = _case
    _convert_case_match = _case

    def _convert_return(self, ts_node: Any) -> Return:
        values: list[Node] = []
        for child in ts_node.named_children:
            if child.type == "argument_list":
                values.extend(self.convert(arg) for arg in child.named_children)
            elif child.type not in _SKIPPED_TYPES:
                values.append(self.convert(child))
        value: Node | None = None
        if len(values) == 1:
            value = values[0]
        elif values:
            value = Other(kind="values", children=tuple(values), loc=_location(ts_node))
        return Return(value=value, loc=_location(ts_node))

    # -- assignments and expressions ----------------------------------------

    def _convert_operator_assignment(self, ts_node: Any) -> OpAssign:
        operator = ts_node.child_by_field_name("operator")
        return OpAssign(
            target=self.required(ts_node.child_by_field_name("left")),
            operator=_text(operator) if operator is not None else "",
            value=self.required(ts_node.child_by_field_name("right")),
            loc=_location(ts_node),
        )

    def _convert_assignment(self, ts_node: Any) -> Assign:
        return Assign(
            target=self.required(ts_node.child_by_field_name("left")),
            value=self.required(ts_node.child_by_field_name("right")),
            loc=_location(ts_node),
        )

    def _convert_unary(self, ts_node: Any) -> Node:
        operator = ts_node.child_by_field_name("operator")
        operand = ts_node.child_by_field_name("operand")
        converted = self.convert(operand) if operand is not None else Other(kind="missing")
        if operator is not None and operator.type == "defined?":
            return Defined(operand=converted, loc=_location(ts_node))
        return Other(kind="unary", children=(converted,), loc=_location(ts_node))

    def _convert_parenthesized_statements(self, ts_node: Any) -> Node:
        inner = [child for child in ts_node.named_children if child.type not in _SKIPPED_TYPES]
        if len(inner) == 1:
            return self.convert(inner[0])
        return Other(
            kind="parenthesized",
            children=tuple(self.convert(child) for child in inner),
            loc=_location(ts_node),
        )

    def _convert_element_reference(self, ts_node: Any) -> Index:
        receiver = ts_node.child_by_field_name("object")
        skip = _field_ids(ts_node, ("object",))
        return Index(
            receiver=self.convert(receiver) if receiver is not None else Other(kind="missing"),
            args=tuple(
                self.convert(child)
                for child in ts_node.named_children
                if child.id not in skip and child.type not in _SKIPPED_TYPES
            ),
            loc=_location(ts_node),
        )

    # -- leaves -------------------------------------------------------------

    def _convert_instance_variable(self, ts_node: Any) -> InstanceVar:
        return InstanceVar(name=_text(ts_node), loc=_location(ts_node))

    def _convert_identifier(self, ts_node: Any) -> Identifier:
        return Identifier(name=_text(ts_node), loc=_location(ts_node))

    def _convert_self(self, ts_node: Any) -> SelfRef:
        return SelfRef(loc=_location(ts_node))

    def _const(self, ts_node: Any) -> Const:
        return Const(name=_text(ts_node).lstrip(":"), loc=_location(ts_node))

    _convert_constant = _const
    _convert_scope_resolution = _const

    def _convert_simple_symbol(self, ts_node: Any) -> Symbol:
        return Symbol(value=_text(ts_node).lstrip(":"), loc=_location(ts_node))

    def _convert_hash_key_symbol(self, ts_node: Any) -> Symbol:
        return Symbol(value=_text(ts_node), loc=_location(ts_node))

    def _convert_delimited_symbol(self, ts_node: Any) -> Node:
        value = self._literal_content(ts_node)
        if value is None:
            return Other(kind="dsym", loc=_location(ts_node))
        return Symbol(value=value, loc=_location(ts_node))

    def _convert_string(self, ts_node: Any) -> Str:
        return Str(value=self._literal_content(ts_node), loc=_location(ts_node))

    @staticmethod
    def _literal_content(ts_node: Any) -> str | None:
        parts: list[str] = []
        for child in ts_node.named_children:
            if child.type == "interpolation":
                return None
            parts.append(_text(child))
        return "".join(parts)


@dataclass
class RubyParser:
    """Tree-sitter parser for Ruby files.

    The grammar is loaded lazily on first use and shared by every parse.
    """

    _parser: Any = field(default=None, repr=False)
    _language: Any = field(default=None, repr=False)

    def _get_language(self) -> Any:
        if self._language is None:
            try:
                module = importlib.import_module(GRAMMAR_MODULE)
                self._language = tree_sitter.Language(module.language())
            except (ImportError, AttributeError) as err:
                raise ParseError.grammar_unavailable("ruby", str(err)) from err
        return self._language

    def _get_parser(self) -> Any:
        if self._parser is None:
            self._parser = tree_sitter.Parser()
            self._parser.language = self._get_language()
        return self._parser

    def parse(self, path: Path, content: bytes | None = None) -> ParsedSource:
        """Parse a Ruby file.

        Args:
            path: Path to the file (must end in .rb)
            content: File content as bytes. If None, reads from path.

        Raises:
            ParseError: If the path is not a Ruby file or the grammar is missing.
        """
        if path.suffix != RUBY_EXTENSION:
            raise ParseError.unsupported_file(str(path))
        if content is None:
            content = path.read_bytes()
        return self._parse_bytes(path, content)

    def parse_text(self, text: str, path: Path | None = None) -> ParsedSource:
        """Parse in-memory Ruby text; ``path`` is only recorded."""
        return self._parse_bytes(path or Path("(string).rb"), text.encode("utf-8"))

    def _parse_bytes(self, path: Path, content: bytes) -> ParsedSource:
        tree = self._get_parser().parse(content)

        error_count = 0
        total_nodes = 0
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
            stack.extend(node.children)

        if error_count:
            log.debug("ruby.parse_errors", path=str(path), errors=error_count)

        root = _Converter().convert(tree.root_node)
        if not isinstance(root, Program):
            root = Program(body=(root,), loc=root.loc)
        link_parents(root)
        return ParsedSource(
            path=path,
            text=content.decode("utf-8", errors="replace"),
            root=root,
            error_count=error_count,
            total_nodes=total_nodes,
        )
