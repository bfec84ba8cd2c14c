"""Syntax tree model and the Ruby parser adapter."""

from specparity.syntax.nodes import Location, Node, children, descendants, link_parents, walk
from specparity.syntax.ruby import ParsedSource, RubyParser

__all__ = [
    "Location",
    "Node",
    "ParsedSource",
    "RubyParser",
    "children",
    "descendants",
    "link_parents",
    "walk",
]
