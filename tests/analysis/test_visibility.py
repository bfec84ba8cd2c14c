"""Tests for the visibility resolver.

Covers:
- ambient section markers (public/private/protected)
- targeted overrides before and after the definition
- inline modifiers
- type-level scopes (def self.x, class << self, class_methods)
- exclusions and nested helper units
"""

from __future__ import annotations

import pytest

from specparity.analysis.units import RoutineDefinition, collect_routines, unit_of
from specparity.analysis.visibility import (
    Visibility,
    VisibilityResolver,
    VisibilityState,
    count_public_routines,
)
from specparity.config.constants import DEFAULT_EXCLUDED_PATTERNS
from specparity.syntax.nodes import ClassDef
from specparity.syntax.ruby import RubyParser

PUBLIC = Visibility.PUBLIC
NON_PUBLIC = Visibility.NON_PUBLIC


@pytest.fixture
def resolver() -> VisibilityResolver:
    return VisibilityResolver(excluded_patterns=DEFAULT_EXCLUDED_PATTERNS)


def _resolve(parser: RubyParser, resolver: VisibilityResolver, source: str) -> dict[str, Visibility]:
    parsed = parser.parse_text(source)
    return {d.name: resolver.resolve(d) for d in collect_routines(parsed.root, "app/models/x.rb")}


class TestAmbientSections:
    """Zero-argument markers shift the cursor for later siblings."""

    def test_no_markers_is_public(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(parser, resolver, "class User\n  def a\n  end\n\n  def b\n  end\nend\n")
        assert result == {"a": PUBLIC, "b": PUBLIC}

    def test_private_section(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(
            parser,
            resolver,
            """\
class User
  def shown
  end

  private

  def hidden
  end
end
""",
        )
        assert result == {"shown": PUBLIC, "hidden": NON_PUBLIC}

    def test_protected_is_non_public(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(parser, resolver, "class User\n  protected\n\n  def peer\n  end\nend\n")
        assert result == {"peer": NON_PUBLIC}

    def test_last_marker_before_definition_wins(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser,
            resolver,
            """\
class User
  private

  def a
  end

  public

  def b
  end

  protected

  def c
  end
end
""",
        )
        assert result == {"a": NON_PUBLIC, "b": PUBLIC, "c": NON_PUBLIC}

    def test_marker_after_definition_has_no_effect(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(parser, resolver, "class User\n  def a\n  end\n\n  private\nend\n")
        assert result == {"a": PUBLIC}


class TestTargetedOverrides:
    """Markers naming routines apply regardless of position."""

    def test_override_after_definition(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(
            parser,
            resolver,
            "class User\n  def a\n  end\n\n  def b\n  end\n\n  private :a\nend\n",
        )
        assert result == {"a": NON_PUBLIC, "b": PUBLIC}

    def test_override_before_definition(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(parser, resolver, "class User\n  private :a\n\n  def a\n  end\nend\n")
        assert result == {"a": NON_PUBLIC}

    def test_override_beats_ambient_cursor(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser,
            resolver,
            """\
class User
  private

  def a
  end

  def b
  end

  public :a
end
""",
        )
        assert result == {"a": PUBLIC, "b": NON_PUBLIC}

    def test_string_argument(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(parser, resolver, "class User\n  def a\n  end\n  private 'a'\nend\n")
        assert result == {"a": NON_PUBLIC}

    def test_last_override_wins(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(
            parser, resolver, "class User\n  def a\n  end\n  private :a\n  public :a\nend\n"
        )
        assert result == {"a": PUBLIC}


class TestInlineModifiers:
    """``private def x`` wins outright."""

    def test_inline_private(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(parser, resolver, "class User\n  private def a\n    1\n  end\nend\n")
        assert result == {"a": NON_PUBLIC}

    def test_inline_public_inside_private_section(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser, resolver, "class User\n  private\n\n  public def a\n    1\n  end\nend\n"
        )
        assert result == {"a": PUBLIC}

    def test_inline_marker_does_not_shift_cursor(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser,
            resolver,
            "class User\n  private def a\n    1\n  end\n\n  def b\n  end\nend\n",
        )
        assert result == {"a": NON_PUBLIC, "b": PUBLIC}


class TestTypeLevelScopes:
    """Singleton definitions and type-level groupings."""

    def test_private_section_does_not_hide_singleton_def(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser, resolver, "class User\n  private\n\n  def self.find(id)\n  end\nend\n"
        )
        assert result == {"find": PUBLIC}

    def test_private_class_method(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(
            parser,
            resolver,
            "class User\n  def self.find(id)\n  end\n  private_class_method :find\nend\n",
        )
        assert result == {"find": NON_PUBLIC}

    def test_private_section_inside_singleton_class(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser,
            resolver,
            """\
class User
  class << self
    def build
    end

    private

    def cache
    end
  end

  def name
  end
end
""",
        )
        assert result == {"build": PUBLIC, "cache": NON_PUBLIC, "name": PUBLIC}

    def test_singleton_class_routine_hidden_by_unit_level_override(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser,
            resolver,
            """\
class User
  class << self
    def find_by_name(name)
    end
  end

  private_class_method :find_by_name
end
""",
        )
        assert result == {"find_by_name": NON_PUBLIC}

    def test_class_methods_block(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(
            parser,
            resolver,
            """\
module Trackable
  class_methods do
    def tracked
    end

    private

    def registry
    end
  end
end
""",
        )
        assert result == {"tracked": PUBLIC, "registry": NON_PUBLIC}

    def test_unit_section_does_not_leak_into_singleton_class(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        result = _resolve(
            parser,
            resolver,
            "class User\n  private\n\n  class << self\n    def build\n    end\n  end\nend\n",
        )
        assert result == {"build": PUBLIC}


class TestExclusions:
    """Names and locations that are never public."""

    def test_excluded_names(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(
            parser,
            resolver,
            """\
class User
  def initialize
  end

  def self.inherited(base)
  end

  def before_save_hook
  end

  def save
  end
end
""",
        )
        assert result == {
            "initialize": NON_PUBLIC,
            "inherited": NON_PUBLIC,
            "before_save_hook": NON_PUBLIC,
            "save": PUBLIC,
        }

    def test_nested_helper_unit(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        result = _resolve(
            parser,
            resolver,
            "class Report\n  def render\n  end\n\n  class Row\n    def cells\n    end\n  end\nend\n",
        )
        assert result == {"render": PUBLIC, "cells": NON_PUBLIC}

    def test_missing_location_is_non_public(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        parsed = parser.parse_text("class User\n  def name\n  end\nend\n")
        definition = next(collect_routines(parsed.root))
        located = RoutineDefinition(
            name=definition.name,
            scope=definition.scope,
            unit=definition.unit,
            loc=None,
            node=definition.node,
        )

        assert resolver.resolve(definition) is PUBLIC
        assert resolver.resolve(located) is NON_PUBLIC

    def test_is_public(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        parsed = parser.parse_text("class User\n  def name\n  end\nend\n")
        assert resolver.is_public(next(collect_routines(parsed.root)))


class TestVisibilityState:
    """The two-phase fold on its own."""

    def test_overrides_then_sections(self, parser: RubyParser) -> None:
        parsed = parser.parse_text("class User\n  private\n  public :a\n  def a\n  end\n  def b\n  end\nend\n")
        statements = parsed.root.body[0].body
        state = VisibilityState(
            markers={"public": PUBLIC, "private": NON_PUBLIC, "protected": NON_PUBLIC}
        )

        state.collect_overrides(statements)
        state.fold_sections(statements, stop=statements[-1])

        assert state.overrides == {"a": PUBLIC}
        assert state.cursor is NON_PUBLIC
        assert state.visibility_of("a") is PUBLIC
        assert state.visibility_of("b") is NON_PUBLIC

    def test_sections_disabled(self, parser: RubyParser) -> None:
        parsed = parser.parse_text("class User\n  private\nend\n")
        state = VisibilityState(markers={"private": NON_PUBLIC}, sections=False)

        state.fold_sections(parsed.root.body[0].body, stop=None)

        assert state.cursor is PUBLIC


class TestCountPublicRoutines:
    """Public instance routines declared directly in a unit."""

    def test_counts_only_public_instance_routines(
        self, parser: RubyParser, resolver: VisibilityResolver
    ) -> None:
        parsed = parser.parse_text(
            """\
class UserCreator
  def initialize(params)
  end

  def call
  end

  def self.call(params)
  end

  private

  def persist
  end
end
"""
        )
        klass = parsed.root.body[0]
        assert isinstance(klass, ClassDef)

        assert count_public_routines(unit_of(klass), resolver) == 1

    def test_two_public_routines(self, parser: RubyParser, resolver: VisibilityResolver) -> None:
        parsed = parser.parse_text("class Api\n  def get\n  end\n\n  def post\n  end\nend\n")
        klass = parsed.root.body[0]
        assert isinstance(klass, ClassDef)

        assert count_public_routines(unit_of(klass), resolver) == 2
