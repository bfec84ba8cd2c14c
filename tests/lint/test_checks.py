"""Tests for the check registry and per-file analysis context."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from specparity.config.constants import FILE_HAS_SPEC, PUBLIC_METHOD_HAS_SPEC, SUFFICIENT_CONTEXTS
from specparity.config.models import FileHasSpecConfig, SpecParityConfig
from specparity.lint.checks import AnalysisContext, Check, CheckRegistry
from specparity.lint.definitions import registry
from specparity.lint.models import Diagnostic
from specparity.syntax.ruby import RubyParser

WriteFile = Callable[[str, str], Path]


class TestRegisteredChecks:
    """The three RSpecParity checks."""

    def test_registration_order(self) -> None:
        assert [c.check_id for c in registry.all()] == [
            FILE_HAS_SPEC,
            PUBLIC_METHOD_HAS_SPEC,
            SUFFICIENT_CONTEXTS,
        ]

    def test_all_checks_have_required_fields(self) -> None:
        for check in registry.all():
            assert check.name, f"Check {check.check_id} missing name"
            assert check.description, f"Check {check.check_id} missing description"
            assert check._runner is not None, f"Check {check.check_id} missing runner"

    def test_sections_exist_on_config(self) -> None:
        config = SpecParityConfig()
        for check in registry.all():
            assert check.options(config) is getattr(config, check.section)

    def test_enabled_respects_config(self) -> None:
        config = SpecParityConfig(file_has_spec=FileHasSpecConfig(enabled=False))
        assert [c.check_id for c in registry.enabled(config)] == [
            PUBLIC_METHOD_HAS_SPEC,
            SUFFICIENT_CONTEXTS,
        ]

    def test_unknown_check(self) -> None:
        assert registry.get("RSpecParity/Unknown") is None


class TestCheckRegistry:
    """Registry mechanics on a private instance."""

    def test_register_get_clear(self) -> None:
        local = CheckRegistry()
        check = Check(check_id="Test/Noop", name="Noop", section="file_has_spec")

        local.register(check, runner=lambda _context: [])

        assert local.get("Test/Noop") is check
        assert local.all() == [check]
        local.clear()
        assert local.all() == []

    def test_check_without_runner_reports_nothing(
        self, parser: RubyParser, write_file: WriteFile
    ) -> None:
        path = write_file("app/models/user.rb", "class User\nend\n")
        context = AnalysisContext(parsed=parser.parse(path), config=SpecParityConfig())

        assert Check(check_id="Test/Empty", name="Empty", section="file_has_spec").run(context) == []

    def test_run_collects_runner_output(self, parser: RubyParser, write_file: WriteFile) -> None:
        path = write_file("app/models/user.rb", "class User\nend\n")
        context = AnalysisContext(parsed=parser.parse(path), config=SpecParityConfig())
        diagnostic = Diagnostic(path=str(path), line=1, message="hello", source="Test/Echo")
        check = Check(check_id="Test/Echo", name="Echo", section="file_has_spec")
        CheckRegistry().register(check, runner=lambda _context: iter([diagnostic]))

        assert check.run(context) == [diagnostic]


class TestAnalysisContext:
    """Per-file candidate memo."""

    def test_candidates_are_memoized(
        self, parser: RubyParser, project: Path, write_file: WriteFile
    ) -> None:
        path = write_file("app/models/user.rb", "class User\nend\n")
        write_file("spec/models/user_spec.rb", "RSpec.describe User do\nend\n")
        context = AnalysisContext(parsed=parser.parse(path), config=SpecParityConfig())

        first = context.candidates_for("User")

        assert list(first) == [project / "spec/models/user_spec.rb"]
        assert context.candidates_for("User") is first
        assert context.path == path
