"""Tests for specparity check command."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

from click.testing import CliRunner

from specparity.cli.main import cli
from specparity.config.constants import FILE_HAS_SPEC

runner = CliRunner()

WriteFile = Callable[[str, str], Path]


class TestCli:
    """Group-level options."""

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_lists_check(self) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "check" in result.output


class TestCheckCommand:
    """specparity check command tests."""

    def test_given_clean_project_when_check_then_exits_zero(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """A project whose files all have specs passes."""
        # Given
        write_file("app/models/user.rb", "class User\nend\n")
        write_file("spec/models/user_spec.rb", "RSpec.describe User do\nend\n")

        # When
        result = runner.invoke(cli, ["check", "--root", str(project)])

        # Then
        assert result.exit_code == 0, result.output
        assert "[RSpecParity/" not in result.output

    def test_given_missing_spec_when_check_then_reports_and_exits_one(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """Offenses are printed as path:line:col lines."""
        # Given
        write_file("app/models/user.rb", "class User\nend\n")

        # When
        result = runner.invoke(cli, ["check", "--root", str(project)])

        # Then
        assert result.exit_code == 1
        assert (
            "app/models/user.rb:1:1: [RSpecParity/FileHasSpec] "
            "Missing spec file. Expected spec/models/user_spec.rb"
        ) in result.output

    def test_given_json_flag_when_check_then_outputs_json(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """--json prints the analysis result as JSON."""
        # Given
        write_file("app/models/user.rb", "class User\nend\n")

        # When
        result = runner.invoke(cli, ["check", "--root", str(project), "--json"])

        # Then
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["status"] == "dirty"
        assert data["files_checked"] == 1
        assert data["diagnostics"][0]["source"] == FILE_HAS_SPEC
        assert data["diagnostics"][0]["code"] == "missing_spec_file"

    def test_given_paths_when_check_then_limits_to_paths(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """Positional paths restrict the run."""
        # Given
        write_file("app/models/user.rb", "class User\nend\n")
        services = project / "app/services"
        write_file("app/services/worker.rb", "class Worker\nend\n")
        write_file("spec/services/worker_spec.rb", "RSpec.describe Worker do\nend\n")

        # When
        result = runner.invoke(cli, ["check", "--root", str(project), str(services)])

        # Then
        assert result.exit_code == 0, result.output

    def test_given_check_option_when_check_then_runs_only_that_check(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """--check selects checks by ID."""
        # Given
        write_file("app/models/user.rb", "class User\nend\n")

        # When
        result = runner.invoke(
            cli,
            ["check", "--root", str(project), "--check", "RSpecParity/PublicMethodHasSpec"],
        )

        # Then
        assert result.exit_code == 0, result.output

    def test_given_unknown_check_when_check_then_fails(self, project: Path) -> None:
        """Unknown check IDs are reported as errors."""
        result = runner.invoke(cli, ["check", "--root", str(project), "--check", "Nope/Nope"])

        assert result.exit_code == 1
        assert "unknown check" in result.output

    def test_given_invalid_config_when_check_then_fails(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """Broken YAML becomes a click error."""
        # Given
        write_file(".specparity.yml", "logging: [unclosed\n")

        # When
        result = runner.invoke(cli, ["check", "--root", str(project)])

        # Then
        assert result.exit_code == 1
        assert "Failed to parse config" in result.output

    def test_given_config_disables_check_when_check_then_not_reported(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """Enabled: false in the config switches a check off."""
        # Given
        write_file(".specparity.yml", "RSpecParity/FileHasSpec:\n  Enabled: false\n")
        write_file("app/models/user.rb", "class User\nend\n")

        # When
        result = runner.invoke(cli, ["check", "--root", str(project)])

        # Then
        assert result.exit_code == 0, result.output

    def test_given_verbose_flag_when_check_then_runs(
        self, project: Path, write_file: WriteFile
    ) -> None:
        """-v enables debug logging without changing the verdict."""
        write_file("app/models/user.rb", "class User\nend\n")

        result = runner.invoke(cli, ["-v", "check", "--root", str(project)])

        assert result.exit_code == 1
