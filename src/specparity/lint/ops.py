"""Analysis operations - run the registered checks over a set of files."""

from __future__ import annotations

import time
from collections.abc import Iterable
from pathlib import Path
from typing import Literal

import structlog

from specparity.analysis.locator import SpecFileCache, is_checkable
from specparity.config.constants import RUBY_EXTENSION
from specparity.config.models import SpecParityConfig
from specparity.core.errors import ConfigError, InternalError, SpecParityError
from specparity.core.progress import progress
from specparity.lint.checks import AnalysisContext, Check, registry
from specparity.lint.models import AnalysisResult, Diagnostic, FileResult
from specparity.syntax.ruby import RubyParser

log = structlog.get_logger()


class AnalysisOps:
    """Check operations for a project.

    Every file gets its own ``AnalysisContext`` and spec cache, so files are
    independent of each other. A failure in one file is recorded in its
    ``FileResult`` and the run carries on.
    """

    def __init__(
        self,
        repo_root: Path,
        config: SpecParityConfig | None = None,
        parser: RubyParser | None = None,
    ) -> None:
        self._repo_root = repo_root
        self._config = config or SpecParityConfig()
        self._parser = parser or RubyParser()

    def check(
        self,
        *,
        paths: list[str] | None = None,
        checks: list[str] | None = None,
    ) -> AnalysisResult:
        """Run checks over Ruby files.

        Args:
            paths: Files or directories to check (default: entire repo)
            checks: Specific check IDs to run (default: all enabled)

        Returns:
            AnalysisResult with one FileResult per discovered file

        Raises:
            ConfigError: If an unknown check ID is requested.
            ParseError: If the Ruby grammar cannot be loaded.
        """
        start_time = time.time()
        checks_to_run = self._resolve_checks(checks)
        files = self._discover(self._resolve_paths(paths))
        log.debug("ops.check_start", files=len(files), checks=[c.check_id for c in checks_to_run])

        results = [
            self.check_file(path, checks_to_run)
            for path in progress(files, desc="Checking", unit="files")
        ]

        result = AnalysisResult(files=results, duration_seconds=time.time() - start_time)
        log.info(
            "ops.check_done",
            files=result.files_checked,
            diagnostics=result.total_diagnostics,
            status=result.status,
        )
        return result

    def check_file(self, path: Path, checks: Iterable[Check]) -> FileResult:
        """Run ``checks`` against one source file."""
        start_time = time.time()
        checks = list(checks)
        if not is_checkable(path):
            return FileResult(path=str(path), status="skipped")

        diagnostics: list[Diagnostic] = []
        try:
            parsed = self._parser.parse(path)
            context = AnalysisContext(
                parsed=parsed,
                config=self._config,
                cache=SpecFileCache(parser=self._parser),
            )
            for check in checks:
                diagnostics.extend(check.run(context))
        except SpecParityError:
            raise
        except Exception as e:
            failure = InternalError.unexpected(f"{type(e).__name__}: {e}", path=str(path))
            log.error("ops.file_failed", path=str(path), error=failure.message)
            return FileResult(
                path=str(path),
                status="error",
                diagnostics=diagnostics,
                checks_run=[c.check_id for c in checks],
                duration_seconds=time.time() - start_time,
                error_detail=failure.message,
            )

        status: Literal["clean", "dirty"] = "dirty" if diagnostics else "clean"
        return FileResult(
            path=str(path),
            status=status,
            diagnostics=diagnostics,
            checks_run=[c.check_id for c in checks],
            duration_seconds=time.time() - start_time,
        )

    def _resolve_checks(self, check_ids: list[str] | None) -> list[Check]:
        if not check_ids:
            return registry.enabled(self._config)
        resolved: list[Check] = []
        for check_id in check_ids:
            check = registry.get(check_id)
            if check is None:
                known = ", ".join(c.check_id for c in registry.all())
                raise ConfigError.invalid_value("checks", check_id, f"unknown check; known: {known}")
            resolved.append(check)
        return resolved

    def _resolve_paths(self, paths: list[str] | None) -> list[Path]:
        """Resolve paths to check."""
        if not paths:
            return [self._repo_root]
        return [self._repo_root / p for p in paths]

    def _discover(self, paths: list[Path]) -> list[Path]:
        """Ruby files under ``paths``, sorted and de-duplicated."""
        found: dict[Path, None] = {}
        for path in paths:
            if path.is_dir():
                for file in sorted(path.rglob(f"*{RUBY_EXTENSION}")):
                    if file.is_file():
                        found[file] = None
            elif path.suffix == RUBY_EXTENSION and path.is_file():
                found[path] = None
            else:
                log.debug("ops.path_ignored", path=str(path))
        return list(found)
