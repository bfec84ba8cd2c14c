"""Check registry and the per-file analysis context."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from specparity.analysis.locator import SpecCandidates, SpecFileCache, SpecLocator
from specparity.config.models import CheckConfig, SpecParityConfig
from specparity.lint.models import Diagnostic
from specparity.syntax.ruby import ParsedSource


@dataclass
class AnalysisContext:
    """Everything one source file's checks share.

    The spec cache and located candidates are per analyzed file; nothing is
    shared between files.
    """

    parsed: ParsedSource
    config: SpecParityConfig
    cache: SpecFileCache = field(default_factory=SpecFileCache)
    _candidates: dict[str, SpecCandidates] = field(default_factory=dict, repr=False)

    @property
    def path(self) -> Path:
        return self.parsed.path

    @property
    def locator(self) -> SpecLocator:
        return SpecLocator(cache=self.cache)

    def candidates_for(self, unit_name: str) -> SpecCandidates:
        if unit_name not in self._candidates:
            self._candidates[unit_name] = self.locator.locate(self.path, unit_name)
        return self._candidates[unit_name]


CheckRunner = Callable[[AnalysisContext], Iterable[Diagnostic]]


@dataclass
class Check:
    """Definition of a check."""

    check_id: str  # "RSpecParity/FileHasSpec"
    name: str
    section: str  # attribute of SpecParityConfig holding this check's options
    description: str = ""

    # Runner function (set by register)
    _runner: CheckRunner | None = None

    def options(self, config: SpecParityConfig) -> CheckConfig:
        options: CheckConfig = getattr(config, self.section)
        return options

    def is_enabled(self, config: SpecParityConfig) -> bool:
        return self.options(config).enabled

    def run(self, context: AnalysisContext) -> list[Diagnostic]:
        """Run the check against one file."""
        if self._runner is None:
            return []
        return list(self._runner(context))


class CheckRegistry:
    """Registry of checks."""

    def __init__(self) -> None:
        self._checks: dict[str, Check] = {}

    def register(self, check: Check, runner: CheckRunner | None = None) -> None:
        """Register a check."""
        if runner is not None:
            check._runner = runner
        self._checks[check.check_id] = check

    def get(self, check_id: str) -> Check | None:
        """Get check by ID."""
        return self._checks.get(check_id)

    def all(self) -> list[Check]:
        """Get all registered checks."""
        return list(self._checks.values())

    def enabled(self, config: SpecParityConfig) -> list[Check]:
        """Checks switched on in ``config``, in registration order."""
        return [c for c in self._checks.values() if c.is_enabled(config)]

    def clear(self) -> None:
        """Clear all registered checks."""
        self._checks.clear()


# Global registry
registry = CheckRegistry()
