"""Lint models - diagnostics and results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal


class Severity(Enum):
    """Diagnostic severity level."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single finding from one check."""

    path: str
    line: int
    message: str
    source: str  # check that produced this
    severity: Severity = Severity.WARNING
    column: int | None = None
    end_line: int | None = None
    end_column: int | None = None
    code: str | None = None  # "missing_spec_file", "missing_method_spec", ...
    details: dict[str, int] = field(default_factory=dict)  # branch_count, context_count, deficit

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass
class FileResult:
    """Result from checking a single source file."""

    path: str
    status: Literal["clean", "dirty", "error", "skipped"]
    diagnostics: list[Diagnostic] = field(default_factory=list)
    checks_run: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    error_detail: str | None = None  # If status=="error"


@dataclass
class AnalysisResult:
    """Aggregated result from a check run."""

    files: list[FileResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]

    @property
    def total_diagnostics(self) -> int:
        return sum(len(f.diagnostics) for f in self.files)

    @property
    def files_checked(self) -> int:
        return sum(1 for f in self.files if f.status != "skipped")

    @property
    def status(self) -> Literal["clean", "dirty", "error"]:
        if any(f.status == "error" for f in self.files):
            return "error"
        if any(f.status == "dirty" for f in self.files):
            return "dirty"
        return "clean"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "files_checked": self.files_checked,
            "duration_seconds": round(self.duration_seconds, 3),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "errors": [
                {"path": f.path, "error": f.error_detail}
                for f in self.files
                if f.status == "error"
            ],
        }
