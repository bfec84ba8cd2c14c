"""Lint module - the RSpecParity checks, their registry and the check runner."""

# Import definitions to register all checks
from specparity.lint import definitions as _definitions  # noqa: F401
from specparity.lint.checks import AnalysisContext, Check, registry
from specparity.lint.models import AnalysisResult, Diagnostic, FileResult, Severity
from specparity.lint.ops import AnalysisOps

__all__ = [
    "AnalysisContext",
    "AnalysisOps",
    "AnalysisResult",
    "Check",
    "Diagnostic",
    "FileResult",
    "Severity",
    "registry",
]
