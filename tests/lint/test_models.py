"""Tests for lint result models."""

from __future__ import annotations

from specparity.lint.models import AnalysisResult, Diagnostic, FileResult, Severity


def _diagnostic(path: str = "app/models/user.rb", **kwargs: object) -> Diagnostic:
    return Diagnostic(path=path, line=1, message="Missing spec file.", source="Test/Check", **kwargs)  # type: ignore[arg-type]


class TestDiagnostic:
    """Diagnostic serialization."""

    def test_defaults(self) -> None:
        diagnostic = _diagnostic()
        assert diagnostic.severity is Severity.WARNING
        assert diagnostic.details == {}

    def test_to_dict(self) -> None:
        diagnostic = _diagnostic(
            column=2, code="insufficient_contexts", details={"branch_count": 3}
        )

        data = diagnostic.to_dict()

        assert data["severity"] == "warning"
        assert data["column"] == 2
        assert data["code"] == "insufficient_contexts"
        assert data["details"] == {"branch_count": 3}


class TestAnalysisResult:
    """Aggregation over file results."""

    def test_empty_is_clean(self) -> None:
        result = AnalysisResult()
        assert result.status == "clean"
        assert result.total_diagnostics == 0
        assert result.files_checked == 0

    def test_dirty(self) -> None:
        result = AnalysisResult(
            files=[
                FileResult(path="a.rb", status="dirty", diagnostics=[_diagnostic("a.rb")]),
                FileResult(path="b.rb", status="clean"),
                FileResult(path="c.rb", status="skipped"),
            ]
        )

        assert result.status == "dirty"
        assert result.total_diagnostics == 1
        assert result.files_checked == 2
        assert [d.path for d in result.diagnostics] == ["a.rb"]

    def test_error_wins(self) -> None:
        result = AnalysisResult(
            files=[
                FileResult(path="a.rb", status="dirty", diagnostics=[_diagnostic("a.rb")]),
                FileResult(path="b.rb", status="error", error_detail="boom"),
            ]
        )
        assert result.status == "error"

    def test_to_dict(self) -> None:
        result = AnalysisResult(
            files=[
                FileResult(path="a.rb", status="dirty", diagnostics=[_diagnostic("a.rb")]),
                FileResult(path="b.rb", status="error", error_detail="boom"),
            ],
            duration_seconds=0.12345,
        )

        data = result.to_dict()

        assert data["status"] == "error"
        assert data["files_checked"] == 2
        assert data["duration_seconds"] == 0.123
        assert len(data["diagnostics"]) == 1
        assert data["errors"] == [{"path": "b.rb", "error": "boom"}]
