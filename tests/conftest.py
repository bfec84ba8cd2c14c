"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides the project-tree fixtures shared by the analysis and lint tests.
"""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local specparity package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of specparity modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("specparity"):
        del sys.modules[module_name]

from specparity.syntax.ruby import RubyParser  # noqa: E402

WriteFile = Callable[[str, str], Path]


@pytest.fixture(scope="session")
def parser() -> RubyParser:
    """One tree-sitter Ruby parser for the whole session."""
    return RubyParser()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Empty Rails-style project root."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def write_file(project: Path) -> WriteFile:
    """Write ``content`` to ``relative`` under the project root and return its path."""

    def _write(relative: str, content: str) -> Path:
        path = project / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write
