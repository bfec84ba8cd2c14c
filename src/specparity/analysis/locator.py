"""Spec file discovery.

Maps ``app/<kind>/<name>.rb`` to ``spec/<kind>/<name>_spec.rb`` and finds
supplementary ``<name>_*_spec.rb`` files that declare the same unit.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePath

import structlog

from specparity.config.constants import (
    COVERED_DIRECTORIES,
    RUBY_EXTENSION,
    SOURCE_ROOT,
    SPEC_ROOT,
    SPEC_SUFFIX,
)
from specparity.syntax.nodes import Call, ClassDef, Const, ModuleDef, Node, Program
from specparity.syntax.ruby import ParsedSource, RubyParser

log = structlog.get_logger()

SPEC_FILE_SUFFIX = f"{SPEC_SUFFIX}{RUBY_EXTENSION}"


def _root_index(path: PurePath, *segments: str) -> int | None:
    """Index of the root segment, searched from the right.

    A segment directly followed by a covered directory wins, so a project
    that itself lives under an ``app`` directory still resolves to its own
    source root. Otherwise the rightmost segment is used.
    """
    parts = path.parts[:-1]
    fallback: int | None = None
    for index in range(len(parts) - 1, -1, -1):
        if parts[index] not in segments:
            continue
        if index + 1 < len(parts) and parts[index + 1] in COVERED_DIRECTORIES:
            return index
        if fallback is None:
            fallback = index
    return fallback


def is_spec_file(path: PurePath) -> bool:
    return path.name.endswith(SPEC_FILE_SUFFIX)


def expected_spec_path(source_path: Path) -> Path | None:
    """``.../app/models/user.rb`` → ``.../spec/models/user_spec.rb``.

    Returns None for spec files and paths without an ``app`` segment.
    """
    if is_spec_file(source_path) or source_path.suffix != RUBY_EXTENSION:
        return None
    index = _root_index(source_path, SOURCE_ROOT)
    if index is None:
        return None
    parts = list(source_path.parts)
    parts[index] = SPEC_ROOT
    parts[-1] = f"{source_path.stem}{SPEC_FILE_SUFFIX}"
    return Path(*parts)


def is_checkable(source_path: PurePath) -> bool:
    """True for Ruby files under ``app/<covered dir>/``."""
    if is_spec_file(source_path) or source_path.suffix != RUBY_EXTENSION:
        return False
    index = _root_index(source_path, SOURCE_ROOT)
    if index is None or index + 2 >= len(source_path.parts):
        return False
    return source_path.parts[index + 1] in COVERED_DIRECTORIES


def project_relative(path: PurePath, source_path: PurePath | None = None) -> str:
    """Path from its ``app``/``spec`` segment onwards, for messages.

    With ``source_path`` the project root is taken from its ``app`` segment,
    so a ``spec`` directory above the project does not confuse the cut.
    """
    if source_path is not None:
        index = _root_index(source_path, SOURCE_ROOT)
        if index is not None and path.parts[:index] == source_path.parts[:index]:
            return PurePath(*path.parts[index:]).as_posix()
    index = _root_index(path, SOURCE_ROOT, SPEC_ROOT)
    if index is None:
        return path.as_posix()
    return PurePath(*path.parts[index:]).as_posix()


def app_relative(path: PurePath) -> str:
    index = _root_index(path, SOURCE_ROOT)
    if index is None:
        return path.as_posix()
    return PurePath(*path.parts[index:]).as_posix()


def _expand_braces(pattern: str) -> list[str]:
    """``app/{models,services}/*`` → one pattern per alternative."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    for end in range(start, len(pattern)):
        if pattern[end] == "{":
            depth += 1
        elif pattern[end] == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]

    alternatives: list[str] = []
    depth = 0
    current = start + 1
    for index in range(start + 1, end):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            alternatives.append(pattern[current:index])
            current = index + 1
    alternatives.append(pattern[current:end])

    head, tail = pattern[:start], pattern[end + 1 :]
    return [
        expanded
        for alternative in alternatives
        for expanded in _expand_braces(f"{head}{alternative}{tail}")
    ]


def _match_segments(parts: Sequence[str], segments: Sequence[str]) -> bool:
    if not segments:
        return not parts
    head = segments[0]
    if head == "**" and len(segments) > 1:
        # ``**/`` spans zero or more whole directories
        return any(_match_segments(parts[skip:], segments[1:]) for skip in range(len(parts) + 1))
    if not parts:
        return False
    segment = "*" if head == "**" else head
    return fnmatch.fnmatchcase(parts[0], segment) and _match_segments(parts[1:], segments[1:])


def matches_glob(path: str, pattern: str) -> bool:
    """Path-aware glob match.

    ``*``, ``?`` and ``[...]`` stay within one path segment, ``**/`` matches
    zero or more directories and ``{a,b}`` expands to alternatives.
    """
    parts = path.split("/")
    return any(
        _match_segments(parts, expanded.split("/")) for expanded in _expand_braces(pattern)
    )


def matches_skip_path(source_path: PurePath, patterns: Sequence[str]) -> bool:
    """True when any pattern matches the absolute or the ``app/``-relative path."""
    if not patterns:
        return False
    candidates = (source_path.as_posix(), app_relative(source_path))
    return any(matches_glob(path, pattern) for pattern in patterns for path in candidates)


@dataclass
class SpecFileCache:
    """Per analyzed file memo of spec reads and parses.

    Unreadable files read as empty text so they simply never match.
    """

    parser: RubyParser = field(default_factory=RubyParser)
    _exists: dict[Path, bool] = field(default_factory=dict, repr=False)
    _texts: dict[Path, str] = field(default_factory=dict, repr=False)
    _trees: dict[Path, ParsedSource] = field(default_factory=dict, repr=False)

    def exists(self, path: Path) -> bool:
        if path not in self._exists:
            self._exists[path] = path.is_file()
        return self._exists[path]

    def read_text(self, path: Path) -> str:
        if path not in self._texts:
            try:
                self._texts[path] = path.read_text(encoding="utf-8", errors="replace")
            except OSError as err:
                log.warning("spec_cache.read_failed", path=str(path), error=str(err))
                self._texts[path] = ""
        return self._texts[path]

    def parse(self, path: Path) -> ParsedSource:
        if path not in self._trees:
            self._trees[path] = self.parser.parse_text(self.read_text(path), path)
        return self._trees[path]


@dataclass(frozen=True)
class SpecCandidates:
    """Spec files applicable to one unit. Empty means nothing to check against."""

    base_path: Path | None
    paths: tuple[Path, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.paths)

    def __iter__(self) -> Iterator[Path]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    @property
    def primary(self) -> Path | None:
        """Path named in messages: the first candidate, else the base path."""
        return self.paths[0] if self.paths else self.base_path


def _describe_target(node: Call) -> str | None:
    """Constant named by ``describe Foo`` / ``RSpec.describe Foo``."""
    if node.name != "describe" or not node.args:
        return None
    if node.receiver is not None and not (
        isinstance(node.receiver, Const) and node.receiver.name == "RSpec"
    ):
        return None
    first = node.args[0]
    return first.name if isinstance(first, Const) else None


def _unit_headers(statements: tuple[Node, ...], unit_name: str, prefix: str) -> Iterator[Call]:
    for statement in statements:
        if isinstance(statement, Call):
            target = _describe_target(statement)
            if target is not None and f"{prefix}{target.lstrip(':')}" == unit_name:
                yield statement
        elif isinstance(statement, ModuleDef | ClassDef):
            wrapper = f"{prefix}{statement.name.lstrip(':')}::"
            if unit_name.startswith(wrapper):
                yield from _unit_headers(statement.body, unit_name, wrapper)


def unit_headers(tree: Program, unit_name: str) -> list[Call]:
    """Top-level ``describe`` calls naming ``unit_name``.

    Accepts ``describe Admin::User`` directly or inside namespace wrappers
    (``module Admin`` + ``describe User``).
    """
    return list(_unit_headers(tree.body, unit_name, ""))


def declares_unit(tree: Program, unit_name: str) -> bool:
    return bool(unit_headers(tree, unit_name))


@dataclass
class SpecLocator:
    """Resolves the spec files applicable to a source file's unit."""

    cache: SpecFileCache = field(default_factory=SpecFileCache)

    def wildcard_paths(self, base_path: Path) -> list[Path]:
        stem = base_path.name[: -len(SPEC_FILE_SUFFIX)]
        return sorted(base_path.parent.glob(f"{stem}_*{SPEC_FILE_SUFFIX}"))

    def locate(self, source_path: Path, unit_name: str | None) -> SpecCandidates:
        base_path = expected_spec_path(source_path)
        if base_path is None:
            return SpecCandidates(base_path=None)

        paths: list[Path] = []
        if self.cache.exists(base_path):
            paths.append(base_path)

        if unit_name:
            for candidate in self.wildcard_paths(base_path):
                if candidate in paths or not self.cache.exists(candidate):
                    continue
                if declares_unit(self.cache.parse(candidate).root, unit_name):
                    paths.append(candidate)
                else:
                    log.debug(
                        "locator.wildcard_rejected", path=str(candidate), unit=unit_name
                    )

        return SpecCandidates(base_path=base_path, paths=tuple(paths))
