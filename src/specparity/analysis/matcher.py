"""Lexical coverage matching of routines against spec file text.

Each strategy is a single regular expression; they are tried in order and
the first match wins. Aliases from ``DescribeAliases`` are tried after every
strategy has failed for the routine's own header key.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from specparity.analysis.locator import SpecFileCache, declares_unit
from specparity.analysis.units import Scope

log = structlog.get_logger()

SIGILS = ("#", ".")

VERIFICATION_VERBS = r"(?:tests?|checks?|verifies?|validates?)"

# `it`, `example` or `specify` opening a line.
EXAMPLE_PATTERN = re.compile(r"^\s*(?:it|example|specify)\b", re.MULTILINE)


@dataclass(frozen=True)
class HeaderKey:
    """A scope-qualified routine header such as ``#perform``."""

    scope: Scope
    name: str

    @classmethod
    def parse(cls, key: str) -> HeaderKey | None:
        key = key.strip()
        if len(key) < 2 or key[0] not in SIGILS:
            return None
        return cls(scope=Scope.from_sigil(key[0]), name=key[1:])

    @property
    def opposite(self) -> HeaderKey:
        return HeaderKey(scope=self.scope.opposite, name=self.name)

    def __str__(self) -> str:
        return f"{self.scope.sigil}{self.name}"


@dataclass(frozen=True)
class DescribeAliasTable:
    """Header key → alternate header keys that also document it.

    Lookup is keyed by the routine's own header; an alias does not make the
    aliased routine count as documenting the original.
    """

    entries: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_config(
        cls, mapping: Mapping[str, str | Sequence[str]] | None
    ) -> DescribeAliasTable:
        entries: dict[str, tuple[str, ...]] = {}
        for key, value in (mapping or {}).items():
            values = [value] if isinstance(value, str) else list(value)
            entries[str(key)] = tuple(str(v) for v in values)
        return cls(entries=entries)

    def aliases_for(self, key: HeaderKey | str) -> list[HeaderKey]:
        aliases: list[HeaderKey] = []
        for raw in self.entries.get(str(key), ()):
            parsed = HeaderKey.parse(raw)
            if parsed is None:
                log.debug("matcher.alias_ignored", key=str(key), alias=raw)
                continue
            aliases.append(parsed)
        return aliases

    def __bool__(self) -> bool:
        return bool(self.entries)


@dataclass(frozen=True)
class PatternStrategy:
    """One layer of coverage matching."""

    name: str
    build: Callable[[HeaderKey], re.Pattern[str]]

    def matches(self, text: str, key: HeaderKey) -> bool:
        return self.build(key).search(text) is not None


def _quoted(body: str) -> str:
    return rf"""['"]{body}['"]"""


def _name_end() -> str:
    return r"(?![A-Za-z0-9_?!=])"


STRATEGIES: tuple[PatternStrategy, ...] = (
    PatternStrategy(
        "describe_header",
        lambda key: re.compile(rf"\b[fx]?describe\s+{_quoted(re.escape(str(key)))}"),
    ),
    PatternStrategy(
        "context_header",
        lambda key: re.compile(rf"\b[fx]?context\s+{_quoted(re.escape(str(key)))}"),
    ),
    PatternStrategy(
        "verification_phrase",
        lambda key: re.compile(
            rf"""\bit\s+['"]{VERIFICATION_VERBS}\s+{re.escape(key.name)}{_name_end()}""",
            re.IGNORECASE,
        ),
    ),
    PatternStrategy(
        "bare_describe",
        lambda key: re.compile(rf"\b[fx]?describe\s+{_quoted(re.escape(key.name))}"),
    ),
)


def matching_strategy(
    text: str, key: HeaderKey, strategies: Sequence[PatternStrategy] = STRATEGIES
) -> PatternStrategy | None:
    for strategy in strategies:
        if strategy.matches(text, key):
            return strategy
    return None


def covers(
    candidates: Iterable[Path],
    name: str,
    scope: Scope,
    aliases: DescribeAliasTable,
    cache: SpecFileCache,
) -> bool:
    """True when any candidate documents ``name`` directly or through an alias."""
    key = HeaderKey(scope=scope, name=name)
    texts = [(path, cache.read_text(path)) for path in candidates]
    for path, text in texts:
        strategy = matching_strategy(text, key)
        if strategy is not None:
            log.debug("matcher.covered", key=str(key), path=str(path), strategy=strategy.name)
            return True
    for alias in aliases.aliases_for(key):
        for path, text in texts:
            if matching_strategy(text, alias) is not None:
                log.debug("matcher.covered_by_alias", key=str(key), alias=str(alias), path=str(path))
                return True
    return False


def expected_headers(name: str, scope: Scope, aliases: DescribeAliasTable) -> list[str]:
    """Both sigil forms of ``name`` followed by its configured aliases."""
    key = HeaderKey(scope=scope, name=name)
    sigil_forms = (HeaderKey(Scope.INSTANCE, name), HeaderKey(Scope.TYPE, name))
    headers: list[str] = []
    for candidate in (*sigil_forms, *aliases.aliases_for(key)):
        header = f"describe '{candidate}'"
        if header not in headers:
            headers.append(header)
    return headers


def has_examples_for_unit(
    candidates: Iterable[Path], unit_name: str, cache: SpecFileCache
) -> bool:
    """Relaxed coverage: some candidate describes the unit and has an example."""
    names = {unit_name, unit_name.rsplit("::", 1)[-1]}
    for path in candidates:
        if not EXAMPLE_PATTERN.search(cache.read_text(path)):
            continue
        root = cache.parse(path).root
        if any(declares_unit(root, name) for name in names):
            return True
    return False
