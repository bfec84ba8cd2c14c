"""Configuration constants.

This module contains fixed conventions that are NOT user-configurable: the
Rails directory layout, the spec file naming scheme, and method names that
are never part of a unit's public contract.

For configurable values, see models.py.
"""

# =============================================================================
# Path Conventions
# =============================================================================

SOURCE_ROOT = "app"
"""Path segment that marks the source root of a project."""

SPEC_ROOT = "spec"
"""Path segment substituted for SOURCE_ROOT to find spec files."""

SPEC_SUFFIX = "_spec"
"""Inserted between a source file's stem and its extension."""

RUBY_EXTENSION = ".rb"

COVERED_DIRECTORIES = ("models", "controllers", "services", "jobs", "mailers", "helpers")
"""Subdirectories of SOURCE_ROOT whose files are expected to have specs."""

CONFIG_FILENAME = ".specparity.yml"

# =============================================================================
# Method Exclusions
# =============================================================================

EXCLUDED_METHODS = frozenset({"initialize"})
"""Constructor-equivalent names, never checked."""

EXCLUDED_HOOK_METHODS = frozenset({"included", "extended", "inherited", "prepended"})
"""Ruby lifecycle hooks triggered by inclusion, extension, inheritance and prepending."""

DEFAULT_EXCLUDED_PATTERNS = ("^before_", "^after_", "^around_", "^validate_", "^autosave_")
"""Default callback-style prefixes (configurable via ExcludedPatterns)."""

# =============================================================================
# Check Identifiers
# =============================================================================

FILE_HAS_SPEC = "RSpecParity/FileHasSpec"
PUBLIC_METHOD_HAS_SPEC = "RSpecParity/PublicMethodHasSpec"
SUFFICIENT_CONTEXTS = "RSpecParity/SufficientContexts"

CHECK_SECTIONS = {
    FILE_HAS_SPEC: "file_has_spec",
    PUBLIC_METHOD_HAS_SPEC: "public_method_has_spec",
    SUFFICIENT_CONTEXTS: "sufficient_contexts",
}
"""Maps RuboCop-style check names to config section names."""
