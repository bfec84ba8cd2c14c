"""Check definitions - register all RSpecParity checks."""

from specparity.config.constants import (
    CHECK_SECTIONS,
    FILE_HAS_SPEC,
    PUBLIC_METHOD_HAS_SPEC,
    SUFFICIENT_CONTEXTS,
)
from specparity.lint import rules
from specparity.lint.checks import Check, registry

registry.register(
    Check(
        check_id=FILE_HAS_SPEC,
        name="File has spec",
        section=CHECK_SECTIONS[FILE_HAS_SPEC],
        description="Each file under app/<covered dir>/ has a spec/<covered dir>/ counterpart.",
    ),
    runner=rules.file_has_spec,
)

registry.register(
    Check(
        check_id=PUBLIC_METHOD_HAS_SPEC,
        name="Public method has spec",
        section=CHECK_SECTIONS[PUBLIC_METHOD_HAS_SPEC],
        description="Each public method is named by a describe, context or example.",
    ),
    runner=rules.public_method_has_spec,
)

registry.register(
    Check(
        check_id=SUFFICIENT_CONTEXTS,
        name="Sufficient contexts",
        section=CHECK_SECTIONS[SUFFICIENT_CONTEXTS],
        description="A method with N branches has at least N contexts in its spec.",
    ),
    runner=rules.sufficient_contexts,
)
