"""
Graph definition: steps, options and recommendation rules.
"""

from .models import (
    Option,
    Step,
    Rule,
    FallbackSpec,
    LeafResolution,
    Ruleset,
    TagPatch,
    PatchValue,
)

from .loader import (
    validate_ruleset,
    schema_warnings,
    find_cycle,
    ruleset_from_dict,
    load_ruleset,
    default_ruleset,
)

__all__ = [
    "Option",
    "Step",
    "Rule",
    "FallbackSpec",
    "LeafResolution",
    "Ruleset",
    "TagPatch",
    "PatchValue",
    "validate_ruleset",
    "schema_warnings",
    "find_cycle",
    "ruleset_from_dict",
    "load_ruleset",
    "default_ruleset",
]
