"""
statstree: questionnaire-driven recommendation of statistical methods.

This package provides the decision engine behind the questionnaire:

- Ruleset (steps + rules) is loaded once and validated before use
- Tag accumulation rebuilds the facts implied by the answers so far
- Rule resolution turns accumulated tags into a recommendation bundle
- WizardEngine owns a session and its back/jump/reset navigation
- Snapshots replay a session deterministically (e.g. from a URL)

Version: 1.0.0
"""

CORE_API_VERSION = "1.0.0"

from .types import (
    StepId,
    OptionValue,
    TagValue,
    TagSet,
    LEAF,
    ENTRY_STEP_ID,
    DEFAULT_FALLBACK_MESSAGE,
    SessionState,
    RecommendationBundle,
)

from .errors import (
    StatsTreeError,
    RulesetIntegrityError,
    ReconstructionError,
    SnapshotError,
)

from .interfaces import (
    TestCatalog,
    DecisionEntry,
    Pane,
)

from .rules import (
    Option,
    Step,
    Rule,
    Ruleset,
    ruleset_from_dict,
    load_ruleset,
    default_ruleset,
)

from .engine import (
    merge_patch,
    accumulate,
    accumulate_session,
    matches,
    resolve,
    WizardEngine,
    create_wizard_engine,
    Snapshot,
    serialize,
    reconstruct,
    encode_snapshot,
    decode_snapshot,
    build_query_string,
    parse_query_string,
    dump_state,
    load_state,
    SelectionCycler,
)

__all__ = [
    "CORE_API_VERSION",
    # Types
    "StepId",
    "OptionValue",
    "TagValue",
    "TagSet",
    "LEAF",
    "ENTRY_STEP_ID",
    "DEFAULT_FALLBACK_MESSAGE",
    "SessionState",
    "RecommendationBundle",
    # Errors
    "StatsTreeError",
    "RulesetIntegrityError",
    "ReconstructionError",
    "SnapshotError",
    # Interfaces
    "TestCatalog",
    "DecisionEntry",
    "Pane",
    # Graph definition
    "Option",
    "Step",
    "Rule",
    "Ruleset",
    "ruleset_from_dict",
    "load_ruleset",
    "default_ruleset",
    # Engine
    "merge_patch",
    "accumulate",
    "accumulate_session",
    "matches",
    "resolve",
    "WizardEngine",
    "create_wizard_engine",
    "Snapshot",
    "serialize",
    "reconstruct",
    "encode_snapshot",
    "decode_snapshot",
    "build_query_string",
    "parse_query_string",
    "dump_state",
    "load_state",
    "SelectionCycler",
]
