"""
Decision engine: tag accumulation, rule resolution, traversal and replay.
"""

from .tags import merge_patch, accumulate, accumulate_session, matches
from .resolver import resolve, fallback_bundle, matching_rules, bundle_for
from .traversal import WizardEngine, create_wizard_engine
from .snapshot import (
    Snapshot,
    serialize,
    reconstruct,
    encode_snapshot,
    decode_snapshot,
    build_query_string,
    parse_query_string,
    dump_state,
    load_state,
)
from .cycler import SelectionCycler

__all__ = [
    "merge_patch",
    "accumulate",
    "accumulate_session",
    "matches",
    "resolve",
    "fallback_bundle",
    "matching_rules",
    "bundle_for",
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
