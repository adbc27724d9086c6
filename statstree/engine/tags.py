"""
Tag accumulation and pattern matching.

The tag set in effect for a session is always rebuilt by replaying the
answered steps in order; it is never stored or mutated on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from statstree.rules.models import Ruleset, TagPatch
from statstree.types import SessionState, TagSet

logger = logging.getLogger(__name__)


def merge_patch(tags: TagSet, patch: TagPatch | None) -> TagSet:
    """
    Merge a tag patch into ``tags`` in place and return it.

    Scalar values overwrite. Nested mappings are merged key-by-key into the
    existing mapping for that key; keys the patch does not mention survive.
    A nested patch over an existing scalar replaces the scalar.
    """
    for key, value in (patch or {}).items():
        if isinstance(value, Mapping):
            existing = tags.get(key)
            merged = dict(existing) if isinstance(existing, Mapping) else {}
            merged.update(value)
            tags[key] = merged
        else:
            tags[key] = value
    return tags


def accumulate(
    ruleset: Ruleset,
    ordered_selections: Iterable[tuple[str, str]],
) -> TagSet:
    """Build the tag set for an ordered list of (step id, option value) pairs."""
    tags: TagSet = {}
    for step_id, value in ordered_selections:
        option = ruleset.option(step_id, value)
        if option is None:
            # Not reachable with a validated ruleset; skip this entry only
            logger.debug("accumulate: no option %r on step %r, skipping", value, step_id)
            continue
        merge_patch(tags, option.set_tags)
    return tags


def accumulate_session(ruleset: Ruleset, session: SessionState) -> TagSet:
    """Tag set in effect for a session: replay of ``history`` only."""
    return accumulate(ruleset, session.ordered_selections())


def matches(tags: Mapping[str, object], pattern: Mapping[str, object]) -> bool:
    """
    True if every key of ``pattern`` is present in ``tags`` with an equal
    scalar, or with a mapping that recursively satisfies the nested pattern.
    Keys absent from the pattern are unconstrained.
    """
    for key, expected in pattern.items():
        if key not in tags:
            return False
        actual = tags[key]
        if isinstance(expected, Mapping):
            if not isinstance(actual, Mapping) or not matches(actual, expected):
                return False
        elif isinstance(actual, Mapping) or actual != expected:
            return False
    return True
