"""
Rule resolution: accumulated tags -> recommendation bundle.

Rules are scanned in declaration order and the first match wins. There is no
scoring; authors order rules from most to least specific.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from statstree.rules.models import Rule
from statstree.types import DEFAULT_FALLBACK_MESSAGE, RecommendationBundle
from .tags import matches

logger = logging.getLogger(__name__)


def bundle_for(rule: Rule) -> RecommendationBundle:
    return RecommendationBundle(
        primary=list(rule.recommend),
        alternatives=list(rule.alternatives),
        companions=list(rule.add_ons),
        rule_id=rule.id,
    )


def fallback_bundle(message: str = DEFAULT_FALLBACK_MESSAGE) -> RecommendationBundle:
    return RecommendationBundle(message=message)


def matching_rules(tags: Mapping[str, object], rules: Sequence[Rule]) -> list[Rule]:
    """All rules whose pattern matches, in declaration order."""
    return [r for r in rules if matches(tags, r.when)]


def resolve(
    tags: Mapping[str, object],
    rules: Sequence[Rule],
    fallback_message: str = DEFAULT_FALLBACK_MESSAGE,
) -> RecommendationBundle:
    """Bundle of the first rule matching ``tags``, else the fallback bundle."""
    for rule in rules:
        if matches(tags, rule.when):
            logger.debug("resolve: matched rule %s", rule.id)
            return bundle_for(rule)
    logger.debug("resolve: no rule matched %s", dict(tags))
    return fallback_bundle(fallback_message)
