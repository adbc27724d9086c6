"""
In-memory test catalog and bundle-to-record resolution.

The catalog itself is an external collaborator; this module provides a simple
implementation of the TestCatalog protocol and the skip-and-flag lookup of a
recommendation bundle's ids.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .interfaces import TestCatalog
from .types import RecommendationBundle

logger = logging.getLogger(__name__)


@dataclass
class TestRecord:
    __test__ = False  # not a pytest test class

    id: str
    name: str
    description: str = ""
    assumptions: list[str] = field(default_factory=list)
    when_to_use: list[str] = field(default_factory=list)
    related: list[str] = field(default_factory=list)
    category: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TestRecord:
        """Accepts snake_case keys and the catalog export's camelCase keys."""
        return cls(
            id=d["id"],
            name=d.get("name", d["id"]),
            description=d.get("description", ""),
            assumptions=list(d.get("assumptions", [])),
            when_to_use=list(d.get("when_to_use", d.get("whenToUse", []))),
            related=list(d.get("related", d.get("alternatives", []))),
            category=d.get("category", ""),
        )


class InMemoryCatalog:
    """TestCatalog backed by a dict keyed by record id."""

    def __init__(self, records: Iterable[TestRecord] = ()):
        self._records: dict[str, TestRecord] = {}
        for record in records:
            self._records[record.id] = record

    @classmethod
    def from_json(cls, path: str | Path) -> InMemoryCatalog:
        items = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(TestRecord.from_dict(item) for item in items)

    def lookup(self, test_id: str) -> TestRecord | None:
        return self._records.get(test_id)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, test_id: object) -> bool:
        return test_id in self._records


@dataclass
class ResolvedRecommendation:
    primary: list[Any] = field(default_factory=list)
    alternatives: list[Any] = field(default_factory=list)
    companions: list[Any] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    message: str | None = None


def resolve_records(bundle: RecommendationBundle, catalog: TestCatalog) -> ResolvedRecommendation:
    """Look up every id of a bundle; unknown ids are skipped and listed in ``missing``."""
    out = ResolvedRecommendation(message=bundle.message)
    for section in ("primary", "alternatives", "companions"):
        found = getattr(out, section)
        for test_id in getattr(bundle, section):
            record = catalog.lookup(test_id)
            if record is None:
                out.missing.append(test_id)
            else:
                found.append(record)
    if out.missing:
        logger.debug("resolve_records: %d id(s) not in catalog: %s", len(out.missing), out.missing)
    return out
