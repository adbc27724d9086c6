"""
Core interfaces for the recommendation decision engine.

These define the contracts between the engine and its collaborators:
- TestCatalog: read-only lookup of recommendable test records
- Views handed to presentation surfaces (panes, decision summary entries)
"""

from __future__ import annotations
from typing import Protocol

from .types import OptionValue, RecommendationBundle, StepId


class TestRecordView(Protocol):
    """Minimal shape of a catalog record as consumed by the engine."""

    id: str
    name: str


class TestCatalog(Protocol):
    """
    Protocol for the external catalog of statistical tests.

    The engine only needs lookup by id. A missing id is reported as None and
    never raises; presentation code decides whether to skip or flag it.
    """

    def lookup(self, test_id: str) -> TestRecordView | None:
        """Get a record by its id, or None if not found."""
        ...


class DecisionEntry:
    """One answered question along the current path."""

    def __init__(
        self,
        step_id: StepId,
        title: str,
        value: OptionValue,
        label: str,
    ):
        self.step_id = step_id
        self.title = title
        self.value = value
        self.label = label

    def __repr__(self) -> str:
        return f"DecisionEntry({self.step_id!r}={self.value!r})"


class Pane:
    """
    One visible column of the cascading view.

    A step pane carries ``step_id`` and the selected value (None while
    unanswered). The terminal pane has ``step_id`` None and carries the bundle.
    """

    def __init__(
        self,
        step_id: StepId | None,
        selected: OptionValue | None = None,
        bundle: RecommendationBundle | None = None,
    ):
        self.step_id = step_id
        self.selected = selected
        self.bundle = bundle

    @property
    def is_leaf(self) -> bool:
        return self.step_id is None

    def __repr__(self) -> str:
        if self.is_leaf:
            return "Pane(leaf)"
        return f"Pane({self.step_id!r}, selected={self.selected!r})"
