"""
Core types for the recommendation decision engine.

These types are shared across all components and must be JSON-serializable
for persistence and URL transport of a questionnaire session.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, NewType, Union

# Type aliases
StepId = NewType('StepId', str)          # question node identifier
OptionValue = NewType('OptionValue', str)  # answer value, unique within its step

# A tag is either a scalar or a one-level mapping of scalars
TagValue = Union[str, Mapping[str, str]]
TagSet = dict[str, TagValue]

LEAF = "leaf"              # sentinel `next`: stop traversal and resolve
ENTRY_STEP_ID = StepId("goal")

DEFAULT_FALLBACK_MESSAGE = "No exact match. Consider browsing all tests or adjusting inputs."


@dataclass
class SessionState:
    """
    Mutable state of one questionnaire session.

    The effective tag set is never stored here; it is always rebuilt from
    ``history`` and ``selections``. ``selections`` may hold answers for steps
    that are not in ``history`` (kept to pre-populate a step the user returns
    to); those entries never take part in accumulation.
    """
    history: list[StepId] = field(default_factory=list)
    selections: dict[StepId, OptionValue] = field(default_factory=dict)
    current_step_id: StepId = ENTRY_STEP_ID

    @property
    def terminated(self) -> bool:
        """True once a leaf transition has been taken."""
        return self.current_step_id == LEAF

    def copy(self) -> SessionState:
        return SessionState(
            history=list(self.history),
            selections=dict(self.selections),
            current_step_id=self.current_step_id,
        )

    def ordered_selections(self) -> list[tuple[StepId, OptionValue]]:
        """(step, answer) pairs for every step in history, in traversal order."""
        return [
            (step_id, self.selections[step_id])
            for step_id in self.history
            if step_id in self.selections
        ]


@dataclass
class RecommendationBundle:
    """Terminal output of a traversal: catalog ids to look up and display."""
    primary: list[str] = field(default_factory=list)
    alternatives: list[str] = field(default_factory=list)
    companions: list[str] = field(default_factory=list)
    message: str | None = None  # set only on the fallback bundle
    rule_id: str | None = None  # diagnostics only

    @property
    def is_fallback(self) -> bool:
        return self.message is not None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "primary": list(self.primary),
            "alternatives": list(self.alternatives),
            "companions": list(self.companions),
        }
        if self.message is not None:
            d["message"] = self.message
        return d
