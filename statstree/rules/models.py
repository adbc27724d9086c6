from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from statstree.types import DEFAULT_FALLBACK_MESSAGE, LEAF, ENTRY_STEP_ID

# ---------------------------------------------------------------------
# Tag patches
# ---------------------------------------------------------------------

# A patch value is either a scalar (overwrites) or a one-level mapping of
# scalars (merged key-by-key into the existing mapping). Both `set_tags` and
# rule `when` patterns use this shape.
ScalarPatch = str
NestedPatch = dict[str, str]
PatchValue = Union[ScalarPatch, NestedPatch]
TagPatch = dict[str, PatchValue]

# ---------------------------------------------------------------------
# Graph definition
# ---------------------------------------------------------------------

class Option(BaseModel):
    """One answer to a step."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    value: str
    label: str = ""
    description: str | None = None
    set_tags: TagPatch | None = None
    next: str  # step id, or "leaf"

    @property
    def is_terminal(self) -> bool:
        return self.next == LEAF


class Step(BaseModel):
    """A question node."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    title: str = ""
    question: str = ""
    description: str | None = None
    options: list[Option] = Field(default_factory=list)

    def option(self, value: str) -> Option | None:
        for opt in self.options:
            if opt.value == value:
                return opt
        return None


class Rule(BaseModel):
    """A declarative pattern -> recommendation mapping. Order is significant."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    when: TagPatch = Field(default_factory=dict)
    recommend: list[str] = Field(default_factory=list)
    alternatives: list[str] = Field(default_factory=list)
    add_ons: list[str] = Field(default_factory=list)


class FallbackSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    recommend: list[str] = Field(default_factory=list)
    alternatives: list[str] = Field(default_factory=list)
    add_ons: list[str] = Field(default_factory=list)
    message: str = DEFAULT_FALLBACK_MESSAGE


class LeafResolution(BaseModel):
    """
    Declared resolution policy.

    Only ``fallback`` is honoured. ``strategy`` and ``tie_breakers`` are kept
    as authored data; resolution always takes the first matching rule in
    declaration order.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: str = "first_match"
    tie_breakers: list[str] = Field(default_factory=list)
    fallback: FallbackSpec = Field(default_factory=FallbackSpec)


class Ruleset(BaseModel):
    """
    Immutable table of steps and rules.

    Build through ``statstree.rules.loader`` so that integrity checks run
    before any session is created.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = "0"
    intent: str | None = None
    tag_schema: dict[str, list[str]] = Field(default_factory=dict)
    steps: list[Step]
    recommendation_rules: list[Rule] = Field(default_factory=list)
    leaf_resolution: LeafResolution = Field(default_factory=LeafResolution)

    _steps_by_id: dict[str, Step] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        index: dict[str, Step] = {}
        for s in self.steps:
            index.setdefault(s.id, s)
        self._steps_by_id = index

    # ---------------- lookups ----------------

    def step(self, step_id: str) -> Step | None:
        return self._steps_by_id.get(step_id)

    def option(self, step_id: str, value: str) -> Option | None:
        step = self.step(step_id)
        return step.option(value) if step else None

    @property
    def entry_step(self) -> Step | None:
        return self.step(ENTRY_STEP_ID)

    @property
    def rules(self) -> list[Rule]:
        return self.recommendation_rules

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def fallback_message(self) -> str:
        return self.leaf_resolution.fallback.message
