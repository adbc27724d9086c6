"""
Traversal state machine for the questionnaire.

WizardEngine owns one session's mutable state and is the single traversal
implementation behind every surface (step-by-step wizard, cascading panes,
URL restore). All mutation goes through advance, go_back,
jump_to_history_index, select and reset.

Precondition violations (unknown option, an option leading back onto the path,
empty history, out-of-range index) are ignored and leave the state untouched.
"""

from __future__ import annotations

import logging

from statstree.interfaces import DecisionEntry, Pane
from statstree.rules.models import Ruleset, Step
from statstree.types import (
    LEAF, OptionValue, RecommendationBundle, SessionState, StepId, TagSet,
)
from .resolver import resolve
from .tags import accumulate_session, merge_patch

logger = logging.getLogger(__name__)


class WizardEngine:
    """
    Traversal over a ruleset's step graph for a single session.

    The ruleset is injected and treated as read-only. The recommendation
    bundle is the terminal output of a leaf transition and is kept in
    ``result`` until the session moves away from the leaf.
    """

    def __init__(self, ruleset: Ruleset, state: SessionState | None = None):
        self.ruleset = ruleset
        self.state = state if state is not None else SessionState()
        self.result: RecommendationBundle | None = None
        if self.state.terminated:
            self.result = self._resolve(self.tags)

    # ---------------- views ----------------

    @property
    def current_step_id(self) -> StepId:
        return self.state.current_step_id

    @property
    def history(self) -> list[StepId]:
        return self.state.history

    @property
    def selections(self) -> dict[StepId, OptionValue]:
        return self.state.selections

    @property
    def terminated(self) -> bool:
        return self.state.terminated

    @property
    def current_step(self) -> Step | None:
        """Step being asked, or None once terminated."""
        if self.state.terminated:
            return None
        return self.ruleset.step(self.state.current_step_id)

    @property
    def tags(self) -> TagSet:
        """Tag set in effect, rebuilt from history on every access."""
        return accumulate_session(self.ruleset, self.state)

    def pending_answer(self) -> OptionValue | None:
        """Previously recorded answer for the current step, if any."""
        return self.state.selections.get(self.state.current_step_id)

    def panes(self) -> list[Pane]:
        """Visible columns of the cascading view, root first."""
        panes = [Pane(s, self.state.selections.get(s)) for s in self.state.history]
        if self.state.terminated:
            panes.append(Pane(None, bundle=self.result))
        else:
            panes.append(Pane(self.state.current_step_id, self.pending_answer()))
        return panes

    def decision_summary(self) -> list[DecisionEntry]:
        entries = []
        for step_id, value in self.state.ordered_selections():
            step = self.ruleset.step(step_id)
            option = step.option(value) if step else None
            if option is None:
                continue
            entries.append(DecisionEntry(step_id, step.title, value, option.label or option.value))
        return entries

    def progress(self) -> tuple[int, int]:
        """(answered steps, path depth including the open question)."""
        answered = len(self.state.history)
        return answered, answered + (0 if self.state.terminated else 1)

    # ---------------- operations ----------------

    def advance(self, value: str) -> RecommendationBundle | None:
        """
        Answer the current step.

        Returns the recommendation bundle when the chosen option leads to a
        leaf, else None (including when the call is ignored).
        """
        step = self.current_step
        if step is None:
            logger.debug("advance(%r) ignored: no current step (%s)", value, self.state.current_step_id)
            return None

        option = step.option(value)
        if option is None:
            logger.debug("advance(%r) ignored: not an option of step %r", value, step.id)
            return None
        if not option.is_terminal and (option.next == step.id or option.next in self.state.history):
            # A cyclic `next` would put a step on the path twice
            logger.debug("advance(%r) ignored: step %r is already on the path", value, option.next)
            return None

        self.state.selections[StepId(step.id)] = OptionValue(value)
        prospective = merge_patch(self.tags, option.set_tags)
        self.state.history.append(StepId(step.id))

        if option.is_terminal:
            self.state.current_step_id = StepId(LEAF)
            self.result = self._resolve(prospective)
            logger.info(
                "Session resolved after %d steps: %s",
                len(self.state.history), self.result.rule_id or "fallback",
            )
            return self.result

        self.state.current_step_id = StepId(option.next)
        return None

    def go_back(self) -> bool:
        """Return to the previous step, dropping the answer of the step being left."""
        if not self.state.history:
            logger.debug("go_back ignored: empty history")
            return False

        leaving = self.state.current_step_id
        previous = self.state.history.pop()
        if leaving != LEAF:
            self.state.selections.pop(leaving, None)
        self.state.current_step_id = previous
        self.result = None
        return True

    def jump_to_history_index(self, index: int) -> bool:
        """
        Return to ``history[index]``. Its answer stays in selections so the
        question is shown pre-populated.
        """
        if not isinstance(index, int) or not 0 <= index < len(self.state.history):
            logger.debug("jump_to_history_index(%r) ignored: history has %d entries",
                         index, len(self.state.history))
            return False

        target = self.state.history[index]
        del self.state.history[index:]
        self.state.current_step_id = target
        self.result = None
        return True

    def select(self, step_id: str, value: str) -> RecommendationBundle | None:
        """
        Answer any step on the current path (cascading view).

        Answering an earlier step discards everything after it before
        advancing with the new answer.
        """
        if step_id == self.state.current_step_id:
            return self.advance(value)
        if step_id not in self.state.history or self.ruleset.option(step_id, value) is None:
            logger.debug("select(%r, %r) ignored: not an answerable pane", step_id, value)
            return None

        self.jump_to_history_index(self.state.history.index(StepId(step_id)))
        return self.advance(value)

    def reset(self) -> None:
        self.state = SessionState()
        self.result = None

    # ---------------- helpers ----------------

    def _resolve(self, tags: TagSet) -> RecommendationBundle:
        return resolve(tags, self.ruleset.rules, self.ruleset.fallback_message)


def create_wizard_engine(ruleset: Ruleset | None = None) -> WizardEngine:
    """Create a WizardEngine on the given or process-wide default ruleset."""
    if ruleset is None:
        from statstree.rules.loader import default_ruleset
        ruleset = default_ruleset()
    return WizardEngine(ruleset)
