"""
Session serialization and deterministic reconstruction.

Two representations are supported:

- the *snapshot*: only the answers along the current path. ``history`` and
  the current step are re-derived by replaying it from the entry step. This
  is what travels in a URL.
- the *state dump*: the whole session state as a JSON-compatible dict, for
  process-local persistence.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union
from urllib.parse import parse_qs, quote, unquote, urlencode

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from statstree.errors import ReconstructionError, SnapshotError
from statstree.rules.models import Ruleset
from statstree.types import (
    ENTRY_STEP_ID, LEAF, OptionValue, RecommendationBundle, SessionState, StepId,
)
from .traversal import WizardEngine

logger = logging.getLogger(__name__)

SELECTIONS_PARAM = "selections"
STEP_PARAM = "step"
TESTS_PARAM = "tests"


class Snapshot(BaseModel):
    """Minimal transportable form of a session."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    selections: dict[str, str] = Field(default_factory=dict)


class StateDump(BaseModel):
    model_config = ConfigDict(extra="forbid")

    history: list[str] = Field(default_factory=list)
    selections: dict[str, str] = Field(default_factory=dict)
    current_step_id: str = ENTRY_STEP_ID


SessionLike = Union[SessionState, WizardEngine]


def _session_of(session: SessionLike) -> SessionState:
    return session.state if isinstance(session, WizardEngine) else session


# ---------------------------------------------------------------------
# Snapshot: serialize / reconstruct
# ---------------------------------------------------------------------

def serialize(session: SessionLike) -> Snapshot:
    """
    Snapshot of the answers along the current path.

    Answers kept for steps off the path are not included, so replaying the
    snapshot lands on the same current step.
    """
    state = _session_of(session)
    return Snapshot(selections={str(s): str(v) for s, v in state.ordered_selections()})


def reconstruct(
    ruleset: Ruleset,
    snapshot: Snapshot | dict[str, Any],
    target_step_id: str | None = None,
) -> WizardEngine:
    """
    Replay a snapshot from the entry step into a fresh WizardEngine.

    Replay stops at ``target_step_id`` when it is reached, at the first step
    without a recorded answer, at the first recorded answer that is no longer
    a valid option (stale snapshot), or after a leaf transition. Raises
    ReconstructionError if the walk does not stop within as many iterations
    as the ruleset has steps.
    """
    snap = snapshot if isinstance(snapshot, Snapshot) else _snapshot_from_obj(snapshot)
    selections = {StepId(k): OptionValue(v) for k, v in snap.selections.items()}
    history: list[StepId] = []
    current = ENTRY_STEP_ID

    for _ in range(ruleset.step_count):
        if target_step_id is not None and current == target_step_id:
            break
        value = selections.get(current)
        if value is None:
            break
        step = ruleset.step(current)
        option = step.option(value) if step else None
        if option is None:
            logger.warning("reconstruct: stale answer %r for step %r, stopping there", value, current)
            break
        history.append(current)
        if option.is_terminal:
            current = StepId(LEAF)
            break
        current = StepId(option.next)
    else:
        raise ReconstructionError(
            f"Replay did not stop within {ruleset.step_count} steps; "
            f"the step graph is cyclic along {' -> '.join(history)}"
        )

    state = SessionState(history=history, selections=selections, current_step_id=current)
    return WizardEngine(ruleset, state)


# ---------------------------------------------------------------------
# Transport: percent-encoded JSON in a query string
# ---------------------------------------------------------------------

def _snapshot_from_obj(obj: Any) -> Snapshot:
    # Accept both {"selections": {...}} and the bare selections mapping
    if isinstance(obj, dict) and set(obj) == {SELECTIONS_PARAM} and isinstance(obj[SELECTIONS_PARAM], dict):
        obj = obj[SELECTIONS_PARAM]
    try:
        return Snapshot(selections=obj)
    except ValidationError as e:
        raise SnapshotError(f"Malformed snapshot: {e.error_count()} error(s)") from e


def _snapshot_from_json(text: str) -> Snapshot:
    try:
        obj = json.loads(text) if text.strip() else {}
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e
    return _snapshot_from_obj(obj)


def encode_snapshot(snapshot: Snapshot) -> str:
    """Percent-encoded JSON of the selections mapping, safe as a query value."""
    return quote(json.dumps(snapshot.selections, separators=(",", ":"), sort_keys=True), safe="")


def decode_snapshot(text: str) -> Snapshot:
    return _snapshot_from_json(unquote(text))


def build_query_string(
    session: SessionLike,
    bundle: RecommendationBundle | None = None,
    target_step_id: str | None = None,
) -> str:
    """Query string carrying a session: selections, optional step and tests."""
    snap = serialize(session)
    params: list[tuple[str, str]] = [
        (SELECTIONS_PARAM, json.dumps(snap.selections, separators=(",", ":"), sort_keys=True)),
    ]
    if target_step_id:
        params.append((STEP_PARAM, target_step_id))
    if bundle is not None and bundle.primary:
        params.append((TESTS_PARAM, ",".join(bundle.primary)))
    return urlencode(params, quote_via=quote, safe=",")


def parse_query_string(query: str) -> tuple[Snapshot, str | None]:
    """Inverse of build_query_string: (snapshot, target step id or None)."""
    params = parse_qs(query.lstrip("?"), keep_blank_values=True)
    raw = params.get(SELECTIONS_PARAM, [""])[0]
    target = params.get(STEP_PARAM, [None])[0] or None
    return _snapshot_from_json(raw), target


# ---------------------------------------------------------------------
# Full state dump / load
# ---------------------------------------------------------------------

def dump_state(session: SessionLike) -> dict[str, Any]:
    """Serialize the whole session state to a JSON-compatible dict."""
    state = _session_of(session)
    return {
        "history": [str(s) for s in state.history],
        "selections": {str(k): str(v) for k, v in state.selections.items()},
        "current_step_id": str(state.current_step_id),
    }


def load_state(ruleset: Ruleset, d: dict[str, Any]) -> SessionState:
    """Deserialize a session state dict, checking step ids against the ruleset."""
    try:
        dump = StateDump.model_validate(d)
    except ValidationError as e:
        raise SnapshotError(f"Malformed session state: {e.error_count()} error(s)") from e

    if dump.current_step_id != LEAF and ruleset.step(dump.current_step_id) is None:
        raise SnapshotError(f"Unknown current step {dump.current_step_id!r}")
    unknown = [s for s in dump.history if ruleset.step(s) is None]
    if unknown:
        raise SnapshotError(f"Unknown steps in history: {unknown}")

    return SessionState(
        history=[StepId(s) for s in dump.history],
        selections={StepId(k): OptionValue(v) for k, v in dump.selections.items()},
        current_step_id=StepId(dump.current_step_id),
    )
