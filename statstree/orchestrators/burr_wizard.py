from __future__ import annotations

import logging
from typing import Any

from burr.core import ApplicationBuilder, State, action, when
from burr.tracking import LocalTrackingClient

from statstree.config import get_config
from statstree.engine.snapshot import dump_state, load_state, parse_query_string, reconstruct
from statstree.engine.traversal import WizardEngine
from statstree.rules.models import Ruleset
from statstree.types import SessionState

logger = logging.getLogger(__name__)

# event name -> handler action
EVENTS: dict[str, str] = {
    "advance": "answer",
    "back": "step_back",
    "jump": "jump_back",
    "reset": "restart",
    "restore": "restore",
}

# =================================================================================
# JSON-safe (de)serialization helpers for Burr state
# =================================================================================

def _engine_from(state: State, ruleset: Ruleset) -> WizardEngine:
    return WizardEngine(ruleset, load_state(ruleset, state["session"]))


def _store(state: State, engine: WizardEngine) -> State:
    result = None
    if engine.result is not None:
        result = engine.result.to_dict() | {"rule_id": engine.result.rule_id}
    return state.update(session=dump_state(engine), result=result)

# =================================================================================
# Burr actions: receive an event, then apply it to the session
# =================================================================================

@action(reads=[], writes=["event", "payload"])
def receive_event(state: State, event: str, payload: Any = None) -> State:
    return state.update(event=event, payload=payload)


@action(reads=["session", "payload"], writes=["session", "result"])
def answer(state: State, ruleset: Ruleset) -> State:
    engine = _engine_from(state, ruleset)
    engine.advance(str(state["payload"]))
    return _store(state, engine)


@action(reads=["session"], writes=["session", "result"])
def step_back(state: State, ruleset: Ruleset) -> State:
    engine = _engine_from(state, ruleset)
    engine.go_back()
    return _store(state, engine)


@action(reads=["session", "payload"], writes=["session", "result"])
def jump_back(state: State, ruleset: Ruleset) -> State:
    engine = _engine_from(state, ruleset)
    payload = state["payload"]
    if isinstance(payload, int):
        engine.jump_to_history_index(payload)
    return _store(state, engine)


@action(reads=[], writes=["session", "result"])
def restart(state: State, ruleset: Ruleset) -> State:
    return _store(state, WizardEngine(ruleset))


@action(reads=["payload"], writes=["session", "result"])
def restore(state: State, ruleset: Ruleset) -> State:
    """Replace the session with one rebuilt from a URL query string."""
    snapshot, target = parse_query_string(str(state["payload"] or ""))
    return _store(state, reconstruct(ruleset, snapshot, target))

# =================================================================================
# Build Burr app
# =================================================================================

def build_app(
    ruleset: Ruleset,
    *,
    project: str | None = None,
    tracking: bool | None = None,
    app_id: str | None = None,
) -> Any:
    cfg = get_config()
    project = project or cfg.tracking_project
    tracking = cfg.tracking_enabled if tracking is None else tracking

    builder = ApplicationBuilder()
    if tracking:
        builder = builder.with_tracker(LocalTrackingClient(project=project), use_otel_tracing=False)
    if app_id:
        builder = builder.with_identifiers(app_id=app_id)

    handlers = list(EVENTS.values())
    app = (
        builder
        .with_actions(
            receive_event=receive_event,
            answer=answer.bind(ruleset=ruleset),
            step_back=step_back.bind(ruleset=ruleset),
            jump_back=jump_back.bind(ruleset=ruleset),
            restart=restart.bind(ruleset=ruleset),
            restore=restore.bind(ruleset=ruleset),
        )
        .with_transitions(
            *[("receive_event", handler, when(event=event)) for event, handler in EVENTS.items()],
            (handlers, "receive_event"),
        )
        .with_entrypoint("receive_event")
        .with_state(
            session=dump_state(SessionState()),
            result=None,
            event=None,
            payload=None,
        )
        .build()
    )
    return app


class WizardSession:
    """
    Event-driven questionnaire session backed by a Burr application.

    Every user event runs one ``receive_event`` -> handler cycle, so each
    change of the session is recorded as a Burr step (and tracked when
    tracking is enabled).
    """

    def __init__(
        self,
        ruleset: Ruleset,
        *,
        project: str | None = None,
        tracking: bool | None = None,
        app_id: str | None = None,
    ):
        self.ruleset = ruleset
        self.app = build_app(ruleset, project=project, tracking=tracking, app_id=app_id)

    def send(self, event: str, payload: Any = None) -> State:
        if event not in EVENTS:
            raise ValueError(f"Unknown event {event!r}; expected one of {sorted(EVENTS)}")
        _action, _result, state = self.app.run(
            halt_after=[EVENTS[event]],
            inputs={"event": event, "payload": payload},
        )
        logger.debug("event %s -> %s", event, state["session"]["current_step_id"])
        return state

    # ---- convenience wrappers ----
    def advance(self, value: str) -> dict[str, Any] | None:
        return self.send("advance", value)["result"]

    def go_back(self) -> None:
        self.send("back")

    def jump_to_history_index(self, index: int) -> None:
        self.send("jump", index)

    def reset(self) -> None:
        self.send("reset")

    def restore(self, query: str) -> None:
        self.send("restore", query)

    @property
    def session(self) -> SessionState:
        return load_state(self.ruleset, self.app.state["session"])

    @property
    def result(self) -> dict[str, Any] | None:
        return self.app.state["result"]
