"""
Ruleset loading and load-time validation.

A ruleset is validated once, when it is loaded, and the engine refuses to
start on any integrity problem. After loading it is never mutated.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from statstree.config import get_config
from statstree.errors import RulesetIntegrityError
from statstree.types import ENTRY_STEP_ID, LEAF
from .models import Ruleset, TagPatch

logger = logging.getLogger(__name__)


def validate_ruleset(ruleset: Ruleset) -> list[str]:
    """Return one line per integrity problem; empty when the ruleset is usable."""
    problems: list[str] = []

    seen_steps: set[str] = set()
    for step in ruleset.steps:
        if step.id in seen_steps:
            problems.append(f"duplicate step id {step.id!r}")
        seen_steps.add(step.id)

        if step.id == LEAF:
            problems.append(f"step id {LEAF!r} is reserved")
        if not step.options:
            problems.append(f"step {step.id!r} has no options")

        seen_values: set[str] = set()
        for opt in step.options:
            if opt.value in seen_values:
                problems.append(f"duplicate option value {opt.value!r} in step {step.id!r}")
            seen_values.add(opt.value)

    if ENTRY_STEP_ID not in seen_steps:
        problems.append(f"missing entry step {ENTRY_STEP_ID!r}")

    # Dangling references are checked after all ids are known
    for step in ruleset.steps:
        for opt in step.options:
            if opt.next != LEAF and opt.next not in seen_steps:
                problems.append(f"step {step.id!r} option {opt.value!r} points to unknown step {opt.next!r}")

    seen_rules: set[str] = set()
    for rule in ruleset.rules:
        if rule.id in seen_rules:
            problems.append(f"duplicate rule id {rule.id!r}")
        seen_rules.add(rule.id)

    return problems


def schema_warnings(ruleset: Ruleset) -> list[str]:
    """Scalar tag values that the declared ``tag_schema`` does not list."""
    schema = ruleset.tag_schema
    if not schema:
        return []

    def check(patch: TagPatch | None, where: str) -> list[str]:
        out = []
        for key, value in (patch or {}).items():
            if not isinstance(value, str):
                continue  # nested values are not covered by the flat schema
            allowed = schema.get(key)
            if allowed is None:
                out.append(f"{where}: tag {key!r} is not declared in tag_schema")
            elif value not in allowed:
                out.append(f"{where}: value {value!r} not allowed for tag {key!r}")
        return out

    warnings: list[str] = []
    for step in ruleset.steps:
        for opt in step.options:
            warnings.extend(check(opt.set_tags, f"step {step.id!r} option {opt.value!r}"))
    for rule in ruleset.rules:
        warnings.extend(check(rule.when, f"rule {rule.id!r}"))
    return warnings


def find_cycle(ruleset: Ruleset) -> list[str] | None:
    """Return one cycle of step ids reachable through `next` links, or None."""
    WHITE, GREY, BLACK = 0, 1, 2
    color = {s.id: WHITE for s in ruleset.steps}
    stack: list[str] = []

    def visit(step_id: str) -> list[str] | None:
        color[step_id] = GREY
        stack.append(step_id)
        step = ruleset.step(step_id)
        for opt in step.options if step else []:
            if opt.next == LEAF or opt.next not in color:
                continue
            if color[opt.next] == GREY:
                return stack[stack.index(opt.next):] + [opt.next]
            if color[opt.next] == WHITE:
                found = visit(opt.next)
                if found:
                    return found
        stack.pop()
        color[step_id] = BLACK
        return None

    for step_id in list(color):
        if color[step_id] == WHITE:
            found = visit(step_id)
            if found:
                return found
    return None


def ruleset_from_dict(data: dict[str, Any], source: str | None = None) -> Ruleset:
    """Build and validate a ruleset from plain data. Raises RulesetIntegrityError."""
    try:
        ruleset = Ruleset.model_validate(data)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise RulesetIntegrityError(problems, source) from e

    problems = validate_ruleset(ruleset)
    if problems:
        raise RulesetIntegrityError(problems, source)

    for warning in schema_warnings(ruleset):
        logger.warning("ruleset %s: %s", source or "<dict>", warning)

    cycle = find_cycle(ruleset)
    if cycle:
        logger.warning("ruleset %s: step graph has a cycle: %s", source or "<dict>", " -> ".join(cycle))

    return ruleset


def load_ruleset(path: str | Path | None = None) -> Ruleset:
    """Load a ruleset JSON file (defaults to the configured ruleset path)."""
    file_path = Path(path or get_config().ruleset_path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RulesetIntegrityError([f"cannot read ruleset: {e}"], str(file_path)) from e
    except json.JSONDecodeError as e:
        raise RulesetIntegrityError([f"invalid JSON: {e}"], str(file_path)) from e

    if not isinstance(data, dict):
        raise RulesetIntegrityError(["top-level JSON value must be an object"], str(file_path))

    ruleset = ruleset_from_dict(data, source=str(file_path))
    logger.info(
        "Loaded ruleset %s (version %s): %d steps, %d rules",
        file_path.name, ruleset.version, ruleset.step_count, len(ruleset.rules),
    )
    return ruleset


@lru_cache(maxsize=1)
def default_ruleset() -> Ruleset:
    """Process-wide ruleset, loaded once from the configured path."""
    return load_ruleset()
