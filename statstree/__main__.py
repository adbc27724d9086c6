"""
statstree command line

Usage:
    python -m statstree walk                      # answer the questionnaire on stdin
    python -m statstree resolve --selections '{"goal": "power_planning"}'
    python -m statstree resolve --query 'selections=...&step=compare_outcome'
    python -m statstree flowchart                 # print the expanded decision tree
    python -m statstree audit                     # check every path of the ruleset
"""

from __future__ import annotations

import argparse
import json
import sys

from statstree.config import configure_logging, get_config, set_config
from statstree.engine.snapshot import build_query_string, parse_query_string, reconstruct
from statstree.engine.traversal import WizardEngine
from statstree.errors import StatsTreeError
from statstree.flowchart import audit_ruleset, render_flowchart
from statstree.rules.loader import load_ruleset
from statstree.types import RecommendationBundle


def print_bundle(bundle: RecommendationBundle) -> None:
    if bundle.is_fallback:
        print(f"No recommendation: {bundle.message}")
        return
    print(f"Best match:    {', '.join(bundle.primary)}")
    if bundle.alternatives:
        print(f"Alternatives:  {', '.join(bundle.alternatives)}")
    if bundle.companions:
        print(f"Companions:    {', '.join(bundle.companions)}")
    print(f"(rule {bundle.rule_id})")


def cmd_walk(engine: WizardEngine) -> int:
    print("Answer with the option number. 'b' goes back, 'r' restarts, 'q' quits.\n")
    while not engine.terminated:
        step = engine.current_step
        _answered, depth = engine.progress()
        print(f"[{depth}] {step.title}: {step.question}")
        for i, opt in enumerate(step.options, 1):
            print(f"   {i}. {opt.label or opt.value}")
        try:
            raw = input("> ").strip().lower()
        except EOFError:
            return 1
        if raw == "q":
            return 0
        if raw == "b":
            engine.go_back()
            continue
        if raw == "r":
            engine.reset()
            continue
        if raw.isdigit() and 1 <= int(raw) <= len(step.options):
            engine.advance(step.options[int(raw) - 1].value)
        else:
            print("Please choose a listed option.")
        print()

    print("Your answers:")
    for entry in engine.decision_summary():
        print(f"  - {entry.title}: {entry.label}")
    print()
    print_bundle(engine.result)
    print(f"\nShare: ?{build_query_string(engine, engine.result)}")
    return 0


def cmd_resolve(ruleset, args) -> int:
    if args.query:
        snapshot, target = parse_query_string(args.query)
    else:
        snapshot, target = json.loads(args.selections or "{}"), None
    engine = reconstruct(ruleset, snapshot, args.step or target)
    print(f"history: {' -> '.join(engine.history) or '(empty)'}")
    print(f"tags:    {json.dumps(engine.tags, sort_keys=True)}")
    if engine.terminated:
        print_bundle(engine.result)
    else:
        print(f"current step: {engine.current_step_id}")
    return 0


def cmd_audit(ruleset) -> int:
    audit = audit_ruleset(ruleset)
    print(f"Paths: {audit.path_count}")
    print(f"Fallback paths: {len(audit.fallback_paths)}")
    for path in audit.fallback_paths:
        print("   " + " / ".join(f"{s}={v}" for s, v in path))
    print(f"Unused rules: {', '.join(audit.unused_rules) or 'none'}")
    print(f"Unreachable steps: {', '.join(audit.unreachable_steps) or 'none'}")
    print(f"Paths matched by several rules (first wins): {len(audit.overlapping)}")
    for path, rule_ids in audit.overlapping:
        print("   " + " / ".join(f"{s}={v}" for s, v in path) + f" -> {', '.join(rule_ids)}")
    if audit.cycles:
        print(f"Cycles at: {', '.join(audit.cycles)}")
    return 0 if audit.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="statstree", description="Statistical method recommendation")
    parser.add_argument("--ruleset", help="Path to a ruleset JSON file")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("walk", help="Answer the questionnaire interactively")
    p_resolve = sub.add_parser("resolve", help="Replay saved selections")
    p_resolve.add_argument("--selections", help="JSON mapping of step id to answer")
    p_resolve.add_argument("--query", help="Query string produced by a shared link")
    p_resolve.add_argument("--step", help="Stop replay at this step id")
    sub.add_parser("flowchart", help="Print the expanded decision tree")
    sub.add_parser("audit", help="Check every answer path of the ruleset")

    args = parser.parse_args(argv)
    if args.ruleset:
        set_config(ruleset_path=args.ruleset)
    if args.log_level:
        set_config(log_level=args.log_level.upper())

    try:
        get_config().validate()
        configure_logging()
        ruleset = load_ruleset()
        if args.command == "walk":
            return cmd_walk(WizardEngine(ruleset))
        if args.command == "resolve":
            return cmd_resolve(ruleset, args)
        if args.command == "flowchart":
            print(render_flowchart(ruleset))
            return 0
        return cmd_audit(ruleset)
    except (StatsTreeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
