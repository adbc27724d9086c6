"""
Decision Graph Expansion
========================

Expands the step graph from the entry step into an anytree tree so that the
whole questionnaire can be rendered as a flowchart and audited path by path.
Steps reachable along several paths appear once per path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from anytree import Node, PreOrderIter, RenderTree

from statstree.engine.resolver import matching_rules, resolve
from statstree.engine.tags import merge_patch
from statstree.rules.models import Ruleset
from statstree.types import ENTRY_STEP_ID, RecommendationBundle, TagSet

# Element types used on tree nodes
STEP = "step"
OPTION = "option"
LEAF = "leaf"
CYCLE = "cycle"


def build_decision_tree(ruleset: Ruleset) -> Node:
    """Expand every path from the entry step; leaf nodes carry their resolved bundle."""

    def expand_step(step_id: str, parent: Node | None, tags: TagSet,
                    path: list[tuple[str, str]], seen: tuple[str, ...]) -> Node:
        step = ruleset.step(step_id)
        step_node = Node(
            step.title or step.id,
            parent=parent,
            element_type=STEP,
            step_id=step.id,
            question=step.question,
        )
        for opt in step.options:
            opt_tags = merge_patch({k: (dict(v) if isinstance(v, dict) else v) for k, v in tags.items()},
                                   opt.set_tags)
            opt_path = path + [(step.id, opt.value)]
            opt_node = Node(
                opt.label or opt.value,
                parent=step_node,
                element_type=OPTION,
                step_id=step.id,
                value=opt.value,
            )
            if opt.is_terminal:
                bundle = resolve(opt_tags, ruleset.rules, ruleset.fallback_message)
                Node(
                    bundle.rule_id or "fallback",
                    parent=opt_node,
                    element_type=LEAF,
                    bundle=bundle,
                    tags=opt_tags,
                    selections=opt_path,
                    matched=[r.id for r in matching_rules(opt_tags, ruleset.rules)],
                )
            elif opt.next in seen:
                Node(f"cycle to {opt.next}", parent=opt_node, element_type=CYCLE, step_id=opt.next)
            else:
                expand_step(opt.next, opt_node, opt_tags, opt_path, seen + (opt.next,))
        return step_node

    return expand_step(ENTRY_STEP_ID, None, {}, [], (ENTRY_STEP_ID,))


def leaf_paths(ruleset: Ruleset) -> list[tuple[list[tuple[str, str]], RecommendationBundle]]:
    """Every complete answer path with the bundle it resolves to."""
    root = build_decision_tree(ruleset)
    return [
        (node.selections, node.bundle)
        for node in PreOrderIter(root)
        if node.element_type == LEAF
    ]


def render_flowchart(ruleset: Ruleset) -> str:
    """Text rendering of the expanded decision tree."""
    lines = []
    for pre, _fill, node in RenderTree(build_decision_tree(ruleset)):
        if node.element_type == STEP:
            label = f"[{node.step_id}] {node.question or node.name}"
        elif node.element_type == OPTION:
            label = f"{node.value}: {node.name}"
        elif node.element_type == LEAF:
            primary = ", ".join(node.bundle.primary) or node.bundle.message
            label = f"=> {primary} ({node.name})"
        else:
            label = f"~> {node.name}"
        lines.append(f"{pre}{label}")
    return "\n".join(lines)


@dataclass
class RulesetAudit:
    path_count: int = 0
    fallback_paths: list[list[tuple[str, str]]] = field(default_factory=list)
    unused_rules: list[str] = field(default_factory=list)
    # Paths matched by more than one rule; first match wins
    overlapping: list[tuple[list[tuple[str, str]], list[str]]] = field(default_factory=list)
    unreachable_steps: list[str] = field(default_factory=list)
    cycles: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.fallback_paths or self.unreachable_steps or self.cycles)


def audit_ruleset(ruleset: Ruleset) -> RulesetAudit:
    root = build_decision_tree(ruleset)
    audit = RulesetAudit()
    used: set[str] = set()
    reached: set[str] = set()

    for node in PreOrderIter(root):
        if node.element_type == STEP:
            reached.add(node.step_id)
        elif node.element_type == CYCLE:
            audit.cycles.append(node.step_id)
        elif node.element_type == LEAF:
            audit.path_count += 1
            if node.bundle.is_fallback:
                audit.fallback_paths.append(node.selections)
            else:
                used.add(node.bundle.rule_id)
            if len(node.matched) > 1:
                audit.overlapping.append((node.selections, node.matched))

    audit.unused_rules = [r.id for r in ruleset.rules if r.id not in used]
    audit.unreachable_steps = [s.id for s in ruleset.steps if s.id not in reached]
    return audit
