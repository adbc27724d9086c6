"""
Test Suite for Ruleset Loading

Tests:
- Load-time integrity checks (engine refuses to start on any problem)
- Warnings for schema mismatches and cycles
- The bundled statistics ruleset
"""

import json

import pytest
from pydantic import ValidationError

from statstree.errors import RulesetIntegrityError
from statstree.rules import default_ruleset, find_cycle, load_ruleset, ruleset_from_dict
from statstree.rules.loader import schema_warnings, validate_ruleset
from statstree.types import DEFAULT_FALLBACK_MESSAGE


def make_data(**overrides):
    data = {
        "version": "test",
        "steps": [
            {"id": "goal", "title": "Goal", "options": [
                {"value": "a", "set_tags": {"goal": "a"}, "next": "second"},
                {"value": "b", "set_tags": {"goal": "b"}, "next": "leaf"},
            ]},
            {"id": "second", "options": [{"value": "x", "next": "leaf"}]},
        ],
        "recommendation_rules": [
            {"id": "r1", "when": {"goal": "a"}, "recommend": ["t1"]},
        ],
    }
    data.update(overrides)
    return data


class TestIntegrity:
    """Test load-time validation problems."""

    def test_valid_data(self):
        ruleset = ruleset_from_dict(make_data())
        assert ruleset.step_count == 2
        assert ruleset.entry_step.id == "goal"
        assert ruleset.option("goal", "a").next == "second"
        assert ruleset.option("goal", "zzz") is None
        assert ruleset.step("missing") is None
        assert validate_ruleset(ruleset) == []

    @pytest.mark.parametrize("steps,expected", [
        ([{"id": "goal", "options": [{"value": "a", "next": "nowhere"}]}], "unknown step 'nowhere'"),
        ([{"id": "start", "options": [{"value": "a", "next": "leaf"}]}], "missing entry step"),
        ([{"id": "goal", "options": []}], "has no options"),
        ([{"id": "goal", "options": [{"value": "a", "next": "leaf"}, {"value": "a", "next": "leaf"}]}],
         "duplicate option value"),
        ([{"id": "goal", "options": [{"value": "a", "next": "leaf"}]},
          {"id": "goal", "options": [{"value": "b", "next": "leaf"}]}], "duplicate step id"),
        ([{"id": "goal", "options": [{"value": "a", "next": "leaf"}]},
          {"id": "leaf", "options": [{"value": "b", "next": "goal"}]}], "reserved"),
    ])
    def test_graph_problems(self, steps, expected):
        with pytest.raises(RulesetIntegrityError) as exc_info:
            ruleset_from_dict(make_data(steps=steps), source="inline")
        assert any(expected in p for p in exc_info.value.problems)
        assert "inline" in str(exc_info.value)

    def test_duplicate_rule_ids(self):
        rules = [{"id": "r1", "when": {}, "recommend": ["a"]}, {"id": "r1", "when": {}, "recommend": ["b"]}]
        with pytest.raises(RulesetIntegrityError, match="duplicate rule id"):
            ruleset_from_dict(make_data(recommendation_rules=rules))

    @pytest.mark.parametrize("data", [
        {"version": "x"},                                                       # no steps
        make_data(extra_field=True),
        make_data(steps=[{"id": "goal", "options": [{"value": "a"}]}]),          # no next
        make_data(steps=[{"id": "goal", "options": [{"value": "a", "next": "leaf",
                                                     "set_tags": {"k": ["list"]}}]}]),
    ])
    def test_malformed_shape(self, data):
        with pytest.raises(RulesetIntegrityError):
            ruleset_from_dict(data)

    def test_problem_summary_is_truncated(self):
        err = RulesetIntegrityError([f"p{i}" for i in range(8)])
        assert "p4" in str(err)
        assert "p5" not in str(err)
        assert "+3 more" in str(err)


class TestWarnings:
    """Non-fatal findings are logged, not raised."""

    def test_schema_mismatch_is_warned(self, caplog):
        data = make_data(tag_schema={"goal": ["a"]})
        with caplog.at_level("WARNING", logger="statstree"):
            ruleset = ruleset_from_dict(data)
        warnings = schema_warnings(ruleset)
        assert any("'b' not allowed for tag 'goal'" in w for w in warnings)
        assert "not allowed" in caplog.text

    def test_cycle_is_warned(self, caplog):
        steps = [
            {"id": "goal", "options": [{"value": "a", "next": "loop"}]},
            {"id": "loop", "options": [{"value": "again", "next": "goal"}, {"value": "out", "next": "leaf"}]},
        ]
        with caplog.at_level("WARNING", logger="statstree"):
            ruleset = ruleset_from_dict(make_data(steps=steps))
        assert find_cycle(ruleset) == ["goal", "loop", "goal"]
        assert "cycle" in caplog.text

    def test_acyclic(self):
        assert find_cycle(ruleset_from_dict(make_data())) is None


class TestLoadFile:
    """Test loading from disk."""

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(make_data()), encoding="utf-8")
        assert load_ruleset(path).version == "test"

    def test_missing_file(self, tmp_path):
        with pytest.raises(RulesetIntegrityError, match="cannot read"):
            load_ruleset(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RulesetIntegrityError, match="invalid JSON"):
            load_ruleset(path)

    def test_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(RulesetIntegrityError, match="must be an object"):
            load_ruleset(path)


class TestBundledRuleset:
    """Test the packaged statistics ruleset."""

    def test_metadata(self):
        ruleset = default_ruleset()
        assert ruleset.version == "1.1.4"
        assert ruleset.intent == "recommended_only_wizard"
        assert ruleset.step_count == 22
        assert len(ruleset.rules) == 49
        assert ruleset.fallback_message == DEFAULT_FALLBACK_MESSAGE
        assert ruleset.leaf_resolution.tie_breakers == ["more_keys_in_when", "prefer_rules_order"]

    def test_is_clean(self):
        ruleset = default_ruleset()
        assert validate_ruleset(ruleset) == []
        assert schema_warnings(ruleset) == []
        assert find_cycle(ruleset) is None

    def test_entry_step(self):
        goal = default_ruleset().entry_step
        assert len(goal.options) == 10
        assert goal.option("power_planning").is_terminal

    def test_cached(self):
        assert default_ruleset() is default_ruleset()

    def test_models_are_frozen(self):
        rule = default_ruleset().rules[0]
        with pytest.raises(ValidationError):
            rule.id = "changed"
