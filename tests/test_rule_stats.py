"""
Tests for rule-set statistics over both response layouts
"""

import json

import pytest

from conftest import INDEXED_INCOMPLETE, LEGACY_COMPLETE
from reconstructor.entities import RunStats
from reconstructor.rule_stats import (
    RuleSet,
    RuleSetShape,
    compute_run_stats,
    count_reconstructed_rules,
    count_total_rules,
    count_versions,
    is_rule_reconstructed,
    semantic_depth_percent,
)


class TestRuleCompleteness:

    def test_legacy_triplet_complete(self):
        assert is_rule_reconstructed({"was": "a", "warum": "b", "wie": "c"})

    def test_alternate_triplet_complete(self):
        assert is_rule_reconstructed({"wortlaut": "a", "seele": "b", "funktion": "c"})

    def test_mixed_triplets_are_not_complete(self):
        """Fields must all come from the same triplet."""
        assert not is_rule_reconstructed({"was": "a", "seele": "b", "funktion": "c"})

    @pytest.mark.parametrize("rule", [
        {"was": "a", "warum": "b"},
        {"was": "a", "warum": "", "wie": "c"},
        {"was": "a", "warum": None, "wie": "c"},
        None,
        "Regel-1",
    ])
    def test_incomplete_rules(self, rule):
        assert not is_rule_reconstructed(rule)

    def test_whitespace_field_is_present(self):
        """Only empty or missing values disqualify a rule; whitespace is content."""
        assert is_rule_reconstructed({"was": "a", "warum": " ", "wie": "c"})
        stats = compute_run_stats({"1.0": {"rules": [{"was": "x", "warum": " ", "wie": "z"}]}})
        assert stats.reconstructed_rules == 1
        assert stats.semantic_depth_percent == 100


class TestShapeDetection:

    def test_legacy_shape(self):
        rs = RuleSet.from_payload(json.loads(LEGACY_COMPLETE))
        assert rs.shape == RuleSetShape.LEGACY
        assert [v.label for v in rs.versions] == ["1.0"]

    def test_indexed_shape(self):
        rs = RuleSet.from_payload(json.loads(INDEXED_INCOMPLETE))
        assert rs.shape == RuleSetShape.INDEXED
        assert len(rs.versions[0].rules) == 1

    @pytest.mark.parametrize("payload", [None, [], "text", 42])
    def test_malformed_top_level_is_empty(self, payload):
        rs = RuleSet.from_payload(payload)
        assert rs.shape == RuleSetShape.EMPTY
        assert rs.versions == ()

    def test_version_with_map_rules_inside_legacy_wrapper(self):
        """Each version is read from whatever its own rules field holds."""
        data = {
            "1.0": {"rules": [{"was": "a", "warum": "b", "wie": "c"}]},
            "1.1": {"rules": {"r1": {"was": "a"}, "r2": {"wortlaut": "x", "seele": "y", "funktion": "z"}}},
            "1.2": {"version": "1.2"},
        }
        assert count_total_rules(data) == 3
        assert count_reconstructed_rules(data) == 2
        assert count_versions(data) == 3


class TestCounters:

    def test_legacy_scenario(self):
        data = json.loads(LEGACY_COMPLETE)
        assert compute_run_stats(data) == RunStats(1, 1, 1, 100)

    def test_indexed_scenario(self):
        data = json.loads(INDEXED_INCOMPLETE)
        stats = compute_run_stats(data)
        assert stats.total_rules == 1
        assert stats.reconstructed_rules == 0
        assert stats.semantic_depth_percent == 0

    def test_empty_versions(self):
        assert compute_run_stats({"versions": {}}) == RunStats()

    def test_percent_is_zero_without_rules(self):
        assert semantic_depth_percent({"1.0": {"rules": []}}) == 0

    @pytest.mark.parametrize("complete,total,expected", [
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds half up
        (1, 200, 1),  # 0.5 rounds half up
        (3, 3, 100),
    ])
    def test_percent_rounding(self, complete, total, expected):
        rules = [{"was": "a", "warum": "b", "wie": "c"}] * complete + [{"was": "a"}] * (total - complete)
        data = {"1.0": {"version": "1.0", "rules": rules}}
        assert semantic_depth_percent(data) == expected

    def test_non_dict_rules_count_but_never_complete(self):
        data = {"1.0": {"rules": [None, "x", {"was": "a", "warum": "b", "wie": "c"}]}}
        assert count_total_rules(data) == 3
        assert count_reconstructed_rules(data) == 1

    @pytest.mark.parametrize("data", [
        json.loads(LEGACY_COMPLETE),
        json.loads(INDEXED_INCOMPLETE),
        {"a": {"rules": [{"was": "1", "warum": "2", "wie": "3"}, {}]}, "b": {"rules": {"x": {"wortlaut": "w", "seele": "s", "funktion": "f"}}}},
        {"versions": {"v": {"rules": {}}}},
        {},
    ])
    def test_invariants(self, data):
        stats = compute_run_stats(data)
        assert stats.reconstructed_rules <= stats.total_rules
        assert 0 <= stats.semantic_depth_percent <= 100
