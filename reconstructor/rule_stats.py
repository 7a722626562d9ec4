# reconstructor/rule_stats.py
"""
Statistics over a reconstructed rule set.

The generation endpoint answers in one of two layouts:

- legacy:   {"1.0": {"version": "1.0", "rules": [{...}, ...]}, ...}
- indexed:  {"versions": {"1.0": {"rules": {"r1": {...}, ...}}, ...}}

RuleSet.from_payload resolves the layout once; every counter below works on the
resolved RuleSet, so a malformed or missing top level simply yields zero.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Tuple

from reconstructor.entities import RunStats, RuleSetVersion

LEGACY_FIELDS: Tuple[str, str, str] = ("was", "warum", "wie")
ALTERNATE_FIELDS: Tuple[str, str, str] = ("wortlaut", "seele", "funktion")


class RuleSetShape(str, Enum):
    LEGACY = "legacy"
    INDEXED = "indexed"
    EMPTY = "empty"


def _rules_of(version: Any) -> List[Any]:
    if not isinstance(version, dict):
        return []
    rules = version.get("rules")
    if isinstance(rules, list):
        return list(rules)
    if isinstance(rules, dict):
        return list(rules.values())
    return []


@dataclass(frozen=True)
class RuleSet:
    shape: RuleSetShape
    versions: Tuple[RuleSetVersion, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, data: Any) -> "RuleSet":
        if isinstance(data, RuleSet):
            return data
        if not isinstance(data, dict):
            return cls(RuleSetShape.EMPTY)

        if isinstance(data.get("versions"), dict):
            shape = RuleSetShape.INDEXED
            raw_versions = data["versions"]
        else:
            shape = RuleSetShape.LEGACY
            raw_versions = data

        versions = tuple(
            RuleSetVersion(label=str(label), rules=_rules_of(version))
            for label, version in raw_versions.items()
        )
        return cls(shape, versions)

    def iter_rules(self) -> Iterator[Any]:
        for version in self.versions:
            yield from version.rules


def is_rule_reconstructed(rule: Any) -> bool:
    """A rule is complete when either field triplet is fully present and non-empty."""
    if not isinstance(rule, dict):
        return False
    return all(bool(rule.get(k)) for k in LEGACY_FIELDS) or all(
        bool(rule.get(k)) for k in ALTERNATE_FIELDS
    )


def count_total_rules(data: Any) -> int:
    return sum(len(v.rules) for v in RuleSet.from_payload(data).versions)


def count_reconstructed_rules(data: Any) -> int:
    return sum(1 for rule in RuleSet.from_payload(data).iter_rules() if is_rule_reconstructed(rule))


def count_versions(data: Any) -> int:
    return len(RuleSet.from_payload(data).versions)


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    # half-up, matching the browser's Math.round
    return int(math.floor(100 * part / whole + 0.5))


def semantic_depth_percent(data: Any) -> int:
    rule_set = RuleSet.from_payload(data)
    return _percent(count_reconstructed_rules(rule_set), count_total_rules(rule_set))


def compute_run_stats(data: Any) -> RunStats:
    rule_set = RuleSet.from_payload(data)
    total = count_total_rules(rule_set)
    reconstructed = count_reconstructed_rules(rule_set)
    return RunStats(
        total_rules=total,
        reconstructed_rules=reconstructed,
        versions_processed=count_versions(rule_set),
        semantic_depth_percent=_percent(reconstructed, total),
    )
