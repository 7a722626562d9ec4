# reconstructor/rule_index.py
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

from reconstructor.entities import FilterResult, Severity
from reconstructor.errors import FilterError

logger = logging.getLogger("evoki_reconstructor")

LogFn = Callable[[str, Severity], None]


def _is_accepted(rule: Any) -> bool:
    return isinstance(rule, dict) and rule.get("accepted") is True


def filter_accepted_rules(index: Dict[str, Any]) -> FilterResult:
    """
    Copy of a rule index that keeps only rules with accepted == True.
    Versions left without any rule are dropped entirely.

    Rules may be keyed by id (the usual index layout) or listed; the filtered
    copy keeps the layout of each version.
    """
    if not isinstance(index, dict):
        raise FilterError("Rule index must be a JSON object")

    versions = index.get("versions")
    if not isinstance(versions, dict):
        raise FilterError("Rule index has no 'versions' object")

    original_count = 0
    filtered_count = 0
    filtered_versions: Dict[str, Any] = {}

    for version_id, version in versions.items():
        rules = version.get("rules") if isinstance(version, dict) else None

        if isinstance(rules, dict):
            kept: Any = {}
            for rule_id, rule in rules.items():
                original_count += 1
                if _is_accepted(rule):
                    kept[rule_id] = rule
                    filtered_count += 1
        elif isinstance(rules, list):
            kept = []
            for rule in rules:
                original_count += 1
                if _is_accepted(rule):
                    kept.append(rule)
                    filtered_count += 1
        else:
            continue

        if kept:
            filtered_version = dict(version)
            filtered_version["rules"] = kept
            filtered_versions[version_id] = filtered_version

    filtered: Dict[str, Any] = {}
    if "meta" in index:
        filtered["meta"] = index["meta"]
    filtered["versions"] = filtered_versions

    return FilterResult(filtered=filtered, original_count=original_count, filtered_count=filtered_count)


def parse_rule_index(raw_text: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw_text)
    except (TypeError, ValueError) as e:
        raise FilterError(f"Regel-Index ist kein gültiges JSON: {e}") from e
    if not isinstance(data, dict):
        raise FilterError("Regel-Index ist kein JSON-Objekt")
    return data


def prepare_index_content(raw_text: str, only_accepted: bool, log: Optional[LogFn] = None) -> str:
    """
    Index text to embed in the prompt.

    Without only_accepted the content is forwarded unchanged and the skip is
    logged as a warning. A parse or shape failure is a warning too, never
    fatal: the original content is forwarded.
    """
    if not only_accepted:
        if log:
            log("Filterung übersprungen (nur akzeptierte Regeln nicht gewählt).", Severity.WARNING)
        return raw_text

    try:
        result = filter_accepted_rules(parse_rule_index(raw_text))
    except FilterError as e:
        logger.debug("Pre-filter skipped: %s", e)
        if log:
            log(f"Filterung übersprungen, ungefilterter Index wird verwendet: {e}", Severity.WARNING)
        return raw_text

    if log:
        log(
            f"Regel-Index gefiltert: {result.filtered_count} von {result.original_count} Regeln akzeptiert "
            f"({len(result.filtered['versions'])} Versionen).",
            Severity.INFO,
        )
    return json.dumps(result.filtered, indent=2, ensure_ascii=False)
