"""
Pipeline step: retention classification

Decides whether a leaf is discarded from its occurrence statistics and a
name blacklist. Platform metadata fields never reach this step.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from automap.canonical.field import FieldNode
from automap.standards.rule_config import RuleConfig
from automap.utils.naming import fix_naming, in_pattern


@dataclass(frozen=True)
class FieldStatistics:
    total: int = 0          # s1: observations across all type variants
    distinct: int = 0       # s2: distinct sample values with a non-zero count
    dominant: int = 0       # s3: largest count of any single sample value


@dataclass
class RetentionDecision:
    discarded: bool
    reasons: List[str] = field(default_factory=list)


def field_statistics(stats: Optional[Dict[str, Any]]) -> FieldStatistics:
    """
    Aggregate the platform's per-variant stats:
    {variant: {count, samples: {value: {count}}}}
    """
    total = distinct = dominant = 0

    for variant in (stats or {}).values():
        if not isinstance(variant, dict) or not variant.get("count"):
            continue
        total += variant["count"]

        samples = variant.get("samples")
        if not isinstance(samples, dict):
            continue
        for sample in samples.values():
            if not isinstance(sample, dict) or not sample.get("count"):
                continue
            distinct += 1
            dominant = max(dominant, sample["count"])

    return FieldStatistics(total=total, distinct=distinct, dominant=dominant)


def is_metadata_field(leaf: FieldNode, column_name: str, rules: RuleConfig) -> bool:
    """
    Platform bookkeeping marker found on the auto-mapped column name, the
    ancestor prefix, the raw field name or the resolved name.
    """
    candidates = [
        leaf.mapping.column_name if leaf.mapping else "",
        leaf.father or "",
        leaf.field_name,
        (leaf.father or "") + fix_naming(leaf.field_name),
        column_name,
    ]
    return any(in_pattern(c, [rules.metadata_marker]) for c in candidates)


def is_key_column(column_name: str, rules: RuleConfig) -> bool:
    return column_name in (rules.primary_key, rules.distribution_key)


def should_discard(
    column_name: str,
    statistics: FieldStatistics,
    total_count: int,
    rules: RuleConfig,
) -> RetentionDecision:
    reasons: List[str] = []
    s1, s2, s3 = statistics.total, statistics.distinct, statistics.dominant

    if rules.apply_statistics_discard:
        if s1 and s1 < rules.min_occurrence:
            reasons.append("min_occurrence")

        # Relative rarity needs the event type's total, skipped when unknown
        if s1 and total_count and (s1 * 100.0 / total_count) < rules.min_occurrence_percent:
            reasons.append("min_occurrence_percent")

        if s1 and s3 and (s3 * 100.0 / s1) > rules.max_sample_occurrence_percent:
            reasons.append("sample_dominance")

        if s2 and s2 < rules.min_distinct_samples:
            reasons.append("min_distinct_samples")

    if in_pattern(column_name, rules.discard_patterns):
        reasons.append("discard_pattern")

    if is_key_column(column_name, rules):
        return RetentionDecision(discarded=False)

    return RetentionDecision(discarded=bool(reasons), reasons=reasons)
