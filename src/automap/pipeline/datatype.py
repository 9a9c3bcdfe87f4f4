"""
Pipeline step: type rule engine

Computes the column type and key roles of a retained, non-metadata leaf.
Rules run in a fixed order; a later rule wins over an earlier one.

  1. float patterns          -> FLOAT_NORM
  2. bigint patterns         -> BIGINT
  3. varchar patterns        -> VARCHAR
  4. VARCHAR                 -> default length / truncation
  5. *timestamp*             -> configured timestamp type
  6. id patterns             -> id type, length, truncation
  7. sort key patterns       -> next sort key index (VARCHAR length shortened)
  8. == distribution key     -> dist key
  9. == primary key          -> primary key type, length, truncation, non-null
 10. non-character type      -> no length / truncate
"""

from dataclasses import dataclass
from typing import Optional

from automap.canonical.field import ColumnMapping, ColumnType
from automap.standards.rule_config import BIGINT, FLOAT_NORM, VARCHAR, RuleConfig
from automap.utils.naming import in_pattern


@dataclass
class KeyRoleState:
    """
    Key-role accumulator threaded through one event type's traversal.

    Single writer: the annotator owns it for the duration of one pass.
    """
    next_sort_key: int = 0
    dist_key_taken: bool = False
    primary_key_taken: bool = False

    def take_sort_key(self) -> int:
        index = self.next_sort_key
        self.next_sort_key += 1
        return index


def infer_column_type(
    column_name: str,
    column_type: Optional[ColumnType],
    rules: RuleConfig,
) -> ColumnType:
    """
    Rules 1-6. Returns a new ColumnType; the auto-mapper's type is kept when
    no rule matches.
    """
    ct = ColumnType(
        type=column_type.type if column_type else None,
        length=column_type.length if column_type else None,
        truncate=column_type.truncate if column_type else None,
        non_null=column_type.non_null if column_type else None,
        extra=dict(column_type.extra) if column_type else {},
    )

    if in_pattern(column_name, rules.float_patterns):
        ct.type = FLOAT_NORM
    if in_pattern(column_name, rules.bigint_patterns):
        ct.type = BIGINT
    if in_pattern(column_name, rules.varchar_patterns):
        ct.type = VARCHAR

    if ct.type == VARCHAR:
        ct.length = rules.varchar_length
        ct.truncate = rules.varchar_truncate

    if ct.type and "timestamp" in ct.type.lower():
        ct.type = rules.timestamp_type

    if in_pattern(column_name, rules.id_patterns):
        ct.type = rules.id_type
        ct.length = rules.id_length
        ct.truncate = rules.id_truncate

    return ct


def assign_key_roles(
    mapping: ColumnMapping,
    state: KeyRoleState,
    rules: RuleConfig,
) -> None:
    """
    Rules 7-10 on an already typed mapping.
    """
    name = mapping.column_name
    ct = mapping.column_type

    if in_pattern(name, rules.sort_key_patterns):
        mapping.sort_key_index = state.take_sort_key()
        if ct.type == VARCHAR:
            ct.length = rules.sort_key_varchar_length
    else:
        mapping.sort_key_index = -1

    mapping.dist_key = name == rules.distribution_key and not state.dist_key_taken
    if mapping.dist_key:
        state.dist_key_taken = True

    mapping.primary_key = name == rules.primary_key and not state.primary_key_taken
    if mapping.primary_key:
        state.primary_key_taken = True
        ct.type = rules.primary_key_type
        ct.length = rules.primary_key_length
        ct.truncate = rules.primary_key_truncate
        ct.non_null = True

    strip_non_character(ct)


def strip_non_character(column_type: Optional[ColumnType]) -> None:
    if column_type and not column_type.is_character():
        column_type.strip_character_settings()
