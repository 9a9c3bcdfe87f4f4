"""
Tests for the type rule engine and metadata typing.
"""

import pytest

from automap.canonical.field import ColumnMapping, ColumnType, FieldNode
from automap.pipeline.datatype import KeyRoleState, assign_key_roles, infer_column_type
from automap.pipeline.metadata import MetadataTyper
from automap.standards.rule_config import RuleConfig

RULES = RuleConfig()


def _typed(name: str, type_: str | None, rules: RuleConfig = RULES) -> ColumnType:
    return infer_column_type(name, ColumnType(type=type_), rules)


def _mapping(name: str, type_: str, state: KeyRoleState, rules: RuleConfig = RULES) -> ColumnMapping:
    mapping = ColumnMapping(column_name=name, column_type=_typed(name, type_, rules))
    assign_key_roles(mapping, state, rules)
    return mapping


# =============================================================================
# TESTS: infer_column_type (rules 1-6)
# =============================================================================


class TestInferColumnType:
    """Tests for pattern-driven type overrides."""

    def test_no_rule_keeps_auto_mapped_type(self) -> None:
        ct = _typed("properties_score", "FLOAT")
        assert ct.type == "FLOAT"
        assert ct.length is None

    def test_float_pattern(self) -> None:
        assert _typed("context_geolocation_latitude", "DOUBLE").type == "FLOAT_NORM"

    def test_bigint_wins_over_float(self) -> None:
        """Test geolocation_timestamp ends as BIGINT."""
        ct = _typed("geolocation_timestamp", "FLOAT")
        assert ct.type == "BIGINT"
        assert ct.length is None
        assert ct.truncate is None

    def test_varchar_pattern_sets_defaults(self) -> None:
        ct = _typed("context_app_version", "BIGINT")
        assert ct.type == "VARCHAR"
        assert ct.length == 4096
        assert ct.truncate is True

    def test_auto_mapped_varchar_gets_defaults(self) -> None:
        ct = infer_column_type("properties_plan", ColumnType(type="VARCHAR", length=64), RULES)
        assert ct.length == 4096
        assert ct.truncate is True

    def test_timestamp_normalized(self) -> None:
        assert _typed("created_at", "TIMESTAMP").type == "TIMESTAMPTZ"

    def test_timestamp_type_configurable(self) -> None:
        rules = RULES.with_overrides({"timestamp_type": "TIMESTAMP"})
        assert _typed("created_at", "TIMESTAMPTZ", rules).type == "TIMESTAMP"

    def test_id_pattern_overrides_everything_before(self) -> None:
        ct = _typed("user_id", "BIGINT")
        assert ct.type == "VARCHAR"
        assert ct.length == 256
        assert ct.truncate is False

    def test_missing_type_stays_missing(self) -> None:
        assert not _typed("properties_plan", None).has_type()

    def test_input_not_mutated(self) -> None:
        original = ColumnType(type="BIGINT")
        infer_column_type("user_id", original, RULES)
        assert original.type == "BIGINT"


# =============================================================================
# TESTS: assign_key_roles (rules 7-10)
# =============================================================================


class TestAssignKeyRoles:
    """Tests for sort, distribution and primary keys."""

    def test_sort_keys_contiguous(self) -> None:
        """Test matching fields get 0, 1, 2 ... in call order."""
        state = KeyRoleState()
        names = ["timestamp", "properties_score", "user_email", "context_os_name"]

        indices = [_mapping(n, "VARCHAR", state).sort_key_index for n in names]

        assert indices == [0, -1, 1, 2]
        assert state.next_sort_key == 3

    def test_sort_key_varchar_length(self) -> None:
        mapping = _mapping("user_email", "VARCHAR", KeyRoleState())
        assert mapping.column_type.length == 256

    def test_distribution_key_exact_name(self) -> None:
        state = KeyRoleState()
        assert _mapping("timestamp", "TIMESTAMP", state).dist_key is True
        assert _mapping("created_timestamp", "TIMESTAMP", state).dist_key is False

    def test_single_distribution_key(self) -> None:
        """Test a duplicate name does not take the role twice."""
        state = KeyRoleState()
        first = _mapping("timestamp", "TIMESTAMP", state)
        second = _mapping("timestamp", "TIMESTAMP", state)

        assert first.dist_key is True
        assert second.dist_key is False

    def test_primary_key_forced(self) -> None:
        """Test the primary key ignores the auto-mapped type."""
        mapping = _mapping("message_id", "BIGINT", KeyRoleState())

        assert mapping.primary_key is True
        assert mapping.column_type.type == "CHAR"
        assert mapping.column_type.length == 36
        assert mapping.column_type.truncate is False
        assert mapping.column_type.non_null is True

    def test_single_primary_key(self) -> None:
        state = KeyRoleState()
        assert _mapping("message_id", "VARCHAR", state).primary_key is True
        assert _mapping("message_id", "VARCHAR", state).primary_key is False

    def test_non_character_stripped(self) -> None:
        mapping = ColumnMapping(
            column_name="properties_score",
            column_type=ColumnType(type="BIGINT", length=10, truncate=True),
        )
        assign_key_roles(mapping, KeyRoleState(), RULES)

        assert mapping.column_type.length is None
        assert mapping.column_type.truncate is None

    @pytest.mark.parametrize("type_", ["VARCHAR", "CHAR", "char"])
    def test_character_types_keep_length(self, type_: str) -> None:
        mapping = ColumnMapping(
            column_name="properties_score",
            column_type=ColumnType(type=type_, length=10, truncate=True),
        )
        assign_key_roles(mapping, KeyRoleState(), RULES)

        assert mapping.column_type.length == 10


# =============================================================================
# TESTS: MetadataTyper
# =============================================================================


class TestMetadataTyper:
    """Tests for the metadata rule table."""

    def _apply(self, field_name: str, column_name: str = "", type_: str | None = None) -> ColumnMapping:
        leaf = FieldNode(
            field_name=field_name,
            mapping=ColumnMapping(
                column_name=column_name,
                column_type=ColumnType(type=type_) if type_ else None,
            ),
        )
        return MetadataTyper(RULES).apply(leaf)

    def test_character_rule(self) -> None:
        mapping = self._apply("uuid", "_metadata_uuid", "BIGINT")
        assert mapping.column_type.type == "VARCHAR"
        assert mapping.column_type.length == 1024
        assert mapping.column_type.truncate is False

    def test_timestamp_rule(self) -> None:
        mapping = self._apply("pull_time", "_metadata_pull_time", "VARCHAR")
        assert mapping.column_type.type == "TIMESTAMP"
        assert mapping.column_type.length is None

    def test_boolean_rule(self) -> None:
        assert self._apply("deleted", "_metadata_deleted", "VARCHAR").column_type.type == "BOOLEAN"

    def test_bigint_rule(self) -> None:
        assert self._apply("ordinal", "_metadata_ordinal", "VARCHAR").column_type.type == "BIGINT"

    def test_later_rule_wins(self) -> None:
        """Test a name hitting both character and timestamp rules."""
        mapping = self._apply("table_updated", "_metadata_table_updated", "VARCHAR")
        assert mapping.column_type.type == "TIMESTAMP"
        assert mapping.column_type.length is None

    def test_default_name_and_type(self) -> None:
        """Test a metadata leaf the auto-mapper left blank."""
        leaf = FieldNode(field_name="eventKind")
        mapping = MetadataTyper(RULES).apply(leaf)

        assert leaf.mapping is mapping
        assert mapping.column_name == "_metadata_event_kind"
        assert mapping.column_type.non_null is False
        assert mapping.is_discarded is False

    def test_key_roles_neutral(self) -> None:
        mapping = self._apply("timestamp", "_metadata_timestamp", "TIMESTAMP")
        assert mapping.sort_key_index == -1
        assert mapping.dist_key is False
        assert mapping.primary_key is False

    def test_rules_disabled(self) -> None:
        rules = RULES.with_overrides({"metadata_type_rules": False})
        leaf = FieldNode(
            field_name="uuid",
            mapping=ColumnMapping(column_name="_metadata_uuid", column_type=ColumnType(type="BIGINT")),
        )
        assert MetadataTyper(rules).apply(leaf).column_type.type == "BIGINT"
