"""
Pipeline step: platform metadata fields

Metadata fields are always retained. They get a fixed, name-driven type
table instead of the statistics and pattern chain used for business fields.
"""

from automap.canonical.field import ColumnMapping, ColumnType, FieldNode
from automap.pipeline.datatype import strip_non_character
from automap.standards.metadata_rules import METADATA_TYPE_RULES
from automap.standards.rule_config import RuleConfig
from automap.utils.naming import fix_naming, in_pattern


class MetadataTyper:
    """
    Applies METADATA_TYPE_RULES to metadata leaves.
    """

    def __init__(self, rules: RuleConfig):
        self.rules = rules

    def apply(self, leaf: FieldNode) -> ColumnMapping:
        mapping = leaf.mapping or ColumnMapping()
        leaf.mapping = mapping

        mapping.is_discarded = False

        if not mapping.column_name:
            mapping.column_name = f"{self.rules.metadata_marker}_{fix_naming(leaf.field_name)}"

        if mapping.column_type is None:
            mapping.column_type = ColumnType(non_null=False)

        if self.rules.metadata_type_rules:
            self._apply_type_rules(mapping.column_type, mapping.column_name, leaf.field_name)

        strip_non_character(mapping.column_type)

        mapping.sort_key_index = -1
        mapping.dist_key = False
        mapping.primary_key = False
        return mapping

    def _apply_type_rules(self, ct: ColumnType, column_name: str, field_name: str) -> None:
        for rule in METADATA_TYPE_RULES:
            patterns = rule["patterns"]
            if not (in_pattern(column_name, patterns) or in_pattern(field_name, patterns)):
                continue

            ct.type = rule["type"]
            if rule.get("character"):
                ct.length = self.rules.metadata_varchar_length
                ct.truncate = self.rules.metadata_varchar_truncate
