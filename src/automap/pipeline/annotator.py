"""
Pipeline step: annotation + cleanup

Responsibilities:
- Resolve names, classify retention and type every leaf of one event type
- Write the final mapping onto each leaf of the (private) tree
- Build the flat column list used for table creation
- Strip traversal scratch data before the tree is committed

Leaf lifecycle: RAW -> CLASSIFIED -> TYPED -> ANNOTATED -> CLEANED.
Discarded leaves go from CLASSIFIED straight to a cleared mapping.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from automap.canonical.event_type import EventType
from automap.canonical.field import ColumnMapping, FieldNode
from automap.pipeline.datatype import KeyRoleState, assign_key_roles, infer_column_type
from automap.pipeline.metadata import MetadataTyper
from automap.pipeline.naming import resolve_names
from automap.pipeline.retention import field_statistics, is_metadata_field, should_discard
from automap.standards.rule_config import RuleConfig


@dataclass
class AnnotationResult:
    columns: List[Dict[str, Any]] = field(default_factory=list)
    retained: int = 0
    discarded: int = 0
    metadata: int = 0
    sort_keys: int = 0
    discard_reasons: Dict[str, List[str]] = field(default_factory=dict)

    def summary(self) -> Dict[str, Any]:
        return {
            "columns": len(self.columns),
            "retained": self.retained,
            "discarded": self.discarded,
            "metadata": self.metadata,
            "sort_keys": self.sort_keys,
        }


class FieldAnnotator:
    """
    Runs the rule passes over one event type's field tree.
    """

    def __init__(self, rules: RuleConfig):
        self.rules = rules
        self.metadata_typer = MetadataTyper(rules)

    def annotate(self, event_type: EventType) -> AnnotationResult:
        result = AnnotationResult()
        state = KeyRoleState()
        total_count = event_type.total_count

        for leaf, column_name in resolve_names(event_type):
            # Remembered on the node: a dropped metadata leaf loses the name that marked it
            leaf.metadata = leaf.metadata or is_metadata_field(leaf, column_name, self.rules)
            if leaf.metadata:
                mapping = self.metadata_typer.apply(leaf)
                result.metadata += 1
            else:
                mapping = self._annotate_leaf(leaf, column_name, total_count, state, result)

            # A column cannot be created without a type
            if not mapping.is_discarded and not (mapping.column_type and mapping.column_type.has_type()):
                result.discard_reasons.setdefault(column_name, []).append("missing_type")
                mapping.discard()

            if mapping.is_discarded:
                mapping.clear_key_roles()
                result.discarded += 1
                continue

            result.retained += 1
            result.columns.append(mapping.to_column())

        result.sort_keys = state.next_sort_key
        return result

    def _annotate_leaf(
        self,
        leaf: FieldNode,
        column_name: str,
        total_count: int,
        state: KeyRoleState,
        result: AnnotationResult,
    ) -> ColumnMapping:
        mapping = leaf.mapping or ColumnMapping()
        leaf.mapping = mapping
        mapping.column_name = column_name

        # CLASSIFIED
        decision = should_discard(
            column_name,
            field_statistics(leaf.stats),
            total_count,
            self.rules,
        )
        if decision.discarded:
            result.discard_reasons[column_name] = decision.reasons
            mapping.discard()
            return mapping
        mapping.is_discarded = False

        # TYPED
        mapping.column_type = infer_column_type(column_name, mapping.column_type, self.rules)
        if not mapping.column_type.has_type():
            mapping.column_type = None
            return mapping

        assign_key_roles(mapping, state, self.rules)
        return mapping


def clean_up(event_type: EventType, keep_key_roles: bool = False) -> EventType:
    """
    Remove traversal scratch data (prefixes, statistics, metadata flags) from
    every node, and the key roles unless `keep_key_roles` is set. Safe to run
    any number of times.

    Already mapped event types are committed back with `keep_key_roles=True`:
    their existing sort, distribution and primary keys stay in place.
    """
    event_type.father = None
    event_type.stats = None

    for node in event_type.iter_nodes():
        node.father = None
        node.stats = None
        node.metadata = False
        if node.mapping is not None and not keep_key_roles:
            node.mapping.clear_key_roles()

    return event_type


def find_unmapped_fields(event_type: EventType) -> List[str]:
    """
    Resolved names of leaves that carry no mapping at all. Works on a copy,
    the given tree is left untouched.
    """
    scratch = EventType.from_dict(event_type.to_dict())
    return [name for leaf, name in resolve_names(scratch) if leaf.mapping is None]
