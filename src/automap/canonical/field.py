import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _split_extra(raw: Dict[str, Any], known: tuple) -> Dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in raw.items() if k not in known}


@dataclass
class ColumnType:
    """
    Warehouse column type as exchanged with the platform.

    `length` / `truncate` only carry meaning for character types.
    """
    type: Optional[str] = None
    length: Optional[int] = None
    truncate: Optional[bool] = None
    non_null: Optional[bool] = None

    # Unrecognised platform keys, passed through untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    _WIRE_KEYS = ("type", "length", "truncate", "nonNull")

    def has_type(self) -> bool:
        return bool(self.type)

    def is_character(self) -> bool:
        return bool(self.type) and "char" in self.type.lower()

    def strip_character_settings(self) -> None:
        self.length = None
        self.truncate = None

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["ColumnType"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            type=raw.get("type"),
            length=raw.get("length"),
            truncate=raw.get("truncate"),
            non_null=raw.get("nonNull"),
            extra=_split_extra(raw, cls._WIRE_KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(copy.deepcopy(self.extra))
        if self.type is not None:
            out["type"] = self.type
        if self.length is not None:
            out["length"] = self.length
        if self.truncate is not None:
            out["truncate"] = self.truncate
        if self.non_null is not None:
            out["nonNull"] = self.non_null
        return out


@dataclass
class ColumnMapping:
    """
    Mapping decision for a single leaf field.

    sort_key_index / dist_key / primary_key are scratch values: they feed the
    table-creation column list and are cleared before the tree is committed.
    """
    column_name: str = ""
    column_type: Optional[ColumnType] = None
    is_discarded: Optional[bool] = None

    sort_key_index: Optional[int] = None
    dist_key: Optional[bool] = None
    primary_key: Optional[bool] = None

    extra: Dict[str, Any] = field(default_factory=dict)

    _WIRE_KEYS = (
        "columnName",
        "columnType",
        "isDiscarded",
        "sortKeyIndex",
        "distKey",
        "primaryKey",
    )

    def discard(self) -> None:
        self.is_discarded = True
        self.column_name = ""
        self.column_type = None

    def clear_key_roles(self) -> None:
        self.sort_key_index = None
        self.dist_key = None
        self.primary_key = None

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["ColumnMapping"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            column_name=raw.get("columnName") or "",
            column_type=ColumnType.from_dict(raw.get("columnType")),
            is_discarded=raw.get("isDiscarded"),
            sort_key_index=raw.get("sortKeyIndex"),
            dist_key=raw.get("distKey"),
            primary_key=raw.get("primaryKey"),
            extra=_split_extra(raw, cls._WIRE_KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(copy.deepcopy(self.extra))
        out["columnName"] = self.column_name
        out["columnType"] = self.column_type.to_dict() if self.column_type else None
        if self.is_discarded is not None:
            out["isDiscarded"] = self.is_discarded
        if self.sort_key_index is not None:
            out["sortKeyIndex"] = self.sort_key_index
        if self.dist_key is not None:
            out["distKey"] = self.dist_key
        if self.primary_key is not None:
            out["primaryKey"] = self.primary_key
        return out

    def to_column(self) -> Dict[str, Any]:
        """
        Table-creation column entry: the mapping without discard / platform
        bookkeeping keys.
        """
        column = self.to_dict()
        for key in ("isDiscarded", "machineGenerated", "subFields"):
            column.pop(key, None)
        return column


@dataclass
class FieldNode:
    """
    One node of an event type's field tree. A node without children is a leaf.
    """
    field_name: str = ""
    children: List["FieldNode"] = field(default_factory=list)

    # Per-variant occurrence statistics, leaves only, removed by cleanup
    stats: Optional[Dict[str, Any]] = None
    mapping: Optional[ColumnMapping] = None

    # Resolved underscore-joined ancestor prefix, traversal scratch only
    father: Optional[str] = None

    # Platform metadata leaf, set by the annotator, traversal scratch only
    metadata: bool = False

    extra: Dict[str, Any] = field(default_factory=dict)

    _WIRE_KEYS = ("fieldName", "fields", "stats", "mapping", "father")

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FieldNode":
        children = raw.get("fields")
        stats = raw.get("stats")
        return cls(
            field_name=raw.get("fieldName") or "",
            children=[
                cls.from_dict(child)
                for child in (children if isinstance(children, list) else [])
                if isinstance(child, dict)
            ],
            stats=copy.deepcopy(stats) if isinstance(stats, dict) else None,
            mapping=ColumnMapping.from_dict(raw.get("mapping")),
            father=raw.get("father"),
            extra=_split_extra(raw, cls._WIRE_KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(copy.deepcopy(self.extra))
        out["fieldName"] = self.field_name
        out["fields"] = [child.to_dict() for child in self.children]
        if self.mapping is not None:
            out["mapping"] = self.mapping.to_dict()
        if self.stats is not None:
            out["stats"] = copy.deepcopy(self.stats)
        if self.father is not None:
            out["father"] = self.father
        return out
