import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from automap.canonical.field import FieldNode
from automap.utils.exceptions import MalformedEventTypeError


@dataclass
class EventType:
    """
    A named field tree owned by the ingestion platform.

    The engine only rewrites `fields`; everything else is passed back as
    received. Each parsed instance is a private copy of the payload.
    """
    name: str
    state: Optional[str] = None
    fields: List[FieldNode] = field(default_factory=list)

    # Aggregate statistics, `count` is the total observed event count
    stats: Optional[Dict[str, Any]] = None

    # Table routing ({tableName, schema}) once mapped
    mapping: Optional[Dict[str, Any]] = None
    mapping_mode: Optional[str] = None

    extra: Dict[str, Any] = field(default_factory=dict)

    # Root scratch prefix, always empty for the root
    father: Optional[str] = None

    _WIRE_KEYS = ("name", "state", "fields", "stats", "mapping", "mappingMode", "father")

    @property
    def children(self) -> List[FieldNode]:
        return self.fields

    @property
    def field_name(self) -> str:
        return ""

    @property
    def total_count(self) -> int:
        if not self.stats:
            return 0
        count = self.stats.get("count")
        return count if isinstance(count, (int, float)) and count > 0 else 0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EventType":
        if not isinstance(raw, dict):
            raise MalformedEventTypeError(
                f"Event type payload must be an object, got {type(raw).__name__}"
            )

        name = raw.get("name")
        if not name or not isinstance(name, str):
            raise MalformedEventTypeError("Event type payload has no name")

        fields = raw.get("fields")
        stats = raw.get("stats")
        mapping = raw.get("mapping")

        return cls(
            name=name,
            state=raw.get("state"),
            fields=[
                FieldNode.from_dict(f)
                for f in (fields if isinstance(fields, list) else [])
                if isinstance(f, dict)
            ],
            stats=copy.deepcopy(stats) if isinstance(stats, dict) else None,
            mapping=copy.deepcopy(mapping) if isinstance(mapping, dict) else None,
            mapping_mode=raw.get("mappingMode"),
            extra={
                k: copy.deepcopy(v)
                for k, v in raw.items()
                if k not in cls._WIRE_KEYS
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(copy.deepcopy(self.extra))
        out["name"] = self.name
        if self.state is not None:
            out["state"] = self.state
        out["fields"] = self.fields_to_dict()
        if self.stats is not None:
            out["stats"] = copy.deepcopy(self.stats)
        if self.mapping is not None:
            out["mapping"] = copy.deepcopy(self.mapping)
        if self.mapping_mode is not None:
            out["mappingMode"] = self.mapping_mode
        if self.father is not None:
            out["father"] = self.father
        return out

    def fields_to_dict(self) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self.fields]

    def iter_nodes(self) -> Iterator[FieldNode]:
        """
        Depth-first, pre-order walk over every field node.
        """
        stack = list(reversed(self.fields))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_leaves(self) -> Iterator[FieldNode]:
        return (node for node in self.iter_nodes() if node.is_leaf)


@dataclass
class EventTypeSummary:
    """
    Listing entry for an event type (name, lifecycle state, raw listing data).
    """
    name: str
    state: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EventTypeSummary":
        return cls(name=raw.get("name") or "", state=raw.get("state"), raw=dict(raw))
