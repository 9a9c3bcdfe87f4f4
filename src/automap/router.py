from dataclasses import dataclass, field
from typing import Any, Dict, List

from automap.canonical.event_type import EventType
from automap.governance.policy import MappingMode
from automap.pipeline.annotator import FieldAnnotator, clean_up
from automap.standards.rule_config import RuleConfig
from automap.utils.exceptions import ConfigError


@dataclass
class RemapOutcome:
    event_type: EventType
    columns: List[Dict[str, Any]]
    summary: Dict[str, Any] = field(default_factory=dict)
    discard_reasons: Dict[str, List[str]] = field(default_factory=dict)


def remap_event_type(payload: Dict[str, Any], rules: RuleConfig) -> RemapOutcome:
    """
    Engine entry point for a single, already auto-mapped event type.

    Flow:
    Payload → private tree → names → retention → types/keys →
    annotation → cleanup

    Pure: no I/O, the payload is not modified.
    """
    event_type = EventType.from_dict(payload)

    result = FieldAnnotator(rules).annotate(event_type)
    clean_up(event_type)

    return RemapOutcome(
        event_type=event_type,
        columns=result.columns,
        summary=result.summary(),
        discard_reasons=result.discard_reasons,
    )


def build_commit_payload(
    event_type: EventType,
    schema: str,
    table: str,
    mapping_mode: str = MappingMode.STRICT,
) -> Dict[str, Any]:
    if not MappingMode.is_valid(mapping_mode):
        raise ConfigError(f"Invalid mapping mode '{mapping_mode}'")

    return {
        "name": event_type.name,
        "mapping": {
            "tableName": table,
            "schema": schema,
        },
        "fields": event_type.fields_to_dict(),
        "mappingMode": mapping_mode,
    }
