from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from automap.canonical.event_type import EventTypeSummary
from automap.utils.exceptions import ConfigError
from automap.utils.naming import in_pattern


class EventState:
    UNMAPPED = "UNMAPPED"
    MAPPED = "MAPPED"


class MappingMode:
    STRICT = "STRICT"
    FLEXIBLE = "FLEXIBLE"

    @classmethod
    def is_valid(cls, mode: str) -> bool:
        return mode in {cls.STRICT, cls.FLEXIBLE}


@dataclass(frozen=True)
class EventTypeFilter:
    """
    Selects event types by lifecycle state and name substrings.

    - states:           allowed states (empty = any)
    - exclude_states:   rejected states
    - include_patterns: name must contain at least one (empty = any)
    - exclude_patterns: name must contain none
    - exclude_names:    exact names to skip
    """
    states: Tuple[str, ...] = (EventState.UNMAPPED,)
    exclude_states: Tuple[str, ...] = ()
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ("develop", "other")
    exclude_names: Tuple[str, ...] = ()

    def matches(self, event: EventTypeSummary) -> bool:
        if self.states and event.state not in self.states:
            return False
        if event.state in self.exclude_states:
            return False
        if self.include_patterns and not in_pattern(event.name, self.include_patterns):
            return False
        if in_pattern(event.name, self.exclude_patterns):
            return False
        return event.name not in self.exclude_names

    def select(self, events: Iterable[EventTypeSummary]) -> List[EventTypeSummary]:
        return [e for e in events if e.name and self.matches(e)]


def resolve_target(event_name: str, target_schema: Optional[str]) -> Tuple[str, str]:
    """
    (schema, table) for an event type.

    With a fixed target schema the event name is the table name; otherwise
    the event name is expected as `schema.table`.
    """
    if target_schema:
        return target_schema, event_name

    schema, sep, table = event_name.partition(".")
    if not sep or not schema or not table:
        raise ConfigError(
            f"Event type '{event_name}' is not named <schema>.<table> "
            f"and no target schema is configured"
        )
    return schema, table.split(".")[0]
