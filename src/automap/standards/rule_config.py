"""
Immutable rule configuration for the auto-mapping engine.

A single RuleConfig is built once per process (defaults below, optionally
overridden from YAML) and passed explicitly to every pipeline pass.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from automap.utils.exceptions import ConfigError

# ------------------------------------------------------------------
# Column types
# ------------------------------------------------------------------

VARCHAR = "VARCHAR"
CHAR = "CHAR"
BIGINT = "BIGINT"
FLOAT_NORM = "FLOAT_NORM"
TIMESTAMP = "TIMESTAMP"
TIMESTAMPTZ = "TIMESTAMPTZ"
BOOLEAN = "BOOLEAN"

TIMESTAMP_TYPES = {TIMESTAMP, TIMESTAMPTZ}


@dataclass(frozen=True)
class RuleConfig:
    # default settings for every field auto-mapped as VARCHAR
    varchar_length: int = 4096
    varchar_truncate: bool = True

    # TIMESTAMP or TIMESTAMPTZ for every timestamp-like column
    timestamp_type: str = TIMESTAMPTZ

    # primary key (informative only on Redshift)
    primary_key: str = "message_id"
    primary_key_type: str = CHAR
    primary_key_length: int = 36
    primary_key_truncate: bool = False

    # column for an even distribution of fact data across nodes
    distribution_key: str = "timestamp"

    # fields identified as id columns
    id_type: str = VARCHAR
    id_length: int = 256
    id_truncate: bool = False
    id_patterns: Tuple[str, ...] = ("id",)

    # compound/interleaved sort key candidates
    sort_key_varchar_length: int = 256
    sort_key_patterns: Tuple[str, ...] = (
        "timestamp",
        "id",
        "user",
        "email",
        "gender",
        "os_name",
        "birthday",
        "created_at",
    )

    # forced type overrides (float < bigint < varchar)
    float_patterns: Tuple[str, ...] = ("geolocation",)
    bigint_patterns: Tuple[str, ...] = ("geolocation_timestamp",)
    varchar_patterns: Tuple[str, ...] = ("_id", "version", "timezone", "build")

    # columns never mapped
    discard_patterns: Tuple[str, ...] = ("password", "floor_level", "integrations", "__c")

    # retention thresholds
    apply_statistics_discard: bool = True
    min_occurrence: int = 5
    min_occurrence_percent: float = 1.0
    min_distinct_samples: int = 2
    max_sample_occurrence_percent: float = 98.9

    # platform metadata fields
    metadata_marker: str = "_metadata"
    metadata_type_rules: bool = True
    metadata_varchar_length: int = 1024
    metadata_varchar_truncate: bool = False

    # trait scrubbing on already mapped event types
    trait_marker: str = "traits"
    trait_meta_exempt: str = "meta"
    trait_blacklist: Tuple[str, ...] = (
        "age",
        "avatar",
        "birthday",
        "currency",
        "email",
        "fb",
        "gender",
        "itunes",
        "language",
        "locale",
        "_location",
        "name",
        "password",
        "signal",
        "store",
        "timezone",
        "token",
    )

    def __post_init__(self):
        if self.timestamp_type not in TIMESTAMP_TYPES:
            raise ConfigError(
                f"Invalid timestamp_type '{self.timestamp_type}'. "
                f"Allowed values: {', '.join(sorted(TIMESTAMP_TYPES))}"
            )
        if self.min_occurrence < 0 or self.min_distinct_samples < 0:
            raise ConfigError("Retention thresholds must not be negative")
        if not 0 <= self.max_sample_occurrence_percent <= 100:
            raise ConfigError("max_sample_occurrence_percent must be within 0..100")

    # ------------------------------------------
    # Construction
    # ------------------------------------------
    @classmethod
    def from_dict(cls, raw: Dict[str, Any] | None) -> "RuleConfig":
        return cls().with_overrides(raw or {})

    def with_overrides(self, overrides: Dict[str, Any]) -> "RuleConfig":
        """
        Return a new config with the given fields replaced.
        """
        if not isinstance(overrides, dict):
            raise ConfigError("Rule overrides must be a mapping")

        defaults = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - set(defaults))
        if unknown:
            raise ConfigError(f"Unknown rule settings: {', '.join(unknown)}")

        changes = {
            key: _coerce(key, value, defaults[key])
            for key, value in overrides.items()
        }
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in dataclasses.asdict(self).items()
        }


def _coerce(key: str, value: Any, current: Any) -> Any:
    if isinstance(current, tuple):
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ConfigError(f"Rule setting '{key}' must be a list of strings")
        if not all(isinstance(v, str) for v in value):
            raise ConfigError(f"Rule setting '{key}' must be a list of strings")
        return tuple(value)

    if isinstance(current, bool):
        if not isinstance(value, bool):
            raise ConfigError(f"Rule setting '{key}' must be true or false")
        return value

    if isinstance(current, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"Rule setting '{key}' must be an integer")
        return value

    if isinstance(current, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"Rule setting '{key}' must be a number")
        return float(value)

    if not isinstance(value, str) or not value:
        raise ConfigError(f"Rule setting '{key}' must be a non-empty string")
    return value


DEFAULT_RULES = RuleConfig()
