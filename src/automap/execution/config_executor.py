import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

import yaml

from automap.governance.policy import EventTypeFilter
from automap.standards.rule_config import RuleConfig
from automap.utils.exceptions import ConfigError

DEFAULT_BASE_URL = "https://app.alooma.com:443/rest"
DEFAULT_TARGET_SCHEMA = "dataflux"


@dataclass(frozen=True)
class RunSettings:
    """
    Driver settings: where the platform is, how many event types run at
    once, and which ones are selected.
    """
    base_url: str = DEFAULT_BASE_URL
    email: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 60.0

    concurrency: int = 4
    dry_run: bool = False
    create_table: bool = True

    # None → derive schema/table from `schema.table` event names
    target_schema: Optional[str] = DEFAULT_TARGET_SCHEMA

    event_filter: EventTypeFilter = field(default_factory=EventTypeFilter)

    def __post_init__(self):
        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")


class ConfigExecutor:
    """
    Loads rule and run settings from a YAML file plus environment.

    Layout:

        platform: {base_url, email, password, timeout}
        run:      {concurrency, dry_run, create_table, target_schema,
                   states, exclude_states, include, exclude, exclude_names}
        rules:    {<any RuleConfig field>: value}
    """

    ENV_BASE_URL = "AUTOMAP_BASE_URL"
    ENV_EMAIL = "AUTOMAP_EMAIL"
    ENV_PASSWORD = "AUTOMAP_PASSWORD"

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.config = self._load_config()

    # ------------------------------------------
    # Load YAML
    # ------------------------------------------
    def _load_config(self) -> Dict:
        if not self.config_path:
            return {}

        if not os.path.exists(self.config_path):
            raise ConfigError(f"Config file not found: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config root must be a mapping: {self.config_path}")
        return loaded

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.config.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"Config section '{name}' must be a mapping")
        return section

    def has_run_setting(self, key: str) -> bool:
        return self._section("run").get(key) is not None

    # ------------------------------------------
    # Rules
    # ------------------------------------------
    def build_rules(self) -> RuleConfig:
        return RuleConfig.from_dict(self._section("rules"))

    # ------------------------------------------
    # Run settings
    # ------------------------------------------
    def build_settings(self) -> RunSettings:
        platform = self._section("platform")
        run = self._section("run")

        defaults = EventTypeFilter()
        event_filter = EventTypeFilter(
            states=_as_tuple(run.get("states"), defaults.states),
            exclude_states=_as_tuple(run.get("exclude_states"), defaults.exclude_states),
            include_patterns=_as_tuple(run.get("include"), defaults.include_patterns),
            exclude_patterns=_as_tuple(run.get("exclude"), defaults.exclude_patterns),
            exclude_names=_as_tuple(run.get("exclude_names"), defaults.exclude_names),
        )

        target_schema = run.get("target_schema", DEFAULT_TARGET_SCHEMA)

        return RunSettings(
            base_url=os.getenv(self.ENV_BASE_URL) or platform.get("base_url", DEFAULT_BASE_URL),
            email=os.getenv(self.ENV_EMAIL) or platform.get("email"),
            password=os.getenv(self.ENV_PASSWORD) or platform.get("password"),
            timeout=float(platform.get("timeout", 60.0)),
            concurrency=int(run.get("concurrency", 4)),
            dry_run=bool(run.get("dry_run", False)),
            create_table=bool(run.get("create_table", True)),
            target_schema=target_schema or None,
            event_filter=event_filter,
        )

    def build(self) -> Tuple[RuleConfig, RunSettings]:
        return self.build_rules(), self.build_settings()


def apply_cli_overrides(settings: RunSettings, **overrides: Any) -> RunSettings:
    """
    Replace run settings with CLI values that were actually given.
    """
    filter_keys = {"states", "include_patterns", "exclude_patterns"}

    filter_changes = {
        k: tuple(v) for k, v in overrides.items() if k in filter_keys and v
    }
    setting_changes = {
        k: v for k, v in overrides.items() if k not in filter_keys and v is not None
    }

    if filter_changes:
        setting_changes["event_filter"] = replace(settings.event_filter, **filter_changes)
    return replace(settings, **setting_changes)


def _as_tuple(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"Expected a list of strings, got {value!r}")
    return tuple(value)
