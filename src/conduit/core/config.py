"""
Configuration schema and loading for conduit pipelines.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

Keys are accepted in snake_case or in the camelCase spelling used by
connector configuration files (maxRetries, awaitRetry, pollInterval, ...).
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from conduit.contracts.errors import PipelineConfigError


class PluginSelection(BaseModel):
    """Names of registered plugins to build a pipeline from.

    Example YAML:
        plugins:
          connector: postgres
          task: postgres
          converters: [json_value]
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    connector: str = Field(description="Registered connector name")
    task: str = Field(description="Registered task name")
    converters: tuple[str, ...] = Field(default=(), description="Registered converter names, applied in order")


class PipelineSettings(BaseModel):
    """Configuration for one source or sink pipeline.

    Example YAML:
        queue:
          bootstrap_servers: localhost:9092
        topic: orders
        maxTasks: 1
        connector:
          table: orders
        maxRetries: 3
        awaitRetry: 10
        haltOnError: true
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Required sections
    queue: dict[str, Any] = Field(description="Queue client connection settings")
    connector: dict[str, Any] = Field(description="Properties passed to Connector.start()")

    topic: str | None = Field(default=None, description="Queue topic (required for sources)")
    partitions: int | None = Field(default=None, gt=0, description="Partition count hint")
    max_tasks: int = Field(default=1, gt=0, description="Upper bound passed to Connector.task_configs()")

    # Source only
    poll_interval: int = Field(default=1000, gt=0, description="Delay between polls in milliseconds")

    # Sink retry and escalation
    max_retries: int = Field(default=3, ge=0, description="Retries after the first failed put")
    await_retry: int = Field(default=10, ge=0, description="Delay between put attempts in milliseconds")
    wait_on_error: bool = Field(default=False, description="Suspend acknowledgement once retries are exhausted")
    halt_on_error: bool = Field(default=False, description="Stop the pipeline once retries are exhausted")

    plugins: PluginSelection | None = Field(default=None, description="Registered plugins to build from")

    @field_validator("topic")
    @classmethod
    def validate_topic_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("topic cannot be blank")
        return v

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> Self:
        """Create settings from a mapping with a clear error on failure.

        Raises:
            PipelineConfigError: If config is not a mapping or fails validation.
        """
        if not isinstance(config, Mapping):
            raise PipelineConfigError(f"config must be a valid mapping, got {type(config).__name__}")

        for section in ("queue", "connector"):
            if not isinstance(config.get(section), Mapping):
                raise PipelineConfigError(f"config.{section} must be a valid mapping")

        try:
            return cls.model_validate(dict(config))
        except ValidationError as e:
            raise PipelineConfigError(f"Invalid pipeline configuration: {e}") from e


def coerce_settings(config: "PipelineSettings | Mapping[str, Any]") -> PipelineSettings:
    """Return config as PipelineSettings, validating mappings."""
    if isinstance(config, PipelineSettings):
        return config
    return PipelineSettings.from_dict(config)


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Unset variables without a default are left as written.
    """

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        if match.group(2) is not None:
            return match.group(2)
        return match.group(0)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_VAR_PATTERN.sub(replacer, value)
        if isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_expand_value(item) for item in value]
        return value

    return {k: _expand_value(v) for k, v in config.items()}


# Top-level keys whose nested dicts are opaque plugin/queue properties;
# their keys keep the case they were written with.
_OPAQUE_SECTIONS = frozenset({"queue", "connector"})


def load_settings(config_path: Path) -> PipelineSettings:
    """Load settings from a YAML file with environment variable overrides.

    Precedence:
    1. Environment variables (CONDUIT_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Environment variable format: CONDUIT_QUEUE__BOOTSTRAP_SERVERS for nested keys.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        PipelineConfigError: If the configuration fails validation
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="CONDUIT",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf upper-cases top-level keys; internal settings are dropped
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config: dict[str, Any] = {}
    for key, value in dynaconf_settings.as_dict().items():
        if key in internal_keys:
            continue
        raw_config[_normalize_key(key)] = value

    return PipelineSettings.from_dict(_expand_env_vars(raw_config))


def _normalize_key(key: str) -> str:
    """Map a Dynaconf top-level key back to a settings field name."""
    lowered = key.lower()
    if lowered in _OPAQUE_SECTIONS or "_" in lowered:
        return lowered
    # camelCase keys come back upper-cased (MAXRETRIES); resolve against aliases
    for name, field in PipelineSettings.model_fields.items():
        if lowered in (name, (field.alias or name).lower()):
            return name
    return lowered
