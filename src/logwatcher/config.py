"""Configuration loading for logwatcher."""

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from logwatcher.errors import ConfigError
from logwatcher.logging import LOG_FORMATS
from logwatcher.rules import RuleConfig, RuleSet, build_ruleset

DEFAULT_CONFIG_PATH = Path.home() / ".logwatcher" / "config.yaml"
NOTIFY_SINKS = ("desktop", "discord")


def _validate_rules(data: dict[str, Any]) -> RuleConfig:
    try:
        return RuleConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid rule configuration: {e}") from e


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NotifySection(_Section):
    sink: str | None = None
    discord_webhook_url: str | None = None


class OutputSection(_Section):
    quiet: bool | None = None
    no_color: bool | None = None
    prefix_files: bool | None = None


class LoggingSection(_Section):
    level: str | None = None
    format: str | None = None


class MetricsSection(_Section):
    port: int | None = Field(None, ge=0, le=65535)


SectionT = TypeVar("SectionT", bound=_Section)


def _validate_section(name: str, model: type[SectionT], data: Any) -> SectionT:
    """Validate one top-level section of the config file (a missing body counts as empty)."""
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as e:
        raise ConfigError(f"Invalid {name} configuration: {e}") from e


@dataclass
class Config:
    """Application configuration."""

    rules: RuleConfig = field(default_factory=RuleConfig)
    notify_sink: str = "desktop"
    discord_webhook_url: str | None = None
    log_level: str = "WARNING"
    log_format: str = "auto"
    metrics_port: int | None = None
    quiet: bool = False
    no_color: bool = False
    prefix_files: bool | None = None  # None = prefix when watching several files

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        port = os.environ.get("LOGWATCHER_METRICS_PORT") or None
        metrics = _validate_section("LOGWATCHER_METRICS_PORT", MetricsSection, {"port": port})

        config = cls(
            notify_sink=os.environ.get("LOGWATCHER_NOTIFY_SINK", "desktop"),
            discord_webhook_url=os.environ.get("DISCORD_WEBHOOK_URL"),
            log_level=os.environ.get("LOGWATCHER_LOG_LEVEL", "WARNING"),
            log_format=os.environ.get("LOGWATCHER_LOG_FORMAT", "auto"),
            metrics_port=metrics.port,
        )
        config.check_choices()
        return config

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from YAML file, with env var defaults.

        Example:

            rules:
              patterns: [ERROR, WARN]
              exclude: [healthcheck]
            notify:
              sink: discord
              discord_webhook_url: https://discord.com/api/webhooks/...
            output:
              quiet: true
            logging:
              level: INFO
              format: json
            metrics:
              port: 9108
        """
        config = cls.from_env()

        if not path.exists():
            return config

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

        if not data:
            return config
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        if "rules" in data:
            config.rules = _validate_rules(data["rules"] or {})

        if "notify" in data:
            notify = _validate_section("notify", NotifySection, data["notify"])
            if notify.sink is not None:
                config.notify_sink = notify.sink
            # The environment wins for the webhook secret
            if not config.discord_webhook_url:
                config.discord_webhook_url = notify.discord_webhook_url

        if "output" in data:
            out = _validate_section("output", OutputSection, data["output"])
            if out.quiet is not None:
                config.quiet = out.quiet
            if out.no_color is not None:
                config.no_color = out.no_color
            if out.prefix_files is not None:
                config.prefix_files = out.prefix_files

        if "logging" in data:
            log_section = _validate_section("logging", LoggingSection, data["logging"])
            config.log_level = log_section.level or config.log_level
            config.log_format = log_section.format or config.log_format

        if "metrics" in data:
            metrics = _validate_section("metrics", MetricsSection, data["metrics"])
            if metrics.port is not None:
                config.metrics_port = metrics.port

        config.check_choices()
        return config

    def check_choices(self) -> None:
        """Raise ConfigError if the sink or log format is not one we know."""
        if self.notify_sink not in NOTIFY_SINKS:
            raise ConfigError(
                f"Unknown notify sink: {self.notify_sink} (expected one of {', '.join(NOTIFY_SINKS)})"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(
                f"Unknown log format: {self.log_format} (expected one of {', '.join(LOG_FORMATS)})"
            )

    def with_rule_overrides(self, **overrides: Any) -> "Config":
        """Return a copy whose rules are updated with every non-None override.

        Color overrides are merged into the configured colors, not swapped in.
        """
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self
        if "colors" in updates:
            updates["colors"] = {**self.rules.colors, **updates["colors"]}
        rules = _validate_rules({**self.rules.model_dump(), **updates})
        return dataclasses.replace(self, rules=rules)

    def build_ruleset(self) -> RuleSet:
        return build_ruleset(self.rules)
