"""Raw rule configuration, as read from YAML files and CLI flags."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PATTERNS = ["ERROR", "WARN"]


def split_csv(value: Any) -> Any:
    """Split a comma-separated string (or list of them) into trimmed, non-empty items."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return value

    items: list[str] = []
    for item in value:
        for part in str(item).split(","):
            part = part.strip()
            if part:
                items.append(part)
    return items


class RuleConfig(BaseModel):
    """Unvalidated match rules.

    Example YAML (under the ``rules`` key of the config file):

        rules:
          patterns: [ERROR, WARN, "timeout"]
          regex: false
          case_insensitive: true
          exclude: [healthcheck]
          colors:
            timeout: magenta
          notify_patterns: [ERROR]
          notify_throttle: 5
          poll_interval_ms: 100
          buffer_size: 8192
    """

    model_config = ConfigDict(extra="forbid")

    patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_PATTERNS))
    regex: bool = False
    case_insensitive: bool = False
    exclude: list[str] = Field(default_factory=list)
    colors: dict[str, str] = Field(default_factory=dict)
    notify_enabled: bool = True
    notify_patterns: list[str] | None = None  # None = every pattern
    notify_throttle: int = Field(5, ge=0)  # Max notifications per second
    poll_interval_ms: int = Field(100, gt=0)
    buffer_size: int = Field(8192, gt=0)

    @field_validator("patterns", "exclude", "notify_patterns", mode="before")
    @classmethod
    def split_pattern_lists(cls, v: Any) -> Any:
        """Accept comma-separated strings as well as lists."""
        return split_csv(v)

    @field_validator("patterns")
    @classmethod
    def patterns_not_empty(cls, v: list[str]) -> list[str]:
        """At least one pattern must survive trimming."""
        if not v:
            raise ValueError("at least one non-empty pattern is required")
        return v

    @field_validator("colors", mode="before")
    @classmethod
    def trim_color_keys(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k).strip(): str(c).strip() for k, c in v.items()}
        return v
