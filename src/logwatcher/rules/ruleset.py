"""Immutable rule sets built from a RuleConfig."""

import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

import structlog
from pydantic import ValidationError

from logwatcher.errors import ConfigError, UnknownColorError
from logwatcher.rules.models import RuleConfig

log = structlog.get_logger()

# Compiled regex programs above this size are rejected
REGEX_SIZE_LIMIT = 10 * 1024 * 1024


class MatchMode(Enum):
    """How patterns are compared against lines."""

    LITERAL = "literal"
    REGEX = "regex"


class Color(Enum):
    """Display colors understood by the output sink."""

    BLACK = "black"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    MAGENTA = "magenta"
    CYAN = "cyan"
    WHITE = "white"


_DEFAULT_COLORS: dict[str, Color] = {
    "ERROR": Color.RED,
    "WARN": Color.YELLOW,
    "WARNING": Color.YELLOW,
    "INFO": Color.GREEN,
    "DEBUG": Color.CYAN,
    "TRACE": Color.MAGENTA,
    "FATAL": Color.RED,
    "CRITICAL": Color.RED,
}


def default_color(pattern: str) -> Color | None:
    """Return the built-in color for a well-known level name."""
    return _DEFAULT_COLORS.get(pattern)


def parse_color(color_name: str) -> Color:
    """Parse a color name (case-insensitive)."""
    try:
        return Color(color_name.strip().lower())
    except ValueError:
        raise UnknownColorError(color_name) from None


def compile_pattern(pattern: str, case_insensitive: bool = False) -> re.Pattern[str]:
    """Compile a regex, enforcing the program-size ceiling.

    Raises:
        ConfigError: if the pattern is invalid or compiles too large
    """
    flags = re.IGNORECASE if case_insensitive else 0
    try:
        compiled = re.compile(pattern, flags)
    except (re.error, OverflowError, RecursionError) as e:
        raise ConfigError(
            f"Invalid regex pattern: {pattern}: {e}", pattern=pattern, reason=str(e)
        ) from e

    # getsizeof on a compiled pattern includes its code array
    size = sys.getsizeof(compiled)
    if size > REGEX_SIZE_LIMIT:
        reason = f"compiled program is {size} bytes, limit is {REGEX_SIZE_LIMIT}"
        raise ConfigError(f"Regex pattern too large: {pattern}: {reason}", pattern=pattern, reason=reason)

    return compiled


@dataclass(frozen=True)
class Rule:
    """A single pattern and its precomputed forms."""

    text: str
    lowered: str
    compiled: re.Pattern[str] | None = None

    @classmethod
    def build(cls, text: str, mode: MatchMode, case_insensitive: bool) -> "Rule":
        compiled = compile_pattern(text, case_insensitive) if mode is MatchMode.REGEX else None
        return cls(text=text, lowered=text.lower(), compiled=compiled)


@dataclass(frozen=True)
class RuleSet:
    """Ready-to-use match rules. Built once, never mutated."""

    rules: tuple[Rule, ...]
    mode: MatchMode = MatchMode.LITERAL
    case_insensitive: bool = False
    excludes: tuple[Rule, ...] = ()
    colors: Mapping[str, Color] = field(default_factory=lambda: MappingProxyType({}))
    notify_enabled: bool = True
    notify_eligible: frozenset[str] = frozenset()
    notify_throttle: int = 5
    poll_interval: float = 0.1  # Seconds
    read_buffer_size: int = 8192

    @property
    def patterns(self) -> tuple[str, ...]:
        return tuple(rule.text for rule in self.rules)

    @property
    def exclude_patterns(self) -> tuple[str, ...]:
        return tuple(rule.text for rule in self.excludes)

    def color_for(self, pattern: str) -> Color | None:
        return self.colors.get(pattern)

    def should_notify_for(self, pattern: str) -> bool:
        return self.notify_enabled and pattern in self.notify_eligible


def _build_colors(overrides: Mapping[str, str]) -> dict[str, Color]:
    colors = dict(_DEFAULT_COLORS)
    for pattern, color_name in overrides.items():
        colors[pattern] = parse_color(color_name)
    return colors


def build_ruleset(config: RuleConfig) -> RuleSet:
    """Validate a RuleConfig and compile it into a RuleSet.

    Raises:
        ConfigError: invalid pattern syntax or oversized regex program
        UnknownColorError: a color override names an unsupported color
    """
    mode = MatchMode.REGEX if config.regex else MatchMode.LITERAL

    rules = tuple(Rule.build(p, mode, config.case_insensitive) for p in config.patterns)
    excludes = tuple(Rule.build(p, mode, config.case_insensitive) for p in config.exclude)

    notify_patterns = config.notify_patterns
    if notify_patterns is None:
        notify_patterns = list(config.patterns)

    ruleset = RuleSet(
        rules=rules,
        mode=mode,
        case_insensitive=config.case_insensitive,
        excludes=excludes,
        colors=MappingProxyType(_build_colors(config.colors)),
        notify_enabled=config.notify_enabled,
        notify_eligible=frozenset(notify_patterns),
        notify_throttle=config.notify_throttle,
        poll_interval=config.poll_interval_ms / 1000.0,
        read_buffer_size=config.buffer_size,
    )
    log.debug(
        "Rule set built",
        mode=mode.value,
        patterns=len(rules),
        excludes=len(excludes),
        case_insensitive=config.case_insensitive,
    )
    return ruleset


def ruleset_from_dict(data: Mapping[str, object]) -> RuleSet:
    """Build a RuleSet straight from a raw mapping (YAML section, test fixture)."""
    try:
        config = RuleConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid rule configuration: {e}") from e
    return build_ruleset(config)
