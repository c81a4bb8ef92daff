"""Match rules: rule set construction and line classification."""

from .matcher import MatchResult, Matcher
from .models import RuleConfig
from .ruleset import (
    REGEX_SIZE_LIMIT,
    Color,
    MatchMode,
    Rule,
    RuleSet,
    build_ruleset,
    compile_pattern,
    default_color,
    parse_color,
    ruleset_from_dict,
)

__all__ = [
    # Configuration
    "RuleConfig",
    "build_ruleset",
    "ruleset_from_dict",
    "compile_pattern",
    "REGEX_SIZE_LIMIT",
    # Rule set
    "RuleSet",
    "Rule",
    "MatchMode",
    "Color",
    "default_color",
    "parse_color",
    # Matcher
    "Matcher",
    "MatchResult",
]
