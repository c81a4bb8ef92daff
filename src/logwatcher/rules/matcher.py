"""Line classifier: decides whether a log line matches the rule set."""

from collections.abc import Iterator
from dataclasses import dataclass

from logwatcher.rules.ruleset import Color, MatchMode, Rule, RuleSet


@dataclass(frozen=True)
class MatchResult:
    """Result of classifying a log line."""

    matched: bool
    pattern: str | None = None  # Pattern text that matched first
    color: Color | None = None  # Display color for the pattern, if any
    should_notify: bool = False  # Pattern is notification-eligible

    @classmethod
    def no_match(cls) -> "MatchResult":
        return _NO_MATCH


_NO_MATCH = MatchResult(matched=False)


class Matcher:
    """Stateless classifier over a RuleSet.

    Exclusion and inclusion are separate passes: callers check
    should_exclude() first and never classify an excluded line.
    """

    def __init__(self, ruleset: RuleSet):
        self.ruleset = ruleset

    def _iter_hits(self, rules: tuple[Rule, ...], line: str) -> Iterator[Rule]:
        """Yield every rule that matches, in declaration order."""
        if self.ruleset.mode is MatchMode.REGEX:
            for rule in rules:
                if rule.compiled is not None and rule.compiled.search(line):
                    yield rule
        elif self.ruleset.case_insensitive:
            lowered = line.lower()
            for rule in rules:
                if rule.lowered in lowered:
                    yield rule
        else:
            for rule in rules:
                if rule.text in line:
                    yield rule

    def _first_hit(self, rules: tuple[Rule, ...], line: str) -> Rule | None:
        return next(self._iter_hits(rules, line), None)

    def should_exclude(self, line: str) -> bool:
        """True if any exclude rule matches the line."""
        if not self.ruleset.excludes:
            return False
        return self._first_hit(self.ruleset.excludes, line) is not None

    def classify(self, line: str) -> MatchResult:
        """Classify a line. First declared pattern wins.

        Args:
            line: The log line (already stripped of its terminator)

        Returns:
            MatchResult with pattern, color and notify flag on a hit
        """
        rule = self._first_hit(self.ruleset.rules, line)
        if rule is None:
            return MatchResult.no_match()

        return MatchResult(
            matched=True,
            pattern=rule.text,
            color=self.ruleset.color_for(rule.text),
            should_notify=self.ruleset.should_notify_for(rule.text),
        )

    def has_match(self, line: str) -> bool:
        return self.classify(line).matched

    def matching_patterns(self, line: str) -> list[str]:
        """Get every pattern that matches a line, in declaration order."""
        return [rule.text for rule in self._iter_hits(self.ruleset.rules, line)]
