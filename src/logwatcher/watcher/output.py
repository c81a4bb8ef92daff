"""Terminal output for classified lines, file events and summaries."""

from collections import Counter
from dataclasses import dataclass, field

import click

from logwatcher.rules import MatchResult, RuleSet


@dataclass
class WatcherStats:
    """Counters accumulated over one run."""

    files_watched: int = 0
    lines_processed: int = 0
    matches_found: int = 0
    notifications_sent: int = 0
    pattern_counts: Counter = field(default_factory=Counter)

    def summary(self) -> dict[str, int]:
        return {
            "files_watched": self.files_watched,
            "lines_processed": self.lines_processed,
            "matches_found": self.matches_found,
            "notifications_sent": self.notifications_sent,
        }


class OutputSink:
    """Prints lines to stdout and status messages to stderr."""

    def __init__(self, quiet: bool = False, no_color: bool = False, prefix_files: bool = False):
        self.quiet = quiet
        self.color = not no_color
        self.prefix_files = prefix_files

    def _echo(self, text: str, fg: str | None = None, err: bool = False) -> None:
        if fg and self.color:
            text = click.style(text, fg=fg)
        click.echo(text, err=err, color=None if self.color else False)

    def print_line(
        self,
        line: str,
        source_label: str | None,
        result: MatchResult,
        dry_run: bool = False,
    ) -> None:
        """Print one line, colored by its matched pattern."""
        if self.quiet and not result.matched:
            return

        parts = []
        if dry_run and result.matched:
            parts.append("[DRY-RUN] ")
        if self.prefix_files and source_label:
            parts.append(f"[{source_label}] ")
        parts.append(line)

        fg = result.color.value if result.matched and result.color else None
        self._echo("".join(parts), fg=fg)

    def print_plain(self, text: str) -> None:
        self._echo(text)

    def print_error(self, message: str) -> None:
        self._echo(f"Error: {message}", fg="red", err=True)

    def print_warning(self, message: str) -> None:
        self._echo(f"Warning: {message}", fg="yellow", err=True)

    def print_info(self, message: str) -> None:
        self._echo(f"Info: {message}", fg="cyan", err=True)

    def print_startup_info(self, file_count: int, ruleset: RuleSet, dry_run: bool) -> None:
        self.print_info(f"Watching {file_count} file(s)")
        if ruleset.patterns:
            self.print_info(f"Patterns: {', '.join(ruleset.patterns)}")
        if ruleset.exclude_patterns:
            self.print_info(f"Excluding: {', '.join(ruleset.exclude_patterns)}")
        if ruleset.notify_enabled and not dry_run:
            self.print_info("Notifications enabled")
        if dry_run:
            self.print_info("Dry-run mode: reading existing content only")

    def print_file_rotation(self, filename: str) -> None:
        self.print_warning(f"File rotation detected for {filename}")

    def print_file_reopened(self, filename: str) -> None:
        self.print_info(f"Reopened file: {filename}")

    def print_file_error(self, filename: str, error: str) -> None:
        self.print_error(f"Error watching {filename}: {error}")

    def print_dry_run_summary(self, counts: Counter) -> None:
        if not counts:
            self.print_info("No matching lines found")
            return

        self.print_info("Dry-run summary:")
        for pattern, count in counts.most_common():
            self.print_plain(f"  {pattern}: {count} matches")
        self.print_info("Dry-run complete. No notifications sent.")

    def print_shutdown_summary(self, stats: WatcherStats) -> None:
        self.print_info("Shutdown summary:")
        self.print_plain(f"  Files watched: {stats.files_watched}")
        self.print_plain(f"  Lines processed: {stats.lines_processed}")
        self.print_plain(f"  Matches found: {stats.matches_found}")
        self.print_plain(f"  Notifications sent: {stats.notifications_sent}")
