"""CLI for logwatcher.

Usage:
    logwatcher watch -f /var/log/app.log -p ERROR,WARN
    logwatcher watch -f app.log -f worker.log -r -p 'user_id=\\d+' --no-notify
    logwatcher watch -f app.log --dry-run
    logwatcher test-notify
"""

import dataclasses
from pathlib import Path
from typing import NoReturn

import click

from logwatcher import __version__
from logwatcher.alerter import (
    DesktopSink,
    DiscordClient,
    DiscordSink,
    NotificationSink,
    Notifier,
    NotifyOutcome,
)
from logwatcher.config import DEFAULT_CONFIG_PATH, NOTIFY_SINKS, Config
from logwatcher.errors import ConfigError, FileAccessError
from logwatcher.logging import configure_logging, get_logger
from logwatcher.metrics import start_metrics_server
from logwatcher.utils import validate_files
from logwatcher.watcher import LogWatcher, OutputSink

log = get_logger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def parse_color_map(value: str | None) -> dict[str, str] | None:
    """Parse 'ERROR:red,WARN:yellow' into a mapping. Malformed entries are skipped."""
    if value is None:
        return None

    mapping: dict[str, str] = {}
    for entry in value.split(","):
        parts = entry.split(":")
        if len(parts) != 2:
            continue
        pattern, color = parts[0].strip(), parts[1].strip()
        if pattern and color:
            mapping[pattern] = color
    return mapping


def build_sink(config: Config) -> NotificationSink:
    """Create the notification sink named in the config.

    Raises:
        ConfigError: unknown sink, or discord without a webhook URL
    """
    if config.notify_sink == "desktop":
        return DesktopSink()
    if config.notify_sink == "discord":
        if not config.discord_webhook_url:
            raise ConfigError(
                "Discord webhook URL required (set DISCORD_WEBHOOK_URL or notify.discord_webhook_url)"
            )
        return DiscordSink(DiscordClient(config.discord_webhook_url))
    raise ConfigError(f"Unknown notify sink: {config.notify_sink}")


def fail(message: str, code: int) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(code)


@click.group()
@click.version_option(__version__, prog_name="logwatcher")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Config file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Path, verbose: bool) -> None:
    """Real-time log file monitoring with pattern highlighting and notifications."""
    ctx.ensure_object(dict)
    try:
        config = Config.from_file(config_path)
    except ConfigError as e:
        fail(f"Configuration error: {e}", EXIT_CONFIG_ERROR)

    configure_logging("DEBUG" if verbose else config.log_level, config.log_format)
    ctx.obj["config"] = config


@main.command("watch")
@click.option(
    "--file",
    "-f",
    "files",
    multiple=True,
    required=True,
    type=click.Path(path_type=Path),
    help="Path of a log file to watch (repeatable)",
)
@click.option("--pattern", "-p", "patterns", help="Comma-separated patterns to match [default: ERROR,WARN]")
@click.option("--regex", "-r", is_flag=True, help="Treat patterns as regular expressions")
@click.option("--case-insensitive", "-i", is_flag=True, help="Case-insensitive matching")
@click.option("--exclude", "-e", "exclude", help="Comma-separated patterns whose lines are dropped")
@click.option("--color-map", "-c", help='Custom pattern:color mappings (e.g., "ERROR:red,WARN:yellow")')
@click.option("--notify/--no-notify", default=None, help="Enable or disable notifications")
@click.option("--notify-patterns", help="Patterns that trigger notifications (default: all patterns)")
@click.option("--notify-throttle", type=int, help="Maximum notifications per second [default: 5]")
@click.option("--notify-sink", type=click.Choice(NOTIFY_SINKS), help="Where notifications go")
@click.option("--dry-run", "-d", is_flag=True, help="Scan existing content once; no tailing, no notifications")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-matching lines")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors")
@click.option(
    "--prefix-file/--no-prefix-file",
    default=None,
    help="Prefix lines with the file name (default: on for multiple files)",
)
@click.option("--poll-interval", type=int, help="File polling interval in milliseconds [default: 100]")
@click.option("--buffer-size", type=int, help="Read buffer size in bytes [default: 8192]")
@click.option("--metrics-port", type=click.IntRange(0, 65535), help="Serve Prometheus metrics on this port")
@click.pass_context
def watch(
    ctx: click.Context,
    files: tuple[Path, ...],
    patterns: str | None,
    regex: bool,
    case_insensitive: bool,
    exclude: str | None,
    color_map: str | None,
    notify: bool | None,
    notify_patterns: str | None,
    notify_throttle: int | None,
    notify_sink: str | None,
    dry_run: bool,
    quiet: bool,
    no_color: bool,
    prefix_file: bool | None,
    poll_interval: int | None,
    buffer_size: int | None,
    metrics_port: int | None,
) -> None:
    """Tail log files and highlight lines matching the patterns."""
    config: Config = ctx.obj["config"]

    try:
        config = config.with_rule_overrides(
            patterns=patterns,
            regex=regex or None,
            case_insensitive=case_insensitive or None,
            exclude=exclude,
            colors=parse_color_map(color_map),
            notify_enabled=notify,
            notify_patterns=notify_patterns,
            notify_throttle=notify_throttle,
            poll_interval_ms=poll_interval,
            buffer_size=buffer_size,
        )
        if notify_sink is not None:
            config = dataclasses.replace(config, notify_sink=notify_sink)
        ruleset = config.build_ruleset()
        notifier = None
        if ruleset.notify_enabled and not dry_run:
            notifier = Notifier(ruleset, build_sink(config))
    except ConfigError as e:
        fail(f"Configuration error: {e}", EXIT_CONFIG_ERROR)

    try:
        valid_files, errors = validate_files(files)
    except FileAccessError as e:
        fail(str(e), EXIT_FAILURE)

    prefix = prefix_file if prefix_file is not None else config.prefix_files
    output = OutputSink(
        quiet=quiet or config.quiet,
        no_color=no_color or config.no_color,
        prefix_files=prefix if prefix is not None else len(files) > 1,
    )
    if errors:
        output.print_warning(f"Some files are not accessible: {', '.join(errors)}")

    watcher = LogWatcher(
        ruleset=ruleset,
        files=valid_files,
        output=output,
        notifier=notifier,
        dry_run=dry_run,
    )

    port = metrics_port if metrics_port is not None else config.metrics_port
    metrics_server = None
    if port is not None and not dry_run:
        try:
            metrics_server = start_metrics_server(port=port, health=watcher.health)
        except OSError as e:
            fail(f"Cannot start metrics server on port {port}: {e}", EXIT_FAILURE)

    try:
        watcher.run()
    finally:
        if metrics_server is not None:
            metrics_server.stop()
    log.info("LogWatcher completed successfully")


@main.command("test-notify")
@click.option("--notify-sink", type=click.Choice(NOTIFY_SINKS), help="Where notifications go")
@click.pass_context
def test_notify(ctx: click.Context, notify_sink: str | None) -> None:
    """Send a test notification through the configured sink."""
    config: Config = ctx.obj["config"]
    if notify_sink is not None:
        config = dataclasses.replace(config, notify_sink=notify_sink)

    try:
        notifier = Notifier(config.build_ruleset(), build_sink(config))
    except ConfigError as e:
        fail(f"Configuration error: {e}", EXIT_CONFIG_ERROR)

    outcome = notifier.send_test()
    if outcome is NotifyOutcome.SENT:
        click.echo("Test notification sent successfully!")
    else:
        click.echo("Failed to send test notification")
        raise SystemExit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
