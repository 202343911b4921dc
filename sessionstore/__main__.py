"""Entry point: python -m sessionstore <command> <snapshot-file>."""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sessionstore.config import load_config
from sessionstore.errors import ConfigError, PersistenceError
from sessionstore.logging_config import parse_level, setup_logging
from sessionstore.session.manager import SessionManager

logger = logging.getLogger(__name__)

_console = Console()

_USAGE = """\
[bold]sessionstore[/bold] -- inspect and maintain session snapshot files

  [cyan]inspect[/cyan] <file>   List the sessions stored in a snapshot
  [cyan]purge[/cyan] <file>     Drop expired sessions and rewrite the snapshot
  [cyan]help[/cyan]             Show this message

  --config=<file>    Store config (JSON); its snapshot_path is the default <file>
  -v, --verbose      Debug logging
"""


def _print_usage() -> int:
    _console.print(_USAGE)
    return 0


def _load(path: Path) -> SessionManager | None:
    try:
        return SessionManager.load_from(path)
    except PersistenceError as exc:
        _console.print(f"[bold red]Cannot load snapshot:[/bold red] {escape(str(exc))}")
        return None


def _cmd_inspect(path: Path) -> int:
    manager = _load(path)
    if manager is None:
        return 1

    now = datetime.now(UTC)
    table = Table(title=f"Sessions for cookie '{escape(manager.cookie_name)}'")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Expires (UTC)")
    table.add_column("State")
    table.add_column("Vars", justify="right")

    held = sorted(manager.list_sessions(include_expired=True), key=lambda s: s.expiry)
    for session in held:
        state = "[red]expired[/red]" if session.is_expired(now) else "[green]live[/green]"
        table.add_row(
            f"{session.id[:12]}...",
            session.expiry.strftime("%Y-%m-%d %H:%M:%S"),
            state,
            str(len(session.vars_copy())),
        )
    _console.print(table)
    _console.print(f"[dim]{len(held)} session(s) in {escape(str(path))}[/dim]")
    return 0


def _cmd_purge(path: Path) -> int:
    manager = _load(path)
    if manager is None:
        return 1
    removed = manager.cleanup()
    if not removed:
        _console.print("[dim]No expired sessions.[/dim]")
        return 0
    try:
        manager.snapshot_to(path)
    except PersistenceError as exc:
        _console.print(f"[bold red]Cannot write snapshot:[/bold red] {escape(str(exc))}")
        return 1
    _console.print(f"[green]Removed {removed} expired session(s), {len(manager)} left.[/green]")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = sys.argv[1:] if argv is None else argv
    verbose = "--verbose" in args or "-v" in args
    positional = [a for a in args if not a.startswith("-")]
    config_arg = next((a.split("=", 1)[1] for a in args if a.startswith("--config=")), None)

    try:
        config = load_config(Path(config_arg).expanduser() if config_arg else None)
    except ConfigError as exc:
        _console.print(f"[bold red]Invalid config:[/bold red] {escape(str(exc))}")
        return 2
    setup_logging(
        level=max(parse_level(config.log_level), logging.WARNING),
        verbose=verbose,
        log_dir=config.log_directory,
    )

    if not positional or positional[0] == "help" or "--help" in args or "-h" in args:
        return _print_usage()

    command, rest = positional[0], positional[1:]
    dispatch = {"inspect": _cmd_inspect, "purge": _cmd_purge}
    handler = dispatch.get(command)
    if handler is None:
        _console.print(f"[bold red]Unknown command:[/bold red] {escape(command)}")
        _print_usage()
        return 2
    target = Path(rest[0]).expanduser() if rest else config.snapshot_file
    if target is None:
        _console.print(f"[bold red]Missing snapshot file for '{command}'[/bold red]")
        return 2
    logger.debug("Running %s on %s", command, target)
    return handler(target)


if __name__ == "__main__":
    sys.exit(main())
