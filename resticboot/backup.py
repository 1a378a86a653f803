"""Run the backup after the user confirms it."""

from __future__ import annotations

import subprocess
from typing import IO, TYPE_CHECKING

from rich.prompt import Confirm

from .utils import ResticbootError, Runner, console, expand_user, restic_env, run_command

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from .config import Configuration


class BackupError(ResticbootError):
    """The backup did not complete."""


def run_backup(
    executable: Path,
    config: Configuration,
    *,
    out: Console = console,
    stream: IO[str] | None = None,
    runner: Runner = subprocess.run,
    assume_yes: bool = False,
) -> bool:
    """Ask for confirmation and run ``restic backup`` over the configured paths.

    Returns False when the user declines, True when the backup completed.
    """
    if not config.paths:
        msg = "No paths configured for backup"
        raise BackupError(msg)

    out.print("Paths to back up:")
    for path in config.paths:
        out.print(f" - {path}", markup=False, highlight=False)

    if not assume_yes and not Confirm.ask(
        "Proceed with backup?",
        default=False,
        console=out,
        stream=stream,
    ):
        out.print("Backup aborted")
        return False

    args = [executable, "-r", expand_user(config.repository), "backup", *config.paths]
    try:
        result = run_command(args, runner, env=restic_env(config.password))
    except OSError as e:
        msg = f"restic backup could not start: {e}"
        raise BackupError(msg) from e
    if result.returncode != 0:
        msg = f"restic backup failed with exit status {result.returncode}"
        raise BackupError(msg)

    out.print("✅ [green]Backup completed[/green]")
    return True
