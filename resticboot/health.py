"""Render a health report of the binary, configuration and backup sources."""

from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from .utils import (
    DecodeError,
    NetworkError,
    Runner,
    expand_user,
    fetch_json,
    mask_secret,
    run_command,
)

if TYPE_CHECKING:
    import requests

    from .config import Configuration

SECRET_KEYS = ("restic-repo-password", "pushover-token", "email-password")


def _yes_no(value: bool) -> str:  # noqa: FBT001
    return "yes" if value else "no"


def human_size(size: float) -> str:
    """Format a byte count like ``1.5 MiB``."""
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TiB"  # pragma: no cover


def path_stats(path: Path) -> tuple[int, int]:
    """Number of files and total bytes under ``path``."""
    if path.is_file():
        return 1, path.stat().st_size
    count = total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += (Path(root) / name).stat().st_size
            except OSError:
                continue
            count += 1
    return count, total


def restic_version(executable: Path, runner: Runner = subprocess.run) -> str:
    try:
        result = run_command([executable, "version"], runner, capture=True)
    except OSError as e:
        return f"unavailable ({e})"
    if result.returncode != 0:
        return f"unavailable (exit status {result.returncode})"
    return result.stdout.strip()


def health_report(
    executable: Path,
    config: Configuration,
    session: requests.Session,
    remote_url: str,
    runner: Runner = subprocess.run,
) -> str:
    """Build a plain-text report of the current setup."""
    lines = [
        f"restic version: {restic_version(executable, runner)}",
        f"repository: {config.repository}",
        f"pushover configured: {_yes_no(config.pushover.configured)}",
        f"email configured: {_yes_no(config.email.configured)}",
        "remote configuration:",
    ]
    try:
        document = fetch_json(session, remote_url)
    except (NetworkError, DecodeError) as e:
        lines.append(f"  unavailable ({e})")
    else:
        if isinstance(document, dict):
            document = {
                key: mask_secret(value) if key in SECRET_KEYS and isinstance(value, str) else value
                for key, value in document.items()
            }
        lines.append(json.dumps(document, indent=2))

    lines.append("backup paths:")
    for raw in config.paths:
        path = Path(expand_user(raw))
        if not path.exists():
            lines.append(f" - {raw} (missing)")
            continue
        count, total = path_stats(path)
        lines.append(f" - {raw} ({count} files, {human_size(total)})")
    return "\n".join(lines)
