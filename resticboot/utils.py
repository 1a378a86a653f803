"""Utility functions for resticboot."""

from __future__ import annotations

import logging
import os
import platform
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Literal, NamedTuple

import requests
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

# Initialize rich consoles; diagnostics go to stderr
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30

Runner = Callable[..., subprocess.CompletedProcess]

_LEVEL_STYLES = {
    "info": ("🔍", "blue"),
    "success": ("✅", "green"),
    "warning": ("⚠️", "yellow"),
    "error": ("❌", "bold red"),
}


class ResticbootError(Exception):
    """Base class for errors that abort a resticboot run."""


class NetworkError(ResticbootError):
    """A request failed in transport or returned a non-success status."""


class DecodeError(ResticbootError):
    """A response body was not the JSON we expected."""


class SideEffectResult(NamedTuple):
    """Outcome of a best-effort side effect.

    Callers are allowed to drop it; it exists so the failure is a value
    instead of a swallowed exception.
    """

    name: str
    ok: bool
    error: str = ""


def log(
    message: str,
    level: Literal["default", "info", "success", "warning", "error"] = "default",
    *,
    print_exception: bool = False,
) -> None:
    """Print a message with an icon and colour for its level.

    The message is printed literally, never parsed as markup. Warnings and
    errors go to stderr.
    """
    out = err_console if level in ("warning", "error") else console
    if level in _LEVEL_STYLES:
        icon, style = _LEVEL_STYLES[level]
        out.print(f"{icon} [{style}]{escape(message)}[/{style}]", highlight=False)
    else:
        out.print(message, markup=False, highlight=False)
    if print_exception:
        out.print_exception()


def setup_logging(verbose: bool = False) -> None:  # noqa: FBT001, FBT002
    """Configure logging level based on verbosity."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


_OS_NAMES = {
    "win32": "windows",
    "cygwin": "windows",
    "darwin": "darwin",
    "sunos5": "solaris",
}

_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv5l": "arm",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "mips64": "mips64",
    "s390x": "s390x",
}


def current_platform() -> tuple[str, str]:
    """Detect the current OS and architecture using restic's release names."""
    os_name = _OS_NAMES.get(sys.platform)
    if os_name is None:
        # freebsd13, openbsd7, linux, ...
        os_name = sys.platform.rstrip("0123456789")

    machine = platform.machine().lower()
    arch = _ARCH_NAMES.get(machine, machine)
    return os_name, arch


def expand_user(path: str) -> str:
    """Expand a leading ``~`` to the user's home directory."""
    if path.startswith("~"):
        return str(Path.home() / path[1:].lstrip("/\\"))
    return path


def mask_secret(secret: str, visible: int = 2) -> str:
    """Hide all but the first few characters of a secret."""
    if len(secret) <= visible:
        return "*" * len(secret)
    return secret[:visible] + "*" * (len(secret) - visible)


def fetch_json(session: requests.Session, url: str) -> Any:
    """GET ``url`` and decode the body as JSON."""
    logger.debug("GET %s", url)
    try:
        response = session.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        msg = f"Request to {url} failed: {e}"
        raise NetworkError(msg) from e
    try:
        return response.json()
    except ValueError as e:
        msg = f"Invalid JSON from {url}: {e}"
        raise DecodeError(msg) from e


def restic_env(password: str, base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Copy of the environment with the repository password for restic."""
    env = dict(os.environ if base is None else base)
    env["RESTIC_PASSWORD"] = password
    return env


def run_command(
    args: Sequence[str | Path],
    runner: Runner = subprocess.run,
    env: Mapping[str, str] | None = None,
    capture: bool = False,  # noqa: FBT001, FBT002
) -> subprocess.CompletedProcess:
    """Run an external command, letting OS errors propagate to the caller."""
    cmd = [str(arg) for arg in args]
    logger.debug("Running %s", " ".join(cmd))
    kwargs: dict[str, Any] = {"check": False}
    if env is not None:
        kwargs["env"] = dict(env)
    if capture:
        kwargs["capture_output"] = True
        kwargs["text"] = True
    return runner(cmd, **kwargs)
