"""Command-line interface for resticboot."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import requests

from . import __version__
from .autostart import ensure_autostart
from .backup import BackupError, run_backup
from .config import CONFIG_FILE, REMOTE_CONFIG_URL, ConfigResolver, Configuration
from .health import health_report
from .notify import Notifier
from .provision import BinaryProvisioner, executable_path
from .repository import RepositoryInitializer
from .utils import ResticbootError, console, current_platform, log, setup_logging

logger = logging.getLogger(__name__)


def _resolve_config(
    args: argparse.Namespace,
    session: requests.Session,
    *,
    persist: bool = True,
) -> Configuration:
    config = ConfigResolver(
        session,
        cache_path=args.config_file,
        remote_url=args.config_url,
    ).resolve(persist=persist)
    console.print(config.describe(), markup=False, highlight=False)
    return config


def _register_autostart() -> None:
    os_name, _arch = current_platform()
    result = ensure_autostart(Path(sys.argv[0]), os_name)
    if result.ok:
        logger.debug("Autostart registered")
    else:
        log(f"Could not register autostart: {result.error}", "warning")


def run(args: argparse.Namespace, session: requests.Session) -> None:
    """Provision restic, resolve configuration, initialize and back up."""
    if not args.no_autostart:
        _register_autostart()

    provisioner = BinaryProvisioner(session)
    executable = executable_path(args.bin_dir, provisioner.os_name)
    provisioner.ensure(executable)

    config = _resolve_config(args, session)
    RepositoryInitializer().ensure(executable, config.repository, config.password)

    notifier = Notifier(session)
    try:
        completed = run_backup(executable, config, assume_yes=args.yes)
    except BackupError as e:
        notifier.notify(config, "Backup failed", str(e))
        raise
    if completed:
        notifier.notify(config, "Backup completed", f"Backed up {len(config.paths)} paths")


def health(args: argparse.Namespace, session: requests.Session) -> None:
    """Print a health report."""
    os_name, _arch = current_platform()
    executable = executable_path(args.bin_dir, os_name)
    # Read-only: the cache file is not created here
    config = _resolve_config(args, session, persist=False)
    report = health_report(executable, config, session, args.config_url)
    console.print(report, highlight=False, markup=False)


def autostart(_args: argparse.Namespace, _session: requests.Session) -> None:
    """Register autostart and report the outcome."""
    os_name, _arch = current_platform()
    result = ensure_autostart(Path(sys.argv[0]), os_name)
    if not result.ok:
        msg = f"Could not register autostart: {result.error}"
        raise ResticbootError(msg)
    log("Autostart registered", "success")


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="resticboot - Set up restic and back up your files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--bin-dir",
        type=Path,
        default=Path("bin"),
        help="Directory holding the restic binary",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=Path(CONFIG_FILE),
        help="Path to the cached configuration file",
    )
    parser.add_argument(
        "--config-url",
        default=REMOTE_CONFIG_URL,
        help="URL of the remote configuration document",
    )
    parser.set_defaults(func=run, yes=False, no_autostart=False)

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # run command
    run_parser = subparsers.add_parser("run", help="Set up restic and run a backup")
    run_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation before the backup",
    )
    run_parser.add_argument(
        "--no-autostart",
        action="store_true",
        help="Do not register the program to start at login",
    )
    run_parser.set_defaults(func=run)

    # health command
    health_parser = subparsers.add_parser("health", help="Print a health report")
    health_parser.set_defaults(func=health)

    # autostart command
    autostart_parser = subparsers.add_parser("autostart", help="Start at login")
    autostart_parser.set_defaults(func=autostart)

    # version command
    version_parser = subparsers.add_parser("version", help="Print version information")
    version_parser.set_defaults(
        func=lambda _, __: console.print(f"[yellow]resticboot[/] [bold]v{__version__}[/]"),
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main function to parse arguments and execute commands."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        with requests.Session() as session:
            args.func(args, session)
    except ResticbootError as e:
        log(f"Error: {e!s}", "error")
        sys.exit(1)
    except KeyboardInterrupt:
        log("Interrupted", "error")
        sys.exit(130)


if __name__ == "__main__":
    main()
