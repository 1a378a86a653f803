"""Initialize the restic repository when it does not exist yet."""

from __future__ import annotations

import subprocess
from pathlib import Path

from .utils import ResticbootError, Runner, expand_user, log, restic_env, run_command

# restic writes this file at the repository root during `init`.
MARKER_FILE = "config"


class InitError(ResticbootError):
    """The repository could not be confirmed initialized."""


def is_initialized(repository: str) -> bool:
    return (Path(expand_user(repository)) / MARKER_FILE).is_file()


class RepositoryInitializer:
    """Run ``restic init`` once per repository."""

    def __init__(self, runner: Runner = subprocess.run) -> None:
        self.runner = runner

    def ensure(self, executable: Path, repository: str, password: str) -> bool:
        """Initialize ``repository`` unless it already is.

        Returns True when ``restic init`` ran, False when the repository was
        already there. The password reaches restic through ``RESTIC_PASSWORD``
        and never appears on the command line.
        """
        repo_path = expand_user(repository)
        if is_initialized(repo_path):
            log(f"restic repository found at {repo_path}", "success")
            return False

        log(f"Initializing restic repository at {repo_path}", "info")
        try:
            result = run_command(
                [executable, "-r", repo_path, "init"],
                self.runner,
                env=restic_env(password),
            )
        except OSError as e:
            msg = f"Could not run {executable}: {e}"
            raise InitError(msg) from e
        if result.returncode != 0:
            msg = f"restic init failed with exit status {result.returncode}"
            raise InitError(msg)
        return True
