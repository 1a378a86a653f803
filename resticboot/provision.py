"""Make sure a working restic binary is on disk."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from .download import download_bytes
from .extract import archive_format_for, extract_archive
from .release import TOOL_NAME, asset_name, latest_asset
from .utils import ResticbootError, Runner, current_platform, log, run_command

if TYPE_CHECKING:
    import requests


class ProvisionError(ResticbootError):
    """The restic binary could not be made ready."""


def executable_name(os_name: str, tool: str = TOOL_NAME) -> str:
    """File name of the executable on ``os_name``."""
    return f"{tool}.exe" if os_name == "windows" else tool


def executable_path(bin_dir: Path, os_name: str, tool: str = TOOL_NAME) -> Path:
    """Where the provisioned executable lives."""
    return Path(bin_dir) / executable_name(os_name, tool)


class BinaryProvisioner:
    """Download restic when missing, otherwise ask it to update itself."""

    def __init__(
        self,
        session: requests.Session,
        os_name: str | None = None,
        arch: str | None = None,
        runner: Runner = subprocess.run,
        tool: str = TOOL_NAME,
    ) -> None:
        """Initialize the provisioner for a platform (detected if omitted)."""
        detected_os, detected_arch = current_platform()
        self.session = session
        self.os_name = os_name or detected_os
        self.arch = arch or detected_arch
        self.runner = runner
        self.tool = tool

    def ensure(self, executable: Path) -> Literal["downloaded", "updated"]:
        """Download or self-update the executable at ``executable``."""
        executable = Path(executable)
        if not executable.exists():
            log(f"{self.tool} not found, downloading latest release...", "info")
            self.download(executable)
            log(f"{self.tool} downloaded to {executable}", "success")
            return "downloaded"

        log(f"{self.tool} found, performing self-update...", "info")
        self.self_update(executable)
        return "updated"

    def download(self, executable: Path) -> None:
        """Fetch the latest release asset and extract it to ``executable``."""
        try:
            version, url = latest_asset(self.session, self.os_name, self.arch, tool=self.tool)
            name = asset_name(self.tool, version, self.os_name, self.arch)
            data = download_bytes(self.session, url)
            # Release zips hold either "restic.exe" or the versioned name.
            entry_names = (
                executable_name(self.os_name, self.tool),
                f"{self.tool}_{version}_{self.os_name}_{self.arch}.exe",
            )
            extract_archive(data, archive_format_for(name), executable, entry_names)
        except ResticbootError as e:
            msg = f"Failed to download {self.tool}: {e}"
            raise ProvisionError(msg) from e

    def self_update(self, executable: Path) -> None:
        """Run ``<executable> self-update`` and require it to succeed."""
        try:
            result = run_command([executable, "self-update"], self.runner)
        except OSError as e:
            msg = f"{self.tool} self-update could not start: {e}"
            raise ProvisionError(msg) from e
        if result.returncode != 0:
            msg = f"{self.tool} self-update failed with exit status {result.returncode}"
            raise ProvisionError(msg)
