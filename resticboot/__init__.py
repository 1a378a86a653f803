"""resticboot - restic provisioning and backup launcher.

Downloads the right restic binary for the running platform (or asks an
existing one to update itself), resolves where and what to back up from the
environment, a remote document and a local cache file, makes sure the
repository exists and runs a confirmed backup.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used functions
from .config import ConfigResolver, Configuration, EmailChannel, PushoverChannel
from .extract import ArchiveEntryNotFoundError, ExtractError, extract_archive
from .provision import BinaryProvisioner, ProvisionError, executable_path
from .release import NotFoundError, asset_name, latest_asset
from .repository import InitError, RepositoryInitializer
from .utils import DecodeError, NetworkError, ResticbootError, current_platform

__all__ = [
    "ArchiveEntryNotFoundError",
    "BinaryProvisioner",
    "ConfigResolver",
    "Configuration",
    "DecodeError",
    "EmailChannel",
    "ExtractError",
    "InitError",
    "NetworkError",
    "NotFoundError",
    "ProvisionError",
    "PushoverChannel",
    "RepositoryInitializer",
    "ResticbootError",
    "asset_name",
    "current_platform",
    "executable_path",
    "extract_archive",
    "latest_asset",
]
