"""Extract the restic executable from a release archive."""

from __future__ import annotations

import bz2
import io
import shutil
import zipfile
from pathlib import Path
from typing import IO, TYPE_CHECKING, Literal

from .utils import ResticbootError, log

if TYPE_CHECKING:
    from collections.abc import Iterable

ArchiveFormat = Literal["bzip2", "zip"]

_CHUNK_SIZE = 64 * 1024


class ExtractError(ResticbootError):
    """Error during extraction process."""


class ArchiveEntryNotFoundError(ExtractError):
    """The container archive has no entry with the expected executable name."""

    def __init__(self, message: str, names: list[str] | None = None) -> None:
        """Initialize the ArchiveEntryNotFoundError."""
        self.message = message
        self.names = names or []
        super().__init__(message)


def archive_format_for(filename: str) -> ArchiveFormat:
    """Determine the archive format from an asset filename."""
    if filename.endswith(".bz2"):
        return "bzip2"
    if filename.endswith(".zip"):
        return "zip"
    msg = f"Unsupported archive format: {filename}"
    raise ExtractError(msg)


def _write_stream(source: IO[bytes], path: Path, mode: int = 0o755) -> None:
    """Copy a stream to a file and mark it executable."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as out:
        shutil.copyfileobj(source, out, _CHUNK_SIZE)
    path.chmod(path.stat().st_mode | mode)


def _extract_bzip2(data: bytes, destination: Path) -> None:
    try:
        payload = bz2.decompress(data)
    except (OSError, EOFError, ValueError) as e:
        msg = f"Failed to decompress with bzip2: {e}"
        raise ExtractError(msg) from e
    try:
        _write_stream(io.BytesIO(payload), destination)
    except OSError as e:
        msg = f"Failed to write {destination}: {e}"
        raise ExtractError(msg) from e


def _find_zip_entry(
    zip_file: zipfile.ZipFile,
    entry_names: Iterable[str],
) -> zipfile.ZipInfo | None:
    wanted = set(entry_names)
    for info in zip_file.infolist():
        if info.is_dir():
            continue
        # Entries may sit in a sub-directory; compare base names.
        if Path(info.filename).name in wanted:
            return info
    return None


def _extract_zip(data: bytes, destination: Path, entry_names: Iterable[str]) -> None:
    entry_names = list(entry_names)
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zip_file:
            info = _find_zip_entry(zip_file, entry_names)
            if info is None:
                msg = f"None of {', '.join(entry_names)} found in archive"
                raise ArchiveEntryNotFoundError(msg, zip_file.namelist())
            log(f"Extracting {info.filename} from archive", "info")
            with zip_file.open(info) as stream:
                _write_stream(stream, destination)
    except zipfile.BadZipFile as e:
        msg = f"Failed to extract zip: {e}"
        raise ExtractError(msg) from e
    except OSError as e:
        msg = f"Failed to write {destination}: {e}"
        raise ExtractError(msg) from e


def extract_archive(
    data: bytes,
    archive_format: ArchiveFormat,
    destination: Path,
    entry_names: Iterable[str] = ("restic.exe",),
) -> Path:
    """Write the executable held in ``data`` to ``destination``.

    Args:
        data: The raw archive bytes
        archive_format: ``"bzip2"`` for a single compressed stream or
            ``"zip"`` for a container archive
        destination: Where the executable is written
        entry_names: Base names accepted as the executable inside a zip

    Returns:
        The destination path

    Raises:
        ArchiveEntryNotFoundError: If a zip has no matching entry
        ExtractError: If the archive is corrupt or cannot be written

    """
    destination = Path(destination)
    if archive_format == "bzip2":
        _extract_bzip2(data, destination)
    elif archive_format == "zip":
        _extract_zip(data, destination, entry_names)
    else:
        msg = f"Unknown archive format: {archive_format}"
        raise ExtractError(msg)
    return destination
