"""Find the restic release asset for a platform."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .utils import DecodeError, ResticbootError, fetch_json, log

if TYPE_CHECKING:
    import requests

RESTIC_REPO = "restic/restic"
TOOL_NAME = "restic"


class NotFoundError(ResticbootError):
    """No release asset matches the platform."""


@dataclass
class ReleaseAsset:
    """A downloadable file attached to a release."""

    name: str
    url: str


@dataclass
class Release:
    """The parts of a GitHub release we use."""

    tag_name: str
    assets: list[ReleaseAsset] = field(default_factory=list)

    @property
    def version(self) -> str:
        """Tag name without the leading ``v``."""
        return self.tag_name.removeprefix("v")

    @classmethod
    def from_dict(cls, data: Any) -> Release:
        """Build a Release from the GitHub API payload."""
        if not isinstance(data, dict):
            msg = "Release metadata is not a JSON object"
            raise DecodeError(msg)
        tag_name = data.get("tag_name")
        raw_assets = data.get("assets")
        if not isinstance(tag_name, str) or not isinstance(raw_assets, list):
            msg = "Release metadata lacks 'tag_name' or 'assets'"
            raise DecodeError(msg)

        assets = []
        for asset in raw_assets:
            name = asset.get("name") if isinstance(asset, dict) else None
            url = asset.get("browser_download_url") if isinstance(asset, dict) else None
            if not isinstance(name, str) or not isinstance(url, str):
                msg = f"Malformed asset entry in release {tag_name}: {asset!r}"
                raise DecodeError(msg)
            assets.append(ReleaseAsset(name=name, url=url))
        return cls(tag_name=tag_name, assets=assets)


def latest_release_info(session: requests.Session, repo: str = RESTIC_REPO) -> Release:
    """Get the latest release information from GitHub."""
    url = f"https://api.github.com/repos/{repo}/releases/latest"
    log(f"Fetching latest release from {url}", "info")
    return Release.from_dict(fetch_json(session, url))


def archive_extension(os_name: str) -> str:
    """Windows releases are zipped, everything else is a bare bzip2 stream."""
    return ".zip" if os_name == "windows" else ".bz2"


def asset_name(tool: str, version: str, os_name: str, arch: str) -> str:
    """Name of the release asset for a version and platform."""
    return f"{tool}_{version}_{os_name}_{arch}{archive_extension(os_name)}"


def find_asset(assets: list[ReleaseAsset], name: str) -> ReleaseAsset | None:
    """Return the first asset called exactly ``name``."""
    for asset in assets:
        if asset.name == name:
            log(f"Found matching asset: {asset.name}", "success")
            return asset
    return None


def latest_asset(
    session: requests.Session,
    os_name: str,
    arch: str,
    repo: str = RESTIC_REPO,
    tool: str = TOOL_NAME,
) -> tuple[str, str]:
    """Resolve the version and download URL of the newest asset for a platform."""
    release = latest_release_info(session, repo)
    target = asset_name(tool, release.version, os_name, arch)
    asset = find_asset(release.assets, target)
    if asset is None:
        msg = f"Asset {target} not found in release {release.tag_name}"
        raise NotFoundError(msg)
    return release.version, asset.url
