"""Download release assets."""

from __future__ import annotations

import requests

from .utils import REQUEST_TIMEOUT, NetworkError, log


def download_bytes(session: requests.Session, url: str) -> bytes:
    """Download a URL into memory."""
    log(f"Downloading from {url}", "info")
    try:
        response = session.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        msg = f"Failed to download {url}: {e}"
        raise NetworkError(msg) from e
    return response.content

