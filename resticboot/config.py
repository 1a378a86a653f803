"""Configuration management for resticboot.

The effective configuration is resolved from a cascade of sources, lowest
precedence first:

1. embedded defaults
2. the ``RESTIC-REPO`` / ``RESTIC-REPO-PASSWORD`` environment variables
3. a remote JSON document (skipped when both variables are set)
4. a local cache file, which is written on first run
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .utils import DecodeError, NetworkError, SideEffectResult, fetch_json, log, mask_secret

if TYPE_CHECKING:
    from collections.abc import Mapping

    import requests

CONFIG_SCHEMA_VERSION = 1
CONFIG_FILE = "config.json"
REMOTE_CONFIG_URL = "https://pastebin.com/raw/example"

ENV_REPO = "RESTIC-REPO"
ENV_PASSWORD = "RESTIC-REPO-PASSWORD"

DEFAULT_REPOSITORY = "~/tmp/test-backup"
DEFAULT_PASSWORD = "test password"  # noqa: S105
DEFAULT_DIRECTORIES = ("Documents", "Pictures", "Desktop")


@dataclass(frozen=True)
class PushoverChannel:
    """Pushover credentials."""

    token: str = ""
    user: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.token and self.user)


@dataclass(frozen=True)
class EmailChannel:
    """SMTP credentials and addresses."""

    server: str = ""
    user: str = ""
    password: str = ""
    sender: str = ""
    recipient: str = ""

    @property
    def configured(self) -> bool:
        return all((self.server, self.user, self.password, self.sender, self.recipient))


@dataclass(frozen=True)
class Configuration:
    """Configuration for resticboot."""

    repository: str = DEFAULT_REPOSITORY
    password: str = DEFAULT_PASSWORD
    paths: tuple[str, ...] = ()
    pushover: PushoverChannel = field(default_factory=PushoverChannel)
    email: EmailChannel = field(default_factory=EmailChannel)

    def to_cache_dict(self) -> dict[str, Any]:
        """The persisted subset of the configuration."""
        return {
            "version": CONFIG_SCHEMA_VERSION,
            "repo": self.repository,
            "password": self.password,
            "paths": list(self.paths),
        }

    def describe(self) -> str:
        """Human readable summary with the password masked."""
        return (
            f"repository: {self.repository}\n"
            f"password: {mask_secret(self.password)}\n"
            f"paths: {', '.join(self.paths) or '(none)'}"
        )


def default_configuration(home: Path | None = None) -> Configuration:
    """The built-in configuration used when no other source is available."""
    home = Path.home() if home is None else home
    return Configuration(paths=tuple(str(home / name) for name in DEFAULT_DIRECTORIES))


def _string(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _string_list(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key)
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def apply_remote(
    config: Configuration,
    document: Mapping[str, Any],
    *,
    repo_locked: bool,
    password_locked: bool,
) -> Configuration:
    """Merge a remote configuration document into ``config``.

    Repository and password are only taken when the matching environment
    variable was not set. Paths and notification fields always apply. Fields
    with the wrong type are skipped one by one.
    """
    changes: dict[str, Any] = {}

    repo = _string(document, "restic-repo")
    if repo is not None and not repo_locked:
        changes["repository"] = repo
    password = _string(document, "restic-repo-password")
    if password is not None and not password_locked:
        changes["password"] = password

    paths = _string_list(document, "paths")
    if paths:
        changes["paths"] = paths

    pushover_fields = {
        "token": _string(document, "pushover-token"),
        "user": _string(document, "pushover-user"),
    }
    changes["pushover"] = replace(
        config.pushover,
        **{k: v for k, v in pushover_fields.items() if v is not None},
    )

    email_fields = {
        "server": _string(document, "email-server"),
        "user": _string(document, "email-user"),
        "password": _string(document, "email-password"),
        "sender": _string(document, "email-from"),
        "recipient": _string(document, "email-to"),
    }
    changes["email"] = replace(
        config.email,
        **{k: v for k, v in email_fields.items() if v is not None},
    )

    return replace(config, **changes)


def apply_cache(config: Configuration, data: Mapping[str, Any]) -> Configuration:
    """Override repository, password and paths with non-empty cached values."""
    version = data.get("version", CONFIG_SCHEMA_VERSION)
    if isinstance(version, int) and version > CONFIG_SCHEMA_VERSION:
        log(
            f"Configuration file has schema version {version}, reading known fields only",
            "warning",
        )

    changes: dict[str, Any] = {}
    repo = _string(data, "repo")
    if repo:
        changes["repository"] = repo
    password = _string(data, "password")
    if password:
        changes["password"] = password
    paths = _string_list(data, "paths")
    if paths:
        changes["paths"] = paths
    return replace(config, **changes)


def write_cache(config: Configuration, path: Path) -> SideEffectResult:
    """Save the persisted subset of ``config`` to ``path``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config.to_cache_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        return SideEffectResult("write config cache", ok=False, error=str(e))
    return SideEffectResult("write config cache", ok=True)


class ConfigResolver:
    """Resolve the effective configuration from every source in order."""

    def __init__(
        self,
        session: requests.Session,
        environ: Mapping[str, str] | None = None,
        cache_path: Path | str = CONFIG_FILE,
        remote_url: str = REMOTE_CONFIG_URL,
        home: Path | None = None,
    ) -> None:
        """Initialize the resolver with its sources."""
        self.session = session
        self.environ = os.environ if environ is None else environ
        self.cache_path = Path(cache_path)
        self.remote_url = remote_url
        self.home = home

    def resolve(self, *, persist: bool = True) -> Configuration:
        """Return the merged configuration. Never raises for a missing source.

        With ``persist=False`` a missing cache file is not created.
        """
        config = default_configuration(self.home)
        config, repo_set, password_set = self._apply_environment(config)

        if repo_set and password_set:
            log("Repository and password taken from the environment", "info")
        else:
            config = self._apply_remote(config, repo_set, password_set)

        return self._apply_cache_file(config, persist=persist)

    def _apply_environment(self, config: Configuration) -> tuple[Configuration, bool, bool]:
        repo_set = ENV_REPO in self.environ
        password_set = ENV_PASSWORD in self.environ
        if repo_set:
            config = replace(config, repository=self.environ[ENV_REPO])
        if password_set:
            config = replace(config, password=self.environ[ENV_PASSWORD])
        return config, repo_set, password_set

    def _apply_remote(
        self,
        config: Configuration,
        repo_set: bool,  # noqa: FBT001
        password_set: bool,  # noqa: FBT001
    ) -> Configuration:
        try:
            document = fetch_json(self.session, self.remote_url)
        except (NetworkError, DecodeError) as e:
            log(f"Failed to fetch remote configuration: {e}", "warning")
            return config
        if not isinstance(document, dict):
            log("Remote configuration is not a JSON object, ignoring it", "warning")
            return config

        log("Remote configuration fetched successfully", "success")
        return apply_remote(
            config,
            document,
            repo_locked=repo_set,
            password_locked=password_set,
        )

    def _apply_cache_file(self, config: Configuration, *, persist: bool) -> Configuration:
        try:
            text = self.cache_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            if not persist:
                return config
            result = write_cache(config, self.cache_path)
            if result.ok:
                log(f"Saved configuration to {self.cache_path}", "info")
            else:
                log(f"Could not save configuration: {result.error}", "warning")
            return config
        except OSError as e:
            log(f"Could not read {self.cache_path}: {e}", "warning")
            return config

        try:
            data = json.loads(text)
        except ValueError as e:
            log(f"Invalid JSON in configuration file {self.cache_path}: {e}", "warning")
            return config
        if not isinstance(data, dict):
            log(f"Configuration file {self.cache_path} is not a JSON object", "warning")
            return config
        return apply_cache(config, data)

