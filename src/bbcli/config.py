"""Configuration management: config directory, YAML settings, token resolution.

This module handles all persistent configuration for bbcli:

* **Directory layout** -- ``$BB_CONFIG_DIR`` if set, otherwise
  ``$XDG_CONFIG_HOME/bb``, otherwise ``~/.config/bb``. See
  :func:`get_config_dir` and :func:`get_data_dir`.
* **Global config** -- ``config.yml`` deserialised into
  :class:`~bbcli.models.GlobalConfig`.
* **Hosts** -- ``hosts.yml`` deserialised into
  :class:`~bbcli.models.HostsConfig`, recording the active user per host.
* **Token resolution** -- :func:`resolve_token` picks the bearer token from
  ``BB_TOKEN``, then ``BITBUCKET_TOKEN``, then the credential store entry of
  the host's active user.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, NamedTuple, Optional

import yaml
from pydantic import ValidationError

from bbcli.exceptions import ConfigError
from bbcli.models import DEFAULT_HOST, GlobalConfig, HostsConfig

_APP_NAME = "bb"
_CONFIG_FILENAME = "config.yml"
_HOSTS_FILENAME = "hosts.yml"

ENV_CONFIG_DIR = "BB_CONFIG_DIR"
ENV_TOKEN = "BB_TOKEN"
ENV_TOKEN_FALLBACK = "BITBUCKET_TOKEN"
ENV_USERNAME = "BB_USERNAME"
ENV_BASE_URL = "BB_BASE_URL"
ENV_BROWSER = "BB_BROWSER"


# --- Path resolution ---


def lookup_env(name: str) -> str:
    """Return the value of environment variable *name*, or ``""`` when unset."""
    return os.environ.get(name, "")


def get_config_dir() -> Path:
    """Return the configuration directory (not created).

    Precedence: ``$BB_CONFIG_DIR``, ``$XDG_CONFIG_HOME/bb``, ``~/.config/bb``.
    """
    override = lookup_env(ENV_CONFIG_DIR)
    if override:
        return Path(override)
    xdg = lookup_env("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / _APP_NAME
    return Path.home() / ".config" / _APP_NAME


def get_data_dir() -> Path:
    """Return the data directory (credentials, crash logs), creating it if necessary.

    ``$BB_CONFIG_DIR`` keeps everything in one place when set; otherwise
    ``$XDG_DATA_HOME/bb`` (default ``~/.local/share/bb``).
    """
    override = lookup_env(ENV_CONFIG_DIR)
    if override:
        path = Path(override)
    else:
        xdg = lookup_env("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given the permissions are applied before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def _read_yaml(path: Path) -> Any:
    if not path.is_file():
        return None
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc


def _dump_yaml(data: Any) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


# --- Global config ---


def load_global_config() -> GlobalConfig:
    """Load ``config.yml`` from the config directory.

    Returns:
        The deserialised :class:`~bbcli.models.GlobalConfig`, or the
        defaults when the file does not exist or is empty.

    Raises:
        ConfigError: If the file is not valid YAML or fails validation.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    data = _read_yaml(path)
    if data is None:
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist *config* atomically to ``config.yml``."""
    path = get_config_dir() / _CONFIG_FILENAME
    _atomic_write(path, _dump_yaml(config.model_dump(mode="json")))


# --- Hosts ---


def load_hosts() -> HostsConfig:
    """Load ``hosts.yml``; an absent file yields an empty mapping.

    Raises:
        ConfigError: If the file is not valid YAML or fails validation.
    """
    path = get_config_dir() / _HOSTS_FILENAME
    data = _read_yaml(path)
    if data is None:
        return HostsConfig()
    try:
        return HostsConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid hosts file at {path}: {exc}") from exc


def save_hosts(hosts: HostsConfig) -> None:
    """Persist *hosts* atomically to ``hosts.yml`` (mode 0600)."""
    path = get_config_dir() / _HOSTS_FILENAME
    _atomic_write(path, _dump_yaml(hosts.model_dump(mode="json")), mode=0o600)


# --- Token resolution ---


class ResolvedToken(NamedTuple):
    """A bearer token and a human-readable description of where it came from."""

    token: str
    source: str


def get_env_token() -> str:
    """Return ``$BB_TOKEN``, falling back to ``$BITBUCKET_TOKEN``."""
    return lookup_env(ENV_TOKEN) or lookup_env(ENV_TOKEN_FALLBACK)


def get_base_url() -> Optional[str]:
    """Return the ``$BB_BASE_URL`` override, or ``None`` for the default API root."""
    return lookup_env(ENV_BASE_URL) or None


def active_user(host: str = DEFAULT_HOST) -> str:
    """Return ``$BB_USERNAME`` or the active user recorded for *host*."""
    return lookup_env(ENV_USERNAME) or load_hosts().get_active_user(host)


def resolve_token(host: str = DEFAULT_HOST) -> ResolvedToken:
    """Find the bearer token to use for *host*.

    Precedence (high to low):
        1. ``BB_TOKEN``
        2. ``BITBUCKET_TOKEN``
        3. Credential store entry for ``host:user``, where ``user`` is
           ``BB_USERNAME`` or the active user in ``hosts.yml``.

    Returns:
        The token and its source. ``token`` is empty when nothing is
        configured, in which case requests are sent anonymously.
    """
    for name in (ENV_TOKEN, ENV_TOKEN_FALLBACK):
        value = lookup_env(name)
        if value:
            return ResolvedToken(value, name)

    user = active_user(host)
    if user:
        from bbcli.auth.credential_store import CredentialStore

        entry = CredentialStore(host, user).load()
        if entry is not None and entry.token:
            return ResolvedToken(entry.token, "credential store")

    return ResolvedToken("", "")
