"""Pydantic models for the persisted configuration files.

Two YAML files live in the config directory (see :mod:`bbcli.config`):

* ``config.yml`` -- :class:`GlobalConfig`, non-secret user preferences.
* ``hosts.yml`` -- :class:`HostsConfig`, one :class:`HostConfig` per
  Bitbucket host recording which user is active there.

Secrets never appear in either file; tokens live in the credential store
(:mod:`bbcli.auth.credential_store`) or in environment variables.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

DEFAULT_HOST = "bitbucket.org"
DEFAULT_GIT_PROTOCOL = "ssh"


class GlobalConfig(BaseModel):
    """User preferences stored in ``config.yml``.

    Unknown keys are preserved so that files written by newer releases
    survive a round trip through an older one.

    Example::

        GlobalConfig(git_protocol="https", http_timeout=60)
    """

    model_config = ConfigDict(extra="allow")

    git_protocol: str = Field(
        default=DEFAULT_GIT_PROTOCOL, description="Protocol for git URLs: ssh or https"
    )
    editor: str = Field(default="", description="Editor for composing text")
    prompt: str = Field(
        default="enabled", description="Interactive prompts: enabled or disabled"
    )
    pager: str = Field(default="", description="Pager for long output")
    browser: str = Field(default="", description="Browser command for 'bb browse'")
    http_timeout: int = Field(
        default=30, description="HTTP request timeout in seconds"
    )

    @field_validator("git_protocol")
    @classmethod
    def _check_protocol(cls, value: str) -> str:
        if value not in ("ssh", "https"):
            raise ValueError("git_protocol must be 'ssh' or 'https'")
        return value

    @field_validator("prompt")
    @classmethod
    def _check_prompt(cls, value: str) -> str:
        if value not in ("enabled", "disabled"):
            raise ValueError("prompt must be 'enabled' or 'disabled'")
        return value

    @field_validator("http_timeout")
    @classmethod
    def _check_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("http_timeout must be a positive number of seconds")
        return value


class UserConfig(BaseModel):
    """Per-user settings on a host. Currently only a placeholder for future keys."""

    model_config = ConfigDict(extra="allow")


class HostConfig(BaseModel):
    """Authentication state for one Bitbucket host."""

    users: dict[str, UserConfig] = Field(default_factory=dict)
    user: str = ""
    git_protocol: str = ""


class HostsConfig(RootModel[dict[str, HostConfig]]):
    """Mapping of host name to :class:`HostConfig`, stored in ``hosts.yml``."""

    root: dict[str, HostConfig] = Field(default_factory=dict)

    def get(self, host: str) -> Optional[HostConfig]:
        return self.root.get(host)

    def set_active_user(self, host: str, user: str) -> None:
        """Make *user* the active account on *host*, creating the host entry if needed."""
        entry = self.root.get(host)
        if entry is None:
            entry = self.root[host] = HostConfig()
        entry.user = user
        entry.users.setdefault(user, UserConfig())

    def remove_user(self, host: str, user: str) -> None:
        """Forget *user* on *host*; clears the active user when it was *user*."""
        entry = self.root.get(host)
        if entry is None:
            return
        entry.users.pop(user, None)
        if entry.user == user:
            entry.user = ""

    def get_active_user(self, host: str) -> str:
        """Return the active user on *host*, or an empty string."""
        entry = self.root.get(host)
        return entry.user if entry is not None else ""

    def get_git_protocol(self, host: str) -> str:
        """Return the git protocol configured for *host* (default ``ssh``)."""
        entry = self.root.get(host)
        if entry is None or not entry.git_protocol:
            return DEFAULT_GIT_PROTOCOL
        return entry.git_protocol

    def authenticated_hosts(self) -> list[str]:
        """Return the hosts that have an active user, sorted by name."""
        return sorted(host for host, entry in self.root.items() if entry.user)
