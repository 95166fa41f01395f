"""Tests for bbcli.config -- directories, atomic writes, YAML files, token precedence."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest
import yaml

from bbcli.auth.credential_store import CredentialEntry, CredentialStore
from bbcli.config import (
    _atomic_write,
    active_user,
    get_base_url,
    get_config_dir,
    get_data_dir,
    get_env_token,
    load_global_config,
    load_hosts,
    lookup_env,
    resolve_token,
    save_global_config,
    save_hosts,
)
from bbcli.exceptions import ConfigError
from bbcli.models import GlobalConfig, HostsConfig


# ---------------------------------------------------------------------------
# Directory resolution
# ---------------------------------------------------------------------------


class TestDirectories:
    def test_config_dir_from_xdg(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "bb"

    def test_config_dir_override(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BB_CONFIG_DIR", str(isolated_config / "custom"))
        assert get_config_dir() == isolated_config / "custom"

    def test_config_dir_home_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BB_CONFIG_DIR", raising=False)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "bb"

    def test_config_dir_not_created(self, isolated_config: Path) -> None:
        assert not get_config_dir().exists()

    def test_data_dir_created(self, isolated_config: Path) -> None:
        path = get_data_dir()
        assert path == isolated_config / "data" / "bb"
        assert path.is_dir()

    def test_data_dir_follows_override(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BB_CONFIG_DIR", str(isolated_config / "all"))
        assert get_data_dir() == isolated_config / "all"

    def test_lookup_env_unset_is_empty(self, isolated_config: Path) -> None:
        assert lookup_env("BB_TOKEN") == ""


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.yml"
        _atomic_write(target, "a: 1\n")
        assert target.read_text() == "a: 1\n"

    def test_mode_applied(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        _atomic_write(target, "{}", mode=0o600)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        target = tmp_path / "file.yml"
        _atomic_write(target, "one")
        _atomic_write(target, "two")
        assert target.read_text() == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["file.yml"]


# ---------------------------------------------------------------------------
# config.yml
# ---------------------------------------------------------------------------


class TestGlobalConfigFile:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config.git_protocol == "ssh"
        assert config.http_timeout == 30

    def test_round_trip(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(git_protocol="https", pager="less -R"))
        config = load_global_config()
        assert config.git_protocol == "https"
        assert config.pager == "less -R"
        written = yaml.safe_load((get_config_dir() / "config.yml").read_text())
        assert written["git_protocol"] == "https"

    def test_empty_file_gives_defaults(self, isolated_config: Path) -> None:
        path = get_config_dir() / "config.yml"
        path.parent.mkdir(parents=True)
        path.write_text("")
        assert load_global_config() == GlobalConfig()

    def test_invalid_yaml(self, isolated_config: Path) -> None:
        path = get_config_dir() / "config.yml"
        path.parent.mkdir(parents=True)
        path.write_text("git_protocol: [unclosed\n")
        with pytest.raises(ConfigError, match="Cannot read"):
            load_global_config()

    def test_invalid_value(self, isolated_config: Path) -> None:
        path = get_config_dir() / "config.yml"
        path.parent.mkdir(parents=True)
        path.write_text("git_protocol: ftp\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_global_config()


# ---------------------------------------------------------------------------
# hosts.yml
# ---------------------------------------------------------------------------


class TestHostsFile:
    def test_empty_when_missing(self, isolated_config: Path) -> None:
        assert load_hosts().root == {}

    def test_round_trip_with_private_mode(self, isolated_config: Path) -> None:
        hosts = HostsConfig()
        hosts.set_active_user("bitbucket.org", "alice")
        save_hosts(hosts)

        path = get_config_dir() / "hosts.yml"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert load_hosts().get_active_user("bitbucket.org") == "alice"

    def test_invalid_structure(self, isolated_config: Path) -> None:
        path = get_config_dir() / "hosts.yml"
        path.parent.mkdir(parents=True)
        path.write_text("bitbucket.org: not-a-mapping\n")
        with pytest.raises(ConfigError, match="Invalid hosts file"):
            load_hosts()


# ---------------------------------------------------------------------------
# Token resolution
# ---------------------------------------------------------------------------


def _store_token(user: str, token: str) -> None:
    CredentialStore("bitbucket.org", user).save(
        CredentialEntry(token=token, host="bitbucket.org", user=user)
    )
    hosts = load_hosts()
    hosts.set_active_user("bitbucket.org", user)
    save_hosts(hosts)


class TestResolveToken:
    def test_nothing_configured(self, isolated_config: Path) -> None:
        resolved = resolve_token()
        assert resolved.token == ""
        assert resolved.source == ""

    def test_bb_token_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _store_token("alice", "stored")
        monkeypatch.setenv("BB_TOKEN", "primary")
        monkeypatch.setenv("BITBUCKET_TOKEN", "secondary")
        assert resolve_token() == ("primary", "BB_TOKEN")

    def test_fallback_variable(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BITBUCKET_TOKEN", "secondary")
        assert resolve_token() == ("secondary", "BITBUCKET_TOKEN")
        assert get_env_token() == "secondary"

    def test_credential_store_of_active_user(self, isolated_config: Path) -> None:
        _store_token("alice", "stored")
        assert resolve_token() == ("stored", "credential store")

    def test_bb_username_selects_account(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _store_token("alice", "alice-token")
        _store_token("bob", "bob-token")
        monkeypatch.setenv("BB_USERNAME", "alice")
        assert active_user() == "alice"
        assert resolve_token().token == "alice-token"

    def test_active_user_without_stored_token(self, isolated_config: Path) -> None:
        hosts = HostsConfig()
        hosts.set_active_user("bitbucket.org", "carol")
        save_hosts(hosts)
        assert resolve_token().token == ""


class TestBaseURL:
    def test_unset(self, isolated_config: Path) -> None:
        assert get_base_url() is None

    def test_override(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BB_BASE_URL", "https://bb.internal/2.0")
        assert get_base_url() == "https://bb.internal/2.0"
