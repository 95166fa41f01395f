"""Shared test fixtures for bbcli.

Provides reusable fixtures for isolated config environments, a fake
Bitbucket API served through :class:`httpx.MockTransport`, output state
management and running CLI commands. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from bbcli.client import Client
from bbcli.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://api.example.com/2.0"
API_PREFIX = "/2.0"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config. Clears all BB_* and token
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "BB_CONFIG_DIR",
        "BB_TOKEN",
        "BITBUCKET_TOKEN",
        "BB_USERNAME",
        "BB_BASE_URL",
        "BB_BROWSER",
        "PAGER",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Fake Bitbucket API
# ---------------------------------------------------------------------------


class FakeAPI:
    """Route table in front of :class:`httpx.MockTransport`.

    Routes are keyed by method and the decoded path relative to the API
    root. When several responses are queued for one route they are served
    in order and the last one repeats.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def add(
        self,
        method: str,
        path: str,
        json: Any = None,
        status: int = 200,
        text: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        if text is not None:
            response = httpx.Response(status, text=text, headers=headers)
        elif json is not None:
            response = httpx.Response(status, json=json, headers=headers)
        else:
            response = httpx.Response(status, headers=headers)
        self.routes.setdefault((method.upper(), API_PREFIX + path), []).append(response)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(
                404,
                json={"error": {"message": f"No route for {request.method} {request.url.path}"}},
            )
        return queue.pop(0) if len(queue) > 1 else queue[0]

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def client(self, token: str = "test-token") -> Client:
        return Client(base_url=BASE_URL, token=token, transport=self.transport)


@pytest.fixture
def api() -> FakeAPI:
    """A fresh fake API with no routes."""
    return FakeAPI()


@pytest.fixture
def cli_env(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated config plus a token and base URL pointing at the fake API."""
    monkeypatch.setenv("BB_TOKEN", "env-token")
    monkeypatch.setenv("BB_BASE_URL", BASE_URL)
    return isolated_config


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def run_cli(cli_runner, api: FakeAPI, cli_env: Path):
    """Invoke ``bb`` with its HTTP traffic routed to the fake API.

    Usage::

        result = run_cli("issue", "list", "--repo", "acme/widgets")
        result = run_cli("issue", "delete", "1", "--repo", "acme/widgets", input="y\\n")
    """
    from bbcli.app import app

    def _run(*args: str, input: Optional[str] = None):
        return cli_runner.invoke(app, list(args), obj={"transport": api.transport}, input=input)

    return _run
