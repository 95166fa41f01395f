"""Browse command -- open a repository page in the web browser."""

from __future__ import annotations

import shlex
import subprocess
import webbrowser
from typing import Optional

import typer

from bbcli.commands.common import split_repo
from bbcli.exceptions import BBError
from bbcli.output import print_data, success

WEB_ROOT = "https://bitbucket.org"

_SECTIONS = {
    "settings": "admin",
    "wiki": "wiki",
    "issues": "issues",
    "prs": "pull-requests",
    "pipelines": "pipelines",
    "downloads": "downloads",
}


def browse_url(
    workspace: str,
    repo_slug: str,
    path: str = "",
    branch: str = "",
    commit: str = "",
    section: str = "",
) -> str:
    """Build the web URL for a repository page.

    Precedence: *section*, then *commit*, then *path* (on *branch*, default
    ``main``), then *branch*, then the repository home page.
    """
    base = f"{WEB_ROOT}/{workspace}/{repo_slug}"
    if section:
        return f"{base}/{_SECTIONS[section]}"
    if commit:
        return f"{base}/commits/{commit}"
    if path:
        return f"{base}/src/{branch or 'main'}/{path.lstrip('/')}"
    if branch:
        return f"{base}/src/{branch}"
    return base


def _browser_command() -> str:
    from bbcli.config import ENV_BROWSER, load_global_config, lookup_env

    return lookup_env(ENV_BROWSER) or load_global_config().browser


def open_in_browser(url: str) -> None:
    """Open *url* with the configured browser command or the system default.

    Raises:
        BBError: If the browser cannot be started.
    """
    command = _browser_command()
    if command:
        try:
            subprocess.Popen([*shlex.split(command), url])
        except OSError as exc:
            raise BBError(f"could not open browser: {exc}") from exc
        return
    if not webbrowser.open(url):
        raise BBError("could not open browser; use --no-browser to print the URL")


def browse_command(
    path: Optional[str] = typer.Argument(None, help="File or directory in the repository."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    branch: str = typer.Option("", "--branch", "-b", help="Open a specific branch."),
    commit: str = typer.Option("", "--commit", "-c", help="Open a specific commit."),
    no_browser: bool = typer.Option(False, "--no-browser", "-n", help="Print the URL instead of opening it."),
    settings: bool = typer.Option(False, "--settings", "-s", help="Open repository settings."),
    wiki: bool = typer.Option(False, "--wiki", "-w", help="Open the wiki."),
    issues: bool = typer.Option(False, "--issues", help="Open the issues page."),
    prs: bool = typer.Option(False, "--prs", help="Open the pull requests page."),
    pipelines: bool = typer.Option(False, "--pipelines", help="Open the pipelines page."),
    downloads: bool = typer.Option(False, "--downloads", help="Open the downloads page."),
) -> None:
    """Open the repository in the web browser.

    Example::

        bb browse --repo acme/widgets
        bb browse src/app.py --repo acme/widgets --branch develop
        bb browse --repo acme/widgets --prs --no-browser
    """
    workspace, slug = split_repo(repo)
    flags = {
        "settings": settings,
        "wiki": wiki,
        "issues": issues,
        "prs": prs,
        "pipelines": pipelines,
        "downloads": downloads,
    }
    section = next((name for name, on in flags.items() if on), "")
    url = browse_url(workspace, slug, path=path or "", branch=branch, commit=commit, section=section)

    if no_browser:
        print_data(url)
        return
    open_in_browser(url)
    success(f"Opened {url} in your browser")
