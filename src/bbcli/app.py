"""Typer application and CLI entry point for bb.

This module wires together the top-level Typer application and registers the
sub-command groups (``auth``, ``config``, ``issue``, ``pipeline``, ``pr``,
``repo``, ``branch``, ``project``, ``snippet``, ``workspace``) plus the
``browse`` and ``api`` commands.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, invokes the Typer app and
turns :class:`~bbcli.exceptions.BBError` into an ``Error:`` line, a remedy
suggestion and the error's exit code. Unhandled exceptions are written to a
crash log under the data directory.

See Also:
    :mod:`bbcli.config`: Configuration and token resolution.
    :mod:`bbcli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from bbcli import __version__
from bbcli.exceptions import APIError, BBError, TransportError
from bbcli.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="bb",
    help="Work with Bitbucket Cloud from the command line.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"bb {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Trace HTTP requests on stderr."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
    no_input: bool = typer.Option(
        False, "--no-input", help="Disable interactive prompts."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~bbcli.output.OutputManager` from CLI
    flags and the configured pager, and stores shared options (``force``,
    ``no_input``, ``verbose``) in the Typer context so that sub-commands can
    read them via ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        force: Skip interactive confirmations.
        no_input: Disable all interactive prompts.
    """
    from bbcli.config import load_global_config
    from bbcli.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        pager=load_global_config().pager or None,
    )
    set_output(output)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["no_input"] = no_input
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Sub-commands
# ------------------------------------------------------------------ #

from bbcli.commands.api import api_command  # noqa: E402
from bbcli.commands.auth import auth_app  # noqa: E402
from bbcli.commands.branch import branch_app  # noqa: E402
from bbcli.commands.browse import browse_command  # noqa: E402
from bbcli.commands.config import config_app  # noqa: E402
from bbcli.commands.issue import issue_app  # noqa: E402
from bbcli.commands.pipeline import pipeline_app  # noqa: E402
from bbcli.commands.pr import pr_app  # noqa: E402
from bbcli.commands.project import project_app  # noqa: E402
from bbcli.commands.repo import repo_app  # noqa: E402
from bbcli.commands.snippet import snippet_app  # noqa: E402
from bbcli.commands.workspace import workspace_app  # noqa: E402

app.add_typer(auth_app, name="auth", help="Authenticate bb with Bitbucket.")
app.add_typer(config_app, name="config", help="Manage configuration.")
app.add_typer(issue_app, name="issue", help="Work with issues.")
app.add_typer(pipeline_app, name="pipeline", help="Work with pipelines.")
app.add_typer(pr_app, name="pr", help="Work with pull requests.")
app.add_typer(repo_app, name="repo", help="Work with repositories.")
app.add_typer(branch_app, name="branch", help="Work with branches.")
app.add_typer(project_app, name="project", help="Work with projects.")
app.add_typer(snippet_app, name="snippet", help="Work with snippets.")
app.add_typer(workspace_app, name="workspace", help="Work with workspaces.")
app.command("browse")(browse_command)
app.command("api")(api_command)


# ------------------------------------------------------------------ #
# Error reporting
# ------------------------------------------------------------------ #

_REMEDIES = {
    401: "Authenticate with: bb auth login",
    403: "Your token may lack the permission scopes this action needs.",
    404: "Check the workspace, repository and resource names.",
    429: "Bitbucket is rate limiting requests; wait a moment and try again.",
}


def report_error(exc: BBError) -> int:
    """Print *exc* and a remedy (when one applies) to stderr.

    Returns:
        The exit code to terminate with.
    """
    from bbcli.output import error, suggest

    error(str(exc))
    if isinstance(exc, APIError):
        for name, message in sorted(exc.fields.items()):
            error(f"{name}: {message}")
        remedy = _REMEDIES.get(exc.status_code)
        if remedy:
            suggest(remedy)
    elif isinstance(exc, TransportError):
        suggest("Check your network connection and BB_BASE_URL.")
    return exc.exit_code


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from bbcli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return str(log_path)


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point invoked by the ``bb`` console script.

    Unhandled :class:`~bbcli.exceptions.BBError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a
    crash log and a generic failure exit.

    Args:
        argv: Arguments to parse instead of ``sys.argv[1:]``.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app(args=argv)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except BBError as exc:
        sys.exit(report_error(exc))
    except Exception as exc:
        from bbcli.output import error

        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
