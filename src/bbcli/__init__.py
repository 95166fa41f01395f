"""bbcli -- work with Bitbucket Cloud from the command line.

The ``bb`` command maps subcommands for pull requests, issues, pipelines,
repositories and workspaces onto Bitbucket REST calls and prints the
results as tables, plain text or JSON.

Typical workflow::

    bb auth login                       # store an access token
    bb pr list --repo acme/widgets      # list open pull requests
    bb issue view 42 --repo acme/widgets --json

Modules:
    app: Typer application and CLI entry point.
    client: Typed HTTP client, request/response model and pagination.
    api: Resource accessors built on the client.
    config: Config directory, YAML settings and token resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.4.0"
