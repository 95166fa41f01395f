"""Built-in CLI sub-commands for bb.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~bbcli.commands.auth` -- log in, log out, show status and token.
* :mod:`~bbcli.commands.config` -- view and modify ``config.yml``.
* :mod:`~bbcli.commands.issue`, :mod:`~bbcli.commands.pr`,
  :mod:`~bbcli.commands.pipeline` -- repository workflows.
* :mod:`~bbcli.commands.repo`, :mod:`~bbcli.commands.branch`,
  :mod:`~bbcli.commands.project`, :mod:`~bbcli.commands.snippet`,
  :mod:`~bbcli.commands.workspace` -- resource management.
* :mod:`~bbcli.commands.browse` and :mod:`~bbcli.commands.api` -- single
  commands registered directly on the root app.

:mod:`~bbcli.commands.common` holds the client factory and option parsing
shared by all of them.
"""
