"""Built-in CLI sub-commands for whooptui.

This package groups the Typer command modules that form the ``whoop``
command tree:

* :mod:`~whooptui.commands.config` -- store and inspect the OAuth client
  configuration.
* :mod:`~whooptui.commands.auth` -- browser login, logout, and session status.
* :mod:`~whooptui.commands.data` -- profile, sleep, recovery, and strain views.
* :mod:`~whooptui.commands.menu` -- the interactive menu loop.

Multi-command groups (``auth``, ``config``) export a :class:`typer.Typer`
sub-application; single commands export a plain callback registered directly
on the root app. Shared helpers live in :mod:`~whooptui.commands.support`.
"""
