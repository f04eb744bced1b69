"""whooptui -- a terminal client for the WHOOP developer API.

The package logs a user in through the browser using the OAuth2
Authorization Code grant with PKCE, stores the resulting tokens locally,
and fetches sleep, recovery, and strain summaries for display in the
terminal.

Typical workflow::

    whoop config setup --client-id <id>   # store the OAuth client config
    whoop auth login                      # browser login, token stored locally
    whoop sleep --limit 14                # fetch and render sleep data

Modules:
    app: Typer application and console-script entry point.
    models: Pydantic models for the client config, token record, and
        API envelopes.
    config: XDG-aware paths, atomic writes, and config resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr output system with Rich support.
    render: Terminal charts for sleep, recovery, and strain records.
"""

__version__ = "0.1.0"
