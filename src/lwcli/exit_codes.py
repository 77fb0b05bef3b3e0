"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~lwcli.exceptions.LwcliError` subclass.
Shell wrappers and CI jobs can inspect the exit code to tell a rejected API
key apart from an incomplete ``generate`` answer set without parsing stderr.

Example::

    $ lwcli --noninteractive generate aws --cloudtrail \
        --aws-region us-east-2 --existing-iam-role-arn arn:...
    $ echo $?
    7   # EXIT_VALIDATION_FAILURE -- the IAM role triple is incomplete
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The Lacework API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_VALIDATION_FAILURE = 7
"""Collected ``generate`` answers failed validation; no code was written."""

EXIT_CANCELLED = 130
"""The operator aborted an interactive prompt (Ctrl-C or closed input)."""
