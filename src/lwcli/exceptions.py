"""Exception hierarchy for lwcli.

All exceptions inherit from :class:`LwcliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`lwcli.exit_codes`.
The top-level error handler in :func:`lwcli.app.main` catches
``LwcliError`` and exits with the appropriate code, while unexpected
exceptions are written to a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    LwcliError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- AuthError                (exit 3)
    +-- NotFoundError            (exit 4)
    +-- ServerError              (exit 5)
    +-- ConnectionError_         (exit 6)
    +-- GenerateValidationError  (exit 7)
    +-- PromptAbortedError       (exit 130)
    +-- ConfigError              (exit 1)

Bugs in the HCL generator itself (an attribute value of an unsupported type)
are raised as plain :class:`TypeError` and are not part of this hierarchy.
"""

from __future__ import annotations

from lwcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_VALIDATION_FAILURE,
)


class LwcliError(Exception):
    """An error lwcli reports as a one-line message rather than a traceback.

    ``str(exc)`` is what the user sees after ``Error:``; ``exit_code`` is the
    process status, taken from the subclass unless given explicitly.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(LwcliError):
    """A flag value lwcli cannot interpret, such as a malformed ``--aws-subaccount``."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(LwcliError):
    """Raised when the API rejects the access key, secret, or token."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(LwcliError):
    """Raised when the API returns HTTP 404 (e.g. unknown integration GUID)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(LwcliError):
    """The Lacework API failed (5xx) or answered with something unusable."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(LwcliError):
    """The Lacework or GitHub API could not be reached at all.

    The trailing underscore keeps the builtin ``ConnectionError`` usable.
    """

    exit_code = EXIT_CONNECTION_ERROR


class GenerateValidationError(LwcliError):
    """Raised when the answers collected for ``lwcli generate`` are incomplete."""

    exit_code = EXIT_VALIDATION_FAILURE


class PromptAbortedError(LwcliError):
    """Raised when the operator aborts an interactive prompt."""

    exit_code = EXIT_CANCELLED


class ConfigError(LwcliError):
    """A profile, the global config file or a credential source is missing or broken."""

    exit_code = EXIT_GENERIC_FAILURE
