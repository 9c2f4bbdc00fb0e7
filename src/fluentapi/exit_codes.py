"""Numeric process exit codes used by the ``fluentapi`` command line.

Each constant maps to an error category and is referenced by the matching
:class:`~fluentapi.exceptions.FluentApiError` subclass. CI scripts can
inspect the exit code to tell a failed assertion from a network failure
without parsing stderr.

Example::

    $ fluentapi request GET https://api.example.com/health --expect-status 200
    $ echo $?
    8   # EXIT_ASSERTION_FAILURE -- the server answered with another status
"""

EXIT_SUCCESS = 0
"""The request was sent and every expectation held."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments: empty endpoint, malformed header, bad timeout."""

EXIT_AUTH_FAILURE = 3
"""The auth provider could not obtain a token."""

EXIT_EXECUTION_ERROR = 6
"""The transport failed (timeout, DNS failure, connection refused)."""

EXIT_ASSERTION_FAILURE = 8
"""The response did not match the expected status, headers or body."""
