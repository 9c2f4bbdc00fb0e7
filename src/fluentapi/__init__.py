"""fluentapi -- a fluent DSL for composing, sending and asserting HTTP requests.

Tests describe what a request looks like and what the response must be in a
single expression, without transport code::

    from fluentapi import Api

    api = Api(base_url="https://api.example.com")
    (
        api.for_("/users/{id}")
        .with_path_param("id", 1)
        .with_header("Accept", "application/json")
        .get()
        .should_return(status=200, body=lambda user: user["name"] == "Ann")
    )

Every builder step returns a new immutable context, so partially built
requests can be shared and branched safely.

Modules:
    api: :class:`Api`, the root entry point.
    context: :class:`ApiContext`, the fluent request builder.
    request: :class:`RequestSpec`, the immutable request description.
    result: :class:`ResultContext`, the response view and assertions.
    validation: Status, header and body checks.
    executors: The execution boundary and the default httpx transport.
    auth: Auth providers and the token cache.
    reporting: Reporters for requests, responses and assertions.
    config: Project config files, credential sources and precedence.
    exceptions: Exception hierarchy with exit-code mapping.
    cli: The ``fluentapi`` command line.
"""

__version__ = "0.1.0"

from fluentapi.api import Api  # noqa: E402
from fluentapi.auth import (  # noqa: E402
    AuthProvider,
    CachedToken,
    CachingAuthProvider,
    StaticTokenProvider,
    TokenCache,
    UsernamePasswordAuthProvider,
)
from fluentapi.context import ApiContext  # noqa: E402
from fluentapi.defaults import ApiDefaults, DefaultsProvider  # noqa: E402
from fluentapi.exceptions import (  # noqa: E402
    ApiAssertionError,
    ApiExecutionError,
    AuthError,
    ConfigError,
    FluentApiError,
    InvalidArgumentError,
)
from fluentapi.executors import HttpExecutor, HttpxExecutor  # noqa: E402
from fluentapi.headers import HeaderMap  # noqa: E402
from fluentapi.reporting import Reporter, get_reporter  # noqa: E402
from fluentapi.request import HttpMethod, RequestSpec  # noqa: E402
from fluentapi.result import ResultContext  # noqa: E402

__all__ = [
    "Api",
    "ApiAssertionError",
    "ApiContext",
    "ApiDefaults",
    "ApiExecutionError",
    "AuthError",
    "AuthProvider",
    "CachedToken",
    "CachingAuthProvider",
    "ConfigError",
    "DefaultsProvider",
    "FluentApiError",
    "HeaderMap",
    "HttpExecutor",
    "HttpMethod",
    "HttpxExecutor",
    "InvalidArgumentError",
    "Reporter",
    "RequestSpec",
    "ResultContext",
    "StaticTokenProvider",
    "TokenCache",
    "UsernamePasswordAuthProvider",
    "get_reporter",
]
