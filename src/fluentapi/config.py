"""Configuration loading and precedence resolution.

The library never reads configuration on its own: an :class:`~fluentapi.api.Api`
uses exactly the defaults it is constructed with. This module is for callers
who want the conventional layering, chiefly the command line:

* **Project config** -- ``fluentapi.json``, ``fluentapi.yaml`` or
  ``fluentapi.yml`` in the working directory, validated into
  :class:`~fluentapi.models.ProjectConfig`. See :func:`load_project_config`.
* **Precedence resolution** -- :func:`resolve_defaults` merges explicit
  arguments, environment variables and the project config into an
  :class:`~fluentapi.defaults.ApiDefaults`.
* **Credential resolution** -- :func:`resolve_credential` reads secrets from
  environment variables or files so they never need to live in the config.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from fluentapi.defaults import DEFAULT_TIMEOUT, ApiDefaults
from fluentapi.exceptions import ConfigError
from fluentapi.models import ProjectConfig

logger = logging.getLogger(__name__)

_PROJECT_CONFIG_FILENAMES = ("fluentapi.json", "fluentapi.yaml", "fluentapi.yml")

ENV_BASE_URL = "FLUENTAPI_BASE_URL"
ENV_TIMEOUT = "FLUENTAPI_TIMEOUT"
ENV_TOKEN = "FLUENTAPI_TOKEN"


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"literal:value"`` -- the value itself

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source.startswith("literal:"):
        return source[8:]

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Project-local config ---


def _find_project_config() -> Optional[Path]:
    for name in _PROJECT_CONFIG_FILENAMES:
        candidate = Path.cwd() / name
        if candidate.is_file():
            return candidate
    return None


def _parse_config_text(path: Path, text: str) -> Any:
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(text)
    return json.loads(text)


def load_project_config(
    path: Optional[Union[str, Path]] = None,
) -> Optional[ProjectConfig]:
    """Load project-local configuration.

    Without *path*, the working directory is searched for
    ``fluentapi.json``, ``fluentapi.yaml`` and ``fluentapi.yml`` in that
    order. YAML files are parsed with ``yaml.safe_load``.

    Args:
        path: Explicit config file. It must exist.

    Returns:
        The validated :class:`~fluentapi.models.ProjectConfig`, or ``None``
        when no *path* was given and no project file exists.

    Raises:
        ConfigError: If the file is missing (explicit *path*), unreadable,
            malformed, or fails validation.
    """
    if path is None:
        found = _find_project_config()
        if found is None:
            return None
        config_path = found
    else:
        config_path = Path(path).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"Project config not found: {config_path}")

    try:
        text = config_path.read_text(encoding="utf-8")
        data = _parse_config_text(config_path, text)
    except OSError as exc:
        raise ConfigError(f"Cannot read project config {config_path}: {exc}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid project config at {config_path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid project config at {config_path}: expected a mapping at the top level"
        )
    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid project config at {config_path}: {exc}") from exc

    logger.debug("Loaded project config from %s", config_path)
    return config


# --- Precedence resolution ---


def _env_timeout() -> Optional[float]:
    raw = os.environ.get(ENV_TIMEOUT)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_TIMEOUT} must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{ENV_TIMEOUT} must be positive, got {raw!r}")
    return value


def resolve_defaults(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    headers: Optional[Mapping[str, str]] = None,
    token: Optional[str] = None,
    config_path: Optional[Union[str, Path]] = None,
) -> ApiDefaults:
    """Resolve request defaults with the full precedence chain.

    Precedence (high to low):
        1. Explicit arguments
        2. Environment variables (``FLUENTAPI_BASE_URL``,
           ``FLUENTAPI_TIMEOUT``, ``FLUENTAPI_TOKEN``)
        3. Project config (``./fluentapi.json`` / ``.yaml`` / ``.yml``)
        4. Defaults (no base URL, 30 second timeout, no auth)

    Headers merge instead of replacing: project headers first, explicit
    *headers* on top. A token from any layer becomes a
    :class:`~fluentapi.auth.providers.StaticTokenProvider`; a project
    ``token_source`` is resolved lazily, on the first request.

    Returns:
        An :class:`~fluentapi.defaults.ApiDefaults` ready for
        :class:`~fluentapi.api.Api`.

    Raises:
        ConfigError: If the project config or an environment value is invalid.
    """
    from fluentapi.auth.providers import StaticTokenProvider

    # 4. Defaults
    resolved_base_url: Optional[str] = None
    resolved_timeout: Optional[float] = DEFAULT_TIMEOUT
    resolved_headers: dict[str, str] = {}
    auth_provider: Optional[StaticTokenProvider] = None

    # 3. Project config
    project = load_project_config(config_path)
    if project is not None:
        if project.base_url:
            resolved_base_url = project.base_url
        if project.timeout is not None:
            resolved_timeout = project.timeout
        resolved_headers.update(project.headers)
        if project.token_source:
            auth_provider = StaticTokenProvider(source=project.token_source)

    # 2. Environment variables
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        resolved_base_url = env_base_url
    env_timeout = _env_timeout()
    if env_timeout is not None:
        resolved_timeout = env_timeout
    env_token = os.environ.get(ENV_TOKEN)
    if env_token:
        auth_provider = StaticTokenProvider(token=env_token)

    # 1. Explicit arguments (highest precedence)
    if base_url is not None:
        resolved_base_url = base_url
    if timeout is not None:
        resolved_timeout = timeout
    if headers:
        resolved_headers.update(headers)
    if token is not None:
        auth_provider = StaticTokenProvider(token=token)

    return ApiDefaults(
        base_uri=resolved_base_url,
        default_headers=resolved_headers,
        timeout=resolved_timeout,
        auth_provider=auth_provider,
    )
