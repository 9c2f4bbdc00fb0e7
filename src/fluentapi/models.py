"""Pydantic models for fluentapi's on-disk configuration.

A project may pin its test defaults in ``fluentapi.json`` (or
``fluentapi.yaml`` / ``fluentapi.yml``) at the repository root. The file is
validated into :class:`ProjectConfig` by
:func:`~fluentapi.config.load_project_config` and merged with environment
variables and explicit arguments by :func:`~fluentapi.config.resolve_defaults`.

Unknown keys are preserved in ``model_extra`` so that tooling built on top of
fluentapi can keep its own settings in the same file.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectConfig(BaseModel):
    """Project-local defaults for building an :class:`~fluentapi.api.Api`.

    Example::

        ProjectConfig(
            base_url="https://staging.example.com",
            timeout=10,
            headers={"Accept": "application/json"},
            token_source="env:STAGING_TOKEN",
        )
    """

    model_config = ConfigDict(extra="allow")

    base_url: Optional[str] = Field(
        default=None, description="Base URI prefixed to relative endpoints"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Request timeout in seconds"
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    token_source: Optional[str] = Field(
        default=None,
        description="Bearer token source: env:VAR, file:/path or literal:value",
    )
