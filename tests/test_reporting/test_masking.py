"""Tests for credential masking in displayed headers and bodies."""

from __future__ import annotations

import json

import pytest

from fluentapi.reporting.masking import (
    MASK,
    is_sensitive_header,
    mask_body_text,
    mask_headers,
    mask_json_fields,
)


class TestHeaders:
    @pytest.mark.parametrize(
        "name",
        ["Authorization", "X-Api-Key", "x-auth-user", "X-Session-Token", "Cookie", "Set-Cookie"],
    )
    def test_sensitive(self, name: str) -> None:
        assert is_sensitive_header(name)

    @pytest.mark.parametrize("name", ["Content-Type", "Accept", "X-Request-Id"])
    def test_not_sensitive(self, name: str) -> None:
        assert not is_sensitive_header(name)

    def test_mask_headers_keeps_names(self) -> None:
        masked = mask_headers({"Authorization": "Bearer abc", "Accept": "application/json"})
        assert masked == {"Authorization": MASK, "Accept": "application/json"}


class TestBodies:
    def test_top_level_fields(self) -> None:
        data = {"username": "ann", "password": "pw", "accessToken": "t", "nested": {"secret": "s"}}
        masked = mask_json_fields(data)
        assert masked["username"] == "ann"
        assert masked["password"] == MASK
        assert masked["accessToken"] == MASK
        assert masked["nested"] == {"secret": "s"}

    def test_non_object_unchanged(self) -> None:
        assert mask_json_fields([{"password": "pw"}]) == [{"password": "pw"}]

    def test_text_pretty_printed(self) -> None:
        text = mask_body_text('{"token":"abc","id":1}')
        assert json.loads(text) == {"token": MASK, "id": 1}
        assert "\n" in text

    @pytest.mark.parametrize("raw", ["", "plain text", "<xml/>"])
    def test_non_json_text_unchanged(self, raw: str) -> None:
        assert mask_body_text(raw) == raw
