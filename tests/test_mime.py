"""Tests for perch.http.mime: content type lookup."""

from pathlib import Path

import pytest

from perch.http.mime import guess_content_type


class TestGuessContentType:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            ("json", "application/json"),
            ("text", "text/plain; charset=utf-8"),
            ("html", "text/html; charset=utf-8"),
            ("binary", "application/octet-stream"),
            (".css", "text/css; charset=utf-8"),
            ("png", "image/png"),
            ("logo.png", "image/png"),
            ("text/csv", "text/csv"),
            ("application/vnd.api+json", "application/vnd.api+json"),
        ],
    )
    def test_known(self, kind: str, expected: str) -> None:
        assert guess_content_type(kind) == expected

    def test_path_object(self) -> None:
        assert guess_content_type(Path("/srv/site/index.html")) == "text/html; charset=utf-8"

    def test_default(self) -> None:
        assert guess_content_type("file.zzzunknown") == "application/octet-stream"
        assert guess_content_type("file.zzzunknown", default=None) is None
