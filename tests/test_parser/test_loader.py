"""Tests for specroute.parser.loader."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from specroute.exceptions import SpecParseError
from specroute.parser.loader import _parse_content, detect_version, load_source

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


# ---------------------------------------------------------------------------
# load_source dispatch
# ---------------------------------------------------------------------------


class TestLoadSource:
    """Test load_source dispatches on the source type."""

    def test_loads_json_file(self) -> None:
        result = load_source(FIXTURES_DIR / "petstore_v2.json")
        assert result["swagger"] == "2.0"
        assert result["info"]["title"] == "Petstore v2"

    def test_loads_yaml_file_from_string_path(self) -> None:
        result = load_source(str(FIXTURES_DIR / "petstore_v3.yaml"))
        assert result["openapi"] == "3.0.3"
        assert "/pets/{id}" in result["paths"]

    def test_yml_without_hint_sniffs_content(self, tmp_path: Path) -> None:
        doc = tmp_path / "api.txt"
        doc.write_text('swagger: "2.0"\ninfo: {title: T, version: "1"}\npaths: {}\n', encoding="utf-8")
        assert load_source(doc)["info"]["title"] == "T"

    def test_mapping_is_deep_copied(self) -> None:
        original = {"swagger": "2.0", "paths": {"/a": {}}}
        result = load_source(original)
        result["paths"]["/b"] = {}
        assert "/b" not in original["paths"]

    def test_loads_from_url(self) -> None:
        doc = {"openapi": "3.0.0", "info": {"title": "Remote", "version": "1"}, "paths": {}}
        response = httpx.Response(
            status_code=200,
            json=doc,
            request=httpx.Request("GET", "https://example.com/openapi.json"),
        )
        with patch("specroute.parser.loader.httpx.get", return_value=response):
            result = load_source("https://example.com/openapi.json")
        assert result["info"]["title"] == "Remote"

    def test_url_http_error_raises(self) -> None:
        response = httpx.Response(
            status_code=404,
            request=httpx.Request("GET", "https://example.com/missing.json"),
        )
        with patch("specroute.parser.loader.httpx.get", return_value=response):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                load_source("https://example.com/missing.json")

    def test_url_connection_error_raises(self) -> None:
        request = httpx.Request("GET", "https://example.com/openapi.json")
        with patch(
            "specroute.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("refused", request=request),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                load_source("https://example.com/openapi.json")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestLoadFromFile:
    """Test file loading failures."""

    def test_missing_file_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            load_source("/nonexistent/openapi.yaml")

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.json"
        empty.write_text("   \n", encoding="utf-8")
        with pytest.raises(SpecParseError, match="empty"):
            load_source(empty)

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            load_source(bad)

    def test_top_level_list_raises(self, tmp_path: Path) -> None:
        listing = tmp_path / "list.yaml"
        listing.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(SpecParseError, match="must be a JSON/YAML object"):
            load_source(listing)


# ---------------------------------------------------------------------------
# _parse_content
# ---------------------------------------------------------------------------


class TestParseContent:
    """JSON first, YAML as the fallback."""

    def test_json_without_hint(self) -> None:
        assert _parse_content(json.dumps({"a": 1})) == {"a": 1}

    def test_yaml_fallback(self) -> None:
        content = textwrap.dedent("""\
            openapi: "3.0.0"
            paths: {}
        """)
        assert _parse_content(content)["openapi"] == "3.0.0"

    def test_invalid_yaml_raises(self) -> None:
        with pytest.raises(SpecParseError, match="JSON or YAML"):
            _parse_content("key: [unclosed", hint="yaml")


# ---------------------------------------------------------------------------
# detect_version
# ---------------------------------------------------------------------------


class TestDetectVersion:
    """Classifying documents by their declared version."""

    def test_swagger_2(self) -> None:
        assert detect_version({"swagger": "2.0"}) == ("2", "2.0")

    def test_openapi_30(self) -> None:
        assert detect_version({"openapi": "3.0.3"}) == ("3", "3.0.3")

    def test_openapi_31(self) -> None:
        assert detect_version({"openapi": "3.1.0"}) == ("3", "3.1.0")

    def test_swagger_12_rejected(self) -> None:
        with pytest.raises(SpecParseError, match="Unsupported Swagger version"):
            detect_version({"swagger": "1.2"})

    def test_openapi_4_rejected(self) -> None:
        with pytest.raises(SpecParseError, match="Unsupported OpenAPI version"):
            detect_version({"openapi": "4.0.0"})

    def test_missing_version_field(self) -> None:
        with pytest.raises(SpecParseError, match="Missing 'swagger' or 'openapi'"):
            detect_version({"info": {}})
