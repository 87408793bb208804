"""Tests for specroute.parser.document."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from specroute.exceptions import SpecParseError
from specroute.models import DocumentV2, DocumentV3, HTTPMethod, ParameterLocation
from specroute.parser.document import (
    _extract_operation,
    _extract_paths,
    _extract_security_schemes,
    build_document,
    load_document,
    normalize_base_path,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
_OK = {"200": {"description": "OK"}}


def _swagger(paths: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"swagger": "2.0", "info": {"title": "T", "version": "1"}, "paths": paths, **extra}


# ---------------------------------------------------------------------------
# Swagger 2.0
# ---------------------------------------------------------------------------


class TestBuildDocumentV2:
    """Extraction from the Swagger 2.0 petstore fixture."""

    def test_version_tag(self, petstore_v2: DocumentV2) -> None:
        assert petstore_v2.spec_version == "2"
        assert petstore_v2.version == "2.0"
        assert petstore_v2.title == "Petstore v2"

    def test_base_path_trailing_slash_dropped(self, petstore_v2: DocumentV2) -> None:
        assert petstore_v2.base_path == "/v1"

    def test_host_and_consumes(self, petstore_v2: DocumentV2) -> None:
        assert petstore_v2.host == "petstore.example.com"
        assert petstore_v2.consumes == ["application/json"]

    def test_paths_keep_document_order(self, petstore_v2: DocumentV2) -> None:
        assert list(petstore_v2.paths) == ["/pets", "/pets/{id}", "/health", "/uploads"]
        assert list(petstore_v2.paths["/pets/{id}"]) == [HTTPMethod.GET, HTTPMethod.DELETE]

    def test_operations_in_document_order(self, petstore_v2: DocumentV2) -> None:
        ids = [op.operation_id for op in petstore_v2.operations()]
        assert ids == ["listPets", "createPet", "getPet", "deletePet", "health", "upload"]

    def test_path_level_parameters_merged_first(self, petstore_v2: DocumentV2) -> None:
        op = petstore_v2.paths["/pets/{id}"][HTTPMethod.GET]
        assert [(p.name, p.location) for p in op.parameters] == [
            ("id", ParameterLocation.PATH),
            ("X-Request-Id", ParameterLocation.HEADER),
        ]

    def test_body_parameter_schema_resolved(self, petstore_v2: DocumentV2) -> None:
        body = petstore_v2.paths["/pets"][HTTPMethod.POST].parameters[0]
        assert body.location == ParameterLocation.BODY
        assert body.schema_ is not None
        assert body.schema_["required"] == ["name"]

    def test_security_undeclared_vs_empty(self, petstore_v2: DocumentV2) -> None:
        assert petstore_v2.paths["/pets"][HTTPMethod.GET].security is None
        assert petstore_v2.paths["/health"][HTTPMethod.GET].security == []

    def test_security_schemes(self, petstore_v2: DocumentV2) -> None:
        api_key = petstore_v2.security_schemes["api_key"]
        assert api_key.type == "apiKey"
        assert api_key.param_name == "X-Api-Key"
        assert api_key.location == "header"

    def test_vendor_extensions_collected(self, petstore_v2: DocumentV2) -> None:
        assert petstore_v2.extensions == {"x-specroute-owner": "pets-team"}
        create = petstore_v2.paths["/pets"][HTTPMethod.POST]
        assert "x-specroute-options" in create.extensions

    def test_response_codes_are_strings(self, petstore_v2: DocumentV2) -> None:
        responses = petstore_v2.paths["/pets/{id}"][HTTPMethod.GET].responses
        assert list(responses) == ["200", "404"]

    def test_non_method_keys_ignored(self) -> None:
        doc = _swagger({"/a": {"parameters": [], "x-note": "x", "get": {"responses": _OK}}})
        assert list(build_document(doc).paths["/a"]) == [HTTPMethod.GET]

    def test_operation_parameter_overrides_path_parameter(self) -> None:
        doc = _swagger({
            "/a/{id}": {
                "parameters": [{"name": "id", "in": "path", "required": True, "type": "string"}],
                "get": {
                    "parameters": [{"name": "id", "in": "path", "required": True, "type": "integer"}],
                    "responses": _OK,
                },
            }
        })
        (param,) = build_document(doc).paths["/a/{id}"][HTTPMethod.GET].parameters
        assert param.model_extra["type"] == "integer"

    def test_missing_base_path_is_empty(self) -> None:
        assert build_document(_swagger({})).base_path == ""


# ---------------------------------------------------------------------------
# OpenAPI 3
# ---------------------------------------------------------------------------


class TestBuildDocumentV3:
    """Extraction from the OpenAPI 3.0 petstore fixture."""

    def test_version_tag(self, petstore_v3: DocumentV3) -> None:
        assert petstore_v3.spec_version == "3"
        assert petstore_v3.version == "3.0.3"

    def test_server_variables_substituted(self, petstore_v3: DocumentV3) -> None:
        assert petstore_v3.servers == ["https://api.example.com/v3/", "/legacy"]

    def test_first_server_wins(self, petstore_v3: DocumentV3) -> None:
        assert petstore_v3.base_path == "/v3"
        assert petstore_v3.host == "api.example.com"

    def test_consumes_from_request_body(self, petstore_v3: DocumentV3) -> None:
        create = petstore_v3.paths["/pets"][HTTPMethod.POST]
        assert create.consumes == ["application/xml", "application/json"]
        assert create.request_body is not None
        assert create.request_body["required"] is True

    def test_no_request_body_no_consumes(self, petstore_v3: DocumentV3) -> None:
        assert petstore_v3.paths["/pets"][HTTPMethod.GET].consumes is None

    def test_security_scheme_from_components(self, petstore_v3: DocumentV3) -> None:
        bearer = petstore_v3.security_schemes["bearer"]
        assert bearer.type == "http"
        assert bearer.scheme == "bearer"
        assert bearer.extensions == {"x-specroute-internal": True}

    def test_path_extensions(self, petstore_v3: DocumentV3) -> None:
        assert petstore_v3.path_extensions == {
            "/pets/{id}": {"x-specroute-handler": "handlers/pet_item.py"}
        }

    def test_no_servers_gives_empty_base_path(self) -> None:
        doc = {"openapi": "3.1.0", "info": {"title": "T", "version": "1"}, "paths": {}}
        document = build_document(doc)
        assert document.base_path == ""
        assert document.host is None


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestBuildDocumentErrors:
    """Documents that violate the OpenAPI schema or the extraction rules."""

    def test_paths_not_an_object(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(_swagger([]))  # type: ignore[arg-type]

    def test_operation_not_an_object(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(_swagger({"/a": {"get": "nope"}}))

    def test_empty_responses_rejected(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(_swagger({"/a": {"get": {"responses": _OK}}}))

    def test_path_parameter_must_be_required(self) -> None:
        doc = {
            "swagger": "2.0",
            "paths": {
                "/a/{id}": {"get": {"parameters": [{"name": "id", "in": "path", "type": "integer"}]}}
            },
        }
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(doc)

    def test_undeclared_path_template_parameter(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(_swagger({"/a/{id}": {"get": {"responses": _OK}}}))

    def test_duplicate_operation_id(self) -> None:
        doc = _swagger({
            "/a": {"get": {"operationId": "same", "responses": _OK}},
            "/b": {"get": {"operationId": "same", "responses": _OK}},
        })
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(doc)

    @pytest.mark.parametrize(
        "operation",
        [
            {"tags": None, "responses": _OK},
            {"security": [{"k": None}], "responses": _OK},
            {"operationId": 5, "responses": _OK},
        ],
    )
    def test_mistyped_operation_fields(self, operation: dict[str, Any]) -> None:
        with pytest.raises(SpecParseError):
            build_document(_swagger({"/a": {"get": operation}}))

    def test_security_scheme_without_type(self) -> None:
        doc = _swagger({}, securityDefinitions={"k": {"name": "X"}})
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(doc)

    def test_missing_info(self) -> None:
        with pytest.raises(SpecParseError, match="'info' is a required property"):
            build_document({"openapi": "3.0.3", "paths": {}})

    def test_unknown_openapi_minor_version(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document({"openapi": "3.9.0", "info": {"title": "T", "version": "1"}, "paths": {}})

    def test_float_openapi_version_rejected(self) -> None:
        doc = {"openapi": 3.0, "info": {"title": "T", "version": "1"}, "paths": {}}
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(doc)


# ---------------------------------------------------------------------------
# Extraction guards
# ---------------------------------------------------------------------------


class TestExtractionErrors:
    """Malformed nodes reaching the extraction helpers become SpecParseError."""

    def test_path_item_not_an_object(self) -> None:
        with pytest.raises(SpecParseError, match="Path item '/a' must be an object"):
            _extract_paths({"paths": {"/a": []}}, "2")

    def test_operation_not_an_object(self) -> None:
        with pytest.raises(SpecParseError, match="GET /a must be an object"):
            _extract_paths({"paths": {"/a": {"get": "nope"}}}, "2")

    def test_parameter_without_location(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid parameter in GET /a"):
            _extract_operation("/a", "get", {"parameters": [{"name": "x"}]}, [], "2")

    @pytest.mark.parametrize(
        "operation",
        [{"tags": None}, {"security": [{"k": None}]}, {"operationId": 5}],
    )
    def test_mistyped_operation_fields(self, operation: dict[str, Any]) -> None:
        with pytest.raises(SpecParseError, match="Invalid operation GET /a"):
            _extract_operation("/a", "get", operation, [], "2")

    def test_security_scheme_without_type(self) -> None:
        spec = {"securityDefinitions": {"k": {"name": "X"}}}
        with pytest.raises(SpecParseError, match="Security scheme 'k' must be an object"):
            _extract_security_schemes(spec, "2")

    def test_mistyped_security_scheme_field(self) -> None:
        spec = {"securityDefinitions": {"k": {"type": "apiKey", "name": 5, "in": "header"}}}
        with pytest.raises(SpecParseError, match="Invalid security scheme 'k'"):
            _extract_security_schemes(spec, "2")


# ---------------------------------------------------------------------------
# load_document
# ---------------------------------------------------------------------------


class TestLoadDocument:
    """Loading straight from a file on disk."""

    def test_loads_from_file(self) -> None:
        document = load_document(FIXTURES_DIR / "petstore_v3.yaml")
        assert isinstance(document, DocumentV3)


# ---------------------------------------------------------------------------
# normalize_base_path
# ---------------------------------------------------------------------------


class TestNormalizeBasePath:
    """Leading and trailing slash handling for base paths."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("/", ""), ("/v1/", "/v1"), ("v1", "/v1"), ("/a/b", "/a/b")],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_base_path(raw) == expected
