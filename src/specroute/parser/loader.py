"""Load raw OpenAPI documents from a mapping, a local file, or a URL.

This module handles all I/O for fetching a raw document and converting it into
a Python dictionary. JSON and YAML are both accepted, with the format picked
from the file extension or response content type and content sniffing as the
fallback.

The two public functions are:

* :func:`load_source` -- Load and parse a document from any supported source.
* :func:`detect_version` -- Classify the document as Swagger 2.0 or OpenAPI
  3.x and return the raw version string.

The raw dictionary is used twice: once dereferenced and extracted into an
:data:`~specroute.models.ApiDocument` for compilation, and once as-is
(optionally stripped of vendor extensions) for the documentation route.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Literal, Union

import httpx
import yaml

from specroute.exceptions import SpecParseError

Source = Union[str, Path, dict[str, Any]]


def load_source(source: Source) -> dict[str, Any]:
    """Load an OpenAPI document from a mapping, file path, or http(s) URL.

    Mappings are deep-copied so later processing never touches the caller's
    object.

    Args:
        source: An in-memory document, a path to a ``.json``/``.yaml``/``.yml``
            file, or an ``http://``/``https://`` URL.

    Returns:
        The parsed document as a dictionary.

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    if isinstance(source, dict):
        return copy.deepcopy(source)
    text = str(source)
    if text.startswith(("http://", "https://")):
        return _load_from_url(text)
    return _load_from_file(Path(text))


def _load_from_url(url: str) -> dict[str, Any]:
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return _parse_content(response.text, hint=hint)


def _load_from_file(path: Path) -> dict[str, Any]:
    """Read a local document, using the suffix as the format hint."""
    if not path.is_file():
        raise SpecParseError(f"Document not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read document {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Document is empty: {path}")

    suffix = path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"
    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    JSON is tried first unless the hint says YAML; since JSON is a subset of
    YAML, a failed JSON parse falls through to YAML unless the hint was
    explicitly JSON.

    Raises:
        SpecParseError: If the content parses as neither format, or does not
            hold a mapping at the top level.
    """
    if hint != "yaml":
        try:
            return _expect_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc

    try:
        return _expect_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        raise SpecParseError(f"Failed to parse document as JSON or YAML: {exc}") from exc


def _expect_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Document must be a JSON/YAML object (got {kind})")
    return result


def detect_version(raw: dict[str, Any]) -> tuple[Literal["2", "3"], str]:
    """Classify a raw document by its declared version.

    Args:
        raw: The parsed document.

    Returns:
        A ``(major, version)`` tuple such as ``("2", "2.0")`` or
        ``("3", "3.0.3")``.

    Raises:
        SpecParseError: If neither ``swagger`` nor ``openapi`` is present, or
            the declared version is unsupported.
    """
    if "openapi" in raw:
        version = str(raw["openapi"])
        if version.startswith("3."):
            return "3", version
        raise SpecParseError(
            f"Unsupported OpenAPI version: {version}. Only 3.x is supported."
        )

    if "swagger" in raw:
        version = str(raw["swagger"])
        if version == "2.0":
            return "2", version
        raise SpecParseError(f"Unsupported Swagger version: {version}. Only 2.0 is supported.")

    raise SpecParseError(
        "Missing 'swagger' or 'openapi' field. Is this an OpenAPI document?"
    )
