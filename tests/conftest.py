"""Shared test fixtures for specroute.

Provides the fixture documents (Swagger 2.0 JSON and OpenAPI 3.0 YAML), their
parsed forms, a fresh capability registry, and a CLI runner. These fixtures
are discovered by pytest and available to every test module.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from specroute.handlers.registry import CapabilityRegistry
from specroute.models import DocumentV2, DocumentV3
from specroute.output import reset_output
from specroute.parser.document import build_document

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager keeps the sys.stdout/sys.stderr it was created with; after
    CliRunner restores the real streams those references are closed.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw documents
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_v2_raw() -> dict[str, Any]:
    """Load the raw Swagger 2.0 petstore document."""
    with open(FIXTURES_DIR / "petstore_v2.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def petstore_v3_raw() -> dict[str, Any]:
    """Load the raw OpenAPI 3.0 petstore document."""
    with open(FIXTURES_DIR / "petstore_v3.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# Parsed documents
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_v2(petstore_v2_raw: dict[str, Any]) -> DocumentV2:
    document = build_document(petstore_v2_raw)
    assert isinstance(document, DocumentV2)
    return document


@pytest.fixture
def petstore_v3(petstore_v3_raw: dict[str, Any]) -> DocumentV3:
    document = build_document(petstore_v3_raw)
    assert isinstance(document, DocumentV3)
    return document


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> CapabilityRegistry:
    """A registry with nothing loaded or pre-linked."""
    return CapabilityRegistry()


@pytest.fixture
def cli_runner():  # noqa: ANN201
    """Return a Typer CliRunner."""
    from typer.testing import CliRunner

    return CliRunner()

