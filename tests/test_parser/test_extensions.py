"""Tests for specroute.parser.extensions."""

from __future__ import annotations

from typing import Any

from specroute.parser.extensions import strip_vendor_extensions


# ---------------------------------------------------------------------------
# strip_vendor_extensions
# ---------------------------------------------------------------------------


class TestStripVendorExtensions:
    """Removing x- keys from the served document."""

    def test_removes_keys_at_every_depth(self) -> None:
        doc = {
            "x-top": 1,
            "paths": {
                "/a": {
                    "x-specroute-handler": "h.py",
                    "get": {"x-specroute-options": {}, "responses": {"200": {"x-deep": [1]}}},
                }
            },
        }
        assert strip_vendor_extensions(doc) == {
            "paths": {"/a": {"get": {"responses": {"200": {}}}}}
        }

    def test_walks_into_lists(self) -> None:
        doc = {"tags": [{"name": "a", "x-order": 1}, {"name": "b"}]}
        assert strip_vendor_extensions(doc) == {"tags": [{"name": "a"}, {"name": "b"}]}

    def test_preserves_key_and_list_order(self) -> None:
        doc = {"b": 1, "x-gone": 0, "a": [3, 2, 1], "c": {"z": 1, "y": 2}}
        stripped = strip_vendor_extensions(doc)
        assert list(stripped) == ["b", "a", "c"]
        assert stripped["a"] == [3, 2, 1]
        assert list(stripped["c"]) == ["z", "y"]

    def test_only_prefix_matches(self) -> None:
        doc = {"max-x-value": 1, "X-Upper": 2, "box-": 3}
        assert strip_vendor_extensions(doc) == doc

    def test_input_not_mutated(self) -> None:
        doc: dict[str, Any] = {"x-a": 1, "b": {"x-c": 2}}
        strip_vendor_extensions(doc)
        assert doc == {"x-a": 1, "b": {"x-c": 2}}

    def test_scalars_pass_through(self) -> None:
        assert strip_vendor_extensions("x-value") == "x-value"
        assert strip_vendor_extensions(None) is None
