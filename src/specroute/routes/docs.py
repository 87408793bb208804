"""The documentation route, which serves the OpenAPI document itself."""

from __future__ import annotations

import copy
from typing import Any, Optional, Union

from specroute.models import DocsOptions, HTTPMethod, RouteDescriptor, RouteOptions
from specroute.parser.document import normalize_base_path
from specroute.parser.extensions import strip_vendor_extensions


class DocumentHandler:
    """Route handler returning a fixed document for every request."""

    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document

    def __call__(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        return self.document

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def docs_path(docs: DocsOptions, base_path: str) -> str:
    """Return the mount path of the documentation route.

    With ``prefix_base_path`` the configured path is normalized (leading
    slash, no trailing slash) and appended to *base_path*.
    """
    if not docs.prefix_base_path:
        return docs.path
    return base_path + (normalize_base_path(docs.path) or "/")


def build_docs_route(
    raw_document: dict[str, Any],
    base_path: str,
    docs: DocsOptions,
    *,
    cors: Union[bool, dict[str, Any]] = True,
    vhost: Optional[str] = None,
) -> RouteDescriptor:
    """Build the GET route serving *raw_document*.

    The document is served as loaded, without ``$ref`` resolution. Vendor
    extensions are removed at every depth when ``docs.strip_extensions`` is
    set; *raw_document* itself is never modified.
    """
    if docs.strip_extensions:
        served = strip_vendor_extensions(raw_document)
    else:
        served = copy.deepcopy(raw_document)

    path = docs_path(docs, base_path)
    return RouteDescriptor(
        method=HTTPMethod.GET,
        path=path,
        handler=DocumentHandler(served),
        vhost=vhost,
        options=RouteOptions(
            cors=cors,
            id=path.replace("/", "_"),
            description="The OpenAPI document.",
            tags=["api", "documentation"],
            auth=docs.auth,
        ),
    )
