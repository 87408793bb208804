"""OpenAPI document parser -- load, dereference and extract documents.

This sub-package turns a raw OpenAPI 2.0 or 3.x document (a mapping, a JSON or
YAML file, or a URL) into a reference-free
:data:`~specroute.models.ApiDocument` that the route compiler consumes.

Typical usage::

    from specroute.parser import load_document

    document = load_document("openapi.yaml")
    for operation in document.operations():
        print(operation.method.value.upper(), operation.path)

Sub-modules:

* :mod:`~specroute.parser.loader` -- I/O layer (mapping, file, URL), format
  detection and version classification.
* :mod:`~specroute.parser.resolver` -- Internal ``$ref`` expansion with cycle
  protection.
* :mod:`~specroute.parser.document` -- Extraction into the document models.
* :mod:`~specroute.parser.extensions` -- Vendor-extension stripping for the
  documentation route.
"""

from specroute.parser.document import build_document, load_document
from specroute.parser.extensions import strip_vendor_extensions
from specroute.parser.loader import detect_version, load_source

__all__ = [
    "build_document",
    "detect_version",
    "load_document",
    "load_source",
    "strip_vendor_extensions",
]
