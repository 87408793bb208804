"""Route compilation and the router interface.

* :func:`compile_routes` -- document + handler tree to route descriptors.
* :func:`build_docs_route` -- the route serving the document itself.
* :class:`Router` / :class:`RouteTable` -- where descriptors are delivered.
"""

from specroute.routes.compiler import compile_operation, compile_routes
from specroute.routes.docs import build_docs_route, docs_path
from specroute.routes.table import Router, RouteTable

__all__ = [
    "RouteTable",
    "Router",
    "build_docs_route",
    "compile_operation",
    "compile_routes",
    "docs_path",
]
