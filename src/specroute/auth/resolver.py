"""Resolve OpenAPI security requirements into a route auth requirement.

OpenAPI reads a ``security`` array as OR across its requirement objects and
AND across the schemes inside one object. A router route carries a single
requirement, so every scheme named anywhere in the array becomes one of the
route's strategies and every scope becomes one of its scopes. Which schemes
a request actually satisfies is left to the router.
"""

from __future__ import annotations

from typing import Optional

from specroute.exceptions import SecuritySchemeError
from specroute.models import ApiDocument, AuthRequirement, Operation


def effective_security(
    operation: Operation, document: ApiDocument
) -> Optional[list[dict[str, list[str]]]]:
    """Return the requirements that apply to *operation*.

    An operation without a ``security`` field inherits the document's
    global requirement; an explicit empty array does not.
    """
    if operation.security is None:
        return document.security
    return operation.security


def resolve_security(operation: Operation, document: ApiDocument) -> Optional[AuthRequirement]:
    """Build the :class:`~specroute.models.AuthRequirement` for *operation*.

    Returns:
        The requirement, or ``None`` when no security applies.

    Raises:
        SecuritySchemeError: If a requirement names a scheme the document
            does not define.
    """
    requirements = effective_security(operation, document)
    if not requirements:
        return None

    strategies: list[str] = []
    scopes: list[str] = []
    for requirement in requirements:
        for scheme_name, scheme_scopes in requirement.items():
            if scheme_name not in document.security_schemes:
                raise SecuritySchemeError(
                    f"Security scheme '{scheme_name}' used by "
                    f"{operation.method.value.upper()} {operation.path} is not defined"
                )
            if scheme_name not in strategies:
                strategies.append(scheme_name)
            for scope in scheme_scopes:
                if scope not in scopes:
                    scopes.append(scope)

    if not strategies:
        # Only empty requirement objects ({}): anonymous access is allowed.
        return None
    return AuthRequirement(strategies=strategies, scope=scopes or False)
