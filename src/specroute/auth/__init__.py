"""Authentication -- security requirements and auth plugin registration.

* :func:`resolve_security` turns an operation's ``security`` requirements
  into the route's :class:`~specroute.models.AuthRequirement`.
* :func:`register_auth_plugins` loads the scheme and strategy plugins named
  by ``x-specroute-auth-schemes`` / ``x-specroute-auth-strategy`` and hands
  them to the router.
* :class:`AuthPlugin` is the base class for such plugins.
"""

from specroute.auth.base import AuthPlugin, as_plugin
from specroute.auth.plugins import register_auth_plugins
from specroute.auth.resolver import effective_security, resolve_security

__all__ = [
    "AuthPlugin",
    "as_plugin",
    "effective_security",
    "register_auth_plugins",
    "resolve_security",
]
