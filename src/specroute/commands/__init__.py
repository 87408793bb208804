"""Built-in CLI commands for specroute.

* :mod:`~specroute.commands.routes` -- ``routes``, ``docs`` and ``check``.

Each command is a plain callback registered on the root app in
:mod:`specroute.app`.
"""
