"""Handlers for the root path."""


def get(request=None):
    return {"ok": True}
