"""Private module; skipped by the directory loader."""


def get(request=None):
    raise AssertionError("private modules are never loaded as handlers")
