"""Registration options -- validation, migration and options files.

:func:`validate_options` is the single entry point for turning whatever the
caller passed to :func:`specroute.plugin.register` into a
:class:`~specroute.models.PluginOptions`:

* unknown keys and wrongly typed values raise :class:`ConfigError`;
* the deprecated ``docspath`` option is migrated into ``docs.path``;
* ``handlers`` defaults to the ``routes/`` directory next to the caller when
  that directory exists.

:func:`load_options_file` reads the same options from a JSON or YAML file
(used by the CLI's ``--config``), resolving relative paths against the
file's directory.
"""

from __future__ import annotations

import inspect
import json
import logging
import sysconfig
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from specroute.exceptions import ConfigError
from specroute.models import PluginOptions

logger = logging.getLogger(__name__)

DEFAULT_DOCS_PATH = "/api-docs"
DEFAULT_HANDLERS_DIR = "routes"

_PACKAGE_DIR = Path(__file__).resolve().parent
_STDLIB_DIRS = frozenset(
    Path(sysconfig.get_paths()[key]).resolve() for key in ("stdlib", "platstdlib")
)
_SITE_DIRS = frozenset(
    Path(sysconfig.get_paths()[key]).resolve() for key in ("purelib", "platlib")
)


def validate_options(
    raw: Union[PluginOptions, Mapping[str, Any]],
    caller_dir: Optional[Path] = None,
) -> PluginOptions:
    """Validate registration options and apply migrations and defaults.

    Args:
        raw: Options as a mapping or an already built model.
        caller_dir: Directory the default ``routes/`` handler directory is
            looked up in. Defaults to :func:`caller_directory`.

    Returns:
        The effective options.

    Raises:
        ConfigError: If the options fail validation.
    """
    if isinstance(raw, PluginOptions):
        options = raw
    else:
        try:
            options = PluginOptions.model_validate(dict(raw))
        except ValidationError as exc:
            raise ConfigError(f"Invalid options: {exc}") from exc

    if options.docspath != DEFAULT_DOCS_PATH and options.docs.path == DEFAULT_DOCS_PATH:
        logger.warning("docspath is deprecated. Use docs.path instead.")
        docs = options.docs.model_copy(update={"path": options.docspath})
        options = options.model_copy(update={"docs": docs})

    if options.handlers is None:
        default = (caller_dir or caller_directory()) / DEFAULT_HANDLERS_DIR
        if default.is_dir():
            logger.debug("Using default handler directory %s", default)
            options = options.model_copy(update={"handlers": str(default)})

    return options


def api_basedir(options: PluginOptions, caller_dir: Optional[Path] = None) -> Path:
    """Return the directory that relative references in the document resolve against.

    That is the document's own directory when ``api`` is a local file, and
    the caller's directory otherwise.
    """
    if isinstance(options.api, (str, Path)) and not _is_url(str(options.api)):
        return Path(options.api).resolve().parent
    return (caller_dir or caller_directory()).resolve()


def _is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def caller_directory() -> Path:
    """Return the directory of the nearest calling module outside specroute.

    Standard library frames are skipped too, so a script that runs
    ``asyncio.run(register(...))`` resolves to its own directory rather than
    to the event loop's. Falls back to the working directory when no such
    frame has a file.
    """
    for frame in inspect.stack()[1:]:
        filename = frame.filename
        if filename.startswith("<"):
            continue
        path = Path(filename).resolve()
        if _PACKAGE_DIR in path.parents:
            continue
        if _is_stdlib(path):
            continue
        return path.parent
    return Path.cwd()


def _is_stdlib(path: Path) -> bool:
    parents = set(path.parents)
    if parents & _SITE_DIRS:
        return False
    return bool(parents & _STDLIB_DIRS)


# --- Options files ---


def load_options_file(path: Union[str, Path]) -> dict[str, Any]:
    """Read registration options from a JSON or YAML file.

    Relative ``api`` and ``handlers`` paths are resolved against the file's
    directory. The result is a plain mapping; pass it to
    :func:`validate_options`.

    Raises:
        ConfigError: If the file is missing, unparseable, or not a mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Options file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid options file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Options file {path} must contain a mapping")

    base = path.resolve().parent
    for key in ("api", "handlers"):
        value = data.get(key)
        if isinstance(value, str) and not _is_url(value) and not Path(value).is_absolute():
            data[key] = str(base / value)
    return data
