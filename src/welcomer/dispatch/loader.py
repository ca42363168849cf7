"""
Bulk loading of event handler modules into a dispatcher.
"""

from __future__ import annotations

import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType

from welcomer.dispatch.catalog import discover
from welcomer.dispatch.dispatcher import EventDispatcher
from welcomer.dispatch.validator import validate
from welcomer.errors import InvalidModuleShape
from welcomer.util.logger import get_logger

logger = get_logger("event_loader")

MODULE_PREFIX = "welcomer_event_handlers"


def module_name_for(path: Path, root_dir: Path) -> str:
    """Return a unique, importable module name for a handler file."""
    relative = path.relative_to(root_dir).with_suffix("")
    parts = [re.sub(r"\W", "_", part) for part in relative.parts]
    return ".".join([MODULE_PREFIX, *parts])


def import_handler_module(path: Path, module_name: str) -> ModuleType:
    """
    Import a handler file under ``module_name``.

    ``.py`` and sourceless ``.pyc`` files are both supported; importlib picks
    the loader from the suffix.

    Raises:
        ImportError: No loader exists for the file.
        Exception: Anything the module raises while executing.
    """
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"No loader available for {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def load_event_handlers(dispatcher: EventDispatcher, root_dir: Path, extension: str) -> int:
    """
    Discover, import, validate and register every handler under ``root_dir``.

    Loading is best effort: a file that fails to import or does not describe a
    handler is logged and skipped.

    Returns:
        The number of handlers registered with ``dispatcher``.
    """
    root_dir = Path(root_dir).resolve()
    loaded_count = 0

    for path in discover(root_dir, extension):
        try:
            module = import_handler_module(path, module_name_for(path, root_dir))
        except Exception:
            logger.exception("[EVENT LOADER] Failed to load event %s", path)
            continue

        try:
            descriptor = validate(module, source=path)
        except InvalidModuleShape as exc:
            logger.warning("[EVENT LOADER] Skipped %s: not a valid event module (%s)", path, exc.reason)
            continue

        if dispatcher.register(descriptor):
            loaded_count += 1

    logger.info("[EVENT LOADER] Loaded %d Discord event(s)", loaded_count)
    return loaded_count
