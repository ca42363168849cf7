"""
Structural validation of loaded handler modules.

A handler module either defines the handler names at module level::

    event_name = "on_member_join"
    once = False
    prod_only = False

    async def execute(client, member): ...

or places an object (or mapping) carrying the same fields in an ``event``
slot, which takes precedence when present.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Mapping

from welcomer.errors import InvalidModuleShape

# Module attribute that may hold the whole handler definition
EVENT_SLOT = "event"

_MISSING = object()


@dataclass(frozen=True, eq=False)
class HandlerDescriptor:
    """One event binding, created from a loaded module."""
    event_name: str
    execute: Callable[..., Any]
    once: bool = False
    prod_only: bool = False
    source: Path | None = None

    @property
    def label(self) -> str:
        return self.source.name if self.source else self.event_name


def _read(container: Any, name: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(name, _MISSING)
    return getattr(container, name, _MISSING)


def _read_flag(container: Any, name: str) -> bool:
    value = _read(container, name)
    if value is _MISSING or value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidModuleShape(f"'{name}' must be a bool, got {type(value).__name__}")
    return value


def _descriptor_from(container: Any, source: Path | None) -> HandlerDescriptor:
    event_name = _read(container, "event_name")
    if event_name is _MISSING:
        raise InvalidModuleShape("missing 'event_name'")
    if not isinstance(event_name, str):
        raise InvalidModuleShape(f"'event_name' must be a str, got {type(event_name).__name__}")
    if not event_name.strip():
        raise InvalidModuleShape("'event_name' is empty")

    execute = _read(container, "execute")
    if execute is _MISSING:
        raise InvalidModuleShape("missing 'execute'")
    if not callable(execute):
        raise InvalidModuleShape(f"'execute' must be callable, got {type(execute).__name__}")

    return HandlerDescriptor(
        event_name=event_name.strip(),
        execute=execute,
        once=_read_flag(container, "once"),
        prod_only=_read_flag(container, "prod_only"),
        source=source,
    )


def validate(module: ModuleType | Any, source: Path | None = None) -> HandlerDescriptor:
    """
    Build a :class:`HandlerDescriptor` from a loaded module.

    The ``event`` slot is tried first when the module has one; if it does not
    describe a handler, the module's own attributes are used.

    Raises:
        InvalidModuleShape: The module does not describe a usable handler.
    """
    slot = getattr(module, EVENT_SLOT, None)
    if slot is not None and not isinstance(slot, ModuleType):
        try:
            return _descriptor_from(slot, source)
        except InvalidModuleShape:
            pass  # fall back to module-level names

    try:
        return _descriptor_from(module, source)
    except InvalidModuleShape as exc:
        raise InvalidModuleShape(exc.reason, source) from None
