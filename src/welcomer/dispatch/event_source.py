"""
The upstream notification source the dispatcher binds handlers to.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

import discord

from welcomer.util.logger import get_logger

logger = get_logger("event_source")

Listener = Callable[..., Awaitable[None]]

# py-cord only routes dispatches to listeners whose name carries this prefix
LISTENER_PREFIX = "on_"


class EventSource(Protocol):
    """Anything that can deliver named events to coroutine listeners."""

    @property
    def client(self) -> Any:
        """Handle passed as the first argument to every handler."""
        ...

    def on(self, event_name: str, listener: Listener) -> None:
        """Call ``listener`` for every occurrence of ``event_name``."""
        ...

    def once(self, event_name: str, listener: Listener) -> None:
        """Call ``listener`` for the next occurrence of ``event_name`` only."""
        ...


class DiscordEventSource:
    """
    :class:`EventSource` over a py-cord bot.

    Listeners are attached with ``bot.add_listener``; event names are the
    listener names py-cord dispatches, such as ``on_member_join``.
    """

    def __init__(self, bot: discord.Bot) -> None:
        self._bot = bot

    @staticmethod
    def _check_name(event_name: str) -> None:
        if not event_name.startswith(LISTENER_PREFIX):
            logger.warning(
                "[EVENT SOURCE] Listener for %r will never fire: py-cord event names start with %r (e.g. %r)",
                event_name,
                LISTENER_PREFIX,
                LISTENER_PREFIX + event_name,
            )

    @property
    def client(self) -> discord.Bot:
        return self._bot

    def on(self, event_name: str, listener: Listener) -> None:
        self._check_name(event_name)
        self._bot.add_listener(listener, event_name)

    def once(self, event_name: str, listener: Listener) -> None:
        self._check_name(event_name)
        fired = False

        async def once_listener(*args: Any) -> None:
            nonlocal fired
            # Two dispatches can be scheduled before the first one runs
            if fired:
                return
            fired = True
            self._bot.remove_listener(once_listener, event_name)
            logger.debug("[EVENT SOURCE] Unregistered once listener for %s", event_name)
            await listener(*args)

        self._bot.add_listener(once_listener, event_name)
