"""
Registration of event handlers and their supervised invocation.

Every handler is wrapped before it reaches the event source. The wrapper
catches anything the handler raises (or its awaitable resolves to),
logs it with the event name and the once-flag, and returns normally, so
one failing handler never affects the bot or any other handler.
"""

from __future__ import annotations

import inspect
from typing import Any, List

from welcomer.dispatch.event_source import EventSource, Listener
from welcomer.dispatch.validator import HandlerDescriptor
from welcomer.errors import HandlerExecutionFailure
from welcomer.util.logger import get_logger

logger = get_logger("event_dispatcher")


class EventDispatcher:
    """
    Binds handler descriptors to a single event source.

    Descriptors registered before :meth:`bind` are queued and wired in
    registration order when the source is bound; later registrations are
    wired immediately.

    Attributes:
        is_dev: True when running in development mode; production-only
            handlers are skipped.
        registered_count: Handlers registered so far.
        skipped_count: Handlers skipped by the environment gate.
        failure_count: Handler invocations that raised.
    """

    def __init__(self, is_dev: bool) -> None:
        self.is_dev = is_dev
        self.registered_count = 0
        self.skipped_count = 0
        self.failure_count = 0
        self._source: EventSource | None = None
        self._pending: List[HandlerDescriptor] = []
        self._descriptors: List[HandlerDescriptor] = []

    @property
    def bound(self) -> bool:
        return self._source is not None

    @property
    def descriptors(self) -> List[HandlerDescriptor]:
        """Registered descriptors, in registration order."""
        return list(self._descriptors)

    def register(self, descriptor: HandlerDescriptor) -> bool:
        """
        Register one handler.

        Returns:
            True if the handler was registered, False if it was skipped.
        """
        if self.is_dev and descriptor.prod_only:
            self.skipped_count += 1
            logger.warning("[DISPATCHER] Skipped loading production-only event: %s", descriptor.label)
            return False

        if any(existing is descriptor for existing in self._descriptors):
            logger.warning("[DISPATCHER] %s is already registered; ignoring", descriptor.label)
            return False

        self._descriptors.append(descriptor)
        self.registered_count += 1

        if self._source is None:
            self._pending.append(descriptor)
        else:
            self._wire(self._source, descriptor)
        return True

    def bind(self, source: EventSource) -> None:
        """
        Attach the event source and wire every queued handler to it.

        Raises:
            RuntimeError: A source is already bound.
        """
        if self._source is not None:
            raise RuntimeError("EventDispatcher is already bound to an event source")

        self._source = source
        pending, self._pending = self._pending, []
        for descriptor in pending:
            self._wire(source, descriptor)
        logger.debug("[DISPATCHER] Bound to event source with %d handler(s)", len(pending))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _wire(self, source: EventSource, descriptor: HandlerDescriptor) -> None:
        listener = self.supervise(source.client, descriptor)
        if descriptor.once:
            source.once(descriptor.event_name, listener)
        else:
            source.on(descriptor.event_name, listener)
        logger.debug(
            "[DISPATCHER] Registered %s event: %s (%s)",
            "once" if descriptor.once else "on",
            descriptor.event_name,
            descriptor.label,
        )

    def supervise(self, client: Any, descriptor: HandlerDescriptor) -> Listener:
        """Wrap ``descriptor.execute`` so it can never raise into the event source."""

        async def listener(*args: Any) -> None:
            try:
                result = descriptor.execute(client, *args)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self.failure_count += 1
                failure = HandlerExecutionFailure(descriptor.event_name, descriptor.once, exc)
                logger.error("[DISPATCHER] %s (%s)", failure, descriptor.label, exc_info=exc)

        listener.__name__ = f"{descriptor.event_name}_{'once' if descriptor.once else 'on'}_listener"
        return listener
