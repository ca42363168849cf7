"""Tests for the event dispatcher: gating, once semantics and failure isolation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from welcomer.dispatch.dispatcher import EventDispatcher
from welcomer.dispatch.validator import HandlerDescriptor


def descriptor(event_name="on_member_join", execute=None, **flags) -> HandlerDescriptor:
    return HandlerDescriptor(event_name=event_name, execute=execute or MagicMock(), **flags)


class TestRegistration:
    def test_register_counts_handlers(self, event_source):
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)

        assert dispatcher.register(descriptor()) is True
        assert dispatcher.register(descriptor(event_name="on_ready", once=True)) is True

        assert dispatcher.registered_count == 2
        assert len(event_source.listeners["on_member_join"]) == 1
        assert len(event_source.once_listeners["on_ready"]) == 1

    def test_prod_only_is_skipped_in_development(self, event_source):
        execute = MagicMock()
        dispatcher = EventDispatcher(is_dev=True)
        dispatcher.bind(event_source)

        assert dispatcher.register(descriptor(execute=execute, prod_only=True)) is False

        assert dispatcher.registered_count == 0
        assert dispatcher.skipped_count == 1
        assert event_source.listeners["on_member_join"] == []
        assert dispatcher.descriptors == []

    @pytest.mark.asyncio
    async def test_prod_only_is_never_invoked_in_development(self, event_source):
        execute = MagicMock()
        dispatcher = EventDispatcher(is_dev=True)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(execute=execute, prod_only=True))

        await event_source.emit("on_member_join", "member")

        execute.assert_not_called()

    def test_prod_only_is_registered_in_production(self, event_source):
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)

        assert dispatcher.register(descriptor(prod_only=True)) is True
        assert dispatcher.skipped_count == 0

    def test_registered_count_excludes_skipped(self, event_source):
        dispatcher = EventDispatcher(is_dev=True)
        dispatcher.bind(event_source)
        handlers = [descriptor(), descriptor(prod_only=True), descriptor(), descriptor(prod_only=True)]

        registered = sum(dispatcher.register(h) for h in handlers)

        assert registered == 2
        assert dispatcher.registered_count == 2
        assert dispatcher.skipped_count == 2

    def test_same_descriptor_registers_once(self, event_source):
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        handler = descriptor()

        assert dispatcher.register(handler) is True
        assert dispatcher.register(handler) is False
        assert len(event_source.listeners["on_member_join"]) == 1

    def test_registrations_before_bind_are_wired_on_bind(self, event_source):
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.register(descriptor())
        dispatcher.register(descriptor(event_name="on_ready", once=True))

        assert event_source.listeners["on_member_join"] == []
        assert dispatcher.bound is False

        dispatcher.bind(event_source)

        assert dispatcher.bound is True
        assert len(event_source.listeners["on_member_join"]) == 1
        assert len(event_source.once_listeners["on_ready"]) == 1

    def test_bind_twice_raises(self, event_source):
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)

        with pytest.raises(RuntimeError):
            dispatcher.bind(event_source)


class TestInvocation:
    @pytest.mark.asyncio
    async def test_handler_receives_client_then_event_args(self, event_source):
        execute = AsyncMock()
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(execute=execute))

        await event_source.emit("on_member_join", "member-1")

        execute.assert_awaited_once_with(event_source.client, "member-1")

    @pytest.mark.asyncio
    async def test_sync_handlers_are_supported(self, event_source):
        calls = []
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(execute=lambda client, *args: calls.append(args)))

        await event_source.emit("on_member_join", "a", "b")

        assert calls == [("a", "b")]

    @pytest.mark.asyncio
    async def test_recurring_handler_fires_every_time(self, event_source):
        execute = AsyncMock()
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(execute=execute))

        for i in range(3):
            await event_source.emit("on_member_join", i)

        assert execute.await_count == 3

    @pytest.mark.asyncio
    async def test_once_handler_fires_at_most_once(self, event_source):
        execute = AsyncMock()
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(event_name="on_ready", execute=execute, once=True))

        for _ in range(5):
            await event_source.emit("on_ready")

        assert execute.await_count == 1

    @pytest.mark.asyncio
    async def test_all_handlers_for_an_event_are_invoked(self, event_source):
        first, second = AsyncMock(), AsyncMock()
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(execute=first))
        dispatcher.register(descriptor(execute=second))

        await event_source.emit("on_member_join", "m")

        first.assert_awaited_once()
        second.assert_awaited_once()


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_async_failure_does_not_reach_source_or_siblings(self, event_source):
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        sibling = AsyncMock()
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(execute=failing))
        dispatcher.register(descriptor(execute=sibling))

        await event_source.emit("on_member_join", "m1")
        await event_source.emit("on_member_join", "m2")

        assert sibling.await_count == 2
        assert failing.await_count == 2
        assert dispatcher.failure_count == 2

    @pytest.mark.asyncio
    async def test_sync_failure_is_contained(self, event_source):
        def explode(client, *args):
            raise ValueError("sync boom")

        other_event = AsyncMock()
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(execute=explode))
        dispatcher.register(descriptor(event_name="on_ready", execute=other_event))

        await event_source.emit("on_member_join", "m")
        await event_source.emit("on_ready")

        other_event.assert_awaited_once()
        assert dispatcher.failure_count == 1

    @pytest.mark.asyncio
    async def test_failing_once_handler_is_logged_with_context(self, event_source, monkeypatch):
        from welcomer.dispatch import dispatcher as dispatcher_module

        fake_logger = MagicMock()
        monkeypatch.setattr(dispatcher_module, "logger", fake_logger)
        dispatcher = EventDispatcher(is_dev=False)
        dispatcher.bind(event_source)
        dispatcher.register(descriptor(event_name="on_ready", execute=AsyncMock(side_effect=KeyError("k")), once=True))

        await event_source.emit("on_ready")

        fake_logger.error.assert_called_once()
        failure = fake_logger.error.call_args.args[1]
        assert failure.event_name == "on_ready"
        assert failure.once is True
        assert isinstance(failure.cause, KeyError)
        assert "(once)" in str(failure)

    @pytest.mark.asyncio
    async def test_supervised_listener_returns_none_on_failure(self, event_source):
        dispatcher = EventDispatcher(is_dev=False)
        listener = dispatcher.supervise(event_source.client, descriptor(execute=AsyncMock(side_effect=Exception("x"))))

        assert await listener("m") is None
