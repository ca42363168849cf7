"""Tests for the py-cord event source adapter."""

import asyncio
from collections import defaultdict
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from welcomer.dispatch import event_source as event_source_module
from welcomer.dispatch.dispatcher import EventDispatcher
from welcomer.dispatch.event_source import DiscordEventSource
from welcomer.dispatch.validator import HandlerDescriptor


class FakeBot:
    """Mimics the listener registry of discord.Bot."""

    def __init__(self):
        self.extra_events = defaultdict(list)
        self.removed = []

    def add_listener(self, func, name):
        self.extra_events[name].append(func)

    def remove_listener(self, func, name):
        self.removed.append((name, func))
        if func in self.extra_events[name]:
            self.extra_events[name].remove(func)

    async def dispatch(self, name, *args):
        # py-cord schedules every listener as its own task
        await asyncio.gather(*(listener(*args) for listener in list(self.extra_events[name])))


def test_client_is_the_bot():
    bot = FakeBot()

    assert DiscordEventSource(bot).client is bot


@pytest.mark.asyncio
async def test_on_listener_fires_every_dispatch():
    bot = FakeBot()
    listener = AsyncMock()
    DiscordEventSource(bot).on("on_member_join", listener)

    await bot.dispatch("on_member_join", "a")
    await bot.dispatch("on_member_join", "b")

    assert [c.args for c in listener.await_args_list] == [("a",), ("b",)]


@pytest.mark.asyncio
async def test_once_listener_fires_once_and_unregisters():
    bot = FakeBot()
    listener = AsyncMock()
    DiscordEventSource(bot).once("on_ready", listener)

    await bot.dispatch("on_ready")
    await bot.dispatch("on_ready")

    listener.assert_awaited_once_with()
    assert bot.extra_events["on_ready"] == []
    assert [name for name, _ in bot.removed] == ["on_ready"]


@pytest.mark.asyncio
async def test_once_listener_survives_racing_dispatches():
    bot = FakeBot()
    listener = AsyncMock()
    source = DiscordEventSource(bot)
    source.once("on_ready", listener)
    captured = list(bot.extra_events["on_ready"])

    # Both deliveries were scheduled before either ran
    await asyncio.gather(*(captured[0]() for _ in range(3)))

    listener.assert_awaited_once()


@pytest.mark.asyncio
async def test_dispatcher_over_discord_source_isolates_failures():
    bot = FakeBot()
    failing = AsyncMock(side_effect=RuntimeError("handler bug"))
    healthy = AsyncMock()
    dispatcher = EventDispatcher(is_dev=False)
    dispatcher.bind(DiscordEventSource(bot))
    dispatcher.register(HandlerDescriptor(event_name="on_member_join", execute=failing))
    dispatcher.register(HandlerDescriptor(event_name="on_member_join", execute=healthy))

    await bot.dispatch("on_member_join", "member")

    healthy.assert_awaited_once_with(bot, "member")
    assert dispatcher.failure_count == 1


@pytest.mark.parametrize(("event_name", "warned"), [("member_join", True), ("on_member_join", False)])
def test_warns_about_names_pycord_never_dispatches(monkeypatch, event_name, warned):
    monkeypatch.setattr(event_source_module, "logger", MagicMock())
    bot = FakeBot()
    source = DiscordEventSource(bot)

    source.on(event_name, AsyncMock())
    source.once(event_name, AsyncMock())

    assert event_source_module.logger.warning.call_count == (2 if warned else 0)
    assert len(bot.extra_events[event_name]) == 2


async def settle():
    # Let the tasks py-cord scheduled for each listener run to completion
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_dispatcher_on_a_real_pycord_bot():
    bot = discord.Bot(intents=discord.Intents.default(), loop=asyncio.get_running_loop())
    on_ready = AsyncMock()
    on_join = AsyncMock()
    dispatcher = EventDispatcher(is_dev=False)
    dispatcher.bind(DiscordEventSource(bot))
    dispatcher.register(HandlerDescriptor(event_name="on_ready", execute=on_ready, once=True))
    dispatcher.register(HandlerDescriptor(event_name="on_member_join", execute=on_join))
    member = SimpleNamespace(id=1, name="ada")

    bot.dispatch("ready")
    bot.dispatch("ready")
    await settle()
    bot.dispatch("ready")
    bot.dispatch("member_join", member)
    bot.dispatch("member_join", member)
    await settle()

    on_ready.assert_awaited_once_with(bot)
    assert bot.extra_events.get("on_ready", []) == []
    assert [c.args for c in on_join.await_args_list] == [(bot, member), (bot, member)]
    assert dispatcher.failure_count == 0
