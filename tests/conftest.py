"""
Pytest configuration and fixtures for Welcomer tests.
"""

import sys
from collections import defaultdict
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


class FakeEventSource:
    """In-memory event source with the same on/once contract as DiscordEventSource."""

    def __init__(self, client=None):
        self.client = client if client is not None else SimpleNamespace(name="fake-client")
        self.listeners = defaultdict(list)
        self.once_listeners = defaultdict(list)

    def on(self, event_name, listener):
        self.listeners[event_name].append(listener)

    def once(self, event_name, listener):
        self.once_listeners[event_name].append(listener)

    async def emit(self, event_name, *args):
        once = self.once_listeners.pop(event_name, [])
        for listener in list(self.listeners[event_name]) + once:
            await listener(*args)


@pytest.fixture
def event_source():
    return FakeEventSource()
