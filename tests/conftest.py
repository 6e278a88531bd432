"""Shared test fixtures for the analytics relay."""

import pytest

from analytics_relay.persistence.memory import InMemoryPersistence
from support import FakeClock, ScriptedTransport


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def transport(clock):
    return ScriptedTransport(clock=clock)
