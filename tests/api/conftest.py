"""Fixtures shared by the API tests."""

import pytest

from api.session import TableRegistry, set_registry
from bjstats.game import SyncScheduler
from bjstats.persistence import InMemoryStore, PersistenceBridge
from config import TableDefaults


@pytest.fixture(autouse=True)
def registry():
    """A fresh registry whose tables run AI and dealer steps synchronously."""
    reg = TableRegistry(
        PersistenceBridge(InMemoryStore()),
        TableDefaults(ai_delay=0.0, dealer_delay=0.0, reshuffle_delay=0.0),
        scheduler_factory=SyncScheduler,
    )
    set_registry(reg)
    yield reg
    set_registry(None)
