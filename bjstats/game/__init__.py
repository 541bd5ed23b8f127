"""Game engine and state management."""

from bjstats.game.events import EventType, GameEvent
from bjstats.game.state import Phase
from bjstats.game.engine import BlackjackTable
from bjstats.game.scheduler import AsyncioScheduler, ManualScheduler, Scheduler, SyncScheduler

__all__ = [
    "GameEvent",
    "EventType",
    "Phase",
    "BlackjackTable",
    "Scheduler",
    "SyncScheduler",
    "ManualScheduler",
    "AsyncioScheduler",
]
