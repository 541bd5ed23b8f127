"""Tests for the event emitter."""

from bjstats.game.events import EventEmitter, EventType


class TestEventEmitter:
    """Tests for EventEmitter."""

    def test_typed_and_catch_all_handlers(self):
        """Typed handlers see only their type; catch-all handlers see everything."""
        emitter = EventEmitter()
        typed, everything = [], []
        emitter.subscribe(typed.append, EventType.CARD_DEALT)
        emitter.subscribe(everything.append)

        emitter.emit_new(EventType.CARD_DEALT, card="A♠")
        emitter.emit_new(EventType.DEALER_STANDS, hand_value=18)

        assert [e.data for e in typed] == [{"card": "A♠"}]
        assert [e.event_type for e in everything] == [EventType.CARD_DEALT, EventType.DEALER_STANDS]

    def test_history_is_bounded(self):
        """Only the newest events are kept."""
        emitter = EventEmitter(history_limit=3)
        for value in range(5):
            emitter.emit_new(EventType.DEALER_HITS, hand_value=value)

        assert [e.data["hand_value"] for e in emitter.history] == [2, 3, 4]

    def test_last(self):
        """The most recent event of the requested types."""
        emitter = EventEmitter()
        assert emitter.last(EventType.INVALID_ACTION) is None

        emitter.emit_new(EventType.INVALID_ACTION, message="first")
        emitter.emit_new(EventType.INSUFFICIENT_FUNDS, message="second")
        emitter.emit_new(EventType.PHASE_CHANGED, phase="BETTING")

        event = emitter.last(EventType.INVALID_ACTION, EventType.INSUFFICIENT_FUNDS)
        assert event.data["message"] == "second"
