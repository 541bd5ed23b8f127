"""Pytest fixtures for blackjack table tests."""

from random import Random

import pytest
from hypothesis import strategies as st

from bjstats.cards import Card, Rank, Shoe, Suit, cards_from_string
from bjstats.game import BlackjackTable, ManualScheduler, SyncScheduler
from bjstats.hand import Hand
from bjstats.persistence import InMemoryStore, PersistenceBridge
from bjstats.rules import TableConfig
from bjstats.strategy import AIPolicy

START_TIME = 1_700_000_000.0


class FakeClock:
    """Settable clock in epoch seconds."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def rig_shoe(shoe: Shoe, cards: str) -> None:
    """Put ``cards`` on top of the shoe so they are drawn in the given order."""
    shoe._cards.extend(reversed(cards_from_string(cards)))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    return Shoe(num_decks=6, rng=rng)


@pytest.fixture
def clock():
    """A fake clock starting at a fixed timestamp."""
    return FakeClock()


@pytest.fixture
def store():
    """An empty in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def persistence(store):
    """Persistence bridge over the in-memory store."""
    return PersistenceBridge(store)


@pytest.fixture
def policy():
    """The AI decision policy."""
    return AIPolicy()


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    hand = Hand()
    hand.add_card(Card(Rank.ACE, Suit.SPADES))
    hand.add_card(Card(Rank.SIX, Suit.HEARTS))
    return hand


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    hand = Hand()
    hand.add_card(Card(Rank.TEN, Suit.SPADES))
    hand.add_card(Card(Rank.SIX, Suit.HEARTS))
    return hand


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    hand = Hand()
    hand.add_card(Card(Rank.EIGHT, Suit.SPADES))
    hand.add_card(Card(Rank.EIGHT, Suit.HEARTS))
    return hand


@pytest.fixture
def bust_hand():
    """A busted hand."""
    hand = Hand()
    hand.add_card(Card(Rank.TEN, Suit.SPADES))
    hand.add_card(Card(Rank.SIX, Suit.HEARTS))
    hand.add_card(Card(Rank.KING, Suit.CLUBS))
    return hand


@pytest.fixture
def make_table(rng, clock, persistence):
    """Factory for tables driven synchronously with a fake clock."""

    def factory(scheduler=None, **overrides) -> BlackjackTable:
        settings = {"ai_players": 0}
        settings.update(overrides)
        return BlackjackTable(
            TableConfig(**settings),
            scheduler=scheduler or SyncScheduler(),
            persistence=persistence,
            rng=rng,
            clock=clock,
        )

    return factory


@pytest.fixture
def table(make_table):
    """A started Regular table with one human and no AI players."""
    t = make_table()
    t.start_game()
    return t


@pytest.fixture
def manual_scheduler():
    """A scheduler the test advances step by step."""
    return ManualScheduler()


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=5):
    """Generate a random hand."""
    cards = draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
    hand = Hand()
    for card in cards:
        hand.add_card(card)
    return hand
