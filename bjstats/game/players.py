"""Seated players and the dealer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bjstats.cards import Card
from bjstats.hand import Hand
from bjstats.supermatch import SuperMatchResult


class PlayerKind(str, Enum):
    """Who controls a seat."""

    HUMAN = "human"
    AI = "ai"

    def __str__(self) -> str:
        return self.value


@dataclass
class Decision:
    """One recorded choice, kept for the round replay."""

    kind: str  # "play", "switch" or "super_match"
    action: str
    hand_index: int = 0
    cards: list[str] = field(default_factory=list)
    hand_total: int = 0
    dealer_upcard: str | None = None
    probabilities: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the decision."""
        return {
            "kind": self.kind,
            "action": self.action,
            "hand_index": self.hand_index,
            "cards": list(self.cards),
            "hand_total": self.hand_total,
            "dealer_upcard": self.dealer_upcard,
            "probabilities": dict(self.probabilities),
        }


@dataclass
class Player:
    """A seat at the table and its state during a round."""

    id: int
    kind: PlayerKind
    name: str
    coins: int = 100
    hands: list[Hand] = field(default_factory=list)
    active_hand_index: int = 0
    split_count: int = 0
    locked_until: float | None = None
    super_match_bet: int = 0
    super_match_decided: bool = False
    super_match_result: SuperMatchResult | None = None
    switch_decided: bool = False
    decisions: list[Decision] = field(default_factory=list)

    # Coins held before bets were placed this round
    coins_at_round_start: int = 0

    @property
    def is_ai(self) -> bool:
        """Check if the seat is computer controlled."""
        return self.kind == PlayerKind.AI

    @property
    def locked(self) -> bool:
        """Locked players sit out until their cooldown ends."""
        return self.locked_until is not None

    @property
    def in_round(self) -> bool:
        """Check if the player has a wager and cards this round."""
        return bool(self.hands) and not self.locked

    @property
    def active_hand(self) -> Hand | None:
        """Get the hand currently being played."""
        if 0 <= self.active_hand_index < len(self.hands):
            return self.hands[self.active_hand_index]
        return None

    @property
    def total_bet(self) -> int:
        """Coins riding on all hands (side bet excluded)."""
        return sum(hand.bet for hand in self.hands)

    @property
    def dealt_cards(self) -> list[Card]:
        """The first two cards of each hand, in hand order."""
        return [card for hand in self.hands for card in hand.cards[:2]]

    def is_unlockable(self, now: float) -> bool:
        """Check if the lockout has run out."""
        return self.locked_until is not None and self.locked_until <= now

    def reset_round(self) -> None:
        """Clear everything tied to the current round. Coins are kept."""
        self.hands.clear()
        self.active_hand_index = 0
        self.split_count = 0
        self.super_match_bet = 0
        self.super_match_decided = False
        self.super_match_result = None
        self.switch_decided = False
        self.decisions.clear()
        self.coins_at_round_start = self.coins


@dataclass
class Dealer:
    """The dealer's hand. The hole card stays hidden until revealed."""

    hand: Hand = field(default_factory=Hand)
    revealed: bool = False

    @property
    def upcard(self) -> Card | None:
        """First dealt card, visible to players."""
        return self.hand.cards[0] if self.hand.cards else None

    @property
    def visible_cards(self) -> list[Card]:
        """Cards a player may see."""
        if self.revealed:
            return list(self.hand.cards)
        return self.hand.cards[:1]

    def reset(self) -> None:
        """Clear the hand and hide the hole card."""
        self.hand.clear()
        self.revealed = False
