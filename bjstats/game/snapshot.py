"""Read-only views of the table for the presentation layer."""

from dataclasses import dataclass

from bjstats.cards import Card


@dataclass(frozen=True)
class CardView:
    """A card as shown on the table."""

    rank: str
    suit: str
    value: int
    hidden: bool = False

    @classmethod
    def from_card(cls, card: Card) -> "CardView":
        """Create a visible card view."""
        return cls(rank=card.label, suit=str(card.suit), value=card.value)

    @classmethod
    def face_down(cls) -> "CardView":
        """The dealer's hole card before it is revealed."""
        return cls(rank="?", suit="?", value=0, hidden=True)


@dataclass(frozen=True)
class HandView:
    """A hand with its wager."""

    cards: list[CardView]
    value: int
    bet: int
    is_soft: bool
    is_busted: bool
    is_doubled: bool
    is_split_hand: bool
    is_finished: bool


@dataclass(frozen=True)
class PlayerView:
    """A seat as shown on the table."""

    id: int
    kind: str
    name: str
    coins: int
    locked: bool
    locked_until: float | None
    hands: list[HandView]
    active_hand_index: int
    split_count: int
    super_match_bet: int
    probabilities: dict[str, int] | None = None


@dataclass(frozen=True)
class DealerView:
    """The dealer's visible hand."""

    cards: list[CardView]
    value: int | None
    revealed: bool


@dataclass(frozen=True)
class TableSnapshot:
    """Everything the presentation layer may read."""

    phase: str
    variant: str
    round_number: int
    shoe_remaining: int
    cut_card_position: int
    current_player_index: int | None
    current_player_id: int | None
    dealer: DealerView
    players: list[PlayerView]
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool
    can_super_match: bool
    can_switch: bool
