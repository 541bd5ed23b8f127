"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from bjstats.cards import Card


def hand_value(cards: Iterable[Card]) -> int:
    """
    Calculate the best total for a sequence of cards.

    Every Ace starts at 11 and is demoted to 1, one at a time, while the
    total is over 21.
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.value

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total


@dataclass
class Hand:
    """A blackjack hand with its wager."""

    cards: list[Card] = field(default_factory=list)
    bet: int = 0
    is_doubled: bool = False
    is_split_hand: bool = False
    is_finished: bool = False

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards and wager state from the hand."""
        self.cards.clear()
        self.bet = 0
        self.is_doubled = False
        self.is_split_hand = False
        self.is_finished = False

    @property
    def value(self) -> int:
        """Best total, or the lowest bust total."""
        return hand_value(self.cards)

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft (has an ace counted as 11).
        """
        if not self.has_ace:
            return False
        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= 21

    @property
    def has_ace(self) -> bool:
        """Check if any card is an Ace."""
        return any(card.is_ace for card in self.cards)

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > 21

    @property
    def is_pair(self) -> bool:
        """Two cards of equal blackjack value (K and Q count as a pair)."""
        return len(self.cards) == 2 and self.cards[0].value == self.cards[1].value

    @property
    def num_cards(self) -> int:
        """Return the number of cards in the hand."""
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


def settle_hand(hand: Hand, dealer_total: int) -> int:
    """
    Coins returned for a settled hand whose bet was already debited.

    Returns:
        0 for a bust or a loss, the bet for a push, twice the bet for a win
    """
    player_total = hand.value

    # Player busts always loses, even when the dealer busts too
    if player_total > 21:
        return 0

    if dealer_total > 21 or player_total > dealer_total:
        return hand.bet * 2
    if player_total == dealer_total:
        return hand.bet
    return 0
