"""Super Match side bet scoring (Switch variant)."""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from bjstats.cards import Card


class SuperMatchOutcome(Enum):
    """Super Match results with their payout multipliers."""

    FOUR_OF_A_KIND = 50
    TWO_PAIR = 7
    THREE_OF_A_KIND = 5
    ONE_PAIR = 1
    NO_MATCH = 0

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def multiplier(self) -> int:
        """Payout odds, x:1."""
        return self.value


@dataclass(frozen=True)
class SuperMatchResult:
    """Scored side bet."""

    outcome: SuperMatchOutcome
    stake: int

    @property
    def returned(self) -> int:
        """Coins paid back: the stake plus winnings, or nothing on a miss."""
        if self.outcome is SuperMatchOutcome.NO_MATCH:
            return 0
        return self.stake * (1 + self.outcome.multiplier)


def classify(cards: Sequence[Card]) -> SuperMatchOutcome:
    """
    Classify the four initially dealt cards.

    Matching is on face value: a Jack does not match a Queen even though
    both count 10 in blackjack.
    """
    if len(cards) != 4:
        raise ValueError(f"Super Match scores exactly 4 cards, got {len(cards)}")

    counts = sorted(Counter(card.face_value for card in cards).values(), reverse=True)

    if counts[0] == 4:
        return SuperMatchOutcome.FOUR_OF_A_KIND
    if counts[0] == 3:
        return SuperMatchOutcome.THREE_OF_A_KIND
    if counts[:2] == [2, 2]:
        return SuperMatchOutcome.TWO_PAIR
    if counts[0] == 2:
        return SuperMatchOutcome.ONE_PAIR
    return SuperMatchOutcome.NO_MATCH


def score_super_match(cards: Sequence[Card], stake: int) -> SuperMatchResult:
    """Score a Super Match bet of ``stake`` coins on ``cards``."""
    return SuperMatchResult(outcome=classify(cards), stake=stake)
