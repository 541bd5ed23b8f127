"""Win probability estimates shown next to each action."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Mapping, Sequence

from bjstats.cards import Card, Rank, Suit
from bjstats.hand import Hand, hand_value
from bjstats.strategy.basic import Action


class DealerOutcome(Enum):
    """Possible dealer final outcomes."""

    BUST = auto()
    SEVENTEEN = auto()
    EIGHTEEN = auto()
    NINETEEN = auto()
    TWENTY = auto()
    TWENTY_ONE = auto()
    BLACKJACK = auto()

    @property
    def total(self) -> int:
        """Final dealer total for this outcome (0 for a bust)."""
        return {
            DealerOutcome.BUST: 0,
            DealerOutcome.SEVENTEEN: 17,
            DealerOutcome.EIGHTEEN: 18,
            DealerOutcome.NINETEEN: 19,
            DealerOutcome.TWENTY: 20,
            DealerOutcome.TWENTY_ONE: 21,
            DealerOutcome.BLACKJACK: 21,
        }[self]


@dataclass(frozen=True)
class DealerProbabilities:
    """Dealer outcome probabilities for a given upcard."""

    upcard: int  # 2-11
    bust: float
    seventeen: float
    eighteen: float
    nineteen: float
    twenty: float
    twenty_one: float
    blackjack: float = 0.0

    def __post_init__(self) -> None:
        """Validate probabilities sum to 1."""
        total = (
            self.bust
            + self.seventeen
            + self.eighteen
            + self.nineteen
            + self.twenty
            + self.twenty_one
            + self.blackjack
        )
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Probabilities must sum to 1.0, got {total}")

    def to_dict(self) -> dict[DealerOutcome, float]:
        """Convert to outcome dictionary."""
        return {
            DealerOutcome.BUST: self.bust,
            DealerOutcome.SEVENTEEN: self.seventeen,
            DealerOutcome.EIGHTEEN: self.eighteen,
            DealerOutcome.NINETEEN: self.nineteen,
            DealerOutcome.TWENTY: self.twenty,
            DealerOutcome.TWENTY_ONE: self.twenty_one,
            DealerOutcome.BLACKJACK: self.blackjack,
        }


# Dealer probabilities when standing on all 17s, infinite deck
DEALER_PROBS_S17: Mapping[int, DealerProbabilities] = {
    2: DealerProbabilities(2, 0.3536, 0.1395, 0.1324, 0.1233, 0.1218, 0.1294),
    3: DealerProbabilities(3, 0.3723, 0.1305, 0.1260, 0.1199, 0.1184, 0.1329),
    4: DealerProbabilities(4, 0.3926, 0.1310, 0.1140, 0.1136, 0.1136, 0.1352),
    5: DealerProbabilities(5, 0.4168, 0.1228, 0.1097, 0.1085, 0.1092, 0.1330),
    6: DealerProbabilities(6, 0.4234, 0.1065, 0.1063, 0.1059, 0.1060, 0.1519),
    7: DealerProbabilities(7, 0.2618, 0.3686, 0.1379, 0.0786, 0.0786, 0.0745),
    8: DealerProbabilities(8, 0.2439, 0.1286, 0.3598, 0.1289, 0.0686, 0.0702),
    9: DealerProbabilities(9, 0.2278, 0.1198, 0.1082, 0.3544, 0.1210, 0.0688),
    10: DealerProbabilities(10, 0.2122, 0.1118, 0.1122, 0.1119, 0.3396, 0.0353, 0.0770),
    11: DealerProbabilities(11, 0.1169, 0.1307, 0.1307, 0.1307, 0.1307, 0.0294, 0.3309),
}

# One representative card per value with its infinite-deck draw weight
_DRAWS: tuple[tuple[Card, float], ...] = tuple(
    (Card(rank, Suit.SPADES), (4 / 13) if rank == Rank.TEN else (1 / 13))
    for rank in (
        Rank.ACE,
        Rank.TWO,
        Rank.THREE,
        Rank.FOUR,
        Rank.FIVE,
        Rank.SIX,
        Rank.SEVEN,
        Rank.EIGHT,
        Rank.NINE,
        Rank.TEN,
    )
)

ESTIMATED_ACTIONS = (Action.HIT, Action.STAND, Action.DOUBLE, Action.SPLIT)


class ProbabilityEstimator(ABC):
    """
    Maps (hand, dealer upcard, action) to a displayed win percentage.

    Display only: the engine never makes decisions from these numbers.
    """

    @abstractmethod
    def estimate(
        self,
        hand: Hand | Sequence[Card],
        dealer_upcard: Card,
        action: Action,
    ) -> int:
        """Return an integer percentage between 0 and 100."""
        ...

    def estimate_all(
        self,
        hand: Hand | Sequence[Card],
        dealer_upcard: Card,
    ) -> dict[Action, int]:
        """Estimate every action for one hand."""
        return {action: self.estimate(hand, dealer_upcard, action) for action in ESTIMATED_ACTIONS}


class HeuristicEstimator(ProbabilityEstimator):
    """
    Dealer-table heuristic with a one-card lookahead.

    Standing wins when the dealer busts or finishes below the player's
    total. Hitting, doubling and splitting average the standing chance over
    the next card, treating the shoe as infinite.
    """

    def __init__(self, jitter: float = 0.0, rng: Random | None = None) -> None:
        """
        Initialize the estimator.

        Args:
            jitter: Width of uniform noise added to each estimate (0.08 = +/-4 points)
            rng: Random number generator for the jitter
        """
        if jitter < 0:
            raise ValueError("jitter cannot be negative")
        self.jitter = jitter
        self._rng = rng or Random()

    def estimate(
        self,
        hand: Hand | Sequence[Card],
        dealer_upcard: Card,
        action: Action,
    ) -> int:
        """Estimate the chance of winning after playing ``action``."""
        cards = list(hand)
        total = hand_value(cards)

        if total == 21:
            return 100 if action is Action.STAND else 0
        if total > 21:
            return 0

        dealer = dealer_upcard.value
        if action is Action.STAND:
            probability = self.stand_probability(total, dealer)
        elif action is Action.HIT:
            probability = self._hit_probability(cards, dealer)
        elif action is Action.DOUBLE:
            probability = self._draw_one(cards, dealer)
        elif action is Action.SPLIT:
            probability = self._split_probability(cards, dealer)
        else:
            raise ValueError(f"Unknown action: {action}")

        if self.jitter:
            probability += (self._rng.random() - 0.5) * self.jitter

        return max(0, min(100, round(probability * 100)))

    @staticmethod
    def dealer_probabilities(upcard: int) -> DealerProbabilities:
        """
        Get dealer outcome probabilities for a given upcard.

        Args:
            upcard: Dealer's upcard value (2-11, 11=Ace)
        """
        if upcard < 2 or upcard > 11:
            raise ValueError(f"Invalid upcard: {upcard}")
        return DEALER_PROBS_S17[upcard]

    @classmethod
    def stand_probability(cls, player_total: int, dealer_upcard: int) -> float:
        """Probability that a standing total beats the dealer."""
        if player_total > 21:
            return 0.0
        probability = 0.0
        for outcome, p in cls.dealer_probabilities(dealer_upcard).to_dict().items():
            if outcome is DealerOutcome.BUST or outcome.total < player_total:
                probability += p
        return probability

    def _draw_one(self, cards: list[Card], dealer: int) -> float:
        """Take exactly one card, then stand."""
        return sum(
            weight * self.stand_probability(hand_value(cards + [card]), dealer)
            for card, weight in _DRAWS
        )

    def _hit_probability(self, cards: list[Card], dealer: int) -> float:
        """Take one card, then keep the better of standing or one more card."""
        probability = 0.0
        for card, weight in _DRAWS:
            drawn = cards + [card]
            total = hand_value(drawn)
            if total > 21:
                continue
            best = self.stand_probability(total, dealer)
            if total < 21:
                best = max(best, self._draw_one(drawn, dealer))
            probability += weight * best
        return probability

    def _split_probability(self, cards: list[Card], dealer: int) -> float:
        """Play one card of the pair as a fresh hand."""
        if len(cards) != 2 or cards[0].value != cards[1].value:
            return 0.0
        probability = 0.0
        for card, weight in _DRAWS:
            drawn = [cards[0], card]
            total = hand_value(drawn)
            best = self.stand_probability(total, dealer)
            if total < 21:
                best = max(best, self._draw_one(drawn, dealer))
            probability += weight * best
        return probability
