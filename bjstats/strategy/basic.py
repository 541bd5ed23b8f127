"""Basic strategy tables driving the AI players."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Mapping, Sequence

from bjstats.cards import Card
from bjstats.hand import Hand, hand_value


class Action(Enum):
    """Possible player actions."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"

    def __str__(self) -> str:
        return self.value


class _Play(Enum):
    """Table entries, including conditional ones."""

    HIT = auto()
    STAND = auto()
    SPLIT = auto()
    DOUBLE_OR_HIT = auto()  # Double if allowed, else hit


@dataclass(frozen=True)
class Capabilities:
    """What the engine allows the acting hand to do right now."""

    can_double: bool = False
    can_split: bool = False


# Dealer upcards run 2-11 (11 = Ace)
DEALER_UPCARDS = range(2, 12)

SUPER_MATCH_COST = 5


class AIPolicy:
    """
    Deterministic basic-strategy player.

    Pre-computed dictionaries for O(1) lookup, keyed by
    (player total or pair value, dealer upcard).
    """

    def __init__(self) -> None:
        self._hard_table = self._build_hard_table()
        self._soft_table = self._build_soft_table()
        self._pair_table = self._build_pair_table()

    def decide(
        self,
        hand: Hand | Sequence[Card],
        dealer_upcard: Card | int,
        capabilities: Capabilities | None = None,
    ) -> Action:
        """
        Choose an action for a hand.

        Args:
            hand: The acting hand (or its cards)
            dealer_upcard: Dealer's visible card, or its value (2-11)
            capabilities: What the engine currently allows

        Returns:
            The action to play
        """
        cards = list(hand)
        capabilities = capabilities or Capabilities()
        dealer = dealer_upcard if isinstance(dealer_upcard, int) else dealer_upcard.value
        total = hand_value(cards)

        if total >= 21:
            return Action.STAND

        is_pair = len(cards) == 2 and cards[0].value == cards[1].value
        if is_pair and capabilities.can_split:
            play = self._pair_table.get((cards[0].value, dealer))
            if play is _Play.SPLIT:
                return Action.SPLIT

        if any(card.is_ace for card in cards):
            play = self._soft_table.get((total, dealer), _Play.HIT)
        else:
            play = self._hard_table.get((total, dealer), _Play.HIT)

        return self._resolve(play, len(cards), capabilities)

    def _resolve(self, play: _Play, num_cards: int, capabilities: Capabilities) -> Action:
        """Resolve conditional entries based on what's allowed."""
        if play is _Play.DOUBLE_OR_HIT:
            if num_cards == 2 and capabilities.can_double:
                return Action.DOUBLE
            return Action.HIT
        if play is _Play.STAND:
            return Action.STAND
        if play is _Play.SPLIT:
            return Action.SPLIT
        return Action.HIT

    def decide_switch(self, hand1: Sequence[Card], hand2: Sequence[Card]) -> bool:
        """
        Decide whether to swap the second cards of two Switch hands.

        Switches only when the weaker of the two hands strictly improves.
        """
        hand1, hand2 = list(hand1), list(hand2)
        if len(hand1) < 2 or len(hand2) < 2:
            return False

        swapped1 = [hand1[0], hand2[1]] + hand1[2:]
        swapped2 = [hand2[0], hand1[1]] + hand2[2:]

        current = min(hand_value(hand1), hand_value(hand2))
        after = min(hand_value(swapped1), hand_value(swapped2))
        return after > current

    def decide_super_match(self, coins: int, cost: int = SUPER_MATCH_COST) -> bool:
        """Take the side bet whenever it is affordable."""
        return coins >= cost

    def _build_hard_table(self) -> Mapping[tuple[int, int], _Play]:
        """Build hard totals strategy table."""
        H = _Play.HIT
        S = _Play.STAND
        D = _Play.DOUBLE_OR_HIT

        table: dict[tuple[int, int], _Play] = {}

        # Hard 4-8: Always hit
        for total in range(4, 9):
            for dealer in DEALER_UPCARDS:
                table[(total, dealer)] = H

        # Hard 9: double vs 3-6
        for dealer in DEALER_UPCARDS:
            table[(9, dealer)] = D if 3 <= dealer <= 6 else H

        # Hard 10: double vs 2-9
        for dealer in DEALER_UPCARDS:
            table[(10, dealer)] = D if dealer <= 9 else H

        # Hard 11: double vs 2-10
        for dealer in DEALER_UPCARDS:
            table[(11, dealer)] = D if dealer <= 10 else H

        # Hard 12: stand vs 4-6
        for dealer in DEALER_UPCARDS:
            table[(12, dealer)] = S if 4 <= dealer <= 6 else H

        # Hard 13-16: stand vs 2-6
        for total in range(13, 17):
            for dealer in DEALER_UPCARDS:
                table[(total, dealer)] = S if dealer <= 6 else H

        # Hard 17+: Always stand
        for total in range(17, 22):
            for dealer in DEALER_UPCARDS:
                table[(total, dealer)] = S

        return table

    def _build_soft_table(self) -> Mapping[tuple[int, int], _Play]:
        """Build table for hands holding an Ace."""
        H = _Play.HIT
        S = _Play.STAND

        table: dict[tuple[int, int], _Play] = {}

        for total in range(2, 18):
            for dealer in DEALER_UPCARDS:
                table[(total, dealer)] = H

        # 18: stand vs 2-8
        for dealer in DEALER_UPCARDS:
            table[(18, dealer)] = S if dealer <= 8 else H

        # 19-21: Always stand
        for total in range(19, 22):
            for dealer in DEALER_UPCARDS:
                table[(total, dealer)] = S

        return table

    def _build_pair_table(self) -> Mapping[tuple[int, int], _Play]:
        """Build pair splitting strategy table. Missing entries play as totals."""
        P = _Play.SPLIT

        table: dict[tuple[int, int], _Play] = {}

        # Pair of Aces and 8s: Always split
        for pair in (11, 8):
            for dealer in DEALER_UPCARDS:
                table[(pair, dealer)] = P

        # Pair of 9s: split vs 2-6, 8, 9 (stand vs 7, 10, A)
        for dealer in (2, 3, 4, 5, 6, 8, 9):
            table[(9, dealer)] = P

        # Pair of 7s, 3s and 2s: split vs 2-7
        for pair in (7, 3, 2):
            for dealer in range(2, 8):
                table[(pair, dealer)] = P

        # Pair of 6s: split vs 2-6
        for dealer in range(2, 7):
            table[(6, dealer)] = P

        # Pair of 4s: split vs 5-6
        for dealer in (5, 6):
            table[(4, dealer)] = P

        # 5s and 10s are never split
        return table
