"""Round phase enumeration."""

from enum import Enum, auto


class Phase(Enum):
    """
    Table state machine phases.

    Flow: SETUP → BETTING → [SUPER_MATCH → SWITCH] → PLAYING → DEALER → RESULT → BETTING
    """

    # Choosing variant and decks, no shoe yet
    SETUP = auto()

    # Waiting for bets to be placed
    BETTING = auto()

    # Switch variant: side bets offered seat by seat
    SUPER_MATCH = auto()

    # Switch variant: card swapping decisions
    SWITCH = auto()

    # Players act in seat order
    PLAYING = auto()

    # Dealer reveals and draws
    DEALER = auto()

    # Round settled, replay available
    RESULT = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

