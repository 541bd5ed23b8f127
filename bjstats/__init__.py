"""Casino blackjack table engine - UI-agnostic."""

from bjstats.cards import Card, Rank, Shoe, Suit
from bjstats.exceptions import BlackjackError, InvariantViolation, ShoeExhausted
from bjstats.hand import Hand, hand_value
from bjstats.rules import TableConfig, Variant, VariantRules

__all__ = [
    "Card",
    "Shoe",
    "Rank",
    "Suit",
    "Hand",
    "hand_value",
    "TableConfig",
    "Variant",
    "VariantRules",
    "BlackjackError",
    "InvariantViolation",
    "ShoeExhausted",
]
