"""Table variants and per-table configuration."""

from dataclasses import dataclass
from enum import Enum


class Variant(str, Enum):
    """Game variants offered on the setup screen."""

    REGULAR = "regular"
    SWITCH = "switch"
    BAHAMA = "bahama"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class VariantRules:
    """
    Everything that differs between variants.

    One state machine consumes these; no variant has its own engine.
    """

    variant: Variant

    # Coins debited per player when bets are placed (covers every hand)
    bet_unit: int = 5

    # Hands dealt to each player
    hands_per_player: int = 1

    starting_coins: int = 100

    split_allowed: bool = True

    # Switch-only phases
    super_match: bool = False
    super_match_cost: int = 5
    switch_phase: bool = False

    playable: bool = True

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.bet_unit < 1:
            raise ValueError("bet_unit must be at least 1")
        if self.hands_per_player not in (1, 2):
            raise ValueError("hands_per_player must be 1 or 2")
        if self.bet_unit % self.hands_per_player:
            raise ValueError("bet_unit must divide evenly across hands")
        if self.switch_phase and self.hands_per_player != 2:
            raise ValueError("the switch phase needs two hands per player")

    @property
    def hand_stake(self) -> int:
        """Wager riding on each dealt hand; also the price of a double."""
        return self.bet_unit // self.hands_per_player

    @classmethod
    def regular(cls) -> "VariantRules":
        """Single hand, split and double allowed."""
        return cls(variant=Variant.REGULAR)

    @classmethod
    def switch(cls) -> "VariantRules":
        """Two hands per player, card swapping, Super Match, no splits."""
        return cls(
            variant=Variant.SWITCH,
            bet_unit=10,
            hands_per_player=2,
            split_allowed=False,
            super_match=True,
            switch_phase=True,
        )

    @classmethod
    def bahama(cls) -> "VariantRules":
        """Listed on the setup screen but not implemented."""
        return cls(variant=Variant.BAHAMA, playable=False)


VARIANT_RULES: dict[Variant, VariantRules] = {
    Variant.REGULAR: VariantRules.regular(),
    Variant.SWITCH: VariantRules.switch(),
    Variant.BAHAMA: VariantRules.bahama(),
}

ALLOWED_DECK_COUNTS = (6, 7, 8)
MAX_AI_PLAYERS = 4

DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class TableConfig:
    """
    Configuration chosen on the setup screen plus pacing and policy knobs.

    Delays are in seconds and only pace the scheduler; they never change
    outcomes.
    """

    variant: Variant = Variant.REGULAR
    num_decks: int = 6
    ai_players: int = 2
    human_players: int = 1

    # Pacing
    ai_delay: float = 1.0
    dealer_delay: float = 1.0
    reshuffle_delay: float = 1.5

    # Bankroll policy
    lockout_seconds: int = DAY_SECONDS
    coins_ttl_seconds: int = DAY_SECONDS

    # Place the next bet automatically when a new round opens
    auto_bet: bool = False

    # Number of round replays kept in memory
    replay_history: int = 20

    def __post_init__(self) -> None:
        """Validate the configuration."""
        # Accept plain strings from callers ("regular", "switch")
        object.__setattr__(self, "variant", Variant(self.variant))
        if self.num_decks not in ALLOWED_DECK_COUNTS:
            raise ValueError(f"num_decks must be one of {ALLOWED_DECK_COUNTS}")
        if not 0 <= self.ai_players <= MAX_AI_PLAYERS:
            raise ValueError(f"ai_players must be between 0 and {MAX_AI_PLAYERS}")
        if self.human_players < 0:
            raise ValueError("human_players cannot be negative")
        if self.ai_players + self.human_players < 1:
            raise ValueError("a table needs at least one player")
        if min(self.ai_delay, self.dealer_delay, self.reshuffle_delay) < 0:
            raise ValueError("delays cannot be negative")
        if self.replay_history < 1:
            raise ValueError("replay_history must be at least 1")

    @property
    def rules(self) -> VariantRules:
        """Rules of the configured variant."""
        return VARIANT_RULES[self.variant]
