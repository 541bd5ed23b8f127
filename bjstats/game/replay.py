"""Round replays captured when a round is settled."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class HandReplay:
    """Final state of one player hand."""

    cards: list[str]
    total: int
    bet: int
    outcome: str  # "win", "lose", "push" or "bust"
    returned: int
    doubled: bool = False
    split: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize the hand."""
        return {
            "cards": list(self.cards),
            "total": self.total,
            "bet": self.bet,
            "outcome": self.outcome,
            "returned": self.returned,
            "doubled": self.doubled,
            "split": self.split,
        }


@dataclass(frozen=True)
class PlayerReplay:
    """One player's round, from bet to payout."""

    player_id: int
    name: str
    kind: str
    hands: list[HandReplay]
    decisions: list[dict[str, Any]]
    coins_before: int
    coins_after: int
    super_match_bet: int = 0
    super_match_outcome: str | None = None
    super_match_returned: int = 0
    locked: bool = False

    @property
    def coin_delta(self) -> int:
        """Net change over the round."""
        return self.coins_after - self.coins_before

    def to_dict(self) -> dict[str, Any]:
        """Serialize the player's round."""
        return {
            "player_id": self.player_id,
            "name": self.name,
            "kind": self.kind,
            "hands": [hand.to_dict() for hand in self.hands],
            "decisions": [dict(d) for d in self.decisions],
            "coins_before": self.coins_before,
            "coins_after": self.coins_after,
            "coin_delta": self.coin_delta,
            "super_match_bet": self.super_match_bet,
            "super_match_outcome": self.super_match_outcome,
            "super_match_returned": self.super_match_returned,
            "locked": self.locked,
        }


@dataclass(frozen=True)
class RoundReplay:
    """Everything needed to inspect a finished round."""

    round_number: int
    variant: str
    dealer_cards: list[str]
    dealer_total: int
    players: list[PlayerReplay]
    bankrolls_reset: bool = False
    finished_at: datetime = field(default_factory=datetime.now)

    @property
    def dealer_busted(self) -> bool:
        """Check if the dealer busted."""
        return self.dealer_total > 21

    def player(self, player_id: int) -> PlayerReplay | None:
        """Look up one player's replay."""
        for replay in self.players:
            if replay.player_id == player_id:
                return replay
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the round."""
        return {
            "round_number": self.round_number,
            "variant": self.variant,
            "dealer_cards": list(self.dealer_cards),
            "dealer_total": self.dealer_total,
            "dealer_busted": self.dealer_busted,
            "players": [player.to_dict() for player in self.players],
            "bankrolls_reset": self.bankrolls_reset,
            "finished_at": self.finished_at.isoformat(),
        }
