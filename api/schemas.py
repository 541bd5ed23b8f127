"""Pydantic schemas for API requests and responses."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# Game schemas
class NewGameResponse(BaseModel):
    """A freshly opened session."""

    session_id: str


class StartGameRequest(BaseModel):
    """Table settings chosen on the setup screen."""

    variant: Literal["regular", "switch", "bahama"] = "regular"
    num_decks: Literal[6, 7, 8] = 6
    ai_players: int = Field(default=2, ge=2, le=4)
    auto_bet: bool = False


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double", "split"]


class SuperMatchRequest(BaseModel):
    """Take or decline the Super Match side bet."""

    take: bool


class SwitchRequest(BaseModel):
    """Swap the second cards of both hands, or keep them."""

    swap: bool


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int
    hidden: bool = False


class HandResponse(BaseModel):
    """Hand representation."""

    model_config = ConfigDict(from_attributes=True)

    cards: list[CardResponse]
    value: int
    bet: int
    is_soft: bool
    is_busted: bool
    is_doubled: bool
    is_split_hand: bool
    is_finished: bool


class PlayerResponse(BaseModel):
    """A seat at the table."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: Literal["human", "ai"]
    name: str
    coins: int
    locked: bool
    locked_until: float | None
    hands: list[HandResponse]
    active_hand_index: int
    split_count: int
    super_match_bet: int
    probabilities: dict[str, int] | None = None


class DealerResponse(BaseModel):
    """The dealer's visible hand."""

    model_config = ConfigDict(from_attributes=True)

    cards: list[CardResponse]
    value: int | None
    revealed: bool


class GameStateResponse(BaseModel):
    """Current table state."""

    model_config = ConfigDict(from_attributes=True)

    phase: str
    variant: str
    round_number: int
    shoe_remaining: int
    cut_card_position: int
    current_player_index: int | None
    current_player_id: int | None
    dealer: DealerResponse
    players: list[PlayerResponse]
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool
    can_super_match: bool
    can_switch: bool


class ReplayListResponse(BaseModel):
    """Recent round replays, oldest first."""

    replays: list[dict[str, Any]]


# Terms schemas
class TermsResponse(BaseModel):
    """Whether the terms screen has been accepted."""

    accepted: bool


# Statistics schemas
class EstimateRequest(BaseModel):
    """Hand and dealer upcard to estimate, e.g. ["10H", "6S"] vs "9C"."""

    cards: list[str] = Field(..., min_length=2)
    dealer_upcard: str


class EstimateResponse(BaseModel):
    """Displayed win percentages per action plus the AI's choice."""

    hit: int
    stand: int
    double: int
    split: int
    hand_total: int
    recommended: Literal["hit", "stand", "double", "split"]
