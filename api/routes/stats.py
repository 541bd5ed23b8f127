"""Statistics API endpoints."""

from fastapi import APIRouter, HTTPException

from api.schemas import EstimateRequest, EstimateResponse
from bjstats.cards import Card
from bjstats.hand import Hand
from bjstats.statistics import HeuristicEstimator
from bjstats.strategy import Action, AIPolicy, Capabilities

router = APIRouter()

_estimator = HeuristicEstimator()
_policy = AIPolicy()


@router.post("/estimate")
async def estimate(request: EstimateRequest) -> EstimateResponse:
    """Displayed win percentages for a hand against a dealer upcard."""
    try:
        hand = Hand(cards=[Card.from_string(c) for c in request.cards])
        upcard = Card.from_string(request.dealer_upcard)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    estimates = _estimator.estimate_all(hand, upcard)
    capabilities = Capabilities(
        can_double=len(hand.cards) == 2,
        can_split=len(hand.cards) == 2 and hand.is_pair,
    )
    recommended = _policy.decide(hand, upcard, capabilities)

    return EstimateResponse(
        hit=estimates[Action.HIT],
        stand=estimates[Action.STAND],
        double=estimates[Action.DOUBLE],
        split=estimates[Action.SPLIT],
        hand_total=hand.value,
        recommended=recommended.value,
    )
