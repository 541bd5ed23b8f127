"""Terms screen endpoints."""

from fastapi import APIRouter

from api.schemas import TermsResponse
from api.session import get_registry

router = APIRouter()


@router.get("")
async def get_terms() -> TermsResponse:
    """Whether the terms were accepted on this installation."""
    return TermsResponse(accepted=get_registry().persistence.terms_accepted())


@router.post("/accept")
async def accept_terms() -> TermsResponse:
    """Remember that the terms were accepted."""
    persistence = get_registry().persistence
    persistence.accept_terms()
    return TermsResponse(accepted=persistence.terms_accepted())
