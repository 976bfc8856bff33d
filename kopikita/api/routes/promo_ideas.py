"""
Promo Idea Routes

FastAPI endpoint for the weekly promo-idea generator.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from kopikita.models.api import ErrorResponse, PromoIdeasRequest, PromoIdeasResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/promo-ideas", response_model=PromoIdeasResponse)
async def promo_ideas(
    request: PromoIdeasRequest | None = None,
) -> PromoIdeasResponse | JSONResponse:
    """
    Generate promo ideas for a week (defaults to the current week).

    Returns 400 when ``weekStart`` is not a valid YYYY-MM-DD date.
    """
    week_start = request.week_start if request else None

    from kopikita.api.main import get_runtime

    try:
        return await get_runtime().generate_promo_ideas(week_start)
    except ValueError as e:
        logger.warning(f"Rejected promo request: {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error=str(e)).model_dump(),
        )
