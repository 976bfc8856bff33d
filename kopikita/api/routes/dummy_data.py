"""
Dummy Data Routes

FastAPI endpoint that runs the dummy-data seeding agent.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from kopikita.models.api import DummyDataRequest, DummyDataResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()

GENERATE_FAILED_MESSAGE = "Gagal generate dummy data. Coba lagi."


@router.post("/generate-dummy", response_model=DummyDataResponse)
async def generate_dummy(
    request: DummyDataRequest | None = None,
) -> DummyDataResponse | JSONResponse:
    """
    Seed the database through the agent.

    A run that exhausts its step budget still answers 200 with a warning
    output; any other failure answers 500.
    """
    mode = request.mode if request else "mixed"
    logger.info(f"Dummy data generation requested (mode={mode})")

    try:
        from kopikita.api.main import get_runtime

        output = await get_runtime().run_dummy_data_agent(mode)
    except Exception as e:
        logger.error(f"Dummy data generation failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=GENERATE_FAILED_MESSAGE).model_dump(),
        )

    return DummyDataResponse(output=output)
