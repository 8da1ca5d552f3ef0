from fastapi import APIRouter, Query
from config import get_settings
from schemas.playback import EstimateResponse
from utils.quran_data import estimate_session_seconds, format_time

router = APIRouter(prefix="/playback", tags=["playback"])
settings = get_settings()


@router.get("/estimate", response_model=EstimateResponse)
async def estimate_duration(
    ayahs: int = Query(..., ge=1),
    pause_duration: int = Query(
        settings.DEFAULT_PAUSE_SECONDS,
        ge=settings.MIN_PAUSE_SECONDS,
        le=settings.MAX_PAUSE_SECONDS,
    ),
):
    seconds = estimate_session_seconds(ayahs, pause_duration)
    return EstimateResponse(
        ayahs=ayahs,
        pause_duration=pause_duration,
        estimated_seconds=seconds,
        display=format_time(seconds),
    )
