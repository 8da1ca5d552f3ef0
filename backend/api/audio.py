from fastapi import APIRouter, HTTPException, Query
from schemas.playback import AudioCandidatesResponse
from services.audio.resolver import AVAILABLE_RECITERS, resolve_audio_candidates
from utils.quran_data import get_surah_info, is_valid_surah

router = APIRouter(prefix="/audio", tags=["audio"])


@router.get("/reciters")
async def get_reciters():
    return {"reciters": AVAILABLE_RECITERS}


@router.get("/{surah_id}/{ayah}", response_model=AudioCandidatesResponse)
async def get_ayah_audio(surah_id: int, ayah: int, reciter: str | None = Query(None)):
    if not is_valid_surah(surah_id):
        raise HTTPException(status_code=404, detail="Surah not found")
    if not 1 <= ayah <= get_surah_info(surah_id).total_ayahs:
        raise HTTPException(status_code=404, detail="Ayah not found")
    if reciter is not None and reciter not in AVAILABLE_RECITERS:
        raise HTTPException(status_code=422, detail="Unknown reciter")
    return AudioCandidatesResponse(
        surah_id=surah_id,
        ayah=ayah,
        candidates=resolve_audio_candidates(surah_id, ayah, reciter),
    )
