from fastapi import APIRouter, HTTPException, Query
from schemas.playback import SearchResultResponse, SurahResponse, VerseResponse
from services.verse_catalog import MIN_SEARCH_LENGTH, get_verse, get_verse_range, search_verses
from utils.quran_data import get_surah_info, is_valid_surah, list_surahs

router = APIRouter(prefix="/surahs", tags=["surahs"])


def _require_surah(surah_id: int) -> None:
    if not is_valid_surah(surah_id):
        raise HTTPException(status_code=404, detail="Surah not found")


@router.get("", response_model=list[SurahResponse])
async def get_surahs():
    return [SurahResponse.model_validate(s) for s in list_surahs()]


# Declared before /{surah_id} so "search" is not read as an id
@router.get("/search", response_model=list[SearchResultResponse])
async def search(
    q: str = Query(..., min_length=MIN_SEARCH_LENGTH),
    surah_id: int | None = Query(None),
):
    if surah_id is not None:
        _require_surah(surah_id)
    results = await search_verses(q, surah_id)
    return [
        SearchResultResponse(
            verse=VerseResponse.model_validate(verse),
            surah_name=get_surah_info(verse.surah_id).name,
            relevance=score,
        )
        for verse, score in results
    ]


@router.get("/{surah_id}", response_model=SurahResponse)
async def get_surah(surah_id: int):
    _require_surah(surah_id)
    return SurahResponse.model_validate(get_surah_info(surah_id))


@router.get("/{surah_id}/ayahs", response_model=list[VerseResponse])
async def get_surah_ayahs(
    surah_id: int,
    start: int | None = Query(None, ge=1),
    end: int | None = Query(None, ge=1),
):
    _require_surah(surah_id)
    verses = await get_verse_range(surah_id, start, end)
    return [VerseResponse.model_validate(v) for v in verses]


@router.get("/{surah_id}/ayahs/{ayah}", response_model=VerseResponse)
async def get_surah_ayah(surah_id: int, ayah: int):
    _require_surah(surah_id)
    if not 1 <= ayah <= get_surah_info(surah_id).total_ayahs:
        raise HTTPException(status_code=404, detail="Ayah not found")
    return VerseResponse.model_validate(await get_verse(surah_id, ayah))
