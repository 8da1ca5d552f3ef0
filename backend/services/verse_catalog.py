import asyncio
import logging
from dataclasses import replace
import httpx
from services.quran_text import get_ayah_arabic_text, get_ayah_translation, get_surah_texts, make_client
from utils.quran_data import Verse, get_verses_in_range

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 3
MAX_SEARCH_RESULTS = 50

# surah_id → {ayah_number: (arabic, translation)}; text only, audio is never kept
_SURAH_TEXT_CACHE: dict[int, dict[int, tuple[str, str]]] = {}


async def _surah_texts(surah_id: int, client: httpx.AsyncClient | None = None) -> dict[int, tuple[str, str]]:
    cached = _SURAH_TEXT_CACHE.get(surah_id)
    if cached is not None:
        return cached

    if client is None:
        async with make_client() as own_client:
            rows = await get_surah_texts(own_client, surah_id)
    else:
        rows = await get_surah_texts(client, surah_id)

    texts = {number: (arabic, translation) for number, arabic, translation in rows}
    if texts:
        _SURAH_TEXT_CACHE[surah_id] = texts
    return texts


async def get_verse_range(
    surah_id: int,
    start_ayah: int | None = None,
    end_ayah: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[Verse]:
    """
    Ordered verses for a surah range. Text comes from the remote lookup when it
    answers; otherwise the verses keep the locally held (empty) text.
    """
    verses = get_verses_in_range(surah_id, start_ayah, end_ayah)
    texts = await _surah_texts(surah_id, client)
    if not texts:
        logger.info(f"Surah {surah_id}: serving {len(verses)} verses without text")
        return verses
    return [
        replace(v, text=texts[v.number][0], translation=texts[v.number][1]) if v.number in texts else v
        for v in verses
    ]


async def get_verse(surah_id: int, ayah: int, client: httpx.AsyncClient | None = None) -> Verse:
    """One verse with its text; falls back to per-ayah lookups when the surah fetch has nothing."""
    verse = Verse(surah_id=surah_id, number=ayah)
    texts = await _surah_texts(surah_id, client)
    if ayah in texts:
        arabic, translation = texts[ayah]
        return replace(verse, text=arabic, translation=translation)

    async def lookup(c: httpx.AsyncClient) -> Verse:
        arabic, enriched = await asyncio.gather(
            get_ayah_arabic_text(c, surah_id, ayah),
            enrich_translation(verse, c),
        )
        return replace(enriched, text=arabic) if arabic else enriched

    if client is None:
        async with make_client() as own_client:
            return await lookup(own_client)
    return await lookup(client)


async def enrich_translation(verse: Verse, client: httpx.AsyncClient) -> Verse:
    """Fill in a verse's translation; keep the one it has when the lookup fails."""
    translation = await get_ayah_translation(client, verse.surah_id, verse.number)
    return replace(verse, translation=translation) if translation else verse


# ── Search ────────────────────────────────────────────────────────────────────

def relevance(arabic: str, translation: str, keywords: list[str]) -> int:
    # Arabic matches count double
    arabic, translation = arabic.lower(), translation.lower()
    return sum(arabic.count(k) * 2 + translation.count(k) for k in keywords)


async def search_verses(
    query: str,
    surah_id: int | None = None,
    client: httpx.AsyncClient | None = None,
    limit: int = MAX_SEARCH_RESULTS,
) -> list[tuple[Verse, int]]:
    """
    Keyword search over verse text and translation, best match first.

    With `surah_id` that surah's text is fetched if needed; without it only
    surahs already in the text cache are searched.
    """
    keywords = query.lower().split()
    if len(query.strip()) < MIN_SEARCH_LENGTH or not keywords:
        return []

    if surah_id is not None:
        sources = {surah_id: await _surah_texts(surah_id, client)}
    else:
        sources = dict(_SURAH_TEXT_CACHE)

    results = []
    for sid, ayahs in sorted(sources.items()):
        for number, (arabic, translation) in sorted(ayahs.items()):
            score = relevance(arabic, translation, keywords)
            if score:
                results.append((Verse(sid, number, arabic, translation), score))
    results.sort(key=lambda r: r[1], reverse=True)
    logger.debug(f"Search {query!r}: {len(results)} match(es) in {len(sources)} surah(s)")
    return results[:limit]


def clear_cache() -> None:
    _SURAH_TEXT_CACHE.clear()
