"""
Best-effort Arabic text and translation lookup.

Nothing here is allowed to break playback: every failure is logged and turns
into an empty result, and callers keep whatever text they already hold.
"""
import asyncio
import logging
import httpx
from config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def make_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS, follow_redirects=True)


async def _alquran_cloud(client: httpx.AsyncClient, path: str) -> dict | None:
    resp = await client.get(f"{settings.ALQURAN_CLOUD_URL}/{path}")
    payload = resp.json()
    if payload.get("code") == 200 and payload.get("data"):
        return payload["data"]
    return None


async def get_ayah_translation(client: httpx.AsyncClient, surah_id: int, ayah: int) -> str:
    try:
        # quranapi.pages.dev first (no key needed), Al-Quran Cloud as fallback
        resp = await client.get(
            f"{settings.QURAN_API_URL}/verses/{surah_id}:{ayah}/{settings.TRANSLATION_EDITION}"
        )
        if resp.status_code == 200:
            text = resp.json().get("text")
            if text:
                return text

        data = await _alquran_cloud(client, f"ayah/{surah_id}:{ayah}/{settings.TRANSLATION_EDITION}")
        if data and data.get("text"):
            return data["text"]
        logger.warning(f"No translation found for {surah_id}:{ayah}")
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Translation lookup failed for {surah_id}:{ayah}: {e}")
    return ""


async def get_ayah_arabic_text(client: httpx.AsyncClient, surah_id: int, ayah: int) -> str:
    try:
        data = await _alquran_cloud(client, f"ayah/{surah_id}:{ayah}/{settings.ARABIC_EDITION}")
        if data and data.get("text"):
            return data["text"]
        logger.warning(f"No Arabic text found for {surah_id}:{ayah}")
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Arabic text lookup failed for {surah_id}:{ayah}: {e}")
    return ""


async def get_surah_texts(client: httpx.AsyncClient, surah_id: int) -> list[tuple[int, str, str]]:
    """Return [(ayah_number, arabic, translation), ...] for a whole surah, or [] on failure."""
    try:
        arabic, translation = await asyncio.gather(
            _alquran_cloud(client, f"surah/{surah_id}/{settings.ARABIC_EDITION}"),
            _alquran_cloud(client, f"surah/{surah_id}/{settings.TRANSLATION_EDITION}"),
        )
        if not arabic or not translation:
            logger.warning(f"Surah {surah_id} text lookup returned no data")
            return []
        return [
            (a["numberInSurah"], a["text"], t["text"])
            for a, t in zip(arabic["ayahs"], translation["ayahs"])
        ]
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Surah {surah_id} text lookup failed: {e}")
        return []
