"""
Map a verse to its recitation audio on EveryAyah.com.

No network verification happens here: the media load itself tells us whether
a candidate works, and the controller falls back to the next one.
"""
from config import get_settings
from utils.quran_data import Verse

settings = get_settings()

AVAILABLE_RECITERS = [
    "Alafasy_128kbps",
    "Abdurrahmaan_As-Sudais_192kbps",
    "Abdul_Basit_Murattal_192kbps",
    "Maher_AlMuaiqly_128kbps",
    "Yasser_Ad-Dussary_128kbps",
    "Abu_Bakr_Ash-Shaatree_128kbps",
]

MAX_CANDIDATES = 2


def get_audio_url(reciter: str, verse: Verse) -> str:
    return f"{settings.AUDIO_BASE_URL}/{reciter}/{verse.to_filename()}"


def candidate_reciters(preferred: str | None = None) -> list[str]:
    """Preferred reciter first, then the configured primary/fallback, without duplicates."""
    ordered: list[str] = []
    for reciter in (preferred, settings.PRIMARY_RECITER, settings.FALLBACK_RECITER):
        if reciter and reciter not in ordered:
            ordered.append(reciter)
    return ordered[:MAX_CANDIDATES]


def resolve_audio_candidates(surah_id: int, verse_number: int, reciter: str | None = None) -> list[str]:
    verse = Verse(surah_id=surah_id, number=verse_number)
    return [get_audio_url(r, verse) for r in candidate_reciters(reciter)]
