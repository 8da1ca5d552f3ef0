from dataclasses import dataclass

AVERAGE_AYAH_SECONDS = 10


@dataclass(frozen=True)
class Verse:
    surah_id: int
    number: int
    text: str = ""
    translation: str = ""

    def __str__(self) -> str:
        return f"{self.surah_id}:{self.number}"

    def to_filename(self) -> str:
        return f"{self.surah_id:03d}{self.number:03d}.mp3"


@dataclass
class SurahInfo:
    id: int
    name: str
    total_ayahs: int


# Quran structure: ayahs per surah (1-114)
SURAH_AYAH_COUNT = [
    7, 286, 200, 176, 120, 165, 206, 75, 129, 109,
    123, 111, 43, 52, 99, 128, 111, 110, 98, 135,
    112, 78, 118, 64, 77, 227, 93, 88, 69, 60,
    34, 30, 73, 54, 45, 83, 182, 88, 75, 85,
    54, 53, 89, 59, 37, 35, 38, 29, 18, 45,
    60, 49, 62, 55, 78, 96, 29, 22, 24, 13,
    14, 11, 11, 18, 12, 12, 30, 52, 52, 44,
    28, 28, 20, 56, 40, 31, 50, 40, 46, 42,
    29, 19, 36, 25, 22, 17, 19, 26, 30, 20,
    15, 21, 11, 8, 8, 19, 5, 8, 8, 11,
    11, 8, 3, 9, 5, 4, 7, 3, 6, 3,
    5, 4, 5, 6,
]

SURAH_NAMES = [
    "Al-Fatihah", "Al-Baqarah", "Ali 'Imran", "An-Nisa", "Al-Ma'idah",
    "Al-An'am", "Al-A'raf", "Al-Anfal", "At-Tawbah", "Yunus",
    "Hud", "Yusuf", "Ar-Ra'd", "Ibrahim", "Al-Hijr",
    "An-Nahl", "Al-Isra", "Al-Kahf", "Maryam", "Taha",
    "Al-Anbya", "Al-Hajj", "Al-Mu'minun", "An-Nur", "Al-Furqan",
    "Ash-Shu'ara", "An-Naml", "Al-Qasas", "Al-'Ankabut", "Ar-Rum",
    "Luqman", "As-Sajdah", "Al-Ahzab", "Saba", "Fatir",
    "Ya-Sin", "As-Saffat", "Sad", "Az-Zumar", "Ghafir",
    "Fussilat", "Ash-Shuraa", "Az-Zukhruf", "Ad-Dukhan", "Al-Jathiyah",
    "Al-Ahqaf", "Muhammad", "Al-Fath", "Al-Hujurat", "Qaf",
    "Adh-Dhariyat", "At-Tur", "An-Najm", "Al-Qamar", "Ar-Rahman",
    "Al-Waqi'ah", "Al-Hadid", "Al-Mujadila", "Al-Hashr", "Al-Mumtahanah",
    "As-Saf", "Al-Jumu'ah", "Al-Munafiqun", "At-Taghabun", "At-Talaq",
    "At-Tahrim", "Al-Mulk", "Al-Qalam", "Al-Haqqah", "Al-Ma'arij",
    "Nuh", "Al-Jinn", "Al-Muzzammil", "Al-Muddaththir", "Al-Qiyamah",
    "Al-Insan", "Al-Mursalat", "An-Naba", "An-Nazi'at", "'Abasa",
    "At-Takwir", "Al-Infitar", "Al-Mutaffifin", "Al-Inshiqaq", "Al-Buruj",
    "At-Tariq", "Al-A'la", "Al-Ghashiyah", "Al-Fajr", "Al-Balad",
    "Ash-Shams", "Al-Layl", "Ad-Duhaa", "Ash-Sharh", "At-Tin",
    "Al-'Alaq", "Al-Qadr", "Al-Bayyinah", "Az-Zalzalah", "Al-'Adiyat",
    "Al-Qari'ah", "At-Takathur", "Al-'Asr", "Al-Humazah", "Al-Fil",
    "Quraysh", "Al-Ma'un", "Al-Kawthar", "Al-Kafirun", "An-Nasr",
    "Al-Masad", "Al-Ikhlas", "Al-Falaq", "An-Nas",
]


def is_valid_surah(surah_id: int) -> bool:
    return 1 <= surah_id <= len(SURAH_AYAH_COUNT)


def get_surah_info(surah_id: int) -> SurahInfo:
    if not is_valid_surah(surah_id):
        raise ValueError(f"Unknown surah: {surah_id}")
    return SurahInfo(
        id=surah_id,
        name=SURAH_NAMES[surah_id - 1],
        total_ayahs=SURAH_AYAH_COUNT[surah_id - 1],
    )


def list_surahs() -> list[SurahInfo]:
    return [get_surah_info(s) for s in range(1, len(SURAH_AYAH_COUNT) + 1)]


def get_ayah_range(total_ayahs: int, start_ayah: int | None = None, end_ayah: int | None = None) -> tuple[int, int]:
    """
    Normalize a requested ayah range against a surah's length.
    Missing/invalid start → 1, start past the end → last ayah,
    missing/out-of-range end → last ayah, inverted bounds are swapped.
    """
    start = min(start_ayah, total_ayahs) if start_ayah and start_ayah > 0 else 1
    end = end_ayah if end_ayah and 0 < end_ayah <= total_ayahs else total_ayahs
    return min(start, end), max(start, end)


def get_verses_in_range(surah_id: int, start_ayah: int | None = None, end_ayah: int | None = None) -> list[Verse]:
    """Return text-less Verse objects for a surah range (inclusive)."""
    info = get_surah_info(surah_id)
    start, end = get_ayah_range(info.total_ayahs, start_ayah, end_ayah)
    return [Verse(surah_id=surah_id, number=a) for a in range(start, end + 1)]


def format_time(seconds: int) -> str:
    """'m:ss' display string, e.g. 75 → '1:15'."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def estimate_session_seconds(number_of_ayahs: int, pause_duration: int) -> int:
    # ~10s of recitation per ayah, plus the silence after it
    return number_of_ayahs * (AVERAGE_AYAH_SECONDS + pause_duration)
