from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Audio CDN (everyayah.com layout: <base>/<reciter>/<sss><aaa>.mp3)
    AUDIO_BASE_URL: str = "https://everyayah.com/data"
    PRIMARY_RECITER: str = "Alafasy_128kbps"
    FALLBACK_RECITER: str = "Abdurrahmaan_As-Sudais_192kbps"

    # Playback
    LOAD_TIMEOUT_SECONDS: float = 15.0
    SEEK_STEP_SECONDS: float = 10.0
    DEFAULT_VOLUME: float = 0.8
    DEFAULT_PAUSE_SECONDS: int = 5
    MIN_PAUSE_SECONDS: int = 1
    MAX_PAUSE_SECONDS: int = 30

    # Listening sessions idle longer than this are closed by the scheduler
    SESSION_IDLE_HOURS: int = 6

    # Text / translation lookup (best-effort)
    QURAN_API_URL: str = "https://quranapi.pages.dev/api"
    ALQURAN_CLOUD_URL: str = "https://api.alquran.cloud/v1"
    TRANSLATION_EDITION: str = "en.sahih"
    ARABIC_EDITION: str = "ar.alafasy"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # External CRUD service that stores sessions / preferences
    PERSISTENCE_API_URL: str = "http://localhost:5000/api"

    # App URLs
    FRONTEND_URL: str = "http://localhost:3000"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = "../.env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
