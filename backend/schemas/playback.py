from pydantic import BaseModel, Field, field_validator, model_validator
from config import get_settings
from services.audio.resolver import AVAILABLE_RECITERS
from utils.quran_data import is_valid_surah

settings = get_settings()


def _validate_pause(v: int) -> int:
    if not settings.MIN_PAUSE_SECONDS <= v <= settings.MAX_PAUSE_SECONDS:
        raise ValueError(
            f"pause_duration must be between {settings.MIN_PAUSE_SECONDS} "
            f"and {settings.MAX_PAUSE_SECONDS} seconds"
        )
    return v


def _validate_reciter(v: str | None) -> str | None:
    if v is not None and v not in AVAILABLE_RECITERS:
        raise ValueError(f"Invalid reciter. Choose from: {', '.join(sorted(AVAILABLE_RECITERS))}")
    return v


class VerseResponse(BaseModel):
    surah_id: int
    number: int
    text: str
    translation: str

    class Config:
        from_attributes = True


class PlaybackView(BaseModel):
    """What the player UI renders; rebuilt from the controller on every change."""

    phase: str
    is_playing: bool
    is_paused: bool
    is_loading: bool
    current_time: float
    duration: float
    progress_percent: float = Field(ge=0, le=100)
    error: str | None
    current_verse: VerseResponse | None
    current_index: int
    total_count: int
    session_completed: bool
    completed_count: int
    remaining_count: int
    session_elapsed_seconds: int
    pause_duration: int
    auto_repeat: bool
    source_url: str | None


class StartSessionRequest(BaseModel):
    surah_id: int
    start_ayah: int | None = Field(None, ge=1)
    end_ayah: int | None = Field(None, ge=1)
    pause_duration: int = settings.DEFAULT_PAUSE_SECONDS
    auto_repeat: bool = False
    reciter: str | None = None

    @field_validator("surah_id")
    @classmethod
    def validate_surah(cls, v: int) -> int:
        if not is_valid_surah(v):
            raise ValueError("surah_id must be between 1 and 114")
        return v

    @field_validator("pause_duration")
    @classmethod
    def validate_pause(cls, v: int) -> int:
        return _validate_pause(v)

    @field_validator("reciter")
    @classmethod
    def validate_reciter(cls, v: str | None) -> str | None:
        return _validate_reciter(v)


class UpdateSettingsRequest(BaseModel):
    pause_duration: int | None = None
    auto_repeat: bool | None = None

    @field_validator("pause_duration")
    @classmethod
    def validate_pause(cls, v: int | None) -> int | None:
        return None if v is None else _validate_pause(v)


TRANSPORT_ACTIONS = (
    "play", "pause", "stop", "next", "previous", "rewind", "forward",
    "seek", "skip", "repeat", "repeat_current",
)


class TransportRequest(BaseModel):
    action: str
    value: float | None = None

    @field_validator("action")
    @classmethod
    def validate_action(cls, v: str) -> str:
        if v not in TRANSPORT_ACTIONS:
            raise ValueError(f"Unknown action. Choose from: {', '.join(TRANSPORT_ACTIONS)}")
        return v

    @model_validator(mode="after")
    def require_value(self):
        if self.action in ("seek", "skip") and self.value is None:
            raise ValueError(f"'{self.action}' needs a value")
        return self


class AudioCandidatesResponse(BaseModel):
    surah_id: int
    ayah: int
    candidates: list[str]


class SurahResponse(BaseModel):
    id: int
    name: str
    total_ayahs: int

    class Config:
        from_attributes = True


class EstimateResponse(BaseModel):
    ayahs: int
    pause_duration: int
    estimated_seconds: int
    display: str


class SearchResultResponse(BaseModel):
    verse: VerseResponse
    surah_name: str
    relevance: int
