from schemas.playback import (
    PlaybackView, VerseResponse, StartSessionRequest, UpdateSettingsRequest, TransportRequest,
    AudioCandidatesResponse, SurahResponse, EstimateResponse, SearchResultResponse,
)

__all__ = [
    "PlaybackView", "VerseResponse", "StartSessionRequest", "UpdateSettingsRequest", "TransportRequest",
    "AudioCandidatesResponse", "SurahResponse", "EstimateResponse", "SearchResultResponse",
]
