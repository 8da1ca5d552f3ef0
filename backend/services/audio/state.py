from dataclasses import dataclass
from enum import Enum


class PlaybackPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    INTER_VERSE_PAUSE = "inter_verse_pause"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class PlaybackState:
    """
    Snapshot of a listening session's playback.

    Never mutated in place: the controller swaps in a new snapshot per change,
    so anything holding a reference always sees a consistent state.
    `is_paused` means "in the silence between two verses", not "media paused".
    """

    current_index: int = 0
    is_playing: bool = False
    is_paused: bool = False
    is_loading: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    error: str | None = None
    session_completed: bool = False
    source_url: str | None = None

    @property
    def progress(self) -> float:
        if self.duration <= 0:
            return 0.0
        return min(100.0, max(0.0, self.current_time / self.duration * 100))

    @property
    def phase(self) -> PlaybackPhase:
        if self.is_loading:
            return PlaybackPhase.LOADING
        if self.is_playing:
            return PlaybackPhase.PLAYING
        if self.is_paused:
            return PlaybackPhase.INTER_VERSE_PAUSE
        if self.session_completed:
            return PlaybackPhase.COMPLETED
        if self.source_url is None:
            return PlaybackPhase.ERROR if self.error else PlaybackPhase.IDLE
        return PlaybackPhase.READY
