"""Playback failures. Each carries the message shown to the listener."""


class PlaybackError(Exception):
    message = "Playback error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# ── Media load failures (handled by fallback retry) ───────────────────────────

class MediaLoadError(PlaybackError):
    message = "Audio failed to load"

    def __init__(self, url: str, message: str | None = None):
        self.url = url
        super().__init__(message)


class LoadTimeout(MediaLoadError):
    message = "Audio loading timed out"


class LoadDecodeError(MediaLoadError):
    message = "Audio could not be decoded"


class LoadSuperseded(MediaLoadError):
    message = "Audio load replaced by a newer one"


# ── Surfaced to the listener ──────────────────────────────────────────────────

class AudioUnavailable(PlaybackError):
    message = "Audio unavailable. Please check your internet connection and try again."


class PlaybackRejected(PlaybackError):
    message = "Playback failed"

    def __init__(self, reason: str | None = None):
        self.reason = reason or "unknown error"
        super().__init__(f"Playback failed: {self.reason}. Click play again to retry.")


class NoAudioLoaded(PlaybackError):
    message = "Loading audio, please try again in a moment..."


class StillLoading(PlaybackError):
    message = "Audio is still loading, please wait..."


class EmptySequence(PlaybackError):
    message = "No verses available to play"
