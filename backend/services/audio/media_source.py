"""
Wrapper around the single media handle a listening session plays through.

The handle (the listener's <audio> element driven over Socket.IO, or a fake in
tests) only receives fire-and-forget commands. Its notifications come back
through the notify_* methods, tagged with the load/play id they answer, so a
late reply for an old source is dropped instead of leaking into the new one.
"""
import asyncio
import logging
import math
from typing import Callable, Protocol

from config import get_settings
from services.audio.errors import (
    LoadDecodeError, LoadSuperseded, LoadTimeout, NoAudioLoaded, PlaybackRejected,
)

logger = logging.getLogger(__name__)
settings = get_settings()


class MediaHandle(Protocol):
    def load(self, url: str, load_id: int) -> None: ...
    def play(self, play_id: int) -> None: ...
    def pause(self) -> None: ...
    def seek(self, position: float) -> None: ...
    def set_volume(self, volume: float) -> None: ...
    def release(self) -> None: ...


def _seconds(value) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(parsed) or parsed < 0:
        return 0.0
    return parsed


class MediaSource:
    def __init__(
        self,
        handle: MediaHandle,
        *,
        load_timeout: float | None = None,
        volume: float | None = None,
    ) -> None:
        self._handle = handle
        self.load_timeout = settings.LOAD_TIMEOUT_SECONDS if load_timeout is None else load_timeout
        self.volume = settings.DEFAULT_VOLUME if volume is None else volume

        self.url: str | None = None
        self.duration: float = 0.0
        self.position: float = 0.0

        self._load_id = 0
        self._pending_load: asyncio.Future | None = None
        self._loading_url: str | None = None
        self._play_id = 0
        self._pending_play: asyncio.Future | None = None

        self._on_time: Callable[[float], None] | None = None
        self._on_metadata: Callable[[float], None] | None = None
        self._on_ended: Callable[[], None] | None = None

    def bind(
        self,
        *,
        on_time: Callable[[float], None] | None = None,
        on_metadata: Callable[[float], None] | None = None,
        on_ended: Callable[[], None] | None = None,
    ) -> None:
        """Attach the owner's listeners once, for the lifetime of this source."""
        self._on_time = on_time
        self._on_metadata = on_metadata
        self._on_ended = on_ended

    @property
    def is_loaded(self) -> bool:
        return self.url is not None

    @property
    def load_id(self) -> int:
        return self._load_id

    # ── Commands ──────────────────────────────────────────────────────────────

    async def load(self, url: str) -> float:
        """
        Replace the current source with `url` and wait for it to become playable.
        Returns the duration in seconds (0.0 when the handle can't tell).
        Raises LoadTimeout, LoadDecodeError or LoadSuperseded.
        """
        self._abandon_load()
        self._abandon_play("a new audio source was loaded")

        self._load_id += 1
        load_id = self._load_id
        self.url = None
        self.duration = 0.0
        self.position = 0.0

        future = asyncio.get_running_loop().create_future()
        self._pending_load = future
        self._loading_url = url
        self._handle.load(url, load_id)
        try:
            duration = await asyncio.wait_for(future, timeout=self.load_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Audio load timed out after {self.load_timeout}s: {url}")
            raise LoadTimeout(url)
        finally:
            if self._pending_load is future:
                self._pending_load = None
                self._loading_url = None

        if load_id != self._load_id:
            raise LoadSuperseded(url)

        self.url = url
        # metadata may have reported the length before the ready notification
        self.duration = duration or self.duration
        self._handle.set_volume(self.volume)
        return self.duration

    async def play(self) -> None:
        """Resolve once playback has actually started; PlaybackRejected otherwise."""
        if not self.is_loaded:
            raise NoAudioLoaded()
        self._abandon_play("playback was restarted")

        self._play_id += 1
        future = asyncio.get_running_loop().create_future()
        self._pending_play = future
        self._handle.play(self._play_id)
        try:
            await future
        finally:
            if self._pending_play is future:
                self._pending_play = None

    def pause(self) -> None:
        self._abandon_play("playback was paused")
        if self.is_loaded:
            self._handle.pause()

    def seek(self, position: float) -> float:
        position = min(max(0.0, _seconds(position)), self.duration)
        if self.is_loaded:
            self._handle.seek(position)
        self.position = position
        return position

    def stop(self) -> None:
        self.pause()
        self.seek(0.0)

    def release(self) -> None:
        self._abandon_load()
        self._abandon_play("the player was closed")
        self.url = None
        self.duration = 0.0
        self.position = 0.0
        self._handle.release()

    # ── Notifications from the handle ─────────────────────────────────────────

    def notify_ready(self, load_id: int, duration=None) -> None:
        future = self._pending_load
        if load_id != self._load_id or future is None or future.done():
            logger.debug(f"Ignoring stale ready notification for load {load_id}")
            return
        future.set_result(_seconds(duration))

    def notify_load_error(self, load_id: int, reason: str | None = None) -> None:
        future = self._pending_load
        if load_id != self._load_id or future is None or future.done():
            logger.debug(f"Ignoring stale load error for load {load_id}: {reason}")
            return
        future.set_exception(LoadDecodeError(self._loading_url or "", reason or None))

    def notify_metadata(self, load_id: int, duration) -> None:
        if load_id != self._load_id:
            return
        self.duration = _seconds(duration)
        if self._on_metadata:
            self._on_metadata(self.duration)

    def notify_time(self, load_id: int, position) -> None:
        if load_id != self._load_id or not self.is_loaded:
            return
        position = _seconds(position)
        if self.duration > 0:
            position = min(position, self.duration)
        self.position = position
        if self._on_time:
            self._on_time(position)

    def notify_ended(self, load_id: int) -> None:
        if load_id != self._load_id or not self.is_loaded:
            return
        self.position = self.duration
        if self._on_ended:
            self._on_ended()

    def notify_play_result(self, play_id: int, ok: bool, reason: str | None = None) -> None:
        future = self._pending_play
        if play_id != self._play_id or future is None or future.done():
            return
        if ok:
            future.set_result(None)
        else:
            future.set_exception(PlaybackRejected(reason))

    # ── Internals ─────────────────────────────────────────────────────────────

    def _abandon_load(self) -> None:
        future = self._pending_load
        if future is not None and not future.done():
            future.set_exception(LoadSuperseded(self._loading_url or ""))
        self._pending_load = None
        self._loading_url = None

    def _abandon_play(self, reason: str) -> None:
        future = self._pending_play
        if future is not None and not future.done():
            future.set_exception(PlaybackRejected(reason))
        self._pending_play = None
