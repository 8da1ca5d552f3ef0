"""
Sequential verse playback with a silence between verses.

A PlaybackController drives one MediaSource through an ordered list of verses:
load (preferred reciter, then the fallback), play, wait `pause_duration`
seconds once a verse ends, then load and start the next one, until the list
is exhausted and the session completes.

Everything runs on the event loop. All state changes go through _commit(),
which swaps in a whole new PlaybackState, and work that a later action may
overtake carries a token:

  _load_token    bumped by every load; a load holding a stale token gives up
                 and its result is dropped.
  _intent_token  bumped by every transport action; a play() result or an
                 automatic advance holding a stale token is dropped.

Failures never escape the public operations: they end up in `state.error`.
"""
import asyncio
import inspect
import logging
import uuid
from dataclasses import replace
from typing import Any, Callable, Sequence

from config import get_settings
from schemas.playback import PlaybackView, VerseResponse
from services.audio.errors import (
    AudioUnavailable, EmptySequence, MediaLoadError, NoAudioLoaded, PlaybackError, StillLoading,
)
from services.audio.media_source import MediaSource
from services.audio.pause_timer import PauseTimer
from services.audio.resolver import MAX_CANDIDATES, resolve_audio_candidates
from services.audio.session_clock import SessionClock
from services.audio.state import PlaybackState
from utils.quran_data import Verse

logger = logging.getLogger(__name__)
settings = get_settings()


def clamp_pause(seconds: float) -> int:
    return int(min(max(settings.MIN_PAUSE_SECONDS, seconds), settings.MAX_PAUSE_SECONDS))


class PlaybackController:
    def __init__(
        self,
        media: MediaSource,
        verses: Sequence[Verse] = (),
        *,
        pause_duration: int | None = None,
        auto_repeat: bool = False,
        reciter: str | None = None,
        on_verse_changed: Callable[[int], Any] | None = None,
        on_session_complete: Callable[[], Any] | None = None,
        on_state_change: Callable[[PlaybackState], Any] | None = None,
        timer: PauseTimer | None = None,
        clock: SessionClock | None = None,
        resolver: Callable[[int, int, str | None], list[str]] = resolve_audio_candidates,
    ) -> None:
        self._media = media
        self._verses: tuple[Verse, ...] = tuple(verses)
        self.pause_duration = clamp_pause(
            settings.DEFAULT_PAUSE_SECONDS if pause_duration is None else pause_duration
        )
        self.auto_repeat = auto_repeat
        self.reciter = reciter
        self.on_verse_changed = on_verse_changed
        self.on_session_complete = on_session_complete
        self.on_state_change = on_state_change
        self._timer = timer or PauseTimer(f"pause_{uuid.uuid4().hex}")
        self.clock = clock or SessionClock()
        self._resolver = resolver

        self._state = PlaybackState()
        self._load_token = 0
        self._intent_token = 0
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

        media.bind(
            on_time=self._on_media_time,
            on_metadata=self._on_media_metadata,
            on_ended=self._on_media_ended,
        )

    # ── Read side ─────────────────────────────────────────────────────────────

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def verses(self) -> tuple[Verse, ...]:
        return self._verses

    @property
    def current_verse(self) -> Verse | None:
        if not self._verses:
            return None
        return self._verses[self._state.current_index]

    @property
    def closed(self) -> bool:
        return self._closed

    def view(self) -> PlaybackView:
        s = self._state
        total = len(self._verses)
        verse = self.current_verse
        return PlaybackView(
            phase=s.phase.value,
            is_playing=s.is_playing,
            is_paused=s.is_paused,
            is_loading=s.is_loading,
            current_time=s.current_time,
            duration=s.duration,
            progress_percent=s.progress,
            error=s.error,
            current_verse=VerseResponse.model_validate(verse) if verse else None,
            current_index=s.current_index,
            total_count=total,
            session_completed=s.session_completed,
            completed_count=s.current_index if total else 0,
            remaining_count=max(0, total - s.current_index - 1),
            session_elapsed_seconds=self.clock.elapsed(),
            pause_duration=self.pause_duration,
            auto_repeat=self.auto_repeat,
            source_url=s.source_url,
        )

    # ── Settings ──────────────────────────────────────────────────────────────

    def set_pause_duration(self, seconds: float) -> None:
        """Takes effect from the next verse end; a running silence keeps its length."""
        self.pause_duration = clamp_pause(seconds)

    def set_auto_repeat(self, enabled: bool) -> None:
        self.auto_repeat = bool(enabled)

    async def set_sequence(self, verses: Sequence[Verse]) -> bool:
        """Replace the verse list, reset playback to its first verse and load it."""
        if self._closed:
            return False
        self._new_intent()
        self._load_token += 1
        self._timer.cancel()
        self._media.stop()
        self._verses = tuple(verses)
        self._commit(PlaybackState())
        self.clock.start()
        if not self._verses:
            return False
        return await self.load_verse(0)

    # ── Loading ───────────────────────────────────────────────────────────────

    async def load_verse(self, index: int) -> bool:
        """
        Load the audio for verse `index`: preferred source first, the fallback
        on failure. Returns True once a source is ready. A newer load makes this
        one give up and return False without touching state.
        """
        if self._closed or not 0 <= index < len(self._verses):
            return False
        token = self._begin_load()
        return await self._run_load(token, index)

    def _begin_load(self, **changes) -> int:
        self._load_token += 1
        self._update(
            is_loading=True, is_playing=False, is_paused=False, error=None,
            current_time=0.0, duration=0.0, source_url=None, **changes,
        )
        return self._load_token

    async def _run_load(self, token: int, index: int) -> bool:
        verse = self._verses[index]
        candidates = self._resolver(verse.surah_id, verse.number, self.reciter)[:MAX_CANDIDATES]
        for url in candidates:
            try:
                duration = await self._media.load(url)
            except MediaLoadError as e:
                if token != self._load_token:
                    return False
                logger.warning(f"Audio for {verse} failed to load from {url}: {e.message}")
                continue
            if token != self._load_token:
                return False
            self._update(is_loading=False, duration=duration, current_time=0.0, source_url=url, error=None)
            logger.info(f"Loaded audio for {verse} from {url}")
            return True

        logger.error(f"Audio unavailable for {verse}: {len(candidates)} source(s) failed")
        self._update(is_loading=False, error=AudioUnavailable().message)
        return False

    # ── Transport ─────────────────────────────────────────────────────────────

    async def play(self) -> bool:
        if self._closed:
            return False
        intent = self._new_intent()

        if self._state.is_paused and self._verses:
            # Play during the silence between verses skips the rest of it
            self._timer.cancel()
            started = self._begin_advance()
            if started is None:
                return False
            return await self._finish_advance(*started, intent)

        try:
            self._check_playable()
        except NoAudioLoaded as e:
            token = self._begin_load()
            self._spawn(self._run_load(token, self._state.current_index))
            self._update(error=e.message)
            return False
        except PlaybackError as e:
            self._update(error=e.message)
            return False

        self._update(error=None)
        try:
            await self._media.play()
        except PlaybackError as e:
            if intent == self._intent_token:
                logger.warning(f"Playback did not start for {self.current_verse}: {e.message}")
                self._update(error=e.message)
            return False

        if intent != self._intent_token:
            return False
        self._update(is_playing=True, is_paused=False, error=None)
        return True

    def pause(self) -> None:
        if self._closed:
            return
        self._new_intent()
        self._timer.cancel()
        self._media.pause()
        silent = self._state.is_paused
        self._update(is_playing=False, is_paused=False, error=None, current_time=self._media.position)
        if silent:
            self._reannounce_current()

    def stop(self) -> None:
        if self._closed:
            return
        self._new_intent()
        self._timer.cancel()
        self._media.stop()
        silent = self._state.is_paused
        self._update(is_playing=False, is_paused=False, error=None, current_time=0.0)
        if silent:
            self._reannounce_current()

    async def next_ayah(self) -> bool:
        if not self._verses:
            return False
        index = self._state.current_index
        if index >= len(self._verses) - 1:
            # Nothing after the last verse: reload it
            return await self.load_verse(index)
        return await self._move_to(index + 1)

    async def previous_ayah(self) -> bool:
        if not self._verses or self._state.current_index == 0:
            return False
        return await self._move_to(self._state.current_index - 1)

    async def skip_to_ayah(self, index: int) -> bool:
        if not 0 <= index < len(self._verses):
            return False
        return await self._move_to(index)

    def seek(self, position: float) -> float:
        if self._closed or not self._media.is_loaded:
            return self._state.current_time
        position = self._media.seek(position)
        self._update(current_time=position, error=None)
        return position

    def rewind(self) -> float:
        return self.seek(self._state.current_time - settings.SEEK_STEP_SECONDS)

    def forward(self) -> float:
        return self.seek(self._state.current_time + settings.SEEK_STEP_SECONDS)

    async def repeat_current(self) -> bool:
        if self._closed:
            return False
        if self._state.is_paused:
            # Stay on the verse that just ended instead of advancing
            self._new_intent()
            self._timer.cancel()
            self._update(is_paused=False)
            self._reannounce_current()
        if self._media.is_loaded:
            self.seek(0.0)
        return await self.play()

    async def repeat(self) -> bool:
        """With auto-repeat on and the last verse reached, run the range again from the top."""
        if not self.auto_repeat or not self._verses:
            return False
        if self._state.current_index != len(self._verses) - 1:
            return False
        logger.info(f"Repeating range of {len(self._verses)} verses")
        self._update(session_completed=False)
        if not await self._move_to(0):
            return False
        return await self.play()

    def close(self) -> None:
        """Tear down: cancel the timer and background work, release the media handle."""
        if self._closed:
            return
        self._closed = True
        self._new_intent()
        self._load_token += 1
        self._timer.cancel()
        for task in list(self._tasks):
            task.cancel()
        self._media.release()

    # ── Media notifications ───────────────────────────────────────────────────

    def _on_media_time(self, position: float) -> None:
        self._update(current_time=position)

    def _on_media_metadata(self, duration: float) -> None:
        self._update(duration=duration)

    def _on_media_ended(self) -> None:
        state = self._state
        if self._closed or not self._verses:
            return

        if state.current_index < len(self._verses) - 1:
            upcoming = state.current_index + 1
            self._update(is_playing=False, is_paused=True, current_time=state.duration)
            # Tell the caller now so the next verse can be shown during the silence
            self._notify(self.on_verse_changed, upcoming)
            self._timer.schedule(self.pause_duration, self._on_pause_elapsed)
            logger.debug(f"Verse {state.current_index} ended, next in {self.pause_duration}s")
            return

        first_completion = not state.session_completed
        self._update(
            is_playing=False, is_paused=False, current_time=state.duration, session_completed=True,
        )
        if first_completion:
            logger.info(f"Session complete: {len(self._verses)} verses in {self.clock.elapsed()}s")
            self._notify(self.on_session_complete)

    def _on_pause_elapsed(self) -> None:
        # Everything is read from the current state, not from when the timer was set
        if self._closed or not self._state.is_paused:
            return
        started = self._begin_advance()
        if started is not None:
            self._spawn(self._finish_advance(*started, self._intent_token))

    def _begin_advance(self) -> tuple[int, int] | None:
        upcoming = self._state.current_index + 1
        if upcoming >= len(self._verses):
            self._update(is_paused=False)
            return None
        return self._begin_load(current_index=upcoming), upcoming

    async def _finish_advance(self, token: int, index: int, intent: int) -> bool:
        if not await self._run_load(token, index):
            return False
        if intent != self._intent_token:
            return False
        return await self.play()

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _move_to(self, index: int) -> bool:
        if self._closed:
            return False
        self._new_intent()
        self._timer.cancel()
        self._media.pause()
        self._update(
            current_index=index, is_playing=False, is_paused=False, current_time=0.0,
            session_completed=False,
        )
        self._notify(self.on_verse_changed, index)
        return await self.load_verse(index)

    def _reannounce_current(self) -> None:
        # The upcoming verse was announced when the silence began
        self._notify(self.on_verse_changed, self._state.current_index)

    def _check_playable(self) -> None:
        if not self._verses:
            raise EmptySequence()
        if self._state.is_loading:
            raise StillLoading()
        if not self._media.is_loaded:
            raise NoAudioLoaded()

    def _new_intent(self) -> int:
        self._intent_token += 1
        return self._intent_token

    def _update(self, **changes) -> None:
        self._commit(replace(self._state, **changes))

    def _commit(self, state: PlaybackState) -> None:
        self._state = state
        self._notify(self.on_state_change, state)

    def _notify(self, callback: Callable | None, *args) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
        except Exception:
            logger.error(f"Playback callback {callback!r} failed", exc_info=True)
            return
        if inspect.isawaitable(result):
            self._spawn(result)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background playback task failed", exc_info=exc)
