import asyncio
import inspect
import logging
from datetime import timedelta
import socketio
from pydantic import ValidationError
from config import get_settings
from schemas.playback import StartSessionRequest, TransportRequest, UpdateSettingsRequest
from services.audio.controller import PlaybackController
from services.audio.media_source import MediaSource
from services.audio.pause_timer import PauseTimer
from services.session_tracker import SessionTracker, get_session_store
from services.verse_catalog import get_verse_range
from utils.time_utils import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


class SocketMediaHandle:
    """
    The <audio> element in the listener's browser, seen as a media handle.

    Commands and state updates for one client go through a single queue so the
    browser receives them in the order they were issued.
    """

    def __init__(self, server: socketio.AsyncServer, sid: str) -> None:
        self._sio = server
        self._sid = sid
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._sender: asyncio.Task | None = None

    def load(self, url: str, load_id: int) -> None:
        self.emit("media_load", {"url": url, "load_id": load_id})

    def play(self, play_id: int) -> None:
        self.emit("media_play", {"play_id": play_id})

    def pause(self) -> None:
        self.emit("media_pause", {})

    def seek(self, position: float) -> None:
        self.emit("media_seek", {"position": position})

    def set_volume(self, volume: float) -> None:
        self.emit("media_volume", {"volume": volume})

    def release(self) -> None:
        self.emit("media_release", {})
        self._outbox.put_nowait(None)

    def emit(self, event: str, data: dict) -> None:
        if self._sender is None:
            self._sender = asyncio.get_running_loop().create_task(self._drain())
        self._outbox.put_nowait((event, data))

    async def _drain(self) -> None:
        while True:
            item = await self._outbox.get()
            if item is None:
                return
            event, data = item
            try:
                await self._sio.emit(event, data, to=self._sid)
            except Exception as e:
                logger.error(f"Emit {event} to {self._sid} failed: {e}")


class ListeningSession:
    """Everything one connected listener plays through: handle, media, controller, tracker."""

    def __init__(self, sid: str, server: socketio.AsyncServer | None = None) -> None:
        self.sid = sid
        self.handle = SocketMediaHandle(server or sio, sid)
        self.media = MediaSource(self.handle)
        self.tracker: SessionTracker | None = None
        self.last_activity = utc_now()
        self._start_lock = asyncio.Lock()
        self.controller = PlaybackController(
            self.media,
            timer=PauseTimer(f"pause_{sid}"),
            on_verse_changed=self._verse_changed,
            on_session_complete=self._session_complete,
            on_state_change=self._state_changed,
        )

    def touch(self) -> None:
        self.last_activity = utc_now()

    async def start(self, request: StartSessionRequest) -> None:
        # Overlapping starts take turns so each replaced tracker gets closed
        async with self._start_lock:
            await self.finish()
            verses = await get_verse_range(request.surah_id, request.start_ayah, request.end_ayah)
            self.controller.reciter = request.reciter
            self.controller.set_pause_duration(request.pause_duration)
            self.controller.set_auto_repeat(request.auto_repeat)
            self.tracker = SessionTracker(
                get_session_store(), verses,
                pause_duration=request.pause_duration,
                reciter=request.reciter,
            )
            await self.tracker.begin()
        logger.info(f"Socket {self.sid} listening to surah {request.surah_id} ({len(verses)} ayahs)")
        await self.controller.set_sequence(verses)

    async def finish(self) -> None:
        """Record a partial session if the current one never completed."""
        if self.tracker:
            await self.tracker.abandon(self.controller.state.current_index, self.controller.clock.elapsed())

    async def close(self) -> None:
        await self.finish()
        self.controller.close()

    def _state_changed(self, _state) -> None:
        self.handle.emit("playback_state", self.controller.view().model_dump())

    async def _verse_changed(self, index: int) -> None:
        self.handle.emit("verse_changed", {"index": index})
        if self.tracker:
            await self.tracker.verse_changed(index)

    async def _session_complete(self) -> None:
        elapsed = self.controller.clock.elapsed()
        self.handle.emit("session_complete", {
            "completed_ayahs": len(self.controller.verses),
            "session_time": elapsed,
        })
        if self.tracker:
            await self.tracker.complete(elapsed)


# Maps session_id → ListeningSession
_sessions: dict[str, ListeningSession] = {}


def get_session(sid: str) -> ListeningSession | None:
    return _sessions.get(sid)


async def _reject(sid: str, message: str) -> None:
    await sio.emit("error", {"message": message}, to=sid)


def _validation_message(e: ValidationError) -> str:
    return "; ".join(err["msg"] for err in e.errors())


# ── Connection lifecycle ──────────────────────────────────────────────────────

@sio.event
async def connect(sid: str, environ, auth=None):
    _sessions[sid] = ListeningSession(sid)
    logger.info(f"Socket connected: {sid}")


@sio.event
async def disconnect(sid: str, reason=None):
    session = _sessions.pop(sid, None)
    if session:
        await session.close()
        logger.info(f"Socket {sid} closed its listening session")


# ── Listener actions ──────────────────────────────────────────────────────────

@sio.event
async def start_session(sid: str, data):
    session = _sessions.get(sid)
    if not session:
        return
    try:
        request = StartSessionRequest.model_validate(data or {})
    except ValidationError as e:
        await _reject(sid, _validation_message(e))
        return
    session.touch()
    await session.start(request)


@sio.event
async def update_settings(sid: str, data):
    session = _sessions.get(sid)
    if not session:
        return
    try:
        request = UpdateSettingsRequest.model_validate(data or {})
    except ValidationError as e:
        await _reject(sid, _validation_message(e))
        return
    session.touch()
    if request.pause_duration is not None:
        session.controller.set_pause_duration(request.pause_duration)
    if request.auto_repeat is not None:
        session.controller.set_auto_repeat(request.auto_repeat)
    session.handle.emit("playback_state", session.controller.view().model_dump())


_TRANSPORT = {
    "play": lambda c, _: c.play(),
    "pause": lambda c, _: c.pause(),
    "stop": lambda c, _: c.stop(),
    "next": lambda c, _: c.next_ayah(),
    "previous": lambda c, _: c.previous_ayah(),
    "rewind": lambda c, _: c.rewind(),
    "forward": lambda c, _: c.forward(),
    "seek": lambda c, v: c.seek(v),
    "skip": lambda c, v: c.skip_to_ayah(int(v)),
    "repeat": lambda c, _: c.repeat(),
    "repeat_current": lambda c, _: c.repeat_current(),
}


@sio.event
async def transport(sid: str, data):
    session = _sessions.get(sid)
    if not session:
        return
    try:
        request = TransportRequest.model_validate(data or {})
    except ValidationError as e:
        await _reject(sid, _validation_message(e))
        return
    session.touch()
    result = _TRANSPORT[request.action](session.controller, request.value)
    if inspect.isawaitable(result):
        await result


# ── Notifications from the browser's <audio> element ──────────────────────────

def _load_id(data) -> int:
    try:
        return int((data or {}).get("load_id", -1))
    except (TypeError, ValueError):
        return -1


@sio.event
async def media_ready(sid: str, data):
    session = _sessions.get(sid)
    if session:
        session.media.notify_ready(_load_id(data), (data or {}).get("duration"))


@sio.event
async def media_error(sid: str, data):
    session = _sessions.get(sid)
    if session:
        session.media.notify_load_error(_load_id(data), (data or {}).get("reason"))


@sio.event
async def media_metadata(sid: str, data):
    session = _sessions.get(sid)
    if session:
        session.media.notify_metadata(_load_id(data), (data or {}).get("duration"))


@sio.event
async def media_time(sid: str, data):
    session = _sessions.get(sid)
    if session:
        session.media.notify_time(_load_id(data), (data or {}).get("position"))


@sio.event
async def media_ended(sid: str, data):
    session = _sessions.get(sid)
    if session:
        session.touch()
        session.media.notify_ended(_load_id(data))


@sio.event
async def media_play_result(sid: str, data):
    session = _sessions.get(sid)
    if not session:
        return
    data = data or {}
    try:
        play_id = int(data.get("play_id", -1))
    except (TypeError, ValueError):
        play_id = -1
    session.media.notify_play_result(play_id, bool(data.get("ok")), data.get("reason"))


# ── Scheduled housekeeping ────────────────────────────────────────────────────

async def expire_idle_sessions_job() -> None:
    """Close listening sessions with no activity for SESSION_IDLE_HOURS."""
    cutoff = utc_now() - timedelta(hours=settings.SESSION_IDLE_HOURS)
    try:
        idle = [sid for sid, s in _sessions.items() if s.last_activity < cutoff]
        for sid in idle:
            session = _sessions.pop(sid, None)
            if session:
                logger.info(f"Expiring idle listening session {sid}")
                await session.close()
                await sio.disconnect(sid)
    except Exception as e:
        logger.error(f"expire_idle_sessions_job failed: {e}", exc_info=True)
