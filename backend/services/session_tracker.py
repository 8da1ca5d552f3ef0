"""
Record listening sessions in the external CRUD service.

The tracker turns playback events into persistence calls:
create a session when listening starts, remember the last verse as a
preference while it progresses, and close the session (completed or partial).
Every call is best-effort: failures are logged, never raised.
"""
import logging
from typing import Protocol
import httpx
from config import get_settings
from utils.quran_data import Verse, get_surah_info

logger = logging.getLogger(__name__)
settings = get_settings()


class SessionStore(Protocol):
    async def create_session(self, payload: dict) -> int | None: ...
    async def update_session(self, session_id: int, payload: dict) -> bool: ...
    async def update_preferences(self, payload: dict) -> bool: ...


class HttpSessionStore:
    """Talks to the session/preferences endpoints of the persistence API."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=settings.PERSISTENCE_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    async def create_session(self, payload: dict) -> int | None:
        try:
            resp = await self._client.post("/sessions", json=payload)
            resp.raise_for_status()
            return resp.json().get("id")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not create listening session: {e}")
            return None

    async def update_session(self, session_id: int, payload: dict) -> bool:
        try:
            resp = await self._client.put(f"/sessions/{session_id}", json=payload)
            resp.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Could not update listening session {session_id}: {e}")
            return False

    async def update_preferences(self, payload: dict) -> bool:
        try:
            resp = await self._client.put("/preferences", json=payload)
            resp.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Could not update preferences: {e}")
            return False

    async def aclose(self) -> None:
        await self._client.aclose()


_store: HttpSessionStore | None = None


def get_session_store() -> HttpSessionStore:
    global _store
    if _store is None:
        _store = HttpSessionStore()
    return _store


async def close_session_store() -> None:
    global _store
    if _store:
        await _store.aclose()
        _store = None


class SessionTracker:
    def __init__(
        self,
        store: SessionStore,
        verses: list[Verse],
        *,
        pause_duration: int,
        reciter: str | None = None,
    ) -> None:
        self._store = store
        self._verses = verses
        self.pause_duration = pause_duration
        self.reciter = reciter or settings.PRIMARY_RECITER
        self.session_id: int | None = None
        self.finished = False

    async def begin(self) -> int | None:
        if not self._verses:
            return None
        first, last = self._verses[0], self._verses[-1]
        self.session_id = await self._store.create_session({
            "surahId": first.surah_id,
            "surahName": get_surah_info(first.surah_id).name,
            "startAyah": first.number,
            "endAyah": last.number,
            "pauseDuration": self.pause_duration,
            "reciterName": self.reciter,
        })
        if self.session_id is not None:
            logger.info(f"Listening session {self.session_id} started for {first}-{last.number}")
        return self.session_id

    async def verse_changed(self, index: int) -> None:
        if not 0 <= index < len(self._verses):
            return
        verse = self._verses[index]
        await self._store.update_preferences({"lastSurah": verse.surah_id, "lastAyah": verse.number})

    async def complete(self, elapsed_seconds: int) -> None:
        await self._finish(len(self._verses), elapsed_seconds, completed=True)

    async def abandon(self, completed_ayahs: int, elapsed_seconds: int) -> None:
        await self._finish(completed_ayahs, elapsed_seconds, completed=False)

    async def _finish(self, completed_ayahs: int, elapsed_seconds: int, completed: bool) -> None:
        if self.session_id is None or self.finished:
            return
        self.finished = True
        ok = await self._store.update_session(self.session_id, {
            "completedAyahs": completed_ayahs,
            "sessionTime": elapsed_seconds,
            "isCompleted": completed,
        })
        if ok:
            state = "completed" if completed else "closed"
            logger.info(
                f"Listening session {self.session_id} {state}: "
                f"{completed_ayahs} ayahs in {elapsed_seconds}s"
            )
