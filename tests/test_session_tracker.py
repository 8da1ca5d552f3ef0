import json

import httpx
import pytest

from services.session_tracker import HttpSessionStore, SessionTracker
from utils.quran_data import get_verses_in_range


class RecordingStore:
    def __init__(self, session_id=7, ok=True):
        self.session_id = session_id
        self.ok = ok
        self.created = []
        self.updated = []
        self.preferences = []

    async def create_session(self, payload):
        self.created.append(payload)
        return self.session_id

    async def update_session(self, session_id, payload):
        self.updated.append((session_id, payload))
        return self.ok

    async def update_preferences(self, payload):
        self.preferences.append(payload)
        return self.ok


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def tracker(store):
    return SessionTracker(store, get_verses_in_range(1, 2, 4), pause_duration=5)


class TestSessionTracker:
    @pytest.mark.asyncio
    async def test_begin_records_range(self, tracker, store):
        assert await tracker.begin() == 7
        assert store.created == [{
            "surahId": 1,
            "surahName": "Al-Fatihah",
            "startAyah": 2,
            "endAyah": 4,
            "pauseDuration": 5,
            "reciterName": "Alafasy_128kbps",
        }]

    @pytest.mark.asyncio
    async def test_verse_change_saves_last_position(self, tracker, store):
        await tracker.verse_changed(1)
        await tracker.verse_changed(9)

        assert store.preferences == [{"lastSurah": 1, "lastAyah": 3}]

    @pytest.mark.asyncio
    async def test_complete_then_abandon_records_once(self, tracker, store):
        await tracker.begin()

        await tracker.complete(120)
        await tracker.abandon(1, 200)

        assert store.updated == [(7, {"completedAyahs": 3, "sessionTime": 120, "isCompleted": True})]

    @pytest.mark.asyncio
    async def test_abandon_records_partial(self, tracker, store):
        await tracker.begin()

        await tracker.abandon(1, 30)

        assert store.updated == [(7, {"completedAyahs": 1, "sessionTime": 30, "isCompleted": False})]

    @pytest.mark.asyncio
    async def test_nothing_recorded_without_session(self, store):
        store.session_id = None
        tracker = SessionTracker(store, get_verses_in_range(1, 1, 1), pause_duration=5)

        assert await tracker.begin() is None
        await tracker.complete(10)

        assert store.updated == []

    @pytest.mark.asyncio
    async def test_empty_range_not_recorded(self, store):
        tracker = SessionTracker(store, [], pause_duration=5)

        assert await tracker.begin() is None
        assert store.created == []


class TestHttpSessionStore:
    @pytest.mark.asyncio
    async def test_create_session(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(201, json={"id": 11})

        client = httpx.AsyncClient(base_url="http://persistence/api", transport=httpx.MockTransport(handler))
        store = HttpSessionStore(client)

        assert await store.create_session({"surahId": 1}) == 11
        assert seen == [("POST", "/api/sessions", {"surahId": 1})]
        await store.aclose()

    @pytest.mark.asyncio
    async def test_server_errors_are_swallowed(self):
        def handler(request):
            return httpx.Response(500)

        client = httpx.AsyncClient(base_url="http://persistence/api", transport=httpx.MockTransport(handler))
        store = HttpSessionStore(client)

        assert await store.create_session({}) is None
        assert await store.update_session(1, {}) is False
        assert await store.update_preferences({}) is False
        await store.aclose()
