"""Shared fixtures for playback tests."""

import asyncio
import sys
from pathlib import Path

import pytest

# Add backend to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from services.audio.controller import PlaybackController  # noqa: E402
from services.audio.media_source import MediaSource  # noqa: E402
from services.audio.session_clock import SessionClock  # noqa: E402
from services.verse_catalog import clear_cache  # noqa: E402
from utils.quran_data import Verse  # noqa: E402


class FakeMediaHandle:
    """Stand-in for the browser's <audio> element.

    Commands are recorded in `commands`. With `auto` on, loads and plays are
    answered on the next loop iteration through the bound MediaSource, the
    way the socket notifications would arrive. URLs in `broken` fail to
    decode, and `play_ok`/`play_reason` decide the outcome of play requests.
    """

    def __init__(self):
        self.source: MediaSource | None = None
        self.auto = True
        self.durations: dict[str, float] = {}
        self.default_duration = 6.0
        self.broken: set[str] = set()
        self.play_ok = True
        self.play_reason: str | None = None
        self.commands: list[tuple] = []
        self.loads: list[str] = []

    def load(self, url, load_id):
        self.commands.append(("load", url, load_id))
        self.loads.append(url)
        if not (self.auto and self.source):
            return
        loop = asyncio.get_running_loop()
        if url in self.broken:
            loop.call_soon(self.source.notify_load_error, load_id, "decode error")
        else:
            loop.call_soon(self.source.notify_ready, load_id, self.durations.get(url, self.default_duration))

    def play(self, play_id):
        self.commands.append(("play", play_id))
        if self.auto and self.source:
            asyncio.get_running_loop().call_soon(
                self.source.notify_play_result, play_id, self.play_ok, self.play_reason
            )

    def pause(self):
        self.commands.append(("pause",))

    def seek(self, position):
        self.commands.append(("seek", position))

    def set_volume(self, volume):
        self.commands.append(("volume", volume))

    def release(self):
        self.commands.append(("release",))

    def names(self) -> list[str]:
        return [c[0] for c in self.commands]


class ManualTimer:
    """Pause timer that only fires when the test says so."""

    def __init__(self):
        self.delay: float | None = None
        self.scheduled: list[float] = []
        self._callback = None

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def schedule(self, delay, callback):
        self.delay = delay
        self.scheduled.append(delay)
        self._callback = callback

    def cancel(self):
        self._callback = None

    def fire(self):
        callback, self._callback = self._callback, None
        if callback:
            callback()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def fake_resolver(surah_id, ayah, reciter=None):
    return [f"primary/{surah_id}/{ayah}", f"fallback/{surah_id}/{ayah}"]


async def settle(rounds: int = 50) -> None:
    """Let spawned tasks and call_soon answers run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def verses():
    return [Verse(surah_id=1, number=n) for n in (1, 2, 3)]


@pytest.fixture
def handle():
    return FakeMediaHandle()


@pytest.fixture
def media(handle):
    source = MediaSource(handle, load_timeout=0.2, volume=0.8)
    handle.source = source
    return source


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def events():
    return {"verse_changed": [], "completed": 0, "states": []}


@pytest.fixture
def controller(media, verses, timer, fake_clock, events):
    def on_complete():
        events["completed"] += 1

    return PlaybackController(
        media,
        verses,
        pause_duration=5,
        timer=timer,
        clock=SessionClock(fake_clock),
        resolver=fake_resolver,
        on_verse_changed=events["verse_changed"].append,
        on_session_complete=on_complete,
        on_state_change=events["states"].append,
    )


@pytest.fixture(autouse=True)
def empty_text_cache():
    clear_cache()
    yield
    clear_cache()
