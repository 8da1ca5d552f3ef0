"""Text lookups and the verse catalog against a mocked HTTP transport."""

import httpx
import pytest

from services import verse_catalog
from services.quran_text import get_ayah_arabic_text, get_ayah_translation, get_surah_texts

SURAH_1 = {
    "ar.alafasy": ["بِسْمِ اللَّهِ", "الْحَمْدُ لِلَّهِ", "الرَّحْمَٰنِ الرَّحِيمِ"],
    "en.sahih": ["In the name of Allah", "All praise is due to Allah", "The Entirely Merciful"],
}


def cloud_surah(edition):
    return {
        "code": 200,
        "data": {
            "ayahs": [
                {"numberInSurah": i + 1, "text": text}
                for i, text in enumerate(SURAH_1[edition])
            ]
        },
    }


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestAyahLookups:
    @pytest.mark.asyncio
    async def test_translation_from_primary_api(self):
        def handler(request):
            assert request.url.host == "quranapi.pages.dev"
            return httpx.Response(200, json={"text": "In the name of Allah"})

        async with make_client(handler) as client:
            assert await get_ayah_translation(client, 1, 1) == "In the name of Allah"

    @pytest.mark.asyncio
    async def test_translation_falls_back_to_alquran_cloud(self):
        hosts = []

        def handler(request):
            hosts.append(request.url.host)
            if request.url.host == "quranapi.pages.dev":
                return httpx.Response(404)
            return httpx.Response(200, json={"code": 200, "data": {"text": "All praise"}})

        async with make_client(handler) as client:
            assert await get_ayah_translation(client, 1, 2) == "All praise"
        assert hosts == ["quranapi.pages.dev", "api.alquran.cloud"]

    @pytest.mark.asyncio
    async def test_translation_failure_is_empty(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        async with make_client(handler) as client:
            assert await get_ayah_translation(client, 1, 1) == ""

    @pytest.mark.asyncio
    async def test_arabic_text(self):
        def handler(request):
            assert request.url.path.endswith("/ar.alafasy")
            return httpx.Response(200, json={"code": 200, "data": {"text": "بِسْمِ اللَّهِ"}})

        async with make_client(handler) as client:
            assert await get_ayah_arabic_text(client, 1, 1) == "بِسْمِ اللَّهِ"

    @pytest.mark.asyncio
    async def test_arabic_text_not_json(self):
        def handler(request):
            return httpx.Response(502, text="Bad gateway")

        async with make_client(handler) as client:
            assert await get_ayah_arabic_text(client, 1, 1) == ""


class TestSurahTexts:
    @pytest.mark.asyncio
    async def test_pairs_arabic_with_translation(self):
        def handler(request):
            return httpx.Response(200, json=cloud_surah(request.url.path.rsplit("/", 1)[-1]))

        async with make_client(handler) as client:
            rows = await get_surah_texts(client, 1)

        assert rows[0] == (1, "بِسْمِ اللَّهِ", "In the name of Allah")
        assert len(rows) == 3

    @pytest.mark.asyncio
    async def test_missing_edition_gives_nothing(self):
        def handler(request):
            if request.url.path.endswith("en.sahih"):
                return httpx.Response(200, json={"code": 404, "data": None})
            return httpx.Response(200, json=cloud_surah("ar.alafasy"))

        async with make_client(handler) as client:
            assert await get_surah_texts(client, 1) == []


class TestVerseCatalog:
    @pytest.mark.asyncio
    async def test_range_gets_text(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200, json=cloud_surah(request.url.path.rsplit("/", 1)[-1]))

        async with make_client(handler) as client:
            verses = await verse_catalog.get_verse_range(1, 2, 3, client=client)
            again = await verse_catalog.get_verse_range(1, 1, 1, client=client)

        assert [v.number for v in verses] == [2, 3]
        assert verses[0].translation == "All praise is due to Allah"
        assert again[0].text == "بِسْمِ اللَّهِ"
        # second range served from the cache
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_range_without_text_when_offline(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        async with make_client(handler) as client:
            verses = await verse_catalog.get_verse_range(1, 1, 2, client=client)

        assert [v.number for v in verses] == [1, 2]
        assert verses[0].text == ""

    @pytest.mark.asyncio
    async def test_enrich_translation_keeps_existing_on_failure(self):
        def handler(request):
            return httpx.Response(500, json={})

        verse = verse_catalog.get_verses_in_range(1, 1, 1)[0]
        async with make_client(handler) as client:
            assert await verse_catalog.enrich_translation(verse, client) == verse

    @pytest.mark.asyncio
    async def test_single_verse_from_surah_text(self):
        def handler(request):
            return httpx.Response(200, json=cloud_surah(request.url.path.rsplit("/", 1)[-1]))

        async with make_client(handler) as client:
            verse = await verse_catalog.get_verse(1, 3, client=client)

        assert verse.number == 3
        assert verse.translation == "The Entirely Merciful"

    @pytest.mark.asyncio
    async def test_single_verse_falls_back_to_ayah_lookups(self):
        def handler(request):
            if request.url.host == "quranapi.pages.dev":
                return httpx.Response(200, json={"text": "All praise is due to Allah"})
            if "/surah/" in request.url.path:
                return httpx.Response(500, json={})
            return httpx.Response(200, json={"code": 200, "data": {"text": "الْحَمْدُ لِلَّهِ"}})

        async with make_client(handler) as client:
            verse = await verse_catalog.get_verse(1, 2, client=client)

        assert verse.text == "الْحَمْدُ لِلَّهِ"
        assert verse.translation == "All praise is due to Allah"


class TestSearch:
    @pytest.fixture
    def cached_text(self):
        verse_catalog._SURAH_TEXT_CACHE[1] = {
            1: ("", "the merciful"),
            2: ("merciful", ""),
            3: ("", "nothing here"),
        }
        verse_catalog._SURAH_TEXT_CACHE[2] = {
            5: ("", "Merciful and merciful"),
        }

    def test_arabic_matches_count_double(self):
        assert verse_catalog.relevance("رحمة", "mercy", ["رحمة"]) == 2
        assert verse_catalog.relevance("", "Mercy and mercy", ["mercy"]) == 2
        assert verse_catalog.relevance("abc", "abc", ["abc", "zzz"]) == 3

    @pytest.mark.asyncio
    async def test_best_match_first(self, cached_text):
        results = await verse_catalog.search_verses("merciful")

        assert [(str(v), score) for v, score in results] == [("1:2", 2), ("2:5", 2), ("1:1", 1)]

    @pytest.mark.asyncio
    async def test_scoped_to_one_surah(self, cached_text):
        results = await verse_catalog.search_verses("merciful", surah_id=2)

        assert [str(v) for v, _ in results] == ["2:5"]

    @pytest.mark.asyncio
    async def test_short_query_finds_nothing(self, cached_text):
        assert await verse_catalog.search_verses("me") == []
        assert await verse_catalog.search_verses("   ") == []

    @pytest.mark.asyncio
    async def test_result_limit(self, cached_text):
        assert len(await verse_catalog.search_verses("merciful", limit=1)) == 1
