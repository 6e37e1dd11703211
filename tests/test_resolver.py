import asyncio
import threading
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from station_monitor.db import crud
from station_monitor.services.lookup_sources import LookupSource, CatalogSource
from station_monitor.services.resolver import StopResolver, pick_candidate
from station_monitor.services.station_records import StationRecord


class FakeSource(LookupSource):
    """In-memory lookup source that records its calls"""

    name = "fake"

    def __init__(self, results=None, details=None, supports_detail=True, error=None):
        self.results = results or {}
        self.details = details or {}
        self.supports_detail = supports_detail
        self.error = error
        self.search_calls = []
        self.detail_calls = []

    async def search(self, keyword, size):
        self.search_calls.append((keyword, size))
        if self.error:
            raise self.error
        return self.results.get(keyword, [])

    async def get_detail(self, code):
        self.detail_calls.append(code)
        return self.details.get(code)


@pytest.mark.parametrize("keyword", ["", "   ", None])
async def test_empty_keyword_makes_no_calls(keyword):
    source = FakeSource()
    resolver = StopResolver([source])
    assert await resolver.resolve(keyword) is None
    assert source.search_calls == []


async def test_exact_name_match_preferred_over_first_result():
    source = FakeSource(results={"해운대 관측소": [
        {"stationName": "해운대 관측소 지점", "coords": [35.17, 129.17]},
        {"stationName": "해운대 관측소", "coords": [35.1631, 129.1635], "codeNumber": "2201640"},
    ]})
    result = await StopResolver([source]).resolve("  해운대 관측소 ")
    assert result.matched_name == "해운대 관측소"
    assert result.coords == (35.1631, 129.1635)
    assert result.code == "2201640"
    assert result.source == "fake"


async def test_first_result_used_without_exact_match():
    source = FakeSource(results={"해운대": [
        {"stationName": "해운대 관측소 지점", "coords": [35.17, 129.17]},
        {"stationName": "해운대 관측소", "coords": [35.1631, 129.1635]},
    ]})
    result = await StopResolver([source]).resolve("해운대")
    assert result.matched_name == "해운대 관측소 지점"


async def test_search_is_bounded_by_result_size():
    source = FakeSource()
    await StopResolver([source], result_size=5).resolve("구포")
    assert source.search_calls == [("구포", 5)]


async def test_longitude_first_coordinates_are_swapped():
    source = FakeSource(results={"부산": [{"stationName": "부산", "coords": [129.0756, 35.1796]}]})
    result = await StopResolver([source]).resolve("부산")
    assert result.coords == (35.1796, 129.0756)


async def test_missing_coordinates_trigger_one_detail_fetch():
    source = FakeSource(
        results={"구포": [{"stationName": "구포 관측소", "codeNumber": "2201110"}]},
        details={"2201110": {"stationName": "구포 관측소", "latitude": "35.21", "longitude": "128.997"}}
    )
    result = await StopResolver([source]).resolve("구포")
    assert result.coords == (35.21, 128.997)
    assert source.detail_calls == ["2201110"]


async def test_detail_without_coordinates_is_no_match():
    source = FakeSource(
        results={"구포": [
            {"stationName": "구포 관측소", "codeNumber": "2201110"},
            {"stationName": "구포 관측소 2", "coords": [35.2, 129.0]},
        ]},
        details={"2201110": {"stationName": "구포 관측소"}}
    )
    # No fallback to the second candidate
    assert await StopResolver([source]).resolve("구포") is None
    assert source.detail_calls == ["2201110"]


async def test_no_detail_fetch_when_unsupported():
    source = FakeSource(
        results={"구포": [{"stationName": "구포 관측소", "codeNumber": "2201110"}]},
        supports_detail=False
    )
    assert await StopResolver([source]).resolve("구포") is None
    assert source.detail_calls == []


async def test_transport_failure_is_no_match_and_not_cached():
    source = FakeSource(error=httpx.ConnectError("connection refused"))
    resolver = StopResolver([source], cache_ttl=300)
    assert await resolver.resolve("구포") is None
    assert await resolver.resolve("구포") is None
    assert len(source.search_calls) == 2


async def test_matches_and_definite_misses_are_cached():
    source = FakeSource(results={"부산": [{"stationName": "부산", "coords": [35.1, 129.0]}]})
    resolver = StopResolver([source], cache_ttl=300)
    first = await resolver.resolve("부산")
    second = await resolver.resolve(" 부산 ")
    assert first == second
    assert await resolver.resolve("없는곳") is None
    assert await resolver.resolve("없는곳") is None
    assert len(source.search_calls) == 2

    resolver.clear_cache()
    await resolver.resolve("부산")
    assert len(source.search_calls) == 3


async def test_sources_are_tried_in_order():
    failing = FakeSource(error=RuntimeError("boom"))
    empty = FakeSource()
    hit = FakeSource(results={"부산": [{"place_name": "부산역", "x": 129.04, "y": 35.11}]})
    hit.name = "place-search"
    result = await StopResolver([failing, empty, hit]).resolve("부산")
    assert result.matched_name == "부산역"
    assert result.source == "place-search"


async def test_catalog_source(session_factory, stations):
    resolver = StopResolver([CatalogSource(session_factory)], cache_ttl=0)
    result = await resolver.resolve("해운대 관측소")
    assert result.matched_name == "해운대 관측소"
    assert result.code == "2201640"
    assert result.source == "catalog"
    assert await resolver.resolve("좌표없음 관측소") is None


def test_pick_candidate_is_case_insensitive():
    candidates = [StationRecord(name="Gupo Station"), StationRecord(name="GUPO")]
    assert pick_candidate("gupo", candidates).name == "GUPO"


async def test_cache_is_bounded_by_size():
    source = FakeSource()
    resolver = StopResolver([source], cache_ttl=300, cache_size=100)
    for i in range(1000):
        assert await resolver.resolve(f"없는곳 {i}") is None
    assert len(resolver._cache) == 100

    # Oldest entries are evicted first
    await resolver.resolve("없는곳 999")
    await resolver.resolve("없는곳 0")
    assert len(source.search_calls) == 1001


async def test_expired_entries_are_swept_on_write():
    source = FakeSource()
    resolver = StopResolver([source], cache_ttl=300)
    await resolver.resolve("구포")
    await resolver.resolve("해운대")
    expired_at = datetime.now(timezone.utc) - timedelta(seconds=600)
    resolver._cache = {key: (value, expired_at) for key, (value, _) in resolver._cache.items()}

    await resolver.resolve("수영")
    assert list(resolver._cache) == ["수영"]


@pytest.mark.parametrize("keyword", ["%", "_", "해운대%", "\\"])
async def test_catalog_wildcards_match_literally(session_factory, stations, keyword):
    resolver = StopResolver([CatalogSource(session_factory)], cache_ttl=0)
    assert await resolver.resolve(keyword) is None


async def test_catalog_queries_run_off_the_event_loop(monkeypatch, session_factory, stations):
    threads = []
    search = crud.search_stations_by_name

    def recording_search(db, keyword, limit=5):
        threads.append(threading.get_ident())
        return search(db, keyword, limit=limit)

    monkeypatch.setattr(crud, "search_stations_by_name", recording_search)
    resolver = StopResolver([CatalogSource(session_factory)], cache_ttl=0)
    results = await asyncio.gather(
        resolver.resolve("해운대 관측소"),
        resolver.resolve("구포 관측소"),
        resolver.resolve("없는 관측소")
    )
    assert [r.matched_name if r else None for r in results] == ["해운대 관측소", "구포 관측소", None]
    assert len(threads) == 3
    assert threading.get_ident() not in threads
