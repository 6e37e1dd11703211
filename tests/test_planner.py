import asyncio
from urllib.parse import unquote

import pytest
from fastapi import HTTPException

from station_monitor.services.geocoding import ReverseGeocoder
from station_monitor.services.planner import (
    END_ID,
    START_ID,
    RoutePlanner,
    build_navigation_link,
    build_stops,
)
from station_monitor.services.resolver import ResolutionResult
from station_monitor.services.sequencer import ResolutionStatus, SequencerOutcome


class GatedResolver:
    """Resolver whose answers are released by the test"""

    def __init__(self, answers):
        self.answers = answers
        self.calls = []
        self.gates = {}

    def gate(self, keyword):
        return self.gates.setdefault(keyword, asyncio.Event())

    async def resolve(self, keyword):
        self.calls.append(keyword)
        await self.gate(keyword).wait()
        coords = self.answers.get(keyword)
        if coords is None:
            return None
        return ResolutionResult(matched_name=f"{keyword} 관측소", coords=coords, source="test")


class InstantResolver(GatedResolver):
    async def resolve(self, keyword):
        self.gate(keyword).set()
        return await super().resolve(keyword)


class FixedGeocoder(ReverseGeocoder):
    def __init__(self, address):
        super().__init__(api_key="")
        self.address = address

    async def reverse_geocode(self, lat, lng):
        return self.address


def make_planner(resolver, address=None, max_stops=7):
    return RoutePlanner(resolver, FixedGeocoder(address), max_stops=max_stops)


# ============ Stop list construction ============

def test_empty_session_has_start_and_end():
    stops = build_stops([])
    assert [s.id for s in stops] == [START_ID, END_ID]


def test_station_names_fill_waypoints_and_end():
    stops = build_stops([" 구포 ", "", "해운대", "수영"])
    assert stops[0].id == START_ID
    assert stops[0].keyword == ""
    assert [s.keyword for s in stops[1:]] == ["구포", "해운대", "수영"]
    assert stops[-1].id == END_ID


def test_station_names_are_limited():
    stops = build_stops([f"st{i}" for i in range(10)], max_stops=7)
    assert len(stops) == 7
    assert stops[-1].keyword == "st5"


def test_known_station_meta_arrives_resolved():
    stops = build_stops(["구포", "해운대"], station_meta=[{"name": "해운대", "coords": [129.16, 35.16]}])
    assert not stops[1].is_resolved
    assert stops[2].position == (35.16, 129.16)
    assert stops[2].status == ResolutionStatus.OK


# ============ Resolution ============

async def test_stale_resolution_is_discarded():
    resolver = GatedResolver({"구포": (35.21, 128.99), "해운대": (35.16, 129.16)})
    planner = make_planner(resolver)
    session = planner.create_session()
    session.update_keyword(END_ID, "구포")

    tasks = planner.start_resolution(session)
    await asyncio.sleep(0)
    session.update_keyword(END_ID, "해운대")
    resolver.gate("구포").set()
    await asyncio.gather(*tasks)

    end = session.get_stop(END_ID)
    assert end.keyword == "해운대"
    assert end.position is None

    resolver.gate("해운대").set()
    await planner.resolve_pending(session)
    end = session.get_stop(END_ID)
    assert end.resolved_name == "해운대 관측소"
    assert end.position == (35.16, 129.16)


@pytest.mark.parametrize("late_answer", [None, (35.5, 129.5)])
async def test_picked_suggestion_wins_over_late_resolution(late_answer):
    resolver = GatedResolver({"구포 관측소": late_answer})
    planner = make_planner(resolver)
    session = planner.create_session()
    session.update_keyword(END_ID, "구포 관측소")

    tasks = planner.start_resolution(session)
    await asyncio.sleep(0)
    session.apply_suggestion(END_ID, "구포 관측소", (35.21, 128.997))
    resolver.gate("구포 관측소").set()
    await asyncio.gather(*tasks)

    end = session.get_stop(END_ID)
    assert end.position == (35.21, 128.997)
    assert end.resolved_name == "구포 관측소"
    assert end.status == ResolutionStatus.OK


async def test_current_location_wins_over_late_resolution():
    resolver = GatedResolver({})
    planner = make_planner(resolver)
    session = planner.create_session()
    session.update_keyword(START_ID, "현재 위치")

    tasks = planner.start_resolution(session)
    await asyncio.sleep(0)
    await planner.set_current_location(session, 35.1, 129.0)
    resolver.gate("현재 위치").set()
    await asyncio.gather(*tasks)

    start = session.get_stop(START_ID)
    assert start.position == (35.1, 129.0)
    assert start.status == ResolutionStatus.OK


async def test_in_flight_stop_is_not_resolved_twice():
    resolver = GatedResolver({"구포": (35.21, 128.99)})
    planner = make_planner(resolver)
    session = planner.create_session()
    session.update_keyword(END_ID, "구포")

    first = planner.start_resolution(session)
    second = planner.start_resolution(session)
    assert len(first) == 1
    assert second == []
    assert session.is_resolving(END_ID)
    assert session.get_stop(END_ID).status == ResolutionStatus.LOADING

    resolver.gate("구포").set()
    await asyncio.gather(*first)
    assert resolver.calls == ["구포"]
    assert not session.is_resolving(END_ID)


async def test_no_match_is_not_retried_until_keyword_changes():
    resolver = InstantResolver({})
    planner = make_planner(resolver)
    session = planner.create_session()
    session.update_keyword(END_ID, "없는곳")

    await planner.resolve_pending(session)
    await planner.resolve_pending(session)
    assert session.get_stop(END_ID).status == ResolutionStatus.NO_MATCH
    assert resolver.calls == ["없는곳"]

    session.update_keyword(END_ID, "없는곳2")
    await planner.resolve_pending(session)
    assert resolver.calls == ["없는곳", "없는곳2"]


async def test_stops_resolve_concurrently():
    resolver = InstantResolver({"a": (35.0, 129.0), "b": (35.1, 129.1)})
    planner = make_planner(resolver)
    session = planner.create_session(["a", "b"])
    await planner.resolve_pending(session)
    assert [s.is_resolved for s in session.stops] == [False, True, True]


async def test_current_location_uses_reverse_geocoded_address():
    planner = make_planner(InstantResolver({}), address="부산광역시 해운대구 우동")
    session = planner.create_session()
    await planner.set_current_location(session, 35.16, 129.16)
    start = session.stops[0]
    assert start.resolved_name == "부산광역시 해운대구 우동"
    assert start.position == (35.16, 129.16)
    assert session.message == "현재 위치를 출발지로 설정했습니다."


async def test_current_location_falls_back_to_generic_label():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    await planner.set_current_location(session, 35.16, 129.16)
    assert session.stops[0].keyword == "현재 위치"


# ============ Editing ============

def test_add_stop_inserts_before_end_and_respects_max():
    planner = make_planner(InstantResolver({}), max_stops=4)
    session = planner.create_session()
    first = session.add_stop()
    second = session.add_stop()
    assert [s.id for s in session.stops] == [START_ID, first.id, second.id, END_ID]

    with pytest.raises(HTTPException) as exc_info:
        session.add_stop()
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "최대 4개까지 가능합니다."


def test_start_and_end_cannot_be_removed_or_moved():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    middle = session.add_stop()
    for stop_id in (START_ID, END_ID):
        with pytest.raises(HTTPException) as exc_info:
            session.remove_stop(stop_id)
        assert exc_info.value.status_code == 400
    with pytest.raises(HTTPException):
        session.move_stop(middle.id, END_ID)

    session.remove_stop(middle.id)
    assert [s.id for s in session.stops] == [START_ID, END_ID]


def test_move_waypoint():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    a, b, c = session.add_stop(), session.add_stop(), session.add_stop()
    session.move_stop(c.id, a.id)
    assert [s.id for s in session.stops] == [START_ID, c.id, a.id, b.id, END_ID]


def test_unknown_stop_is_404():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    with pytest.raises(HTTPException) as exc_info:
        session.update_keyword("nope", "구포")
    assert exc_info.value.status_code == 404


def test_apply_suggestion_sets_keyword_and_position():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    stop = session.apply_suggestion(END_ID, "구포 관측소", (35.21, 128.99))
    assert stop.keyword == "구포 관측소"
    assert stop.resolved_name == "구포 관측소"
    assert stop.position == (35.21, 128.99)


# ============ Sequencing & link ============

async def test_optimize_reorders_session():
    resolver = InstantResolver({"far": (0, 5), "near": (0, 1), "mid": (0, 2)})
    planner = make_planner(resolver)
    session = planner.create_session(["far", "near", "mid"])
    session.set_start_location("출발", (0, 0))
    await planner.resolve_pending(session)

    result = planner.optimize(session)
    assert result.outcome == SequencerOutcome.OPTIMIZED
    assert [s.keyword for s in session.stops] == ["출발", "near", "mid", "far"]
    assert session.message == "최적 경로를 계산해 재배열했습니다."


def test_optimize_without_apply_keeps_order():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    session.set_start_location("출발", (0, 0))
    waypoint = session.add_stop()
    session.apply_suggestion(waypoint.id, "far", (0, 5))
    session.apply_suggestion(END_ID, "near", (0, 1))

    result = planner.optimize(session, apply=False)
    assert [s.id for s in result.ordered_stops] == [START_ID, END_ID, waypoint.id]
    assert [s.id for s in session.stops] == [START_ID, waypoint.id, END_ID]


def test_optimize_guard_leaves_session_untouched():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    result = planner.optimize(session)
    assert result.outcome == SequencerOutcome.START_UNRESOLVED
    assert session.message == "출발지 위치를 먼저 확정해주세요."


def test_navigation_link():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    session.set_start_location("현재 위치", (35.16, 129.16))
    waypoint = session.add_stop()
    session.update_keyword(waypoint.id, "미확정")
    session.apply_suggestion(END_ID, "구포 관측소", (35.21, 128.99))

    url = build_navigation_link(session.stops)
    assert url.startswith("https://map.kakao.com/link/by/car/")
    assert unquote(url) == "https://map.kakao.com/link/by/car/현재 위치,35.16,129.16/구포 관측소,35.21,128.99"


def test_navigation_link_requires_resolved_start_and_end():
    planner = make_planner(InstantResolver({}))
    session = planner.create_session()
    session.apply_suggestion(END_ID, "구포 관측소", (35.21, 128.99))
    with pytest.raises(HTTPException) as exc_info:
        build_navigation_link(session.stops)
    assert exc_info.value.detail == "출발지/도착지 위치를 먼저 확정해주세요."


def test_unknown_session_is_404():
    planner = make_planner(InstantResolver({}))
    with pytest.raises(HTTPException) as exc_info:
        planner.get_session("missing")
    assert exc_info.value.status_code == 404
