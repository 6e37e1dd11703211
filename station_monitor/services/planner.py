"""
Route-planning sessions.

A session owns one ordered stop list: the first stop is the start, the last is
the end, anything between is a freely reorderable waypoint. Keyword
resolution runs as one asyncio task per stop. Results are written back per
stop id and only if the stop still carries the keyword that was resolved and
has no position yet, so a late answer for an edited or hand-picked stop is
dropped instead of clobbering the edit.

Sessions live in memory and expire; nothing here is persisted.
"""

import asyncio
import itertools
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import quote

from fastapi import HTTPException

from station_monitor.core.config import settings
from station_monitor.core.geo import Coordinate, coerce_coordinate
from station_monitor.core.logger import logger
from station_monitor.services.geocoding import ReverseGeocoder
from station_monitor.services.resolver import ResolutionResult, StopResolver
from station_monitor.services.sequencer import ResolutionStatus, SequencerResult, Stop, compute_order

START_ID = "start"
END_ID = "end"
CURRENT_LOCATION_LABEL = "현재 위치"
KAKAO_ROUTE_URL = "https://map.kakao.com/link/by/car/"
SESSION_TTL = timedelta(hours=6)


class RouteSession:
    """Mutable stop list of one planning session"""

    def __init__(self, session_id: str, stops: List[Stop], max_stops: int):
        self.id = session_id
        self.stops: List[Stop] = stops
        self.max_stops = max_stops
        self.message = ""
        self.created_at = datetime.now(timezone.utc)
        self.updated_at = self.created_at
        self._inflight: Dict[str, asyncio.Task] = {}
        self._ids = itertools.count(1)

    def _touch(self):
        self.updated_at = datetime.now(timezone.utc)

    def new_stop_id(self) -> str:
        while True:
            stop_id = f"stop-{next(self._ids)}"
            if self.index_of(stop_id) < 0:
                return stop_id

    # ============ Lookup ============

    def index_of(self, stop_id: str) -> int:
        for index, stop in enumerate(self.stops):
            if stop.id == stop_id:
                return index
        return -1

    def get_stop(self, stop_id: str) -> Optional[Stop]:
        index = self.index_of(stop_id)
        return self.stops[index] if index >= 0 else None

    def require_stop(self, stop_id: str) -> Stop:
        stop = self.get_stop(stop_id)
        if stop is None:
            raise HTTPException(status_code=404, detail=f"Stop '{stop_id}' not found")
        return stop

    def is_resolving(self, stop_id: str) -> bool:
        return stop_id in self._inflight

    def pending_stops(self) -> List[Stop]:
        """Stops with a keyword that still needs resolving and no task in flight"""
        return [
            stop for stop in self.stops
            if stop.keyword.strip()
            and not stop.is_resolved
            and stop.status != ResolutionStatus.NO_MATCH
            and stop.id not in self._inflight
        ]

    # ============ Per-stop updates ============

    def _update_stop(self, stop_id: str, change: Callable[[Stop], Stop]) -> Optional[Stop]:
        """Read the current stop by id, apply change, write it back in place"""
        index = self.index_of(stop_id)
        if index < 0:
            return None
        updated = change(self.stops[index])
        self.stops[index] = updated
        self._touch()
        return updated

    def update_keyword(self, stop_id: str, keyword: str) -> Stop:
        self.require_stop(stop_id)
        return self._update_stop(stop_id, lambda stop: stop.with_keyword(keyword))

    def apply_suggestion(self, stop_id: str, name: str, position: Coordinate) -> Stop:
        """Pick a suggestion: keyword and resolution are set together"""
        self.require_stop(stop_id)
        return self._update_stop(
            stop_id,
            lambda stop: stop.with_keyword(name).with_resolution(name, position)
        )

    def apply_resolution(self, stop_id: str, keyword: str, result: Optional[ResolutionResult]) -> bool:
        """
        Write a resolution back to its stop.

        Returns False (and changes nothing) when the stop is gone, its
        keyword changed since the request was issued, or it was already
        filled by a picked suggestion or the current location meanwhile.
        """
        current = self.get_stop(stop_id)
        if current is None or current.keyword != keyword or current.is_resolved:
            logger.debug(f"Discarding stale resolution for stop '{stop_id}' (keyword '{keyword}')")
            return False

        if result is None:
            self._update_stop(stop_id, lambda stop: stop.with_status(ResolutionStatus.NO_MATCH))
        else:
            self._update_stop(stop_id, lambda stop: stop.with_resolution(result.matched_name, result.coords))
        return True

    def set_start_location(self, label: str, position: Coordinate) -> Stop:
        start_id = self.stops[0].id
        return self._update_stop(
            start_id,
            lambda stop: stop.with_keyword(label).with_resolution(label, position)
        )

    # ============ Structural changes ============

    def add_stop(self) -> Stop:
        """Insert an empty waypoint just before the end stop"""
        if len(self.stops) >= self.max_stops:
            raise HTTPException(status_code=400, detail=f"최대 {self.max_stops}개까지 가능합니다.")

        stop = Stop(id=self.new_stop_id())
        self.stops.insert(max(0, len(self.stops) - 1), stop)
        self._touch()
        return stop

    def _require_waypoint(self, stop_id: str) -> int:
        index = self.index_of(stop_id)
        if index < 0:
            raise HTTPException(status_code=404, detail=f"Stop '{stop_id}' not found")
        if index == 0 or index == len(self.stops) - 1:
            raise HTTPException(status_code=400, detail="출발지와 도착지는 이동하거나 삭제할 수 없습니다.")
        return index

    def remove_stop(self, stop_id: str):
        """Remove a waypoint; the start and end stops always stay"""
        index = self._require_waypoint(stop_id)
        del self.stops[index]
        self._touch()

    def move_stop(self, stop_id: str, target_id: str):
        """Move a waypoint to the position of another waypoint"""
        from_index = self._require_waypoint(stop_id)
        to_index = self._require_waypoint(target_id)
        if from_index == to_index:
            return
        moved = self.stops.pop(from_index)
        self.stops.insert(to_index, moved)
        self._touch()

    def reorder(self, ordered: Iterable[Stop]):
        """
        Reorder stops by id.

        The current stop objects are kept, so a resolution applied after the
        order was computed is not lost.
        """
        by_id = {stop.id: stop for stop in self.stops}
        ordered_ids = [stop.id for stop in ordered if stop.id in by_id]
        seen = set(ordered_ids)
        leftovers = [stop for stop in self.stops if stop.id not in seen]
        self.stops = [by_id[stop_id] for stop_id in ordered_ids] + leftovers
        self._touch()


def _meta_by_name(station_meta: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, Coordinate]:
    known: Dict[str, Coordinate] = {}
    for meta in station_meta or []:
        if not isinstance(meta, dict):
            continue
        name = str(meta.get("name") or "").strip()
        coords = meta.get("coords")
        if not name or not isinstance(coords, (list, tuple)) or len(coords) < 2:
            continue
        position = coerce_coordinate(coords[0], coords[1])
        if position is not None:
            known[name] = position
    return known


def build_stops(
    station_names: Optional[Iterable[str]],
    station_meta: Optional[Iterable[Dict[str, Any]]] = None,
    max_stops: Optional[int] = None
) -> List[Stop]:
    """
    Build the initial stop list of a session.

    With no names this is an empty start and end. Otherwise the start is left
    empty for the user, the names fill the remaining slots and the last name
    becomes the end stop. Names with known coordinates arrive resolved.
    """
    max_stops = settings.MAX_STOPS if max_stops is None else max_stops
    names = [name.strip() for name in (station_names or []) if name and name.strip()]
    if not names:
        return [Stop(id=START_ID), Stop(id=END_ID)]

    limited = names[:max(0, max_stops - 1)]
    known = _meta_by_name(station_meta)
    stops = [Stop(id=START_ID)]
    for index, name in enumerate(limited):
        stop_id = END_ID if index == len(limited) - 1 else f"stop-{index}-{secrets.token_hex(3)}"
        stop = Stop(id=stop_id, keyword=name)
        if name in known:
            stop = stop.with_resolution(name, known[name])
        stops.append(stop)
    return stops


def build_navigation_link(stops: List[Stop]) -> str:
    """
    Kakao Map car-route link through every resolved stop, in list order.

    Raises:
        HTTPException: 400 unless the start, the end and at least two stops
            are resolved
    """
    resolved = [stop for stop in stops if stop.is_resolved]
    if len(resolved) < 2 or not stops[0].is_resolved or not stops[-1].is_resolved:
        raise HTTPException(status_code=400, detail="출발지/도착지 위치를 먼저 확정해주세요.")

    segments = []
    for stop in resolved:
        lat, lng = stop.position
        segments.append(f"{quote(stop.label or '지점', safe='')},{lat},{lng}")
    return KAKAO_ROUTE_URL + "/".join(segments)


class RoutePlanner:
    """Holds planning sessions and drives resolution and sequencing for them"""

    def __init__(self, resolver: StopResolver, geocoder: ReverseGeocoder, max_stops: Optional[int] = None):
        self.resolver = resolver
        self.geocoder = geocoder
        self.max_stops = settings.MAX_STOPS if max_stops is None else max_stops
        self._sessions: Dict[str, RouteSession] = {}

    def _prune_expired(self):
        cutoff = datetime.now(timezone.utc) - SESSION_TTL
        expired = [sid for sid, session in self._sessions.items() if session.updated_at < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired route sessions")

    def create_session(
        self,
        station_names: Optional[Iterable[str]] = None,
        station_meta: Optional[Iterable[Dict[str, Any]]] = None
    ) -> RouteSession:
        self._prune_expired()
        session = RouteSession(
            session_id=secrets.token_urlsafe(12),
            stops=build_stops(station_names, station_meta, self.max_stops),
            max_stops=self.max_stops
        )
        self._sessions[session.id] = session
        logger.info(f"Route session {session.id} created with {len(session.stops)} stops")
        return session

    def get_session(self, session_id: str) -> RouteSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Route session not found or expired")
        return session

    def delete_session(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        for task in session._inflight.values():
            task.cancel()
        return True

    # ============ Resolution ============

    async def _resolve_stop(self, session: RouteSession, stop_id: str, keyword: str):
        try:
            result = await self.resolver.resolve(keyword)
        finally:
            session._inflight.pop(stop_id, None)
        session.apply_resolution(stop_id, keyword, result)

    def start_resolution(self, session: RouteSession) -> List[asyncio.Task]:
        """Spawn one task per pending stop; stops already in flight are skipped"""
        tasks = []
        for stop in session.pending_stops():
            session._update_stop(stop.id, lambda s: s.with_status(ResolutionStatus.LOADING))
            task = asyncio.create_task(self._resolve_stop(session, stop.id, stop.keyword))
            session._inflight[stop.id] = task
            tasks.append(task)
        return tasks

    async def resolve_pending(self, session: RouteSession) -> RouteSession:
        """Resolve every pending stop and wait until nothing is in flight"""
        while True:
            self.start_resolution(session)
            inflight = list(session._inflight.values())
            if not inflight:
                return session
            await asyncio.gather(*inflight)

    async def set_current_location(self, session: RouteSession, lat: float, lng: float) -> Stop:
        """Use a device position as the start; label it with its road address when available"""
        address = await self.geocoder.reverse_geocode(lat, lng)
        stop = session.set_start_location(address or CURRENT_LOCATION_LABEL, (lat, lng))
        session.message = "현재 위치를 출발지로 설정했습니다."
        return stop

    # ============ Sequencing ============

    def optimize(self, session: RouteSession, apply: bool = True) -> SequencerResult:
        """Compute the suggested order; with apply the session adopts it"""
        result = compute_order(session.stops)
        if apply and result.optimized:
            session.reorder(result.ordered_stops)
        session.message = result.message
        logger.info(f"Route session {session.id}: {result.outcome.value} ({len(result.excluded)} excluded)")
        return result


_planner: Optional[RoutePlanner] = None


def get_planner() -> RoutePlanner:
    """Dependency returning the process-wide planner"""
    global _planner
    if _planner is None:
        from station_monitor.services.geocoding import reverse_geocoder
        from station_monitor.services.resolver import build_default_resolver
        _planner = RoutePlanner(build_default_resolver(), reverse_geocoder)
    return _planner
