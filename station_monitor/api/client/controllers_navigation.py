"""
Controllers for route-planning endpoints.

This module handles the business logic for:
- Session lifecycle and stop editing
- Keyword resolution and station suggestions
- Route sequencing and the external navigation link
"""

from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from station_monitor.core.logger import log_warning
from station_monitor.db import crud
from station_monitor.schemas.navigation import (
    RouteSessionResponse,
    StopResponse,
    Position,
    OptimizeResponse,
    NavigationLinkResponse,
    StationSuggestion,
    ResolutionResponse
)
from station_monitor.services.lookup_sources import station_to_record
from station_monitor.services.planner import RoutePlanner, RouteSession, build_navigation_link
from station_monitor.services.station_api import StationAPIClient
from station_monitor.services.station_records import suggestions_from_rows


def _stop_role(index: int, count: int) -> str:
    if index == 0:
        return "start"
    if index == count - 1:
        return "end"
    return "waypoint"


def session_to_response(session: RouteSession) -> RouteSessionResponse:
    """Render a session for clients"""
    count = len(session.stops)
    stops = []
    for index, stop in enumerate(session.stops):
        position = Position(lat=stop.position[0], lng=stop.position[1]) if stop.position else None
        stops.append(StopResponse(
            id=stop.id,
            role=_stop_role(index, count),
            keyword=stop.keyword,
            resolved_name=stop.resolved_name,
            position=position,
            status=stop.status.value,
            resolving=session.is_resolving(stop.id)
        ))
    return RouteSessionResponse(
        session_id=session.id,
        stops=stops,
        max_stops=session.max_stops,
        message=session.message
    )


async def create_session(planner: RoutePlanner, stations: List[str], resolve: bool = True) -> RouteSessionResponse:
    session = planner.create_session(stations)
    if stations:
        session.message = "일지에서 선택한 경로를 불러왔습니다."
    if resolve:
        await planner.resolve_pending(session)
    return session_to_response(session)


async def update_keyword(planner: RoutePlanner, session_id: str, stop_id: str, keyword: str, resolve: bool) -> RouteSessionResponse:
    session = planner.get_session(session_id)
    session.update_keyword(stop_id, keyword)
    if resolve:
        await planner.resolve_pending(session)
    return session_to_response(session)


async def resolve_session(planner: RoutePlanner, session_id: str) -> RouteSessionResponse:
    session = planner.get_session(session_id)
    await planner.resolve_pending(session)
    return session_to_response(session)


async def optimize_session(planner: RoutePlanner, session_id: str, apply: bool) -> OptimizeResponse:
    session = planner.get_session(session_id)
    result = planner.optimize(session, apply=apply)
    base = session_to_response(session)
    return OptimizeResponse(
        **base.model_dump(),
        outcome=result.outcome.value,
        applied=apply and result.optimized,
        suggested_order=[stop.id for stop in result.ordered_stops],
        excluded_ids=[stop.id for stop in result.excluded]
    )


async def get_navigation_link(planner: RoutePlanner, session_id: str) -> NavigationLinkResponse:
    session = planner.get_session(session_id)
    return NavigationLinkResponse(url=build_navigation_link(session.stops))


async def resolve_keyword(planner: RoutePlanner, keyword: str) -> ResolutionResponse:
    result = await planner.resolver.resolve(keyword)
    if result is None:
        return ResolutionResponse(keyword=keyword, matched=False)
    return ResolutionResponse(
        keyword=keyword,
        matched=True,
        matched_name=result.matched_name,
        position=Position(lat=result.coords[0], lng=result.coords[1]),
        code_number=result.code,
        source=result.source
    )


async def get_station_suggestions(db: Session, client: StationAPIClient, keyword: str, limit: int = 5) -> List[StationSuggestion]:
    """
    Suggestions with coordinates for a partially typed station name.

    Uses the upstream name lookup when configured, the local catalog
    otherwise. Upstream failures yield no suggestions.
    """
    keyword = keyword.strip()
    if not keyword:
        return []

    if client.configured:
        try:
            rows = (await client.get_stations_by_name(keyword))["rows"]
        except HTTPException as e:
            log_warning("/navigation/suggestions", f"station backend unavailable for '{keyword}' (HTTP {e.status_code})")
            return []
    else:
        rows = [station_to_record(s) for s in crud.search_stations_by_name(db, keyword, limit=limit)]

    return [StationSuggestion(**item) for item in suggestions_from_rows(rows)[:limit]]
