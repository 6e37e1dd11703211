"""
Routes for route planning (multi-stop navigation).

Public endpoints; a session id is the only handle on a planning session.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from station_monitor.db.session import get_db
from station_monitor.schemas.navigation import (
    RouteSessionResponse,
    CreateSessionRequest,
    KeywordUpdate,
    SuggestionApply,
    MoveStopRequest,
    Position,
    OptimizeResponse,
    NavigationLinkResponse,
    StationSuggestion,
    ResolutionResponse
)
from station_monitor.services.planner import RoutePlanner, get_planner
from station_monitor.services.station_api import station_api
from station_monitor.api.client import controllers_navigation

router = APIRouter(prefix="/navigation", tags=["Navigation"])


# ============ Lookups ============

@router.get("/suggestions", response_model=List[StationSuggestion])
async def get_suggestions(
    keyword: str = Query("", description="Partially typed station name"),
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db)
):
    """Station suggestions with coordinates for autocomplete."""
    return await controllers_navigation.get_station_suggestions(db, station_api, keyword, limit)


@router.get("/resolve", response_model=ResolutionResponse)
async def resolve_keyword(
    keyword: str = Query(..., description="Station or place name"),
    planner: RoutePlanner = Depends(get_planner)
):
    """
    Resolve a single keyword to a coordinate.
    A miss is a normal response with `matched=false`, never an error.
    """
    return await controllers_navigation.resolve_keyword(planner, keyword)


# ============ Sessions ============

@router.post("/sessions", response_model=RouteSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: Optional[CreateSessionRequest] = None,
    planner: RoutePlanner = Depends(get_planner)
):
    """
    Open a planning session.
    With `stations`, the names become the waypoints and the last one the
    destination; the start is left for the user.
    """
    request = request or CreateSessionRequest()
    return await controllers_navigation.create_session(planner, request.stations, request.resolve)


@router.get("/sessions/{session_id}", response_model=RouteSessionResponse)
async def get_session(session_id: str, planner: RoutePlanner = Depends(get_planner)):
    """Current stops of a session."""
    return controllers_navigation.session_to_response(planner.get_session(session_id))


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, planner: RoutePlanner = Depends(get_planner)):
    """End a session."""
    planner.get_session(session_id)
    planner.delete_session(session_id)
    return {"message": "Route session closed"}


@router.post("/sessions/{session_id}/stops", response_model=RouteSessionResponse, status_code=status.HTTP_201_CREATED)
async def add_stop(session_id: str, planner: RoutePlanner = Depends(get_planner)):
    """Add an empty waypoint before the destination."""
    session = planner.get_session(session_id)
    session.add_stop()
    return controllers_navigation.session_to_response(session)


@router.put("/sessions/{session_id}/stops/{stop_id}", response_model=RouteSessionResponse)
async def update_stop_keyword(
    session_id: str,
    stop_id: str,
    update: KeywordUpdate,
    planner: RoutePlanner = Depends(get_planner)
):
    """Change what a stop refers to. Its previous position is cleared."""
    return await controllers_navigation.update_keyword(planner, session_id, stop_id, update.keyword, update.resolve)


@router.post("/sessions/{session_id}/stops/{stop_id}/suggestion", response_model=RouteSessionResponse)
async def apply_suggestion(
    session_id: str,
    stop_id: str,
    suggestion: SuggestionApply,
    planner: RoutePlanner = Depends(get_planner)
):
    """Fill a stop from an autocomplete suggestion."""
    session = planner.get_session(session_id)
    session.apply_suggestion(stop_id, suggestion.name.strip(), (suggestion.lat, suggestion.lng))
    return controllers_navigation.session_to_response(session)


@router.post("/sessions/{session_id}/stops/{stop_id}/move", response_model=RouteSessionResponse)
async def move_stop(
    session_id: str,
    stop_id: str,
    request: MoveStopRequest,
    planner: RoutePlanner = Depends(get_planner)
):
    """Reorder waypoints (drag and drop)."""
    session = planner.get_session(session_id)
    session.move_stop(stop_id, request.target_id)
    return controllers_navigation.session_to_response(session)


@router.delete("/sessions/{session_id}/stops/{stop_id}", response_model=RouteSessionResponse)
async def remove_stop(session_id: str, stop_id: str, planner: RoutePlanner = Depends(get_planner)):
    """Remove a waypoint. The start and destination cannot be removed."""
    session = planner.get_session(session_id)
    session.remove_stop(stop_id)
    return controllers_navigation.session_to_response(session)


@router.post("/sessions/{session_id}/current-location", response_model=RouteSessionResponse)
async def use_current_location(
    session_id: str,
    position: Position,
    planner: RoutePlanner = Depends(get_planner)
):
    """Use the device position as the start."""
    session = planner.get_session(session_id)
    await planner.set_current_location(session, position.lat, position.lng)
    return controllers_navigation.session_to_response(session)


@router.post("/sessions/{session_id}/resolve", response_model=RouteSessionResponse)
async def resolve_session(session_id: str, planner: RoutePlanner = Depends(get_planner)):
    """Resolve every stop that has a keyword but no position yet."""
    return await controllers_navigation.resolve_session(planner, session_id)


@router.post("/sessions/{session_id}/optimize", response_model=OptimizeResponse)
async def optimize_session(
    session_id: str,
    apply: bool = Query(True, description="Adopt the suggested order"),
    planner: RoutePlanner = Depends(get_planner)
):
    """
    Suggest a visiting order.

    Greedy heuristic: the farthest resolved stop from the start becomes the
    destination and the others are visited nearest-first. Stops without a
    position are kept at the end and reported in `excluded_ids`.
    """
    return await controllers_navigation.optimize_session(planner, session_id, apply)


@router.get("/sessions/{session_id}/link", response_model=NavigationLinkResponse)
async def get_navigation_link(session_id: str, planner: RoutePlanner = Depends(get_planner)):
    """Kakao Map car-route link through the resolved stops."""
    return await controllers_navigation.get_navigation_link(planner, session_id)
