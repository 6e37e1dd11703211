from pydantic import BaseModel, Field
from typing import List, Optional, Literal


# ============ Common Schemas ============

class Position(BaseModel):
    """Latitude/longitude pair"""
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")


class StopResponse(BaseModel):
    """One stop of a route-planning session"""
    id: str = Field(..., description="Stop identifier, unique within the session")
    role: Literal["start", "waypoint", "end"]
    keyword: str = Field(..., description="Text the user entered")
    resolved_name: Optional[str] = Field(None, description="Canonical name from resolution")
    position: Optional[Position] = None
    status: Literal["idle", "loading", "ok", "no-match"] = "idle"
    resolving: bool = Field(False, description="True while a resolution is in flight")


class RouteSessionResponse(BaseModel):
    """Current state of a route-planning session"""
    session_id: str
    stops: List[StopResponse] = Field(default_factory=list)
    max_stops: int
    message: str = ""


# ============ Requests ============

class CreateSessionRequest(BaseModel):
    """Open a session, optionally pre-filled with station names"""
    stations: List[str] = Field(default_factory=list)
    resolve: bool = Field(True, description="Resolve the pre-filled stations immediately")


class KeywordUpdate(BaseModel):
    """New keyword for a stop"""
    keyword: str = Field(..., max_length=200)
    resolve: bool = Field(False, description="Resolve the stop before responding")


class SuggestionApply(BaseModel):
    """Suggestion picked from autocomplete"""
    name: str = Field(..., min_length=1, max_length=200)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class MoveStopRequest(BaseModel):
    """Drop a waypoint onto the position of another waypoint"""
    target_id: str


# ============ Results ============

class OptimizeResponse(RouteSessionResponse):
    """Sequencing outcome plus the (possibly reordered) session"""
    outcome: Literal[
        "need_start_and_end",
        "start_unresolved",
        "no_resolved_destinations",
        "optimized_with_warning",
        "optimized",
    ]
    applied: bool = Field(..., description="True if the session adopted the suggested order")
    suggested_order: List[str] = Field(default_factory=list, description="Stop ids in suggested order")
    excluded_ids: List[str] = Field(default_factory=list, description="Stops left out for lack of coordinates")


class NavigationLinkResponse(BaseModel):
    """External turn-by-turn link"""
    url: str


class StationSuggestion(BaseModel):
    """Autocomplete entry with coordinates"""
    id: str
    name: str
    lat: float
    lng: float
    code_number: Optional[str] = None


class ResolutionResponse(BaseModel):
    """Outcome of a single keyword resolution"""
    keyword: str
    matched: bool
    matched_name: Optional[str] = None
    position: Optional[Position] = None
    code_number: Optional[str] = None
    source: Optional[str] = None
