from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List

from station_monitor.db.session import get_db
from station_monitor.core.security import MemberContext, get_current_member
from station_monitor.schemas.station import (
    StationPage,
    StationsByNameResponse,
    SuggestionsResponse,
    NoticeCreate,
    NoticeResponse
)
from station_monitor.api.client import controllers_stations

router = APIRouter(prefix="/stations", tags=["Stations"])


# ============ Public Endpoints (proxied to the station backend) ============

@router.get("", response_model=StationPage)
async def list_stations(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100)
):
    """
    Paged station list.
    Public endpoint - no authentication required.
    """
    return await controllers_stations.get_station_page(page, size)


@router.get("/search", response_model=StationPage)
async def search_stations(
    keyword: str = Query("", description="Name, address or code"),
    page: int = Query(1, ge=1),
    size: int = Query(5, ge=1, le=100)
):
    """Keyword search. An empty keyword returns an empty page."""
    return await controllers_stations.search_stations(keyword, page, size)


@router.get("/suggestions", response_model=SuggestionsResponse)
async def get_suggestions(
    keyword: str = Query(""),
    limit: int = Query(5, ge=1, le=20)
):
    """Autocomplete station names."""
    return await controllers_stations.get_suggestions(keyword, limit)


@router.get("/by-name", response_model=StationsByNameResponse)
async def get_stations_by_name(stationName: str = Query("")):
    """Stations whose name matches `stationName`."""
    return await controllers_stations.get_stations_by_name(stationName)


@router.get("/{code_number}", response_model=Dict[str, Any])
async def get_station_detail(code_number: str):
    """Station detail by code number."""
    return await controllers_stations.get_station_detail(code_number)


# ============ Notices (Members) ============

@router.get("/{code_number}/notices", response_model=List[NoticeResponse])
async def list_notices(
    code_number: str,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    """Notices posted for a station, newest first."""
    return await controllers_stations.list_notices(db, code_number)


@router.post("/{code_number}/notices", response_model=NoticeResponse, status_code=status.HTTP_201_CREATED)
async def create_notice(
    code_number: str,
    notice: NoticeCreate,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    """Post a notice for a station."""
    return await controllers_stations.post_notice(db, code_number, notice.content, current)


@router.delete("/{code_number}/notices/{notice_id}")
async def delete_notice(
    code_number: str,
    notice_id: int,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    """Delete a notice (author or admin)."""
    return await controllers_stations.remove_notice(db, code_number, notice_id, current)
