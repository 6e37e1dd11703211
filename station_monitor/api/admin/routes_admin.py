from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from station_monitor.db.session import get_db
from station_monitor.core.security import MemberContext, get_admin
from station_monitor.schemas.member import MemberResponse, MemberUpdate
from station_monitor.schemas.station import StationCreate, StationUpdate, StationResponse, CatalogPage
from station_monitor.schemas.journal import JournalResponse
from station_monitor.api.admin import controllers_admin

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============ Member Management ============

@router.get("/members", response_model=List[MemberResponse])
async def list_members(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    """List registered members."""
    return await controllers_admin.list_members(db, skip, limit)


@router.patch("/members/{id}", response_model=MemberResponse)
async def update_member(
    id: int,
    data: MemberUpdate,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    """Change a member's role (admin/member) or status (active/suspended)."""
    return await controllers_admin.modify_member(db, id, data, current)


@router.delete("/members/{id}")
async def delete_member(
    id: int,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    return await controllers_admin.remove_member(db, id, current)


# ============ Station Catalog Management ============

@router.get("/stations", response_model=CatalogPage)
async def list_stations(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    keyword: Optional[str] = Query(None, description="Filter by name, address, river or code"),
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    """
    Paged local station catalog.
    The catalog doubles as the offline source for stop resolution.
    """
    return await controllers_admin.list_catalog(db, page, size, keyword)


@router.post("/stations", response_model=StationResponse, status_code=status.HTTP_201_CREATED)
async def create_station(
    station: StationCreate,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    return await controllers_admin.add_catalog_station(db, station)


@router.get("/stations/{station_id}", response_model=StationResponse)
async def get_station(
    station_id: int,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    return await controllers_admin.get_catalog_station(db, station_id)


@router.put("/stations/{station_id}", response_model=StationResponse)
async def update_station(
    station_id: int,
    station: StationUpdate,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    return await controllers_admin.modify_catalog_station(db, station_id, station)


@router.delete("/stations/{station_id}")
async def delete_station(
    station_id: int,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    return await controllers_admin.remove_catalog_station(db, station_id)


# ============ Journals ============

@router.get("/journals", response_model=List[JournalResponse])
async def list_journals(
    author_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_admin)
):
    """All journals, optionally for one author."""
    return await controllers_admin.list_all_journals(db, author_id, skip, limit)
