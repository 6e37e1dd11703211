from sqlalchemy.orm import Session
from typing import List, Optional
from fastapi import HTTPException

from station_monitor.core.logger import logger
from station_monitor.core.security import MemberContext
from station_monitor.db import crud
from station_monitor.schemas.member import MemberResponse, MemberUpdate
from station_monitor.schemas.station import StationCreate, StationUpdate, StationResponse, CatalogPage
from station_monitor.schemas.journal import JournalResponse


# ============ Members ============

async def list_members(db: Session, skip: int, limit: int) -> List[MemberResponse]:
    return crud.get_members(db, skip=skip, limit=limit)


async def modify_member(db: Session, id: int, data: MemberUpdate, admin: MemberContext) -> MemberResponse:
    """Change a member's role or status"""
    member = crud.get_member(db, id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    if member.member_id == admin.member_id and data.status == "suspended":
        raise HTTPException(status_code=400, detail="You cannot suspend your own account")

    member = crud.update_member(db, id, data)
    logger.info(f"Member '{member.member_id}' updated by '{admin.member_id}': role={member.role}, status={member.status}")
    return member


async def remove_member(db: Session, id: int, admin: MemberContext) -> dict:
    member = crud.get_member(db, id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    if member.member_id == admin.member_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    crud.delete_member(db, id)
    logger.info(f"Member '{member.member_id}' deleted by '{admin.member_id}'")
    return {"message": f"Member '{member.member_id}' deleted successfully"}


# ============ Station Catalog ============

async def list_catalog(db: Session, page: int, size: int, keyword: Optional[str]) -> CatalogPage:
    """One page of the local catalog, optionally filtered by keyword"""
    keyword = keyword.strip() if keyword else None
    stations = crud.get_stations(db, skip=(page - 1) * size, limit=size, keyword=keyword)
    return CatalogPage(
        total=crud.count_stations(db, keyword=keyword),
        page=page,
        size=size,
        stations=[StationResponse.model_validate(s) for s in stations]
    )


async def get_catalog_station(db: Session, station_id: int) -> StationResponse:
    station = crud.get_station(db, station_id)
    if not station:
        raise HTTPException(status_code=404, detail="Station not found")
    return station


async def add_catalog_station(db: Session, data: StationCreate) -> StationResponse:
    if crud.get_station_by_code(db, data.code_number):
        raise HTTPException(
            status_code=400,
            detail=f"Station with code '{data.code_number}' already exists"
        )
    station = crud.create_station(db, data)
    logger.info(f"Catalog station '{station.code_number}' ({station.name}) created")
    return station


async def modify_catalog_station(db: Session, station_id: int, data: StationUpdate) -> StationResponse:
    station = crud.update_station(db, station_id, data)
    if not station:
        raise HTTPException(status_code=404, detail="Station not found")
    return station


async def remove_catalog_station(db: Session, station_id: int) -> dict:
    if not crud.delete_station(db, station_id):
        raise HTTPException(status_code=404, detail="Station not found")
    return {"message": "Station deleted successfully"}


# ============ Journals ============

async def list_all_journals(db: Session, author_id: Optional[str], skip: int, limit: int) -> List[JournalResponse]:
    return crud.get_journals(db, author_id=author_id, skip=skip, limit=limit)
