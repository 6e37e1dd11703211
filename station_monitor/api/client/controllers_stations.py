from sqlalchemy.orm import Session
from typing import List
from fastapi import HTTPException

from station_monitor.core.security import MemberContext
from station_monitor.db import crud
from station_monitor.schemas.station import (
    StationPage,
    StationsByNameResponse,
    SuggestionsResponse,
    NoticeResponse
)
from station_monitor.services.station_api import station_api


async def get_station_page(page: int, size: int) -> StationPage:
    """One page of the upstream station catalog"""
    data = await station_api.list_stations(page=page, size=size)
    return StationPage(**data)


async def search_stations(keyword: str, page: int, size: int) -> StationPage:
    data = await station_api.search_stations(keyword, page=page, size=size)
    return StationPage(**data)


async def get_suggestions(keyword: str, limit: int) -> SuggestionsResponse:
    suggestions = await station_api.get_suggestions(keyword, limit=limit)
    return SuggestionsResponse(suggestions=[str(s) for s in suggestions])


async def get_stations_by_name(station_name: str) -> StationsByNameResponse:
    data = await station_api.get_stations_by_name(station_name)
    return StationsByNameResponse(**data)


async def get_station_detail(code_number: str) -> dict:
    return await station_api.get_station_detail(code_number)


# ============ Notices ============

async def list_notices(db: Session, code_number: str) -> List[NoticeResponse]:
    """Notices for a station, newest first"""
    return crud.get_notices(db, code_number)


async def post_notice(db: Session, code_number: str, content: str, member: MemberContext) -> NoticeResponse:
    content = content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Notice content is required")
    return crud.create_notice(
        db,
        station_code=code_number,
        author_id=member.member_id,
        author_name=member.name,
        content=content
    )


async def remove_notice(db: Session, code_number: str, notice_id: int, member: MemberContext) -> dict:
    """
    Delete a notice.
    Only its author or an admin may delete it.
    """
    notice = crud.get_notice(db, notice_id)
    if not notice or notice.station_code != code_number:
        raise HTTPException(status_code=404, detail="Notice not found")

    if notice.author_id != member.member_id and not member.is_admin:
        raise HTTPException(status_code=403, detail="Only the author can delete this notice")

    crud.delete_notice(db, notice_id)
    return {"message": "Notice deleted successfully"}
