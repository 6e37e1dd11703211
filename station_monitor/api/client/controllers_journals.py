from sqlalchemy.orm import Session
from typing import List
from fastapi import HTTPException

from station_monitor.core.logger import logger
from station_monitor.core.security import MemberContext
from station_monitor.db import crud
from station_monitor.db.models import Journal
from station_monitor.schemas.journal import JournalCreate, JournalUpdate, JournalResponse
from station_monitor.schemas.navigation import RouteSessionResponse
from station_monitor.services.planner import RoutePlanner
from station_monitor.api.client.controllers_navigation import session_to_response


def _get_owned_journal(db: Session, journal_id: int, member: MemberContext) -> Journal:
    """Journal readable and writable by the member (author or admin)"""
    journal = crud.get_journal(db, journal_id)
    if not journal:
        raise HTTPException(status_code=404, detail="Journal not found")
    if journal.author_id != member.member_id and not member.is_admin:
        raise HTTPException(status_code=403, detail="You can only access your own journals")
    return journal


async def list_my_journals(db: Session, member: MemberContext, skip: int, limit: int) -> List[JournalResponse]:
    return crud.get_journals(db, author_id=member.member_id, skip=skip, limit=limit)


async def get_journal(db: Session, journal_id: int, member: MemberContext) -> JournalResponse:
    return _get_owned_journal(db, journal_id, member)


async def write_journal(db: Session, data: JournalCreate, member: MemberContext) -> JournalResponse:
    journal = crud.create_journal(db, data, author_id=member.member_id, author_name=member.name)
    logger.info(f"Journal {journal.id} written by '{member.member_id}' ({len(journal.stations)} stations)")
    return journal


async def edit_journal(db: Session, journal_id: int, data: JournalUpdate, member: MemberContext) -> JournalResponse:
    _get_owned_journal(db, journal_id, member)
    return crud.update_journal(db, journal_id, data)


async def remove_journal(db: Session, journal_id: int, member: MemberContext) -> dict:
    _get_owned_journal(db, journal_id, member)
    crud.delete_journal(db, journal_id)
    return {"message": "Journal deleted successfully"}


async def open_navigation(
    db: Session,
    planner: RoutePlanner,
    journal_id: int,
    member: MemberContext
) -> RouteSessionResponse:
    """
    Start route planning from a journal's stations.

    Stations with stored coordinates start resolved; the rest are resolved
    before the session is returned.
    """
    journal = _get_owned_journal(db, journal_id, member)
    if not journal.stations:
        raise HTTPException(status_code=400, detail="This journal has no stations to navigate")

    session = planner.create_session(journal.stations, journal.station_meta)
    session.message = "일지에서 선택한 경로를 불러왔습니다."
    await planner.resolve_pending(session)
    return session_to_response(session)
