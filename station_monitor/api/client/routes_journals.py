from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from station_monitor.db.session import get_db
from station_monitor.core.security import MemberContext, get_current_member
from station_monitor.schemas.journal import JournalCreate, JournalUpdate, JournalResponse
from station_monitor.schemas.navigation import RouteSessionResponse
from station_monitor.services.planner import RoutePlanner, get_planner
from station_monitor.api.client import controllers_journals

router = APIRouter(prefix="/journals", tags=["Journals"])


# ============ Journals (Members) ============

@router.get("", response_model=List[JournalResponse])
async def list_journals(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    """Journals written by the signed-in member, newest visit first."""
    return await controllers_journals.list_my_journals(db, current, skip, limit)


@router.post("", response_model=JournalResponse, status_code=status.HTTP_201_CREATED)
async def create_journal(
    journal: JournalCreate,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    """Write a journal entry (up to 6 stations)."""
    return await controllers_journals.write_journal(db, journal, current)


@router.get("/{journal_id}", response_model=JournalResponse)
async def get_journal(
    journal_id: int,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    return await controllers_journals.get_journal(db, journal_id, current)


@router.put("/{journal_id}", response_model=JournalResponse)
async def update_journal(
    journal_id: int,
    journal: JournalUpdate,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    return await controllers_journals.edit_journal(db, journal_id, journal, current)


@router.delete("/{journal_id}")
async def delete_journal(
    journal_id: int,
    db: Session = Depends(get_db),
    current: MemberContext = Depends(get_current_member)
):
    return await controllers_journals.remove_journal(db, journal_id, current)


@router.post("/{journal_id}/navigation", response_model=RouteSessionResponse, status_code=status.HTTP_201_CREATED)
async def open_navigation(
    journal_id: int,
    db: Session = Depends(get_db),
    planner: RoutePlanner = Depends(get_planner),
    current: MemberContext = Depends(get_current_member)
):
    """
    Open a route-planning session with the journal's stations.
    The start is left empty; the last station becomes the destination.
    """
    return await controllers_journals.open_navigation(db, planner, journal_id, current)
