from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
from .models import Member, Station, StationNotice, Journal
from station_monitor.schemas.member import MemberRegister, MemberUpdate, MemberProfileUpdate
from station_monitor.schemas.station import StationCreate, StationUpdate
from station_monitor.schemas.journal import JournalCreate, JournalUpdate


# ============ Member CRUD Operations ============

def get_member_by_member_id(db: Session, member_id: str) -> Optional[Member]:
    """Get member by login id"""
    return db.query(Member).filter(Member.member_id == member_id).first()


def get_member(db: Session, id: int) -> Optional[Member]:
    """Get member by primary key"""
    return db.query(Member).filter(Member.id == id).first()


def get_members(db: Session, skip: int = 0, limit: int = 100) -> List[Member]:
    """Get all members"""
    return db.query(Member).order_by(Member.id).offset(skip).limit(limit).all()


def create_member(db: Session, data: MemberRegister, hashed_password: str, role: str = "member") -> Member:
    """Create a new member"""
    db_member = Member(
        member_id=data.member_id.strip(),
        email=data.email,
        name=data.name.strip(),
        phone=data.phone,
        team=data.team,
        department=data.department,
        hashed_password=hashed_password,
        role=role,
        status="active"
    )
    db.add(db_member)
    db.commit()
    db.refresh(db_member)
    return db_member


def update_member(db: Session, id: int, data: MemberUpdate) -> Optional[Member]:
    """Update member role/status"""
    db_member = get_member(db, id)
    if not db_member:
        return None

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_member, field, value)

    db.commit()
    db.refresh(db_member)
    return db_member


def update_member_profile(db: Session, db_member: Member, data: MemberProfileUpdate) -> Member:
    """Update the profile fields a member edits themselves"""
    update_data = data.model_dump(exclude_unset=True)
    name = (update_data.pop("name", None) or "").strip()
    if name:
        update_data["name"] = name

    for field, value in update_data.items():
        setattr(db_member, field, value)

    db.commit()
    db.refresh(db_member)
    return db_member


def update_member_password(db: Session, db_member: Member, hashed_password: str) -> Member:
    """Replace a member's password hash"""
    db_member.hashed_password = hashed_password
    db.commit()
    db.refresh(db_member)
    return db_member


def delete_member(db: Session, id: int) -> bool:
    """Delete a member"""
    db_member = get_member(db, id)
    if not db_member:
        return False

    db.delete(db_member)
    db.commit()
    return True


# ============ Station CRUD Operations ============

def get_station(db: Session, station_id: int) -> Optional[Station]:
    """Get a single catalog station by ID"""
    return db.query(Station).filter(Station.id == station_id).first()


def get_station_by_code(db: Session, code_number: str) -> Optional[Station]:
    """Get a catalog station by its code number"""
    return db.query(Station).filter(Station.code_number == code_number).first()


LIKE_ESCAPE = "\\"


def _contains_pattern(keyword: str) -> str:
    """LIKE pattern matching keyword literally (wildcards are escaped)"""
    escaped = keyword.strip()
    for char in (LIKE_ESCAPE, "%", "_"):
        escaped = escaped.replace(char, LIKE_ESCAPE + char)
    return f"%{escaped}%"


def _station_query(db: Session, keyword: Optional[str] = None):
    query = db.query(Station)
    if keyword:
        pattern = _contains_pattern(keyword)
        query = query.filter(or_(
            Station.name.ilike(pattern, escape=LIKE_ESCAPE),
            Station.address.ilike(pattern, escape=LIKE_ESCAPE),
            Station.river.ilike(pattern, escape=LIKE_ESCAPE),
            Station.code_number.ilike(pattern, escape=LIKE_ESCAPE)
        ))
    return query


def get_stations(db: Session, skip: int = 0, limit: int = 100, keyword: Optional[str] = None) -> List[Station]:
    """Get catalog stations, optionally filtered by keyword"""
    return _station_query(db, keyword).order_by(Station.id).offset(skip).limit(limit).all()


def count_stations(db: Session, keyword: Optional[str] = None) -> int:
    """Count catalog stations matching keyword"""
    return _station_query(db, keyword).count()


def search_stations_by_name(db: Session, keyword: str, limit: int = 5) -> List[Station]:
    """Get catalog stations whose name contains keyword (case-insensitive)"""
    pattern = _contains_pattern(keyword)
    return db.query(Station).filter(
        Station.name.ilike(pattern, escape=LIKE_ESCAPE)
    ).order_by(Station.id).limit(limit).all()


def create_station(db: Session, data: StationCreate) -> Station:
    """Create a catalog station"""
    db_station = Station(**data.model_dump())
    db.add(db_station)
    db.commit()
    db.refresh(db_station)
    return db_station


def update_station(db: Session, station_id: int, data: StationUpdate) -> Optional[Station]:
    """Update a catalog station"""
    db_station = get_station(db, station_id)
    if not db_station:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_station, field, value)

    db.commit()
    db.refresh(db_station)
    return db_station


def delete_station(db: Session, station_id: int) -> bool:
    """Delete a catalog station"""
    db_station = get_station(db, station_id)
    if not db_station:
        return False

    db.delete(db_station)
    db.commit()
    return True


# ============ Notice CRUD Operations ============

def get_notices(db: Session, station_code: str) -> List[StationNotice]:
    """Get notices for a station, newest first"""
    return db.query(StationNotice).filter(
        StationNotice.station_code == station_code
    ).order_by(StationNotice.created_at.desc(), StationNotice.id.desc()).all()


def get_notice(db: Session, notice_id: int) -> Optional[StationNotice]:
    """Get a notice by ID"""
    return db.query(StationNotice).filter(StationNotice.id == notice_id).first()


def create_notice(db: Session, station_code: str, author_id: str, author_name: str, content: str) -> StationNotice:
    """Create a station notice"""
    db_notice = StationNotice(
        station_code=station_code,
        author_id=author_id,
        author_name=author_name,
        content=content.strip()
    )
    db.add(db_notice)
    db.commit()
    db.refresh(db_notice)
    return db_notice


def delete_notice(db: Session, notice_id: int) -> bool:
    """Delete a notice"""
    db_notice = get_notice(db, notice_id)
    if not db_notice:
        return False

    db.delete(db_notice)
    db.commit()
    return True


# ============ Journal CRUD Operations ============

def get_journal(db: Session, journal_id: int) -> Optional[Journal]:
    """Get a journal by ID"""
    return db.query(Journal).filter(Journal.id == journal_id).first()


def get_journals(db: Session, author_id: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Journal]:
    """Get journals, newest visit first (optionally for one author)"""
    query = db.query(Journal)
    if author_id:
        query = query.filter(Journal.author_id == author_id)
    return query.order_by(Journal.visit_date.desc(), Journal.id.desc()).offset(skip).limit(limit).all()


def create_journal(db: Session, data: JournalCreate, author_id: str, author_name: str) -> Journal:
    """Create a journal"""
    db_journal = Journal(
        author_id=author_id,
        author_name=author_name,
        title=data.title.strip(),
        visit_date=data.visit_date,
        summary=data.summary,
        body=data.body,
        stations=[name.strip() for name in data.stations if name.strip()],
        station_meta=[meta.model_dump() for meta in data.station_meta]
    )
    db.add(db_journal)
    db.commit()
    db.refresh(db_journal)
    return db_journal


def update_journal(db: Session, journal_id: int, data: JournalUpdate) -> Optional[Journal]:
    """Update a journal"""
    db_journal = get_journal(db, journal_id)
    if not db_journal:
        return None

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("stations") is not None:
        update_data["stations"] = [name.strip() for name in update_data["stations"] if name.strip()]
    for field, value in update_data.items():
        if value is None and field in ("title", "visit_date", "body", "stations", "station_meta"):
            continue
        setattr(db_journal, field, value)

    db.commit()
    db.refresh(db_journal)
    return db_journal


def delete_journal(db: Session, journal_id: int) -> bool:
    """Delete a journal"""
    db_journal = get_journal(db, journal_id)
    if not db_journal:
        return False

    db.delete(db_journal)
    db.commit()
    return True
