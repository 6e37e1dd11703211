from sqlalchemy import Column, Integer, String, Float, DateTime, Date, Text, JSON
from datetime import datetime, timezone, timedelta
from .session import Base

# KST timezone (UTC+9)
KST = timezone(timedelta(hours=9))

def get_kst_now():
    """Get current time in KST"""
    return datetime.now(KST)


class Member(Base):
    """
    Member account - field staff and admins.
    The bootstrap super admin lives in .env and has no row here.
    """
    __tablename__ = "members"
    
    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(String(50), unique=True, nullable=False, index=True)  # Login id
    email = Column(String(255), nullable=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    team = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), default="member", nullable=False)  # "admin" or "member"
    status = Column(String(20), default="active", nullable=False)  # "active" or "suspended"
    created_at = Column(DateTime(timezone=True), default=get_kst_now)
    updated_at = Column(DateTime(timezone=True), default=get_kst_now, onupdate=get_kst_now)
    
    def __repr__(self):
        return f"<Member {self.member_id} ({self.role})>"


class Station(Base):
    """
    Locally managed observation station.
    Admins maintain this catalog; it also serves as an offline lookup source
    for route planning.
    """
    __tablename__ = "stations"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code_number = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    address = Column(String(255), nullable=True)
    river = Column(String(100), nullable=True)
    manager = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    status = Column(String(20), default="정상", nullable=False)  # 정상 / 점검 / 통신 이상
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_kst_now)
    updated_at = Column(DateTime(timezone=True), default=get_kst_now, onupdate=get_kst_now)
    
    def __repr__(self):
        return f"<Station {self.name} ({self.code_number})>"


class StationNotice(Base):
    """Short notice left on a station page by a member"""
    __tablename__ = "station_notices"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_code = Column(String(50), nullable=False, index=True)
    author_id = Column(String(50), nullable=False)
    author_name = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=get_kst_now)
    
    def __repr__(self):
        return f"<StationNotice {self.station_code} by {self.author_id}>"


class Journal(Base):
    """
    Field visit journal.
    `stations` holds the visited station names in visiting order;
    `station_meta` holds resolved details ({name, coords, code}) where known.
    """
    __tablename__ = "journals"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    author_id = Column(String(50), nullable=False, index=True)
    author_name = Column(String(100), nullable=False)
    title = Column(String(200), nullable=False)
    visit_date = Column(Date, nullable=False)
    summary = Column(String(500), nullable=True)
    body = Column(Text, nullable=False, default="")
    stations = Column(JSON, nullable=False, default=list)
    station_meta = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=get_kst_now)
    updated_at = Column(DateTime(timezone=True), default=get_kst_now, onupdate=get_kst_now)
    
    def __repr__(self):
        return f"<Journal {self.title} ({self.visit_date})>"
