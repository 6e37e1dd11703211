from pydantic import BaseModel, Field
from typing import List, Optional, Tuple
from datetime import date, datetime

MAX_JOURNAL_STATIONS = 6


class StationMeta(BaseModel):
    """Resolved details for one station named in a journal"""
    name: str
    coords: Optional[Tuple[float, float]] = Field(None, description="(latitude, longitude)")
    code: Optional[str] = None


class JournalCreate(BaseModel):
    """Schema for writing a journal entry"""
    title: str = Field(..., min_length=1, max_length=200)
    visit_date: date
    summary: Optional[str] = Field(None, max_length=500)
    body: str = ""
    stations: List[str] = Field(default_factory=list, max_length=MAX_JOURNAL_STATIONS)
    station_meta: List[StationMeta] = Field(default_factory=list)


class JournalUpdate(BaseModel):
    """Schema for editing a journal entry"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    visit_date: Optional[date] = None
    summary: Optional[str] = Field(None, max_length=500)
    body: Optional[str] = None
    stations: Optional[List[str]] = Field(None, max_length=MAX_JOURNAL_STATIONS)
    station_meta: Optional[List[StationMeta]] = None


class JournalResponse(BaseModel):
    """Journal entry"""
    id: int
    author_id: str
    author_name: str
    title: str
    visit_date: date
    summary: Optional[str] = None
    body: str
    stations: List[str]
    station_meta: List[StationMeta]
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
