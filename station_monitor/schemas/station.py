from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Literal
from datetime import datetime

StationStatus = Literal["정상", "점검", "통신 이상"]


# ============ Catalog Station Schemas ============

class StationBase(BaseModel):
    """Base station schema"""
    code_number: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = None
    river: Optional[str] = None
    manager: Optional[str] = None
    phone: Optional[str] = None
    status: StationStatus = "정상"
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class StationCreate(StationBase):
    """Schema for creating a catalog station (admin only)"""
    pass


class StationUpdate(BaseModel):
    """Schema for updating a catalog station (admin only)"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = None
    river: Optional[str] = None
    manager: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[StationStatus] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class StationResponse(StationBase):
    """Catalog station with metadata"""
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CatalogPage(BaseModel):
    """One page of the local station catalog"""
    total: int
    page: int
    size: int
    stations: List[StationResponse] = Field(default_factory=list)


# ============ Upstream Proxy Schemas ============

class StationPage(BaseModel):
    """One page of upstream stations (records passed through as-is)"""
    total: int
    page: int
    size: int
    stations: List[Dict[str, Any]] = Field(default_factory=list)


class StationsByNameResponse(BaseModel):
    """Upstream name lookup result"""
    keyword: str
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class SuggestionsResponse(BaseModel):
    """Autocomplete suggestions"""
    suggestions: List[str] = Field(default_factory=list)


# ============ Notices ============

class NoticeCreate(BaseModel):
    """New station notice"""
    content: str = Field(..., min_length=1, max_length=1000)


class NoticeResponse(BaseModel):
    """Station notice"""
    id: int
    station_code: str
    author_id: str
    author_name: str
    content: str
    created_at: datetime

    class Config:
        from_attributes = True
