"""
Lookup sources the stop resolver can query.

Each source exposes the same small interface:
- search(keyword, size) -> list of raw records, in the source's own order
- get_detail(code) -> raw record or None (only when supports_detail is True)

Sources may raise on transport failures; the resolver decides what that means.
"""

from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from station_monitor.db import crud
from station_monitor.db.models import Station
from station_monitor.services.geocoding import PlaceSearchClient
from station_monitor.services.station_api import StationAPIClient


class LookupSource:
    """Base lookup source"""

    name = "source"
    supports_detail = False

    async def search(self, keyword: str, size: int) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def get_detail(self, code: str) -> Optional[Dict[str, Any]]:
        return None


class StationSearchSource(LookupSource):
    """Upstream station backend: keyword search plus detail-by-code"""

    name = "station-api"
    supports_detail = True

    def __init__(self, client: StationAPIClient):
        self.client = client

    async def search(self, keyword: str, size: int) -> List[Dict[str, Any]]:
        page = await self.client.search_stations(keyword, page=1, size=size)
        return page["stations"]

    async def get_detail(self, code: str) -> Optional[Dict[str, Any]]:
        return await self.client.get_station_detail(code)


class PlaceKeywordSource(LookupSource):
    """Generic place search (Kakao Local keyword search)"""

    name = "place-search"

    def __init__(self, client: PlaceSearchClient):
        self.client = client

    async def search(self, keyword: str, size: int) -> List[Dict[str, Any]]:
        return await self.client.search(keyword, size=size)


def station_to_record(station: Station) -> Dict[str, Any]:
    """Render a catalog station in the upstream record shape"""
    return {
        "stationName": station.name,
        "codeNumber": station.code_number,
        "latitude": station.latitude,
        "longitude": station.longitude,
        "address": station.address,
    }


class CatalogSource(LookupSource):
    """
    Locally managed station catalog.

    Queries are synchronous SQLAlchemy calls and run in the threadpool so
    concurrent resolutions are not blocked on the database.
    """

    name = "catalog"
    supports_detail = True

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _search(self, keyword: str, size: int) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            return [station_to_record(s) for s in crud.search_stations_by_name(db, keyword, limit=size)]
        finally:
            db.close()

    def _get_detail(self, code: str) -> Optional[Dict[str, Any]]:
        db = self.session_factory()
        try:
            station = crud.get_station_by_code(db, code)
            return station_to_record(station) if station else None
        finally:
            db.close()

    async def search(self, keyword: str, size: int) -> List[Dict[str, Any]]:
        return await run_in_threadpool(self._search, keyword, size)

    async def get_detail(self, code: str) -> Optional[Dict[str, Any]]:
        return await run_in_threadpool(self._get_detail, code)
