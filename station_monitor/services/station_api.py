"""
Client for the upstream station backend API.

This service handles all interactions with the station backend, including:
- Paged station listing and keyword search
- Name lookups and autocomplete suggestions
- Station detail by code number
"""

import httpx
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from fastapi import HTTPException

from station_monitor.core.config import settings
from station_monitor.core.logger import logger, log_upstream_request


def _station_rows(data: Dict[str, Any]) -> List[Any]:
    """Upstream pages carry their rows under either "stations" or "rows"."""
    if isinstance(data.get("stations"), list):
        return data["stations"]
    if isinstance(data.get("rows"), list):
        return data["rows"]
    return []


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _station_page(data: Dict[str, Any], page: int, size: int) -> Dict[str, Any]:
    stations = _station_rows(data)
    return {
        "total": _as_int(data.get("total"), len(stations)),
        "page": _as_int(data.get("page"), page) or 1,
        "size": _as_int(data.get("size"), size) or len(stations),
        "stations": stations,
    }


class StationAPIClient:
    """Service for interacting with the upstream station backend"""
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (settings.API_BASE_URL if base_url is None else base_url).rstrip("/")
        self.timeout = settings.UPSTREAM_TIMEOUT if timeout is None else timeout
        self._transport = transport
    
    @property
    def configured(self) -> bool:
        return bool(self.base_url)
    
    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport
        )
    
    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document from the station backend.
        
        Raises:
            HTTPException: 500 if the backend is not configured or answers
                garbage, 504 on timeout, the upstream status on HTTP errors
        """
        if not self.configured:
            logger.error("Station backend request attempted without API_BASE_URL")
            raise HTTPException(status_code=500, detail="API_BASE_URL is not configured")
        
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
                data = response.json()
                log_upstream_request(path, success=True)
                return data
                
        except httpx.TimeoutException:
            log_upstream_request(path, success=False, error="Timeout")
            raise HTTPException(
                status_code=504,
                detail="Station service timeout. The station backend is not responding."
            )
        except httpx.HTTPStatusError as e:
            log_upstream_request(path, success=False, error=f"HTTP {e.response.status_code}")
            raise HTTPException(
                status_code=e.response.status_code,
                detail=e.response.text or f"Station service error (HTTP {e.response.status_code})."
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unexpected station service error: {type(e).__name__} - {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=500,
                detail="Unexpected station service error."
            )
    
    async def list_stations(self, page: int = 1, size: int = 10) -> Dict[str, Any]:
        """Get one page of the upstream station catalog"""
        data = await self._get_json("/stations", params={"page": page, "size": size})
        return _station_page(data if isinstance(data, dict) else {}, page, size)
    
    async def search_stations(self, keyword: str, page: int = 1, size: int = 5) -> Dict[str, Any]:
        """
        Keyword search over the upstream catalog.
        
        An empty keyword returns an empty page without calling the backend.
        """
        keyword = keyword.strip()
        if not keyword:
            return {"total": 0, "page": 1, "size": 0, "stations": []}
        
        data = await self._get_json(
            "/stations/search",
            params={"keyword": keyword, "page": page, "size": size}
        )
        return _station_page(data if isinstance(data, dict) else {}, page, size)
    
    async def get_suggestions(self, keyword: str, limit: int = 5) -> List[str]:
        """Autocomplete suggestions (plain station names)"""
        keyword = keyword.strip()
        if not keyword:
            return []
        
        data = await self._get_json(
            "/stations/suggestions",
            params={"keyword": keyword, "limit": limit}
        )
        suggestions = data.get("suggestions") if isinstance(data, dict) else None
        return suggestions if isinstance(suggestions, list) else []
    
    async def get_stations_by_name(self, station_name: str) -> Dict[str, Any]:
        """Look up stations by (partial) name"""
        station_name = station_name.strip()
        params = {"stationName": station_name} if station_name else None
        data = await self._get_json("/stations/by-name", params=params)
        data = data if isinstance(data, dict) else {}
        rows = data.get("rows")
        return {
            "keyword": data.get("keyword") or station_name,
            "rows": rows if isinstance(rows, list) else [],
        }
    
    async def get_station_detail(self, code_number: str) -> Dict[str, Any]:
        """
        Fetch a single station by its code number.
        
        Raises:
            HTTPException: 400 for an empty code, otherwise as _get_json
        """
        code_number = str(code_number).strip()
        if not code_number:
            raise HTTPException(status_code=400, detail="codeNumber is required")
        
        data = await self._get_json(f"/stations/{quote(code_number, safe='')}")
        if not isinstance(data, dict):
            raise HTTPException(status_code=502, detail="Station service returned an invalid station")
        return data


# Singleton instance
station_api = StationAPIClient()
