"""
Third-party place lookups: Kakao keyword search and VWorld reverse geocoding.

Both are optional. Without an API key every call returns an empty result
without touching the network.
"""

import httpx
from typing import Any, Dict, List, Optional

from station_monitor.core.config import settings
from station_monitor.core.logger import logger

KAKAO_KEYWORD_URL = "https://dapi.kakao.com/v2/local/search/keyword.json"
VWORLD_ADDRESS_URL = "https://api.vworld.kr/req/address"


class PlaceSearchClient:
    """Kakao Local keyword search (place name -> documents with x/y)"""
    
    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = settings.KAKAO_REST_API_KEY if api_key is None else api_key
        self.timeout = settings.UPSTREAM_TIMEOUT if timeout is None else timeout
        self._transport = transport
    
    @property
    def configured(self) -> bool:
        return bool(self.api_key)
    
    async def search(self, keyword: str, size: int = 5) -> List[Dict[str, Any]]:
        """
        Search places by keyword.
        
        Returns:
            Kakao documents (place_name, x = longitude, y = latitude, ...)
            in provider order
            
        Raises:
            httpx.HTTPError: On transport or HTTP status failures
        """
        if not self.configured:
            return []
        
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(
                KAKAO_KEYWORD_URL,
                params={"query": keyword, "size": size},
                headers={"Authorization": f"KakaoAK {self.api_key}"}
            )
            response.raise_for_status()
            data = response.json()
        
        documents = data.get("documents") if isinstance(data, dict) else None
        return documents if isinstance(documents, list) else []


class ReverseGeocoder:
    """VWorld road-address lookup for a coordinate"""
    
    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = settings.VWORLD_API_KEY if api_key is None else api_key
        self.timeout = settings.UPSTREAM_TIMEOUT if timeout is None else timeout
        self._transport = transport
    
    async def reverse_geocode(self, lat: float, lng: float) -> Optional[str]:
        """
        Resolve a coordinate to a road address.
        
        Never raises; any failure is logged and reported as None so callers
        can fall back to a generic label.
        """
        if not self.api_key:
            return None
        
        params = {
            "service": "address",
            "request": "getAddress",
            "version": "2.0",
            "format": "json",
            "type": "ROAD",
            "crs": "epsg:4326",
            "point": f"{lng},{lat}",
            "key": self.api_key,
        }
        
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(VWORLD_ADDRESS_URL, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException:
            logger.warning(f"Reverse geocoding timeout for ({lat}, {lng})")
            return None
        except Exception as e:
            logger.warning(f"Reverse geocoding failed for ({lat}, {lng}): {type(e).__name__} - {str(e)}")
            return None
        
        try:
            text = data["response"]["result"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        
        if not isinstance(text, str) or not text.strip():
            return None
        return text.strip()


# Singleton instances
place_search = PlaceSearchClient()
reverse_geocoder = ReverseGeocoder()
