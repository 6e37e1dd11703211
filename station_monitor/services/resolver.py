"""
Stop resolver: free-text station/place keyword -> canonical name + coordinate.

Resolution never raises. An empty keyword, an empty result set, a candidate
without usable coordinates and any transport failure all come back as None.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from station_monitor.core.config import settings
from station_monitor.core.geo import Coordinate
from station_monitor.core.logger import logger, log_resolution
from station_monitor.services.lookup_sources import (
    LookupSource, StationSearchSource, CatalogSource, PlaceKeywordSource
)
from station_monitor.services.station_records import StationRecord, normalize_station_record


@dataclass(frozen=True)
class ResolutionResult:
    """Best match for a keyword"""
    matched_name: str
    coords: Coordinate
    code: Optional[str] = None
    source: str = ""


def normalize_name(value: str) -> str:
    return value.strip().lower()


def pick_candidate(keyword: str, candidates: Sequence[StationRecord]) -> StationRecord:
    """
    Exact case-insensitive name match if any, otherwise the first candidate.

    Candidates keep the order the source returned them in.
    """
    target = normalize_name(keyword)
    for candidate in candidates:
        if normalize_name(candidate.name) == target:
            return candidate
    return candidates[0]


class StopResolver:
    """Resolves keywords against an ordered list of lookup sources"""

    def __init__(
        self,
        sources: Sequence[LookupSource],
        result_size: Optional[int] = None,
        cache_ttl: Optional[int] = None,
        cache_size: Optional[int] = None
    ):
        self.sources: List[LookupSource] = list(sources)
        self.result_size = settings.RESOLVER_RESULT_SIZE if result_size is None else result_size

        # keyword -> (result or None for a definite no-match, stored at), oldest first
        self._cache: Dict[str, Tuple[Optional[ResolutionResult], datetime]] = {}
        ttl = settings.RESOLVER_CACHE_TTL if cache_ttl is None else cache_ttl
        self._cache_ttl = timedelta(seconds=ttl)
        self._cache_size = settings.RESOLVER_CACHE_SIZE if cache_size is None else cache_size

    def _get_from_cache(self, key: str) -> Tuple[bool, Optional[ResolutionResult]]:
        """Return (hit, value); expired entries are dropped"""
        if key in self._cache:
            value, timestamp = self._cache[key]
            if datetime.now(timezone.utc) - timestamp < self._cache_ttl:
                return True, value
            del self._cache[key]
        return False, None

    def _set_cache(self, key: str, value: Optional[ResolutionResult]):
        """Store an outcome; expired entries are swept and the oldest evicted past the size limit"""
        if self._cache_ttl.total_seconds() <= 0 or self._cache_size <= 0:
            return

        now = datetime.now(timezone.utc)
        self._cache.pop(key, None)
        expired = []
        for stale_key, (_, timestamp) in self._cache.items():
            if now - timestamp < self._cache_ttl:
                break
            expired.append(stale_key)
        for stale_key in expired:
            del self._cache[stale_key]

        while len(self._cache) >= self._cache_size:
            del self._cache[next(iter(self._cache))]
        self._cache[key] = (value, now)

    def clear_cache(self):
        self._cache.clear()

    async def resolve(self, keyword: Optional[str]) -> Optional[ResolutionResult]:
        """
        Resolve a keyword to its best match.

        Sources are tried in order and the first match wins. Outcomes are
        cached per normalized keyword unless a source failed, so a flaky
        upstream gets another chance on the next call.
        """
        keyword = (keyword or "").strip()
        if not keyword:
            return None

        cache_key = normalize_name(keyword)
        hit, cached = self._get_from_cache(cache_key)
        if hit:
            return cached

        definite = True
        for source in self.sources:
            try:
                result = await self._resolve_with(source, keyword)
            except Exception as e:
                logger.warning(
                    f"Resolution via {source.name} failed for '{keyword}': {type(e).__name__} - {str(e)}"
                )
                definite = False
                continue

            if result is not None:
                log_resolution(keyword, result.matched_name, source.name)
                self._set_cache(cache_key, result)
                return result

        log_resolution(keyword)
        if definite:
            self._set_cache(cache_key, None)
        return None

    async def _resolve_with(self, source: LookupSource, keyword: str) -> Optional[ResolutionResult]:
        records = await source.search(keyword, self.result_size)
        if not records:
            return None

        candidates = [normalize_station_record(record) for record in records]
        matched = pick_candidate(keyword, candidates)
        if not matched.name:
            return None

        coords = matched.coords
        if coords is None and matched.code and source.supports_detail:
            # One supplementary lookup; the chosen candidate is never swapped
            detail = await source.get_detail(matched.code)
            if detail:
                coords = normalize_station_record(detail).coords

        if coords is None:
            return None

        return ResolutionResult(
            matched_name=matched.name,
            coords=coords,
            code=matched.code,
            source=source.name
        )


def build_default_resolver() -> StopResolver:
    """
    Assemble the resolver from configured sources.

    Order: upstream station backend (if API_BASE_URL is set), local catalog,
    Kakao place search (if KAKAO_REST_API_KEY is set).
    """
    from station_monitor.db.session import SessionLocal
    from station_monitor.services.geocoding import place_search
    from station_monitor.services.station_api import station_api

    sources: List[LookupSource] = []
    if station_api.configured:
        sources.append(StationSearchSource(station_api))
    sources.append(CatalogSource(SessionLocal))
    if place_search.configured:
        sources.append(PlaceKeywordSource(place_search))

    logger.info(f"Stop resolver sources: {[s.name for s in sources]}")
    return StopResolver(sources)
