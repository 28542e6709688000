"""
Reverse geocoding for display names.

Place names are presentation only; eligibility and search always use the
raw coordinates.  Any HTTP failure falls back to the ``"lat,lng"`` text.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

logger = logging.getLogger(__name__)


class Geocoder(ABC):
    @abstractmethod
    async def reverse_geocode(self, lat: float, lng: float) -> str: ...


class NominatimGeocoder(Geocoder):
    def __init__(
        self,
        url: str = "https://nominatim.openstreetmap.org/reverse",
        timeout: float = 5.0,
        user_agent: str = "rideshare-core/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}
        self.transport = transport

    async def reverse_geocode(self, lat: float, lng: float) -> str:
        fallback = f"{lat},{lng}"
        params = {"lat": lat, "lon": lng, "format": "json"}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, headers=self.headers, transport=self.transport
            ) as client:
                resp = await client.get(self.url, params=params)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("Reverse geocoding failed for %s", fallback)
            return fallback
        if not isinstance(data, dict):
            logger.warning("Unexpected geocoder payload for %s", fallback)
            return fallback
        return data.get("display_name") or fallback
