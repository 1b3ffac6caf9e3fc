"""
Typed client for the ward HTTP API.

Unwraps the ``{"success", "data", "message"}`` envelope.  Transport
errors and 5xx responses surface as ``TransientFetchFailure``; a 404 on
a single-resource call is ``None``; other 4xx responses are
``MalformedInput`` carrying the server's ``detail``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from wardmap.errors import MalformedInput, TransientFetchFailure
from wardmap.spatial.geometry import GeoPoint, ViewportBounds

logger = logging.getLogger(__name__)


class WardApiClient:
    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WardApiClient:
        return self

    async def __aexit__(self, *_) -> None:
        await self.aclose()

    # ── Endpoints ─────────────────────────────────────────────

    async def get_wards(
        self,
        municipality_id: str | None = None,
        simplified: bool = True,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"simplified": str(simplified).lower()}
        if municipality_id:
            params["municipality_id"] = municipality_id
        data = await self._request("GET", "/api/wards", params=params)
        return data["wards"]

    async def get_ward(
        self,
        ward_id: str,
        include_geojson: bool = False,
    ) -> dict[str, Any] | None:
        data = await self._request(
            "GET",
            f"/api/wards/{ward_id}",
            params={"include_geojson": str(include_geojson).lower()},
            allow_missing=True,
        )
        return None if data is None else data["ward"]

    async def get_simplified_boundaries(
        self,
        municipality_id: str | None = None,
        bounds: ViewportBounds | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if municipality_id:
            params["municipality_id"] = municipality_id
        if bounds is not None:
            params["bounds"] = f"{bounds.west},{bounds.south},{bounds.east},{bounds.north}"
        data = await self._request("GET", "/api/wards/boundaries/simplified", params=params)
        return data["geojson"]

    async def ward_at(self, point: GeoPoint) -> dict[str, Any] | None:
        data = await self._request(
            "GET",
            "/api/wards/at",
            params={"latitude": point.latitude, "longitude": point.longitude},
            allow_missing=True,
        )
        return None if data is None else data["ward"]

    async def import_wards(
        self,
        geojson_url: str,
        municipality_id: str | None = None,
        simplify_tolerance: float = 0.001,
    ) -> dict[str, Any]:
        payload = {
            "geojson_url": geojson_url,
            "municipality_id": municipality_id,
            "simplify_tolerance": simplify_tolerance,
        }
        return await self._request("POST", "/api/wards/import", json=payload)

    # ── Internals ─────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        allow_missing: bool = False,
        **kwargs: Any,
    ) -> Any:
        url = self.base_url + path
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransientFetchFailure(url, str(exc) or exc.__class__.__name__) from exc

        if response.status_code == 404 and allow_missing:
            return None
        if response.status_code >= 500:
            raise TransientFetchFailure(url, f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedInput(f"{method} {path}: response is not valid JSON") from exc

        if response.is_error:
            detail = body.get("detail") if isinstance(body, dict) else None
            raise MalformedInput(f"{method} {path}: {detail or response.status_code}")
        if not isinstance(body, dict) or "data" not in body:
            raise MalformedInput(f"{method} {path}: unexpected response envelope")

        logger.debug("%s %s -> %d", method, path, response.status_code)
        return body["data"]
