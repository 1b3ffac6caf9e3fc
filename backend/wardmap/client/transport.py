"""
Raw fetch primitive.

The boundary store and the API client only need "GET this URL and give
me JSON or tell me it failed".  ``HttpxFetcher`` is the production
implementation; tests substitute any object with the same
``fetch_json`` coroutine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of a single GET."""

    ok: bool
    status: int | None = None
    body: Any = None
    error: str | None = None


class Fetcher(Protocol):
    async def fetch_json(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
    ) -> FetchResult: ...


class HttpxFetcher:
    """
    ``Fetcher`` backed by a shared ``httpx.AsyncClient``.

    Transport errors and undecodable bodies are reported as a failed
    ``FetchResult`` rather than raised, so callers decide whether a
    failure means "try the next source" or "give up".
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._owns_client = client is None

    async def fetch_json(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
    ) -> FetchResult:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("GET %s failed: %s", url, exc)
            return FetchResult(ok=False, error=str(exc) or exc.__class__.__name__)

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            return FetchResult(
                ok=False,
                status=response.status_code,
                body=body,
                error=f"HTTP {response.status_code}",
            )
        if body is None:
            return FetchResult(
                ok=False,
                status=response.status_code,
                error="Response body is not valid JSON",
            )
        return FetchResult(ok=True, status=response.status_code, body=body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpxFetcher:
        return self

    async def __aexit__(self, *_) -> None:
        await self.aclose()
