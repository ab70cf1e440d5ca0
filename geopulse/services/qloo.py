# geopulse/services/qloo.py
# -----------------------------------------------------------------------------
# Upstream recommendation proxy client (heatmap / combined / search)
# - bounded timeouts, retries only on timeouts
# - any failure -> UpstreamFailure; or_empty degrades it to {}
# -----------------------------------------------------------------------------
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from geopulse.core.config import settings
from geopulse.core.errors import UpstreamFailure


def _headers() -> Dict[str, str]:
    headers = {"Accept": "application/json", "User-Agent": f"{settings.APP_NAME}/1.0"}
    if settings.UPSTREAM_API_KEY:
        headers["X-Api-Key"] = settings.UPSTREAM_API_KEY
    return headers


class QlooClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        retries: int | None = None,
        backoff: float = 1.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.UPSTREAM_BASE_URL).rstrip("/")
        self.retries = settings.UPSTREAM_RETRIES if retries is None else retries
        self.backoff = backoff
        self.transport = transport
        self.timeout = httpx.Timeout(
            connect=settings.UPSTREAM_CONNECT_TIMEOUT,
            read=settings.UPSTREAM_READ_TIMEOUT,
            write=settings.UPSTREAM_READ_TIMEOUT,
            pool=settings.UPSTREAM_CONNECT_TIMEOUT,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=_headers(),
            transport=self.transport,
        )

    async def _request(self, source: str, method: str, path: str, **kwargs) -> Any:
        for attempt in range(self.retries + 1):
            try:
                async with self._client() as client:
                    r = await client.request(method, path, **kwargs)
                    r.raise_for_status()
                    return r.json()
            except httpx.TimeoutException as e:
                if attempt >= self.retries:
                    raise UpstreamFailure(source, f"timeout after {attempt + 1} attempts") from e
                wait = self.backoff * (attempt + 1)
                logger.warning(
                    f"[Qloo] {source} timeout, retry {attempt + 1}/{self.retries} in {wait:.1f}s"
                )
                await asyncio.sleep(wait)
            except httpx.HTTPStatusError as e:
                raise UpstreamFailure(source, f"HTTP {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise UpstreamFailure(source, str(e) or type(e).__name__) from e
            except ValueError as e:  # body is not JSON
                raise UpstreamFailure(source, f"invalid JSON: {e}") from e
            except Exception as e:
                logger.exception(f"[Qloo] {source} unexpected error")
                raise UpstreamFailure(source, f"{type(e).__name__}: {e}") from e
        raise UpstreamFailure(source, "no attempts made")

    async def get_heatmap(self, *, location: str, age: str, income: str) -> Any:
        params = {"location": location, "age": age, "income": income}
        return await self._request("heatmap", "GET", "/heatmap", params=params)

    async def get_combined(
        self,
        *,
        location: str,
        radius: int,
        age: str,
        income: str,
        popularity: float,
        take: int,
    ) -> Any:
        body = {
            "location": location,
            "radius": radius,
            "age": age,
            "income": income,
            "popularity": popularity,
            "take": take,
        }
        return await self._request("combined", "POST", "/qloo-combined", json=body)

    async def search(self, *, query: str, location: str | None, take: int) -> Any:
        body = {"query": query, "location": location, "take": take}
        return await self._request("search", "POST", "/search", json=body)


async def or_empty(source: str, call) -> tuple[Any, Optional[str]]:
    """
    Await `call`; on any failure return ({}, error) so the pipeline
    keeps going with the other source.
    """
    try:
        return await call, None
    except UpstreamFailure as e:
        logger.error(f"[Qloo] {source} failed, using empty result: {e.detail}")
        return {}, e.detail
    except Exception as e:
        logger.exception(f"[Qloo] {source} failed unexpectedly, using empty result")
        return {}, f"{type(e).__name__}: {e}"
