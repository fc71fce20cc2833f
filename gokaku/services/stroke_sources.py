"""
Auxiliary stroke-count sources for characters missing from the dictionary.

A source receives the whole set of unresolved characters for a batch and
returns whatever it could resolve. ``None`` marks a character the source does
not know.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Mapping, Optional, Protocol, Sequence
from urllib.parse import quote

import httpx

from gokaku.config.logger import app_logger
from gokaku.config.settings import settings


class StrokeSource(Protocol):
    async def lookup(self, chars: Sequence[str]) -> Mapping[str, Optional[int]]:
        ...


class NullStrokeSource:
    """Source that resolves nothing. Used when external lookups are disabled."""

    async def lookup(self, chars: Sequence[str]) -> Mapping[str, Optional[int]]:
        return {}


async def fetch_stroke_count(
    client: httpx.AsyncClient,
    base_url: str,
    char: str,
    retries: int = 3,
    backoff: float = 0.5,
) -> Optional[int]:
    """Fetch one character's stroke count from a kanjiapi.dev-compatible endpoint.

    GET {base_url}/{char} -> {"kanji": "亜", "stroke_count": 7, ...}
    Returns None for unknown characters (404) or payloads without a usable count.
    Raises the last transport/HTTP error once ``retries`` attempts are exhausted.
    """
    url = f"{base_url.rstrip('/')}/{quote(char)}"
    for attempt in range(retries):
        try:
            response = await client.get(url)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            payload = response.json()
            count = payload.get("stroke_count") if isinstance(payload, dict) else None
            if isinstance(count, int) and not isinstance(count, bool) and count > 0:
                return count
            return None
        except (httpx.HTTPError, ValueError):
            if attempt == retries - 1:
                raise
            await asyncio.sleep(backoff * (attempt + 1))
    return None


async def fetch_joyo_kanji(client: httpx.AsyncClient, base_url: str) -> List[str]:
    """Return the jōyō kanji list (GET {base_url}/joyo)."""
    response = await client.get(f"{base_url.rstrip('/')}/joyo")
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, list):
        raise ValueError("Unexpected jōyō kanji payload")
    return [str(ch) for ch in payload if isinstance(ch, str) and len(ch) == 1]


class KanjiApiStrokeSource:
    """Resolve stroke counts from kanjiapi.dev (Kanjidic2) over HTTPS.

    Characters are fetched concurrently, bounded by ``concurrency``. A failure
    for one character marks only that character unknown.
    """

    def __init__(
        self,
        base_url: str = settings.STROKE_LOOKUP_URL,
        timeout: float = settings.STROKE_LOOKUP_TIMEOUT,
        concurrency: int = settings.STROKE_LOOKUP_CONCURRENCY,
        retries: int = settings.STROKE_LOOKUP_RETRIES,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.retries = retries
        self._semaphore = asyncio.Semaphore(concurrency)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _lookup_one(self, char: str) -> Optional[int]:
        async with self._semaphore:
            try:
                return await fetch_stroke_count(self._client, self.base_url, char, retries=self.retries)
            except (httpx.HTTPError, ValueError) as exc:
                app_logger.warning(f"Stroke lookup failed for '{char}': {exc}")
                return None

    async def lookup(self, chars: Sequence[str]) -> Mapping[str, Optional[int]]:
        if not chars:
            return {}
        counts = await asyncio.gather(*(self._lookup_one(ch) for ch in chars))
        result: Dict[str, Optional[int]] = dict(zip(chars, counts))
        app_logger.info(
            f"kanjiapi lookup: {sum(c is not None for c in counts)}/{len(chars)} characters resolved"
        )
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
