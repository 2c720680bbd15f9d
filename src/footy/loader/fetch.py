"""
Document fetchers used by the season runners.

Every runner takes a `DocumentFetcher` argument, so tests and offline runs swap in `LocalFileFetcher`
or a fake without touching the network.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Protocol

import httpx
from httpx import AsyncClient

from src.footy.parse.fixed_width import decode_document

WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
DEFAULT_SLEEP_SEC = 1.0


class DocumentFetchError(RuntimeError):
    """Raised when a source document cannot be retrieved."""

    def __init__(self, identifier: str, reason: str):
        super().__init__(f"Failed to fetch {identifier}: {reason}")
        self.identifier = identifier
        self.reason = reason


class DocumentFetcher(Protocol):

    async def fetch(self, identifier: str) -> str:
        ...


class WikipediaFetcher:
    """Rendered article HTML for a page slug via the MediaWiki parse API."""

    def __init__(self, client: AsyncClient, sleep_sec: float = DEFAULT_SLEEP_SEC):
        self._client = client
        self._sleep_sec = sleep_sec

    async def fetch(self, identifier: str) -> str:
        params = {
            "action": "parse",
            "page": identifier,
            "prop": "text",
            "format": "json",
            "formatversion": "2",
            "redirects": "1",
        }
        logging.info("Calling %s page=%s", WIKIPEDIA_API_URL, identifier)
        try:
            response = await self._client.get(WIKIPEDIA_API_URL, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DocumentFetchError(identifier, str(exc)) from exc

        try:
            body = json.loads(response.content)
            if "error" in body:
                raise DocumentFetchError(identifier, body["error"].get("info") or "unknown API error")
            text = body["parse"]["text"]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise DocumentFetchError(identifier, f"unexpected API response: {exc!r}") from exc
        await asyncio.sleep(self._sleep_sec)
        return text


class RsssfFetcher:
    """Raw RSSSF pages, decoded with the declared charset or windows-1252."""

    def __init__(self, client: AsyncClient, sleep_sec: float = DEFAULT_SLEEP_SEC):
        self._client = client
        self._sleep_sec = sleep_sec

    async def fetch(self, identifier: str) -> str:
        logging.info("Calling %s", identifier)
        try:
            response = await self._client.get(identifier, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DocumentFetchError(identifier, str(exc)) from exc
        await asyncio.sleep(self._sleep_sec)
        return decode_document(response.content, response.headers.get("content-type"))


class LocalFileFetcher:
    """Read `{root}/{identifier}` from disk; `.html` is appended when the bare name is missing."""

    def __init__(self, root: str = "."):
        self._root = root

    def resolve(self, identifier: str) -> str:
        path = os.path.join(self._root, identifier)
        if not os.path.exists(path) and os.path.exists(path + ".html"):
            return path + ".html"
        return path

    async def fetch(self, identifier: str) -> str:
        path = self.resolve(identifier)
        try:
            with open(path, "rb") as fh:
                content = fh.read()
        except OSError as exc:
            raise DocumentFetchError(identifier, str(exc)) from exc
        return decode_document(content, "text/html; charset=utf-8")
