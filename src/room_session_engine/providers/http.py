from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from ..core.types import Track

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; room-session-engine)"


def _http_get(url: str, *, timeout: float, headers: dict[str, str] | None = None) -> str:
    request = urllib_request.Request(url, headers={"User-Agent": USER_AGENT, **(headers or {})})
    with urllib_request.urlopen(request, timeout=timeout) as response:  # noqa: S310
        return response.read().decode("utf-8", errors="replace")


def _http_post_json(url: str, payload: dict[str, Any], *, timeout: float) -> str:
    request = urllib_request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
        method="POST",
    )
    with urllib_request.urlopen(request, timeout=timeout) as response:  # noqa: S310
        return response.read().decode("utf-8", errors="replace")


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except Exception:
        return None


class GeminiCompletionProvider:
    API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={key}"

    def __init__(self, api_key: str, *, model: str = "gemini-2.0-flash", timeout: float = 15.0):
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    async def complete(self, prompt: str) -> str | None:
        return await asyncio.to_thread(self._complete_sync, prompt)

    def _complete_sync(self, prompt: str) -> str | None:
        url = self.API_URL.format(model=self._model, key=urllib_parse.quote(self._api_key))
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        data = _load_json(_http_post_json(url, payload, timeout=self._timeout))
        text = self.extract_text(data)
        if text is None:
            logger.warning("Unexpected completion response structure: %s", str(data)[:300])
        return text

    @staticmethod
    def extract_text(data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return None
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            return None
        text = parts[0].get("text")
        return text if isinstance(text, str) else None


class DadJokeProvider:
    API_URL = "https://icanhazdadjoke.com/"

    def __init__(self, *, timeout: float = 10.0):
        self._timeout = timeout

    async def fetch_joke(self) -> str | None:
        return await asyncio.to_thread(self._fetch_sync)

    def _fetch_sync(self) -> str | None:
        data = _load_json(_http_get(self.API_URL, timeout=self._timeout, headers={"Accept": "application/json"}))
        if not isinstance(data, dict):
            return None
        joke = data.get("joke")
        return joke if isinstance(joke, str) else None


class YouTubeSearchResolver:
    """Turns a watch URL or free-text query into a ``Track``.

    Search scrapes the first ``/watch?v=`` id from the results page; the title
    comes from the oEmbed endpoint and falls back to the URL itself.
    """

    SEARCH_URL = "https://www.youtube.com/results?search_query={query}"
    OEMBED_URL = "https://www.youtube.com/oembed?url={url}&format=json"
    WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
    _URL_RE = re.compile(
        r"^(?:https?://)?(?:www\.|m\.|music\.)?(?:youtube\.com/watch\?v=|youtu\.be/)([A-Za-z0-9_-]{11})"
    )
    _SEARCH_RE = re.compile(r"/watch\?v=([A-Za-z0-9_-]{11})")

    def __init__(self, *, timeout: float = 10.0):
        self._timeout = timeout

    async def resolve(self, query: str) -> Track | None:
        return await asyncio.to_thread(self._resolve_sync, query)

    def _resolve_sync(self, query: str) -> Track | None:
        query = (query or "").strip()
        if not query:
            return None
        video_id = self.video_id_from_url(query)
        if video_id is None:
            page = _http_get(self.SEARCH_URL.format(query=urllib_parse.quote_plus(query)), timeout=self._timeout)
            match = self._SEARCH_RE.search(page)
            if match is None:
                return None
            video_id = match.group(1)
        url = self.WATCH_URL.format(video_id=video_id)
        return Track(title=self._fetch_title(url) or url, source_ref=url)

    @classmethod
    def video_id_from_url(cls, text: str) -> Optional[str]:
        match = cls._URL_RE.match(text.strip())
        return match.group(1) if match else None

    def _fetch_title(self, url: str) -> Optional[str]:
        try:
            payload = _http_get(self.OEMBED_URL.format(url=urllib_parse.quote(url, safe="")), timeout=self._timeout)
        except Exception as exc:
            logger.debug("oEmbed lookup failed for %s: %s", url, exc)
            return None
        data = _load_json(payload)
        if not isinstance(data, dict):
            return None
        title = data.get("title")
        return title.strip() if isinstance(title, str) and title.strip() else None
