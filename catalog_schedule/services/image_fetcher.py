# catalog_schedule/services/image_fetcher.py

"""Concurrent fetching of product images for schedule rows."""

import asyncio
import logging
import time
from pathlib import Path
from urllib.parse import unquote, urlparse

from curl_cffi import requests as curl_requests

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import ImageFetchError

logger = logging.getLogger("catalog_schedule.images")


class ImageFetcher:
    """Fetches ``http(s)://`` images with retries and ``file://`` from disk."""

    def __init__(
        self,
        session: curl_requests.Session | None = None,
    ) -> None:
        self.session = session or curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )
        self._timeout: int = Settings.IMAGE_FETCH_TIMEOUT

    def fetch(self, url: str) -> bytes:
        """Return the image bytes at *url* or raise :class:`ImageFetchError`."""
        if not url:
            raise ImageFetchError(url, "no image URL")
        parsed = urlparse(url)
        if parsed.scheme == "file":
            return self._read_file(url, Path(unquote(parsed.path)))
        if parsed.scheme not in ("http", "https"):
            raise ImageFetchError(url, f"unsupported scheme {parsed.scheme!r}")
        return self._fetch_http(url)

    def _read_file(self, url: str, path: Path) -> bytes:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ImageFetchError(url, str(exc)) from exc
        if not data:
            raise ImageFetchError(url, "file is empty")
        return data

    def _fetch_http(self, url: str) -> bytes:
        """GET with a fixed number of attempts and a short pause between."""
        reason = "no attempts made"
        for attempt in range(Settings.IMAGE_FETCH_RETRIES):
            try:
                resp = self.session.get(url, timeout=self._timeout)
                if resp.status_code == 200 and resp.content:
                    return bytes(resp.content)
                reason = f"HTTP {resp.status_code}"
                logger.warning(
                    "Image fetch %s returned %s on attempt %d",
                    url,
                    reason,
                    attempt + 1,
                )
                if 400 <= resp.status_code < 500 and resp.status_code != 429:
                    break
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
                logger.warning(
                    "Image fetch error for %s on attempt %d: %s",
                    url,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
            time.sleep(Settings.IMAGE_FETCH_DELAY * (attempt + 1))
        raise ImageFetchError(url, reason)

    def fetch_or_none(self, url: str) -> bytes | None:
        """Like :meth:`fetch`, but a failure is logged and yields ``None``."""
        try:
            return self.fetch(url)
        except ImageFetchError as exc:
            logger.warning("%s; row renders without an image", exc)
            return None

    async def fetch_all(self, urls: list[str]) -> list[bytes | None]:
        """Fetch every URL concurrently, preserving order.

        A failed fetch never aborts the batch; its slot is ``None``.
        """
        tasks = [
            asyncio.to_thread(self.fetch_or_none, url)
            for url in urls
        ]
        results: list[bytes | None] = list(await asyncio.gather(*tasks))
        missing = sum(1 for r in results if r is None)
        logger.info(
            "Fetched %d/%d row images", len(results) - missing, len(results),
        )
        return results
