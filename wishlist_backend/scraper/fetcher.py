"""Bounded HTTP fetcher for product pages.

One GET per call, no retries.  The body is streamed so the download can be
cut at ``settings.max_response_bytes``.  The request runs on a worker thread
so the caller gets :class:`FetchTimeout` once ``settings.fetch_timeout`` has
elapsed, even while the server is still trickling headers.  httpx's own
timeout only bounds each individual socket read.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

import httpx

from wishlist_backend.config import settings
from wishlist_backend.scraper.errors import (
    FetchError,
    FetchTimeout,
    HttpError,
    SuspiciousTarget,
    UnsupportedContentType,
)
from wishlist_backend.scraper.models import FetchedDocument, ValidatedUrl
from wishlist_backend.scraper.validator import is_suspicious_host

logger = logging.getLogger(__name__)

_HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

# Patched in tests to simulate a slow server without sleeping.
_clock = time.monotonic


def _default_headers() -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": settings.accept_language,
        "DNT": "1",
        "Upgrade-Insecure-Requests": "1",
    }


def _is_html(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in _HTML_CONTENT_TYPES


def _guard_request(request: httpx.Request) -> None:
    """Event hook: refuse redirect hops that leave the public internet."""
    if request.url.scheme not in ("http", "https") or is_suspicious_host(request.url.host):
        raise SuspiciousTarget(str(request.url))


def _read_limited(
    response: httpx.Response, deadline: float, url: str, timeout: float
) -> tuple[bytes, bool]:
    """Read at most ``settings.max_response_bytes`` from a streamed *response*.

    Returns the body and whether it was cut short.
    """
    limit = settings.max_response_bytes
    chunks: list[bytes] = []
    size = 0
    for chunk in response.iter_bytes():
        if _clock() > deadline:
            raise FetchTimeout(url, timeout)
        if size + len(chunk) > limit:
            chunks.append(chunk[: limit - size])
            return b"".join(chunks), True
        chunks.append(chunk)
        size += len(chunk)
    return b"".join(chunks), False


def _download(
    client: httpx.Client, url: ValidatedUrl, deadline: float, timeout: float
) -> FetchedDocument:
    try:
        with client.stream("GET", url.url) as response:
            if not response.is_success:
                raise HttpError(response.status_code, response.reason_phrase)

            content_type = response.headers.get("content-type", "")
            if not _is_html(content_type):
                raise UnsupportedContentType(content_type)

            body, truncated = _read_limited(response, deadline, url.url, timeout)
            encoding = response.encoding or "utf-8"
            final_url = str(response.url)
            status_code = response.status_code
    except httpx.TimeoutException as exc:
        raise FetchTimeout(url.url, timeout) from exc
    except httpx.HTTPError as exc:
        raise FetchError(f"Request to {url.host} failed: {exc}") from exc

    if truncated:
        logger.debug("Truncated %s at %d bytes", final_url, len(body))

    return FetchedDocument(
        url=final_url,
        html=body.decode(encoding, errors="replace"),
        content_type=content_type,
        status_code=status_code,
        truncated=truncated,
    )


def fetch_document(url: ValidatedUrl) -> FetchedDocument:
    """Fetch *url* and return its HTML as a :class:`FetchedDocument`.

    Raises:
        FetchTimeout: The request did not complete before ``settings.fetch_timeout``.
        HttpError: The server returned a non-2xx status.
        UnsupportedContentType: The response is not HTML.
        SuspiciousTarget: A redirect pointed at a private or local host.
        FetchError: Any other transport failure (DNS, refused connection, ...).
    """
    timeout = settings.fetch_timeout
    deadline = _clock() + timeout

    client = httpx.Client(
        headers=_default_headers(),
        timeout=timeout,
        follow_redirects=True,
        event_hooks={"request": [_guard_request]},
    )
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fetch")
    try:
        future = pool.submit(_download, client, url, deadline, timeout)
        try:
            return future.result(timeout=timeout)
        except FetchTimeout:
            raise
        except FutureTimeout:
            logger.debug("Abandoning %s after %.1fs", url.url, timeout)
            raise FetchTimeout(url.url, timeout) from None
    finally:
        # A worker stuck on the socket is left to its own read timeout.
        client.close()
        pool.shutdown(wait=False)
