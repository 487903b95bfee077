"""Exception hierarchy for the product enrichment pipeline.

Validation errors are raised before any network access and are terminal for
the request.  Fetch errors are raised by the fetcher and converted into a
degraded :class:`~wishlist_backend.scraper.models.ScrapedProduct` by the
service boundary.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for every error raised by the scraper package."""


# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------

class UrlValidationError(ScraperError):
    """The input URL was rejected before fetching."""


class InvalidUrl(UrlValidationError):
    """The string is not a parseable http(s) URL."""


class UntrustedDomain(UrlValidationError):
    """The host is neither allow-listed nor looks like an e-commerce site."""

    def __init__(self, host: str) -> None:
        super().__init__(
            f"Unsupported domain: {host}. Only verified stores are allowed."
        )
        self.host = host


class SuspiciousTarget(UrlValidationError):
    """The URL points at a private network, a local file or a script URI."""

    def __init__(self, target: str) -> None:
        super().__init__(f"Suspicious target blocked: {target}")
        self.target = target


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

class FetchError(ScraperError):
    """The page could not be retrieved."""


class FetchTimeout(FetchError, TimeoutError):
    """The fetch exceeded its deadline and was aborted."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"Timeout: {url} took longer than {timeout:g}s to respond")
        self.url = url
        self.timeout = timeout


class HttpError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = "") -> None:
        message = f"HTTP {status_code}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.status_code = status_code


class UnsupportedContentType(FetchError):
    """The response is not an HTML document."""

    def __init__(self, content_type: str) -> None:
        super().__init__(
            f"URL did not return HTML (content-type: {content_type or 'missing'})"
        )
        self.content_type = content_type
