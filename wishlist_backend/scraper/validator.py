"""URL trust policy: normalizes user input and decides whether it may be fetched.

Order of checks in :func:`validate_url`:

1. script/file schemes are rejected as suspicious,
2. a missing scheme defaults to ``https://``,
3. anything other than http/https is an invalid URL,
4. the lowercased host is checked against the suspicious-target list,
5. the host must be allow-listed or look like an e-commerce domain.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import Iterable, Optional
from urllib.parse import urlsplit, urlunsplit

from wishlist_backend.config import settings
from wishlist_backend.scraper.errors import InvalidUrl, SuspiciousTarget, UntrustedDomain
from wishlist_backend.scraper.models import ValidatedUrl

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Policy tables (read-only)
# ---------------------------------------------------------------------------
TRUSTED_DOMAINS: tuple[str, ...] = (
    # Marketplaces
    "amazon.com", "amazon.pt", "amazon.es", "amazon.fr", "amazon.co.uk",
    "amazon.de", "amazon.it",
    "ebay.com", "ebay.pt", "ebay.es", "ebay.fr", "ebay.co.uk", "ebay.de", "ebay.it",
    "aliexpress.com", "aliexpress.us", "shein.com", "wish.com", "temu.com",
    "banggood.com", "gearbest.com", "dhgate.com",
    "mercadolivre.pt", "mercadolivre.com.br", "kuantokusta.pt",
    # Portuguese / Spanish retailers
    "fnac.pt", "fnac.com", "fnac.es", "fnac.fr",
    "worten.pt", "worten.es", "pcdiga.pt", "globaldata.pt", "novoatalho.pt",
    "continente.pt", "elcorteingles.pt", "elcorteingles.es",
    "mediamarkt.pt", "mediamarkt.es", "radiopopular.pt", "carrefour.es",
    "leroy.pt", "leroymerlin.es",
    # Fashion
    "zalando.pt", "zalando.es", "zalando.fr", "hm.com", "zara.com",
    "uniqlo.com", "asos.com", "nike.com", "adidas.com", "adidas.pt",
    # Electronics
    "apple.com", "samsung.com", "sony.com", "bestbuy.com",
    # Home, beauty, travel
    "ikea.com", "sephora.com", "booking.com", "hotels.com",
)

ECOMMERCE_KEYWORDS: tuple[str, ...] = ("shop", "store", "loja", "buy", "market")

ECOMMERCE_TLDS: tuple[str, ...] = (
    ".com", ".pt", ".es", ".fr", ".de", ".it", ".eu",
    ".co.uk", ".com.br", ".store", ".shop",
)

SUSPICIOUS_PATTERNS: tuple[str, ...] = ("localhost", "127.0.0.1", "0.0.0.0", "192.168.")

SUSPICIOUS_SUFFIXES: tuple[str, ...] = (".onion", ".local", ".localhost", ".internal", ".lan")

URL_SHORTENERS: tuple[str, ...] = (
    "bit.ly", "tinyurl.com", "t.co", "goo.gl", "ow.ly", "is.gd", "buff.ly",
    "rebrand.ly", "cutt.ly", "shorturl.at", "tiny.cc", "rb.gy", "s.id",
)

_BLOCKED_SCHEMES: tuple[str, ...] = ("javascript:", "vbscript:", "data:", "file:")

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
_CONTROL_CHARS_RE = re.compile(r"[\t\r\n\x00]")
_HOSTNAME_RE = re.compile(r"^[\w-]+(?:\.[\w-]+)*$")
_NUMERIC_HOST_RE = re.compile(r"^(?:0x[0-9a-f]+|\d+)(?:\.(?:0x[0-9a-f]*|\d*))*$")


# ---------------------------------------------------------------------------
# Host predicates
# ---------------------------------------------------------------------------

def _matches_domain(host: str, domains: Iterable[str]) -> bool:
    """Return ``True`` if *host* equals, or is a subdomain of, any of *domains*."""
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def is_suspicious_host(host: str) -> bool:
    """Return ``True`` for loopback, private-network, hidden-service and shortener hosts."""
    host = host.lower().strip("[]").rstrip(".")
    if any(pattern in host for pattern in SUSPICIOUS_PATTERNS):
        return True
    if host.endswith(SUSPICIOUS_SUFFIXES):
        return True
    if _matches_domain(host, URL_SHORTENERS):
        return True

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        # Octal, hex and bare-integer spellings of an IP address
        return bool(_NUMERIC_HOST_RE.match(host))

    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_multicast
        or address.is_unspecified
    )


def is_ecommerce_host(host: str) -> bool:
    """Heuristic: a retail keyword in the host and a recognised TLD."""
    return any(keyword in host for keyword in ECOMMERCE_KEYWORDS) and host.endswith(
        ECOMMERCE_TLDS
    )


def is_trusted_host(host: str, extra_domains: Optional[Iterable[str]] = None) -> bool:
    """Return ``True`` if *host* is allow-listed or passes the e-commerce heuristic."""
    host = host.lower()
    extra = settings.extra_trusted_domains if extra_domains is None else extra_domains
    if _matches_domain(host, TRUSTED_DOMAINS) or _matches_domain(host, extra):
        return True
    return is_ecommerce_host(host)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_url(raw_url: str) -> ValidatedUrl:
    """Normalize *raw_url* and apply the trust policy.

    Raises:
        InvalidUrl: Empty, unparseable, non-http(s) or host-less input.
        SuspiciousTarget: Script/file schemes and private or local hosts.
        UntrustedDomain: Hosts that are neither allow-listed nor look like a shop.
    """
    candidate = _CONTROL_CHARS_RE.sub("", (raw_url or "").strip())
    if not candidate:
        raise InvalidUrl("URL is required")

    if candidate.lower().startswith(_BLOCKED_SCHEMES):
        raise SuspiciousTarget(candidate.split(":", 1)[0].lower() + ":")

    if not _SCHEME_RE.match(candidate):
        candidate = "https://" + candidate

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise InvalidUrl(f"Invalid URL: {raw_url}") from exc

    scheme = parts.scheme.lower()
    if scheme not in ("http", "https"):
        raise InvalidUrl(f"Only HTTP/HTTPS URLs are allowed: {raw_url}")

    host = (parts.hostname or "").rstrip(".")
    if not host:
        raise InvalidUrl(f"Invalid URL: {raw_url}")

    if is_suspicious_host(host):
        logger.warning("Blocked suspicious target %s", host)
        raise SuspiciousTarget(host)

    is_ip = _is_ip_literal(host)
    if not is_ip and not _HOSTNAME_RE.match(host):
        raise InvalidUrl(f"Invalid host: {host}")

    if not is_trusted_host(host):
        logger.info("Rejected untrusted domain %s", host)
        raise UntrustedDomain(host)

    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"

    url = urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))
    return ValidatedUrl(url=url, scheme=scheme, host=host)


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True
