"""Centralised settings for the wishlist backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _split_csv(value: str) -> list[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("WISHLIST_WORKSPACE", Path.home() / ".wishlist_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database holding the scrape cache."""
        return self.workspace_dir / "wishlist.db"

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_TIMEOUT", "10.0"))
    )
    max_response_bytes: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RESPONSE_BYTES", "300000"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("SCRAPER_USER_AGENT", _BROWSER_UA)
    )
    accept_language: str = field(
        default_factory=lambda: os.environ.get(
            "SCRAPER_ACCEPT_LANGUAGE", "pt-PT,pt;q=0.9,en;q=0.8"
        )
    )

    # ------------------------------------------------------------------
    # Trust policy
    # ------------------------------------------------------------------
    extra_trusted_domains: list[str] = field(
        default_factory=lambda: _split_csv(os.environ.get("EXTRA_TRUSTED_DOMAINS", ""))
    )

    # ------------------------------------------------------------------
    # Scrape cache
    # ------------------------------------------------------------------
    cache_ttl_hours: float = field(
        default_factory=lambda: float(os.environ.get("CACHE_TTL_HOURS", "12"))
    )

    # ------------------------------------------------------------------
    # Rate limiting (API layer)
    # ------------------------------------------------------------------
    rate_limit_max_calls: int = field(
        default_factory=lambda: int(os.environ.get("RATE_LIMIT_MAX_CALLS", "1"))
    )
    rate_limit_window: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_WINDOW", "1.0"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton; import this everywhere:
#   from wishlist_backend.config import settings
settings = Settings()
