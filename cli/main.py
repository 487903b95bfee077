"""Wishlist backend CLI: entry-point for the enrichment tooling.

Usage:
    python cli/main.py --help

Commands:
    scrape     → validate, fetch and extract product metadata from a URL
    validate   → apply the URL trust policy without fetching
    classify   → run the category classifier on free text
    cache      → inspect and prune the scrape cache
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that
# `from wishlist_backend.xxx import ...` works when the CLI is invoked as
# `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from wishlist_backend.config import settings
from wishlist_backend.db import cache, get_connection, init_db
from wishlist_backend.logging_setup import configure_logging
from wishlist_backend.scraper.canonical import canonicalize_url
from wishlist_backend.scraper.classifier import classify
from wishlist_backend.scraper.errors import UrlValidationError
from wishlist_backend.scraper.models import DEFAULT_CATEGORY
from wishlist_backend.scraper.validator import validate_url

app = typer.Typer(
    name="wishlist",
    help="Wishlist backend CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging before any command runs."""
    configure_logging("DEBUG" if verbose else None)


# ---------------------------------------------------------------------------
# Enrichment commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="Product page URL."),
    strict: bool = typer.Option(False, "--strict", help="Fail on rejected URLs instead of degrading."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the scrape cache."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON result."),
) -> None:
    """Extract product metadata from URL and print it."""
    from wishlist_backend.scraper.service import scrape_product

    conn = None
    if not no_cache:
        conn = get_connection()
        init_db(conn)

    try:
        product = scrape_product(url, strict=strict, conn=conn)
    except UrlValidationError as exc:
        typer.echo(f"[scrape] Rejected: {exc}")
        raise typer.Exit(code=1)
    finally:
        if conn is not None:
            conn.close()

    if as_json:
        typer.echo(json.dumps(product.to_dict(), ensure_ascii=False, indent=2))
    else:
        for key, value in product.to_dict().items():
            typer.echo(f"[scrape] {key:<12}: {value}")

    if product.error:
        raise typer.Exit(code=1)


@app.command("validate")
def validate(
    url: str = typer.Argument(..., help="URL to check against the trust policy."),
) -> None:
    """Check whether URL may be fetched, without fetching it."""
    try:
        target = validate_url(url)
    except UrlValidationError as exc:
        typer.echo(f"[validate] {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1)

    typer.echo(f"[validate] OK  {target.url}")
    typer.echo(f"[validate] Cache key: {canonicalize_url(target.url)}")


@app.command("classify")
def classify_cmd(
    text: str = typer.Argument(..., help="Product title and/or description."),
) -> None:
    """Print the category the classifier assigns to TEXT."""
    typer.echo(classify(text) or DEFAULT_CATEGORY)


# ---------------------------------------------------------------------------
# Cache commands
# ---------------------------------------------------------------------------
cache_app = typer.Typer(help="Scrape cache maintenance.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")


@cache_app.command("purge")
def cache_purge(
    ttl_hours: Optional[float] = typer.Option(
        None, "--ttl-hours", help="Freshness window; defaults to CACHE_TTL_HOURS."
    ),
) -> None:
    """Delete cache entries older than the freshness window."""
    conn = get_connection()
    init_db(conn)
    try:
        removed = cache.purge_expired(
            conn, settings.cache_ttl_hours if ttl_hours is None else ttl_hours
        )
    finally:
        conn.close()
    typer.echo(f"[cache purge] Removed {removed} expired entr{'y' if removed == 1 else 'ies'}.")


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every cache entry."""
    conn = get_connection()
    init_db(conn)
    try:
        removed = cache.clear_cache(conn)
    finally:
        conn.close()
    typer.echo(f"[cache clear] Removed {removed} entr{'y' if removed == 1 else 'ies'}.")


@cache_app.command("stats")
def cache_stats() -> None:
    """Show how many products are cached."""
    conn = get_connection()
    init_db(conn)
    try:
        total = cache.count_entries(conn)
    finally:
        conn.close()
    typer.echo(f"[cache stats] {total} cached product(s) in {settings.db_path}")


if __name__ == "__main__":
    app()
