"""DBLP search and BibTeX download helpers."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

from bib_store import StoreParseError, parse_store
from models import CatalogRecord, Format, StoreEntry, strip_local_key

# Mirrors are tried in order; the first successful response wins.
DBLP_ENDPOINTS = [
    url.strip().rstrip("/")
    for url in os.getenv("DBLP_ENDPOINTS", "https://dblp.org,https://dblp.uni-trier.de").split(",")
    if url.strip()
]
REQUEST_TIMEOUT_SECONDS = float(os.getenv("DBLP_TIMEOUT_SECONDS", "30"))
MAX_HITS = int(os.getenv("DBLP_MAX_HITS", "30"))

LOGGER = logging.getLogger(__name__)


class CatalogTransportError(RuntimeError):
    """DBLP could not be reached or answered with something unusable."""


def search_catalog(query: str, fmt: Format = Format.STANDARD) -> list[CatalogRecord]:
    """Search DBLP publications and return the hits in ranking order.

    ``fmt`` is not sent: the search API returns the same hits for both BibTeX
    formats, the format only matters when a record is downloaded.
    """
    params = {"q": query, "format": "json", "h": MAX_HITS}
    last_error: Exception | None = None

    for endpoint in DBLP_ENDPOINTS:
        url = f"{endpoint}/search/publ/api"
        try:
            response = requests.get(url, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            last_error = exc
            LOGGER.warning("DBLP search failed on %s, trying next mirror: %s", endpoint, exc)
            continue

        records = _parse_search_payload(payload)
        LOGGER.info("DBLP search: query=%r endpoint=%s hits=%s", query, endpoint, len(records))
        return records

    raise CatalogTransportError(f"DBLP search failed on every endpoint: {last_error}")


def fetch_citation_text(url: str) -> str:
    """Download one BibTeX record."""
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise CatalogTransportError(f"Could not fetch {url}: {exc}") from exc

    text = response.text
    if not text.strip():
        raise CatalogTransportError(f"Empty BibTeX response from {url}")
    return text


def fetch_record_text(key: str, fmt: Format) -> str:
    """Download the BibTeX of a DBLP record key (without the local prefix)."""
    last_error: Exception | None = None
    for endpoint in DBLP_ENDPOINTS:
        url = f"{endpoint}/rec/{key}.bib?param={fmt.param}"
        try:
            return fetch_citation_text(url)
        except CatalogTransportError as exc:
            last_error = exc
            LOGGER.warning("DBLP record fetch failed on %s: %s", endpoint, exc)

    raise CatalogTransportError(f"Could not fetch DBLP record {key}: {last_error}")


def fetch_entry(local_key: str) -> StoreEntry:
    """Fetch the standard BibTeX record behind a local key and parse it."""
    key = strip_local_key(local_key) or local_key
    text = fetch_record_text(key, Format.STANDARD)
    try:
        entries = parse_store(text)
    except StoreParseError as exc:
        raise CatalogTransportError(f"Malformed BibTeX for {local_key}: {exc}") from exc

    if not entries:
        raise CatalogTransportError(f"No BibTeX entry returned for {local_key}")
    return entries[0]


def _parse_search_payload(payload: Any) -> list[CatalogRecord]:
    """Parse the search API payload into CatalogRecord objects."""
    try:
        hits_block = payload["result"]["hits"]
    except (KeyError, TypeError) as exc:
        raise CatalogTransportError(f"Unexpected DBLP search payload shape: {payload}") from exc

    # DBLP omits "hit" entirely when nothing matched.
    hits = hits_block.get("hit", []) if isinstance(hits_block, dict) else []

    records: list[CatalogRecord] = []
    for hit in hits:
        info = hit.get("info") if isinstance(hit, dict) else None
        if not isinstance(info, dict):
            continue

        key = _as_str(info.get("key"))
        if not key:
            continue

        records.append(
            CatalogRecord(
                key=key,
                authors=_parse_authors(info.get("authors")),
                title=_as_str(info.get("title")) or "",
                venue=_as_str(info.get("venue")) or "",
                year=_as_str(info.get("year")) or "",
                url=_as_str(info.get("url")) or f"https://dblp.org/rec/{key}",
            )
        )
    return records


def _parse_authors(value: Any) -> tuple[str, ...]:
    # A single author comes back as an object, several as a list.
    author = value.get("author") if isinstance(value, dict) else None
    if isinstance(author, dict):
        author = [author]
    if not isinstance(author, list):
        return ()

    names = [_as_str(item.get("text")) if isinstance(item, dict) else _as_str(item) for item in author]
    return tuple(name for name in names if name)


def _as_str(value: Any) -> str | None:
    if isinstance(value, (int, float)):
        value = str(value)
    return value.strip() if isinstance(value, str) and value.strip() else None
