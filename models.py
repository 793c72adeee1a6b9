"""Shared typed models for the DBLP store and annotation files."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

LOCAL_KEY_PREFIX = "DBLP:"


class Format(str, Enum):
    """BibTeX flavours served by DBLP, selected with the ``param`` query value."""

    CONDENSED = "condensed"
    STANDARD = "standard"

    @property
    def param(self) -> str:
        return "0" if self is Format.CONDENSED else "1"


@dataclass(frozen=True, slots=True)
class CatalogRecord:
    """One DBLP search hit."""

    key: str
    authors: tuple[str, ...]
    title: str
    venue: str
    year: str
    url: str

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("CatalogRecord.key must not be empty")


@dataclass(slots=True)
class StoreEntry:
    """One parsed BibTeX entry of the local store."""

    entry_key: str
    entry_type: str
    raw_fields: dict[str, str] = field(default_factory=dict)

    @property
    def remote_key(self) -> str | None:
        return strip_local_key(self.entry_key)


@dataclass(frozen=True, slots=True)
class NoteHeader:
    """Header block at the top of an annotation file."""

    key: str
    title: str
    fields: dict[str, str] = field(default_factory=dict, compare=False)


def derive_local_key(record: CatalogRecord) -> str:
    return f"{LOCAL_KEY_PREFIX}{record.key}"


def strip_local_key(entry_key: str) -> str | None:
    """Return the DBLP key inside a local key, or None for non-DBLP entries."""
    if not entry_key.startswith(LOCAL_KEY_PREFIX):
        return None
    return entry_key[len(LOCAL_KEY_PREFIX):]


def fetch_url(record: CatalogRecord, fmt: Format) -> str:
    """Build the BibTeX download URL for a record in the requested format."""
    return f"{record.url}.bib?param={fmt.param}"
