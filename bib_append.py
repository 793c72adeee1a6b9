"""Append a selected DBLP record to the local BibTeX store."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import dblp_client
from bib_store import contains
from models import CatalogRecord, Format, derive_local_key, fetch_url

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppendResult:
    local_key: str
    added: bool


def append_record(record: CatalogRecord, store_path: str | Path) -> AppendResult:
    """Append the standard BibTeX of ``record`` unless its key is already stored.

    Repeated calls with the same record leave a single copy in the store.
    Transport errors propagate; nothing is written in that case.
    """
    path = Path(store_path)
    local_key = derive_local_key(record)

    if contains(path, local_key):
        LOGGER.info("Skipping existing entry %s in %s", local_key, path)
        return AppendResult(local_key=local_key, added=False)

    text = dblp_client.fetch_citation_text(fetch_url(record, Format.STANDARD))

    separator = _separator(path)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(separator + text.rstrip("\n") + "\n")

    LOGGER.info("Appended %s to %s", local_key, path)
    return AppendResult(local_key=local_key, added=True)


def _separator(path: Path) -> str:
    """Text that leaves one blank line between the store's last entry and the next."""
    if not path.is_file():
        return ""
    with path.open("rb") as fh:
        fh.seek(0, os.SEEK_END)
        size = fh.tell()
        fh.seek(max(size - 2, 0))
        tail = fh.read()

    if size == 0 or tail.endswith(b"\n\n"):
        return ""
    return "\n" if tail.endswith(b"\n") else "\n\n"
