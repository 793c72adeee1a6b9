"""Rewrite the whole BibTeX store in another DBLP format."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import dblp_client
from bib_store import parse_document, serialize_entry
from models import Format

BACKUP_SUFFIX = ".bak"

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ConversionReport:
    backup_path: Path
    refreshed: list[str] = field(default_factory=list)
    local: list[str] = field(default_factory=list)
    fallbacks: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.refreshed) + len(self.local) + len(self.fallbacks)


def backup_path_for(store_path: Path) -> Path:
    return store_path.with_name(store_path.name + BACKUP_SUFFIX)


def convert_store(store_path: str | Path, fmt: Format) -> ConversionReport:
    """Re-fetch every DBLP entry of the store in ``fmt`` and rewrite the file.

    An exact copy of the store is written next to it before anything changes.
    An entry whose refresh fails keeps its current local text and is listed in
    ``ConversionReport.fallbacks``; the rest of the store is still converted.
    """
    path = Path(store_path)
    source = path.read_text(encoding="utf-8")

    backup = backup_path_for(path)
    backup.write_text(source, encoding="utf-8")
    LOGGER.info("Backed up %s to %s", path, backup)

    document = parse_document(source)
    report = ConversionReport(backup_path=backup)

    with path.open("w", encoding="utf-8") as fh:
        if document.blocks:
            fh.write(document.blocks.rstrip("\n") + "\n\n")
        for entry in document.entries:
            text = None
            remote_key = entry.remote_key

            if remote_key is not None:
                try:
                    text = dblp_client.fetch_record_text(remote_key, fmt)
                    report.refreshed.append(entry.entry_key)
                except dblp_client.CatalogTransportError as exc:
                    report.fallbacks.append(entry.entry_key)
                    LOGGER.warning("Keeping local text for %s, refresh failed: %s", entry.entry_key, exc)
            else:
                report.local.append(entry.entry_key)

            if text is None:
                text = serialize_entry(entry)
            fh.write(text.rstrip("\n") + "\n\n")

    LOGGER.info(
        "Converted %s to %s: refreshed=%s local=%s fallbacks=%s",
        path,
        fmt.value,
        len(report.refreshed),
        len(report.local),
        len(report.fallbacks),
    )
    return report
