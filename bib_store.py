"""Local BibTeX store helpers: membership checks, parsing and serialization."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import bibtexparser
from bibtexparser.bibdatabase import COMMON_STRINGS, BibDatabase
from bibtexparser.bparser import BibTexParser
from bibtexparser.bwriter import BibTexWriter

from models import StoreEntry

LOGGER = logging.getLogger(__name__)

# Entry openings such as "@inproceedings{" that carry a record (not @string etc.).
_ENTRY_START_RE = re.compile(r"@(?!(?:comment|string|preamble)\b)\w+\s*[{(]", re.I)


class StoreParseError(RuntimeError):
    """The store text is not valid BibTeX."""


@dataclass(slots=True)
class StoreDocument:
    """A parsed store: @comment/@preamble/@string blocks plus the entries."""

    blocks: str
    entries: list[StoreEntry] = field(default_factory=list)


def contains(store_path: str | Path, local_key: str) -> bool:
    """Return True if any line of the store contains ``local_key``.

    This is a textual scan, not a BibTeX lookup: it works on an empty or
    half-written store, and a missing store counts as empty. A key that is a
    substring of another key will report a false positive.
    """
    path = Path(store_path)
    if not path.is_file():
        return False

    with path.open(encoding="utf-8") as fh:
        for line in fh:
            if local_key in line:
                return True
    return False


def parse_document(text: str) -> StoreDocument:
    """Parse BibTeX text, keeping macros unexpanded and non-entry blocks as text."""
    parser = BibTexParser(common_strings=True, interpolate_strings=False, ignore_nonstandard_types=False)
    try:
        database = bibtexparser.loads(text, parser=parser)
    except Exception as exc:  # pyparsing errors surface with several types
        raise StoreParseError(f"Could not parse BibTeX store: {exc}") from exc

    expected = _count_entry_starts(text)
    if len(database.entries) != expected:
        raise StoreParseError(
            f"Could not parse BibTeX store: found {expected} entries, parsed {len(database.entries)}"
        )

    entries: list[StoreEntry] = []
    for raw in database.entries:
        # Values referencing a @string macro stay BibDataStringExpression objects.
        fields = {name: value for name, value in raw.items() if name not in ("ID", "ENTRYTYPE")}
        entries.append(StoreEntry(entry_key=raw["ID"], entry_type=raw["ENTRYTYPE"], raw_fields=fields))

    extras = BibDatabase()
    extras.comments = database.comments
    extras.preambles = database.preambles
    # Month macros come from common_strings, not from the store.
    for name, value in database.strings.items():
        if COMMON_STRINGS.get(name) != value:
            extras.strings[name] = value

    writer = BibTexWriter()
    writer.contents = ["comments", "preambles", "strings"]
    writer.entry_separator = ""
    blocks = writer.write(extras).strip()

    LOGGER.debug("Parsed %s entries from store text", len(entries))
    return StoreDocument(blocks=blocks + "\n" if blocks else "", entries=entries)


def parse_store(text: str) -> list[StoreEntry]:
    """Parse BibTeX text into entries, preserving their order."""
    return parse_document(text).entries


def serialize_entry(entry: StoreEntry) -> str:
    """Render one entry as BibTeX text without trailing blank lines."""
    database = BibDatabase()
    database.entries = [{"ID": entry.entry_key, "ENTRYTYPE": entry.entry_type, **entry.raw_fields}]

    writer = BibTexWriter()
    writer.indent = "  "
    writer.entry_separator = ""
    return writer.write(database).strip() + "\n"


def _count_entry_starts(text: str) -> int:
    """Count entry openings outside braces, wherever they sit on a line."""
    count = 0
    depth = 0
    for index, char in enumerate(text):
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif char == "@" and depth == 0 and _ENTRY_START_RE.match(text, index):
            count += 1
    return count
