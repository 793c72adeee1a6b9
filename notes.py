"""Index of Markdown annotation files keyed by their header ``key``."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from bibtexparser.bibdatabase import as_text

import dblp_client
import header_codec
from models import NoteHeader

NOTE_EXTENSION = ".md"
_UNSAFE_FILENAME_CHARS = (":", "/", "\\")

LOGGER = logging.getLogger(__name__)


class DuplicateKeyError(RuntimeError):
    """An annotation file with the same key already exists."""

    def __init__(self, key: str, path: Path) -> None:
        super().__init__(f"Annotation file for {key} already exists: {path}")
        self.key = key
        self.path = path


def indexed(root: str | Path) -> Iterator[tuple[Path, NoteHeader]]:
    """Yield (path, header) for every file under ``root`` with a valid header.

    The walk is depth-first and lazy. Files without a header, with a malformed
    header, or that cannot be read as UTF-8 are skipped.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if not path.is_file():
                continue
            try:
                header = header_codec.decode(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, header_codec.HeaderDecodeError) as exc:
                LOGGER.debug("Skipping %s: %s", path, exc)
                continue
            if header is not None:
                yield path, header


def find_by_key(root: str | Path, key: str) -> Path | None:
    for path, header in indexed(root):
        if header.key == key:
            return path
    return None


def note_filename(title: str) -> str:
    name = title.strip()
    for char in _UNSAFE_FILENAME_CHARS:
        name = name.replace(char, "-")
    # DBLP titles end with a full stop.
    name = name.removesuffix(".").strip()
    if not name:
        raise ValueError(f"Cannot derive a note filename from title {title!r}")
    return name + NOTE_EXTENSION


def create_annotation_file(root: str | Path, key: str, title: str, body: str = "") -> Path:
    """Create the annotation file for ``key`` in ``root``.

    Raises DuplicateKeyError if any indexed file already carries ``key``;
    nothing is written in that case. Fetch errors propagate as well.
    """
    root_path = Path(root)
    existing = [path for path, header in indexed(root_path) if header.key == key]
    if existing:
        raise DuplicateKeyError(key, existing[0])

    target = root_path / note_filename(title)
    entry = dblp_client.fetch_entry(key)

    fields = {name: as_text(value) for name, value in entry.raw_fields.items() if name not in ("key", "title")}
    header = NoteHeader(key=key, title=title, fields=fields)

    root_path.mkdir(parents=True, exist_ok=True)
    with target.open("x", encoding="utf-8") as fh:
        fh.write(header_codec.encode(header, body))

    LOGGER.info("Created annotation file %s for %s", target, key)
    return target
