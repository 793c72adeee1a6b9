"""CLI entrypoint for keeping a BibTeX file and annotation notes in sync with DBLP."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from bib_append import append_record
from bib_convert import convert_store
from clipboard import write_clipboard
from dblp_client import search_catalog
from models import CatalogRecord, Format, derive_local_key
from notes import create_annotation_file, indexed
from selector import preview_record, select_one


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Add DBLP references to a BibTeX file and manage notes")
    parser.add_argument("-b", "--bibtex", metavar="FILE", default=None, help="BibTeX store (default: $BIB_PATH or the only .bib in .)")
    parser.add_argument("--notes-dir", default=None, help="Annotation directory (default: $NOTES_DIR or .)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Search DBLP and append the chosen entry")
    add.add_argument("query", nargs="+")

    convert = subparsers.add_parser("convert", help="Rewrite every DBLP entry in another format")
    convert.add_argument("to", choices=[fmt.value for fmt in Format])

    note = subparsers.add_parser("note", help="Search DBLP and create an annotation file")
    note.add_argument("query", nargs="+")

    subparsers.add_parser("notes", help="List indexed annotation files")
    return parser.parse_args(argv)


def find_unique_bib(directory: Path = Path(".")) -> Path | None:
    """Return the only *.bib file in ``directory``, or None if there are zero or several."""
    candidates = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".bib")
    return candidates[0] if len(candidates) == 1 else None


def resolve_bib_path(cli_value: str | None) -> Path:
    value = cli_value or os.getenv("BIB_PATH")
    if value:
        return Path(value)

    found = find_unique_bib()
    if found is None:
        raise RuntimeError("missing bibtex file: pass --bibtex or set BIB_PATH")
    return found


def _build_query(words: list[str]) -> str:
    return " ".join(part for word in words for part in word.split())


def _choose_record(words: list[str]) -> CatalogRecord:
    records = search_catalog(_build_query(words))
    return select_one(records, preview_record)


def run_add(words: list[str], bib_path: Path) -> None:
    record = _choose_record(words)
    result = append_record(record, bib_path)
    if not result.added:
        logging.info("%s is already in %s", result.local_key, bib_path)
    write_clipboard(result.local_key)
    print(result.local_key)


def run_convert(to: str, bib_path: Path) -> None:
    report = convert_store(bib_path, Format(to))
    for key in report.fallbacks:
        print(f"could not refresh {key}, kept local entry", file=sys.stderr)
    print(
        f"converted {report.total} entries "
        f"(refreshed={len(report.refreshed)} local={len(report.local)} "
        f"fallbacks={len(report.fallbacks)}); backup at {report.backup_path}"
    )


def run_note(words: list[str], notes_dir: Path) -> None:
    record = _choose_record(words)
    path = create_annotation_file(notes_dir, derive_local_key(record), record.title)
    print(path)


def run_notes(notes_dir: Path) -> None:
    for path, header in indexed(notes_dir):
        print(f"{header.key}\t{path}")


def main(argv: list[str] | None = None) -> int:
    """Initialize config and execute one command."""
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    notes_dir = Path(args.notes_dir or os.getenv("NOTES_DIR", "."))

    try:
        if args.command == "add":
            run_add(args.query, resolve_bib_path(args.bibtex))
        elif args.command == "convert":
            run_convert(args.to, resolve_bib_path(args.bibtex))
        elif args.command == "note":
            run_note(args.query, notes_dir)
        else:
            run_notes(notes_dir)
    except Exception as exc:  # broad so every failure ends with one message and a non-zero exit
        logging.error("%s", exc)
        logging.debug("Traceback", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
