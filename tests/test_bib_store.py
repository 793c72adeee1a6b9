from pathlib import Path

import pytest

from bib_store import StoreParseError, contains, parse_document, parse_store, serialize_entry
from models import StoreEntry

SAMPLE_STORE = """@inproceedings{DBLP:conf/nips/VaswaniSPUJGKP17,
  author    = {Ashish Vaswani and Noam Shazeer},
  title     = {Attention is All you Need},
  booktitle = {NIPS},
  year      = {2017}
}

@book{knuth1984,
  author = {Donald E. Knuth},
  title = {The {TeX}book},
  publisher = {Addison-Wesley},
  year = {1984}
}
"""


def test_contains_false_when_store_missing(tmp_path: Path) -> None:
    assert contains(tmp_path / "missing.bib", "DBLP:abc") is False


def test_contains_true_for_substring(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"
    store.write_text(SAMPLE_STORE, encoding="utf-8")
    assert contains(store, "DBLP:conf/nips/VaswaniSPUJGKP17") is True
    assert contains(store, "DBLP:conf/icml/Other") is False


def test_contains_tolerates_invalid_bibtex(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"
    store.write_text("@article{DBLP:abc,\n  title = {half writ", encoding="utf-8")
    assert contains(store, "DBLP:abc") is True


def test_contains_empty_store(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"
    store.write_text("", encoding="utf-8")
    assert contains(store, "DBLP:abc") is False


def test_parse_store_keeps_order_and_fields() -> None:
    entries = parse_store(SAMPLE_STORE)
    assert [e.entry_key for e in entries] == ["DBLP:conf/nips/VaswaniSPUJGKP17", "knuth1984"]
    assert entries[0].entry_type == "inproceedings"
    assert entries[0].raw_fields["booktitle"] == "NIPS"
    assert entries[1].raw_fields["title"] == "The {TeX}book"


def test_parse_store_empty_text() -> None:
    assert parse_store("") == []


def test_parse_store_rejects_dropped_entries() -> None:
    with pytest.raises(StoreParseError):
        parse_store("@article{broken,\n  title = {unbalanced\n")


def test_serialize_round_trip() -> None:
    entry = StoreEntry(
        entry_key="knuth1984",
        entry_type="book",
        raw_fields={"author": "Donald E. Knuth", "title": "The {TeX}book", "year": "1984"},
    )
    text = serialize_entry(entry)
    assert text.startswith("@book{knuth1984,")
    assert text.endswith("}\n")

    parsed = parse_store(text)
    assert len(parsed) == 1
    assert parsed[0].entry_type == entry.entry_type
    assert parsed[0].raw_fields == entry.raw_fields


def test_parse_then_serialize_preserves_content() -> None:
    for entry in parse_store(SAMPLE_STORE):
        again = parse_store(serialize_entry(entry))[0]
        assert again.entry_key == entry.entry_key
        assert again.raw_fields == entry.raw_fields


def test_parse_store_entries_sharing_a_line() -> None:
    text = "@book{knuth1984,\n  title = {The TeXbook}\n}@article{DBLP:journals/x/abc,\n  title = {Notes}\n}\n"
    entries = parse_store(text)
    assert [e.entry_key for e in entries] == ["knuth1984", "DBLP:journals/x/abc"]


def test_parse_store_ignores_at_signs_inside_values() -> None:
    text = "@misc{contact,\n  note = {write to me@example{org}},\n  title = {Contact}\n}\n"
    entries = parse_store(text)
    assert [e.entry_key for e in entries] == ["contact"]


def test_parse_document_keeps_macros_and_blocks() -> None:
    text = (
        '@preamble{"\\newcommand{\\noopsort}[1]{}"}\n'
        '@string{jacm = "Journal of the ACM"}\n'
        "@article{k1,\n  journal = jacm,\n  month = jan,\n  title = {X}\n}\n"
    )
    document = parse_document(text)

    assert "@preamble" in document.blocks
    assert "noopsort" in document.blocks
    assert "@string{jacm" in document.blocks
    assert "Journal of the ACM" in document.blocks

    serialized = serialize_entry(document.entries[0])
    assert "journal = jacm" in serialized
    assert "month = jan" in serialized
    assert "January" not in serialized
