from pathlib import Path
from unittest.mock import patch

import pytest

from bib_append import append_record
from bib_convert import convert_store
from bib_store import parse_store
from dblp_client import CatalogTransportError
from models import CatalogRecord, Format

BIB_TEXT = """@article{DBLP:journals/x/abc,
  author = {Ada Lovelace},
  title  = {Notes},
  year   = {1843}
}"""


def _record(key: str = "journals/x/abc") -> CatalogRecord:
    return CatalogRecord(
        key=key,
        authors=("Ada Lovelace",),
        title="Notes",
        venue="Journal X",
        year="1843",
        url=f"https://dblp.org/rec/{key}",
    )


def test_append_creates_store_and_writes_entry(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"

    with patch("bib_append.dblp_client.fetch_citation_text", return_value=BIB_TEXT) as mock_fetch:
        result = append_record(_record(), store)

    mock_fetch.assert_called_once_with("https://dblp.org/rec/journals/x/abc.bib?param=1")
    assert result.added is True
    assert result.local_key == "DBLP:journals/x/abc"
    assert store.read_text(encoding="utf-8") == BIB_TEXT + "\n"


def test_append_is_idempotent(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"

    with patch("bib_append.dblp_client.fetch_citation_text", return_value=BIB_TEXT) as mock_fetch:
        append_record(_record(), store)
        second = append_record(_record(), store)

    assert second.added is False
    assert mock_fetch.call_count == 1
    assert store.read_text(encoding="utf-8").count("DBLP:journals/x/abc") == 1


def test_existing_key_skips_fetch_and_write(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"
    store.write_text("@article{DBLP:abc,\n  title = {Existing}\n}\n", encoding="utf-8")
    before = store.read_text(encoding="utf-8")

    with patch("bib_append.dblp_client.fetch_citation_text") as mock_fetch:
        result = append_record(_record("abc"), store)

    mock_fetch.assert_not_called()
    assert result.added is False
    assert result.local_key == "DBLP:abc"
    assert store.read_text(encoding="utf-8") == before


def test_append_keeps_existing_content(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"
    store.write_text("@book{knuth1984,\n  title = {The TeXbook}\n}\n", encoding="utf-8")

    with patch("bib_append.dblp_client.fetch_citation_text", return_value=BIB_TEXT):
        append_record(_record(), store)

    text = store.read_text(encoding="utf-8")
    assert text.startswith("@book{knuth1984,")
    assert text.endswith(BIB_TEXT + "\n")


def test_fetch_failure_is_fatal_and_writes_nothing(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"

    with patch("bib_append.dblp_client.fetch_citation_text", side_effect=CatalogTransportError("down")):
        with pytest.raises(CatalogTransportError):
            append_record(_record(), store)

    assert not store.exists()


def test_append_separates_store_without_trailing_newline(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"
    store.write_text("@book{knuth1984,\n  title = {The TeXbook}\n}", encoding="utf-8")

    with patch("bib_append.dblp_client.fetch_citation_text", return_value=BIB_TEXT):
        append_record(_record(), store)

    text = store.read_text(encoding="utf-8")
    assert text == "@book{knuth1984,\n  title = {The TeXbook}\n}\n\n" + BIB_TEXT + "\n"
    assert [e.entry_key for e in parse_store(text)] == ["knuth1984", "DBLP:journals/x/abc"]


def test_appended_store_can_be_converted(tmp_path: Path) -> None:
    store = tmp_path / "refs.bib"
    store.write_text("@book{knuth1984,\n  title = {The TeXbook}\n}", encoding="utf-8")

    with patch("bib_append.dblp_client.fetch_citation_text", return_value=BIB_TEXT):
        append_record(_record(), store)
    with patch("bib_convert.dblp_client.fetch_record_text", return_value=BIB_TEXT):
        report = convert_store(store, Format.CONDENSED)

    assert report.local == ["knuth1984"]
    assert report.refreshed == ["DBLP:journals/x/abc"]
