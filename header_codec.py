"""Read and write the YAML header block at the top of annotation files."""

from __future__ import annotations

from typing import Any

import yaml

from models import NoteHeader

DELIMITER = "---"


class HeaderDecodeError(ValueError):
    """A header block is present but cannot be turned into a NoteHeader."""


def decode(text: str) -> NoteHeader | None:
    """Parse the header block of ``text``.

    Returns None when the text carries no header: content before the first
    delimiter line, fewer than two delimiter lines, or an empty block. Raises
    HeaderDecodeError when a block is present but is not a mapping with a
    ``key`` and a ``title``.
    """
    block = _header_block(text)
    if block is None:
        return None

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise HeaderDecodeError(f"Invalid YAML in header: {exc}") from exc

    if not isinstance(data, dict):
        raise HeaderDecodeError("Header block is not a mapping")

    key = _as_str(data.pop("key", None))
    title = _as_str(data.pop("title", None))
    if not key or not title:
        raise HeaderDecodeError("Header block needs both 'key' and 'title'")

    fields = {str(name): _as_str(value) or "" for name, value in data.items()}
    return NoteHeader(key=key, title=title, fields=fields)


def encode(header: NoteHeader, body: str = "") -> str:
    """Serialize a header (key, title, then extra fields by name) followed by body."""
    lines = [DELIMITER, _field_line("key", header.key), _field_line("title", header.title)]
    for name in sorted(header.fields):
        if name in ("key", "title"):
            continue
        lines.append(_field_line(name, header.fields[name]))
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n" + body


def _header_block(text: str) -> str | None:
    lines = text.splitlines()
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start == len(lines) or lines[start].strip() != DELIMITER:
        return None

    for end in range(start + 1, len(lines)):
        if lines[end].strip() == DELIMITER:
            block = "\n".join(lines[start + 1:end])
            return block if block.strip() else None
    return None


def _field_line(name: str, value: str) -> str:
    # Collapse whitespace so every field stays on a single line.
    flat = " ".join(str(value).split())
    return yaml.safe_dump(
        {name: flat},
        default_flow_style=False,
        allow_unicode=True,
        width=float("inf"),
    ).rstrip("\n")


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
