"""Interactive numbered picker for search results."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from models import CatalogRecord

T = TypeVar("T")


class NoCandidatesError(RuntimeError):
    """There was nothing to choose from."""


class SelectionAbortedError(RuntimeError):
    """The operator left the picker without choosing."""


def bold(text: str) -> str:
    return f"\x1b[1m{text}\x1b[0m"


def underline(text: str) -> str:
    return f"\x1b[4m{text}\x1b[0m"


def preview_record(record: CatalogRecord) -> str:
    """Authors, title and venue of a search hit, one per line."""
    return (
        f"{underline(', '.join(record.authors))}\n"
        f"{bold(record.title)}\n"
        f"{record.venue} {record.year}"
    )


def select_one(
    candidates: Sequence[T],
    render: Callable[[T], str],
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> T:
    """Show numbered candidates and return the one the operator picks.

    An empty answer, ``q``, end of input or Ctrl-C aborts the selection.
    Invalid numbers are asked again.
    """
    if not candidates:
        raise NoCandidatesError("No candidates to select from")

    for index, candidate in enumerate(candidates, start=1):
        output_fn(f"[{index}] {render(candidate)}\n")

    while True:
        try:
            answer = input_fn(f"Select 1-{len(candidates)} (q to abort): ").strip()
        except (EOFError, KeyboardInterrupt) as exc:
            raise SelectionAbortedError("No entry selected! Aborting...") from exc

        if answer in ("", "q", "Q"):
            raise SelectionAbortedError("No entry selected! Aborting...")
        if answer.isdigit() and 1 <= int(answer) <= len(candidates):
            return candidates[int(answer) - 1]
        output_fn(f"Invalid choice: {answer}")
