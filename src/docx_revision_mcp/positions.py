"""Map character offsets in a paragraph's rendered text to run coordinates."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ProtectedContentError, RangeNotFoundError, TextNotFoundError
from .model import CHAR_RUNS, ContainerRun, Run, rendered_text
from .xml_helpers import normalize_typography


@dataclass(frozen=True)
class RunPosition:
    """A splice point: run index plus character offset inside that run."""

    run_index: int
    offset: int


@dataclass(frozen=True)
class ResolvedRange:
    """A half-open character range ``[start, end)`` mapped onto a run list.

    ``first`` is the run holding the first character. ``last`` is the run
    whose end boundary (exclusive) the range ends on; ``last.offset`` may equal
    the run's length, in which case that run needs no split.
    """

    start: int
    end: int
    first: RunPosition
    last: RunPosition


def find_text(runs: list[Run], search_text: str) -> tuple[int, int]:
    """Locate the first occurrence of ``search_text`` in the rendered text.

    Matching tolerates smart quotes and dashes on either side.

    Raises:
        TextNotFoundError: If the text does not occur
    """
    full_text = rendered_text(runs)
    if not search_text:
        raise TextNotFoundError("Search text is empty")
    pos = normalize_typography(full_text).find(normalize_typography(search_text))
    if pos == -1:
        raise TextNotFoundError(f"Text not found in paragraph: {search_text}")
    return pos, pos + len(search_text)


def _check_container(run: Run, run_start: int, *positions: int) -> None:
    """A position may sit on either edge of a container, never inside it."""
    if not isinstance(run, ContainerRun):
        return
    for pos in positions:
        if run_start < pos < run_start + len(run.text):
            raise ProtectedContentError(
                f"Position {pos} falls inside a hyperlink or field ('{run.text}')"
            )


def resolve_range(runs: list[Run], start: int, end: int) -> ResolvedRange:
    """Resolve ``[start, end)`` to the runs at its two boundaries.

    A start position falls in a run when ``run_start <= pos < run_start + len``;
    an end position when ``run_start < pos <= run_start + len``.

    Raises:
        RangeNotFoundError: If the range is empty, negative or extends past the text
        ProtectedContentError: If a boundary cuts into a hyperlink or field
    """
    if start < 0 or end <= start:
        raise RangeNotFoundError(f"Invalid range [{start}, {end})")

    first: RunPosition | None = None
    last: RunPosition | None = None
    run_start = 0
    for idx, run in enumerate(runs):
        if not isinstance(run, CHAR_RUNS):
            continue
        length = len(run.text)
        _check_container(run, run_start, start, end)
        if first is None and run_start <= start < run_start + length:
            first = RunPosition(idx, start - run_start)
        if run_start < end <= run_start + length:
            last = RunPosition(idx, end - run_start)
            break
        run_start += length

    if first is None or last is None:
        total = len(rendered_text(runs))
        raise RangeNotFoundError(
            f"Range [{start}, {end}) is outside the paragraph text (length {total})"
        )
    return ResolvedRange(start=start, end=end, first=first, last=last)


def resolve_text(runs: list[Run], search_text: str) -> ResolvedRange:
    """Find ``search_text`` and resolve the range it occupies."""
    start, end = find_text(runs, search_text)
    return resolve_range(runs, start, end)


def resolve_point(runs: list[Run], pos: int) -> RunPosition:
    """Resolve an insertion point.

    Returns the run holding the character at ``pos``; a point equal to the
    text length resolves past the last run.

    Raises:
        RangeNotFoundError: If ``pos`` is negative or beyond the text length
        ProtectedContentError: If ``pos`` falls inside a hyperlink or field
    """
    if pos < 0:
        raise RangeNotFoundError(f"Position {pos} is negative")

    run_start = 0
    for idx, run in enumerate(runs):
        if not isinstance(run, CHAR_RUNS):
            continue
        length = len(run.text)
        _check_container(run, run_start, pos)
        if run_start <= pos < run_start + length:
            return RunPosition(idx, pos - run_start)
        run_start += length

    if pos == run_start:
        return RunPosition(len(runs), 0)
    raise RangeNotFoundError(f"Position {pos} is beyond the paragraph text (length {run_start})")
