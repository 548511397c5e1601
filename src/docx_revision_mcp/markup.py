"""Split run sequences at exact character offsets and interleave markup.

All functions here are pure: they take a run list and return new lists. The
text of the input is always preserved character-for-character; runs that do
not need splitting are passed through as the same objects.
"""

from __future__ import annotations

from .model import (
    COMMENT_MARKERS,
    CommentRangeEnd,
    CommentRangeStart,
    CommentReference,
    Run,
    slice_run,
)
from .positions import ResolvedRange, RunPosition


def split_range(runs: list[Run], resolved: ResolvedRange) -> tuple[list[Run], list[Run], list[Run]]:
    """Split a run list into the runs before, inside and after a range.

    Only the two boundary runs are cut; zero-length pieces are dropped.
    """
    first, last = resolved.first, resolved.last
    start_run = runs[first.run_index]
    end_run = runs[last.run_index]

    before = list(runs[:first.run_index])
    after = list(runs[last.run_index + 1:])

    if first.offset > 0:
        before.append(slice_run(start_run, 0, first.offset))

    if first.run_index == last.run_index:
        middle = [slice_run(start_run, first.offset, last.offset)]
    else:
        middle = [slice_run(start_run, first.offset)]
        middle.extend(runs[first.run_index + 1:last.run_index])
        middle.append(slice_run(end_run, 0, last.offset))

    if last.offset < len(end_run.text):
        after.insert(0, slice_run(end_run, last.offset))

    return before, middle, after


def split_point(runs: list[Run], point: RunPosition) -> tuple[list[Run], list[Run]]:
    """Split a run list at an insertion point."""
    if point.run_index >= len(runs):
        return list(runs), []

    run = runs[point.run_index]
    before = list(runs[:point.run_index])
    after = list(runs[point.run_index + 1:])
    if point.offset > 0:
        before.append(slice_run(run, 0, point.offset))
        after.insert(0, slice_run(run, point.offset))
    else:
        after.insert(0, run)
    return before, after


def inject_comment_markers(runs: list[Run], resolved: ResolvedRange, comment_id: int) -> list[Run]:
    """Anchor a comment on a range.

    Produces: runs before, range start marker, the anchored runs, range end
    marker, the reference run, runs after.
    """
    before, middle, after = split_range(runs, resolved)
    return [
        *before,
        CommentRangeStart(comment_id),
        *middle,
        CommentRangeEnd(comment_id),
        CommentReference(comment_id),
        *after,
    ]


def remove_comment_markers(runs: list[Run], comment_id: int) -> tuple[list[Run], int]:
    """Drop every anchor marker for ``comment_id``.

    Returns the new run list and the number of markers removed.
    """
    kept = [
        run for run in runs
        if not (isinstance(run, COMMENT_MARKERS) and run.comment_id == comment_id)
    ]
    return kept, len(runs) - len(kept)
