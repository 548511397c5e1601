"""Tests for offset resolution and run splitting."""

from __future__ import annotations

import pytest
from lxml import etree

from docx_revision_mcp.errors import ProtectedContentError, RangeNotFoundError, TextNotFoundError
from docx_revision_mcp.markup import (
    inject_comment_markers,
    remove_comment_markers,
    split_point,
    split_range,
)
from docx_revision_mcp.model import (
    CommentRangeEnd,
    CommentRangeStart,
    CommentReference,
    ContainerRun,
    DeletedRun,
    TextRun,
    rendered_text,
    slice_run,
)
from docx_revision_mcp.positions import (
    RunPosition,
    find_text,
    resolve_point,
    resolve_range,
    resolve_text,
)
from docx_revision_mcp.xml_helpers import qn

from conftest import W_NS


def fox_runs() -> list:
    return [TextRun("The "), TextRun("quick fox"), TextRun(" jumps.")]


def texts(runs: list) -> list[str]:
    return [run.text for run in runs]


class TestFindText:
    """Tests for locating text in a run sequence."""

    def test_find_across_runs(self) -> None:
        """Offsets refer to the concatenated text."""
        assert find_text(fox_runs(), "e quick") == (2, 9)

    def test_first_occurrence(self) -> None:
        """The earliest match wins."""
        assert find_text([TextRun("a b a b")], "b") == (2, 3)

    def test_smart_quotes_match_straight(self) -> None:
        """Typographic quotes match their ASCII forms."""
        runs = [TextRun("It’s “done”")]

        assert find_text(runs, "It's \"done\"") == (0, 11)

    def test_not_found(self) -> None:
        """Missing text raises TextNotFoundError."""
        with pytest.raises(TextNotFoundError):
            find_text(fox_runs(), "xyz")

    def test_empty_search(self) -> None:
        """An empty search string never matches."""
        with pytest.raises(TextNotFoundError):
            find_text(fox_runs(), "")


class TestResolveRange:
    """Tests for mapping ranges onto runs."""

    def test_range_inside_one_run(self) -> None:
        """A range covering one run resolves to that run at both ends."""
        resolved = resolve_range(fox_runs(), 4, 13)

        assert resolved.first == RunPosition(1, 0)
        assert resolved.last == RunPosition(1, 9)

    def test_start_on_run_boundary(self) -> None:
        """A start equal to a run's end belongs to the next run."""
        resolved = resolve_range(fox_runs(), 4, 5)

        assert resolved.first == RunPosition(1, 0)

    def test_end_on_run_boundary(self) -> None:
        """An end equal to a run's end stays in that run."""
        resolved = resolve_range(fox_runs(), 0, 4)

        assert resolved.last == RunPosition(0, 4)

    def test_markers_do_not_count(self) -> None:
        """Zero-width runs are skipped when counting characters."""
        runs = [TextRun("ab"), CommentRangeStart(3), TextRun("cd")]

        resolved = resolve_range(runs, 1, 3)

        assert resolved.first == RunPosition(0, 1)
        assert resolved.last == RunPosition(2, 1)

    def test_deleted_text_counts(self) -> None:
        """Deleted runs still occupy characters in the rendered text."""
        runs = [TextRun("ab"), DeletedRun("cd", 1, "A"), TextRun("ef")]

        resolved = resolve_range(runs, 4, 6)

        assert resolved.first == RunPosition(2, 0)

    def test_range_past_end(self) -> None:
        """A range beyond the text raises RangeNotFoundError."""
        with pytest.raises(RangeNotFoundError):
            resolve_range(fox_runs(), 6, 99)

    def test_empty_range(self) -> None:
        """An empty range cannot be resolved."""
        with pytest.raises(RangeNotFoundError):
            resolve_range(fox_runs(), 5, 5)

    def test_resolve_text(self) -> None:
        """resolve_text combines search and resolution."""
        resolved = resolve_text(fox_runs(), "quick")

        assert (resolved.start, resolved.end) == (4, 9)


class TestResolvePoint:
    """Tests for insertion points."""

    def test_point_inside_run(self) -> None:
        assert resolve_point(fox_runs(), 6) == RunPosition(1, 2)

    def test_point_on_boundary(self) -> None:
        """A boundary point belongs to the run that starts there."""
        assert resolve_point(fox_runs(), 4) == RunPosition(1, 0)

    def test_point_at_end(self) -> None:
        """The end of the text resolves past the last run."""
        assert resolve_point(fox_runs(), 20) == RunPosition(3, 0)

    def test_point_in_empty_paragraph(self) -> None:
        assert resolve_point([], 0) == RunPosition(0, 0)

    def test_point_past_end(self) -> None:
        with pytest.raises(RangeNotFoundError):
            resolve_point(fox_runs(), 21)


class TestSplitRange:
    """Tests for cutting runs at range boundaries."""

    def test_split_inside_run(self) -> None:
        """Only the boundary run is cut."""
        runs = fox_runs()

        before, middle, after = split_range(runs, resolve_range(runs, 4, 9))

        assert texts(before) == ["The "]
        assert texts(middle) == ["quick"]
        assert texts(after) == [" fox", " jumps."]
        assert before[0] is runs[0]
        assert after[1] is runs[2]

    def test_split_across_runs(self) -> None:
        """A range spanning runs cuts both ends."""
        runs = fox_runs()

        before, middle, after = split_range(runs, resolve_range(runs, 2, 9))

        assert texts(before) == ["Th"]
        assert texts(middle) == ["e ", "quick"]
        assert texts(after) == [" fox", " jumps."]

    def test_whole_run_is_passed_through(self) -> None:
        """A range matching one run exactly keeps that run object."""
        runs = fox_runs()

        _, middle, _ = split_range(runs, resolve_range(runs, 4, 13))

        assert middle == [runs[1]]
        assert middle[0] is runs[1]

    @pytest.mark.parametrize("start,end", [(0, 20), (0, 1), (19, 20), (3, 14), (4, 13)])
    def test_text_is_preserved(self, start: int, end: int) -> None:
        """The three pieces always concatenate back to the original text."""
        runs = fox_runs()

        before, middle, after = split_range(runs, resolve_range(runs, start, end))

        assert rendered_text(before + middle + after) == "The quick fox jumps."
        assert rendered_text(middle) == "The quick fox jumps."[start:end]


class TestSplitPoint:
    """Tests for cutting runs at an insertion point."""

    def test_split_inside_run(self) -> None:
        before, after = split_point(fox_runs(), RunPosition(1, 3))

        assert texts(before) == ["The ", "qui"]
        assert texts(after) == ["ck fox", " jumps."]

    def test_split_on_boundary(self) -> None:
        runs = fox_runs()

        before, after = split_point(runs, RunPosition(1, 0))

        assert before == [runs[0]]
        assert after[0] is runs[1]

    def test_split_at_end(self) -> None:
        runs = fox_runs()

        before, after = split_point(runs, RunPosition(3, 0))

        assert before == runs
        assert after == []


class TestCommentMarkers:
    """Tests for interleaving and removing comment anchors."""

    def test_inject_markers(self) -> None:
        """Markers surround the anchored runs; the reference follows the end marker."""
        runs = fox_runs()

        result = inject_comment_markers(runs, resolve_range(runs, 4, 9), 7)

        assert [type(run).__name__ for run in result] == [
            "TextRun",
            "CommentRangeStart",
            "TextRun",
            "CommentRangeEnd",
            "CommentReference",
            "TextRun",
            "TextRun",
        ]
        assert result[2].text == "quick"
        assert rendered_text(result) == "The quick fox jumps."

    def test_remove_markers(self) -> None:
        """Only markers for the given comment are removed."""
        runs = [
            CommentRangeStart(1),
            CommentRangeStart(2),
            TextRun("x"),
            CommentRangeEnd(1),
            CommentReference(1),
            CommentRangeEnd(2),
            CommentReference(2),
        ]

        kept, removed = remove_comment_markers(runs, 1)

        assert removed == 3
        assert kept == [CommentRangeStart(2), TextRun("x"), CommentRangeEnd(2), CommentReference(2)]


class TestSliceRun:
    """Tests for slicing text runs."""

    def test_partial_slice_drops_source_element(self) -> None:
        """A sliced run is rebuilt from scratch."""
        run = TextRun("abc", element=etree.Element("r"))

        piece = slice_run(run, 1)

        assert piece.text == "bc"
        assert piece.element is None

    def test_whole_slice_is_identity(self) -> None:
        run = TextRun("abc", element=etree.Element("r"))

        assert slice_run(run, 0) is run

    def test_revision_metadata_is_kept(self) -> None:
        """Slicing a tracked run keeps its id, author and date."""
        run = DeletedRun("abcd", 4, "Ed", "2025-01-01T00:00:00Z")

        piece = slice_run(run, 0, 2)

        assert piece == DeletedRun("ab", 4, "Ed", "2025-01-01T00:00:00Z")

    def test_markers_cannot_be_sliced(self) -> None:
        with pytest.raises(TypeError):
            slice_run(CommentRangeStart(1), 0)

    def test_tab_goes_to_the_piece_it_falls_in(self) -> None:
        """Non-text content survives a split; run properties do not."""
        elem = etree.fromstring(
            f'<w:r xmlns:w="{W_NS}"><w:rPr><w:b/></w:rPr>'
            "<w:t>ab</w:t><w:tab/><w:t>cd</w:t></w:r>"
        )
        run = TextRun("abcd", element=elem)

        head = slice_run(run, 0, 2)
        tail = slice_run(run, 2)

        assert head.element is None
        assert tail.text == "cd"
        assert [child.tag for child in tail.element] == [qn("w:tab"), qn("w:t")]
        assert tail.element.find(qn("w:rPr")) is None

    def test_trailing_break_stays_with_last_piece(self) -> None:
        elem = etree.fromstring(f'<w:r xmlns:w="{W_NS}"><w:t>abcd</w:t><w:br/></w:r>')
        run = TextRun("abcd", element=elem)

        assert slice_run(run, 0, 1).element is None
        assert slice_run(run, 1).element.find(qn("w:br")) is not None


class TestContainers:
    """Hyperlinks and fields count as text but cannot be cut into."""

    def link_runs(self) -> list:
        return [TextRun("See "), ContainerRun("the docs", element=etree.Element("link")), TextRun(" now")]

    def test_container_text_is_rendered(self) -> None:
        assert rendered_text(self.link_runs()) == "See the docs now"

    def test_range_enclosing_container(self) -> None:
        runs = self.link_runs()

        resolved = resolve_text(runs, "the docs")
        before, middle, after = split_range(runs, resolved)

        assert middle == [runs[1]]
        assert middle[0] is runs[1]
        assert texts(before) == ["See "]
        assert texts(after) == [" now"]

    def test_range_cutting_into_container(self) -> None:
        with pytest.raises(ProtectedContentError):
            resolve_text(self.link_runs(), "See the")

    def test_point_inside_container(self) -> None:
        runs = self.link_runs()

        with pytest.raises(ProtectedContentError):
            resolve_point(runs, 6)
        assert resolve_point(runs, 4) == RunPosition(1, 0)
