"""Tests for the pattern listing."""

import pytest

from teach_tree.exceptions import InvalidPageActionError, InvalidSortError
from teach_tree.models import PatternRecord
from teach_tree.table import PatternTable


@pytest.fixture
def rows():
    return [
        PatternRecord(("A", "B", "C"), 2, 0.6),
        PatternRecord(("B", "C"), 5, 0.9),
        PatternRecord(("C", "D"), 3, None),
        PatternRecord(("D", "E", "F", "G"), 2, 0.4),
        PatternRecord(("E", "F"), 4, 0.7),
        PatternRecord(("F", "G"), 4, 0.5),
        PatternRecord(("G", "A"), 2, 0.8),
    ]


class TestSorting:
    """Tests for sort field and order."""

    def test_default_length_desc(self, rows):
        """Test the default listing is longest first."""
        table = PatternTable(rows=rows)
        assert [r.length for r in table.sorted_rows()] == [4, 3, 2, 2, 2, 2, 2]

    def test_ties_keep_listing_order(self, rows):
        """Test equal keys keep the listing order in both directions."""
        table = PatternTable(rows=rows, sort_field="count")
        assert [r.pattern for r in table.sorted_rows()][1:3] == [("E", "F"), ("F", "G")]

        table.sort_by("count")
        assert [r.pattern for r in table.sorted_rows()][:3] == [
            ("A", "B", "C"),
            ("D", "E", "F", "G"),
            ("G", "A"),
        ]

    def test_same_field_toggles_order(self, rows):
        """Test re-sorting the active field flips the order."""
        table = PatternTable(rows=rows)
        table.sort_by("length")
        assert table.sort_order == "asc"
        table.sort_by("length")
        assert table.sort_order == "desc"

    def test_new_field_resets(self, rows):
        """Test switching field sorts descending from page 1."""
        table = PatternTable(rows=rows, page_size=2)
        table.sort_by("length")
        table.next_page()

        table.sort_by("avg_score")
        assert table.sort_field == "avg_score"
        assert table.sort_order == "desc"
        assert table.page == 1
        assert table.sorted_rows()[0].avg_score == 0.9

    def test_missing_score_sorts_as_zero(self, rows):
        """Test unscored rows sort last by score."""
        table = PatternTable(rows=rows, sort_field="avg_score")
        assert table.sorted_rows()[-1].pattern == ("C", "D")

    def test_invalid_options(self, rows):
        """Test unknown fields and orders raise InvalidSortError."""
        with pytest.raises(InvalidSortError):
            PatternTable(rows=rows, sort_field="support")
        with pytest.raises(InvalidSortError):
            PatternTable(rows=rows, sort_order="sideways")
        with pytest.raises(InvalidSortError):
            PatternTable(rows=rows).sort_by("pattern")


class TestPagination:
    """Tests for page navigation."""

    def test_pages(self, rows):
        """Test page size and page contents."""
        table = PatternTable(rows=rows, page_size=5)
        assert table.total_pages == 2
        assert len(table.page_rows()) == 5

        table.next_page()
        assert table.page == 2
        assert len(table.page_rows()) == 2

    def test_clamping(self, rows):
        """Test navigation never leaves the valid range."""
        table = PatternTable(rows=rows, page_size=5)
        assert table.previous_page() == 1
        assert table.last_page() == 2
        assert table.next_page() == 2
        assert table.go_to(99) == 2
        assert table.first_page() == 1

    def test_navigate_by_name(self, rows):
        """Test named page moves match the navigation methods."""
        table = PatternTable(rows=rows, page_size=3)
        assert table.navigate("last") == 3
        assert table.navigate("previous") == 2
        assert table.navigate("next") == 3
        assert table.navigate("first") == 1

    def test_navigate_unknown_action(self, rows):
        """Test unknown page moves raise InvalidPageActionError."""
        table = PatternTable(rows=rows)
        with pytest.raises(InvalidPageActionError):
            table.navigate("sideways")
        assert table.page == 1

    def test_empty_table(self):
        """Test an empty listing stays on page 1."""
        table = PatternTable()
        assert table.total_pages == 0
        assert table.next_page() == 1
        assert table.page_rows() == []

    def test_to_dict(self, rows):
        """Test listing serialization."""
        data = PatternTable(rows=rows, page_size=3).to_dict()
        assert data["total"] == 7
        assert data["total_pages"] == 3
        assert len(data["rows"]) == 3
        assert data["rows"][0]["sequence"] == ["D", "E", "F", "G"]
