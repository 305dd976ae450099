"""Tests for recognition module: columns, number extraction, token filter."""

import pytest

from bingoscan.fragments import Fragment, box_polygon
from bingoscan.recognition import (
    LETTER_TO_DIGIT,
    Column,
    accept_fragment,
    column_candidates,
    correct_text,
    extract_numbers,
    filter_fragments,
    in_column,
    is_header_text,
)


def make_fragment(text, confidence=0.9):
    return Fragment(text=text, confidence=confidence, polygon=box_polygon(0, 0, 20, 20))


# ---------------------------------------------------------------------------
# Column Tests
# ---------------------------------------------------------------------------


class TestColumn:
    def test_order_and_ranges(self):
        assert [c.name for c in Column] == ["B", "I", "N", "G", "O"]
        assert [(c.low, c.high) for c in Column] == [
            (1, 15),
            (16, 30),
            (31, 45),
            (46, 60),
            (61, 75),
        ]

    def test_at_index(self):
        assert Column.at(0) is Column.B
        assert Column.at(4) is Column.O

    @pytest.mark.parametrize(
        "number,col,expected",
        [
            (1, 0, True),
            (15, 0, True),
            (16, 0, False),
            (16, 1, True),
            (45, 2, True),
            (46, 2, False),
            (60, 3, True),
            (75, 4, True),
            (60, 4, False),
        ],
    )
    def test_in_column_boundaries(self, number, col, expected):
        assert in_column(number, col) is expected

    def test_header_text(self):
        assert is_header_text("B")
        assert is_header_text(" o ")
        assert not is_header_text("BI")
        assert not is_header_text("8")


# ---------------------------------------------------------------------------
# Number Extraction Tests
# ---------------------------------------------------------------------------


class TestExtractNumbers:
    def test_plain_number(self):
        assert 42 in extract_numbers("42")

    def test_merged_cells(self):
        """Two adjacent cells read as one fragment."""
        numbers = extract_numbers("6063")
        assert {60, 63} <= numbers
        assert numbers == {3, 6, 60, 63}

    def test_merged_cells_column_validation(self):
        assert column_candidates("6063", 4) == [63]
        assert column_candidates("6063", 3) == [60]

    def test_letter_correction(self):
        """'1O' is 10 with a misread zero."""
        assert 10 in extract_numbers("1O")

    def test_letter_only(self):
        assert extract_numbers("S") == {5}

    def test_lowercase_l(self):
        assert 17 in extract_numbers("l7")

    def test_out_of_range_dropped(self):
        numbers = extract_numbers("99")
        assert 99 not in numbers
        assert numbers == {9}

    def test_zeros_yield_nothing(self):
        assert extract_numbers("000") == set()

    def test_empty(self):
        assert extract_numbers("") == set()

    def test_all_values_in_range(self):
        for text in ["6063", "1O", "75 76", "0", "S|Z", "12345", "B-12", "gT"]:
            assert all(1 <= n <= 75 for n in extract_numbers(text)), text

    def test_two_digit_reading_preferred(self):
        """Sliding window finds 1 and 2 inside 12; the full reading comes first."""
        assert column_candidates("12", 0) == [12, 1, 2]

    def test_correct_text(self):
        assert correct_text("lOS") == "105"
        assert correct_text("42") == "42"

    def test_correction_table_is_read_only(self):
        with pytest.raises(TypeError):
            LETTER_TO_DIGIT["X"] = "1"  # type: ignore[index]


# ---------------------------------------------------------------------------
# Token Filter Tests
# ---------------------------------------------------------------------------


class TestTokenFilter:
    def test_accepts_number(self):
        assert accept_fragment(make_fragment("42"))

    def test_rejects_header_letter(self):
        """Column headers never reach the grid, however confident."""
        assert not accept_fragment(make_fragment("B", confidence=0.99))
        assert not accept_fragment(make_fragment("o"))

    def test_free_space_always_accepted(self):
        assert accept_fragment(make_fragment("FREE", confidence=0.05))
        assert accept_fragment(make_fragment("space", confidence=0.05))

    def test_low_confidence_rejected(self):
        assert not accept_fragment(make_fragment("42", confidence=0.2))

    def test_threshold_is_inclusive(self):
        assert accept_fragment(make_fragment("42", confidence=0.3))

    def test_custom_threshold(self):
        assert not accept_fragment(make_fragment("42", confidence=0.4), min_confidence=0.5)

    def test_requires_digit(self):
        """'S' would correct to 5, but text without a digit is not a number."""
        assert not accept_fragment(make_fragment("S"))
        assert not accept_fragment(make_fragment("BINGO"))

    def test_requires_extractable_number(self):
        assert not accept_fragment(make_fragment("000"))

    def test_filter_preserves_order(self):
        fragments = [
            make_fragment("12"),
            make_fragment("B"),
            make_fragment("44", confidence=0.1),
            make_fragment("FREE"),
            make_fragment("70"),
        ]
        assert [f.text for f in filter_fragments(fragments)] == ["12", "FREE", "70"]
