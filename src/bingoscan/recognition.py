"""
Text-level recognition for bingo card fragments.

- Column: B/I/N/G/O column letters and the numeric range each may hold
- extract_numbers: Every plausible bingo number a piece of OCR text could be
- accept_fragment: Token filter run before any spatial reasoning

Extraction is deliberately redundant. OCR merges neighbouring cells
("6063") and confuses letters with digits (O/0, S/5), so three strategies
are unioned and column-range validation later discards what doesn't fit.
"""

import re
from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Mapping, Set

from .fragments import Fragment


MIN_NUMBER = 1
MAX_NUMBER = 75

GRID_SIZE = 5
FREE_ROW = 2
FREE_COL = 2

FREE_SPACE_WORDS = frozenset({"FREE", "SPACE"})

_DIGIT_RUN = re.compile(r"\d{1,2}")


# ---------------------------------------------------------------------------
# Column Ranges
# ---------------------------------------------------------------------------


class Column(Enum):
    """Card columns, in left-to-right order, with their inclusive ranges."""

    B = (1, 15)
    I = (16, 30)
    N = (31, 45)
    G = (46, 60)
    O = (61, 75)

    @property
    def low(self) -> int:
        return self.value[0]

    @property
    def high(self) -> int:
        return self.value[1]

    def contains(self, number: int) -> bool:
        return self.low <= number <= self.high

    @classmethod
    def at(cls, col: int) -> "Column":
        """Column for a 0-based grid column index."""
        return list(cls)[col]


HEADER_LETTERS = frozenset(c.name for c in Column)


def is_valid_bingo_number(number: int) -> bool:
    return MIN_NUMBER <= number <= MAX_NUMBER


def in_column(number: int, col: int) -> bool:
    """True if ``number`` is legal in 0-based grid column ``col``."""
    return Column.at(col).contains(number)


def is_header_text(text: str) -> bool:
    """Single B/I/N/G/O letter, i.e. a column header rather than cell content."""
    return text.strip().upper() in HEADER_LETTERS


def is_free_space_text(text: str) -> bool:
    return text.strip().upper() in FREE_SPACE_WORDS


# ---------------------------------------------------------------------------
# Number Extraction
# ---------------------------------------------------------------------------


# Common OCR letter-to-digit confusions
LETTER_TO_DIGIT: Mapping[str, str] = MappingProxyType(
    {
        "O": "0",
        "o": "0",
        "Q": "0",
        "l": "1",
        "I": "1",
        "|": "1",
        "i": "1",
        "Z": "2",
        "z": "2",
        "S": "5",
        "s": "5",
        "G": "6",
        "b": "6",
        "T": "7",
        "t": "7",
        "B": "8",
        "g": "9",
    }
)

_CORRECTION_TABLE = str.maketrans(dict(LETTER_TO_DIGIT))


def correct_text(text: str) -> str:
    """Apply letter-to-digit corrections to raw OCR text."""
    return text.translate(_CORRECTION_TABLE)


def _direct_numbers(text: str) -> Set[int]:
    """1-2 digit runs, scanned left to right."""
    found = set()
    for match in _DIGIT_RUN.findall(text):
        number = int(match)
        if is_valid_bingo_number(number):
            found.add(number)
    return found


def _window_numbers(text: str) -> Set[int]:
    """Every 1-digit and 2-digit substring starting at each position."""
    found = set()
    for i, c in enumerate(text):
        if not c.isdigit():
            continue
        windows = [c]
        if i + 1 < len(text) and text[i + 1].isdigit():
            windows.append(text[i : i + 2])
        for window in windows:
            number = int(window)
            if is_valid_bingo_number(number):
                found.add(number)
    return found


def extract_numbers(text: str) -> Set[int]:
    """
    Find every bingo number ``text`` could plausibly represent.

    Unions three strategies:
    1. Direct: 1-2 digit runs in the raw text
    2. Corrected: the same scan after letter-to-digit correction
    3. Sliding window: 1 and 2 digit substrings at every position

    Args:
        text: Raw OCR text

    Returns:
        Set of ints, each in [1, 75]. Empty if nothing plausible.
    """
    if not text:
        return set()

    numbers = _direct_numbers(text)
    numbers |= _direct_numbers(correct_text(text))
    numbers |= _window_numbers(text)
    return numbers


def column_candidates(text: str, col: int) -> List[int]:
    """
    Extracted numbers legal in column ``col``, most plausible first.

    Two-digit readings come before one-digit ones, so "12" in the B column
    reads as 12 rather than the 1 or 2 found by the sliding window.
    """
    legal = (n for n in extract_numbers(text) if in_column(n, col))
    return sorted(legal, key=lambda n: (n < 10, n))


# ---------------------------------------------------------------------------
# Token Filter
# ---------------------------------------------------------------------------


def accept_fragment(fragment: Fragment, min_confidence: float = 0.3) -> bool:
    """
    Decide whether a raw fragment is worth placing on the grid.

    FREE/SPACE text is always kept so the centre cell content survives low
    confidence. Single header letters are always dropped.

    Args:
        fragment: Raw OCR fragment
        min_confidence: Acceptance threshold

    Returns:
        True if the fragment should be kept
    """
    text = fragment.text.strip()

    if is_free_space_text(text):
        return True

    if is_header_text(text):
        return False

    if fragment.confidence < min_confidence:
        return False

    if not any(c.isdigit() for c in text):
        return False

    return bool(extract_numbers(text))


def filter_fragments(
    fragments: Iterable[Fragment], min_confidence: float = 0.3
) -> List[Fragment]:
    """Keep accepted fragments, preserving input order."""
    return [f for f in fragments if accept_fragment(f, min_confidence)]
