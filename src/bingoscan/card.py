"""
Cell resolution and card aggregation.

- resolve_cells: Pick at most one winning number per cell, plus the FREE
  cell's text
- aggregate: Odd/even counts and mean confidence over the winners
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .fragments import Fragment
from .grid import GridLayout
from .recognition import FREE_COL, FREE_ROW, GRID_SIZE, column_candidates

log = logging.getLogger(__name__)


DEFAULT_FREE_TEXT = "FREE"
EXPECTED_NUMBERS = GRID_SIZE * GRID_SIZE - 1


class LowConfidenceWarning(UserWarning):
    """Card parsed, but too few cells resolved to trust it unreviewed."""


@dataclass(frozen=True)
class ResolvedNumber:
    """Winning number for one non-FREE cell."""

    value: int
    row: int
    col: int
    confidence: float

    @property
    def is_odd(self) -> bool:
        return self.value % 2 == 1


@dataclass
class Card:
    """Interpreted bingo card."""

    numbers: List[ResolvedNumber] = field(default_factory=list)
    free_space_content: Optional[str] = None
    odds_count: int = 0
    evens_count: int = 0
    total_numbers: int = 0
    confidence: float = 0.0
    low_confidence_total: int = 15
    grid_strategy: Optional[str] = None

    @property
    def is_low_confidence(self) -> bool:
        """Fewer numbers than expected were resolved (image quality may be poor)."""
        return self.total_numbers < self.low_confidence_total

    def grid(self) -> List[List[Optional[int]]]:
        """5x5 [row][col] view; None for holes and the FREE cell."""
        board: List[List[Optional[int]]] = [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
        for n in self.numbers:
            board[n.row][n.col] = n.value
        return board

    def to_dict(self) -> Dict[str, Any]:
        return {
            "numbers": [
                {
                    "value": n.value,
                    "isOdd": n.is_odd,
                    "row": n.row,
                    "col": n.col,
                    "confidence": n.confidence,
                }
                for n in self.numbers
            ],
            "freeSpaceContent": self.free_space_content,
            "oddsCount": self.odds_count,
            "evensCount": self.evens_count,
            "totalNumbers": self.total_numbers,
            "confidence": self.confidence,
            "lowConfidence": self.is_low_confidence,
            "gridStrategy": self.grid_strategy,
        }


# ---------------------------------------------------------------------------
# Cell Resolution
# ---------------------------------------------------------------------------


def _by_confidence(fragments: List[Fragment]) -> List[Fragment]:
    # sorted() is stable, so equal confidences keep OCR order
    return sorted(fragments, key=lambda f: f.confidence, reverse=True)


def resolve_cell(fragments: List[Fragment], row: int, col: int) -> Optional[ResolvedNumber]:
    """
    Choose the winning number for a non-FREE cell.

    Candidates from every fragment in the cell are pooled after column-range
    validation; the one from the most confident fragment wins. Ties go to
    the earlier fragment, then to that fragment's preferred reading (see
    ``column_candidates``).

    Returns:
        ResolvedNumber, or None if no candidate fits the column
    """
    best: Optional[ResolvedNumber] = None
    for fragment in _by_confidence(fragments):
        for value in column_candidates(fragment.text, col):
            if best is None or fragment.confidence > best.confidence:
                best = ResolvedNumber(
                    value=value, row=row, col=col, confidence=fragment.confidence
                )
    return best


def resolve_free_space(fragments: List[Fragment]) -> str:
    """Text of the most confident fragment in the FREE cell."""
    if not fragments:
        return DEFAULT_FREE_TEXT
    return _by_confidence(fragments)[0].text.strip()


def resolve_cells(layout: GridLayout) -> Tuple[List[ResolvedNumber], str]:
    """
    Resolve all 25 cells in row-major order.

    The FREE cell never contributes a number, even if its text parses as one.

    Returns:
        (winners, free_space_content)
    """
    winners: List[ResolvedNumber] = []
    free_space_content = DEFAULT_FREE_TEXT

    for row in range(GRID_SIZE):
        for col in range(GRID_SIZE):
            fragments = layout.cell(row, col)

            if row == FREE_ROW and col == FREE_COL:
                free_space_content = resolve_free_space(fragments)
                continue

            winner = resolve_cell(fragments, row, col)
            if winner is None:
                if fragments:
                    log.debug("Cell (%d, %d): no candidate fits column", row, col)
                continue

            log.debug(
                "Cell (%d, %d): %d (conf %.2f)", row, col, winner.value, winner.confidence
            )
            winners.append(winner)

    return winners, free_space_content


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate(
    winners: List[ResolvedNumber],
    free_space_content: Optional[str],
    low_confidence_total: int = 15,
    grid_strategy: Optional[str] = None,
) -> Card:
    """
    Collect resolved winners into a Card.

    Args:
        winners: At most one per non-FREE cell
        free_space_content: FREE cell text
        low_confidence_total: Below this many numbers the card is flagged
        grid_strategy: Name of the lattice strategy, for diagnostics

    Returns:
        Card with counts and mean winner confidence (0 when empty)
    """
    numbers: List[ResolvedNumber] = []
    for winner in winners:
        if (winner.row, winner.col) == (FREE_ROW, FREE_COL):
            continue
        numbers.append(winner)

    odds = sum(1 for n in numbers if n.is_odd)
    total = len(numbers)
    confidence = sum(n.confidence for n in numbers) / total if total else 0.0

    return Card(
        numbers=numbers,
        free_space_content=free_space_content,
        odds_count=odds,
        evens_count=total - odds,
        total_numbers=total,
        confidence=confidence,
        low_confidence_total=low_confidence_total,
        grid_strategy=grid_strategy,
    )
