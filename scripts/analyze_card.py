#!/usr/bin/env python3
"""
Analyze a photo of a bingo card and print its odd/even counts.

Usage:
    python scripts/analyze_card.py card.jpg
    python scripts/analyze_card.py card.jpg --json
    python scripts/analyze_card.py card.jpg --api-key KEY --min-confidence 0.5

The API key defaults to GOOGLE_VISION_API_KEY (environment or ./.env).
"""

import argparse
import json
import logging
import sys
import warnings
from dataclasses import replace
from pathlib import Path

from bingoscan.card import LowConfidenceWarning
from bingoscan.config import API_KEY_ENV, DEFAULT_CONFIG, api_key_from_env
from bingoscan.errors import BingoScanError
from bingoscan.pipeline import analyze_card


def print_card(card) -> None:
    """Print the grid and counts."""
    board = card.grid()
    print("   B   I   N   G   O")
    for r, row in enumerate(board):
        cells = []
        for c, value in enumerate(row):
            if (r, c) == (2, 2):
                cells.append("  *")
            elif value is None:
                cells.append("  ?")
            else:
                cells.append(f"{value:3d}")
        print(" ".join(cells))

    print()
    print(f"Free space: {card.free_space_content}")
    print(f"Numbers:    {card.total_numbers}/24")
    print(f"Odds:       {card.odds_count}")
    print(f"Evens:      {card.evens_count}")
    print(f"Confidence: {card.confidence * 100:.1f}%")
    print(f"Grid:       {card.grid_strategy}")


def main():
    parser = argparse.ArgumentParser(description="Read a bingo card from an image")
    parser.add_argument("image", type=Path, help="Path to card image")
    parser.add_argument(
        "--api-key",
        default=None,
        help=f"Vision API key (default: ${API_KEY_ENV})",
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=DEFAULT_CONFIG.min_confidence,
        help="Fragment acceptance threshold",
    )
    parser.add_argument("--json", action="store_true", help="Print the card as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    api_key = args.api_key or api_key_from_env()
    if not api_key:
        print(f"ERROR: no API key. Set {API_KEY_ENV} or pass --api-key.")
        return 1

    if not args.image.exists():
        print(f"ERROR: image not found: {args.image}")
        return 1

    config = replace(DEFAULT_CONFIG, min_confidence=args.min_confidence)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", LowConfidenceWarning)
        try:
            card = analyze_card(args.image.read_bytes(), api_key, config=config)
        except BingoScanError as e:
            print(f"ERROR: {e}")
            return 1

    if args.json:
        print(json.dumps(card.to_dict(), indent=2))
    else:
        print_card(card)

    for w in caught:
        if issubclass(w.category, LowConfidenceWarning):
            print(f"\nWarning: {w.message}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
