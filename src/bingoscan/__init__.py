"""
BingoScan - Bingo card reader

Turns OCR-detected text fragments from a photo of a bingo card into a
validated 5x5 grid with odd/even counts and a confidence estimate.
"""

__version__ = "0.1.0"
