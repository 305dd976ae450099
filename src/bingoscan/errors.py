"""Error taxonomy for card analysis.

Everything the caller needs to interpret derives from ``BingoScanError``.
Provider and transport failures are re-wrapped into these types once, at
the pipeline boundary.
"""

from typing import Optional


class BingoScanError(Exception):
    """Base class for all card analysis failures."""


class InputFormatError(BingoScanError):
    """Image payload could not be encoded for the OCR provider."""


class CredentialError(BingoScanError):
    """OCR provider rejected the credential (HTTP 403)."""


class QuotaError(BingoScanError):
    """OCR provider quota or rate limit exceeded (HTTP 429). Retry later."""


class ProviderError(BingoScanError):
    """Any other OCR provider failure.

    Args:
        message: Human-readable summary.
        status: HTTP status, or None for transport/embedded errors.
        detail: Provider-supplied detail for diagnosis.
    """

    def __init__(self, message: str, status: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status = status
        self.detail = detail


class NoSignalError(BingoScanError):
    """No fragment survived the token filter."""
