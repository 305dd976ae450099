"""
Card analysis pipeline.

    fragments -> token filter -> grid locator -> cell resolver -> aggregator

``interpret_fragments`` is the pure core and needs no network.
``analyze_card`` adds the single blocking call to the OCR provider in front
of it. Each call is independent; nothing is cached between calls, so
concurrent analyses need no locking. Retries are left to the caller.
"""

import logging
import warnings
from typing import Callable, List, Optional, Sequence

from .card import Card, LowConfidenceWarning, aggregate, resolve_cells
from .config import DEFAULT_CONFIG, PipelineConfig
from .errors import BingoScanError, NoSignalError, ProviderError
from .fragments import Fragment
from .grid import locate_grid
from .recognition import filter_fragments
from .vision import ImagePayload, VisionClient

log = logging.getLogger(__name__)


# (image, credential) -> fragments; raises BingoScanError subclasses
AnnotationProvider = Callable[[ImagePayload, str], List[Fragment]]


def interpret_fragments(
    fragments: Sequence[Fragment],
    config: PipelineConfig = DEFAULT_CONFIG,
) -> Card:
    """
    Turn raw OCR fragments into a Card.

    Emits LowConfidenceWarning (not an error) when fewer than
    ``config.low_confidence_total`` numbers were resolved.

    Args:
        fragments: Raw fragments, including header letters and noise
        config: Pipeline tunables

    Returns:
        Card

    Raises:
        NoSignalError: No fragment passed the token filter
    """
    accepted = filter_fragments(fragments, config.min_confidence)
    log.debug("Filtered OCR results: %d from %d total", len(accepted), len(fragments))

    if not accepted:
        raise NoSignalError(
            "No valid text detected in the image. "
            "Please ensure the image is clear and well-lit."
        )

    layout = locate_grid(
        accepted,
        reference=fragments,
        min_header_count=config.min_header_count,
        density_min_fragments=config.density_min_fragments,
        margin=config.bbox_margin,
    )
    winners, free_space_content = resolve_cells(layout)
    card = aggregate(
        winners,
        free_space_content,
        low_confidence_total=config.low_confidence_total,
        grid_strategy=layout.strategy.value,
    )

    log.info(
        "Analysis complete: %d numbers detected (%d odds, %d evens)",
        card.total_numbers,
        card.odds_count,
        card.evens_count,
    )

    if card.is_low_confidence:
        message = (
            f"Only detected {card.total_numbers} numbers. Image quality may be poor."
        )
        log.warning(message)
        warnings.warn(message, LowConfidenceWarning, stacklevel=2)

    return card


def analyze_card(
    image: ImagePayload,
    credential: str,
    provider: Optional[AnnotationProvider] = None,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> Card:
    """
    Run OCR on a bingo card image and interpret the result.

    Args:
        image: Raw image bytes, base64 string or data URL
        credential: OCR provider API key
        provider: Annotation source; defaults to a VisionClient
        config: Pipeline tunables

    Returns:
        Card

    Raises:
        InputFormatError, CredentialError, QuotaError, ProviderError,
        NoSignalError
    """
    if provider is None:
        provider = VisionClient(config).request_annotations

    try:
        fragments = provider(image, credential)
    except BingoScanError:
        raise
    except Exception as exc:
        log.exception("OCR provider failed")
        raise ProviderError(f"OCR failed: {exc}", None, str(exc)) from exc

    return interpret_fragments(fragments, config)
