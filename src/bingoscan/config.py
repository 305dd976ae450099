"""
Pipeline configuration.

Thresholds below were picked against a handful of phone photos. The
acceptance threshold in particular has varied between 0.3 and 0.5 over
time; 0.3 keeps more faint digits and relies on column validation to
drop the noise.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


API_KEY_ENV = "GOOGLE_VISION_API_KEY"


@dataclass(frozen=True)
class PipelineConfig:
    """
    Tunables for the interpretation pipeline and the OCR request.

    Args:
        min_confidence: Fragments below this are rejected (FREE/SPACE exempt)
        min_header_count: B/I/N/G/O headers needed for header-based layout
        density_min_fragments: Number-bearing fragments needed for the density fallback
        bbox_margin: Fractional expansion of the bounding box on each side
        low_confidence_total: Cards with fewer numbers than this raise a warning
        max_results: maxResults sent with each detection feature
        default_annotation_confidence: Used when the provider omits a confidence
        language_hints: Language hints sent with the request
        request_timeout: HTTP timeout in seconds
    """

    min_confidence: float = 0.3
    min_header_count: int = 3
    density_min_fragments: int = 20
    bbox_margin: float = 0.10
    low_confidence_total: int = 15
    max_results: int = 100
    default_annotation_confidence: float = 0.8
    language_hints: Tuple[str, ...] = ("en",)
    request_timeout: float = 30.0


DEFAULT_CONFIG = PipelineConfig()


def load_env_file(path: Path) -> None:
    """Load KEY=VALUE lines into os.environ without overriding existing values."""
    if not path.exists():
        return
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                os.environ.setdefault(key.strip(), value.strip())


def api_key_from_env(env_path: Optional[Path] = None) -> str:
    """
    Look up the OCR provider credential.

    Args:
        env_path: Optional .env file (defaults to ./.env)

    Returns:
        The key, or "" if not configured
    """
    load_env_file(env_path or Path.cwd() / ".env")
    return os.environ.get(API_KEY_ENV, "")
