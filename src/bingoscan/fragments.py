"""OCR fragment value type and its geometry."""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np


Point = Tuple[float, float]


@dataclass(frozen=True)
class Fragment:
    """One OCR-detected text span.

    Attributes:
        text: Detected text, as returned by the provider
        confidence: Provider confidence in [0, 1]
        polygon: Ordered (x, y) vertices in image coordinates
    """

    text: str
    confidence: float
    polygon: Tuple[Point, ...]

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """Axis-aligned (min_x, min_y, max_x, max_y) over the polygon."""
        pts = np.asarray(self.polygon, dtype=float).reshape(-1, 2)
        min_x, min_y = pts.min(axis=0)
        max_x, max_y = pts.max(axis=0)
        return float(min_x), float(min_y), float(max_x), float(max_y)

    @property
    def center(self) -> Point:
        """Midpoint of the bounding box (not the polygon centroid)."""
        min_x, min_y, max_x, max_y = self.bbox
        return (min_x + max_x) / 2, (min_y + max_y) / 2

    @classmethod
    def from_annotation(
        cls, annotation: Dict[str, Any], default_confidence: float = 0.8
    ) -> "Fragment":
        """
        Build a fragment from a provider text annotation.

        The provider omits ``confidence`` on most word-level annotations and
        drops ``x``/``y`` keys whose value is zero.

        Args:
            annotation: ``{"description", "confidence", "boundingPoly": {"vertices"}}``
            default_confidence: Used when the annotation carries no confidence

        Returns:
            Fragment
        """
        vertices = annotation.get("boundingPoly", {}).get("vertices", [])
        polygon = tuple(
            (float(v.get("x", 0)), float(v.get("y", 0))) for v in vertices
        )
        if not polygon:
            polygon = ((0.0, 0.0),)

        confidence = annotation.get("confidence")
        if confidence is None:
            confidence = default_confidence

        return cls(
            text=annotation.get("description", ""),
            confidence=float(confidence),
            polygon=polygon,
        )


def box_polygon(x1: float, y1: float, x2: float, y2: float) -> Tuple[Point, ...]:
    """Four-vertex polygon (clockwise from top-left) for an axis-aligned box."""
    return ((x1, y1), (x2, y1), (x2, y2), (x1, y2))
