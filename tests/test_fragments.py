"""Tests for fragments module."""

import pytest

from bingoscan.fragments import Fragment, box_polygon


class TestFragmentGeometry:
    def test_bbox_and_center(self):
        f = Fragment("12", 0.9, box_polygon(10, 20, 30, 60))
        assert f.bbox == (10, 20, 30, 60)
        assert f.center == (20, 40)

    def test_center_of_rotated_polygon(self):
        """Center is the bounding box midpoint, not the vertex mean."""
        f = Fragment("12", 0.9, ((0, 5), (10, 0), (20, 5), (10, 30)))
        assert f.center == (10, 15)

    def test_immutable(self):
        f = Fragment("12", 0.9, box_polygon(0, 0, 1, 1))
        with pytest.raises(AttributeError):
            f.text = "13"  # type: ignore[misc]


class TestFromAnnotation:
    def test_full_annotation(self):
        f = Fragment.from_annotation(
            {
                "description": "42",
                "confidence": 0.77,
                "boundingPoly": {
                    "vertices": [
                        {"x": 1, "y": 2},
                        {"x": 11, "y": 2},
                        {"x": 11, "y": 12},
                        {"x": 1, "y": 12},
                    ]
                },
            }
        )
        assert f.text == "42"
        assert f.confidence == pytest.approx(0.77)
        assert f.center == (6, 7)

    def test_missing_confidence_uses_default(self):
        f = Fragment.from_annotation({"description": "7", "boundingPoly": {"vertices": []}})
        assert f.confidence == pytest.approx(0.8)

    def test_missing_coordinates_default_to_zero(self):
        """The provider omits zero-valued x/y keys."""
        f = Fragment.from_annotation(
            {
                "description": "7",
                "boundingPoly": {"vertices": [{}, {"x": 10}, {"x": 10, "y": 10}, {"y": 10}]},
            }
        )
        assert f.bbox == (0, 0, 10, 10)
