"""Tests for the arc-fitting geometry helpers."""

import math

import pytest

from cncpost.core.geometry import (
    ArcDirection,
    arc_direction,
    can_form_arc,
    circumcenter,
    circumradius,
    cross_product_2d,
    heron_area,
)
from cncpost.core.toolpath.base import Point


class TestArcFit:
    def test_quarter_turn_forms_arc(self):
        assert can_form_arc(Point(0, 0), Point(1, 1), Point(2, 0), tolerance=0.01)

    def test_collinear_points_do_not_form_arc(self):
        assert not can_form_arc(Point(0, 0), Point(1, 0), Point(2, 0), tolerance=0.01)

    def test_coincident_points_do_not_form_arc(self):
        p = Point(3, 3)
        assert not can_form_arc(p, p, p, tolerance=0.01)

    def test_area_below_tolerance_rejected(self):
        # Nearly straight: triangle area 0.001
        assert not can_form_arc(Point(0, 0), Point(1, 0.001), Point(2, 0), tolerance=0.01)

    def test_huge_radius_rejected(self):
        # Area is large enough but the circle is enormous
        p1, p2, p3 = Point(0, 0), Point(2000, 1), Point(4000, 0)
        assert circumradius(p1, p2, p3) > 1000
        assert not can_form_arc(p1, p2, p3, tolerance=0.01)

    def test_z_is_ignored(self):
        assert can_form_arc(Point(0, 0, -1), Point(1, 1, -2), Point(2, 0, -3), tolerance=0.01)


class TestDirection:
    def test_right_turn_is_clockwise(self):
        p1, p2, p3 = Point(0, 0), Point(1, 1), Point(2, 0)
        assert cross_product_2d(p1, p2, p3) == pytest.approx(-2.0)
        assert arc_direction(p1, p2, p3) is ArcDirection.CW
        assert ArcDirection.CW.value == "G2"

    def test_left_turn_is_counter_clockwise(self):
        assert arc_direction(Point(0, 0), Point(1, -1), Point(2, 0)) is ArcDirection.CCW

    def test_straight_line_counts_as_ccw(self):
        assert arc_direction(Point(0, 0), Point(1, 0), Point(2, 0)) is ArcDirection.CCW


class TestCircle:
    def test_heron_right_triangle(self):
        assert heron_area(3.0, 4.0, 5.0) == pytest.approx(6.0)

    def test_heron_never_negative(self):
        assert heron_area(1.0, 1.0, 2.0000000001) == 0.0

    def test_circumradius(self):
        assert circumradius(Point(0, 0), Point(1, 1), Point(2, 0)) == pytest.approx(1.0)

    def test_circumradius_degenerate(self):
        assert math.isinf(circumradius(Point(0, 0), Point(1, 0), Point(2, 0)))

    def test_circumcenter(self):
        cx, cy = circumcenter(Point(0, 0), Point(1, 1), Point(2, 0))
        assert cx == pytest.approx(1.0)
        assert cy == pytest.approx(0.0)

    def test_circumcenter_off_axis(self):
        # Points on a circle of radius 5 around (10, -3)
        pts = [Point(15, -3), Point(10, 2), Point(5, -3)]
        cx, cy = circumcenter(*pts)
        assert (cx, cy) == (pytest.approx(10.0), pytest.approx(-3.0))

    def test_circumcenter_collinear(self):
        assert circumcenter(Point(0, 0), Point(1, 1), Point(2, 2)) is None
