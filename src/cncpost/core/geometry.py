"""Planar geometry helpers for arc fitting.

All functions work on the XY projection of the points; Z is ignored.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional

import numpy as np

from .toolpath.base import Point

# Circumradius above which three points are treated as a straight line
MAX_ARC_RADIUS = 1000.0


class ArcDirection(Enum):
    CW = "G2"
    CCW = "G3"


def _xy(p: Point) -> np.ndarray:
    return np.array([p.x, p.y], dtype=float)


def triangle_sides(p1: Point, p2: Point, p3: Point) -> tuple[float, float, float]:
    """XY side lengths ``(|p1p2|, |p2p3|, |p1p3|)``."""
    a, b, c = _xy(p1), _xy(p2), _xy(p3)
    return (
        float(np.linalg.norm(b - a)),
        float(np.linalg.norm(c - b)),
        float(np.linalg.norm(c - a)),
    )


def heron_area(d1: float, d2: float, d3: float) -> float:
    """Triangle area from its side lengths (Heron's formula)."""
    s = (d1 + d2 + d3) / 2.0
    # Rounding can push the product slightly negative for collinear points
    return math.sqrt(max(0.0, s * (s - d1) * (s - d2) * (s - d3)))


def circumradius(p1: Point, p2: Point, p3: Point) -> float:
    """Radius of the circle through three points; ``inf`` when degenerate."""
    d1, d2, d3 = triangle_sides(p1, p2, p3)
    area = heron_area(d1, d2, d3)
    if area == 0.0:
        return math.inf
    return (d1 * d2 * d3) / (4.0 * area)


def can_form_arc(p1: Point, p2: Point, p3: Point, tolerance: float) -> bool:
    """True if the three points can be replaced by a single circular arc.

    The triple qualifies when its circumradius is below ``MAX_ARC_RADIUS``
    and the enclosed triangle area exceeds *tolerance*, which rejects both
    near-collinear and degenerate (coincident) triples.
    """
    d1, d2, d3 = triangle_sides(p1, p2, p3)
    area = heron_area(d1, d2, d3)
    if area == 0.0:
        return False
    radius = (d1 * d2 * d3) / (4.0 * area)
    return radius < MAX_ARC_RADIUS and area > tolerance


def cross_product_2d(p1: Point, p2: Point, p3: Point) -> float:
    """Z component of ``(p2 - p1) x (p3 - p2)``."""
    u = _xy(p2) - _xy(p1)
    v = _xy(p3) - _xy(p2)
    return float(u[0] * v[1] - u[1] * v[0])


def arc_direction(p1: Point, p2: Point, p3: Point) -> ArcDirection:
    """Clockwise when the path p1 -> p2 -> p3 turns right."""
    if cross_product_2d(p1, p2, p3) < 0:
        return ArcDirection.CW
    return ArcDirection.CCW


def circumcenter(p1: Point, p2: Point, p3: Point) -> Optional[tuple[float, float]]:
    """XY centre of the circle through three points, ``None`` if collinear."""
    a, b, c = _xy(p1), _xy(p2), _xy(p3)
    # Perpendicular bisector equations: 2(b-a).x = |b|^2-|a|^2, same for c
    lhs = 2.0 * np.array([b - a, c - a])
    rhs = np.array([b.dot(b) - a.dot(a), c.dot(c) - a.dot(a)])
    if abs(np.linalg.det(lhs)) < 1e-12:
        return None
    center = np.linalg.solve(lhs, rhs)
    return float(center[0]), float(center[1])
