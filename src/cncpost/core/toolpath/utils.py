"""Shapely adapters that turn planar geometry into toolpath operations."""

from __future__ import annotations

from typing import Optional

from shapely.geometry import (
    GeometryCollection,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPolygon,
    Polygon,
)
from shapely.validation import make_valid

from .base import EntryType, ExitType, OperationType, Point, ToolpathOperation


def iter_polygons(geom: Polygon | MultiPolygon):
    """Yield individual Polygon objects from a possibly Multi geometry."""
    if isinstance(geom, Polygon):
        if not geom.is_empty:
            yield geom
    elif isinstance(geom, MultiPolygon):
        for p in geom.geoms:
            if not p.is_empty:
                yield p


def ring_to_points(ring: LinearRing | LineString, z: float = 0.0) -> list[Point]:
    """Convert a 2D ring or line to Points at constant *z*."""
    return [Point(float(x), float(y), z) for x, y, *_ in ring.coords]


def _paths(geom) -> list[list[Point]]:
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, (Polygon, MultiPolygon)) and not geom.is_valid:
        geom = make_valid(geom)

    if isinstance(geom, (Polygon, MultiPolygon)):
        paths = []
        for poly in iter_polygons(geom):
            paths.append(ring_to_points(poly.exterior))
            paths.extend(ring_to_points(hole) for hole in poly.interiors)
        return paths
    if isinstance(geom, LineString):
        return [ring_to_points(geom)]
    if isinstance(geom, MultiLineString):
        return [ring_to_points(line) for line in geom.geoms if not line.is_empty]
    if isinstance(geom, GeometryCollection):
        paths = []
        for g in geom.geoms:
            paths.extend(_paths(g))
        return paths
    raise TypeError(f"Unsupported geometry type: {geom.geom_type}")


def operations_from_geometry(
    geom,
    op_type: OperationType = OperationType.PROFILE,
    depth: float = 5.0,
    stepdown: Optional[float] = None,
    tool_diameter: Optional[float] = None,
    entry_type: EntryType = EntryType.PLUNGE,
    exit_type: ExitType = ExitType.DIRECT,
) -> list[ToolpathOperation]:
    """Build one operation per ring or line in *geom*.

    Polygon exteriors and holes come out as closed point sequences (first
    point repeated at the end, as shapely stores them).
    """
    ops: list[ToolpathOperation] = []
    for points in _paths(geom):
        if not points:
            continue
        ops.append(ToolpathOperation(
            type=op_type,
            points=points,
            depth=depth,
            stepdown=stepdown,
            tool_diameter=tool_diameter,
            entry_type=entry_type,
            exit_type=exit_type,
        ))
    return ops
