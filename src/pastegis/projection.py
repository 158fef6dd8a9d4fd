"""Reprojection and reduction of geometries."""

from __future__ import annotations

import math
from functools import lru_cache

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError
from shapely.geometry import LineString, MultiLineString
from shapely.geometry import Polygon as ShapelyPolygon

from .models import Coordinate, Extent, Geometry, Multipoint, Point, Polygon, Polyline
from .rings import is_clockwise, is_degenerate, planar_coordinates


def crs_from_wkid(wkid: int) -> CRS:
    """Resolve a WKID as an EPSG code, falling back to the ESRI authority (e.g. 102100)."""
    try:
        return CRS.from_epsg(wkid)
    except CRSError:
        return CRS.from_authority("ESRI", str(wkid))


@lru_cache(maxsize=32)
def get_transformer(source_wkid: int, target_wkid: int) -> Transformer:
    return Transformer.from_crs(
        crs_from_wkid(source_wkid), crs_from_wkid(target_wkid), always_xy=True
    )


def project(geometry: Geometry, target_wkid: int) -> Geometry:
    """Reproject a geometry into ``target_wkid``, preserving z and m values.

    Geometries without a spatial reference, or already in the target one, are
    copied unchanged.
    """
    if geometry.wkid is None or geometry.wkid == target_wkid:
        return geometry.model_copy(deep=True)

    transformer = get_transformer(geometry.wkid, target_wkid)

    def transform(coord: Coordinate) -> Coordinate:
        x, y = transformer.transform(coord[0], coord[1])
        return [x, y, *coord[2:]]

    if isinstance(geometry, Point):
        x, y = transformer.transform(geometry.x, geometry.y)
        return geometry.model_copy(update={"x": x, "y": y, "wkid": target_wkid})
    if isinstance(geometry, Multipoint):
        points = [transform(p) for p in geometry.points]
        return geometry.model_copy(update={"points": points, "wkid": target_wkid})
    if isinstance(geometry, Polyline):
        paths = [[transform(p) for p in path] for path in geometry.paths]
        return geometry.model_copy(update={"paths": paths, "wkid": target_wkid})
    if isinstance(geometry, Polygon):
        rings = [[transform(p) for p in ring] for ring in geometry.rings]
        return geometry.model_copy(update={"rings": rings, "wkid": target_wkid})
    if isinstance(geometry, Extent):
        xmin, ymin, xmax, ymax = transformer.transform_bounds(
            geometry.xmin, geometry.ymin, geometry.xmax, geometry.ymax
        )
        return geometry.model_copy(
            update={"xmin": xmin, "ymin": ymin, "xmax": xmax, "ymax": ymax, "wkid": target_wkid}
        )
    raise TypeError(f"Unsupported geometry {type(geometry).__name__}")


def _coordinates(geometry: Geometry) -> list[Coordinate]:
    if isinstance(geometry, Point):
        return [[geometry.x, geometry.y]]
    if isinstance(geometry, Multipoint):
        return geometry.points
    if isinstance(geometry, Polyline):
        return [p for path in geometry.paths for p in path]
    if isinstance(geometry, Polygon):
        return [p for ring in geometry.rings for p in ring]
    if isinstance(geometry, Extent):
        return [[geometry.xmin, geometry.ymin], [geometry.xmax, geometry.ymax]]
    raise TypeError(f"Unsupported geometry {type(geometry).__name__}")


def extent_of(geometry: Geometry) -> Extent | None:
    """Bounding rectangle of a geometry, or None if it has no coordinates."""
    coords = _coordinates(geometry)
    if not coords:
        return None
    xs = [c[0] for c in coords]
    ys = [c[1] for c in coords]
    return Extent(xmin=min(xs), ymin=min(ys), xmax=max(xs), ymax=max(ys), wkid=geometry.wkid)


def centroid_of(geometry: Geometry) -> Point | None:
    """Centroid of a geometry, or None if it has no coordinates."""
    if isinstance(geometry, Point):
        return Point(x=geometry.x, y=geometry.y, wkid=geometry.wkid)
    if isinstance(geometry, Extent):
        return Point(
            x=(geometry.xmin + geometry.xmax) / 2,
            y=(geometry.ymin + geometry.ymax) / 2,
            wkid=geometry.wkid,
        )
    if isinstance(geometry, Multipoint):
        if not geometry.points:
            return None
        n = len(geometry.points)
        return Point(
            x=math.fsum(p[0] for p in geometry.points) / n,
            y=math.fsum(p[1] for p in geometry.points) / n,
            wkid=geometry.wkid,
        )
    if isinstance(geometry, Polyline):
        lines = [[(p[0], p[1]) for p in path] for path in geometry.paths if len(path) >= 2]
        if not lines:
            return None
        shape = MultiLineString(lines) if len(lines) > 1 else LineString(lines[0])
        if shape.length == 0:
            return None
        center = shape.centroid
        return Point(x=center.x, y=center.y, wkid=geometry.wkid)
    if isinstance(geometry, Polygon):
        polygons = [p for p in _shapely_polygons(geometry.rings) if p.area > 0]
        if not polygons:
            return None
        area = math.fsum(p.area for p in polygons)
        return Point(
            x=math.fsum(p.centroid.x * p.area for p in polygons) / area,
            y=math.fsum(p.centroid.y * p.area for p in polygons) / area,
            wkid=geometry.wkid,
        )
    raise TypeError(f"Unsupported geometry {type(geometry).__name__}")


def _shapely_polygons(rings: list[list[Coordinate]]) -> list[ShapelyPolygon]:
    """Group Esri rings into shapely polygons.

    A clockwise ring starts a new polygon; counter-clockwise rings are holes
    of the preceding one.
    """
    polygons: list[tuple[list[tuple[float, float]], list[list[tuple[float, float]]]]] = []
    for ring in rings:
        if is_degenerate(ring):
            continue
        coords = planar_coordinates(ring)
        if is_clockwise(ring) or not polygons:
            polygons.append((coords, []))
        else:
            polygons[-1][1].append(coords)
    return [ShapelyPolygon(shell, holes) for shell, holes in polygons]
