"""GeoJSON feature source.

GeoJSON coordinates are always WGS84 (EPSG:4326) in ``longitude,latitude[,altitude]``
order. Geometries are converted to the Esri-style models: lines become
polylines, polygons and multipolygons become a single polygon whose outer
rings wind clockwise and whose holes wind counter-clockwise.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from .errors import MalformedInput
from .models import Feature, Geometry, Multipoint, Point, Polygon, Polyline
from .rings import is_clockwise, rewind

WGS84_WKID = 4326


class GeoJSONSource:
    """In-memory data source over a GeoJSON FeatureCollection."""

    def __init__(self, collection: dict[str, Any]):
        if not isinstance(collection, dict) or collection.get("type") != "FeatureCollection":
            raise MalformedInput("GeoJSON source requires a FeatureCollection")
        features = collection.get("features")
        if not isinstance(features, list):
            raise MalformedInput("GeoJSON FeatureCollection 'features' must be an array")
        self.collection = collection

    async def query_features(self) -> list[Feature]:
        """Return every feature in the collection."""
        features = [_read_feature(f) for f in self.collection["features"]]
        logger.debug(f"GeoJSON source returned {len(features)} features")
        return features


def _read_feature(obj: Any) -> Feature:
    if not isinstance(obj, dict) or obj.get("type") != "Feature":
        raise MalformedInput("GeoJSON FeatureCollection members must be Features")
    properties = obj.get("properties") or {}
    if not isinstance(properties, dict):
        raise MalformedInput("GeoJSON feature properties must be an object")
    return Feature(attributes=properties, geometry=read_geometry(obj.get("geometry")))


def read_geometry(obj: Any) -> Geometry | None:
    """Convert a GeoJSON geometry object. A null geometry yields None."""
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise MalformedInput("GeoJSON geometry must be an object")

    geometry_type = obj.get("type")
    coordinates = obj.get("coordinates")
    try:
        if geometry_type == "Point":
            x, y, *rest = coordinates
            return Point(
                x=x,
                y=y,
                z=rest[0] if rest else None,
                has_z=bool(rest),
                wkid=WGS84_WKID,
            )
        if geometry_type == "MultiPoint":
            return Multipoint(points=coordinates, has_z=_has_z(coordinates), wkid=WGS84_WKID)
        if geometry_type == "LineString":
            return Polyline(paths=[coordinates], has_z=_has_z(coordinates), wkid=WGS84_WKID)
        if geometry_type == "MultiLineString":
            return Polyline(
                paths=coordinates,
                has_z=any(_has_z(path) for path in coordinates),
                wkid=WGS84_WKID,
            )
        if geometry_type == "Polygon":
            return _read_polygons([coordinates])
        if geometry_type == "MultiPolygon":
            return _read_polygons(coordinates)
    except (TypeError, ValueError, IndexError, KeyError, ValidationError) as e:
        raise MalformedInput(f"Invalid GeoJSON {geometry_type} coordinates: {e}") from e

    raise MalformedInput(f"Unsupported GeoJSON geometry type {geometry_type!r}")


def _read_polygons(polygons: list[Any]) -> Polygon:
    """Flatten polygons into one Esri polygon, checking each ring before orienting it."""
    rings = []
    for polygon in polygons:
        rings.extend(_orient_rings(Polygon(rings=polygon).rings))
    return Polygon(rings=rings, has_z=any(_has_z(r) for r in rings), wkid=WGS84_WKID)


def _orient_rings(rings: list[list[list[float]]]) -> list[list[list[float]]]:
    oriented = []
    for i, ring in enumerate(rings):
        if i == 0 and not is_clockwise(ring):
            ring = rewind(ring)
        elif i > 0 and is_clockwise(ring):
            ring = rewind(ring)
        oriented.append(ring)
    return oriented


def _has_z(points: list[list[float]]) -> bool:
    return any(len(p) > 2 for p in points)
