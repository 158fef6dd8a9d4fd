"""Esri JSON reading and writing for geometries, features and feature sets.

Geometry objects are recognized by their members: ``x``/``y`` for points,
``points`` for multipoints, ``paths`` for polylines, ``rings`` for polygons
and ``xmin``/``ymin``/``xmax``/``ymax`` for extents. The spatial reference
is read from ``spatialReference.wkid`` (or ``latestWkid``).
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import ValidationError

from .errors import MalformedInput
from .models import Extent, Feature, Geometry, Multipoint, Point, Polygon, Polyline

EXTENT_KEYS = ("xmin", "ymin", "xmax", "ymax")


def read_wkid(spatial_reference: Any) -> int | None:
    """Return the WKID of an Esri ``spatialReference`` object, if any."""
    if not isinstance(spatial_reference, dict):
        return None
    wkid = spatial_reference.get("wkid")
    if wkid is None:
        wkid = spatial_reference.get("latestWkid")
    if wkid is None:
        return None
    try:
        return int(wkid)
    except (TypeError, ValueError) as e:
        raise MalformedInput(f"Invalid WKID {wkid!r}") from e


def geometry_from_json(obj: Any) -> Geometry | None:
    """Build a geometry from an Esri JSON object, or None if it is not one."""
    if not isinstance(obj, dict):
        return None

    wkid = read_wkid(obj.get("spatialReference"))
    has_z = bool(obj.get("hasZ"))
    has_m = bool(obj.get("hasM"))

    try:
        if "x" in obj and "y" in obj:
            return Point(
                x=obj["x"],
                y=obj["y"],
                z=obj.get("z"),
                m=obj.get("m"),
                has_z="z" in obj,
                has_m="m" in obj,
                wkid=wkid,
            )
        if "points" in obj:
            return Multipoint(points=obj["points"], has_z=has_z, has_m=has_m, wkid=wkid)
        if "paths" in obj:
            return Polyline(paths=obj["paths"], has_z=has_z, has_m=has_m, wkid=wkid)
        if "rings" in obj:
            return Polygon(rings=obj["rings"], has_z=has_z, has_m=has_m, wkid=wkid)
        if all(key in obj for key in EXTENT_KEYS):
            return Extent(**{key: obj[key] for key in EXTENT_KEYS}, wkid=wkid)
    except ValidationError as e:
        raise MalformedInput(f"Invalid Esri JSON geometry: {e}") from e
    return None


def feature_from_json(obj: Any) -> Feature:
    """Build a feature from an Esri JSON ``{"attributes", "geometry"}`` object."""
    if not isinstance(obj, dict):
        raise MalformedInput("Esri JSON feature must be an object")
    attributes = obj.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise MalformedInput("Esri JSON feature attributes must be an object")
    return Feature(attributes=attributes, geometry=geometry_from_json(obj.get("geometry")))


def feature_set_from_json(obj: dict[str, Any]) -> list[Feature]:
    """Read the features of an Esri JSON feature set.

    The feature set's spatial reference applies to every geometry that does
    not declare its own.
    """
    features_json = obj.get("features")
    if not isinstance(features_json, list):
        raise MalformedInput("Esri JSON feature set 'features' must be an array")

    wkid = read_wkid(obj.get("spatialReference"))
    features = [feature_from_json(f) for f in features_json]
    for feature in features:
        if feature.geometry is not None and feature.geometry.wkid is None:
            feature.geometry.wkid = wkid
    return features


def geometry_to_json(geometry: Geometry) -> dict[str, Any]:
    """Serialize a geometry as Esri JSON. NaN values are written as null."""
    if isinstance(geometry, Point):
        result: dict[str, Any] = {"x": _number(geometry.x), "y": _number(geometry.y)}
        if geometry.has_z:
            result["z"] = _number(geometry.z)
        if geometry.has_m:
            result["m"] = _number(geometry.m)
    elif isinstance(geometry, Extent):
        result = {key: _number(getattr(geometry, key)) for key in EXTENT_KEYS}
    else:
        result = {}
        if geometry.has_z:
            result["hasZ"] = True
        if geometry.has_m:
            result["hasM"] = True
        if isinstance(geometry, Multipoint):
            result["points"] = _coordinates(geometry.points)
        elif isinstance(geometry, Polyline):
            result["paths"] = [_coordinates(path) for path in geometry.paths]
        elif isinstance(geometry, Polygon):
            result["rings"] = [_coordinates(ring) for ring in geometry.rings]
        else:
            raise TypeError(f"Unsupported geometry {type(geometry).__name__}")

    if geometry.wkid is not None:
        result["spatialReference"] = {"wkid": geometry.wkid}
    return result


def feature_to_json(feature: Feature) -> dict[str, Any]:
    return {
        "attributes": feature.attributes,
        "geometry": geometry_to_json(feature.geometry) if feature.geometry is not None else None,
    }


def _number(value: float | None) -> float | None:
    if value is None or math.isnan(value):
        return None
    return value


def _coordinates(points: list[list[float]]) -> list[list[float | None]]:
    return [[_number(v) for v in point] for point in points]
