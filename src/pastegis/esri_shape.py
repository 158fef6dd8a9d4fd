"""Decoder for Esri binary shape buffers.

ArcGIS stores a single geometry as a little-endian buffer that starts with a
32-bit type word. The low byte is the shape type code and the high byte holds
modifier flags for Z values, M values, point IDs and curves. The rest of the
buffer follows the shapefile record layout:

- point: ``x, y[, z][, m]``
- multipoint: ``bbox, nPoints, xy * nPoints[, zrange, z * nPoints][, mrange, m * nPoints]``
- polyline / polygon: ``bbox, nParts, nPoints, parts * nParts, <points as multipoint>``

Point IDs are detected but their payload is not consumed, so anything stored
after an ID-bearing shape would be misread. Curve-bearing shapes are rejected.
"""

from __future__ import annotations

import base64
import binascii
import math
import struct
from dataclasses import dataclass
from enum import IntEnum

from .errors import MalformedInput, UnsupportedGeometry
from .models import Coordinate, Multipoint, Point, Polygon, Polyline

HAS_Z_FLAG = 0x80000000
HAS_M_FLAG = 0x40000000
HAS_CURVES_FLAG = 0x20000000
HAS_ID_FLAG = 0x10000000

# Z and M values less than -1e38 are nodata values
NODATA_THRESHOLD = -1.0e38

BBOX_SIZE = 4 * 8
RANGE_SIZE = 2 * 8


class ShapeType(IntEnum):
    """Supported shape type codes."""

    POINT = 1
    POINT_Z = 9
    POINT_M = 21
    POINT_ZM = 11
    MULTIPOINT = 8
    MULTIPOINT_Z = 20
    MULTIPOINT_M = 28
    MULTIPOINT_ZM = 18
    POLYLINE = 3
    POLYLINE_Z = 10
    POLYLINE_M = 23
    POLYLINE_ZM = 13
    POLYGON = 5
    POLYGON_Z = 19
    POLYGON_M = 25
    POLYGON_ZM = 15
    GENERAL_POINT = 52
    GENERAL_MULTIPOINT = 53
    GENERAL_POLYLINE = 50
    GENERAL_POLYGON = 51

    @property
    def category(self) -> str:
        return _SHAPE_TRAITS[self][0]

    @property
    def has_z(self) -> bool:
        return _SHAPE_TRAITS[self][1]

    @property
    def has_m(self) -> bool:
        return _SHAPE_TRAITS[self][2]


# shape type -> (category, intrinsic z, intrinsic m)
_SHAPE_TRAITS: dict[ShapeType, tuple[str, bool, bool]] = {
    ShapeType.POINT: ("point", False, False),
    ShapeType.POINT_Z: ("point", True, False),
    ShapeType.POINT_M: ("point", False, True),
    ShapeType.POINT_ZM: ("point", True, True),
    ShapeType.MULTIPOINT: ("multipoint", False, False),
    ShapeType.MULTIPOINT_Z: ("multipoint", True, False),
    ShapeType.MULTIPOINT_M: ("multipoint", False, True),
    ShapeType.MULTIPOINT_ZM: ("multipoint", True, True),
    ShapeType.POLYLINE: ("polyline", False, False),
    ShapeType.POLYLINE_Z: ("polyline", True, False),
    ShapeType.POLYLINE_M: ("polyline", False, True),
    ShapeType.POLYLINE_ZM: ("polyline", True, True),
    ShapeType.POLYGON: ("polygon", False, False),
    ShapeType.POLYGON_Z: ("polygon", True, False),
    ShapeType.POLYGON_M: ("polygon", False, True),
    ShapeType.POLYGON_ZM: ("polygon", True, True),
    ShapeType.GENERAL_POINT: ("point", False, False),
    ShapeType.GENERAL_MULTIPOINT: ("multipoint", False, False),
    ShapeType.GENERAL_POLYLINE: ("polyline", False, False),
    ShapeType.GENERAL_POLYGON: ("polygon", False, False),
}


@dataclass(frozen=True)
class ShapeModifierFlags:
    """Dimensionality of a shape, combining its type code and modifier bits."""

    has_z: bool
    has_m: bool
    has_id: bool
    has_curves: bool

    @classmethod
    def from_type_word(cls, type_word: int) -> ShapeModifierFlags:
        code = type_word & 0x000000FF
        modifier = type_word & 0xFF000000
        _, intrinsic_z, intrinsic_m = _SHAPE_TRAITS.get(code, (None, False, False))
        return cls(
            has_z=bool(modifier & HAS_Z_FLAG) or intrinsic_z,
            has_m=bool(modifier & HAS_M_FLAG) or intrinsic_m,
            has_id=bool(modifier & HAS_ID_FLAG),
            has_curves=bool(modifier & HAS_CURVES_FLAG),
        )


class _Cursor:
    """Read position within a shape buffer."""

    def __init__(self, buffer: bytes, offset: int = 0):
        self.buffer = buffer
        self.offset = offset

    def read(self, fmt: str) -> tuple:
        try:
            values = struct.unpack_from("<" + fmt, self.buffer, self.offset)
        except struct.error as e:
            raise MalformedInput(
                f"Shape buffer truncated at offset {self.offset} ({len(self.buffer)} bytes)"
            ) from e
        self.offset += struct.calcsize("<" + fmt)
        return values

    def read_int(self) -> int:
        return self.read("i")[0]

    def read_double(self) -> float:
        return self.read("d")[0]

    def read_count(self, what: str) -> int:
        count = self.read_int()
        if count < 0:
            raise MalformedInput(f"Negative {what} count {count} in shape buffer")
        return count

    def skip(self, size: int) -> None:
        self.offset += size


def translate_nodata(value: float) -> float:
    return math.nan if value < NODATA_THRESHOLD else value


def decode(buffer: bytes, wkid: int | None = None) -> Point | Multipoint | Polyline | Polygon:
    """Decode a binary shape buffer into a geometry tagged with ``wkid``.

    Raises UnsupportedGeometry for curves or unknown shape types and
    MalformedInput when the buffer is too short for its declared contents.
    """
    cursor = _Cursor(buffer)
    (type_word,) = cursor.read("I")
    code = type_word & 0x000000FF
    flags = ShapeModifierFlags.from_type_word(type_word)

    if flags.has_curves:
        raise UnsupportedGeometry("Geometries with curves are unsupported")
    if code not in _SHAPE_TRAITS:
        raise UnsupportedGeometry(f"Unsupported geometry type {code}")

    category = ShapeType(code).category
    if category == "point":
        return _read_point(cursor, flags, wkid)
    if category == "multipoint":
        _skip_bounding_box(cursor, BBOX_SIZE)
        point_count = cursor.read_count("point")
        points = _read_point_array(cursor, point_count, flags)
        return Multipoint(points=points, has_z=flags.has_z, has_m=flags.has_m, wkid=wkid)
    if category in ("polyline", "polygon"):
        _skip_bounding_box(cursor, BBOX_SIZE)
        part_count = cursor.read_count("part")
        point_count = cursor.read_count("point")
        part_indices = list(cursor.read(f"{part_count}i"))
        points = _read_point_array(cursor, point_count, flags)
        parts = split_parts(points, part_indices)
        if category == "polyline":
            return Polyline(paths=parts, has_z=flags.has_z, has_m=flags.has_m, wkid=wkid)
        return Polygon(rings=parts, has_z=flags.has_z, has_m=flags.has_m, wkid=wkid)
    raise UnsupportedGeometry(f"Unsupported geometry type {code}")


def decode_base64(text: str, wkid: int | None = None) -> Point | Multipoint | Polyline | Polygon:
    """Decode a base64 encoded shape buffer, ignoring embedded whitespace."""
    try:
        buffer = base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedInput(f"Invalid base64 shape bytes: {e}") from e
    return decode(buffer, wkid)


def split_parts(points: list[Coordinate], part_indices: list[int]) -> list[list[Coordinate]]:
    """Split a flat coordinate list at each part start index.

    Part ``i`` spans ``points[start[i]:start[i + 1]]``; the last part runs to
    the end of the list.
    """
    parts: list[list[Coordinate]] = []
    for i, start in enumerate(part_indices):
        end = part_indices[i + 1] if i + 1 < len(part_indices) else len(points)
        parts.append(points[start:end])
    return parts


def _read_point(cursor: _Cursor, flags: ShapeModifierFlags, wkid: int | None) -> Point:
    x, y = cursor.read("2d")
    z = m = None
    if flags.has_z:
        z = translate_nodata(cursor.read_double())
    if flags.has_m:
        m = translate_nodata(cursor.read_double())
    # point IDs are flagged but not read
    return Point(x=x, y=y, z=z, m=m, has_z=flags.has_z, has_m=flags.has_m, wkid=wkid)


def _read_point_array(
    cursor: _Cursor, point_count: int, flags: ShapeModifierFlags
) -> list[Coordinate]:
    flat = cursor.read(f"{2 * point_count}d")
    points = [[flat[i], flat[i + 1]] for i in range(0, len(flat), 2)]

    if flags.has_z:
        _skip_bounding_box(cursor, RANGE_SIZE)
        for point, z in zip(points, cursor.read(f"{point_count}d")):
            point.append(translate_nodata(z))

    if flags.has_m:
        _skip_bounding_box(cursor, RANGE_SIZE)
        for point, m in zip(points, cursor.read(f"{point_count}d")):
            point.append(translate_nodata(m))

    return points


def _skip_bounding_box(cursor: _Cursor, size: int) -> None:
    cursor.skip(size)
