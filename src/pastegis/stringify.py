"""Re-serialization of a feature into a chosen format and spatial reference."""

from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Literal

from .esri_json import feature_to_json, geometry_to_json
from .models import Extent, Feature, Point
from .projection import centroid_of, extent_of, project

StringifyGeometryType = Literal["original", "extent", "centroid"]
StringifyFormat = Literal["json-feature", "json-geometry", "csv"]


def format_number(value: float) -> str:
    """Format a coordinate the way a JavaScript number prints.

    Integers lose their ``.0`` and exponents are only used below 1e-6 or
    from 1e21 on, written as ``1e-7`` and ``1e+21``.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        mantissa = digits[0] if k == 1 else f"{digits[0]}.{digits[1:]}"
        text = f"{mantissa}e{n - 1:+d}"
    return sign + text


def stringify(
    feature: Feature,
    geometry_type: StringifyGeometryType,
    wkid: int,
    format: StringifyFormat,
) -> str | None:
    """Project and reduce a feature's geometry, then serialize it.

    Returns None when the format cannot represent the geometry, e.g. CSV
    for anything other than a point or an extent.
    """
    geometry = feature.geometry
    if geometry is not None:
        geometry = project(geometry, wkid)
        if geometry_type == "extent":
            geometry = extent_of(geometry)
        elif geometry_type == "centroid":
            geometry = centroid_of(geometry)
    reduced = Feature(attributes=dict(feature.attributes), geometry=geometry)

    if format == "json-feature":
        return json.dumps(feature_to_json(reduced))
    if format == "json-geometry":
        if reduced.geometry is None:
            return None
        return json.dumps(geometry_to_json(reduced.geometry))
    if format == "csv":
        if isinstance(reduced.geometry, Point):
            return f"{format_number(reduced.geometry.x)},{format_number(reduced.geometry.y)}"
        if isinstance(reduced.geometry, Extent):
            e = reduced.geometry
            return ",".join(format_number(v) for v in (e.xmin, e.ymin, e.xmax, e.ymax))
    return None
