"""Format sniffing for pasted geographic data.

Pasted text carries no format marker, so each supported format is tried in
a fixed priority order and the first one that yields features wins:

1. JSON: GeoJSON (``type``), Esri feature set (``features``), Esri feature
   (``geometry``) or a bare Esri geometry, checked in that order.
2. ArcGIS Pro clipboard XML with embedded binary shapes.
3. Comma-separated coordinates: ``x,y`` or ``xmin,ymin,xmax,ymax``.

Text is percent-decoded first when it is a valid URI component.
"""

from __future__ import annotations

import json
import re
from collections.abc import Awaitable, Callable
from functools import cached_property
from typing import Any
from urllib.parse import unquote

from loguru import logger

from . import esri_json
from .clipboard_xml import parse_document, read_clipboard_features
from .errors import MalformedInput, UnknownFormat
from .geojson import GeoJSONSource
from .models import Extent, Feature, ParseResult, Point

_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# the longest leading number of a token, anything after it is ignored
_NUMBER_PREFIX = re.compile(r"[+-]?(Infinity|(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?)")


class PastedText:
    """Pasted text along with its lazily parsed JSON value."""

    def __init__(self, text: str):
        self.text = text

    @cached_property
    def json_object(self) -> dict[str, Any] | None:
        try:
            value = json.loads(self.text)
        except ValueError:
            return None
        return value if isinstance(value, dict) else None


FormatReader = Callable[[PastedText], Awaitable[ParseResult | None]]
JSONReader = Callable[[dict[str, Any]], Awaitable[ParseResult | None]]


def uri_decode(text: str) -> str:
    """Percent-decode text, returning it unchanged if it is not a valid URI component."""
    if _INVALID_ESCAPE.search(text):
        return text
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError:
        return text


async def parse(source: str) -> ParseResult:
    """Parse pasted text into features.

    Raises UnknownFormat if no format matches. Errors decoding a shape
    inside a recognized ArcGIS Pro clipboard document are raised as is.
    """
    pasted = PastedText(uri_decode(source))
    for read in FORMAT_READERS:
        result = await read(pasted)
        if result is not None and result.features:
            logger.info(
                f"Pasted text read by {read.__name__}: {len(result.features)} features, "
                f"unknown spatial reference={result.unknown_spatial_reference}"
            )
            return result
        logger.debug(f"Pasted text not matched by {read.__name__}")
    raise UnknownFormat()


# JSON


def _is_truthy(value: Any) -> bool:
    return value not in (None, False, 0, "")


def _is_geojson(obj: dict[str, Any]) -> bool:
    return _is_truthy(obj.get("type"))


def _is_esri_feature_set(obj: dict[str, Any]) -> bool:
    return _is_truthy(obj.get("features"))


def _is_esri_feature(obj: dict[str, Any]) -> bool:
    return _is_truthy(obj.get("geometry"))


def _is_any_object(obj: dict[str, Any]) -> bool:
    return True


def to_feature_collection(obj: dict[str, Any]) -> dict[str, Any]:
    """Wrap a GeoJSON geometry or feature in a FeatureCollection."""
    if obj["type"] == "FeatureCollection":
        return obj
    if obj["type"] == "Feature":
        feature = obj
    else:
        feature = {"type": "Feature", "properties": {}, "geometry": obj}
    return {"type": "FeatureCollection", "features": [feature]}


async def _read_geojson(obj: dict[str, Any]) -> ParseResult:
    # GeoJSON is always WGS84
    source = GeoJSONSource(to_feature_collection(obj))
    return ParseResult(features=await source.query_features())


async def _read_esri_feature_set(obj: dict[str, Any]) -> ParseResult:
    return ParseResult(features=esri_json.feature_set_from_json(obj))


async def _read_esri_feature(obj: dict[str, Any]) -> ParseResult:
    geometry = obj["geometry"]
    return ParseResult(
        features=[esri_json.feature_from_json(obj)],
        unknown_spatial_reference=not (
            isinstance(geometry, dict) and _is_truthy(geometry.get("spatialReference"))
        ),
    )


async def _read_esri_geometry(obj: dict[str, Any]) -> ParseResult | None:
    geometry = esri_json.geometry_from_json(obj)
    if geometry is None:
        return None
    return ParseResult(
        features=[Feature(geometry=geometry)],
        unknown_spatial_reference=not _is_truthy(obj.get("spatialReference")),
    )


JSON_READERS: tuple[tuple[Callable[[dict[str, Any]], bool], JSONReader], ...] = (
    (_is_geojson, _read_geojson),
    (_is_esri_feature_set, _read_esri_feature_set),
    (_is_esri_feature, _read_esri_feature),
    (_is_any_object, _read_esri_geometry),
)


async def read_json(pasted: PastedText) -> ParseResult | None:
    obj = pasted.json_object
    if obj is None:
        return None
    for matches, read in JSON_READERS:
        if matches(obj):
            try:
                return await read(obj)
            except MalformedInput as e:
                logger.debug(f"JSON looked like {read.__name__} but could not be read: {e}")
                return None
    return None


# XML


async def read_clipboard_xml(pasted: PastedText) -> ParseResult | None:
    try:
        root = parse_document(pasted.text)
    except MalformedInput:
        return None
    # Shape decoding errors in a recognized clipboard document are not swallowed
    return ParseResult(features=read_clipboard_features(root))


# Comma-separated coordinates


async def read_coordinates(pasted: PastedText) -> ParseResult | None:
    matches = [_NUMBER_PREFIX.match(token.strip()) for token in pasted.text.split(",")]
    if not all(matches):
        return None
    values = [float(match.group()) for match in matches]

    if len(values) == 2:
        x, y = values
        geometry = Point(x=x, y=y)
    elif len(values) == 4:
        xmin, ymin, xmax, ymax = values
        geometry = Extent(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax)
    else:
        return None
    return ParseResult(features=[Feature(geometry=geometry)], unknown_spatial_reference=True)


FORMAT_READERS: tuple[FormatReader, ...] = (read_json, read_clipboard_xml, read_coordinates)
