"""Parse pasted GeoJSON, Esri JSON, ArcGIS Pro clipboard XML and coordinates."""

from .errors import MalformedInput, PasteGISError, UnknownFormat, UnsupportedGeometry
from .esri_shape import ShapeModifierFlags, ShapeType, decode, decode_base64
from .layer import ImportedLayer, parse_as_layer
from .models import Extent, Feature, Multipoint, ParseResult, Point, Polygon, Polyline
from .parse import parse
from .projection import centroid_of, extent_of, project
from .stringify import stringify

__all__ = [
    "Extent",
    "Feature",
    "ImportedLayer",
    "MalformedInput",
    "Multipoint",
    "ParseResult",
    "PasteGISError",
    "Point",
    "Polygon",
    "Polyline",
    "ShapeModifierFlags",
    "ShapeType",
    "UnknownFormat",
    "UnsupportedGeometry",
    "centroid_of",
    "decode",
    "decode_base64",
    "extent_of",
    "parse",
    "parse_as_layer",
    "project",
    "stringify",
]
