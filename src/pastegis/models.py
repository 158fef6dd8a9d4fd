"""Pydantic data models for pasted features and geometries."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

Coordinate = list[float]


class Point(BaseModel):
    """A single location with optional z and m values."""

    type: Literal["point"] = "point"
    x: float
    y: float
    z: float | None = None
    m: float | None = None
    has_z: bool = False
    has_m: bool = False
    wkid: int | None = None


class Multipoint(BaseModel):
    """An unordered set of coordinates."""

    type: Literal["multipoint"] = "multipoint"
    points: list[Coordinate]
    has_z: bool = False
    has_m: bool = False
    wkid: int | None = None


class Polyline(BaseModel):
    """One or more paths of connected coordinates."""

    type: Literal["polyline"] = "polyline"
    paths: list[list[Coordinate]]
    has_z: bool = False
    has_m: bool = False
    wkid: int | None = None


class Polygon(BaseModel):
    """One or more rings; outer rings wind clockwise, holes counter-clockwise."""

    type: Literal["polygon"] = "polygon"
    rings: list[list[Coordinate]]
    has_z: bool = False
    has_m: bool = False
    wkid: int | None = None


class Extent(BaseModel):
    """An axis-aligned bounding rectangle."""

    type: Literal["extent"] = "extent"
    xmin: float
    ymin: float
    xmax: float
    ymax: float
    has_z: bool = False
    has_m: bool = False
    wkid: int | None = None


Geometry = Annotated[
    Union[Point, Multipoint, Polyline, Polygon, Extent],
    Field(discriminator="type"),
]


class Feature(BaseModel):
    """Attributes plus an optional geometry."""

    attributes: dict[str, Any] = Field(default_factory=dict)
    geometry: Geometry | None = None


class ParseResult(BaseModel):
    """Features extracted from pasted text.

    ``unknown_spatial_reference`` is set when the source format carries no
    coordinate system, in which case the caller decides which one applies.
    """

    features: list[Feature]
    unknown_spatial_reference: bool = False
