"""Layers built from pasted text."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from .models import Feature
from .parse import parse
from .projection import project


class ImportedLayer(BaseModel):
    """Features pasted into the map, all in the layer's source spatial reference."""

    source: str
    source_wkid: int | None = None
    features: list[Feature] = Field(default_factory=list)

    def add(self, feature: Feature) -> None:
        """Add a feature, projecting its geometry into the layer's spatial reference."""
        geometry = feature.geometry
        if (
            geometry is not None
            and self.source_wkid is not None
            and geometry.wkid is not None
            and geometry.wkid != self.source_wkid
        ):
            feature = feature.model_copy(update={"geometry": project(geometry, self.source_wkid)})
        self.features.append(feature)

    def set_source_spatial_reference(self, wkid: int) -> None:
        """Relabel every geometry with ``wkid`` without moving any coordinates."""
        self.source_wkid = wkid
        for feature in self.features:
            if feature.geometry is not None:
                feature.geometry.wkid = wkid


async def parse_as_layer(source: str, default_wkid: int) -> ImportedLayer:
    """Parse pasted text into a layer.

    Features from formats without a spatial reference are assigned
    ``default_wkid``; otherwise the layer takes the spatial reference of the
    first feature's geometry.
    """
    result = await parse(source)

    if result.unknown_spatial_reference:
        source_wkid = default_wkid
        for feature in result.features:
            if feature.geometry is not None:
                feature.geometry.wkid = default_wkid
    else:
        first = result.features[0].geometry
        source_wkid = first.wkid if first is not None else None

    layer = ImportedLayer(source=source, source_wkid=source_wkid)
    for feature in result.features:
        layer.add(feature)
    logger.info(f"Imported layer with {len(layer.features)} features in WKID {source_wkid}")
    return layer
