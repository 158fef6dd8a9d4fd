"""FastAPI server for pasting and copying geographic data."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel
from pyproj.exceptions import CRSError, ProjError

from .config import settings
from .errors import PasteGISError
from .layer import ImportedLayer, parse_as_layer
from .models import Feature
from .stringify import StringifyFormat, StringifyGeometryType, stringify

app = FastAPI(title="PasteGIS", version="0.1.0")

COMMON_SPATIAL_REFERENCES = [
    {"title": "Web Mercator", "wkid": 3857},
    {"title": "WGS 84", "wkid": 4326},
]

FINLAND_SPATIAL_REFERENCES = [
    {"title": "ETRS-TM35FIN", "wkid": 3067},
    *({"title": f"ETRS-GK{zone}", "wkid": 3873 + zone - 19} for zone in range(19, 32)),
]


class PasteRequest(BaseModel):
    source: str
    default_wkid: int | None = None


class StringifyRequest(BaseModel):
    feature: Feature
    geometry_type: StringifyGeometryType = "original"
    wkid: int
    format: StringifyFormat = "json-feature"


class StringifyResponse(BaseModel):
    text: str | None


@app.post("/paste", response_model=ImportedLayer)
async def paste(request: PasteRequest):
    """Parse clipboard contents into a layer.

    Accepts GeoJSON, Esri JSON, ArcGIS Pro clipboard XML, or ``x,y`` /
    ``xmin,ymin,xmax,ymax`` coordinates.
    """
    default_wkid = request.default_wkid or settings.default_wkid
    try:
        return await parse_as_layer(request.source, default_wkid)
    except PasteGISError as e:
        logger.error(f"Paste failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except (CRSError, ProjError) as e:
        logger.error(f"Paste failed to project features: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/stringify", response_model=StringifyResponse)
async def copy_feature(request: StringifyRequest):
    """Serialize a feature in the requested spatial reference and format."""
    try:
        text = stringify(request.feature, request.geometry_type, request.wkid, request.format)
    except (CRSError, ProjError) as e:
        logger.error(f"Copy failed for WKID {request.wkid}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return StringifyResponse(text=text)


@app.get("/spatial-references")
async def spatial_references():
    """Spatial references offered when copying features."""
    return {"Common": COMMON_SPATIAL_REFERENCES, "Finland": FINLAND_SPATIAL_REFERENCES}
