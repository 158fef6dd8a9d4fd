"""ArcGIS Pro clipboard reader.

Features copied in ArcGIS Pro are placed on the clipboard as XML::

    <ArrayOfPropertySet>
      <PropertySet>
        <PropertyArray>
          <PropertySetProperty>
            <Key>Shape</Key>
            <Value xsi:type="typens:PolygonB">
              <SpatialReference><WKID>3067</WKID></SpatialReference>
              <Bytes>base64 shape buffer</Bytes>
            </Value>
          </PropertySetProperty>
          <PropertySetProperty>
            <Key>NAME</Key>
            <Value xsi:type="xs:string">Helsinki</Value>
          </PropertySetProperty>
        </PropertyArray>
      </PropertySet>
    </ArrayOfPropertySet>

Each ``PropertyArray`` is one feature. Shape values always carry a WKID.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from .errors import MalformedInput
from .esri_shape import decode_base64
from .models import Feature, Geometry

XSI_NS = "{http://www.w3.org/2001/XMLSchema-instance}"

SHAPE_VALUE_TYPES = ("PointB", "MultipointB", "PolylineB", "PolygonB")


def parse_document(text: str) -> ET.Element:
    """Parse XML text, raising MalformedInput if it is not well-formed."""
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedInput(f"Invalid XML: {e}") from e


def read_clipboard_features(root: ET.Element) -> list[Feature]:
    """Read one feature per ``ArrayOfPropertySet > PropertySet > PropertyArray``.

    Returns an empty list when the document is not an ArcGIS Pro clipboard.
    Errors decoding an embedded shape propagate to the caller.
    """
    if _local_name(root.tag) != "ArrayOfPropertySet":
        return []

    features: list[Feature] = []
    for property_set in _children(root, "PropertySet"):
        for property_array in _children(property_set, "PropertyArray"):
            features.append(_read_property_array(property_array))
    return features


def _read_property_array(property_array: ET.Element) -> Feature:
    attributes: dict[str, str] = {}
    geometry: Geometry | None = None

    for prop in _children(property_array, "PropertySetProperty"):
        key = _child(prop, "Key")
        value = _child(prop, "Value")
        if value is None:
            raise MalformedInput("PropertySetProperty without a Value")

        value_type = value.get(f"{XSI_NS}type", "")
        if value_type.rpartition(":")[2] in SHAPE_VALUE_TYPES:
            geometry = _read_shape_value(value)
        else:
            if key is None:
                raise MalformedInput("PropertySetProperty without a Key")
            attributes[_text(key)] = _text(value)

    return Feature(attributes=attributes, geometry=geometry)


def _read_shape_value(value: ET.Element) -> Geometry:
    spatial_reference = _child(value, "SpatialReference")
    wkid_elem = _child(spatial_reference, "WKID") if spatial_reference is not None else None
    bytes_elem = _child(value, "Bytes")
    if wkid_elem is None or bytes_elem is None:
        raise MalformedInput("Shape value requires SpatialReference/WKID and Bytes")

    try:
        wkid = int(_text(wkid_elem).strip())
    except ValueError as e:
        raise MalformedInput(f"Invalid WKID {_text(wkid_elem)!r}") from e
    return decode_base64(_text(bytes_elem), wkid)


def _local_name(tag: str) -> str:
    return tag.rpartition("}")[2]


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in elem if _local_name(child.tag) == name]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if _local_name(child.tag) == name:
            return child
    return None


def _text(elem: ET.Element) -> str:
    return "".join(elem.itertext())
