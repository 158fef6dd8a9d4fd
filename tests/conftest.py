import base64
import struct

import pytest

CLIPBOARD_HEADER = (
    '<ArrayOfPropertySet xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xs="http://www.w3.org/2001/XMLSchema" '
    'xmlns:typens="http://www.esri.com/schemas/ArcGIS/3.3.0" '
    'xsi:type="typens:ArrayOfPropertySet">'
)


def pack_shape(type_word, category, parts, has_z=False, has_m=False):
    """Build a binary shape buffer from parts of ``[x, y, (z), (m)]`` coordinates."""
    points = [p for part in parts for p in part]
    buf = struct.pack("<I", type_word)

    if category == "point":
        return buf + struct.pack(f"<{len(points[0])}d", *points[0])

    buf += struct.pack("<4d", 0.0, 0.0, 0.0, 0.0)
    if category == "multipoint":
        buf += struct.pack("<i", len(points))
    else:
        starts, index = [], 0
        for part in parts:
            starts.append(index)
            index += len(part)
        buf += struct.pack("<2i", len(parts), len(points))
        buf += struct.pack(f"<{len(starts)}i", *starts)

    for p in points:
        buf += struct.pack("<2d", p[0], p[1])
    if has_z:
        buf += struct.pack("<2d", 0.0, 0.0)
        buf += struct.pack(f"<{len(points)}d", *(p[2] for p in points))
    if has_m:
        m_index = 3 if has_z else 2
        buf += struct.pack("<2d", 0.0, 0.0)
        buf += struct.pack(f"<{len(points)}d", *(p[m_index] for p in points))
    return buf


def shape_property(key, value_type, wkid, buffer):
    return (
        f'<PropertySetProperty xsi:type="typens:PropertySetProperty"><Key>{key}</Key>'
        f'<Value xsi:type="typens:{value_type}">'
        f'<SpatialReference xsi:type="typens:ProjectedCoordinateSystem"><WKID>{wkid}</WKID></SpatialReference>'
        f"<Bytes>{base64.b64encode(buffer).decode('ascii')}</Bytes>"
        "</Value></PropertySetProperty>"
    )


def string_property(key, value):
    return (
        f'<PropertySetProperty xsi:type="typens:PropertySetProperty"><Key>{key}</Key>'
        f'<Value xsi:type="xs:string">{value}</Value></PropertySetProperty>'
    )


def clipboard_document(*property_arrays):
    body = "".join(
        '<PropertySet xsi:type="typens:PropertySet">'
        '<PropertyArray xsi:type="typens:ArrayOfPropertySetProperty">'
        + "".join(properties)
        + "</PropertyArray></PropertySet>"
        for properties in property_arrays
    )
    return CLIPBOARD_HEADER + body + "</ArrayOfPropertySet>"


@pytest.fixture
def point_buffer():
    return pack_shape(1, "point", [[[385000.0, 6672000.0]]])


@pytest.fixture
def helsinki_clipboard(point_buffer):
    return clipboard_document(
        [
            shape_property("Shape", "PointB", 3067, point_buffer),
            string_property("NAME", "Helsinki"),
        ]
    )
