"""Tests for the binary shape decoder."""

import base64
import math
import struct

import pytest
import shapefile

from conftest import pack_shape
from pastegis import MalformedInput, UnsupportedGeometry, decode, decode_base64
from pastegis.esri_shape import (
    HAS_CURVES_FLAG,
    HAS_ID_FLAG,
    HAS_M_FLAG,
    HAS_Z_FLAG,
    ShapeModifierFlags,
    ShapeType,
    split_parts,
)

EXPECTED_TYPES = {
    1: ("point", False, False),
    9: ("point", True, False),
    21: ("point", False, True),
    11: ("point", True, True),
    8: ("multipoint", False, False),
    20: ("multipoint", True, False),
    28: ("multipoint", False, True),
    18: ("multipoint", True, True),
    3: ("polyline", False, False),
    10: ("polyline", True, False),
    23: ("polyline", False, True),
    13: ("polyline", True, True),
    5: ("polygon", False, False),
    19: ("polygon", True, False),
    25: ("polygon", False, True),
    15: ("polygon", True, True),
    52: ("point", False, False),
    53: ("multipoint", False, False),
    50: ("polyline", False, False),
    51: ("polygon", False, False),
}


def _coordinates(count, has_z, has_m, offset=0.0):
    coords = []
    for i in range(count):
        c = [offset + i + 0.25, offset + i + 0.5]
        if has_z:
            c.append(offset + i + 100.125)
        if has_m:
            c.append(offset + i + 200.75)
        coords.append(c)
    return coords


def _parts_for(category, has_z, has_m):
    if category == "point":
        return [_coordinates(1, has_z, has_m)]
    if category == "multipoint":
        return [_coordinates(3, has_z, has_m)]
    return [_coordinates(3, has_z, has_m), _coordinates(2, has_z, has_m, offset=10.0)]


class TestShapeTypeTable:
    def test_table_is_closed(self):
        assert {int(t) for t in ShapeType} == set(EXPECTED_TYPES)

    @pytest.mark.parametrize("code", sorted(EXPECTED_TYPES))
    def test_category_and_dimensions(self, code):
        category, has_z, has_m = EXPECTED_TYPES[code]
        shape_type = ShapeType(code)
        assert shape_type.category == category
        assert shape_type.has_z is has_z
        assert shape_type.has_m is has_m

    @pytest.mark.parametrize("code", sorted(EXPECTED_TYPES))
    def test_decodes_coordinates(self, code):
        category, has_z, has_m = EXPECTED_TYPES[code]
        parts = _parts_for(category, has_z, has_m)
        geometry = decode(pack_shape(code, category, parts, has_z, has_m), 3067)

        assert geometry.type == category
        assert geometry.has_z is has_z
        assert geometry.has_m is has_m
        assert geometry.wkid == 3067

        if category == "point":
            expected = parts[0][0]
            actual = [geometry.x, geometry.y]
            if has_z:
                actual.append(geometry.z)
            if has_m:
                actual.append(geometry.m)
            assert actual == expected
        elif category == "multipoint":
            assert geometry.points == parts[0]
        elif category == "polyline":
            assert geometry.paths == parts
        else:
            assert geometry.rings == parts


class TestModifierFlags:
    def test_flags_from_type_word(self):
        flags = ShapeModifierFlags.from_type_word(1 | HAS_Z_FLAG | HAS_ID_FLAG)
        assert flags == ShapeModifierFlags(has_z=True, has_m=False, has_id=True, has_curves=False)

    def test_intrinsic_dimensions_without_modifier(self):
        flags = ShapeModifierFlags.from_type_word(ShapeType.POLYGON_ZM)
        assert flags.has_z and flags.has_m
        assert not flags.has_id and not flags.has_curves

    def test_z_modifier_on_plain_point(self):
        buf = struct.pack("<I3d", 1 | HAS_Z_FLAG, 1.0, 2.0, 3.0)
        point = decode(buf)
        assert point.has_z is True
        assert point.z == 3.0
        assert point.m is None

    def test_m_modifier_on_general_polyline(self):
        parts = [[[0.0, 0.0, 5.0], [1.0, 1.0, 6.0]]]
        buf = pack_shape(50 | HAS_M_FLAG, "polyline", parts, has_m=True)
        polyline = decode(buf)
        assert polyline.has_m is True
        assert polyline.has_z is False
        assert polyline.paths == parts

    def test_zm_modifiers_on_general_multipoint(self):
        points = [[1.0, 2.0, 3.0, 4.0]]
        buf = pack_shape(53 | HAS_Z_FLAG | HAS_M_FLAG, "multipoint", [points], True, True)
        multipoint = decode(buf)
        assert multipoint.points == points

    def test_point_id_payload_is_not_consumed(self):
        # the trailing ID is ignored and the coordinates before it are intact
        buf = struct.pack("<I2di", 1 | HAS_ID_FLAG, 7.0, 8.0, 42)
        point = decode(buf)
        assert (point.x, point.y) == (7.0, 8.0)


class TestUnsupported:
    @pytest.mark.parametrize("code", sorted(EXPECTED_TYPES))
    def test_curves_rejected_for_every_type(self, code):
        category, has_z, has_m = EXPECTED_TYPES[code]
        buf = pack_shape(code | HAS_CURVES_FLAG, category, _parts_for(category, has_z, has_m), has_z, has_m)
        with pytest.raises(UnsupportedGeometry):
            decode(buf)

    def test_curves_rejected_before_reading_geometry(self):
        with pytest.raises(UnsupportedGeometry):
            decode(struct.pack("<I", 3 | HAS_CURVES_FLAG))

    @pytest.mark.parametrize("code", [0, 31, 32, 54])
    def test_unknown_type_code(self, code):
        with pytest.raises(UnsupportedGeometry):
            decode(struct.pack("<I2d", code, 1.0, 2.0))


class TestNoData:
    def test_z_sentinel_becomes_nan(self):
        point = decode(struct.pack("<I3d", 9, 1.0, 2.0, -2.0e38))
        assert math.isnan(point.z)

    def test_m_sentinel_becomes_nan_in_point_array(self):
        parts = [[[0.0, 0.0, 1.0], [1.0, 1.0, -1.0e39]]]
        multipoint = decode(pack_shape(28, "multipoint", parts, has_m=True))
        assert multipoint.points[0][2] == 1.0
        assert math.isnan(multipoint.points[1][2])

    def test_large_negative_real_value_kept(self):
        point = decode(struct.pack("<I3d", 9, 1.0, 2.0, -1.0e30))
        assert point.z == -1.0e30


class TestParts:
    def test_split_three_and_two(self):
        points = [[float(i), float(i)] for i in range(5)]
        buf = struct.pack("<I4d2i2i", 3, 0, 0, 0, 0, 2, 5, 0, 3)
        buf += struct.pack("<10d", *(v for p in points for v in p))
        polyline = decode(buf)
        assert [len(path) for path in polyline.paths] == [3, 2]
        assert polyline.paths[1] == [[3.0, 3.0], [4.0, 4.0]]

    def test_polygon_rings(self):
        ring = [[0.0, 0.0], [0.0, 1.0], [1.0, 1.0], [0.0, 0.0]]
        polygon = decode(pack_shape(5, "polygon", [ring]), 4326)
        assert polygon.type == "polygon"
        assert polygon.rings == [ring]

    def test_z_values_follow_point_order_across_parts(self):
        parts = [
            [[0.0, 0.0, 1.0], [1.0, 0.0, 2.0]],
            [[5.0, 5.0, 3.0], [6.0, 5.0, 4.0], [7.0, 5.0, 5.0]],
        ]
        polyline = decode(pack_shape(10, "polyline", parts, has_z=True))
        assert [[p[2] for p in path] for path in polyline.paths] == [[1.0, 2.0], [3.0, 4.0, 5.0]]

    def test_split_parts_last_part_runs_to_end(self):
        points = [[float(i), 0.0] for i in range(4)]
        assert split_parts(points, [0, 1]) == [points[:1], points[1:]]

    def test_zero_parts(self):
        assert split_parts([[0.0, 0.0]], []) == []


class TestMalformed:
    def test_truncated_point(self):
        with pytest.raises(MalformedInput):
            decode(struct.pack("<Id", 1, 1.0))

    def test_truncated_point_array(self):
        buf = struct.pack("<I4di", 8, 0, 0, 0, 0, 3) + struct.pack("<2d", 1.0, 2.0)
        with pytest.raises(MalformedInput):
            decode(buf)

    def test_empty_buffer(self):
        with pytest.raises(MalformedInput):
            decode(b"")

    def test_negative_point_count(self):
        with pytest.raises(MalformedInput):
            decode(struct.pack("<I4di", 8, 0, 0, 0, 0, -1))

    def test_invalid_base64(self):
        with pytest.raises(MalformedInput):
            decode_base64("not base64!!")

    def test_base64_with_line_breaks(self, point_buffer):
        text = base64.b64encode(point_buffer).decode("ascii")
        wrapped = "\n".join(text[i : i + 16] for i in range(0, len(text), 16))
        point = decode_base64(wrapped, 3067)
        assert (point.x, point.y) == (385000.0, 6672000.0)


class TestShapefileRecords:
    """Shape records written by pyshp share the binary shape layout."""

    @staticmethod
    def _record_content(tmp_path, shape_type, write):
        with shapefile.Writer(str(tmp_path / "shape"), shapeType=shape_type) as w:
            w.field("NAME", "C")
            write(w)
            w.record("a")
        # skip the 100 byte file header and the 8 byte record header
        return (tmp_path / "shape.shp").read_bytes()[108:]

    def test_pointz_record(self, tmp_path):
        content = self._record_content(
            tmp_path, shapefile.POINTZ, lambda w: w.pointz(1.0, 2.0, 3.0, 4.0)
        )
        point = decode(content)
        assert (point.x, point.y, point.z, point.m) == (1.0, 2.0, 3.0, 4.0)
        assert point.has_z and point.has_m

    def test_polylinez_record(self, tmp_path):
        lines = [
            [[0.0, 0.0, 1.0, 10.0], [1.0, 1.0, 2.0, 20.0]],
            [[5.0, 5.0, 3.0, 30.0], [6.0, 6.0, 4.0, 40.0], [7.0, 7.0, 5.0, 50.0]],
        ]
        content = self._record_content(tmp_path, shapefile.POLYLINEZ, lambda w: w.linez(lines))
        polyline = decode(content)
        assert polyline.paths == lines

    def test_polylinez_record_without_measures(self, tmp_path):
        lines = [[[0.0, 0.0, 1.0], [1.0, 1.0, 2.0]]]
        content = self._record_content(tmp_path, shapefile.POLYLINEZ, lambda w: w.linez(lines))
        polyline = decode(content)
        assert [p[:3] for p in polyline.paths[0]] == lines[0]
        assert all(math.isnan(p[3]) for p in polyline.paths[0])

    def test_multipointm_record(self, tmp_path):
        points = [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
        content = self._record_content(
            tmp_path, shapefile.MULTIPOINTM, lambda w: w.multipointm(points)
        )
        multipoint = decode(content)
        assert multipoint.points == points
        assert multipoint.has_m and not multipoint.has_z

    def test_polygon_record(self, tmp_path):
        ring = [[0.0, 0.0], [0.0, 10.0], [10.0, 10.0], [10.0, 0.0], [0.0, 0.0]]
        content = self._record_content(tmp_path, shapefile.POLYGON, lambda w: w.poly([ring]))
        polygon = decode(content)
        assert len(polygon.rings) == 1
        assert sorted(map(tuple, polygon.rings[0])) == sorted(map(tuple, ring))
