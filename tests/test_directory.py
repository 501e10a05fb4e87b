"""Tests for exifsafe/tiff/directory.py -- IFD traversal, namespaces, limits."""

import struct

import pytest

from exifsafe.tiff.cursor import BinaryCursor
from exifsafe.tiff.directory import (
    MAX_IFD_DEPTH,
    MAX_IFD_ENTRIES,
    DirectoryDecoder,
    decode_directories,
)
from exifsafe.tiff.tags import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    Namespace,
    lookup_any,
    tag_name,
)
from exifsafe.tiff.values import Scalar, Sequence, Text
from tests.conftest import (
    ascii_entry,
    build_tiff,
    build_tiff_multi_ifd,
    camera_tiff,
    gps_entries,
)


def _decode(data, endian='<'):
    return decode_directories(BinaryCursor(data, little_endian=(endian == '<')), 0, 8)


class TestTagTables:
    """Numeric IDs resolve only within their own namespace."""

    def test_same_id_different_namespaces(self):
        assert tag_name(0x000B, Namespace.MAIN) == 'ProcessingSoftware'
        assert tag_name(0x000B, Namespace.GPS) == 'GPSDOP'
        assert tag_name(0x000B, Namespace.EXIF) is None

    def test_lookup_any_prefers_main_then_exif(self):
        assert lookup_any(0x010F) == 'Make'
        assert lookup_any(0x9003) == 'DateTimeOriginal'

    def test_lookup_any_skips_gps_unless_asked(self):
        assert lookup_any(2) is None
        assert lookup_any(2, Namespace.GPS) == 'GPSLatitude'


class TestNamespaces:

    def test_ifd0_tags(self):
        tags = _decode(build_tiff([ascii_entry(0x010F, 'Canon'), (0x0112, 3, 1, 1)]))
        assert tags['Make'] == Text('Canon')
        assert tags['Orientation'] == Scalar(1)

    def test_exif_sub_ifd_followed(self):
        tags = _decode(camera_tiff(with_gps=False))
        assert tags['DateTimeOriginal'] == Text('2024:06:15 10:30:00')
        assert tags['ISO'] == Scalar(400)
        assert tags['LensModel'] == Text('RF24-105mm F4')
        assert 'ExifOffset' in tags

    def test_gps_sub_ifd_followed(self):
        tags = _decode(build_tiff([], gps=gps_entries()))
        assert tags['GPSLatitudeRef'] == Text('N')
        assert tags['GPSLatitude'] == Sequence((40.0, 26.0, 46.0))
        assert tags['GPSLongitudeRef'] == Text('W')

    def test_gps_id_not_confused_with_main(self):
        """0x000B inside the GPS IFD is GPSDOP, never ProcessingSoftware."""
        dop = struct.pack('<II', 5, 2)
        tags = _decode(build_tiff([], gps=[(0x000B, 5, 1, dop)]))
        assert tags['GPSDOP'] == Scalar(2.5)
        assert 'ProcessingSoftware' not in tags

    def test_main_id_not_confused_with_gps(self):
        tags = _decode(build_tiff([ascii_entry(0x000B, 'Lightroom')]))
        assert tags['ProcessingSoftware'] == Text('Lightroom')
        assert 'GPSDOP' not in tags

    def test_exif_ids_not_resolved_in_main(self):
        """An EXIF-only ID sitting in IFD0 is unknown there and skipped."""
        tags = _decode(build_tiff([(0x8827, 3, 1, 200)]))
        assert 'ISO' not in tags

    def test_unknown_tags_skipped(self):
        tags = _decode(build_tiff([(0x1234, 3, 1, 5), (0x0112, 3, 1, 1)]))
        assert list(tags) == ['Orientation']

    def test_big_endian_camera(self):
        tags = _decode(camera_tiff(endian='>'), endian='>')
        assert tags['Make'] == Text('Canon')
        assert tags['ExposureTime'] == Scalar(0.004)
        assert tags['GPSLongitude'] == Sequence((79.0, 58.0, 56.0))

    def test_pointer_tag_in_exif_ifd_not_followed(self):
        """Sub-IFD pointers are honoured only in the main namespace."""
        # IFD0 (8..26) -> EXIF IFD (26..44) -> would-be GPS IFD at 44
        inner = (struct.pack('<H', 1) + struct.pack('<HHI', 1, 2, 2)
                 + b'N\x00\x00\x00' + struct.pack('<I', 0))
        exif = [(GPS_IFD_POINTER_TAG, 4, 1, 44)]
        data = build_tiff([], exif=exif, extra_data=inner)
        tags = _decode(data)
        assert 'ExifOffset' in tags
        assert 'GPSLatitudeRef' not in tags

    def test_zero_pointer_ignored(self):
        tags = _decode(build_tiff([(EXIF_IFD_POINTER_TAG, 4, 1, 0)]))
        assert tags['ExifOffset'] == Scalar(0)
        assert len(tags) == 1


class TestChains:

    def test_next_ifd_followed(self):
        data = build_tiff_multi_ifd([
            [ascii_entry(0x010F, 'Canon')],
            [(0x0201, 4, 1, 1234), (0x0202, 4, 1, 999)],
        ])
        tags = _decode(data)
        assert tags['Make'] == Text('Canon')
        assert tags['ThumbnailOffset'] == Scalar(1234)
        assert tags['ThumbnailLength'] == Scalar(999)

    def test_ifd0_wins_over_ifd1(self):
        data = build_tiff_multi_ifd([
            [(0x0100, 4, 1, 6000)],
            [(0x0100, 4, 1, 160)],
        ])
        assert _decode(data)['ImageWidth'] == Scalar(6000)

    def test_self_referencing_ifd_terminates(self):
        # IFD0 at offset 8 with one entry whose next pointer is itself
        data = (b'II*\x00' + struct.pack('<I', 8) + struct.pack('<H', 1)
                + struct.pack('<HHII', 0x0112, 3, 1, 1) + struct.pack('<I', 8))
        assert _decode(data) == {'Orientation': Scalar(1)}

    def test_sub_ifd_pointing_back_to_ifd0_terminates(self):
        data = (b'II*\x00' + struct.pack('<I', 8) + struct.pack('<H', 1)
                + struct.pack('<HHII', EXIF_IFD_POINTER_TAG, 4, 1, 8)
                + struct.pack('<I', 0))
        assert _decode(data) == {'ExifOffset': Scalar(8)}

    def test_two_ifd_cycle_terminates(self):
        data = build_tiff_multi_ifd([
            [(0x0112, 3, 1, 1)],
            [(0x0100, 4, 1, 10)],
        ])
        # Point IFD1's next pointer back at IFD0
        ifd1_next = len(data) - 4
        data = data[:ifd1_next] + struct.pack('<I', 8)
        tags = _decode(data)
        assert tags == {'Orientation': Scalar(1), 'ImageWidth': Scalar(10)}

    def test_depth_limit(self):
        names = [0x010D, 0x010E, 0x010F, 0x0110, 0x0131, 0x013B, 0x013C,
                 0x8298, 0x0112, 0x0100]
        ifds = [[(tag, 4, 1, i + 1)] for i, tag in enumerate(names)]
        tags = _decode(build_tiff_multi_ifd(ifds))
        assert MAX_IFD_DEPTH == 8
        assert len(tags) == MAX_IFD_DEPTH
        assert 'Orientation' not in tags
        assert 'ImageWidth' not in tags


class TestLimits:

    def test_entry_count_cap(self):
        entries = [(0x0112, 3, 1, 1)] * (MAX_IFD_ENTRIES + 1)
        assert _decode(build_tiff(entries)) == {}

    def test_entry_count_at_cap_accepted(self):
        entries = [(0x0112, 3, 1, 1)] * MAX_IFD_ENTRIES
        assert _decode(build_tiff(entries)) == {'Orientation': Scalar(1)}

    def test_ifd_offset_past_end(self):
        data = b'II*\x00' + struct.pack('<I', 5000)
        assert _decode(data) == {}

    def test_truncated_entry_list_keeps_earlier_entries(self):
        data = build_tiff([(0x0112, 3, 1, 1), (0x0100, 4, 1, 640)])
        # Cut inside the second entry
        cut = 8 + 2 + 12 + 6
        tags = _decode(data[:cut])
        assert tags == {'Orientation': Scalar(1)}

    def test_decoder_visits_each_offset_once(self):
        data = build_tiff([(0x0112, 3, 1, 1)])
        decoder = DirectoryDecoder(BinaryCursor(data, little_endian=True), 0)
        decoder.decode(8)
        decoder.decode_ifd(8, Namespace.MAIN)
        assert decoder.tags == {'Orientation': Scalar(1)}


@pytest.mark.parametrize('endian', ['<', '>'])
def test_endianness_agnostic(endian):
    tags = _decode(camera_tiff(endian=endian), endian=endian)
    assert tags['Artist'] == Text('Jane Doe')
    assert tags['Orientation'] == Scalar(1)
    assert tags['BodySerialNumber'] == Text('12345678')
