"""Shared test fixtures -- synthetic TIFF/EXIF structures and JPEG wrappers."""

import io
import struct

import pytest


# Inline integer packing per TIFF type code
_INLINE_FORMATS = {1: 'B', 3: 'H', 4: 'I', 7: 'B', 9: 'i'}


def _value_field(type_id, value, endian):
    """Pack an inline int value into a 4-byte value field, left-aligned."""
    fmt = _INLINE_FORMATS.get(type_id, 'I')
    return struct.pack(endian + fmt, value).ljust(4, b'\x00')


def _ifd_bytes(entries, ifd_offset, endian, next_ifd=0):
    """Serialize one IFD placed at ifd_offset, with its out-of-line data.

    Args:
        entries: List of (tag_id, type_id, count, value_or_bytes) tuples.
            Ints are stored inline; bytes of 4 or fewer are stored inline,
            longer bytes go to a data area right after the IFD.
        ifd_offset: Offset of this IFD relative to the TIFF header.
        endian: '<' or '>'.
        next_ifd: Offset of the next IFD (0 = none).

    Returns:
        bytes: IFD count + entries + next pointer + data area.
    """
    n = len(entries)
    data_start = ifd_offset + 2 + 12 * n + 4
    ifd = struct.pack(endian + 'H', n)
    data = b''
    for tag_id, type_id, count, value in entries:
        ifd += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if isinstance(value, bytes):
            if len(value) <= 4:
                ifd += value.ljust(4, b'\x00')
            else:
                ifd += struct.pack(endian + 'I', data_start + len(data))
                data += value
        else:
            ifd += _value_field(type_id, value, endian)
    ifd += struct.pack(endian + 'I', next_ifd)
    return ifd + data


def _ifd_size(entries):
    ool = sum(len(v) for _, _, _, v in entries
              if isinstance(v, bytes) and len(v) > 4)
    return 2 + 12 * len(entries) + 4 + ool


def build_tiff(entries, endian='<', exif=None, gps=None, extra_data=None):
    """Build a TIFF structure (as found inside an EXIF block).

    Args:
        entries: IFD0 entries, (tag_id, type_id, count, value_or_bytes).
        endian: '<' for little-endian (II), '>' for big-endian (MM).
        exif: Optional EXIF sub-IFD entries; adds a 0x8769 pointer to IFD0.
        gps: Optional GPS sub-IFD entries; adds a 0x8825 pointer to IFD0.
        extra_data: Optional bytes appended at the end.

    Returns:
        bytes: TIFF header + IFD0 (+ sub-IFDs).
    """
    bo = b'II' if endian == '<' else b'MM'
    main = list(entries)
    subs = []
    if exif is not None:
        main.append((0x8769, 4, 1, 0))
        subs.append((0x8769, list(exif)))
    if gps is not None:
        main.append((0x8825, 4, 1, 0))
        subs.append((0x8825, list(gps)))

    # Lay out sub-IFDs after IFD0, then patch the pointer values
    offset = 8 + _ifd_size(main)
    pointers = {}
    for pointer_tag, sub_entries in subs:
        pointers[pointer_tag] = offset
        offset += _ifd_size(sub_entries)
    main = [(t, ty, c, pointers.get(t, v)) for t, ty, c, v in main]

    result = bo + struct.pack(endian + 'HI', 42, 8)
    result += _ifd_bytes(main, 8, endian)
    for pointer_tag, sub_entries in subs:
        result += _ifd_bytes(sub_entries, pointers[pointer_tag], endian)
    if extra_data:
        result += extra_data
    return result


def build_tiff_multi_ifd(ifd_entries_list, endian='<'):
    """Build a TIFF with IFDs chained through their next-IFD pointers.

    Args:
        ifd_entries_list: List of entry lists, one per IFD.
        endian: '<' or '>'.

    Returns:
        bytes: Complete TIFF structure.
    """
    bo = b'II' if endian == '<' else b'MM'
    starts = []
    offset = 8
    for entries in ifd_entries_list:
        starts.append(offset)
        offset += _ifd_size(entries)

    result = bo + struct.pack(endian + 'HI', 42, starts[0])
    for i, entries in enumerate(ifd_entries_list):
        next_ifd = starts[i + 1] if i + 1 < len(starts) else 0
        result += _ifd_bytes(entries, starts[i], endian, next_ifd)
    return result


def build_exif_jpeg(tiff_bytes, app0=True, trailer=b''):
    """Wrap a TIFF structure in SOI + [APP0] + APP1 Exif + SOS ... EOI.

    Args:
        tiff_bytes: TIFF structure from build_tiff() and friends.
        app0: Prepend a JFIF APP0 segment before the EXIF block.
        trailer: Bytes placed between the SOS header and EOI.
    """
    out = b'\xff\xd8'
    if app0:
        jfif = b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        out += b'\xff\xe0' + struct.pack('>H', len(jfif) + 2) + jfif
    payload = b'Exif\x00\x00' + tiff_bytes
    out += b'\xff\xe1' + struct.pack('>H', len(payload) + 2) + payload
    sos = b'\x01\x01\x00\x00\x3f\x00'
    out += b'\xff\xda' + struct.pack('>H', len(sos) + 2) + sos
    return out + trailer + b'\xff\xd9'


def ascii_value(text):
    """NUL-terminated ASCII bytes for a type-2 entry."""
    return text.encode('ascii') + b'\x00'


def ascii_entry(tag_id, text):
    """(tag_id, ASCII, count, bytes) entry for a text value."""
    raw = ascii_value(text)
    return (tag_id, 2, len(raw), raw)


def rational_triple(pairs, endian='<'):
    """Pack ((num, den), ...) as consecutive RATIONALs."""
    return b''.join(struct.pack(endian + 'II', n, d) for n, d in pairs)


def gps_entries(lat=((40, 1), (26, 1), (46, 1)), lat_ref='N',
                lon=((79, 1), (58, 1), (56, 1)), lon_ref='W',
                altitude=None, altitude_ref=0, endian='<'):
    """GPS sub-IFD entries for a position given as DMS rationals."""
    entries = [
        (1, 2, 2, lat_ref.encode('ascii') + b'\x00'),
        (2, 5, 3, rational_triple(lat, endian)),
        (3, 2, 2, lon_ref.encode('ascii') + b'\x00'),
        (4, 5, 3, rational_triple(lon, endian)),
    ]
    if altitude is not None:
        entries.append((5, 1, 1, altitude_ref))
        entries.append((6, 5, 1, rational_triple([altitude], endian)))
    return entries


def camera_tiff(endian='<', with_gps=True):
    """A realistic camera EXIF block: IFD0, EXIF sub-IFD, optional GPS."""
    main = [
        ascii_entry(0x010F, 'Canon'),
        ascii_entry(0x0110, 'Canon EOS R5'),
        (0x0112, 3, 1, 1),
        ascii_entry(0x0132, '2024:06:15 10:30:00'),
        ascii_entry(0x013B, 'Jane Doe'),
    ]
    exif = [
        (0x829A, 5, 1, rational_triple([(1, 250)], endian)),
        (0x8827, 3, 1, 400),
        ascii_entry(0x9003, '2024:06:15 10:30:00'),
        ascii_entry(0xA431, '12345678'),
        ascii_entry(0xA434, 'RF24-105mm F4'),
    ]
    return build_tiff(main, endian=endian, exif=exif,
                      gps=gps_entries(endian=endian) if with_gps else None)


def pillow_jpeg(width=64, height=48, exif_tiff=None):
    """Encode a real JPEG with Pillow, optionally carrying an EXIF block."""
    from PIL import Image

    img = Image.new('RGB', (width, height), (120, 80, 40))
    buf = io.BytesIO()
    if exif_tiff is not None:
        img.save(buf, format='JPEG', exif=b'Exif\x00\x00' + exif_tiff)
    else:
        img.save(buf, format='JPEG')
    return buf.getvalue()


@pytest.fixture
def camera_jpeg():
    """Synthetic JPEG bytes with camera EXIF and a GPS position."""
    return build_exif_jpeg(camera_tiff())


@pytest.fixture
def tmp_camera_jpeg(tmp_path):
    """Real Pillow JPEG with camera EXIF on disk."""
    filepath = tmp_path / 'holiday.jpg'
    filepath.write_bytes(pillow_jpeg(exif_tiff=camera_tiff()))
    return filepath


@pytest.fixture
def tmp_plain_jpeg(tmp_path):
    """Real Pillow JPEG without EXIF on disk."""
    filepath = tmp_path / 'plain.jpg'
    filepath.write_bytes(pillow_jpeg())
    return filepath


@pytest.fixture
def tmp_image_dir(tmp_path):
    """Directory with two EXIF JPEGs, one plain JPEG and a non-image file."""
    d = tmp_path / 'photos'
    sub = d / 'trip'
    sub.mkdir(parents=True)
    (d / 'a.jpg').write_bytes(pillow_jpeg(exif_tiff=camera_tiff()))
    (sub / 'b.jpeg').write_bytes(pillow_jpeg(exif_tiff=camera_tiff(with_gps=False)))
    (d / 'c.jpg').write_bytes(pillow_jpeg())
    (d / 'notes.txt').write_text('not an image')
    return d
