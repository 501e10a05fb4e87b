"""Locate the EXIF block inside a JPEG stream and sniff container formats."""

import logging
from typing import NamedTuple, Optional

from exifsafe.tiff.cursor import BinaryCursor
from exifsafe.tiff.parser import read_header

logger = logging.getLogger(__name__)

SOI = 0xFFD8
EOI = 0xFFD9
SOS = 0xFFDA
APP1 = 0xFFE1
EXIF_SIGNATURE = b'Exif\x00\x00'

# Markers without a length field: TEM and RST0-RST7
_STANDALONE_MARKERS = {0xFF01} | set(range(0xFFD0, 0xFFD8))

# (magic prefix, offset, format name)
_FORMAT_SIGNATURES = [
    (b'\xff\xd8\xff', 0, 'jpeg'),
    (b'\x89PNG\r\n\x1a\n', 0, 'png'),
    (b'GIF87a', 0, 'gif'),
    (b'GIF89a', 0, 'gif'),
    (b'II*\x00', 0, 'tiff'),
    (b'MM\x00*', 0, 'tiff'),
    (b'BM', 0, 'bmp'),
]

_FTYP_BRANDS = {
    b'heic': 'heic', b'heix': 'heic', b'mif1': 'heif', b'msf1': 'heif',
    b'avif': 'avif', b'avis': 'avif',
}


class ExifLocation(NamedTuple):
    """Where the TIFF structure inside an EXIF block starts."""
    tiff_start: int
    little_endian: bool
    first_ifd_offset: int


def sniff_format(buffer: bytes) -> Optional[str]:
    """Identify the container from its magic bytes. None if unrecognised."""
    for magic, offset, name in _FORMAT_SIGNATURES:
        if buffer[offset:offset + len(magic)] == magic:
            return name
    if buffer[:4] == b'RIFF' and buffer[8:12] == b'WEBP':
        return 'webp'
    if buffer[4:8] == b'ftyp':
        return _FTYP_BRANDS.get(buffer[8:12])
    return None


def find_app1_exif(cursor: BinaryCursor) -> Optional[int]:
    """Walk JPEG markers from offset 2. Returns the TIFF start or None."""
    pos = 2
    while cursor.has(2, at=pos):
        marker = cursor.seek(pos).read_uint16(False)
        if marker & 0xFF00 != 0xFF00:
            logger.debug('Expected JPEG marker at %d, found 0x%04X', pos, marker)
            return None
        if marker == 0xFFFF:
            # fill byte
            pos += 1
            continue
        if marker in (SOS, EOI):
            return None
        if marker in _STANDALONE_MARKERS:
            pos += 2
            continue

        length = cursor.read_uint16(False)
        if length is None or length < 2:
            logger.debug('JPEG segment 0x%04X at %d has bad length %s',
                         marker, pos, length)
            return None

        if marker == APP1 and cursor.read_bytes(len(EXIF_SIGNATURE)) == EXIF_SIGNATURE:
            return pos + 4 + len(EXIF_SIGNATURE)

        pos += 2 + length
    return None


def find_exif(buffer: bytes, mime_type_hint: Optional[str] = None) -> Optional[ExifLocation]:
    """Find and validate the TIFF header of the EXIF block in a JPEG.

    Non-JPEG buffers, JPEGs without an Exif APP1 segment and malformed
    TIFF headers all return None. Never raises.
    """
    cursor = BinaryCursor(buffer)
    if cursor.read_uint16(False) != SOI:
        logger.debug('Not a JPEG (hint %r), no EXIF extraction attempted',
                     mime_type_hint)
        return None

    tiff_start = find_app1_exif(cursor)
    if tiff_start is None:
        logger.debug('No EXIF APP1 segment found')
        return None

    header = read_header(cursor, tiff_start)
    if header is None:
        return None
    return ExifLocation(header.tiff_start, header.little_endian,
                        header.first_ifd_offset)
