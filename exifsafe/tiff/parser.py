"""TIFF header and directory-entry parsing over a BinaryCursor.

EXIF reuses the TIFF layout: an 8-byte header (byte order, magic 42,
first IFD offset) followed by chained IFDs of 12-byte entries. All
offsets inside the structure are relative to the header start.
"""

import logging
from typing import Optional

from exifsafe.tiff.cursor import BinaryCursor
from exifsafe.tiff.values import INLINE_THRESHOLD, type_width

logger = logging.getLogger(__name__)

TIFF_MAGIC = 42
ENTRY_SIZE = 12


class DirectoryEntry:
    """One 12-byte IFD record."""
    __slots__ = ('tag_id', 'type_code', 'count', 'value_or_offset',
                 'value_field_position')

    def __init__(self, tag_id: int, type_code: int, count: int,
                 value_or_offset: int, value_field_position: int):
        self.tag_id = tag_id
        self.type_code = type_code
        self.count = count
        self.value_or_offset = value_or_offset
        self.value_field_position = value_field_position

    @property
    def total_size(self) -> int:
        return type_width(self.type_code) * self.count

    @property
    def is_inline(self) -> bool:
        return self.total_size <= INLINE_THRESHOLD

    def __repr__(self):
        return (f'DirectoryEntry(tag=0x{self.tag_id:04X}, type={self.type_code}, '
                f'count={self.count}, value_or_offset={self.value_or_offset})')


class TIFFHeader:
    """Parsed TIFF header inside an EXIF block."""
    __slots__ = ('tiff_start', 'little_endian', 'first_ifd_offset')

    def __init__(self, tiff_start: int, little_endian: bool, first_ifd_offset: int):
        self.tiff_start = tiff_start
        self.little_endian = little_endian
        self.first_ifd_offset = first_ifd_offset

    def __repr__(self):
        order = 'II' if self.little_endian else 'MM'
        return (f'TIFFHeader(start={self.tiff_start}, {order}, '
                f'ifd0={self.first_ifd_offset})')


def read_header(cursor: BinaryCursor, tiff_start: int) -> Optional[TIFFHeader]:
    """Read and validate the TIFF header at ``tiff_start``.

    Returns None for a bad byte-order mark, a bad magic number or a
    truncated header. Sets the cursor's default byte order on success.
    """
    if not cursor.has(8, at=tiff_start):
        logger.warning('TIFF header at %d truncated', tiff_start)
        return None

    cursor.seek(tiff_start)
    bo = cursor.read_bytes(2)
    if bo == b'II':
        little_endian = True
    elif bo == b'MM':
        little_endian = False
    else:
        logger.warning('Invalid TIFF byte order %r at %d', bo, tiff_start)
        return None

    magic = cursor.read_uint16(little_endian)
    if magic != TIFF_MAGIC:
        logger.warning('Invalid TIFF magic %s at %d', magic, tiff_start)
        return None

    first_ifd_offset = cursor.read_uint32(little_endian)
    cursor.little_endian = little_endian
    return TIFFHeader(tiff_start, little_endian, first_ifd_offset)


def read_entry(cursor: BinaryCursor, position: int) -> Optional[DirectoryEntry]:
    """Read the 12-byte entry at an absolute position. None if truncated."""
    if not cursor.has(ENTRY_SIZE, at=position):
        return None
    cursor.seek(position)
    tag_id = cursor.read_uint16()
    type_code = cursor.read_uint16()
    count = cursor.read_uint32()
    value_or_offset = cursor.read_uint32()
    return DirectoryEntry(tag_id, type_code, count, value_or_offset, position + 8)
