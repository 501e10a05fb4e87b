"""Tag value decoding -- turns one directory entry into a typed value."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from exifsafe.tiff.cursor import BinaryCursor

logger = logging.getLogger(__name__)

# Supported TIFF field types: {type_code: (element_size_bytes, name)}
TIFF_TYPES: Dict[int, Tuple[int, str]] = {
    1: (1, 'BYTE'),
    2: (1, 'ASCII'),
    3: (2, 'SHORT'),
    4: (4, 'LONG'),
    5: (8, 'RATIONAL'),
    7: (1, 'UNDEFINED'),
    9: (4, 'SLONG'),
    10: (8, 'SRATIONAL'),
}

# Values up to this many bytes live in the entry's own value field
INLINE_THRESHOLD = 4


@dataclass(frozen=True)
class Scalar:
    """A single number (integer or rational)."""
    value: Union[int, float]


@dataclass(frozen=True)
class Text:
    """An ASCII field, NUL-stripped."""
    value: str


@dataclass(frozen=True)
class Blob:
    """Raw UNDEFINED bytes."""
    value: bytes


@dataclass(frozen=True)
class Sequence:
    """Several numbers of one type, in file order."""
    value: Tuple[Union[int, float], ...]


TagValue = Union[Scalar, Text, Blob, Sequence]


def type_width(type_code: int) -> int:
    """Element size in bytes for a type code, 0 if unsupported."""
    return TIFF_TYPES.get(type_code, (0, ''))[0]


def _scalar_reader(cursor: BinaryCursor, type_code: int):
    if type_code == 1:
        return cursor.read_uint8
    if type_code == 3:
        return cursor.read_uint16
    if type_code == 4:
        return cursor.read_uint32
    if type_code == 5:
        return cursor.read_rational
    if type_code == 9:
        return cursor.read_int32
    if type_code == 10:
        return cursor.read_signed_rational
    return None


def decode_value(cursor: BinaryCursor, entry, tiff_start: int) -> Optional[TagValue]:
    """Materialize the value of ``entry``.

    Values of at most 4 bytes are read from the entry's value field;
    larger ones from ``tiff_start + entry.value_or_offset``. Returns None
    for unsupported types, empty fields and anything out of bounds.
    """
    width = type_width(entry.type_code)
    if width == 0:
        logger.debug('Tag 0x%04X: unsupported type %d', entry.tag_id, entry.type_code)
        return None
    if entry.count == 0:
        return None

    total = width * entry.count
    if total <= INLINE_THRESHOLD:
        position = entry.value_field_position
    else:
        position = tiff_start + entry.value_or_offset

    if not cursor.has(total, at=position):
        logger.debug('Tag 0x%04X: %d bytes at %d out of bounds (buffer %d)',
                     entry.tag_id, total, position, len(cursor))
        return None
    cursor.seek(position)

    if entry.type_code == 2:
        text = cursor.read_fixed_string(entry.count)
        return None if text is None else Text(text)
    if entry.type_code == 7:
        raw = cursor.read_bytes(entry.count)
        return None if raw is None else Blob(raw)

    read = _scalar_reader(cursor, entry.type_code)
    if entry.count == 1:
        value = read()
        return None if value is None else Scalar(value)

    items = tuple(read() for _ in range(entry.count))
    if any(item is None for item in items):
        return None
    return Sequence(items)
