"""IFD traversal -- IFD0, EXIF and GPS sub-IFDs, and the next-IFD chain."""

import logging
from typing import Dict, Set

from exifsafe.tiff.cursor import BinaryCursor
from exifsafe.tiff.parser import ENTRY_SIZE, DirectoryEntry, read_entry
from exifsafe.tiff.tags import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    Namespace,
    tag_name,
)
from exifsafe.tiff.values import Scalar, TagValue, decode_value

logger = logging.getLogger(__name__)

# Maximum plausible entry count per IFD. Real EXIF directories hold a few
# dozen entries; a larger count means the offset landed in garbage.
MAX_IFD_ENTRIES = 100

# Maximum nesting of sub-IFDs plus chained IFDs
MAX_IFD_DEPTH = 8

_SUB_IFD_POINTERS = {
    EXIF_IFD_POINTER_TAG: Namespace.EXIF,
    GPS_IFD_POINTER_TAG: Namespace.GPS,
}


class DirectoryDecoder:
    """Depth-first IFD walker accumulating a name -> value map.

    Every directory offset is decoded at most once, and recursion stops at
    MAX_IFD_DEPTH, so self-referencing or cyclic chains terminate.
    """

    def __init__(self, cursor: BinaryCursor, tiff_start: int):
        self.cursor = cursor
        self.tiff_start = tiff_start
        self.tags: Dict[str, TagValue] = {}
        self._visited: Set[int] = set()

    def decode(self, first_ifd_offset: int) -> Dict[str, TagValue]:
        """Decode IFD0 and everything reachable from it."""
        self.decode_ifd(first_ifd_offset, Namespace.MAIN)
        return self.tags

    def decode_ifd(self, offset: int, namespace: Namespace, depth: int = 0) -> None:
        if depth >= MAX_IFD_DEPTH:
            logger.warning('IFD depth limit (%d) reached at offset %d',
                           MAX_IFD_DEPTH, offset)
            return
        if offset in self._visited:
            logger.warning('IFD at offset %d already visited, chain loops', offset)
            return
        self._visited.add(offset)

        position = self.tiff_start + offset
        num_entries = self.cursor.seek(position).read_uint16()
        if num_entries is None:
            logger.debug('%s IFD offset %d out of bounds', namespace.value, offset)
            return
        if num_entries > MAX_IFD_ENTRIES:
            logger.warning('%s IFD at %d claims %d entries, skipping',
                           namespace.value, offset, num_entries)
            return

        entries_start = position + 2
        for i in range(num_entries):
            entry = read_entry(self.cursor, entries_start + i * ENTRY_SIZE)
            if entry is None:
                logger.debug('%s IFD entry %d/%d truncated', namespace.value,
                             i + 1, num_entries)
                return
            self._decode_entry(entry, namespace, depth)

        next_offset = self.cursor.seek(
            entries_start + num_entries * ENTRY_SIZE).read_uint32()
        if next_offset:
            self.decode_ifd(next_offset, Namespace.MAIN, depth + 1)

    def _decode_entry(self, entry: DirectoryEntry, namespace: Namespace,
                      depth: int) -> None:
        name = tag_name(entry.tag_id, namespace)
        if name is None:
            return

        value = decode_value(self.cursor, entry, self.tiff_start)
        if value is None:
            return
        # IFD0 wins over IFD1 (thumbnail) for repeated names
        self.tags.setdefault(name, value)

        if namespace is Namespace.MAIN and entry.tag_id in _SUB_IFD_POINTERS:
            if isinstance(value, Scalar) and isinstance(value.value, int) and value.value:
                self.decode_ifd(value.value, _SUB_IFD_POINTERS[entry.tag_id], depth + 1)


def decode_directories(cursor: BinaryCursor, tiff_start: int,
                       first_ifd_offset: int) -> Dict[str, TagValue]:
    """Convenience wrapper returning the decoded tag map."""
    return DirectoryDecoder(cursor, tiff_start).decode(first_ifd_offset)
