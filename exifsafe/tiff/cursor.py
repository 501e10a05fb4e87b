"""Bounds-checked, endian-aware reader over an in-memory byte buffer.

Every read returns ``None`` instead of raising when the requested bytes
fall outside the buffer, so callers can drop a single field and carry on.
"""

import struct
from typing import Optional

_U16 = {True: struct.Struct('<H'), False: struct.Struct('>H')}
_U32 = {True: struct.Struct('<I'), False: struct.Struct('>I')}
_I32 = {True: struct.Struct('<i'), False: struct.Struct('>i')}


class BinaryCursor:
    """Read position over an immutable buffer."""
    __slots__ = ('_data', '_pos', 'little_endian')

    def __init__(self, data: bytes, little_endian: bool = False):
        self._data = bytes(data)
        self._pos = 0
        self.little_endian = little_endian

    def __len__(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return max(0, len(self._data) - self._pos)

    def tell(self) -> int:
        return self._pos

    def seek(self, position: int) -> 'BinaryCursor':
        """Move to an absolute position. Out-of-range positions are allowed;
        the next read simply fails."""
        self._pos = position
        return self

    def has(self, width: int, at: Optional[int] = None) -> bool:
        """True if ``width`` bytes are readable at ``at`` (default: position)."""
        pos = self._pos if at is None else at
        return pos >= 0 and width >= 0 and pos + width <= len(self._data)

    def _order(self, little_endian: Optional[bool]) -> bool:
        return self.little_endian if little_endian is None else little_endian

    def _unpack(self, fmt: struct.Struct):
        if not self.has(fmt.size):
            return None
        value = fmt.unpack_from(self._data, self._pos)[0]
        self._pos += fmt.size
        return value

    def read_uint8(self) -> Optional[int]:
        if not self.has(1):
            return None
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_uint16(self, little_endian: Optional[bool] = None) -> Optional[int]:
        return self._unpack(_U16[self._order(little_endian)])

    def read_uint32(self, little_endian: Optional[bool] = None) -> Optional[int]:
        return self._unpack(_U32[self._order(little_endian)])

    def read_int32(self, little_endian: Optional[bool] = None) -> Optional[int]:
        return self._unpack(_I32[self._order(little_endian)])

    def read_bytes(self, length: int) -> Optional[bytes]:
        if not self.has(length):
            return None
        raw = self._data[self._pos:self._pos + length]
        self._pos += length
        return raw

    def read_fixed_string(self, length: int) -> Optional[str]:
        """Read ``length`` bytes as ASCII, cut at the first NUL."""
        raw = self.read_bytes(length)
        if raw is None:
            return None
        nul = raw.find(b'\x00')
        if nul >= 0:
            raw = raw[:nul]
        return raw.decode('ascii', errors='replace')

    def read_rational(self, little_endian: Optional[bool] = None) -> Optional[float]:
        """uint32 / uint32. A zero denominator yields 0.0."""
        if not self.has(8):
            return None
        numerator = self.read_uint32(little_endian)
        denominator = self.read_uint32(little_endian)
        if denominator == 0:
            return 0.0
        return numerator / denominator

    def read_signed_rational(self, little_endian: Optional[bool] = None) -> Optional[float]:
        """int32 / int32. A zero denominator yields 0.0."""
        if not self.has(8):
            return None
        numerator = self.read_int32(little_endian)
        denominator = self.read_int32(little_endian)
        if denominator == 0:
            return 0.0
        return numerator / denominator
