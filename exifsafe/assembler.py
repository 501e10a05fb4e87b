"""Tag record assembly -- filtering, display formatting, sorting, GPS.

Consumes the raw name -> value map produced by the directory decoder
(or any similar mapping of plain Python values) and produces the final
privacy-annotated tag list.
"""

import json
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from exifsafe.classifier import (
    CATEGORY_RANK,
    HIGH,
    MEDIUM,
    SAFE,
    Classifier,
    normalize,
)
from exifsafe.models import GpsCoordinate, ProcessedTag
from exifsafe.tiff.values import Blob, Scalar, Sequence, Text

# Longest string representation surfaced for blobs and nested objects
MAX_DISPLAY_LENGTH = 100
TRUNCATION_MARKER = '...'

# Windows Explorer fields stored as BYTE arrays of UTF-16LE text
XP_TEXT_TAGS = frozenset({'XPTitle', 'XPComment', 'XPAuthor', 'XPKeywords', 'XPSubject'})

# EXIF UserComment-style 8-byte character code prefixes
_CHARSET_PREFIXES = (b'ASCII\x00\x00\x00', b'\x00' * 8)

_EXIF_DATE = re.compile(
    r'^(\d{4}):(\d{2}):(\d{2})(?:[ T](\d{2}):(\d{2}):(\d{2}))?$')

_PRINTABLE = frozenset(range(0x20, 0x7F)) | {0x09, 0x0A, 0x0D}


def _plain(value: Any) -> Any:
    """Unwrap a decoded tag value to its plain Python value."""
    if isinstance(value, (Scalar, Text, Blob)):
        return value.value
    if isinstance(value, Sequence):
        return list(value.value)
    return value


def _trunc(text: str, max_len: int = MAX_DISPLAY_LENGTH) -> str:
    """Truncate text with a marker if it exceeds max_len."""
    if len(text) <= max_len:
        return text
    return text[:max_len - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def exif_date_to_iso(text: str) -> Optional[str]:
    """'2024:06:15 10:30:00' -> '2024-06-15T10:30:00'. None if not a date."""
    m = _EXIF_DATE.match(text.strip())
    if not m:
        return None
    parts = [int(p) for p in m.groups() if p is not None]
    try:
        if len(parts) == 3:
            return date(*parts).isoformat()
        return datetime(*parts).isoformat()
    except ValueError:
        # e.g. the all-zero "0000:00:00 00:00:00" placeholder
        return None


def blob_to_text(raw: bytes) -> str:
    """Render UNDEFINED bytes as text when printable, hex otherwise."""
    for prefix in _CHARSET_PREFIXES:
        if raw.startswith(prefix):
            raw = raw[len(prefix):]
            break
    raw = raw.rstrip(b'\x00')
    if raw and all(b in _PRINTABLE for b in raw):
        return _trunc(raw.decode('ascii').strip())
    return _trunc(raw.hex(' '))


def xp_to_text(value: Any) -> Optional[str]:
    """Decode a Windows XP* field (BYTE array of UTF-16LE text).

    Returns None when the value is not byte-like or holds no text.
    """
    raw = _plain(value)
    if isinstance(raw, int):
        raw = [raw]
    if isinstance(raw, (list, tuple)):
        if not all(isinstance(b, int) and 0 <= b <= 0xFF for b in raw):
            return None
        raw = bytes(raw)
    if not isinstance(raw, (bytes, bytearray)):
        return None
    text = bytes(raw).decode('utf-16-le', errors='replace').split('\x00', 1)[0].strip()
    return _trunc(text) if text else None


def _format_number(value):
    if isinstance(value, float) and math.isfinite(value):
        if value.is_integer():
            return int(value)
        return round(value, 6)
    return value


def format_value(value: Any) -> Any:
    """Convert a raw tag value to a display-ready value.

    Numbers stay numbers (non-integers rounded to 6 places), short
    sequences stay ordered lists, EXIF dates and datetime objects become
    ISO-8601 strings, and bytes, long sequences or nested objects become
    strings of at most 100 characters.
    """
    value = _plain(value)
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, str):
        return exif_date_to_iso(value) or value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return blob_to_text(bytes(value))
    if isinstance(value, (list, tuple)):
        if all(isinstance(v, (int, float, str)) for v in value):
            items = [format_value(v) for v in value]
            # Long lists are capped like blobs
            if len(json.dumps(items)) <= MAX_DISPLAY_LENGTH:
                return items
            return _trunc(json.dumps(items))
        return _trunc(json.dumps([_plain(v) for v in value], default=str))
    return _trunc(json.dumps(value, default=str))


def _is_empty(value: Any) -> bool:
    value = _plain(value)
    return value is None or value == ''


def sort_tags(tags: Iterable[ProcessedTag]) -> List[ProcessedTag]:
    """Order by category (high, medium, safe), then tag name. Stable."""
    return sorted(tags, key=lambda t: (CATEGORY_RANK.get(t.category, CATEGORY_RANK[MEDIUM]),
                                       t.tag))


def assemble_tags(raw_map: Mapping[Any, Any],
                  classifier: Optional[Classifier] = None) -> List[ProcessedTag]:
    """Build the sorted, classified tag list from a raw tag map.

    Drops empty values and ``_``-prefixed internal keys, normalizes numeric
    tag IDs to names (first occurrence wins on collision), then classifies,
    describes and formats each entry.
    """
    if classifier is None:
        classifier = Classifier()

    tags = []
    seen = set()
    for key, raw in raw_map.items():
        if str(key).startswith('_') or _is_empty(raw):
            continue
        name = normalize(key)
        if name in seen:
            continue
        if name in XP_TEXT_TAGS:
            value = xp_to_text(raw)
        else:
            value = format_value(raw)
        if value is None or value == '':
            continue
        seen.add(name)
        tags.append(ProcessedTag(
            tag=name,
            value=value,
            description=classifier.describe(name),
            category=classifier.classify(name),
        ))
    return sort_tags(tags)


def category_counts(tags: Iterable[ProcessedTag]) -> Dict[str, int]:
    """Number of tags per category."""
    counts = {HIGH: 0, MEDIUM: 0, SAFE: 0}
    for t in tags:
        counts[t.category] = counts.get(t.category, 0) + 1
    return counts


# ---------------------------------------------------------------------------
# GPS
# ---------------------------------------------------------------------------

def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def _ref_letter(ref: Any, default: str) -> str:
    ref = _plain(ref)
    if isinstance(ref, (bytes, bytearray)):
        ref = bytes(ref).decode('ascii', errors='replace')
    if not isinstance(ref, str) or not ref.strip():
        return default
    return ref.strip()[0].upper()


def dms_to_decimal(coord: Any, ref: str) -> Optional[float]:
    """Convert a DMS triple, decimal number or numeric string to degrees.

    Southern and western references negate the result.
    """
    coord = _plain(coord)
    if isinstance(coord, (list, tuple)):
        if len(coord) < 3:
            return None
        parts = [_to_float(c) for c in coord[:3]]
        if any(p is None for p in parts):
            return None
        deg, minutes, sec = parts
        decimal = deg + minutes / 60 + sec / 3600
    else:
        decimal = _to_float(coord)
        if decimal is None:
            return None
    return -decimal if ref in ('S', 'W') else decimal


def _altitude(raw_map: Mapping[str, Any]) -> Optional[float]:
    alt = _plain(raw_map.get('GPSAltitude'))
    if isinstance(alt, (list, tuple)) and len(alt) == 1:
        alt = alt[0]
    altitude = _to_float(alt)
    if altitude is None:
        return None
    ref = _plain(raw_map.get('GPSAltitudeRef'))
    if isinstance(ref, (bytes, bytearray)):
        ref = ref[0] if ref else 0
    if ref in (1, '1'):
        altitude = -altitude
    return altitude


def extract_gps(raw_map: Mapping[str, Any]) -> Optional[GpsCoordinate]:
    """Pull a decimal GPS position out of a raw tag map.

    Returns None when latitude or longitude is missing, unparseable or out
    of range. GPS absence is not an error.
    """
    lat_raw = raw_map.get('GPSLatitude')
    lon_raw = raw_map.get('GPSLongitude')
    if _is_empty(lat_raw) or _is_empty(lon_raw):
        return None

    latitude = dms_to_decimal(lat_raw, _ref_letter(raw_map.get('GPSLatitudeRef'), 'N'))
    longitude = dms_to_decimal(lon_raw, _ref_letter(raw_map.get('GPSLongitudeRef'), 'E'))
    if latitude is None or longitude is None:
        return None
    if abs(latitude) > 90 or abs(longitude) > 180:
        return None
    return GpsCoordinate(latitude=latitude, longitude=longitude,
                         altitude=_altitude(raw_map))


def format_dms(coord: float, kind: str) -> str:
    """Format decimal degrees as 40°26'46.00"N. ``kind`` is 'lat' or 'lng'."""
    value = abs(coord)
    deg = math.floor(value)
    minutes = math.floor((value - deg) * 60)
    sec = max(0.0, round((value - deg - minutes / 60) * 3600, 2))
    # Seconds that round up to 60 carry into minutes and degrees
    if sec >= 60:
        sec -= 60
        minutes += 1
    if minutes >= 60:
        minutes -= 60
        deg += 1
    if kind == 'lat':
        direction = 'N' if coord >= 0 else 'S'
    else:
        direction = 'E' if coord >= 0 else 'W'
    return f'{deg}°{minutes}\'{sec:.2f}"{direction}'
