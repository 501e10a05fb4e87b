"""Low-level EXIF/TIFF binary decoder package.

Re-exports the public names so callers can write
``from exifsafe.tiff import X``.
"""

# --- cursor.py: bounds-checked primitive reads ---
from exifsafe.tiff.cursor import BinaryCursor  # noqa: F401

# --- tags.py: namespace tag-ID tables ---
from exifsafe.tiff.tags import (  # noqa: F401
    Namespace,
    MAIN_TAG_NAMES,
    EXIF_TAG_NAMES,
    GPS_TAG_NAMES,
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROP_IFD_POINTER_TAG,
    tag_name,
    lookup_any,
)

# --- values.py: typed tag values and the value decoder ---
from exifsafe.tiff.values import (  # noqa: F401
    TIFF_TYPES,
    Scalar,
    Text,
    Blob,
    Sequence,
    TagValue,
    decode_value,
    type_width,
)

# --- parser.py: header and entry records ---
from exifsafe.tiff.parser import (  # noqa: F401
    DirectoryEntry,
    TIFFHeader,
    read_header,
    read_entry,
)

# --- directory.py: IFD traversal ---
from exifsafe.tiff.directory import (  # noqa: F401
    MAX_IFD_DEPTH,
    MAX_IFD_ENTRIES,
    DirectoryDecoder,
    decode_directories,
)
