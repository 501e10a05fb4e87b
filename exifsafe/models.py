"""Data models for ExifSafe extraction results."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, List, Optional

# Tags synthesized from the file itself rather than decoded from EXIF
FILE_INFO_TAGS = frozenset({
    'FileName', 'FileSize', 'FileType', 'MIMEType', 'ImageWidth', 'ImageHeight',
})


@dataclass
class ProcessedTag:
    """One classified, display-ready metadata tag."""
    tag: str
    value: Any
    description: str
    category: str  # "high" | "medium" | "safe"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GpsCoordinate:
    """Decimal-degree position decoded from the GPS sub-IFD."""
    latitude: float
    longitude: float
    altitude: Optional[float] = None

    def to_dict(self) -> dict:
        d = {'latitude': self.latitude, 'longitude': self.longitude}
        if self.altitude is not None:
            d['altitude'] = self.altitude
        return d


@dataclass
class ImageInfo:
    """Basic facts about the image container."""
    format: str
    width: int = 0
    height: int = 0
    size: int = 0
    filename: str = ''


@dataclass
class ExtractionResult:
    """Result of extracting and classifying the metadata of one image."""
    tags: List[ProcessedTag] = field(default_factory=list)
    gps: Optional[GpsCoordinate] = None
    image_format: Optional[str] = None
    image_info: Optional[ImageInfo] = None
    errors: List[str] = field(default_factory=list)
    source_path: Optional[Path] = None
    extraction_time_ms: float = 0.0

    @property
    def has_exif(self) -> bool:
        """True if any tag beyond the synthesized file-info tags was found."""
        return any(t.tag not in FILE_INFO_TAGS for t in self.tags)

    def tags_in(self, category: str) -> List[ProcessedTag]:
        return [t for t in self.tags if t.category == category]

    def to_dict(self) -> dict:
        return {
            'tags': [t.to_dict() for t in self.tags],
            'gps': self.gps.to_dict() if self.gps else None,
            'imageFormat': self.image_format,
            'imageInfo': asdict(self.image_info) if self.image_info else None,
            'errors': list(self.errors),
        }
