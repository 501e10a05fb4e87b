"""Privacy classification engine -- tag name to risk category.

Each tag name is assigned one of three categories by an ordered list of
rules evaluated first-match-wins. Matching is case-insensitive substring
matching, so unfamiliar vendor tags that merely *contain* a sensitive word
are still caught. Unrecognised names fall through to "medium".
"""

import json
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional, Union

from exifsafe.tiff.tags import Namespace, lookup_any

HIGH = 'high'
MEDIUM = 'medium'
SAFE = 'safe'

CATEGORY_RANK: Dict[str, int] = {HIGH: 0, MEDIUM: 1, SAFE: 2}

# (label, description) per category, as shown in reports and the CLI
CATEGORY_LABELS: Dict[str, tuple] = {
    HIGH: ('Most Sensitive', 'High privacy/security risk'),
    MEDIUM: ('Moderate Sensitivity', 'Medium privacy risk'),
    SAFE: ('Safe', 'Generally safe to share'),
}

# Location, timestamps, identity, device serials, free text, AI-generation
# provenance, software/host.
HIGH_TAGS: List[str] = [
    'GPSLatitude', 'GPSLongitude', 'GPSLatitudeRef', 'GPSLongitudeRef',
    'GPSAltitude', 'GPSAltitudeRef', 'GPSTimeStamp', 'GPSDateStamp',
    'GPSProcessingMethod', 'GPSAreaInformation', 'GPSDestLatitude',
    'GPSDestLongitude', 'GPSImgDirection', 'GPSMapDatum',
    'DateTimeOriginal', 'DateTimeDigitized', 'DateTime', 'CreateDate',
    'ModifyDate', 'FileModifyDate', 'FileAccessDate', 'FileCreateDate',
    'Artist', 'Copyright', 'OwnerName', 'CameraOwnerName',
    'SerialNumber', 'LensSerialNumber', 'InternalSerialNumber',
    'UserComment', 'ImageDescription', 'DocumentName', 'ImageUniqueID',
    'Software', 'ProcessingSoftware', 'HostComputer', 'Creator',
    'Publisher', 'Rights', 'Subject', 'Title', 'Description', 'Keywords',
    'Prompt', 'GeneratedBy', 'Seed', 'Steps', 'CFGScale',
    'Sampler', 'NegativePrompt', 'Parameters',
]

# Camera/lens identity and capture settings
MEDIUM_TAGS: List[str] = [
    'Make', 'Model', 'LensMake', 'LensModel', 'LensInfo',
    'Orientation', 'XResolution', 'YResolution', 'ResolutionUnit',
    'FNumber', 'ExposureTime', 'ISO', 'ISOSpeedRatings', 'SensitivityType',
    'FocalLength', 'FocalLengthIn35mmFormat', 'MaxApertureValue',
    'ApertureValue', 'ShutterSpeedValue', 'ExposureMode', 'ExposureProgram',
    'ExposureBiasValue', 'MeteringMode', 'LightSource', 'Flash',
    'FlashMode', 'WhiteBalance', 'DigitalZoomRatio', 'SceneCaptureType',
    'GainControl', 'Contrast', 'Saturation', 'Sharpness',
    'SubjectDistanceRange', 'ImageNumber', 'FileNumber',
    'FirmwareVersion', 'LensType', 'ColorSpace', 'ExifVersion',
    'FlashpixVersion', 'ComponentsConfiguration', 'CompressedBitsPerPixel',
]

# Pixel geometry, encoding, file-format bookkeeping, thumbnails, colour
SAFE_TAGS: List[str] = [
    'ImageWidth', 'ImageHeight', 'ImageSize', 'Megapixels',
    'BitsPerSample', 'Compression', 'PhotometricInterpretation',
    'SamplesPerPixel', 'PlanarConfiguration', 'YCbCrSubSampling',
    'YCbCrPositioning', 'YCbCrCoefficients', 'ReferenceBlackWhite',
    'ColorComponents', 'EncodingProcess', 'JFIFVersion', 'XMPToolkit',
    'ThumbnailImage', 'ThumbnailLength', 'ThumbnailOffset', 'PreviewImage',
    'FileType', 'FileTypeExtension', 'MIMEType', 'ExifByteOrder',
    'CurrentIPTCDigest', 'CodedCharacterSet', 'ApplicationRecordVersion',
    'FileSize', 'ExifOffset', 'InteropOffset', 'StripOffsets',
    'StripByteCounts', 'RowsPerStrip', 'NewSubfileType', 'SubfileType',
    'PrimaryChromaticities', 'TransferFunction', 'Gamma', 'ICCProfile',
]

TAG_DESCRIPTIONS: Dict[str, str] = {
    # GPS
    'GPSLatitude': 'Geographical latitude where the image was captured',
    'GPSLongitude': 'Geographical longitude where the image was captured',
    'GPSAltitude': 'Altitude above sea level where the image was captured',
    'GPSLatitudeRef': 'North/south hemisphere of the capture location',
    'GPSLongitudeRef': 'East/west hemisphere of the capture location',
    'GPSTimeStamp': 'UTC time of the GPS fix',
    'GPSDateStamp': 'UTC date of the GPS fix',
    'GPSOffset': 'Pointer to embedded GPS location data',
    # Dates
    'DateTimeOriginal': 'Date and time when the image was originally captured',
    'DateTimeDigitized': 'Date and time when the image was digitized',
    'DateTime': 'Date and time when the image file was last modified',
    # Camera
    'Make': 'Camera manufacturer',
    'Model': 'Camera model',
    'LensMake': 'Lens manufacturer',
    'LensModel': 'Lens model',
    'SerialNumber': 'Camera serial number',
    'BodySerialNumber': 'Camera body serial number',
    'LensSerialNumber': 'Lens serial number',
    'CameraOwnerName': 'Name of the camera owner',
    # Settings
    'FNumber': 'Aperture f-stop value',
    'ExposureTime': 'Shutter speed',
    'ISO': 'ISO sensitivity setting',
    'FocalLength': 'Lens focal length',
    'Flash': 'Flash mode used',
    'WhiteBalance': 'White balance setting',
    'ExifVersion': 'Version of the EXIF standard used',
    # Image properties
    'ImageWidth': 'Image width in pixels',
    'ImageHeight': 'Image height in pixels',
    'ExifImageWidth': 'Image width in pixels, as recorded by the camera',
    'ExifImageHeight': 'Image height in pixels, as recorded by the camera',
    'Orientation': 'Image orientation',
    'ColorSpace': 'Color space used',
    'Compression': 'Compression method',
    'ExifOffset': 'Pointer to the EXIF sub-directory',
    # Authorship and free text
    'Software': 'Software used to create/edit the image',
    'HostComputer': 'Computer the image was created on',
    'Artist': 'Name of the image creator',
    'Copyright': 'Copyright information',
    'UserComment': 'User-entered comment',
    'ImageDescription': 'Description of the image',
    'ImageUniqueID': 'Unique identifier assigned to the image',
    # AI generation
    'Prompt': 'Text prompt used to generate the image',
    'Models': 'AI model used for generation',
    'Seed': 'Random seed used for generation',
    'Steps': 'Number of generation steps',
    # File info
    'FileName': 'Name of the uploaded file',
    'FileSize': 'File size in bytes',
    'FileType': 'Image container format',
    'MIMEType': 'Declared MIME type of the file',
}

UNKNOWN_TAG_PREFIX = 'Unknown_Tag_'

_NUMERIC_ID = re.compile(r'^(?:0[xX][0-9a-fA-F]+|\d+)$')


@dataclass
class ClassifierConfig:
    """Allow-lists and descriptions used to build a Classifier.

    Lets users add site-specific tag names without modifying source code.
    """

    high_tags: List[str] = field(default_factory=list)
    medium_tags: List[str] = field(default_factory=list)
    safe_tags: List[str] = field(default_factory=list)
    descriptions: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def default(cls) -> 'ClassifierConfig':
        """Return the built-in allow-lists."""
        return cls(
            high_tags=list(HIGH_TAGS),
            medium_tags=list(MEDIUM_TAGS),
            safe_tags=list(SAFE_TAGS),
            descriptions=dict(TAG_DESCRIPTIONS),
        )

    @classmethod
    def from_json(cls, path) -> 'ClassifierConfig':
        """Load allow-list additions from a JSON file and merge with defaults.

        JSON format::

            {
              "high_tags": ["XPAuthor", ...],
              "medium_tags": [...],
              "safe_tags": [...],
              "descriptions": {"XPAuthor": "Windows author field"}
            }

        All keys are optional. Entries are *appended* to the defaults, and
        descriptions override built-in ones with the same name.

        Raises:
            ValueError: If the file is not valid JSON or a key has the
                wrong shape.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'{path}: top-level JSON value must be an object')

        config = cls.default()
        for key in ('high_tags', 'medium_tags', 'safe_tags'):
            names = data.get(key, [])
            if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
                raise ValueError(f'{path}: "{key}" must be a list of strings')
            getattr(config, key).extend(names)

        descriptions = data.get('descriptions', {})
        if not isinstance(descriptions, dict):
            raise ValueError(f'{path}: "descriptions" must be an object')
        config.descriptions.update({str(k): str(v) for k, v in descriptions.items()})
        return config


class Rule(NamedTuple):
    """One step of the classification cascade."""
    label: str
    matches: Callable[[str], bool]
    category: str


def _listed(names: List[str]) -> Callable[[str], bool]:
    needles = [n.lower() for n in names]
    return lambda lower: any(n in lower for n in needles)


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda lower: any(n in lower for n in needles)


def build_rules(config: ClassifierConfig) -> List[Rule]:
    """The ordered rule cascade. Order matters: first match wins."""
    return [
        Rule('high allow-list', _listed(config.high_tags), HIGH),
        Rule('location', _contains_any('gps', 'location', 'coordinate',
                                       'latitude', 'longitude'), HIGH),
        # "timezone" alone says nothing about when the photo was taken
        Rule('date/time', lambda s: 'date' in s or ('time' in s and 'timezone' not in s),
             HIGH),
        Rule('identity', _contains_any('owner', 'artist', 'serial', 'comment',
                                       'author', 'copyright'), HIGH),
        Rule('medium allow-list', _listed(config.medium_tags), MEDIUM),
        # ColorModel is a pixel format, not a camera model
        Rule('equipment', lambda s: (any(n in s for n in ('camera', 'lens', 'make'))
                                     or ('model' in s and 'color' not in s)), MEDIUM),
        Rule('capture settings', _contains_any('exposure', 'iso', 'focal', 'aperture',
                                               'shutter', 'flash', 'white',
                                               'orientation'), MEDIUM),
        Rule('safe allow-list', _listed(config.safe_tags), SAFE),
    ]


def _describe_family(name: str) -> Optional[str]:
    lower = name.lower()
    if any(n in lower for n in ('gps', 'location', 'coordinate', 'latitude', 'longitude')):
        return 'Location data: reveals coordinates where the image was captured'
    if 'date' in lower or 'time' in lower:
        return 'Timestamp: reveals routines and when the image was taken'
    if 'serial' in lower or lower.endswith('id'):
        return 'Unique identifier: enables device tracking'
    if any(n in lower for n in ('make', 'model', 'lens', 'camera')):
        return 'Equipment info: identifies the capture device'
    if 'software' in lower or 'version' in lower:
        return 'Software/version: editing tool disclosure'
    return None


class Classifier:
    """Applies the rule cascade built from a ClassifierConfig."""

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config if config is not None else ClassifierConfig.default()
        self.rules = build_rules(self.config)

    def classify(self, tag_name: Union[str, int]) -> str:
        """Category for a tag name or numeric ID: 'high', 'medium' or 'safe'."""
        lower = normalize(tag_name).lower()
        for rule in self.rules:
            if rule.matches(lower):
                return rule.category
        return MEDIUM

    def describe(self, tag_name: Union[str, int]) -> str:
        """Human-readable description of what a tag discloses."""
        tag_name = normalize(tag_name)
        if tag_name in self.config.descriptions:
            return self.config.descriptions[tag_name]
        return _describe_family(tag_name) or f'EXIF metadata: {tag_name}'


def normalize(tag: Union[str, int], namespace: Optional[Namespace] = None) -> str:
    """Map a numeric tag ID to its canonical name.

    Accepts ints, decimal strings and ``0x`` hex strings. Unknown numeric
    IDs become ``Unknown_Tag_<id>``; anything else is returned unchanged.
    """
    if isinstance(tag, int):
        tag_id = tag
    else:
        text = str(tag).strip()
        if not _NUMERIC_ID.match(text):
            return str(tag)
        tag_id = int(text, 0) if text[:2].lower() == '0x' else int(text)
    return lookup_any(tag_id, namespace) or f'{UNKNOWN_TAG_PREFIX}{tag_id}'


_DEFAULT = Classifier()


def classify(tag_name: Union[str, int]) -> str:
    """Classify with the built-in configuration."""
    return _DEFAULT.classify(tag_name)


def describe(tag_name: Union[str, int]) -> str:
    """Describe with the built-in configuration."""
    return _DEFAULT.describe(tag_name)
