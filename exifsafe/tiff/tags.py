"""Tag-ID tables for the three EXIF directory namespaces.

IFD0/IFD1 (MAIN), the EXIF sub-IFD and the GPS sub-IFD each number their
tags independently. GPS IDs 0-31 overlap main-IFD IDs (0x000B is
ProcessingSoftware in IFD0 but GPSDOP in the GPS IFD), so a lookup must
always go through the table of the directory being decoded.
"""

import enum
from typing import Dict, Optional


class Namespace(enum.Enum):
    MAIN = 'main'
    EXIF = 'exif'
    GPS = 'gps'


# Sub-IFD pointer tags
EXIF_IFD_POINTER_TAG = 0x8769
GPS_IFD_POINTER_TAG = 0x8825
INTEROP_IFD_POINTER_TAG = 0xA005

# IFD0 / IFD1 (TIFF baseline + common extensions)
MAIN_TAG_NAMES: Dict[int, str] = {
    0x000B: 'ProcessingSoftware', 0x00FE: 'NewSubfileType',
    0x00FF: 'SubfileType', 0x0100: 'ImageWidth', 0x0101: 'ImageHeight',
    0x0102: 'BitsPerSample', 0x0103: 'Compression',
    0x0106: 'PhotometricInterpretation', 0x010D: 'DocumentName',
    0x010E: 'ImageDescription', 0x010F: 'Make', 0x0110: 'Model',
    0x0111: 'StripOffsets', 0x0112: 'Orientation',
    0x0115: 'SamplesPerPixel', 0x0116: 'RowsPerStrip',
    0x0117: 'StripByteCounts', 0x011A: 'XResolution',
    0x011B: 'YResolution', 0x011C: 'PlanarConfiguration',
    0x0128: 'ResolutionUnit', 0x012D: 'TransferFunction',
    0x0131: 'Software', 0x0132: 'DateTime', 0x013B: 'Artist',
    0x013C: 'HostComputer', 0x013E: 'WhitePoint',
    0x013F: 'PrimaryChromaticities', 0x0201: 'ThumbnailOffset',
    0x0202: 'ThumbnailLength', 0x0211: 'YCbCrCoefficients',
    0x0212: 'YCbCrSubSampling', 0x0213: 'YCbCrPositioning',
    0x0214: 'ReferenceBlackWhite', 0x02BC: 'ApplicationNotes',
    0x4746: 'Rating', 0x8298: 'Copyright',
    EXIF_IFD_POINTER_TAG: 'ExifOffset', GPS_IFD_POINTER_TAG: 'GPSOffset',
    0x9C9B: 'XPTitle', 0x9C9C: 'XPComment', 0x9C9D: 'XPAuthor',
    0x9C9E: 'XPKeywords', 0x9C9F: 'XPSubject',
    0xC4A5: 'PrintImageMatching',
}

# EXIF sub-IFD
EXIF_TAG_NAMES: Dict[int, str] = {
    0x829A: 'ExposureTime', 0x829D: 'FNumber',
    0x8822: 'ExposureProgram', 0x8824: 'SpectralSensitivity',
    0x8827: 'ISO', 0x8830: 'SensitivityType',
    0x8831: 'StandardOutputSensitivity',
    0x8832: 'RecommendedExposureIndex',
    0x9000: 'ExifVersion', 0x9003: 'DateTimeOriginal',
    0x9004: 'DateTimeDigitized', 0x9010: 'OffsetTime',
    0x9011: 'OffsetTimeOriginal', 0x9012: 'OffsetTimeDigitized',
    0x9101: 'ComponentsConfiguration', 0x9102: 'CompressedBitsPerPixel',
    0x9201: 'ShutterSpeedValue', 0x9202: 'ApertureValue',
    0x9203: 'BrightnessValue', 0x9204: 'ExposureBiasValue',
    0x9205: 'MaxApertureValue', 0x9206: 'SubjectDistance',
    0x9207: 'MeteringMode', 0x9208: 'LightSource', 0x9209: 'Flash',
    0x920A: 'FocalLength', 0x9214: 'SubjectArea', 0x927C: 'MakerNote',
    0x9286: 'UserComment', 0x9290: 'SubSecTime',
    0x9291: 'SubSecTimeOriginal', 0x9292: 'SubSecTimeDigitized',
    0xA000: 'FlashpixVersion', 0xA001: 'ColorSpace',
    0xA002: 'ExifImageWidth', 0xA003: 'ExifImageHeight',
    0xA004: 'RelatedSoundFile', INTEROP_IFD_POINTER_TAG: 'InteropOffset',
    0xA20B: 'FlashEnergy', 0xA20E: 'FocalPlaneXResolution',
    0xA20F: 'FocalPlaneYResolution', 0xA210: 'FocalPlaneResolutionUnit',
    0xA214: 'SubjectLocation', 0xA215: 'ExposureIndex',
    0xA217: 'SensingMethod', 0xA300: 'FileSource', 0xA301: 'SceneType',
    0xA302: 'CFAPattern', 0xA401: 'CustomRendered',
    0xA402: 'ExposureMode', 0xA403: 'WhiteBalance',
    0xA404: 'DigitalZoomRatio', 0xA405: 'FocalLengthIn35mmFormat',
    0xA406: 'SceneCaptureType', 0xA407: 'GainControl',
    0xA408: 'Contrast', 0xA409: 'Saturation', 0xA40A: 'Sharpness',
    0xA40C: 'SubjectDistanceRange', 0xA420: 'ImageUniqueID',
    0xA430: 'CameraOwnerName', 0xA431: 'BodySerialNumber',
    0xA432: 'LensSpecification', 0xA433: 'LensMake',
    0xA434: 'LensModel', 0xA435: 'LensSerialNumber',
    0xA460: 'CompositeImage', 0xA500: 'Gamma',
}

# GPS sub-IFD (tags 0-31)
GPS_TAG_NAMES: Dict[int, str] = {
    0: 'GPSVersionID', 1: 'GPSLatitudeRef', 2: 'GPSLatitude',
    3: 'GPSLongitudeRef', 4: 'GPSLongitude', 5: 'GPSAltitudeRef',
    6: 'GPSAltitude', 7: 'GPSTimeStamp', 8: 'GPSSatellites',
    9: 'GPSStatus', 10: 'GPSMeasureMode', 11: 'GPSDOP',
    12: 'GPSSpeedRef', 13: 'GPSSpeed', 14: 'GPSTrackRef',
    15: 'GPSTrack', 16: 'GPSImgDirectionRef', 17: 'GPSImgDirection',
    18: 'GPSMapDatum', 19: 'GPSDestLatitudeRef', 20: 'GPSDestLatitude',
    21: 'GPSDestLongitudeRef', 22: 'GPSDestLongitude', 23: 'GPSDestBearingRef',
    24: 'GPSDestBearing', 25: 'GPSDestDistanceRef', 26: 'GPSDestDistance',
    27: 'GPSProcessingMethod', 28: 'GPSAreaInformation', 29: 'GPSDateStamp',
    30: 'GPSDifferential', 31: 'GPSHPositioningError',
}

_TABLES: Dict[Namespace, Dict[int, str]] = {
    Namespace.MAIN: MAIN_TAG_NAMES,
    Namespace.EXIF: EXIF_TAG_NAMES,
    Namespace.GPS: GPS_TAG_NAMES,
}


def tag_name(tag_id: int, namespace: Namespace) -> Optional[str]:
    """Resolve a numeric tag ID in one namespace. None if unknown there."""
    return _TABLES[namespace].get(tag_id)


def lookup_any(tag_id: int, namespace: Optional[Namespace] = None) -> Optional[str]:
    """Resolve a tag ID without a directory context.

    With no namespace the MAIN table is tried first, then EXIF. The GPS
    table is only consulted when asked for explicitly.
    """
    if namespace is not None:
        return tag_name(tag_id, namespace)
    return MAIN_TAG_NAMES.get(tag_id) or EXIF_TAG_NAMES.get(tag_id)
