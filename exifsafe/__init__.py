"""ExifSafe -- EXIF metadata extraction with privacy risk classification."""

__version__ = "1.0.0"

from exifsafe.models import (
    ExtractionResult,
    GpsCoordinate,
    ImageInfo,
    ProcessedTag,
)
from exifsafe.classifier import Classifier, ClassifierConfig, classify, describe, normalize
from exifsafe.extractor import extract_batch, extract_file, extract_metadata
from exifsafe.report import generate_pdf_report, generate_report

__all__ = [
    "__version__",
    "ProcessedTag",
    "GpsCoordinate",
    "ImageInfo",
    "ExtractionResult",
    "Classifier",
    "ClassifierConfig",
    "classify",
    "describe",
    "normalize",
    "extract_metadata",
    "extract_file",
    "extract_batch",
    "generate_report",
    "generate_pdf_report",
]
