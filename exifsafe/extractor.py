"""Core extraction logic -- single buffer, single file, and batch processing.

Decoding is stateless per call, so batches may run on a thread pool.
"""

import io
import logging
import mimetypes
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from exifsafe.assembler import assemble_tags, extract_gps
from exifsafe.classifier import Classifier
from exifsafe.container import find_exif, sniff_format
from exifsafe.models import ExtractionResult, ImageInfo
from exifsafe.tiff.cursor import BinaryCursor
from exifsafe.tiff.directory import DirectoryDecoder
from exifsafe.tiff.values import Scalar, TagValue, Text

logger = logging.getLogger(__name__)

# File extensions considered for batch processing
IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.jpe', '.jfif', '.png', '.webp',
                    '.tif', '.tiff', '.gif', '.heic', '.heif', '.avif'}


def decode_exif(buffer: bytes, mime_type_hint: Optional[str] = None) -> Dict[str, TagValue]:
    """Decode the EXIF block of a JPEG into a raw name -> value map.

    Returns an empty map for non-JPEG input, missing EXIF or a malformed
    TIFF header.
    """
    location = find_exif(buffer, mime_type_hint)
    if location is None:
        return {}
    cursor = BinaryCursor(buffer, little_endian=location.little_endian)
    decoder = DirectoryDecoder(cursor, location.tiff_start)
    return decoder.decode(location.first_ifd_offset)


def probe_image(buffer: bytes) -> Tuple[Optional[str], int, int]:
    """Identify format and pixel size with Pillow. (None, 0, 0) on failure."""
    try:
        with Image.open(io.BytesIO(buffer)) as img:
            return (img.format or '').lower() or None, img.width, img.height
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError,
            EOFError, ValueError) as e:
        logger.debug('Pillow could not identify image: %s', e)
        return None, 0, 0


def _mime_subtype(mime_type_hint: Optional[str]) -> Optional[str]:
    if mime_type_hint and '/' in mime_type_hint:
        return mime_type_hint.split('/', 1)[1].lower() or None
    return None


def _exif_dimension(raw: Dict[str, TagValue], *names: str) -> int:
    for name in names:
        value = raw.get(name)
        if isinstance(value, Scalar) and isinstance(value.value, int):
            return value.value
    return 0


def extract_metadata(
    buffer: bytes,
    mime_type_hint: str = '',
    filename: Optional[str] = None,
    classifier: Optional[Classifier] = None,
) -> ExtractionResult:
    """Extract, classify and sort the metadata of one image buffer.

    Args:
        buffer: Complete file contents.
        mime_type_hint: Declared MIME type (e.g. "image/jpeg"). Only a hint.
        filename: Optional original file name, reported as ``FileName``.
        classifier: Optional classifier override (custom allow-lists).

    Returns:
        ExtractionResult. Malformed input yields an empty or partial tag
        list; this function does not raise for bad bytes.
    """
    t0 = time.monotonic()
    buffer = bytes(buffer)
    errors: List[str] = []

    try:
        raw: Dict[str, Any] = decode_exif(buffer, mime_type_hint)
    except Exception as e:
        logger.exception('Unexpected failure decoding EXIF')
        errors.append(f'EXIF decoding failed: {e}')
        raw = {}
    logger.debug('Decoded %d EXIF tag(s)', len(raw))

    pil_format, width, height = probe_image(buffer)
    image_format = (pil_format or sniff_format(buffer)
                    or _mime_subtype(mime_type_hint) or 'unknown')
    if not width or not height:
        width = _exif_dimension(raw, 'ExifImageWidth', 'ImageWidth')
        height = _exif_dimension(raw, 'ExifImageHeight', 'ImageHeight')

    if filename:
        raw['FileName'] = Text(filename)
    raw['FileSize'] = Scalar(len(buffer))
    raw['FileType'] = Text(image_format)
    if mime_type_hint:
        raw['MIMEType'] = Text(mime_type_hint)
    if width:
        raw['ImageWidth'] = Scalar(width)
    if height:
        raw['ImageHeight'] = Scalar(height)

    tags = assemble_tags(raw, classifier)
    gps = extract_gps(raw)

    return ExtractionResult(
        tags=tags,
        gps=gps,
        image_format=image_format,
        image_info=ImageInfo(format=image_format, width=width, height=height,
                             size=len(buffer), filename=filename or ''),
        errors=errors,
        extraction_time_ms=(time.monotonic() - t0) * 1000,
    )


def extract_file(filepath: Path, classifier: Optional[Classifier] = None) -> ExtractionResult:
    """Read a file and extract its metadata.

    Raises:
        OSError: If the file cannot be read.
    """
    filepath = Path(filepath)
    data = filepath.read_bytes()
    mime_type, _ = mimetypes.guess_type(filepath.name)
    result = extract_metadata(data, mime_type or '', filename=filepath.name,
                              classifier=classifier)
    result.source_path = filepath
    return result


def collect_image_files(path: Path) -> List[Path]:
    """Collect image files from a path (file or directory, recursive)."""
    path = Path(path)
    if path.is_file():
        return [path]

    files = []
    for root, _, filenames in os.walk(path):
        for fname in sorted(filenames):
            if Path(fname).suffix.lower() in IMAGE_EXTENSIONS:
                files.append(Path(root) / fname)
    files.sort()
    return files


def _safe_extract(filepath: Path, classifier: Optional[Classifier]) -> ExtractionResult:
    try:
        return extract_file(filepath, classifier)
    except OSError as e:
        logger.warning('Cannot read %s: %s', filepath, e)
        return ExtractionResult(source_path=filepath, errors=[str(e)])


def extract_batch(
    paths: List[Path],
    workers: int = 1,
    progress_callback: Optional[Callable] = None,
    classifier: Optional[Classifier] = None,
) -> List[ExtractionResult]:
    """Extract metadata from many files.

    Args:
        paths: Files to process.
        workers: Number of parallel workers. 1 = sequential (default).
        progress_callback: Called with (index, total, filepath, result)
            after each file.
        classifier: Optional classifier override.

    Returns:
        Results in the same order as ``paths``. Unreadable files produce a
        result with an error entry instead of raising.
    """
    paths = [Path(p) for p in paths]
    total = len(paths)

    if workers <= 1 or total <= 1:
        results = []
        for i, filepath in enumerate(paths):
            result = _safe_extract(filepath, classifier)
            results.append(result)
            if progress_callback:
                progress_callback(i + 1, total, filepath, result)
        return results

    # Pre-allocate results list to maintain order
    results: List[Optional[ExtractionResult]] = [None] * total
    completed = 0

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_safe_extract, filepath, classifier): (i, filepath)
            for i, filepath in enumerate(paths)
        }
        for future in as_completed(futures):
            index, filepath = futures[future]
            result = future.result()
            results[index] = result
            completed += 1
            if progress_callback:
                progress_callback(completed, total, filepath, result)

    return results
