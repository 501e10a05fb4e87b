"""Privacy report generation (JSON + PDF)."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from fpdf import FPDF

import exifsafe
from exifsafe.assembler import _trunc, category_counts, format_dms
from exifsafe.classifier import CATEGORY_LABELS, HIGH, MEDIUM, SAFE
from exifsafe.models import ExtractionResult


def _file_record(result: ExtractionResult) -> dict:
    """One per-file entry of the report."""
    counts = category_counts(result.tags)
    record = {
        'filename': result.source_path.name if result.source_path else
                    (result.image_info.filename if result.image_info else ''),
        'source_path': str(result.source_path) if result.source_path else None,
        'format': result.image_format,
        'has_exif': result.has_exif,
        'counts': counts,
        'gps': result.gps.to_dict() if result.gps else None,
        'tags': [t.to_dict() for t in result.tags],
        'extraction_time_ms': round(result.extraction_time_ms, 1),
    }
    if result.errors:
        record['error'] = '; '.join(result.errors)
    return record


def generate_report(
    results: List[ExtractionResult],
    output_path: Optional[Path] = None,
    pdf: bool = True,
) -> dict:
    """Build a privacy report for a set of extraction results.

    When output_path is provided the report is written as JSON, and with
    pdf=True (default) a companion PDF is written next to it.

    Args:
        results: Results from extract_file() / extract_batch().
        output_path: If provided, write the report JSON to this file.
        pdf: If True, also generate ``<output_path>.pdf``.

    Returns:
        The report as a dict.
    """
    files = [_file_record(r) for r in results]

    totals = {HIGH: 0, MEDIUM: 0, SAFE: 0}
    for rec in files:
        for category, n in rec['counts'].items():
            totals[category] = totals.get(category, 0) + n

    report = {
        'exifsafe_version': exifsafe.__version__,
        'report_id': str(uuid.uuid4()),
        'generated_at': datetime.now(timezone.utc).isoformat(),
        'summary': {
            'total_files': len(files),
            'with_exif': sum(1 for r in results if r.has_exif),
            'with_gps': sum(1 for r in results if r.gps is not None),
            'errors': sum(1 for r in results if r.errors),
            'tags': totals,
        },
        'files': files,
    }

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(report, f, indent=2, default=str)

        if pdf:
            generate_pdf_report(report, output_path.with_suffix('.pdf'))

    return report


# ---------------------------------------------------------------------------
# PDF report generation
# ---------------------------------------------------------------------------

# Category colors (R, G, B)
_CATEGORY_COLORS = {
    HIGH: (192, 48, 48),      # red
    MEDIUM: (200, 150, 0),    # amber
    SAFE: (34, 139, 34),      # forest green
}

_REQUIRED_REPORT_KEYS = {'report_id', 'summary', 'files'}


def _sanitize_for_pdf(text: str) -> str:
    """Replace characters the built-in Helvetica font cannot render.

    fpdf's core fonts only cover Latin-1; anything outside printable ASCII
    becomes '?'. The degree sign used in DMS coordinates is kept.
    """
    return ''.join(c if 0x20 <= ord(c) <= 0x7E or c == '°' else '?'
                   for c in str(text))


def _pdf_label_value(pdf: FPDF, label: str, value: str):
    """Render a label: value line."""
    pdf.set_font('Helvetica', 'B', 10)
    pdf.cell(45, 6, label, new_x='RIGHT', new_y='TOP')
    pdf.set_font('Helvetica', '', 10)
    pdf.cell(0, 6, _sanitize_for_pdf(value), new_x='LMARGIN', new_y='NEXT')


def _pdf_kv_table(pdf: FPDF, rows: list):
    """Render a 2-column key-value table with alternating row shading."""
    col_w = [65, 115]
    for i, (key, value) in enumerate(rows):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(240, 240, 245)
        pdf.set_font('Helvetica', 'B', 9)
        pdf.cell(col_w[0], 7, key, border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        pdf.set_font('Helvetica', '', 9)
        pdf.cell(col_w[1], 7, str(value), border=0, fill=fill,
                 new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)


def _pdf_files_table(pdf: FPDF, files: list):
    """Render the per-file overview (6 columns at small font)."""
    col_w = [8, 70, 22, 30, 30, 30]  # total = 190
    headers = ['#', 'Filename', 'Format', 'Most Sensitive', 'Moderate', 'Safe']

    pdf.set_font('Helvetica', 'B', 7)
    pdf.set_fill_color(60, 60, 80)
    pdf.set_text_color(255, 255, 255)
    for j, hdr in enumerate(headers):
        last = j == len(headers) - 1
        pdf.cell(col_w[j], 6, hdr, border=0, fill=True,
                 new_x='LMARGIN' if last else 'RIGHT',
                 new_y='NEXT' if last else 'TOP')
    pdf.set_text_color(0, 0, 0)

    for i, frec in enumerate(files):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(245, 245, 248)
        pdf.set_font('Helvetica', '', 7)
        counts = frec.get('counts', {})
        row_vals = [
            str(i + 1),
            _sanitize_for_pdf(_trunc(frec.get('filename', ''), 45)),
            _sanitize_for_pdf(frec.get('format') or '?'),
            str(counts.get(HIGH, 0)),
            str(counts.get(MEDIUM, 0)),
            str(counts.get(SAFE, 0)),
        ]
        for j, val in enumerate(row_vals):
            last = j == len(row_vals) - 1
            pdf.cell(col_w[j], 5.5, val, border=0, fill=fill,
                     new_x='LMARGIN' if last else 'RIGHT',
                     new_y='NEXT' if last else 'TOP')
    pdf.ln(3)


def _pdf_tag_details(pdf: FPDF, frec: dict):
    """Render the tags of one file, colored by category."""
    pdf.set_font('Helvetica', 'B', 9)
    pdf.set_text_color(30, 60, 120)
    pdf.cell(0, 6, _sanitize_for_pdf(_trunc(frec.get('filename', ''), 80)),
             new_x='LMARGIN', new_y='NEXT')
    pdf.set_text_color(0, 0, 0)

    gps = frec.get('gps')
    if gps:
        pdf.set_font('Helvetica', 'B', 8)
        pdf.set_text_color(*_CATEGORY_COLORS[HIGH])
        position = (f'{format_dms(gps["latitude"], "lat")} '
                    f'{format_dms(gps["longitude"], "lng")}')
        pdf.cell(0, 5, _sanitize_for_pdf(f'GPS position: {position}'),
                 new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)

    for tag in frec.get('tags', []):
        if pdf.get_y() > 260:
            pdf.add_page()

        category = tag.get('category', MEDIUM)
        pdf.set_font('Helvetica', 'B', 7)
        pdf.set_text_color(*_CATEGORY_COLORS.get(category, (0, 0, 0)))
        pdf.cell(5, 4.5, '', new_x='RIGHT', new_y='TOP')
        pdf.cell(20, 4.5, category.upper(), new_x='RIGHT', new_y='TOP')
        pdf.set_text_color(0, 0, 0)
        pdf.cell(45, 4.5, _sanitize_for_pdf(_trunc(tag.get('tag', '?'), 32)),
                 new_x='RIGHT', new_y='TOP')
        pdf.set_font('Helvetica', '', 7)
        value = tag.get('value')
        text = value if isinstance(value, str) else json.dumps(value, default=str)
        pdf.cell(0, 4.5, _sanitize_for_pdf(_trunc(text, 80)),
                 new_x='LMARGIN', new_y='NEXT')

    if frec.get('error'):
        pdf.set_font('Helvetica', 'I', 7)
        pdf.set_text_color(*_CATEGORY_COLORS[HIGH])
        pdf.cell(0, 4.5, _sanitize_for_pdf(_trunc(f'Error: {frec["error"]}', 100)),
                 new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
    pdf.ln(2)


def generate_pdf_report(report: dict, output_path: Path) -> Path:
    """Generate a printable PDF privacy report.

    Args:
        report: The report dict (as returned by generate_report).
        output_path: Path where the PDF file will be written.

    Returns:
        The output_path.

    Raises:
        ValueError: If the report dict is missing required keys.
    """
    output_path = Path(output_path)
    missing = _REQUIRED_REPORT_KEYS - set(report.keys())
    if missing:
        raise ValueError(
            f"Report dict is missing required keys: {', '.join(sorted(missing))}")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pdf = FPDF(orientation='P', unit='mm', format='A4')
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    # --- Header ---
    pdf.set_font('Helvetica', 'B', 16)
    pdf.cell(0, 10, 'ExifSafe Privacy Report', new_x='LMARGIN', new_y='NEXT')
    pdf.set_font('Helvetica', '', 9)
    pdf.set_text_color(120, 120, 120)
    pdf.cell(0, 5, f'ExifSafe v{report.get("exifsafe_version", "?")}',
             new_x='LMARGIN', new_y='NEXT')
    pdf.set_text_color(0, 0, 0)
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(5)

    _pdf_label_value(pdf, 'Report ID:', report.get('report_id', '-'))
    _pdf_label_value(pdf, 'Generated:', report.get('generated_at', '-'))
    pdf.ln(3)

    # --- Summary ---
    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(0, 7, 'Summary', new_x='LMARGIN', new_y='NEXT')
    summary = report.get('summary', {})
    tags = summary.get('tags', {})
    _pdf_kv_table(pdf, [
        ('Total files', str(summary.get('total_files', 0))),
        ('Files with EXIF', str(summary.get('with_exif', 0))),
        ('Files with GPS position', str(summary.get('with_gps', 0))),
        ('Errors', str(summary.get('errors', 0))),
        (CATEGORY_LABELS[HIGH][0], str(tags.get(HIGH, 0))),
        (CATEGORY_LABELS[MEDIUM][0], str(tags.get(MEDIUM, 0))),
        (CATEGORY_LABELS[SAFE][0], str(tags.get(SAFE, 0))),
    ])

    files = report.get('files', [])
    if files:
        pdf.set_font('Helvetica', 'B', 11)
        pdf.cell(0, 7, 'Files', new_x='LMARGIN', new_y='NEXT')
        _pdf_files_table(pdf, files)

        pdf.set_font('Helvetica', 'B', 11)
        pdf.cell(0, 7, 'Tag Details', new_x='LMARGIN', new_y='NEXT')
        pdf.ln(1)
        for frec in files:
            _pdf_tag_details(pdf, frec)

    # --- Footer ---
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(4)
    pdf.set_font('Helvetica', 'I', 8)
    pdf.set_text_color(100, 100, 100)
    pdf.multi_cell(0, 4,
        'Tags are grouped by privacy risk. Most Sensitive tags (location, '
        'timestamps, owner and device identifiers) should be removed before '
        'sharing. This report lists metadata only and does not modify files.'
    )
    pdf.set_text_color(0, 0, 0)

    pdf.output(str(output_path))
    return output_path
