"""CLI interface for ExifSafe -- scan, gps, info, report subcommands."""

import json
import sys
import time
from pathlib import Path

import click

import exifsafe
from exifsafe import log
from exifsafe.assembler import category_counts, format_dms
from exifsafe.classifier import CATEGORY_LABELS, HIGH, MEDIUM, SAFE, Classifier, ClassifierConfig
from exifsafe.extractor import collect_image_files, extract_batch, extract_file
from exifsafe.report import generate_report


def _load_classifier(config):
    """Build a Classifier, merging a user config file when given."""
    if not config:
        return Classifier()
    try:
        return Classifier(ClassifierConfig.from_json(config))
    except (OSError, ValueError) as e:
        click.echo(log.cli_error(f'Error: cannot load config {config}: {e}'), err=True)
        sys.exit(1)


def _collect(paths):
    files = []
    for p in paths:
        files.extend(collect_image_files(Path(p)))
    return files


def _counts_line(counts) -> str:
    return ', '.join(
        log.cli_category(c, f'{counts.get(c, 0)} {c}') for c in (HIGH, MEDIUM, SAFE))


def _display(value) -> str:
    return value if isinstance(value, str) else json.dumps(value, default=str)


@click.group()
@click.version_option(version=exifsafe.__version__, prog_name='exifsafe')
@click.option('--debug', is_flag=True, help='Show decoder diagnostics on stderr.')
def main(debug):
    """ExifSafe -- EXIF metadata extraction and privacy classification.

    Decode the EXIF block of JPEG images and label every tag as high,
    medium or safe privacy risk.
    """
    log.configure_logging(verbose=debug)


@main.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True))
@click.option('--category', type=click.Choice([HIGH, MEDIUM, SAFE]),
              help='Only list tags of this category.')
@click.option('--verbose', '-v', is_flag=True, help='List every tag.')
@click.option('--json-out', type=click.Path(), help='Write results as JSON to file.')
@click.option('--workers', '-w', type=int, default=1,
              help='Number of parallel workers (default: 1, sequential).')
@click.option('--config', type=click.Path(exists=True),
              help='JSON file with additional high/medium/safe tag names.')
@click.option('--log', 'log_path', type=click.Path(), help='Write log to file.')
def scan(paths, category, verbose, json_out, workers, config, log_path):
    """Extract and classify metadata (read-only).

    Each PATH can be a single file or a directory to scan recursively.
    """
    classifier = _load_classifier(config)
    files = _collect(paths)

    if not files:
        click.echo('No image files found.')
        return

    log_file = open(log_path, 'w') if log_path else None

    def log_line(line):
        if log_file:
            log_file.write(line + '\n')
            log_file.flush()

    workers_str = f', {workers} workers' if workers > 1 else ''
    click.echo(log.cli_header(f'ExifSafe v{exifsafe.__version__}: '
                              f'scanning {len(files)} file(s){workers_str}'))
    log_line(log.log_info(f'Scanning {len(files)} file(s)'))
    t0 = time.time()

    def progress(i, total, filepath, result):
        if result.errors:
            click.echo(f'  [{i}/{total}] {filepath.name} | '
                       + log.cli_error(f'ERROR: {"; ".join(result.errors)}'))
            log_line(log.log_error(f'{filepath}: {"; ".join(result.errors)}'))
            return
        counts = category_counts(result.tags)
        gps_str = log.cli_error(' [GPS]') if result.gps else ''
        click.echo(f'  [{i}/{total}] {filepath.name} | {_counts_line(counts)}{gps_str}')
        if result.has_exif:
            log_line(log.log_info(
                f'{filepath}: {counts[HIGH]} high, {counts[MEDIUM]} medium, '
                f'{counts[SAFE]} safe'))
        else:
            log_line(log.log_warn(f'{filepath}: no EXIF data'))

        if verbose or category:
            for tag in result.tags:
                if category and tag.category != category:
                    continue
                click.echo(f"      {log.cli_category(tag.category, f'{tag.category.upper():<6}')} "
                           f"{tag.tag}: {_display(tag.value)}")

    results = extract_batch(files, workers=workers, progress_callback=progress,
                            classifier=classifier)

    errored = sum(1 for r in results if r.errors)
    with_gps = sum(1 for r in results if r.gps is not None)
    high_files = sum(1 for r in results if r.tags_in(HIGH))
    done = f'\nDone in {time.time() - t0:.1f}s'
    click.echo(log.cli_success(done) if not errored else log.cli_warning(done))
    click.echo(f'  Total:               {len(results)}')
    click.echo(f'  With sensitive tags: {high_files}')
    click.echo(f'  With GPS position:   {with_gps}')
    click.echo(f'  Errors:              {errored}')

    if json_out:
        payload = []
        for r in results:
            d = r.to_dict()
            d['file'] = str(r.source_path)
            if category:
                d['tags'] = [t for t in d['tags'] if t['category'] == category]
            payload.append(d)
        with open(json_out, 'w') as f:
            json.dump(payload, f, indent=2, default=str)
        click.echo(log.cli_info(f'Results written to {json_out}'))

    if log_file:
        log_file.write(log.log_info(f'Done: {len(results)} file(s), {errored} error(s)') + '\n')
        log_file.close()

    if errored > 0:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def gps(path):
    """Show the GPS position embedded in an image."""
    result = extract_file(Path(path))
    if result.errors:
        click.echo(log.cli_error(f'Error: {"; ".join(result.errors)}'), err=True)
        sys.exit(1)
    if result.gps is None:
        click.echo(log.cli_success('No GPS data found.'))
        return

    pos = result.gps
    click.echo(log.cli_warning('GPS position found (this reveals where the image was taken)'))
    click.echo(f'  Latitude:  {pos.latitude:.6f}  ({format_dms(pos.latitude, "lat")})')
    click.echo(f'  Longitude: {pos.longitude:.6f}  ({format_dms(pos.longitude, "lng")})')
    if pos.altitude is not None:
        click.echo(f'  Altitude:  {pos.altitude:.1f} m')


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--config', type=click.Path(exists=True),
              help='JSON file with additional high/medium/safe tag names.')
def info(path, config):
    """Show image information and a privacy summary for one file."""
    filepath = Path(path)

    if filepath.is_dir():
        click.echo(log.cli_error('Error: info command requires a single file, '
                                 'not a directory.'), err=True)
        sys.exit(1)

    result = extract_file(filepath, _load_classifier(config))
    image = result.image_info

    click.echo(log.cli_bold(f'File: {filepath.name}'))
    click.echo(f'Format: {result.image_format}')
    click.echo(f'Size: {image.size / 1e3:.1f} KB')
    if image.width and image.height:
        click.echo(f'Dimensions: {image.width} x {image.height}')
    click.echo(f'EXIF: {"present" if result.has_exif else "none"}')
    click.echo(f'GPS: {"present" if result.gps else "none"}')

    click.echo(log.cli_separator())
    counts = category_counts(result.tags)
    for c in (HIGH, MEDIUM, SAFE):
        label, blurb = CATEGORY_LABELS[c]
        click.echo(log.cli_category(c, f'{label:<22}') + f'{counts[c]:>4}  ' + log.cli_dim(blurb))

    for err in result.errors:
        click.echo(log.cli_error(f'Error: {err}'))
    if result.errors:
        sys.exit(1)


@main.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True))
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Write the JSON report to this path.')
@click.option('--pdf/--no-pdf', default=True, help='Also write a companion PDF.')
@click.option('--workers', '-w', type=int, default=1,
              help='Number of parallel workers (default: 1, sequential).')
@click.option('--config', type=click.Path(exists=True),
              help='JSON file with additional high/medium/safe tag names.')
def report(paths, output, pdf, workers, config):
    """Write a JSON (and PDF) privacy report for images."""
    classifier = _load_classifier(config)
    files = _collect(paths)
    if not files:
        click.echo('No image files found.')
        return

    results = extract_batch(files, workers=workers, classifier=classifier)
    output_path = Path(output)
    doc = generate_report(results, output_path=output_path, pdf=pdf)

    summary = doc['summary']
    click.echo(log.cli_info(f'Report: {output_path}'))
    if pdf:
        click.echo(log.cli_info(f'PDF:    {output_path.with_suffix(".pdf")}'))
    click.echo(f'  {summary["total_files"]} file(s), {summary["with_gps"]} with GPS, '
               f'{summary["errors"]} error(s)')

    if summary['errors'] > 0:
        sys.exit(1)


if __name__ == '__main__':
    main()
