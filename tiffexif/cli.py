"""CLI interface for tiffexif -- dump, rewrite, info subcommands."""

import io
import json
import sys
from pathlib import Path

import click

import tiffexif
from tiffexif.config import CodecConfig
from tiffexif.helpers import decode_values, format_value, select_color_space
from tiffexif.log import (
    cli_bold,
    cli_dim,
    cli_error,
    cli_header,
    cli_info,
    cli_separator,
    cli_success,
    cli_warning,
    configure_debug_logging,
    log_error,
    log_info,
    log_warn,
)
from tiffexif.models import ExifColorSpace, ExifSection
from tiffexif.parser import parse, read_header
from tiffexif.writer import ExifWriter

# Prefix that JPEG APP1 / WebP EXIF chunks put in front of the TIFF header
EXIF_PREAMBLE = b'Exif\x00\x00'

_COLOR_SPACE_CHOICES = {
    'srgb': ExifColorSpace.SRGB,
    'adobe': ExifColorSpace.ADOBE_RGB,
    'uncalibrated': ExifColorSpace.UNCALIBRATED,
}


def read_exif_blob(path) -> bytes:
    """Read a raw EXIF blob from disk, dropping a leading ``Exif\\0\\0``."""
    data = Path(path).read_bytes()
    if data.startswith(EXIF_PREAMBLE):
        data = data[len(EXIF_PREAMBLE):]
    return data


def _load_config(config_path):
    if not config_path:
        return CodecConfig.default()
    try:
        return CodecConfig.from_json(config_path)
    except (OSError, ValueError) as e:
        click.echo(cli_error(f'Error: cannot load config {config_path}: {e}'), err=True)
        sys.exit(1)


def _json_value(value):
    decoded = decode_values(value)
    if isinstance(decoded, bytes):
        decoded = decoded.hex()
    elif isinstance(decoded, list):
        decoded = [list(item) if isinstance(item, tuple) else item for item in decoded]
    return {'type': value.type.name, 'count': value.count, 'value': decoded}


@click.group()
@click.version_option(version=tiffexif.__version__, prog_name='tiffexif')
@click.option('--debug', is_flag=True, help='Log parser and writer traces to stderr.')
def main(debug):
    """tiffexif -- read and write TIFF-structured EXIF metadata.

    Works on raw EXIF blobs as embedded in JPEG, WebP or PNG containers.
    """
    configure_debug_logging(debug)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--section', type=click.Choice([s.value for s in ExifSection], case_sensitive=False),
              help='Only show tags from this section.')
@click.option('--json-out', type=click.Path(), help='Write parsed tags as JSON to file.')
@click.option('--verbose', '-v', is_flag=True, help='Show value types and counts.')
def dump(path, section, json_out, verbose):
    """Print every tag in an EXIF blob.

    PATH is a raw EXIF blob, optionally starting with the Exif\\0\\0 preamble.
    """
    values = parse(read_exif_blob(path))
    if not values:
        click.echo(cli_error(f'No EXIF data found in {path}'), err=True)
        sys.exit(1)

    sections = values.sections()
    if section:
        wanted = ExifSection.from_name(section)
        sections = [s for s in sections if s is wanted]

    results_json = {}
    for current in sections:
        tags = values.section(current)
        click.echo(cli_header(f'[{current.value}]') + cli_dim(f' {len(tags)} tag(s)'))
        for tag_id in sorted(tags):
            value = tags[tag_id]
            name = current.tag_name(tag_id)
            line = f'  {name:<28} {format_value(value)}'
            if verbose:
                line += cli_dim(f'  ({tag_id}, {value.type.name}[{value.count}])')
            click.echo(line)
            results_json.setdefault(current.value, {})[name] = _json_value(value)

    if json_out:
        with open(json_out, 'w') as f:
            json.dump(results_json, f, indent=2)
        click.echo(cli_success(f'Results written to {json_out}'))


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output', type=click.Path(dir_okay=False))
@click.option('--width', type=click.IntRange(0, 0xFFFFFFFF), required=True,
              help='Image width in pixels.')
@click.option('--height', type=click.IntRange(0, 0xFFFFFFFF), required=True,
              help='Image height in pixels.')
@click.option('--color-space', type=click.Choice(sorted(_COLOR_SPACE_CHOICES)),
              help='Override the color space found in the source blob.')
@click.option('--config', 'config_path', type=click.Path(exists=True),
              help='JSON codec config (extra allowed Image tags, skipped tags).')
@click.option('--log', type=click.Path(), help='Write log to file.')
def rewrite(path, output, width, height, color_space, config_path, log):
    """Re-encode an EXIF blob for an image of the given size.

    The output is little-endian with orientation reset to top-left and
    the pixel dimensions replaced.  Image tags outside the allowlist are
    dropped.
    """
    config = _load_config(config_path)
    log_file = open(log, 'w') if log else None

    def log_msg(msg):
        click.echo(msg)
        if log_file:
            log_file.write(log_info(click.unstyle(msg)) + '\n')
            log_file.flush()

    try:
        values = parse(read_exif_blob(path), config)
        if values:
            log_msg(f'Read {len(values)} tag(s) from {path}')
        else:
            click.echo(cli_warning(f'No EXIF data found in {path}, writing defaults only'))
            if log_file:
                log_file.write(log_warn(f'No EXIF data found in {path}') + '\n')

        detected, entries, icc_profile = select_color_space(values)
        chosen = _COLOR_SPACE_CHOICES[color_space] if color_space else detected
        if icc_profile is not None:
            log_msg(cli_dim(f'Embedded ICC profile ({len(icc_profile)} bytes) not carried over'))

        try:
            blob = ExifWriter(entries, width, height, chosen, config).create_exif_blob()
        except ValueError as e:
            click.echo(cli_error(f'Error: {e}'), err=True)
            if log_file:
                log_file.write(log_error(str(e)) + '\n')
            sys.exit(1)

        with open(output, 'wb') as f:
            f.write(blob)

        log_msg(f'Color space: {cli_info(chosen.name)}')
        log_msg(cli_success(f'Wrote {len(blob)} bytes to {output}'))
    finally:
        if log_file:
            log_file.close()


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def info(path):
    """Show byte order and tag counts per section."""
    data = read_exif_blob(path)
    header = read_header(io.BytesIO(data))
    if header is None:
        click.echo(cli_error(f'Error: {path} is not TIFF-structured EXIF data'), err=True)
        sys.exit(1)

    values = parse(data)
    click.echo(cli_bold(f'File: {Path(path).name}'))
    click.echo(f'Size: {len(data)} bytes')
    click.echo(f'Byte order: {header.byte_order.name.lower()}-endian '
               f'({header.byte_order.marker.decode("ascii")})')
    click.echo(f'First IFD offset: {header.first_ifd_offset}')
    click.echo(cli_separator())
    for section in ExifSection:
        count = len(values.section(section))
        label = cli_info(f'{section.value:<8}') if count else cli_dim(f'{section.value:<8}')
        click.echo(f'{label} {count} tag(s)')
    click.echo(cli_separator())
    click.echo(f'Total: {len(values)} tag(s)')
