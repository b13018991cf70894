"""Command Line Interface"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from herotools.batch import PackageResult, convert_library
from herotools.formats import LOADERS, WRITERS
from herotools.formats.enum import Format
from herotools.formats.guess import guess_format
from herotools.version import __version__

from .helpers import common_export_options, make_export_options


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log progress for each package")
def cli(verbose: bool) -> None:
    """Guitar Hero style chart conversion tools"""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s : %(message)s",
    )


@cli.command()
@click.argument(
    "input_dir",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "-r",
    "--recursive",
    is_flag=True,
    help="Look for song packages in every subfolder, not just the first level",
)
@click.option(
    "--audio/--no-audio",
    "include_audio",
    default=True,
    help="Copy the audio files next to the converted charts",
)
@common_export_options
def batch(
    input_dir: Path,
    output_dir: Path,
    recursive: bool,
    include_audio: bool,
    export_options: Optional[Dict[str, Any]] = None,
) -> None:
    """Convert every MIDI song package in INPUT_DIR to a chart in OUTPUT_DIR.

    A package that fails to convert is reported and skipped, the others
    are still converted."""
    options = make_export_options(export_options)

    def echo_result(result: PackageResult) -> None:
        click.echo(result.describe())
        if result.report.has_errors:
            click.echo(result.report.full_report())

    try:
        report = convert_library(
            input_dir,
            output_dir,
            options=options,
            recursive=recursive,
            include_audio=include_audio,
            on_result=echo_result,
        )
    except NotADirectoryError as e:
        raise click.UsageError(str(e))

    click.echo(report.summary())


@cli.command()
@click.argument("src", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("dst", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--input-format",
    "input_format",
    type=click.Choice([f.value for f in LOADERS.keys()]),
    help="Input file format, guessed from the file if not given",
)
@common_export_options
def convert(
    src: Path,
    dst: Path,
    input_format: Optional[str],
    export_options: Optional[Dict[str, Any]] = None,
) -> None:
    """Convert SRC to DST"""
    if input_format is None:
        format_ = guess_format(src)
        click.echo(f"Detected input file format : {format_.value}")
    else:
        format_ = Format(input_format)

    options = make_export_options(export_options)
    song = LOADERS[format_](src)
    if song is None:
        raise click.ClickException(f"Nothing to convert in {src}")

    report = WRITERS[options.format](song, dst, options)
    if report.has_errors:
        click.echo(report.full_report())


if __name__ == "__main__":
    cli()
