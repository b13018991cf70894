"""Batch conversion of a whole song library.

Packages are converted one at a time. Whatever goes wrong with a package
ends up in its own PackageResult and the batch moves on to the next one,
only a missing input folder stops everything (before any work is done)."""

import logging
import shutil
import warnings
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from herotools import song as hero
from herotools.formats import WRITERS, ErrorReport, ExportOptions
from herotools.formats.midi import load_midi
from herotools.formats.typing import Loader, Writer

from .metadata import merge_ini_metadata
from .package import INI_NAME, SongPackage, discover_packages

logger = logging.getLogger(__name__)


class Status(str, Enum):
    CONVERTED = "converted"
    WARNINGS = "converted with warnings"
    SKIPPED = "skipped"


@dataclass
class PackageResult:
    package: SongPackage
    status: Status
    chart_path: Optional[Path] = None
    message: str = ""
    report: ErrorReport = field(default_factory=ErrorReport)

    def describe(self) -> str:
        line = f"[{self.status.value}] {self.package.directory}"
        if self.message:
            line += f" : {self.message}"
        return line


@dataclass
class BatchReport:
    results: List[PackageResult] = field(default_factory=list)

    def count(self, *statuses: Status) -> int:
        return sum(1 for r in self.results if r.status in statuses)

    @property
    def converted(self) -> int:
        """Packages that got a chart written, warnings or not"""
        return self.count(Status.CONVERTED, Status.WARNINGS)

    @property
    def with_warnings(self) -> int:
        return self.count(Status.WARNINGS)

    @property
    def skipped(self) -> int:
        return self.count(Status.SKIPPED)

    def summary(self) -> str:
        return (
            f"{self.converted} package(s) converted "
            f"({self.with_warnings} with warnings), {self.skipped} skipped"
        )


def convert_library(
    input_dir: Path,
    output_dir: Path,
    options: ExportOptions = ExportOptions(),
    recursive: bool = False,
    include_audio: bool = True,
    reader: Loader = load_midi,
    writer: Optional[Writer] = None,
    on_result: Optional[Callable[[PackageResult], None]] = None,
) -> BatchReport:
    """Convert every song package found in input_dir, each one to a folder of
    the same name in output_dir. on_result is called as soon as a package is
    done"""
    if not input_dir.is_dir():
        raise NotADirectoryError(f"Input directory not found : {input_dir}")

    output_dir.mkdir(parents=True, exist_ok=True)
    packages = discover_packages(input_dir, recursive=recursive)
    logger.info("Found %d song package(s) in %s", len(packages), input_dir)
    report = BatchReport()
    for package in packages:
        result = convert_package(
            package,
            output_dir,
            options=options,
            reader=reader,
            writer=writer,
            include_audio=include_audio,
        )
        report.results.append(result)
        if on_result is not None:
            on_result(result)

    logger.info(report.summary())
    return report


def convert_package(
    package: SongPackage,
    output_root: Path,
    options: ExportOptions = ExportOptions(),
    reader: Loader = load_midi,
    writer: Optional[Writer] = None,
    include_audio: bool = True,
) -> PackageResult:
    """Never raises because of the package itself, problems are logged and
    end up in the returned result"""
    logger.info("Converting %s", package.directory)
    report = ErrorReport()
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            song = reader(package.midi_path)
    except Exception as e:
        logger.error("Could not read %s : %s", package.midi_path, e)
        logger.debug("Traceback :", exc_info=True)
        return PackageResult(
            package, Status.SKIPPED, message=f"could not read {package.midi_path.name}"
        )

    for warning in caught:
        report.add(f"{package.midi_path.name} : {warning.message}")

    if song is None:
        logger.error("Nothing usable in %s, skipping", package.midi_path)
        return PackageResult(
            package,
            Status.SKIPPED,
            message=f"nothing usable in {package.midi_path.name}",
            report=report,
        )

    if writer is None:
        writer = WRITERS[options.format]

    try:
        chart_path, writer_report = export_package(
            package, song, output_root, options, writer, include_audio
        )
    except Exception as e:
        logger.error("Could not export %s : %s", package.directory, e)
        logger.debug("Traceback :", exc_info=True)
        return PackageResult(package, Status.SKIPPED, message=str(e), report=report)

    report.errors.extend(writer_report.errors)
    if report.has_errors:
        logger.warning(
            "Warnings/Errors while processing %s :\n%s",
            package.directory,
            report.full_report(),
        )
        return PackageResult(package, Status.WARNINGS, chart_path, report=report)

    return PackageResult(package, Status.CONVERTED, chart_path, report=report)


def export_package(
    package: SongPackage,
    song: hero.Song,
    output_root: Path,
    options: ExportOptions,
    writer: Writer,
    include_audio: bool,
) -> Tuple[Path, ErrorReport]:
    """Copy the package's files next to the chart then write it. Existing
    files are overwritten so converting again gives the same folder"""
    output_dir = output_root / package.output_name
    output_dir.mkdir(parents=True, exist_ok=True)
    if include_audio:
        for instrument, path in package.audio_paths.items():
            destination = output_dir / path.name
            shutil.copyfile(path, destination)
            song.set_audio_location(instrument, destination)

    if package.album_art_path is not None:
        art = package.album_art_path
        shutil.copyfile(art, output_dir / art.name.lower())

    if package.ini_path is not None:
        shutil.copyfile(package.ini_path, output_dir / INI_NAME)
        merge_ini_metadata(package.ini_path, song)

    chart_path = output_dir / f"{package.midi_path.stem}{options.format.suffix}"
    return chart_path, writer(song, chart_path, options)
