from pathlib import Path
from typing import Optional, Protocol

from herotools.song import Song

from .export import ErrorReport, ExportOptions


class Loader(Protocol):
    """A Loader deserializes a file to a Song object. It returns None when the
    file holds nothing usable and raises when the file can't be read at all"""

    def __call__(self, path: Path) -> Optional[Song]:
        ...


class Writer(Protocol):
    """A Writer serializes a Song to the given path according to the export
    options and reports what went wrong along the way"""

    def __call__(self, song: Song, path: Path, options: ExportOptions) -> ErrorReport:
        ...
