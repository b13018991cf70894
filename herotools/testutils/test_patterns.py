import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager, Iterator

from hypothesis import note

from herotools import song
from herotools.formats import LOADERS, WRITERS, ExportOptions
from herotools.formats.guess import guess_format


@contextmanager
def open_temp_dir() -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


def dump_and_load_then_compare(
    song: song.Song,
    options: ExportOptions,
    temp_path: Callable[[], ContextManager[Path]] = open_temp_dir,
) -> None:
    loader = LOADERS[options.format]
    writer = WRITERS[options.format]
    with temp_path() as folder_path:
        file_path = folder_path / f"notes{options.format.suffix}"
        report = writer(song, file_path, options)
        assert not report.has_errors, report.full_report()
        note(f"Wrote to {file_path} :\n{file_path.read_text(encoding='utf-8')}")
        assert guess_format(file_path) == options.format
        recovered_song = loader(file_path)
        assert recovered_song == song
