import logging
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

import pytest

from herotools import song as hero
from herotools.formats import ExportOptions, Format
from herotools.formats.chart import load_chart

from ..pipeline import Status, convert_library


def touch(path: Path, contents: bytes = b"") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(contents)
    return path


def fake_reader(path: Path) -> Optional[hero.Song]:
    """Stands in for the MIDI reader, folders with "broken" in their name hold
    nothing usable"""
    if "broken" in path.parent.name:
        return None
    song = hero.Song()
    song.metadata.name = path.parent.name
    song.set_chart(
        hero.Instrument.GUITAR,
        hero.Difficulty.EXPERT,
        hero.Timeline([hero.Note(0, 0), hero.Note(192, 1)]),
    )
    return song


def make_library(root: Path) -> None:
    touch(root / "1 first" / "notes.mid")
    touch(root / "1 first" / "song.ogg", b"song audio")
    touch(root / "1 first" / "guitar.ogg", b"guitar audio")
    touch(root / "1 first" / "album.png", b"art")
    touch(root / "1 first" / "song.ini", b"[song]\nartist = The Band\ndelay = 100\n")
    touch(root / "2 broken" / "notes.mid")
    touch(root / "3 third" / "chart.mid")


def test_that_one_bad_package_does_not_stop_the_batch(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    make_library(tmp_path / "in")
    with caplog.at_level(logging.ERROR):
        report = convert_library(tmp_path / "in", tmp_path / "out", reader=fake_reader)

    assert [r.status for r in report.results] == [
        Status.CONVERTED,
        Status.SKIPPED,
        Status.CONVERTED,
    ]
    assert (tmp_path / "out" / "1 first" / "notes.chart").is_file()
    assert not (tmp_path / "out" / "2 broken").exists()
    assert (tmp_path / "out" / "3 third" / "chart.chart").is_file()
    assert "2 broken" in caplog.text
    assert report.converted == 2
    assert report.skipped == 1
    assert report.summary() == "2 package(s) converted (0 with warnings), 1 skipped"


def test_that_reader_exceptions_are_contained(tmp_path: Path) -> None:
    touch(tmp_path / "in" / "a" / "notes.mid")
    touch(tmp_path / "in" / "b" / "notes.mid")

    def reader(path: Path) -> Optional[hero.Song]:
        if path.parent.name == "a":
            raise ValueError("not a MIDI file")
        return fake_reader(path)

    report = convert_library(tmp_path / "in", tmp_path / "out", reader=reader)
    assert [r.status for r in report.results] == [Status.SKIPPED, Status.CONVERTED]


def test_that_assets_are_copied_and_metadata_merged(tmp_path: Path) -> None:
    make_library(tmp_path / "in")
    convert_library(tmp_path / "in", tmp_path / "out", reader=fake_reader)
    out = tmp_path / "out" / "1 first"
    assert sorted(p.name for p in out.iterdir()) == [
        "album.png",
        "guitar.ogg",
        "notes.chart",
        "song.ini",
        "song.ogg",
    ]
    assert (out / "guitar.ogg").read_bytes() == b"guitar audio"
    song = load_chart(out / "notes.chart")
    assert song.metadata.name == "1 first"
    assert song.metadata.artist == "The Band"
    assert song.metadata.offset == Decimal("0.1")
    assert song.audio == {
        hero.AudioInstrument.SONG: Path("song.ogg"),
        hero.AudioInstrument.GUITAR: Path("guitar.ogg"),
    }


def test_that_audio_can_be_left_out(tmp_path: Path) -> None:
    make_library(tmp_path / "in")
    convert_library(
        tmp_path / "in", tmp_path / "out", include_audio=False, reader=fake_reader
    )
    out = tmp_path / "out" / "1 first"
    assert not (out / "song.ogg").exists()
    assert load_chart(out / "notes.chart").audio == {}


def read_tree(root: Path) -> Dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes() for p in root.rglob("*") if p.is_file()
    }


def test_that_converting_twice_gives_the_same_files(tmp_path: Path) -> None:
    make_library(tmp_path / "in")
    convert_library(tmp_path / "in", tmp_path / "out", reader=fake_reader)
    first = read_tree(tmp_path / "out")
    convert_library(tmp_path / "in", tmp_path / "out", reader=fake_reader)
    assert read_tree(tmp_path / "out") == first


def test_that_writer_reports_become_warnings(tmp_path: Path) -> None:
    touch(tmp_path / "in" / "song" / "notes.mid")

    def off_grid_reader(path: Path) -> Optional[hero.Song]:
        song = hero.Song(resolution=480)
        song.set_chart(
            hero.Instrument.DRUMS,
            hero.Difficulty.EXPERT,
            hero.Timeline([hero.Note(1, 0)]),
        )
        return song

    report = convert_library(tmp_path / "in", tmp_path / "out", reader=off_grid_reader)
    [result] = report.results
    assert result.status == Status.WARNINGS
    assert result.chart_path is not None and result.chart_path.is_file()
    assert "snapped" in result.report.full_report()
    assert report.with_warnings == 1


def test_output_format_and_resolution(tmp_path: Path) -> None:
    touch(tmp_path / "in" / "song" / "notes.mid")
    options = ExportOptions(target_resolution=480, format=Format.MSCE)
    report = convert_library(
        tmp_path / "in", tmp_path / "out", options=options, reader=fake_reader
    )
    chart_path = tmp_path / "out" / "song" / "notes.msce"
    assert report.results[0].chart_path == chart_path
    assert load_chart(chart_path).resolution == 480


def test_that_a_missing_input_folder_stops_everything(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        convert_library(tmp_path / "nope", tmp_path / "out", reader=fake_reader)
    assert not (tmp_path / "out").exists()
