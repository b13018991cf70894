import logging
from decimal import Decimal
from pathlib import Path

import pytest

from herotools import song as hero

from ..metadata import merge_ini_metadata


def test_that_ini_values_take_precedence(tmp_path: Path) -> None:
    ini = tmp_path / "song.ini"
    ini.write_text(
        "[Song]\n"
        "name = Through the Fire\n"
        "artist = Band\n"
        "year = 2005\n"
        "delay = 250\n"
        "preview_start_time = 45000\n"
        "song_length = 441000\n"
        "loading_phrase = 100% fun\n"
    )
    song = hero.Song()
    song.metadata = hero.Metadata(name="From the MIDI", charter="Someone")
    merge_ini_metadata(ini, song)
    assert song.metadata == hero.Metadata(
        name="Through the Fire",
        artist="Band",
        charter="Someone",
        year="2005",
        offset=Decimal("0.25"),
        preview_start=Decimal(45),
        song_length=Decimal(441),
    )


def test_that_bad_numbers_keep_the_current_value(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    ini = tmp_path / "song.ini"
    ini.write_text("[song]\ndelay = soon\n")
    song = hero.Song()
    song.metadata.offset = Decimal(1)
    with caplog.at_level(logging.WARNING):
        merge_ini_metadata(ini, song)
    assert song.metadata.offset == 1
    assert "delay" in caplog.text


def test_that_an_unreadable_file_changes_nothing(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    ini = tmp_path / "song.ini"
    ini.write_text("name = no section header\n")
    song = hero.Song()
    song.metadata.name = "Kept"
    with caplog.at_level(logging.WARNING):
        merge_ini_metadata(ini, song)
    assert song.metadata.name == "Kept"
    assert "song.ini" in caplog.text
