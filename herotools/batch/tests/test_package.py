from pathlib import Path

from herotools import song as hero

from ..package import available_name, discover_packages


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_that_a_deeply_nested_song_is_found(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    (tmp_path / "unrelated" / "also empty").mkdir(parents=True)
    midi = touch(tmp_path / "artist" / "album" / "notes.mid")
    packages = discover_packages(tmp_path, recursive=True)
    assert len(packages) == 1
    assert packages[0].midi_path == midi
    assert packages[0].output_name == "album"


def test_that_a_folder_without_midi_files_gives_nothing(tmp_path: Path) -> None:
    touch(tmp_path / "song" / "song.ogg")
    touch(tmp_path / "song" / "song.ini")
    assert discover_packages(tmp_path, recursive=True) == []


def test_that_non_recursive_discovery_stops_at_the_first_level(
    tmp_path: Path,
) -> None:
    touch(tmp_path / "root.mid")
    touch(tmp_path / "first" / "notes.mid")
    touch(tmp_path / "first" / "second" / "notes.mid")
    directories = [p.directory for p in discover_packages(tmp_path)]
    assert directories == [tmp_path, tmp_path / "first"]
    recursive = [p.directory for p in discover_packages(tmp_path, recursive=True)]
    assert recursive == [
        tmp_path,
        tmp_path / "first",
        tmp_path / "first" / "second",
    ]


def test_that_package_files_are_matched(tmp_path: Path) -> None:
    song_dir = tmp_path / "Song"
    touch(song_dir / "notes.MID")
    touch(song_dir / "other.mid")
    touch(song_dir / "Song.ini")
    touch(song_dir / "album.jpg")
    touch(song_dir / "guitar.ogg")
    touch(song_dir / "guitar.mp3")
    touch(song_dir / "drums_2.opus")
    touch(song_dir / "preview.ogg")
    [package] = discover_packages(tmp_path)
    assert package.midi_path == song_dir / "notes.MID"
    assert package.ini_path == song_dir / "Song.ini"
    assert package.album_art_path == song_dir / "album.jpg"
    assert package.audio_paths == {
        hero.AudioInstrument.GUITAR: song_dir / "guitar.ogg",
        hero.AudioInstrument.DRUMS_2: song_dir / "drums_2.opus",
    }


def test_that_output_names_are_unique(tmp_path: Path) -> None:
    touch(tmp_path / "a" / "Song" / "notes.mid")
    touch(tmp_path / "b" / "Song" / "notes.mid")
    touch(tmp_path / "c" / "Song-1" / "notes.mid")
    packages = discover_packages(tmp_path, recursive=True)
    assert [p.output_name for p in packages] == ["Song", "Song-1", "Song-1-1"]


def test_available_name() -> None:
    assert available_name("Song", set()) == "Song"
    assert available_name("Song", {"Song", "Song-1"}) == "Song-2"
