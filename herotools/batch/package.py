"""Finding song packages (a MIDI file plus its audio, art and song.ini) in a
library folder"""

from dataclasses import dataclass, field
from itertools import count
from pathlib import Path
from typing import AbstractSet, Dict, Iterator, List, Optional

from herotools import song as hero

NOTATION_SUFFIXES = (".mid", ".midi")
INI_NAME = "song.ini"
ALBUM_ART_NAMES = ("album.png", "album.jpg")
AUDIO_SUFFIXES = (".ogg", ".opus", ".mp3", ".wav")
AUDIO_STEMS = {
    "song": hero.AudioInstrument.SONG,
    "guitar": hero.AudioInstrument.GUITAR,
    "bass": hero.AudioInstrument.BASS,
    "rhythm": hero.AudioInstrument.RHYTHM,
    "drums_1": hero.AudioInstrument.DRUM,
    "drums_2": hero.AudioInstrument.DRUMS_2,
    "drums_3": hero.AudioInstrument.DRUMS_3,
    "drums_4": hero.AudioInstrument.DRUMS_4,
    "vocals": hero.AudioInstrument.VOCALS,
    "crowd": hero.AudioInstrument.CROWD,
}


@dataclass
class SongPackage:
    directory: Path
    midi_path: Path
    # Name of the folder the package is exported to
    output_name: str
    ini_path: Optional[Path] = None
    album_art_path: Optional[Path] = None
    audio_paths: Dict[hero.AudioInstrument, Path] = field(default_factory=dict)


def discover_packages(root: Path, recursive: bool = False) -> List[SongPackage]:
    """Every folder holding a MIDI file becomes a package, the root folder
    included. Without recursive only the root and its direct children are
    looked at. Folders are visited in sorted order so the result does not
    depend on the filesystem"""
    packages: List[SongPackage] = []
    for directory in iter_directories(root, recursive):
        package = make_package(
            directory, already_chosen={p.output_name for p in packages}
        )
        if package is not None:
            packages.append(package)

    return packages


def iter_directories(root: Path, recursive: bool) -> Iterator[Path]:
    yield root
    for child in sorted(p for p in root.iterdir() if p.is_dir()):
        if recursive:
            yield from iter_directories(child, recursive)
        else:
            yield child


def make_package(
    directory: Path, already_chosen: AbstractSet[str]
) -> Optional[SongPackage]:
    files = sorted(p for p in directory.iterdir() if p.is_file())
    midi_files = [p for p in files if p.suffix.lower() in NOTATION_SUFFIXES]
    if not midi_files:
        return None

    files_by_name = {p.name.lower(): p for p in files}
    album_art = (files_by_name.get(name) for name in ALBUM_ART_NAMES)
    return SongPackage(
        directory=directory,
        midi_path=midi_files[0],
        output_name=available_name(directory.resolve().name, already_chosen),
        ini_path=files_by_name.get(INI_NAME),
        album_art_path=next((p for p in album_art if p is not None), None),
        audio_paths=find_audio(files),
    )


def find_audio(files: List[Path]) -> Dict[hero.AudioInstrument, Path]:
    """The first suffix in AUDIO_SUFFIXES wins when a stem comes in several
    encodings"""
    res: Dict[hero.AudioInstrument, Path] = {}
    for suffix in AUDIO_SUFFIXES:
        for path in files:
            instrument = AUDIO_STEMS.get(path.stem.lower())
            if (
                instrument is not None
                and path.suffix.lower() == suffix
                and instrument not in res
            ):
                res[instrument] = path

    return res


def available_name(name: str, already_chosen: AbstractSet[str]) -> str:
    for dedup_index in count(start=0):
        candidate = name if dedup_index == 0 else f"{name}-{dedup_index}"
        if candidate not in already_chosen:
            return candidate

    raise RuntimeError("unreachable")
