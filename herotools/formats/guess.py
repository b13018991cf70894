from pathlib import Path

from .enum import Format

MIDI_MAGIC = b"MThd"
SUFFIXES = {
    ".mid": Format.MIDI,
    ".midi": Format.MIDI,
    ".chart": Format.CHART,
    ".msce": Format.MSCE,
}


def guess_format(path: Path) -> Format:
    if path.is_dir():
        raise ValueError("Can't guess chart format for a folder")

    try:
        return SUFFIXES[path.suffix.lower()]
    except KeyError:
        pass

    if looks_like_midi(path):
        return Format.MIDI

    if looks_like_chart(path):
        return Format.CHART

    raise ValueError("Unrecognized file format")


def looks_like_midi(path: Path) -> bool:
    with path.open(mode="rb") as f:
        return f.read(4) == MIDI_MAGIC


def looks_like_chart(path: Path) -> bool:
    try:
        with path.open(encoding="utf-8-sig") as f:
            for line in f:
                if line.strip():
                    return line.strip() == "[Song]"
    except UnicodeDecodeError:
        return False

    return False
