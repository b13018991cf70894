import re
import warnings
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

from herotools import song as hero
from herotools.utils import none_or

from .codec import decode_global_events, decode_track, unquote

SECTION_HEADER = re.compile(r"^\s*\[(?P<name>[^\]]+)\]\s*$")
KEY_VALUE = re.compile(r"^\s*(?P<key>\w+)\s*=\s*(?P<value>.*?)\s*$")
SYNC_EVENT = re.compile(
    r"^\s*(?P<position>\d+)\s*=\s*(?P<marker>B|TS)\s+(?P<values>\d+(?:\s+\d+)?)\s*$"
)

TRACK_SECTIONS: Dict[str, hero.ChartKey] = {
    hero.section_name(instrument, difficulty): (instrument, difficulty)
    for instrument in hero.Instrument
    for difficulty in hero.Difficulty
}
AUDIO_KEYS = {a.value: a for a in hero.AudioInstrument}


def load_chart(path: Path) -> hero.Song:
    lines = path.read_text(encoding="utf-8-sig").splitlines()
    return load_sections(split_sections(lines))


def split_sections(lines: List[str]) -> Dict[str, List[str]]:
    """Group lines under the [Section] header they follow, braces excluded"""
    sections: Dict[str, List[str]] = {}
    current = None
    for line in lines:
        header = SECTION_HEADER.match(line)
        if header is not None:
            current = sections.setdefault(header["name"].strip(), [])
        elif line.strip() in ("{", "}"):
            continue
        elif current is not None:
            current.append(line)

    return sections


def load_sections(sections: Dict[str, List[str]]) -> hero.Song:
    values = dict(iter_key_values(sections.get("Song", [])))
    song = hero.Song(
        resolution=load_int(values, "Resolution", hero.DEFAULT_RESOLUTION),
        metadata=load_metadata(values),
    )
    for key, audio_instrument in AUDIO_KEYS.items():
        if values.get(key):
            song.set_audio_location(audio_instrument, Path(values[key]))

    song.bpm_events, song.time_signatures = load_sync_track(
        sections.get("SyncTrack", [])
    )
    song.events = decode_global_events(sections.get("Events", []), context=song)

    for name, lines in sections.items():
        if name in ("Song", "SyncTrack", "Events"):
            continue

        try:
            instrument, difficulty = TRACK_SECTIONS[name]
        except KeyError:
            warnings.warn(f"Ignoring unknown section [{name}]")
            continue

        try:
            timeline = decode_track(lines)
        except ValueError as e:
            raise ValueError(f"Error in the [{name}] section : {e}") from e

        song.set_chart(instrument, difficulty, timeline)

    return song


def iter_key_values(lines: List[str]) -> Iterator[Tuple[str, str]]:
    for line in lines:
        match = KEY_VALUE.match(line)
        if match is not None:
            yield match["key"], unquote(match["value"])


def load_metadata(values: Dict[str, str]) -> hero.Metadata:
    year = values.get("Year", "")
    if year.startswith(","):
        year = year[1:].strip()

    return hero.Metadata(
        name=values.get("Name", ""),
        artist=values.get("Artist", ""),
        charter=values.get("Charter", ""),
        album=values.get("Album", ""),
        year=year,
        genre=values.get("Genre", ""),
        offset=load_decimal(values, "Offset"),
        preview_start=load_decimal(values, "PreviewStart"),
    )


def load_int(values: Dict[str, str], key: str, default: int) -> int:
    raw = values.get(key)
    try:
        return none_or(int, raw) or default
    except ValueError:
        raise ValueError(f"{key} should be an integer but {raw!r} was found")


def load_decimal(values: Dict[str, str], key: str) -> Decimal:
    raw = values.get(key, "0")
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{key} should be a number but {raw!r} was found")


def load_sync_track(
    lines: List[str],
) -> Tuple[List[hero.BPMEvent], List[hero.TimeSignature]]:
    bpm_events = []
    time_signatures = []
    for line in lines:
        match = SYNC_EVENT.match(line)
        if match is None:
            continue

        position = int(match["position"])
        values = [int(v) for v in match["values"].split()]
        if match["marker"] == "B":
            bpm_events.append(hero.BPMEvent(position, Decimal(values[0]) / 1000))
        else:
            denominator = 2 ** values[1] if len(values) > 1 else 4
            time_signatures.append(
                hero.TimeSignature(position, values[0], denominator)
            )

    return bpm_events, time_signatures
