"""Provides the Song class, the central model for chart sets
Every input format is converted to a Song instance
Every output format is created from a Song instance

Positions are integer ticks relative to the song's resolution, clock time is
a decimal number of seconds"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from herotools.timeline import (
    ChartEvent,
    ChartObject,
    Direction,
    Note,
    NoteFlag,
    StarPower,
    Timeline,
    check_position,
    sort_key,
)
from herotools.timemap import TimeMap

__all__ = [
    "AudioInstrument",
    "BPMEvent",
    "ChartEvent",
    "ChartObject",
    "Difficulty",
    "Direction",
    "Instrument",
    "Metadata",
    "Note",
    "NoteFlag",
    "SecondsTime",
    "Song",
    "StarPower",
    "TimeSignature",
    "Timeline",
    "section_name",
    "sort_key",
]

SecondsTime = Decimal

DEFAULT_RESOLUTION = 192


@dataclass(frozen=True)
class BPMEvent:
    position: int
    BPM: Decimal

    def __post_init__(self) -> None:
        check_position(self.position)
        if self.BPM <= 0:
            raise ValueError(f"BPM must be strictly positive : {self.BPM}")


@dataclass(frozen=True)
class TimeSignature:
    position: int
    numerator: int
    denominator: int = 4

    def __post_init__(self) -> None:
        check_position(self.position)
        if self.numerator < 1:
            raise ValueError(f"Invalid time signature numerator : {self.numerator}")
        # .chart files store the denominator as a power of two
        if self.denominator < 1 or self.denominator & (self.denominator - 1):
            raise ValueError(
                f"Time signature denominator must be a power of two : "
                f"{self.denominator}"
            )


class Difficulty(str, Enum):
    """Hardest first"""

    EXPERT = "Expert"
    HARD = "Hard"
    MEDIUM = "Medium"
    EASY = "Easy"


class Instrument(str, Enum):
    GUITAR = "Single"
    GUITAR_COOP = "DoubleGuitar"
    BASS = "DoubleBass"
    RHYTHM = "DoubleRhythm"
    KEYS = "Keyboard"
    DRUMS = "Drums"


def section_name(instrument: Instrument, difficulty: Difficulty) -> str:
    """ExpertSingle, HardDrums, ..."""
    return f"{difficulty.value}{instrument.value}"


class AudioInstrument(str, Enum):
    """Values are the keys used in the [Song] section of .chart files"""

    SONG = "MusicStream"
    GUITAR = "GuitarStream"
    BASS = "BassStream"
    RHYTHM = "RhythmStream"
    DRUM = "DrumStream"
    DRUMS_2 = "Drum2Stream"
    DRUMS_3 = "Drum3Stream"
    DRUMS_4 = "Drum4Stream"
    VOCALS = "VocalStream"
    CROWD = "CrowdStream"


@dataclass
class Metadata:
    name: str = ""
    artist: str = ""
    charter: str = ""
    album: str = ""
    year: str = ""
    genre: str = ""
    offset: SecondsTime = SecondsTime(0)
    preview_start: SecondsTime = SecondsTime(0)
    # Duration of the audio, when known
    song_length: Optional[SecondsTime] = None


ChartKey = Tuple[Instrument, Difficulty]


@dataclass(eq=False)
class Song:
    """The abstract representation of a chart set : every track of every
    instrument, plus what they share (tempo, metadata, audio)"""

    resolution: int = DEFAULT_RESOLUTION
    metadata: Metadata = field(default_factory=Metadata)
    bpm_events: List[BPMEvent] = field(default_factory=list)
    time_signatures: List[TimeSignature] = field(default_factory=list)
    events: Timeline = field(default_factory=Timeline)
    charts: Dict[ChartKey, Timeline] = field(default_factory=dict)
    audio: Dict[AudioInstrument, Path] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.resolution < 1:
            raise ValueError(
                f"resolution must be strictly positive : {self.resolution}"
            )
        self.events.context = self
        for timeline in self.charts.values():
            timeline.context = self

    def __eq__(self, other: object) -> bool:
        """Empty charts don't count"""
        if not isinstance(other, Song):
            return NotImplemented
        return (
            self.resolution == other.resolution
            and self.metadata == other.metadata
            and self.bpm_events == other.bpm_events
            and self.time_signatures == other.time_signatures
            and self.events == other.events
            and dict(self.iter_non_empty_charts())
            == dict(other.iter_non_empty_charts())
            and self.audio == other.audio
        )

    def get_chart(self, instrument: Instrument, difficulty: Difficulty) -> Timeline:
        """Get the chart for this instrument and difficulty, creating an empty
        one if needed"""
        key = (instrument, difficulty)
        if key not in self.charts:
            self.charts[key] = Timeline(context=self)
        return self.charts[key]

    def set_chart(
        self, instrument: Instrument, difficulty: Difficulty, timeline: Timeline
    ) -> None:
        timeline.context = self
        self.charts[(instrument, difficulty)] = timeline

    def set_audio_location(self, instrument: AudioInstrument, path: Path) -> None:
        self.audio[instrument] = path

    def iter_charts(self) -> Iterator[Tuple[ChartKey, Timeline]]:
        """Instruments in section order, hardest difficulty first"""
        for instrument in Instrument:
            for difficulty in Difficulty:
                key = (instrument, difficulty)
                if key in self.charts:
                    yield key, self.charts[key]

    def iter_non_empty_charts(self) -> Iterator[Tuple[ChartKey, Timeline]]:
        return ((k, t) for k, t in self.iter_charts() if len(t) > 0)

    @property
    def length(self) -> SecondsTime:
        return self.metadata.song_length or SecondsTime(0)

    def time_map(self) -> TimeMap:
        return TimeMap.from_song(self)

    def seconds_at(self, position: int) -> SecondsTime:
        return self.time_map().seconds_at(position)
