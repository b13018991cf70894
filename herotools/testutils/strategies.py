"""
Hypothesis strategies to generate chart objects, timelines and songs
"""

import string
from decimal import Decimal
from pathlib import Path
from typing import Dict, List

import hypothesis.strategies as st

from herotools.song import (
    AudioInstrument,
    BPMEvent,
    ChartEvent,
    ChartObject,
    Difficulty,
    Instrument,
    Metadata,
    Note,
    NoteFlag,
    Song,
    StarPower,
    TimeSignature,
    Timeline,
)

positions = st.integers(min_value=0, max_value=100_000)
lengths = st.integers(min_value=0, max_value=10_000)

# Flags are stored once per position in .chart files
FLAG_COMBINATIONS = [
    NoteFlag.NONE,
    NoteFlag.FORCED,
    NoteFlag.TAP,
    NoteFlag.FORCED | NoteFlag.TAP,
]

# Local events only keep their first word
event_names = st.text(
    alphabet=string.ascii_letters + string.digits + "_", min_size=1, max_size=16
)

# No quotes or line breaks
simple_text = st.text(alphabet=string.ascii_letters + string.digits + " -_!?&'")


@st.composite
def note(
    draw: st.DrawFn,
    position_strat: st.SearchStrategy[int] = positions,
    sustain_strat: st.SearchStrategy[int] = lengths,
) -> Note:
    return Note(
        position=draw(position_strat),
        fret_type=draw(st.integers(min_value=0, max_value=4)),
        sustain_length=draw(sustain_strat),
    )


@st.composite
def star_power(
    draw: st.DrawFn,
    position_strat: st.SearchStrategy[int] = positions,
    length_strat: st.SearchStrategy[int] = lengths,
) -> StarPower:
    return StarPower(position=draw(position_strat), length=draw(length_strat))


@st.composite
def chart_event(
    draw: st.DrawFn,
    position_strat: st.SearchStrategy[int] = positions,
    name_strat: st.SearchStrategy[str] = event_names,
) -> ChartEvent:
    return ChartEvent(position=draw(position_strat), name=draw(name_strat))


@st.composite
def chart_objects(
    draw: st.DrawFn,
    position_strat: st.SearchStrategy[int] = positions,
    max_size: int = 64,
) -> List[ChartObject]:
    """Notes sharing a position all get the same flags"""
    object_strat = st.one_of(
        note(position_strat), star_power(position_strat), chart_event(position_strat)
    )
    objects: List[ChartObject] = draw(st.lists(object_strat, max_size=max_size))
    flags_by_position: Dict[int, NoteFlag] = {}
    for obj in objects:
        if isinstance(obj, Note):
            if obj.position not in flags_by_position:
                flags = draw(st.sampled_from(FLAG_COMBINATIONS))
                flags_by_position[obj.position] = flags
            obj.flags = flags_by_position[obj.position]

    return objects


@st.composite
def timeline(
    draw: st.DrawFn,
    position_strat: st.SearchStrategy[int] = positions,
    max_size: int = 64,
) -> Timeline:
    return Timeline(draw(chart_objects(position_strat, max_size)))


@st.composite
def bpms(draw: st.DrawFn) -> Decimal:
    d: Decimal = draw(st.decimals(min_value=1, max_value=1000, places=3))
    return d


@st.composite
def bpm_events(draw: st.DrawFn) -> List[BPMEvent]:
    """Always starts at tick 0, no two events on the same tick"""
    others = draw(st.sets(st.integers(min_value=1, max_value=100_000), max_size=8))
    return [BPMEvent(p, draw(bpms())) for p in [0, *sorted(others)]]


@st.composite
def time_signatures(draw: st.DrawFn) -> List[TimeSignature]:
    others = draw(st.sets(st.integers(min_value=1, max_value=100_000), max_size=4))
    return [
        TimeSignature(
            position=p,
            numerator=draw(st.integers(min_value=1, max_value=16)),
            denominator=draw(st.sampled_from([1, 2, 4, 8, 16, 32])),
        )
        for p in [0, *sorted(others)]
    ]


@st.composite
def metadata(
    draw: st.DrawFn, text_strat: st.SearchStrategy[str] = simple_text
) -> Metadata:
    """The audio length is not part of .chart files"""
    seconds = st.decimals(min_value=-10, max_value=600, places=3)
    return Metadata(
        name=draw(text_strat),
        artist=draw(text_strat),
        charter=draw(text_strat),
        album=draw(text_strat),
        year=draw(st.one_of(st.just(""), st.integers(1950, 2030).map(str))),
        genre=draw(text_strat),
        offset=draw(seconds),
        preview_start=draw(seconds.map(abs)),
    )


@st.composite
def audio(draw: st.DrawFn) -> Dict[AudioInstrument, Path]:
    instruments = draw(st.sets(st.sampled_from(list(AudioInstrument))))
    return {i: Path(f"{i.name.lower()}.ogg") for i in instruments}


@st.composite
def song(
    draw: st.DrawFn,
    timeline_strat: st.SearchStrategy[Timeline] = timeline(max_size=16),
    max_charts: int = 4,
) -> Song:
    """Songs at the default resolution with a plain global event track,
    everything a .chart file can hold without loss"""
    chart_keys = st.tuples(
        st.sampled_from(list(Instrument)), st.sampled_from(list(Difficulty))
    )
    keys = draw(
        st.lists(
            chart_keys,
            unique=True,
            max_size=max_charts,
        )
    )
    global_events = draw(st.lists(chart_event(name_strat=event_names), max_size=8))
    return Song(
        metadata=draw(metadata()),
        bpm_events=draw(bpm_events()),
        time_signatures=draw(time_signatures()),
        events=Timeline(global_events),
        charts={key: draw(timeline_strat) for key in keys},
        audio=draw(audio()),
    )
