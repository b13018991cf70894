"""Line level codec for the contents of .chart sections

A track section is a list of lines shaped like ``<position> = <marker> <values>``
with these markers :

- ``N <lane> <sustain>`` : a note, lanes 0 to 4 are frets, 5 and 6 are not
  notes but flags (forced and tap) for every note at the same position
- ``S 2 <length>`` : star power
- ``E <name>`` : a local event, like ``solo``

Lines with any other marker are left alone."""

import re
from dataclasses import dataclass
from functools import reduce, singledispatch
from operator import or_
from typing import Dict, Iterable, List, Optional, Union

from herotools.timeline import (
    ChartEvent,
    ChartObject,
    Direction,
    Note,
    NoteFlag,
    StarPower,
    Timeline,
    TrackContext,
)
from herotools.utils import group_by

LINE = re.compile(
    r"^\s*(?P<position>\S+)\s*=\s*(?P<marker>[A-Za-z]+)(?:\s+(?P<values>.*?))?\s*$"
)
UNSIGNED = re.compile(r"^\d+$")
SIGNED = re.compile(r"^[+-]?\d+$")

FLAG_CODES = {
    5: NoteFlag.FORCED,
    6: NoteFlag.TAP,
}
STAR_POWER_TYPE = 2


class ChartDecodeError(ValueError):
    def __init__(self, line_number: int, line: str, reason: str):
        super().__init__(f"Error on line {line_number} ({line.strip()!r}) : {reason}")
        self.line_number = line_number


@dataclass(frozen=True)
class FlagLine:
    """A note line that carries a flag for its position instead of a note"""

    position: int
    flag: NoteFlag


ParsedLine = Union[ChartObject, FlagLine]


def decode_track(
    lines: Iterable[str], context: Optional[TrackContext] = None
) -> Timeline:
    """Parse the lines of a track section.

    Flag lines apply to every note at their position no matter where they
    appear in the section, so they are set aside until all the notes are
    known. Nothing is returned unless every line parses."""
    objects: List[ChartObject] = []
    flag_lines: List[FlagLine] = []
    for line_number, line in enumerate(lines, start=1):
        try:
            parsed = parse_line(line)
        except ValueError as e:
            raise ChartDecodeError(line_number, line, str(e)) from e

        if isinstance(parsed, FlagLine):
            flag_lines.append(parsed)
        elif parsed is not None:
            objects.append(parsed)

    notes_by_position: Dict[int, List[Note]] = group_by(
        (o for o in objects if isinstance(o, Note)), key=lambda n: n.position
    )
    for flag_line in flag_lines:
        for note in notes_by_position.get(flag_line.position, []):
            note.flags |= flag_line.flag

    return Timeline(objects, context=context)


def parse_line(line: str) -> Optional[ParsedLine]:
    match = LINE.match(line)
    if match is None:
        return None

    parser = LINE_PARSERS.get(match["marker"])
    if parser is None:
        return None

    position = parse_unsigned(match["position"], "position")
    values = (match["values"] or "").split()
    return parser(position, values)


def parse_note_line(position: int, values: List[str]) -> Optional[ParsedLine]:
    check_value_count(values, 2, "N")
    code = parse_signed(values[0], "lane")
    sustain = parse_unsigned(values[1], "sustain length")
    if 0 <= code <= 4:
        return Note(position=position, fret_type=code, sustain_length=sustain)

    flag = FLAG_CODES.get(code)
    if flag is None:
        return None

    return FlagLine(position, flag)


def parse_star_power_line(position: int, values: List[str]) -> Optional[ParsedLine]:
    check_value_count(values, 2, "S")
    type_ = parse_signed(values[0], "special phrase type")
    length = parse_unsigned(values[1], "length")
    if type_ != STAR_POWER_TYPE:
        return None

    return StarPower(position=position, length=length)


def parse_event_line(position: int, values: List[str]) -> Optional[ParsedLine]:
    if not values:
        raise ValueError("An event needs a name")

    return ChartEvent(position=position, name=values[0])


LINE_PARSERS = {
    "N": parse_note_line,
    "S": parse_star_power_line,
    "E": parse_event_line,
}


def check_value_count(values: List[str], expected: int, marker: str) -> None:
    if len(values) != expected:
        raise ValueError(
            f"Expected {expected} values after {marker} but found {len(values)}"
        )


def parse_unsigned(raw: str, name: str) -> int:
    if not UNSIGNED.match(raw):
        raise ValueError(
            f"The {name} should be a positive integer but {raw!r} was found"
        )
    return int(raw)


def parse_signed(raw: str, name: str) -> int:
    if not SIGNED.match(raw):
        raise ValueError(f"The {name} should be an integer but {raw!r} was found")
    return int(raw)


def encode_track(timeline: Timeline) -> List[str]:
    """Dump a track to lines, in timeline order. Flags for a position are
    written right after the last note at that position"""
    lines = []
    for index, obj in enumerate(timeline):
        lines.append(encode_object(obj))
        if isinstance(obj, Note) and is_last_note_at_position(timeline, index, obj):
            notes = timeline.find_at_position(obj.position, Note)
            lines += encode_flags(obj.position, notes)

    return lines


def is_last_note_at_position(timeline: Timeline, index: int, note: Note) -> bool:
    next_note = timeline.find_neighbor(Note, index, Direction.NEXT)
    return next_note is None or next_note.position != note.position


def encode_flags(position: int, notes: Iterable[Note]) -> List[str]:
    flags = reduce(or_, (n.flags for n in notes), NoteFlag.NONE)
    return [
        f"{position} = N {code} 0"
        for code, flag in sorted(FLAG_CODES.items())
        if flag in flags
    ]


@singledispatch
def encode_object(obj: ChartObject) -> str:
    raise NotImplementedError(f"Unknown chart object type : {type(obj)}")


@encode_object.register
def encode_note(note: Note) -> str:
    return f"{note.position} = N {note.fret_type} {note.sustain_length}"


@encode_object.register
def encode_star_power(star_power: StarPower) -> str:
    return f"{star_power.position} = S {STAR_POWER_TYPE} {star_power.length}"


@encode_object.register
def encode_event(event: ChartEvent) -> str:
    if not is_single_word(event.name):
        raise ValueError(
            "Track event names are written unquoted and must be a single word, "
            f"got {event.name!r}"
        )
    return f"{event.position} = E {event.name}"


def is_single_word(name: str) -> bool:
    return name.split() == [name]


GLOBAL_EVENT = re.compile(r"^\s*(?P<position>\S+)\s*=\s*E\s+(?P<text>.*?)\s*$")


def decode_global_events(
    lines: Iterable[str], context: Optional[TrackContext] = None
) -> Timeline:
    """The [Events] section holds free-form text, usually quoted"""
    events = []
    for line_number, line in enumerate(lines, start=1):
        match = GLOBAL_EVENT.match(line)
        if match is None:
            continue

        try:
            position = parse_unsigned(match["position"], "position")
        except ValueError as e:
            raise ChartDecodeError(line_number, line, str(e)) from e

        events.append(ChartEvent(position=position, name=unquote(match["text"])))

    return Timeline(events, context=context)


def encode_global_events(timeline: Timeline) -> List[str]:
    return [
        f'{e.position} = E "{e.name}"' for e in timeline if isinstance(e, ChartEvent)
    ]


def unquote(text: str) -> str:
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text
