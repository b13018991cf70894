from dataclasses import replace
from decimal import Decimal
from fractions import Fraction
from functools import singledispatch
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, TypeVar, Union

from herotools import song as hero
from herotools.formats.dump_tools import format_decimal, write_atomically
from herotools.formats.export import ErrorReport, ExportOptions
from herotools.utils import rescale, round_half_up

from .codec import encode_global_events, encode_track, is_single_word

NEWLINE = "\r\n"
INDENT = "  "
LYRIC_PREFIX = "lyric "

# Rock Band vocal markers Clone Hero would display as-is, and double quotes
# that would cut the event text short
LYRIC_SUBSTITUTIONS = str.maketrans(
    {
        "=": "-",
        "#": None,
        "^": None,
        "*": None,
        "%": None,
        "$": None,
        "/": None,
        "+": None,
        '"': "'",
    }
)


def write_chart(
    song: hero.Song, path: Path, options: ExportOptions = ExportOptions()
) -> ErrorReport:
    contents, report = dump_chart(song, options)
    write_atomically(path, contents)
    return report


def dump_chart(
    song: hero.Song, options: ExportOptions = ExportOptions()
) -> Tuple[bytes, ErrorReport]:
    """Render a song as a .chart file. The song is left untouched, and the
    same song with the same options always gives the same bytes"""
    report = ErrorReport()
    exported = prepare_song(song, options, report)
    text = NEWLINE.join(iter_chart_lines(exported)) + NEWLINE
    return text.encode("utf-8"), report


def prepare_song(
    song: hero.Song, options: ExportOptions, report: ErrorReport
) -> hero.Song:
    """Make a copy of the song with everything the export options ask for
    applied to it"""
    source, target = song.resolution, options.target_resolution
    exported = hero.Song(
        resolution=target,
        metadata=replace(song.metadata),
        bpm_events=retarget_sync_events(
            song.bpm_events, source, target, "BPM change", report
        ),
        time_signatures=retarget_sync_events(
            song.time_signatures, source, target, "time signature", report
        ),
        audio=dict(song.audio),
    )
    global_events = retarget_timeline(song.events, source, target, "Events", report)
    if options.substitute_lyric_chars:
        global_events = substitute_lyric_chars(global_events)
    exported.events = global_events
    global_events.context = exported

    for (instrument, difficulty), timeline in song.iter_non_empty_charts():
        name = hero.section_name(instrument, difficulty)
        retargeted = retarget_timeline(timeline, source, target, name, report)
        retargeted = drop_unwritable_events(retargeted, name, report)
        if not options.forced:
            retargeted = strip_forced_flags(retargeted)
        exported.set_chart(instrument, difficulty, retargeted)

    if options.copy_down_empty_difficulty:
        copy_down_empty_difficulties(exported)

    return exported


S = TypeVar("S", hero.BPMEvent, hero.TimeSignature)


def retarget_sync_events(
    events: List[S], source: int, target: int, kind: str, report: ErrorReport
) -> List[S]:
    """Only the last of the events landing on the same tick is kept, a tick
    can only hold one tempo and one time signature"""
    by_position: Dict[int, S] = {}
    for event in sorted(events, key=lambda e: e.position):
        position = rescale(event.position, source, target)
        by_position[position] = replace(event, position=position)

    dropped = len(events) - len(by_position)
    if dropped:
        report.add(
            f"[SyncTrack] {dropped} {kind}(s) were dropped because they ended up "
            f"on the same tick as a later one at resolution {target}"
        )
    return list(by_position.values())


def retarget_timeline(
    timeline: hero.Timeline,
    source: int,
    target: int,
    section: str,
    report: ErrorReport,
) -> hero.Timeline:
    snapped = sum(
        1
        for o in timeline
        if (o.position * target) % source != 0
        or (object_end(o) * target) % source != 0
    )
    if snapped:
        report.add(
            f"[{section}] {snapped} object(s) were snapped to the nearest tick "
            f"while changing resolution from {source} to {target}"
        )
    return hero.Timeline(retarget_object(o, source, target) for o in timeline)


def drop_unwritable_events(
    timeline: hero.Timeline, section: str, report: ErrorReport
) -> hero.Timeline:
    kept = hero.Timeline(
        o
        for o in timeline
        if not isinstance(o, hero.ChartEvent) or is_single_word(o.name)
    )
    dropped = len(timeline) - len(kept)
    if dropped:
        report.add(
            f"[{section}] {dropped} event(s) were dropped because their name "
            "is not a single word"
        )
    return kept


def object_end(obj: hero.ChartObject) -> int:
    if isinstance(obj, hero.Note):
        return obj.position + obj.sustain_length
    elif isinstance(obj, hero.StarPower):
        return obj.position + obj.length
    else:
        return obj.position


@singledispatch
def retarget_object(
    obj: hero.ChartObject, source: int, target: int
) -> hero.ChartObject:
    raise NotImplementedError(f"Unknown chart object type : {type(obj)}")


@retarget_object.register
def retarget_note(note: hero.Note, source: int, target: int) -> hero.Note:
    position = rescale(note.position, source, target)
    end = rescale(object_end(note), source, target)
    return replace(note, position=position, sustain_length=end - position)


@retarget_object.register
def retarget_star_power(
    star_power: hero.StarPower, source: int, target: int
) -> hero.StarPower:
    position = rescale(star_power.position, source, target)
    end = rescale(object_end(star_power), source, target)
    return replace(star_power, position=position, length=end - position)


@retarget_object.register
def retarget_event(
    event: hero.ChartEvent, source: int, target: int
) -> hero.ChartEvent:
    return replace(event, position=rescale(event.position, source, target))


def strip_forced_flags(timeline: hero.Timeline) -> hero.Timeline:
    return hero.Timeline(
        replace(o, flags=o.flags & ~hero.NoteFlag.FORCED)
        if isinstance(o, hero.Note)
        else o
        for o in timeline
    )


def substitute_lyric_chars(timeline: hero.Timeline) -> hero.Timeline:
    """Lyrics left empty once substituted (pitch slides) are dropped"""
    res = hero.Timeline()
    for event in timeline:
        if isinstance(event, hero.ChartEvent) and event.name.startswith(
            LYRIC_PREFIX
        ):
            lyric = event.name[len(LYRIC_PREFIX) :].translate(LYRIC_SUBSTITUTIONS)
            if not lyric.strip():
                continue
            event = replace(event, name=LYRIC_PREFIX + lyric)
        res.insert(event)
    return res


def copy_down_empty_difficulties(song: hero.Song) -> None:
    """Fill every empty difficulty of an instrument with a copy of the
    nearest harder one that has something in it"""
    for instrument in hero.Instrument:
        source: Optional[hero.Timeline] = None
        for difficulty in hero.Difficulty:
            timeline = song.charts.get((instrument, difficulty))
            if timeline is not None and len(timeline) > 0:
                source = timeline
            elif source is not None:
                copy = hero.Timeline(replace(o) for o in source)
                song.set_chart(instrument, difficulty, copy)


def iter_chart_lines(song: hero.Song) -> Iterator[str]:
    yield from dump_section("Song", dump_song_values(song))
    yield from dump_section("SyncTrack", dump_sync_track(song))
    yield from dump_section("Events", encode_global_events(song.events))
    for (instrument, difficulty), timeline in song.iter_non_empty_charts():
        name = hero.section_name(instrument, difficulty)
        yield from dump_section(name, encode_track(timeline))


def dump_section(name: str, lines: List[str]) -> Iterator[str]:
    yield f"[{name}]"
    yield "{"
    for line in lines:
        yield f"{INDENT}{line}"
    yield "}"


def dump_song_values(song: hero.Song) -> List[str]:
    m = song.metadata
    values: Dict[str, str] = {
        "Name": quote(m.name),
        "Artist": quote(m.artist),
        "Charter": quote(m.charter),
        "Album": quote(m.album),
        # .chart files store the year behind a comma
        "Year": quote(f", {m.year}" if m.year else ""),
        "Offset": format_decimal(m.offset),
        "Resolution": str(song.resolution),
        # Player2, Difficulty, PreviewEnd and MediaType are not modelled
        "Player2": "bass",
        "Difficulty": "0",
        "PreviewStart": format_decimal(m.preview_start),
        "PreviewEnd": "0",
        "Genre": quote(m.genre),
        "MediaType": quote("cd"),
    }
    for instrument in hero.AudioInstrument:
        path = song.audio.get(instrument)
        if path is not None:
            values[instrument.value] = quote(path.name)

    return [f"{key} = {value}" for key, value in values.items()]


def quote(s: str) -> str:
    return f'"{s}"'


SyncEvent = Union[hero.BPMEvent, hero.TimeSignature]


def dump_sync_track(song: hero.Song) -> List[str]:
    """Time signatures come before BPMs at the same tick. A song with nothing
    at tick zero gets the usual 4/4 at 120 BPM there"""
    events: List[SyncEvent] = [*song.time_signatures, *song.bpm_events]
    if not any(t.position == 0 for t in song.time_signatures):
        events.append(hero.TimeSignature(0, 4))
    if not any(b.position == 0 for b in song.bpm_events):
        events.append(hero.BPMEvent(0, Decimal(120)))

    events.sort(key=lambda e: (e.position, isinstance(e, hero.BPMEvent)))
    return [dump_sync_event(e) for e in events]


@singledispatch
def dump_sync_event(e: SyncEvent) -> str:
    raise NotImplementedError(f"Unknown sync event type : {type(e)}")


@dump_sync_event.register
def dump_bpm_event(b: hero.BPMEvent) -> str:
    millibeats = round_half_up(Fraction(b.BPM) * 1000)
    return f"{b.position} = B {millibeats}"


@dump_sync_event.register
def dump_time_signature(t: hero.TimeSignature) -> str:
    if t.denominator == 4:
        return f"{t.position} = TS {t.numerator}"
    else:
        exponent = t.denominator.bit_length() - 1
        return f"{t.position} = TS {t.numerator} {exponent}"
