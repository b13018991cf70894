import logging
import warnings
from collections import defaultdict
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import mido

from herotools import song as hero

logger = logging.getLogger(__name__)

TRACK_INSTRUMENTS = {
    "PART GUITAR": hero.Instrument.GUITAR,
    # Guitar Hero 1 name for the guitar track
    "T1 GEMS": hero.Instrument.GUITAR,
    "PART GUITAR COOP": hero.Instrument.GUITAR_COOP,
    "PART BASS": hero.Instrument.BASS,
    "PART RHYTHM": hero.Instrument.RHYTHM,
    "PART KEYS": hero.Instrument.KEYS,
    "PART DRUMS": hero.Instrument.DRUMS,
}
EVENTS_TRACK = "EVENTS"
VOCALS_TRACK = "PART VOCALS"

# Pitch of the green fret for each difficulty, the other frets follow
BASE_PITCHES = {
    hero.Difficulty.EXPERT: 96,
    hero.Difficulty.HARD: 84,
    hero.Difficulty.MEDIUM: 72,
    hero.Difficulty.EASY: 60,
}
LANE_COUNT = 5
FORCE_HOPO_OFFSET = 5
TAP_PITCH = 104
SOLO_PITCH = 103
STAR_POWER_PITCH = 116
PHRASE_PITCHES = (105, 106)

MICROSECONDS_PER_MINUTE = Decimal(60_000_000)
BPM_PRECISION = Decimal("0.001")


@dataclass(frozen=True)
class NoteSpan:
    """A note on / note off pair"""

    pitch: int
    start: int
    end: int

    def covers(self, position: int) -> bool:
        return self.start <= position < max(self.end, self.start + 1)


def load_midi(path: Path) -> Optional[hero.Song]:
    """Read a Guitar Hero / Rock Band style MIDI file. Returns None if none
    of the tracks hold anything that ends up in a chart"""
    midi = mido.MidiFile(path)
    song = hero.Song(resolution=midi.ticks_per_beat)
    for index, track in enumerate(midi.tracks):
        name = track.name.strip()
        if index == 0:
            load_sync_track(track, song)
        if name in TRACK_INSTRUMENTS:
            load_instrument_track(track, TRACK_INSTRUMENTS[name], song)
        elif name == EVENTS_TRACK:
            song.events.extend(load_global_events(track))
        elif name == VOCALS_TRACK:
            song.events.extend(load_vocals(track))
        elif index == 0:
            song.metadata.name = name
        else:
            logger.debug("Ignoring MIDI track %r in %s", name, path)

    if len(song.events) == 0 and not any(song.iter_non_empty_charts()):
        logger.info("Nothing to chart in %s", path)
        return None

    return song


def iter_absolute(track: mido.MidiTrack) -> Iterator[Tuple[int, mido.Message]]:
    """Messages with their absolute tick instead of their delta time"""
    tick = 0
    for message in track:
        tick += message.time
        yield tick, message


def iter_note_spans(track: mido.MidiTrack) -> Iterator[NoteSpan]:
    open_notes: Dict[int, List[int]] = defaultdict(list)
    for tick, message in iter_absolute(track):
        if message.type == "note_on" and message.velocity > 0:
            open_notes[message.note].append(tick)
        elif message.type in ("note_on", "note_off"):
            starts = open_notes[message.note]
            if not starts:
                warnings.warn(
                    f"Ignoring note off without a note on for pitch "
                    f"{message.note} at tick {tick} in track {track.name!r}"
                )
                continue
            yield NoteSpan(message.note, starts.pop(0), tick)

    for pitch, starts in open_notes.items():
        for start in starts:
            warnings.warn(
                f"Note on without a note off for pitch {pitch} at tick {start} "
                f"in track {track.name!r}"
            )
            yield NoteSpan(pitch, start, start)


def load_sync_track(track: mido.MidiTrack, song: hero.Song) -> None:
    bpm_events: Dict[int, hero.BPMEvent] = {}
    time_signatures: Dict[int, hero.TimeSignature] = {}
    for tick, message in iter_absolute(track):
        # The last event wins when several share a tick
        if message.type == "set_tempo":
            bpm = (MICROSECONDS_PER_MINUTE / message.tempo).quantize(BPM_PRECISION)
            bpm_events[tick] = hero.BPMEvent(tick, bpm)
        elif message.type == "time_signature":
            time_signatures[tick] = hero.TimeSignature(
                tick, message.numerator, message.denominator
            )

    song.bpm_events = sorted(bpm_events.values(), key=lambda b: b.position)
    song.time_signatures = sorted(time_signatures.values(), key=lambda t: t.position)


def load_instrument_track(
    track: mido.MidiTrack, instrument: hero.Instrument, song: hero.Song
) -> None:
    spans = sorted(iter_note_spans(track), key=lambda s: (s.start, s.pitch))
    # Shorter sustains are just the length of a regular note
    sustain_cutoff = song.resolution // 3
    star_power = [
        hero.StarPower(s.start, s.end - s.start)
        for s in spans
        if s.pitch == STAR_POWER_PITCH
    ]
    solo_events = [
        event for s in spans if s.pitch == SOLO_PITCH for event in solo_markers(s)
    ]
    taps = [s for s in spans if s.pitch == TAP_PITCH]
    for difficulty, base in BASE_PITCHES.items():
        notes = [
            make_note(s, base, sustain_cutoff)
            for s in spans
            if base <= s.pitch < base + LANE_COUNT
        ]
        if not notes:
            continue

        if instrument != hero.Instrument.DRUMS:
            forced = [s for s in spans if s.pitch == base + FORCE_HOPO_OFFSET]
            apply_flag(notes, forced, hero.NoteFlag.FORCED)
            apply_flag(notes, taps, hero.NoteFlag.TAP)

        timeline = song.get_chart(instrument, difficulty)
        timeline.extend(notes)
        timeline.extend(replace(o) for o in star_power + solo_events)


def solo_markers(span: NoteSpan) -> Tuple[hero.ChartEvent, hero.ChartEvent]:
    return hero.ChartEvent(span.start, "solo"), hero.ChartEvent(span.end, "soloend")


def make_note(span: NoteSpan, base_pitch: int, sustain_cutoff: int) -> hero.Note:
    sustain = span.end - span.start
    return hero.Note(
        position=span.start,
        fret_type=span.pitch - base_pitch,
        sustain_length=sustain if sustain > sustain_cutoff else 0,
    )


def apply_flag(
    notes: List[hero.Note], markers: List[NoteSpan], flag: hero.NoteFlag
) -> None:
    for note in notes:
        if any(m.covers(note.position) for m in markers):
            note.flags |= flag


def load_global_events(track: mido.MidiTrack) -> List[hero.ChartEvent]:
    """[section verse_1] and the like, brackets removed"""
    events = []
    for tick, message in iter_absolute(track):
        if message.type in ("text", "marker"):
            text = message.text.strip()
            if text.startswith("[") and text.endswith("]"):
                text = text[1:-1].strip()
            if text:
                events.append(hero.ChartEvent(tick, text))

    return events


def load_vocals(track: mido.MidiTrack) -> List[hero.ChartEvent]:
    events = []
    for tick, message in iter_absolute(track):
        if message.type == "lyrics" and message.text.strip():
            events.append(hero.ChartEvent(tick, f"lyric {message.text.strip()}"))

    for span in iter_note_spans(track):
        if span.pitch in PHRASE_PITCHES:
            events.append(hero.ChartEvent(span.start, "phrase_start"))
            events.append(hero.ChartEvent(span.end, "phrase_end"))

    return events
