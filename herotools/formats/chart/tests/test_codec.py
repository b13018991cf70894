from itertools import permutations
from typing import List

import pytest
from hypothesis import given

from herotools import song as hero
from herotools.testutils import strategies as herost

from ..codec import (
    ChartDecodeError,
    decode_global_events,
    decode_track,
    encode_global_events,
    encode_track,
)


@pytest.mark.parametrize(
    "lines", list(permutations(["0 = N 0 0", "0 = N 1 0", "0 = N 5 0"]))
)
def test_that_flags_apply_to_every_note_at_their_position(lines: List[str]) -> None:
    timeline = decode_track(lines)
    notes = timeline.notes()
    assert [n.fret_type for n in notes] == [0, 1]
    assert all(n.flags == hero.NoteFlag.FORCED for n in notes)


def test_that_flags_only_apply_to_their_own_position() -> None:
    timeline = decode_track(
        ["0 = N 0 0", "0 = N 6 0", "192 = N 2 0", "192 = N 5 0", "384 = N 3 0"]
    )
    assert [n.flags for n in timeline.notes()] == [
        hero.NoteFlag.TAP,
        hero.NoteFlag.FORCED,
        hero.NoteFlag.NONE,
    ]


def test_that_a_flag_without_a_note_is_dropped() -> None:
    timeline = decode_track(["0 = N 5 0", "192 = N 0 0"])
    assert timeline.notes() == [hero.Note(192, 0)]


def test_that_a_malformed_line_fails_the_whole_track() -> None:
    with pytest.raises(ChartDecodeError) as excinfo:
        decode_track(["0 = N 0 0", "abc = N 1 0"])
    assert excinfo.value.line_number == 2


@pytest.mark.parametrize(
    "line",
    [
        "0 = N 1",
        "0 = N 1 0 0",
        "0 = N one 0",
        "0 = N 1 -5",
        "0 = S 2",
        "-1 = S 2 100",
        "0 = E",
    ],
)
def test_that_malformed_recognized_lines_are_errors(line: str) -> None:
    with pytest.raises(ChartDecodeError):
        decode_track([line])


def test_that_unrecognized_lines_are_skipped() -> None:
    timeline = decode_track(
        [
            "",
            "// comment",
            "0 = A 1 0",
            "0 = N 7 0",
            "0 = N 0 0",
            "0 = S 64 192",
            "not a chart line",
        ]
    )
    assert list(timeline) == [hero.Note(0, 0)]


def test_decoding_all_kinds_of_objects() -> None:
    timeline = decode_track(
        ["  768 = E solo", "0 = N 4 96", "0 = S 2 768", "768 = E soloend extra"]
    )
    assert list(timeline) == [
        hero.Note(0, 4, sustain_length=96),
        hero.StarPower(0, 768),
        hero.ChartEvent(768, "solo"),
        hero.ChartEvent(768, "soloend"),
    ]


def test_that_flags_are_written_after_the_last_note_of_their_position() -> None:
    timeline = hero.Timeline(
        [
            hero.Note(0, 0, flags=hero.NoteFlag.FORCED),
            hero.Note(0, 2, flags=hero.NoteFlag.TAP),
            hero.StarPower(0, 192),
            hero.Note(192, 1, flags=hero.NoteFlag.FORCED),
        ]
    )
    assert encode_track(timeline) == [
        "0 = N 0 0",
        "0 = N 2 0",
        "0 = N 5 0",
        "0 = N 6 0",
        "0 = S 2 192",
        "192 = N 1 0",
        "192 = N 5 0",
    ]


@given(herost.timeline())
def test_that_tracks_roundtrip(timeline: hero.Timeline) -> None:
    assert decode_track(encode_track(timeline)) == timeline


def test_global_events_keep_their_spaces() -> None:
    lines = ['0 = E "section Intro riff"', '192 = E "lyric Hel-"', "384 = E end"]
    timeline = decode_global_events(lines)
    assert [e.name for e in timeline] == ["section Intro riff", "lyric Hel-", "end"]
    assert encode_global_events(timeline) == [
        '0 = E "section Intro riff"',
        '192 = E "lyric Hel-"',
        '384 = E "end"',
    ]


@pytest.mark.parametrize("name", ["", "solo start", " solo", "solo\t"])
def test_that_track_events_that_would_not_read_back_are_refused(name: str) -> None:
    timeline = hero.Timeline([hero.ChartEvent(0, name)])
    with pytest.raises(ValueError, match="single word"):
        encode_track(timeline)
