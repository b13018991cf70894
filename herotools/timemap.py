from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, Iterable

from more_itertools import windowed
from sortedcontainers import SortedKeyList

from herotools.utils import fraction_to_decimal, group_by

if TYPE_CHECKING:
    from herotools import song

# .chart files and MIDI files assume this until told otherwise
DEFAULT_BPM = Fraction(120)


@dataclass
class BPMChange:
    position: int
    seconds: Fraction
    BPM: Fraction


@dataclass
class TimeMap:
    """Wraps a list of BPM events to allow converting tick positions to clock
    time (in seconds)"""

    resolution: int
    events_by_position: SortedKeyList[BPMChange, int]

    @classmethod
    def from_song(cls, s: song.Song) -> TimeMap:
        return cls.from_bpm_events(s.bpm_events, s.resolution)

    @classmethod
    def from_bpm_events(
        cls, events: Iterable[song.BPMEvent], resolution: int
    ) -> TimeMap:
        """If there is no BPM event at tick zero, the default BPM applies
        until the first one"""
        events = list(events)
        grouped_by_position = group_by(events, key=lambda e: e.position)
        for position, events_at_position in grouped_by_position.items():
            if len(events_at_position) > 1:
                raise ValueError(
                    f"Multiple BPMs defined at tick {position} : {events_at_position}"
                )

        points = [(e.position, Fraction(e.BPM)) for e in events]
        points.sort()
        if not points or points[0][0] != 0:
            points.insert(0, (0, DEFAULT_BPM))

        # set first BPM change then compute from there
        current_second = Fraction(0)
        bpm_changes = [BPMChange(0, current_second, points[0][1])]
        for previous, current in windowed(points, 2):
            if previous is None or current is None:
                continue

            ticks_since_last_event = current[0] - previous[0]
            current_second += (60 * ticks_since_last_event) / (previous[1] * resolution)
            bpm_changes.append(BPMChange(current[0], current_second, current[1]))

        return cls(
            resolution=resolution,
            events_by_position=SortedKeyList(bpm_changes, key=lambda b: b.position),
        )

    def seconds_at(self, position: int) -> song.SecondsTime:
        return fraction_to_decimal(self.fractional_seconds_at(position))

    def fractional_seconds_at(self, position: int) -> Fraction:
        index = self.events_by_position.bisect_key_right(position)
        bpm_change: BPMChange = self.events_by_position[max(0, index - 1)]
        ticks_since_last_event = position - bpm_change.position
        return bpm_change.seconds + (60 * ticks_since_last_event) / (
            bpm_change.BPM * self.resolution
        )
