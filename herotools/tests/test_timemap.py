from decimal import Decimal
from fractions import Fraction
from typing import List

import pytest
from hypothesis import given
from hypothesis import strategies as st

from herotools import song as hero
from herotools.testutils import strategies as herost
from herotools.timemap import TimeMap


def test_that_120_bpm_is_assumed_before_the_first_event() -> None:
    time_map = TimeMap.from_bpm_events([], resolution=192)
    assert time_map.seconds_at(192) == Decimal("0.5")


def test_seconds_at_across_bpm_changes() -> None:
    time_map = TimeMap.from_bpm_events(
        [hero.BPMEvent(0, Decimal(120)), hero.BPMEvent(384, Decimal(60))],
        resolution=192,
    )
    assert time_map.seconds_at(384) == 1
    assert time_map.seconds_at(576) == 2
    assert time_map.fractional_seconds_at(96) == Fraction(1, 4)


def test_that_duplicate_bpm_positions_are_rejected() -> None:
    with pytest.raises(ValueError):
        TimeMap.from_bpm_events(
            [hero.BPMEvent(0, Decimal(120)), hero.BPMEvent(0, Decimal(150))],
            resolution=192,
        )


@given(herost.bpm_events(), st.integers(min_value=0, max_value=200_000))
def test_that_seconds_grow_with_position(
    bpm_events: List[hero.BPMEvent], position: int
) -> None:
    time_map = TimeMap.from_bpm_events(bpm_events, resolution=192)
    before = time_map.fractional_seconds_at(position)
    after = time_map.fractional_seconds_at(position + 1)
    assert before < after
