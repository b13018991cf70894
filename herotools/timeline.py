"""Objects that live on a track and the sorted container that holds them"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, Flag
from typing import (
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
    Type,
    TypeVar,
    Union,
    overload,
)

from sortedcontainers import SortedKeyList


class NoteFlag(Flag):
    NONE = 0
    FORCED = 1
    TAP = 2


def check_position(position: int) -> None:
    if position < 0:
        raise ValueError(f"position cannot be negative : {position}")


@dataclass
class Note:
    """A single fret on a track. In .chart files flags are written once per
    position, so every note sharing a position ends up with the same flags
    after a dump-load cycle"""

    position: int
    fret_type: int
    sustain_length: int = 0
    flags: NoteFlag = NoteFlag.NONE

    def __post_init__(self) -> None:
        check_position(self.position)
        if not 0 <= self.fret_type <= 4:
            raise ValueError(f"fret type out of [0, 4] range : {self.fret_type}")
        if self.sustain_length < 0:
            raise ValueError(
                f"sustain length cannot be negative : {self.sustain_length}"
            )


@dataclass
class StarPower:
    position: int
    length: int

    def __post_init__(self) -> None:
        check_position(self.position)
        if self.length < 0:
            raise ValueError(f"star power length cannot be negative : {self.length}")


@dataclass
class ChartEvent:
    position: int
    name: str

    def __post_init__(self) -> None:
        check_position(self.position)


ChartObject = Union[Note, StarPower, ChartEvent]

# How objects of different kinds sharing a position are ordered
KIND_RANK = {
    Note: 0,
    StarPower: 1,
    ChartEvent: 2,
}

SortKey = Tuple[int, int, int]


def sort_key(obj: ChartObject) -> SortKey:
    lane = obj.fret_type if isinstance(obj, Note) else 0
    return (obj.position, KIND_RANK[type(obj)], lane)


class Direction(int, Enum):
    PREVIOUS = -1
    NEXT = 1


class TrackContext(Protocol):
    """What a timeline needs to know about the song it belongs to"""

    @property
    def length(self) -> Decimal:
        ...

    def seconds_at(self, position: int) -> Decimal:
        ...


T = TypeVar("T", Note, StarPower, ChartEvent)


class Timeline:
    """Chart objects of a single track, always sorted by position.

    Several objects may share a position, they are then ordered by kind
    (notes, star power, events), then notes by lane, then by insertion order.
    Insertion, removal and lookups all bisect on that same key so they agree
    on where an object lives."""

    def __init__(
        self,
        objects: Iterable[ChartObject] = (),
        context: Optional[TrackContext] = None,
    ):
        self._objects: SortedKeyList[ChartObject, SortKey] = SortedKeyList(
            key=sort_key
        )
        self.context = context
        self.extend(objects)

    def __repr__(self) -> str:
        return f"Timeline({list(self._objects)!r})"

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[ChartObject]:
        return iter(self._objects)

    @overload
    def __getitem__(self, index: int) -> ChartObject:
        ...

    @overload
    def __getitem__(self, index: slice) -> List[ChartObject]:
        ...

    def __getitem__(
        self, index: Union[int, slice]
    ) -> Union[ChartObject, List[ChartObject]]:
        return self._objects[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timeline):
            return NotImplemented
        return list(self._objects) == list(other._objects)

    def insert(self, obj: ChartObject) -> int:
        """Insert the object at its sorted place and return its index"""
        index: int = self._objects.bisect_key_right(sort_key(obj))
        self._objects.add(obj)
        return index

    def extend(self, objects: Iterable[ChartObject]) -> None:
        for obj in objects:
            self._objects.add(obj)

    def remove(self, obj: ChartObject) -> bool:
        """Remove this exact object if it's present, otherwise an equal one.
        Returns False if neither can be found"""
        run = self._equal_key_run(sort_key(obj))
        for index in run:
            if self._objects[index] is obj:
                del self._objects[index]
                return True

        for index in run:
            if self._objects[index] == obj:
                del self._objects[index]
                return True

        return False

    def _equal_key_run(self, key: SortKey) -> range:
        start = self._objects.bisect_key_left(key)
        stop = self._objects.bisect_key_right(key)
        return range(start, stop)

    @overload
    def find_at_position(self, position: int) -> List[ChartObject]:
        ...

    @overload
    def find_at_position(self, position: int, kind: Type[T]) -> List[T]:
        ...

    def find_at_position(
        self, position: int, kind: Optional[type] = None
    ) -> List[ChartObject]:
        # Keys are (position, rank, lane) so the 1-tuples bound the whole run
        matches = self._objects.irange_key(
            min_key=(position,), max_key=(position + 1,), inclusive=(True, False)
        )
        if kind is None:
            return list(matches)
        else:
            return [o for o in matches if isinstance(o, kind)]

    def find_neighbor(
        self, kind: Type[T], from_index: int, direction: Direction
    ) -> Optional[T]:
        """Nearest object of the given kind strictly before or after
        from_index"""
        index = from_index + direction
        while 0 <= index < len(self._objects):
            obj = self._objects[index]
            if isinstance(obj, kind):
                return obj
            index += direction

        return None

    def notes(self) -> List[Note]:
        return [o for o in self._objects if isinstance(o, Note)]

    @property
    def note_count(self) -> int:
        return sum(1 for o in self._objects if isinstance(o, Note))

    @property
    def end_time(self) -> Decimal:
        """Time in seconds at which the track ends : either its last object or
        the end of the audio, whichever comes last"""
        if self.context is None:
            return Decimal(0)

        audio_length = self.context.length
        if not self._objects:
            return audio_length

        object_time = self.context.seconds_at(self._objects[-1].position)
        return max(object_time, audio_length)
