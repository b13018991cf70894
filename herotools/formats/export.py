"""Knobs that drive how a song is written out, and what the writer has to say
about it afterwards"""

from dataclasses import dataclass, field
from typing import List

from .enum import Format

DEFAULT_TARGET_RESOLUTION = 192


@dataclass(frozen=True)
class ExportOptions:
    # Positions get rescaled to this many ticks per beat
    target_resolution: int = DEFAULT_TARGET_RESOLUTION
    format: Format = Format.CHART
    substitute_lyric_chars: bool = True
    copy_down_empty_difficulty: bool = True
    # Write forced flags, tap flags are always written
    forced: bool = True

    def __post_init__(self) -> None:
        if self.target_resolution < 1:
            raise ValueError(
                f"target resolution must be strictly positive : "
                f"{self.target_resolution}"
            )
        if self.format == Format.MIDI:
            raise ValueError("MIDI is an input only format")


@dataclass
class ErrorReport:
    errors: List[str] = field(default_factory=list)

    def add(self, message: str) -> None:
        self.errors.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def full_report(self) -> str:
        return "\n".join(self.errors)
