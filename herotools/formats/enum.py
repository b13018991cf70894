from enum import Enum


class Format(str, Enum):
    MIDI = "mid"
    CHART = "chart"
    # Moonscraper's own flavor of .chart, same contents, different extension
    MSCE = "msce"

    @property
    def suffix(self) -> str:
        return f".{self.value}"
