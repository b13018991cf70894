from typing import Dict

from . import chart, midi
from .enum import Format
from .typing import Loader, Writer

LOADERS: Dict[Format, Loader] = {
    Format.MIDI: midi.load_midi,
    Format.CHART: chart.load_chart,
    Format.MSCE: chart.load_chart,
}

WRITERS: Dict[Format, Writer] = {
    Format.CHART: chart.write_chart,
    Format.MSCE: chart.write_chart,
}
