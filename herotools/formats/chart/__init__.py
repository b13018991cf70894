"""
.chart is the text format read by Clone Hero and Moonscraper.

A file is a list of [Section] blocks. [Song] holds key = value metadata,
[SyncTrack] the BPM and time signature changes, [Events] the global events,
and every other section is the track of one instrument at one difficulty.
"""

from .dump import dump_chart, write_chart
from .load import load_chart
