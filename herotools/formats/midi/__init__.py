"""
Rock Band / Guitar Hero style MIDI files, input only.
"""

from .load import load_midi
