import configparser
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from herotools import song as hero

logger = logging.getLogger(__name__)

SECTION = "song"
TEXT_KEYS = ("name", "artist", "charter", "album", "year", "genre")
MILLISECONDS_PER_SECOND = Decimal(1000)


def merge_ini_metadata(path: Path, song: hero.Song) -> None:
    """Overwrite the song's metadata with what's in the [song] section of a
    song.ini file. Keys missing from the file keep the song's current values,
    an unreadable file leaves the song untouched"""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        with path.open(encoding="utf-8-sig", errors="replace") as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as e:
        logger.warning("Could not read %s : %s", path, e)
        return

    section = find_section(parser)
    if section is None:
        logger.warning("No [%s] section in %s", SECTION, path)
        return

    metadata = song.metadata
    for key in TEXT_KEYS:
        value = section.get(key)
        if value is not None:
            setattr(metadata, key, value.strip())

    offset = read_milliseconds(section, "delay")
    if offset is not None:
        metadata.offset = offset
    preview_start = read_milliseconds(section, "preview_start_time")
    if preview_start is not None:
        metadata.preview_start = preview_start
    song_length = read_milliseconds(section, "song_length")
    if song_length is not None:
        metadata.song_length = song_length


def find_section(
    parser: configparser.ConfigParser,
) -> Optional[configparser.SectionProxy]:
    """Some files spell it [Song]"""
    for name in parser.sections():
        if name.strip().lower() == SECTION:
            return parser[name]
    return None


def read_milliseconds(
    section: configparser.SectionProxy, key: str
) -> Optional[hero.SecondsTime]:
    """None if the key is missing or not a number"""
    raw = section.get(key)
    if raw is None or not raw.strip():
        return None

    milliseconds: Optional[Decimal]
    try:
        milliseconds = Decimal(raw.strip())
    except InvalidOperation:
        milliseconds = None

    if milliseconds is None or not milliseconds.is_finite():
        logger.warning("Ignoring %s = %r, it should be a number", key, raw)
        return None

    return milliseconds / MILLISECONDS_PER_SECOND
