import os
import stat
import tempfile
from decimal import Decimal
from pathlib import Path


def write_atomically(path: Path, contents: bytes) -> None:
    """Write to a temporary file next to the destination then swap it in,
    readers never see a partially written file. The result gets the mode of
    the file it replaces, or the one a plain open() would have given it"""
    mode = file_mode_for(path)
    fd, temp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(contents)
        os.chmod(temp_name, mode)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


def file_mode_for(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        pass

    # The umask can only be read by setting it
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def format_decimal(d: Decimal) -> str:
    """Plain notation without trailing zeros : 1.5, 0, 120"""
    return format(d.normalize(), "f")
