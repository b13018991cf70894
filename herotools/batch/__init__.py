"""
Converting a whole library of MIDI song packages to chart files
"""
from .metadata import merge_ini_metadata
from .package import SongPackage, discover_packages
from .pipeline import (
    BatchReport,
    PackageResult,
    Status,
    convert_library,
    convert_package,
)
