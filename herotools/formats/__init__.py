"""
Module containing all the load/dump code for all file formats
"""
from .enum import Format
from .export import ErrorReport, ExportOptions
from .loaders_and_writers import LOADERS, WRITERS
