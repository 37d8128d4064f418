"""Specification loading infrastructure.

This package turns files on disk into validated test specifications and
resolves the world channel a run connects through.

It provides:
- discovery of specification files in a file or directory tree;
- parsing of JSON/YAML documents into immutable `TestSpec` models;
- region and containment validation in strict or relaxed mode;
- registration of builtin and plugin-provided world channels.
"""

from .collector import collect_test_files
from .loader import ChannelRegistry
from .parser import SpecParser
from .validator import SpecValidator

__all__ = (
    'ChannelRegistry',
    'SpecParser',
    'SpecValidator',
    'collect_test_files',
)
