"""Test file discovery."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

#: Suffixes of files treated as test specifications.
SPEC_SUFFIXES = frozenset({'.json', '.yaml', '.yml'})


def is_spec_file(path: 'Path') -> bool:
    """Check whether a path looks like a test specification file."""
    return path.is_file() and path.suffix.lower() in SPEC_SUFFIXES


def collect_test_files(path: 'Path', *, recursive: bool = False) -> list['Path']:
    """Collect specification files from a file or a directory.

    The result is sorted by path. The position of a file in this list is
    its test index, which decides its grid cell in the shared world.

    Args:
        path: A specification file or a directory containing them.
        recursive: Whether subdirectories are searched too.

    Returns:
        Sorted list of specification file paths, empty if nothing matches.
    """
    if path.is_file():
        return [path] if is_spec_file(path) else []

    if not path.is_dir():
        return []

    candidates = path.rglob('*') if recursive else path.iterdir()

    return sorted(item for item in candidates if is_spec_file(item))
