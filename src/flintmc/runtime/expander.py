"""Expansion of timeline entries into per-tick dispatch units."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

if TYPE_CHECKING:
    from flintmc.schema import BaseAction


def expand(entry: 'BaseAction') -> 'Iterator[tuple[int, int]]':
    """Expand an entry into `(tick, value_index)` pairs.

    A single tick yields one pair with index zero. A list of ticks
    yields one pair per tick, in declaration order, indexed by the tick
    position in the list; `assert_state` uses the index to select the
    value expected at that tick.

    Args:
        entry: Timeline entry.

    Yields:
        Tick and value index pairs.
    """
    yield from ((tick, index) for index, tick in enumerate(entry.ticks))
