"""Merged schedule of all tests of a run."""

from collections import defaultdict
from typing import TYPE_CHECKING, NamedTuple

from .expander import expand

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

if TYPE_CHECKING:
    from flintmc.schema import BaseAction, Position, TestSpec


class ScheduledAction(NamedTuple):
    """A timeline entry bound to one of its ticks."""

    #: Position of the owning test in the run.
    test_index: int
    #: Tick the action is due at.
    tick: int
    #: Timeline entry to execute.
    action: 'BaseAction'
    #: Position of `tick` within the entry ticks.
    value_index: int
    #: Translation of the owning test.
    offset: 'Position'


class GlobalTimeline:
    """Tick-keyed schedule aggregated across every test of a run.

    Actions due at the same tick are kept in ascending test index, then
    in timeline declaration order within a test.

    Attributes:
        max_tick: Last tick of the longest test, zero if nothing is scheduled.
        breakpoints: Union of the breakpoint ticks of every test.
    """

    def __init__(self, actions: 'Mapping[int, tuple[ScheduledAction, ...]]',
                 breakpoints: 'Iterable[int]' = ()) -> None:
        self._actions = dict(actions)

        self.max_tick = max(self._actions, default=0)
        self.breakpoints = frozenset(breakpoints)

    def __len__(self) -> int:
        return sum(len(actions) for actions in self._actions.values())

    def due(self, tick: int) -> tuple[ScheduledAction, ...]:
        """Return the actions due at a tick, in execution order."""
        return self._actions.get(tick, ())

    @property
    def ticks(self) -> range:
        """Every tick of the run, from zero to `max_tick` inclusive."""
        return range(self.max_tick + 1)


def merge(tests: 'Iterable[tuple[TestSpec, Position]]') -> GlobalTimeline:
    """Merge the timelines of several tests into one schedule.

    Args:
        tests: Test specifications with their offsets, in test index order.

    Returns:
        Global timeline of the run.
    """
    actions: defaultdict[int, list[ScheduledAction]] = defaultdict(list)
    breakpoints: set[int] = set()

    for test_index, (spec, offset) in enumerate(tests):
        for entry in spec.timeline:
            for tick, value_index in expand(entry):
                actions[tick].append(ScheduledAction(
                    test_index=test_index,
                    tick=tick,
                    action=entry,
                    value_index=value_index,
                    offset=offset,
                ))

        breakpoints.update(spec.breakpoints)

    return GlobalTimeline(
        {tick: tuple(items) for tick, items in actions.items()},
        breakpoints,
    )
