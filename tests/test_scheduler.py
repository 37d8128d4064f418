"""Tests for tick-synchronized run scheduling."""

from io import StringIO
from typing import TYPE_CHECKING

import pytest

from flintmc.channels import MemoryWorld
from flintmc.errors import CommandError, RunAborted
from flintmc.logs import configure_logging
from flintmc.runtime import BreakpointController, BreakpointSource, Scheduler
from flintmc.schema import ORIGIN, Position

if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_mock import MockerFixture

    from flintmc.schema import TestSpec
    from flintmc.settings import Settings


class ScriptedSource(BreakpointSource):
    """Breakpoint source replaying prepared decisions."""

    def __init__(self, *decisions: bool) -> None:
        self.decisions = list(decisions)
        self.reasons: list[str] = []

    def wait(self, reason: str) -> bool:
        self.reasons.append(reason)
        return self.decisions.pop(0) if self.decisions else True


class FailingWorld(MemoryWorld):
    """Memory world rejecting commands that contain any of the markers."""

    def __init__(self, *markers: str) -> None:
        super().__init__('failing')
        self.markers = markers

    def send_command(self, command: str) -> None:
        if any(marker in command for marker in self.markers):
            self.history.append(f'!{command}')
            raise CommandError(f'Rejected: {command}')

        super().send_command(command)


def test_command_order(world: MemoryWorld, settings: 'Settings',
                       make_spec: 'Callable[..., TestSpec]') -> None:
    """Clear, freeze, execute tick by tick, unfreeze and clear again."""
    spec = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'stone'},
        {'at': 2, 'do': 'remove', 'pos': [0, 0, 0]},
        setup={'cleanup': {'region': [[0, 0, 0], [1, 1, 1]]}},
    )

    summary = Scheduler(world, settings).run([(spec, ORIGIN)])

    assert world.history == [
        '/fill 0 0 0 1 1 1 air',
        '/tick freeze',
        '/setblock 0 0 0 stone',
        '/tick step 1',
        '/tick step 1',
        '/setblock 0 0 0 air',
        '/tick unfreeze',
        '/fill 0 0 0 1 1 1 air',
    ]
    assert world.frozen is False
    assert world.tick == 2
    assert summary.success


def test_delays(mocker: 'MockerFixture', world: MemoryWorld, settings: 'Settings',
                make_spec: 'Callable[..., TestSpec]') -> None:
    """Settle after setup, after freezing and after every step."""
    sleep = mocker.patch('flintmc.runtime.scheduler.sleep')
    spec = make_spec({'at': 2, 'do': 'remove', 'pos': [0, 0, 0]})

    Scheduler(world, settings).run([(spec, ORIGIN)])

    assert sleep.call_args_list == [
        mocker.call(settings.settle_delay),
        mocker.call(settings.freeze_delay),
        mocker.call(settings.tick_delay),
        mocker.call(settings.tick_delay),
    ]


def test_failure_isolation(world: MemoryWorld, settings: 'Settings',
                           make_spec: 'Callable[..., TestSpec]') -> None:
    """Count a mismatch against its own test only and keep running."""
    failing = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'stone'},
        {'at': 1, 'do': 'assert', 'checks': [{'pos': [0, 0, 0], 'is': 'oak_planks'}]},
        {'at': 2, 'do': 'assert', 'checks': [{'pos': [0, 0, 0], 'is': 'stone'}]},
        name='A',
    )
    passing = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'oak_planks'},
        {'at': 1, 'do': 'assert', 'checks': [{'pos': [0, 0, 0], 'is': 'oak_planks'}]},
        name='B',
    )

    summary = Scheduler(world, settings).run([
        (failing, Position(-16, 0, -16)),
        (passing, Position(0, 0, -16)),
    ])

    first, second = summary.results
    assert (first.name, first.passed, first.failed, first.success) == ('A', 1, 1, False)
    assert (second.name, second.passed, second.failed, second.success) == ('B', 1, 0, True)
    assert (summary.passed, summary.failed, summary.success) == (1, 1, False)
    assert world.history[-2:] == [
        '/fill -16 0 -16 -2 14 -2 air',
        '/fill 0 0 -16 14 14 -2 air',
    ]


def test_same_tick_interleaving(world: MemoryWorld, settings: 'Settings',
                                make_spec: 'Callable[..., TestSpec]') -> None:
    """Execute same-tick actions by test index, then declaration order."""
    first = make_spec(
        {'at': 1, 'do': 'place', 'pos': [0, 0, 0], 'block': 'stone'},
        {'at': 1, 'do': 'place', 'pos': [1, 0, 0], 'block': 'dirt'},
        setup=None,
    )
    second = make_spec({'at': 1, 'do': 'place', 'pos': [0, 0, 0], 'block': 'sand'}, setup=None)

    Scheduler(world, settings).run([(first, Position(-16, 0, 0)), (second, ORIGIN)])

    assert world.history == [
        '/tick freeze',
        '/tick step 1',
        '/setblock -16 0 0 stone',
        '/setblock -15 0 0 dirt',
        '/setblock 0 0 0 sand',
        '/tick unfreeze',
    ]


def test_command_error_aborts(settings: 'Settings',
                              make_spec: 'Callable[..., TestSpec]') -> None:
    """Abort the run on a channel failure and still unfreeze the clock."""
    world = FailingWorld('dirt')
    spec = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'dirt'},
        {'at': 3, 'do': 'place', 'pos': [1, 0, 0], 'block': 'stone'},
    )

    with pytest.raises(CommandError, match=r'^Rejected'):
        Scheduler(world, settings).run([(spec, ORIGIN)])

    assert world.frozen is False
    assert '/setblock 1 0 0 stone' not in world.history
    assert world.history[-2:] == ['/tick unfreeze', '/fill 0 0 0 14 14 14 air']


def test_unfreeze_failure_keeps_error(settings: 'Settings',
                                      make_spec: 'Callable[..., TestSpec]') -> None:
    """Report the original failure when unfreezing fails too."""
    world = FailingWorld('dirt', 'unfreeze')
    spec = make_spec({'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'dirt'})

    with pytest.raises(CommandError, match=r'^Rejected: setblock 0 0 0 dirt'):
        Scheduler(world, settings).run([(spec, ORIGIN)])

    assert world.history[-1] == '!tick unfreeze'


def test_aborted_pause_unfreezes(world: MemoryWorld, settings: 'Settings',
                                 make_spec: 'Callable[..., TestSpec]') -> None:
    """Unfreeze the clock when a pause is aborted."""
    class AbortingSource(BreakpointSource):
        def wait(self, reason: str) -> bool:
            raise RunAborted(f'aborted: {reason}')

    spec = make_spec({'at': 3, 'do': 'remove', 'pos': [0, 0, 0]}, breakpoints=[1])
    scheduler = Scheduler(world, settings, BreakpointController(AbortingSource()))

    with pytest.raises(RunAborted, match=r'breakpoint at tick 1'):
        scheduler.run([(spec, ORIGIN)])

    assert world.frozen is False
    assert world.tick == 1


def test_interrupt_unfreezes(mocker: 'MockerFixture', world: MemoryWorld,
                             settings: 'Settings',
                             make_spec: 'Callable[..., TestSpec]') -> None:
    """Unfreeze the clock on an operator interrupt."""
    mocker.patch('flintmc.runtime.scheduler.sleep', side_effect=[None, None, KeyboardInterrupt])
    spec = make_spec({'at': 3, 'do': 'remove', 'pos': [0, 0, 0]})

    with pytest.raises(KeyboardInterrupt):
        Scheduler(world, settings).run([(spec, ORIGIN)])

    assert world.frozen is False


def test_breakpoints_and_step_mode(world: MemoryWorld, settings: 'Settings',
                                   make_spec: 'Callable[..., TestSpec]') -> None:
    """Pause at breakpoints and after every tick in step mode."""
    source = ScriptedSource(False, False, True)
    spec = make_spec({'at': 6, 'do': 'remove', 'pos': [0, 0, 0]}, breakpoints=[1, 5])

    Scheduler(world, settings, BreakpointController(source)).run([(spec, ORIGIN)])

    assert source.reasons == [
        'breakpoint at tick 1',
        'step at tick 2',
        'step at tick 3',
        'breakpoint at tick 5',
    ]


def test_break_after_setup(world: MemoryWorld, settings: 'Settings',
                           make_spec: 'Callable[..., TestSpec]') -> None:
    """Pause once before the first tick and then step."""
    source = ScriptedSource(False, True)
    spec = make_spec({'at': 2, 'do': 'remove', 'pos': [0, 0, 0]})
    scheduler = Scheduler(
        world, settings, BreakpointController(source),
        break_after_setup=True,
    )

    scheduler.run([(spec, ORIGIN)])

    assert source.reasons == ['after setup at tick 0', 'step at tick 0']


def test_breakpoints_without_controller(world: MemoryWorld, settings: 'Settings',
                                        make_spec: 'Callable[..., TestSpec]') -> None:
    """Run through breakpoints when no source is configured."""
    spec = make_spec({'at': 2, 'do': 'remove', 'pos': [0, 0, 0]}, breakpoints=[0, 1])

    summary = Scheduler(world, settings, break_after_setup=True).run([(spec, ORIGIN)])

    assert summary.success
    assert world.tick == 2


def test_repeated_runs(world: MemoryWorld, settings: 'Settings',
                       make_spec: 'Callable[..., TestSpec]') -> None:
    """Start every run from a cleared region."""
    spec = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'stone'},
        {'at': 0, 'do': 'assert', 'checks': [
            {'pos': [0, 0, 0], 'is': 'stone'},
            {'pos': [1, 0, 0], 'is': 'air'},
        ]},
        {'at': 1, 'do': 'place', 'pos': [1, 0, 0], 'block': 'stone'},
    )
    scheduler = Scheduler(world, settings)

    first = scheduler.run([(spec, ORIGIN)])
    world.send_command('setblock 1 0 0 dirt')
    second = scheduler.run([(spec, ORIGIN)])

    assert first == second
    assert second.results[0].passed == 1
    assert world.blocks == {}


def test_mismatch_report(world: MemoryWorld, settings: 'Settings',
                         make_spec: 'Callable[..., TestSpec]') -> None:
    """Log mismatches with the owning test and tick."""
    stream = StringIO()
    spec = make_spec(
        {'at': 2, 'do': 'assert', 'checks': [{'pos': [0, 0, 0], 'is': 'stone'}]},
        name='wire',
    )

    configure_logging('ERROR', sink=stream)
    try:
        Scheduler(world, settings).run([(spec, ORIGIN)])
    finally:
        configure_logging()

    output = stream.getvalue()
    assert "Block at [0, 0, 0] is not stone (got 'minecraft:air')" in output
    assert "in test 'wire', tick 2" in output


def test_abort_between_ticks(world: MemoryWorld, settings: 'Settings',
                             make_spec: 'Callable[..., TestSpec]') -> None:
    """Stop before the next tick once aborted and unfreeze the clock."""
    class AbortingSource(BreakpointSource):
        def wait(self, reason: str) -> bool:  # noqa: ARG002
            scheduler.abort()
            return True

    spec = make_spec({'at': 3, 'do': 'remove', 'pos': [0, 0, 0]}, breakpoints=[1])
    scheduler = Scheduler(world, settings, BreakpointController(AbortingSource()))

    with pytest.raises(RunAborted, match=r'^Run aborted at tick 2'):
        scheduler.run([(spec, ORIGIN)])

    assert world.frozen is False
    assert world.tick == 2
    assert '/setblock 0 0 0 air' not in world.history
