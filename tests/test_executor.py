"""Tests for assertion polling and action execution."""

from typing import TYPE_CHECKING

import pytest

from flintmc.channels import MemoryWorld
from flintmc.errors import AssertionMismatch, CommandError
from flintmc.runtime import ActionExecutor, blocks_match, merge, poll, state_matches
from flintmc.schema import ORIGIN, Position, Region

if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_mock import MockerFixture

    from flintmc.schema import TestSpec
    from flintmc.settings import Settings

OFFSET = Position(-16, 0, 16)


def run_entry(executor: ActionExecutor, spec: 'TestSpec', *,
              offset: Position = OFFSET) -> list[bool]:
    """Execute every scheduled action of a test in tick order."""
    timeline = merge([(spec, offset)])

    return [
        executor.execute(scheduled)
        for tick in timeline.ticks
        for scheduled in timeline.due(tick)
    ]


@pytest.mark.parametrize(('expected', 'observed', 'matched'), (
    pytest.param('minecraft:stone', 'minecraft:stone', True, id='identical'),
    pytest.param('stone', 'minecraft:stone', True, id='missing namespace'),
    pytest.param('minecraft:redstone_wire', 'RedstoneWireBlock{power=5}', True, id='class name'),
    pytest.param('minecraft:oak_planks', 'Block{minecraft:oak_planks}', True, id='wrapped'),
    pytest.param('minecraft:repeater', 'minecraft:repeater[delay=2,facing=north]', True, id='states'),
    pytest.param('OAK_PLANKS', 'minecraft:oak_planks', True, id='letter case'),
    pytest.param('oak_planks', 'stone', False, id='different'),
    pytest.param('minecraft:stone', 'minecraft:air', False, id='air'),
    pytest.param('minecraft:stone', None, False, id='nothing observed'),
))
def test_blocks_match(expected: str, observed: str | None, matched: bool) -> None:
    """Compare block identifiers tolerantly."""
    assert blocks_match(expected, observed) is matched


@pytest.mark.parametrize(('expected', 'observed', 'matched'), (
    pytest.param('15', '15', True, id='equal'),
    pytest.param('north', 'facing=north', True, id='contained'),
    pytest.param('15', '14', False, id='different'),
    pytest.param('15', None, False, id='nothing observed'),
))
def test_state_matches(expected: str, observed: str | None, matched: bool) -> None:
    """Compare state values by containment."""
    assert state_matches(expected, observed) is matched


def test_poll_eventually_matches(mocker: 'MockerFixture') -> None:
    """Return the first accepted value and stop querying."""
    sleep = mocker.patch('flintmc.runtime.retry.sleep')
    query = mocker.Mock(side_effect=['air', 'air', 'stone', 'stone'])

    value = poll(query, lambda value: value == 'stone', attempts=10, interval=0.05)

    assert value == 'stone'
    assert query.call_count == 3
    assert sleep.call_args_list == [mocker.call(0.05), mocker.call(0.05)]


def test_poll_exhausts_attempts(mocker: 'MockerFixture') -> None:
    """Return the last value after the attempts run out, without a final wait."""
    sleep = mocker.patch('flintmc.runtime.retry.sleep')
    query = mocker.Mock(side_effect=[f'air{index}' for index in range(20)])

    value = poll(query, lambda value: value == 'stone')

    assert value == 'air9'
    assert query.call_count == 10
    assert sleep.call_count == 9


def test_poll_invalid_attempts() -> None:
    """Require at least one attempt."""
    with pytest.raises(ValueError, match=r'must be positive'):
        poll(lambda: None, lambda value: True, attempts=0)


def test_mutations(world: MemoryWorld, settings: 'Settings',
                   make_spec: 'Callable[..., TestSpec]') -> None:
    """Translate mutating actions into offset commands."""
    spec = make_spec(
        {'at': 0, 'do': 'fill', 'region': [[0, 0, 0], [1, 0, 1]], 'with': 'stone'},
        {'at': 1, 'do': 'place', 'pos': [0, 1, 0], 'block': 'minecraft:redstone_block'},
        {'at': 2, 'do': 'place_each', 'blocks': [
            {'pos': [1, 1, 0], 'block': 'redstone_wire'},
            {'pos': [1, 1, 1], 'block': 'redstone_wire'},
        ]},
        {'at': 3, 'do': 'remove', 'pos': [0, 1, 0]},
    )

    counted = run_entry(ActionExecutor(world, settings), spec)

    assert counted == [False, False, False, False]
    assert world.history == [
        '/fill -16 0 16 -15 0 17 stone',
        '/setblock -16 1 16 minecraft:redstone_block',
        '/setblock -15 1 16 redstone_wire',
        '/setblock -15 1 17 redstone_wire',
        '/setblock -16 1 16 air',
    ]
    assert world.get_block(Position(-15, 0, 17)) == 'minecraft:stone'
    assert world.get_block(Position(-16, 1, 16)) == 'minecraft:air'


def test_place_each_staggered(mocker: 'MockerFixture', world: MemoryWorld,
                              settings: 'Settings',
                              make_spec: 'Callable[..., TestSpec]') -> None:
    """Wait between consecutive placements."""
    sleep = mocker.patch('flintmc.runtime.executor.sleep')
    spec = make_spec({'at': 0, 'do': 'place_each', 'blocks': [
        {'pos': [0, 0, 0], 'block': 'stone'},
        {'pos': [1, 0, 0], 'block': 'stone'},
        {'pos': [2, 0, 0], 'block': 'stone'},
    ]})

    run_entry(ActionExecutor(world, settings), spec)

    assert sleep.call_args_list == [mocker.call(settings.stagger_delay)] * 3


def test_assertions_pass(world: MemoryWorld, settings: 'Settings',
                         make_spec: 'Callable[..., TestSpec]') -> None:
    """Count passing assertions."""
    spec = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'repeater[delay=2,facing=north]'},
        {'at': 1, 'do': 'assert', 'checks': [
            {'pos': [0, 0, 0], 'is': 'minecraft:repeater'},
            {'pos': [1, 0, 0], 'is': 'air'},
        ]},
        {'at': [2, 3], 'do': 'assert_state', 'pos': [0, 0, 0], 'state': 'delay', 'values': ['2', '2']},
    )

    counted = run_entry(ActionExecutor(world, settings), spec)

    assert counted == [False, True, True, True]


def test_assertion_tolerates_lag(settings: 'Settings',
                                 make_spec: 'Callable[..., TestSpec]') -> None:
    """Observe changes that become visible only after a few reads."""
    world = MemoryWorld('laggy', lag=3)
    spec = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'stone'},
        {'at': 0, 'do': 'assert', 'checks': [{'pos': [0, 0, 0], 'is': 'stone'}]},
    )

    assert run_entry(ActionExecutor(world, settings), spec, offset=ORIGIN) == [False, True]


def test_assertion_mismatch(world: MemoryWorld, settings: 'Settings',
                            make_spec: 'Callable[..., TestSpec]') -> None:
    """Report the first mismatching check with the observed value."""
    spec = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'stone'},
        {'at': 1, 'do': 'assert', 'checks': [
            {'pos': [0, 0, 0], 'is': 'oak_planks'},
            {'pos': [1, 0, 0], 'is': 'dirt'},
        ]},
    )

    with pytest.raises(AssertionMismatch, match=(
        r"^Block at \[-16, 0, 16\] is not oak_planks \(got 'minecraft:stone'\)"
    )) as error:
        run_entry(ActionExecutor(world, settings), spec)

    assert error.value.position == Position(-16, 0, 16)
    assert error.value.expected == 'oak_planks'
    assert error.value.observed == 'minecraft:stone'


def test_assertion_polls_bounded(mocker: 'MockerFixture', world: MemoryWorld,
                                 settings: 'Settings',
                                 make_spec: 'Callable[..., TestSpec]') -> None:
    """Give up after the configured number of reads."""
    get_block = mocker.spy(world, 'get_block')
    spec = make_spec({'at': 0, 'do': 'assert', 'checks': [{'pos': [0, 0, 0], 'is': 'stone'}]})

    with pytest.raises(AssertionMismatch):
        run_entry(ActionExecutor(world, settings), spec)

    assert get_block.call_count == settings.poll_attempts


def test_state_mismatch(world: MemoryWorld, settings: 'Settings',
                        make_spec: 'Callable[..., TestSpec]') -> None:
    """Compare each tick with its own expected value."""
    spec = make_spec(
        {'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'redstone_wire[power=15]'},
        {'at': [1, 2], 'do': 'assert_state', 'pos': [0, 0, 0], 'state': 'power', 'values': ['15', '14']},
    )
    executor = ActionExecutor(world, settings)
    timeline = merge([(spec, ORIGIN)])

    executor.execute(timeline.due(0)[0])
    assert executor.execute(timeline.due(1)[0]) is True

    with pytest.raises(AssertionMismatch, match=r'state power is not 14 \(got .15.\)'):
        executor.execute(timeline.due(2)[0])


def test_clear_region(world: MemoryWorld, settings: 'Settings') -> None:
    """Clear a translated region twice with the same result."""
    executor = ActionExecutor(world, settings)
    region = Region(Position(0, 0, 0), Position(2, 2, 2))

    world.send_command('fill -16 0 16 -14 2 18 stone')
    executor.clear(region, OFFSET)
    first = dict(world.blocks)
    executor.clear(region, OFFSET)

    assert first == world.blocks == {}
    assert world.history[-1] == '/fill -16 0 16 -14 2 18 air'


def test_command_error_propagates(settings: 'Settings',
                                  make_spec: 'Callable[..., TestSpec]') -> None:
    """Propagate channel failures unchanged."""
    world = MemoryWorld('closed')
    world.close()
    spec = make_spec({'at': 0, 'do': 'place', 'pos': [0, 0, 0], 'block': 'stone'})

    with pytest.raises(CommandError, match=r'closed'):
        run_entry(ActionExecutor(world, settings), spec)
