"""Execution of scheduled actions against a world channel.

Every action is translated by the offset of its test before any world
call. Mutating actions are fire-and-forget commands; assertions poll the
world until the expected value shows up or the attempts run out, and
raise `AssertionMismatch` with the last observed value otherwise.
"""

from time import sleep
from typing import TYPE_CHECKING, Any

from loguru import logger

from flintmc.errors import AssertionMismatch
from flintmc.schema import (
    AssertAction,
    AssertStateAction,
    FillAction,
    PlaceAction,
    PlaceEachAction,
    RemoveAction,
)

from .retry import poll

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from flintmc.channels import WorldChannel
    from flintmc.schema import BaseAction, Position, Region
    from flintmc.settings import Settings

    from .timeline import ScheduledAction

AIR = 'air'


def _strip_namespace(block: str) -> str:
    """Drop a `namespace:` prefix of a block identifier."""
    head, separator, tail = block.partition(':')
    if separator and '[' not in head and '{' not in head:
        return tail

    return block


def blocks_match(expected: str, observed: str | None) -> bool:
    """Compare a requested block identifier with a world representation.

    Both sides lose their namespace and letter case. The expected
    identifier matches when it is contained in the observed one, with or
    without underscores on either side. This tolerates representations
    such as `RedstoneWireBlock{power=5}` for `minecraft:redstone_wire`.

    Args:
        expected: Block identifier from a test specification.
        observed: Block representation reported by the world.

    Returns:
        Whether the observed block is the expected one.
    """
    if observed is None:
        return False

    expected = _strip_namespace(expected).lower()
    observed = _strip_namespace(observed).lower()

    expected_forms = {expected, expected.replace('_', '')}
    observed_forms = {observed, observed.replace('_', '')}

    return any(
        candidate in representation
        for candidate in expected_forms
        for representation in observed_forms
    )


def state_matches(expected: str, observed: str | None) -> bool:
    """Check that an observed state property contains the expected value."""
    return observed is not None and expected in observed


def setblock_command(position: 'Position', block: str) -> str:
    return f'setblock {position.to_command()} {block}'


def fill_command(region: 'Region', block: str) -> str:
    return f'fill {region.to_command()} {block}'


class ActionExecutor:
    """Dispatcher of timeline actions to world calls.

    Attributes:
        channel: World channel all calls go through.
        settings: Run settings with delays and polling limits.
    """

    def __init__(self, channel: 'WorldChannel', settings: 'Settings') -> None:
        self.channel = channel
        self.settings = settings

        self.runners: 'dict[type[BaseAction], Callable[[Any, int, int, Position], None]]' = {
            PlaceAction: self.place,
            PlaceEachAction: self.place_each,
            FillAction: self.fill,
            RemoveAction: self.remove,
            AssertAction: self.check_blocks,
            AssertStateAction: self.check_state,
        }

    def execute(self, scheduled: 'ScheduledAction') -> bool:
        """Execute a scheduled action.

        Args:
            scheduled: Action bound to a tick and a test offset.

        Returns:
            True if the action was an assertion and it passed,
            False for mutating actions.

        Raises:
            AssertionMismatch: If an assertion does not hold.
            CommandError: If a world call fails.
        """
        action = scheduled.action
        runner = self.runners[type(action)]

        runner(action, scheduled.tick, scheduled.value_index, scheduled.offset)

        return action.is_assertion

    def send(self, command: str) -> None:
        """Send a command to the world."""
        logger.debug('-> /{}', command)
        self.channel.send_command(command)

    def clear(self, region: 'Region', offset: 'Position') -> None:
        """Fill a region, translated by an offset, with air."""
        self.send(fill_command(region.shift(offset), AIR))

    def place(self, action: PlaceAction, tick: int, value_index: int,
              offset: 'Position') -> None:
        position = action.pos.shift(offset)
        self.send(setblock_command(position, action.block))
        logger.info('Tick {}: place at {} = {}', tick, list(position), action.block)

    def place_each(self, action: PlaceEachAction, tick: int, value_index: int,
                   offset: 'Position') -> None:
        for placement in action.blocks:
            position = placement.pos.shift(offset)
            self.send(setblock_command(position, placement.block))
            logger.info('Tick {}: place at {} = {}', tick, list(position), placement.block)
            sleep(self.settings.stagger_delay)

    def fill(self, action: FillAction, tick: int, value_index: int,
             offset: 'Position') -> None:
        region = action.region.shift(offset)
        self.send(fill_command(region, action.block))
        logger.info(
            'Tick {}: fill {} to {} = {}',
            tick, list(region.lower), list(region.upper), action.block,
        )

    def remove(self, action: RemoveAction, tick: int, value_index: int,
               offset: 'Position') -> None:
        position = action.pos.shift(offset)
        self.send(setblock_command(position, AIR))
        logger.info('Tick {}: remove at {}', tick, list(position))

    def check_blocks(self, action: AssertAction, tick: int, value_index: int,
                     offset: 'Position') -> None:
        for check in action.checks:
            position = check.pos.shift(offset)
            observed = poll(
                lambda position=position: self.channel.get_block(position),
                lambda value, expected=check.expected: blocks_match(expected, value),
                attempts=self.settings.poll_attempts,
                interval=self.settings.poll_interval,
            )

            if not blocks_match(check.expected, observed):
                raise AssertionMismatch(
                    f'Block at {list(position)} is not {check.expected} (got {observed!r})',
                    position=position,
                    expected=check.expected,
                    observed=observed,
                )

            logger.info('Tick {}: assert block at {} is {}', tick, list(position), check.expected)

    def check_state(self, action: AssertStateAction, tick: int, value_index: int,
                    offset: 'Position') -> None:
        position = action.pos.shift(offset)
        expected = action.values[value_index]

        observed = poll(
            lambda: self.channel.get_block_state_property(position, action.state),
            lambda value: state_matches(expected, value),
            attempts=self.settings.poll_attempts,
            interval=self.settings.poll_interval,
        )

        if not state_matches(expected, observed):
            raise AssertionMismatch(
                (
                    f'Block at {list(position)} state {action.state} '
                    f'is not {expected} (got {observed!r})'
                ),
                position=position,
                expected=expected,
                observed=observed,
            )

        logger.info(
            'Tick {}: assert block at {} state {} = {}',
            tick, list(position), action.state, expected,
        )
