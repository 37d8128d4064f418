"""In-memory world channel.

The memory world understands the small command surface the runtime
uses (`setblock`, `fill`, `tick`, `say`) and keeps blocks in a mapping.
It can defer every mutation by a number of later queries to imitate a
remote world that propagates changes asynchronously.
"""

from collections import deque
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from queue import Empty, Queue
from re import compile as regexp
from threading import Thread
from typing import TYPE_CHECKING, Self

from loguru import logger

from flintmc.errors import CommandError, ConnectionTimeout, WorldConnectionError
from flintmc.schema import Position, Region

from .base import WorldChannel

if TYPE_CHECKING:
    from collections.abc import Callable

AIR = 'minecraft:air'
DEFAULT_NAMESPACE = 'minecraft'

#: Maximal number of blocks a single non-clearing `fill` may change.
FILL_LIMIT = 32768

BLOCK_PATTERN = regexp(r'^(?P<id>[^\[\]{}]+)(\[(?P<states>[^\]]*)\])?(?P<data>\{.*\})?$')


def normalize_block(block: str) -> str:
    """Add the default namespace to a block identifier."""
    if ':' in block.split('[', 1)[0]:
        return block

    return f'{DEFAULT_NAMESPACE}:{block}'


def parse_states(block: str) -> dict[str, str]:
    """Extract block state properties from a block identifier.

    Args:
        block: Identifier such as `minecraft:repeater[delay=2,facing=north]`.

    Returns:
        Mapping of property names to values, empty if there are none.
    """
    matched = BLOCK_PATTERN.match(block)
    if not matched or not matched['states']:
        return {}

    states = {}
    for item in matched['states'].split(','):
        name, _, value = item.partition('=')
        if name.strip():
            states[name.strip()] = value.strip()

    return states


class MemoryWorld(WorldChannel):
    """Simulated world kept in process memory.

    Attributes:
        name: Address the world was joined with.
        lag: Number of queries each mutation stays invisible for.
        blocks: Visible non-air blocks by position.
        frozen: Whether the world clock is frozen.
        tick: Number of ticks stepped while frozen.
        history: Every accepted command, in order.
        broadcasts: Messages announced with `say`.
    """

    def __init__(self, name: str = 'memory', *, lag: int = 0) -> None:
        self.name = name
        self.lag = lag

        self.blocks: dict[Position, str] = {}
        self.frozen = False
        self.tick = 0
        self.history: list[str] = []
        self.broadcasts: list[str] = []
        self.closed = False

        self._pending: deque[list] = deque()
        self._chat: Queue[str] = Queue()

    @classmethod
    def connect(cls, address: str, *, timeout: float, lag: int = 0) -> Self:
        """Join a memory world from a background session.

        The session thread fulfils a one-shot future once the world is
        ready; the caller waits on it exactly once.

        Args:
            address: World name.
            timeout: Maximal wait for readiness in seconds.
            lag: Number of queries each mutation stays invisible for.

        Returns:
            Ready world channel.

        Raises:
            WorldConnectionError: If the address is empty.
            ConnectionTimeout: If the world is not ready in time.
        """
        ready: Future[Self] = Future()

        session = Thread(
            target=cls._join,
            args=(address, lag, ready),
            name=f'memory-world-{address}',
            daemon=True,
        )
        session.start()

        try:
            return ready.result(timeout=timeout)

        except FutureTimeoutError as base:
            raise ConnectionTimeout(
                f'World {address!r} was not ready within {timeout:g}s',
            ) from base

    @classmethod
    def _join(cls, address: str, lag: int, ready: 'Future[Self]') -> None:
        """Create the world and report readiness."""
        if not address.strip():
            ready.set_exception(WorldConnectionError('World address is empty'))
            return

        world = cls(address.strip(), lag=lag)
        logger.debug('Memory world {!r} is ready', world.name)
        ready.set_result(world)

    def send_command(self, command: str) -> None:
        if self.closed:
            raise CommandError('Channel is closed')

        text = command.strip().removeprefix('/')
        name, _, arguments = text.partition(' ')

        handler: Callable[[list[str]], None] | None = {
            'setblock': self._setblock,
            'fill': self._fill,
            'tick': self._tick,
            'say': self._say,
        }.get(name)

        if handler is None:
            raise CommandError(f'Unknown command: /{text}')

        handler(arguments.split())

        self.history.append(f'/{text}')
        logger.trace('Memory world {!r} accepted /{}', self.name, text)

    def get_block(self, position: Position) -> str | None:
        self._settle()
        return self.blocks.get(Position(*position), AIR)

    def get_block_state_property(self, position: Position, name: str) -> str | None:
        self._settle()
        if (block := self.blocks.get(Position(*position))) is None:
            return None

        return parse_states(block).get(name)

    def recv_chat(self, timeout: float) -> str | None:
        try:
            if timeout <= 0:
                return self._chat.get_nowait()
            return self._chat.get(timeout=timeout)

        except Empty:
            return None

    def post_chat(self, message: str) -> None:
        """Deliver an inbound chat message, as if a player wrote it."""
        self._chat.put(message)

    def close(self) -> None:
        self.closed = True

    @staticmethod
    def _parse_position(arguments: list[str]) -> Position:
        try:
            return Position(*(int(value) for value in arguments))
        except ValueError as base:
            raise CommandError(f'Invalid position: {" ".join(arguments)}') from base

    def _setblock(self, arguments: list[str]) -> None:
        if len(arguments) not in (4, 5):
            raise CommandError('Usage: /setblock <x> <y> <z> <block> [mode]')

        position = self._parse_position(arguments[:3])
        block = normalize_block(arguments[3])

        self._mutate(lambda: self._put(position, block))

    def _fill(self, arguments: list[str]) -> None:
        if len(arguments) not in (7, 8):
            raise CommandError('Usage: /fill <from> <to> <block> [mode]')

        first = self._parse_position(arguments[:3])
        second = self._parse_position(arguments[3:6])
        region = Region(
            Position(*map(min, first, second)),
            Position(*map(max, first, second)),
        )
        block = normalize_block(arguments[6])

        if block == AIR:
            self._mutate(lambda: self._clear(region))
            return

        width, height, depth = region.size
        if (volume := width * height * depth) > FILL_LIMIT:
            raise CommandError(f'Too many blocks in the specified area ({volume} > {FILL_LIMIT})')

        self._mutate(lambda: self._cover(region, block))

    def _tick(self, arguments: list[str]) -> None:
        action, *rest = arguments or ['']

        if action == 'freeze' and not rest:
            self.frozen = True
        elif action == 'unfreeze' and not rest:
            self.frozen = False
        elif action == 'step' and len(rest) <= 1:
            if not self.frozen:
                raise CommandError('Can only step the game while it is frozen')
            try:
                self.tick += int(rest[0]) if rest else 1
            except ValueError as base:
                raise CommandError(f'Invalid tick count: {rest[0]}') from base
        else:
            raise CommandError('Usage: /tick freeze|unfreeze|step [count]')

    def _say(self, arguments: list[str]) -> None:
        self.broadcasts.append(' '.join(arguments))

    def _mutate(self, mutation: 'Callable[[], None]') -> None:
        if self.lag <= 0:
            mutation()
            return

        self._pending.append([self.lag, mutation])

    def _settle(self) -> None:
        """Apply due mutations and count one query against the rest."""
        while self._pending and self._pending[0][0] <= 0:
            _, mutation = self._pending.popleft()
            mutation()

        for pending in self._pending:
            pending[0] -= 1

    def _put(self, position: Position, block: str) -> None:
        if block == AIR:
            self.blocks.pop(position, None)
        else:
            self.blocks[position] = block

    def _clear(self, region: Region) -> None:
        for position in [item for item in self.blocks if region.contains(item)]:
            del self.blocks[position]

    def _cover(self, region: Region, block: str) -> None:
        for x in range(region.lower.x, region.upper.x + 1):
            for y in range(region.lower.y, region.upper.y + 1):
                for z in range(region.lower.z, region.upper.z + 1):
                    self.blocks[Position(x, y, z)] = block
