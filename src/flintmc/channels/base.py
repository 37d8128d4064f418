"""World-control channel contract.

A channel is the only way the runtime touches the world. It is used
strictly serially: the runtime blocks on every call before issuing the
next one. Implementations may run network sessions in background
threads, but must hand out the channel only once it is ready.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Self

from flintmc.errors import CommandError
from flintmc.settings import Settings

if TYPE_CHECKING:
    from types import TracebackType

if TYPE_CHECKING:
    from flintmc.schema import Position


class WorldChannel(ABC):
    """Connected world-control channel."""

    @abstractmethod
    def send_command(self, command: str) -> None:
        """Send a command to the world.

        Args:
            command: Command text, with or without a leading slash.

        Raises:
            CommandError: If the command can not be delivered or is rejected.
        """

    @abstractmethod
    def get_block(self, position: 'Position') -> str | None:
        """Return the block identifier at a position.

        Returns:
            The block representation reported by the world,
            or `None` if the position is not known to the channel.
        """

    @abstractmethod
    def get_block_state_property(self, position: 'Position', name: str) -> str | None:
        """Return a block state property at a position.

        Returns:
            The property value reported by the world, or `None` if the
            block is unknown or has no such property.
        """

    def recv_chat(self, timeout: float) -> str | None:
        """Wait for the next inbound chat message.

        Args:
            timeout: Maximal wait in seconds; zero does not wait at all.

        Returns:
            The message text, or `None` if nothing arrived in time.

        Raises:
            CommandError: If the channel does not relay chat.
        """
        raise CommandError(f'{type(self).__name__} does not relay chat messages')

    def close(self) -> None:
        """Release the channel."""
        return None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type[BaseException] | None,
                 exc_value: BaseException | None,
                 traceback: 'TracebackType | None') -> None:
        self.close()


#: Factory creating a ready channel from an address. Must raise
#: `WorldConnectionError` (or `ConnectionTimeout`) if the world can
#: not be joined within `Settings.connect_timeout`.
type Connector = Callable[[str, Settings], WorldChannel]
