"""Builtin world channels."""

from typing import TYPE_CHECKING

from flintmc.channels import MemoryWorld
from flintmc.extensions import Channel

if TYPE_CHECKING:
    from flintmc.settings import Settings


def _connect_memory(address: str, settings: 'Settings') -> MemoryWorld:
    """Join an in-process simulated world named by the address.

    Args:
        address: World name.
        settings: Run settings.

    Returns:
        Ready memory world.
    """
    return MemoryWorld.connect(address, timeout=settings.connect_timeout)


memory = Channel(
    connector=_connect_memory,
    name='memory',
    description='In-process simulated world for dry runs.',
)
