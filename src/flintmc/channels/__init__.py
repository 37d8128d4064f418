"""World-control channels.

Defines the channel contract used by the runtime and the builtin
in-memory world.
"""

from .base import Connector, WorldChannel
from .memory import MemoryWorld

__all__ = (
    'Connector',
    'MemoryWorld',
    'WorldChannel',
)
