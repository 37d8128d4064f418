"""Declarative channel plugin definitions.

A plugin groups world channels contributed by a third-party package.
Plugins are exposed through the `flintmc_channels` entry point group
and are consumed by the channel loader, which registers every channel
under `<plugin>.<channel>`.

Plugin instances are purely declarative; the bound connector callable
does the actual work of joining a world.
"""

from typing import TYPE_CHECKING

from pydantic import Field

from flintmc.channels import Connector
from flintmc.models import SchemaModel
from flintmc.names import Variable  # noqa: TC001

if TYPE_CHECKING:
    from flintmc.channels import WorldChannel
    from flintmc.settings import Settings


class Channel(SchemaModel):
    """Declarative world channel definition."""

    connector: Connector = Field(
        title='Connector function',
        description=(
            'Callable receiving a world address and the run settings. '
            'Must return a ready channel or raise a connection error.'
        ),
    )

    name: Variable = Field(
        title='Channel name',
        description='Name used to select the channel from the command line.',
    )

    description: str | None = Field(
        default=None,
        title='Description',
        description='Short human-readable description of the channel.',
    )

    def connect(self, address: str, settings: 'Settings') -> 'WorldChannel':
        """Join a world through this channel.

        Args:
            address: World address, for example `localhost:25565`.
            settings: Run settings.

        Returns:
            Ready world channel.

        Raises:
            WorldConnectionError: If the world can not be joined.
        """
        return self.connector(address, settings)


class Plugin(SchemaModel):
    """Declarative container for channel extensions."""

    name: Variable = Field(
        title='Plugin namespace',
        description=(
            'Logical namespace of the plugin. '
            'Used as a prefix of the contributed channel names.'
        ),
    )

    version: int = Field(
        default=1,
        title='Plugin contract version',
        description=(
            'Version of the plugin contract. '
            'This is not a semantic version of the plugin implementation.'
        ),
    )

    channels: list[Channel] = Field(
        default_factory=list,
        title='Channels',
        description='World channels provided by the plugin.',
    )
