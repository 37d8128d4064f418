"""Channel discovery and loading infrastructure.

This module defines a registry responsible for discovering, loading,
and registering world channels. Builtin channels are registered
directly; third-party channels are exposed by plugins through the
`flintmc_channels` entry point group.

A failing plugin only stops the loading process in strict mode;
otherwise it is reported with a warning and skipped.
"""

from typing import TYPE_CHECKING
from warnings import warn

from pydantic import ValidationError

from flintmc.builtins import channels
from flintmc.errors import PluginError, PluginWarning
from flintmc.extensions import Plugin

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

if TYPE_CHECKING:
    from flintmc.extensions import Channel

#: Entry point group scanned for channel plugins.
ENTRYPOINT_GROUP = 'flintmc_channels'


class ChannelRegistry:
    """Registry of world channels by name.

    Attributes:
        strict_mode: If True, any plugin loading issue raises an error.
            If False, issues are emitted as warnings and loading continues.
        channels: Registered channel definitions by qualified name.
    """

    def __init__(self, strict: bool = True, auto_load: bool = True) -> None:
        """Initialize the registry with builtin channels.

        Args:
            strict: Whether plugin issues raise errors instead of warnings.
            auto_load: Whether plugins are loaded from entry points.

        Raises:
            PluginError: If any loading issue occurs in strict mode.
        """
        self.strict_mode = strict
        self.channels: dict[str, Channel] = {}

        self.add_channel(channels.memory)

        if auto_load:
            self.load_plugins()

    def add_channel(self, channel: 'Channel',
                    entrypoint: 'EntryPoint | None' = None,
                    namespace: str | None = None) -> None:
        """Register a channel definition.

        Builtin channels are registered under their plain name, plugin
        channels under `<namespace>.<name>`.

        Args:
            channel: Declarative channel definition.
            entrypoint: Entry point the channel was loaded from, if any.
            namespace: Optional plugin namespace to prefix the name.

        Raises:
            PluginError: If the channel shadows another one in strict mode.
        """
        qualname = f'{namespace}.{channel.name}' if namespace else channel.name
        module = f'{entrypoint.value if entrypoint else channel.connector.__module__}'

        if qualname in self.channels and (error := self.emit_plugin_issue(
            f'Channel {qualname!r} from {module!r} is shadowing an existing',
            entrypoint,
        )):
            raise error

        self.channels[qualname] = channel

    def get(self, name: str) -> 'Channel':
        """Return a registered channel.

        Raises:
            PluginError: If no channel is registered under the name.
        """
        if channel := self.channels.get(name):
            return channel

        known = ', '.join(sorted(self.channels))
        raise PluginError(f'Unknown channel {name!r}, expected one of: {known}')

    def emit_plugin_issue(self, message: str,
                          entrypoint: 'EntryPoint | None' = None) -> Exception | None:
        """Emit a plugin warning or return the exception.

        Args:
            message: Warning message to emit.
            entrypoint: Entry point the issue relates to, if any.

        Returns:
            PluginError in strict mode, otherwise `None`
                after emitting a PluginWarning.
        """
        if self.strict_mode:
            return PluginError(message, entrypoint=entrypoint)

        warn(message, category=PluginWarning, stacklevel=2)

        return None

    def _load_plugin(self, entrypoint: 'EntryPoint') -> None:
        """Load and register a single plugin entry point.

        Args:
            entrypoint: Entry point describing the plugin to load.

        Raises:
            PluginError: If any loading issue occurs in strict mode.
        """
        try:
            plugin = entrypoint.load()

        except ValidationError as base:
            if error := self.emit_plugin_issue(
                f'Failed to validate entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        except Exception as base:
            if error := self.emit_plugin_issue(
                f'Failed to load entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        if not isinstance(plugin, Plugin):
            if error := self.emit_plugin_issue(
                f'Loaded from entrypoint {entrypoint.name!r} object is not a plugin',
                entrypoint,
            ):
                raise error
            return None

        for channel in plugin.channels:
            self.add_channel(channel, entrypoint, namespace=plugin.name)

    def load_plugins(self) -> None:
        """Load plugins via entry points and register their channels.

        Raises:
            PluginError: If any loading issue occurs in strict mode.
        """
        from importlib.metadata import entry_points  # noqa: PLC0415

        for entrypoint in entry_points().select(group=ENTRYPOINT_GROUP):
            self._load_plugin(entrypoint)
