"""Tests configurations and fixtures."""

from importlib.metadata import EntryPoint, EntryPoints
from typing import TYPE_CHECKING, Any

import pytest

from flintmc.channels import MemoryWorld
from flintmc.schema import TestSpec
from flintmc.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from flintmc.extensions import Plugin


@pytest.fixture
def settings() -> Settings:
    """Provide run settings without any delays.

    Polling keeps its default number of attempts so that the retry
    bound is still observable, but never sleeps between them.
    """
    return Settings(
        settle_delay=0,
        freeze_delay=0,
        tick_delay=0,
        stagger_delay=0,
        poll_interval=0,
        chat_poll_interval=0.01,
    )


@pytest.fixture
def world() -> MemoryWorld:
    """Provide an empty memory world without propagation lag."""
    return MemoryWorld('test')


@pytest.fixture
def make_spec() -> 'Callable[..., TestSpec]':
    """Provide a factory of test specifications.

    The factory accepts the timeline and any top-level document field.
    A 15x15x15 cleanup region at the origin is used unless `setup` is
    given explicitly.
    """
    def make(*timeline: dict[str, Any], name: str = 'example', **fields: Any) -> TestSpec:  # noqa: ANN401
        document = {
            'name': name,
            'setup': {'cleanup': {'region': [[0, 0, 0], [14, 14, 14]]}},
            'timeline': list(timeline),
            **fields,
        }
        return TestSpec.model_validate(document)

    return make


@pytest.fixture
def patch_entrypoints(mocker: 'MockerFixture') -> 'Callable[..., MockType]':
    """Provide a factory for mocking `importlib.metadata.entry_points`.

    Returns a callable that patches `entry_points()` to simulate
    discovery of plugins in the `flintmc_channels` entry point group.

    The returned factory allows configuring:
    - a successfully loadable plugin,
    - or an exception raised during plugin loading,
    - or an empty entry point list.
    """
    def patch(*plugins: 'Plugin', raises: Exception | None = None) -> 'MockType':
        """Patch `entry_points` with a controlled plugin configuration.

        Args:
            plugins: Plugin objects to be returned by `EntryPoint.load()`.
                If empty, no entry points are registered.
            raises: Exception to raise when `EntryPoint.load()` is called.

        Returns:
            A mock patch object replacing `importlib.metadata.entry_points`.
        """
        entrypoints = []
        for plugin in plugins:
            ep = mocker.Mock(spec=EntryPoint)
            ep.group = 'flintmc_channels'
            ep.name = 'tests'
            ep.value = 'tests.examples.plugins:example'
            ep.load.return_value = plugin
            if raises is not None:
                ep.load.side_effect = raises
            entrypoints.append(ep)

        return mocker.patch(
            'importlib.metadata.entry_points',
            return_value=EntryPoints(entrypoints),
        )

    return patch
