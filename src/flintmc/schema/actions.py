"""Timeline entry definitions.

Every timeline entry binds one action to one or more ticks. The action
variant is selected by the mandatory `do` discriminator, and the
remaining fields are validated against that variant's shape only, so a
malformed entry reports the field that is wrong rather than a generic
mismatch against every variant.

This module is declarative. World calls are issued by the runtime
executor, which dispatches on the `do` value.
"""

from abc import abstractmethod
from collections.abc import Iterator
from typing import Annotated, ClassVar, Literal, Self

from pydantic import Field, NonNegativeInt, model_validator

from flintmc.models import SchemaModel
from flintmc.names import BlockId, StateName  # noqa: TC001

from .positions import Position, Region  # noqa: TC001

#: One tick, or an ordered list of ticks. The position of a tick in
#: the list selects the value that `assert_state` expects at that tick.
TickSpec = NonNegativeInt | Annotated[list[NonNegativeInt], Field(min_length=1)]


class BaseAction(SchemaModel):
    """Base class for timeline entries."""

    #: Whether a successful execution counts as a passed assertion.
    is_assertion: ClassVar[bool] = False

    at: TickSpec = Field(
        title='Ticks',
        description=(
            'Tick, or ordered list of ticks, at which the action runs.\n'
            'Ticks are counted from the moment the world clock is frozen.'
        ),
    )

    do: str

    @property
    def ticks(self) -> tuple[int, ...]:
        """Ticks of the entry in declaration order."""
        if isinstance(self.at, int):
            return (self.at,)

        return tuple(self.at)

    @abstractmethod
    def positions(self) -> Iterator[Position]:
        """Iterate over every world position the entry references."""


class BlockPlacement(SchemaModel):
    """A single block to place."""

    pos: Position = Field(title='Position')
    block: BlockId


class BlockCheck(SchemaModel):
    """A single block expectation."""

    pos: Position = Field(title='Position')
    expected: BlockId = Field(
        validation_alias='is',
        title='Expected block',
        description=(
            'Expected block identifier. Namespaces, letter case and '
            'underscores are ignored when comparing with the world.'
        ),
    )


class PlaceAction(BaseAction):
    """Set one block."""

    do: Literal['place']

    pos: Position = Field(title='Position')
    block: BlockId

    def positions(self) -> Iterator[Position]:
        yield self.pos


class PlaceEachAction(BaseAction):
    """Set several blocks in the same tick, one after another."""

    do: Literal['place_each']

    blocks: list[BlockPlacement] = Field(
        min_length=1,
        title='Placements',
        description='Blocks placed in declaration order.',
    )

    def positions(self) -> Iterator[Position]:
        for placement in self.blocks:
            yield placement.pos


class FillAction(BaseAction):
    """Fill a box with one block."""

    do: Literal['fill']

    region: Region = Field(title='Region')
    block: BlockId = Field(
        validation_alias='with',
        title='Fill block',
    )

    def positions(self) -> Iterator[Position]:
        yield from self.region


class RemoveAction(BaseAction):
    """Clear one block."""

    do: Literal['remove']

    pos: Position = Field(title='Position')

    def positions(self) -> Iterator[Position]:
        yield self.pos


class AssertAction(BaseAction):
    """Verify that blocks are of the expected kinds."""

    is_assertion: ClassVar[bool] = True

    do: Literal['assert']

    checks: list[BlockCheck] = Field(
        min_length=1,
        title='Block checks',
        description='All checks must match for the assertion to pass.',
    )

    def positions(self) -> Iterator[Position]:
        for check in self.checks:
            yield check.pos


class AssertStateAction(BaseAction):
    """Verify a block state property, tick by tick.

    The i-th tick of `at` expects the i-th entry of `values`.
    """

    is_assertion: ClassVar[bool] = True

    do: Literal['assert_state']

    pos: Position = Field(title='Position')
    state: StateName
    values: list[str] = Field(
        min_length=1,
        title='Expected values',
        description=(
            'Expected property values, one per tick of `at`. '
            'A value matches when it is contained in the observed one.'
        ),
    )

    @model_validator(mode='after')
    def check_values_count(self) -> Self:
        """Check that every tick has an expected value.

        Raises:
            ValueError: If fewer values than ticks are declared.
        """
        if len(self.values) >= len(self.ticks):
            return self

        raise ValueError(
            f'Expected at least {len(self.ticks)} values '
            f'for {len(self.ticks)} ticks, got {len(self.values)}',
        )

    def positions(self) -> Iterator[Position]:
        yield self.pos


TimelineEntry = Annotated[
    PlaceAction
    | PlaceEachAction
    | FillAction
    | RemoveAction
    | AssertAction
    | AssertStateAction,
    Field(discriminator='do'),
]
