"""Test specification document model."""

from pydantic import Field, NonNegativeInt

from flintmc.models import SchemaModel

from .actions import TimelineEntry  # noqa: TC001
from .positions import Region  # noqa: TC001


class CleanupSpec(SchemaModel):
    """Area owned by a test."""

    region: Region = Field(
        title='Cleanup region',
        description=(
            'Two inclusive corners of the box cleared before and after '
            'the test. Every timeline position must lie inside it.'
        ),
    )


class SetupSpec(SchemaModel):
    """Test preparation section."""

    cleanup: CleanupSpec


class TestSpec(SchemaModel):
    """A single declarative test.

    A test is a timeline of world mutations and assertions bound to
    ticks. Several tests may be scheduled together in one world; each
    gets its own grid cell so their regions never overlap.
    """

    __test__ = False

    flint_version: str | None = Field(
        default=None,
        validation_alias='flintVersion',
        title='Format version',
        description='Informational version of the specification format.',
    )

    name: str = Field(
        min_length=1,
        title='Test name',
        description='Unique human-readable identifier of the test.',
    )

    description: str | None = Field(
        default=None,
        title='Description',
        description='Detailed human-readable description of the test.',
    )

    tags: list[str] = Field(
        default_factory=list,
        title='Tags',
        description='Informational tags.',
    )

    dependencies: list[str] = Field(
        default_factory=list,
        title='Dependencies',
        description='Informational names of tests this one relies on.',
    )

    setup: SetupSpec | None = Field(
        default=None,
        title='Setup',
        description=(
            'Cleanup region of the test. Required unless specifications '
            'are validated in relaxed mode.'
        ),
    )

    timeline: list[TimelineEntry] = Field(
        title='Timeline',
        description='Ordered list of actions bound to ticks.',
    )

    breakpoints: list[NonNegativeInt] = Field(
        default_factory=list,
        title='Breakpoints',
        description=(
            'Ticks after which the run pauses for an interactive '
            'step or continue decision.'
        ),
    )

    @property
    def cleanup_region(self) -> Region | None:
        """Cleanup region, if the test declares one."""
        if self.setup is None:
            return None

        return self.setup.cleanup.region

    @property
    def max_tick(self) -> int:
        """Last tick used by the timeline, zero for an empty one."""
        return max((tick for entry in self.timeline for tick in entry.ticks), default=0)
