"""Region and containment rules for test specifications.

The rules span several fields of a document and are therefore checked
after schema validation:

- the cleanup region must be ordered (`min <= max` component-wise);
- the region must not exceed the maximal test footprint;
- every position referenced by the timeline must lie inside the region.

A missing `setup` section is rejected in strict mode. In relaxed mode
such a test is accepted and simply has no cleanup and no containment
checking.
"""

from typing import TYPE_CHECKING

from flintmc.errors import (
    ErrorContext,
    InvalidRegion,
    MissingSetup,
    PositionOutOfBounds,
    RegionTooLarge,
)

if TYPE_CHECKING:
    from flintmc.schema import Position, Region, TestSpec

MAX_WIDTH = 15
MAX_HEIGHT = 384
MAX_DEPTH = 15


def _format_position(position: 'Position') -> str:
    return '[{},{},{}]'.format(*position)


class SpecValidator:
    """Validator of specification rules.

    Attributes:
        strict_mode: If True, a cleanup region is mandatory.
    """

    def __init__(self, strict: bool = True) -> None:
        """Initialize the validator.

        Args:
            strict: Whether tests without a `setup` section are rejected.
        """
        self.strict_mode = strict

    def validate(self, spec: 'TestSpec', *, filename: str | None = None) -> None:
        """Validate a parsed test specification.

        Args:
            spec: Parsed test specification.
            filename: Optional source file name for error reporting.

        Raises:
            MissingSetup: If the region is missing in strict mode.
            InvalidRegion: If the region corners are not ordered.
            RegionTooLarge: If the region exceeds the maximal size.
            PositionOutOfBounds: If a timeline position lies outside the region.
        """
        region = spec.cleanup_region
        if region is None:
            if self.strict_mode:
                raise MissingSetup(
                    f'Test {spec.name!r} missing required "setup" section',
                    context=ErrorContext(filename=filename),
                )
            return

        self.validate_region(spec.name, region, filename=filename)

        for entry_num, entry in enumerate(spec.timeline):
            for position in entry.positions():
                if region.contains(position):
                    continue
                raise PositionOutOfBounds(
                    (
                        f'Test {spec.name!r}: position {_format_position(position)} '
                        f'is outside cleanup region {_format_position(region.lower)} '
                        f'to {_format_position(region.upper)}'
                    ),
                    position=position,
                    region=region,
                    context=ErrorContext(
                        filename=filename,
                        test_name=spec.name,
                        entry_num=entry_num,
                        element=entry.model_dump(mode='json', by_alias=True),
                    ),
                )

    @staticmethod
    def validate_region(name: str, region: 'Region', *,
                        filename: str | None = None) -> None:
        """Validate ordering and size of a cleanup region.

        Args:
            name: Test name for error messages.
            region: Region to check.
            filename: Optional source file name for error reporting.

        Raises:
            InvalidRegion: If the region corners are not ordered.
            RegionTooLarge: If the region exceeds the maximal size.
        """
        context = ErrorContext(filename=filename)

        if not region.is_ordered:
            raise InvalidRegion(
                (
                    f'Test {name!r}: invalid cleanup region, min coordinates '
                    f'must be <= max coordinates. Got min={_format_position(region.lower)}, '
                    f'max={_format_position(region.upper)}'
                ),
                context=context,
            )

        width, height, depth = region.size
        for label, value, limit in (
            ('width', width, MAX_WIDTH),
            ('height', height, MAX_HEIGHT),
            ('depth', depth, MAX_DEPTH),
        ):
            if value > limit:
                raise RegionTooLarge(
                    f'Test {name!r}: cleanup region {label} {value} exceeds maximum {limit}',
                    context=context,
                )
