"""World coordinates and axis-aligned regions."""

from typing import NamedTuple, Self


class Position(NamedTuple):
    """Integer block position in world space.

    Also used for test offsets, which are translations applied to every
    position a test references.
    """

    x: int
    y: int
    z: int

    def shift(self, offset: 'Position') -> 'Position':
        """Translate the position by an offset."""
        return Position(self.x + offset.x, self.y + offset.y, self.z + offset.z)

    def to_command(self) -> str:
        """Render the position as command arguments."""
        return f'{self.x} {self.y} {self.z}'


#: Offset of a test that is not translated at all.
ORIGIN = Position(0, 0, 0)


class Region(NamedTuple):
    """Axis-aligned box given by two inclusive corners."""

    lower: Position
    upper: Position

    @property
    def is_ordered(self) -> bool:
        """Whether the lower corner is less or equal component-wise."""
        return all(low <= high for low, high in zip(self.lower, self.upper, strict=True))

    @property
    def size(self) -> Position:
        """Width, height and depth of the box in blocks."""
        return Position(*(
            high - low + 1
            for low, high in zip(self.lower, self.upper, strict=True)
        ))

    def contains(self, position: Position) -> bool:
        """Check that a position lies inside the box, borders included."""
        return all(
            low <= value <= high
            for low, value, high in zip(self.lower, position, self.upper, strict=True)
        )

    def shift(self, offset: Position) -> Self:
        """Translate both corners by an offset."""
        return type(self)(self.lower.shift(offset), self.upper.shift(offset))

    def to_command(self) -> str:
        """Render both corners as command arguments."""
        return f'{self.lower.to_command()} {self.upper.to_command()}'
