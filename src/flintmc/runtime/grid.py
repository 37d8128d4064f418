"""Placement of concurrently scheduled tests in the shared world.

Tests are laid out on a square grid centered on the world origin. Each
cell is 16 blocks wide: a 15 block test footprint plus one block of
spacing, so footprints of different tests never touch.
"""

from math import isqrt

from flintmc.schema import Position

CELL_SIZE = 16


def grid_side(total: int) -> int:
    """Return the number of cells per grid side, `ceil(sqrt(total))`."""
    return isqrt(total - 1) + 1


def offset_for(index: int, total: int) -> Position:
    """Compute the world offset of a test.

    Args:
        index: Position of the test in the run, starting from zero.
        total: Number of tests in the run.

    Returns:
        Translation `(x, 0, z)` applied to every position of the test.

    Raises:
        ValueError: If `total` is not positive or `index` is out of range.
    """
    if total < 1:
        raise ValueError(f'Number of tests must be positive, got {total}')

    if not 0 <= index < total:
        raise ValueError(f'Test index {index} is out of range for {total} tests')

    side = grid_side(total)
    base = -((side * CELL_SIZE) // 2)

    grid_x = index % side
    grid_z = index // side

    return Position(base + grid_x * CELL_SIZE, 0, base + grid_z * CELL_SIZE)
