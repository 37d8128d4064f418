"""Bounded polling with a fixed interval."""

from time import sleep
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_ATTEMPTS = 10
DEFAULT_INTERVAL = 0.05


def poll[T](query: 'Callable[[], T]', predicate: 'Callable[[T], bool]', *,
            attempts: int = DEFAULT_ATTEMPTS,
            interval: float = DEFAULT_INTERVAL) -> T:
    """Repeat a query until its result satisfies a predicate.

    The world applies commands asynchronously, so an immediate read may
    legitimately observe stale state. The query is repeated at most
    `attempts` times with `interval` seconds between attempts and no
    wait after the last one.

    Args:
        query: Callable reading the current value.
        predicate: Callable accepting the expected value.
        attempts: Maximal number of queries, at least one.
        interval: Wait between queries in seconds.

    Returns:
        The first accepted value, or the last observed one if the
        attempts are exhausted. The caller decides how to report it.

    Raises:
        ValueError: If `attempts` is not positive.
    """
    if attempts < 1:
        raise ValueError(f'Number of attempts must be positive, got {attempts}')

    for attempt in range(1, attempts + 1):
        value = query()
        if predicate(value):
            return value
        if attempt < attempts:
            sleep(interval)

    return value
