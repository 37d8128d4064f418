"""Declarative schema of test specification documents.

Defines immutable Pydantic models that describe tests, their cleanup
regions, and their timelines. The models form the structural contract
of the file format; containment rules that span several fields are
enforced separately by the validator.
"""

from .actions import (
    AssertAction,
    AssertStateAction,
    BaseAction,
    BlockCheck,
    BlockPlacement,
    FillAction,
    PlaceAction,
    PlaceEachAction,
    RemoveAction,
    TickSpec,
    TimelineEntry,
)
from .positions import ORIGIN, Position, Region
from .specs import CleanupSpec, SetupSpec, TestSpec

__all__ = (
    'ORIGIN',
    'AssertAction',
    'AssertStateAction',
    'BaseAction',
    'BlockCheck',
    'BlockPlacement',
    'CleanupSpec',
    'FillAction',
    'PlaceAction',
    'PlaceEachAction',
    'Position',
    'Region',
    'RemoveAction',
    'SetupSpec',
    'TestSpec',
    'TickSpec',
    'TimelineEntry',
)
