"""Run-time engine: scheduling, execution and interactive pauses."""

from .breakpoints import (
    BreakpointController,
    BreakpointSource,
    ChatRelaySource,
    ConsoleSource,
)
from .executor import ActionExecutor, blocks_match, state_matches
from .expander import expand
from .grid import CELL_SIZE, offset_for
from .results import RunSummary, TestResult
from .retry import poll
from .scheduler import Scheduler
from .timeline import GlobalTimeline, ScheduledAction, merge

__all__ = (
    'CELL_SIZE',
    'ActionExecutor',
    'BreakpointController',
    'BreakpointSource',
    'ChatRelaySource',
    'ConsoleSource',
    'GlobalTimeline',
    'RunSummary',
    'ScheduledAction',
    'Scheduler',
    'TestResult',
    'blocks_match',
    'expand',
    'merge',
    'offset_for',
    'poll',
    'state_matches',
)
