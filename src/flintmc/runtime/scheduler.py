"""Tick-synchronized execution of a run.

The scheduler owns the world clock for the duration of a run. It clears
every test area, freezes the clock, executes the merged timeline one
tick at a time and unfreezes the clock on every exit path, so an
aborted run never leaves the world paused.
"""

from threading import Event
from time import sleep
from typing import TYPE_CHECKING

from loguru import logger

from flintmc.errors import AssertionMismatch, RunAborted

from .executor import ActionExecutor
from .results import RunSummary, TestResult
from .timeline import merge

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from flintmc.channels import WorldChannel
    from flintmc.schema import Position, TestSpec
    from flintmc.settings import Settings

    from .breakpoints import BreakpointController
    from .timeline import GlobalTimeline

type ScheduledTest = tuple['TestSpec', 'Position']


class Scheduler:
    """Driver of the tick loop of a run.

    Attributes:
        channel: World channel of the run.
        settings: Run settings with the delays.
        controller: Breakpoint controller, breakpoints are ignored without one.
        break_after_setup: Whether to pause once before the first tick.
        executor: Executor of scheduled actions.
        aborted: Signal interrupting an interactive pause.
    """

    def __init__(self, channel: 'WorldChannel', settings: 'Settings',
                 controller: 'BreakpointController | None' = None, *,
                 break_after_setup: bool = False) -> None:
        self.channel = channel
        self.settings = settings
        self.controller = controller
        self.break_after_setup = break_after_setup

        self.executor = ActionExecutor(channel, settings)
        self.aborted = Event()

    def abort(self) -> None:
        """Stop the run before its next tick or during a pending pause."""
        self.aborted.set()

    def run(self, tests: 'Sequence[ScheduledTest]') -> RunSummary:
        """Execute tests together in one world.

        Args:
            tests: Test specifications with their grid offsets,
                in test index order.

        Returns:
            Assertion tallies of every test.

        Raises:
            CommandError: If a world call fails; the run is interrupted.
            RunAborted: If the run is aborted during a pause or between ticks.
        """
        timeline = merge(tests)
        tallies = [TestResult(name=spec.name) for spec, _ in tests]

        logger.info(
            'Scheduling {} actions of {} tests over {} ticks',
            len(timeline), len(tests), timeline.max_tick + 1,
        )

        self.clear_regions(tests)
        sleep(self.settings.settle_delay)

        self.executor.send('tick freeze')
        sleep(self.settings.freeze_delay)

        try:
            self.drive(timeline, tallies)

        except BaseException:
            self.release(tests)
            raise

        self.executor.send('tick unfreeze')
        self.clear_regions(tests)

        return RunSummary(results=tallies)

    def drive(self, timeline: 'GlobalTimeline', tallies: list[TestResult]) -> None:
        """Execute the timeline while the world clock is frozen.

        Args:
            timeline: Merged schedule of the run.
            tallies: Per-test results, updated in place.
        """
        step_mode = False
        if self.break_after_setup:
            step_mode = not self.pause(0, 'after setup')

        for tick in timeline.ticks:
            if self.aborted.is_set():
                raise RunAborted(f'Run aborted at tick {tick}')

            for scheduled in timeline.due(tick):
                index = scheduled.test_index
                result = tallies[index]

                try:
                    counted = self.executor.execute(scheduled)

                except AssertionMismatch as error:
                    tallies[index] = result.model_copy(update={'failed': result.failed + 1})
                    logger.error('{}', error.with_context(test_name=result.name, tick=tick))
                    continue

                if counted:
                    tallies[index] = result.model_copy(update={'passed': result.passed + 1})

            if tick in timeline.breakpoints:
                step_mode = not self.pause(tick, 'breakpoint')
            elif step_mode:
                step_mode = not self.pause(tick, 'step')

            if tick < timeline.max_tick:
                self.executor.send('tick step 1')
                sleep(self.settings.tick_delay)

    def pause(self, tick: int, reason: str) -> bool:
        """Consult the breakpoint controller.

        Returns:
            True to continue freely, False to step the next tick.
        """
        if self.controller is None:
            logger.debug('Tick {}: {} ignored without a breakpoint source', tick, reason)
            return True

        return self.controller.pause(tick, reason)

    def clear_regions(self, tests: 'Sequence[ScheduledTest]') -> None:
        """Fill the cleanup region of every test with air."""
        for spec, offset in tests:
            if (region := spec.cleanup_region) is not None:
                self.executor.clear(region, offset)

    def release(self, tests: 'Sequence[ScheduledTest]') -> None:
        """Unfreeze the clock and clear the test areas after a failure.

        Both steps are best-effort: their own failures are logged and do
        not replace the error that interrupted the run.
        """
        try:
            self.executor.send('tick unfreeze')
        except Exception as error:  # noqa: BLE001
            logger.opt(exception=error).warning('Failed to unfreeze the world clock')
            return

        try:
            self.clear_regions(tests)
        except Exception as error:  # noqa: BLE001
            logger.opt(exception=error).warning('Failed to clear test regions')
