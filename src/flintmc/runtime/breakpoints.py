"""Interactive pauses of a run.

A breakpoint source decides whether the run continues freely or steps a
single tick. The console source asks the operator on the terminal; the
chat relay source waits for a command typed in the game chat.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import click
from loguru import logger

from flintmc.errors import RunAborted

if TYPE_CHECKING:
    from threading import Event

if TYPE_CHECKING:
    from flintmc.channels import WorldChannel
    from flintmc.settings import Settings

STEP_ANSWERS = frozenset({'s', 'step'})


class BreakpointSource(ABC):
    """Origin of step or continue decisions."""

    @abstractmethod
    def wait(self, reason: str) -> bool:
        """Block until a decision is made.

        Args:
            reason: Human-readable description of the pause.

        Returns:
            True to continue the run, False to step one tick.

        Raises:
            RunAborted: If the run was aborted while waiting.
        """


class ConsoleSource(BreakpointSource):
    """Operator decisions read from the terminal."""

    def wait(self, reason: str) -> bool:
        click.echo(click.style(f'Paused: {reason}', fg='yellow', bold=True))
        answer = click.prompt(
            'Type "s" to step one tick or press Enter to continue',
            default='',
            show_default=False,
        )

        return answer.strip().lower() not in STEP_ANSWERS


class ChatRelaySource(BreakpointSource):
    """Player decisions relayed through the world chat.

    Attributes:
        channel: World channel relaying chat messages.
        settings: Run settings with the chat tokens and poll slice.
        abort: Event interrupting the wait when set.
    """

    def __init__(self, channel: 'WorldChannel', settings: 'Settings',
                 abort: 'Event') -> None:
        self.channel = channel
        self.settings = settings
        self.abort = abort

    def drain(self) -> int:
        """Discard chat messages received before the pause."""
        count = 0
        while self.channel.recv_chat(0) is not None:
            count += 1

        return count

    def wait(self, reason: str) -> bool:
        if stale := self.drain():
            logger.debug('Discarded {} stale chat messages', stale)

        announcement = (
            f'Paused: {reason}. Type {self.settings.step_token} '
            f'or {self.settings.continue_token}'
        )
        self.channel.send_command(f'say {announcement}')

        logger.info(
            'Paused: {}, waiting for {} or {} in chat',
            reason, self.settings.step_token, self.settings.continue_token,
        )

        while not self.abort.is_set():
            message = self.channel.recv_chat(self.settings.chat_poll_interval)
            if message is None or announcement in message:
                continue

            if self.settings.step_token in message:
                return False
            if self.settings.continue_token in message:
                return True

        raise RunAborted(f'Run aborted while paused: {reason}')


class BreakpointController:
    """Pause gate of the scheduler.

    Attributes:
        source: Origin of the step or continue decisions.
    """

    def __init__(self, source: BreakpointSource) -> None:
        self.source = source

    def pause(self, tick: int, reason: str) -> bool:
        """Pause the run at a tick.

        Returns:
            True to continue freely, False to enter step mode.
        """
        decision = self.source.wait(f'{reason} at tick {tick}')
        logger.debug('Tick {}: {}', tick, 'continue' if decision else 'step')

        return decision
