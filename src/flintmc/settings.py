"""Runtime settings resolved from the environment.

All delays are in seconds. Every setting can be overridden with an
environment variable prefixed with `FLINT_`, for example
`FLINT_POLL_ATTEMPTS=20`.
"""

from typing import Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, PositiveInt
from pydantic_settings import SettingsConfigDict

from flintmc.models import SettingsModel

type LogLevel = Literal['TRACE', 'DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL']


class Settings(SettingsModel):
    """Timing and interaction settings of a run."""

    model_config = SettingsConfigDict(
        env_prefix='FLINT_',
        frozen=True,
        extra='ignore',
    )

    settle_delay: NonNegativeFloat = Field(
        default=0.2,
        description='Wait after clearing test regions.',
    )
    freeze_delay: NonNegativeFloat = Field(
        default=0.1,
        description='Wait after freezing the world clock.',
    )
    tick_delay: NonNegativeFloat = Field(
        default=0.05,
        description='Wait after each tick step.',
    )
    stagger_delay: NonNegativeFloat = Field(
        default=0.01,
        description='Wait between placements of a `place_each` action.',
    )

    poll_attempts: PositiveInt = Field(
        default=10,
        description='Maximum number of world reads per assertion.',
    )
    poll_interval: NonNegativeFloat = Field(
        default=0.05,
        description='Wait between assertion reads.',
    )

    connect_timeout: PositiveFloat = Field(
        default=15.0,
        description='Maximum wait for the world channel to become ready.',
    )

    chat_poll_interval: PositiveFloat = Field(
        default=0.5,
        description='Slice of a chat breakpoint wait between abort checks.',
    )
    step_token: str = Field(
        default='!step',
        min_length=1,
        description='Chat message fragment that steps one tick.',
    )
    continue_token: str = Field(
        default='!continue',
        min_length=1,
        description='Chat message fragment that continues the run.',
    )

    log_level: LogLevel = 'INFO'
