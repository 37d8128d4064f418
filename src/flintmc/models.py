"""Base Pydantic models for specification elements and settings.

This module defines the foundational model classes used by all
specification structures. It enforces immutability and strict schema
validation so that a parsed test specification cannot change while a
run is scheduling and executing it.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all specification elements.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation.
          A test specification is parsed and validated once and is then
          shared read-only by the merger, scheduler, and executor.
        - Strict schema validation: unknown or extra fields are rejected
          to surface typos in hand-written test files.

    All specification models must inherit from this class.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Settings are resolved from the environment once per process.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unrelated environment variables with
          the same prefix are ignored.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
