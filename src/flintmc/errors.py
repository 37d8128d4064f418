"""Core exception hierarchy.

This module defines the error and warning types used across the library
to report specification parsing and validation failures, world channel
failures, assertion mismatches, and plugin loading issues in a
structured way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump
from yaml.error import MarkedYAMLError

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from typing import Self

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails, ValidationError

if TYPE_CHECKING:
    from flintmc.schema import Position, Region

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4

SCALARS = (str, bytes, int, float, bool)
SEQUENCES = (list, tuple)


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Line number in the source file.
    line_num: int | None
    #: Column number in the source file.
    column_num: int | None

    #: Name of the test the error belongs to.
    test_name: str | None
    #: Index of the timeline entry where the error occurred.
    entry_num: int | None
    #: Tick at which the error occurred.
    tick: int | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Specification fragment associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting specification errors.

    Produces human-readable messages with optional source location
    and a YAML snippet of the failing fragment.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source and timeline location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line,
            column, test name, timeline entry, and tick when available.
            Errors raised while a run executes have no source location.
        """
        indent = cls._ensure_indent(indent)
        message = ''

        filename = context.get('filename')
        line_num = context.get('line_num')
        if filename or line_num is not None:
            message += f'{indent}in "{filename or FORMAT_FILENAME}"'
            if line_num is not None:
                message += f', line {line_num + 1}'
                if (column_num := context.get('column_num')) is not None:
                    message += f', column {column_num + 1}'
            message += linesep

        if test_name := context.get('test_name'):
            message += f'{indent}in test {test_name!r}'
            if (entry_num := context.get('entry_num')) is not None:
                message += f', timeline entry {entry_num + 1}'
            if (tick := context.get('tick')) is not None:
                message += f', tick {tick}'
            message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing fragment or exception data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (error := context.get('error')) and isinstance(error, MarkedYAMLError):
            snippet = error.problem_mark.get_snippet(indent=0) or ''
            return cls._make_indent(snippet, indent)

        if element := context.get('element'):
            return f'{indent}{SNIPPET_ELLIPSIS}{cls._make_yaml(element, indent)}{linesep}'

        return ''

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively replace non-serializable values with a placeholder.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, dict):
            return {
                f'{key}': cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [cls._filter_unsafe(item) for item in value]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to an indented YAML string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            default_flow_style=None,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation given as a string or a number of spaces."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class PluginWarning(UserWarning):
    """Warning emitted for non-fatal plugin-related issues.

    Used when a channel plugin cannot be loaded but the issue does not
    prevent further execution (relaxed mode).
    """


class FlintError(Exception, ErrorFormatter):
    """Base exception for all flintmc errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Optional error context for formatting.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    def with_context(self, **context: Any) -> 'Self':  # noqa: ANN401
        """Return the same error enriched with more context fields.

        Existing fields are kept unless overridden.
        """
        self.context = ErrorContext(**{**(self.context or {}), **context})  # type: ignore[typeddict-item]
        return self


class PluginError(FlintError):
    """Error raised for fatal plugin-related failures.

    Raised when a channel plugin entry point is invalid, misconfigured,
    or fails to load in strict mode.
    """

    def __init__(self, message: str, *,
                 entrypoint: 'EntryPoint | None' = None) -> None:
        """Initialize a plugin error.

        Args:
            message: Human-readable error description.
            entrypoint: Optional plugin entry point associated with the error.
        """
        self.entrypoint = entrypoint

        super().__init__(message)


class ParseError(FlintError):
    """Error raised when a specification document is malformed.

    Covers both YAML syntax errors and schema validation failures.
    """

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError, *,
                        filename: str | None = None) -> 'Self':
        """Create a parse error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Optional name of the source file.

        Returns:
            ParseError with the problem location.
        """
        error_context = ErrorContext(
            filename=filename or error.problem_mark.name,
            line_num=error.problem_mark.line,
            column_num=error.problem_mark.column,
            error=error,
        )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error.problem}'

        return cls(message, context=error_context)

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None) -> 'Self':
        """Create a parse error from a Pydantic validation failure.

        The first error whose location can be found in the source data
        is reported together with the smallest failing fragment.

        Args:
            error: ValidationError raised by Pydantic.
            data: Source document data.
            filename: Name of the source file where the error occurred.

        Returns:
            ParseError representing the validation failure.
        """
        error_context = ErrorContext(
            filename=filename,
            error=error,
            element=data,
        )

        if not data or not isinstance(data, dict):
            return cls('Type validation error', context=error_context)

        for item in error.errors(include_url=False, include_input=False):
            if located := cls._locate_pydantic_context(data, item):
                message, value, entry_num = located
                return cls(message, context=ErrorContext(
                    filename=filename,
                    test_name=data.get('name') if isinstance(data.get('name'), str) else None,
                    entry_num=entry_num,
                    error=error,
                    element=value,
                ))

        return cls('Validation error', context=error_context)

    @classmethod
    def _locate_pydantic_context(
        cls, value: Any,  # noqa: ANN401
        error: 'ErrorDetails',
    ) -> tuple[str, Any, int | None] | None:
        """Locate the most specific failing fragment in validated data.

        Walks the Pydantic error location path as far as it matches the
        source data. Location parts that do not exist in the data (for
        example union member tags) are skipped.

        Args:
            value: Root data structure being validated.
            error: Pydantic error details including location path.

        Returns:
            A tuple of (error message, failing fragment, timeline entry
            index) if a relevant context can be located, otherwise None.
        """
        container = last_item = value
        last_key: int | str | None = None
        entry_num: int | None = None

        location = tuple(error['loc'])
        for position, key in enumerate(location):
            if isinstance(last_item, (list, tuple)):
                if isinstance(key, int) and 0 <= key < len(last_item):
                    if position == 1 and location[0] == 'timeline':
                        entry_num = key
                    container = last_item
                    last_item = last_item[key]
                    last_key = key
            elif isinstance(last_item, dict):
                if key in last_item:
                    container = last_item
                    last_item = last_item[key]
                    last_key = key
            else:
                break

        message = None
        for item in (error.get('msg') or '').splitlines():
            if item_message := item.strip():
                message = item_message
                break

        if not message or last_key is None:
            return None

        if isinstance(container, (list, tuple)):
            return message, [last_item], entry_num

        return message, {last_key: last_item}, entry_num


class SpecValidationError(FlintError):
    """Base error for specification rule violations.

    Raised after a document has been parsed successfully but violates
    region size or containment rules.
    """


class MissingSetup(SpecValidationError):
    """Error raised when a strict specification has no cleanup region."""


class InvalidRegion(SpecValidationError):
    """Error raised when a region minimum corner exceeds its maximum."""


class RegionTooLarge(SpecValidationError):
    """Error raised when a cleanup region exceeds the maximum test size."""


class PositionOutOfBounds(SpecValidationError):
    """Error raised when a timeline coordinate lies outside the region.

    Attributes:
        position: The offending coordinate.
        region: The cleanup region it was checked against.
    """

    def __init__(self, message: str, *,
                 position: 'Position', region: 'Region',
                 context: ErrorContext | None = None) -> None:
        self.position = position
        self.region = region

        super().__init__(message, context=context)


class WorldConnectionError(FlintError):
    """Error raised when the world channel can not be reached."""


class ConnectionTimeout(WorldConnectionError):
    """Error raised when the world channel is not ready in time."""


class CommandError(FlintError):
    """Error raised when a world channel call itself fails.

    This error is fatal for the whole run.
    """


class RunAborted(FlintError):
    """Error raised when a run is interrupted by an abort signal."""


class AssertionMismatch(FlintError):
    """Error raised when an observed world value differs from expectation.

    This error is recoverable: it is recorded against the owning test
    and the run continues.

    Attributes:
        position: World position that was checked.
        expected: Expected block identifier or state value.
        observed: Last value observed, `None` when nothing was observed.
    """

    def __init__(self, message: str, *,
                 position: 'Position',
                 expected: str,
                 observed: str | None,
                 context: ErrorContext | None = None) -> None:
        self.position = position
        self.expected = expected
        self.observed = observed

        super().__init__(message, context=context)
