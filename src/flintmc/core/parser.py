"""Test specification parser.

Documents are read with a PyYAML loader (JSON documents are valid YAML),
validated against the `TestSpec` schema, and then checked against the
region and containment rules.
"""

from typing import TYPE_CHECKING

from pydantic import ValidationError
from yaml import SafeLoader, load
from yaml.error import MarkedYAMLError

from flintmc.errors import ErrorContext, FlintError, ParseError
from flintmc.schema import TestSpec

from .validator import SpecValidator

if TYPE_CHECKING:
    from io import TextIOBase
    from pathlib import Path

if TYPE_CHECKING:
    from yaml import BaseLoader


class SpecParser:
    """Parser of test specification documents.

    The parser is stateless apart from its configuration and may be
    shared between files of one run.
    """

    def __init__(self, loader: type['BaseLoader'] = SafeLoader,
                 strict: bool = True) -> None:
        """Initialize the parser.

        Args:
            loader: YAML loader class used to read documents.
            strict: Whether a cleanup region is mandatory.
        """
        self.loader = loader
        self.validator = SpecValidator(strict=strict)

    @property
    def strict_mode(self) -> bool:
        """Whether specifications are validated in strict mode."""
        return self.validator.strict_mode

    def parse(self, content: 'TextIOBase | str', *,
              filename: str | None = None) -> TestSpec:
        """Parse and validate a single specification document.

        Args:
            content: Document as a string or file-like object.
            filename: Optional source file name for error reporting.

        Returns:
            Validated test specification.

        Raises:
            ParseError: If the document is malformed.
            SpecValidationError: If the document violates region rules.
        """
        try:
            document = load(content, Loader=self.loader)  # noqa: S506

        except MarkedYAMLError as base:
            raise ParseError.from_yaml_error(base, filename=filename) from base

        except FlintError:
            raise

        except Exception as base:
            raise ParseError(f'Unexpected error: {base!r}') from base

        if not isinstance(document, dict):
            raise ParseError(
                'Type validation error: document must be a mapping',
                context=ErrorContext(filename=filename, element=document),
            )

        try:
            spec = TestSpec.model_validate(document)

        except ValidationError as base:
            raise ParseError.from_pydantic_error(
                base,
                data=document,
                filename=filename,
            ) from base

        self.validator.validate(spec, filename=filename)

        return spec

    def parse_file(self, path: 'Path') -> TestSpec:
        """Parse and validate a specification file.

        Args:
            path: Path to a JSON or YAML file.

        Returns:
            Validated test specification.

        Raises:
            ParseError: If the file is malformed or can not be read.
            SpecValidationError: If the document violates region rules.
        """
        try:
            with path.open('rt', encoding='utf-8') as content:
                return self.parse(content, filename=f'{path}')

        except OSError as base:
            raise ParseError(f'Can not read {path}: {base.strerror}') from base
