"""Command-line interface of flintmc.

`flintmc run` loads test specifications, places them on the shared
world grid and executes them together; `flintmc schema` prints the JSON
Schema of the specification format.
"""

from pathlib import Path
from signal import SIGTERM, signal
from typing import TYPE_CHECKING, get_args

from click import Choice, ClickException, argument, echo, group, option, style
from click import Path as PathParam
from click.exceptions import Exit
from loguru import logger

from flintmc.core import ChannelRegistry, SpecParser, collect_test_files
from flintmc.errors import FlintError
from flintmc.jsonschema import SchemaGenerator
from flintmc.logs import configure_logging
from flintmc.runtime import (
    BreakpointController,
    ChatRelaySource,
    ConsoleSource,
    Scheduler,
    offset_for,
)
from flintmc.settings import LogLevel, Settings

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from flintmc.channels import WorldChannel
    from flintmc.runtime import BreakpointSource, RunSummary
    from flintmc.schema import TestSpec

InputPath = PathParam(
    exists=True,
    readable=True,
    path_type=Path,
)


@group(help='Tick-synchronized test runner for game worlds.')
def cli() -> None:
    """Root CLI group for flintmc tools."""
    return None


@cli.command(
    name='schema',
    help='Print the test specification JSON Schema to standard output.',
)
def print_schema() -> None:
    """Generate and print the JSON Schema."""
    echo(SchemaGenerator.make_schema())


def load_specs(parser: SpecParser, files: 'Sequence[Path]') -> list['TestSpec']:
    """Parse every file, reporting each failure before giving up.

    Args:
        parser: Specification parser.
        files: Specification files in test index order.

    Returns:
        Validated specifications in the order of `files`.

    Raises:
        Exit: With status 1 if any file failed to load.
    """
    specs = []
    failures = 0

    for path in files:
        try:
            specs.append(parser.parse_file(path))

        except FlintError as error:
            failures += 1
            echo(style(f'Failed to load {path}', fg='red', bold=True), err=True)
            echo(f'{error}', err=True)

        else:
            logger.debug('Loaded test {!r} from {}', specs[-1].name, path)

    if failures:
        echo(style(f'{failures} of {len(files)} files failed to load', fg='red'), err=True)
        raise Exit(1)

    return specs


def make_source(mode: str, world: 'WorldChannel', settings: Settings,
                scheduler: Scheduler) -> 'BreakpointSource':
    """Create the breakpoint source selected on the command line."""
    if mode == 'chat':
        return ChatRelaySource(world, settings, scheduler.aborted)

    return ConsoleSource()


def print_summary(summary: 'RunSummary') -> None:
    """Print per-test outcomes and totals."""
    echo()
    for result in summary.results:
        if result.success:
            label = style('[PASS]', fg='green', bold=True)
        else:
            label = style('[FAIL]', fg='red', bold=True)
        echo(f'{label} {result.name} ({result.passed} passed, {result.failed} failed)')

    echo()
    echo(
        f'{len(summary.results)} tests run: '
        f'{summary.passed} passed, {summary.failed} failed',
    )


@cli.command(
    name='run',
    help='Run test specifications from a file or a directory.',
)
@argument('path', type=InputPath)
@option(
    '-s', '--server',
    required=True,
    help='Address of the world, for example localhost:25565.',
)
@option(
    '-r', '--recursive',
    is_flag=True,
    help='Search subdirectories for specification files.',
)
@option(
    '--relaxed',
    is_flag=True,
    help='Allow tests without a cleanup region and tolerate broken plugins.',
)
@option(
    '-c', '--channel',
    default='memory',
    show_default=True,
    help='Name of the world channel to connect through.',
)
@option(
    '--break-after-setup',
    is_flag=True,
    help='Pause once after the world is prepared, before the first tick.',
)
@option(
    '--breakpoints',
    type=Choice(['console', 'chat']),
    default='console',
    show_default=True,
    help='Where step and continue decisions come from.',
)
@option(
    '--log-level',
    type=Choice(get_args(LogLevel.__value__), case_sensitive=False),
    default=None,
    help='Minimal level of log records, overrides FLINT_LOG_LEVEL.',
)
def run_tests(path: Path, server: str, recursive: bool, relaxed: bool,  # noqa: PLR0913
              channel: str, break_after_setup: bool, breakpoints: str,
              log_level: str | None) -> None:
    """Load, schedule and execute tests.

    Exits with status 1 if a file fails to load, the world is not
    reachable, the run is interrupted or any test fails. SIGTERM aborts
    the run before its next tick or during a pending pause.
    """
    settings = Settings()
    configure_logging(log_level.upper() if log_level else settings.log_level)

    files = collect_test_files(path, recursive=recursive)
    if not files:
        raise ClickException(f'No test specification files found in {path}')

    specs = load_specs(SpecParser(strict=not relaxed), files)
    tests = [
        (spec, offset_for(index, len(specs)))
        for index, spec in enumerate(specs)
    ]

    echo(f'Loaded {len(tests)} tests')
    for spec, offset in tests:
        echo(f'  {spec.name} at offset {list(offset)}')

    try:
        definition = ChannelRegistry(strict=not relaxed).get(channel)

        with definition.connect(server, settings) as world:
            scheduler = Scheduler(world, settings, break_after_setup=break_after_setup)
            scheduler.controller = BreakpointController(
                make_source(breakpoints, world, settings, scheduler),
            )

            previous = signal(SIGTERM, lambda *_: scheduler.abort())
            try:
                summary = scheduler.run(tests)
            except KeyboardInterrupt as base:
                raise ClickException('Run interrupted') from base
            finally:
                signal(SIGTERM, previous)

    except FlintError as error:
        raise ClickException(f'{error}') from error

    print_summary(summary)

    if not summary.success:
        raise Exit(1)


if __name__ == '__main__':
    cli()
