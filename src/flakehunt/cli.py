"""CLI entrypoint for the flaky-test runner."""

from typing import Optional, Sequence

import click

from flakehunt.config import (
    ConfigError,
    RunConfig,
    Settings,
    load_settings,
    parse_iteration_count,
)
from flakehunt.constants import EX_USAGE
from flakehunt.trial_loop import run_trials, spawn_and_wait
from flakehunt.trial_state import CommandSpec


ARGS_SEPARATOR = "--"


class ConfigurationError(click.UsageError):
    """Bad invocation. Reported with the usage line, exits with EX_USAGE."""

    exit_code = EX_USAGE


class IterationCount(click.ParamType):
    """Whole base-10 number with an optional sign."""

    name = "value"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return parse_iteration_count(value)
        except ConfigError as e:
            self.fail(str(e), param, ctx)


class RunnerCommand(click.Command):
    """Command whose parse errors all exit with EX_USAGE."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = EX_USAGE
            raise


def route(
    iterations: Optional[int],
    test: Optional[str],
    test_args: Sequence[str],
    settings: Optional[Settings] = None,
) -> tuple[RunConfig, CommandSpec]:
    """
    Turn parsed invocation tokens into the run configuration and command.
    
    Args:
        iterations: Value of --iterations, or None if not given
        test: First positional token, or None if there was none
        test_args: Every token after test, in order
        settings: Environment defaults (default: built-in defaults)
    
    Returns:
        (RunConfig, CommandSpec)
    
    Raises:
        ConfigError: If test is missing.
    """
    if settings is None:
        settings = Settings()
    
    if not test:
        raise ConfigError("missing required argument: test")
    
    forwarded = list(test_args)
    # "test -- args" separates the test from its arguments, drop that one
    if forwarded and forwarded[0] == ARGS_SEPARATOR:
        forwarded = forwarded[1:]
    
    limit = settings.default_iterations if iterations is None else iterations
    
    return RunConfig(iteration_limit=limit), CommandSpec(program=test, arguments=forwarded)


@click.command(
    cls=RunnerCommand,
    context_settings={
        "allow_interspersed_args": False,
        "help_option_names": ["-h", "--help"],
    },
)
@click.version_option(package_name="flakehunt")
@click.option(
    "-i",
    "--iterations",
    type=IterationCount(),
    default=None,
    help="Repeat test for this many iterations (default: 10).",
)
@click.argument("test", required=False)
@click.argument("test_args", nargs=-1, type=click.UNPROCESSED)
def cli(iterations: Optional[int], test: Optional[str], test_args: tuple):
    """Executes TEST in a loop for the specified amount of iterations.
    
    Stops when a test fails. Options are only recognized before TEST;
    everything after TEST is passed to it unchanged.
    """
    try:
        settings = load_settings()
        config, spec = route(iterations, test, test_args, settings)
    except ConfigError as e:
        raise ConfigurationError(str(e), ctx=click.get_current_context())
    
    def spawn(command: CommandSpec):
        return spawn_and_wait(command, debug=settings.debug)
    
    result = run_trials(spec, config, spawn=spawn)
    raise SystemExit(result.exit_status)


def main():
    cli(prog_name="flakehunt")


if __name__ == "__main__":
    main()
