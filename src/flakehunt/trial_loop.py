"""Trial loop: run the program under test until it fails or the limit is hit."""

import errno
import subprocess
from typing import Callable, Optional

import click

from flakehunt.config import RunConfig
from flakehunt.constants import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND
from flakehunt.trial_state import CommandSpec, RunResult, TrialOutcome


# errno values that mean the program does not exist. Any other error from
# exec means it exists but could not be run.
_NOT_FOUND_ERRNOS = {errno.ENOENT, errno.ENOTDIR}


def _debug(enabled: bool, message: str) -> None:
    if enabled:
        click.echo(f"[DEBUG] {message}", err=True)


def _exec_failure_status(exc: OSError) -> Optional[int]:
    """
    Map an exec-stage error to the status the child would exit with.
    
    Popen attaches the program name to errors raised by the child's exec.
    Errors from creating the process itself carry no filename and map to
    None.
    """
    if exc.filename is None:
        return None
    if exc.errno in _NOT_FOUND_ERRNOS:
        return EXIT_NOT_FOUND
    return EXIT_NOT_EXECUTABLE


def classify_returncode(returncode: int) -> TrialOutcome:
    """
    Classify a reaped child's return code.
    
    Popen reports death-by-signal as a negative return code.
    """
    if returncode == 0:
        return TrialOutcome.succeeded()
    if returncode < 0:
        return TrialOutcome.failed_signal(-returncode)
    return TrialOutcome.failed_exit(returncode)


def spawn_and_wait(spec: CommandSpec, debug: bool = False) -> TrialOutcome:
    """
    Run one trial of spec and wait for it to terminate.
    
    The child inherits environment, working directory and standard streams.
    There is no timeout: a hung child hangs the run.
    
    Two failure channels stay separate:
        - The program could not be started (not found, not executable):
          reported as "failed to start test process" and classified through
          the exit-code path as FailedExit(127) or FailedExit(126).
        - The process could not be created at all: reported as
          "failed to create child process" and classified as SpawnError.
    
    Never raises for spawn problems.
    """
    argv = spec.argv()
    _debug(debug, f"spawn argv={argv!r}")
    
    try:
        # Leaving the with block reaps the child
        with subprocess.Popen(argv) as proc:
            _debug(debug, f"pid={proc.pid}")
            returncode = proc.wait()
    except OSError as e:
        status = _exec_failure_status(e)
        if status is not None:
            click.echo("failed to start test process", err=True)
            click.echo(f"{spec.program}: {e.strerror}", err=True)
            _debug(debug, f"exec failed errno={e.errno}, reporting exit status {status}")
            return classify_returncode(status)
        
        click.echo("failed to create child process", err=True)
        click.echo(f"fork: {e.strerror or e}", err=True)
        return TrialOutcome.spawn_error(e.strerror or str(e))
    
    _debug(debug, f"returncode={returncode}")
    return classify_returncode(returncode)


def run_trials(
    spec: CommandSpec,
    config: RunConfig,
    spawn: Optional[Callable[[CommandSpec], TrialOutcome]] = None,
    echo: Callable[..., None] = click.echo,
) -> RunResult:
    """
    Main trial loop.
    
    Logic:
    1. Announce attempt K and spawn the program
    2. If it succeeded, confirm and continue
    3. Otherwise stop at attempt K
    4. Print a summary and return the RunResult
    
    At most one child exists at a time. A limit of zero (or less) spawns
    nothing and counts as success. Operator lines go through echo, which
    must accept click.echo's err keyword.
    """
    if spawn is None:
        spawn = spawn_and_wait
    
    attempt = 0
    outcome = TrialOutcome.succeeded()
    
    while attempt < config.iteration_limit:
        attempt += 1
        echo(f"run execution nr. {attempt}")
        outcome = spawn(spec)
        
        if not outcome.is_success:
            echo(f"execution nr. {attempt} failed: {outcome.describe()}", err=True)
            break
        
        echo(f"execution nr. {attempt} was successful.")
    
    result = RunResult(attempts_completed=attempt, final_outcome=outcome)
    
    if result.succeeded:
        echo(f"successfully completed {result.attempts_completed} executions.")
    else:
        echo(f"program failed on execution {result.attempts_completed}")
    
    return result
