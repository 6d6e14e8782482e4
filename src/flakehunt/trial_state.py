"""Trial state for the flaky-test runner."""

import signal as _signal
from dataclasses import dataclass
from typing import Optional

from flakehunt.constants import EXIT_FAILURE, EXIT_SUCCESS


SUCCEEDED = "SUCCEEDED"
FAILED_EXIT = "FAILED_EXIT"
FAILED_SIGNAL = "FAILED_SIGNAL"
SPAWN_ERROR = "SPAWN_ERROR"


@dataclass(frozen=True)
class CommandSpec:
    """The program under test and the arguments forwarded to it."""

    program: str
    arguments: tuple = ()

    def __post_init__(self):
        if not self.program:
            raise ValueError("CommandSpec.program must be a non-empty string")
        # Accept any sequence from callers, store it immutably
        object.__setattr__(self, "arguments", tuple(self.arguments))

    def argv(self) -> list[str]:
        """Argument vector for one attempt. argv[0] is the program path."""
        return [self.program, *self.arguments]


@dataclass(frozen=True)
class TrialOutcome:
    kind: str  # SUCCEEDED | FAILED_EXIT | FAILED_SIGNAL | SPAWN_ERROR
    exit_code: Optional[int] = None
    signal: Optional[int] = None
    cause: Optional[str] = None

    @classmethod
    def succeeded(cls) -> "TrialOutcome":
        return cls(kind=SUCCEEDED, exit_code=0)

    @classmethod
    def failed_exit(cls, code: int) -> "TrialOutcome":
        if code == 0:
            raise ValueError("exit code 0 is a success, not a failure")
        return cls(kind=FAILED_EXIT, exit_code=code)

    @classmethod
    def failed_signal(cls, signum: int) -> "TrialOutcome":
        return cls(kind=FAILED_SIGNAL, signal=signum)

    @classmethod
    def spawn_error(cls, cause: str) -> "TrialOutcome":
        return cls(kind=SPAWN_ERROR, cause=cause)

    @property
    def is_success(self) -> bool:
        return self.kind == SUCCEEDED

    def describe(self) -> str:
        """One-line description for the operator."""
        if self.kind == SUCCEEDED:
            return "exited with code 0"
        if self.kind == FAILED_EXIT:
            return f"exited with code {self.exit_code}"
        if self.kind == FAILED_SIGNAL:
            return f"terminated by signal {_signal_name(self.signal)}"
        return f"could not be spawned: {self.cause}"


def _signal_name(signum: int) -> str:
    try:
        return f"{_signal.Signals(signum).name} ({signum})"
    except ValueError:
        return str(signum)


@dataclass(frozen=True)
class RunResult:
    attempts_completed: int
    final_outcome: TrialOutcome

    @property
    def succeeded(self) -> bool:
        return self.final_outcome.is_success

    @property
    def exit_status(self) -> int:
        """Process exit status for the whole run."""
        return EXIT_SUCCESS if self.succeeded else EXIT_FAILURE
