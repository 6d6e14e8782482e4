"""Constants for the flaky-test runner."""

DEFAULT_ITERATIONS = 10

# Exit statuses of the runner itself
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EX_USAGE = 64  # sysexits.h

# Statuses a child reports when its program image could not be started.
# Same values the POSIX shells use.
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127

# strtol() range on LP64
ITERATIONS_MIN = -(2 ** 63)
ITERATIONS_MAX = 2 ** 63 - 1

ENV_ITERATIONS = "FLAKEHUNT_ITERATIONS"
ENV_DEBUG = "FLAKEHUNT_DEBUG"
