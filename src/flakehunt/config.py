"""Configuration loading for the flaky-test runner."""

import os
import re
from dataclasses import dataclass

from dotenv import dotenv_values, find_dotenv

from flakehunt.constants import (
    DEFAULT_ITERATIONS,
    ENV_DEBUG,
    ENV_ITERATIONS,
    ITERATIONS_MAX,
    ITERATIONS_MIN,
)


_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when the runner configuration is invalid."""
    pass


@dataclass(frozen=True)
class RunConfig:
    """How many trials to run. Non-positive limits run nothing."""

    iteration_limit: int = DEFAULT_ITERATIONS


@dataclass
class Settings:
    """Defaults loaded from environment."""

    default_iterations: int = DEFAULT_ITERATIONS
    debug: bool = False


def parse_iteration_count(text: str) -> int:
    """
    Parse an iteration count as a base-10 integer.
    
    Only an optional sign followed by digits is accepted. Whitespace,
    underscores and trailing characters are rejected.
    
    Raises:
        ConfigError: If the text is not a whole number or does not fit
                     in a signed 64-bit integer.
    """
    if not _INTEGER_RE.fullmatch(text):
        raise ConfigError(f"Number of iterations is invalid: {text}")
    
    value = int(text, 10)
    if value < ITERATIONS_MIN or value > ITERATIONS_MAX:
        raise ConfigError(
            "Failed to parse number of iterations: value out of range"
        )
    return value


def load_settings() -> Settings:
    """
    Load runner defaults from environment variables.
    
    A .env file found from the working directory upward is consulted after
    the real environment. Its values are only read here, never exported,
    so the program under test sees the parent's environment unchanged.
    The --iterations option always wins over FLAKEHUNT_ITERATIONS.

    Raises:
        ConfigError: If FLAKEHUNT_ITERATIONS is set but malformed.
    """
    dotenv_path = find_dotenv(usecwd=True)
    file_values = dotenv_values(dotenv_path) if dotenv_path else {}

    def lookup(name: str) -> str:
        value = os.environ.get(name)
        if value is None:
            value = file_values.get(name)
        return value or ""

    raw_iterations = lookup(ENV_ITERATIONS)
    raw_debug = lookup(ENV_DEBUG)
    
    default_iterations = DEFAULT_ITERATIONS
    if raw_iterations:
        try:
            default_iterations = parse_iteration_count(raw_iterations)
        except ConfigError as e:
            raise ConfigError(f"{ENV_ITERATIONS}: {e}") from e
    
    return Settings(
        default_iterations=default_iterations,
        debug=raw_debug.strip().lower() in _TRUTHY,
    )
