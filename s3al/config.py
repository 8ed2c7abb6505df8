"""Simulator settings and their command-line parsing."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from s3al.algorithms import SchedulerAlgorithm
from s3al.logger import LogLevel

__all__ = [
    "ConfigError",
    "HelpRequested",
    "Config",
    "parse_memory_size",
    "parse_args",
    "help_text",
    "show_help",
]

MAX_MEMORY = 2 * 1024 * 1024 * 1024

_LOG_LEVELS = {
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "warning": LogLevel.WARNING,
    "warn": LogLevel.WARNING,
    "error": LogLevel.ERROR,
}

_SCHEDULERS = {
    "fcfs": SchedulerAlgorithm.FCFS,
    "rr": SchedulerAlgorithm.ROUND_ROBIN,
    "roundrobin": SchedulerAlgorithm.ROUND_ROBIN,
    "priority": SchedulerAlgorithm.PRIORITY,
    "prio": SchedulerAlgorithm.PRIORITY,
}

_MULTIPLIERS = {"K": 1024, "M": 1024 * 1024, "G": 1024 * 1024 * 1024}

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_UNSIGNED = re.compile(r"\s*\+?\d+")


class ConfigError(ValueError):
    """Invalid command-line arguments; ``show_help`` says whether usage should follow."""

    def __init__(self, message: str, show_help: bool = False) -> None:
        super().__init__(message)
        self.show_help = show_help


class HelpRequested(Exception):
    """The user asked for the usage text."""


@dataclass
class Config:
    """Settings for one simulator run."""

    verbose: bool = False
    memory_size: int = 1024 * 1024
    log_level: LogLevel = LogLevel.DEBUG
    scheduler_algorithm: SchedulerAlgorithm = SchedulerAlgorithm.FCFS
    scheduler_quantum: int = 5
    cycles_per_tick: int = 1
    tick_interval_ms: int = 100


def parse_memory_size(text: str) -> int:
    """Parse a byte count with an optional K/KB, M/MB or G/GB suffix."""
    digits = text
    if digits and digits[-1].upper() == "B":
        digits = digits[:-1]
    multiplier = 1
    if digits and digits[-1].upper() in _MULTIPLIERS:
        multiplier = _MULTIPLIERS[digits[-1].upper()]
        digits = digits[:-1]
    if not _UNSIGNED.fullmatch(digits):
        raise ConfigError(f"Invalid memory size: {text}", show_help=True)
    size = int(digits) * multiplier
    if size > MAX_MEMORY:
        raise ConfigError(
            f"Memory size exceeds maximum of {MAX_MEMORY // (1024 * 1024)}MB"
        )
    return size


def _positive_int(value: str, what: str) -> int:
    match = _INT_PREFIX.match(value)
    number = int(match.group(1)) if match else None
    if number is None or not -(2**31) <= number < 2**31 or number < 1:
        raise ConfigError(f"Invalid {what}: {value}")
    return number


def parse_args(argv: Optional[Sequence[str]] = None) -> Config:
    """Build a Config from command-line arguments (without the program name).

    Raises HelpRequested for -h/--help and ConfigError for bad input.
    """
    if argv is None:
        argv = sys.argv[1:]
    config = Config()
    args = iter(argv)
    for arg in args:
        if arg in ("--verbose", "-v"):
            config.verbose = True
            continue
        if arg in ("--help", "-h"):
            raise HelpRequested()

        takes_value = arg in (
            "--log-level", "-l", "--memory", "-m", "--scheduler", "-s",
            "--quantum", "-q", "--cycles", "-c", "--tick-ms", "-t",
        )
        value = next(args, None) if takes_value else None
        if value is None:
            raise ConfigError(f"Unknown option: {arg}", show_help=True)

        if arg in ("--log-level", "-l"):
            level = _LOG_LEVELS.get(value.lower())
            if level is None:
                raise ConfigError(
                    f"Unknown log level: {value.lower()}\n"
                    "Valid options: debug, info, warning (warn), error"
                )
            config.log_level = level
        elif arg in ("--memory", "-m"):
            config.memory_size = parse_memory_size(value)
        elif arg in ("--scheduler", "-s"):
            algorithm = _SCHEDULERS.get(value.lower())
            if algorithm is None:
                raise ConfigError(
                    f"Unknown scheduler algorithm: {value.lower()}\n"
                    "Valid options: fcfs, rr (roundrobin), priority"
                )
            config.scheduler_algorithm = algorithm
        elif arg in ("--quantum", "-q"):
            config.scheduler_quantum = _positive_int(value, "quantum value")
        elif arg in ("--cycles", "-c"):
            config.cycles_per_tick = _positive_int(value, "cycles value")
        else:
            config.tick_interval_ms = _positive_int(value, "tick interval")
    return config


def help_text(program_name: str) -> str:
    """Return the usage text."""
    p = program_name
    return (
        f"Usage: {p} [OPTIONS]\n"
        "\n"
        "s3al OS Simulator - A simple operating system simulator\n"
        "\n"
        "Options:\n"
        "  -v, --verbose          Enable verbose logging to console\n"
        "  -l, --log-level LEVEL  Set minimum log level: debug, info, warning, error\n"
        "                         Default: debug\n"
        "  -m, --memory SIZE      Set memory size (e.g., 512K, 512KB, 2M, 2MB, 1G, 1GB)\n"
        "                         Default: 1M (1048576 bytes)\n"
        "  -h, --help             Show this help message\n"
        "\n"
        "Scheduler Options:\n"
        "  -s, --scheduler ALGO   Scheduling algorithm: fcfs, rr (roundrobin), priority\n"
        "                         Default: fcfs\n"
        "  -q, --quantum N        Time quantum for RoundRobin (in cycles)\n"
        "                         Default: 5\n"
        "  -c, --cycles N         CPU cycles per scheduler tick\n"
        "                         Default: 1 (slower CPU = lower value)\n"
        "  -t, --tick-ms N        Milliseconds between scheduler ticks\n"
        "                         Default: 100 (10 ticks per second)\n"
        "\n"
        "Examples:\n"
        f"  {p} --verbose\n"
        f"  {p} --memory 2M\n"
        f"  {p} -m 512KB -v\n"
        f"  {p} --log-level info\n"
        f"  {p} --scheduler rr --quantum 3\n"
        f"  {p} -s priority -c 2 -t 50\n"
    )


def show_help(program_name: str) -> None:
    """Print the usage text to standard output."""
    sys.stdout.write(help_text(program_name))