"""Building blocks for a small operating-system simulator: scheduling, memory, processes, daemons and logging."""

__version__ = "0.1.0"

__all__ = [
    "algorithms",
    "colors",
    "config",
    "daemon",
    "daemon_registry",
    "logger",
    "memory",
    "process",
    "process_manager",
    "scheduler",
    "sysapi",
    "timeutils",
]