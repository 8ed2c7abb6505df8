"""A single simulated process and its state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Collection, Optional

from s3al.logger import LoggingMixin

__all__ = ["ProcessState", "ProcessStateError", "Process"]

ExecutionCallback = Callable[[int, int], None]


class ProcessState(IntEnum):
    """Life-cycle states of a process."""

    NEW = 0  # just created
    READY = 1  # waiting for the CPU
    RUNNING = 2  # executing
    WAITING = 3  # waiting for I/O or an event
    STOPPED = 4  # suspended by SIGSTOP
    ZOMBIE = 5  # finished but not yet reaped
    TERMINATED = 6  # removed

    @property
    def label(self) -> str:
        return "UNKNOWN" if self is ProcessState.TERMINATED else self.name


class ProcessStateError(RuntimeError):
    """The requested transition is not allowed from the current state."""


@dataclass(eq=False)
class Process(LoggingMixin):
    """Process metadata with validated state transitions."""

    name: str
    pid: int
    cpu_time_needed: int
    memory_needed: int
    priority: int = 0
    parent_pid: int = 0
    state: ProcessState = ProcessState.NEW
    persistent: bool = False
    remaining_cycles: int = 0
    execution_callback: Optional[ExecutionCallback] = field(default=None, repr=False)

    @property
    def module_name(self) -> str:
        return f"PID={self.pid} '{self.name}'"

    def _require(self, allowed: Collection[ProcessState], message: str) -> None:
        if self.state not in allowed:
            self.log_error(message)
            raise ProcessStateError(message)

    def make_ready(self) -> None:
        """NEW or WAITING -> READY."""
        self._require(
            (ProcessState.NEW, ProcessState.WAITING),
            f"Cannot transition to READY from {self.state.label}",
        )
        self.state = ProcessState.READY
        self.log_debug(f"State: {self.state.label}")

    def start(self) -> None:
        """READY -> RUNNING."""
        self._require(
            (ProcessState.READY,),
            f"Cannot start process from {self.state.label} state",
        )
        self.state = ProcessState.RUNNING
        self.log_debug(f"State: {self.state.label}")

    def suspend(self) -> None:
        """RUNNING or READY -> STOPPED."""
        self._require(
            (ProcessState.RUNNING, ProcessState.READY),
            f"Cannot suspend process from {self.state.label} state",
        )
        previous = self.state
        self.state = ProcessState.STOPPED
        self.log_info(f"Suspended from {previous.label}")

    def resume(self) -> None:
        """STOPPED -> READY."""
        self._require(
            (ProcessState.STOPPED,),
            "Cannot resume process - not in STOPPED state",
        )
        self.state = ProcessState.READY
        self.log_info("Resumed to READY")

    def wait(self) -> None:
        """RUNNING -> WAITING."""
        self._require(
            (ProcessState.RUNNING,),
            "Cannot wait - not in RUNNING state",
        )
        self.state = ProcessState.WAITING
        self.log_debug(f"State: {self.state.label}")

    def make_zombie(self) -> None:
        """Any state except ZOMBIE -> ZOMBIE."""
        if self.state is ProcessState.ZOMBIE:
            message = "Process already a zombie"
            self.log_warn(message)
            raise ProcessStateError(message)
        self.state = ProcessState.ZOMBIE
        self.log_debug(f"State: {self.state.label}")

    def consume_cycle(self) -> bool:
        """Use one remaining cycle; True once none are left."""
        if self.remaining_cycles > 0:
            self.remaining_cycles -= 1
            self.log_debug(f"Consumed cycle, remaining: {self.remaining_cycles}")
        return self.remaining_cycles == 0

    def on_complete(self, exit_code: int) -> None:
        """Report completion to the execution callback, if any."""
        if self.execution_callback is not None:
            self.execution_callback(self.pid, exit_code)