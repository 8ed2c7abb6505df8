"""The system-call interface that processes and services use to reach the kernel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

__all__ = ["SysResult", "SysInfo", "ProcessInfo", "SysApi"]


class SysResult(Enum):
    """Outcome codes reported by system calls."""

    OK = "OK"
    ALREADY_EXISTS = "AlreadyExists"
    NOT_FOUND = "NotFound"
    AT_ROOT = "AtRoot"
    INVALID_ARGUMENT = "InvalidArgument"
    ERROR = "Error"

    def __str__(self) -> str:
        return self.value


@dataclass
class SysInfo:
    """Memory figures of the running system, in bytes."""

    total_memory: int = 0
    used_memory: int = 0


@dataclass
class ProcessInfo:
    """One row of the process list."""

    pid: int
    name: str
    state: str
    priority: int


class SysApi(ABC):
    """Kernel services available to user-space code.

    Calls that cannot be carried out raise an exception rather than
    returning a status.
    """

    @abstractmethod
    def get_sys_info(self) -> SysInfo:
        """Return the current memory figures."""

    @abstractmethod
    def allocate_memory(self, size: int, process_id: int = 0) -> int:
        """Reserve memory for a process and return its handle.

        Raises MemoryError when the request does not fit.
        """

    @abstractmethod
    def deallocate_memory(self, handle: int) -> None:
        """Release one allocation; raises if the handle is unknown."""

    @abstractmethod
    def free_process_memory(self, process_id: int) -> None:
        """Release every allocation owned by a process."""

    @abstractmethod
    def schedule_process(self, pid: int, cpu_cycles: int, priority: int) -> None:
        """Hand a process to the CPU scheduler."""

    @abstractmethod
    def unschedule_process(self, pid: int) -> None:
        """Remove a process from the CPU scheduler."""

    @abstractmethod
    def suspend_scheduled_process(self, pid: int) -> None:
        """Stop the scheduler from running a process."""

    @abstractmethod
    def resume_scheduled_process(self, pid: int) -> None:
        """Let the scheduler run a suspended process again."""

    @abstractmethod
    def send_signal_to_process(self, pid: int, signal: int) -> None:
        """Deliver a signal to a process; raises if it cannot be delivered."""

    @abstractmethod
    def fork(
        self,
        name: str,
        cpu_time_needed: int,
        memory_needed: int,
        priority: int = 0,
        persistent: bool = False,
    ) -> int:
        """Create a process and return its pid; raises if it cannot be created."""

    @abstractmethod
    def get_process_list(self) -> List[ProcessInfo]:
        """Return a description of every process in the table."""

    @abstractmethod
    def process_exists(self, pid: int) -> bool:
        """True if the pid is in the process table."""

    @abstractmethod
    def add_cpu_work(self, pid: int, cpu_cycles: int) -> bool:
        """Give an existing process more CPU work; False if it does not exist."""

    @abstractmethod
    def wait_for_process(self, pid: int) -> bool:
        """Block until the process has used its cycles; False if interrupted."""

    @abstractmethod
    def exit(self, pid: int, exit_code: int = 0) -> None:
        """Terminate a process, leaving it a zombie."""

    @abstractmethod
    def reap_process(self, pid: int) -> None:
        """Remove a zombie process from the table."""

    @abstractmethod
    def is_process_complete(self, pid: int) -> bool:
        """True when the process has no CPU cycles left scheduled."""

    @abstractmethod
    def get_process_remaining_cycles(self, pid: int) -> Optional[int]:
        """Cycles left for a process, or None if it is not scheduled."""