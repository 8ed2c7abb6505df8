"""The process table: creation, signals, exit and reaping of processes."""

from __future__ import annotations

import copy
from typing import Callable, List, Optional

from s3al.logger import LoggingMixin
from s3al.process import Process, ProcessState, ProcessStateError
from s3al.sysapi import SysApi

__all__ = ["ProcessError", "ProcessManager"]

_SIGKILL = 9
_SIGTERM = 15
_SIGCONT = 18
_SIGSTOP = 19
_TERMINATING = (_SIGKILL, _SIGTERM)

ProcessCompleteCallback = Callable[[int, int], None]
SignalCallback = Callable[[int, int], None]


class ProcessError(RuntimeError):
    """A process could not be created, found or signalled."""


class ProcessManager(LoggingMixin):
    """Owns the process table and drives process state changes.

    ``complete_callback`` is called with (pid, exit_code) when a process
    finishes or is terminated; ``signal_callback`` with (pid, signal) before
    a signal is handled.
    """

    def __init__(self, sys_api: Optional[SysApi] = None) -> None:
        self.sys_api = sys_api
        self.next_pid = 1  # 0 is reserved for the kernel
        self.complete_callback: Optional[ProcessCompleteCallback] = None
        self.signal_callback: Optional[SignalCallback] = None
        self._table: List[Process] = []

    @property
    def module_name(self) -> str:
        return "PROCESS_MGR"

    def _find(self, pid: int) -> Optional[Process]:
        return next((process for process in self._table if process.pid == pid), None)

    def _require(self, pid: int, message: str) -> Process:
        process = self._find(pid)
        if process is None:
            self.log_error(message)
            raise ProcessError(message)
        return process

    def submit(
        self,
        name: str,
        cpu_cycles: int,
        memory_needed: int,
        priority: int = 0,
        persistent: bool = False,
    ) -> int:
        """Create a process, allocate its memory, schedule it and return its pid.

        Persistent processes (init, daemons) start RUNNING and survive the
        end of their CPU work.
        """
        if not name or cpu_cycles < 1 or memory_needed < 0:
            message = (
                f"Invalid process parameters: name={name}, cpuCycles={cpu_cycles}, "
                f"memoryNeeded={memory_needed}"
            )
            self.log_error(message)
            raise ProcessError(message)

        pid = self.next_pid
        self.next_pid += 1

        process = Process(name, pid, cpu_cycles, memory_needed, priority, 0)
        process.remaining_cycles = cpu_cycles
        process.persistent = persistent
        process.make_ready()
        if persistent:
            process.start()

        if self.sys_api is not None and memory_needed > 0:
            try:
                self.sys_api.allocate_memory(memory_needed, pid)
            except MemoryError as exc:
                message = f"Failed to allocate memory for process '{name}' (PID={pid})"
                self.log_error(message)
                raise ProcessError(message) from exc
            self.log_debug(
                f"Allocated {memory_needed} bytes for process '{name}' (PID={pid})"
            )

        self._table.append(process)
        if self.sys_api is not None:
            self.sys_api.schedule_process(pid, cpu_cycles, priority)

        self.log_info(
            f"Submitted process '{name}' (PID={pid}, cycles={cpu_cycles}, "
            f"priority={priority})"
        )
        return pid

    def process_exists(self, pid: int) -> bool:
        return self._find(pid) is not None

    def is_process_persistent(self, pid: int) -> bool:
        process = self._find(pid)
        return process is not None and process.persistent

    def suspend_process(self, pid: int) -> None:
        """Stop a process and take it off the scheduler."""
        process = self._require(pid, f"Cannot suspend process: PID {pid} not found")
        if self.sys_api is not None:
            self.sys_api.suspend_scheduled_process(pid)
        process.suspend()

    def resume_process(self, pid: int) -> None:
        """Continue a stopped process."""
        process = self._require(pid, f"Cannot resume process: PID {pid} not found")
        if self.sys_api is not None:
            self.sys_api.resume_scheduled_process(pid)
        process.resume()

    def send_signal(self, pid: int, signal: int) -> None:
        """Deliver a signal: SIGSTOP, SIGCONT, SIGKILL and SIGTERM are acted on.

        Termination signals to init are refused.
        """
        process = self._require(pid, f"Cannot send signal to PID {pid}: not found")
        self.log_info(
            f"Sending signal {signal} to process '{process.name}' (PID={pid})"
        )

        if process.name == "init" and signal in _TERMINATING:
            message = (
                f"Cannot send signal {signal} to init process - kernel protection"
            )
            self.log_warn(message)
            raise ProcessError(message)

        if self.signal_callback is not None:
            self.signal_callback(pid, signal)

        if signal == _SIGSTOP:
            self.suspend_process(pid)
        elif signal == _SIGCONT:
            self.resume_process(pid)
        elif signal in _TERMINATING:
            self.log_info(f"Terminating process '{process.name}' (PID={pid})")
            if self.sys_api is not None:
                self.sys_api.unschedule_process(pid)
                self.sys_api.free_process_memory(pid)
            try:
                process.make_zombie()
            except ProcessStateError:
                self.log_error(f"Failed to make process zombie: PID={pid}")
                raise
            if self.complete_callback is not None:
                self.complete_callback(pid, 128 + signal)
        else:
            self.log_warn(f"Signal {signal} not implemented")

    def exit(self, pid: int, exit_code: int = 0) -> None:
        """Free a process's memory and make it a zombie."""
        process = self._require(pid, f"Cannot exit: PID {pid} not found")
        self.log_debug(
            f"Process '{process.name}' exited with code {exit_code} (PID={pid})"
        )
        if self.sys_api is not None:
            self.sys_api.free_process_memory(pid)
        process.make_zombie()

    def reap_process(self, pid: int) -> None:
        """Remove a zombie from the process table."""
        process = self._require(pid, f"Cannot reap process: PID {pid} not found")
        if process.state is not ProcessState.ZOMBIE:
            message = f"Cannot reap process PID {pid}: not in ZOMBIE state"
            self.log_warn(message)
            raise ProcessStateError(message)
        self.log_info(f"Reaping zombie process '{process.name}' (PID={pid})")
        self._table = [entry for entry in self._table if entry.pid != pid]

    def on_process_complete(self, pid: int) -> None:
        """Handle the scheduler reporting that a process used all its cycles."""
        process = self._find(pid)
        if process is None:
            return
        if process.persistent:
            self.log_debug(
                f"Persistent process '{process.name}' (PID={pid}) cycle completed, "
                "keeping alive"
            )
            return
        self.log_info(
            f"Process '{process.name}' (PID={pid}) completed CPU scheduling"
        )
        if process.state is ProcessState.READY:
            process.start()
        if self.complete_callback is not None:
            self.complete_callback(pid, 0)

    def snapshot(self) -> List[Process]:
        """Return copies of every process in the table."""
        return [copy.copy(process) for process in self._table]