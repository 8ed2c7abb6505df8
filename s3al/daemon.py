"""Background service processes that do periodic work under the scheduler."""

from __future__ import annotations

import math
import threading
from abc import abstractmethod
from typing import Callable, Optional

from s3al.logger import LoggingMixin
from s3al.sysapi import SysApi

__all__ = ["Daemon", "MonitoringDaemon"]

SIGKILL = 9
SIGTERM = 15
SIGCONT = 18
SIGSTOP = 19

_POLL_SECONDS = 0.1

SignalCallback = Callable[[int], None]


class Daemon(LoggingMixin):
    """A long-running service that runs its work cycle in a background thread.

    Each cycle asks the kernel for ``work_cycles`` CPU cycles, calls
    ``do_work`` and then waits ``wait_interval_ms`` (in whole 100 ms steps)
    before the next cycle.
    """

    work_cycles: int = 5
    wait_interval_ms: int = 10000

    def __init__(self, sys_api: SysApi, name: str) -> None:
        self.sys_api = sys_api
        self.pid = -1
        self.signal_callback: Optional[SignalCallback] = None
        self._name = name
        self._running = threading.Event()
        self._suspended = threading.Event()
        self._wake = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def module_name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def suspended(self) -> bool:
        return self._suspended.is_set()

    def start(self) -> None:
        """Start the work loop in a background thread."""
        if self._running.is_set():
            self.log_warn("Daemon already running")
            return
        self._wake.clear()
        self._running.set()
        self.log_info("Starting daemon...")
        self._thread = threading.Thread(
            target=self._run, name=f"daemon-{self._name}", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Ask the work loop to finish; it exits promptly."""
        if not self._running.is_set():
            return
        self.log_info("Stopping daemon...")
        self._running.clear()
        self._wake.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the background thread to end."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def handle_signal(self, signal: int) -> None:
        """React to SIGKILL/SIGTERM (stop), SIGSTOP (suspend) and SIGCONT (resume)."""
        self.log_info(f"Received signal {signal}")
        if signal in (SIGKILL, SIGTERM):
            self.log_info("Termination signal received, stopping daemon")
            self.stop()
        elif signal == SIGSTOP:
            self.log_info("Suspending daemon operations")
            self._suspended.set()
        elif signal == SIGCONT:
            self.log_info("Resuming daemon operations")
            self._suspended.clear()
        else:
            self.log_warn(f"Unknown signal {signal}")

    @abstractmethod
    def do_work(self) -> None:
        """One unit of the service's work, run after CPU time was requested."""

    def _run(self) -> None:
        self.log_info(f"Daemon started (PID {self.pid})")
        while self._running.is_set():
            if self._suspended.is_set():
                self._wake.wait(_POLL_SECONDS)
                continue
            self.sys_api.add_cpu_work(self.pid, self.work_cycles)
            self.do_work()
            steps = self.wait_interval_ms // 100
            if steps > 0 and self._running.is_set():
                self._wake.wait(steps * _POLL_SECONDS)
        self.log_info(f"Daemon stopped (PID {self.pid})")


class MonitoringDaemon(Daemon):
    """Periodically logs memory usage of the system."""

    work_cycles = 5
    wait_interval_ms = 10000

    def __init__(self, sys_api: SysApi) -> None:
        super().__init__(sys_api, "SYSMON")

    def do_work(self) -> None:
        self.collect_stats()

    def collect_stats(self) -> str:
        """Log the current memory usage and return the logged line."""
        info = self.sys_api.get_sys_info()
        if info.total_memory:
            percent = info.used_memory / info.total_memory * 100.0
        else:
            percent = math.nan
        message = (
            f"System stats: Memory {info.used_memory}/{info.total_memory} "
            f"bytes ({percent:.2f}% used)"
        )
        self.log_info(message)
        return message