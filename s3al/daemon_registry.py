"""Creation and life-cycle management of the system daemons."""

from __future__ import annotations

import threading
import weakref
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from s3al.daemon import SIGKILL, SIGTERM, Daemon, MonitoringDaemon
from s3al.logger import LoggingMixin
from s3al.sysapi import SysApi

__all__ = ["DaemonStartError", "DaemonRegistry"]

_FACTORIES: Dict[str, Callable[[SysApi], Daemon]] = {
    "sysmon": MonitoringDaemon,
}


class DaemonStartError(RuntimeError):
    """A daemon could not be forked or created."""


@dataclass
class _DaemonProcess:
    daemon: Daemon
    pid: int


def _signal_forwarder(daemon: Daemon) -> Callable[[int], None]:
    ref = weakref.ref(daemon)

    def forward(signal: int) -> None:
        target = ref()
        if target is not None:
            target.handle_signal(signal)

    return forward


class DaemonRegistry(LoggingMixin):
    """Starts every known daemon as a persistent process and tracks it by pid."""

    def __init__(self, sys_api: SysApi) -> None:
        self.sys_api = sys_api
        self._registry: Dict[int, Daemon] = {}
        self._registry_lock = threading.Lock()
        self._processes: List[_DaemonProcess] = []
        self._terminated: Set[int] = set()
        self._terminated_lock = threading.Lock()

    @property
    def module_name(self) -> str:
        return "DAEMON_REGISTRY"

    @staticmethod
    def create_daemon(name: str, sys_api: SysApi) -> Daemon:
        """Build the daemon registered under ``name``."""
        factory = _FACTORIES.get(name)
        if factory is None:
            raise ValueError(f"Unknown daemon type: {name}")
        return factory(sys_api)

    @staticmethod
    def available_daemons() -> List[str]:
        """Names of every daemon that can be created."""
        return list(_FACTORIES)

    @property
    def daemons(self) -> Dict[int, Daemon]:
        """The registered daemons by pid."""
        with self._registry_lock:
            return dict(self._registry)

    def start_all(self) -> None:
        """Fork a process for each daemon, then start and register it."""
        self.log_info("Starting system daemons...")
        for name in self.available_daemons():
            try:
                pid = self.sys_api.fork(name, 1, 512, 5, True)
            except Exception as exc:
                self.log_error(f"Failed to fork daemon: {name}")
                raise DaemonStartError(f"Failed to fork daemon: {name}") from exc
            if pid <= 0:
                self.log_error(f"Failed to fork daemon: {name}")
                raise DaemonStartError(f"Failed to fork daemon: {name}")

            try:
                daemon = self.create_daemon(name, self.sys_api)
            except ValueError as exc:
                self.log_error(f"Unknown daemon type: {name}")
                raise DaemonStartError(f"Unknown daemon type: {name}") from exc

            daemon.pid = pid
            daemon.signal_callback = _signal_forwarder(daemon)
            daemon.start()

            with self._registry_lock:
                self._registry[pid] = daemon
            self._processes.append(_DaemonProcess(daemon, pid))

        self.log_info(f"Started {len(self._processes)} system daemons")

    def _quietly(self, action: Callable[[], object]) -> None:
        try:
            action()
        except Exception as exc:  # shutdown carries on past failed calls
            self.log_debug(f"Ignored during shutdown: {exc}")

    def stop_all(self) -> None:
        """Signal, stop, join, exit and reap every daemon, then forget them."""
        self.log_info("Stopping system daemons...")
        processes = list(self._processes)

        for entry in processes:
            self._quietly(
                lambda pid=entry.pid: self.sys_api.send_signal_to_process(pid, SIGTERM)
            )
        for entry in processes:
            entry.daemon.stop()
        for entry in processes:
            entry.daemon.join()
        for entry in processes:
            self._quietly(lambda pid=entry.pid: self.sys_api.exit(pid, 0))
            self._quietly(lambda pid=entry.pid: self.sys_api.reap_process(pid))

        with self._registry_lock:
            for entry in processes:
                self._registry.pop(entry.pid, None)
        self._processes.clear()
        self.log_info("All system daemons stopped")

    def forward_signal(self, pid: int, signal: int) -> bool:
        """Pass a signal to the daemon with ``pid``; False if there is none.

        After a termination signal the daemon is joined, unregistered and
        remembered for reaping.
        """
        with self._registry_lock:
            daemon = self._registry.get(pid)
        if daemon is None:
            return False

        daemon.handle_signal(signal)
        if signal in (SIGKILL, SIGTERM):
            daemon.join()
            with self._registry_lock:
                self._registry.pop(pid, None)
            self._processes = [entry for entry in self._processes if entry.pid != pid]
            with self._terminated_lock:
                self._terminated.add(pid)
        return True

    def reap_daemon(self, pid: int) -> bool:
        """Reap a daemon terminated by a signal; False if it is not waiting."""
        with self._terminated_lock:
            if pid not in self._terminated:
                return False
            self._terminated.discard(pid)
        self.sys_api.reap_process(pid)
        return True