import threading

import pytest

from s3al.daemon import MonitoringDaemon
from s3al.daemon_registry import DaemonRegistry, DaemonStartError
from s3al.sysapi import SysApi, SysInfo


class FakeSysApi(SysApi):
    def __init__(self, fork_result=7, fork_error=None):
        self.fork_result = fork_result
        self.fork_error = fork_error
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def get_sys_info(self):
        return SysInfo(total_memory=1024, used_memory=0)

    def allocate_memory(self, size, process_id=0):
        return 1

    def deallocate_memory(self, handle):
        pass

    def free_process_memory(self, process_id):
        pass

    def schedule_process(self, pid, cpu_cycles, priority):
        pass

    def unschedule_process(self, pid):
        pass

    def suspend_scheduled_process(self, pid):
        pass

    def resume_scheduled_process(self, pid):
        pass

    def send_signal_to_process(self, pid, signal):
        self._record("send_signal_to_process", pid, signal)

    def fork(self, name, cpu_time_needed, memory_needed, priority=0, persistent=False):
        self._record("fork", name, cpu_time_needed, memory_needed, priority, persistent)
        if self.fork_error is not None:
            raise self.fork_error
        return self.fork_result

    def get_process_list(self):
        return []

    def process_exists(self, pid):
        return True

    def add_cpu_work(self, pid, cpu_cycles):
        return True

    def wait_for_process(self, pid):
        return True

    def exit(self, pid, exit_code=0):
        self._record("exit", pid, exit_code)

    def reap_process(self, pid):
        self._record("reap_process", pid)

    def is_process_complete(self, pid):
        return True

    def get_process_remaining_cycles(self, pid):
        return None


@pytest.fixture
def started():
    api = FakeSysApi()
    registry = DaemonRegistry(api)
    registry.start_all()
    yield api, registry
    registry.stop_all()


def test_available_daemons():
    assert DaemonRegistry.available_daemons() == ["sysmon"]


def test_create_daemon_known_and_unknown():
    daemon = DaemonRegistry.create_daemon("sysmon", FakeSysApi())
    assert isinstance(daemon, MonitoringDaemon)
    assert daemon.name == "SYSMON"
    with pytest.raises(ValueError):
        DaemonRegistry.create_daemon("nope", FakeSysApi())


def test_start_all_forks_and_runs(started):
    api, registry = started
    assert ("fork", "sysmon", 1, 512, 5, True) in api.calls
    daemons = registry.daemons
    assert list(daemons) == [7]
    assert daemons[7].pid == 7
    assert daemons[7].running


def test_start_all_fails_on_bad_pid():
    registry = DaemonRegistry(FakeSysApi(fork_result=0))
    with pytest.raises(DaemonStartError):
        registry.start_all()
    assert registry.daemons == {}


def test_start_all_fails_when_fork_raises():
    registry = DaemonRegistry(FakeSysApi(fork_error=RuntimeError("no")))
    with pytest.raises(DaemonStartError):
        registry.start_all()
    assert registry.daemons == {}


def test_stop_all_cleans_up():
    api = FakeSysApi()
    registry = DaemonRegistry(api)
    registry.start_all()
    daemon = registry.daemons[7]
    registry.stop_all()
    assert registry.daemons == {}
    assert not daemon.running
    assert ("send_signal_to_process", 7, 15) in api.calls
    assert ("exit", 7, 0) in api.calls
    assert ("reap_process", 7) in api.calls


def test_forward_signal_suspends_and_resumes(started):
    _, registry = started
    daemon = registry.daemons[7]
    assert registry.forward_signal(7, 19)
    assert daemon.suspended
    assert registry.forward_signal(7, 18)
    assert not daemon.suspended


def test_forward_signal_unknown_pid():
    registry = DaemonRegistry(FakeSysApi())
    assert registry.forward_signal(99, 15) is False


def test_termination_then_reap(started):
    api, registry = started
    daemon = registry.daemons[7]
    assert registry.forward_signal(7, 15)
    assert not daemon.running
    assert registry.daemons == {}
    assert registry.reap_daemon(7)
    assert ("reap_process", 7) in api.calls
    assert registry.reap_daemon(7) is False


def test_reap_without_termination_does_nothing(started):
    api, registry = started
    assert registry.reap_daemon(7) is False
    assert ("reap_process", 7) not in api.calls


def test_signal_callback_forwards_to_daemon(started):
    _, registry = started
    daemon = registry.daemons[7]
    daemon.signal_callback(19)
    assert daemon.suspended