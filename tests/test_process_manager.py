import itertools

import pytest

from s3al.memory import MemoryManager
from s3al.process import ProcessState, ProcessStateError
from s3al.process_manager import ProcessError, ProcessManager
from s3al.scheduler import CPUScheduler
from s3al.sysapi import SysApi, SysInfo, SysResult


class FakeSysApi(SysApi):
    """Records calls; optionally backed by a real memory manager and scheduler."""

    def __init__(self, memory=None, scheduler=None):
        self.memory = memory
        self.scheduler = scheduler
        self.calls = []
        self._handles = itertools.count(1)

    def get_sys_info(self):
        if self.memory is None:
            return SysInfo()
        return SysInfo(self.memory.total_memory, self.memory.used_memory)

    def allocate_memory(self, size, process_id=0):
        self.calls.append(("allocate", size, process_id))
        if self.memory is not None:
            return self.memory.allocate(size, process_id)
        return next(self._handles)

    def deallocate_memory(self, handle):
        if self.memory is not None:
            self.memory.deallocate(handle)

    def free_process_memory(self, process_id):
        self.calls.append(("free", process_id))
        if self.memory is not None:
            self.memory.free_process_memory(process_id)

    def schedule_process(self, pid, cpu_cycles, priority):
        self.calls.append(("schedule", pid, cpu_cycles, priority))
        if self.scheduler is not None:
            self.scheduler.enqueue(pid, cpu_cycles, priority)

    def unschedule_process(self, pid):
        self.calls.append(("unschedule", pid))
        if self.scheduler is not None:
            self.scheduler.remove(pid)

    def suspend_scheduled_process(self, pid):
        self.calls.append(("suspend", pid))
        if self.scheduler is not None:
            self.scheduler.suspend(pid)

    def resume_scheduled_process(self, pid):
        self.calls.append(("resume", pid))
        if self.scheduler is not None:
            self.scheduler.resume(pid)

    def send_signal_to_process(self, pid, signal):
        return SysResult.OK

    def fork(self, name, cpu_time_needed, memory_needed, priority=0, persistent=False):
        return 0

    def get_process_list(self):
        return []

    def process_exists(self, pid):
        return False

    def add_cpu_work(self, pid, cpu_cycles):
        return False

    def wait_for_process(self, pid):
        return False

    def exit(self, pid, exit_code=0):
        return None

    def reap_process(self, pid):
        return None

    def is_process_complete(self, pid):
        return False

    def get_process_remaining_cycles(self, pid):
        return None


@pytest.fixture
def sys_api():
    return FakeSysApi()


@pytest.fixture
def manager(sys_api):
    return ProcessManager(sys_api)


def test_submit_returns_positive_pid(manager):
    pid = manager.submit("test_process", 100, 512, 5)
    assert pid > 0


def test_pids_start_at_one_and_increase(manager):
    assert manager.submit("a", 1, 0) == 1
    assert manager.submit("b", 1, 0) == 2
    assert manager.next_pid == 3


def test_submit_allocates_and_schedules(manager, sys_api):
    pid = manager.submit("proc", 10, 512, 5)
    assert ("allocate", 512, pid) in sys_api.calls
    assert ("schedule", pid, 10, 5) in sys_api.calls


def test_submit_without_memory_skips_allocation(manager, sys_api):
    pid = manager.submit("proc", 10, 0)
    assert pid == 1
    assert sys_api.calls == [("schedule", pid, 10, 0)]


@pytest.mark.parametrize(
    "name, cycles, memory",
    [("", 10, 0), ("proc", 0, 0), ("proc", 10, -1)],
)
def test_submit_rejects_invalid_parameters(manager, name, cycles, memory):
    with pytest.raises(ProcessError):
        manager.submit(name, cycles, memory)
    assert manager.snapshot() == []
    assert manager.next_pid == 1


def test_submit_fails_when_memory_is_exhausted():
    memory = MemoryManager(100)
    manager = ProcessManager(FakeSysApi(memory))
    with pytest.raises(ProcessError):
        manager.submit("big", 10, 512)
    assert not manager.process_exists(1)
    assert memory.used_memory == 0


def test_persistent_process_starts_running(manager):
    persistent = manager.submit("init", 1, 0, 10, True)
    regular = manager.submit("job", 1, 0)
    states = {process.pid: process.state for process in manager.snapshot()}
    assert states[persistent] is ProcessState.RUNNING
    assert states[regular] is ProcessState.READY
    assert manager.is_process_persistent(persistent)
    assert not manager.is_process_persistent(regular)
    assert not manager.is_process_persistent(99)


def test_process_scheduler_integration():
    memory = MemoryManager(4096)
    manager = ProcessManager(FakeSysApi(memory))

    pid1 = manager.submit("proc1", 10, 512, 5)
    pid2 = manager.submit("proc2", 20, 256, 10)
    pid3 = manager.submit("proc3", 15, 128, 3)
    assert pid1 > 0 and pid2 > 0 and pid3 > 0
    assert memory.used_memory > 0
    assert len(manager.snapshot()) == 3

    for pid in (pid1, pid2, pid3):
        manager.send_signal(pid, 15)
    assert len(manager.snapshot()) == 3

    for pid in (pid1, pid2, pid3):
        manager.reap_process(pid)
    assert manager.snapshot() == []
    assert memory.used_memory == 0

    exec1 = manager.submit("exec1", 10, 512, 5)
    exec2 = manager.submit("exec2", 20, 256, 10)
    assert exec1 > 0 and exec2 > 0
    assert len(manager.snapshot()) == 2

    manager.send_signal(exec1, 15)
    manager.send_signal(exec2, 15)
    assert len(manager.snapshot()) == 2

    manager.reap_process(exec1)
    manager.reap_process(exec2)
    assert manager.snapshot() == []


def test_completion_through_scheduler_reports_exit_code_zero():
    scheduler = CPUScheduler()
    manager = ProcessManager(FakeSysApi(scheduler=scheduler))
    scheduler.set_process_complete_callback(manager.on_process_complete)
    completed = []
    manager.complete_callback = lambda pid, code: completed.append((pid, code))

    pid = manager.submit("job", 2, 0)
    scheduler.tick()
    assert completed == []
    scheduler.tick()
    assert completed == [(pid, 0)]
    assert manager.snapshot()[0].state is ProcessState.RUNNING


def test_persistent_process_survives_completion(manager):
    completed = []
    manager.complete_callback = lambda pid, code: completed.append((pid, code))
    pid = manager.submit("sysmon", 1, 0, 5, True)
    manager.on_process_complete(pid)
    assert completed == []
    assert manager.process_exists(pid)


def test_kill_makes_zombie_and_reports_unix_exit_code(manager, sys_api):
    completed = []
    manager.complete_callback = lambda pid, code: completed.append((pid, code))
    pid = manager.submit("job", 10, 64)
    manager.send_signal(pid, 9)
    assert manager.snapshot()[0].state is ProcessState.ZOMBIE
    assert completed == [(pid, 137)]
    assert ("unschedule", pid) in sys_api.calls
    assert ("free", pid) in sys_api.calls


def test_init_is_protected_from_termination(manager):
    pid = manager.submit("init", 1, 0, 10, True)
    with pytest.raises(ProcessError):
        manager.send_signal(pid, 9)
    with pytest.raises(ProcessError):
        manager.send_signal(pid, 15)
    assert manager.snapshot()[0].state is ProcessState.RUNNING


def test_stop_and_continue_signals(manager, sys_api):
    pid = manager.submit("job", 10, 0)
    manager.send_signal(pid, 19)
    assert manager.snapshot()[0].state is ProcessState.STOPPED
    manager.send_signal(pid, 18)
    assert manager.snapshot()[0].state is ProcessState.READY
    assert ("suspend", pid) in sys_api.calls
    assert ("resume", pid) in sys_api.calls


def test_signal_callback_sees_every_signal(manager):
    seen = []
    manager.signal_callback = lambda pid, signal: seen.append((pid, signal))
    pid = manager.submit("job", 10, 0)
    manager.send_signal(pid, 2)
    assert seen == [(pid, 2)]
    assert manager.snapshot()[0].state is ProcessState.READY


def test_signal_to_unknown_pid_raises(manager):
    with pytest.raises(ProcessError):
        manager.send_signal(42, 15)


def test_resume_of_running_process_raises(manager):
    pid = manager.submit("job", 10, 0)
    with pytest.raises(ProcessStateError):
        manager.resume_process(pid)


def test_reap_requires_zombie(manager):
    pid = manager.submit("job", 10, 0)
    with pytest.raises(ProcessStateError):
        manager.reap_process(pid)
    assert manager.process_exists(pid)
    with pytest.raises(ProcessError):
        manager.reap_process(99)


def test_exit_frees_memory_and_makes_zombie():
    memory = MemoryManager(4096)
    manager = ProcessManager(FakeSysApi(memory))
    pid = manager.submit("job", 10, 512)
    manager.exit(pid, 3)
    assert memory.used_memory == 0
    assert manager.snapshot()[0].state is ProcessState.ZOMBIE
    with pytest.raises(ProcessStateError):
        manager.exit(pid)
    manager.reap_process(pid)
    assert not manager.process_exists(pid)


def test_exit_unknown_pid_raises(manager):
    with pytest.raises(ProcessError):
        manager.exit(5)


def test_snapshot_returns_copies(manager):
    pid = manager.submit("job", 10, 0)
    copy_of_process = manager.snapshot()[0]
    copy_of_process.state = ProcessState.ZOMBIE
    assert manager.snapshot()[0].state is ProcessState.READY
    assert copy_of_process.pid == pid


def test_manager_without_sys_api_still_tracks_processes():
    manager = ProcessManager()
    pid = manager.submit("job", 10, 512)
    manager.send_signal(pid, 15)
    manager.reap_process(pid)
    assert manager.snapshot() == []