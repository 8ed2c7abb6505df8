import pytest

from s3al.algorithms import (
    FCFSAlgorithm,
    PriorityAlgorithm,
    RoundRobinAlgorithm,
    SchedulerAlgorithm,
)
from s3al.config import Config
from s3al.scheduler import CPUScheduler


@pytest.fixture
def scheduler():
    return CPUScheduler()


def test_enqueue_adds_process_to_ready_queue(scheduler):
    scheduler.enqueue(1, 5, 1)
    assert scheduler.ready_count == 1
    assert scheduler.has_work()


def test_tick_starts_process_execution(scheduler):
    scheduler.enqueue(1, 1, 1)
    result = scheduler.tick()
    assert scheduler.ready_count == 0
    assert result.current_pid == 1
    assert not result.context_switch
    assert not result.idle


def test_process_completes_after_enough_cycles(scheduler):
    scheduler.enqueue(1, 3, 1)
    r1 = scheduler.tick()
    assert not r1.process_completed
    assert r1.remaining_cycles == 2
    r2 = scheduler.tick()
    assert not r2.process_completed
    assert r2.remaining_cycles == 1
    r3 = scheduler.tick()
    assert r3.process_completed
    assert r3.completed_pid == 1


def test_fcfs_executes_in_order(scheduler):
    scheduler.set_algorithm(FCFSAlgorithm())
    scheduler.enqueue(1, 2, 1)
    scheduler.enqueue(2, 2, 5)
    r1 = scheduler.tick()
    assert r1.current_pid == 1
    scheduler.tick()
    r3 = scheduler.tick()
    assert r3.current_pid == 2


def test_round_robin_preempts_after_quantum(scheduler):
    scheduler.set_algorithm(RoundRobinAlgorithm(2))
    scheduler.enqueue(1, 5, 1)
    scheduler.enqueue(2, 5, 1)
    r1 = scheduler.tick()
    assert r1.current_pid == 1
    assert not r1.context_switch
    r2 = scheduler.tick()
    assert r2.current_pid == 1
    assert not r2.context_switch
    r3 = scheduler.tick()
    assert r3.current_pid == 2
    assert r3.context_switch


def test_priority_preempts_lower_priority(scheduler):
    scheduler.set_algorithm(PriorityAlgorithm())
    scheduler.enqueue(1, 10, 10)
    scheduler.tick()
    assert scheduler.current_pid == 1
    scheduler.enqueue(2, 2, 1)
    result = scheduler.tick()
    assert result.current_pid == 2
    assert result.context_switch


def test_cycles_per_interval_affects_progress(scheduler):
    scheduler.cycles_per_interval = 3
    scheduler.enqueue(1, 6, 1)
    r1 = scheduler.tick()
    assert r1.remaining_cycles == 3
    r2 = scheduler.tick()
    assert r2.process_completed


def test_suspend_and_resume_process(scheduler):
    scheduler.enqueue(1, 10, 1)
    scheduler.tick()
    scheduler.suspend(1)
    assert scheduler.current_pid is None
    scheduler.resume(1)
    scheduler.tick()
    assert scheduler.current_pid == 1


def test_idle_tick_without_work(scheduler):
    result = scheduler.tick()
    assert result.idle
    assert result.current_pid is None
    assert not scheduler.has_work()


def test_completion_callback_and_cleanup(scheduler):
    completed = []
    scheduler.set_process_complete_callback(completed.append)
    scheduler.enqueue(7, 2)
    scheduler.tick()
    scheduler.tick()
    assert completed == [7]
    assert scheduler.remaining_cycles(7) is None
    assert not scheduler.has_work()


def test_add_cycles(scheduler):
    scheduler.enqueue(1, 2)
    assert scheduler.add_cycles(1, 3) is True
    assert scheduler.remaining_cycles(1) == 5
    assert scheduler.add_cycles(99, 1) is False


def test_duplicate_enqueue_is_ignored(scheduler):
    scheduler.enqueue(1, 4)
    scheduler.enqueue(1, 9)
    assert scheduler.ready_count == 1
    assert scheduler.remaining_cycles(1) == 4


def test_remove_running_task(scheduler):
    scheduler.enqueue(1, 5)
    scheduler.tick()
    scheduler.remove(1)
    assert scheduler.current_pid is None
    assert scheduler.remaining_cycles(1) is None
    assert not scheduler.has_work()


def test_set_algorithm_none_keeps_current(scheduler):
    assert scheduler.set_algorithm(None) is False
    assert scheduler.algorithm.name == "FCFS"
    assert scheduler.set_algorithm(SchedulerAlgorithm.PRIORITY) is True
    assert scheduler.algorithm.name == "Priority"


def test_interval_settings_are_clamped(scheduler):
    scheduler.cycles_per_interval = 0
    scheduler.tick_interval_ms = -5
    assert scheduler.cycles_per_interval == 1
    assert scheduler.tick_interval_ms == 1


def test_config_applied():
    config = Config(
        scheduler_algorithm=SchedulerAlgorithm.ROUND_ROBIN,
        scheduler_quantum=3,
        cycles_per_tick=2,
        tick_interval_ms=50,
    )
    scheduler = CPUScheduler(config)
    assert scheduler.algorithm.name == "Round Robin"
    assert scheduler.algorithm.quantum == 3
    assert scheduler.cycles_per_interval == 2
    assert scheduler.tick_interval_ms == 50


def test_log_callback_receives_messages(scheduler):
    records = []
    scheduler.set_log_callback(lambda level, module, msg: records.append((level, module, msg)))
    scheduler.enqueue(1, 3, 2)
    assert ("INFO", "SCHEDULER", "Enqueued ScheduledTask 1 (burst=3, priority=2)") in records


def test_system_time_counts_cycles(scheduler):
    scheduler.cycles_per_interval = 2
    scheduler.tick()
    scheduler.tick()
    assert scheduler.system_time == 4