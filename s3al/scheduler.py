"""Tick-driven CPU scheduler that runs tasks with a pluggable algorithm."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from s3al.algorithms import (
    FCFSAlgorithm,
    ScheduledTask,
    SchedulerAlgorithm,
    SchedulingAlgorithm,
    make_algorithm,
)
from s3al.config import Config
from s3al.logger import LoggingMixin

__all__ = ["TickResult", "CPUScheduler"]

ProcessCompleteCallback = Callable[[int], None]


@dataclass
class TickResult:
    """What happened during one scheduler tick."""

    process_completed: bool = False
    completed_pid: Optional[int] = None
    current_pid: Optional[int] = None
    remaining_cycles: int = 0
    context_switch: bool = False
    idle: bool = True


def _without(tasks: List[ScheduledTask], task: ScheduledTask) -> List[ScheduledTask]:
    return [item for item in tasks if item is not task]


class CPUScheduler(LoggingMixin):
    """Simulated CPU: each tick runs ``cycles_per_interval`` cycles of work."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.system_time = 0
        self._current: Optional[ScheduledTask] = None
        self._cycles_per_tick = 1
        self._tick_interval_ms = 100
        self._processes: List[ScheduledTask] = []
        self._ready: List[ScheduledTask] = []
        self._suspended: List[ScheduledTask] = []
        self._complete_callback: Optional[ProcessCompleteCallback] = None
        self.algorithm: SchedulingAlgorithm = FCFSAlgorithm()
        if config is not None:
            self.set_config(config)
            self.log_info(
                f"Scheduler initialized with: {self.algorithm.name}, "
                f"cycles/tick={self.cycles_per_interval}, "
                f"tick={self.tick_interval_ms}ms)"
            )

    @property
    def module_name(self) -> str:
        return "SCHEDULER"

    def set_config(self, config: Config) -> None:
        """Apply the algorithm, quantum, cycles per tick and tick interval of a config."""
        self.set_algorithm(config.scheduler_algorithm, config.scheduler_quantum)
        self.cycles_per_interval = config.cycles_per_tick
        self.tick_interval_ms = config.tick_interval_ms

    def set_process_complete_callback(
        self, callback: Optional[ProcessCompleteCallback]
    ) -> None:
        """Set the hook called with a pid when its task finishes."""
        self._complete_callback = callback

    def set_algorithm(
        self,
        algorithm: Union[SchedulerAlgorithm, SchedulingAlgorithm, None],
        quantum: int = 0,
    ) -> bool:
        """Switch algorithm, given by kind or as an instance; None changes nothing."""
        if isinstance(algorithm, SchedulerAlgorithm):
            algorithm = make_algorithm(algorithm, quantum)
        if algorithm is None:
            self.log_warn("Algorithm pointer is null; no changes made.")
            return False
        self.algorithm = algorithm
        self.log_info(f"Algorithm set to: {algorithm.name}")
        return True

    @property
    def cycles_per_interval(self) -> int:
        return self._cycles_per_tick

    @cycles_per_interval.setter
    def cycles_per_interval(self, cycles: int) -> None:
        self._cycles_per_tick = cycles if cycles > 0 else 1
        self.log_info(f"Cycles per interval set to: {self._cycles_per_tick}")

    @property
    def tick_interval_ms(self) -> int:
        return self._tick_interval_ms

    @tick_interval_ms.setter
    def tick_interval_ms(self, ms: int) -> None:
        self._tick_interval_ms = ms if ms > 0 else 1
        self.log_info(f"Tick interval set to: {self._tick_interval_ms} ms")

    @property
    def current_pid(self) -> Optional[int]:
        """Pid of the running task, or None when idle."""
        return self._current.id if self._current is not None else None

    @property
    def ready_count(self) -> int:
        return len(self._ready)

    def _find(self, pid: int) -> Optional[ScheduledTask]:
        return next((task for task in self._processes if task.id == pid), None)

    def remaining_cycles(self, pid: int) -> Optional[int]:
        """Cycles still to run for ``pid``, or None if it is not scheduled."""
        task = self._find(pid)
        return task.burst_time if task is not None else None

    def enqueue(self, pid: int, burst_time: int, priority: int = 0) -> None:
        """Add a task to the ready queue; a pid already scheduled is ignored."""
        if self._find(pid) is not None:
            self.log_warn(f"ScheduledTask {pid} already in scheduler")
            return
        task = ScheduledTask(pid, self.system_time, burst_time, priority)
        self._processes.append(task)
        self._ready.append(task)
        self.log_info(
            f"Enqueued ScheduledTask {pid} (burst={burst_time}, priority={priority})"
        )

    def add_cycles(self, pid: int, cycles: int) -> bool:
        """Give a scheduled task more work; False if the pid is not scheduled."""
        task = self._find(pid)
        if task is None:
            return False
        task.burst_time += cycles
        if (
            self._current is not None
            and self._current.id != pid
            and not any(item is task for item in self._ready)
        ):
            self._ready.append(task)
        self.log_info(
            f"Added {cycles} cycles to ScheduledTask {pid} "
            f"(total={task.burst_time}, priority={task.priority})"
        )
        return True

    def _discard(self, task: ScheduledTask) -> None:
        self._processes = _without(self._processes, task)
        self._ready = _without(self._ready, task)
        self._suspended = _without(self._suspended, task)

    def remove(self, pid: int) -> None:
        """Drop a task, e.g. when its process is killed."""
        if self._current is not None and self._current.id == pid:
            self._current = None
        task = self._find(pid)
        if task is None:
            return
        self._discard(task)
        self.log_info(f"Removed ScheduledTask {pid} from scheduler queue")

    def suspend(self, pid: int) -> None:
        """Mark a task suspended, taking it off the CPU if it is running."""
        task = self._find(pid)
        if task is None:
            return
        if self._current is not None and self._current.id == pid:
            self._suspended.append(task)
            self._current = None
            self.log_info(f"Suspended running ScheduledTask {pid}")
        elif not any(item is task for item in self._suspended):
            self._suspended.append(task)
            self.log_info(f"Suspended ScheduledTask {pid}")

    def resume(self, pid: int) -> None:
        """Return a suspended task to the ready queue."""
        task = self._find(pid)
        if task is None:
            return
        if any(item is task for item in self._suspended):
            self._suspended = _without(self._suspended, task)
            self._ready.append(task)
            self.log_info(f"Resumed ScheduledTask {pid}")

    def _preempt_current(self) -> None:
        task = self._current
        if task is None:
            return
        if task.burst_time > 0:
            self._ready.append(task)
            self.log_debug(
                f"Preempted ScheduledTask {task.id} (remaining={task.burst_time})"
            )
        self._current = None

    def _complete(self, task: ScheduledTask) -> None:
        task.completion_time = self.system_time
        task.turnaround_time = task.completion_time - task.arrival_time
        self.log_info(
            f"ScheduledTask {task.id} turnaround time {task.turnaround_time}, completed"
        )
        if self._complete_callback is not None:
            self._complete_callback(task.id)
        self._discard(task)
        self._current = None

    def tick(self) -> TickResult:
        """Advance the CPU by one tick of ``cycles_per_interval`` cycles."""
        result = TickResult()
        for cycle in range(self._cycles_per_tick):
            self.system_time += 1
            ready = list(self._ready)
            current_label = self._current.id if self._current is not None else -1
            self.log_debug(
                f"Tick {self.system_time}, Cycle {cycle + 1}/{self._cycles_per_tick}, "
                f"Current PID: {current_label}, Ready Queue Size: {len(ready)}"
            )

            if ready:
                chosen = self.algorithm.get_next_task(self._current, ready)
                chosen_label = chosen.id if chosen is not None else -1
                self.log_debug(f"Algorithm selected ScheduledTask {chosen_label}")
                if self._current is None:
                    self._current = chosen
            else:
                chosen = None

            if (
                chosen is not None
                and self._current is not None
                and chosen is not self._current
            ):
                self.log_debug(
                    f"Context switch: ScheduledTask {self._current.id} -> {chosen.id}"
                )
                self._preempt_current()
                self._current = chosen
                position = next(
                    (i for i, item in enumerate(self._ready) if item is chosen), None
                )
                if position is not None:
                    del self._ready[position]
                result.context_switch = True
                result.current_pid = chosen.id

            task = self._current
            if task is None:
                result.idle = True
                continue

            task.burst_time -= 1
            result.remaining_cycles = task.burst_time
            result.current_pid = task.id
            result.idle = False
            self.log_debug(
                f"Executing ScheduledTask {task.id} (remaining={task.burst_time})"
            )

            if task.burst_time <= 0:
                self.log_debug(f"ScheduledTask {task.id} has completed execution")
                result.process_completed = True
                result.completed_pid = task.id
                self._complete(task)
        return result

    def has_work(self) -> bool:
        """True while a task is running or waiting to run."""
        return self._current is not None or bool(self._ready)