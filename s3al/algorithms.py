"""CPU scheduling algorithms and the task records they choose between."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from s3al.logger import LoggingMixin

__all__ = [
    "SchedulerAlgorithm",
    "ScheduledTask",
    "SchedulingAlgorithm",
    "FCFSAlgorithm",
    "PriorityAlgorithm",
    "RoundRobinAlgorithm",
    "make_algorithm",
]


class SchedulerAlgorithm(Enum):
    """The scheduling policies the scheduler can run."""

    FCFS = "fcfs"  # first come, first served; never preempts
    ROUND_ROBIN = "roundrobin"  # time-slice preemption
    PRIORITY = "priority"  # lower number runs first, with preemption


@dataclass(eq=False)
class ScheduledTask:
    """A process as seen by the scheduler.

    Tasks compare by identity, so the same pid may appear in distinct records.
    Time is counted in scheduler cycles; ``burst_time`` doubles as the
    number of cycles still to run.
    """

    id: int
    arrival_time: int
    burst_time: int
    priority: int = 0
    completion_time: int = 0
    turnaround_time: int = 0


def _index_of(task: ScheduledTask, queue: Sequence[ScheduledTask]) -> Optional[int]:
    return next((index for index, item in enumerate(queue) if item is task), None)


class SchedulingAlgorithm(ABC):
    """Chooses which task runs next."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable algorithm name."""

    @abstractmethod
    def get_next_task(
        self,
        current_task: Optional[ScheduledTask],
        ready_queue: Sequence[ScheduledTask],
    ) -> Optional[ScheduledTask]:
        """Return the task that should run now, or None to stay idle."""


class FCFSAlgorithm(SchedulingAlgorithm):
    """Runs tasks in arrival order without preemption."""

    @property
    def name(self) -> str:
        return "FCFS"

    def get_next_task(self, current_task, ready_queue):
        if current_task is None:
            return ready_queue[0] if ready_queue else None
        return current_task


class PriorityAlgorithm(SchedulingAlgorithm):
    """Runs the task with the lowest priority number, preempting when beaten."""

    @property
    def name(self) -> str:
        return "Priority"

    def highest_priority_task(
        self, ready_queue: Sequence[ScheduledTask]
    ) -> Optional[ScheduledTask]:
        """Return the first task with the lowest priority number, or None."""
        if not ready_queue:
            return None
        return min(ready_queue, key=lambda task: task.priority)

    def get_next_task(self, current_task, ready_queue):
        if current_task is None:
            return self.highest_priority_task(ready_queue)
        best = self.highest_priority_task(ready_queue)
        if best is not None and best.priority < current_task.priority:
            return best
        return current_task


class RoundRobinAlgorithm(SchedulingAlgorithm, LoggingMixin):
    """Gives each task a slice of ``quantum`` cycles before moving on."""

    def __init__(self, quantum: int) -> None:
        self.quantum = quantum
        self._slice = 0
        self._last_pid = -1

    @property
    def name(self) -> str:
        return "Round Robin"

    @property
    def module_name(self) -> str:
        return "ROUND-ROBIN"

    def _select(self, current_task, ready_queue):
        if current_task is None:
            return ready_queue[0] if ready_queue else None
        self.log_debug(
            f"Process {current_task.id}, slice={self._slice}/{self.quantum}"
        )
        if self._slice < self.quantum:
            return current_task

        self.log_debug(
            f"Quantum expired for process {current_task.id}, picking next process, "
            f"slice={self._slice}/{self.quantum}"
        )
        self._slice = 0
        if not ready_queue:
            return None
        if len(ready_queue) == 1:
            return ready_queue[0]
        position = _index_of(current_task, ready_queue)
        if position is None:
            return ready_queue[0]
        return ready_queue[(position + 1) % len(ready_queue)]

    def get_next_task(self, current_task, ready_queue):
        current_pid = current_task.id if current_task is not None else -1
        if current_pid != self._last_pid:
            self._slice = 0
            self._last_pid = current_pid
        self._slice += 1
        chosen = self._select(current_task, ready_queue)
        if chosen is not current_task:
            self._slice = 0
        return chosen


def make_algorithm(kind: SchedulerAlgorithm, quantum: int = 0) -> SchedulingAlgorithm:
    """Build the algorithm for ``kind``; ``quantum`` applies to round robin only."""
    if kind is SchedulerAlgorithm.FCFS:
        return FCFSAlgorithm()
    if kind is SchedulerAlgorithm.ROUND_ROBIN:
        return RoundRobinAlgorithm(quantum)
    if kind is SchedulerAlgorithm.PRIORITY:
        return PriorityAlgorithm()
    raise ValueError(f"unknown scheduling algorithm: {kind!r}")