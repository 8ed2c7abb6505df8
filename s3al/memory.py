"""Bookkeeping of simulated memory allocations per process."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Dict

from s3al.logger import LoggingMixin

__all__ = ["OutOfMemoryError", "UnknownAllocationError", "MemoryManager"]


class OutOfMemoryError(MemoryError):
    """The request does not fit in the remaining memory."""


class UnknownAllocationError(KeyError):
    """The handle does not name a live allocation."""


@dataclass(frozen=True)
class _Allocation:
    size: int
    process_id: int


class MemoryManager(LoggingMixin):
    """Tracks allocations against a fixed total size.

    Allocations are identified by integer handles.
    """

    def __init__(self, total_size: int) -> None:
        self.total_memory = total_size
        self.used_memory = 0
        self._allocations: Dict[int, _Allocation] = {}
        self._handles = itertools.count(1)
        self.log_info(f"Memory manager initialized with {total_size // 1024}KB")

    @property
    def module_name(self) -> str:
        return "MEMORY"

    @property
    def free_memory(self) -> int:
        return self.total_memory - self.used_memory

    def allocate(self, size: int, process_id: int = 0) -> int:
        """Reserve ``size`` bytes for a process and return the allocation handle."""
        if self.used_memory + size > self.total_memory:
            message = f"Out of memory: requested {size} bytes"
            self.log_error(message)
            raise OutOfMemoryError(message)
        handle = next(self._handles)
        self._allocations[handle] = _Allocation(size, process_id)
        self.used_memory += size
        self.log_debug(f"Allocated {size} bytes for process {process_id}")
        return handle

    def deallocate(self, handle: int) -> None:
        """Release one allocation."""
        allocation = self._allocations.pop(handle, None)
        if allocation is None:
            self.log_error("Attempt to deallocate untracked memory")
            raise UnknownAllocationError(handle)
        self.used_memory -= allocation.size
        self.log_debug(f"Deallocated {allocation.size} bytes")

    def free_process_memory(self, process_id: int) -> int:
        """Release every allocation of a process and return the bytes freed."""
        owned = [
            handle
            for handle, allocation in self._allocations.items()
            if allocation.process_id == process_id
        ]
        freed = sum(self._allocations.pop(handle).size for handle in owned)
        self.used_memory -= freed
        if freed > 0:
            self.log_info(f"Freed {freed} bytes for process {process_id}")
        return freed