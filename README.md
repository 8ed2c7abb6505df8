# s3al

`s3al` is a library of building blocks for a small operating-system
simulator:

- `s3al.scheduler.CPUScheduler`, a tick-driven CPU scheduler with pluggable
  algorithms from `s3al.algorithms` (first come first served, round robin
  with a time quantum, and preemptive priority scheduling);
- `s3al.memory.MemoryManager`, which accounts for allocations per process
  and refuses requests that would exceed the configured total;
- `s3al.process.Process`, a process with a validated state machine, and
  `s3al.process_manager.ProcessManager`, which handles submission, signals,
  exit and reaping;
- `s3al.daemon` and `s3al.daemon_registry`, background services run in
  threads, including a monitoring daemon that logs memory usage;
- `s3al.config`, parsing of the simulator's command-line options into a
  `Config`;
- `s3al.logger`, a thread-safe logger with optional coloured console output.

It needs only the standard library and supports Python 3.10 and later.

## Scheduling

```python
from s3al.algorithms import SchedulerAlgorithm
from s3al.scheduler import CPUScheduler

scheduler = CPUScheduler()
scheduler.set_algorithm(SchedulerAlgorithm.ROUND_ROBIN, 2)

scheduler.enqueue(1, 5, 1)   # pid 1 needs 5 cycles, priority 1
scheduler.enqueue(2, 5, 1)   # pid 2 needs 5 cycles, priority 1

while scheduler.has_work():
    result = scheduler.tick()

print(scheduler.remaining_cycles(1))  # None: no longer scheduled
```

Each `tick()` runs `cycles_per_interval` cycles and returns a `TickResult`
with `current_pid`, `remaining_cycles`, `context_switch`, `idle`,
`process_completed` and `completed_pid`. Other members: `add_cycles`,
`remove`, `suspend`, `resume`, `current_pid`, `ready_count`,
`system_time`, `tick_interval_ms` and `set_process_complete_callback`.
`set_config(config)` applies a `Config`; passing a `Config` to the
constructor does the same.

`set_algorithm` takes either a `SchedulerAlgorithm` value (with a quantum
for round robin) or a `SchedulingAlgorithm` instance. Algorithms are built
with `make_algorithm(kind, quantum)`, or written by subclassing
`SchedulingAlgorithm` and implementing `name` and
`get_next_task(current_task, ready_queue)`.

## Memory

```python
from s3al.memory import MemoryManager

memory = MemoryManager(4096)
handle = memory.allocate(512, 1)
memory.deallocate(handle)
memory.allocate(256, 1)
print(memory.free_process_memory(1))  # 256
print(memory.used_memory, memory.free_memory)  # 0 4096
```

A request beyond the total raises `OutOfMemoryError`; releasing an unknown
handle raises `UnknownAllocationError`.

## Processes

`ProcessManager(sys_api)` keeps the process table. When given a `SysApi`
implementation (see `s3al.sysapi`), `submit` allocates the process's memory
and hands it to the scheduler through it; without one, processes are only
recorded.

```python
from s3al.process_manager import ProcessManager

manager = ProcessManager()
pid = manager.submit("worker", 10, 0, priority=5)
manager.send_signal(pid, 15)   # SIGTERM: the process becomes a ZOMBIE
manager.reap_process(pid)      # removes it from the table
print(manager.snapshot())      # []
```

`send_signal` acts on SIGSTOP (19), SIGCONT (18), SIGTERM (15) and
SIGKILL (9); other signals are only logged. It raises `ProcessError` for an
unknown pid or a termination signal sent to a process named `init`.
Invalid state transitions raise `ProcessStateError`, for instance reaping a
process that is not a zombie. `complete_callback` and `signal_callback`
let other components follow what happens; `snapshot()` returns copies of
the table's `Process` objects.

## Daemons

`Daemon` subclasses implement `do_work`; `start()` runs a loop in a thread
that asks the `SysApi` for `work_cycles` CPU cycles, calls `do_work` and
waits `wait_interval_ms`. `handle_signal` stops the daemon on 9 or 15,
suspends it on 19 and resumes it on 18. `MonitoringDaemon.collect_stats`
logs and returns a line with the memory figures from `get_sys_info`.

`DaemonRegistry(sys_api).start_all()` forks a persistent process for every
name in `DaemonRegistry.available_daemons()` (currently `sysmon`) and
starts its daemon, raising `DaemonStartError` on failure. `stop_all`,
`forward_signal` and `reap_daemon` manage them afterwards.

## Configuration

```python
from s3al.config import parse_args, parse_memory_size

config = parse_args(["--memory", "2M", "--scheduler", "rr", "--quantum", "3"])
print(config.memory_size)            # 2097152
print(parse_memory_size("512KB"))    # 524288
```

Options are `-v/--verbose`, `-l/--log-level` (`debug`, `info`,
`warning`/`warn`, `error`), `-m/--memory` (K/KB, M/MB, G/GB suffixes, at
most 2 GB), `-s/--scheduler` (`fcfs`, `rr`/`roundrobin`,
`priority`/`prio`), `-q/--quantum`, `-c/--cycles` and `-t/--tick-ms`.
Invalid input raises `ConfigError`; `-h/--help` raises `HelpRequested`.
`help_text(program_name)` returns the usage text and `show_help` prints it.

## Logging

```python
from s3al.logger import LogLevel, get_logger, log_info

logger = get_logger()
logger.init("simulator.log", LogLevel.INFO)
logger.console_output = True   # also write coloured lines to stderr
log_info("MAIN", "Starting simulator")
logger.close()
```

Components derive from `LoggingMixin`; a callback installed with
`set_log_callback` receives `(level, module, message)` in place of the
shared logger. `s3al.colors` and `s3al.timeutils` provide the ANSI colour
codes and timestamp formatting the logger uses.

## What the package does not do

The package is a library only. It installs no command, and nothing in it
runs a simulated machine end to end: there is no kernel event loop driving
`CPUScheduler.tick()` on a timer, no concrete `SysApi` implementation
(applications supply their own, wiring it to a `MemoryManager` and a
`CPUScheduler`), no init process, and no shell, terminal or simulated file
storage.