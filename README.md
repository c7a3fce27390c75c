# ossim

A small operating system simulator. It loads process descriptions and
schedules them across several simulated CPUs with a multi-level queue (MLQ)
policy. Their instructions run against a paged virtual memory backed by one
RAM device and four swap devices. A slotted timer keeps the CPUs and the
loader in step. The simulation prints a trace of each time slot, every
dispatch and every memory operation to standard output.

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Running a simulation

```
ossim <config>
```

The configuration file is read from `input/<config>`. Each process file it
names is read from `input/proc/<name>`. Both paths are relative to the
current directory. The command exits with status 1 when it is not given
exactly one argument, or when the configuration or a process file is missing
or malformed.

### Configuration file

Whitespace-separated values, in this order:

```
<time slot> <number of CPUs> <number of processes>
<RAM size>
<swap 0 size> <swap 1 size> <swap 2 size> <swap 3 size>
<start time> <process file> <priority>
...
```

There is one `<start time> <process file> <priority>` line per process. A
priority must lie between 0 (served first) and 139. The priority given here
is the one the scheduler uses. Swap device 0 is the active swap device of
every process.

### Process file

```
<priority> <number of instructions>
<instruction>
...
```

| Instruction                       | Effect                                               |
|-----------------------------------|------------------------------------------------------|
| `calc`                            | uses the CPU only                                    |
| `alloc <size> <region>`           | allocates `size` bytes into symbol region `region`   |
| `free <region>`                   | frees symbol region `region`                         |
| `read <region> <offset> <dest>`   | reads the byte at `region + offset` (not stored)     |
| `write <value> <region> <offset>` | writes a byte at `region + offset`                   |
| `syscall <nr> <a1> <a2> <a3>`     | calls system call `nr` with up to three arguments    |

During a simulation, an instruction that fails is skipped. A failed
allocation is one example.

### System calls

| Number | Name              | Effect                                                          |
|--------|-------------------|-----------------------------------------------------------------|
| 0      | `sys_listsyscall` | prints the table entries as `<number>-<name>`                   |
| 17     | `sys_memmap`      | memory operation chosen by `a1` (see `ossim.sysmem.MemOp`)      |
| 101    | `sys_killall`     | kills every process whose program name is stored in region `a1` |

Any other number is a no-op. `sys_killall` reads the name byte by byte from
the caller's region `a1` until it meets a byte of value `-1`. It then drops
every process whose file name, the part after the last `/`, matches. Such
processes are dropped from the running list, where their region `a1` is also
freed, and from every ready queue.

## Using the library

- `ossim.simulator`: `parse_config`, `read_config` and `Simulator`.
  `Simulator.run()` returns the PIDs in the order they finished.
- `ossim.loader.Loader`: parses process files into `ossim.common.Pcb`
  records. It raises `LoaderError` on bad input.
- `ossim.scheduler.Scheduler`: the MLQ policy. Level `p` may serve
  `140 - p` processes per round.
- `ossim.memphy.MemPhy`: a physical memory device with a free-frame list.
- `ossim.mm`: `init_mm`, area growth and page mapping. It also has the
  `print_*` helpers.
- `ossim.libmem`: `liballoc`, `libfree`, `libread` and `libwrite` over a
  process's paged memory. Pages are replaced in FIFO order and swapped out.
- `ossim.cpu.run`: executes one instruction of a process. It returns `False`
  once the program counter is past the last instruction.
- `ossim.syscall`: `syscall`, `libsyscall` and `syscall_names`.
- `ossim.pte`: page-table-entry encoding and the paging constants.
- `ossim.timer.Timer`: the lock-step slot timer.

```python
from pathlib import Path

from ossim.simulator import Simulator, read_config

config = read_config(Path("input/my_config"))
finished = Simulator(config, base_dir=Path("input")).run()
```

## Limitations

- The scheduler never places processes in the running list. `sys_killall`
  therefore only removes processes waiting in the ready queues.
- The `read` instruction does not store the value it reads into a register.
- `ossim.mem.LegacyMemory` is the older segment/page memory. It refuses
  every allocation and serves only addresses already present in a process's
  page table. The simulation does not use it.
- When a `sys_memmap` request to grow an area fails, the caller is not told.
- Only area 0 can grow, and it grows upwards.