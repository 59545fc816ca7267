# nanokernel

A pure-Python model of the parts of a small x86-64 teaching kernel and its
userland tools. Use it to experiment with those parts, or to build a packed
kernel image from binaries you already have.

## What is in it

- `nanokernel.packer` builds a packed kernel image: the kernel binary, then
  the number of modules as a little-endian 32-bit integer, then each module
  as a little-endian 32-bit size followed by its bytes. `check_files` and
  `build_image` raise `PackerError` when a file cannot be read or written.
- `nanokernel.modules` reads that module payload back. `read_modules` returns
  the module contents; `load_modules` copies each module into a `bytearray`
  at a target address and returns `(payload offset, target address, size)`
  for each. Malformed payloads raise `ModuleFormatError`.
- `nanokernel.heap` provides `Heap`, a first-fit allocator with block
  splitting that merges a freed block with a free block right after it.
  Every block has a 24-byte header.
- `nanokernel.console` provides `NaiveConsole`, an 80×25 text screen of
  character/attribute byte pairs, and `to_base`, which writes a number in a
  base from 2 to 36.
- `nanokernel.rtc` decodes BCD clock registers into a `TimeStamp` shifted to
  GMT−3 (`timestamp_from_registers`), and provides `Timer`, a tick counter
  whose `set_frequency` returns the port writes that program the PIT.
- `nanokernel.sync` provides `SemaphoreTable` (32 named counting semaphores)
  and `PipeTable` (32 named pipes with a 1024-byte ring buffer each, holding
  at most 1023 unread bytes). Both are thread-safe; waits and full or empty
  pipes block. Errors raise `SyncError`.
- `nanokernel.idt` encodes 16-byte interrupt gate descriptors (`IdtEntry`)
  and a 256-entry `InterruptTable` whose `load` installs the handlers for the
  syscall, keyboard, timer, invalid-opcode and zero-division vectors and
  returns the PIC masks.
- `nanokernel.registers` holds a snapshot of 18 registers (`RegisterBackup`).
- `nanokernel.textlib` holds the small libc-style helpers: `format`
  (`%s %d %u %c %x`, `\n`, `\t`), `scan`, `read_line`, number parsing and
  formatting, and string comparison.
- `nanokernel.shell` provides `NanoShell`, the command interpreter.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Packing a kernel image

```
nanokernel-pack kernel.bin module0.bin module1.bin -o packedKernel.bin
```

Without `-o`/`--output` the image is written to `packedKernel.bin`. At most
128 files can be packed. If a file cannot be read, the command prints
`Can't open file: <path>` and exits with status 1.

Reading the modules back, given the kernel's size:

```python
from nanokernel.modules import read_modules

with open("packedKernel.bin", "rb") as f:
    data = f.read()
modules = read_modules(data[kernel_size:])
```

## Using the heap

```python
from nanokernel.heap import Heap

heap = Heap(1 << 20)
a = heap.malloc(256)
b = heap.malloc(1024)
heap.free(a)
print(heap.blocks())   # [(address, size, free), ...]
```

`malloc` raises `MemoryError` when no free block is large enough; `free`
raises `ValueError` for an address the heap did not hand out.

## Semaphores and pipes

```python
from nanokernel.sync import SemaphoreTable, PipeTable

sems = SemaphoreTable()
pipes = PipeTable(sems)
pipe_id, read_fd, write_fd = pipes.open("hola")
pipes.write(write_fd, b"hello")
print(pipes.read(read_fd, 5))   # b'hello'
```

Each `open` of a pipe hands out a new pair of descriptors. A pipe named
`name` uses the semaphores `name` and `nameread` from the table.

## The shell

```
nanoshell
```

This reads one command per line from standard input and writes to standard
output, printing `NanoShell $> ` before each command. The commands that do
something are `help`, `registers`, `time`, `echo`, `clear` (writes an ANSI
clear-screen sequence), `test_zero_division`, `test_invalid_opcode`,
`test_malloc` (prints 0 on success), `todo`, `functions`, `cat` and `filther`
(each takes the next input line; `filther` drops its vowels) and `wc`.
Command names are matched case-insensitively. An unknown command prints
`Command not found: '<command>'`.

From Python, `NanoShell(output, heap, registers, clock)` takes any text
stream, a `Heap`, a `RegisterBackup` and a function returning a `TimeStamp`;
`run(lines)` executes a sequence of lines and `execute(line)` a single one.

## What it does not do

There is no process scheduler in the package, so the shell commands that
start or steer processes (`mini_process`, `test_priority`, `test_semaphore`,
`test_pipe`, `loop`, `kill`, `nice`, `block`) only print
`Command not available: '<command>'`, and `sh`, `mem`, `ps` and `phylo` print
nothing. The `registers` command of `nanoshell` always reports that no backup
was taken, since nothing there makes one. The package does not boot, drive a
screen or keyboard, or build the kernel and module binaries it packs.