"""The interactive NanoShell: command lookup, dispatch and the built-in commands."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timezone
from enum import IntEnum
from typing import TextIO

from .heap import Heap
from .registers import RegisterBackup
from .rtc import TimeStamp, timestamp_from_registers
from .textlib import format as fmt_text
from .textlib import read_line, shell_compare, to_lower

CMD_MAX_CHARS = 1000
CMD_NAME_MAX_CHARS = 100
PROMPT = "NanoShell $> "
CLEAR_SEQUENCE = "\033[2J\033[H"


class Instruction(IntEnum):
    """Every command and helper name the shell recognises, in lookup order."""

    HELP = 0
    REGISTERS = 1
    TIME = 2
    ECHO = 3
    CLEAR = 4
    TEST_ZERO_DIVISION = 5
    TEST_INVALID_OPCODE = 6
    TEST_MALLOC = 7
    TODO = 8
    FUNCTIONS = 9
    MINI_PROCESS = 10
    TEST_PRIORITY = 11
    TEST_SEMAPHORE = 12
    TEST_PIPE = 13
    SH = 14
    MEM = 15
    PS = 16
    LOOP = 17
    KILL = 18
    NICE = 19
    BLOCK = 20
    CAT = 21
    WC = 22
    FILTER = 23
    PHYLO = 24
    MALLOC = 25
    REALLOC = 26
    CALLOC = 27
    FREE = 28
    CREATE_PROCESS = 29
    GET_PRIORITY = 30
    SET_PRIORITY = 31


INSTRUCTION_COUNT = len(Instruction)

_COMMAND_NAMES = (
    "help", "registers", "time", "echo", "clear", "test_zero_division",
    "test_invalid_opcode", "test_malloc", "todo", "functions", "mini_process",
    "test_priority", "test_semaphore", "test_pipe", "sh", "mem", "ps", "loop",
    "kill", "nice", "block", "cat", "wc", "filther", "phylo",
    "malloc", "realloc", "calloc", "free", "createProcess", "getPriority", "setPriority",
)

HELP_TEXT = """Here's a list of all available commands:
- help --> Help display with all commands
- registers --> Displays the lastest backup of registers
- time --> Displays time and date
- echo [string] --> Prints the [string] argument in the display
- clear --> clears the display
- test_zero_division --> Test for the Zero Division exception
- test_invalid_opcode --> Test for the Invalid Opcode exception
- test_malloc --> starts the malloc test
- todo --> displays a random thing that has to be done
- functions --> displays every page inside the manual
- mini_process --> creates a new process according to simpleProcess.c
- test_priority --> test that the priority system is working correctly
- test_semaphore --> test that the semaphore system is working correctly NOT TESTED
- test_pipe --> test that the pipe system is working correctly NOT TESTED
- sh --> correctly executes what was asked from it NOT DONE
- mem --> shows the memory state NOT DONE
"""

HELP_TEXT2 = """- ps --> prints a list of every running process with some data from each NOT DONE
- loop [count] --> makes a process run and print its id along with a greeting every [count] of seconds NOT TESTED
- kill [pid] --> kills a process based on its [pid] NOT TESTED
- nice [pid] [new priority] --> changes the [pid] process to be of [new priority] priority NOT TESTED
- block [pid] --> changes the [pid] process between blocked and unblocked NOT TESTED
- cat --> prints the stdin NOT TESTED
- wc --> counts the amount of lines in the input NOT TESTED
- filther --> filthers the vowels from the input NOT TESTED
- phylo --> starts running the phylosofers problem. "a" to add 1, "r" to remove one NOT DONE
"""

FUNCTIONS_TEXT = (
    "Commands: help, registers, time, echo, clear, test_zero_division\n"
    "test_invalid_opcode, test_malloc, todo, functions, mini_process, test_priority\n\n\n"
    "Useful: malloc, realloc, calloc, free, getPriority, setPriority\n"
)

TODO_LIST = (
    "Check that they are on date",
    "",
    "",
    "Make it be able to print other things (echo test_malloc for example)",
    "",
    "",
    "",
    "",
    "write a lot of TODOs\nmake it return a random todo",
    "Not implemented",
    "Make easier to understand",
    "",
    "",
    "Not implemented",
    "Not implemented",
    "",
    "Not implemented",
    "",
    "",
)

REGISTER_NAMES = (
    "RAX: ", "RBX: ", "RCX: ", "RDX: ", "RSI: ", "RDI: ",
    "RBP: ", "R8: ", "R9: ", "R10: ", "R11: ", "R12: ",
    "R13: ", "R14: ", "R15: ", "RSP: ", "RIP: ", "RFLAGS: ",
)

_VOWELS = frozenset("aeiouAEIOU")
_SEPARATORS = (" ", "\t")

# Commands that start or steer processes, which this shell has no scheduler for.
_PROCESS_COMMANDS = frozenset({
    Instruction.MINI_PROCESS, Instruction.TEST_PRIORITY, Instruction.TEST_SEMAPHORE,
    Instruction.TEST_PIPE, Instruction.LOOP, Instruction.KILL, Instruction.NICE,
    Instruction.BLOCK,
})

_MALLOC_BLOCKS = 3
_MALLOC_MAX_MEMORY = 1048576
_MALLOC_BLOCK_SIZE = 1048576 // 4
_MALLOC_ROUNDS = 4
_MALLOC_MAX_FAILURES = 5


class _InvalidOpcodeError(RuntimeError):
    """Raised by the invalid opcode test command."""


_CPU_FAULTS = (ZeroDivisionError, _InvalidOpcodeError)


def interpret(command: str) -> Instruction | None:
    """Look up the command word of ``command``; None when it is unknown."""
    word = []
    for char in command:
        if char in _SEPARATORS or char == "\0":
            break
        if len(word) == CMD_MAX_CHARS:
            return None
        word.append(char)
    name = to_lower("".join(word))
    for instruction, candidate in zip(Instruction, _COMMAND_NAMES):
        if shell_compare(name, candidate) == 0:
            return instruction
    return None


def command_argument(line: str) -> str:
    """Everything after the first space or tab of ``line``; empty if there is none."""
    for index, char in enumerate(line):
        if char in _SEPARATORS:
            return line[index + 1 :]
    return ""


def test_malloc(heap: Heap) -> int:
    """Allocate, fill, check and free blocks repeatedly; 0 on success, an error code otherwise."""
    for _ in range(_MALLOC_ROUNDS):
        addresses: list[int] = []
        failures = 0
        total = 0
        while len(addresses) < _MALLOC_BLOCKS and total <= _MALLOC_MAX_MEMORY:
            try:
                address = heap.malloc(_MALLOC_BLOCK_SIZE)
            except MemoryError:
                failures += 1
            else:
                addresses.append(address)
                total += _MALLOC_BLOCK_SIZE
            if failures >= _MALLOC_MAX_FAILURES:
                return 1
        contents = {address: index for index, address in enumerate(addresses)}
        if len(contents) != len(addresses):
            return 2
        for index, address in enumerate(addresses):
            if contents[address] != index:
                return 4
        for address in addresses:
            heap.free(address)
    return 0


def _bcd(value: int) -> int:
    return ((value // 10) << 4) | (value % 10)


def _system_clock() -> TimeStamp:
    now = datetime.now(timezone.utc)
    return timestamp_from_registers(
        _bcd(now.second), _bcd(now.minute), _bcd(now.hour),
        _bcd(now.day), _bcd(now.month), _bcd(now.year % 100),
    )


class NanoShell:
    """Reads command lines and writes each command's output to ``output``."""

    def __init__(
        self,
        output: TextIO | None = None,
        heap: Heap | None = None,
        registers: RegisterBackup | None = None,
        clock: Callable[[], TimeStamp] | None = None,
    ) -> None:
        self.output = output if output is not None else sys.stdout
        self.heap = heap if heap is not None else Heap()
        self.registers = registers if registers is not None else RegisterBackup()
        self.clock = clock if clock is not None else _system_clock
        self._input: Iterator[str] = iter(())

    def _write(self, text: str) -> None:
        self.output.write(text)

    def _next_input(self) -> str:
        raw = next(self._input, "")
        return raw.split("\n", 1)[0]

    def execute(self, line: str) -> Instruction | None:
        """Run one command line; returns the command recognised, or None."""
        instruction = interpret(line)
        if instruction is None:
            self._write(f"Command not found: '{line}'")
        else:
            self._dispatch(instruction, line)
        if instruction is not Instruction.CLEAR:
            self._write("\n")
        return instruction

    def _dispatch(self, instruction: Instruction, line: str) -> None:
        if instruction is Instruction.HELP:
            self._write(HELP_TEXT)
            self._write(HELP_TEXT2)
        elif instruction is Instruction.REGISTERS:
            self.show_registers()
        elif instruction is Instruction.TIME:
            self.show_time()
        elif instruction is Instruction.ECHO:
            self._write(command_argument(line))
        elif instruction is Instruction.CLEAR:
            self._write(CLEAR_SEQUENCE)
        elif instruction is Instruction.TEST_ZERO_DIVISION:
            raise ZeroDivisionError("division by zero")
        elif instruction is Instruction.TEST_INVALID_OPCODE:
            raise _InvalidOpcodeError("invalid opcode")
        elif instruction is Instruction.TEST_MALLOC:
            self._write(fmt_text("%d", test_malloc(self.heap)))
        elif instruction is Instruction.TODO:
            self._show_todo()
        elif instruction is Instruction.FUNCTIONS:
            self._write(FUNCTIONS_TEXT + "\n")
        elif instruction is Instruction.CAT:
            self._write(self._next_input() + "\n")
        elif instruction is Instruction.WC:
            self._write(fmt_text("lineas: %d\n", line.count("\n")))
        elif instruction is Instruction.FILTER:
            text = self._next_input()
            self._write("".join(c for c in text if c not in _VOWELS) + "\n")
        elif instruction in _PROCESS_COMMANDS:
            self._write(f"Command not available: '{_COMMAND_NAMES[instruction]}'")

    def _show_todo(self) -> None:
        seconds = self.clock().seconds
        while True:
            index = seconds % INSTRUCTION_COUNT
            if index < len(TODO_LIST) and TODO_LIST[index]:
                break
            seconds += 1
        self._write(fmt_text("%d\n", seconds))
        self._write(TODO_LIST[index] + "\n")

    def run(self, lines: Iterable[str]) -> list[Instruction | None]:
        """Prompt for and execute every line; returns what each line was recognised as."""
        self._input = iter(lines)
        results: list[Instruction | None] = []
        for raw in self._input:
            self._write(PROMPT)
            line = read_line(raw, CMD_MAX_CHARS)
            try:
                results.append(self.execute(line))
            except _CPU_FAULTS as exc:
                self._write(f"{exc}\n")
                results.append(interpret(line))
        self._input = iter(())
        return results

    def show_registers(self) -> None:
        """Print the latest register backup, or a hint when none was taken."""
        self._write("Register Status: ")
        values = self.registers.registers()
        if values is None:
            self._write("Register backup not done. Press ESC to save register status.")
            return
        for name, value in zip(REGISTER_NAMES, values):
            self._write(fmt_text("\n%s %x", name, value))

    def show_time(self) -> None:
        """Print the current date and time from the clock."""
        ts = self.clock()
        self._write(
            fmt_text(
                "Current date: %d-%d-%d\nCurrent time: %d:%d:%d hs",
                ts.day, ts.month, ts.year, ts.hours, ts.minutes, ts.seconds,
            )
        )


def main(argv: list[str] | None = None) -> int:
    """Run the shell on standard input until it ends."""
    parser = argparse.ArgumentParser(prog="nanoshell", description="NanoShell")
    parser.parse_args(argv)
    NanoShell(sys.stdout).run(sys.stdin)
    return 0


if __name__ == "__main__":
    sys.exit(main())