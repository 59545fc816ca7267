import io

import pytest

from nanokernel import shell as nanoshell
from nanokernel.heap import Heap
from nanokernel.registers import RegisterBackup
from nanokernel.rtc import TimeStamp
from nanokernel.shell import (
    HELP_TEXT,
    HELP_TEXT2,
    PROMPT,
    TODO_LIST,
    Instruction,
    NanoShell,
    command_argument,
    interpret,
)


def _clock(seconds=5, minutes=4, hours=3, year=24, month=2, day=1):
    return lambda: TimeStamp(seconds, minutes, hours, year, month, day)


def _shell(**kwargs):
    out = io.StringIO()
    return NanoShell(out, **kwargs), out


@pytest.mark.parametrize(
    "line, expected",
    [
        ("help", Instruction.HELP),
        ("HELP", Instruction.HELP),
        ("echo hello", Instruction.ECHO),
        ("time\tnow", Instruction.TIME),
        ("filther", Instruction.FILTER),
        ("phylo", Instruction.PHYLO),
        ("free", Instruction.FREE),
    ],
)
def test_interpret_known(line, expected):
    assert interpret(line) is expected


@pytest.mark.parametrize("line", ["unknown", "", "hel", "helpx", "createProcess", "a" * 1001])
def test_interpret_unknown(line):
    assert interpret(line) is None


def test_instruction_count_matches_names():
    names = nanoshell._COMMAND_NAMES
    instructions = list(Instruction)
    assert len(instructions) == nanoshell.INSTRUCTION_COUNT == len(names)
    for name, instruction in zip(names, instructions):
        if name == name.lower():
            assert interpret(name) is instruction


def test_command_argument():
    assert command_argument("echo hello world") == "hello world"
    assert command_argument("echo") == ""
    assert command_argument("echo\tx") == "x"


def test_echo():
    sh, out = _shell()
    assert sh.execute("echo hello world") is Instruction.ECHO
    assert out.getvalue() == "hello world\n"


def test_unknown_command():
    sh, out = _shell()
    assert sh.execute("foo bar") is None
    assert out.getvalue() == "Command not found: 'foo bar'\n"


def test_help():
    sh, out = _shell()
    sh.execute("help")
    assert out.getvalue() == HELP_TEXT + HELP_TEXT2 + "\n"


def test_clear_has_no_newline():
    sh, out = _shell()
    sh.execute("clear")
    assert out.getvalue() == nanoshell.CLEAR_SEQUENCE
    assert not out.getvalue().endswith("\n")


def test_registers_without_backup():
    sh, out = _shell()
    sh.execute("registers")
    assert out.getvalue() == (
        "Register Status: Register backup not done. Press ESC to save register status.\n"
    )


def test_registers_with_backup():
    backup = RegisterBackup()
    backup.make_backup([0xABC] * 18)
    sh, out = _shell(registers=backup)
    sh.show_registers()
    lines = out.getvalue().split("\n")
    assert lines[0] == "Register Status: "
    assert len(lines) == 19
    assert lines[1] == "RAX:  ABC"
    assert lines[-1] == "RFLAGS:  ABC"


def test_registers_hex_is_32_bit():
    backup = RegisterBackup()
    backup.make_backup([0x1000000FF] * 18)
    sh, out = _shell(registers=backup)
    sh.show_registers()
    assert "\nRIP:  FF" in out.getvalue()


def test_time():
    sh, out = _shell(clock=_clock())
    sh.execute("time")
    assert out.getvalue() == "Current date: 1-2-24\nCurrent time: 3:4:5 hs\n"


def test_todo_picks_non_empty_entry():
    sh, out = _shell(clock=_clock(seconds=0))
    sh.execute("todo")
    assert out.getvalue() == "0\n" + TODO_LIST[0] + "\n\n"


def test_todo_skips_empty_entries():
    sh, out = _shell(clock=_clock(seconds=1))
    sh.execute("todo")
    first, rest = out.getvalue().split("\n", 1)
    seconds = int(first)
    assert seconds > 1
    assert TODO_LIST[seconds % len(Instruction)] != ""
    assert rest.startswith(TODO_LIST[seconds % len(Instruction)])


def test_functions():
    sh, out = _shell()
    sh.execute("functions")
    assert out.getvalue() == nanoshell.FUNCTIONS_TEXT + "\n\n"


def test_malloc_succeeds_on_full_heap():
    heap = Heap()
    assert nanoshell.test_malloc(heap) == 0
    assert all(free for _, _, free in heap.blocks())


def test_malloc_fails_on_small_heap():
    assert nanoshell.test_malloc(Heap(1000)) == 1


def test_malloc_command_prints_result():
    sh, out = _shell(heap=Heap())
    sh.execute("test_malloc")
    assert out.getvalue() == "0\n"


def test_zero_division_raises():
    sh, _ = _shell()
    with pytest.raises(ZeroDivisionError):
        sh.execute("test_zero_division")


def test_invalid_opcode_raises():
    sh, _ = _shell()
    with pytest.raises(RuntimeError, match="invalid opcode"):
        sh.execute("test_invalid_opcode")


def test_run_continues_after_fault():
    sh, out = _shell()
    results = sh.run(["test_zero_division", "echo ok"])
    assert results == [Instruction.TEST_ZERO_DIVISION, Instruction.ECHO]
    assert out.getvalue().endswith(PROMPT + "ok\n")


def test_run_prompts_and_strips_newline():
    sh, out = _shell()
    assert sh.run(["echo hi\n"]) == [Instruction.ECHO]
    assert out.getvalue() == PROMPT + "hi\n"


def test_run_handles_backspace():
    sh, out = _shell()
    sh.run(["ecx\bho hi"])
    assert out.getvalue() == PROMPT + "hi\n"


def test_cat_echoes_next_line():
    sh, out = _shell()
    assert sh.run(["cat", "hello"]) == [Instruction.CAT]
    assert out.getvalue() == PROMPT + "hello\n\n"


def test_filter_removes_vowels():
    sh, out = _shell()
    sh.run(["filther", "bAnana"])
    assert out.getvalue() == PROMPT + "bnn\n\n"


def test_empty_commands_only_newline():
    sh, out = _shell()
    for line in ("sh", "mem", "ps", "phylo", "malloc"):
        sh.execute(line)
    assert out.getvalue() == "\n" * 5


def test_process_command_reports_unavailable():
    sh, out = _shell()
    assert sh.execute("kill 3") is Instruction.KILL
    assert "'kill'" in out.getvalue()
    assert out.getvalue().endswith("\n")


def test_main_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("echo hi\n"))
    assert nanoshell.main([]) == 0
    assert capsys.readouterr().out == PROMPT + "hi\n"