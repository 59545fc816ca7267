"""Named counting semaphores and named pipes built on top of them."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import IntEnum

from .textlib import safe_copy

MAX_SEMAPHORES = 32
MAX_NAME_LEN = 32

PIPE_BUFFER_SIZE = 1024
MAX_PIPES = 32
MAX_PIPE_NAME = 32
MAX_PIPE_FDS = MAX_PIPES * 2


class SyncError(Exception):
    """Raised for unknown identifiers, wrong pipe ends or exhausted tables."""


class PipeEnd(IntEnum):
    READ = 0
    WRITE = 1


@dataclass
class _NamedSemaphore:
    name: str
    value: int
    condition: threading.Condition = field(default_factory=threading.Condition)


class SemaphoreTable:
    """A fixed table of MAX_SEMAPHORES named counting semaphores."""

    def __init__(self) -> None:
        self._slots: list[_NamedSemaphore | None] = [None] * MAX_SEMAPHORES
        self._lock = threading.Lock()

    def open(self, name: str, initial_value: int = 0) -> int:
        """Return the id of the semaphore called ``name``, creating it if needed.

        ``initial_value`` only applies when the semaphore is created.
        """
        if name is None:
            raise SyncError("semaphore name is required")
        if initial_value < 0:
            raise ValueError("initial value must not be negative")
        key = safe_copy(name, MAX_NAME_LEN)
        with self._lock:
            for sem_id, slot in enumerate(self._slots):
                if slot is not None and slot.name == key:
                    return sem_id
            for sem_id, slot in enumerate(self._slots):
                if slot is None:
                    self._slots[sem_id] = _NamedSemaphore(key, initial_value)
                    return sem_id
        raise SyncError("no free semaphore slots")

    def _get(self, sem_id: int) -> _NamedSemaphore:
        if not 0 <= sem_id < MAX_SEMAPHORES:
            raise SyncError(f"invalid semaphore id {sem_id}")
        with self._lock:
            slot = self._slots[sem_id]
        if slot is None:
            raise SyncError(f"semaphore {sem_id} is not open")
        return slot

    def post(self, sem_id: int) -> int:
        """Increment the semaphore, waking one waiter; returns the new value."""
        sem = self._get(sem_id)
        with sem.condition:
            sem.value += 1
            sem.condition.notify()
            return sem.value

    def wait(self, sem_id: int) -> int:
        """Block until the value is positive, then decrement; returns the new value."""
        sem = self._get(sem_id)
        with sem.condition:
            while sem.value <= 0:
                sem.condition.wait()
            sem.value -= 1
            return sem.value

    def value(self, sem_id: int) -> int:
        """Current value of the semaphore."""
        sem = self._get(sem_id)
        with sem.condition:
            return sem.value

    def destroy(self, sem_id: int) -> None:
        """Release the slot; destroying a free slot does nothing."""
        if not 0 <= sem_id < MAX_SEMAPHORES:
            raise SyncError(f"invalid semaphore id {sem_id}")
        with self._lock:
            self._slots[sem_id] = None


@dataclass
class _Pipe:
    name: str
    read_sem: int
    write_sem: int
    buffer: bytearray = field(default_factory=lambda: bytearray(PIPE_BUFFER_SIZE))
    read_idx: int = 0
    write_idx: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)


@dataclass
class _PipeFD:
    pipe: _Pipe
    end: PipeEnd


class PipeTable:
    """Named pipes with a ring buffer of PIPE_BUFFER_SIZE bytes each.

    A pipe holds at most ``PIPE_BUFFER_SIZE - 1`` unread bytes; writers block
    when it is full and readers block when it is empty.
    """

    def __init__(self, semaphores: SemaphoreTable | None = None) -> None:
        self.semaphores = semaphores if semaphores is not None else SemaphoreTable()
        self._pipes: list[_Pipe | None] = [None] * MAX_PIPES
        self._fds: list[_PipeFD | None] = [None] * MAX_PIPE_FDS
        self._lock = threading.Lock()

    def _allocate_fd(self, pipe: _Pipe, end: PipeEnd) -> int:
        for fd, slot in enumerate(self._fds):
            if slot is None:
                self._fds[fd] = _PipeFD(pipe, end)
                return fd
        raise SyncError("no free pipe descriptors")

    def open(self, name: str) -> tuple[int, int, int]:
        """Open (or create) the pipe ``name``.

        Returns ``(pipe_id, read_fd, write_fd)``; every call hands out a new
        pair of descriptors.
        """
        key = safe_copy(name, MAX_PIPE_NAME)
        with self._lock:
            pipe_id = next(
                (i for i, p in enumerate(self._pipes) if p is not None and p.name == key),
                None,
            )
            if pipe_id is None:
                pipe_id = next(
                    (i for i, p in enumerate(self._pipes) if p is None), None
                )
                if pipe_id is None:
                    raise SyncError("no free pipe slots")
                write_sem = self.semaphores.open(key + "read", PIPE_BUFFER_SIZE - 1)
                read_sem = self.semaphores.open(key, 0)
                self._pipes[pipe_id] = _Pipe(key, read_sem=read_sem, write_sem=write_sem)
            pipe = self._pipes[pipe_id]
            read_fd = self._allocate_fd(pipe, PipeEnd.READ)
            try:
                write_fd = self._allocate_fd(pipe, PipeEnd.WRITE)
            except SyncError:
                self._fds[read_fd] = None
                raise
        return pipe_id, read_fd, write_fd

    def _descriptor(self, fd: int) -> _PipeFD:
        if not 0 <= fd < MAX_PIPE_FDS:
            raise SyncError(f"invalid pipe descriptor {fd}")
        with self._lock:
            slot = self._fds[fd]
        if slot is None:
            raise SyncError(f"pipe descriptor {fd} is not open")
        return slot

    def _endpoint(self, fd: int, end: PipeEnd) -> _Pipe:
        slot = self._descriptor(fd)
        if slot.end is not end:
            raise SyncError(f"pipe descriptor {fd} is not a {end.name.lower()} end")
        return slot.pipe

    def write(self, fd: int, data: bytes) -> int:
        """Write every byte of ``data``, blocking while the pipe is full."""
        pipe = self._endpoint(fd, PipeEnd.WRITE)
        payload = bytes(data)
        for byte in payload:
            self.semaphores.wait(pipe.write_sem)
            with pipe.lock:
                pipe.buffer[pipe.write_idx] = byte
                pipe.write_idx = (pipe.write_idx + 1) % PIPE_BUFFER_SIZE
            self.semaphores.post(pipe.read_sem)
        return len(payload)

    def read(self, fd: int, count: int) -> bytes:
        """Read exactly ``count`` bytes, blocking while the pipe is empty."""
        pipe = self._endpoint(fd, PipeEnd.READ)
        out = bytearray()
        for _ in range(count):
            self.semaphores.wait(pipe.read_sem)
            with pipe.lock:
                out.append(pipe.buffer[pipe.read_idx])
                pipe.read_idx = (pipe.read_idx + 1) % PIPE_BUFFER_SIZE
            self.semaphores.post(pipe.write_sem)
        return bytes(out)

    def close(self, fd: int) -> None:
        """Release a descriptor; unknown descriptors are ignored."""
        if not 0 <= fd < MAX_PIPE_FDS:
            return
        with self._lock:
            self._fds[fd] = None

    def reset_buffer(self, fd: int) -> None:
        """Zero the whole buffer of the pipe behind ``fd``."""
        pipe = self._descriptor(fd).pipe
        with pipe.lock:
            pipe.buffer[:] = bytes(PIPE_BUFFER_SIZE)