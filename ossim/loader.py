"""Reads process descriptions into process control blocks."""

from __future__ import annotations

import os
import re
import threading

from .common import PAGE_SIZE, Instruction, Opcode, Pcb

_OPCODES = {
    "calc": Opcode.CALC,
    "alloc": Opcode.ALLOC,
    "free": Opcode.FREE,
    "read": Opcode.READ,
    "write": Opcode.WRITE,
    "syscall": Opcode.SYSCALL,
}

_ARG_COUNTS = {
    Opcode.CALC: 0,
    Opcode.ALLOC: 2,
    Opcode.FREE: 1,
    Opcode.READ: 3,
    Opcode.WRITE: 3,
}

_WORD_PATTERN = re.compile(r"\s*(\S+)")
_INT = re.compile(r"[+-]?\d+")


class LoaderError(Exception):
    """Raised when a process description is missing or malformed."""


def parse_opcode(opt: str) -> Opcode:
    """The opcode named by ``opt``."""
    try:
        return _OPCODES[opt]
    except KeyError:
        raise LoaderError(f"unknown opcode: {opt}") from None


class _Scanner:
    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def word(self) -> str:
        match = _WORD_PATTERN.match(self._text, self._pos)
        if match is None:
            raise LoaderError("unexpected end of process description")
        self._pos = match.end()
        return match.group(1)

    def integer(self) -> int:
        word = self.word()
        if not _INT.fullmatch(word):
            raise LoaderError(f"expected a number, found {word!r}")
        return int(word)

    def rest_of_line(self) -> str:
        end = self._text.find("\n", self._pos)
        if end == -1:
            end = len(self._text)
        line = self._text[self._pos:end]
        self._pos = min(end + 1, len(self._text))
        return line


def _leading_ints(line: str, limit: int) -> list[int]:
    values = []
    for word in line.split()[:limit]:
        if not _INT.fullmatch(word):
            break
        values.append(int(word))
    return values


class Loader:
    """Creates processes from description files, numbering them from ``first_pid``."""

    def __init__(self, first_pid: int = 1) -> None:
        self._next_pid = first_pid
        self._lock = threading.Lock()

    def _take_pid(self) -> int:
        with self._lock:
            pid = self._next_pid
            self._next_pid += 1
        return pid

    def load(self, path: str | os.PathLike) -> Pcb:
        """Read the description at ``path`` and return a new process for it."""
        pid = self._take_pid()
        path_str = os.fspath(path)
        try:
            with open(path_str, encoding="utf-8") as handle:
                text = handle.read()
        except OSError:
            raise LoaderError(f"Cannot find process description at '{path_str}'") from None

        scanner = _Scanner(text)
        priority = scanner.integer()
        size = scanner.integer()
        code = []
        for _ in range(size):
            opcode = parse_opcode(scanner.word())
            if opcode is Opcode.SYSCALL:
                args = _leading_ints(scanner.rest_of_line(), 4)
            else:
                args = [scanner.integer() for _ in range(_ARG_COUNTS[opcode])]
            code.append(Instruction(opcode, tuple(args)))

        return Pcb(
            pid=pid,
            priority=priority,
            path=path_str,
            code=code,
            pc=0,
            bp=PAGE_SIZE,
        )