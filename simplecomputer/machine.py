"""Memory, registers, flags and the write cache of the simple computer."""

from __future__ import annotations

import struct
import time
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Callable, NamedTuple

RAM_SIZE = 128
CACHE_SIZE = 5
CACHE_LINE_SIZE = 10
IO_BUFFER_LINES = 5


class MachineError(Exception):
    """Raised when the machine is asked to do something out of range."""


class Flag(IntEnum):
    """Bits of the flag register, numbered from one."""

    OVERFLOW = 1
    DIVISION_BY_ZERO = 2
    RANGE_OVERFLOW = 3
    INCORRECT_COMMAND = 4
    IGNORING_CLOCK_PULSES = 5

    @property
    def mask(self) -> int:
        return 1 << (self.value - 1)


class Opcode(IntEnum):
    """Operation codes understood by the machine."""

    NOP = 0x0
    CPUINFO = 0x1
    READ = 0xA
    WRITE = 0xB
    LOAD = 0x14
    STORE = 0x15
    ADD = 0x1E
    SUB = 0x1F
    DIVIDE = 0x20
    MUL = 0x21
    JUMP = 0x28
    JNEG = 0x29
    JZ = 0x2A
    HALT = 0x2B
    NOT = 0x33
    AND = 0x34
    OR = 0x35
    XOR = 0x36
    JNS = 0x37
    JC = 0x38
    JNC = 0x39
    JP = 0x3A
    JNP = 0x3B
    CHL = 0x3C
    SHR = 0x3D
    RCL = 0x3E
    RCR = 0x3F
    NEG = 0x40
    ADDC = 0x41
    SUBC = 0x42
    LOGLC = 0x43
    LOGRC = 0x44
    RCCL = 0x45
    RCCR = 0x46
    MOVA = 0x47
    MOVR = 0x48
    MOVCA = 0x49
    MOVCR = 0x4A


_VALID_OPCODES = frozenset(int(op) for op in Opcode)


class Command(NamedTuple):
    """A decoded memory word."""

    sign: int
    command: int
    operand: int


def validate_command(command: int) -> bool:
    """Return True if ``command`` is a known operation code."""
    return command in _VALID_OPCODES


def encode_command(sign: int, command: int, operand: int) -> int:
    """Pack a sign bit, a 7-bit command and a 7-bit operand into one word."""
    if (operand & ~0x7F) > 0 or (command & ~0x7F) > 0 or (sign & ~0x1) > 0:
        raise MachineError(
            f"fields out of range: sign={sign} command={command} operand={operand}"
        )
    if not validate_command(command):
        raise MachineError(f"unknown command {command:#x}")
    return (sign << 14) | (command << 7) | operand


def decode_command(value: int) -> Command:
    """Split a word into its sign, command and operand fields."""
    if (value & ~0x7FFF) > 0:
        raise MachineError(f"value {value:#x} does not fit in 15 bits")
    return Command((value >> 14) & 1, (value >> 7) & 0x7F, value & 0x7F)


def _line_start(address: int) -> int:
    """First address of the cache line holding ``address`` (truncating division)."""
    return int(address / CACHE_LINE_SIZE) * CACHE_LINE_SIZE


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


@dataclass
class CacheLine:
    """One line of the cache: its first address, its words and its last use."""

    address: int = -1
    data: list[int] = field(default_factory=lambda: [0] * CACHE_LINE_SIZE)
    last_access: int = 0


class Cache:
    """A small write cache of memory lines with least-recently-used eviction."""

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock if clock is not None else (lambda: int(time.time()))
        self.reset()

    def reset(self) -> None:
        """Empty every line."""
        self.lines = [CacheLine() for _ in range(CACHE_SIZE)]
        self._filled = 0

    def __iter__(self):
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def contains(self, address: int) -> bool:
        """Return True if the line holding ``address`` is cached."""
        start = _line_start(address)
        return any(line.address == start for line in self.lines)

    def least_recently_used(self) -> int:
        """Index of the line used longest ago; the first one wins a tie."""
        return min(range(len(self.lines)), key=lambda i: self.lines[i].last_access)

    def update_after_save(self, memory: list[int], address: int) -> int:
        """Refresh the line of ``address`` from ``memory``; return its index."""
        start = _line_start(address)
        index = next(
            (i for i, line in enumerate(self.lines) if line.address == start), None
        )
        if index is None:
            if self._filled < CACHE_SIZE:
                index = self._filled
                self._filled += 1
            else:
                index = self.least_recently_used()
                evicted = self.lines[index]
                for target, value in enumerate(evicted.data, start=evicted.address):
                    if 0 <= target < len(memory):
                        memory[target] = value
            self.lines[index].address = start
        line = self.lines[index]
        line.data = [
            memory[a] if 0 <= a < len(memory) else 0
            for a in range(start, start + CACHE_LINE_SIZE)
        ]
        line.last_access = self._clock()
        return index


class Machine:
    """State of the simple computer: memory, accumulator, counter and flags."""

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self.memory = [0] * RAM_SIZE
        self.flags = 0
        self.accumulator = 0
        self.counter = 0
        self.active_cell = 0
        self.io_buffer = [" "] * IO_BUFFER_LINES
        self.cache = Cache(clock)

    @staticmethod
    def _check_address(address: int) -> None:
        if not 0 <= address < RAM_SIZE:
            raise MachineError(f"address {address} out of range")

    def reset_memory(self) -> None:
        """Zero every memory cell."""
        self.memory = [0] * RAM_SIZE

    def read(self, address: int) -> int:
        """Return the word at ``address``."""
        self._check_address(address)
        return self.memory[address]

    def write(self, address: int, value: int) -> None:
        """Store ``value`` at ``address`` and refresh its cache line."""
        self._check_address(address)
        self.memory[address] = value
        self.cache.update_after_save(self.memory, address)

    def save(self, path: str | Path) -> None:
        """Write memory to ``path`` as little-endian 32-bit words."""
        data = struct.pack(f"<{RAM_SIZE}i", *(_to_int32(v) for v in self.memory))
        try:
            Path(path).write_bytes(data)
        except OSError as exc:
            raise MachineError(f"cannot save memory to {path}") from exc

    def load(self, path: str | Path) -> None:
        """Read memory from ``path``; a short file fills only the first cells."""
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise MachineError(f"cannot load memory from {path}") from exc
        count = min(len(data) // 4, RAM_SIZE)
        self.memory[:count] = struct.unpack_from(f"<{count}i", data)

    def reset_flags(self) -> None:
        """Clear every flag."""
        self.flags = 0

    @staticmethod
    def _flag(flag: int) -> Flag:
        try:
            return Flag(flag)
        except ValueError:
            raise MachineError(f"no flag {flag}") from None

    def set_flag(self, flag: int, value: int) -> None:
        """Set (1) or clear (0) a flag."""
        bit = self._flag(flag)
        if value not in (0, 1):
            raise MachineError(f"flag value must be 0 or 1, not {value}")
        if value:
            self.flags |= bit.mask
        else:
            self.flags &= ~bit.mask

    def get_flag(self, flag: int) -> bool:
        """Return whether a flag is set."""
        return bool(self.flags & self._flag(flag).mask)

    def reset(self) -> None:
        """Zero memory, flags, accumulator, counter and the active cell."""
        self.reset_memory()
        self.reset_flags()
        self.accumulator = 0
        self.counter = 0
        self.active_cell = 0