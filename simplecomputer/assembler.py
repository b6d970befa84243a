"""Assembler for the simple computer: assembly text to a memory image."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Iterable, NamedTuple

from .machine import RAM_SIZE, Machine, MachineError, Opcode, encode_command

MAX_VALUE = 65535
# Lines whose command starts with "=" hold data. CPUINFO shares this code
# and is read the same way.
DATA_DIRECTIVE = 1

_COMMANDS = {
    op.name: int(op)
    for op in (
        Opcode.NOP,
        Opcode.CPUINFO,
        Opcode.READ,
        Opcode.WRITE,
        Opcode.LOAD,
        Opcode.STORE,
        Opcode.ADD,
        Opcode.SUB,
        Opcode.DIVIDE,
        Opcode.MUL,
        Opcode.JUMP,
        Opcode.JNEG,
        Opcode.JZ,
        Opcode.HALT,
        Opcode.JNS,
        Opcode.JP,
        Opcode.SUBC,
    )
}

_INT = re.compile(r"\s*([+-]?\d+)")
_HEX = re.compile(r"[+-]?[0-9A-Fa-f]+")


class AssemblyError(Exception):
    """Raised for a line that cannot be assembled or a file that cannot be used."""


class AssembledLine(NamedTuple):
    """What one source line put into memory."""

    address: int
    command: int
    operand: str
    value: int


def command_code(name: str) -> int | None:
    """The code of a mnemonic, 1 for a data line, or None if it is unknown."""
    if name in _COMMANDS:
        return _COMMANDS[name]
    if name.startswith("="):
        return DATA_DIRECTIVE
    return None


def store_value(memory: list[int], address: int, value: int) -> None:
    """Put ``value`` into ``memory`` after checking address and range."""
    if not 0 <= address < len(memory) or not 0 <= value <= MAX_VALUE:
        raise AssemblyError(
            f"OUT_OF_MEMORY_BOUNDS, address: {address & 0xFFFFFFFF:x}"
        )
    memory[address] = value


def _data_value(text: str) -> int:
    # One sign character, then at most four hex digits (the sign counts).
    match = _HEX.match(text, 1, 5)
    if match is None:
        raise AssemblyError(f"Invalid syntax: bad value {text!r}")
    value = int(match.group(0), 16)
    return -value if text[0] == "-" else value


def assemble_line(line: str, memory: list[int]) -> AssembledLine:
    """Assemble ``address command operand [; comment]`` into ``memory``."""
    head = _INT.match(line)
    if head is None:
        raise AssemblyError(f"Invalid syntax: {line.rstrip()!r}")
    address = int(head.group(1))
    fields = line[head.end():].split()
    if len(fields) < 2:
        raise AssemblyError(f"Invalid syntax: {line.rstrip()!r}")
    name, operand_text = fields[0], fields[1]
    code = command_code(name)
    if code is None:
        raise AssemblyError(f"Invalid syntax: unknown command {name!r}")
    if code == DATA_DIRECTIVE:
        value = _data_value(operand_text)
    else:
        operand = _INT.match(operand_text)
        if operand is None:
            raise AssemblyError(f"Invalid syntax: bad operand {operand_text!r}")
        try:
            value = encode_command(0, code, int(operand.group(1)))
        except MachineError as exc:
            raise AssemblyError(f"Invalid syntax: {exc}") from exc
    store_value(memory, address, value)
    return AssembledLine(address, code, operand_text, value)


def assemble(lines: Iterable[str] | str) -> list[int]:
    """Assemble every line into a fresh, zeroed memory image."""
    if isinstance(lines, str):
        lines = lines.splitlines()
    memory = [0] * RAM_SIZE
    for line in lines:
        assemble_line(line, memory)
    return memory


def _save(memory: list[int], target: str | Path) -> None:
    machine = Machine()
    machine.memory = list(memory)
    try:
        machine.save(target)
    except MachineError as exc:
        raise AssemblyError(f"Can`t create '{target}' file.") from exc


def assemble_file(source: str | Path, target: str | Path) -> list[int]:
    """Assemble ``source`` and write the memory image to ``target``."""
    try:
        text = Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise AssemblyError(f"Can`t open '{source}' file.") from exc
    memory = assemble(text.splitlines())
    _save(memory, target)
    return memory


def main(argv: list[str] | None = None) -> int:
    """Command line: assemble ``file.sa`` into ``file.o``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("Usage: sat file.sa file.o")
        return 1
    source, target = args
    try:
        handle = open(source, encoding="utf-8")
    except OSError:
        print(f"Can`t open '{source}' file.")
        return 1
    print("File is open")
    memory = [0] * RAM_SIZE
    with handle:
        try:
            for line in handle:
                record = assemble_line(line, memory)
                print(f"{record.address} {record.command} {record.operand}")
        except AssemblyError:
            print("Invalid syntax")
            return 1
    try:
        _save(memory, target)
    except AssemblyError as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())