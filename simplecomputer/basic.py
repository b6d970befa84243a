"""Translator from Simple Basic to simple computer assembly."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from .assembler import AssemblyError, assemble
from .machine import Machine, MachineError

ASM_SLOTS = 256
INVALID = "Invalid syntax"

_ARITHMETIC = {"+": "ADD", "-": "SUB", "*": "MUL", "/": "DIVIDE"}
_CONDITIONS = {"<": "JNEG", ">": "JNS", "=": "JZ"}
_MEMORY_OPS = frozenset({"READ", "WRITE", "LOAD", "STORE", "ADD", "SUB", "DIVIDE", "MUL"})
_JUMP_OPS = frozenset({"JUMP", "JNEG", "JNS", "JZ"})

_INT = re.compile(r"\s*([+-]?\d+)")
_HEAD = re.compile(r"\s*([+-]?\d+)\s*(\S+)")
_LET_CONST = re.compile(r"(.)=\s*([+-]?\d+)", re.S)
_IF = re.compile(r"(.)(.)(.)GOTO\s*([+-]?\d+)(.*)", re.S)


class BasicError(Exception):
    """Raised for a program that cannot be translated."""


def strip_spaces(text: str) -> str:
    """Remove every space character."""
    return text.replace(" ", "")


@dataclass(frozen=True)
class _Instruction:
    line: int
    number: int
    address: int
    op: str
    arg: str


def _single_char(tail: str) -> str:
    rest = tail.lstrip()
    if not rest or rest[1:].split():
        raise BasicError(INVALID)
    return rest[0]


class Translator:
    """Turns Simple Basic lines into assembly text."""

    def __init__(self, echo: Callable[[str], object] | None = None) -> None:
        self.echo = echo if echo is not None else (lambda text: None)
        self.variables: list[str] = []
        self.numbers: dict[int, int] = {}
        self.instructions: list[_Instruction] = []

    def var_address(self, name: str, offset: int) -> int:
        """Address of variable ``name``, allocating the next one if it is new."""
        if name not in self.variables:
            self.variables.append(name)
        return offset + self.variables.index(name)

    def var_name(self, address: int, offset: int) -> str | None:
        """The variable at ``address``, or None if there is none."""
        index = address - offset
        if 0 <= index < len(self.variables):
            return self.variables[index]
        return None

    def goto_address(self, line_number: int) -> int:
        """The first instruction address of Basic line ``line_number``."""
        for instruction in self.instructions:
            if instruction.number == line_number:
                return instruction.address
        raise BasicError(f"{INVALID}: no line {line_number}")

    def _add(self, line: int, number: int, op: str, arg: str) -> None:
        address = len(self.instructions)
        self.instructions.append(_Instruction(line, number, address, op, arg))

    def _let(self, line: str, line_no: int, number: int) -> None:
        text = strip_spaces(line[line.find("LET") + 4:])
        const = _LET_CONST.match(text)
        if const is not None:
            self._add(line_no, number, "LOAD", str(int(const.group(2))))
            self._add(-1, -1, "STORE", const.group(1))
            return
        if len(text) < 5 or text[1] != "=" or text[5:].split():
            raise BasicError(INVALID)
        target, left, operator, right = text[0], text[2], text[3], text[4]
        if operator not in _ARITHMETIC:
            raise BasicError(INVALID)
        self._add(line_no, number, "LOAD", left)
        self._add(-1, -1, _ARITHMETIC[operator], right)
        self._add(-1, -1, "STORE", target)

    def _if(self, line: str, line_no: int, number: int) -> None:
        text = strip_spaces(line[line.find("IF") + 2:])
        match = _IF.match(text)
        if match is None or match.group(5).split():
            raise BasicError(INVALID)
        variable, relation, zero = match.group(1, 2, 3)
        if zero != "0" or relation not in _CONDITIONS:
            raise BasicError(INVALID)
        self._add(line_no, number, "LOAD", variable)
        self._add(-1, -1, _CONDITIONS[relation], str(int(match.group(4))))

    def _parse(self, line: str, line_no: int, last: int) -> int:
        head = _HEAD.match(line)
        if head is None:
            raise BasicError(INVALID)
        number, op = int(head.group(1)), head.group(2)
        tail = line[head.end():]
        if number <= last:
            raise BasicError(INVALID)
        if op == "REM":
            return last
        if op == "END":
            if tail.split():
                raise BasicError(INVALID)
            self._add(line_no, number, "HALT", "")
        elif op == "INPUT":
            self._add(line_no, number, "READ", _single_char(tail))
        elif op == "PRINT":
            self._add(line_no, number, "WRITE", _single_char(tail))
        elif op == "LET":
            self._let(line, line_no, number)
        elif op == "IF":
            self._if(line, line_no, number)
        elif op == "GOTO":
            target = _INT.match(tail)
            if target is None or tail[target.end():].split():
                raise BasicError(INVALID)
            self._add(line_no, number, "JUMP", str(int(target.group(1))))
        else:
            raise BasicError(INVALID)
        return number

    def _emit(self) -> str:
        offset = len(self.instructions)
        if offset > ASM_SLOTS:
            raise BasicError(f"{INVALID}: program too long")
        out = []
        for ins in self.instructions:
            if ins.op in _MEMORY_OPS:
                arg = ins.arg.lstrip()
                if not arg:
                    raise BasicError(INVALID)
                address = self.var_address(arg[0], offset)
                out.append(f"{ins.address:02d} {ins.op} {address:02d}\n")
                constant = _INT.match(ins.arg)
                if ins.op == "LOAD" and constant is not None:
                    self.numbers[address] = int(constant.group(1))
            elif ins.op in _JUMP_OPS:
                target = self.goto_address(int(ins.arg))
                out.append(f"{ins.address:02d} {ins.op} {target:02d}\n")
            else:
                out.append(f"{ins.address:02d} {ins.op} 00\n")
        for address in range(offset, ASM_SLOTS):
            entry = ""
            if self.var_name(address, offset) is not None:
                entry = f"{address:02d} = +0000\n"
            value = self.numbers.get(address, 0)
            if value:
                entry = f"{address:02d} = +{value & 0xFFFFFFFF:04X}\n"
            if entry:
                out.append(entry)
        return "".join(out)

    def translate(self, lines: Iterable[str] | str) -> str:
        """Translate a whole program and return its assembly text."""
        if isinstance(lines, str):
            lines = lines.splitlines(keepends=True)
        self.variables = []
        self.numbers = {}
        self.instructions = []
        line_no = 1
        last = 0
        for line in lines:
            self.echo(line)
            if line not in ("", "\n"):
                last = self._parse(line, line_no, last)
            line_no += 1
        return self._emit()


def _convert(
    source: str | Path,
    target: str | Path,
    object_path: str | Path | None,
    translator: Translator,
    report: Callable[[str], object],
) -> str:
    try:
        text = Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise BasicError(f"Can`t open '{source}' file.") from exc
    report("Basic file is open\n")
    assembly = translator.translate(text.splitlines(keepends=True))
    try:
        Path(target).write_text(assembly, encoding="utf-8")
    except OSError as exc:
        raise BasicError(f"Can`t create '{target}' file.") from exc
    if object_path is not None:
        report(str(object_path))
        try:
            memory = assemble(assembly.splitlines())
        except AssemblyError as exc:
            raise BasicError(str(exc)) from exc
        machine = Machine()
        machine.memory = memory
        try:
            machine.save(object_path)
        except MachineError as exc:
            raise BasicError(f"Can`t create '{object_path}' file.") from exc
    return assembly


def translate_file(
    source: str | Path,
    target: str | Path,
    object_path: str | Path | None = None,
) -> str:
    """Translate ``source`` to assembly in ``target``; assemble it too if asked."""
    return _convert(source, target, object_path, Translator(), lambda text: None)


def main(argv: list[str] | None = None) -> int:
    """Command line: ``file.sb file.sa -a`` or ``file.sb file.sa file.o``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 3:
        print("Usage: sbt file.sb file.sa -a/file.o")
        return 1
    source, target, mode = args

    def show(text: str) -> None:
        print(text, end="")

    try:
        _convert(source, target, None if mode == "-a" else mode, Translator(show), show)
    except BasicError as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())