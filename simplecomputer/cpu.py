"""Control unit, arithmetic unit and the clock of the simple computer."""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING

from .machine import (
    RAM_SIZE,
    Flag,
    Machine,
    MachineError,
    Opcode,
    decode_command,
)

if TYPE_CHECKING:
    from .display import Display

SIGN_MASK = 1 << 14
CPU_INFO = "SimpleComputer CPU"


def _int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


class Processor:
    """Executes instructions from a machine's memory, one per step."""

    def __init__(self, machine: Machine, display: Display | None = None) -> None:
        self.machine = machine
        self.display = display

    def alu(self, command: int, operand: int) -> None:
        """Apply an arithmetic command to the accumulator and memory[operand]."""
        m = self.machine
        m.set_flag(Flag.OVERFLOW, 1)
        value = m.read(operand)
        acc = m.accumulator
        if command == Opcode.ADD:
            if acc + value > 0x3FFF:
                acc ^= 1 << 15
                m.set_flag(Flag.OVERFLOW, 1)
            else:
                acc += value
        elif command == Opcode.SUB:
            if acc - value < -0x3FFF:
                acc ^= SIGN_MASK
                m.set_flag(Flag.OVERFLOW, 1)
            else:
                acc -= value
        elif command == Opcode.DIVIDE:
            if value == 0:
                m.set_flag(Flag.DIVISION_BY_ZERO, 1)
            else:
                sign_a = (acc >> 14) & 1
                sign_v = (value >> 14) & 1
                acc = _trunc_div(acc, value)
                if (sign_a == 1 and sign_a == sign_v) or sign_a != sign_v:
                    acc ^= SIGN_MASK
        elif command == Opcode.MUL:
            if acc * value > 0x3FFF:
                m.set_flag(Flag.OVERFLOW, 1)
            else:
                sign_a = (acc >> 14) & 1
                sign_v = (value >> 14) & 1
                acc *= value
                if (sign_a == 1 and sign_a == sign_v) or sign_a != sign_v:
                    acc ^= SIGN_MASK
        else:
            m.set_flag(Flag.INCORRECT_COMMAND, 1)
        m.accumulator = _int32(acc)

    def _jump(self, operand: int) -> None:
        self.machine.counter = operand - 1

    def _io(self, operand: int, mode: int) -> None:
        if self.display is None:
            if mode == 0:
                raise MachineError("no input device attached")
            return
        self.display.print_term(operand, mode)

    def step(self) -> bool:
        """Execute the instruction at the counter; False if it could not be decoded."""
        m = self.machine
        value = m.memory[m.counter] if 0 <= m.counter < RAM_SIZE else 0
        try:
            _, command, operand = decode_command(value)
        except MachineError:
            m.set_flag(Flag.IGNORING_CLOCK_PULSES, 0)
            return False
        if not 0 <= operand < RAM_SIZE:
            m.set_flag(Flag.RANGE_OVERFLOW, 1)
            m.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
            return False

        acc = m.accumulator
        if Opcode.ADD <= command <= Opcode.MUL:
            self.alu(command, operand)
        elif command == Opcode.CPUINFO:
            if self.display is not None:
                self.display.terminal.goto(30, 1)
                self.display.terminal.write(CPU_INFO)
        elif command == Opcode.READ:
            self._io(operand, 0)
        elif command == Opcode.WRITE:
            self._io(operand, 1)
        elif command == Opcode.LOAD:
            m.accumulator = m.read(operand)
        elif command == Opcode.STORE:
            m.write(operand, acc)
        elif command == Opcode.JUMP:
            self._jump(operand)
        elif command == Opcode.JNEG:
            if acc < 0:
                self._jump(operand)
        elif command == Opcode.JNS:
            if acc > 0:
                self._jump(operand)
        elif command == Opcode.JZ:
            if acc == 0:
                self._jump(operand)
        elif command == Opcode.HALT:
            m.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        elif command == Opcode.NOT:
            m.write(operand, ~acc)
        elif command == Opcode.JNP:
            if acc % 2 != 0:
                self._jump(operand)
        elif command == Opcode.AND:
            m.accumulator = m.memory[operand] & acc
        elif command == Opcode.OR:
            m.accumulator = m.memory[operand] | acc

        if m.counter + 1 < RAM_SIZE:
            m.counter += 1
            m.active_cell = m.counter
        else:
            m.set_flag(Flag.RANGE_OVERFLOW, 1)
            m.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        if self.display is not None:
            self.display.print_all()
        return True

    def tick(self) -> bool:
        """One clock pulse: step unless pulses are ignored; True if it stepped."""
        if self.machine.get_flag(Flag.IGNORING_CLOCK_PULSES):
            return False
        self.step()
        if self.display is not None:
            self.display.terminal.goto(24, 1)
        return True

    def reset(self) -> None:
        """Zero the machine and stop the clock."""
        m = self.machine
        m.accumulator = 0
        m.counter = 0
        if self.display is not None:
            self.display.terminal.set_default_color()
        m.active_cell = 0
        m.reset_flags()
        m.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        m.reset_memory()


def create_timer(interval: float) -> None:
    """Deliver SIGALRM every ``interval`` seconds; zero stops the timer."""
    signal.setitimer(signal.ITIMER_REAL, interval, interval)