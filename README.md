# simplecomputer

A small teaching computer that runs in a terminal, together with the two
tools that produce programs for it: an assembler and a translator from a
tiny Basic dialect.

## The machine

- 128 memory cells (`simplecomputer.machine.Machine`).
- Bit 14 of a word is its sign; a command word holds a 7-bit command code
  (bits 7–13) and a 7-bit operand (bits 0–6). `encode_command` and
  `decode_command` pack and unpack these fields and raise `MachineError`
  when they do not fit; `validate_command` tells whether a code is known.
- An accumulator, an instruction counter and five flags (`Flag`), shown
  on screen as `P O M T E`: overflow, division by zero, out of memory
  range, incorrect command and ignoring clock pulses.
- A processor cache (`Cache`) of five lines of ten cells each. Every
  write to memory refreshes the line holding that cell; when all five
  lines are in use, the least recently used one is replaced.

The processor (`simplecomputer.cpu.Processor`) executes `ADD`, `SUB`,
`DIVIDE`, `MUL`, `READ`, `WRITE`, `LOAD`, `STORE`, `JUMP`, `JNEG`, `JZ`,
`JNS`, `JNP`, `NOT`, `AND`, `OR`, `HALT` and `CPUINFO`. The other codes in
`Opcode` are valid command words but do nothing when executed.

## Installing

```
pip install .
```

The console needs a POSIX terminal of at least 26 rows and 109 columns;
on a smaller one it prints `ERROR: window is too small!` and exits.

## The console

```
simplecomputer
```

Keys:

| key        | action                                                 |
|------------|--------------------------------------------------------|
| arrows     | move between memory cells                              |
| Enter      | edit the selected cell (`+`/`-` and four hex digits, the first 0–3) |
| `l` / `s`  | load / save memory from / to a file named on the next line |
| `r`        | run the program from cell 0, one step every 0.1 s      |
| `t`        | stop running and execute one step                      |
| `i`        | reset the machine                                      |
| F5         | set the accumulator                                    |
| F6         | set the instruction counter (three decimal digits, at most 255) |
| Esc        | quit                                                   |

While a program is running only `i`, `t` and Esc are acted upon.

Memory files hold the 128 cells as little-endian 32-bit integers.

## The assembler

```
sat program.sa program.o
```

Each line is `address COMMAND operand`, optionally followed by a comment.
The mnemonics understood are `NOP`, `CPUINFO`, `READ`, `WRITE`, `LOAD`,
`STORE`, `ADD`, `SUB`, `DIVIDE`, `MUL`, `JUMP`, `JNEG`, `JZ`, `HALT`,
`JNS`, `JP` and `SUBC`. A line whose command starts with `=` stores a
literal value instead: a sign and up to four hex digits. Values must lie
between 0 and 65535, so negative literals are rejected.

```
00 READ 09
01 LOAD 09
02 WRITE 09
03 HALT 00
09 = +0005
```

From Python, `simplecomputer.assembler.assemble(text)` returns the
128-cell memory image and `assemble_file(source, target)` also writes it;
errors raise `AssemblyError`.

## The Basic translator

```
sbt program.sb program.sa -a
sbt program.sb program.sa program.o
```

With `-a` only the assembly file is written; otherwise the assembly is
also assembled into the memory file given as the third argument.

Lines are numbered in increasing order and use `REM`, `INPUT`, `PRINT`,
`LET`, `IF ... GOTO`, `GOTO` and `END`. Variables are single characters.
`LET` takes either `X = number` or `X = A op B` with `op` one of
`+ - * /`; `IF` compares a variable with zero using `<`, `>` or `=`.

```
10 REM subtract two numbers
20 INPUT A
30 INPUT B
40 LET C = A - B
50 IF C < 0 GOTO 20
60 PRINT C
70 END
```

From Python, `simplecomputer.basic.Translator().translate(text)` returns
the assembly text and `translate_file(source, target, object_path=None)`
writes it; errors raise `BasicError`.

## Using it from Python

```python
from simplecomputer.machine import Machine, Opcode, encode_command
from simplecomputer.cpu import Processor

machine = Machine()
machine.write(0, encode_command(0, Opcode.HALT, 0))
Processor(machine).step()
print(machine.counter)  # 1
```

A `Processor` without a `Display` attached cannot read input: executing
`READ` raises `MachineError`.