"""Two-pass assembler turning LC2K assembly into decimal machine code."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

MAX_LINE_LENGTH = 1000

_FILL = -1
_OPCODES: Dict[str, int] = {
    "add": 0b000,
    "nor": 0b001,
    "lw": 0b010,
    "sw": 0b011,
    "beq": 0b100,
    "jalr": 0b101,
    "halt": 0b110,
    "noop": 0b111,
    ".fill": _FILL,
}
_ADD, _NOR, _LW, _SW, _BEQ, _JALR = 0, 1, 2, 3, 4, 5

_NUMBER = re.compile(r"[ \t\n\r\f\v]*[+-]?[0-9]+")
_LABEL = re.compile(r"[^\t\n ]*")
_FIELD = re.compile(r"[^\t\n\r ]+")
_BLANK_CHARS = frozenset("\t\n\r ")


class AssemblerError(Exception):
    """Raised for invalid assembly; ``exit_code`` is the status to exit with."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(frozen=True)
class Instruction:
    """The fields of one assembly line; absent fields are empty strings."""

    label: str = ""
    opcode: str = ""
    arg0: str = ""
    arg1: str = ""
    arg2: str = ""


def opcode_value(opcode: str) -> int:
    """Numeric opcode of a mnemonic; ``.fill`` gives -1."""
    try:
        return _OPCODES[opcode]
    except KeyError:
        raise AssemblerError("Error: invalid opcode") from None


def is_number(text: str) -> bool:
    """True if ``text`` is a decimal integer with nothing after it."""
    return _NUMBER.fullmatch(text) is not None


def line_is_blank(line: str) -> bool:
    """True if the line holds only tabs, newlines, carriage returns and spaces."""
    return all(char in _BLANK_CHARS for char in line)


def _check_length(line: str) -> None:
    if len(line) >= MAX_LINE_LENGTH - 1:
        raise AssemblerError("error: line too long")


def check_blank_lines(lines: Iterable[str]) -> None:
    """Reject over-long lines and blank lines anywhere but at the end."""
    first_blank: Optional[int] = None
    for address, line in enumerate(lines):
        _check_length(line)
        if line_is_blank(line):
            if first_blank is None:
                first_blank = address
        elif first_blank is not None:
            raise AssemblerError(
                f"Invalid Assembly: Empty line at address {first_blank}", exit_code=2
            )


def parse_line(line: str) -> Optional[Instruction]:
    """Split a line into label, opcode and three arguments; None if blank."""
    _check_length(line)
    if line_is_blank(line):
        return None
    label = _LABEL.match(line).group(0)
    fields = _FIELD.findall(line[len(label):])[:4]
    fields += [""] * (4 - len(fields))
    return Instruction(label, *fields)


def _check_registers(op: int, inst: Instruction) -> None:
    if not 0 <= op <= _JALR:
        return
    if not (is_number(inst.arg0) and is_number(inst.arg1)):
        raise AssemblerError("error: registers 0 and 1 must be int")
    if not (0 <= int(inst.arg0) <= 7 and 0 <= int(inst.arg1) <= 7):
        raise AssemblerError("error: registers 0 or 1 out of bounds")
    if op in (_ADD, _NOR):
        if not is_number(inst.arg2):
            raise AssemblerError("error: register 2 must be int")
        if not 0 <= int(inst.arg2) <= 7:
            raise AssemblerError("error: register 2 out of bounds")


def _encode(inst: Instruction, pc: int, labels: Dict[str, int]) -> str:
    op = opcode_value(inst.opcode)
    _check_registers(op, inst)

    if op in (_ADD, _NOR):
        word = (op << 22) + (int(inst.arg0) << 19) + (int(inst.arg1) << 16) + int(inst.arg2)
        return str(word)

    if op == _JALR:
        return str((op << 22) + (int(inst.arg0) << 19) + (int(inst.arg1) << 16))

    if op in (_LW, _SW, _BEQ, _FILL):
        target = inst.arg2
        if op == _FILL:
            if is_number(inst.arg0):
                return inst.arg0
            target = inst.arg0

        if is_number(target):
            offset = int(target)
            if not -32768 <= offset <= 32767:
                raise AssemblerError("error, offset not 16 bit")
        else:
            if target not in labels:
                raise AssemblerError("error, label not found")
            offset = labels[target]
            if op == _BEQ:
                offset -= pc + 1

        if offset < 0:
            offset &= 0xFFFF

        if op == _FILL:
            return str(offset)
        word = (op << 22) + (int(inst.arg0) << 19) + (int(inst.arg1) << 16) + offset
        return str(word)

    return str(op << 22)


def assemble(lines: Iterable[str]) -> List[str]:
    """Assemble source lines into machine-code lines, one word per line."""
    lines = list(lines)
    check_blank_lines(lines)

    program: List[Instruction] = []
    for line in lines:
        inst = parse_line(line)
        if inst is None:
            break
        program.append(inst)

    labels: Dict[str, int] = {}
    for address, inst in enumerate(program):
        if inst.label:
            if inst.label in labels:
                raise AssemblerError("error, duplicate label encountered. ")
            labels[inst.label] = address

    return [_encode(inst, pc, labels) for pc, inst in enumerate(program)]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Assemble <assembly-code-file> into <machine-code-file>."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("error: usage: assembler <assembly-code-file> <machine-code-file>")
        return 1
    in_path, out_path = args

    try:
        with open(in_path, newline="") as handle:
            lines = handle.readlines()
    except OSError:
        print(f"error in opening {in_path}")
        return 1

    try:
        check_blank_lines(lines)
    except AssemblerError as exc:
        print(exc)
        return exc.exit_code

    try:
        out = open(out_path, "w")
    except OSError:
        print(f"error in opening {out_path}")
        return 1

    with out:
        try:
            words = assemble(lines)
        except AssemblerError as exc:
            print(exc)
            return exc.exit_code
        out.writelines(f"{word}\n" for word in words)
    return 0


if __name__ == "__main__":
    sys.exit(main())