"""Behavioural simulator for LC2K machine code, with memory behind a cache."""

from __future__ import annotations

import re
import sys
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence, TextIO

from lc2k.cache import Cache, CacheConfigError

MEMORY_SIZE = 65536
NUM_REGS = 8

_NUMBER = re.compile(r"\s*([+-]?\d+)")


class SimulatorError(Exception):
    """Raised for bad input files and invalid machine behaviour."""


class _Op(IntEnum):
    ADD = 0
    NOR = 1
    LW = 2
    SW = 3
    BEQ = 4
    JALR = 5
    HALT = 6
    NOOP = 7


def convert_num(num: int) -> int:
    """Sign-extend a 16-bit value."""
    return num - ((1 << 16) if num & (1 << 15) else 0)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def load_program(lines: Iterable[str]) -> List[int]:
    """Read one decimal word per line; text after the number is ignored."""
    words = []
    for address, line in enumerate(lines):
        match = _NUMBER.match(line)
        if match is None:
            raise SimulatorError(
                f"error in reading address {address}. "
                "Please ensure you are providing a machine code file."
            )
        words.append(_to_int32(int(match.group(1))))
    return words


class Memory:
    """Word-addressed main memory that counts its accesses."""

    def __init__(self, words: Sequence[int]) -> None:
        if len(words) > MEMORY_SIZE:
            raise SimulatorError(f"program larger than {MEMORY_SIZE} words")
        self.words = [0] * MEMORY_SIZE
        self.words[: len(words)] = words
        self.num_memory = len(words)
        self.accesses = 0

    def access(self, addr: int, write_flag: int, write_data: int) -> int:
        """Read the word at ``addr``, storing ``write_data`` first if writing."""
        if not 0 <= addr < MEMORY_SIZE:
            raise SimulatorError(f"memory address {addr} out of range")
        self.accesses += 1
        if write_flag:
            self.words[addr] = write_data
            self.num_memory = max(self.num_memory, addr + 1)
        return self.words[addr]


class Machine:
    """An LC2K processor whose every memory reference goes through a cache."""

    def __init__(
        self,
        program: Sequence[int],
        block_size: int,
        num_sets: int,
        blocks_per_set: int,
        out: Optional[TextIO] = None,
    ) -> None:
        self.out = out if out is not None else sys.stdout
        self.memory = Memory(program)
        self.registers = [0] * NUM_REGS
        self.pc = 0
        self.instruction_count = 0
        self.halted = False
        self.cache = Cache(block_size, num_sets, blocks_per_set, self.memory.access, self.out)

    def step(self) -> None:
        """Fetch and execute one instruction."""
        if self.halted:
            raise SimulatorError("machine has already halted")
        self.instruction_count += 1
        regs = self.registers

        instruction = self.cache.read(self.pc)
        op = _Op((instruction >> 22) & 0x7)
        reg_a = (instruction >> 19) & 0x7
        reg_b = (instruction >> 16) & 0x7
        dest = instruction & 0x7
        offset = convert_num(instruction & 0xFFFF)

        if op is _Op.ADD:
            regs[dest] = _to_int32(regs[reg_a] + regs[reg_b])
        elif op is _Op.NOR:
            regs[dest] = ~(regs[reg_a] | regs[reg_b])
        elif op is _Op.LW:
            regs[reg_b] = self.cache.read(_to_int32(regs[reg_a] + offset))
        elif op is _Op.SW:
            self.cache.write(_to_int32(regs[reg_a] + offset), regs[reg_b])
        elif op is _Op.BEQ:
            if regs[reg_a] == regs[reg_b]:
                self.pc = self.pc + 1 + offset
                return
        elif op is _Op.JALR:
            regs[reg_b] = self.pc + 1
            self.pc = regs[reg_a]
            return
        elif op is _Op.HALT:
            self.halted = True
            self.pc += 1
            print("machine halted", file=self.out)
            print(
                f"total of {self.instruction_count} instructions executed",
                file=self.out,
            )
            print("final state of machine:", file=self.out)
            self.out.write(self.format_state())
        self.pc += 1

    def run(self) -> int:
        """Execute until halt; return the number of instructions executed."""
        while not self.halted:
            self.step()
        return self.instruction_count

    def format_state(self) -> str:
        """Render the pc, the used memory and the registers."""
        parts = ["\n@@@\nstate:\n", f"\tpc {self.pc}\n", "\tmemory:\n"]
        parts.extend(
            f"\t\tmem[ {i} ] {self.memory.words[i]}\n"
            for i in range(self.memory.num_memory)
        )
        parts.append("\tregisters:\n")
        parts.extend(f"\t\treg[ {i} ] {value}\n" for i, value in enumerate(self.registers))
        parts.append("end state\n")
        return "".join(parts)


def _atoi(text: str) -> int:
    match = _NUMBER.match(text)
    return int(match.group(1)) if match else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a machine-code file: <file> <blockSize> <numSets> <blocksPerSet>."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 4:
        print(
            "error: usage: simulator <machine-code file> "
            "<blockSize> <numSets> <blocksPerSet>"
        )
        return 1

    path = args[0]
    try:
        with open(path) as handle:
            program = load_program(handle)
    except OSError as exc:
        print(
            f"error: can't open file {path} , please ensure you are providing the correct path"
        )
        print(f"open: {exc.strerror}", file=sys.stderr)
        return 1
    except SimulatorError as exc:
        print(exc)
        return 1

    try:
        machine = Machine(program, _atoi(args[1]), _atoi(args[2]), _atoi(args[3]), sys.stdout)
        machine.run()
    except (CacheConfigError, SimulatorError) as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())