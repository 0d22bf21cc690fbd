"""A configurable write-back, write-allocate cache with LRU replacement."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, TextIO

MAX_CACHE_SIZE = 256
MAX_BLOCK_SIZE = 256

MemoryAccess = Callable[[int, int, int], int]


class ActionType(Enum):
    """A kind of data transfer involving the cache."""

    CACHE_TO_PROCESSOR = "from the cache to the processor"
    PROCESSOR_TO_CACHE = "from the processor to the cache"
    MEMORY_TO_CACHE = "from the memory to the cache"
    CACHE_TO_MEMORY = "from the cache to the memory"
    CACHE_TO_NOWHERE = "from the cache to nowhere"


class CacheConfigError(ValueError):
    """Raised when the cache geometry is not acceptable."""


def format_action(address: int, size: int, action: ActionType) -> str:
    """Describe a transfer of ``size`` words starting at ``address``."""
    return f"$$$ transferring word [{address}-{address + size - 1}] {action.value}"


def _is_power_of_2(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def _log2(value: int) -> int:
    return value.bit_length() - 1


@dataclass
class Block:
    """One cache line."""

    data: List[int] = field(default_factory=list)
    dirty: bool = False
    lru_label: int = 0
    tag: int = 0
    valid: bool = False


class Cache:
    """Set-associative cache in front of a word-addressed memory.

    ``memory`` is called as ``memory(addr, write_flag, write_data)`` and
    returns the word stored at ``addr``.
    """

    def __init__(
        self,
        block_size: int,
        num_sets: int,
        blocks_per_set: int,
        memory: MemoryAccess,
        out: Optional[TextIO] = None,
    ) -> None:
        if block_size <= 0 or num_sets <= 0 or blocks_per_set <= 0:
            raise CacheConfigError("error: input parameters must be positive numbers")
        if blocks_per_set * num_sets > MAX_CACHE_SIZE:
            raise CacheConfigError(
                f"error: cache must be no larger than {MAX_CACHE_SIZE} blocks"
            )
        if block_size > MAX_BLOCK_SIZE:
            raise CacheConfigError(
                f"error: blocks must be no larger than {MAX_BLOCK_SIZE} words"
            )

        self.block_size = block_size
        self.num_sets = num_sets
        self.blocks_per_set = blocks_per_set
        self.memory = memory
        self.out = out if out is not None else sys.stdout

        if not _is_power_of_2(block_size):
            self._emit(f"warning: blockSize {block_size} is not a power of 2")
        if not _is_power_of_2(num_sets):
            self._emit(f"warning: numSets {num_sets} is not a power of 2")
        self._emit(
            f"Simulating a cache with {num_sets * blocks_per_set} total lines; "
            f"each line has {block_size} words"
        )
        self._emit(
            f"Each set in the cache contains {blocks_per_set} lines; "
            f"there are {num_sets} sets"
        )

        self._offset_bits = _log2(block_size)
        self._index_bits = _log2(num_sets)
        self.sets: List[List[Block]] = [
            [Block(data=[0] * block_size) for _ in range(blocks_per_set)]
            for _ in range(num_sets)
        ]

    def _emit(self, line: str) -> None:
        print(line, file=self.out)

    def _log(self, address: int, size: int, action: ActionType) -> None:
        self._emit(format_action(address, size, action))

    def offset(self, addr: int) -> int:
        """Word offset of ``addr`` within its block."""
        return addr & ((1 << self._offset_bits) - 1)

    def set_index(self, addr: int) -> int:
        """Index of the set that ``addr`` maps to."""
        mask = ((1 << self._index_bits) - 1) << self._offset_bits
        return (addr & mask) >> self._offset_bits

    def tag(self, addr: int) -> int:
        """Tag bits of ``addr``."""
        return addr >> (self._offset_bits + self._index_bits)

    def _find_hit(self, addr: int) -> Optional[Block]:
        tag = self.tag(addr)
        return next(
            (block for block in self.sets[self.set_index(addr)] if block.valid and block.tag == tag),
            None,
        )

    def _write_back(self, set_index: int, victim: Block) -> None:
        start = (victim.tag << (self._index_bits + self._offset_bits)) + (
            set_index << self._offset_bits
        )
        if victim.dirty:
            for i, word in enumerate(victim.data):
                self.memory(start + i, 1, word)
            self._log(start, self.block_size, ActionType.CACHE_TO_MEMORY)
        else:
            self._log(start, self.block_size, ActionType.CACHE_TO_NOWHERE)

    def _fill(self, addr: int) -> Block:
        set_index = self.set_index(addr)
        blocks = self.sets[set_index]
        block = next((b for b in blocks if not b.valid), None)
        if block is None:
            block = max(blocks, key=lambda b: b.lru_label)
            self._write_back(set_index, block)

        base = addr - addr % self.block_size
        block.data = [self.memory(base + i, 0, 0) for i in range(self.block_size)]
        block.valid = True
        block.dirty = False
        block.tag = self.tag(addr)
        self._log(base, self.block_size, ActionType.MEMORY_TO_CACHE)
        return block

    def _touch(self, block: Block, set_index: int) -> None:
        changed = block.lru_label
        for other in self.sets[set_index]:
            if other.lru_label <= changed:
                other.lru_label += 1
        block.lru_label = 0

    def _locate(self, addr: int) -> Block:
        block = self._find_hit(addr)
        if block is None:
            block = self._fill(addr)
        self._touch(block, self.set_index(addr))
        return block

    def read(self, addr: int) -> int:
        """Return the word at ``addr``, bringing its block in if needed."""
        block = self._locate(addr)
        self._log(addr, 1, ActionType.CACHE_TO_PROCESSOR)
        return block.data[self.offset(addr)]

    def write(self, addr: int, data: int) -> None:
        """Store ``data`` at ``addr`` in the cache, marking the line dirty."""
        block = self._locate(addr)
        block.valid = True
        block.dirty = True
        block.data[self.offset(addr)] = data
        self._log(addr, 1, ActionType.PROCESSOR_TO_CACHE)

    def format(self) -> str:
        """Render the contents of every line, set by set."""
        parts = ["\ncache:\n"]
        for set_no, blocks in enumerate(self.sets):
            parts.append(f"\tset {set_no}:\n")
            for block_no, block in enumerate(blocks):
                words = "".join(f" {word}" for word in block.data)
                parts.append(f"\t\t[ {block_no} ]: {{{words} }}\n")
        parts.append("end cache\n")
        return "".join(parts)