# lc2k

This package provides an assembler and a simulator for LC2K, a small
8-register, word-addressed instruction set. The simulator sends every
instruction fetch, load and store through a set-associative cache. The cache
is write-back and write-allocate, and it replaces lines in LRU order. The
simulator logs each transfer between the processor, the cache and memory.

## Installation

```
pip install .
```

## Assembling

```
lc2k-asm program.as program.mc
```

The assembler reads an LC2K assembly file and writes one decimal machine word
per line. It supports the opcodes `add`, `nor`, `lw`, `sw`, `beq`, `jalr`,
`halt`, `noop` and `.fill`. Labels can be used in three places:

- as `lw` and `sw` offsets
- as `beq` targets, which are resolved relative to the PC
- as `.fill` values

The assembler prints an error and exits with status 1 in these cases:

- an unknown opcode
- a register outside 0–7, or a register that is not a number
- a duplicate or undefined label
- a numeric offset outside -32768..32767
- a line that is too long

A blank line followed by more code gives the message
`Invalid Assembly: Empty line at address N` and exit status 2. Blank lines at
the end of the file are allowed.

## Simulating

```
lc2k-sim program.mc BLOCK_SIZE NUM_SETS BLOCKS_PER_SET
```

For example, `lc2k-sim program.mc 4 2 1` simulates a direct-mapped cache
with two sets, each holding one 4-word block.

The cache geometry has these limits:

- All three values must be positive.
- The cache holds at most 256 blocks in total.
- A block holds at most 256 words.

A block size or set count that is not a power of 2 only produces a warning.

Each cache transfer is logged as a line like:

```
$$$ transferring word [0-3] from the memory to the cache
```

When the program halts, the simulator prints three things:

- the number of instructions executed
- the program counter
- the memory in use and the registers

## Library use

```python
from lc2k.assembler import assemble
from lc2k.simulator import Machine, load_program

source = ["        lw 0 1 five", "        halt", "five    .fill 5"]
words = assemble(source)            # list of decimal strings
machine = Machine(load_program(words), 1, 1, 1)
machine.run()                       # returns the instruction count
print(machine.registers[1])         # 5
```

`Machine` writes its log to standard output by default. Pass any text stream
as `out` to send the log there instead.

`lc2k.cache.Cache` can be used on its own. Its constructor takes the block
size, the number of sets, the blocks per set and a memory callable. The
callable is called as `memory(addr, write_flag, write_data)` and must return
the word at `addr`; `lc2k.simulator.Memory(...).access` is one such callable.
Use `Cache.read(addr)` and `Cache.write(addr, data)` to access words through
the cache, and `Cache.format()` to render the contents of every line.
`lc2k.cache.format_action` builds a single log line.

`lc2k.assembler.parse_line` splits one line into an `Instruction`, and
`lc2k.assembler.check_blank_lines` checks a whole file for line length and
blank lines. Assembly errors raise `AssemblerError`, which carries an
`exit_code`. The simulator raises `SimulatorError`, and the cache raises
`CacheConfigError`.

## Limitations

The simulator prints no hit, miss or access summary at the end of a run.
`Memory.accesses` records how many times main memory was accessed, and can be
read from `machine.memory.accesses` after a run.