import io

import pytest

from lc2k.cache import ActionType, Cache, CacheConfigError, format_action


class FakeMemory:
    def __init__(self, size=64):
        self.words = list(range(100, 100 + size))
        self.accesses = 0

    def __call__(self, addr, write_flag, write_data):
        self.accesses += 1
        if write_flag:
            self.words[addr] = write_data
        return self.words[addr]


def make(block_size, num_sets, blocks_per_set):
    memory = FakeMemory()
    out = io.StringIO()
    cache = Cache(block_size, num_sets, blocks_per_set, memory, out)
    return cache, memory, out


def lines(out):
    return out.getvalue().splitlines()


def test_format_action_text():
    assert (
        format_action(0, 4, ActionType.MEMORY_TO_CACHE)
        == "$$$ transferring word [0-3] from the memory to the cache"
    )


@pytest.mark.parametrize(
    "args, message",
    [
        ((0, 1, 1), "error: input parameters must be positive numbers"),
        ((1, -1, 1), "error: input parameters must be positive numbers"),
        ((1, 16, 17), "error: cache must be no larger than 256 blocks"),
        ((512, 1, 1), "error: blocks must be no larger than 256 words"),
    ],
)
def test_bad_configuration(args, message):
    with pytest.raises(CacheConfigError) as info:
        Cache(*args, FakeMemory(), io.StringIO())
    assert str(info.value) == message


def test_header_and_warnings():
    _, _, out = make(3, 1, 2)
    text = lines(out)
    assert text[0] == "warning: blockSize 3 is not a power of 2"
    assert "Each set in the cache contains 2 lines; there are 1 sets" in text


def test_address_fields_recompose():
    cache, _, _ = make(4, 8, 1)
    for addr in range(0, 600, 7):
        rebuilt = (cache.tag(addr) << 5) | (cache.set_index(addr) << 2) | cache.offset(addr)
        assert rebuilt == addr
        assert 0 <= cache.offset(addr) < 4
        assert 0 <= cache.set_index(addr) < 8


def test_read_miss_then_hit():
    cache, memory, out = make(4, 1, 1)
    assert cache.read(4) == memory.words[4]
    assert memory.accesses == 4
    assert lines(out)[-2:] == [
        format_action(4, 4, ActionType.MEMORY_TO_CACHE),
        format_action(4, 1, ActionType.CACHE_TO_PROCESSOR),
    ]
    assert cache.read(6) == memory.words[6]
    assert memory.accesses == 4


def test_write_then_read_returns_value():
    cache, memory, _ = make(2, 2, 2)
    cache.write(9, 77)
    assert cache.read(9) == 77
    assert memory.words[9] != 77


def test_dirty_and_clean_eviction():
    cache, memory, out = make(1, 1, 1)
    cache.write(0, 42)
    cache.read(1)
    assert memory.words[0] == 42
    assert format_action(0, 1, ActionType.CACHE_TO_MEMORY) in lines(out)
    cache.read(2)
    assert format_action(1, 1, ActionType.CACHE_TO_NOWHERE) in lines(out)


def test_write_back_rebuilds_block_address():
    cache, memory, _ = make(2, 2, 1)
    cache.write(6, 9)
    cache.read(2)
    assert memory.words[6] == 9
    assert cache.read(2) == memory.words[2]


def test_lru_replacement():
    cache, memory, out = make(1, 1, 2)
    cache.read(0)
    cache.read(1)
    cache.read(0)
    cache.read(2)
    assert format_action(1, 1, ActionType.CACHE_TO_NOWHERE) in lines(out)
    before = memory.accesses
    assert cache.read(0) == memory.words[0]
    assert memory.accesses == before


def test_format_lists_block_contents():
    cache, memory, _ = make(4, 1, 1)
    cache.read(4)
    text = cache.format()
    assert text.startswith("\ncache:\n\tset 0:\n")
    assert text.endswith("end cache\n")
    words = " ".join(str(w) for w in memory.words[4:8])
    assert f"\t\t[ 0 ]: {{ {words} }}\n" in text