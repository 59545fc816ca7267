import pytest

from nanokernel.heap import HEADER_SIZE, HEAP_SIZE, HEAP_START, Heap


def _accounted(heap):
    return sum(size + HEADER_SIZE for _, size, _ in heap.blocks())


def test_fresh_heap_is_one_free_block():
    heap = Heap()
    assert heap.blocks() == [(HEAP_START + HEADER_SIZE, HEAP_SIZE - HEADER_SIZE, True)]


def test_first_allocation_address():
    heap = Heap()
    assert heap.malloc(100) == HEAP_START + HEADER_SIZE


def test_allocations_do_not_overlap():
    heap = Heap()
    a = heap.malloc(100)
    b = heap.malloc(50)
    assert b >= a + 100 + HEADER_SIZE
    assert _accounted(heap) == HEAP_SIZE


def test_free_then_reuse_same_address():
    heap = Heap()
    a = heap.malloc(64)
    heap.free(a)
    assert heap.malloc(64) == a


def test_free_merges_with_following_free_block():
    heap = Heap()
    a = heap.malloc(64)
    heap.free(a)
    assert len(heap.blocks()) == 1
    assert heap.blocks()[0][1] == HEAP_SIZE - HEADER_SIZE


def test_free_does_not_merge_with_previous():
    heap = Heap()
    a = heap.malloc(64)
    b = heap.malloc(64)
    heap.malloc(64)
    heap.free(a)
    heap.free(b)
    assert [free for _, _, free in heap.blocks()] == [True, True, False, True]
    assert _accounted(heap) == HEAP_SIZE


def test_exhaustion_raises_memory_error():
    heap = Heap(1024)
    with pytest.raises(MemoryError):
        heap.malloc(1024)


def test_exact_fit_takes_whole_block():
    heap = Heap(1024)
    total = heap.blocks()[0][1]
    heap.malloc(total - HEADER_SIZE)
    assert heap.blocks() == [(HEAP_START + HEADER_SIZE, total, False)]
    with pytest.raises(MemoryError):
        heap.malloc(0)


def test_free_none_is_ignored():
    heap = Heap()
    heap.malloc(10)
    before = heap.blocks()
    heap.free(None)
    assert heap.blocks() == before


def test_free_unknown_address():
    heap = Heap()
    with pytest.raises(ValueError):
        heap.free(HEAP_START + 1)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Heap().malloc(-1)


def test_too_small_heap_rejected():
    with pytest.raises(ValueError):
        Heap(HEADER_SIZE)