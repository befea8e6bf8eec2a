"""Level 2: Ring Buffer Bulk Transfer Tests.

Tests for multi-element transfers, covering:
- insert_array / remove_array / peek_array with and without wrap-around
- All-or-nothing atomicity
- remove_all / get_all
- ndarray storage, scalar and row elements
- Caller storage longer than the capacity
"""

from __future__ import annotations

import numpy as np
import pytest

from ringfifo.ring_buffer import RingBuffer
from ringfifo.storage import NumpyAllocator

# =============================================================================
# L2-001 to L2-006: Bulk Insert
# =============================================================================


def test_insert_array_appends_in_order(ring: RingBuffer[int]) -> None:
    """Verify a contiguous bulk insert lands in logical order."""
    assert ring.insert_array([1, 2, 3]) is True

    assert ring.count() == 3
    assert ring.get_all() == [1, 2, 3]
    assert ring.write_cursor == 3


def test_insert_array_wraps_around_storage_end(ring: RingBuffer[int]) -> None:
    """Verify a bulk insert crossing the end is split into tail and head."""
    ring.insert_array([0, 1, 2, 3, 4, 5])
    assert ring.remove_array(5) == [0, 1, 2, 3, 4]

    # write_cursor=6: two slots at the end, three at the start
    assert ring.insert_array([10, 11, 12, 13, 14]) is True

    assert ring.storage == [12, 13, 14, 3, 4, 5, 10, 11]
    assert ring.write_cursor == 3
    assert ring.get_all() == [5, 10, 11, 12, 13, 14]


def test_insert_array_ending_exactly_at_storage_end() -> None:
    """Verify a run that fills up to the last slot wraps the cursor to 0."""
    ring: RingBuffer[str] = RingBuffer.allocate(4)
    ring.insert("x")
    ring.discard()

    assert ring.insert_array(["a", "b", "c"]) is True

    assert ring.write_cursor == 0
    assert ring.storage[1:] == ["a", "b", "c"]
    assert ring.get_all() == ["a", "b", "c"]


def test_insert_array_respects_n(ring: RingBuffer[int]) -> None:
    """Verify only the first n values are transferred."""
    assert ring.insert_array([1, 2, 3, 4], n=2) is True

    assert ring.get_all() == [1, 2]


def test_insert_array_accepts_iterables(ring: RingBuffer[int]) -> None:
    """Verify generators are materialised before copying."""
    assert ring.insert_array(value * 2 for value in range(3)) is True

    assert ring.get_all() == [0, 2, 4]


def test_insert_array_rejects_bad_n(ring: RingBuffer[int]) -> None:
    """Verify n outside [0, len(values)] is a caller error."""
    with pytest.raises(ValueError):
        ring.insert_array([1, 2], n=3)
    with pytest.raises(ValueError):
        ring.insert_array([1, 2], n=-1)


def test_insert_empty_array_is_noop(ring: RingBuffer[int]) -> None:
    """Verify inserting zero elements succeeds without moving cursors."""
    assert ring.insert_array([]) is True
    assert ring.write_cursor == 0
    assert ring.is_empty()


# =============================================================================
# L2-007 to L2-010: Atomicity
# =============================================================================


def test_insert_array_too_large_writes_nothing() -> None:
    """Verify a bulk insert over the free space mutates no slot."""
    storage = ["s0", "s1", "s2", "s3"]
    ring: RingBuffer[object] = RingBuffer.bind(storage)
    ring.insert_array([1, 2])

    assert ring.insert_array([7, 8]) is False

    assert storage == [1, 2, "s2", "s3"]
    assert ring.count() == 2
    assert ring.write_cursor == 2


def test_insert_array_exactly_free_space_succeeds(ring: RingBuffer[int]) -> None:
    """Verify count() + n == usable_capacity is accepted."""
    ring.insert_array([1, 2, 3])

    assert ring.insert_array([4, 5, 6, 7]) is True
    assert ring.is_full()


def test_remove_array_too_large_consumes_nothing(ring: RingBuffer[int]) -> None:
    """Verify a bulk remove over the held count returns None and keeps data."""
    ring.insert_array([1, 2, 3])

    assert ring.remove_array(4) is None

    assert ring.count() == 3
    assert ring.read_cursor == 0


def test_peek_array_too_large_returns_none(ring: RingBuffer[int]) -> None:
    """Verify peek_array shares the all-or-nothing contract."""
    ring.insert(1)

    assert ring.peek_array(2) is None


# =============================================================================
# L2-011 to L2-016: Bulk Remove, Peek, Drain, Snapshot
# =============================================================================


def test_remove_array_wraps_around_storage_end(
    wrapped_ring: RingBuffer[int],
) -> None:
    """Verify a bulk read crossing the end reassembles logical order."""
    assert wrapped_ring.remove_array(3) == [3, 4, 5]
    assert wrapped_ring.is_empty()
    assert wrapped_ring.read_cursor == 1


def test_peek_array_does_not_consume(wrapped_ring: RingBuffer[int]) -> None:
    """Verify peek_array returns a copy and leaves cursors in place."""
    first = wrapped_ring.peek_array(2)
    first.append(99)

    assert wrapped_ring.peek_array(2) == [3, 4]
    assert wrapped_ring.count() == 3


def test_remove_all_drains(wrapped_ring: RingBuffer[int]) -> None:
    """Verify remove_all returns everything and empties the buffer."""
    assert wrapped_ring.remove_all() == [3, 4, 5]
    assert wrapped_ring.is_empty()


def test_get_all_snapshots(wrapped_ring: RingBuffer[int]) -> None:
    """Verify get_all returns everything and keeps it."""
    assert wrapped_ring.get_all() == [3, 4, 5]
    assert wrapped_ring.count() == 3


def test_drain_and_snapshot_of_empty_buffer(ring: RingBuffer[int]) -> None:
    """Verify empty buffers produce empty sequences, not failures."""
    assert ring.get_all() == []
    assert ring.remove_all() == []


def test_remove_array_rejects_negative_n(ring: RingBuffer[int]) -> None:
    """Verify a negative count is a caller error."""
    with pytest.raises(ValueError):
        ring.remove_array(-1)


# =============================================================================
# L2-017 to L2-022: ndarray Storage
# =============================================================================


def test_numpy_scalar_storage_round_trip() -> None:
    """Verify bulk transfers on borrowed 1-D ndarray storage."""
    storage = np.zeros(8, dtype=np.int64)
    ring: RingBuffer[int] = RingBuffer.bind(storage)

    assert ring.insert_array(np.arange(1, 8)) is True
    assert ring.insert(8) is False

    out = ring.remove_array(7)
    assert isinstance(out, np.ndarray)
    np.testing.assert_array_equal(out, np.arange(1, 8))
    assert ring.remove() is None


def test_numpy_wrapped_read_is_concatenated_copy() -> None:
    """Verify wrapped reads from ndarray storage return one new array."""
    storage = np.zeros(4, dtype=np.float32)
    ring: RingBuffer[float] = RingBuffer.bind(storage)
    ring.insert_array([1.0, 2.0, 3.0])
    ring.remove_array(2)
    ring.insert_array([4.0, 5.0])

    out = ring.get_all()
    storage[:] = -1

    np.testing.assert_array_equal(out, np.array([3.0, 4.0, 5.0], dtype=np.float32))
    assert out.dtype == np.float32


def test_numpy_contiguous_read_is_a_copy() -> None:
    """Verify non-wrapped reads do not return views into storage."""
    storage = np.zeros(8, dtype=np.int32)
    ring: RingBuffer[int] = RingBuffer.bind(storage)
    ring.insert_array([1, 2, 3])

    out = ring.peek_array(3)
    storage[:3] = 0

    np.testing.assert_array_equal(out, [1, 2, 3])


def test_numpy_empty_read_keeps_element_shape() -> None:
    """Verify zero-length reads keep dtype and element shape."""
    ring: RingBuffer[np.ndarray] = RingBuffer.allocate(
        4, allocator=NumpyAllocator(dtype="float64", element_shape=(3,))
    )

    out = ring.get_all()

    assert out.shape == (0, 3)
    assert out.dtype == np.float64


def test_numpy_row_elements_are_copied_out() -> None:
    """Verify row elements read from 2-D storage do not alias slots."""
    ring: RingBuffer[np.ndarray] = RingBuffer.allocate(
        4, allocator=NumpyAllocator(dtype="float64", element_shape=(3,))
    )
    ring.insert(np.array([1.0, 2.0, 3.0]))

    row = ring.peek()
    ring.storage[0] = 0.0

    np.testing.assert_array_equal(row, [1.0, 2.0, 3.0])


def test_numpy_rows_bulk_insert_and_find() -> None:
    """Verify row storage supports bulk insert and array equality search."""
    ring: RingBuffer[np.ndarray] = RingBuffer.allocate(
        8, allocator=NumpyAllocator(dtype="int16", element_shape=(2,))
    )
    rows = np.array([[1, 1], [2, 2], [3, 3]], dtype=np.int16)

    assert ring.insert_array(rows) is True

    assert ring.find(np.array([2, 2])) == 1
    assert ring.find(np.array([9, 9])) == -1
    np.testing.assert_array_equal(ring.remove_array(3), rows)


# =============================================================================
# L2-023 to L2-025: Storage Longer Than Capacity
# =============================================================================


def _wrap_once(ring: RingBuffer[int]) -> None:
    """Leave both cursors at slot 6 of 8 so the next 4-element run wraps."""
    assert ring.insert_array(range(6))
    assert ring.remove_array(6) is not None
    assert ring.insert_array([10, 11, 12, 13]) is True


def test_wrapping_list_transfer_stays_inside_capacity() -> None:
    """Verify wrapped runs never touch list slots past the capacity."""
    storage = [-1] * 10
    ring: RingBuffer[int] = RingBuffer.bind(storage, capacity=8)

    _wrap_once(ring)

    assert len(storage) == 10
    assert storage[8:] == [-1, -1]
    assert storage[:8] == [12, 13, 2, 3, 4, 5, 10, 11]
    assert ring.get_all() == [10, 11, 12, 13]
    assert ring.remove_array(4) == [10, 11, 12, 13]
    assert storage[8:] == [-1, -1]


def test_wrapping_ndarray_transfer_stays_inside_capacity() -> None:
    """Verify wrapped runs never touch ndarray slots past the capacity."""
    storage = np.full(10, -1.0)
    ring: RingBuffer[float] = RingBuffer.bind(storage, capacity=8)

    _wrap_once(ring)

    assert storage.shape == (10,)
    np.testing.assert_array_equal(storage[8:], [-1.0, -1.0])
    np.testing.assert_array_equal(ring.get_all(), [10.0, 11.0, 12.0, 13.0])
    np.testing.assert_array_equal(ring.remove_array(4), [10.0, 11.0, 12.0, 13.0])
    np.testing.assert_array_equal(storage[8:], [-1.0, -1.0])


def test_wrapped_read_ignores_slots_past_capacity() -> None:
    """Verify extra caller slots are never read back as elements."""
    storage = [0] * 8 + ["extra", "extra"]
    ring: RingBuffer[object] = RingBuffer.bind(storage, capacity=8)

    _wrap_once(ring)

    assert "extra" not in ring.get_all()
    assert ring.find("extra") == -1
