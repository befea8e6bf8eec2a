"""Shared fixtures for ring buffer tests."""

import pytest

from ringfifo.ring_buffer import RingBuffer


@pytest.fixture
def ring() -> RingBuffer[int]:
    """Owned list-backed buffer with 8 slots (7 usable)."""
    return RingBuffer.allocate(8)


@pytest.fixture
def wrapped_ring() -> RingBuffer[int]:
    """4-slot buffer holding 3, 4, 5 with the write cursor wrapped.

    Raw storage afterwards is [5, 2, 3, 4] with read_cursor=2, write_cursor=1.
    """
    ring: RingBuffer[int] = RingBuffer.bind([None] * 4)
    for value in (1, 2, 3):
        assert ring.insert(value)
    assert ring.remove() == 1
    assert ring.remove() == 2
    assert ring.insert(4)
    assert ring.insert(5)
    return ring
