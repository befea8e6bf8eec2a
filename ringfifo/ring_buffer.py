"""Fixed-capacity FIFO ring buffer over borrowed or owned storage.

Indices follow the power-of-two mask convention: ``capacity`` slots, one of
which always stays free so that ``write_cursor == read_cursor`` only ever means
empty. Usable capacity is therefore ``capacity - 1``.

- Single writer (insert family moves ``write_cursor`` only).
- Single reader (remove family moves ``read_cursor`` only).

Both cursors are published after the slot copy, so one producer thread and one
consumer thread may share a buffer without a lock. Any other sharing needs a
lock held by the caller around every call.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable, Iterator, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import numpy as np

from ringfifo.config_manager.helpers import capacity_errors, next_power_of_two
from ringfifo.const import DEFAULT_LOG_INTERVAL
from ringfifo.exceptions import (
    BufferReleasedError,
    CapacityExceededError,
    ConfigurationError,
    IndexOutOfRangeError,
    UnderflowError,
)
from ringfifo.sampled_logger import make_sampled_logger
from ringfifo.storage import ListAllocator, StorageAllocator, build_allocator

if TYPE_CHECKING:
    from ringfifo.config_manager.buffer_config import RingBufferConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Ownership(str, Enum):
    """Who frees the storage a buffer is bound to."""

    OWNED = "owned"
    BORROWED = "borrowed"


def _default_equals(stored: Any, value: Any) -> bool:
    if isinstance(stored, np.ndarray) or isinstance(value, np.ndarray):
        return bool(np.array_equal(stored, value))
    return bool(stored == value)


class RingBuffer(Generic[T]):
    """Generic ring buffer with a sacrificed sentinel slot.

    Every fallible operation checks its precondition before touching state and
    reports failure through its return value: ``False`` for the insert family,
    ``discard`` and ``set_at``; the ``default`` argument (``None`` unless
    given) for single-element reads; ``None`` for bulk reads. ``put`` and
    ``get`` raise instead, in the manner of ``queue.Queue.put_nowait``.
    """

    def __init__(
        self,
        capacity: int | None = None,
        storage: Any = None,
        *,
        allocator: StorageAllocator | None = None,
        log_interval: int = DEFAULT_LOG_INTERVAL,
    ) -> None:
        """Bind the buffer to storage, allocating it when none is given.

        Args:
            capacity: Number of slots, a power of two. Defaults to
                ``len(storage)`` for borrowed storage.
            storage: Caller-owned sequence of slots (list, ndarray, ...). The
                buffer never frees or resizes it.
            allocator: Allocator for owned storage, ``ListAllocator`` when
                omitted. Only valid without ``storage``.
            log_interval: Report every Nth rejected transfer.

        Raises:
            ConfigurationError: If the capacity or the storage/allocator
                combination is invalid.
        """
        errors: list[str] = []
        if storage is not None and allocator is not None:
            errors.append("Pass either caller storage or an allocator, not both")
        if capacity is None:
            if storage is None:
                errors.append("capacity is required when no storage is given")
                raise ConfigurationError(errors)
            capacity = len(storage)
        errors.extend(capacity_errors(capacity))
        if not errors and storage is not None and capacity > len(storage):
            errors.append(
                f"capacity {capacity} exceeds storage length {len(storage)}"
            )
        if errors:
            raise ConfigurationError(errors)

        self._capacity = capacity
        self._mask = capacity - 1
        self._in = 0
        self._out = 0

        if storage is None:
            self._allocator: StorageAllocator | None = allocator or ListAllocator()
            self._ownership = Ownership.OWNED
            self._storage = self._allocator.allocate(capacity)
        else:
            self._allocator = None
            self._ownership = Ownership.BORROWED
            self._storage = storage

        self._log_overflow = make_sampled_logger(
            "Ring buffer rejection #%d (%s): requested %d, free %d",
            log_interval=log_interval,
            target_logger=logger,
            level=logging.WARNING,
        )
        self._log_underflow = make_sampled_logger(
            "Ring buffer rejection #%d (%s): requested %d, held %d",
            log_interval=log_interval,
            target_logger=logger,
            level=logging.DEBUG,
        )
        logger.debug(
            "Ring buffer bound: %d slots, %s storage", capacity, self._ownership.value
        )

    # ------------------------------------------------------------------ #
    # construction helpers
    # ------------------------------------------------------------------ #

    @classmethod
    def bind(cls, storage: Any, capacity: int | None = None) -> RingBuffer[T]:
        """Wrap caller-owned storage."""
        return cls(capacity, storage)

    @classmethod
    def allocate(
        cls, capacity: int, allocator: StorageAllocator | None = None
    ) -> RingBuffer[T]:
        """Create a buffer that owns ``capacity`` freshly allocated slots."""
        return cls(capacity, allocator=allocator)

    @classmethod
    def for_usable_capacity(
        cls, usable: int, allocator: StorageAllocator | None = None
    ) -> RingBuffer[T]:
        """Create the smallest owned buffer holding at least ``usable`` elements."""
        if usable < 0:
            raise ConfigurationError([f"usable capacity must be >= 0, got {usable}"])
        return cls(next_power_of_two(usable + 1), allocator=allocator)

    @classmethod
    def from_config(cls, config: RingBufferConfig) -> RingBuffer[T]:
        """Create an owned buffer described by a resolved configuration."""
        return cls(
            config.capacity,
            allocator=build_allocator(config),
            log_interval=config.log_interval,
        )

    # ------------------------------------------------------------------ #
    # state
    # ------------------------------------------------------------------ #

    @property
    def capacity(self) -> int:
        """Total slot count, one more than the usable capacity."""
        return self._capacity

    @property
    def usable_capacity(self) -> int:
        return self._capacity - 1

    @property
    def mask(self) -> int:
        return self._mask

    @property
    def ownership(self) -> Ownership:
        return self._ownership

    @property
    def allocator(self) -> StorageAllocator | None:
        return self._allocator

    @property
    def storage(self) -> Any:
        """The bound slots, ``None`` once released."""
        return self._storage

    @property
    def write_cursor(self) -> int:
        return self._in

    @property
    def read_cursor(self) -> int:
        return self._out

    @property
    def released(self) -> bool:
        return self._storage is None

    def _check_bound(self) -> None:
        if self._storage is None:
            raise BufferReleasedError("Ring buffer has been released")

    def is_empty(self) -> bool:
        """Return True when no element is held."""
        self._check_bound()
        return self._in == self._out

    def is_full(self) -> bool:
        """Return True when the next insert would fail."""
        self._check_bound()
        return ((self._in + 1) & self._mask) == self._out

    def count(self) -> int:
        """Return the number of elements held."""
        self._check_bound()
        return (self._in - self._out) & self._mask

    def unused_count(self) -> int:
        """Return how many more elements fit."""
        return self.usable_capacity - self.count()

    # ------------------------------------------------------------------ #
    # slot access
    # ------------------------------------------------------------------ #

    def _load(self, slot: int) -> Any:
        item = self._storage[slot]
        if isinstance(item, np.ndarray):
            # rows of a 2-D storage are views; hand out a copy
            return item.copy()
        return item

    def _read_run(self, start: int, n: int) -> Any:
        """Copy ``n`` slots starting at ``start``, following the wrap."""
        storage = self._storage
        end = self._capacity
        end_space = end - start
        if isinstance(storage, np.ndarray):
            if n <= end_space:
                return storage[start : start + n].copy()
            return np.concatenate((storage[start:end], storage[: n - end_space]))

        if n <= end_space:
            return list(storage[start : start + n])
        return list(storage[start:end]) + list(storage[: n - end_space])

    def _write_run(self, start: int, values: Any, n: int) -> None:
        """Copy ``values[:n]`` into slots starting at ``start``, following the wrap."""
        storage = self._storage
        end = self._capacity
        end_space = end - start
        if n <= end_space:
            storage[start : start + n] = values[:n]
        else:
            storage[start:end] = values[:end_space]
            storage[: n - end_space] = values[end_space:n]

    # ------------------------------------------------------------------ #
    # producer API
    # ------------------------------------------------------------------ #

    def insert(self, value: T) -> bool:
        """Append one element.

        Returns:
            False, leaving the buffer untouched, if it is full.
        """
        self._check_bound()
        next_in = (self._in + 1) & self._mask
        if next_in == self._out:
            self._log_overflow("insert", 1, 0)
            return False
        self._storage[self._in] = value
        self._in = next_in
        return True

    def put(self, value: T) -> None:
        """Append one element or raise ``CapacityExceededError``."""
        if self.is_full():
            raise CapacityExceededError(
                f"Ring buffer full ({self.usable_capacity} elements)"
            )
        self.insert(value)

    def insert_array(self, values: Iterable[T], n: int | None = None) -> bool:
        """Append the first ``n`` of ``values`` (all of them by default).

        All or nothing: if fewer than ``n`` slots are free nothing is written.

        Raises:
            ValueError: If ``n`` is negative or larger than ``len(values)``.
        """
        self._check_bound()
        if not isinstance(values, (Sequence, np.ndarray)):
            values = list(values)
        if n is None:
            n = len(values)
        if not 0 <= n <= len(values):
            raise ValueError(f"n={n} outside [0, {len(values)}]")

        free = self.unused_count()
        if n > free:
            self._log_overflow("insert_array", n, free)
            return False
        if n:
            self._write_run(self._in, values, n)
            self._in = (self._in + n) & self._mask
        return True

    def set_at(self, index: int, value: T) -> bool:
        """Overwrite the element at logical position ``index`` (0 = oldest).

        Returns:
            False if ``index`` is outside ``[0, count())``.
        """
        if not 0 <= index < self.count():
            return False
        self._storage[(self._out + index) & self._mask] = value
        return True

    # ------------------------------------------------------------------ #
    # consumer API
    # ------------------------------------------------------------------ #

    def remove(self, default: Any = None) -> T | Any:
        """Pop the oldest element, or return ``default`` when empty.

        The vacated slot keeps its contents until a later insert reuses it.
        """
        self._check_bound()
        if self._in == self._out:
            self._log_underflow("remove", 1, 0)
            return default
        value = self._load(self._out)
        self._out = (self._out + 1) & self._mask
        return value

    def get(self) -> T:
        """Pop the oldest element or raise ``UnderflowError``."""
        if self.is_empty():
            raise UnderflowError("Ring buffer empty")
        return self.remove()

    def peek(self, default: Any = None) -> T | Any:
        """Return the oldest element without consuming it."""
        self._check_bound()
        if self._in == self._out:
            self._log_underflow("peek", 1, 0)
            return default
        return self._load(self._out)

    def discard(self) -> bool:
        """Drop the oldest element without copying it out."""
        self._check_bound()
        if self._in == self._out:
            self._log_underflow("discard", 1, 0)
            return False
        self._out = (self._out + 1) & self._mask
        return True

    def get_at(self, index: int, default: Any = None) -> T | Any:
        """Return the element at logical position ``index`` (0 = oldest).

        Returns ``default`` if ``index`` is outside ``[0, count())``.
        """
        if not 0 <= index < self.count():
            return default
        return self._load((self._out + index) & self._mask)

    def find(
        self, value: Any, equals: Callable[[Any, Any], bool] | None = None
    ) -> int:
        """Return the logical index of the first element matching ``value``.

        Args:
            value: Element to look for.
            equals: ``equals(stored, value)`` predicate. Defaults to ``==``,
                or ``numpy.array_equal`` for array elements.

        Returns:
            The index, oldest first, or -1 when no element matches.
        """
        eq = equals or _default_equals
        storage = self._storage
        for index in range(self.count()):
            if eq(storage[(self._out + index) & self._mask], value):
                return index
        return -1

    def remove_array(self, n: int) -> Any:
        """Pop the ``n`` oldest elements, oldest first.

        Returns:
            A new list (or ndarray for ndarray storage), or None if fewer than
            ``n`` elements are held. Nothing is consumed on failure.
        """
        self._check_bound()
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")
        held = self.count()
        if n > held:
            self._log_underflow("remove_array", n, held)
            return None
        values = self._read_run(self._out, n)
        self._out = (self._out + n) & self._mask
        return values

    def peek_array(self, n: int) -> Any:
        """Return the ``n`` oldest elements without consuming them."""
        self._check_bound()
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")
        held = self.count()
        if n > held:
            self._log_underflow("peek_array", n, held)
            return None
        return self._read_run(self._out, n)

    def remove_all(self) -> Any:
        """Drain every element, oldest first."""
        return self.remove_array(self.count())

    def get_all(self) -> Any:
        """Snapshot every element, oldest first, without consuming."""
        return self.peek_array(self.count())

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #

    def reset(self) -> None:
        """Forget every element. Slot contents are left as they are."""
        self._check_bound()
        self._in = 0
        self._out = 0
        logger.debug("Ring buffer reset (%d slots)", self._capacity)

    def release(self) -> None:
        """Unbind the storage, handing owned storage back to its allocator.

        Borrowed storage is never modified. Calling release twice is harmless.
        """
        if self._storage is None:
            return
        storage = self._storage
        self._storage = None
        self._in = 0
        self._out = 0
        if self._ownership is Ownership.OWNED and self._allocator is not None:
            self._allocator.release(storage)
            logger.debug("Released owned storage (%d slots)", self._capacity)
        else:
            logger.debug("Unbound borrowed storage (%d slots)", self._capacity)

    def __enter__(self) -> RingBuffer[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    # ------------------------------------------------------------------ #
    # container protocol
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[T]:
        return iter(self.get_all())

    def __contains__(self, value: object) -> bool:
        return self.find(value) != -1

    def _logical_index(self, index: Any) -> int:
        index = operator.index(index)
        held = self.count()
        if index < 0:
            index += held
        if not 0 <= index < held:
            raise IndexOutOfRangeError(
                f"index {index} out of range for {held} elements"
            )
        return index

    def __getitem__(self, index: int) -> T:
        return self._load((self._out + self._logical_index(index)) & self._mask)

    def __setitem__(self, index: int, value: T) -> None:
        self._storage[(self._out + self._logical_index(index)) & self._mask] = value

    def __repr__(self) -> str:
        if self._storage is None:
            return f"RingBuffer(capacity={self._capacity}, released)"
        return (
            f"RingBuffer(capacity={self._capacity}, count={self.count()}, "
            f"ownership={self._ownership.value})"
        )
