"""Allocators for ring buffer storage owned by the buffer itself.

A buffer bound to caller storage never talks to an allocator. A buffer that
owns its storage asks its allocator for the slots once at construction and
hands them back exactly once on release.
"""

from __future__ import annotations

import logging
from multiprocessing import shared_memory
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import numpy as np

from ringfifo.const import DEFAULT_DTYPE, STORAGE_NUMPY, STORAGE_SHARED_MEMORY

if TYPE_CHECKING:
    from ringfifo.config_manager.buffer_config import RingBufferConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageAllocator(Protocol):
    """Minimal API any allocator must expose."""

    def allocate(self, capacity: int) -> Any: ...
    def release(self, storage: Any) -> None: ...


class ListAllocator:
    """Plain Python list storage, one slot per element."""

    def __init__(self, fill: Any = None) -> None:
        """Initialise the allocator.

        Args:
            fill: Initial value of every slot.
        """
        self.fill = fill

    def allocate(self, capacity: int) -> list[Any]:
        """Return a list of ``capacity`` slots."""
        return [self.fill] * capacity

    def release(self, storage: list[Any]) -> None:
        """Drop every slot so stored references can be collected."""
        storage.clear()


class NumpyAllocator:
    """ndarray storage whose first axis is the slot axis."""

    def __init__(
        self,
        dtype: Any = DEFAULT_DTYPE,
        element_shape: tuple[int, ...] = (),
    ) -> None:
        """Initialise the allocator.

        Args:
            dtype: numpy dtype of each slot.
            element_shape: shape of one element, ``()`` for scalars.
        """
        self.dtype = np.dtype(dtype)
        self.element_shape = tuple(element_shape)

    def allocate(self, capacity: int) -> np.ndarray:
        """Return a zeroed array of shape ``(capacity, *element_shape)``."""
        return np.zeros((capacity, *self.element_shape), dtype=self.dtype)

    def release(self, storage: np.ndarray) -> None:
        """Nothing to hand back; the array is freed once unreferenced."""


class SharedMemoryAllocator(NumpyAllocator):
    """ndarray storage mapped over a ``multiprocessing.shared_memory`` block.

    The allocating process owns the block and unlinks it on release. Another
    process can attach to the same slots with ``attach`` using ``name``.
    """

    def __init__(
        self,
        dtype: Any = DEFAULT_DTYPE,
        element_shape: tuple[int, ...] = (),
        name: str | None = None,
    ) -> None:
        """Initialise the allocator.

        Args:
            dtype: numpy dtype of each slot.
            element_shape: shape of one element, ``()`` for scalars.
            name: name of the shared memory block, generated when omitted.
        """
        super().__init__(dtype=dtype, element_shape=element_shape)
        self.requested_name = name
        self._blocks: dict[int, shared_memory.SharedMemory] = {}
        self._detached: list[shared_memory.SharedMemory] = []

    def _nbytes(self, capacity: int) -> int:
        slot_bytes = self.dtype.itemsize * int(np.prod(self.element_shape))
        return capacity * slot_bytes

    def allocate(self, capacity: int) -> np.ndarray:
        """Create the block and return an array view over it."""
        shm = shared_memory.SharedMemory(
            name=self.requested_name, create=True, size=self._nbytes(capacity)
        )
        storage: np.ndarray = np.ndarray(
            (capacity, *self.element_shape), dtype=self.dtype, buffer=shm.buf
        )
        storage.fill(0)
        self._blocks[id(storage)] = shm
        logger.debug(
            "Allocated shared memory block %s (%d bytes)", shm.name, shm.size
        )
        return storage

    def name_of(self, storage: np.ndarray) -> str:
        """Return the shared memory block name backing ``storage``."""
        return self._blocks[id(storage)].name

    def attach(self, name: str, capacity: int) -> tuple[np.ndarray, Any]:
        """Map an existing block created by another allocator.

        Returns:
            The array view and the ``SharedMemory`` handle. The caller owns the
            handle and must ``close()`` it; the creator unlinks the block.
        """
        shm = shared_memory.SharedMemory(name=name, create=False)
        storage: np.ndarray = np.ndarray(
            (capacity, *self.element_shape), dtype=self.dtype, buffer=shm.buf
        )
        return storage, shm

    def release(self, storage: np.ndarray) -> None:
        """Close and unlink the block backing ``storage``."""
        shm = self._blocks.pop(id(storage), None)
        if shm is None:
            logger.warning("Release of storage not allocated by this allocator")
            return
        shm.unlink()
        del storage
        try:
            shm.close()
        except BufferError:
            # array views still alive, the mapping goes when they are collected
            logger.debug(
                "Shared memory block %s unlinked, views still open", shm.name
            )
            self._detached.append(shm)
            return
        logger.debug("Released shared memory block %s", shm.name)


def build_allocator(config: RingBufferConfig) -> StorageAllocator:
    """Return the allocator matching ``config.storage``."""
    if config.storage == STORAGE_NUMPY:
        return NumpyAllocator(dtype=config.dtype, element_shape=config.element_shape)
    if config.storage == STORAGE_SHARED_MEMORY:
        return SharedMemoryAllocator(
            dtype=config.dtype,
            element_shape=config.element_shape,
            name=config.shared_memory_name,
        )
    return ListAllocator()
