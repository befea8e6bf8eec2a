"""ringfifo: a fixed-capacity generic FIFO ring buffer."""

from .config_manager.buffer_config import RingBufferConfig
from .config_manager.config import ConfigManager
from .exceptions import (
    BufferReleasedError,
    CapacityExceededError,
    ConfigurationError,
    IndexOutOfRangeError,
    RingBufferError,
    UnderflowError,
)
from .ring_buffer import Ownership, RingBuffer
from .storage import (
    ListAllocator,
    NumpyAllocator,
    SharedMemoryAllocator,
    StorageAllocator,
)

__version__ = "1.0.0"

__all__ = [
    "RingBuffer",
    "Ownership",
    "RingBufferConfig",
    "ConfigManager",
    "StorageAllocator",
    "ListAllocator",
    "NumpyAllocator",
    "SharedMemoryAllocator",
    "RingBufferError",
    "ConfigurationError",
    "CapacityExceededError",
    "UnderflowError",
    "IndexOutOfRangeError",
    "BufferReleasedError",
]
