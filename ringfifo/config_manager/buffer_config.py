"""Pydantic model for ring buffer configuration."""

from typing import Literal

import numpy as np
from pydantic import BaseModel, Field, field_validator

from ringfifo.config_manager.helpers import capacity_errors, parse_capacity
from ringfifo.const import (
    DEFAULT_CAPACITY,
    DEFAULT_DTYPE,
    DEFAULT_LOG_INTERVAL,
    STORAGE_LIST,
    STORAGE_NUMPY,
    STORAGE_SHARED_MEMORY,
)


class RingBufferConfig(BaseModel):
    """Configuration options for an owned ring buffer.

    Attributes:
        capacity: slot count, a power of two; usable capacity is one less.
        storage: which allocator provides the slots.
        dtype: numpy dtype of each slot for numpy and shared memory storage.
        element_shape: shape of one element, ``()`` for scalars.
        shared_memory_name: name of the shared memory block, generated if unset.
        log_interval: report every Nth rejected transfer.
    """

    capacity: int = DEFAULT_CAPACITY
    storage: Literal["list", "numpy", "shared_memory"] = STORAGE_LIST
    dtype: str = DEFAULT_DTYPE
    element_shape: tuple[int, ...] = ()
    shared_memory_name: str | None = None
    log_interval: int = Field(default=DEFAULT_LOG_INTERVAL, ge=1)

    @field_validator("capacity", mode="before")
    @classmethod
    def parse_capacity_units(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_capacity(value)
        return value

    @field_validator("capacity")
    @classmethod
    def capacity_must_be_power_of_two(cls, value: int) -> int:
        errors = capacity_errors(value)
        if errors:
            raise ValueError(errors[0])
        return value

    @field_validator("dtype")
    @classmethod
    def dtype_must_be_known(cls, value: str) -> str:
        try:
            return np.dtype(value).name
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Unknown numpy dtype: {value!r}") from exc

    @field_validator("element_shape")
    @classmethod
    def element_shape_must_be_positive(
        cls, value: tuple[int, ...]
    ) -> tuple[int, ...]:
        if any(dim < 1 for dim in value):
            raise ValueError(f"element_shape dimensions must be >= 1, got {value}")
        return value

    @property
    def uses_numpy(self) -> bool:
        """Whether slots live in an ndarray."""
        return self.storage in (STORAGE_NUMPY, STORAGE_SHARED_MEMORY)
