"""Constants for the ring buffer package."""

DEFAULT_CAPACITY = 1024  # slots, usable capacity is one less
DEFAULT_DTYPE = "float64"
DEFAULT_LOG_INTERVAL = 1000  # log every Nth rejected transfer

STORAGE_LIST = "list"
STORAGE_NUMPY = "numpy"
STORAGE_SHARED_MEMORY = "shared_memory"

ENV_PREFIX = "RINGFIFO_"
CONFIG_ENCODING = "utf-8"
