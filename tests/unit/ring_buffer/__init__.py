"""Ring buffer test suite.

This package contains the tests for the ring buffer engine:
- L1: Single-element operations, predicates and wrap-around
- L2: Bulk transfer
- L3: Construction, ownership and release
- L4: Container protocol, strict variants and logging
- L5: Single-producer / single-consumer threads
"""
