"""Configuration for ring buffers built from files and the environment."""
