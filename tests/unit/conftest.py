"""Shared fixtures for unit tests."""

import os

import pytest

from ringfifo.const import ENV_PREFIX


@pytest.fixture(autouse=True)
def clean_ringfifo_env(monkeypatch):
    """Keep RINGFIFO_* variables from the host out of every test."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    yield
