"""Shared pytest fixtures for billshare tests."""

from __future__ import annotations

import os

import pytest
from _pytest.monkeypatch import MonkeyPatch
from billshare.runtime.settings import Settings, reset_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: MonkeyPatch):
    """Keep the developer's BILLSHARE_* environment out of every test."""
    for name in list(os.environ):
        if name.startswith("BILLSHARE_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with animation timings short enough for tests."""
    return Settings(random_interval=0.01, random_duration=0.05, random_hold=0.01)
