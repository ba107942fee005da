"""Shared pytest fixtures for pkt tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from pkt.config import ManagedHome, Settings
from pkt.testing import FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def home(tmp_path: Path) -> ManagedHome:
    return ManagedHome(tmp_path / "pkt-home")


@pytest.fixture
def settings(home: ManagedHome, tmp_path: Path) -> Settings:
    return Settings(
        home=home,
        registry_path=tmp_path / "registry.toml",
        package_managers=("pkt-test-no-such-pm",),
        java_runtime="java",
    )
