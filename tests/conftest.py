"""Pytest configuration for AVL comms tests."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

import pytest
from avlcomms.config.model import LinkConfig
from avlcomms.services.vehicle_link import VehicleLink
from avlcomms.state.stats import LinkStatistics

from tests.test_constants import TEST_VEHICLE_ID


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "fuzz: randomized robustness tests with a fixed seed")


@pytest.fixture(autouse=True)
def reset_logging_handlers():
    """Close and remove all root handlers after each test to prevent ResourceWarnings."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        try:
            handler.close()
        except (OSError, RuntimeError):
            pass
        root.removeHandler(handler)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host settings out of config loading."""
    monkeypatch.delenv("AVLCOMMS_CONFIG", raising=False)
    monkeypatch.delenv("AVLCOMMS_DEBUG", raising=False)


@pytest.fixture()
def link_config() -> LinkConfig:
    return LinkConfig()


@pytest.fixture()
def sent_frames() -> list[bytes]:
    return []


@pytest.fixture()
def vehicle_link(link_config: LinkConfig, sent_frames: list[bytes]) -> VehicleLink:
    return VehicleLink(
        TEST_VEHICLE_ID,
        sent_frames.append,
        config=link_config,
        stats=LinkStatistics(),
    )
