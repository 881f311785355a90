"""
Shared fixtures for configtree tests.
"""

import pytest
from pathlib import Path

from configtree.configuration import YAMLConfiguration


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Provides the directory containing the YAML test files."""
    return FIXTURES_DIR


@pytest.fixture
def config1() -> YAMLConfiguration:
    """Provides the first test configuration."""
    return YAMLConfiguration(FIXTURES_DIR / "testcombine1.yaml")


@pytest.fixture
def config2() -> YAMLConfiguration:
    """Provides the second test configuration."""
    return YAMLConfiguration(FIXTURES_DIR / "testcombine2.yaml")


class EventCollector:
    """Event listener recording all received events."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, event_type, before_update=False):
        return [e for e in self.events if e.event_type == event_type and e.before_update == before_update]


@pytest.fixture
def collector() -> EventCollector:
    """Provides a fresh event collector."""
    return EventCollector()
