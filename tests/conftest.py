# tests/conftest.py
"""Shared test fixtures and configuration."""

import os
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from conduit.core.events import EventBus
from tests.fixtures.plugins import Journal

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: fast feedback
settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
)

# Nightly profile: thorough testing
settings.register_profile(
    "nightly",
    max_examples=1000,
    deadline=None,
)

# Debug profile: minimal examples, verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.generate],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Pipeline fixtures
# =============================================================================


@pytest.fixture
def journal() -> Journal:
    """Fresh call journal shared by the scripted plugins of one test."""
    return Journal()


@pytest.fixture
def base_config() -> dict[str, Any]:
    """Minimal valid pipeline configuration, camelCase like a config file."""
    return {
        "queue": {"bootstrap_servers": "localhost:9092"},
        "topic": "orders",
        "partitions": 30,
        "maxTasks": 1,
        "connector": {"table": "orders"},
        "pollInterval": 5,
        "awaitRetry": 1,
    }


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()
