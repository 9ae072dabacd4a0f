"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and a few shared
configuration trees. Fixtures in the isolation section are autouse.
"""

from __future__ import annotations

from datetime import timedelta
import logging
import os
from typing import Any

import pytest

from driverconf import DefaultOption
from driverconf.resolve import ResolvedConfig, resolve
from driverconf.tree import expand

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr(
        "driverconf.settings.load_dotenv", lambda *_args, **_kwargs: False
    )


@pytest.fixture(autouse=True)
def isolate_driverconf_env(request, monkeypatch):
    """Clear DRIVERCONF_* variables so the host environment cannot leak in.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("DRIVERCONF_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# Shared Trees
# =============================================================================

SLOW_ENTRIES: dict[str, Any] = {
    DefaultOption.REQUEST_TIMEOUT.path: timedelta(milliseconds=500),
    DefaultOption.REQUEST_CONSISTENCY.path: "LOCAL_ONE",
    DefaultOption.REQUEST_PAGE_SIZE.path: 5000,
    f"profiles.slow.{DefaultOption.REQUEST_CONSISTENCY.path}": "EACH_QUORUM",
    f"profiles.slow.{DefaultOption.REQUEST_TIMEOUT.path}": timedelta(seconds=5),
    "profiles.analytics.basic.request.page-size": 100,
}


@pytest.fixture
def slow_entries() -> dict[str, Any]:
    """Flat entries: defaults plus two secondary profiles."""
    return dict(SLOW_ENTRIES)


@pytest.fixture
def slow_config(slow_entries) -> ResolvedConfig:
    """Generation 1 resolved from ``slow_entries``."""
    return resolve(expand(slow_entries), 1)
