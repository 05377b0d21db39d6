"""Tests configuration and fixtures."""

import pytest

from harbor.config import Settings
from harbor.config.settings import PersistenceSettings
from harbor.infrastructure.scheduling.timers import VirtualTimerService
from harbor.infrastructure.transport.memory import InMemoryTransport
from harbor.services.persistence.stores import InMemoryRecordStore
from harbor.services.session.counselor_directory import InMemoryCounselorDirectory
from harbor.services.session.session_service import CrisisSessionService, build_dependencies


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings; persistence retries do not sleep."""
    return Settings(
        env="development",
        debug=True,
        persistence=PersistenceSettings(retry_min_wait=0, retry_max_wait=0),
    )


@pytest.fixture
def timers() -> VirtualTimerService:
    """Virtual scheduler that also serves as the clock."""
    return VirtualTimerService()


@pytest.fixture
def transport(timers: VirtualTimerService) -> InMemoryTransport:
    return InMemoryTransport(clock=timers)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def directory() -> InMemoryCounselorDirectory:
    return InMemoryCounselorDirectory()


@pytest.fixture
def service(
    test_settings: Settings,
    timers: VirtualTimerService,
    transport: InMemoryTransport,
    store: InMemoryRecordStore,
    directory: InMemoryCounselorDirectory,
) -> CrisisSessionService:
    """Session service wired to virtual timers and in-memory collaborators."""
    deps = build_dependencies(
        test_settings,
        transport=transport,
        timers=timers,
        store=store,
        directory=directory,
    )
    return CrisisSessionService(deps)

