"""Session fixtures for the end-to-end suite: one image build, one session per transport."""

import asyncio

import pytest
import pytest_asyncio

from test_harness.client import SESSION_FACTORIES, TransportSession
from test_harness.config.loader import HarnessConfig, load_config
from test_harness.containers import ContainerLifecycleManager
from test_harness.errors import ImageBuildError, TransportSetupError


class SessionPool:
    """Hands out one live session per transport, one transport at a time.

    Asking for a new transport releases the previous one first. A transport
    whose setup failed keeps failing for the rest of the run without being
    retried.
    """

    def __init__(self, config: HarnessConfig, manager: ContainerLifecycleManager):
        self.config = config
        self.manager = manager
        self._sessions: dict[str, TransportSession] = {}
        self._errors: dict[str, TransportSetupError] = {}

    async def get(self, transport: str) -> TransportSession:
        if transport in self._errors:
            raise self._errors[transport]
        if transport not in self._sessions:
            await self.release_all()
            try:
                self._sessions[transport] = await SESSION_FACTORIES[transport](
                    self.config, self.manager
                )
            except TransportSetupError as e:
                self._errors[transport] = e
                raise
        return self._sessions[transport]

    async def release_all(self) -> None:
        while self._sessions:
            _, session = self._sessions.popitem()
            await session.release()


@pytest.fixture(scope="session")
def harness_config() -> HarnessConfig:
    return load_config()


@pytest.fixture(scope="session")
def container_manager(harness_config):
    """Build the image once; sweep leftover containers when the run ends."""
    manager = ContainerLifecycleManager(harness_config)
    try:
        manager.build()
    except ImageBuildError as e:
        pytest.exit(f"Failed to build Docker image: {e}", returncode=1)

    yield manager

    manager.sweep_all()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def session_pool(harness_config, container_manager):
    pool = SessionPool(harness_config, container_manager)
    yield pool
    await pool.release_all()
    # Stdio containers exit once their pipe closes; give them a moment before the sweep
    await asyncio.sleep(0.5)
