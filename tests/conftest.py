import os
import sys
import warnings
from pathlib import Path

import pytest

# Ignore warnings from app.shared
warnings.filterwarnings("ignore", category=DeprecationWarning, module="app.shared.*")

# Set test environment variables: unit tests never reach a real store or verifier
os.environ.update(
    {
        "DATABASE_URL": "",
        "POSTGRES_URL": "",
        "TICKET_VERIFY_URL": "",
        "LOGFIRE_ENABLE": "false",
        "PUBLIC_BASE_URL": "http://testserver",
    }
)

# Ensure the project root is on sys.path so `app` packages resolve
PROJECT_ROOT = Path(__file__).resolve().parents[1]
root_dir_str = str(PROJECT_ROOT)
if root_dir_str not in sys.path:
    sys.path.insert(0, root_dir_str)

from app.app_config import AppEnvironConfig  # noqa: E402
from app.domain.live.live_services import LiveServices, build_live_services  # noqa: E402
from app.domain.live.store.persistence import InMemoryPersistence  # noqa: E402


@pytest.fixture
def app_config() -> AppEnvironConfig:
    """Settings with defaults and a fixed base URL."""
    return AppEnvironConfig(
        DATABASE_URL=None,
        PUBLIC_BASE_URL="http://testserver",
        TICKET_VERIFY_URL=None,
        LOGFIRE_ENABLE=False,
    )


@pytest.fixture
def memory_store() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def live_services(app_config: AppEnvironConfig, memory_store: InMemoryPersistence) -> LiveServices:
    """Real services over the in-memory store."""
    return build_live_services(app_config, store=memory_store)
