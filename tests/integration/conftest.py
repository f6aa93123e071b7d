import os
from pathlib import Path
from typing import Generator

import dotenv
import pytest


@pytest.fixture(scope="session", autouse=True)
def _load_test_env() -> Generator[None, None, None]:
    """Load test environment variables from base + local env files."""
    project_root = Path(__file__).parents[2]
    dotenv.load_dotenv(project_root / ".env.defaults", override=True)
    dotenv.load_dotenv(project_root / ".env.test-local", override=True)
    os.environ["ENVIRONMENT"] = "test"
    yield


@pytest.fixture
def large_file(tmp_path: Path) -> Path:
    """A few MiB of random bytes whose size is not a multiple of the chunk sizes used."""
    path = tmp_path / "3M.dat"
    path.write_bytes(os.urandom(3 * 1024 * 1024 + 4099))
    return path
