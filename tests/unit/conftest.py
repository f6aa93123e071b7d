import os
from pathlib import Path
from typing import Callable
from typing import Generator

import dotenv
import pytest


DIGITS = b"0123456789"


@pytest.fixture(scope="session", autouse=True)
def _load_test_env() -> Generator[None, None, None]:
    """Load test environment variables from base + local env files."""
    project_root = Path(__file__).parents[2]
    dotenv.load_dotenv(project_root / ".env.defaults", override=True)
    dotenv.load_dotenv(project_root / ".env.test-local", override=True)
    os.environ["ENVIRONMENT"] = "test"
    yield


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    def _make(data: bytes, name: str = "file.txt") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def digits_file(make_file: Callable[..., Path]) -> Path:
    """10-byte file used by most chunking tests (chunk size 3 -> 3,3,3,1)."""
    return make_file(DIGITS, "digits.txt")
