import httpx
import pytest

from s3upload.config import get_config


def test_defaults_from_env_file():
    config = get_config()

    assert config.environment == "test"
    assert config.chunk_size_bytes == 10_000_000
    assert config.parallel_upload is False
    assert config.upload_max_workers == 0
    assert config.copy_buffer_size == 64 * 1024


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("S3UPLOAD_CHUNK_SIZE_BYTES", "5242880")
    monkeypatch.setenv("S3UPLOAD_PARALLEL", "True")
    monkeypatch.setenv("S3UPLOAD_HTTP_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("S3UPLOAD_COPY_BUFFER_SIZE", "8192")

    config = get_config()

    assert config.chunk_size_bytes == 5 * 1024 * 1024
    assert config.parallel_upload is True
    assert config.copy_buffer_size == 8192
    assert isinstance(config.httpx_timeout, httpx.Timeout)
    assert config.httpx_timeout.read == 12.5
    assert config.httpx_timeout.connect == 10.0


def test_base_url_is_normalized(monkeypatch):
    monkeypatch.setenv("S3UPLOAD_BASE_URL", ' "http://localhost:4000/" ')

    assert get_config().upload_base_url == "http://localhost:4000"


@pytest.mark.parametrize(
    "key,value",
    [
        ("S3UPLOAD_CHUNK_SIZE_BYTES", "0"),
        ("S3UPLOAD_CHUNK_SIZE_BYTES", "-1"),
        ("S3UPLOAD_PROGRESS_INTERVAL_SECONDS", "0"),
        ("S3UPLOAD_MAX_WORKERS", "-2"),
        ("S3UPLOAD_COPY_BUFFER_SIZE", "0"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, key, value):
    monkeypatch.setenv(key, value)

    with pytest.raises(ValueError, match=key):
        get_config()


def test_unparseable_value(monkeypatch):
    monkeypatch.setenv("S3UPLOAD_CHUNK_SIZE_BYTES", "ten megabytes")

    with pytest.raises(ValueError):
        get_config()
