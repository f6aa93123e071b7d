import dataclasses

import dotenv
import httpx

from s3upload.utils import env


dotenv.load_dotenv()


@dataclasses.dataclass
class Config:
    """Client configuration settings."""

    # Logging
    log_level: str = env("LOG_LEVEL:INFO")
    loki_url: str = env("LOKI_URL:", convert=str)
    loki_enabled: bool = env("LOKI_ENABLED:false", convert=lambda x: x.lower() == "true")
    environment: str = env("ENVIRONMENT:local")

    # Upload coordinator
    upload_base_url: str = env("S3UPLOAD_BASE_URL:http://localhost:4000")
    http_timeout_seconds: float = env("S3UPLOAD_HTTP_TIMEOUT_SECONDS:60.0", convert=float)

    # Chunking
    chunk_size_bytes: int = env("S3UPLOAD_CHUNK_SIZE_BYTES:10000000", convert=int)  # 10 MB
    parallel_upload: bool = env("S3UPLOAD_PARALLEL:false", convert=lambda x: x.lower() == "true")
    # 0 means one worker per part
    upload_max_workers: int = env("S3UPLOAD_MAX_WORKERS:0", convert=int)

    # Progress reporting
    progress_interval_seconds: float = env("S3UPLOAD_PROGRESS_INTERVAL_SECONDS:1.0", convert=float)

    # block size for streamed part bodies
    copy_buffer_size: int = env("S3UPLOAD_COPY_BUFFER_SIZE:65536", convert=int)

    @property
    def httpx_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.http_timeout_seconds, connect=10.0)


def get_config() -> Config:
    """Get client configuration."""
    cfg = Config()

    if cfg.chunk_size_bytes <= 0:
        raise ValueError(f"S3UPLOAD_CHUNK_SIZE_BYTES must be positive, got {cfg.chunk_size_bytes}")
    if cfg.progress_interval_seconds <= 0:
        raise ValueError(f"S3UPLOAD_PROGRESS_INTERVAL_SECONDS must be positive, got {cfg.progress_interval_seconds}")
    if cfg.copy_buffer_size <= 0:
        raise ValueError(f"S3UPLOAD_COPY_BUFFER_SIZE must be positive, got {cfg.copy_buffer_size}")
    if cfg.upload_max_workers < 0:
        raise ValueError(f"S3UPLOAD_MAX_WORKERS must not be negative, got {cfg.upload_max_workers}")

    # Normalize base url (strip quotes/whitespace and trailing slash)
    base_url = (cfg.upload_base_url or "").strip().strip("\"'").rstrip("/")
    object.__setattr__(cfg, "upload_base_url", base_url)

    return cfg
