#!/usr/bin/env python3
"""Command line entry point for chunked uploads and checksums.

Usage:
    s3upload upload local/35MB.raw --base-url http://localhost:4000 --chunk-size 10000000 --parallel
    s3upload checksum local/35MB.raw --chunk-size 10000000
"""

import argparse
import logging
import sys
import time
from typing import Optional
from typing import Sequence

import httpx

from s3upload.chunk import ChunkPlan
from s3upload.config import Config
from s3upload.config import get_config
from s3upload.errors import ChunkError
from s3upload.logging_config import setup_loki_logging
from s3upload.services.upload_service import MultipartUploader
from s3upload.services.upload_service import UploadError
from s3upload.utils import TimeTracker


logger = logging.getLogger(__name__)


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="s3upload", description="Chunked multipart uploads and checksums")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload a file through the presigned-URL coordinator")
    upload.add_argument("file", help="Path of the file to upload")
    upload.add_argument("--base-url", default=config.upload_base_url, help="Upload coordinator base URL")
    upload.add_argument("--chunk-size", type=int, default=config.chunk_size_bytes, help="Part size in bytes")
    upload.add_argument(
        "--parallel",
        action="store_true",
        default=config.parallel_upload,
        help="Upload all parts concurrently instead of in order",
    )
    upload.add_argument(
        "--max-workers",
        type=int,
        default=config.upload_max_workers,
        help="Cap on concurrent part uploads with --parallel (0 = one per part)",
    )
    upload.add_argument(
        "--progress-interval",
        type=float,
        default=config.progress_interval_seconds,
        help="Seconds between progress reports (0 disables)",
    )

    checksum = sub.add_parser("checksum", help="Print the MD5 of a file and of each of its chunks")
    checksum.add_argument("file", help="Path of the file to digest")
    checksum.add_argument("--chunk-size", type=int, default=config.chunk_size_bytes, help="Chunk size in bytes")

    return parser


def run_upload(args: argparse.Namespace, config: Config) -> int:
    uploader = MultipartUploader(
        args.base_url,
        args.file,
        args.chunk_size,
        parallel=args.parallel,
        max_workers=args.max_workers or None,
        block_size=config.copy_buffer_size,
        timeout=config.httpx_timeout,
    )
    with uploader:
        completed = uploader.upload(progress_interval=args.progress_interval or None)
    print(f"location: {completed.data.location} etag: {completed.data.etag}")
    return 0


def run_checksum(args: argparse.Namespace) -> int:
    track = TimeTracker(f"checksum {args.file}")
    start = time.perf_counter()
    with ChunkPlan(args.file, args.chunk_size) as plan:
        digest = plan.md5()
        print(f"file: {plan.name} size: {plan.size} content_type: {plan.content_type}")
        print(f"md5: {digest.hex} base64: {digest.base64}")

        result = plan.map_async(lambda idx, reader: reader.md5())
        result.raise_for_errors()
        for idx, chunk_digest in enumerate(result.values):
            if chunk_digest is not None:
                print(f"chunk: {idx} md5: {chunk_digest.hex} base64: {chunk_digest.base64}")
    track(start)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = get_config()
    setup_loki_logging(config, "s3upload")

    args = build_parser(config).parse_args(argv)

    try:
        if args.command == "upload":
            return run_upload(args, config)
        return run_checksum(args)
    except (OSError, ChunkError, UploadError, httpx.HTTPError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
