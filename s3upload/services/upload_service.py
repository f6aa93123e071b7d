"""
Multipart upload client for a presigned-URL upload coordinator.

The coordinator is a small HTTP service in front of an S3-compatible store:
it opens the multipart upload, presigns one PUT URL per part and completes
the upload from the collected part ETags. File bytes never pass through the
coordinator; each part is PUT straight to its presigned URL.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any
from typing import Optional
from typing import Union

import httpx
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from s3upload.chunk import ChunkPlan
from s3upload.chunk import RegionReader
from s3upload.chunk import TraversalResult
from s3upload.errors import TraversalError
from s3upload.progress import ProgressReporter
from s3upload.services.trace_id_service import generate_trace_id
from s3upload.services.trace_id_service import trace_id_context
from s3upload.utils import timing_context


logger = logging.getLogger(__name__)

PART_BODY_BLOCK_SIZE = 64 * 1024


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StartUploadResponse(WireModel):
    upload_id: str = Field(alias="uploadId")


class GetUploadURLResponse(WireModel):
    presigned_url: str = Field(alias="presignedUrl")


class CompleteUploadPart(WireModel):
    etag: str = Field(alias="ETag")
    part_number: int = Field(alias="PartNumber")


class CompleteUploadParams(WireModel):
    file_name: str = Field(alias="fileName")
    parts: list[CompleteUploadPart]
    upload_id: str = Field(alias="uploadId")


class CompleteUploadRequest(WireModel):
    params: CompleteUploadParams


class CompleteUploadData(WireModel):
    location: str = Field("", alias="Location")
    bucket: str = Field("", alias="Bucket")
    key: str = Field("", alias="Key")
    etag: str = Field("", alias="ETag")


class CompleteUploadResponse(WireModel):
    data: CompleteUploadData


class UploadError(Exception):
    """Raised when a multipart upload cannot be completed."""

    def __init__(self, message: str, errors: Optional[dict[int, Exception]] = None):
        self.errors = errors or {}
        super().__init__(message)


class UploadProtocolError(UploadError):
    """Raised when the coordinator or the store answers with an unexpected status."""

    def __init__(self, operation: str, response: httpx.Response):
        self.operation = operation
        self.status_code = response.status_code
        self.body = response.text
        super().__init__(f"{operation} failed: HTTP {response.status_code} {response.text[:200]}".strip())


class MultipartUploader:
    """
    Uploads one file as a multipart upload, one part per chunk.

    Parts are uploaded in order and the upload stops at the first failed
    part, or, with ``parallel=True``, all at once with every part attempted
    before failures are reported.
    """

    def __init__(
        self,
        base_url: str,
        filename: str,
        chunk_size: int,
        *,
        parallel: bool = False,
        max_workers: Optional[int] = None,
        block_size: int = PART_BODY_BLOCK_SIZE,
        timeout: Union[float, httpx.Timeout] = 60.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.plan = ChunkPlan(filename, chunk_size)
        self.parallel = parallel
        self.max_workers = max_workers
        self.block_size = block_size
        self.upload_id: Optional[str] = None
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout, follow_redirects=True)

    def __enter__(self) -> "MultipartUploader":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the file handle and, if this uploader created it, the HTTP client."""
        if not self.plan.closed:
            self.plan.close()
        if self._owns_client:
            self._client.close()

    @staticmethod
    def _get_headers() -> dict[str, str]:
        return {"Accept": "application/json"}

    @staticmethod
    def _check(operation: str, response: httpx.Response) -> None:
        if response.status_code != httpx.codes.OK:
            raise UploadProtocolError(operation, response)

    def start_upload(self) -> str:
        """
        Open the file and obtain an upload id from the coordinator.

        Maps to: GET /start-upload?fileName=&fileType=
        """
        self.plan.open()
        response = self._client.get(
            "/start-upload",
            params={"fileName": self.plan.name, "fileType": self.plan.content_type},
            headers=self._get_headers(),
        )
        self._check("start upload", response)
        self.upload_id = StartUploadResponse.model_validate(response.json()).upload_id
        logger.info(
            f"Started upload upload_id={self.upload_id} file={self.plan.name} size={self.plan.size} "
            f"content_type={self.plan.content_type} parts={self.plan.chunk_count}"
        )
        return self.upload_id

    def get_upload_url(self, part_number: int, md5: str) -> str:
        """
        Ask the coordinator to presign the PUT for one part.

        Maps to: GET /get-upload-url?fileName=&partNumber=&uploadId=&md5=
        """
        response = self._client.get(
            "/get-upload-url",
            params={
                "fileName": self.plan.name,
                "partNumber": str(part_number),
                "uploadId": self.upload_id or "",
                "md5": md5,
            },
            headers=self._get_headers(),
        )
        self._check(f"get upload url for part {part_number}", response)
        return GetUploadURLResponse.model_validate(response.json()).presigned_url

    def upload_part(self, idx: int, reader: RegionReader) -> CompleteUploadPart:
        """Presign and PUT the region for chunk ``idx`` as part ``idx + 1``."""
        part_number = idx + 1
        digest = reader.md5()
        presigned_url = self.get_upload_url(part_number, digest.base64)
        logger.debug(f"part={part_number} size={reader.size()} md5={digest.hex} presigned_url={presigned_url}")

        with timing_context("upload_part", log_threshold_ms=1000.0, extra={"part": part_number}):
            response = self._client.put(
                presigned_url,
                content=reader.iter_chunks(self.block_size),
                headers={
                    "Content-Type": self.plan.content_type,
                    "Content-Length": str(reader.size()),
                    "Accept": "application/json",
                },
            )
        self._check(f"upload part {part_number}", response)

        etag = response.headers.get("ETag", "")
        logger.info(f"Uploaded part={part_number} size={reader.size()} etag={etag}")
        return CompleteUploadPart(etag=etag, part_number=part_number)

    def upload_parts(self) -> list[CompleteUploadPart]:
        """Upload every part; raises UploadError naming each failed part."""
        if self.parallel:
            result: TraversalResult[CompleteUploadPart] = self.plan.map_async(
                self.upload_part, max_workers=self.max_workers
            )
        else:
            result = self.plan.map(self.upload_part)

        try:
            result.raise_for_errors()
        except TraversalError as e:
            raise UploadError(f"upload_id={self.upload_id}: {e}", errors=e.errors) from e

        return [part for part in result.values if part is not None]

    def complete_upload(self, parts: list[CompleteUploadPart]) -> CompleteUploadResponse:
        """
        Complete the multipart upload from the collected part ETags.

        Maps to: POST /complete-upload
        """
        payload = CompleteUploadRequest(
            params=CompleteUploadParams(file_name=self.plan.name, parts=parts, upload_id=self.upload_id or "")
        )
        response = self._client.post(
            "/complete-upload",
            json=payload.model_dump(by_alias=True),
            headers=self._get_headers(),
        )
        self._check("complete upload", response)
        completed = CompleteUploadResponse.model_validate(response.json())
        logger.info(
            f"Completed upload upload_id={self.upload_id} location={completed.data.location} "
            f"etag={completed.data.etag}"
        )
        return completed

    def upload(self, progress_interval: Optional[float] = None) -> CompleteUploadResponse:
        """Run the whole upload: start, upload every part, complete."""
        token = trace_id_context.set(generate_trace_id())
        try:
            with timing_context("multipart_upload", extra={"file": self.plan.filename}):
                self.start_upload()
                if progress_interval:
                    reporter: Any = ProgressReporter(self.plan, progress_interval, label=self.plan.name)
                else:
                    reporter = contextlib.nullcontext()
                with reporter:
                    parts = self.upload_parts()
                return self.complete_upload(parts)
        finally:
            trace_id_context.reset(token)
