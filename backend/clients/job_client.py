import logging
from dataclasses import dataclass

import httpx

from backend.core.errors import NotFound, UpstreamServiceError
from backend.models.job import JobStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobInfo:
    id: str
    title: str
    description: str
    location: str
    status: str


class JobServiceClient:
    def __init__(self, base_url: str, timeout: float = 10, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def get_job(self, job_id: str) -> JobInfo:
        try:
            response = self._client.get(f"/api/v1/jobs/{job_id}")
        except httpx.HTTPError as exc:
            logger.error('Job service unreachable: %s', exc)
            raise UpstreamServiceError("job service unavailable") from exc

        if response.status_code == 404:
            raise NotFound("job not found")
        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamServiceError("job service returned an invalid response") from exc
        if not response.is_success or not body.get("success"):
            raise UpstreamServiceError(body.get("error") or f"job service returned {response.status_code}")

        data = body.get("data") or {}
        return JobInfo(
            id=str(data.get("id", job_id)),
            title=data.get("title") or "",
            description=data.get("description") or "",
            location=data.get("location") or "",
            status=data.get("status") or "",
        )

    def is_job_open(self, job_id: str) -> bool:
        return self.get_job(job_id).status == JobStatus.OPEN.value
