"""HTTP client for the Encore transcoding API."""

import httpx

from ..events import NormalizerEvents
from ..exceptions import EncoreError
from ..log_config import get_context_logger
from .types import EncoreJob


class EncoreClient:
    """
    Submits and fetches Encore jobs.

    Examples:
        >>> client = EncoreClient("https://encore.example.com", http_client, access_token="...")
        >>> submitted = await client.submit_job(job)
        >>> job = await client.get_job(submitted.id)
    """

    def __init__(self, base_url: str, http_client: httpx.AsyncClient, access_token: str | None = None):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client
        self.access_token = access_token
        self.logger = get_context_logger("encore_client")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/hal+json",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["x-jwt"] = f"Bearer {self.access_token}"
        return headers

    def job_url(self, job_id: str) -> str:
        return f"{self.base_url}/encoreJobs/{job_id}"

    async def submit_job(self, job: EncoreJob) -> EncoreJob:
        """Create a job.

        Returns:
            The job as registered by Encore (with its ``id``)

        Raises:
            EncoreError: On transport errors, non-201 answers or undecodable bodies
        """
        try:
            response = await self.http_client.post(
                f"{self.base_url}/encoreJobs",
                json=job.to_dict(),
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise EncoreError(f"Failed to submit Encore job: {str(e)}") from e

        if response.status_code != 201:
            raise EncoreError(
                "Encore rejected the job",
                status_code=response.status_code,
                context={"external_id": job.external_id, "body": response.text[:200]},
            )
        try:
            submitted = EncoreJob.from_dict(response.json())
        except ValueError as e:
            raise EncoreError("Failed to decode Encore job response") from e

        self.logger.info(
            NormalizerEvents.JOB_SUBMITTED,
            job_id=submitted.id,
            external_id=submitted.external_id,
        )
        return submitted

    async def get_job(self, job_id: str) -> EncoreJob:
        """Fetch a job by id.

        Raises:
            EncoreError: On transport errors, non-200 answers or undecodable bodies
        """
        self.logger.debug("Getting Encore job", job_id=job_id)
        try:
            response = await self.http_client.get(self.job_url(job_id), headers=self._headers())
        except httpx.HTTPError as e:
            raise EncoreError(f"Failed to get Encore job: {str(e)}", job_id=job_id) from e

        if response.status_code != 200:
            raise EncoreError(
                "Failed to get Encore job",
                status_code=response.status_code,
                job_id=job_id,
            )
        try:
            return EncoreJob.from_dict(response.json())
        except ValueError as e:
            raise EncoreError("Failed to decode Encore job response", job_id=job_id) from e


__all__ = ["EncoreClient"]
