from __future__ import annotations

import logging
from typing import Any

import httpx

from planvideo.core.errors import NotFoundError, RemoteError, TransportError
from planvideo.schemas.render import JobHandle, JobSnapshot, RemoteState, RenderRequest

logger = logging.getLogger(__name__)

FINISHED_STATUSES = {"finished", "done", "complete", "completed", "succeeded", "success"}
FAILED_STATUSES = {"failed", "error", "errored", "cancelled", "canceled"}
QUEUED_STATUSES = {"queued", "pending", "created", "submitted", "waiting"}


class RenderServiceClient:
    """Thin transport over the render service's `/jobs` endpoints.

    Retries are not attempted here; the lifecycle manager owns that policy.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = client

    def __repr__(self) -> str:
        return f"RenderServiceClient(base_url={self.base_url!r})"

    async def submit(self, request: RenderRequest) -> JobHandle:
        payload = await self._request("POST", "/jobs", json=request.to_payload())
        job_id = payload.get("id")
        if not job_id:
            raise RemoteError(200, "render service response is missing a job id")
        return JobHandle(job_id=str(job_id), state=parse_remote_state(_status_of(payload)))

    async def fetch_status(self, job_id: str) -> JobSnapshot:
        payload = await self._request("GET", f"/jobs/{job_id}")
        logger.debug("fetched render job status id=%s", job_id)
        return parse_snapshot(payload)

    async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(method, url, json=json, headers=self.headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.request(method, url, json=json, headers=self.headers)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path} failed: {exc!r}") from exc

        data = _parse_body(response)
        if response.is_success:
            return data

        message = _error_message(data) or f"request failed: {response.status_code} {response.reason_phrase}".strip()
        if response.status_code == 404:
            raise NotFoundError(message)
        raise RemoteError(response.status_code, message)


def parse_snapshot(payload: dict[str, Any]) -> JobSnapshot:
    """Normalize the field aliases the render service uses for job status."""
    return JobSnapshot(
        state=parse_remote_state(_status_of(payload)),
        progress=_as_progress(payload.get("progress")),
        output_url=_as_text(payload.get("outputUrl")) or _as_text(payload.get("output")),
        error_message=_error_field(payload),
    )


def parse_remote_state(raw: Any) -> RemoteState | None:
    status = _as_text(raw)
    if status is None:
        return None
    status = status.lower()
    if status in FINISHED_STATUSES:
        return RemoteState.FINISHED
    if status in FAILED_STATUSES:
        return RemoteState.FAILED
    if status in QUEUED_STATUSES:
        return RemoteState.QUEUED
    # started, render:dorender, render:postrender, ...
    return RemoteState.RENDERING


def _status_of(payload: dict[str, Any]) -> Any:
    return payload.get("status") or payload.get("state")


def _parse_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(payload: dict[str, Any]) -> str | None:
    return _error_field(payload) or _as_text(payload.get("message"))


def _error_field(payload: dict[str, Any]) -> str | None:
    error = payload.get("error") or payload.get("errorMessage")
    if isinstance(error, dict):
        error = error.get("message") or error.get("error")
    return _as_text(error)


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _as_progress(value: Any) -> int:
    try:
        parsed = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0
    return min(100, max(0, parsed))
