"""Async client for the PERSCOM personnel management API."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.perscom.io/v2"


class PerscomAPIError(Exception):
    """Raised when a PERSCOM request fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ApplicantSubmission:
    """Applicant fields pulled from one PERSCOM form submission."""

    submission_id: int
    form_id: int
    user_id: int
    first_name: str
    discord_name: str
    preferred_position: str
    date_of_birth: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ApplicantSubmission | None:
        """Build from a raw submission, or None when identifiers are missing."""
        submission_id = payload.get("id")
        form_id = payload.get("form_id")
        user_id = payload.get("user_id")
        if not all(isinstance(value, int) for value in (submission_id, form_id, user_id)):
            return None

        return cls(
            submission_id=submission_id,
            form_id=form_id,
            user_id=user_id,
            first_name=str(payload.get("first_name") or ""),
            discord_name=str(payload.get("discord_name") or ""),
            preferred_position=str(payload.get("preferred_position") or ""),
            date_of_birth=payload.get("date_of_birth"),
        )


class PerscomAPI:
    """Bearer-authenticated PERSCOM REST calls, issued one at a time."""

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def __aenter__(self) -> PerscomAPI:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                self._url(path),
                headers=self._headers(),
                params=params,
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise PerscomAPIError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise PerscomAPIError(
                f"{method} {path} returned {response.status_code} "
                f"{response.reason_phrase}: {response.text[:300]}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise PerscomAPIError(
                f"Invalid JSON from {response.request.url}: {exc}",
                status_code=response.status_code,
            ) from exc

    async def get_last_page(self) -> int:
        """Return the last submissions page number from listing metadata."""
        response = await self._request("GET", "submissions")
        payload = self._json(response)
        meta = payload.get("meta") if isinstance(payload, dict) else None
        last_page = meta.get("last_page") if isinstance(meta, dict) else None
        if not isinstance(last_page, int):
            raise PerscomAPIError("Submissions metadata is missing meta.last_page")
        return last_page

    async def list_submissions_page(self, page: int) -> list[dict[str, Any]]:
        """Load one raw page of submissions."""
        response = await self._request("GET", "submissions", params={"page": page})
        payload = self._json(response)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def list_form_submissions(
        self, *, form_id: int, start_page: int = 1
    ) -> list[ApplicantSubmission]:
        """Collect submissions for one form, paging from ``start_page``.

        A metadata failure yields no submissions. A failure on any page stops
        paging and keeps what was collected so far.
        """
        try:
            last_page = await self.get_last_page()
        except PerscomAPIError as exc:
            logger.error("Error fetching PERSCOM submissions metadata: %s", exc)
            return []

        submissions: list[ApplicantSubmission] = []
        page = start_page
        while page <= last_page:
            try:
                raw_page = await self.list_submissions_page(page)
            except PerscomAPIError as exc:
                logger.error("Error fetching submissions for page %s: %s", page, exc)
                break

            for raw_submission in raw_page:
                if raw_submission.get("form_id") != form_id:
                    continue
                submission = ApplicantSubmission.from_payload(raw_submission)
                if submission is None:
                    logger.warning(
                        "Skipping malformed submission id=%s on page %s",
                        raw_submission.get("id"),
                        page,
                    )
                    continue
                submissions.append(submission)
            page += 1

        logger.info(
            "Loaded %s form %s submissions from pages %s-%s",
            len(submissions),
            form_id,
            start_page,
            last_page,
        )
        return submissions

    async def get_submission_statuses(self, submission_id: int) -> list[dict[str, Any]]:
        """Load the status history attached to one submission."""
        response = await self._request("GET", f"submissions/{submission_id}/statuses")
        payload = self._json(response)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def filter_submissions_by_status(
        self, submissions: Iterable[ApplicantSubmission], status_id: int
    ) -> list[ApplicantSubmission]:
        """Keep submissions that carry ``status_id``; lookup failures are skipped."""
        matched: list[ApplicantSubmission] = []
        for submission in submissions:
            try:
                statuses = await self.get_submission_statuses(submission.submission_id)
            except PerscomAPIError as exc:
                logger.error(
                    "Error fetching statuses for submission %s: %s",
                    submission.submission_id,
                    exc,
                )
                continue

            if any(status.get("id") == status_id for status in statuses):
                matched.append(submission)
        return matched

    async def clear_cache(self) -> bool:
        """Ask PERSCOM to drop its response cache."""
        try:
            response = await self._client.post(
                self._url("cache"),
                headers={"Authorization": f"Bearer {self.api_token}"},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.error("Error clearing PERSCOM cache: %s", exc)
            return False

        if response.status_code != 200:
            logger.warning(
                "Cache clear responded with: %s %s",
                response.status_code,
                response.reason_phrase,
            )
            return False
        return True

    async def delete_users(self, applicants: Iterable[ApplicantSubmission]) -> list[int]:
        """Delete each applicant's PERSCOM user, continuing past failures."""
        deleted: list[int] = []
        for applicant in applicants:
            try:
                response = await self._request("DELETE", f"users/{applicant.user_id}")
            except PerscomAPIError as exc:
                logger.error(
                    "Failed to delete user %s (id=%s): %s",
                    applicant.first_name,
                    applicant.user_id,
                    exc,
                )
                continue

            deleted.append(applicant.user_id)
            logger.info(
                "Deleted user %s (id=%s): status=%s",
                applicant.first_name,
                applicant.user_id,
                response.status_code,
            )
        return deleted
