"""PERSCOM applicant status sync workflow."""

from __future__ import annotations

import logging
from typing import Any

from nswg.clients.perscom import ApplicantSubmission, PerscomAPI

logger = logging.getLogger(__name__)


class ApplicantSyncProcessor:
    """Prune denied applicants from PERSCOM and report applicant status.

    Every PERSCOM call is best-effort: failures are logged by the client and
    the remaining items are still processed. Nothing is rolled back.
    """

    def __init__(
        self,
        api: PerscomAPI,
        *,
        form_id: int,
        start_page: int,
        denied_status_id: int,
    ) -> None:
        self.api = api
        self.form_id = form_id
        self.start_page = start_page
        self.denied_status_id = denied_status_id

    async def list_applicants_with_status(
        self, status_id: int
    ) -> list[ApplicantSubmission]:
        """Return application-form submissions currently carrying ``status_id``."""
        submissions = await self.api.list_form_submissions(
            form_id=self.form_id,
            start_page=self.start_page,
        )
        return await self.api.filter_submissions_by_status(submissions, status_id)

    async def prune_denied_applicants(self) -> dict[str, Any]:
        """Delete the PERSCOM users behind denied applications."""
        submissions = await self.api.list_form_submissions(
            form_id=self.form_id,
            start_page=self.start_page,
        )
        denied = await self.api.filter_submissions_by_status(
            submissions, self.denied_status_id
        )

        deleted_user_ids: list[int] = []
        if denied:
            deleted_user_ids = await self.api.delete_users(denied)
            await self.api.clear_cache()

        failed_user_ids = [
            applicant.user_id
            for applicant in denied
            if applicant.user_id not in deleted_user_ids
        ]
        if failed_user_ids:
            logger.warning(
                "Failed deleting %s denied applicant(s): %s",
                len(failed_user_ids),
                failed_user_ids,
            )

        logger.info(
            "Applicant sync seen=%s denied=%s deleted=%s",
            len(submissions),
            len(denied),
            len(deleted_user_ids),
        )
        return {
            "submissions_seen": len(submissions),
            "denied_count": len(denied),
            "deleted_user_ids": deleted_user_ids,
            "failed_user_ids": failed_user_ids,
        }
