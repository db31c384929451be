"""Unit tests for the PERSCOM applicant sync workflow."""

from unittest.mock import AsyncMock, Mock

import pytest

from nswg.applicant_sync import ApplicantSyncProcessor
from nswg.clients.perscom import ApplicantSubmission


def _applicant(submission_id: int, user_id: int) -> ApplicantSubmission:
    return ApplicantSubmission(
        submission_id=submission_id,
        form_id=1,
        user_id=user_id,
        first_name=f"Applicant {submission_id}",
        discord_name=f"applicant{submission_id}",
        preferred_position="Medic",
    )


@pytest.fixture
def api():
    client = Mock()
    client.list_form_submissions = AsyncMock(return_value=[])
    client.filter_submissions_by_status = AsyncMock(return_value=[])
    client.delete_users = AsyncMock(return_value=[])
    client.clear_cache = AsyncMock(return_value=True)
    return client


def _processor(api) -> ApplicantSyncProcessor:
    return ApplicantSyncProcessor(api, form_id=1, start_page=4, denied_status_id=9)


@pytest.mark.asyncio
async def test_prune_deletes_denied_and_clears_cache(api) -> None:
    submissions = [_applicant(1, 101), _applicant(2, 102), _applicant(3, 103)]
    denied = [submissions[0], submissions[2]]
    api.list_form_submissions.return_value = submissions
    api.filter_submissions_by_status.return_value = denied
    api.delete_users.return_value = [101]

    result = await _processor(api).prune_denied_applicants()

    api.list_form_submissions.assert_awaited_once_with(form_id=1, start_page=4)
    api.filter_submissions_by_status.assert_awaited_once_with(submissions, 9)
    api.delete_users.assert_awaited_once_with(denied)
    api.clear_cache.assert_awaited_once()
    assert result == {
        "submissions_seen": 3,
        "denied_count": 2,
        "deleted_user_ids": [101],
        "failed_user_ids": [103],
    }


@pytest.mark.asyncio
async def test_prune_without_denied_skips_delete_and_cache(api) -> None:
    api.list_form_submissions.return_value = [_applicant(1, 101)]

    result = await _processor(api).prune_denied_applicants()

    api.delete_users.assert_not_awaited()
    api.clear_cache.assert_not_awaited()
    assert result["denied_count"] == 0
    assert result["deleted_user_ids"] == []


@pytest.mark.asyncio
async def test_list_applicants_with_status(api) -> None:
    accepted = [_applicant(2, 102)]
    api.list_form_submissions.return_value = [_applicant(1, 101), *accepted]
    api.filter_submissions_by_status.return_value = accepted

    result = await _processor(api).list_applicants_with_status(4)

    assert result == accepted
    assert api.filter_submissions_by_status.call_args.args[1] == 4
