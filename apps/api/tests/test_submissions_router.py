"""API tests for the forms catalog and submission lifecycle endpoints."""

import uuid

import pytest

from auditflow.services.form_definition_service import get_form_definition

CLIENT_HEADERS = {"X-Actor-Id": "client-1", "X-Actor-Name": "Ada Client"}
AUDITOR_HEADERS = {
    "X-Actor-Id": "auditor-1",
    "X-Actor-Name": "Ngozi Auditor",
    "X-Actor-Avatar": "avatars/ngozi.png",
}


async def _create(client, form_id="car") -> dict:
    res = await client.post(
        "/submissions",
        json={
            "form_id": form_id,
            "owner_id": "client-1",
            "owner_name": "Acme Holdings",
            "owner_email": "owner@acme.test",
            "assigned_auditor_id": "auditor-1",
            "assigned_auditor_email": "ngozi@auditflow.test",
        },
        headers=CLIENT_HEADERS,
    )
    assert res.status_code == 201, res.text
    return res.json()


async def _create_under_review(client, complete_answers, form_id="car") -> dict:
    created = await _create(client, form_id)
    answers = complete_answers(get_form_definition(form_id))
    res = await client.patch(
        f"/submissions/{created['id']}/answers", json={"answers": answers}, headers=CLIENT_HEADERS
    )
    assert res.status_code == 200, res.text
    res = await client.post(f"/submissions/{created['id']}/submit", headers=CLIENT_HEADERS)
    assert res.status_code == 200, res.text
    res = await client.post(f"/submissions/{created['id']}/begin-review", headers=AUDITOR_HEADERS)
    assert res.status_code == 200, res.text
    return res.json()


# =============================================================================
# Catalog
# =============================================================================


@pytest.mark.asyncio
async def test_list_forms(client):
    res = await client.get("/forms")

    assert res.status_code == 200
    ids = {f["id"] for f in res.json()}
    assert ids == {"car", "dpia", "dpo", "lia"}


@pytest.mark.asyncio
async def test_get_form_definition(client):
    res = await client.get("/forms/dpo")

    assert res.status_code == 200
    body = res.json()
    assert body["features"]["has_scoring"] is True
    assert [s["id"] for s in body["sections"] if s["kind"] == "document"] == ["summary", "scores"]


@pytest.mark.asyncio
async def test_get_unknown_form_returns_404(client):
    res = await client.get("/forms/unknown")

    assert res.status_code == 404


# =============================================================================
# Submissions
# =============================================================================


@pytest.mark.asyncio
async def test_create_requires_actor_name(client):
    res = await client.post("/submissions", json={"form_id": "car", "owner_id": "client-1"})

    assert res.status_code == 401


@pytest.mark.asyncio
async def test_create_unknown_form_returns_404(client):
    res = await client.post(
        "/submissions", json={"form_id": "unknown", "owner_id": "client-1"}, headers=CLIENT_HEADERS
    )

    assert res.status_code == 404


@pytest.mark.asyncio
async def test_create_and_read_submission(client):
    created = await _create(client)

    assert created["status"] == "draft"
    assert created["progress"]["overall"] == 0
    assert created["progress"]["ready_to_submit"] is False
    assert created["reviews"] == []

    res = await client.get(f"/submissions/{created['id']}")
    assert res.status_code == 200
    assert res.json()["id"] == created["id"]


@pytest.mark.asyncio
async def test_get_missing_submission_returns_404(client):
    res = await client.get(f"/submissions/{uuid.uuid4()}")

    assert res.status_code == 404


@pytest.mark.asyncio
async def test_patch_answers_and_progress(client):
    created = await _create(client)

    res = await client.patch(
        f"/submissions/{created['id']}/answers",
        json={"answers": {"cb_1": "yes", "cb_2": "no", "arp_1": "yes"}},
        headers=CLIENT_HEADERS,
    )
    assert res.status_code == 200
    assert res.json()["answers"] == {"cb_1": "yes", "cb_2": "no", "arp_1": "yes"}

    res = await client.patch(
        f"/submissions/{created['id']}/answers",
        json={"answers": {"cb_2": None}},
        headers=CLIENT_HEADERS,
    )
    assert res.json()["answers"] == {"cb_1": "yes", "arp_1": "yes"}

    res = await client.get(f"/submissions/{created['id']}/progress")
    progress = res.json()
    assert progress["sections"]["cross_border"] == 50
    assert progress["sections"]["accountability_record"] == 50
    assert progress["incomplete_sections"]["cross_border"] == 50


@pytest.mark.asyncio
async def test_patch_unknown_field_returns_400(client):
    created = await _create(client)

    res = await client.patch(
        f"/submissions/{created['id']}/answers",
        json={"answers": {"not_a_field": "x"}},
        headers=CLIENT_HEADERS,
    )

    assert res.status_code == 400
    assert "not_a_field" in res.json()["detail"]


@pytest.mark.asyncio
async def test_submit_incomplete_returns_409_with_sections(client):
    created = await _create(client)

    res = await client.post(f"/submissions/{created['id']}/submit", headers=CLIENT_HEADERS)

    assert res.status_code == 409
    detail = res.json()["detail"]
    assert detail["incomplete_sections"]["corporate_info"] == 0
    assert "incomplete" in detail["message"]


@pytest.mark.asyncio
async def test_illegal_transition_returns_409(client):
    created = await _create(client)

    res = await client.post(f"/submissions/{created['id']}/approve", headers=AUDITOR_HEADERS)

    assert res.status_code == 409
    res = await client.get(f"/submissions/{created['id']}")
    assert res.json()["status"] == "draft"


@pytest.mark.asyncio
async def test_review_flow_over_http(client, complete_answers, email_sender):
    submission = await _create_under_review(client, complete_answers)
    submission_id = submission["id"]
    assert submission["status"] == "under_review"

    res = await client.post(
        f"/submissions/{submission_id}/flags",
        json={"field_id": "doc_privacy_policy", "comments": ["Policy is from 2019."]},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "flagged"
    assert body["flagged_fields"] == ["doc_privacy_policy"]
    review = body["reviews"][0]
    assert review["field_id"] == "doc_privacy_policy"
    assert review["section_id"] == "document_upload"
    assert review["author_avatar_ref"] == "avatars/ngozi.png"
    assert review["comments"] == ["Policy is from 2019."]

    res = await client.patch(
        f"/submissions/{submission_id}/answers",
        json={"answers": {"doc_privacy_policy": "https://files.test/privacy-2026.pdf"}},
        headers=CLIENT_HEADERS,
    )
    assert res.status_code == 200
    res = await client.post(f"/submissions/{submission_id}/submit", headers=CLIENT_HEADERS)
    assert res.json()["status"] == "submitted"
    res = await client.post(f"/submissions/{submission_id}/begin-review", headers=AUDITOR_HEADERS)
    assert res.json()["status"] == "under_review"

    res = await client.post(
        f"/submissions/{submission_id}/mark-reviewed", json={"comments": []}, headers=AUDITOR_HEADERS
    )
    assert res.status_code == 409

    res = await client.post(
        f"/submissions/{submission_id}/flags/clear",
        json={"field_id": "doc_privacy_policy", "comment": "Current policy uploaded."},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 200
    assert res.json()["flagged_fields"] == []
    assert res.json()["cleared_flags"] == 1

    res = await client.post(
        f"/submissions/{submission_id}/mark-reviewed",
        json={"comments": ["Ready for approval."]},
        headers=AUDITOR_HEADERS,
    )
    assert res.json()["status"] == "reviewed"
    res = await client.post(f"/submissions/{submission_id}/approve", headers=AUDITOR_HEADERS)
    assert res.json()["status"] == "approved"
    res = await client.post(
        f"/submissions/{submission_id}/clear",
        json={"certificate_ref": "certificates/acme-car.pdf"},
        headers=AUDITOR_HEADERS,
    )
    body = res.json()
    assert body["status"] == "cleared"
    assert body["certificate_ref"] == "certificates/acme-car.pdf"
    assert body["cleared_at"] is not None

    assert "owner@acme.test" in email_sender.recipients
    assert "ngozi@auditflow.test" in email_sender.recipients


@pytest.mark.asyncio
async def test_flag_unknown_field_returns_400(client, complete_answers):
    submission = await _create_under_review(client, complete_answers)

    res = await client.post(
        f"/submissions/{submission['id']}/flags",
        json={"field_id": "nope", "comments": []},
        headers=AUDITOR_HEADERS,
    )

    assert res.status_code == 400
    res = await client.get(f"/submissions/{submission['id']}")
    assert res.json()["flagged_fields"] == []


@pytest.mark.asyncio
async def test_bulk_flag_clearing(client, complete_answers):
    submission = await _create_under_review(client, complete_answers)
    submission_id = submission["id"]
    for field_id in ("pp_1", "pp_2", "arp_1"):
        res = await client.post(
            f"/submissions/{submission_id}/flags", json={"field_id": field_id}, headers=AUDITOR_HEADERS
        )
        assert res.status_code == 200

    res = await client.post(
        f"/submissions/{submission_id}/flags/clear-section",
        json={"section_id": "people_process"},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 200
    assert res.json()["flagged_fields"] == ["arp_1"]
    assert res.json()["status"] == "flagged"

    res = await client.post(
        f"/submissions/{submission_id}/flags/clear-section",
        json={"section_id": "people_process"},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 400

    res = await client.post(f"/submissions/{submission_id}/flags/clear-all", headers=AUDITOR_HEADERS)
    assert res.status_code == 200
    assert res.json()["flagged_fields"] == []
    assert res.json()["status"] == "under_review"
    assert res.json()["cleared_flags"] == 3


@pytest.mark.asyncio
async def test_reports_endpoints(client, complete_answers):
    submission = await _create_under_review(client, complete_answers)
    submission_id = submission["id"]

    res = await client.post(
        f"/submissions/{submission_id}/reports",
        json={"name": "Audit report", "ref": "reports/car-2026.pdf", "content_type": "application/pdf"},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 201, res.text
    [report] = res.json()["reports"]
    assert report["uploaded_by"] == "Ngozi Auditor"

    res = await client.delete(f"/submissions/{submission_id}/reports/{report['id']}", headers=AUDITOR_HEADERS)
    assert res.status_code == 200
    assert res.json()["reports"] == []

    res = await client.delete(f"/submissions/{submission_id}/reports/{report['id']}", headers=AUDITOR_HEADERS)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_reports_rejected_for_forms_without_reports(client, complete_answers):
    submission = await _create_under_review(client, complete_answers, "dpia")

    res = await client.post(
        f"/submissions/{submission['id']}/reports",
        json={"name": "Report", "ref": "reports/dpia.pdf"},
        headers=AUDITOR_HEADERS,
    )

    assert res.status_code == 400
    assert "does not take reports" in res.json()["detail"]


@pytest.mark.asyncio
async def test_comments_and_reviews(client, complete_answers):
    submission = await _create_under_review(client, complete_answers)
    submission_id = submission["id"]

    first = await client.post(
        f"/submissions/{submission_id}/comments",
        json={"field_id": "lb_consent", "text": "Show the consent records."},
        headers=AUDITOR_HEADERS,
    )
    second = await client.post(
        f"/submissions/{submission_id}/comments",
        json={"field_id": "lb_consent", "text": "Include withdrawal handling."},
        headers=AUDITOR_HEADERS,
    )
    assert first.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["comments"] == ["Show the consent records.", "Include withdrawal handling."]

    await client.post(
        f"/submissions/{submission_id}/comments",
        json={"text": "General note."},
        headers=AUDITOR_HEADERS,
    )

    res = await client.get(f"/submissions/{submission_id}/reviews", params={"field_id": "lb_consent"})
    assert len(res.json()) == 1
    res = await client.get(f"/submissions/{submission_id}/reviews")
    assert len(res.json()) == 2


@pytest.mark.asyncio
async def test_assessments_endpoint(client, complete_answers):
    submission = await _create_under_review(client, complete_answers, "dpia")
    submission_id = submission["id"]

    res = await client.patch(
        f"/submissions/{submission_id}/assessments",
        json={"answers": {"gb_1_assessment": "Adequately described."}},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 200
    assert res.json()["answers"]["gb_1_assessment"] == "Adequately described."

    res = await client.patch(
        f"/submissions/{submission_id}/assessments",
        json={"answers": {"nop_1": "overwrite"}},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_scores_endpoint(client, complete_answers):
    submission = await _create_under_review(client, complete_answers, "dpo")
    submission_id = submission["id"]

    res = await client.put(
        f"/submissions/{submission_id}/scores",
        json={"section_id": "section1_accreditation", "score": 92, "comments": "Accredited"},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["total_score"] == 92.0
    assert body["score_grade"] == "A"
    score = body["section_scores"][0]
    assert score["section_id"] == "section1_accreditation"
    assert score["section_title"] == "Accreditation of Issuing Body"
    assert score["scored_by"] == "Ngozi Auditor"

    res = await client.put(
        f"/submissions/{submission_id}/scores",
        json={"section_id": "section1_accreditation", "score": 120},
        headers=AUDITOR_HEADERS,
    )
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_list_submissions_filters(client):
    car = await _create(client, "car")
    await _create(client, "dpia")

    res = await client.get("/submissions", params={"form_id": "car"})
    assert [s["id"] for s in res.json()] == [car["id"]]

    res = await client.get("/submissions", params={"owner_id": "client-1", "status": "draft"})
    assert len(res.json()) == 2
    assert {s["progress"] for s in res.json()} == {0}

