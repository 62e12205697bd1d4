"""
Integration tests for the applicant side of the application lifecycle.

Tests end-to-end scenarios:
- Draft → submit → profile write-back
- Duplicate and withdrawn applications
- Editing and withdrawal rules
- Ownership checks
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from database.engine import db_manager
from database.models.applications import Application
from tests.helpers import API, complete_sections, create_vacancy, set_role, submit


def save_draft(client, headers, vacancy_id, **sections):
    return client.post(
        f"{API}/applications/draft", json={"vacancyId": vacancy_id, **sections}, headers=headers
    )


def insert_draft_row(client, user_id, vacancy_id):
    """Write a draft straight to the database, skipping the service checks."""
    async def _insert():
        async with db_manager.session() as session:
            session.add(Application(user_id=user_id, vacancy_id=vacancy_id, status="draft"))
            await session.commit()

    client.portal.call(_insert)


def review(client, admin_headers, application_id, status):
    response = client.patch(
        f"{API}/admin/applications/{application_id}", json={"status": status}, headers=admin_headers
    )
    assert response.status_code == 200, response.text


class TestSubmission:

    def test_submit_creates_submitted_application(self, client, applicant, vacancy):
        response = submit(client, applicant["headers"], vacancy["id"])
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "submitted"
        assert body["warnings"] == []

        detail = client.get(f"{API}/applications/{body['applicationId']}", headers=applicant["headers"])
        assert detail.status_code == 200
        application = detail.json()
        assert application["vacancyNumber"] == vacancy["vacancyNumber"]
        assert application["position"] == vacancy["position"]
        assert application["termsAgreement"] is True
        assert application["submittedAt"] is not None
        assert application["personalInfo"]["firstName"] == "Jane"

    def test_submit_requires_terms(self, client, applicant, vacancy):
        body = {"vacancyId": vacancy["id"], "termsAgreement": False, **complete_sections()}
        response = client.post(f"{API}/applications", json=body, headers=applicant["headers"])
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "termsAgreement"

    def test_submit_validates_content(self, client, applicant, vacancy):
        response = submit(client, applicant["headers"], vacancy["id"], languages=[])
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_submit_unknown_vacancy(self, client, applicant):
        assert submit(client, applicant["headers"], "no-such-vacancy").status_code == 404

    def test_submit_to_draft_vacancy_is_rejected(self, client, applicant, admin):
        hidden = create_vacancy(client, admin["headers"], status="draft")
        assert submit(client, applicant["headers"], hidden["id"]).status_code == 409

    def test_second_submission_conflicts(self, client, applicant, vacancy):
        assert submit(client, applicant["headers"], vacancy["id"]).status_code == 201
        response = submit(client, applicant["headers"], vacancy["id"])
        assert response.status_code == 409
        assert response.json()["error"] == "You have already applied for this position"

    def test_reapply_after_withdrawal(self, client, applicant, vacancy):
        first = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        assert client.delete(f"{API}/applications/{first}", headers=applicant["headers"]).status_code == 200

        second = submit(client, applicant["headers"], vacancy["id"])
        assert second.status_code == 201
        assert second.json()["applicationId"] != first

    def test_unique_index_rejects_racing_submission(self, client, applicant, vacancy):
        # Another request stored a draft after this one looked for it
        insert_draft_row(client, applicant["id"], vacancy["id"])
        with patch(
            "api.services.applications.find_active_application", new=AsyncMock(return_value=None)
        ):
            response = submit(client, applicant["headers"], vacancy["id"])
        assert response.status_code == 409
        assert response.json()["error"] == "You have already applied for this position"

        listed = client.get(f"{API}/applications", headers=applicant["headers"]).json()
        assert [a["status"] for a in listed] == ["draft"]

    def test_submission_requires_authentication(self, client, vacancy):
        body = {"vacancyId": vacancy["id"], "termsAgreement": True, **complete_sections()}
        assert client.post(f"{API}/applications", json=body).status_code == 401


class TestDrafts:

    def test_draft_is_not_validated(self, client, applicant, vacancy):
        response = save_draft(client, applicant["headers"], vacancy["id"], personalInfo={"firstName": "J"})
        assert response.status_code == 200
        draft_id = response.json()["applicationId"]

        application = client.get(f"{API}/applications/{draft_id}", headers=applicant["headers"]).json()
        assert application["status"] == "draft"
        assert application["personalInfo"] == {"firstName": "J"}
        assert application["education"] == []

    def test_saving_again_updates_same_draft(self, client, applicant, vacancy):
        first = save_draft(client, applicant["headers"], vacancy["id"], additionalInfo="one").json()
        second = save_draft(client, applicant["headers"], vacancy["id"], additionalInfo="two").json()
        assert first["applicationId"] == second["applicationId"]

        listed = client.get(f"{API}/applications", headers=applicant["headers"]).json()
        assert len(listed) == 1

    def test_submit_promotes_existing_draft(self, client, applicant, vacancy):
        draft_id = save_draft(client, applicant["headers"], vacancy["id"], additionalInfo="draft").json()["applicationId"]
        response = submit(client, applicant["headers"], vacancy["id"])
        assert response.status_code == 201
        assert response.json()["applicationId"] == draft_id

    def test_draft_after_submission_conflicts(self, client, applicant, vacancy):
        submit(client, applicant["headers"], vacancy["id"])
        assert save_draft(client, applicant["headers"], vacancy["id"]).status_code == 409

    def test_draft_form_prefilled_from_profile(self, client, applicant, vacancy, admin):
        # Submitting to another vacancy fills the profile
        other = create_vacancy(client, admin["headers"], position="Branch Manager")
        submit(client, applicant["headers"], other["id"])

        form = client.get(
            f"{API}/applications/draft", params={"vacancyId": vacancy["id"]}, headers=applicant["headers"]
        )
        assert form.status_code == 200
        body = form.json()
        assert body["applicationId"] is None
        assert body["status"] == "draft"
        assert body["personalInfo"]["firstName"] == "Jane"
        assert body["education"][0]["institution"] == "Addis Ababa University"

    def test_new_draft_keeps_own_values_over_profile(self, client, applicant):
        client.put(
            f"{API}/profile",
            json={"personalInfo": {"firstName": "Profile"}, "training": [{"name": "AML"}]},
            headers=applicant["headers"],
        )
        # Vacancy created after the profile exists
        set_role(client, applicant["email"], "admin")
        vacancy = create_vacancy(client, applicant["headers"])
        set_role(client, applicant["email"], "user")

        draft_id = save_draft(
            client, applicant["headers"], vacancy["id"], personalInfo={"firstName": "Draft"}
        ).json()["applicationId"]
        application = client.get(f"{API}/applications/{draft_id}", headers=applicant["headers"]).json()
        assert application["personalInfo"] == {"firstName": "Draft"}
        assert application["training"] == [{"name": "AML"}]


class TestProfileWriteBack:

    def test_submission_updates_profile(self, client, applicant, vacancy):
        submit(client, applicant["headers"], vacancy["id"])
        profile = client.get(f"{API}/profile", headers=applicant["headers"]).json()
        assert profile["personalInfo"]["lastName"] == "Doe"
        assert profile["languages"] == [{"language": "English", "proficiency": "fluent"}]
        assert profile["completeness"]["personal"] is True
        assert profile["completeness"]["currentWork"] is True
        assert profile["completeness"]["overall"] == 67

    def test_failed_write_back_keeps_submission(self, client, applicant, vacancy):
        with patch(
            "api.services.profiles.upsert_profile",
            new=AsyncMock(side_effect=SQLAlchemyError("profile store unavailable")),
        ):
            response = submit(client, applicant["headers"], vacancy["id"])
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "submitted"
        assert body["warnings"] == ["Your application was submitted, but your profile could not be updated"]

        detail = client.get(f"{API}/applications/{body['applicationId']}", headers=applicant["headers"])
        assert detail.json()["status"] == "submitted"
        profile = client.get(f"{API}/profile", headers=applicant["headers"]).json()
        assert profile["lastUpdated"] is None


class TestEditing:

    def test_edit_submitted_application(self, client, applicant, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        response = client.put(
            f"{API}/applications/{application_id}",
            json={"additionalInfo": "Updated note"},
            headers=applicant["headers"],
        )
        assert response.status_code == 200
        body = response.json()
        assert body["application"]["additionalInfo"] == "Updated note"
        assert body["application"]["status"] == "submitted"
        # Untouched sections are kept
        assert body["application"]["personalInfo"]["firstName"] == "Jane"

    def test_edit_must_stay_valid(self, client, applicant, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        response = client.put(
            f"{API}/applications/{application_id}", json={"education": []}, headers=applicant["headers"]
        )
        assert response.status_code == 400

    def test_edit_with_submit_promotes_draft(self, client, applicant, vacancy):
        draft_id = save_draft(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        response = client.put(
            f"{API}/applications/{draft_id}",
            json={"submit": True, "termsAgreement": True, **complete_sections()},
            headers=applicant["headers"],
        )
        assert response.status_code == 200
        assert response.json()["application"]["status"] == "submitted"

    def test_edit_with_submit_needs_open_vacancy(self, client, applicant, admin, vacancy):
        draft_id = save_draft(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        closed = client.patch(
            f"{API}/admin/vacancies/{vacancy['id']}", json={"status": "closed"}, headers=admin["headers"]
        )
        assert closed.status_code == 200

        # Both submit routes refuse a closed vacancy
        assert submit(client, applicant["headers"], vacancy["id"]).status_code == 409
        response = client.put(
            f"{API}/applications/{draft_id}",
            json={"submit": True, "termsAgreement": True, **complete_sections()},
            headers=applicant["headers"],
        )
        assert response.status_code == 409
        application = client.get(f"{API}/applications/{draft_id}", headers=applicant["headers"]).json()
        assert application["status"] == "draft"
        assert application["submittedAt"] is None

    def test_rejected_after_shortlist_cannot_be_edited(self, client, applicant, admin, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        review(client, admin["headers"], application_id, "shortlisted")
        review(client, admin["headers"], application_id, "rejected")

        response = client.put(
            f"{API}/applications/{application_id}",
            json={"additionalInfo": "Please reconsider"},
            headers=applicant["headers"],
        )
        assert response.status_code == 409
        application = client.get(f"{API}/applications/{application_id}", headers=applicant["headers"]).json()
        assert application["status"] == "rejected"
        assert application["additionalInfo"] == "Available immediately"

    def test_edit_under_review_conflicts(self, client, applicant, admin, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        client.patch(
            f"{API}/admin/applications/{application_id}",
            json={"status": "under-review"},
            headers=admin["headers"],
        )
        response = client.put(
            f"{API}/applications/{application_id}",
            json={"additionalInfo": "late"},
            headers=applicant["headers"],
        )
        assert response.status_code == 409


class TestWithdrawal:

    def test_withdraw(self, client, applicant, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        response = client.delete(f"{API}/applications/{application_id}", headers=applicant["headers"])
        assert response.status_code == 200
        assert response.json()["status"] == "withdrawn"

    def test_withdraw_twice_conflicts(self, client, applicant, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        client.delete(f"{API}/applications/{application_id}", headers=applicant["headers"])
        second = client.delete(f"{API}/applications/{application_id}", headers=applicant["headers"])
        assert second.status_code == 409

    def test_withdrawn_cannot_be_edited(self, client, applicant, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        client.delete(f"{API}/applications/{application_id}", headers=applicant["headers"])
        response = client.put(
            f"{API}/applications/{application_id}", json={"additionalInfo": "x"}, headers=applicant["headers"]
        )
        assert response.status_code == 409

    def test_hired_cannot_be_withdrawn(self, client, applicant, admin, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        client.patch(
            f"{API}/admin/applications/{application_id}", json={"status": "hired"}, headers=admin["headers"]
        )
        response = client.delete(f"{API}/applications/{application_id}", headers=applicant["headers"])
        assert response.status_code == 409


class TestOwnership:

    def test_other_user_cannot_read(self, client, applicant, other_applicant, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        response = client.get(f"{API}/applications/{application_id}", headers=other_applicant["headers"])
        assert response.status_code == 403

    def test_other_user_cannot_withdraw(self, client, applicant, other_applicant, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        response = client.delete(f"{API}/applications/{application_id}", headers=other_applicant["headers"])
        assert response.status_code == 403

    def test_admin_can_read_any(self, client, applicant, admin, vacancy):
        application_id = submit(client, applicant["headers"], vacancy["id"]).json()["applicationId"]
        response = client.get(f"{API}/applications/{application_id}", headers=admin["headers"])
        assert response.status_code == 200

    def test_unknown_application(self, client, applicant):
        assert client.get(f"{API}/applications/missing", headers=applicant["headers"]).status_code == 404


class TestListing:

    def test_lists_only_own_applications(self, client, applicant, other_applicant, vacancy):
        submit(client, applicant["headers"], vacancy["id"])
        submit(client, other_applicant["headers"], vacancy["id"])
        mine = client.get(f"{API}/applications", headers=applicant["headers"]).json()
        assert len(mine) == 1
        assert mine[0]["vacancyId"] == vacancy["id"]

    @pytest.mark.parametrize("status_filter,expected", [
        ("submitted", 1),
        ("draft", 0),
        ("pending", 0),
    ])
    def test_status_filter(self, client, applicant, vacancy, status_filter, expected):
        submit(client, applicant["headers"], vacancy["id"])
        listed = client.get(
            f"{API}/applications", params={"status": status_filter}, headers=applicant["headers"]
        ).json()
        assert len(listed) == expected

    def test_unknown_status_filter(self, client, applicant):
        response = client.get(f"{API}/applications", params={"status": "archived"}, headers=applicant["headers"])
        assert response.status_code == 400
