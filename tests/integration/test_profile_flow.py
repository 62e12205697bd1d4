"""
Integration tests for the profile, resume upload and identity resolution
through real session tokens.

Tests:
- Profile fetch and upsert
- Client ids never persisted
- Upload type and size limits
- Tokens that carry only an email, or nothing usable
"""

from datetime import timedelta

import pytest

from core.config import settings
from core.security import create_access_token
from tests.helpers import API, auth_headers


def token_for(claims: dict) -> dict:
    token = create_access_token(
        claims,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_delta=timedelta(minutes=5),
    )
    return auth_headers(token)


class TestProfile:

    def test_empty_profile(self, client, applicant):
        response = client.get(f"{API}/profile", headers=applicant["headers"])
        assert response.status_code == 200
        body = response.json()
        assert body["userId"] == applicant["id"]
        assert body["education"] == []
        assert body["lastUpdated"] is None
        assert body["completeness"]["overall"] == 0

    def test_put_creates_then_updates(self, client, applicant):
        first = client.put(
            f"{API}/profile",
            json={"languages": [{"language": "Amharic", "proficiency": "native"}]},
            headers=applicant["headers"],
        )
        assert first.status_code == 200
        assert first.json()["completeness"]["languages"] is True

        second = client.put(
            f"{API}/profile", json={"additionalInfo": "Open to relocation"}, headers=applicant["headers"]
        ).json()
        # Sections left out keep their stored value
        assert second["languages"] == [{"language": "Amharic", "proficiency": "native"}]
        assert second["additionalInfo"] == "Open to relocation"
        assert second["lastUpdated"] is not None

    def test_client_ids_are_not_persisted(self, client, applicant):
        response = client.put(
            f"{API}/profile",
            json={
                "_id": "forged",
                "userId": "someone-else",
                "education": [{"_id": "e-1", "institution": "AAU"}],
                "previousExperience": {"id": "p-1", "company": "Old Bank"},
            },
            headers=applicant["headers"],
        )
        body = response.json()
        assert body["userId"] == applicant["id"]
        assert body["education"] == [{"institution": "AAU"}]
        assert body["previousExperience"] == [{"company": "Old Bank"}]

    def test_profiles_are_per_user(self, client, applicant, other_applicant):
        client.put(f"{API}/profile", json={"additionalInfo": "mine"}, headers=applicant["headers"])
        other = client.get(f"{API}/profile", headers=other_applicant["headers"]).json()
        assert other["additionalInfo"] is None

    def test_requires_authentication(self, client):
        assert client.get(f"{API}/profile").status_code == 401


class TestUpload:

    def test_pdf_upload(self, client, applicant):
        response = client.post(
            f"{API}/upload",
            files={"file": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")},
            headers=applicant["headers"],
        )
        assert response.status_code == 200
        url = response.json()["fileUrl"]
        assert url.startswith("/uploads/") and url.endswith(".pdf")
        assert client.get(url).content == b"%PDF-1.4 resume"

    def test_docx_upload(self, client, applicant):
        docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        response = client.post(
            f"{API}/upload", files={"file": ("cv.docx", b"PK docx", docx)}, headers=applicant["headers"]
        )
        assert response.json()["fileUrl"].endswith(".docx")

    def test_text_file_rejected(self, client, applicant):
        response = client.post(
            f"{API}/upload", files={"file": ("cv.txt", b"plain", "text/plain")}, headers=applicant["headers"]
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_oversized_file_rejected(self, client, applicant):
        data = b"0" * (6 * 1024 * 1024)
        response = client.post(
            f"{API}/upload", files={"file": ("cv.pdf", data, "application/pdf")}, headers=applicant["headers"]
        )
        assert response.status_code == 400

    def test_requires_authentication(self, client):
        response = client.post(f"{API}/upload", files={"file": ("cv.pdf", b"x", "application/pdf")})
        assert response.status_code == 401


class TestSessionShapes:

    def test_email_only_session_resolves_user(self, client, applicant):
        headers = token_for({"user": {"email": applicant["email"]}})
        response = client.get(f"{API}/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == applicant["id"]

    def test_top_level_user_id_alias(self, client, applicant):
        response = client.get(f"{API}/auth/me", headers=token_for({"userId": applicant["id"]}))
        assert response.json()["id"] == applicant["id"]

    @pytest.mark.parametrize("claims", [
        {"user": {"email": "nobody@example.com"}},
        {"user": {"name": "No Id"}},
    ])
    def test_unresolvable_session_is_unauthorized(self, client, applicant, claims):
        response = client.get(f"{API}/profile", headers=token_for(claims))
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_email_only_session_can_apply(self, client, applicant, vacancy):
        headers = token_for({"email": applicant["email"]})
        response = client.post(
            f"{API}/applications/draft", json={"vacancyId": vacancy["id"]}, headers=headers
        )
        assert response.status_code == 200
        mine = client.get(f"{API}/applications", headers=applicant["headers"]).json()
        assert [a["id"] for a in mine] == [response.json()["applicationId"]]
