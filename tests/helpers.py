"""Request helpers shared by the API tests."""

from datetime import date, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import update

from database.engine import db_manager
from database.models.users import User

API = "/api/v1"
PASSWORD = "SecurePass123!"


def register(client: TestClient, email: str, name: str = "Test Applicant", password: str = PASSWORD) -> dict:
    response = client.post(
        f"{API}/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client: TestClient, email: str, password: str = PASSWORD) -> dict:
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def set_role(client: TestClient, email: str, role: str) -> None:
    """Change a role directly in the database (there is no self-service path)."""
    async def _update():
        async with db_manager.session() as session:
            await session.execute(update(User).where(User.email == email).values(role=role))
            await session.commit()

    client.portal.call(_update)


def create_vacancy(
    client: TestClient,
    admin_headers: dict,
    position: str = "Credit Analyst",
    status: str = "active",
    **overrides,
) -> dict:
    """Reserve a number and create a vacancy from it."""
    start = date.today()
    number = client.post(
        f"{API}/admin/vacancies/create-vacancy-number",
        json={"startDate": start.isoformat(), "endDate": (start + timedelta(days=30)).isoformat()},
        headers=admin_headers,
    )
    assert number.status_code == 201, number.text

    payload = {
        "vacancyNumber": number.json()["vacancyNumber"],
        "position": position,
        "department": "Credit",
        "placeOfWork": "Head Office",
        "requiredNumber": 2,
        "salary": "As per bank scale",
        "education": "BA in Accounting or related field",
        "experience": "Two years in credit analysis",
        "purpose": "Assess loan applications",
        "responsibilities": "Analyse borrower financials and prepare credit memos",
        "startDate": start.isoformat(),
        "endDate": (start + timedelta(days=30)).isoformat(),
        "status": status,
    }
    payload.update(overrides)
    response = client.post(f"{API}/admin/vacancies", json=payload, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


def complete_sections(**overrides) -> dict:
    """Application content that passes full validation."""
    sections = {
        "personalInfo": {
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane.doe@example.com",
            "phone": "0911223344",
            "address": "Bole Road 12",
            "city": "Addis Ababa",
        },
        "education": [
            {
                "institution": "Addis Ababa University",
                "degree": "BA",
                "fieldOfStudy": "Accounting",
                "graduationYear": "2018",
            }
        ],
        "currentExperience": {
            "company": "Acme Bank",
            "position": "Junior Analyst",
            "startDate": "2019-01-01",
            "responsibilities": "Reviewing loan files and preparing reports",
        },
        "previousExperience": [],
        "training": [],
        "languages": [{"language": "English", "proficiency": "fluent"}],
        "additionalInfo": "Available immediately",
    }
    sections.update(overrides)
    return sections


def submit(client: TestClient, headers: dict, vacancy_id: str, **overrides):
    body = {"vacancyId": vacancy_id, "termsAgreement": True, **complete_sections(**overrides)}
    return client.post(f"{API}/applications", json=body, headers=headers)
