"""
HTTP-level tests: routing, CORS, the response envelope and auth guards.

The lifespan is not entered, so no database, Redis or scheduler is
needed. get_db is overridden with a mock session.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tryout.core.database import get_db
from tryout.core.errors import DeliveryFailureError
from tryout.core.security import create_access_token, hash_password
from tryout.main import app
from tryout.modules.admins.models import AdminAccount, AdminRole
from tryout.modules.admins.repository import AdminRepository

API = "/api/v1"

REGISTRATION_FORM = {
    "nama": "Ana",
    "nisn": "1234567890",
    "tanggal_lahir": "2007-05-17",
    "asal_sekolah": "SMAN 1 Ciamis",
    "whatsapp": "081234567890",
    "email": "ana@example.com",
}


@pytest.fixture
def client(mock_db):
    async def _override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _bearer(role: str, email: str = "ana@example.com", subject=None) -> dict[str, str]:
    token = create_access_token(
        subject=str(subject or uuid4()),
        additional_claims={"email": email, "role": role},
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_account():
    return AdminAccount(
        id=uuid4(),
        email="panitia@example.com",
        name="Panitia",
        password_hash=hash_password("admin-rahasia"),
        role=AdminRole.ADMIN,
        is_active=True,
        created_at=datetime.now(UTC),
    )


@pytest.fixture
def admin_headers(admin_account):
    with patch.object(AdminRepository, "get_by_id", new_callable=AsyncMock, return_value=admin_account):
        yield _bearer("admin", admin_account.email, subject=admin_account.id)


class TestEnvelope:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_unknown_route(self, client):
        response = client.get(f"{API}/tidak-ada")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "NOT_FOUND"

    def test_wrong_method(self, client):
        response = client.get(f"{API}/register-participant")
        assert response.status_code == 405
        assert response.json()["error"] == "METHOD_NOT_ALLOWED"

    def test_cors_preflight(self, client):
        response = client.options(
            f"{API}/send-otp",
            headers={
                "Origin": "https://tryout.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, apikey",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"


class TestValidationMessages:
    def test_bad_nisn(self, client):
        response = client.post(
            f"{API}/register-participant",
            json={**REGISTRATION_FORM, "nisn": "12345"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "NISN harus 10 digit angka.",
            "error": "VALIDATION_ERROR",
        }

    def test_bad_email(self, client):
        response = client.post(
            f"{API}/register-participant",
            json={**REGISTRATION_FORM, "email": "bukan-email"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Format email tidak valid."

    def test_missing_registration_field(self, client):
        form = dict(REGISTRATION_FORM)
        del form["asal_sekolah"]
        response = client.post(f"{API}/register-participant", json=form)
        assert response.json()["message"] == "Semua field harus diisi."

    def test_login_without_password(self, client):
        response = client.post(f"{API}/login-participant", json={"email": "ana@example.com"})
        assert response.status_code == 400
        assert response.json()["message"] == "Email dan password harus diisi."

    def test_verify_otp_without_code(self, client):
        response = client.post(f"{API}/send-otp?action=verify", json={"email": "a@b.com"})
        assert response.status_code == 400
        assert response.json()["message"] == "Email dan OTP harus diisi."

    def test_send_otp_without_name(self, client):
        response = client.post(f"{API}/send-otp", json={"email": "a@b.com"})
        assert response.status_code == 400
        assert response.json()["message"] == "Email dan nama harus diisi."


class TestParticipantEndpoints:
    def test_slots_are_camel_case(self, client):
        with patch("tryout.modules.participants.service.repository") as mock_repo:
            mock_repo.count = AsyncMock(return_value=12)
            response = client.get(f"{API}/slots")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["totalSlots"] == 1000
        assert body["registered"] == 12
        assert body["remainingSlots"] == 988

    def test_send_password_delivery_failure(self, client):
        failure = DeliveryFailureError(
            "Gagal mengirim password ke email Anda. Silakan coba lagi.",
            status_code=200,
        )
        with patch(
            "tryout.modules.participants.service.issue_password",
            new_callable=AsyncMock,
            side_effect=failure,
        ) as mock_issue:
            response = client.post(f"{API}/send-password?action=reset", json={"email": "ana@example.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "DELIVERY_FAILURE"
        assert mock_issue.call_args.kwargs["is_reset"] is True

    def test_register_rate_limited(self, client):
        with (
            patch("tryout.modules.participants.service.ensure_slots_available", new_callable=AsyncMock),
            patch("tryout.modules.participants.service.register_participant", new_callable=AsyncMock) as mock_register,
        ):
            mock_register.return_value = {"success": True, "message": "ok"}
            statuses = [
                client.post(f"{API}/register-participant", json=REGISTRATION_FORM).status_code
                for _ in range(6)
            ]

        assert statuses[:5] == [200] * 5
        assert statuses[5] == 429

    def test_rotating_forwarded_for_does_not_reset_limit(self, client):
        with (
            patch("tryout.modules.participants.service.ensure_slots_available", new_callable=AsyncMock),
            patch("tryout.modules.participants.service.register_participant", new_callable=AsyncMock) as mock_register,
        ):
            mock_register.return_value = {"success": True, "message": "ok"}
            statuses = [
                client.post(
                    f"{API}/register-participant",
                    json=REGISTRATION_FORM,
                    headers={"X-Forwarded-For": f"10.0.0.{i}"},
                ).status_code
                for i in range(8)
            ]

        assert statuses[5:] == [429] * 3
        assert mock_register.await_count == 5


class TestAuthGuards:
    def test_payments_require_token(self, client):
        response = client.get(f"{API}/payments/me")
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    def test_garbage_token(self, client):
        response = client.get(f"{API}/payments/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_admin_token_cannot_use_participant_routes(self, client):
        response = client.get(f"{API}/participants/me/card", headers=_bearer("admin"))
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    def test_participant_token_cannot_use_admin_routes(self, client):
        response = client.get(f"{API}/admin/payments/stats", headers=_bearer("participant"))
        assert response.status_code == 403

    def test_admin_stats(self, client, admin_headers):
        with patch(
            "tryout.modules.payments.service.repository.get_status_counts",
            new_callable=AsyncMock,
            return_value={"pending": 2, "verified": 5, "rejected": 1, "total": 8},
        ):
            response = client.get(f"{API}/admin/payments/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["pending"] == 2
        assert response.json()["total"] == 8

    def test_deactivated_admin_cannot_decide(self, client, admin_account, admin_headers):
        admin_account.is_active = False

        with patch(
            "tryout.modules.payments.service.admin_verify_payment", new_callable=AsyncMock
        ) as mock_verify:
            response = client.post(f"{API}/admin/payments/{uuid4()}/verify", headers=admin_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Akun admin tidak aktif."
        mock_verify.assert_not_called()

    def test_removed_admin_cannot_list(self, client):
        with patch.object(AdminRepository, "get_by_id", new_callable=AsyncMock, return_value=None):
            response = client.get(f"{API}/admin/payments", headers=_bearer("admin"))

        assert response.status_code == 403
        assert response.json()["error"] == "ACCESS_DENIED"


class TestAdminLogin:
    def test_login_success(self, client, admin_account):
        with patch(
            "tryout.modules.auth.router.AdminRepository.get_by_email",
            new_callable=AsyncMock,
            return_value=admin_account,
        ):
            response = client.post(
                f"{API}/auth/login",
                json={"email": "panitia@example.com", "password": "admin-rahasia"},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["access_token"]
        assert body["user"]["role"] == "admin"
        assert "password_hash" not in body["user"]

    def test_wrong_password(self, client, admin_account):
        with patch(
            "tryout.modules.auth.router.AdminRepository.get_by_email",
            new_callable=AsyncMock,
            return_value=admin_account,
        ):
            response = client.post(
                f"{API}/auth/login",
                json={"email": "panitia@example.com", "password": "salah"},
            )

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_CREDENTIALS"

    def test_inactive_account(self, client, admin_account):
        admin_account.is_active = False
        with patch(
            "tryout.modules.auth.router.AdminRepository.get_by_email",
            new_callable=AsyncMock,
            return_value=admin_account,
        ):
            response = client.post(
                f"{API}/auth/login",
                json={"email": "panitia@example.com", "password": "admin-rahasia"},
            )

        assert response.status_code == 403
        assert response.json()["message"] == "Akun admin tidak aktif."
