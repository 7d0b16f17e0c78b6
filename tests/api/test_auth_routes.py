"""
Auth and admin route tests.

Exercises the HTTP surface: response envelope, status mapping of error
codes and bearer token handling.
"""

import pytest


@pytest.fixture
def staff(password):
    return {
        "name": "Nurse Priya",
        "mobile": "9876543211",
        "email": "priya@laelhospital.in",
        "designation": "nurse",
        "password": password,
    }


def assert_error(response, status_code: int, error_code: str):
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["code"] == "499"
    assert body["msg"] == "FAILED"
    assert body["model"]["errorCode"] == error_code
    assert body["model"]["displayMessage"]
    return body["model"]


@pytest.mark.auth
class TestRegistrationFlow:
    async def test_register_verify_and_wait_for_approval(self, client, fake_email, staff):
        response = await client.post("/api/auth/register", json=staff)

        assert response.status_code == 201
        body = response.json()
        assert body["code"] == "200"
        assert body["model"]["email"] == staff["email"]
        assert body["model"]["is_approved"] is False
        assert "password_hash" not in body["model"]

        verify = await client.post(
            "/api/auth/verify-otp",
            json={"email": staff["email"], "otp": fake_email.last_otp(staff["email"])},
        )
        assert verify.status_code == 200
        assert verify.json()["model"]["token_type"] == "bearer"

        login = await client.post(
            "/api/auth/login",
            json={"identifier": staff["mobile"], "password": staff["password"]},
        )
        assert_error(login, 403, "2005")

    async def test_duplicate_registration_conflicts(self, client, staff):
        await client.post("/api/auth/register", json=staff)

        response = await client.post("/api/auth/register", json=staff)

        assert_error(response, 409, "3001")

    async def test_invalid_mobile(self, client, staff):
        response = await client.post("/api/auth/register", json={**staff, "mobile": "123"})

        assert_error(response, 400, "3002")

    async def test_malformed_body_is_422(self, client):
        response = await client.post("/api/auth/register", json={"name": "x"})

        model = assert_error(response, 422, "1000")
        assert model["category"] == "validation"

    async def test_wrong_otp(self, client, staff):
        await client.post("/api/auth/register", json=staff)

        response = await client.post(
            "/api/auth/verify-otp", json={"email": staff["email"], "otp": "000000x"}
        )

        assert_error(response, 401, "2002")


@pytest.mark.auth
class TestLogin:
    async def test_wrong_password_and_unknown_user_match(self, client, doctor_user):
        wrong = await client.post(
            "/api/auth/login",
            json={"identifier": doctor_user.email, "password": "Wrong1234!"},
        )
        unknown = await client.post(
            "/api/auth/login",
            json={"identifier": "ghost@laelhospital.in", "password": "Wrong1234!"},
        )

        assert wrong.json() == unknown.json()
        assert_error(wrong, 401, "2000")

    async def test_login_and_me(self, client, doctor_user, login_tokens, bearer):
        tokens = await login_tokens(doctor_user.mobile)

        response = await client.get("/api/auth/me", headers=bearer(tokens["access_token"]))

        assert response.status_code == 200
        assert response.json()["model"]["id"] == doctor_user.id
        assert tokens["expires_in"] > 0

    async def test_me_requires_token(self, client):
        assert_error(await client.get("/api/auth/me"), 401, "1001")

    async def test_me_rejects_garbage_token(self, client, bearer):
        response = await client.get("/api/auth/me", headers=bearer("not-a-jwt"))

        assert response.status_code == 401

    async def test_refresh_token_cannot_authenticate(
        self, client, doctor_user, login_tokens, bearer
    ):
        tokens = await login_tokens(doctor_user.email)

        response = await client.get("/api/auth/me", headers=bearer(tokens["refresh_token"]))

        assert_error(response, 401, "2007")

    async def test_refresh(self, client, doctor_user, login_tokens):
        tokens = await login_tokens(doctor_user.email)

        response = await client.post(
            "/api/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]}
        )
        rejected = await client.post(
            "/api/auth/refresh-token", json={"refresh_token": tokens["access_token"]}
        )

        assert response.status_code == 200
        assert response.json()["model"]["user"]["id"] == doctor_user.id
        assert_error(rejected, 401, "2007")

    async def test_otp_login_request_is_generic(self, client, doctor_user, fake_email):
        known = await client.post(
            "/api/auth/login/otp/request", json={"identifier": doctor_user.email}
        )
        unknown = await client.post(
            "/api/auth/login/otp/request", json={"identifier": "ghost@laelhospital.in"}
        )

        assert known.json() == unknown.json()

        response = await client.post(
            "/api/auth/login/otp",
            json={"email": doctor_user.email, "otp": fake_email.last_otp(doctor_user.email)},
        )
        assert response.status_code == 200

    async def test_password_reset(self, client, doctor_user, fake_email, login_tokens):
        forgot = await client.post(
            "/api/auth/forgot-password", json={"identifier": doctor_user.mobile}
        )
        assert forgot.status_code == 200

        reset = await client.post(
            "/api/auth/reset-password",
            json={
                "email": doctor_user.email,
                "otp": fake_email.last_otp(doctor_user.email),
                "new_password": "N3wPassw0rd!",
            },
        )
        assert reset.status_code == 200

        await login_tokens(doctor_user.email, "N3wPassw0rd!")


@pytest.mark.auth
class TestRegisterAdminRoute:
    async def test_first_admin_bootstrap(self, client, staff):
        response = await client.post(
            "/api/auth/register-admin",
            json={**staff, "email": "boss@laelhospital.in", "mobile": "9000000009"},
        )

        assert response.status_code == 201, response.text
        assert response.json()["model"]["is_admin"] is True
        assert response.json()["model"]["is_approved"] is True

    async def test_anonymous_rejected_once_admin_exists(self, client, staff, admin_user):
        response = await client.post(
            "/api/auth/register-admin",
            json={**staff, "email": "boss@laelhospital.in", "mobile": "9000000009"},
        )

        assert_error(response, 401, "1001")

    async def test_staff_token_is_forbidden(
        self, client, staff, doctor_user, login_tokens, bearer
    ):
        tokens = await login_tokens(doctor_user.email)

        response = await client.post(
            "/api/auth/register-admin",
            json={**staff, "email": "boss@laelhospital.in", "mobile": "9000000009"},
            headers=bearer(tokens["access_token"]),
        )

        assert_error(response, 403, "1002")

    async def test_admin_token_creates_admin(
        self, client, staff, admin_user, login_tokens, bearer
    ):
        tokens = await login_tokens(admin_user.email)

        response = await client.post(
            "/api/auth/register-admin",
            json={**staff, "email": "boss@laelhospital.in", "mobile": "9000000009"},
            headers=bearer(tokens["access_token"]),
        )

        assert response.status_code == 201, response.text
        assert response.json()["model"]["is_admin"] is True


@pytest.mark.auth
class TestAdminRoutes:
    async def test_pending_and_approve(
        self, client, admin_user, fake_email, staff, login_tokens, bearer
    ):
        await client.post("/api/auth/register", json=staff)
        await client.post(
            "/api/auth/verify-otp",
            json={"email": staff["email"], "otp": fake_email.last_otp(staff["email"])},
        )
        admin = await login_tokens(admin_user.email)
        headers = bearer(admin["access_token"])

        pending = await client.get("/api/users/pending", headers=headers)
        assert pending.json()["model"]["total"] == 1
        user_id = pending.json()["model"]["users"][0]["id"]

        approved = await client.post(f"/api/users/{user_id}/approve", headers=headers)
        assert approved.json()["model"]["is_approved"] is True

        await login_tokens(staff["email"])

    async def test_staff_cannot_use_admin_routes(
        self, client, doctor_user, login_tokens, bearer
    ):
        tokens = await login_tokens(doctor_user.email)

        response = await client.get(
            "/api/users/pending", headers=bearer(tokens["access_token"])
        )

        assert_error(response, 403, "1002")

    async def test_deactivated_user_loses_access(
        self, client, admin_user, doctor_user, login_tokens, bearer
    ):
        admin = await login_tokens(admin_user.email)
        doctor = await login_tokens(doctor_user.email)

        response = await client.patch(
            f"/api/users/{doctor_user.id}/status",
            json={"status": "inactive"},
            headers=bearer(admin["access_token"]),
        )
        assert response.json()["model"]["status"] == "inactive"

        me = await client.get("/api/auth/me", headers=bearer(doctor["access_token"]))
        assert_error(me, 403, "2006")


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert response.json()["otp_cleanup"] == "stopped"

    async def test_root(self, client):
        response = await client.get("/")

        assert response.json()["name"]
