from datetime import timedelta
from uuid import UUID, uuid4
from unittest.mock import patch
from urllib.parse import parse_qs, urlsplit

from tests.admin.base import AdminApiBase

from backoffice.core.config import settings
from backoffice.core.security import decode_jwt, verify_password
from backoffice.models.common import utcnow
from backoffice.models.password_reset_token import PasswordResetToken
from backoffice.models.role import Role
from backoffice.models.user import User
from backoffice.services.permissions import KNOWN_MASK, Permission


class AdminAuthTests(AdminApiBase):
    def setUp(self):
        super().setUp()
        self._settings_backup = {
            "ADMIN_BOOTSTRAP_ENABLED": settings.ADMIN_BOOTSTRAP_ENABLED,
            "ADMIN_BOOTSTRAP_EMAIL": settings.ADMIN_BOOTSTRAP_EMAIL,
            "ADMIN_BOOTSTRAP_PASSWORD": settings.ADMIN_BOOTSTRAP_PASSWORD,
            "EMAIL_PROVIDER": settings.EMAIL_PROVIDER,
        }
        settings.ADMIN_BOOTSTRAP_ENABLED = True
        settings.ADMIN_BOOTSTRAP_EMAIL = "admin@example.com"
        settings.ADMIN_BOOTSTRAP_PASSWORD = "Admin@123"
        settings.EMAIL_PROVIDER = "dummy"

    def tearDown(self):
        for key, value in self._settings_backup.items():
            setattr(settings, key, value)
        super().tearDown()

    def _login(self, email: str, password: str):
        return self.client.post("/api/admin/auth/login", json={"email": email, "password": password})

    def test_login_bootstraps_admin_with_full_access(self):
        response = self._login("admin@example.com", "Admin@123")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["tokenType"], "Bearer")
        self.assertEqual(body["roles"], ["Administrator"])
        self.assertEqual(body["permissions"], KNOWN_MASK)

        claims = decode_jwt(body["accessToken"], settings.JWT_SECRET)
        self.assertEqual(claims["typ"], "access")
        self.assertEqual(claims["email"], "admin@example.com")
        self.assertEqual(claims["perms"], KNOWN_MASK)

        with self.SessionLocal() as db:
            self.assertEqual(db.query(User).count(), 1)
            role = db.query(Role).one()
            self.assertEqual(role.permissions, KNOWN_MASK)

        # Second login reuses the same rows.
        self.assertEqual(self._login("ADMIN@example.com", "Admin@123").status_code, 200)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(User).count(), 1)
            self.assertEqual(db.query(Role).count(), 1)

    def test_login_rejects_wrong_bootstrap_password(self):
        response = self._login("admin@example.com", "wrong-password")
        self.assertEqual(response.status_code, 401)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(User).count(), 0)

    def test_login_with_disabled_bootstrap_needs_stored_account(self):
        settings.ADMIN_BOOTSTRAP_ENABLED = False
        self.assertEqual(self._login("admin@example.com", "Admin@123").status_code, 401)

    def test_regular_user_permissions_come_from_active_roles(self):
        editor = self._create_role("Editor", int(Permission.VIEW_CMS | Permission.EDIT_CMS))
        retired = self._create_role("Retired", int(Permission.DELETE_USER), is_active=False)
        self._create_user("Erin Editor", "erin@example.com", role_ids=(editor, retired), password="Erin@1234")

        response = self._login(" Erin@Example.com ", "Erin@1234")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["roles"], ["Editor"])
        self.assertEqual(body["permissions"], int(Permission.VIEW_CMS | Permission.EDIT_CMS))
        self.assertEqual(body["fullName"], "Erin Editor")

    def test_inactive_or_deleted_users_cannot_login(self):
        self._create_user("Idle", "idle@example.com", is_active=False, password="Idle@1234")
        self._create_user("Gone", "gone@example.com", is_deleted=True, password="Gone@1234")
        self.assertEqual(self._login("idle@example.com", "Idle@1234").status_code, 401)
        self.assertEqual(self._login("gone@example.com", "Gone@1234").status_code, 401)

    def test_refresh_issues_new_pair_and_rejects_access_tokens(self):
        tokens = self._login("admin@example.com", "Admin@123").json()

        response = self.client.post("/api/admin/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["accessToken"])

        response = self.client.post("/api/admin/auth/refresh", json={"refreshToken": tokens["accessToken"]})
        self.assertEqual(response.status_code, 401)

        response = self.client.post("/api/admin/auth/refresh", json={"refreshToken": "garbage"})
        self.assertEqual(response.status_code, 401)

    def test_refresh_token_is_not_accepted_as_bearer(self):
        tokens = self._login("admin@example.com", "Admin@123").json()
        response = self.client.get(
            "/api/admin/auth/me", headers={"Authorization": f"Bearer {tokens['refreshToken']}"}
        )
        self.assertEqual(response.status_code, 401)

    def test_me_returns_profile_and_permission_names(self):
        tokens = self._login("admin@example.com", "Admin@123").json()
        response = self.client.get(
            "/api/admin/auth/me", headers={"Authorization": f"Bearer {tokens['accessToken']}"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["email"], "admin@example.com")
        self.assertEqual(body["permissions"], KNOWN_MASK)
        self.assertEqual(len(body["permissionNames"]), 16)
        self.assertIn("DeleteCms", body["permissionNames"])

    def test_me_without_token_is_unauthorized(self):
        self.assertEqual(self.client.get("/api/admin/auth/me").status_code, 401)
        response = self.client.get("/api/admin/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(response.status_code, 401)


class PasswordResetTests(AdminApiBase):
    def setUp(self):
        super().setUp()
        self.user_id = self._create_user("Riley Reset", "riley@example.com", password="Old@12345")
        self.sent = []

        def capture(*, email, subject, body):
            self.sent.append({"email": email, "subject": subject, "body": body})
            return {"provider": "test", "sent": True}

        patcher = patch("backoffice.services.password_reset.send_email_message", side_effect=capture)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _forgot(self, email: str = "riley@example.com"):
        return self.client.post(
            "/api/admin/auth/forgot-password",
            json={"email": email, "clientResetUrl": "https://admin.example.com/reset?lang=en"},
        )

    def _reset(self, token: str, password: str = "New@12345", email: str = "riley@example.com"):
        return self.client.post(
            "/api/admin/auth/reset-password",
            json={"email": email, "token": token, "password": password},
        )

    def test_forgot_password_mails_link_and_stores_only_hash(self):
        with patch("backoffice.services.password_reset.generate_reset_token", return_value="raw-token-1"):
            response = self._forgot("RILEY@example.com")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])
        self.assertEqual(len(self.sent), 1)
        self.assertEqual(self.sent[0]["email"], "riley@example.com")

        link = next(line for line in self.sent[0]["body"].splitlines() if line.startswith("https://"))
        params = parse_qs(urlsplit(link).query)
        self.assertEqual(params["token"], ["raw-token-1"])
        self.assertEqual(params["email"], ["riley@example.com"])
        self.assertEqual(params["lang"], ["en"])

        with self.SessionLocal() as db:
            row = db.query(PasswordResetToken).one()
            self.assertNotEqual(row.token_hash, "raw-token-1")
            self.assertEqual(len(row.token_hash), 64)

    def test_unknown_email_gets_same_answer_without_mail(self):
        known = self._forgot()
        unknown = self._forgot("nobody@example.com")
        self.assertEqual(unknown.status_code, 200)
        self.assertEqual(unknown.json(), known.json())
        self.assertEqual(len(self.sent), 1)

    def test_reset_token_is_single_use(self):
        with patch("backoffice.services.password_reset.generate_reset_token", return_value="raw-token-2"):
            self._forgot()
        response = self._reset("raw-token-2")
        self.assertEqual(response.status_code, 200)

        with self.SessionLocal() as db:
            user = db.query(User).filter(User.email == "riley@example.com").one()
            self.assertTrue(verify_password("New@12345", user.password_hash))

        response = self._reset("raw-token-2", password="Other@12345")
        self.assertEqual(response.status_code, 400)

    def test_new_request_revokes_older_token(self):
        with patch("backoffice.services.password_reset.generate_reset_token", side_effect=["first", "second"]):
            self._forgot()
            self._forgot()
        self.assertEqual(self._reset("first").status_code, 400)
        self.assertEqual(self._reset("second").status_code, 200)

    def test_expired_token_is_rejected(self):
        with patch("backoffice.services.password_reset.generate_reset_token", return_value="stale"):
            self._forgot()
        with self.SessionLocal() as db:
            row = db.query(PasswordResetToken).one()
            row.expires_at = utcnow() - timedelta(minutes=1)
            db.commit()
        self.assertEqual(self._reset("stale").status_code, 400)

    def test_weak_password_is_rejected_before_token_is_spent(self):
        with patch("backoffice.services.password_reset.generate_reset_token", return_value="keep"):
            self._forgot()
        response = self._reset("keep", password="short")
        self.assertEqual(response.status_code, 400)
        self.assertIn("uppercase", response.json()["detail"])
        self.assertEqual(self._reset("keep").status_code, 200)

    def test_reset_url_must_be_absolute(self):
        response = self.client.post(
            "/api/admin/auth/forgot-password",
            json={"email": "riley@example.com", "clientResetUrl": "/reset"},
        )
        self.assertEqual(response.status_code, 422)

    def test_forgot_password_is_rate_limited_per_email(self):
        with patch("backoffice.api.admin.auth.settings.FORGOT_PASSWORD_RATE_LIMIT", 2):
            self.assertEqual(self._forgot().status_code, 200)
            self.assertEqual(self._forgot().status_code, 200)
            response = self._forgot()
            self.assertEqual(response.status_code, 429)
            self.assertTrue(int(response.headers["retry-after"]) > 0)
            self.assertEqual(self._forgot("other@example.com").status_code, 200)
        self.assertEqual(len(self.sent), 2)


class AccountStateAccessTests(AdminApiBase):
    def _users_query(self, headers: dict):
        return self.client.post("/api/admin/users/query", json={"page": 1, "pageSize": 10}, headers=headers)

    def test_deactivated_account_loses_access_before_token_expiry(self):
        user_id = self._create_user("Dana Doe", "dana@example.com")
        headers = self._auth_headers(sub=user_id, email="dana@example.com")
        self.assertEqual(self._users_query(headers).status_code, 200)

        with self.SessionLocal() as db:
            db.get(User, UUID(user_id)).is_active = False
            db.commit()
        self.assertEqual(self._users_query(headers).status_code, 401)
        self.assertEqual(self.client.get("/api/admin/geo/countries", headers=headers).status_code, 401)

    def test_deleted_account_loses_access(self):
        user_id = self._create_user("Gil Gone", "gil@example.com")
        headers = self._auth_headers(sub=user_id, email="gil@example.com")
        admin_headers = self._auth_headers()
        response = self.client.delete(f"/api/admin/users/{user_id}", headers=admin_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._users_query(headers).status_code, 401)

    def test_unknown_or_malformed_subject_is_rejected(self):
        self.assertEqual(self._users_query(self._auth_headers(sub=str(uuid4()))).status_code, 401)
        self.assertEqual(self._users_query(self._auth_headers(sub="not-a-uuid")).status_code, 401)
