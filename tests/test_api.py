"""API tests: registration, login, access guard, entry scoping, and admin management over HTTP."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient
from pydantic import SecretStr
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.database import get_db
from app.core.roles import Role
from app.core.security import TokenCodec, password_verifier
from app.main import app
from app.models import Base, Entry, User
from app.services.auth import BOOTSTRAP_ADMIN_ID

ADMIN_SECRET = "bootstrap-secret"


def _entry_body(**overrides: str) -> dict[str, str]:
    body = {"situation": "s", "text": "t", "colour": "c", "icon": "i"}
    body.update(overrides)
    return body


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    """Runs the app against a fresh in-memory SQLite database per test."""

    def setUp(self) -> None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(engine)
        self.SessionTesting = sessionmaker(bind=engine, autoflush=False)
        self.settings = get_settings().model_copy(
            update={
                "ADMIN_PASSWORD": SecretStr(ADMIN_SECRET),
                "ALLOW_LEGACY_PASSWORD_UPGRADE": False,
            }
        )

        def override_get_db():
            db = self.SessionTesting()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: self.settings
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()
        app.dependency_overrides.clear()

    def codec(self) -> TokenCodec:
        return TokenCodec.from_settings(self.settings)

    def register(self, name: str, password: str = "p@ss", email: str | None = None) -> dict:
        resp = self.client.post(
            "/user/create",
            json={"name": name, "email": email or f"{name}@example.com", "password": password},
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def login(self, name: str, password: str = "p@ss") -> str:
        resp = self.client.post("/user/login", json={"name": name, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        # Tests pass tokens explicitly; drop the session cookie the login just set.
        self.client.cookies.clear()
        return resp.json()["token"]

    def register_and_login(self, name: str, password: str = "p@ss") -> tuple[int, str]:
        user = self.register(name, password)
        return user["id"], self.login(name, password)

    def admin_token(self) -> str:
        return self.login("admin", ADMIN_SECRET)

    def count_entries(self, user_id: int) -> int:
        with self.SessionTesting() as db:
            return db.query(Entry).filter(Entry.user_id == user_id).count()


class TestRegistration(ApiTestCase):
    """POST /user/create."""

    def test_register_redacts_password_and_forces_user_role(self) -> None:
        resp = self.client.post(
            "/user/create",
            json={"name": "alice", "email": "alice@example.com", "password": "p@ss", "role": "admin"},
        )
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["name"], "alice")
        self.assertEqual(data["role"], "user")
        self.assertNotIn("password", data)
        self.assertNotIn("password_hash", data)
        with self.SessionTesting() as db:
            stored = db.get(User, data["id"])
            self.assertNotEqual(stored.password_hash, "p@ss")
            self.assertTrue(password_verifier.verify("p@ss", stored.password_hash))

    def test_missing_fields_is_400(self) -> None:
        resp = self.client.post("/user/create", json={"name": "alice", "password": "p@ss"})
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(
            "/user/create", json={"name": "", "email": "a@example.com", "password": "p@ss"}
        )
        self.assertEqual(resp.status_code, 400)

    def test_duplicate_user_is_store_error(self) -> None:
        self.register("alice")
        resp = self.client.post(
            "/user/create",
            json={"name": "alice2", "email": "alice@example.com", "password": "x"},
        )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "User already exists or database error")

    def test_reserved_admin_name_cannot_register(self) -> None:
        resp = self.client.post(
            "/user/create",
            json={"name": "Admin", "email": "root@example.com", "password": "x"},
        )
        self.assertEqual(resp.status_code, 400)


class TestLogin(ApiTestCase):
    """POST /user/login, /user/logout, /user/getusername."""

    def test_login_returns_token_in_body_and_cookie(self) -> None:
        self.register("alice")
        resp = self.client.post("/user/login", json={"name": "alice", "password": "p@ss"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["username"], "alice")
        self.assertEqual(data["role"], "user")
        self.assertEqual(resp.cookies.get("token"), data["token"])
        self.assertIs(self.codec().decode(data["token"]).role, Role.USER)

    def test_bad_credentials_are_401(self) -> None:
        self.register("alice")
        wrong = self.client.post("/user/login", json={"name": "alice", "password": "nope"})
        unknown = self.client.post("/user/login", json={"name": "bob", "password": "p@ss"})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.json()["detail"], unknown.json()["detail"])

    def test_bootstrap_admin_login_without_stored_row(self) -> None:
        resp = self.client.post("/user/login", json={"name": "ADMIN", "password": ADMIN_SECRET})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["role"], "admin")
        claims = self.codec().decode(resp.json()["token"])
        self.assertEqual(claims.user_id, BOOTSTRAP_ADMIN_ID)

    def test_getusername_via_header_and_cookie(self) -> None:
        _, token = self.register_and_login("alice")
        by_header = self.client.post("/user/getusername", headers=_auth(token))
        self.assertEqual(by_header.status_code, 200)
        self.assertEqual(by_header.json(), {"username": "alice"})

        self.client.cookies.set("token", token)
        by_cookie = self.client.post("/user/getusername")
        self.assertEqual(by_cookie.json(), {"username": "alice"})

    def test_header_takes_precedence_over_cookie(self) -> None:
        _, token = self.register_and_login("alice")
        self.client.cookies.set("token", token)
        resp = self.client.post("/user/getusername", headers=_auth("garbled"))
        self.assertEqual(resp.status_code, 401)

    def test_logout_clears_cookie(self) -> None:
        _, token = self.register_and_login("alice")
        resp = self.client.post("/user/logout", headers=_auth(token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Logged out successfully"})
        set_cookie = " ".join(resp.headers.get_list("set-cookie"))
        self.assertIn("token=", set_cookie)
        self.assertIn("Max-Age=0", set_cookie)

    def test_logout_requires_token(self) -> None:
        self.assertEqual(self.client.post("/user/logout").status_code, 401)


class TestAccessGuard(ApiTestCase):
    """Missing, garbled, expired and foreign-key tokens are 401; non-admins on admin routes are 403."""

    def test_missing_token_is_401(self) -> None:
        resp = self.client.get("/user/entries")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.headers.get("www-authenticate"), "Bearer")

    def test_expired_token_is_401(self) -> None:
        user_id, _ = self.register_and_login("alice")
        old = datetime.now(UTC) - timedelta(hours=25)
        token = self.codec().issue(user_id, "alice", Role.USER, now=old)
        self.assertEqual(self.client.get("/user/entries", headers=_auth(token)).status_code, 401)

    def test_token_signed_with_other_key_is_401(self) -> None:
        forged = TokenCodec("not-the-configured-secret-" * 3).issue(1, "alice", Role.ADMIN)
        self.assertEqual(self.client.get("/user/entries", headers=_auth(forged)).status_code, 401)
        self.assertEqual(self.client.get("/admin/users", headers=_auth(forged)).status_code, 401)

    def test_admin_routes_reject_missing_and_garbled_with_401(self) -> None:
        self.assertEqual(self.client.get("/admin/users").status_code, 401)
        self.assertEqual(
            self.client.get("/admin/entries", headers=_auth("garbled")).status_code, 401
        )

    def test_admin_routes_reject_user_token_with_403(self) -> None:
        _, token = self.register_and_login("alice")
        for method, path in (
            ("GET", "/admin/entries"),
            ("GET", "/admin/users"),
            ("PUT", "/admin/entries/1"),
            ("DELETE", "/admin/entries/1"),
            ("PUT", "/admin/users/1"),
            ("DELETE", "/admin/users/1"),
        ):
            resp = self.client.request(method, path, headers=_auth(token), json={})
            self.assertEqual(resp.status_code, 403, f"{method} {path}")

    def test_rotated_signing_key_invalidates_old_tokens(self) -> None:
        _, token = self.register_and_login("alice")
        self.settings = self.settings.model_copy(
            update={"JWT_SECRET": SecretStr("rotated-signing-secret-" * 3)}
        )
        self.assertEqual(self.client.get("/user/entries", headers=_auth(token)).status_code, 401)
        fresh = self.login("alice")
        self.assertEqual(self.client.get("/user/entries", headers=_auth(fresh)).status_code, 200)


class TestEntryScoping(ApiTestCase):
    """Self-service entry endpoints only ever see the caller's rows."""

    def test_entry_is_owned_by_creator_and_hidden_from_others(self) -> None:
        alice_id, alice = self.register_and_login("alice")
        _, bob = self.register_and_login("bob")

        resp = self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice))
        self.assertEqual(resp.status_code, 201)
        entry = resp.json()
        self.assertEqual(entry["user_id"], alice_id)
        self.assertEqual(entry["situation"], "s")

        bob_list = self.client.get("/user/entries", headers=_auth(bob))
        self.assertEqual(bob_list.status_code, 200)
        self.assertNotIn(entry["id"], [e["id"] for e in bob_list.json()])

        alice_list = self.client.get("/user/entries", headers=_auth(alice)).json()
        self.assertEqual([e["id"] for e in alice_list], [entry["id"]])

    def test_owner_in_body_is_ignored(self) -> None:
        alice_id, alice = self.register_and_login("alice")
        bob_id, _ = self.register_and_login("bob")
        body = dict(_entry_body(), user_id=bob_id)
        resp = self.client.post("/user/entries", json=body, headers=_auth(alice))
        self.assertEqual(resp.json()["user_id"], alice_id)

    def test_missing_entry_field_is_400(self) -> None:
        _, alice = self.register_and_login("alice")
        resp = self.client.post("/user/entries", json=_entry_body(icon=""), headers=_auth(alice))
        self.assertEqual(resp.status_code, 400)

    def test_list_is_newest_first(self) -> None:
        _, alice = self.register_and_login("alice")
        ids = [
            self.client.post("/user/entries", json=_entry_body(text=str(i)), headers=_auth(alice)).json()["id"]
            for i in range(3)
        ]
        listed = [e["id"] for e in self.client.get("/user/entries", headers=_auth(alice)).json()]
        self.assertEqual(listed, list(reversed(ids)))

    def test_update_own_entry_is_partial(self) -> None:
        _, alice = self.register_and_login("alice")
        entry = self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice)).json()
        resp = self.client.put(
            f"/user/entries/{entry['id']}", json={"text": "changed"}, headers=_auth(alice)
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["text"], "changed")
        self.assertEqual(resp.json()["colour"], "c")

    def test_update_with_empty_field_is_400(self) -> None:
        _, alice = self.register_and_login("alice")
        entry = self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice)).json()
        resp = self.client.put(f"/user/entries/{entry['id']}", json={"text": ""}, headers=_auth(alice))
        self.assertEqual(resp.status_code, 400)
        still = self.client.get("/user/entries", headers=_auth(alice)).json()
        self.assertEqual(still[0]["text"], "t")

    def test_other_users_entry_cannot_be_updated_or_deleted(self) -> None:
        _, alice = self.register_and_login("alice")
        _, bob = self.register_and_login("bob")
        entry = self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice)).json()

        upd = self.client.put(f"/user/entries/{entry['id']}", json={"text": "x"}, headers=_auth(bob))
        dele = self.client.delete(f"/user/entries/{entry['id']}", headers=_auth(bob))
        self.assertEqual(upd.status_code, 404)
        self.assertEqual(dele.status_code, 404)

        still = self.client.get("/user/entries", headers=_auth(alice)).json()
        self.assertEqual(still[0]["text"], "t")

    def test_delete_own_entry(self) -> None:
        alice_id, alice = self.register_and_login("alice")
        entry = self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice)).json()
        resp = self.client.delete(f"/user/entries/{entry['id']}", headers=_auth(alice))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.count_entries(alice_id), 0)
        again = self.client.delete(f"/user/entries/{entry['id']}", headers=_auth(alice))
        self.assertEqual(again.status_code, 404)

    def test_bootstrap_admin_without_row_cannot_own_entries(self) -> None:
        resp = self.client.post("/user/entries", json=_entry_body(), headers=_auth(self.admin_token()))
        self.assertEqual(resp.status_code, 403)


class TestAdmin(ApiTestCase):
    """Admin routes address any user or entry by id."""

    def test_lists_all_users_and_entries(self) -> None:
        _, alice = self.register_and_login("alice")
        _, bob = self.register_and_login("bob")
        self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice))
        self.client.post("/user/entries", json=_entry_body(), headers=_auth(bob))
        admin = self.admin_token()

        users = self.client.get("/admin/users", headers=_auth(admin))
        self.assertEqual(users.status_code, 200)
        self.assertEqual([u["name"] for u in users.json()], ["alice", "bob"])
        for u in users.json():
            self.assertNotIn("password", u)
            self.assertNotIn("password_hash", u)

        entries = self.client.get("/admin/entries", headers=_auth(admin))
        self.assertEqual(len(entries.json()), 2)

    def test_update_and_delete_any_entry(self) -> None:
        _, alice = self.register_and_login("alice")
        entry = self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice)).json()
        admin = self.admin_token()

        upd = self.client.put(
            f"/admin/entries/{entry['id']}", json={"colour": "blue"}, headers=_auth(admin)
        )
        self.assertEqual(upd.status_code, 200)
        self.assertEqual(upd.json()["colour"], "blue")

        dele = self.client.delete(f"/admin/entries/{entry['id']}", headers=_auth(admin))
        self.assertEqual(dele.status_code, 200)
        missing = self.client.delete(f"/admin/entries/{entry['id']}", headers=_auth(admin))
        self.assertEqual(missing.status_code, 404)

    def test_update_user_role_and_password(self) -> None:
        alice_id, _ = self.register_and_login("alice")
        admin = self.admin_token()
        resp = self.client.put(
            f"/admin/users/{alice_id}",
            json={"role": "admin", "password": "new-pass"},
            headers=_auth(admin),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "User updated successfully"})

        bad = self.client.post("/user/login", json={"name": "alice", "password": "p@ss"})
        self.assertEqual(bad.status_code, 401)
        token = self.login("alice", "new-pass")
        self.assertIs(self.codec().decode(token).role, Role.ADMIN)
        self.assertEqual(self.client.get("/admin/users", headers=_auth(token)).status_code, 200)

    def test_update_user_rejects_unknown_role_and_reserved_name(self) -> None:
        alice_id, _ = self.register_and_login("alice")
        admin = self.admin_token()
        role = self.client.put(f"/admin/users/{alice_id}", json={"role": "root"}, headers=_auth(admin))
        name = self.client.put(f"/admin/users/{alice_id}", json={"name": "admin"}, headers=_auth(admin))
        self.assertEqual(role.status_code, 400)
        self.assertEqual(name.status_code, 400)

    def test_rename_to_taken_name_is_rejected(self) -> None:
        self.register_and_login("alice")
        bob_id, _ = self.register_and_login("bob", "bobpw")
        admin = self.admin_token()

        resp = self.client.put(f"/admin/users/{bob_id}", json={"name": "alice"}, headers=_auth(admin))
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "User already exists or database error")
        taken = self.client.put(
            f"/admin/users/{bob_id}", json={"email": "ALICE@example.com"}, headers=_auth(admin)
        )
        self.assertEqual(taken.status_code, 500)

        # bob keeps his name and can still sign in.
        self.login("bob", "bobpw")
        same = self.client.put(f"/admin/users/{bob_id}", json={"name": "bob"}, headers=_auth(admin))
        self.assertEqual(same.status_code, 200)

    def test_list_users_reports_unknown_stored_role_as_user(self) -> None:
        with self.SessionTesting() as db:
            db.add(User(name="legacy", email="legacy@example.com", password_hash="x", role="superuser"))
            db.commit()
        resp = self.client.get("/admin/users", headers=_auth(self.admin_token()))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([(u["name"], u["role"]) for u in resp.json()], [("legacy", "user")])

    def test_update_missing_user_is_404(self) -> None:
        resp = self.client.put("/admin/users/999", json={"name": "x"}, headers=_auth(self.admin_token()))
        self.assertEqual(resp.status_code, 404)

    def test_delete_user_removes_their_entries(self) -> None:
        alice_id, alice = self.register_and_login("alice")
        bob_id, bob = self.register_and_login("bob")
        for _ in range(2):
            self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice))
        self.client.post("/user/entries", json=_entry_body(), headers=_auth(bob))
        admin = self.admin_token()

        resp = self.client.delete(f"/admin/users/{alice_id}", headers=_auth(admin))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.count_entries(alice_id), 0)
        self.assertEqual(self.count_entries(bob_id), 1)
        with self.SessionTesting() as db:
            self.assertIsNone(db.get(User, alice_id))

        again = self.client.delete(f"/admin/users/{alice_id}", headers=_auth(admin))
        self.assertEqual(again.status_code, 404)

    def test_failed_user_delete_keeps_user_and_entries(self) -> None:
        alice_id, alice = self.register_and_login("alice")
        for _ in range(2):
            self.client.post("/user/entries", json=_entry_body(), headers=_auth(alice))
        admin = self.admin_token()

        with patch.object(Session, "commit", side_effect=SQLAlchemyError("store unavailable")):
            resp = self.client.delete(f"/admin/users/{alice_id}", headers=_auth(admin))

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(self.count_entries(alice_id), 2)
        with self.SessionTesting() as db:
            self.assertIsNotNone(db.get(User, alice_id))


class TestHealth(ApiTestCase):
    """Liveness and health endpoints need no token."""

    def test_ping(self) -> None:
        resp = self.client.get("/ping")
        self.assertEqual(resp.json(), {"message": "pong"})

    def test_health_reports_database(self) -> None:
        resp = self.client.get("/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["database"], "connected")
