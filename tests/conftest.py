"""Shared test fixtures.

The app runs against in-memory stand-ins for the Supabase client (tables and
storage) and for the Supabase Auth credential store, injected through
``create_app`` the same way the real handles are.
"""

import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from supabase import PostgrestAPIError, StorageException

from dental_api.auth.credentials import CredentialUser
from dental_api.auth.jwt import create_access_token
from dental_api.config.settings import Settings
from dental_api.main import create_app
from dental_api.utils.errors import ConflictError

TEST_SECRET = "test-secret-that-is-long-enough-for-hs256"


# --- Supabase table/storage fake ---

def _like_to_regex(pattern: str) -> re.Pattern:
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        # PostgREST accepts "*" as an alias for "%"
        if ch in "%*":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._payload = None
        self._on_conflict = None
        self._filters = []

    # operations
    def select(self, columns: str = "*", count: str | None = None):
        self._op, self._columns = "select", columns
        return self

    def insert(self, payload):
        self._op, self._payload = "insert", payload
        return self

    def update(self, payload):
        self._op, self._payload = "update", payload
        return self

    def upsert(self, payload, on_conflict: str = "id"):
        self._op, self._payload, self._on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self._op = "delete"
        return self

    # filters
    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def ilike(self, column, pattern):
        regex = _like_to_regex(pattern)
        self._filters.append(lambda row: row.get(column) is not None and regex.fullmatch(str(row[column])) is not None)
        return self

    def order(self, *args, **kwargs):
        return self

    def limit(self, *args, **kwargs):
        return self

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def _project(self, row: dict) -> dict:
        if self._columns.strip() == "*":
            return dict(row)
        return {c.strip(): row.get(c.strip()) for c in self._columns.split(",")}

    def execute(self):
        if (self._table, self._op) in self._db.failures:
            raise PostgrestAPIError({"message": f"{self._op} on {self._table} failed", "code": "XX000"})

        rows = self._db.tables.setdefault(self._table, [])
        if self._op == "select":
            data = [self._project(r) for r in rows if self._matches(r)]
        elif self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            data = []
            for item in payload:
                row = {"id": str(uuid.uuid4()), **item}
                rows.append(row)
                data.append(dict(row))
        elif self._op == "update":
            data = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    data.append(dict(row))
        elif self._op == "upsert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            data = []
            for item in payload:
                existing = next((r for r in rows if r.get(self._on_conflict) == item.get(self._on_conflict)), None)
                if existing is not None:
                    existing.update(item)
                    data.append(dict(existing))
                else:
                    rows.append(dict(item))
                    data.append(dict(item))
        else:
            data = [dict(r) for r in rows if self._matches(r)]
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
        return SimpleNamespace(data=data, count=len(data))


class FakeBucket:
    def __init__(self, db: "FakeSupabase", name: str):
        self._db = db
        self._name = name

    def upload(self, path, file, file_options=None):
        if self._db.storage_fails:
            raise StorageException({"message": "storage unavailable", "statusCode": 503})
        self._db.objects[(self._name, path)] = {"body": file, "options": file_options or {}}
        return SimpleNamespace(path=path)

    def create_signed_url(self, path, expires_in):
        return {"signedURL": f"https://storage.test/{self._name}/{path}?expires={expires_in}"}


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.objects: dict[tuple[str, str], dict] = {}
        self.failures: set[tuple[str, str]] = set()
        self.storage_fails = False
        self.storage = SimpleNamespace(from_=lambda bucket: FakeBucket(self, bucket))

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail_on(self, table: str, op: str) -> None:
        self.failures.add((table, op))

    def rows(self, table: str) -> list[dict]:
        return self.tables.get(table, [])


# --- Credential store fake ---

class FakeCredentialStore:
    def __init__(self):
        self.users: dict[str, dict] = {}
        self.reset_tokens: dict[str, str] = {}
        self.sent_resets: list[tuple[str, str | None]] = []
        self.deleted: list[str] = []

    def _user(self, user_id: str) -> CredentialUser:
        record = self.users[user_id]
        return CredentialUser(id=user_id, email=record["email"], created_at=record["created_at"])

    def create_user(self, email, password):
        if self.find_user_by_email(email):
            raise ConflictError("Email already registered")
        user_id = str(uuid.uuid4())
        self.users[user_id] = {
            "email": email,
            "password": password,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        return self._user(user_id)

    def get_user(self, user_id):
        return self._user(user_id) if user_id in self.users else None

    def list_users(self):
        return [self._user(uid) for uid in self.users]

    def find_user_by_email(self, email):
        return next((u for u in self.list_users() if u.email.lower() == email.lower()), None)

    def user_from_access_token(self, access_token):
        user_id = self.reset_tokens.get(access_token)
        return self.get_user(user_id) if user_id else None

    def verify_password(self, email, password):
        user = self.find_user_by_email(email)
        return user is not None and self.users[user.id]["password"] == password

    def update_password(self, user_id, password):
        self.users[user_id]["password"] = password

    def update_email(self, user_id, email):
        self.users[user_id]["email"] = email

    def delete_user(self, user_id):
        self.deleted.append(user_id)
        self.users.pop(user_id, None)

    def send_password_reset(self, email, redirect_to=None):
        self.sent_resets.append((email, redirect_to))


# --- Fixtures ---

@pytest.fixture
def settings(tmp_path):
    return Settings(
        SUPABASE_URL="https://example.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-role-key",
        SUPABASE_ANON_KEY="anon-key",
        JWT_SECRET=TEST_SECRET,
        PASSWORD_RESET_REDIRECT_URL="https://clinic.example.com/reset",
        UPLOAD_DIR=str(tmp_path / "uploads"),
    )


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def credentials():
    return FakeCredentialStore()


@pytest.fixture
def client(settings, db, credentials):
    return TestClient(create_app(settings, db, credentials))


@pytest.fixture
def make_user(db, credentials):
    """Create an auth user plus its profile row, like a completed registration."""

    def _make(username, usertype="patient", password="secret123", email=None, **profile):
        auth_user = credentials.create_user(email or f"{username}@example.com", password)
        now = datetime.now(timezone.utc)
        row = {
            "id": auth_user.id,
            "username": username,
            "usertype": usertype,
            "firstname": profile.pop("firstname", username.capitalize()),
            "lastname": profile.pop("lastname", "Tester"),
            "is_deleted": False,
            "deleted_at": None,
            "created_at": profile.pop("created_at", now.isoformat()),
            "updated_at": now.isoformat(),
            **profile,
        }
        db.tables.setdefault("users", []).append(row)
        return row

    return _make


@pytest.fixture
def token_for(settings):
    def _token(user, lifetime=timedelta(minutes=15)):
        return create_access_token(settings, user["id"], user["username"], user["usertype"], lifetime)

    return _token


@pytest.fixture
def admin(make_user):
    return make_user("clinicadmin", usertype="admin", password="adminpass")


@pytest.fixture
def admin_header(admin, token_for):
    return {"Authorization": f"Bearer {token_for(admin)}"}


@pytest.fixture
def patient_header(make_user, token_for):
    return {"Authorization": f"Bearer {token_for(make_user('patientpat'))}"}
