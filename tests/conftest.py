import copy
import itertools
import time
from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest
from supabase import AuthApiError, PostgrestAPIError

from backend.client import BackendClient
from enroll.state import AppState


class FakeAuth:
    """
    Stand-in for the supabase client's `auth` attribute.

    Keeps one session in memory, refreshes it in get_session() once it is
    within ten seconds of expiry, and calls listeners with (event, session)
    the way the auth library does.
    """

    def __init__(self, backend: "FakeBackend"):
        self.backend = backend
        self.session = None
        self._listeners: dict[int, object] = {}
        self._ids = itertools.count(1)

    def on_auth_state_change(self, callback):
        key = next(self._ids)
        self._listeners[key] = callback
        return SimpleNamespace(id=key, callback=callback, unsubscribe=lambda: self._listeners.pop(key, None))

    def _save(self, event, session):
        self.session = session
        for callback in list(self._listeners.values()):
            callback(event, session)

    def sign_up(self, credentials):
        backend = self.backend
        backend.record("POST", "/auth/v1/signup", None, credentials)
        email, password = credentials["email"], credentials["password"]
        if "@" not in email:
            raise AuthApiError("Unable to validate email address: invalid format", 400, "validation_failed")
        if len(password) < 6:
            raise AuthApiError("Password should be at least 6 characters.", 422, "weak_password")
        if email in backend.users:
            raise AuthApiError("User already registered", 422, "user_already_exists")
        user_id = f"user-{next(backend.seq)}"
        backend.users[email] = (user_id, password)
        user = SimpleNamespace(id=user_id, email=email)
        if backend.confirm_email:
            return SimpleNamespace(user=user, session=None)
        session = backend.issue(user_id, email)
        self._save("SIGNED_IN", session)
        return SimpleNamespace(user=user, session=session)

    def sign_in_with_password(self, credentials):
        backend = self.backend
        backend.record("POST", "/auth/v1/token", {"grant_type": "password"}, credentials)
        user = backend.users.get(credentials["email"])
        if user is None or user[1] != credentials["password"]:
            raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        session = backend.issue(user[0], credentials["email"])
        self._save("SIGNED_IN", session)
        return SimpleNamespace(user=session.user, session=session)

    def get_session(self):
        if self.session is None or self.session.expires_at > time.time() + 10:
            return self.session
        backend = self.backend
        backend.record("POST", "/auth/v1/token", {"grant_type": "refresh_token"}, None)
        if "refresh" in backend.fail:
            raise AuthApiError("Service Unavailable", 503, None)
        user_id = backend.refresh_tokens.pop(self.session.refresh_token, None)
        if user_id is None:
            raise AuthApiError("Invalid Refresh Token: Refresh Token Not Found", 400, "refresh_token_not_found")
        self._save("TOKEN_REFRESHED", backend.issue(user_id, backend.email_of(user_id)))
        return self.session

    def sign_out(self, options=None):
        backend = self.backend
        backend.record("POST", "/auth/v1/logout", options, None)
        # The library ignores a failed logout request and signs out locally.
        if self.session is not None and "logout" not in backend.fail:
            user_id = self.session.user.id
            backend.refresh_tokens = {r: u for r, u in backend.refresh_tokens.items() if u != user_id}
        self._save("SIGNED_OUT", None)


class FakeQuery:
    """The table query builder: select/order/eq/insert/update, then execute()."""

    def __init__(self, backend: "FakeBackend", table: str):
        self.backend = backend
        self.table   = table
        self.method  = "GET"
        self.params: dict[str, str] = {}
        self.body    = None

    def select(self, columns):
        self.params["select"] = columns.replace(" ", "")
        return self

    def order(self, column, desc=False):
        self.params["order"] = f"{column}.{'desc' if desc else 'asc'}"
        return self

    def eq(self, column, value):
        self.params[column] = f"eq.{value}"
        return self

    def insert(self, rows):
        self.method, self.body = "POST", rows
        return self

    def update(self, values):
        self.method, self.body = "PATCH", values
        return self

    def execute(self):
        return self.backend.execute(self.method, self.table, self.params, self.body)


class FakeBackend:
    """
    In-memory stand-in for the supabase client.

    Has the same `auth` and `table()` surface, so the real BackendClient,
    state and workflow run on top of it. Every call is recorded as
    (method, path, params, body). Add names to `fail` to make a call error:
    "courses", "enrollments", "insert", "update", "refresh", "logout",
    "network".
    """

    def __init__(self, courses=None, users=None, confirm_email=False):
        self.courses = {c["id"]: dict(c) for c in courses or []}
        self.enrollments: list[dict] = []
        self.users = dict(users or {})          # email → (user id, password)
        self.confirm_email = confirm_email
        self.expires_in = 3600
        self.refresh_tokens: dict[str, str] = {}
        self.fail: set[str] = set()
        self.calls: list[tuple[str, str, dict | None, object]] = []
        self.seq = itertools.count(1)
        self.auth = FakeAuth(self)

    # ------------------------------------------------------------------

    def record(self, method, path, params, body):
        self.calls.append((method, path, params, body))

    def issue(self, user_id: str, email: str) -> SimpleNamespace:
        n = next(self.seq)
        self.refresh_tokens[f"refresh-{n}"] = user_id
        return SimpleNamespace(
            access_token=f"access-{n}",
            refresh_token=f"refresh-{n}",
            expires_in=self.expires_in,
            expires_at=int(time.time()) + self.expires_in,
            token_type="bearer",
            user=SimpleNamespace(id=user_id, email=email),
        )

    def email_of(self, user_id: str) -> str:
        return next(e for e, (uid, _) in self.users.items() if uid == user_id)

    def another_session(self) -> "FakeBackend":
        """A second browser session: its own auth state, the same tables and users."""
        other = copy.copy(self)
        other.auth = FakeAuth(self)
        return other

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def execute(self, method, table, params, body):
        self.record(method, f"/rest/v1/{table}", params or None, body)
        if "network" in self.fail:
            raise httpx.ConnectError("connection refused")

        if (method, table) == ("GET", "courses"):
            if "courses" in self.fail:
                raise PostgrestAPIError({"message": "permission denied for table courses", "code": "42501"})
            rows = sorted(self.courses.values(), key=lambda c: c.get("created_at") or "", reverse=True)
            return SimpleNamespace(data=[dict(r) for r in rows])

        if (method, table) == ("GET", "enrollments"):
            if "enrollments" in self.fail:
                raise PostgrestAPIError({"message": "permission denied for table enrollments", "code": "42501"})
            student_id = params["student_id"].removeprefix("eq.")
            rows = []
            for e in self.enrollments:
                if e["student_id"] == student_id:
                    rows.append({**e, "courses": dict(self.courses.get(e["course_id"]) or {}) or None})
            return SimpleNamespace(data=rows)

        if (method, table) == ("POST", "enrollments"):
            if "insert" in self.fail:
                raise PostgrestAPIError({"message": "duplicate key value violates unique constraint", "code": "23505"})
            inserted = []
            for row in body:
                inserted.append({
                    "id": f"enr-{next(self.seq)}",
                    "created_at": datetime.now(timezone.utc).isoformat(),
                    "grade": None,
                    **row,
                })
            self.enrollments.extend(inserted)
            return SimpleNamespace(data=inserted)

        if (method, table) == ("PATCH", "courses"):
            if "update" in self.fail:
                raise PostgrestAPIError({"message": "new row violates row-level security policy", "code": "42501"})
            course_id = params["id"].removeprefix("eq.")
            if course_id in self.courses:
                self.courses[course_id].update(body)
            return SimpleNamespace(data=[dict(self.courses[course_id])] if course_id in self.courses else [])

        raise PostgrestAPIError({"message": f"relation \"public.{table}\" does not exist", "code": "42P01"})

    def calls_to(self, method: str, path: str) -> list:
        return [c for c in self.calls if c[0] == method and c[1] == path]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

STUDENT_EMAIL    = "x@example.com"
STUDENT_PASSWORD = "secret123"


@pytest.fixture
def courses_data():
    return [
        {
            "id": "course-a",
            "code": "CSCI0500",
            "name": "Algorithms",
            "description": "Design and analysis of algorithms.",
            "max_seats": 30,
            "available_seats": 0,
            "created_at": "2024-01-01T00:00:00+00:00",
            "instructor": "Ada Lovelace",
            "credits": 4,
            "department": "Computer Science",
        },
        {
            "id": "course-b",
            "code": "CSCI1420",
            "name": "Machine Learning",
            "description": "Introduction to neural networks and statistical learning.",
            "max_seats": 20,
            "available_seats": 1,
            "created_at": "2024-03-01T00:00:00+00:00",
            "instructor": "Alan Turing",
            "credits": 4,
            "department": "Computer Science",
        },
        {
            "id": "course-c",
            "code": "HIST0100",
            "name": "World History",
            "description": None,
            "max_seats": 50,
            "available_seats": 12,
            "created_at": "2024-02-01T00:00:00+00:00",
            "instructor": None,
            "credits": None,
            "department": None,
        },
    ]


@pytest.fixture
def backend(courses_data):
    return FakeBackend(courses_data, users={STUDENT_EMAIL: ("student-x", STUDENT_PASSWORD)})


@pytest.fixture
def client(backend):
    return BackendClient(backend)


@pytest.fixture
def state(client):
    s = AppState.create(client)
    yield s
    s.close()


@pytest.fixture
def signed_in(state):
    assert state.sign_in(STUDENT_EMAIL, STUDENT_PASSWORD)
    return state
