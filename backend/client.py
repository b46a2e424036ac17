"""
Client for the hosted data/auth backend, built on the supabase library.

Auth:
    sign_up(email, password)             new account; session unless email confirmation is on
    sign_in(email, password)             password grant
    sign_out()                           revoke and drop the local session
    get_session()                        current session, refreshed by the library when expired
    on_auth_state_change(callback)       (event, Session | None) on every session change

Tables:
    fetch_courses()                      courses, newest first
    fetch_enrollments(student_id)        the student's enrollments (+ embedded course)
    insert_enrollment(new)               one enrollment row
    update_available_seats(id, seats)    overwrite one course's seat count

Each call returns a Result; nothing here raises on a failed request. The
supabase client sends the signed-in user's access token with table calls,
so row-level security on the backend applies.

Public API:
    BackendClient(supabase)
    BackendClient.connect(url, anon_key, timeout)
    BackendClient.from_settings(settings)
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError
from supabase import Client, ClientOptions, create_client

from backend.results import AuthError, BackendError, Result, call
from enroll.models import Course, Enrollment, NewEnrollment, Session, User

log = logging.getLogger(__name__)

AuthListener = Callable[[str, Session | None], None]


def _parse_rows(model: type[BaseModel], rows: Any) -> Result[list]:
    if not isinstance(rows, list):
        return Result(error=BackendError("Expected a list of rows."))
    try:
        return Result(data=[model.model_validate(r) for r in rows])
    except ValidationError as exc:
        return Result(error=BackendError(f"Malformed {model.__name__} row: {exc.error_count()} error(s)"))


def to_session(raw: Any) -> Session | None:
    """Convert the library's session object into ours."""
    if raw is None:
        return None
    return Session(
        access_token=raw.access_token,
        refresh_token=raw.refresh_token,
        expires_in=raw.expires_in,
        expires_at=raw.expires_at,
        token_type=raw.token_type or "bearer",
        user=User(id=str(raw.user.id), email=raw.user.email),
    )


class BackendClient:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    @classmethod
    def connect(cls, url: str, anon_key: str, timeout: float | None = None) -> "BackendClient":
        if not url or not anon_key:
            raise RuntimeError("Backend URL and anon key are required.")
        # Refresh happens in get_session() on page runs, never on a timer thread.
        options = ClientOptions(auto_refresh_token=False)
        if timeout is not None:
            options.postgrest_client_timeout = timeout
        try:
            supabase = create_client(url, anon_key, options=options)
        except Exception as exc:
            raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
        return cls(supabase)

    @classmethod
    def from_settings(cls, settings) -> "BackendClient":
        return cls.connect(settings.backend_url, settings.anon_key, timeout=settings.request_timeout)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def on_auth_state_change(self, callback: AuthListener):
        """Subscribe to session changes; the returned subscription has unsubscribe()."""
        def listener(event, raw):
            session = to_session(raw)
            log.info("Auth event %s (user=%s)", event, session.user.id if session else None)
            callback(event, session)

        return self.supabase.auth.on_auth_state_change(listener)

    def sign_up(self, email: str, password: str) -> Result[Session | None]:
        """
        Register a new account.

        data is the new Session, or None when the backend wants the email
        confirmed first.
        """
        res = call(self.supabase.auth.sign_up, {"email": email, "password": password}, error_cls=AuthError)
        if not res.ok:
            log.info("Sign-up failed for %s: %s", email, res.error)
            return res
        if res.data.session is None:
            log.info("Sign-up for %s needs email confirmation.", email)
        return Result(data=to_session(res.data.session))

    def sign_in(self, email: str, password: str) -> Result[Session]:
        res = call(
            self.supabase.auth.sign_in_with_password,
            {"email": email, "password": password},
            error_cls=AuthError,
        )
        if not res.ok:
            log.info("Sign-in failed for %s: %s", email, res.error)
            return res
        return Result(data=to_session(res.data.session))

    def sign_out(self) -> Result[None]:
        """Revoke the session server-side; the library drops the local session regardless."""
        res = call(self.supabase.auth.sign_out, error_cls=AuthError)
        if not res.ok:
            log.warning("Sign-out failed: %s", res.error)
        return Result(error=res.error)

    def get_session(self) -> Session | None:
        """
        Current session. The library refreshes an expired access token here
        and emits TOKEN_REFRESHED.

        A refresh token the auth service rejects (4xx) was revoked elsewhere:
        the session is dropped locally, which emits SIGNED_OUT. Transport
        trouble and 5xx answers keep the session and return None.
        """
        res = call(self.supabase.auth.get_session, error_cls=AuthError)
        if res.ok:
            return to_session(res.data)

        status = res.error.status
        if status is not None and 400 <= status < 500:
            log.warning("Refresh token rejected (%s); signing out locally.", res.error)
            call(self.supabase.auth.sign_out, {"scope": "local"}, error_cls=AuthError)
        else:
            log.warning("Token refresh failed: %s", res.error)
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def fetch_courses(self) -> Result[list[Course]]:
        """All courses, newest first."""
        query = self.supabase.table("courses").select("*").order("created_at", desc=True)
        res = call(query.execute)
        if not res.ok:
            return res
        return _parse_rows(Course, res.data.data)

    def fetch_enrollments(self, student_id: str) -> Result[list[Enrollment]]:
        """The student's enrollments, each with its course embedded."""
        query = self.supabase.table("enrollments").select("*, courses(*)").eq("student_id", student_id)
        res = call(query.execute)
        if not res.ok:
            return res
        return _parse_rows(Enrollment, res.data.data)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert_enrollment(self, new: NewEnrollment) -> Result[None]:
        query = self.supabase.table("enrollments").insert([new.model_dump()])
        return Result(error=call(query.execute).error)

    def update_available_seats(self, course_id: str, available_seats: int) -> Result[None]:
        """Overwrite one course's seat count. This is a plain write, not an atomic decrement."""
        query = self.supabase.table("courses").update({"available_seats": available_seats}).eq("id", course_id)
        return Result(error=call(query.execute).error)
