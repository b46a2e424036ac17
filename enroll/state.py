"""
Application state for one browser session.

AppState is the single structure the UI renders from. It is created once per
browser session (the Streamlit page keeps it in st.session_state) and is
only mutated from that session's own script runs, in response to completed
backend calls.

Lifecycle:
    state = AppState.create(client)    subscribes to auth changes, loads courses
    state.sign_in(...) / sign_up(...) / sign_out()
    state.close()                      drops the auth subscription
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from backend.client import BackendClient
from enroll.models import Course, Enrollment, Session

log = logging.getLogger(__name__)

Tab = Literal["courses", "enrolled"]
ActionStatus = Literal["pending", "success", "error"]

CONFIRM_EMAIL_NOTICE = "Check your inbox to confirm your email, then sign in."


@dataclass
class AppState:
    client: BackendClient
    session: Session | None = None
    courses: list[Course] = field(default_factory=list)
    enrollments: list[Enrollment] = field(default_factory=list)
    search_query: str = ""
    active_tab: Tab = "courses"
    enrollment_status: dict[str, ActionStatus] = field(default_factory=dict)
    auth_open: bool = False
    auth_error: str = ""
    auth_notice: str = ""
    _subscription: Any = field(default=None, repr=False)

    @classmethod
    def create(cls, client: BackendClient) -> "AppState":
        state = cls(client=client)
        state._on_auth_change("INITIAL_SESSION", client.get_session())
        state._subscription = client.on_auth_state_change(state._on_auth_change)
        state.refresh_courses()
        return state

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def user_id(self) -> str | None:
        return self.session.user.id if self.session else None

    # ------------------------------------------------------------------
    # Session reconciliation
    # ------------------------------------------------------------------

    def _on_auth_change(self, event: str, session: Session | None) -> None:
        previous_user = self.user_id
        self.session = session

        if session is None:
            self.enrollments = []
            self.enrollment_status = {}
            self.active_tab = "courses"
        elif session.user.id != previous_user:
            self.enrollments = []
            self.enrollment_status = {}
            self.refresh_enrollments()

    def sync_session(self) -> None:
        """Let the auth library refresh an expired token; listeners reconcile the result."""
        self.client.get_session()

    # ------------------------------------------------------------------
    # Fetches (errors are logged, cache left as it was)
    # ------------------------------------------------------------------

    def refresh_courses(self) -> None:
        res = self.client.fetch_courses()
        if not res.ok:
            log.error("Error fetching courses: %s", res.error)
            return
        self.courses = res.data or []

    def refresh_enrollments(self) -> None:
        if self.user_id is None:
            return
        res = self.client.fetch_enrollments(self.user_id)
        if not res.ok:
            log.error("Error fetching enrollments: %s", res.error)
            return
        self.enrollments = res.data or []

    # ------------------------------------------------------------------
    # Auth form
    # ------------------------------------------------------------------

    def open_auth(self) -> None:
        self.auth_open = True

    def cancel_auth(self) -> None:
        self.auth_open = False

    def sign_in(self, email: str, password: str) -> bool:
        self.auth_error = ""
        self.auth_notice = ""
        res = self.client.sign_in(email, password)
        if not res.ok:
            self.auth_error = res.error.message
            return False
        self.auth_open = False
        return True

    def sign_up(self, email: str, password: str) -> bool:
        self.auth_error = ""
        self.auth_notice = ""
        res = self.client.sign_up(email, password)
        if not res.ok:
            self.auth_error = res.error.message
            return False
        if res.data is None:
            self.auth_notice = CONFIRM_EMAIL_NOTICE
        self.auth_open = False
        return True

    def sign_out(self) -> None:
        self.client.sign_out()
        # Normally already done by the SIGNED_OUT listener.
        self.session = None
        self.enrollments = []
        self.enrollment_status = {}
        self.active_tab = "courses"

    def set_tab(self, tab: Tab) -> None:
        if tab == "enrolled" and self.session is None:
            return
        self.active_tab = tab
