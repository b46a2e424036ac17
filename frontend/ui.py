"""
Streamlit frontend for EduEnroll.

Renders the AppState kept in st.session_state: a header with search and
sign-in controls, the sign-in / sign-up form, and either the course catalog
or the "My Courses" dashboard. Every button acts through an on_click
callback, so the rerun that follows renders the updated state.

A pre-built backend client can be placed in st.session_state["backend"]
before the first run; otherwise one is built from the environment.
"""

import streamlit as st

from app.app import build_client, setup_logging
from app.config import load_settings
from backend.client import BackendClient
from enroll.models import Course
from enroll.state import AppState
from enroll.views import NO_ENROLLMENTS_TEXT, EnrolledCourse, course_action, my_courses, visible_courses
from enroll.workflow import enroll

STATE_KEY   = "app_state"
BACKEND_KEY = "backend"


# ---------------------------------------------------------------------------
# State bootstrap
# ---------------------------------------------------------------------------

def _client() -> BackendClient:
    if BACKEND_KEY not in st.session_state:
        settings = load_settings()
        setup_logging(settings)
        st.session_state[BACKEND_KEY] = build_client(settings)
    return st.session_state[BACKEND_KEY]


def get_state() -> AppState:
    """The session's AppState, rebuilt (and the old one closed) when the backend client is replaced."""
    client = _client()
    state = st.session_state.get(STATE_KEY)
    if state is not None and state.client is not client:
        state.close()
        state = None
    if state is None:
        with st.spinner("Loading…"):
            state = st.session_state[STATE_KEY] = AppState.create(client)
    return state


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------

def _submit_auth(state: AppState, action: str) -> None:
    email = st.session_state.get("auth_email", "")
    password = st.session_state.get("auth_password", "")
    if action == "sign_up":
        state.sign_up(email, password)
    else:
        state.sign_in(email, password)


def _update_search(state: AppState) -> None:
    state.search_query = st.session_state.get("search_query", "")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def render_header(state: AppState) -> None:
    left, right = st.columns([3, 2])
    with left:
        st.title("EduEnroll")
        st.text_input(
            "Search for courses",
            key="search_query",
            placeholder="Search for courses...",
            on_change=_update_search,
            args=(state,),
        )
    with right:
        if state.session is not None:
            st.caption(state.session.user.email or state.session.user.id)
            c1, c2, c3 = st.columns(3)
            c1.button("Courses", key="tab-courses", on_click=state.set_tab, args=("courses",),
                      type="primary" if state.active_tab == "courses" else "secondary")
            c2.button("My Courses", key="tab-enrolled", on_click=state.set_tab, args=("enrolled",),
                      type="primary" if state.active_tab == "enrolled" else "secondary")
            c3.button("Sign Out", key="sign-out", on_click=state.sign_out)
        else:
            st.button("Sign In / Sign Up", key="open-auth", on_click=state.open_auth, type="primary")

    if state.auth_notice:
        st.info(state.auth_notice)


def render_auth_form(state: AppState) -> None:
    if not state.auth_open or state.session is not None:
        return

    st.subheader("Sign In / Sign Up")
    with st.form("auth_form"):
        if state.auth_error:
            st.error(state.auth_error)
        st.text_input("Email", key="auth_email")
        st.text_input("Password", type="password", key="auth_password")
        c1, c2 = st.columns(2)
        c1.form_submit_button("Sign In", on_click=_submit_auth, args=(state, "sign_in"))
        c2.form_submit_button("Sign Up", on_click=_submit_auth, args=(state, "sign_up"))
    st.button("Cancel", key="cancel-auth", on_click=state.cancel_auth)


def _course_details(course: Course) -> None:
    if course.description:
        st.write(course.description)
    st.caption(
        f"**Instructor:** {course.instructor or 'N/A'}    **Credits:** "
        f"{format(course.credits, 'g') if course.credits is not None else 'N/A'}"
    )


def render_course_card(state: AppState, course: Course) -> None:
    with st.container(border=True):
        st.markdown(f"#### {course.name}  `{course.code}`")
        _course_details(course)
        st.caption(f"{course.available_seats} seats available")

        action = course_action(state, course)
        if action is None:
            return
        if action.kind == "status":
            st.success(action.label)
        else:
            st.button(
                action.label,
                key=f"enroll-{course.id}",
                disabled=action.disabled,
                on_click=enroll,
                args=(state, course.id),
            )
        if state.enrollment_status.get(course.id) == "error":
            st.error("Enrollment failed.")


def render_courses_tab(state: AppState) -> None:
    st.header("Learn Without Limits")
    st.write(
        "Start, switch, or advance your career with courses from top universities and companies."
    )
    st.subheader("Available Courses")

    courses = visible_courses(state)
    if not courses:
        st.info("No courses match your search.")
        return

    cols = st.columns(3)
    for i, course in enumerate(courses):
        with cols[i % 3]:
            render_course_card(state, course)


def _enrolled_card(item: EnrolledCourse, badge: str, show_grade: bool) -> None:
    with st.container(border=True):
        st.markdown(f"#### {item.course.name}")
        st.caption(badge)
        _course_details(item.course)
        if show_grade and item.enrollment.grade:
            st.info(f"Grade: {item.enrollment.grade}")


def render_my_courses_tab(state: AppState) -> None:
    enrolled, waitlisted = my_courses(state)

    st.subheader("Enrolled Courses")
    if enrolled:
        cols = st.columns(3)
        for i, item in enumerate(enrolled):
            with cols[i % 3]:
                _enrolled_card(item, "Enrolled", show_grade=True)
    else:
        st.write(NO_ENROLLMENTS_TEXT)

    if waitlisted:
        st.subheader("Waitlisted Courses")
        cols = st.columns(3)
        for i, item in enumerate(waitlisted):
            with cols[i % 3]:
                _enrolled_card(item, "Waitlisted", show_grade=False)


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

def main() -> None:
    st.set_page_config(page_title="EduEnroll", layout="wide")

    try:
        state = get_state()
    except RuntimeError as exc:
        st.error(f"Configuration error: {exc}")
        st.stop()

    state.sync_session()

    render_header(state)
    render_auth_form(state)

    if state.active_tab == "enrolled" and state.session is not None:
        render_my_courses_tab(state)
    else:
        render_courses_tab(state)
