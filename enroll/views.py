"""
Derived views over AppState. Pure functions; the Streamlit page renders these.

    visible_courses(state)     → search-filtered course list
    course_action(state, c)    → what a course card offers the user
    my_courses(state)          → (enrolled, waitlisted) joined with the course cache
"""

from dataclasses import dataclass
from typing import Literal

from enroll.models import Course, Enrollment, EnrollmentStatus
from enroll.search import filter_courses
from enroll.state import AppState

STATUS_LABELS = {"enrolled": "Enrolled", "waitlisted": "Waitlisted"}

ENROLL_LABEL   = "Enroll Now"
WAITLIST_LABEL = "Join Waitlist"
PENDING_LABEL  = "Enrolling..."

NO_ENROLLMENTS_TEXT = "You haven't enrolled in any courses yet."


@dataclass(frozen=True)
class CourseAction:
    """
    One of:
        kind="status"  label is "Enrolled" / "Waitlisted", no button
        kind="button"  label is the button text; disabled while pending
    """
    kind: Literal["status", "button"]
    label: str
    disabled: bool = False


@dataclass(frozen=True)
class EnrolledCourse:
    enrollment: Enrollment
    course: Course


def visible_courses(state: AppState) -> list[Course]:
    return filter_courses(state.courses, state.search_query)


def enrollment_for(state: AppState, course_id: str) -> Enrollment | None:
    return next((e for e in state.enrollments if e.course_id == course_id), None)


def course_action(state: AppState, course: Course) -> CourseAction | None:
    """None for anonymous users: they only browse."""
    if state.session is None:
        return None

    existing = enrollment_for(state, course.id)
    if existing is not None:
        return CourseAction("status", STATUS_LABELS[existing.status])

    if state.enrollment_status.get(course.id) == "pending":
        return CourseAction("button", PENDING_LABEL, disabled=True)
    if course.available_seats > 0:
        return CourseAction("button", ENROLL_LABEL)
    return CourseAction("button", WAITLIST_LABEL)


def _joined(state: AppState, status: EnrollmentStatus) -> list[EnrolledCourse]:
    by_id = {c.id: c for c in state.courses}
    return [
        EnrolledCourse(e, by_id[e.course_id])
        for e in state.enrollments
        if e.status == status and e.course_id in by_id
    ]


def my_courses(state: AppState) -> tuple[list[EnrolledCourse], list[EnrolledCourse]]:
    """Enrolled and waitlisted courses; enrollments whose course isn't cached are dropped."""
    if state.session is None:
        return [], []
    return _joined(state, "enrolled"), _joined(state, "waitlisted")
