"""
Enrollment workflow: enroll in a course, or join its waitlist.

Steps, in order:
    1. mark the course's action "pending"
    2. decide the status from the *cached* seat count:
           available_seats > 0  → "enrolled"
           otherwise            → "waitlisted"
    3. insert the enrollment row
    4. if enrolled, write available_seats = cached - 1 with a second call
    5. re-fetch enrollments and courses
    6. mark the action "success" (or "error" if the insert failed)

Known gap: steps 2-4 are not atomic. Two sessions enrolling near the seat
limit can both read the same count, both insert "enrolled" and both write
the same decremented value. A failed seat update is not rolled back either,
so an enrollment can exist next to a stale seat count. The backend offers no
transaction for this and the client does not invent one. Nothing is retried.
"""

import logging
from dataclasses import dataclass

from enroll.models import EnrollmentStatus, NewEnrollment
from enroll.state import ActionStatus, AppState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrollOutcome:
    course_id: str
    status: EnrollmentStatus | None      # decided status; None if nothing was sent
    action: ActionStatus | None          # final per-course action state
    seats_updated: bool | None = None    # None when no seat update was attempted


def decide_status(available_seats: int) -> EnrollmentStatus:
    return "enrolled" if available_seats > 0 else "waitlisted"


def enroll(state: AppState, course_id: str) -> EnrollOutcome:
    if state.session is None:
        return EnrollOutcome(course_id, status=None, action=None)

    state.enrollment_status[course_id] = "pending"

    course = next((c for c in state.courses if c.id == course_id), None)
    if course is None:
        log.warning("Enroll requested for unknown course %s", course_id)
        state.enrollment_status[course_id] = "error"
        return EnrollOutcome(course_id, status=None, action="error")

    status = decide_status(course.available_seats)
    log.info("Enrolling user=%s course=%s (%s) as %s",
             state.user_id, course.code, course_id, status)

    res = state.client.insert_enrollment(
        NewEnrollment(student_id=state.user_id, course_id=course_id, status=status)
    )
    if not res.ok:
        log.error("Error enrolling in %s: %s", course_id, res.error)
        state.enrollment_status[course_id] = "error"
        return EnrollOutcome(course_id, status=status, action="error")

    seats_updated = None
    if status == "enrolled":
        update = state.client.update_available_seats(course_id, course.available_seats - 1)
        seats_updated = update.ok
        if not update.ok:
            log.warning("Seat update failed for %s after enrolling: %s", course_id, update.error)

    state.refresh_enrollments()
    state.enrollment_status[course_id] = "success"
    state.refresh_courses()

    return EnrollOutcome(course_id, status=status, action="success", seats_updated=seats_updated)
