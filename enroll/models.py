"""
Row and session models shared by the backend client, the state layer and the UI.

Course and Enrollment mirror the `courses` and `enrollments` tables. Rows are
validated from the backend's JSON; columns we don't know about are ignored.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EnrollmentStatus = Literal["enrolled", "waitlisted"]


class Course(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    code: str
    name: str
    description: str | None = None
    max_seats: int
    available_seats: int
    created_at: datetime | None = None
    instructor: str | None = None
    credits: float | None = None
    department: str | None = None


class Enrollment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    student_id: str
    course_id: str
    status: EnrollmentStatus
    created_at: datetime | None = None
    grade: str | None = None
    courses: Course | None = None   # embedded by the select=*,courses(*) join


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None


class Session(BaseModel):
    """An authenticated session, copied out of the auth library's session object."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    expires_in: int | None = None
    expires_at: int | None = None
    token_type: str = "bearer"
    user: User


class NewEnrollment(BaseModel):
    """Payload of the enrollment insert."""

    student_id: str
    course_id: str
    status: EnrollmentStatus = Field(default="enrolled")
