"""
Client-side course search.

A case-insensitive substring match over the already-fetched course list,
checked against name, description and instructor. Null fields never match.
The backend is not queried.
"""

from collections.abc import Iterable

from enroll.models import Course

SEARCH_FIELDS = ("name", "description", "instructor")


def matches(course: Course, query: str) -> bool:
    needle = query.lower()
    for field in SEARCH_FIELDS:
        value = getattr(course, field)
        if value and needle in value.lower():
            return True
    return False


def filter_courses(courses: Iterable[Course], query: str) -> list[Course]:
    """Courses matching query, in their original order. Empty query → all courses."""
    if not query:
        return list(courses)
    return [c for c in courses if matches(c, query)]
