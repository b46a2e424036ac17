"""
Success-or-failure results for backend calls.

The supabase client raises on failure: auth errors from the auth service,
APIError from table queries and httpx errors when the backend can't be
reached. call() runs one library call and folds all of those into a
Result, so the state layer never sees an exception from the backend.

Public API:
    Result(data, error)
    BackendError / AuthError
    call(fn, *args, error_cls=BackendError, **kwargs) → Result
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from supabase import AuthError as SupabaseAuthError
from supabase import PostgrestAPIError

T = TypeVar("T")


class BackendError(Exception):
    """A failed backend call: unreachable backend or an error answer."""

    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status  = status
        self.code    = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status={self.status}, code={self.code!r})"


class AuthError(BackendError):
    """Failure from the auth service; message is shown to the user verbatim."""


@dataclass(frozen=True)
class Result(Generic[T]):
    data: T | None = None
    error: BackendError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def call(
    fn: Callable[..., Any],
    *args: Any,
    error_cls: type[BackendError] = BackendError,
    **kwargs: Any,
) -> Result[Any]:
    try:
        return Result(data=fn(*args, **kwargs))
    except SupabaseAuthError as exc:
        return Result(error=error_cls(
            exc.message,
            status=getattr(exc, "status", None),
            code=getattr(exc, "code", None),
        ))
    except PostgrestAPIError as exc:
        return Result(error=error_cls(exc.message or str(exc), code=exc.code))
    except httpx.HTTPError as exc:
        return Result(error=error_cls(f"Network error: {exc}"))
