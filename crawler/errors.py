from __future__ import annotations

from typing import Optional

from .models import Request


class CrawlerError(Exception):
    """Base class for failures raised inside a work cycle."""

    def __init__(self, request: Request, message: str) -> None:
        super().__init__(message)
        self.request = request

    @property
    def error_type(self) -> str:
        return type(self).__name__


class FetchFailure(CrawlerError):
    """Non-200 status or transport error. Retried up to the configured bound."""

    def __init__(
        self,
        request: Request,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        if status_code is not None:
            reason = f"HTTP {status_code}"
        elif cause is None:
            reason = "response without status"
        else:
            reason = f"{type(cause).__name__}: {cause}"
        super().__init__(request, f"fetch of {request.url} failed ({reason})")
        self.status_code = status_code
        self.cause = cause

    @property
    def error_type(self) -> str:
        if self.status_code is not None:
            return f"HTTP_{self.status_code}"
        if self.cause is None:
            return "NoStatus"
        return type(self.cause).__name__


class ParseFailure(CrawlerError):
    """The spider's parse routine raised. Logged and dropped, never retried."""

    def __init__(self, request: Request, cause: BaseException) -> None:
        super().__init__(request, f"could not parse {request.url}: {type(cause).__name__}: {cause}")
        self.cause = cause

    @property
    def error_type(self) -> str:
        return type(self.cause).__name__


class DispatchFailure(CrawlerError):
    """The request queue or item sink failed while storing parse output."""

    def __init__(self, request: Request, cause: BaseException) -> None:
        super().__init__(request, f"could not dispatch results of {request.url}: {type(cause).__name__}: {cause}")
        self.cause = cause
