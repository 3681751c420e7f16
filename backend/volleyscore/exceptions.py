from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class NotFound(DomainException):
    def __init__(self, resource: str, resource_id: object) -> None:
        super().__init__(
            status_code=404,
            title=f"{resource.capitalize()} not found",
            detail=f"{resource} '{resource_id}' not found",
            code=f"{resource}_not_found",
        )


class MatchNotFound(NotFound):
    def __init__(self, match_id: str) -> None:
        super().__init__("match", match_id)


class SetNotFound(NotFound):
    def __init__(self, match_id: str, set_number: int) -> None:
        super().__init__("set", f"{match_id}/{set_number}")


class PointNotFound(NotFound):
    def __init__(self, point_id: str) -> None:
        super().__init__("point", point_id)


class TournamentNotFound(NotFound):
    def __init__(self, tournament_id: str) -> None:
        super().__init__("tournament", tournament_id)


class InvalidState(DomainException):
    """The match cannot accept the requested change in its current state."""

    def __init__(self, detail: str, *, code: str = "invalid_state") -> None:
        super().__init__(
            status_code=400,
            title="Invalid state",
            detail=detail,
            code=code,
        )


class NothingToUndo(DomainException):
    def __init__(self, detail: str = "no points to undo") -> None:
        super().__init__(
            status_code=400,
            title="Nothing to undo",
            detail=detail,
            code="nothing_to_undo",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc


class ValidationFailed(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=422,
            title="Validation error",
            detail=detail,
            code="validation_error",
        )
