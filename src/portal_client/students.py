"""Typed client for the ``/students`` resource."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Final, Mapping

from portal_client.cache import QueryCache
from portal_client.core.errors import MSG_DEFAULT, UnknownError
from portal_client.core.models import Outcome
from portal_client.http.pipeline import RequestPipeline
from portal_client.resources import ResourceClient

_LOG = logging.getLogger("portal-client.students")

STUDENTS_RESOURCE: Final[str] = "students"
STUDENTS_PATH: Final[str] = "/students"

MIN_GRADE: Final[int] = 1
MAX_GRADE: Final[int] = 12
MAX_NAME_LENGTH: Final[int] = 255


@dataclass(frozen=True, slots=True)
class Student:
    id: int
    name: str
    grade: int
    created_at: str
    updated_at: str
    deleted_at: str | None = None

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Student":
        return cls(
            id=int(payload["id"]),
            name=str(payload["name"]),
            grade=int(payload["grade"]),
            created_at=str(payload.get("created_at", "")),
            updated_at=str(payload.get("updated_at", "")),
            deleted_at=payload.get("deleted_at"),
        )


@dataclass(frozen=True, slots=True)
class StudentsPage:
    students: list[Student]
    count: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StudentsPage":
        students = [Student.from_payload(item) for item in payload.get("students") or []]
        return cls(students=students, count=int(payload.get("count", len(students))))


@dataclass(frozen=True, slots=True)
class CreateStudentRequest:
    name: str
    grade: int

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Name is required")
        if len(self.name) > MAX_NAME_LENGTH:
            raise ValueError("Name is too long")
        if not MIN_GRADE <= self.grade <= MAX_GRADE:
            raise ValueError(f"Grade must be between {MIN_GRADE} and {MAX_GRADE}")

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "grade": self.grade}


def _typed(outcome: Outcome, parse: Callable[[Any], Any]) -> Outcome:
    if not outcome.success or outcome.data is None:
        return outcome
    try:
        return replace(outcome, data=parse(outcome.data))
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        _LOG.error("Unexpected %s payload: %s", STUDENTS_RESOURCE, exc)
        return Outcome.fail(
            UnknownError(MSG_DEFAULT, status=outcome.status, code="INVALID_PAYLOAD", details=outcome.data)
        )


class StudentsClient:
    """Student listing and mutations; list reads are cached under ``students``."""

    def __init__(self, pipeline: RequestPipeline, *, cache: QueryCache | None = None) -> None:
        self.resource = ResourceClient(pipeline, STUDENTS_RESOURCE, STUDENTS_PATH, cache=cache)

    async def list(self, *, include_deleted: bool = False) -> Outcome[StudentsPage]:
        params = {"include_deleted": "true"} if include_deleted else None
        return _typed(await self.resource.list(params), StudentsPage.from_payload)

    async def get(self, student_id: int) -> Outcome[Student]:
        return _typed(await self.resource.get(student_id), Student.from_payload)

    async def create(self, request: CreateStudentRequest) -> Outcome[Student]:
        return _typed(await self.resource.create(request.to_payload()), Student.from_payload)

    async def update(self, student_id: int, request: CreateStudentRequest) -> Outcome[Student]:
        return _typed(
            await self.resource.update(student_id, request.to_payload()), Student.from_payload
        )

    async def delete(self, student_id: int) -> Outcome:
        return await self.resource.delete(student_id)
