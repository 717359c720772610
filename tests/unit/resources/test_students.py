"""Unit tests for ResourceClient and the typed students client."""

from __future__ import annotations

import json

import httpx
import pytest

from portal_client.cache import QueryCache
from portal_client.core.errors import ErrorKind
from portal_client.http.pipeline import RequestPipeline
from portal_client.resources import ResourceClient
from portal_client.students import CreateStudentRequest, Student, StudentsClient

STUDENT = {
    "id": 7,
    "name": "Ada",
    "grade": 5,
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-02T00:00:00Z",
    "deleted_at": None,
}


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def make_students(store, config, cache, recording_sleep, transport_factory):
    def _make(*script: object):
        transport = transport_factory(*script)
        pipeline = RequestPipeline(store, config=config, transport=transport, sleep=recording_sleep)
        return StudentsClient(pipeline, cache=cache), transport

    return _make


@pytest.mark.anyio
async def test_list_parses_and_caches(make_students, cache) -> None:
    students, transport = make_students(
        httpx.Response(200, json={"students": [STUDENT], "count": 1})
    )

    first = await students.list()
    second = await students.list()

    assert first.success is True
    assert first.data.count == 1
    assert first.data.students == [Student.from_payload(STUDENT)]
    assert first.data.students[0].is_active is True
    assert second.data == first.data
    assert len(transport.requests) == 1
    assert "students" in cache


@pytest.mark.anyio
async def test_include_deleted_uses_separate_key(make_students, cache) -> None:
    students, transport = make_students(httpx.Response(200, json={"students": [], "count": 0}))

    await students.list()
    await students.list(include_deleted=True)

    assert len(transport.requests) == 2
    assert transport.requests[1].url.params["include_deleted"] == "true"
    assert len(cache) == 2


@pytest.mark.anyio
async def test_create_invalidates_after_success(make_students, cache) -> None:
    students, transport = make_students(
        httpx.Response(200, json={"students": [], "count": 0}),
        httpx.Response(201, json=STUDENT),
        httpx.Response(200, json={"students": [STUDENT], "count": 1}),
    )

    await students.list()
    created = await students.create(CreateStudentRequest(name="Ada", grade=5))
    refreshed = await students.list()

    assert created.status == 201
    assert created.data.id == 7
    assert json.loads(transport.requests[1].content) == {"name": "Ada", "grade": 5}
    assert refreshed.data.count == 1
    assert len(transport.requests) == 3


@pytest.mark.anyio
async def test_failed_mutation_keeps_cache(make_students, cache) -> None:
    students, transport = make_students(
        httpx.Response(200, json={"students": [STUDENT], "count": 1}),
        httpx.Response(400, json={"message": "Grade must be between 1 and 12"}),
    )

    await students.list()
    failed = await students.update(7, CreateStudentRequest(name="Ada", grade=6))

    assert failed.success is False
    assert failed.error.kind is ErrorKind.VALIDATION_ERROR
    assert failed.error.message == "Grade must be between 1 and 12"
    assert "students" in cache
    assert transport.requests[1].method == "PUT"
    assert transport.requests[1].url.path == "/students/7"


@pytest.mark.anyio
async def test_delete_invalidates(make_students, cache) -> None:
    students, transport = make_students(
        httpx.Response(200, json=STUDENT),
        httpx.Response(204),
    )

    await students.get(7)
    assert ("students", 7) in cache

    deleted = await students.delete(7)

    assert deleted.success is True
    assert deleted.data is None
    assert ("students", 7) not in cache
    assert transport.requests[1].method == "DELETE"


@pytest.mark.anyio
async def test_unexpected_payload_becomes_failure(make_students, cache) -> None:
    students, _ = make_students(httpx.Response(200, json={"students": [{"id": 1}]}))

    outcome = await students.list()

    assert outcome.success is False
    assert outcome.error.code == "INVALID_PAYLOAD"
    assert outcome.error.kind is ErrorKind.UNKNOWN_ERROR


@pytest.mark.parametrize(
    "name, grade",
    [("", 3), ("   ", 3), ("x" * 256, 3), ("Ada", 0), ("Ada", 13)],
)
def test_create_request_validation(name, grade) -> None:
    with pytest.raises(ValueError):
        CreateStudentRequest(name=name, grade=grade)


@pytest.mark.anyio
async def test_generic_resource_patch_and_keys(store, config, cache, transport_factory) -> None:
    transport = transport_factory(httpx.Response(200, json={"ok": True}))
    pipeline = RequestPipeline(store, config=config, transport=transport)
    courses = ResourceClient(pipeline, "courses", "courses/", cache=cache)

    assert courses.path == "/courses"
    assert courses.list_key() == ("courses",)
    assert courses.list_key({"b": 2, "a": 1}) == ("courses", "list", (("a", "1"), ("b", "2")))

    await courses.list({"a": 1})
    assert len(cache) == 1
    outcome = await courses.patch(3, {"title": "Algebra"})

    assert outcome.success is True
    assert len(cache) == 0
    assert transport.requests[-1].method == "PATCH"
    assert transport.requests[-1].url.path == "/courses/3"
