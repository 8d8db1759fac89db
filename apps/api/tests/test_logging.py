"""
Tests for structured log output.
"""
import json
import logging

from core.logging import (
    NO_REQUEST,
    SERVICE_NAME,
    JSONFormatter,
    RequestContextFilter,
    bind_request_id,
    current_request_id,
)


def make_record(level=logging.INFO, msg="hola", **extra):
    record = logging.LogRecord("camino.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_request_id_and_service(self):
        record = make_record(request_id="abc123")

        data = json.loads(JSONFormatter().format(record))

        assert data["request_id"] == "abc123"
        assert data["service"] == SERVICE_NAME
        assert data["message"] == "hola"
        assert "location" not in data

    def test_extra_fields_are_merged(self):
        record = make_record(extra_fields={"path": "/v1/teams", "status_code": 201})
        data = json.loads(JSONFormatter().format(record))
        assert data["path"] == "/v1/teams"
        assert data["status_code"] == 201
        assert data["request_id"] == NO_REQUEST

    def test_warnings_carry_location(self):
        data = json.loads(JSONFormatter().format(make_record(level=logging.WARNING)))
        assert data["location"].endswith(":10")


class TestRequestContext:
    def test_filter_stamps_bound_id(self):
        bound = bind_request_id("req-1")
        record = make_record()

        assert RequestContextFilter().filter(record) is True
        assert record.request_id == bound == current_request_id()

    def test_fresh_id_when_none_given(self):
        first = bind_request_id()
        second = bind_request_id()
        assert first != second
        assert len(first) == 32
