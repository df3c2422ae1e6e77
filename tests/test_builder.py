"""Tests for request building and content-type sniffing."""

import json
from pathlib import Path

import pytest
from conftest import API_URL
from loguru import logger

from hookwire.builder import build_request, format_body_for_log, guess_content_type
from hookwire.config import LifecycleSettings
from hookwire.request import RequestDescriptor
from hookwire.types import FileAttachment


@pytest.fixture
def log_records():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.mark.asyncio
async def test_form_fields_are_urlencoded(settings):
    descriptor = RequestDescriptor("POST", API_URL, fields={"username": "a b"})

    request = await build_request(descriptor, settings)

    assert request.method == "POST"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert request.content == b"username=a+b"


@pytest.mark.asyncio
async def test_json_body_sets_content_type(settings):
    descriptor = RequestDescriptor("PUT", API_URL, json={"a": [1, 2]})

    request = await build_request(descriptor, settings)

    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"a": [1, 2]}


@pytest.mark.asyncio
async def test_descriptor_headers_win_over_builder_defaults(settings):
    descriptor = RequestDescriptor(
        "POST",
        API_URL,
        json={"a": 1},
        headers={"content-type": "application/vnd.api+json", "X-Trace": "1"},
    )

    request = await build_request(descriptor, settings)

    assert request.headers.get_list("Content-Type") == ["application/vnd.api+json"]
    assert request.headers["X-Trace"] == "1"


@pytest.mark.asyncio
async def test_no_body(settings):
    request = await build_request(RequestDescriptor("GET", API_URL), settings)

    assert request.content == b""
    assert "Content-Type" not in request.headers


@pytest.mark.asyncio
async def test_multipart_reads_files_from_disk(settings, tmp_path: Path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello")
    descriptor = RequestDescriptor(
        "POST",
        API_URL,
        fields={"kind": "note"},
        files={"upload": [path, FileAttachment(content=b"GIF89a...", filename="blob")]},
    )

    request = await build_request(descriptor, settings)
    body = request.read()

    assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert b'name="kind"\r\n\r\nnote' in body
    assert b"hello" in body
    assert b'filename="blob"' in body
    assert b"Content-Type: image/gif" in body


@pytest.mark.asyncio
async def test_multipart_without_fields(settings):
    descriptor = RequestDescriptor(
        "POST",
        API_URL,
        files={"doc": FileAttachment(content=b"%PDF-1.7", filename="doc")},
    )

    request = await build_request(descriptor, settings)

    assert b"Content-Type: application/pdf" in request.read()


@pytest.mark.asyncio
async def test_request_is_logged_with_tag(settings, log_records):
    descriptor = RequestDescriptor("POST", API_URL, fields={"username": "a"})

    await build_request(descriptor, settings)

    tags = [record["extra"].get("tag") for record in log_records]
    assert f"test-api::POST {API_URL} (Request Headers)" in tags
    body_records = [
        r for r in log_records if r["extra"].get("tag", "").endswith("(Request Body)")
    ]
    assert body_records[0]["message"] == "{'username': 'a'}"


@pytest.mark.asyncio
async def test_large_json_body_logged_as_size_marker(log_records):
    settings = LifecycleSettings(log_name="test-api", log_body_limit=8)
    descriptor = RequestDescriptor("POST", API_URL, json={"text": "x" * 50})

    request = await build_request(descriptor, settings)

    body_records = [
        r for r in log_records if r["extra"].get("tag", "").endswith("(Request Body)")
    ]
    assert body_records[0]["message"] == f"<body of {len(request.content)} bytes omitted>"


@pytest.mark.parametrize(
    ("filename", "data", "expected"),
    [
        ("photo.jpg", b"", "image/jpeg"),
        ("data.json", b"{}", "application/json"),
        (None, b"\x89PNG\r\n\x1a\n", "image/png"),
        ("noext", b"\xff\xd8\xff\xe0", "image/jpeg"),
        ("noext", b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        ("noext", b"plain", None),
    ],
)
def test_guess_content_type(filename, data, expected):
    assert guess_content_type(filename, data) == expected


def test_format_body_for_log():
    assert format_body_for_log(b"short", 10) == "short"
    assert format_body_for_log(b"x" * 11, 10) == "<body of 11 bytes omitted>"
