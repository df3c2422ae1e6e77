"""Turns a request descriptor into a transport-ready ``httpx.Request``."""

import asyncio
import mimetypes
from typing import TYPE_CHECKING

import httpx

from .types import FieldBody, FileAttachment, JsonBody

if TYPE_CHECKING:
    from .config import LifecycleSettings
    from .request import RequestDescriptor

# Leading bytes of common upload formats, checked when the filename is not enough.
_MAGIC_NUMBERS: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
)


def guess_content_type(filename: str | None, data: bytes) -> str | None:
    """Best-effort content type from the filename, then from magic bytes.

    Returns:
        str | None: A MIME type such as ``"image/png"``, or None if unknown.
    """
    if filename:
        mime_type, _ = mimetypes.guess_type(filename)
        if mime_type:
            return mime_type
    for signature, mime_type in _MAGIC_NUMBERS:
        if data.startswith(signature):
            return mime_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def format_body_for_log(content: bytes, limit: int) -> str:
    """Render a body for logging, replacing oversized bodies with a size marker."""
    if len(content) > limit:
        return f"<body of {len(content)} bytes omitted>"
    return content.decode("utf-8", errors="replace")


async def _read_attachment(attachment: FileAttachment) -> bytes:
    if attachment.content is not None:
        return attachment.content
    assert attachment.path is not None
    return await asyncio.to_thread(attachment.path.read_bytes)


async def build_request(
    descriptor: "RequestDescriptor", settings: "LifecycleSettings"
) -> httpx.Request:
    """Build the ``httpx.Request`` for one attempt of a descriptor.

    With file attachments the request is multipart and form fields become text
    parts. Otherwise the body is URL-form-encoded fields, JSON, or empty.
    Descriptor headers are merged last so they override builder defaults such
    as ``Content-Type: application/json``.

    Args:
        descriptor: The descriptor to build from, after the request modifier ran.
        settings: Settings providing the logging tag and body size limit.

    Returns:
        httpx.Request: The request, ready to hand to a transport.

    Raises:
        TypeError: If a JSON body is not serializable. Not caught here.
        OSError: If an attachment path cannot be read.
    """
    body = descriptor.body
    headers = httpx.Headers()
    section = f"{descriptor.method} {descriptor.url}"

    if descriptor.files:
        files: list[tuple[str, tuple[str | None, bytes, str | None]]] = []
        manifest: list[str] = []
        for field_name, attachment in descriptor.iter_files():
            data = await _read_attachment(attachment)
            content_type = attachment.content_type or guess_content_type(
                attachment.filename, data
            )
            files.append((field_name, (attachment.filename, data, content_type)))
            manifest.append(f"{field_name}: {attachment.filename} ({len(data)})")

        fields = dict(body.fields) if isinstance(body, FieldBody) else None
        headers.update(descriptor.headers)
        request = httpx.Request(
            descriptor.method,
            descriptor.url,
            data=fields,
            files=files,
            headers=headers,
        )
        settings.log(str(dict(request.headers)), f"{section} (Request Headers)")
        settings.log(str(fields or {}), f"{section} (Request Body)")
        settings.log(str(manifest), f"{section} (Request Body Files)")
        return request

    if isinstance(body, FieldBody):
        headers.update(descriptor.headers)
        request = httpx.Request(
            descriptor.method, descriptor.url, data=dict(body.fields), headers=headers
        )
        logged_body = str(body.fields)
    elif isinstance(body, JsonBody):
        headers["Content-Type"] = "application/json"
        headers.update(descriptor.headers)
        request = httpx.Request(
            descriptor.method, descriptor.url, json=body.data, headers=headers
        )
        logged_body = format_body_for_log(request.content, settings.log_body_limit)
    else:
        headers.update(descriptor.headers)
        request = httpx.Request(descriptor.method, descriptor.url, headers=headers)
        logged_body = ""

    settings.log(str(dict(request.headers)), f"{section} (Request Headers)")
    settings.log(logged_body, f"{section} (Request Body)")
    return request
