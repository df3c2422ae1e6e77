"""The request descriptor: one outbound HTTP call and its lifecycle overrides."""

import os
from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import httpx

from .exceptions import ValidationError
from .hooks import HookSet
from .types import (
    Assessor,
    FieldBody,
    FileAttachment,
    JsonBody,
    LifecycleCallback,
    NoBody,
    Outcome,
    PreCheck,
    RequestBody,
)

if TYPE_CHECKING:
    from .engine import LifecycleEngine

FileSource = FileAttachment | str | os.PathLike[str]
"""Anything accepted as a file attachment; plain paths are wrapped."""


def _to_attachment(source: FileSource) -> FileAttachment:
    if isinstance(source, FileAttachment):
        return source
    return FileAttachment(path=source)


class RequestDescriptor:
    """Describes one HTTP request and the hooks that override lifecycle defaults.

    A descriptor is created by the caller, mutated only by the engine while its
    own ``send()`` runs, and then discarded. Hook overrides are fixed at
    construction; the request, response, payload, and error slots are filled in
    by the engine.

    Example:
    ```python
    login = RequestDescriptor(
        "POST",
        "https://api.example.com/login",
        fields={"username": "a", "password": "b"},
        assessor=lambda d: d.response.status_code == 200,
        on_success=store_session,
    )
    await login.send()
    ```

    Attributes:
        method: Upper-cased HTTP method.
        url: Absolute target URL.
        headers: Headers merged over builder defaults; mutable until sent.
        body: The active body representation (``NoBody``, ``FieldBody`` or ``JsonBody``).
        files: Attachments per multipart field name.
        hooks: Descriptor-tier hook overrides.
        request: The ``httpx.Request`` built for the latest attempt.
        response: The response of the latest attempt, if one arrived.
        payload: Decoded JSON body; ``{}`` when the body is not valid JSON.
        error: The timeout or network error that ended the latest attempt.
        attempts: Number of transmissions made by the current ``send()``.
        outcome: Terminal outcome of the latest ``send()``.
    """

    def __init__(
        self,
        method: str,
        url: str | httpx.URL,
        *,
        headers: Mapping[str, str] | None = None,
        fields: Mapping[str, str] | None = None,
        json: Mapping[str, Any] | None = None,
        files: Mapping[str, FileSource | Sequence[FileSource]] | None = None,
        pre_check: PreCheck | None = None,
        request_modifier: LifecycleCallback | None = None,
        timeout: float | None = None,
        on_timeout: LifecycleCallback | None = None,
        on_connection_failure: LifecycleCallback | None = None,
        assessor: Assessor | None = None,
        on_request_finish: LifecycleCallback | None = None,
        on_success: LifecycleCallback | None = None,
        on_failure: LifecycleCallback | None = None,
        on_aborted: LifecycleCallback | None = None,
    ):
        """Initialize the descriptor.

        Args:
            method: HTTP method (GET, POST, etc.).
            url: Absolute target URL.
            headers: Request headers.
            fields: Form fields. Mutually exclusive with ``json``.
            json: JSON-serializable mapping. Mutually exclusive with ``fields``
                and ``files``.
            files: Attachments per field name; a single source or a sequence.
            pre_check: Overrides the default pre-check.
            request_modifier: Overrides the default request modifier.
            timeout: Overrides the default timeout, in seconds.
            on_timeout: Overrides the default timeout hook.
            on_connection_failure: Overrides the default connection-failure hook.
            assessor: Overrides the default assessor.
            on_request_finish: Overrides the default request-finished hook.
            on_success: Overrides the default success hook.
            on_failure: Overrides the default failure hook.
            on_aborted: Overrides the default aborted hook.

        Raises:
            ValidationError: If body representations conflict, the URL is not
                absolute, or a hook value is invalid.
        """
        if fields is not None and json is not None:
            raise ValidationError(
                "A request body is either form fields or JSON, not both."
            )
        if json is not None and files:
            raise ValidationError("File attachments cannot be sent with a JSON body.")

        self.method: str = method.upper()
        try:
            self.url: httpx.URL = httpx.URL(url)
        except httpx.InvalidURL as e:
            raise ValidationError(f"Invalid request target {url!r}: {e}") from e
        if not self.url.is_absolute_url:
            raise ValidationError(f"Request target must be an absolute URL: {url}")

        self.headers: dict[str, str] = dict(headers or {})
        self.body: RequestBody
        if fields is not None:
            self.body = FieldBody(fields=dict(fields))
        elif json is not None:
            self.body = JsonBody(data=dict(json))
        else:
            self.body = NoBody()

        self.files: dict[str, list[FileAttachment]] = {}
        for name, sources in (files or {}).items():
            if isinstance(sources, FileAttachment | str | os.PathLike):
                sources = [sources]
            self.files[name] = [_to_attachment(source) for source in sources]

        try:
            self.hooks = HookSet(
                pre_check=pre_check,
                request_modifier=request_modifier,
                timeout=timeout,
                on_timeout=on_timeout,
                on_connection_failure=on_connection_failure,
                assessor=assessor,
                on_request_finish=on_request_finish,
                on_success=on_success,
                on_failure=on_failure,
                on_aborted=on_aborted,
            )
        except ValueError as e:
            raise ValidationError(f"Invalid lifecycle hook configuration: {e}") from e

        self.request: httpx.Request | None = None
        self.response: httpx.Response | None = None
        self.payload: Any | None = None
        self.error: Exception | None = None
        self.attempts: int = 0
        self.outcome: Outcome | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.method} {self.url}>"

    def iter_files(self) -> Iterator[tuple[str, FileAttachment]]:
        """Yield ``(field_name, attachment)`` pairs in insertion order."""
        for name, attachments in self.files.items():
            for attachment in attachments:
                yield name, attachment

    def inject_to_body(self, additional_body: Mapping[str, Any]) -> None:
        """Merge entries into the active form or JSON body.

        Later values replace earlier ones with the same key. Does nothing when
        the descriptor has no body.
        """
        if isinstance(self.body, FieldBody):
            self.body.fields.update({k: str(v) for k, v in additional_body.items()})
        elif isinstance(self.body, JsonBody):
            self.body.data.update(additional_body)

    def inject_to_header(self, additional_headers: Mapping[str, str]) -> None:
        """Merge entries into the request headers; later values win."""
        self.headers.update(additional_headers)

    async def send(
        self, *, engine: "LifecycleEngine | None" = None, **overrides: Any
    ) -> Outcome:
        """Run the request lifecycle for this descriptor.

        Args:
            engine: Engine to run on. Defaults to the engine kept for the
                running event loop.
            **overrides: Call-time hook overrides, keyed by ``Stage`` value
                (e.g. ``on_success=...``, ``timeout=5``).

        Returns:
            Outcome: How the lifecycle ended.
        """
        if engine is None:
            from .engine import get_default_engine

            engine = get_default_engine()
        return await engine.send(self, **overrides)
