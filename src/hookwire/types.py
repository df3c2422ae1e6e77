# hookwire/types.py
"""Core type definitions and data structures for the hookwire library.

This module defines the values that flow through a request lifecycle: the
assessment verdict, the terminal outcome of a ``send()``, the three mutually
exclusive body representations, file attachments, and the type aliases for
lifecycle hooks.
"""

from collections.abc import Awaitable, Callable
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from .request import RequestDescriptor


class AssessmentResult(StrEnum):
    """Verdict produced by an assessor for a completed response."""

    SUCCESS = "success"
    FAILURE = "failure"
    RETRY = "retry"

    @classmethod
    def coerce(cls, value: "AssessmentResult | bool | str") -> "AssessmentResult":
        """Normalizes an assessor's return value.

        Booleans are accepted for assessors written in the pass/fail style:
        ``True`` maps to success and ``False`` to failure.
        """
        if isinstance(value, bool):
            return cls.SUCCESS if value else cls.FAILURE
        return cls(value)


class Outcome(StrEnum):
    """Terminal outcome of one ``send()`` invocation."""

    ABORTED = "aborted"
    TIMEOUT = "timeout"
    CONNECTION_FAILURE = "connection_failure"
    SUCCESS = "success"
    FAILURE = "failure"


class NoBody(BaseModel):
    """The request carries no form or JSON body."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class FieldBody(BaseModel):
    """URL-form-encoded (or multipart text) fields."""

    kind: Literal["fields"] = "fields"
    fields: dict[str, str] = Field(default_factory=dict)


class JsonBody(BaseModel):
    """A JSON-serializable mapping sent as ``application/json``."""

    kind: Literal["json"] = "json"
    data: dict[str, Any] = Field(default_factory=dict)


RequestBody = Annotated[NoBody | FieldBody | JsonBody, Field(discriminator="kind")]
"""Tagged union of the three body representations; exactly one is active."""


class FileAttachment(BaseModel):
    """A file to upload as one part of a multipart request.

    Either ``path`` or ``content`` must be given. When only ``path`` is set,
    the file is read when the request is built and ``filename`` defaults to
    the path itself.
    """

    path: Path | None = None
    content: bytes | None = None
    filename: str | None = None
    content_type: str | None = None

    @model_validator(mode="after")
    def _check_source(self) -> "FileAttachment":
        if self.path is None and self.content is None:
            raise ValueError("FileAttachment requires either 'path' or 'content'.")
        if self.filename is None:
            self.filename = str(self.path) if self.path is not None else "file"
        return self


LifecycleCallback = Callable[["RequestDescriptor"], Awaitable[None] | None]
"""Type alias for a lifecycle callback.

Callbacks receive the descriptor being sent and may be plain functions or
coroutine functions. Their return value is ignored.
"""

PreCheck = Callable[["RequestDescriptor"], Awaitable[bool] | bool]
"""Type alias for a pre-check hook.

Returning a falsy value aborts the ``send()`` before the transport is contacted.
"""

Assessor = Callable[
    ["RequestDescriptor"],
    Awaitable[AssessmentResult | bool] | AssessmentResult | bool,
]
"""Type alias for an assessor hook.

Assessors inspect ``descriptor.response`` and ``descriptor.payload`` and
return an ``AssessmentResult`` (or a bool, see ``AssessmentResult.coerce``).
"""
