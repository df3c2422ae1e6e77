# hookwire/hooks.py
"""Lifecycle stages and the three-tier hook resolution.

Every stage of a request lifecycle can be configured at three tiers: the
``send()`` call, the request descriptor, and the process-wide
``LifecycleSettings``. The first tier that provides a value wins.
"""

import inspect
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .config import LifecycleSettings
    from .request import RequestDescriptor

HookFn = Callable[..., Any]
"""Runtime type of a hook slot.

See ``LifecycleCallback``, ``PreCheck`` and ``Assessor`` in ``hookwire.types``
for the signatures each slot expects.
"""


class Stage(StrEnum):
    """Names of the overridable lifecycle stages.

    Values match the attribute names on ``HookSet`` and ``LifecycleSettings``.
    """

    PRE_CHECK = "pre_check"
    REQUEST_MODIFIER = "request_modifier"
    TIMEOUT = "timeout"
    ON_TIMEOUT = "on_timeout"
    ON_CONNECTION_FAILURE = "on_connection_failure"
    ASSESSOR = "assessor"
    ON_REQUEST_FINISH = "on_request_finish"
    ON_SUCCESS = "on_success"
    ON_FAILURE = "on_failure"
    ON_ABORTED = "on_aborted"


class HookSet(BaseModel):
    """An immutable set of optional hooks, one slot per ``Stage``.

    Used for the descriptor tier, the call tier, and the resolved result.
    """

    model_config = ConfigDict(
        frozen=True, arbitrary_types_allowed=True, extra="forbid"
    )

    pre_check: HookFn | None = None
    request_modifier: HookFn | None = None
    timeout: float | None = Field(default=None, gt=0)
    on_timeout: HookFn | None = None
    on_connection_failure: HookFn | None = None
    assessor: HookFn | None = None
    on_request_finish: HookFn | None = None
    on_success: HookFn | None = None
    on_failure: HookFn | None = None
    on_aborted: HookFn | None = None

    def get(self, stage: Stage) -> Any:
        return getattr(self, stage.value)


def resolve_hook(
    stage: Stage, call_arg: Any, descriptor_value: Any, config_default: Any
) -> Any:
    """Pick the hook (or value) for one stage.

    Args:
        stage: The stage being resolved. Only used to keep call sites readable.
        call_arg: Value passed to ``send()`` for this invocation.
        descriptor_value: Value stored on the request descriptor.
        config_default: Process-wide default from ``LifecycleSettings``.

    Returns:
        The first candidate that is not None, or None when no tier sets it.
    """
    for candidate in (call_arg, descriptor_value, config_default):
        if candidate is not None:
            return candidate
    return None


def resolve_hooks(
    call: HookSet, descriptor: HookSet, settings: "LifecycleSettings"
) -> HookSet:
    """Resolve every stage at once into a single ``HookSet``."""
    return HookSet(
        **{
            stage.value: resolve_hook(
                stage,
                call.get(stage),
                descriptor.get(stage),
                getattr(settings, stage.value),
            )
            for stage in Stage
        }
    )


async def invoke_hook(hook: Any, descriptor: "RequestDescriptor") -> Any:
    """Call a hook with the descriptor, awaiting it if it returns an awaitable."""
    result = hook(descriptor)
    if inspect.isawaitable(result):
        result = await result
    return result
