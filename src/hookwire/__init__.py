"""hookwire: request lifecycle hooks around a single outbound HTTP call.

This package wraps one HTTP request in an ordered set of overridable hooks
(pre-check, request modification, timeout, connection failure, assessment,
success and failure) so that call sites only supply what differs from the
process-wide defaults. Each hook resolves through three tiers: the ``send()``
call, the request descriptor, and the shared ``LifecycleSettings``.
"""

__version__ = "0.1.0"

from . import builder, config, engine, exceptions, hooks, log_config, request, transport, types
from .config import LifecycleSettings, get_settings
from .engine import LifecycleEngine, get_default_engine
from .hooks import HookSet, Stage, resolve_hook
from .request import RequestDescriptor
from .transport import HttpxTransport, Transport
from .types import AssessmentResult, FileAttachment, Outcome

__all__ = [
    "__version__",
    "builder",
    "config",
    "engine",
    "exceptions",
    "hooks",
    "log_config",
    "request",
    "transport",
    "types",
    "AssessmentResult",
    "FileAttachment",
    "HookSet",
    "HttpxTransport",
    "LifecycleEngine",
    "LifecycleSettings",
    "Outcome",
    "RequestDescriptor",
    "Stage",
    "Transport",
    "get_default_engine",
    "get_settings",
    "resolve_hook",
]
