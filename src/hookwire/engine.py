"""Lifecycle engine for hookwire.

This module provides the LifecycleEngine class, which runs the staged
pipeline around a single outbound request: pre-check, request modification,
building, the transmit-versus-timeout race, response decoding, assessment,
and branching into exactly one terminal hook. Retries requested by an
assessor re-run the pipeline from the modification stage.
"""

import asyncio
import weakref
from typing import Any, Self

import httpx
import tenacity
from tenacity import (
    AsyncRetrying,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_none,
)

from .builder import build_request, format_body_for_log
from .config import LifecycleSettings, get_settings
from .exceptions import AssessorError, NetworkError, TimeoutError, ValidationError
from .hooks import HookSet, invoke_hook, resolve_hooks
from .log_config import logger
from .request import RequestDescriptor
from .transport import HttpxTransport, Transport
from .types import AssessmentResult, Outcome


def _wants_retry(verdict: AssessmentResult | None) -> bool:
    return verdict is AssessmentResult.RETRY


def _discard_late_result(task: asyncio.Task) -> None:
    """Done-callback for a transmission that lost the race against the timer."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Transmission failed after its timeout had fired: {exc}")
    else:
        logger.debug("Discarding response that arrived after its timeout had fired.")


class LifecycleEngine:
    """Runs request descriptors through the lifecycle pipeline.

    The engine holds the process-wide defaults (``LifecycleSettings``) and a
    transport. It keeps no per-request state, so one engine can run any number
    of descriptors concurrently.

    Pipeline for one ``send()``:
    1. Pre-check. A falsy result runs ``on_request_finish`` then ``on_aborted``.
    2. ``request_modifier``.
    3. Build the request from the (possibly modified) descriptor.
    4. Transmit, raced against the resolved timeout. A timeout or a connection
       failure runs ``on_request_finish`` then ``on_timeout`` or
       ``on_connection_failure`` and ends the attempt.
    5. Log the response.
    6. Decode the JSON payload (``{}`` if the body is not JSON).
    7. ``on_request_finish``.
    8. Assess (no assessor means success).
    9. ``on_success``, ``on_failure``, or back to step 2 on retry.

    Attributes:
        _settings: Process-wide defaults and logging configuration.
        _transport: The transport used to send requests.
        _should_close_transport: Flag indicating if this instance owns the transport.
    """

    def __init__(
        self,
        settings: LifecycleSettings | None = None,
        transport: Transport | None = None,
    ):
        """Initialize the LifecycleEngine.

        Args:
            settings: Lifecycle defaults. Uses ``get_settings()`` if None.
            transport: Optional transport. If None, an ``HttpxTransport`` owned
                by this engine is created.
        """
        self._settings = settings or get_settings()
        self._should_close_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(
            settings=self._settings
        )
        logger.debug(
            f"LifecycleEngine initialized with transport {type(self._transport).__name__}."
        )

    @property
    def settings(self) -> LifecycleSettings:
        return self._settings

    def _log(self, message: str, section: str, level: str = "DEBUG") -> None:
        self._settings.log(message, section, level)

    async def send(self, descriptor: RequestDescriptor, **overrides: Any) -> Outcome:
        """Run the full lifecycle for one descriptor.

        Args:
            descriptor: The request to send. It must not be shared with another
                pipeline while this call runs.
            **overrides: Call-time hooks keyed by ``Stage`` value. They take
                precedence over the descriptor's hooks and the settings' defaults
                for this invocation only.

        Returns:
            Outcome: How the lifecycle ended. Also stored on ``descriptor.outcome``.

        Raises:
            ValidationError: If an override name or value is invalid.
            AssessorError: If the assessor returns neither a verdict nor a bool.
            Exception: Anything raised by the request builder or by a hook.
        """
        try:
            call_hooks = HookSet(**overrides)
        except ValueError as e:
            raise ValidationError(f"Invalid call-time hook override: {e}") from e

        hooks = resolve_hooks(call_hooks, descriptor.hooks, self._settings)
        section = f"{descriptor.method} {descriptor.url}"
        descriptor.attempts = 0
        descriptor.outcome = None

        if hooks.pre_check is not None:
            allowed = await invoke_hook(hooks.pre_check, descriptor)
            if not allowed:
                self._log("Pre-check declined the request", f"{section}: aborted", "INFO")
                await self._notify_finished(hooks, descriptor)
                if hooks.on_aborted is not None:
                    await invoke_hook(hooks.on_aborted, descriptor)
                descriptor.outcome = Outcome.ABORTED
                return descriptor.outcome

        retrying = self._build_retrying(descriptor)
        verdict = await retrying(self._attempt, descriptor, hooks)

        if verdict is None:
            # Timeout or connection failure, already handled by the attempt.
            assert descriptor.outcome is not None
            return descriptor.outcome

        if verdict is AssessmentResult.SUCCESS:
            self._log("Request succeeded", section)
            if hooks.on_success is not None:
                await invoke_hook(hooks.on_success, descriptor)
            descriptor.outcome = Outcome.SUCCESS
        else:
            self._log("Assessment failed", f"{section}: error", "WARNING")
            if hooks.on_failure is not None:
                await invoke_hook(hooks.on_failure, descriptor)
            descriptor.outcome = Outcome.FAILURE
        return descriptor.outcome

    async def _attempt(
        self, descriptor: RequestDescriptor, hooks: HookSet
    ) -> AssessmentResult | None:
        """Run stages 2 to 8 once.

        Returns:
            AssessmentResult | None: The assessor's verdict, or None when the
                attempt ended in a timeout or connection failure.
        """
        section = f"{descriptor.method} {descriptor.url}"

        if hooks.request_modifier is not None:
            await invoke_hook(hooks.request_modifier, descriptor)

        request = await build_request(descriptor, self._settings)
        descriptor.request = request
        descriptor.response = None
        descriptor.payload = None
        descriptor.error = None
        descriptor.attempts += 1

        try:
            response = await self._transmit(request, hooks.timeout)
        except TimeoutError as e:
            descriptor.error = e
            self._log(f"Timed out: {e}", f"{section}: error", "WARNING")
            await self._notify_finished(hooks, descriptor)
            if hooks.on_timeout is not None:
                await invoke_hook(hooks.on_timeout, descriptor)
            descriptor.outcome = Outcome.TIMEOUT
            return None
        except NetworkError as e:
            descriptor.error = e
            self._log(f"Failed connection: {e}", f"{section}: error", "WARNING")
            await self._notify_finished(hooks, descriptor)
            if hooks.on_connection_failure is not None:
                await invoke_hook(hooks.on_connection_failure, descriptor)
            descriptor.outcome = Outcome.CONNECTION_FAILURE
            return None

        descriptor.response = response
        self._log_response(section, response)

        try:
            descriptor.payload = response.json()
        except ValueError as e:
            descriptor.payload = {}
            self._log(f"Failed JSON decoding: {e}", f"{section}: error", "ERROR")

        await self._notify_finished(hooks, descriptor)

        if hooks.assessor is None:
            return AssessmentResult.SUCCESS
        verdict = await invoke_hook(hooks.assessor, descriptor)
        try:
            return AssessmentResult.coerce(verdict)
        except ValueError as e:
            name = getattr(hooks.assessor, "__name__", repr(hooks.assessor))
            raise AssessorError(
                f"Assessor {name} returned {verdict!r}; expected an "
                "AssessmentResult or a bool",
                response=descriptor.response,
                request=descriptor.request,
            ) from e

    async def _transmit(
        self, request: httpx.Request, timeout: float | None
    ) -> httpx.Response:
        """Send a request, racing it against ``timeout`` when one is set.

        The losing transmission is left running and its result discarded.

        Raises:
            TimeoutError: If the timer fires first or the transport times out.
            NetworkError: If the transport fails to connect.
        """
        if timeout is None:
            return await self._send_via_transport(request)

        task = asyncio.ensure_future(self._send_via_transport(request))
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if task not in done:
            task.add_done_callback(_discard_late_result)
            raise TimeoutError(
                f"No response within {timeout}s", request=request, timeout=timeout
            )
        return task.result()

    async def _send_via_transport(self, request: httpx.Request) -> httpx.Response:
        logger.debug(f"Sending request: {request.method} {request.url}")
        try:
            response = await self._transport.send(request)
        except httpx.TimeoutException as e:
            raise TimeoutError("Transport timed out", request=request) from e
        except (httpx.TransportError, OSError) as e:
            raise NetworkError(
                f"Network error for {request.url}: {e}", request=request
            ) from e
        logger.debug(f"Received response: {response.status_code} for {request.url}")
        return response

    async def _notify_finished(
        self, hooks: HookSet, descriptor: RequestDescriptor
    ) -> None:
        if hooks.on_request_finish is not None:
            await invoke_hook(hooks.on_request_finish, descriptor)

    def _log_response(self, section: str, response: httpx.Response) -> None:
        self._log(str(dict(response.headers)), f"{section} (Response Headers)")
        self._log(
            format_body_for_log(response.content, self._settings.log_body_limit),
            f"{section} (Response Body)",
        )

    def _build_retrying(self, descriptor: RequestDescriptor) -> AsyncRetrying:
        """Retry policy for assessor-requested retries: immediate, capped by settings."""
        section = f"{descriptor.method} {descriptor.url}"
        max_retries = self._settings.max_retries

        def before_retry(retry_state: tenacity.RetryCallState) -> None:
            self._log(
                f"Assessor requested a retry after attempt {retry_state.attempt_number}",
                section,
                "INFO",
            )

        def on_retries_exhausted(
            retry_state: tenacity.RetryCallState,
        ) -> AssessmentResult:
            self._log(
                f"Retry limit of {max_retries} reached; treating as failure",
                f"{section}: error",
                "WARNING",
            )
            return AssessmentResult.FAILURE

        return AsyncRetrying(
            stop=stop_never if max_retries is None else stop_after_attempt(max_retries + 1),
            wait=wait_none(),
            retry=retry_if_result(_wants_retry),
            before_sleep=before_retry,
            retry_error_callback=on_retries_exhausted,
        )

    async def aclose(self) -> None:
        """Close the transport if this engine created it."""
        if self._should_close_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()


_default_engines: weakref.WeakKeyDictionary[
    asyncio.AbstractEventLoop, LifecycleEngine
] = weakref.WeakKeyDictionary()


def get_default_engine() -> LifecycleEngine:
    """
    Provides the engine used by ``RequestDescriptor.send()`` when none is given.

    One engine is kept per running event loop, because the connection pool of
    its ``httpx.AsyncClient`` is bound to the loop that first used it. Engines
    are built from ``get_settings()`` with a default ``HttpxTransport``.

    Returns:
        LifecycleEngine: The engine for the current event loop.

    Raises:
        RuntimeError: If called outside a running event loop.
    """
    loop = asyncio.get_running_loop()
    engine = _default_engines.get(loop)
    if engine is None:
        engine = LifecycleEngine()
        _default_engines[loop] = engine
    return engine
