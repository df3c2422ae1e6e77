"""Tests for stage resolution and hook invocation."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from hookwire.config import LifecycleSettings
from hookwire.hooks import HookSet, Stage, invoke_hook, resolve_hook, resolve_hooks


def call_hook(descriptor):
    return "call"


def descriptor_hook(descriptor):
    return "descriptor"


def config_hook(descriptor):
    return "config"


def test_resolve_hook_priority():
    assert resolve_hook(Stage.ON_SUCCESS, call_hook, descriptor_hook, config_hook) is call_hook
    assert resolve_hook(Stage.ON_SUCCESS, None, descriptor_hook, config_hook) is descriptor_hook
    assert resolve_hook(Stage.ON_SUCCESS, None, None, config_hook) is config_hook
    assert resolve_hook(Stage.ON_SUCCESS, None, None, None) is None


def test_resolve_hook_keeps_falsy_values():
    """Only None counts as absent."""
    assert resolve_hook(Stage.TIMEOUT, None, 0.5, 30.0) == 0.5


def test_stage_values_match_hookset_and_settings_fields():
    for stage in Stage:
        assert stage.value in HookSet.model_fields
        assert stage.value in LifecycleSettings.model_fields


def test_resolve_hooks_across_tiers():
    settings = LifecycleSettings(timeout=30, on_failure=config_hook, on_aborted=config_hook)
    descriptor_tier = HookSet(on_failure=descriptor_hook, timeout=5)
    call_tier = HookSet(timeout=1)

    resolved = resolve_hooks(call_tier, descriptor_tier, settings)

    assert resolved.timeout == 1
    assert resolved.on_failure is descriptor_hook
    assert resolved.on_aborted is config_hook
    assert resolved.on_success is None
    assert resolved.assessor is None


def test_hookset_is_frozen():
    hooks = HookSet(on_success=call_hook)

    with pytest.raises(ValidationError):
        hooks.on_success = descriptor_hook


def test_hookset_rejects_unknown_stage():
    with pytest.raises(ValidationError):
        HookSet(on_succes=call_hook)


def test_hookset_get():
    hooks = HookSet(on_success=call_hook)

    assert hooks.get(Stage.ON_SUCCESS) is call_hook
    assert hooks.get(Stage.ON_FAILURE) is None


@pytest.mark.asyncio
async def test_invoke_hook_sync_and_async():
    sync_hook = MagicMock(return_value=True)
    async_hook = AsyncMock(return_value=False)
    descriptor = object()

    assert await invoke_hook(sync_hook, descriptor) is True
    assert await invoke_hook(async_hook, descriptor) is False
    sync_hook.assert_called_once_with(descriptor)
    async_hook.assert_awaited_once_with(descriptor)
