"""Tests for the hook decorator, registry and plugin base class."""

import pytest

from docrepo.core.hooks import HookRegistry, Plugin, RepoHook, hook


class TestHookDecorator:
    def test_explicit_event(self):
        @hook("before:create", priority=5)
        def stamp(context):
            pass

        assert isinstance(stamp, RepoHook)
        assert stamp.name == "before:create"
        assert stamp.priority == 5

    def test_event_from_function_name(self):
        @hook
        def after_get_all(context, result):
            pass

        assert after_get_all.name == "after:get_all"
        assert after_get_all.priority == 1

    def test_priority_only(self):
        @hook(priority=3)
        def error_delete(context, error):
            pass

        assert error_delete.name == "error:delete"
        assert error_delete.priority == 3

    def test_bad_function_name(self):
        with pytest.raises(ValueError, match="Cannot derive an event"):

            @hook
            def stamp(context):
                pass

    def test_too_many_arguments(self):
        with pytest.raises(ValueError, match="Too many arguments"):
            hook("before:create", "after:create")


class TestHookRegistry:
    @pytest.mark.asyncio
    async def test_priority_order(self):
        registry = HookRegistry()
        calls = []
        registry.on("before:create", lambda ctx: calls.append("low"), priority=1)
        registry.on("before:create", lambda ctx: calls.append("high"), priority=10)
        registry.on("before:create", lambda ctx: calls.append("low-2"), priority=1)

        await registry.emit("before:create", {})
        assert calls == ["high", "low", "low-2"]

    @pytest.mark.asyncio
    async def test_async_listeners(self):
        registry = HookRegistry()
        context = {}

        async def listener(ctx):
            ctx["seen"] = True

        registry.on("before:update", listener)
        await registry.emit("before:update", context)
        assert context == {"seen": True}

    @pytest.mark.asyncio
    async def test_errors_propagate_by_default(self):
        registry = HookRegistry()

        def boom(ctx):
            raise RuntimeError("boom")

        registry.on("before:create", boom)
        with pytest.raises(RuntimeError, match="boom"):
            await registry.emit("before:create", {})

    @pytest.mark.asyncio
    async def test_errors_logged_when_not_raised(self, caplog):
        registry = HookRegistry()
        calls = []

        def boom(ctx, result):
            raise RuntimeError("boom")

        registry.on("after:create", boom, priority=5)
        registry.on("after:create", lambda ctx, result: calls.append(result))

        await registry.emit("after:create", {}, "doc", raise_errors=False)
        assert calls == ["doc"]
        assert "Error in listener" in caplog.text

    @pytest.mark.asyncio
    async def test_off(self):
        registry = HookRegistry()
        calls = []

        def listener(ctx):
            calls.append(ctx)

        registry.on("before:count", listener)
        assert registry.off("before:count", listener) is True
        assert registry.off("before:count", listener) is False

        await registry.emit("before:count", {})
        assert calls == []
        assert not registry.has_listeners("before:count")

    def test_remove_plugin(self):
        registry = HookRegistry()
        registry.on("before:create", lambda ctx: None, plugin_id="stamp")
        registry.on("before:update", lambda ctx: None, plugin_id="stamp")
        registry.on("before:update", lambda ctx: None)

        assert registry.remove_plugin("stamp") == 2
        assert len(registry.listeners("before:update")) == 1
        assert registry.listeners("before:create") == []


class CounterPlugin(Plugin):
    def __init__(self):
        self.created = 0
        self.activated_on = None

    @hook("after:create", priority=2)
    def count_create(self, context, result):
        self.created += 1

    def activated(self, repository):
        self.activated_on = repository.name


class _FakeRepository:
    def __init__(self):
        self.name = "things"
        self.hooks = HookRegistry()


class TestPlugin:
    def test_id_from_class_name(self):
        assert CounterPlugin().id == "counter"

    def test_explicit_name(self):
        plugin = CounterPlugin()
        plugin.name = "custom"
        assert plugin.id == "custom"

    @pytest.mark.asyncio
    async def test_apply_binds_hooks(self):
        repository = _FakeRepository()
        plugin = CounterPlugin()
        plugin.apply(repository)

        listeners = repository.hooks.listeners("after:create")
        assert len(listeners) == 1
        assert listeners[0].plugin_id == "counter"
        assert listeners[0].priority == 2
        assert plugin.activated_on == "things"

        await repository.hooks.emit("after:create", {}, {"_id": 1})
        assert plugin.created == 1

    def test_instances_do_not_share_state(self):
        first, second = _FakeRepository(), _FakeRepository()
        plugin_a, plugin_b = CounterPlugin(), CounterPlugin()
        plugin_a.apply(first)
        plugin_b.apply(second)

        assert first.hooks.listeners("after:create")[0].function.__self__ is plugin_a
        assert second.hooks.listeners("after:create")[0].function.__self__ is plugin_b
