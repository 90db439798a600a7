"""
Plugin registry and the wrapper that runs plugin hooks around each
generation event.
"""

import importlib
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from lowcode_server.codegen.events import (
    EventNames,
    EventParams,
    InvalidEventParamsError,
    validate_event_params,
)
from lowcode_server.codegen.module_map import ModuleMap
from lowcode_server.codegen.types import CamelModel
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.codegen.plugins")


@dataclass
class PluginEventHooks:
    """
    Hooks a plugin registers for one event.

    before(context, params) returns the params for the next hook;
    after(context, params, modules) returns the modules for the next hook.
    Either may be a coroutine function.
    """

    before: Optional[Callable] = None
    after: Optional[Callable] = None


class PluginInstallation(CamelModel):
    """A plugin installed on a resource."""

    plugin_id: str
    enabled: bool = True
    order: int = 0
    version: str = "latest"
    settings: Dict[str, Any] = {}


class PluginError(Exception):
    """Exception raised when a plugin fails to load or one of its hooks fails."""

    def __init__(self, message: str, plugin_id: Optional[str] = None, event=None):
        super().__init__(message)
        self.plugin_id = plugin_id
        self.event = event


def _load_object(spec: str):
    module_name, _, attribute = spec.partition(":")
    if not module_name or not attribute:
        raise PluginError(f"Plugin spec '{spec}' must have the form 'module:attribute'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginError(
            f"Cannot import plugin module '{module_name}': {exc}"
        ) from exc
    try:
        return getattr(module, attribute)
    except AttributeError as exc:
        raise PluginError(
            f"Plugin module '{module_name}' has no attribute '{attribute}'"
        ) from exc


class PluginRegistry:
    """
    Known plugins by id, with their registered event hooks.
    """

    def __init__(self):
        self._plugins: Dict[str, Any] = {}
        self._hooks: Dict[str, Dict[EventNames, PluginEventHooks]] = {}

    def register_plugin(self, plugin_id: str, plugin: Any) -> None:
        """Register a plugin instance; it must expose register()."""
        if not callable(getattr(plugin, "register", None)):
            raise PluginError(
                f"Plugin {plugin_id} does not expose register()", plugin_id
            )
        hooks = plugin.register() or {}
        try:
            event_hooks = {EventNames(event): hook for event, hook in hooks.items()}
        except ValueError as exc:
            raise PluginError(
                f"Plugin {plugin_id} registers hooks for an unknown event: {exc}",
                plugin_id,
            ) from exc
        self._plugins[plugin_id] = plugin
        self._hooks[plugin_id] = event_hooks
        logger.info("Registered plugin %s for %d events", plugin_id, len(hooks))

    def load_from_config(self, plugin_specs: List[Dict[str, str]]) -> None:
        """
        Load plugins from config entries {"id": ..., "module": "pkg.mod:attr"}.

        A class or factory function is called to build the instance; any other
        object is used as is.
        """
        for spec in plugin_specs or []:
            plugin_id = spec.get("id")
            target = spec.get("module")
            if not plugin_id or not target:
                raise PluginError(f"Invalid plugin config entry: {spec}")
            loaded = _load_object(target)
            if inspect.isclass(loaded) or inspect.isfunction(loaded):
                plugin = loaded()
            else:
                plugin = loaded
            self.register_plugin(plugin_id, plugin)

    def clear(self) -> None:
        self._plugins.clear()
        self._hooks.clear()

    def get(self, plugin_id: str) -> Optional[Any]:
        return self._plugins.get(plugin_id)

    def __contains__(self, plugin_id) -> bool:
        return plugin_id in self._plugins

    def active_hooks(
        self, installations: List[PluginInstallation], event: EventNames
    ) -> List[Tuple[str, PluginEventHooks]]:
        """Hooks of enabled installed plugins for an event, in installation order."""
        active = []
        for installation in sorted(installations, key=lambda item: item.order):
            if not installation.enabled:
                continue
            hooks = self._hooks.get(installation.plugin_id)
            if hooks is None:
                continue
            event_hooks = hooks.get(event)
            if event_hooks is not None:
                active.append((installation.plugin_id, event_hooks))
        return active


async def _call(hook: Callable, *args):
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def plugin_wrapper(
    func: Callable, event: EventNames, context, params: EventParams
) -> ModuleMap:
    """
    Run an event's default generator surrounded by the active plugins' hooks.

    Args:
        func: Default generator, func(context, params) -> ModuleMap (sync or async)
        event: The event being generated
        context: The DsgContext of the build
        params: The event's default params

    Returns:
        The modules after all after hooks ran

    Raises:
        PluginError: when a hook raises
        InvalidEventParamsError: when a before hook returns params that do not
            match the event's contract
    """
    hooks = context.registry.active_hooks(context.plugin_installations, event)

    for plugin_id, event_hooks in hooks:
        if event_hooks.before is None:
            continue
        try:
            result = await _call(event_hooks.before, context, params)
        except Exception as exc:
            raise PluginError(
                f"Plugin {plugin_id} failed in before hook of {event.value}: {exc}",
                plugin_id,
                event,
            ) from exc
        if result is None:
            continue
        if not isinstance(result, EventParams):
            try:
                result = validate_event_params(event, result)
            except InvalidEventParamsError:
                logger.warning(
                    "Plugin %s returned invalid params for %s", plugin_id, event.value
                )
                raise
        params = result

    if params.skip_default_behavior:
        context.logger.info(
            f"Default behavior of {event.value} skipped by a plugin",
            {"event": event.value},
        )
        modules = ModuleMap(context.logger)
    else:
        modules = await _call(func, context, params)

    for plugin_id, event_hooks in hooks:
        if event_hooks.after is None:
            continue
        try:
            result = await _call(event_hooks.after, context, params, modules)
        except Exception as exc:
            raise PluginError(
                f"Plugin {plugin_id} failed in after hook of {event.value}: {exc}",
                plugin_id,
                event,
            ) from exc
        if result is not None:
            modules = result

    return modules
