# portable_widgets/widgets/base.py
"""
Base widget model and view classes.

A :class:`WidgetModel` holds the synchronized attributes of one widget and
talks to the host over a classic comm object. Any number of
:class:`WidgetView` instances can render the same model.
"""
import asyncio
import inspect
import logging
import uuid
from collections import ChainMap
from typing import Any, Callable, Dict, List, Mapping, Optional, TYPE_CHECKING

from ..dom import Element
from . import lumino
from .utils import put_buffers, remove_buffers

if TYPE_CHECKING:
    from .manager_base import ManagerBase

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2.1.0"
JUPYTER_WIDGETS_VERSION = "2.0.0"

IPY_MODEL_PREFIX = "IPY_MODEL_"


class Extendable:
    """
    Class-level ``statics`` plus a Backbone-style :meth:`extend` helper.

    Subclasses declared with a ``class`` statement see their parents'
    statics through a ChainMap. Classes built with :meth:`extend` only get
    the statics passed to it.
    """

    statics: Mapping[str, Any] = ChainMap()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        own = cls.__dict__.get("statics", {})
        parent = getattr(super(cls, cls), "statics", {})
        cls.statics = ChainMap(dict(own), parent)

    @classmethod
    def extend(cls, proto: Optional[Dict[str, Any]] = None, statics: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        """Create a subclass with ``proto`` as its namespace and ``statics`` as its statics."""
        child = type(name or cls.__name__, (cls,), dict(proto or {}))
        child.statics = dict(statics or {})
        return child


async def unpack_models(value, manager: "ManagerBase"):
    """Replace "IPY_MODEL_<id>" references with the models they name."""
    if isinstance(value, list):
        return list(await asyncio.gather(*(unpack_models(v, manager) for v in value)))
    if isinstance(value, dict):
        unpacked = {}
        for key, sub in value.items():
            unpacked[key] = await unpack_models(sub, manager)
        return unpacked
    if isinstance(value, str) and value.startswith(IPY_MODEL_PREFIX):
        return await manager.get_model(value[len(IPY_MODEL_PREFIX):])
    return value


def pack_models(value, manager=None):
    """Inverse of unpack_models."""
    if isinstance(value, WidgetModel):
        return IPY_MODEL_PREFIX + value.model_id
    if isinstance(value, list):
        return [pack_models(v, manager) for v in value]
    if isinstance(value, dict):
        return {key: pack_models(sub, manager) for key, sub in value.items()}
    return value


class WidgetModel(Extendable):
    """
    Synchronized state of a single widget.

    Listeners registered with :meth:`on` receive ``change:<name>`` events as
    ``(model, value)`` and ``change`` events as ``(model,)``. Custom messages
    from the host arrive as ``msg:custom`` with ``(content, buffers)``.
    """

    def __init__(
        self,
        attributes: Optional[Dict[str, Any]] = None,
        *,
        model_id: str,
        widget_manager: "ManagerBase",
        comm=None,
    ):
        self.model_id = model_id
        self.widget_manager = widget_manager
        self.attributes: Dict[str, Any] = self.defaults()
        self.attributes.update(attributes or {})
        self.views: List["WidgetView"] = []
        self._listeners: Dict[str, List[Callable]] = {}
        self._pending: Dict[str, Any] = {}
        self._state_change: Optional[asyncio.Future] = None

        self.comm = comm
        self.comm_live = comm is not None
        if comm is not None:
            comm.on_msg(self._handle_comm_msg)
            comm.on_close(self._handle_comm_closed)

    def defaults(self) -> Dict[str, Any]:
        return {
            "_model_name": "WidgetModel",
            "_model_module": "@jupyter-widgets/base",
            "_model_module_version": JUPYTER_WIDGETS_VERSION,
            "_view_name": None,
            "_view_module": None,
            "_view_module_version": "",
            "_view_count": None,
        }

    # --- attributes ---
    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def set(self, name_or_values, value: Any = None) -> None:
        """Set one attribute or a dict of attributes; local changes are queued for save_changes()."""
        values = name_or_values if isinstance(name_or_values, dict) else {name_or_values: value}
        changed = self._apply(values)
        self._pending.update({key: self.attributes[key] for key in changed})

    def set_state(self, state: Dict[str, Any]) -> None:
        """Apply state coming from the host without echoing it back."""
        self._apply(state)
        for key in state:
            self._pending.pop(key, None)

    def _apply(self, values: Dict[str, Any]) -> List[str]:
        changed = []
        for key, new_value in values.items():
            if key in self.attributes and self.attributes[key] == new_value:
                continue
            self.attributes[key] = new_value
            changed.append(key)
        for key in changed:
            self.trigger(f"change:{key}", self, self.attributes[key])
        if changed:
            self.trigger("change", self)
        return changed

    # --- events ---
    def on(self, event: str, callback: Callable) -> None:
        listeners = self._listeners.setdefault(event, [])
        if callback not in listeners:
            listeners.append(callback)

    def off(self, event: str, callback: Optional[Callable] = None) -> None:
        if callback is None:
            self._listeners.pop(event, None)
        elif callback in self._listeners.get(event, []):
            self._listeners[event].remove(callback)

    def trigger(self, event: str, *args) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(*args)

    # --- serialization ---
    @classmethod
    async def _deserialize_state(cls, state: Dict[str, Any], manager: "ManagerBase") -> Dict[str, Any]:
        serializers = cls.statics.get("serializers", {})
        result = {}
        for name, value in state.items():
            deserialize = serializers.get(name, {}).get("deserialize")
            if deserialize is not None:
                value = deserialize(value, manager)
                if inspect.isawaitable(value):
                    value = await value
            result[name] = value
        return result

    def serialize(self, state: Dict[str, Any]) -> Dict[str, Any]:
        serializers = type(self).statics.get("serializers", {})
        result = {}
        for name, value in state.items():
            serialize = serializers.get(name, {}).get("serialize")
            result[name] = serialize(value, self) if serialize is not None else value
        return result

    def get_state(self) -> Dict[str, Any]:
        return self.serialize(dict(self.attributes))

    # --- comm traffic ---
    def save_changes(self, callbacks: Optional[Dict[str, Any]] = None) -> None:
        """Send attributes changed locally since the last save."""
        if not self._pending:
            return
        pending, self._pending = self._pending, {}
        if not self.comm_live:
            logger.debug("Model %s has no live comm; %d change(s) kept local", self.model_id, len(pending))
            return
        split = remove_buffers(self.serialize(pending))
        self.comm.send(
            {"method": "update", "state": split["state"], "buffer_paths": split["buffer_paths"]},
            callbacks,
            {},
            split["buffers"],
        )

    def send(self, content: Any, callbacks: Optional[Dict[str, Any]] = None, buffers=None) -> None:
        """Send a custom message to the host-side widget."""
        if not self.comm_live:
            raise RuntimeError(f"Model {self.model_id} has no live comm")
        self.comm.send({"method": "custom", "content": content}, callbacks, {}, buffers)

    def _handle_comm_msg(self, msg: Dict[str, Any]) -> None:
        data = msg["content"]["data"]
        method = data.get("method")
        if method in ("update", "echo_update"):
            state = data.get("state", {})
            put_buffers(state, data.get("buffer_paths", []), msg.get("buffers") or [])
            self._queue_state_change(state)
        elif method == "custom":
            self.trigger("msg:custom", data.get("content"), msg.get("buffers") or [])
        else:
            logger.warning("Model %s ignored comm message with method %r", self.model_id, method)

    def _queue_state_change(self, state: Dict[str, Any]) -> None:
        # Updates are applied strictly in arrival order even when a
        # deserializer has to wait on other models.
        previous = self._state_change

        async def apply():
            if previous is not None:
                try:
                    await previous
                except Exception:
                    pass  # already logged by the task that failed
            try:
                attributes = await type(self)._deserialize_state(state, self.widget_manager)
                self.set_state(attributes)
            except Exception:
                logger.exception("Model %s failed to apply a state update", self.model_id)
                raise

        self._state_change = asyncio.ensure_future(apply())

    async def state_settled(self) -> None:
        """Wait until every queued state update has been applied."""
        while self._state_change is not None and not self._state_change.done():
            await asyncio.wait([self._state_change])

    def _handle_comm_closed(self, msg=None) -> None:
        self.comm_live = False
        self.trigger("comm:close", self)

    def close(self) -> None:
        """Close the comm (if live) and drop every view."""
        if self.comm_live:
            self.comm.close()
            self.comm_live = False
        for view in list(self.views):
            view.remove()
        self.trigger("destroy", self)

    def __repr__(self):
        return f"{type(self).__name__}(model_id={self.model_id!r})"


class DOMWidgetModel(WidgetModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_name": "DOMWidgetModel",
            "_dom_classes": [],
            "tabbable": None,
            "tooltip": None,
        })
        return defaults


class WidgetView(Extendable):
    """A rendering of a model. Subclasses override :meth:`render`."""

    def __init__(self, model: WidgetModel, options: Optional[Dict[str, Any]] = None):
        self.model = model
        self.options = dict(options or {})
        self.cid = f"view{uuid.uuid4().hex[:8]}"
        self._listening: List[tuple] = []
        model.views.append(self)

    def render(self):
        pass

    def update(self, *args) -> None:
        pass

    def listen_to(self, model: WidgetModel, event: str, callback: Callable) -> None:
        model.on(event, callback)
        self._listening.append((model, event, callback))

    def stop_listening(self) -> None:
        for model, event, callback in self._listening:
            model.off(event, callback)
        self._listening = []

    def callbacks(self) -> Dict[str, Any]:
        return self.model.widget_manager.callbacks(self)

    def touch(self) -> None:
        self.model.save_changes(self.callbacks())

    def send(self, content: Any, buffers=None) -> None:
        self.model.send(content, self.callbacks(), buffers)

    def remove(self) -> None:
        self.stop_listening()
        if self in self.model.views:
            self.model.views.remove(self)


class JupyterLuminoWidget(lumino.Widget):
    """Presentation widget that forwards lifecycle messages to its view."""

    def __init__(self, view: "DOMWidgetView"):
        super().__init__(view.el)
        self._view = view

    def process_message(self, msg: lumino.Message) -> None:
        super().process_message(msg)
        if self._view is not None:
            self._view.process_lumino_message(msg)

    def dispose(self) -> None:
        if self.is_disposed:
            return
        super().dispose()
        view, self._view = self._view, None
        if view is not None:
            view.remove()


class DOMWidgetView(WidgetView):
    tag_name = "div"

    def __init__(self, model: WidgetModel, options: Optional[Dict[str, Any]] = None):
        super().__init__(model, options)
        self.el = Element(self.tag_name)
        self.el.add_class("jupyter-widgets")
        self.is_displayed = False
        self.lumino_widget = JupyterLuminoWidget(self)
        self._apply_dom_classes()
        self.listen_to(model, "change:_dom_classes", lambda *_: self._apply_dom_classes())

    def _apply_dom_classes(self) -> None:
        self.el.add_class(*(self.model.get("_dom_classes") or []))

    def process_lumino_message(self, msg: lumino.Message) -> None:
        handler = getattr(self, "on_" + msg.type.replace("-", "_"), None)
        if handler is not None:
            handler(msg)

    def on_after_attach(self, msg: lumino.Message) -> None:
        self.is_displayed = True

    def on_after_detach(self, msg: lumino.Message) -> None:
        self.is_displayed = False

    def remove(self) -> None:
        super().remove()
        if self.lumino_widget is not None and not self.lumino_widget.is_disposed:
            self.lumino_widget.dispose()
        self.el.remove()
