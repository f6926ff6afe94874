# portable_widgets/widgets/manager_base.py
import asyncio
import inspect
import logging
import uuid
from typing import Any, Dict, Optional

from ..errors import NotFoundError, ProtocolVersionError
from .base import PROTOCOL_VERSION, WidgetModel, WidgetView
from .utils import put_buffers

logger = logging.getLogger(__name__)


class ManagerBase:
    """
    Framework side of a widget manager.

    Subclasses provide :meth:`load_class` (and may override :meth:`get_model`);
    this class builds models and views from those classes and handles
    ``comm_open`` messages from the host.
    """

    def __init__(self):
        self._models: Dict[str, "asyncio.Future[WidgetModel]"] = {}

    # --- to be provided by subclasses ---
    async def load_class(self, class_name: str, module_name: str, module_version: str):
        raise NotImplementedError

    async def _create_comm(self, comm_target_name: str, model_id: Optional[str] = None, data=None, metadata=None, buffers=None):
        raise NotImplementedError

    async def _get_comm_info(self):
        raise NotImplementedError

    # --- models ---
    def get_model(self, model_id: str) -> "asyncio.Future[WidgetModel]":
        try:
            return self._models[model_id]
        except KeyError:
            raise NotFoundError(model_id) from None

    def has_model(self, model_id: str) -> bool:
        return model_id in self._models

    def register_model(self, model_id: str, model_future) -> None:
        self._models[model_id] = model_future

    async def new_model(self, options: Dict[str, Any], serialized_state: Optional[Dict[str, Any]] = None) -> WidgetModel:
        """
        Create and register a model.

        ``options`` holds ``model_name``, ``model_module``,
        ``model_module_version`` and optionally ``model_id`` and ``comm``.
        """
        if not options.get("model_name") or not options.get("model_module"):
            raise ValueError("new_model requires model_name and model_module")
        options = dict(options)
        model_id = options.get("model_id")
        if not model_id:
            comm = options.get("comm")
            model_id = comm.comm_id if comm is not None else uuid.uuid4().hex
        options["model_id"] = model_id

        model_future = asyncio.ensure_future(self._make_model(options, serialized_state))
        self.register_model(model_id, model_future)
        return await model_future

    async def _make_model(self, options: Dict[str, Any], serialized_state: Optional[Dict[str, Any]]) -> WidgetModel:
        model_cls = await self.load_class(
            options["model_name"], options["model_module"], options.get("model_module_version") or ""
        )
        attributes = await model_cls._deserialize_state(serialized_state or {}, self)
        model = model_cls(
            attributes,
            model_id=options["model_id"],
            widget_manager=self,
            comm=options.get("comm"),
        )
        logger.debug("Created %r", model)
        return model

    # --- views ---
    async def create_view(self, model: WidgetModel, options: Optional[Dict[str, Any]] = None) -> WidgetView:
        view_cls = await self.load_class(
            model.get("_view_name"), model.get("_view_module"), model.get("_view_module_version") or ""
        )
        view = view_cls(model, options)
        result = view.render()
        if inspect.isawaitable(result):
            await result
        return view

    def callbacks(self, view: Optional[WidgetView] = None) -> Dict[str, Any]:
        return {}

    # --- comm ---
    async def handle_comm_open(self, comm, msg: Dict[str, Any]) -> WidgetModel:
        version = str((msg.get("metadata") or {}).get("version", ""))
        if version.split(".")[0] != PROTOCOL_VERSION.split(".")[0]:
            raise ProtocolVersionError(
                f"Wrong widget protocol version: received {version!r}, expected major version "
                f"{PROTOCOL_VERSION.split('.')[0]}"
            )
        data = msg["content"]["data"]
        state = data["state"]
        put_buffers(state, data.get("buffer_paths", []), msg.get("buffers") or [])
        return await self.new_model(
            {
                "model_name": state["_model_name"],
                "model_module": state["_model_module"],
                "model_module_version": state.get("_model_module_version", ""),
                "comm": comm,
            },
            state,
        )
