# portable_widgets/manager.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

from . import compat
from .api import Comm, Context
from .comm import ClassicComm
from .config import Config, get_config
from .dom import Node
from .errors import NotFoundError, UnsupportedOperationError
from .lifecycle import LuminoLifecycleAdapter, register_lifecycle_adapter
from .loader import Loader
from .widgets import base, controls, output
from .widgets.base import PROTOCOL_VERSION, WidgetModel
from .widgets.manager_base import ManagerBase
from .widgets.utils import put_buffers, remove_buffers

logger = logging.getLogger(__name__)

WIDGET_TARGET_NAME = "jupyter.widget"

BUILTIN_MODULES = {
    "@jupyter-widgets/base": base,
    "@jupyter-widgets/controls": controls,
    "@jupyter-widgets/output": output,
}


class Manager(ManagerBase):
    """
    Widget manager for one rendering session.

    Models are looked up through the host context and cached per id for the
    lifetime of the manager; views are rendered into lifecycle adapter
    elements.
    """

    def __init__(self, context: Context, loader: Loader, config: Optional[Config] = None):
        super().__init__()
        self.context = context
        self.loader = loader
        self.config = config or get_config()
        self.models: Dict[str, "asyncio.Task[WidgetModel]"] = {}

        compat.install()
        register_lifecycle_adapter(name=self.config.get("element_name"))

        for module_name, namespace in BUILTIN_MODULES.items():
            self.loader.define(module_name, [], lambda namespace=namespace: namespace)

    async def load_class(self, class_name: str, module_name: str, module_version: str):
        exports = await self.loader.load(module_name, module_version)
        if isinstance(exports, dict):
            return exports[class_name]
        return getattr(exports, class_name)

    async def _create_comm(self, comm_target_name: str, model_id: Optional[str] = None, data=None, metadata=None, buffers=None):
        raise UnsupportedOperationError("_create_comm")

    async def _get_comm_info(self):
        raise UnsupportedOperationError("_get_comm_info")

    def get_model(self, model_id: str) -> "asyncio.Task[WidgetModel]":
        """
        Return the task resolving to the model ``model_id``.

        The first call starts the lookup; every later call, concurrent or
        not, gets the same task back.
        """
        task = self.models.get(model_id)
        if task is not None:
            return task
        if model_id in self._models:
            # Created through a comm_open message.
            task = self._models[model_id]
        else:
            logger.debug("Resolving widget model %s", model_id)
            task = asyncio.ensure_future(self._resolve_model(model_id))
        self.models[model_id] = task
        return task

    async def _resolve_model(self, model_id: str) -> WidgetModel:
        states = await self.context.get_model_state(model_id)
        record = states.get(model_id)
        if record is None:
            raise NotFoundError(model_id)

        # Round-trip through remove_buffers/put_buffers to normalize binary values.
        serialized = remove_buffers(record.state)
        state = serialized["state"]
        put_buffers(state, serialized["buffer_paths"], serialized["buffers"])

        comm = None
        if record.comm is not None:
            comm = ClassicComm(model_id, record.comm)

        return await self.new_model(
            {
                "model_name": record.model_name,
                "model_module": record.model_module,
                "model_module_version": record.model_module_version or "",
                "model_id": model_id,
                "comm": comm,
            },
            state,
        )

    async def render(self, model_id: str, container: Node) -> LuminoLifecycleAdapter:
        model = await self.get_model(model_id)
        view = await self.create_view(model)

        adapter = LuminoLifecycleAdapter(view.lumino_widget)
        adapter.mount(view.el, self.config)
        container.append_child(adapter)
        return adapter

    async def render_output(self, output_item: Any, destination: Node) -> None:
        raise UnsupportedOperationError("render_output")

    async def comm_channel_opened(self, comm_id: str, comm: Comm, data: Any = None, buffers: Optional[List[bytes]] = None) -> Optional[WidgetModel]:
        if not data:
            return None
        classic_comm = ClassicComm(comm_id, comm)
        return await self.handle_comm_open(
            classic_comm,
            {
                "header": {},
                "metadata": {"version": PROTOCOL_VERSION},
                "parent_header": {},
                "channel": "iopub",
                "content": {
                    "comm_id": comm_id,
                    "target_name": WIDGET_TARGET_NAME,
                    "data": data,
                },
                "buffers": list(buffers or []),
            },
        )
