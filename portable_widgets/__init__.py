# portable_widgets/__init__.py

"""
portable_widgets

Renders Jupyter-style widgets into an isolated presentation tree, using
model state and comm channels supplied by a host environment.
"""
import logging
from typing import Any, Mapping, Optional

# --- Host interfaces ---
from .api import WIDGET_VIEW_MIMETYPE, Comm, CommMessage, Context, ModelRecord, StaticContext
from .channel import QueueComm
from .config import Config, get_config

# --- Runtime ---
from .comm import ClassicComm, CommState, to_plain_data
from .dom import Document, Element, custom_elements
from .errors import (
    CallbackError,
    CommClosedError,
    DOMError,
    DuplicateRegistrationError,
    NotFoundError,
    ProtocolVersionError,
    UnsupportedOperationError,
    WidgetManagerError,
)
from .lifecycle import LuminoLifecycleAdapter, register_lifecycle_adapter
from .loader import Loader
from .manager import Manager

logging.getLogger(__name__).addHandler(logging.NullHandler())


async def render(
    output: Mapping[str, Any],
    element: Element,
    context: Context,
    loader: Optional[Loader] = None,
    config: Optional[Config] = None,
) -> Manager:
    """
    Render the widget view described by a notebook output record into ``element``.

    Completes once the view is attached, not once it has finished loading.
    """
    widget_data = (output.get("data") or {}).get(WIDGET_VIEW_MIMETYPE)
    if not widget_data or "model_id" not in widget_data:
        raise UnsupportedOperationError("render", "only supports widget view outputs")
    config = config or get_config()
    manager = Manager(context, loader or Loader(config), config)
    await manager.render(widget_data["model_id"], element)
    return manager


__all__ = [
    'render',
    'WIDGET_VIEW_MIMETYPE', 'Comm', 'CommMessage', 'Context', 'ModelRecord', 'StaticContext',
    'QueueComm', 'Config', 'get_config',
    'ClassicComm', 'CommState', 'to_plain_data',
    'Document', 'Element', 'custom_elements',
    'LuminoLifecycleAdapter', 'register_lifecycle_adapter',
    'Loader', 'Manager',
    'WidgetManagerError', 'NotFoundError', 'UnsupportedOperationError', 'CallbackError',
    'CommClosedError', 'DuplicateRegistrationError', 'DOMError', 'ProtocolVersionError',
]

__version__ = "0.1.0"
