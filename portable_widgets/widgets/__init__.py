# portable_widgets/widgets/__init__.py

"""
The widget model/view framework driven by the manager.

Three namespaces are exposed to widget module loaders:
``base`` (``@jupyter-widgets/base``), ``controls``
(``@jupyter-widgets/controls``) and ``output`` (``@jupyter-widgets/output``).
"""

from . import base, controls, output
from .base import (
    PROTOCOL_VERSION,
    DOMWidgetModel,
    DOMWidgetView,
    Extendable,
    WidgetModel,
    WidgetView,
    pack_models,
    unpack_models,
)
from .lumino import Message
from .manager_base import ManagerBase
from .utils import put_buffers, remove_buffers

__all__ = [
    'base', 'controls', 'output',
    'PROTOCOL_VERSION',
    'Extendable', 'WidgetModel', 'DOMWidgetModel', 'WidgetView', 'DOMWidgetView',
    'ManagerBase', 'Message',
    'pack_models', 'unpack_models', 'put_buffers', 'remove_buffers',
]
