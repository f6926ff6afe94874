# portable_widgets/compat.py
"""
Cross-version shims for widget classes.

Each shim checks for itself before patching, so installing twice is a no-op.
"""
import functools
import inspect
import logging
from collections import ChainMap

logger = logging.getLogger(__name__)


def patch_extend(cls) -> bool:
    """
    Make ``cls.extend`` chain the new class's statics to its parent's.

    The framework's helper gives an extended class only the statics passed
    to it, so statics such as serializers are lost after one level of
    ``extend``. Returns False if ``cls`` already has the patched helper.
    """
    original = inspect.getattr_static(cls, "extend").__func__
    if getattr(original, "chains_statics", False):
        return False

    @functools.wraps(original)
    def extend(this, *args, **kwargs):
        result = original(this, *args, **kwargs)
        own = result.__dict__.get("statics", {})
        if not isinstance(own, ChainMap):
            result.statics = ChainMap(dict(own), this.statics)
        return result

    extend.chains_statics = True
    cls.extend = classmethod(extend)
    logger.debug("Patched %s.extend", cls.__name__)
    return True


def _p_widget(self):
    return self.lumino_widget


def _process_phosphor_message(self, msg):
    pass


def install_view_shims(view_cls) -> list:
    """
    Add the legacy ``p_widget`` property and ``process_phosphor_message``
    no-op to ``view_cls`` unless it already defines them.

    Returns the names that were added.
    """
    added = []
    if "p_widget" not in vars(view_cls):
        view_cls.p_widget = property(_p_widget)
        added.append("p_widget")
    if "process_phosphor_message" not in vars(view_cls):
        view_cls.process_phosphor_message = _process_phosphor_message
        added.append("process_phosphor_message")
    if added:
        logger.debug("Added %s to %s", ", ".join(added), view_cls.__name__)
    return added


def install() -> None:
    """Apply every shim to the bundled widget classes."""
    from .widgets import base, controls

    patch_extend(base.WidgetModel)
    patch_extend(controls.ButtonModel)
    install_view_shims(base.DOMWidgetView)
