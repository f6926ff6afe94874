# portable_widgets/lifecycle.py
"""
Custom element that drives lumino lifecycle messages from native
attach/detach callbacks.
"""
import logging
from pathlib import Path
from typing import Optional

from .config import Config, get_config
from .dom import CustomElement, CustomElementRegistry, Element, ShadowRoot, custom_elements
from .errors import DuplicateRegistrationError
from .widgets import lumino

logger = logging.getLogger(__name__)

BASELINE_CSS_PATH = Path(__file__).parent / "static" / "widgets.css"


def dispatch_lumino_message(widget: lumino.Widget, message: lumino.Message) -> None:
    """Deliver ``message`` to ``widget`` and, when present, to its view's legacy phosphor hook."""
    widget.process_message(message)
    view = getattr(widget, "_view", None)
    legacy = getattr(view, "process_phosphor_message", None)
    if legacy is not None:
        legacy(message)


class LuminoLifecycleAdapter(CustomElement):
    """
    Hosts a view's root node and turns native callbacks into lifecycle messages.

    ``before-attach`` is sent while constructing, before the element can be
    inserted anywhere. There is no native "about to detach" callback, so
    ``before-detach`` and ``after-detach`` are both sent on disconnect.
    """

    def __init__(self, widget: Optional[lumino.Widget] = None):
        super().__init__()
        self.widget = widget
        if self.widget is not None:
            dispatch_lumino_message(self.widget, lumino.lifecycle_message(lumino.BEFORE_ATTACH))

    def connected_callback(self) -> None:
        if self.widget is not None:
            dispatch_lumino_message(self.widget, lumino.lifecycle_message(lumino.AFTER_ATTACH))

    def disconnected_callback(self) -> None:
        if self.widget is not None:
            dispatch_lumino_message(self.widget, lumino.lifecycle_message(lumino.BEFORE_DETACH))
            dispatch_lumino_message(self.widget, lumino.lifecycle_message(lumino.AFTER_DETACH))

    def mount(self, root: Element, config: Optional[Config] = None) -> ShadowRoot:
        """
        Put ``root`` into an isolated shadow tree together with the baseline
        stylesheet and the icon font.
        """
        config = config or get_config()
        shadow = self.attach_shadow(mode="open")

        style = Element("style", load_stylesheet(config))
        if config.get("style_id"):
            style.set_attribute("id", config.get("style_id"))
        shadow.append_child(style)

        # Some widgets use font-awesome icons.
        font = Element("link", rel="stylesheet", href=config.get("icon_font_url"))
        shadow.append_child(font)

        shadow.append_child(root)
        return shadow


def load_stylesheet(config: Optional[Config] = None) -> str:
    config = config or get_config()
    path = config.get("stylesheet") or BASELINE_CSS_PATH
    return Path(path).read_text(encoding="utf-8")


def register_lifecycle_adapter(registry: CustomElementRegistry = custom_elements, name: Optional[str] = None) -> bool:
    """
    Define the adapter element on ``registry`` unless it already is.

    Returns True when this call performed the registration.
    """
    name = name or get_config().get("element_name")
    try:
        registry.define(name, LuminoLifecycleAdapter)
    except DuplicateRegistrationError:
        logger.debug("<%s> already defined", name)
        return False
    return True
