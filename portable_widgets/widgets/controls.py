# portable_widgets/widgets/controls.py
"""Built-in control widgets (the ``@jupyter-widgets/controls`` namespace)."""
import asyncio
from typing import Any, Dict, List

from ..dom import Element
from .base import (
    DOMWidgetModel,
    DOMWidgetView,
    pack_models,
    unpack_models,
)

CONTROLS_MODULE = "@jupyter-widgets/controls"
CONTROLS_VERSION = "2.0.0"


class CoreDOMWidgetModel(DOMWidgetModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_module": CONTROLS_MODULE,
            "_model_module_version": CONTROLS_VERSION,
            "_view_module": CONTROLS_MODULE,
            "_view_module_version": CONTROLS_VERSION,
        })
        return defaults


class DescriptionModel(CoreDOMWidgetModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({"_model_name": "DescriptionModel", "description": ""})
        return defaults


class DescriptionView(DOMWidgetView):
    """A control with a leading label bound to the ``description`` attribute."""

    def render(self):
        self.label = Element("label", self.model.get("description", ""))
        self.label.add_class("widget-label")
        self.el.append_child(self.label)
        self.listen_to(self.model, "change:description", self._update_description)

    def _update_description(self, model, value):
        self.label.text_content = value or ""


# --- Sliders ---
class IntSliderModel(DescriptionModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_name": "IntSliderModel",
            "_view_name": "IntSliderView",
            "value": 0,
            "min": 0,
            "max": 100,
            "step": 1,
            "orientation": "horizontal",
            "disabled": False,
        })
        return defaults


class IntSliderView(DescriptionView):
    number_type = int

    def render(self):
        super().render()
        self.el.add_class("widget-slider", "widget-hslider")
        self.input = Element("input", type="range")
        self.readout = Element("div")
        self.readout.add_class("widget-readout")
        self.el.append_child(self.input)
        self.el.append_child(self.readout)
        self.update()
        for name in ("value", "min", "max", "step", "disabled"):
            self.listen_to(self.model, f"change:{name}", self.update)

    def update(self, *args):
        for name in ("min", "max", "step"):
            self.input.set_attribute(name, self.model.get(name))
        self.input.set_attribute("value", self.model.get("value"))
        if self.model.get("disabled"):
            self.input.set_attribute("disabled", "disabled")
        else:
            self.input.attributes.pop("disabled", None)
        self.readout.text_content = str(self.model.get("value"))

    def handle_input(self, raw_value) -> None:
        """User moved the slider: clamp, snap to step, and sync."""
        if self.model.get("disabled"):
            return
        lo, hi, step = self.model.get("min"), self.model.get("max"), self.model.get("step")
        value = max(lo, min(hi, self.number_type(raw_value)))
        if step:
            value = lo + round((value - lo) / step) * step
            value = max(lo, min(hi, value))
        self.model.set("value", self.number_type(value))
        self.touch()


class FloatSliderModel(IntSliderModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_name": "FloatSliderModel",
            "_view_name": "FloatSliderView",
            "value": 0.0,
            "min": 0.0,
            "max": 10.0,
            "step": 0.1,
        })
        return defaults


class FloatSliderView(IntSliderView):
    number_type = float


# --- Buttons and labels ---
class ButtonModel(CoreDOMWidgetModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_name": "ButtonModel",
            "_view_name": "ButtonView",
            "description": "",
            "icon": "",
            "button_style": "",
            "disabled": False,
        })
        return defaults


class ButtonView(DOMWidgetView):
    tag_name = "button"

    def render(self):
        self.el.add_class("widget-button")
        self.update()
        for name in ("description", "icon", "button_style", "disabled"):
            self.listen_to(self.model, f"change:{name}", self.update)

    def update(self, *args):
        for child in list(self.el.children):
            self.el.remove_child(child)
        icon = self.model.get("icon")
        if icon:
            self.el.append_child(Element("i", class_=f"fa fa-{icon}"))
        self.el.text_content = self.model.get("description") or ""
        style = self.model.get("button_style")
        if style:
            self.el.add_class(f"mod-{style}")

    def click(self) -> None:
        if not self.model.get("disabled"):
            self.send({"event": "click"})


class LabelModel(DescriptionModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({"_model_name": "LabelModel", "_view_name": "LabelView", "value": ""})
        return defaults


class LabelView(DOMWidgetView):
    def render(self):
        self.el.add_class("widget-label")
        self.update()
        self.listen_to(self.model, "change:value", self.update)

    def update(self, *args):
        self.el.text_content = str(self.model.get("value") or "")


class CheckboxModel(DescriptionModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_name": "CheckboxModel",
            "_view_name": "CheckboxView",
            "value": False,
            "disabled": False,
        })
        return defaults


class CheckboxView(DescriptionView):
    def render(self):
        super().render()
        self.el.add_class("widget-checkbox")
        self.input = Element("input", type="checkbox")
        self.el.append_child(self.input)
        self.update()
        self.listen_to(self.model, "change:value", self.update)

    def update(self, *args):
        if self.model.get("value"):
            self.input.set_attribute("checked", "checked")
        else:
            self.input.attributes.pop("checked", None)

    def toggle(self) -> None:
        if not self.model.get("disabled"):
            self.model.set("value", not self.model.get("value"))
            self.touch()


# --- Containers ---
class BoxModel(CoreDOMWidgetModel):
    statics = {
        "serializers": {
            "children": {"deserialize": unpack_models, "serialize": pack_models},
        },
    }

    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_name": "BoxModel",
            "_view_name": "BoxView",
            "children": [],
            "box_style": "",
        })
        return defaults


class HBoxModel(BoxModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({"_model_name": "HBoxModel", "_view_name": "HBoxView"})
        return defaults


class VBoxModel(BoxModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({"_model_name": "VBoxModel", "_view_name": "VBoxView"})
        return defaults


class BoxView(DOMWidgetView):
    box_class = "widget-box"

    async def render(self):
        self.el.add_class(self.box_class)
        self.children_views: List[DOMWidgetView] = []
        await self.update_children()

    async def update_children(self):
        for view in self.children_views:
            view.remove()
        manager = self.model.widget_manager
        self.children_views = list(await asyncio.gather(
            *(manager.create_view(child, {"parent": self}) for child in self.model.get("children") or [])
        ))
        for view in self.children_views:
            self.el.append_child(view.el)


class HBoxView(BoxView):
    box_class = "widget-hbox"


class VBoxView(BoxView):
    box_class = "widget-vbox"
