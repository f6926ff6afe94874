# portable_widgets/widgets/output.py
"""The ``@jupyter-widgets/output`` namespace."""
from typing import Any, Dict

from ..dom import Element
from .base import DOMWidgetModel, DOMWidgetView

OUTPUT_MODULE = "@jupyter-widgets/output"
OUTPUT_VERSION = "1.0.0"


class OutputModel(DOMWidgetModel):
    def defaults(self) -> Dict[str, Any]:
        defaults = super().defaults()
        defaults.update({
            "_model_name": "OutputModel",
            "_model_module": OUTPUT_MODULE,
            "_model_module_version": OUTPUT_VERSION,
            "_view_name": "OutputView",
            "_view_module": OUTPUT_MODULE,
            "_view_module_version": OUTPUT_VERSION,
            "msg_id": "",
            "outputs": [],
        })
        return defaults


class OutputView(DOMWidgetView):
    """Shows stream and plain-text outputs; anything richer is left as a placeholder."""

    def render(self):
        self.el.add_class("jupyter-widgets-output-area")
        self.update()
        self.listen_to(self.model, "change:outputs", self.update)

    def update(self, *args):
        for child in list(self.el.children):
            self.el.remove_child(child)
        for output in self.model.get("outputs") or []:
            self.el.append_child(self._render_output(output))

    def _render_output(self, output: Dict[str, Any]) -> Element:
        output_type = output.get("output_type")
        if output_type == "stream":
            node = Element("pre", _join(output.get("text", "")))
            node.add_class(f"output-stream-{output.get('name', 'stdout')}")
            return node
        if output_type in ("execute_result", "display_data"):
            text = (output.get("data") or {}).get("text/plain")
            if text is not None:
                return Element("pre", _join(text))
        if output_type == "error":
            node = Element("pre", f"{output.get('ename', '')}: {output.get('evalue', '')}")
            node.add_class("output-error")
            return node
        node = Element("div")
        node.add_class("output-unsupported")
        node.set_attribute("data-output-type", output_type or "")
        return node


def _join(text) -> str:
    return "".join(text) if isinstance(text, list) else str(text)
