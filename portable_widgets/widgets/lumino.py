# portable_widgets/widgets/lumino.py
"""
A minimal lumino-style presentation widget.

Views do not touch the presentation tree's attach/detach callbacks directly;
they receive lifecycle :class:`Message` objects through
:meth:`Widget.process_message` instead.
"""
from dataclasses import dataclass
from typing import Optional

from ..dom import Element

BEFORE_ATTACH = "before-attach"
AFTER_ATTACH = "after-attach"
BEFORE_DETACH = "before-detach"
AFTER_DETACH = "after-detach"

LIFECYCLE_TYPES = (BEFORE_ATTACH, AFTER_ATTACH, BEFORE_DETACH, AFTER_DETACH)


@dataclass(frozen=True)
class Message:
    type: str
    is_conflatable: bool = False

    def conflate(self, other: "Message") -> bool:
        # Lifecycle messages are never merged.
        return False


def lifecycle_message(kind: str) -> Message:
    if kind not in LIFECYCLE_TYPES:
        raise ValueError(f"Unknown lifecycle message type: {kind!r}")
    return Message(kind)


class Widget:
    """A presentation widget owning one DOM node."""

    def __init__(self, node: Optional[Element] = None):
        self.node = node if node is not None else Element("div")
        self.is_attached = False
        self.is_disposed = False

    def process_message(self, msg: Message) -> None:
        if msg.type == BEFORE_ATTACH:
            self.on_before_attach(msg)
        elif msg.type == AFTER_ATTACH:
            self.is_attached = True
            self.on_after_attach(msg)
        elif msg.type == BEFORE_DETACH:
            self.on_before_detach(msg)
        elif msg.type == AFTER_DETACH:
            self.is_attached = False
            self.on_after_detach(msg)

    def on_before_attach(self, msg: Message) -> None:
        pass

    def on_after_attach(self, msg: Message) -> None:
        pass

    def on_before_detach(self, msg: Message) -> None:
        pass

    def on_after_detach(self, msg: Message) -> None:
        pass

    def dispose(self) -> None:
        self.is_disposed = True
