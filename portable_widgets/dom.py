# portable_widgets/dom.py
"""
A small presentation tree with native attach/detach notifications.

Elements form a tree below a :class:`Document`. Whenever an element becomes
part of (or leaves) a document, its ``connected_callback`` (or
``disconnected_callback``) runs, shadow trees included. Custom element
classes must be defined on a :class:`CustomElementRegistry` before they can
be constructed.
"""
import html
import logging
from typing import Dict, Iterator, List, Optional, Type

from .errors import DOMError, DuplicateRegistrationError

logger = logging.getLogger(__name__)

VOID_TAGS = {"link", "meta", "br", "img", "input", "hr"}


class Node:
    def __init__(self):
        self.parent: Optional["Node"] = None
        self.children: List["Element"] = []

    @property
    def is_connected(self) -> bool:
        node = self
        while node is not None:
            if isinstance(node, Document):
                return True
            if isinstance(node, ShadowRoot):
                node = node.host
            else:
                node = node.parent
        return False

    def append_child(self, child: "Element") -> "Element":
        if child is self or child.contains(self):
            raise DOMError("Cannot insert a node into itself or its descendant")
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        if self.is_connected:
            for el in child.iter_tree():
                el.connected_callback()
        return child

    def remove_child(self, child: "Element") -> "Element":
        if child.parent is not self:
            raise DOMError(f"{child!r} is not a child of {self!r}")
        was_connected = child.is_connected
        self.children.remove(child)
        child.parent = None
        if was_connected:
            for el in child.iter_tree():
                el.disconnected_callback()
        return child

    def contains(self, other: "Node") -> bool:
        node = other
        while node is not None:
            if node is self:
                return True
            node = node.host if isinstance(node, ShadowRoot) else node.parent
        return False

    def iter_tree(self) -> Iterator["Element"]:
        """Yield elements in tree order, descending into shadow roots."""
        for child in self.children:
            yield from child.iter_tree()

    def inner_html(self) -> str:
        return "".join(child.to_html() for child in self.children)


class Element(Node):
    """A generic element: tag name, attributes, text and children."""

    def __init__(self, tag: str, text: str = "", **attributes):
        super().__init__()
        self.tag = tag
        self.attributes: Dict[str, str] = {
            name.rstrip("_").replace("_", "-"): str(value) for name, value in attributes.items()
        }
        self.text_content = text
        self.shadow_root: Optional["ShadowRoot"] = None

    @property
    def id(self) -> Optional[str]:
        return self.attributes.get("id")

    @property
    def class_list(self) -> List[str]:
        return self.attributes.get("class", "").split()

    def add_class(self, *names: str) -> None:
        classes = self.class_list
        classes.extend(name for name in names if name not in classes)
        self.attributes["class"] = " ".join(classes)

    def set_attribute(self, name: str, value) -> None:
        self.attributes[name] = str(value)

    def attach_shadow(self, mode: str = "open") -> "ShadowRoot":
        if self.shadow_root is not None:
            raise DOMError(f"{self!r} already hosts a shadow root")
        if mode not in ("open", "closed"):
            raise DOMError(f"Invalid shadow root mode: {mode!r}")
        self.shadow_root = ShadowRoot(self, mode)
        return self.shadow_root

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)

    def iter_tree(self) -> Iterator["Element"]:
        yield self
        if self.shadow_root is not None:
            yield from self.shadow_root.iter_tree()
        yield from super().iter_tree()

    def connected_callback(self) -> None:
        pass

    def disconnected_callback(self) -> None:
        pass

    def to_html(self) -> str:
        attrs = "".join(f' {name}="{html.escape(value)}"' for name, value in self.attributes.items())
        if self.tag in VOID_TAGS:
            return f"<{self.tag}{attrs}>"
        shadow = ""
        if self.shadow_root is not None:
            shadow = f'<template shadowrootmode="{self.shadow_root.mode}">{self.shadow_root.inner_html()}</template>'
        text = html.escape(self.text_content) if self.tag not in ("style", "script") else self.text_content
        return f"<{self.tag}{attrs}>{shadow}{text}{self.inner_html()}</{self.tag}>"

    def __repr__(self):
        return f"<{self.tag}{' id=' + self.id if self.id else ''}>"


class ShadowRoot(Node):
    """An isolated subtree hosted by an element."""

    def __init__(self, host: Element, mode: str):
        super().__init__()
        self.host = host
        self.mode = mode

    def __repr__(self):
        return f"#shadow-root({self.mode}) of {self.host!r}"


class Document(Node):
    """The root of a live tree. Everything below it is connected."""

    def __init__(self):
        super().__init__()
        self.body = Element("body")
        self.append_child(self.body)

    def to_html(self) -> str:
        return f"<!DOCTYPE html><html>{self.inner_html()}</html>"

    def __repr__(self):
        return "#document"


class CustomElementRegistry:
    """Maps custom element names to classes, one class per name."""

    def __init__(self):
        self._by_name: Dict[str, Type["CustomElement"]] = {}
        self._by_class: Dict[Type["CustomElement"], str] = {}

    def define(self, name: str, cls: Type["CustomElement"]) -> None:
        if "-" not in name or name.lower() != name:
            raise DOMError(f"'{name}' is not a valid custom element name")
        if name in self._by_name or cls in self._by_class:
            raise DuplicateRegistrationError(name)
        self._by_name[name] = cls
        self._by_class[cls] = name
        logger.debug("Defined custom element <%s> -> %s", name, cls.__name__)

    def get(self, name: str) -> Optional[Type["CustomElement"]]:
        return self._by_name.get(name)

    def name_for(self, cls: Type["CustomElement"]) -> Optional[str]:
        return self._by_class.get(cls)


# Process-wide registry, like window.customElements.
custom_elements = CustomElementRegistry()


class CustomElement(Element):
    """Base for element classes defined on a registry."""

    registry: CustomElementRegistry = custom_elements

    def __init__(self, **attributes):
        name = self.registry.name_for(type(self))
        if name is None:
            raise DOMError(f"Illegal constructor: {type(self).__name__} is not a defined custom element")
        super().__init__(name, **attributes)
