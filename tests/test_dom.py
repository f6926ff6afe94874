# tests/test_dom.py
import unittest

from portable_widgets.dom import CustomElement, CustomElementRegistry, Document, Element
from portable_widgets.errors import DOMError, DuplicateRegistrationError


class TrackingElement(Element):
    def __init__(self, tag, log):
        super().__init__(tag)
        self.log = log

    def connected_callback(self):
        self.log.append(("connected", self.tag))

    def disconnected_callback(self):
        self.log.append(("disconnected", self.tag))


class TestTree(unittest.TestCase):
    def setUp(self):
        self.document = Document()
        self.log = []

    def test_connected_only_below_document(self):
        detached = Element("div")
        child = detached.append_child(Element("span"))
        self.assertFalse(child.is_connected)
        self.document.body.append_child(detached)
        self.assertTrue(child.is_connected)

    def test_callbacks_cover_subtree_and_shadow_tree(self):
        outer = TrackingElement("outer", self.log)
        shadow = outer.attach_shadow()
        shadow.append_child(TrackingElement("in-shadow", self.log))
        outer.append_child(TrackingElement("child", self.log))

        self.document.body.append_child(outer)
        self.assertEqual(self.log, [("connected", "outer"), ("connected", "in-shadow"), ("connected", "child")])

        self.log.clear()
        outer.remove()
        self.assertEqual(
            self.log, [("disconnected", "outer"), ("disconnected", "in-shadow"), ("disconnected", "child")]
        )

    def test_move_between_connected_parents(self):
        a = self.document.body.append_child(Element("div"))
        b = self.document.body.append_child(Element("div"))
        el = a.append_child(TrackingElement("x-el", self.log))
        self.log.clear()

        b.append_child(el)
        self.assertEqual(self.log, [("disconnected", "x-el"), ("connected", "x-el")])
        self.assertIs(el.parent, b)
        self.assertEqual(a.children, [])

    def test_detached_moves_fire_nothing(self):
        a, b = Element("div"), Element("div")
        el = a.append_child(TrackingElement("x-el", self.log))
        b.append_child(el)
        self.assertEqual(self.log, [])

    def test_invalid_operations(self):
        parent = Element("div")
        child = parent.append_child(Element("span"))
        with self.assertRaises(DOMError):
            Element("div").remove_child(child)
        with self.assertRaises(DOMError):
            child.append_child(parent)
        child.attach_shadow()
        with self.assertRaises(DOMError):
            child.attach_shadow()

    def test_to_html(self):
        host = Element("div", class_="box")
        shadow = host.attach_shadow()
        shadow.append_child(Element("link", rel="stylesheet", href="a.css"))
        host.append_child(Element("p", "1 < 2"))
        self.assertEqual(
            host.to_html(),
            '<div class="box"><template shadowrootmode="open"><link rel="stylesheet" href="a.css"></template>'
            "<p>1 &lt; 2</p></div>",
        )


class TestCustomElementRegistry(unittest.TestCase):
    def test_define_twice_raises(self):
        registry = CustomElementRegistry()

        class Fancy(CustomElement):
            pass

        registry.define("fancy-thing", Fancy)
        self.assertIs(registry.get("fancy-thing"), Fancy)
        self.assertEqual(registry.name_for(Fancy), "fancy-thing")
        with self.assertRaises(DuplicateRegistrationError):
            registry.define("fancy-thing", Fancy)

    def test_invalid_name(self):
        with self.assertRaises(DOMError):
            CustomElementRegistry().define("nodash", CustomElement)

    def test_undefined_custom_element_cannot_be_constructed(self):
        class Undefined(CustomElement):
            pass

        with self.assertRaises(DOMError):
            Undefined()

    def test_defined_custom_element_uses_its_name_as_tag(self):
        registry = CustomElementRegistry()

        class Named(CustomElement):
            pass

        Named.registry = registry
        registry.define("named-el", Named)
        self.assertEqual(Named().tag, "named-el")


if __name__ == "__main__":
    unittest.main()
