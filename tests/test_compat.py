# tests/test_compat.py
import unittest

from portable_widgets import compat
from portable_widgets.widgets import controls
from portable_widgets.widgets.base import DOMWidgetView, Extendable


def make_hierarchy():
    class Root(Extendable):
        statics = {"serializers": {"children": "unpack"}}

    return Root


class TestPatchExtend(unittest.TestCase):
    def test_unpatched_extend_loses_parent_statics(self):
        Root = make_hierarchy()
        Child = Root.extend({"kind": "child"}, {"extra": 1}, name="Child")
        self.assertTrue(issubclass(Child, Root))
        self.assertEqual(Child.kind, "child")
        self.assertEqual(dict(Child.statics), {"extra": 1})

    def test_patched_extend_chains_statics_across_levels(self):
        Root = make_hierarchy()
        self.assertTrue(compat.patch_extend(Root))

        Child = Root.extend({}, {"extra": 1})
        Grandchild = Child.extend({}, {"more": 2})

        self.assertEqual(Grandchild.statics["serializers"], {"children": "unpack"})
        self.assertEqual(Grandchild.statics["extra"], 1)
        self.assertEqual(Grandchild.statics["more"], 2)
        self.assertNotIn("more", Child.statics)

    def test_patch_applies_once(self):
        Root = make_hierarchy()
        self.assertTrue(compat.patch_extend(Root))
        self.assertFalse(compat.patch_extend(Root))

        class Sub(Root):
            pass

        # Inherits the patched helper.
        self.assertFalse(compat.patch_extend(Sub))

    def test_class_statement_subclasses_inherit_statics(self):
        Root = make_hierarchy()

        class Sub(Root):
            statics = {"extra": True}

        self.assertEqual(Sub.statics["serializers"], {"children": "unpack"})
        self.assertTrue(Sub.statics["extra"])

    def test_installed_patch_keeps_box_serializers(self):
        compat.install()
        FancyBox = controls.BoxModel.extend({}, {"flavour": "fancy"}, name="FancyBoxModel")
        self.assertIn("children", FancyBox.statics["serializers"])
        self.assertEqual(FancyBox.statics["flavour"], "fancy")


class TestViewShims(unittest.TestCase):
    def test_adds_missing_members(self):
        class View:
            lumino_widget = "lumino"

        self.assertEqual(compat.install_view_shims(View), ["p_widget", "process_phosphor_message"])
        view = View()
        self.assertEqual(view.p_widget, "lumino")
        self.assertIsNone(view.process_phosphor_message(object()))

    def test_existing_members_are_kept(self):
        def custom(self, msg):
            return "custom"

        class View:
            lumino_widget = "lumino"
            process_phosphor_message = custom

        self.assertEqual(compat.install_view_shims(View), ["p_widget"])
        self.assertIs(View.process_phosphor_message, custom)
        self.assertEqual(compat.install_view_shims(View), [])

    def test_installed_on_dom_widget_view(self):
        compat.install()
        self.assertIn("p_widget", vars(DOMWidgetView))
        self.assertIn("process_phosphor_message", vars(DOMWidgetView))


if __name__ == "__main__":
    unittest.main()
