# tests/test_manager.py
import asyncio
import unittest
from unittest import mock

from portable_widgets import render
from portable_widgets.api import ModelRecord, StaticContext
from portable_widgets.channel import QueueComm
from portable_widgets.comm import ClassicComm, CommState
from portable_widgets.config import Config
from portable_widgets.dom import Document
from portable_widgets.errors import NotFoundError, ProtocolVersionError, UnsupportedOperationError
from portable_widgets.lifecycle import LuminoLifecycleAdapter
from portable_widgets.loader import Loader
from portable_widgets.manager import Manager
from portable_widgets.widgets import controls
from portable_widgets.widgets.base import PROTOCOL_VERSION, DOMWidgetModel, DOMWidgetView

CONTROLS = "@jupyter-widgets/controls"


async def settle(rounds: int = 20):
    for _ in range(rounds):
        await asyncio.sleep(0)


class SlowContext(StaticContext):
    """Suspends before answering so concurrent lookups overlap."""

    async def get_model_state(self, model_id):
        await asyncio.sleep(0)
        return await super().get_model_state(model_id)


class CountingManager(Manager):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.constructed = []

    async def new_model(self, options, serialized_state=None):
        self.constructed.append(options["model_id"])
        return await super().new_model(options, serialized_state)


class ManagerTestCase(unittest.IsolatedAsyncioTestCase):
    def make_manager(self, records, context_cls=StaticContext):
        self.context = context_cls(records)
        config = Config(overrides={})
        return CountingManager(self.context, Loader(config), config)


class TestModelResolution(ManagerTestCase):
    async def test_int_slider_from_state(self):
        manager = self.make_manager({"w1": ModelRecord("IntSliderModel", CONTROLS, {"value": 5})})

        model = await manager.get_model("w1")

        self.assertIsInstance(model, controls.IntSliderModel)
        self.assertEqual(model.model_id, "w1")
        self.assertEqual(model.get("value"), 5)
        self.assertEqual(model.get("max"), 100)
        self.assertIsNone(model.comm)

    async def test_concurrent_requests_share_one_task(self):
        manager = self.make_manager(
            {"w1": ModelRecord("IntSliderModel", CONTROLS, {"value": 5})}, context_cls=SlowContext
        )

        tasks = [manager.get_model("w1") for _ in range(5)]
        models = await asyncio.gather(*tasks, *(manager.get_model("w1") for _ in range(3)))

        self.assertTrue(all(task is tasks[0] for task in tasks))
        self.assertTrue(all(model is models[0] for model in models))
        self.assertEqual(self.context.requests, ["w1"])
        self.assertEqual(manager.constructed, ["w1"])
        self.assertIs(manager.get_model("w1"), tasks[0])

    async def test_missing_model_fails_without_retry(self):
        manager = self.make_manager({})
        task = manager.get_model("nope")
        with self.assertRaises(NotFoundError):
            await task
        self.assertIs(manager.get_model("nope"), task)
        with self.assertRaises(NotFoundError):
            await manager.get_model("nope")
        self.assertEqual(self.context.requests, ["nope"])

    async def test_missing_version_defaults_to_empty_string(self):
        manager = self.make_manager({"w1": ModelRecord("LabelModel", CONTROLS, {"value": "x"})})
        with mock.patch.object(manager, "load_class", wraps=manager.load_class) as load_class:
            await manager.get_model("w1")
        load_class.assert_any_call("LabelModel", CONTROLS, "")

    async def test_binary_state_is_normalized(self):
        state = {"value": 1, "data": b"\x00\x01", "nested": {"frames": [1, bytearray(b"ab")]}}
        manager = self.make_manager({"w1": ModelRecord("IntSliderModel", CONTROLS, state)})

        model = await manager.get_model("w1")

        self.assertIsInstance(model.get("data"), memoryview)
        self.assertEqual(model.get("data").tobytes(), b"\x00\x01")
        self.assertEqual(model.get("nested")["frames"][0], 1)
        self.assertEqual(model.get("nested")["frames"][1].tobytes(), b"ab")

    async def test_box_children_resolve_through_the_cache(self):
        manager = self.make_manager({
            "box": ModelRecord("VBoxModel", CONTROLS, {"children": ["IPY_MODEL_a", "IPY_MODEL_b"]}),
            "a": ModelRecord("LabelModel", CONTROLS, {"value": "hi"}),
            "b": ModelRecord("ButtonModel", CONTROLS, {"description": "Go"}),
        })

        box = await manager.get_model("box")
        label = await manager.get_model("a")

        self.assertIs(box.get("children")[0], label)
        self.assertIsInstance(box.get("children")[1], controls.ButtonModel)
        self.assertEqual(sorted(self.context.requests), ["a", "b", "box"])

    async def test_record_comm_is_wrapped(self):
        channel = QueueComm("w1")
        manager = self.make_manager({"w1": ModelRecord("IntSliderModel", CONTROLS, {"value": 1}, comm=channel)})

        model = await manager.get_model("w1")

        self.assertIsInstance(model.comm, ClassicComm)
        self.assertEqual(model.comm.comm_id, "w1")


class TestRender(ManagerTestCase):
    async def test_render_attaches_view_inside_shadow_root(self):
        manager = self.make_manager({"w1": ModelRecord("IntSliderModel", CONTROLS, {"value": 5})})
        document = Document()

        adapter = await manager.render("w1", document.body)

        model = await manager.get_model("w1")
        view = model.views[0]
        self.assertIsInstance(adapter, LuminoLifecycleAdapter)
        self.assertIs(adapter.parent, document.body)
        self.assertIs(adapter.shadow_root.children[-1], view.el)
        self.assertTrue(view.is_displayed)
        self.assertIs(view.p_widget, view.lumino_widget)
        self.assertEqual(view.readout.text_content, "5")

        adapter.remove()
        self.assertFalse(view.is_displayed)

    async def test_two_views_share_one_model(self):
        manager = self.make_manager({"w1": ModelRecord("LabelModel", CONTROLS, {"value": "a"})})
        document = Document()
        await manager.render("w1", document.body)
        await manager.render("w1", document.body)

        model = await manager.get_model("w1")
        self.assertEqual(len(model.views), 2)
        model.set("value", "b")
        self.assertEqual([view.el.text_content for view in model.views], ["b", "b"])

    async def test_legacy_view_gets_phosphor_messages(self):
        received = []

        class LegacyModel(DOMWidgetModel):
            def defaults(self):
                defaults = super().defaults()
                defaults.update({
                    "_model_name": "LegacyModel",
                    "_model_module": "legacy-widgets",
                    "_view_name": "LegacyView",
                    "_view_module": "legacy-widgets",
                })
                return defaults

        class LegacyView(DOMWidgetView):
            def process_phosphor_message(self, msg):
                received.append(msg.type)

        manager = self.make_manager({"w1": ModelRecord("LegacyModel", "legacy-widgets", {})})
        manager.loader.define("legacy-widgets", [], lambda: {"LegacyModel": LegacyModel, "LegacyView": LegacyView})
        document = Document()

        adapter = await manager.render("w1", document.body)
        adapter.remove()

        self.assertEqual(received, ["before-attach", "after-attach", "before-detach", "after-detach"])

    async def test_render_entry_point(self):
        context = StaticContext({"w1": ModelRecord("ButtonModel", CONTROLS, {"description": "Run"})})
        document = Document()
        output = {"data": {"application/vnd.jupyter.widget-view+json": {"model_id": "w1", "version_major": 2}}}

        manager = await render(output, document.body, context, config=Config(overrides={}))

        self.assertIsInstance(manager, Manager)
        self.assertEqual(len(document.body.children), 1)
        self.assertIn("Run", document.to_html())

    async def test_render_entry_point_rejects_other_outputs(self):
        with self.assertRaises(UnsupportedOperationError):
            await render({"data": {"text/plain": "1"}}, Document().body, StaticContext())


class TestCommTraffic(ManagerTestCase):
    async def test_host_updates_reach_model_and_view(self):
        channel = QueueComm("w1")
        manager = self.make_manager({"w1": ModelRecord("IntSliderModel", CONTROLS, {"value": 1}, comm=channel)})
        document = Document()
        await manager.render("w1", document.body)
        model = await manager.get_model("w1")

        channel.post({"method": "update", "state": {"value": 7}, "buffer_paths": []})
        await settle()
        await model.state_settled()

        self.assertEqual(model.get("value"), 7)
        self.assertEqual(model.views[0].readout.text_content, "7")

    async def test_user_input_is_sent_to_host(self):
        channel = QueueComm("w1")
        manager = self.make_manager({"w1": ModelRecord("IntSliderModel", CONTROLS, {"value": 1}, comm=channel)})
        await manager.render("w1", Document().body)
        model = await manager.get_model("w1")

        model.views[0].handle_input(42.4)
        await model.comm.flush()

        self.assertEqual(channel.sent, [({"method": "update", "state": {"value": 42}, "buffer_paths": []}, None)])

    async def test_host_closing_the_channel_marks_model_dead(self):
        channel = QueueComm("w1")
        manager = self.make_manager({"w1": ModelRecord("IntSliderModel", CONTROLS, {}, comm=channel)})
        model = await manager.get_model("w1")
        closed = []
        model.on("comm:close", closed.append)

        channel.end()
        await model.comm.wait_closed()

        self.assertFalse(model.comm_live)
        self.assertEqual(closed, [model])
        self.assertEqual(model.comm.state, CommState.CLOSED)


class TestCommChannelOpened(ManagerTestCase):
    async def test_without_data_is_a_no_op(self):
        manager = self.make_manager({})
        with mock.patch.object(manager, "handle_comm_open", new=mock.AsyncMock()) as handler:
            result = await manager.comm_channel_opened("c1", QueueComm("c1"), None)
        self.assertIsNone(result)
        handler.assert_not_called()

    async def test_with_data_invokes_handler_once(self):
        manager = self.make_manager({})
        channel = QueueComm("c1")
        with mock.patch.object(manager, "handle_comm_open", new=mock.AsyncMock()) as handler:
            await manager.comm_channel_opened("c1", channel, {"foo": 1})

        handler.assert_awaited_once()
        comm, msg = handler.await_args.args
        self.assertIsInstance(comm, ClassicComm)
        self.assertEqual(comm.comm_id, "c1")
        self.assertEqual(msg["content"], {"comm_id": "c1", "target_name": "jupyter.widget", "data": {"foo": 1}})
        self.assertEqual(msg["metadata"], {"version": PROTOCOL_VERSION})
        self.assertEqual(msg["channel"], "iopub")

    async def test_widget_created_from_comm_open(self):
        manager = self.make_manager({})
        channel = QueueComm("c1")
        data = {
            "state": {
                "_model_name": "ButtonModel",
                "_model_module": CONTROLS,
                "_model_module_version": "2.0.0",
                "_view_name": "ButtonView",
                "_view_module": CONTROLS,
                "description": "Go",
            },
            "buffer_paths": [],
        }

        model = await manager.comm_channel_opened("c1", channel, data)

        self.assertIsInstance(model, controls.ButtonModel)
        self.assertEqual(model.model_id, "c1")
        self.assertIs(await manager.get_model("c1"), model)
        self.assertEqual(self.context.requests, [])

        await manager.render("c1", Document().body)
        model.views[0].click()
        await model.comm.flush()
        self.assertEqual(channel.sent, [({"method": "custom", "content": {"event": "click"}}, None)])

    async def test_incompatible_protocol_version(self):
        manager = self.make_manager({})
        msg = {"metadata": {"version": "1.0.0"}, "content": {"data": {"state": {}}}}
        with self.assertRaises(ProtocolVersionError):
            await manager.handle_comm_open(ClassicComm("c1", QueueComm("c1")), msg)


class TestUnsupported(ManagerTestCase):
    async def test_unsupported_operations_fail_immediately(self):
        manager = self.make_manager({})
        with self.assertRaises(UnsupportedOperationError):
            await manager._create_comm("jupyter.widget", "m1", {})
        with self.assertRaises(UnsupportedOperationError):
            await manager._get_comm_info()
        with self.assertRaises(UnsupportedOperationError):
            await manager.render_output({"output_type": "stream"}, Document().body)

    async def test_load_class_errors_propagate(self):
        manager = self.make_manager({"w1": ModelRecord("NoSuchModel", CONTROLS, {})})
        with self.assertRaises(AttributeError):
            await manager.get_model("w1")


if __name__ == "__main__":
    unittest.main()
