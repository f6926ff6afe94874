# tests/test_buffers.py
import array
import unittest

from portable_widgets.widgets.utils import as_byte_view, put_buffers, remove_buffers


class TestRemoveBuffers(unittest.TestCase):
    def test_splits_buffers_from_dicts_and_lists(self):
        state = {
            "value": 3,
            "data": b"\x00\x01\x02",
            "nested": {"frames": [1, bytearray(b"ab"), {"raw": memoryview(b"cd")}]},
        }
        result = remove_buffers(state)

        self.assertEqual(result["state"], {"value": 3, "nested": {"frames": [1, None, {}]}})
        self.assertEqual(
            result["buffer_paths"],
            [["data"], ["nested", "frames", 1], ["nested", "frames", 2, "raw"]],
        )
        self.assertEqual([b.tobytes() for b in result["buffers"]], [b"\x00\x01\x02", b"ab", b"cd"])

    def test_does_not_mutate_input(self):
        inner = [b"xy", 2]
        state = {"a": inner, "b": {"c": 1}}
        result = remove_buffers(state)
        self.assertEqual(inner, [b"xy", 2])
        self.assertIs(result["state"]["b"], state["b"])  # untouched containers are shared
        self.assertIsNot(result["state"]["a"], inner)

    def test_state_without_buffers_is_returned_as_is(self):
        state = {"value": 1, "items": [1, 2, {"x": "y"}]}
        result = remove_buffers(state)
        self.assertIs(result["state"], state)
        self.assertEqual(result["buffers"], [])
        self.assertEqual(result["buffer_paths"], [])


class TestPutBuffers(unittest.TestCase):
    def test_round_trip_restores_attributes_and_bytes(self):
        original = {
            "value": 5,
            "image": b"\x89PNG",
            "layers": [{"name": "a", "pixels": bytearray(b"\x01\x02")}, {"name": "b"}],
            "trailing": [b"z"],
            "pair": (b"x", 1),
        }
        split = remove_buffers(original)
        restored = split["state"]
        put_buffers(restored, split["buffer_paths"], split["buffers"])

        self.assertEqual(restored, original)
        self.assertIsInstance(restored["image"], memoryview)
        self.assertEqual(restored["layers"][0]["pixels"].tobytes(), b"\x01\x02")
        self.assertIsInstance(restored["pair"], tuple)

        # A second pass is a no-op on content.
        again = remove_buffers(restored)
        put_buffers(again["state"], again["buffer_paths"], again["buffers"])
        self.assertEqual(again["state"], original)

    def test_rejects_empty_path(self):
        with self.assertRaises(ValueError):
            put_buffers({}, [[]], [b"x"])


class TestAsByteView(unittest.TestCase):
    def test_typed_view_is_recast_without_copy(self):
        values = array.array("h", [1, 2, 3])
        view = as_byte_view(values)
        self.assertEqual(view.format, "B")
        self.assertEqual(len(view), 6)
        values[0] = 7
        self.assertEqual(view.tobytes(), values.tobytes())

    def test_sliced_view_keeps_offset(self):
        backing = bytearray(b"abcdef")
        view = as_byte_view(memoryview(backing)[2:4])
        self.assertEqual(view.tobytes(), b"cd")
        backing[2] = ord("z")
        self.assertEqual(view.tobytes(), b"zd")


if __name__ == "__main__":
    unittest.main()
