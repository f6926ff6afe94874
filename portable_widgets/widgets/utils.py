# portable_widgets/widgets/utils.py
from typing import Any, Dict, List, Sequence, Union

BINARY_TYPES = (bytes, bytearray, memoryview)

BufferPath = List[Union[str, int]]


def is_binary(value: Any) -> bool:
    return isinstance(value, BINARY_TYPES)


def as_byte_view(buffer) -> memoryview:
    """
    Return a flat unsigned-byte view over ``buffer``.

    Typed views are re-cast over the same memory; only non-contiguous
    buffers are copied.
    """
    view = buffer if isinstance(buffer, memoryview) else memoryview(buffer)
    if view.format == "B" and view.ndim == 1:
        return view
    try:
        return view.cast("B")
    except TypeError:
        return memoryview(view.tobytes())


def remove_buffers(state: Any) -> Dict[str, Any]:
    """
    Split binary payloads out of a state structure.

    Returns ``{"state": ..., "buffer_paths": [...], "buffers": [...]}``.
    Buffers found in a dict are removed from it; buffers found in a list
    are replaced with None. Tuples are left whole. Containers are copied
    only when something inside them changes, the input is never mutated.
    """
    buffers: List[memoryview] = []
    buffer_paths: List[BufferPath] = []

    def remove(obj, path):
        if isinstance(obj, list):
            result = obj
            for i, value in enumerate(obj):
                if is_binary(value):
                    if result is obj:
                        result = list(obj)
                    buffers.append(as_byte_view(value))
                    buffer_paths.append(path + [i])
                    result[i] = None
                elif isinstance(value, (dict, list)):
                    new_value = remove(value, path + [i])
                    if new_value is not value:
                        if result is obj:
                            result = list(obj)
                        result[i] = new_value
            return result
        if isinstance(obj, dict):
            result = obj
            for key, value in obj.items():
                if is_binary(value):
                    if result is obj:
                        result = dict(obj)
                    buffers.append(as_byte_view(value))
                    buffer_paths.append(path + [key])
                    del result[key]
                elif isinstance(value, (dict, list)):
                    new_value = remove(value, path + [key])
                    if new_value is not value:
                        if result is obj:
                            result = dict(obj)
                        result[key] = new_value
            return result
        return obj

    new_state = remove(state, [])
    return {"state": new_state, "buffer_paths": buffer_paths, "buffers": buffers}


def put_buffers(state: Any, buffer_paths: Sequence[BufferPath], buffers: Sequence[Any]) -> None:
    """
    Reinsert buffers into ``state`` in place at the given paths.

    Every inserted payload is normalized to a byte memoryview.
    """
    for path, buffer in zip(buffer_paths, buffers):
        if not path:
            raise ValueError("A buffer path must not be empty")
        obj = state
        for step in path[:-1]:
            obj = obj[step]
        last = path[-1]
        view = as_byte_view(buffer)
        if isinstance(obj, list):
            index = int(last)
            if index == len(obj):
                obj.append(view)
            else:
                obj[index] = view
        else:
            obj[last] = view
