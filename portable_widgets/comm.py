# portable_widgets/comm.py
"""
Classic (callback style) comm objects over async host channels.

The widget framework expects ``send``/``on_msg``/``on_close`` callbacks;
the host hands us an ordered async stream. :class:`ClassicComm` sits
between the two.
"""
import asyncio
import enum
import logging
import math
from typing import Any, Callable, Dict, List, Optional, Sequence

from .api import Comm
from .errors import CallbackError, CommClosedError, UnsupportedOperationError
from .widgets.utils import as_byte_view

logger = logging.getLogger(__name__)

_DROP = object()


def to_plain_data(value: Any) -> Any:
    """
    Copy ``value`` keeping only what a plain-data message bus can carry.

    Callables, unknown objects and cyclic references are dropped from dicts
    and become None inside lists. Keys are coerced to str, tuples become
    lists and non-finite floats become None. Never raises.
    """
    def convert(obj, ancestors):
        if obj is None or isinstance(obj, (bool, str)):
            return obj
        if isinstance(obj, int):
            return int(obj)
        if isinstance(obj, float):
            return obj if math.isfinite(obj) else None
        if isinstance(obj, (dict, list, tuple)):
            if id(obj) in ancestors:
                return _DROP
            ancestors = ancestors | {id(obj)}
            if isinstance(obj, dict):
                result = {}
                for key, item in obj.items():
                    if not isinstance(key, (str, int, float, bool)) and key is not None:
                        continue
                    converted = convert(item, ancestors)
                    if converted is not _DROP:
                        result[_key(key)] = converted
                return result
            items = (convert(item, ancestors) for item in obj)
            return [None if item is _DROP else item for item in items]
        return _DROP

    result = convert(value, frozenset())
    return None if result is _DROP else result


def _key(key) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    return str(key)


class CommState(enum.Enum):
    OPEN = "open"
    DRAINING = "draining"
    CLOSED = "closed"


class ClassicComm:
    """
    Wraps one already-open host channel as a classic comm.

    A single pump reads the channel and fans every message out to all
    ``on_msg`` listeners in order; ``on_close`` listeners run after the
    stream has ended and every message has been delivered.
    """

    def __init__(self, comm_id: str, comm: Comm):
        self._id = comm_id
        self._comm = comm
        self.state = CommState.OPEN
        self._msg_listeners: List[Callable[[Dict[str, Any]], None]] = []
        self._close_listeners: List[Callable[[None], None]] = []
        self._pump: Optional[asyncio.Task] = None
        self._pending_sends: List[asyncio.Future] = []

    @property
    def comm_id(self) -> str:
        return self._id

    @property
    def target_name(self) -> str:
        return ""

    def open(self, data=None, callbacks=None, metadata=None, buffers=None) -> str:
        # Channels are opened by the host; see Manager._create_comm.
        raise UnsupportedOperationError("ClassicComm.open", "is not supported: comms are opened by the host")

    def send(self, data: Any, callbacks: Optional[Dict[str, Any]] = None, metadata=None, buffers: Optional[Sequence[Any]] = None) -> str:
        if self.state is not CommState.OPEN:
            raise CommClosedError(self._id)
        send_buffers = [as_byte_view(b) for b in buffers] if buffers else None
        payload = to_plain_data(data)
        future = asyncio.ensure_future(self._comm.send(payload, buffers=send_buffers))
        self._pending_sends.append(future)
        future.add_done_callback(lambda f: self._send_done(f, callbacks))
        return ""

    def _send_done(self, future: asyncio.Future, callbacks) -> None:
        self._pending_sends.remove(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Comm '%s' failed to send a message", self._id, exc_info=error)
            return
        status = _iopub_status(callbacks)
        if status is not None:
            try:
                status({"content": {"execution_state": "idle"}})
            except Exception as e:
                logger.error("%s", CallbackError(self._id, e), exc_info=e)

    async def flush(self) -> None:
        """Wait for every send scheduled so far to finish."""
        if self._pending_sends:
            await asyncio.gather(*list(self._pending_sends), return_exceptions=True)

    def close(self, data=None, callbacks=None, metadata=None, buffers=None) -> str:
        # Data on close is not supported.
        if self.state is CommState.OPEN:
            self.state = CommState.DRAINING
            logger.debug("Comm '%s' closing", self._id)
            self._comm.close()
            self._ensure_pump()
        return ""

    def on_msg(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        self._msg_listeners.append(callback)
        self._ensure_pump()

    def on_close(self, callback: Callable[[None], None]) -> None:
        if self.state is CommState.CLOSED:
            asyncio.get_running_loop().call_soon(self._fire_close, callback)
            return
        self._close_listeners.append(callback)
        self._ensure_pump()

    # --- pump ---
    def _ensure_pump(self) -> None:
        if self._pump is None:
            self._pump = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        try:
            async for message in self._comm.messages:
                buffers = [memoryview(b) for b in (message.buffers or [])]
                msg = {
                    "content": {"comm_id": self._id, "data": message.data},
                    "buffers": buffers,
                }
                for listener in list(self._msg_listeners):
                    try:
                        listener(msg)
                    except Exception as e:
                        logger.error("%s", CallbackError(self._id, e), exc_info=e)
        except Exception as e:
            logger.error("Comm '%s' channel failed", self._id, exc_info=e)
        finally:
            self.state = CommState.CLOSED
            logger.debug("Comm '%s' channel ended", self._id)
            listeners, self._close_listeners = self._close_listeners, []
            for listener in listeners:
                self._fire_close(listener)

    def _fire_close(self, callback) -> None:
        try:
            callback(None)
        except Exception as e:
            logger.error("%s", CallbackError(self._id, e), exc_info=e)

    async def wait_closed(self) -> None:
        """Wait until the channel has ended and close listeners have run."""
        self._ensure_pump()
        await self._pump

    def __repr__(self):
        return f"ClassicComm({self._id!r}, state={self.state.value})"


def _iopub_status(callbacks) -> Optional[Callable]:
    if not callbacks:
        return None
    iopub = callbacks.get("iopub") if isinstance(callbacks, dict) else getattr(callbacks, "iopub", None)
    if not iopub:
        return None
    return iopub.get("status") if isinstance(iopub, dict) else getattr(iopub, "status", None)
