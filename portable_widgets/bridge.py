# portable_widgets/bridge.py
"""
Qt WebChannel binding for comm traffic.

Register a :class:`WebChannelHost` on a ``QWebChannel`` and the page's
JavaScript can open comms, post messages and close them; whatever the
widgets send comes back through the ``comm_message`` signal. Payloads are
JSON objects of the form ``{"data": ..., "buffers": [<base64>, ...]}``.
"""
import asyncio
import base64
import json
import logging
from typing import Dict, Optional

from PySide6.QtCore import QObject, Signal, Slot

from .channel import QueueComm
from .comm import to_plain_data

logger = logging.getLogger(__name__)


def encode_payload(data, buffers=None) -> str:
    return json.dumps({
        "data": to_plain_data(data),
        "buffers": [base64.b64encode(bytes(b)).decode("ascii") for b in (buffers or [])],
    })


def decode_payload(payload: str):
    message = json.loads(payload) if payload else {}
    buffers = [base64.b64decode(b) for b in message.get("buffers") or []]
    return message.get("data"), buffers


class WebChannelHost(QObject):
    """
    Owns the channels opened by a web page and feeds them to a manager.

    Slots may be invoked from the Qt thread; the work is handed to the
    asyncio loop given at construction.
    """

    comm_message = Signal(str, str)
    comm_closed = Signal(str)

    def __init__(self, manager, loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__()
        self.manager = manager
        self.loop = loop or asyncio.get_running_loop()
        self.channels: Dict[str, QueueComm] = {}

    def _channel(self, comm_id: str) -> QueueComm:
        channel = self.channels.get(comm_id)
        if channel is None:
            channel = QueueComm(
                comm_id,
                on_send=lambda data, buffers: self.comm_message.emit(comm_id, encode_payload(data, buffers)),
                on_close=lambda: self._closed_by_runtime(comm_id),
            )
            self.channels[comm_id] = channel
        return channel

    def _closed_by_runtime(self, comm_id: str):
        self.channels.pop(comm_id, None)
        self.comm_closed.emit(comm_id)

    @Slot(str, str)
    def open_comm(self, comm_id: str, payload: str):
        data, buffers = decode_payload(payload)
        self.loop.call_soon_threadsafe(self._open, comm_id, data, buffers)

    def _open(self, comm_id, data, buffers):
        if not data:
            logger.debug("Ignoring comm '%s' opened without data", comm_id)
            return
        channel = self._channel(comm_id)
        task = asyncio.ensure_future(self.manager.comm_channel_opened(comm_id, channel, data, buffers))
        task.add_done_callback(lambda t: self._report(comm_id, t))

    def _report(self, comm_id, task: asyncio.Future):
        if not task.cancelled() and task.exception() is not None:
            self.channels.pop(comm_id, None)
            logger.error("Failed to open comm '%s'", comm_id, exc_info=task.exception())

    @Slot(str, str)
    def post_message(self, comm_id: str, payload: str):
        data, buffers = decode_payload(payload)
        self.loop.call_soon_threadsafe(self._post, comm_id, data, buffers)

    def _post(self, comm_id, data, buffers):
        channel = self.channels.get(comm_id)
        if channel is None:
            logger.warning("Message for unknown comm '%s' dropped", comm_id)
            return
        channel.post(data, buffers or None)

    @Slot(str)
    def close_comm(self, comm_id: str):
        self.loop.call_soon_threadsafe(self._end, comm_id)

    def _end(self, comm_id):
        channel = self.channels.pop(comm_id, None)
        if channel is not None:
            channel.end()

    def attach_model_channel(self, comm_id: str) -> QueueComm:
        """Channel for a model whose state the host already provides (ModelRecord.comm)."""
        return self._channel(comm_id)
