# portable_widgets/channel.py
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from .api import CommMessage

logger = logging.getLogger(__name__)

_END = object()

SendHook = Callable[[Any, Optional[List[bytes]]], Union[None, Awaitable[None]]]


class QueueComm:
    """
    An in-memory comm channel backed by an unbounded asyncio.Queue.

    The host side feeds it with :meth:`post` and finishes the inbound stream
    with :meth:`end`. Whatever the runtime sends is recorded in :attr:`sent`
    and forwarded to ``on_send`` when one is given.

    ``messages`` is a single-consumer stream, like a real host channel.
    """

    def __init__(self, comm_id: str = "", on_send: Optional[SendHook] = None, on_close: Optional[Callable[[], None]] = None):
        self.comm_id = comm_id
        self.sent: List[Tuple[Any, Optional[List[bytes]]]] = []
        self.closed = False
        self._queue: "asyncio.Queue" = asyncio.Queue()
        self._ended = False
        self._on_send = on_send
        self._on_close = on_close

    # --- host side ---
    def post(self, data: Any, buffers: Optional[Sequence[bytes]] = None) -> None:
        """Queue an inbound message."""
        if self._ended:
            raise RuntimeError(f"Channel '{self.comm_id}' has ended")
        self._queue.put_nowait(CommMessage(data, list(buffers) if buffers is not None else None))

    def end(self) -> None:
        """Finish the inbound stream after the messages already queued."""
        if not self._ended:
            self._ended = True
            self._queue.put_nowait(_END)

    # --- runtime side ---
    @property
    def messages(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            item = await self._queue.get()
            if item is _END:
                # Leave the marker for any other reader.
                self._queue.put_nowait(_END)
                return
            yield item

    async def send(self, data: Any, buffers: Optional[Sequence[memoryview]] = None) -> None:
        payload = [bytes(b) for b in buffers] if buffers is not None else None
        self.sent.append((data, payload))
        if self._on_send is not None:
            result = self._on_send(data, payload)
            if inspect.isawaitable(result):
                await result

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        logger.debug("Channel '%s' closed by runtime", self.comm_id)
        if self._on_close is not None:
            self._on_close()
        self.end()
