"""Bounded hand-off between the engine's streaming thread and the consumer.

The channel decouples the producer cadence (GStreamer decodes as fast as it
can) from the consumer cadence (the caller pulls whenever it likes). Neither
side ever blocks: a full slot makes the producer drop its item, an empty slot
makes the consumer return immediately.
"""

from __future__ import annotations

import queue
import threading
from enum import Enum, auto
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from vidstag.frame import FrameData
    from .errors import StreamError

ChannelItem = Union["FrameData", "StreamError"]
"An item travelling through the channel: a frame or a streaming error"


class SendResult(Enum):
    """Outcome of a non-blocking send."""

    SENT = auto()  # Item stored in the slot
    FULL = auto()  # Slot occupied, item discarded
    DISCONNECTED = auto()  # Receiver closed, nobody will read the item


class ChannelEmpty(Exception):
    """Nothing is buffered but the sender is still connected."""


class ChannelDisconnected(Exception):
    """The sender is closed and every buffered item has been received."""


class FrameChannel:
    """Single-slot, non-blocking channel.

    Example:
        channel = FrameChannel()
        channel.try_send(FrameData(b"..."))   # SendResult.SENT
        channel.try_send(FrameData(b"..."))   # SendResult.FULL, dropped
        channel.try_receive()                 # the first frame
        channel.try_receive()                 # raises ChannelEmpty

    :param capacity: Number of items the channel can hold
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError(f"Channel capacity must be at least 1, got {capacity}")
        self._queue: queue.Queue = queue.Queue(capacity)
        self._capacity = capacity
        self._lock = threading.Lock()
        self._sender_closed = False
        self._receiver_closed = False

    def try_send(self, item: ChannelItem) -> SendResult:
        """Offer an item without blocking.

        :param item: Frame or stream error to deliver
        :return: Whether the item was stored, dropped or cannot be delivered
        """
        with self._lock:
            if self._receiver_closed:
                return SendResult.DISCONNECTED
            try:
                self._queue.put_nowait(item)
            except queue.Full:
                return SendResult.FULL
            return SendResult.SENT

    def try_receive(self) -> ChannelItem:
        """Take the buffered item without blocking.

        Buffered items are always handed out before a closed sender is
        reported.

        :return: The buffered frame or stream error
        :raises ChannelEmpty: If nothing is buffered and the sender is open
        :raises ChannelDisconnected: If nothing is buffered and the sender is closed
        """
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            pass
        with self._lock:
            sender_closed = self._sender_closed
        if not sender_closed:
            raise ChannelEmpty()
        # The sender may have delivered its last item right before closing
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            raise ChannelDisconnected() from None

    def close_sender(self) -> None:
        """Mark the producing side as gone. Idempotent."""
        with self._lock:
            self._sender_closed = True

    def close_receiver(self) -> None:
        """Mark the consuming side as gone and discard buffered items. Idempotent."""
        with self._lock:
            self._receiver_closed = True
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        """Maximum number of buffered items."""
        return self._capacity

    @property
    def pending(self) -> int:
        """Number of items currently buffered (approximate under concurrency)."""
        return self._queue.qsize()

    @property
    def sender_closed(self) -> bool:
        """Whether the producing side is gone."""
        with self._lock:
            return self._sender_closed

    @property
    def receiver_closed(self) -> bool:
        """Whether the consuming side is gone."""
        with self._lock:
            return self._receiver_closed
