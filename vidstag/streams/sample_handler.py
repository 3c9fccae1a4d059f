"""Appsink callbacks feeding the frame channel.

GStreamer invokes these from its own streaming thread, once per produced
sample. They never block: a frame the consumer has no room for is dropped so
the consumer always sees a recent frame instead of a backlog of stale ones.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vidstag.frame import FrameData
from . import engine
from .channel import SendResult
from .errors import FrameCaptureError
from .metrics import StreamMetrics

if TYPE_CHECKING:
    from .channel import FrameChannel

logger = logging.getLogger(__name__)


class SampleHandler:
    """Bridges the appsink "new-sample" and "eos" signals to a FrameChannel.

    Example:
        handler = SampleHandler(channel)
        appsink.set_property("emit-signals", True)
        appsink.connect("new-sample", handler)
        appsink.connect("eos", handler.on_eos)

    :param channel: Channel receiving frames and capture errors
    :param metrics: Statistics to update, a new instance if omitted
    """

    def __init__(self, channel: "FrameChannel", metrics: StreamMetrics | None = None) -> None:
        self._channel = channel
        self._metrics = metrics if metrics is not None else StreamMetrics()

    def __call__(self, sink):
        """Handle one sample and tell the engine whether to keep producing.

        :param sink: The appsink emitting the signal
        :return: Gst.FlowReturn.OK, EOS or ERROR
        """
        Gst = engine.get_gst()

        sample = sink.emit("pull-sample")
        if sample is None:
            # No sample means the sink is flushing or at end of stream
            return Gst.FlowReturn.EOS
        self._metrics.increment("frames_produced")

        buffer = sample.get_buffer()
        if buffer is None:
            return self._capture_failed(sink, "Failed to get buffer from appsink")

        # The buffer may live outside main memory (e.g. on the GPU), mapping
        # it makes the content readable from Python.
        ok, map_info = buffer.map(Gst.MapFlags.READ)
        if not ok:
            return self._capture_failed(sink, "Failed to map buffer readable")
        try:
            frame = FrameData(map_info.data)
        finally:
            buffer.unmap(map_info)
        logger.debug("Frame extracted from pipeline")

        result = self._channel.try_send(frame)
        if result == SendResult.SENT:
            self._metrics.increment("frames_delivered")
            return Gst.FlowReturn.OK
        if result == SendResult.FULL:
            logger.debug("Channel is full, discarded frame")
            self._metrics.increment("frames_dropped")
            return Gst.FlowReturn.OK
        logger.debug("Returning EOS in pipeline callback, receiver is gone")
        return Gst.FlowReturn.EOS

    def on_eos(self, sink) -> None:
        """The sink received end-of-stream, no further samples will follow."""
        logger.debug("Appsink reached end of stream, closing frame channel")
        self._channel.close_sender()

    @property
    def metrics(self) -> StreamMetrics:
        """Statistics updated by this handler."""
        return self._metrics

    def _capture_failed(self, sink, message: str):
        """Report a sample that could not be read and halt the sink.

        :param sink: The appsink emitting the signal
        :param message: Description of the failure
        :return: Gst.FlowReturn.ERROR
        """
        Gst = engine.get_gst()
        self._metrics.increment("capture_errors")
        _post_resource_error(sink, message)
        result = self._channel.try_send(FrameCaptureError(message))
        if result != SendResult.SENT:
            logger.error(f"Could not send message in stream: {result.name.lower()}")
        return Gst.FlowReturn.ERROR


def _post_resource_error(element, message: str) -> None:
    """Post a resource error from element on its bus.

    :param element: Element reported as the error source
    :param message: Error text
    """
    Gst = engine.get_gst()
    GLib = engine.get_glib()
    error = GLib.Error.new_literal(
        Gst.resource_error_quark(), message, int(Gst.ResourceError.FAILED)
    )
    element.post_message(Gst.Message.new_error(element, error, message))
