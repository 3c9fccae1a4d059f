"""Pull-based iteration over a running GStreamer pipeline.

This module defines VideoStreamIterator, the object returned by
VideoStream.start(). It owns the running pipeline and merges the two event
sources of a pipeline, frames arriving through the channel and messages
arriving on the bus, into one ordered sequence.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Iterator, Union

from vidstag.frame import FrameData
from . import engine
from .channel import ChannelDisconnected, ChannelEmpty
from .errors import EngineError, StreamError

if TYPE_CHECKING:
    from .channel import FrameChannel
    from .metrics import StreamMetrics
    from .options import StreamOptions

logger = logging.getLogger(__name__)

StreamItem = Union[FrameData, StreamError, None]
"""One pulled item: a frame, a non-fatal stream error, or None (no data yet)"""


class VideoStreamIterator:
    """Iterates the frames of a started pipeline.

    Every pull returns immediately with one of:
    - FrameData: a captured frame
    - StreamError: an EngineError from the bus or a FrameCaptureError. The
      sequence continues afterwards, the caller decides whether to stop.
    - None: nothing arrived yet, pull again later

    The sequence ends (StopIteration) on an end-of-stream bus message or when
    the sink has delivered its last frame, and never resumes afterwards.

    The pipeline is stopped exactly once: when the sequence ends, on close(),
    when leaving a with-block or when the iterator is garbage collected.

    Example:
        with VideoStream(description).start() as frames:
            for item in frames:
                if isinstance(item, FrameData):
                    process(item)
                elif isinstance(item, StreamError):
                    log(item)
                    break
    """

    def __init__(
        self,
        description: str,
        pipeline,
        sink,
        bus,
        channel: "FrameChannel",
        metrics: "StreamMetrics",
        options: "StreamOptions",
        handler_ids: tuple[int, ...] = (),
    ) -> None:
        """Take ownership of a pipeline that has been set to playing.

        :param description: The caller supplied graph description (for logging)
        :param pipeline: The running Gst.Pipeline
        :param sink: The appsink element
        :param bus: The pipeline's bus
        :param channel: Receiving end of the frame channel
        :param metrics: Statistics shared with the sample handler
        :param options: Options the stream was created with
        :param handler_ids: Signal handler ids connected on the sink
        """
        self._description = description
        self._pipeline = pipeline
        self._sink = sink
        self._bus = bus
        self._channel = channel
        self._metrics = metrics
        self._options = options
        self._handler_ids = handler_ids
        self._finished = False
        self._closed = False
        self._close_lock = threading.Lock()

    def __iter__(self) -> "VideoStreamIterator":
        return self

    def __next__(self) -> StreamItem:
        if self._finished:
            raise StopIteration

        try:
            return self._channel.try_receive()
        except ChannelDisconnected:
            logger.debug(f"The pipeline channel is disconnected: {self._description}")
            self._finish()
        except ChannelEmpty:
            # Check if there are errors in the pipeline itself
            item = self._poll_bus()
            if item is not None:
                return item

        if self._finished:
            raise StopIteration
        # Nothing to report in this iteration: no frame captured, no error
        self._metrics.increment("empty_polls")
        return None

    def _poll_bus(self) -> StreamItem:
        """Pop at most one bus message and translate it.

        :return: An EngineError for error messages, None otherwise. Marks the
            sequence as finished on end-of-stream.
        """
        Gst = engine.get_gst()
        message = self._bus.pop()
        if message is None:
            return None

        if message.type == Gst.MessageType.EOS:
            logger.debug(f"End of stream: {self._description}")
            self._finish()
            return None
        if message.type == Gst.MessageType.ERROR:
            error, debug = message.parse_error()
            source = message.src.get_path_string() if message.src is not None else "None"
            self._metrics.increment("engine_errors")
            logger.warning(f"Pipeline error from {source}: {error.message}")
            return EngineError(source=source, message=error.message, debug=debug, error=error)
        return None

    def _finish(self) -> None:
        """End the sequence for good and release the pipeline."""
        self._finished = True
        self.close()

    # -------------------------------------------------------------------------
    # Convenience
    # -------------------------------------------------------------------------

    def frames(
        self,
        poll_interval: float | None = None,
        max_idle_polls: int | None = None,
        raise_errors: bool = False,
    ) -> Iterator[FrameData]:
        """Yield only the frames, waiting between empty polls.

        :param poll_interval: Seconds to sleep after an empty poll. Defaults to
            the stream options (0.0 = poll without delay)
        :param max_idle_polls: Stop after this many consecutive empty polls.
            Defaults to the stream options (None = no limit)
        :param raise_errors: Raise stream errors instead of skipping them
        :return: Generator of FrameData
        """
        if poll_interval is None:
            poll_interval = self._options.poll_interval
        if max_idle_polls is None:
            max_idle_polls = self._options.max_idle_polls

        idle_polls = 0
        for item in self:
            if item is None:
                idle_polls += 1
                if max_idle_polls is not None and idle_polls >= max_idle_polls:
                    logger.info(f"No frame after {idle_polls} polls, giving up")
                    return
                if poll_interval > 0:
                    time.sleep(poll_interval)
                continue
            idle_polls = 0
            if isinstance(item, StreamError):
                if raise_errors:
                    raise item
                logger.debug(f"Skipping stream error: {item}")
                continue
            yield item

    def first_frame(
        self,
        max_idle_polls: int | None = None,
        raise_errors: bool = False,
    ) -> FrameData | None:
        """Return the first captured frame and close the stream.

        A stream error before the first frame ends the attempt, a failed
        pipeline never reaches end-of-stream.

        :param max_idle_polls: Give up after this many consecutive empty polls
        :param raise_errors: Raise the stream error instead of returning None
        :return: The first frame, None if the stream ended or failed without one
        """
        try:
            for frame in self.frames(max_idle_polls=max_idle_polls, raise_errors=True):
                return frame
            return None
        except StreamError as e:
            if raise_errors:
                raise
            logger.warning(f"Stream failed before the first frame: {e}")
            return None
        finally:
            self.close()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Stop the pipeline. Only the first call has an effect.

        Never raises: a failure to stop the pipeline is logged.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self._finished = True
        self._channel.close_receiver()
        Gst = engine.get_gst()
        try:
            result = self._pipeline.set_state(Gst.State.NULL)
            if result == Gst.StateChangeReturn.FAILURE:
                logger.error(f"Could not stop pipeline: {self._description}")
            else:
                logger.debug("Pipeline stopped!")
        except Exception as e:
            logger.error(f"Could not stop pipeline: {e}")
        for handler_id in self._handler_ids:
            try:
                self._sink.disconnect(handler_id)
            except Exception as e:
                logger.debug(f"Could not disconnect sink handler {handler_id}: {e}")

    def __enter__(self) -> "VideoStreamIterator":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def __del__(self):
        # Attributes are missing if __init__ failed
        if getattr(self, "_closed", True):
            return
        self.close()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def description(self) -> str:
        """The graph description the stream was created from."""
        return self._description

    @property
    def is_closed(self) -> bool:
        """Whether the pipeline has been stopped."""
        return self._closed

    @property
    def is_finished(self) -> bool:
        """Whether the sequence has ended."""
        return self._finished

    @property
    def metrics(self) -> "StreamMetrics":
        """Frame statistics of the stream."""
        return self._metrics

    @property
    def pipeline(self):
        """The underlying Gst.Pipeline."""
        return self._pipeline
