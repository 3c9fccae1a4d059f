"""Video stream session.

This module provides VideoStream, which turns a partial GStreamer graph
description into a running pipeline whose frames are captured as encoded
still images.
"""

from __future__ import annotations

import logging

from . import engine
from .channel import FrameChannel
from .errors import PipelineError
from .iterator import VideoStreamIterator
from .metrics import StreamMetrics
from .options import StreamOptions
from .sample_handler import SampleHandler

logger = logging.getLogger(__name__)


class VideoStream:
    """A video source described by a GStreamer graph description.

    The description must produce raw video, e.g.
    ``videotestsrc num-buffers=30 ! videoconvert``. VideoStream appends the
    encoder and an appsink, so every frame is delivered as an encoded image.

    Creating a VideoStream initializes GStreamer (once per process) but
    allocates no pipeline. Each call to start() builds and starts a new
    pipeline owned by the returned iterator.

    Example:
        stream = VideoStream("videotestsrc num-buffers=10 ! videoconvert")
        with stream.start() as frames:
            for item in frames:
                if isinstance(item, FrameData):
                    item.save("frame.png")
                    break

    :param description: Partial graph description producing raw video
    :param options: Encoding and sink options
    """

    def __init__(self, description: str, options: StreamOptions | None = None) -> None:
        engine.init_gst()
        self._description = description
        self._options = options if options is not None else StreamOptions()

    @property
    def description(self) -> str:
        """The caller supplied graph description."""
        return self._description

    @property
    def options(self) -> StreamOptions:
        """Encoding and sink options."""
        return self._options

    @property
    def full_description(self) -> str:
        """The description including the encoding stage and the sink."""
        return (
            f"{self._description} ! {self._options.encoder_description()}"
            f" ! {self._options.sink_description()}"
        )

    def start(self) -> VideoStreamIterator:
        """Build the pipeline, connect the sink and set it to playing.

        :return: Iterator owning the running pipeline
        :raises PipelineError: If the description is invalid, the sink is
            missing or not an appsink, or the pipeline refuses to start
        """
        Gst = engine.get_gst()
        GLib = engine.get_glib()

        logger.debug("Creating GStreamer Pipeline..")
        try:
            pipeline = Gst.parse_launch(self.full_description)
        except GLib.Error as e:
            raise PipelineError(f"Pipeline description invalid, cannot create: {e.message}") from e
        if not isinstance(pipeline, Gst.Pipeline):
            _stop_quietly(Gst, pipeline)
            raise PipelineError("Expected the description to produce a Gst.Pipeline")

        sink = pipeline.get_by_name(self._options.sink_name)
        if sink is None:
            _stop_quietly(Gst, pipeline)
            raise PipelineError(f"Sink element not found: {self._options.sink_name}")
        factory = sink.get_factory()
        if factory is None or factory.get_name() != "appsink":
            _stop_quietly(Gst, pipeline)
            raise PipelineError(f"Sink element is expected to be an appsink: {self._options.sink_name}")

        channel = FrameChannel()
        metrics = StreamMetrics()
        handler = SampleHandler(channel, metrics)

        sink.set_property("sync", self._options.sync)
        sink.set_property("emit-signals", True)
        handler_ids = (
            sink.connect("new-sample", handler),
            sink.connect("eos", handler.on_eos),
        )

        bus = pipeline.get_bus()
        if bus is None:
            _stop_quietly(Gst, pipeline)
            raise PipelineError("Pipeline without bus")

        if pipeline.set_state(Gst.State.PLAYING) == Gst.StateChangeReturn.FAILURE:
            _stop_quietly(Gst, pipeline)
            raise PipelineError(f"Cannot start pipeline: {self._description}")
        logger.info(f"Pipeline started: {self._description}")

        return VideoStreamIterator(
            description=self._description,
            pipeline=pipeline,
            sink=sink,
            bus=bus,
            channel=channel,
            metrics=metrics,
            options=self._options,
            handler_ids=handler_ids,
        )

    def __iter__(self) -> VideoStreamIterator:
        return self.start()


def _stop_quietly(Gst, pipeline) -> None:
    """Release a pipeline that failed during construction."""
    if pipeline is None:
        return
    try:
        pipeline.set_state(Gst.State.NULL)
    except Exception as e:
        logger.debug(f"Could not release pipeline: {e}")
