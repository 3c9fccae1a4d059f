"""VidStag streams package.

This package turns video sources into sequences of encoded still frames:

- VideoStream: Session for a GStreamer graph description
- VideoStreamIterator: Pull-based iteration over a running pipeline
- FileSource: Video file scaled to a fixed frame size
- FrameChannel: Single-slot hand-off between GStreamer and the consumer
- SampleHandler: Appsink callbacks feeding the channel
- StreamOptions: Encoding, sink and polling options

Pulls never block. Each pull yields a FrameData, a StreamError (non-fatal,
the caller decides whether to continue) or None when nothing arrived yet.

Example:
    from vidstag.streams import FileSource
    from vidstag import FrameData

    for item in FileSource('movie.mp4', (320, 240)):
        if isinstance(item, FrameData):
            process(item)

    # Or, without the polling loop
    with FileSource('movie.mp4', (320, 240)).stream().start() as frames:
        for frame in frames.frames(poll_interval=0.005):
            process(frame)
"""

from .channel import FrameChannel, SendResult, ChannelEmpty, ChannelDisconnected
from .engine import init_gst, element_available
from .errors import (
    VidStagError,
    CaptureError,
    SourceNotFoundError,
    PipelineError,
    EngineUnavailableError,
    StreamError,
    EngineError,
    FrameCaptureError,
)
from .file import FileSource
from .iterator import VideoStreamIterator, StreamItem
from .metrics import StreamMetrics
from .options import StreamOptions, FrameFormat
from .sample_handler import SampleHandler
from .video import VideoStream

__all__ = [
    # Sources and iteration
    "VideoStream",
    "VideoStreamIterator",
    "StreamItem",
    "FileSource",
    # Channel
    "FrameChannel",
    "SendResult",
    "ChannelEmpty",
    "ChannelDisconnected",
    "SampleHandler",
    # Configuration and statistics
    "StreamOptions",
    "FrameFormat",
    "StreamMetrics",
    # Engine
    "init_gst",
    "element_available",
    # Errors
    "VidStagError",
    "CaptureError",
    "SourceNotFoundError",
    "PipelineError",
    "EngineUnavailableError",
    "StreamError",
    "EngineError",
    "FrameCaptureError",
]
