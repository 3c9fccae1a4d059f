"""
VidStag - Use a video file as a collection of still image frames
"""

from .frame import FrameData
from .streams import (
    VideoStream,
    VideoStreamIterator,
    FileSource,
    StreamOptions,
    FrameFormat,
    StreamMetrics,
    VidStagError,
    CaptureError,
    SourceNotFoundError,
    PipelineError,
    EngineUnavailableError,
    StreamError,
    EngineError,
    FrameCaptureError,
)

__all__ = [
    # Frames
    "FrameData",
    # Streams
    "VideoStream",
    "VideoStreamIterator",
    "FileSource",
    "StreamOptions",
    "FrameFormat",
    "StreamMetrics",
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

__version__ = "0.1.0"
