"""Video file source.

This module provides FileSource, which builds a decoding graph for a video
file and hands out its frames scaled to a fixed size.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .errors import CaptureError, SourceNotFoundError
from .iterator import VideoStreamIterator
from .options import StreamOptions
from .video import VideoStream

logger = logging.getLogger(__name__)


class FileSource:
    """A video file delivered as a sequence of encoded frames.

    The path is resolved when the source is created, so a missing file fails
    early and no pipeline is ever started for it.

    Example:
        source = FileSource("video.mp4", (200, 200))
        for item in source:
            if isinstance(item, FrameData):
                item.save("first_frame.png")
                break

    :param path: Path of the video file
    :param frame_size: Target (width, height) of the delivered frames
    :param options: Encoding and sink options
    :raises SourceNotFoundError: If the file does not exist
    :raises CaptureError: If the path cannot be resolved
    """

    def __init__(
        self,
        path: str | os.PathLike,
        frame_size: tuple[int, int],
        options: StreamOptions | None = None,
    ) -> None:
        width, height = frame_size
        if int(width) != width or int(height) != height or width <= 0 or height <= 0:
            raise ValueError(f"Frame size must be two positive integers, got {frame_size}")
        try:
            resolved = Path(path).resolve(strict=True)
        except FileNotFoundError as e:
            raise SourceNotFoundError(f"Video file not found: {path}") from e
        except OSError as e:
            raise CaptureError(f"Cannot resolve video file {path}: {e}") from e
        if not resolved.is_file():
            raise CaptureError(f"Not a file: {resolved}")

        self._path = resolved
        self._frame_size = (int(width), int(height))
        self._options = options

    @property
    def path(self) -> Path:
        """The resolved absolute path of the video file."""
        return self._path

    @property
    def frame_size(self) -> tuple[int, int]:
        """Target (width, height) of the delivered frames."""
        return self._frame_size

    @property
    def description(self) -> str:
        """Graph description decoding, converting and scaling the file."""
        width, height = self._frame_size
        return (
            f"uridecodebin uri={self._path.as_uri()} ! videoconvert ! videoscale"
            f" ! capsfilter caps=\"video/x-raw, width={width}, height={height}\""
        )

    def stream(self) -> VideoStream:
        """Create the video stream for this file."""
        logger.debug(f"Creating video stream for {self._path}")
        return VideoStream(self.description, self._options)

    def __iter__(self) -> VideoStreamIterator:
        return self.stream().start()
