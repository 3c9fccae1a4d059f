"""Exceptions raised and reported by vidstag streams.

Construction-time problems (an unresolvable source path, a malformed graph
description, a missing sink) are raised. Streaming-time problems are not
raised: they are returned by the iterator as StreamError instances so the
caller can decide whether to keep pulling.
"""

from __future__ import annotations

from typing import Any


class VidStagError(Exception):
    """Base class of all vidstag errors."""


class CaptureError(VidStagError):
    """The video source could not be resolved before any graph was started."""


class SourceNotFoundError(CaptureError, FileNotFoundError):
    """The video source path does not exist."""


class PipelineError(VidStagError, RuntimeError):
    """The processing graph could not be built or started.

    Raised for malformed descriptions, a missing sink element or a failed
    transition to the playing state. These indicate a configuration error,
    not a runtime condition.
    """


class EngineUnavailableError(VidStagError, RuntimeError):
    """GStreamer or its Python bindings are not installed."""


class StreamError(VidStagError):
    """Base class of the non-fatal errors reported while streaming."""


class FrameCaptureError(StreamError):
    """A single sample could not be extracted from the sink."""

    def __init__(self, message: str = "Failed to capture frame from pipeline") -> None:
        super().__init__(message)
        self.message = message


class EngineError(StreamError):
    """An error message posted on the pipeline bus.

    :param source: Path string of the element that posted the error,
        "None" when the message has no source
    :param message: Human readable error message
    :param debug: Optional diagnostic detail provided by the element
    :param error: The underlying GLib.Error, if available
    """

    def __init__(
        self,
        source: str,
        message: str,
        debug: str | None = None,
        error: Any = None,
    ) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message
        self.debug = debug
        self.error = error

    def __repr__(self) -> str:
        return (
            f"EngineError(source={self.source!r}, message={self.message!r}, "
            f"debug={self.debug!r})"
        )
