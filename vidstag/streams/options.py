"""Stream configuration.

StreamOptions controls the encoding and sink stage vidstag appends to every
graph description, plus the pacing of the convenience frames() helper.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrameFormat(Enum):
    """Encoding of the delivered frames."""

    PNG = "png"
    JPEG = "jpeg"


DEFAULT_SINK_NAME = "sink"
"Name of the appsink element the session looks up after parsing"

DEFAULT_FRAME_FORMAT = FrameFormat.PNG
"Frames are encoded as lossless PNG snapshots unless configured otherwise"


class StreamOptions(BaseModel):
    """Options of a video stream.

    Example:
        options = StreamOptions(frame_format="jpeg", jpeg_quality=90)
        options.encoder_description()   # 'jpegenc quality=90'
    """

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
    )

    frame_format: FrameFormat = Field(default=DEFAULT_FRAME_FORMAT)
    jpeg_quality: int = Field(default=85, ge=1, le=100)
    sink_name: str = Field(default=DEFAULT_SINK_NAME, min_length=1)
    # Frames are delivered as fast as they are decoded, not paced to the clock
    sync: bool = Field(default=False)
    poll_interval: float = Field(default=0.0, ge=0.0)
    max_idle_polls: int | None = Field(default=None, ge=1)

    @field_validator('sink_name')
    @classmethod
    def _plain_name(cls, value: str) -> str:
        if any(c.isspace() for c in value) or '!' in value:
            raise ValueError(f"Invalid sink name: {value!r}")
        return value

    def encoder_description(self) -> str:
        """Graph description of the encoding stage."""
        if self.frame_format == FrameFormat.JPEG:
            return f"jpegenc quality={self.jpeg_quality}"
        return "pngenc snapshot=false"

    def sink_description(self) -> str:
        """Graph description of the terminal sink."""
        return f"appsink name={self.sink_name}"
