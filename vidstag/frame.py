"""
Implements :class:`FrameData`, the encoded still image vidstag delivers for
every captured video frame.
"""

from __future__ import annotations

import io
from pathlib import Path

import PIL.Image
import filetype
import numpy as np


class FrameData(bytes):
    """
    One encoded still image (PNG by default) captured from a video.

    FrameData is an immutable ``bytes`` object and can be written to disk or
    sent over the network as is. The helpers below decode it on demand and
    never modify the underlying bytes.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"FrameData({len(self)} bytes, {self.mime_type or 'unknown'})"

    @property
    def mime_type(self) -> str | None:
        """
        Returns the mime type sniffed from the data, e.g. "image/png"

        :return: The mime type or None if the format is unknown
        """
        kind = filetype.guess(bytes(self))
        return kind.mime if kind is not None else None

    def to_pil(self) -> PIL.Image.Image:
        """
        Decodes the frame to a PIL image

        :return: The PIL image
        """
        try:
            handle = PIL.Image.open(io.BytesIO(self))
            handle.load()
        except PIL.UnidentifiedImageError:
            raise ValueError("Invalid or damaged image data")
        if handle.mode not in ("RGB", "RGBA"):
            handle = handle.convert("RGBA" if "transparency" in handle.info else "RGB")
        return handle

    def to_numpy(self) -> np.ndarray:
        """
        Decodes the frame to a pixel array

        :return: A uint8 array of shape (height, width, 3) or (height, width, 4)
        """
        return np.asarray(self.to_pil(), dtype=np.uint8)

    @property
    def size(self) -> tuple[int, int]:
        """
        Returns the decoded image's size in pixels

        :return: The size as tuple (width, height)
        """
        with PIL.Image.open(io.BytesIO(self)) as handle:
            return handle.size

    def save(self, target: str | Path) -> None:
        """
        Writes the encoded bytes unchanged to disk

        :param target: The target file name
        """
        with open(target, "wb") as f:
            f.write(self)
