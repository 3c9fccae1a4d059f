"""
Pytest fixtures for VidStag tests

Most tests run against an in-memory stand-in for the parts of the Gst API
vidstag uses, patched in through vidstag.streams.engine.get_gst, the same way
the stream classes are tested with a mocked OpenCV. Tests needing a real
GStreamer installation live in test_gstreamer_integration.py and skip
themselves when it is missing.
"""

import io
from collections import deque
from enum import Enum, IntEnum, IntFlag
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import PIL.Image
import pytest

from vidstag.streams import engine


# =============================================================================
# Gst stand-ins
# =============================================================================

class FlowReturn(Enum):
    OK = 0
    EOS = -3
    ERROR = -5


class State(Enum):
    NULL = 1
    READY = 2
    PAUSED = 3
    PLAYING = 4


class StateChangeReturn(Enum):
    FAILURE = 0
    SUCCESS = 1
    ASYNC = 2


class MessageType(IntFlag):
    EOS = 1
    ERROR = 2
    STATE_CHANGED = 64


class MapFlags(IntFlag):
    READ = 1


class ResourceError(IntEnum):
    FAILED = 1


class FakeGLibError(Exception):
    """Mimics GLib.Error: carries message, domain and code."""

    def __init__(self, message="unknown error", domain="pygi-error", code=0):
        super().__init__(message)
        self.message = message
        self.domain = domain
        self.code = code

    @classmethod
    def new_literal(cls, domain, message, code):
        return cls(message, str(domain), code)


class FakeMapInfo:
    def __init__(self, data: bytes):
        self.data = data


class FakeBuffer:
    def __init__(self, data: bytes, mappable: bool = True):
        self.data = data
        self.mappable = mappable
        self.unmapped = 0

    def map(self, flags):
        if not self.mappable:
            return False, None
        return True, FakeMapInfo(self.data)

    def unmap(self, map_info):
        self.unmapped += 1


class FakeSample:
    def __init__(self, buffer: FakeBuffer | None):
        self._buffer = buffer

    def get_buffer(self):
        return self._buffer


class FakeSource:
    def __init__(self, path: str):
        self._path = path

    def get_path_string(self):
        return self._path


class FakeMessage:
    def __init__(self, type, src=None, error=None, debug=None):
        self.type = type
        self.src = src
        self._error = error
        self._debug = debug

    def parse_error(self):
        return self._error, self._debug


class FakeBus:
    def __init__(self):
        self.messages: deque = deque()

    def pop(self):
        if self.messages:
            return self.messages.popleft()
        return None

    def post(self, message):
        self.messages.append(message)


class FakeFactory:
    def __init__(self, name: str):
        self._name = name

    def get_name(self):
        return self._name


class FakeSink:
    """An appsink whose samples are queued by the test."""

    def __init__(self, name: str, bus: FakeBus, factory_name: str = "appsink"):
        self.name = name
        self.factory_name = factory_name
        self.bus = bus
        self.properties: dict = {}
        self.handlers: dict = {}
        self.disconnected: list[int] = []
        self.samples: deque = deque()
        self.last_buffer: FakeBuffer | None = None
        self._next_id = 1

    def get_path_string(self):
        return f"/GstPipeline:pipeline0/GstAppSink:{self.name}"

    def get_factory(self):
        return FakeFactory(self.factory_name)

    def set_property(self, name, value):
        self.properties[name] = value

    def connect(self, signal, callback):
        handler_id = self._next_id
        self._next_id += 1
        self.handlers[signal] = (handler_id, callback)
        return handler_id

    def disconnect(self, handler_id):
        self.disconnected.append(handler_id)

    def emit(self, signal):
        assert signal == "pull-sample"
        if self.samples:
            return self.samples.popleft()
        return None

    def post_message(self, message):
        self.bus.post(message)
        return True

    def push(self, data: bytes, mappable: bool = True):
        """Queue a sample and invoke the new-sample handler like the engine."""
        self.last_buffer = FakeBuffer(data, mappable)
        self.samples.append(FakeSample(self.last_buffer))
        _, callback = self.handlers["new-sample"]
        return callback(self)

    def end_of_stream(self):
        """Invoke the eos handler like the engine."""
        _, callback = self.handlers["eos"]
        callback(self)


class FakePipeline:
    def __init__(self, description: str, sink_name: str | None = "sink", sink_factory: str = "appsink"):
        self.description = description
        self.bus = FakeBus()
        self.sink = FakeSink(sink_name, self.bus, sink_factory) if sink_name else None
        self.states: list = []
        self.start_result = StateChangeReturn.ASYNC
        self.stop_error: Exception | None = None

    def get_by_name(self, name):
        if self.sink is not None and self.sink.name == name:
            return self.sink
        return None

    def get_bus(self):
        return self.bus

    def set_state(self, state):
        self.states.append(state)
        if state == State.NULL:
            if self.stop_error is not None:
                raise self.stop_error
            return StateChangeReturn.SUCCESS
        return self.start_result


class FakeGst(SimpleNamespace):
    """The Gst module surface used by vidstag."""

    def __init__(self):
        super().__init__(
            FlowReturn=FlowReturn,
            State=State,
            StateChangeReturn=StateChangeReturn,
            MessageType=MessageType,
            MapFlags=MapFlags,
            ResourceError=ResourceError,
            Pipeline=FakePipeline,
            init=MagicMock(),
            resource_error_quark=MagicMock(return_value=42),
            ElementFactory=MagicMock(),
        )
        self.Message = SimpleNamespace(new_error=self._new_error)
        self.pipelines: list[FakePipeline] = []
        self.sink_name = "sink"
        self.sink_factory = "appsink"
        self.parse_error: Exception | None = None

    def parse_launch(self, description):
        if self.parse_error is not None:
            raise self.parse_error
        pipeline = FakePipeline(description, self.sink_name, self.sink_factory)
        self.pipelines.append(pipeline)
        return pipeline

    @staticmethod
    def _new_error(src, error, debug):
        return FakeMessage(MessageType.ERROR, src=src, error=error, debug=debug)

    # Helpers for tests

    @property
    def pipeline(self) -> FakePipeline:
        """The most recently created pipeline."""
        return self.pipelines[-1]

    @staticmethod
    def glib_error(message):
        return FakeGLibError(message)

    @staticmethod
    def eos_message():
        return FakeMessage(MessageType.EOS)

    @staticmethod
    def error_message(path="/GstPipeline:pipeline0/GstURIDecodeBin:uridecodebin0",
                      message="Resource not found.", debug="gsturisourcebin.c(1432)"):
        src = FakeSource(path) if path is not None else None
        return FakeMessage(MessageType.ERROR, src=src, error=FakeGLibError(message), debug=debug)

    @staticmethod
    def state_changed_message():
        return FakeMessage(MessageType.STATE_CHANGED, src=FakeSource("/GstPipeline:pipeline0"))


FakeGLib = SimpleNamespace(Error=FakeGLibError)


@pytest.fixture
def gst():
    """
    Patches vidstag's engine accessors with an in-memory Gst.

    :return: The fake Gst module
    """
    fake = FakeGst()
    # The fake must not mark the real engine as initialized
    with patch('vidstag.streams.engine.get_gst', return_value=fake), \
            patch('vidstag.streams.engine.get_glib', return_value=FakeGLib), \
            patch('vidstag.streams.engine._initialized', False):
        yield fake


@pytest.fixture
def reset_gst_init(monkeypatch):
    """Forget that GStreamer has been initialized in this process."""
    monkeypatch.setattr(engine, '_initialized', False)


def encode_image(width: int, height: int, fmt: str = "PNG", color=(200, 40, 40)) -> bytes:
    """Encode a solid color image."""
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[:, :] = color
    out = io.BytesIO()
    PIL.Image.fromarray(pixels).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture(scope="module")
def png_data() -> bytes:
    """
    Returns a 200x200 PNG image for testing.
    :return: The png data
    """
    return encode_image(200, 200)


@pytest.fixture(scope="module")
def jpeg_data() -> bytes:
    """
    Returns a 64x48 JPEG image for testing.
    :return: The jpeg data
    """
    return encode_image(64, 48, fmt="JPEG")


@pytest.fixture
def make_image():
    """
    Returns a function encoding solid color test images.
    :return: encode_image(width, height, fmt="PNG", color=(r, g, b)) -> bytes
    """
    return encode_image
