"""Unit tests for vidstag.streams.file (with a fake Gst)."""

import pytest

from vidstag.streams import (
    FileSource,
    VideoStream,
    VideoStreamIterator,
    StreamOptions,
    FrameFormat,
    CaptureError,
    SourceNotFoundError,
)


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "video.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


class TestFileSource:
    """Test path resolution and graph description."""

    def test_missing_file(self, gst, tmp_path):
        with pytest.raises(SourceNotFoundError):
            FileSource(tmp_path / "missing.mp4", (200, 200))
        assert gst.pipelines == []

    def test_missing_file_is_file_not_found(self, gst, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileSource(str(tmp_path / "missing.mp4"), (200, 200))

    def test_directory_is_rejected(self, gst, tmp_path):
        with pytest.raises(CaptureError):
            FileSource(tmp_path, (200, 200))

    @pytest.mark.parametrize("size", [(0, 200), (200, -1), (20.5, 10)])
    def test_invalid_size(self, video_file, size):
        with pytest.raises(ValueError):
            FileSource(video_file, size)

    def test_path_is_resolved(self, video_file, monkeypatch):
        monkeypatch.chdir(video_file.parent)
        source = FileSource("video.mp4", (200, 200))
        assert source.path == video_file.resolve()
        assert source.path.is_absolute()
        assert source.frame_size == (200, 200)

    def test_description(self, video_file):
        source = FileSource(video_file, (320, 240))
        assert source.description == (
            f"uridecodebin uri={video_file.resolve().as_uri()} ! videoconvert ! videoscale"
            " ! capsfilter caps=\"video/x-raw, width=320, height=240\""
        )

    def test_description_escapes_path(self, tmp_path):
        path = tmp_path / "my video.mp4"
        path.write_bytes(b"data")
        source = FileSource(path, (10, 10))
        assert "my%20video.mp4" in source.description
        assert "my video" not in source.description

    def test_stream(self, gst, video_file):
        options = StreamOptions(frame_format=FrameFormat.JPEG)
        stream = FileSource(video_file, (200, 200), options).stream()
        assert isinstance(stream, VideoStream)
        assert stream.options is options
        assert stream.full_description.startswith("uridecodebin uri=file://")
        assert gst.pipelines == []

    def test_iter_starts_pipeline(self, gst, video_file):
        frames = iter(FileSource(video_file, (200, 200)))
        assert isinstance(frames, VideoStreamIterator)
        assert "width=200, height=200" in gst.pipeline.description
        assert gst.pipeline.description.endswith("! pngenc snapshot=false ! appsink name=sink")
        frames.close()
