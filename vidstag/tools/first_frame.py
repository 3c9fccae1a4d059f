# First frame extractor
"""
Capture the first frame of a video file as an image.

Usage:
    # Write the first frame as 1280x534 PNG
    python -m vidstag.tools.first_frame resources/video.mp4 first_frame.png --width 1280 --height 534

    # JPEG output, give up if no frame arrives within 100000 polls
    python -m vidstag.tools.first_frame video.mp4 frame.jpg -W 320 -H 240 --format jpeg --max-polls 100000
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from vidstag.frame import FrameData
from vidstag.streams import (
    FileSource,
    FrameFormat,
    StreamOptions,
    CaptureError,
    PipelineError,
    EngineUnavailableError,
    StreamError,
    element_available,
    init_gst,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_FRAME = 1
EXIT_SOURCE_ERROR = 2

# Elements every frame extraction graph needs, by frame format
REQUIRED_ELEMENTS = {
    FrameFormat.PNG: ("uridecodebin", "videoconvert", "videoscale", "capsfilter", "pngenc", "appsink"),
    FrameFormat.JPEG: ("uridecodebin", "videoconvert", "videoscale", "capsfilter", "jpegenc", "appsink"),
}


def missing_elements(frame_format: FrameFormat = FrameFormat.PNG) -> list[str]:
    """Names of the GStreamer elements needed for frame_format that are not installed."""
    return [name for name in REQUIRED_ELEMENTS[frame_format] if not element_available(name)]


def extract_first_frame(
    source: str | Path,
    frame_size: tuple[int, int],
    *,
    frame_format: FrameFormat = FrameFormat.PNG,
    max_idle_polls: int | None = None,
    poll_interval: float = 0.0,
    raise_errors: bool = False,
) -> FrameData | None:
    """Capture the first frame of a video file.

    :param source: Path of the video file
    :param frame_size: Target (width, height)
    :param frame_format: Encoding of the frame
    :param max_idle_polls: Give up after this many consecutive empty polls
    :param poll_interval: Seconds to wait between empty polls
    :param raise_errors: Raise a stream error instead of returning None
    :return: The encoded frame, None if the video produced none or failed
    """
    options = StreamOptions(frame_format=frame_format, poll_interval=poll_interval)
    frames = FileSource(source, frame_size, options).stream().start()
    return frames.first_frame(max_idle_polls=max_idle_polls, raise_errors=raise_errors)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Capture the first frame of a video file',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s video.mp4 frame.png -W 200 -H 200            # PNG thumbnail
  %(prog)s video.mp4 frame.jpg -W 640 -H 480 -f jpeg    # JPEG frame
"""
    )
    parser.add_argument('source', help='Video file to read')
    parser.add_argument('output', help='Image file to write')
    parser.add_argument('--width', '-W', type=int, required=True, help='Frame width in pixels')
    parser.add_argument('--height', '-H', type=int, required=True, help='Frame height in pixels')
    parser.add_argument(
        '--format', '-f',
        choices=[f.value for f in FrameFormat],
        default=FrameFormat.PNG.value,
        help='Frame encoding (default: png)'
    )
    parser.add_argument(
        '--max-polls',
        type=int,
        default=None,
        help='Give up after this many consecutive empty polls (default: unlimited)'
    )
    parser.add_argument(
        '--poll-interval',
        type=float,
        default=0.001,
        help='Seconds to wait between empty polls (default: 0.001)'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        init_gst()
    except EngineUnavailableError as e:
        print(f'Error: {e}', file=sys.stderr)
        return EXIT_SOURCE_ERROR

    frame_format = FrameFormat(args.format)
    missing = missing_elements(frame_format)
    if missing:
        print(f'Error: missing GStreamer elements: {", ".join(missing)}', file=sys.stderr)
        return EXIT_SOURCE_ERROR

    try:
        frame = extract_first_frame(
            args.source,
            (args.width, args.height),
            frame_format=frame_format,
            max_idle_polls=args.max_polls,
            poll_interval=args.poll_interval,
            raise_errors=True,
        )
    except StreamError as e:
        print(f'Error: no frame captured from {args.source}: {e}', file=sys.stderr)
        return EXIT_NO_FRAME
    except (CaptureError, PipelineError, EngineUnavailableError, ValueError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return EXIT_SOURCE_ERROR

    if frame is None:
        print(f'No frame captured from {args.source}', file=sys.stderr)
        return EXIT_NO_FRAME

    frame.save(args.output)
    print(len(frame))
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
