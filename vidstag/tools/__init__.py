"""VidStag Tools - Command line utilities."""

from .first_frame import extract_first_frame, main as run_first_frame

__all__ = [
    'extract_first_frame',
    'run_first_frame',
]
