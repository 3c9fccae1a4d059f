"""GStreamer engine access.

This module is the only place that imports PyGObject. The engine module is
loaded lazily and cached so importing vidstag never requires GStreamer to be
installed; streams fail with EngineUnavailableError when they are started
without it.
"""

from __future__ import annotations

import logging
import threading

from .errors import EngineUnavailableError

logger = logging.getLogger(__name__)

# Cache modules at module level to avoid import overhead in callbacks
_gst_module = None
_glib_module = None

_init_lock = threading.Lock()
_initialized = False


def get_gst():
    """Get the Gst module, returning None if not available."""
    global _gst_module
    if _gst_module is not None:
        return _gst_module
    try:
        import gi

        gi.require_version("Gst", "1.0")
        from gi.repository import Gst
    except (ImportError, ValueError):
        return None
    _gst_module = Gst
    return Gst


def get_glib():
    """Get the GLib module, returning None if not available."""
    global _glib_module
    if _glib_module is not None:
        return _glib_module
    try:
        from gi.repository import GLib
    except ImportError:
        return None
    _glib_module = GLib
    return GLib


def init_gst():
    """Initialize GStreamer once per process.

    Safe to call repeatedly and from several threads. The engine is never
    deinitialized, it lives as long as the process.

    :return: The initialized Gst module
    :raises EngineUnavailableError: If PyGObject or GStreamer is missing
    """
    global _initialized
    Gst = get_gst()
    if Gst is None:
        raise EngineUnavailableError(
            "GStreamer (PyGObject with the Gst 1.0 typelib) is required for video streams"
        )
    with _init_lock:
        if not _initialized:
            logger.debug("Initializing GStreamer..")
            Gst.init(None)
            _initialized = True
    return Gst


def element_available(name: str) -> bool:
    """Whether an element factory with the given name is installed.

    :param name: Element factory name, e.g. "pngenc"
    :return: True if GStreamer can create the element
    """
    try:
        Gst = init_gst()
    except EngineUnavailableError:
        return False
    return Gst.ElementFactory.find(name) is not None
