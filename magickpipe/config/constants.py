"""Constants for magickpipe."""

import sys
from types import MappingProxyType

from magickpipe import __version__

# Application constants
APP_NAME = "magickpipe"
APP_VERSION = __version__

DEFAULT_CONFIG_FILE = "magickpipe.yaml"

# ImageMagick 7 ships a single `magick` binary on Windows, where `convert`
# collides with the system disk utility
DEFAULT_EXECUTABLE = "magick" if sys.platform == "win32" else "convert"

# Stream designator for stdin/stdout in format handles
STREAM_NAME = "-"

# Resize policies
RESIZE_FIT = "fit"
RESIZE_FILL = "fill"
RESIZE_CROP = "crop"
RESIZE_MODES = (RESIZE_FIT, RESIZE_FILL, RESIZE_CROP)
DEFAULT_RESIZE_MODE = RESIZE_CROP

# Rendering attributes, in emission order. Trailing digits are stripped from
# the name when building the flag, so `alpha2` is a second `-alpha`.
ATTRIBUTES = (
    "density",
    "background",
    "gravity",
    "quality",
    "blur",
    "rotate",
    "flip",
    "alpha",
    "clip",
    "alpha2",
    "strip",
)

DEFAULT_OPTIONS = MappingProxyType(
    {
        "executable": DEFAULT_EXECUTABLE,
        "source_bytes": None,
        "source_format": None,
        "target_format": None,
        "width": None,
        "height": None,
        "resize_mode": DEFAULT_RESIZE_MODE,
        "density": 600,
        "background": "none",
        "gravity": "Center",
        "quality": 75,
        "blur": None,
        "rotate": None,
        "flip": False,
        "alpha": None,
        "clip": None,
        "alpha2": None,
        "strip": True,
    }
)

# Stream I/O
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_EXIT_GRACE_PERIOD = 5.0
# 0 means unbounded per-sink queues (no backpressure on the engine)
DEFAULT_MAX_PENDING_CHUNKS = 0
