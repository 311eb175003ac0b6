"""GlowFace live beauty filter.

Landmark-driven mask geometry, the filtered/masked frame composite,
diagnostic overlays, the face/hand detector bridge, and the per-preset
filter configuration store. Camera and MediaPipe wrappers live alongside
so the package runs end to end.
"""

from . import bridge as bridge
from . import compositor as compositor
from . import config as config
from . import errors as errors
from . import geometry as geometry
from . import keypoints as keypoints
from . import overlay as overlay
from . import presets as presets
from . import types as types
from . import utils as utils

__all__ = [
    "bridge",
    "compositor",
    "config",
    "errors",
    "geometry",
    "keypoints",
    "overlay",
    "presets",
    "types",
    "utils",
]
