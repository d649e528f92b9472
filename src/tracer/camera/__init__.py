"""Camera module for primary ray generation.

Components:
    thin_lens: Look-at camera with vertical field of view and depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import ThinLensCamera, get_camera_info, get_ray, setup_camera

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
