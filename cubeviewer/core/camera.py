"""
Projection and model-view transforms for the cube viewer.

All matrices are row-major float32 numpy arrays acting on column vectors.
Transpose before writing them to a GLSL mat4 uniform.
"""

import numpy as np
import math
from typing import Optional


def perspective_projection(fov: float, aspect: float, near: float, far: float) -> np.ndarray:
    """
    Create perspective projection matrix.

    Args:
        fov: Field of view in radians
        aspect: Aspect ratio (width/height)
        near: Near plane distance
        far: Far plane distance

    Returns:
        4x4 projection matrix
    """
    if aspect <= 0.0:
        raise ValueError(f"Aspect ratio must be positive, got {aspect}")

    f = 1.0 / math.tan(fov / 2.0)
    m = np.zeros((4, 4), dtype=np.float32)

    m[0, 0] = f / aspect
    m[1, 1] = f
    m[2, 2] = (far + near) / (near - far)
    m[2, 3] = (2.0 * far * near) / (near - far)
    m[3, 2] = -1.0

    return m


def translation(x: float, y: float, z: float) -> np.ndarray:
    """4x4 translation matrix"""
    m = np.eye(4, dtype=np.float32)
    m[:3, 3] = (x, y, z)
    return m


def rotation_x(angle: float) -> np.ndarray:
    """4x4 rotation by angle radians around the X axis"""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1, 0,  0, 0],
                     [0, c, -s, 0],
                     [0, s,  c, 0],
                     [0, 0,  0, 1]], dtype=np.float32)


def rotation_y(angle: float) -> np.ndarray:
    """4x4 rotation by angle radians around the Y axis"""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[ c, 0, s, 0],
                     [ 0, 1, 0, 0],
                     [-s, 0, c, 0],
                     [ 0, 0, 0, 1]], dtype=np.float32)


def model_view_matrix(about_x: float, about_y: float, distance: float = 6.0) -> np.ndarray:
    """
    Model-view matrix for the cube.

    The translation is applied first in composition order, so the cube
    rotates about its own center after being pushed `distance` units down
    the -Z axis in front of the camera.
    """
    return translation(0.0, 0.0, -distance) @ rotation_x(about_x) @ rotation_y(about_y)


class TransformState:
    """
    Projection and model-view state for one render session.

    The projection only depends on the viewport aspect ratio and is
    recomputed when that changes. `projection_version` counts real changes
    so a renderer can skip re-uploading an unchanged projection.
    """

    def __init__(self, fov: float = math.radians(45.0), near: float = 0.1,
                 far: float = 100.0, distance: float = 6.0,
                 aspect: float = 1.0):
        """
        Initialize transform state.

        Args:
            fov: Field of view in radians
            near: Near plane distance
            far: Far plane distance
            distance: How far in front of the camera the object sits
            aspect: Initial aspect ratio
        """
        self.fov = fov
        self.near = near
        self.far = far
        self.distance = distance

        self.aspect: Optional[float] = None
        self.projection: Optional[np.ndarray] = None
        self.projection_version = 0
        self.set_aspect(aspect)

    def set_aspect(self, aspect: float) -> bool:
        """Set aspect ratio, returns True if the projection changed"""
        if aspect <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {aspect}")
        if aspect == self.aspect:
            return False

        self.aspect = aspect
        self.projection = perspective_projection(self.fov, aspect, self.near, self.far)
        self.projection_version += 1
        return True

    def set_viewport(self, width: int, height: int) -> bool:
        """
        Update the projection for a new viewport size.

        A zero-sized viewport (minimized window) keeps the current projection.
        """
        if width <= 0 or height <= 0:
            return False
        return self.set_aspect(width / height)

    def get_model_view_matrix(self, about_x: float, about_y: float) -> np.ndarray:
        """Model-view matrix for the given rotation angles"""
        return model_view_matrix(about_x, about_y, self.distance)

    def get_projection_matrix(self) -> np.ndarray:
        """Current projection matrix"""
        return self.projection
