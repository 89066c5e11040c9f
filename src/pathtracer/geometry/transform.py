"""Host-side affine transforms for scene objects and the camera.

Objects are modelled in a canonical local frame (unit sphere, unit square,
y = 0 plane, mesh coordinates) and placed in the world by

    local_to_world = T(position) @ R(rotation) @ S(scale)

with R = Rz @ Ry @ Rx built from Euler angles in degrees. The intersection
code needs the inverse (world to local, for rays) and the inverse transpose
(for normals). All matrices are computed once in NumPy before rendering and
uploaded to Taichi fields.

Example:
    >>> from pathtracer.geometry.transform import Transform
    >>> xf = Transform(position=(0, 1, -3), rotation=(0, 45, 0), scale=(2, 2, 2))
    >>> m = xf.matrix()
    >>> n = xf.normal_matrix()
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

Matrix4 = npt.NDArray[np.float64]


def translation_matrix(offset: tuple[float, float, float]) -> Matrix4:
    """4x4 matrix translating by offset."""
    m = np.eye(4)
    m[:3, 3] = offset
    return m


def scale_matrix(factors: tuple[float, float, float]) -> Matrix4:
    """4x4 matrix scaling each axis by the given factor."""
    return np.diag([factors[0], factors[1], factors[2], 1.0])


def rotation_matrix(degrees: tuple[float, float, float]) -> Matrix4:
    """4x4 rotation from XYZ Euler angles in degrees, applied X first.

    Args:
        degrees: Rotation about the x, y and z axes.

    Returns:
        Rz @ Ry @ Rx.
    """
    rx, ry, rz = (math.radians(a) for a in degrees)

    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)

    x_axis = np.array([[1, 0, 0, 0], [0, cx, -sx, 0], [0, sx, cx, 0], [0, 0, 0, 1]])
    y_axis = np.array([[cy, 0, sy, 0], [0, 1, 0, 0], [-sy, 0, cy, 0], [0, 0, 0, 1]])
    z_axis = np.array([[cz, -sz, 0, 0], [sz, cz, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]])

    return z_axis @ y_axis @ x_axis


def normal_matrix(local_to_world: Matrix4) -> Matrix4:
    """Inverse transpose of a transform, for carrying normals to world space.

    Applying it to a (nx, ny, nz, 0) normal can leave a non-zero w, which the
    caller must discard before renormalizing.
    """
    return np.linalg.inv(local_to_world).T


@dataclass(frozen=True)
class Transform:
    """Placement of a scene object.

    Attributes:
        position: Translation in world space.
        rotation: XYZ Euler angles in degrees.
        scale: Per-axis scale factors. None of them may be zero.
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        if any(abs(s) < 1e-12 for s in self.scale):
            raise ValueError(f"Scale components must be non-zero, got {self.scale}")

    def matrix(self) -> Matrix4:
        """The local-to-world matrix T @ R @ S."""
        return (
            translation_matrix(self.position)
            @ rotation_matrix(self.rotation)
            @ scale_matrix(self.scale)
        )

    def inverse_matrix(self) -> Matrix4:
        """The world-to-local matrix."""
        return np.linalg.inv(self.matrix())

    def normal_matrix(self) -> Matrix4:
        """The inverse transpose of the local-to-world matrix."""
        return normal_matrix(self.matrix())
