"""Wavefront OBJ loading for triangle meshes.

Only geometry is read: vertex positions ("v") and faces ("f"). Faces may use
any of the v, v/vt, v//vn and v/vt/vn forms and negative (relative) indices;
polygons with more than three vertices are fan-triangulated, which assumes
they are convex. Texture coordinates, normals, groups and materials are
ignored because meshes are shaded with flat per-triangle normals.
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)


def _parse_face_index(token: str, vertex_count: int) -> int:
    """Turn one face token into a 0-based vertex index."""
    raw = int(token.split("/")[0])
    index = raw - 1 if raw > 0 else vertex_count + raw
    if raw == 0 or not 0 <= index < vertex_count:
        raise ValueError(f"Face references missing vertex {raw}")
    return index


def parse_obj(lines) -> npt.NDArray[np.float32]:
    """Parse OBJ text into an array of triangles.

    Args:
        lines: Iterable of text lines.

    Returns:
        Array of shape (n_triangles, 3, 3): three vertices per triangle.

    Raises:
        ValueError: If a vertex or face record is malformed.
    """
    vertices: list[tuple[float, float, float]] = []
    triangles: list[tuple[int, int, int]] = []

    for line_num, line in enumerate(lines, 1):
        values = line.split()
        if not values or values[0].startswith("#"):
            continue

        try:
            if values[0] == "v":
                if len(values) < 4:
                    raise ValueError("vertex needs three coordinates")
                vertices.append((float(values[1]), float(values[2]), float(values[3])))
            elif values[0] == "f":
                if len(values) < 4:
                    raise ValueError("face needs at least three vertices")
                indices = [_parse_face_index(tok, len(vertices)) for tok in values[1:]]
                for i in range(1, len(indices) - 1):
                    triangles.append((indices[0], indices[i], indices[i + 1]))
        except ValueError as e:
            raise ValueError(f"line {line_num}: {e}: {line.strip()!r}") from e

    if not triangles:
        return np.zeros((0, 3, 3), dtype=np.float32)

    vertex_array = np.asarray(vertices, dtype=np.float32)
    return vertex_array[np.asarray(triangles, dtype=np.int64)]


def load_obj(path: str | Path) -> npt.NDArray[np.float32]:
    """Load the triangles of an OBJ file.

    Args:
        path: Path to the .obj file.

    Returns:
        Array of shape (n_triangles, 3, 3).

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file contains a malformed record or no faces.
    """
    with open(path) as f:
        triangles = parse_obj(f)

    if len(triangles) == 0:
        raise ValueError(f"{path} contains no faces")

    logger.debug("Loaded %d triangles from %s", len(triangles), path)
    return triangles
