"""Scene description file loading.

A scene file is plain text with one whitespace-separated record per line:

    Camera <pos x y z> <rot x y z> <fovY>
    SceneObject <Sphere|Plane|Square|TriangleMesh> <name> <pos x y z>
        <rot x y z> <scale x y z> <kd r g b> <ks r g b> <ke r g b>
        <reflective> <specExp> [<mesh .obj path, TriangleMesh only>]
    PointLight <name> <pos x y z> <intensity> [<color r g b>]
    # comment

Rotations and the field of view are in degrees. Records may appear in any
order; objects and lights may repeat, and if several cameras are given the
last one wins. Mesh paths are resolved against the scene file's directory.

A bad record never aborts loading: it is logged as a warning with its line
number and skipped.
"""

import logging
from pathlib import Path

from pathtracer.camera.pinhole import PinholeCamera
from pathtracer.geometry.mesh import load_obj
from pathtracer.geometry.transform import Transform
from pathtracer.materials.blinn_phong import Material
from pathtracer.scene.manager import SceneManager, ShapeType

logger = logging.getLogger(__name__)

SHAPE_NAMES = {
    "Sphere": ShapeType.SPHERE,
    "Plane": ShapeType.PLANE,
    "Square": ShapeType.SQUARE,
    "TriangleMesh": ShapeType.TRIANGLE_MESH,
}

# Numeric fields after "SceneObject <shape> <name>": pos, rot, scale, kd, ks, ke, reflective, exp
OBJECT_NUMBER_COUNT = 3 * 6 + 2


def _floats(tokens: list[str], what: str) -> list[float]:
    try:
        return [float(t) for t in tokens]
    except ValueError as e:
        raise ValueError(f"non-numeric {what}: {' '.join(tokens)}") from e


def _triple(values: list[float], start: int) -> tuple[float, float, float]:
    return (values[start], values[start + 1], values[start + 2])


def _parse_camera(args: list[str], aspect_ratio: float) -> PinholeCamera:
    if len(args) != 7:
        raise ValueError(f"Camera expects 7 values, got {len(args)}")
    values = _floats(args, "camera field")
    return PinholeCamera(
        position=_triple(values, 0),
        rotation=_triple(values, 3),
        vfov=values[6],
        aspect_ratio=aspect_ratio,
    )


def _parse_scene_object(args: list[str], scene: SceneManager, base_dir: Path) -> None:
    if not args:
        raise ValueError("SceneObject is missing its shape")
    shape_name = args[0]
    if shape_name not in SHAPE_NAMES:
        raise ValueError(f"unknown shape {shape_name!r}")
    shape = SHAPE_NAMES[shape_name]

    expected = 2 + OBJECT_NUMBER_COUNT + (1 if shape == ShapeType.TRIANGLE_MESH else 0)
    if len(args) != expected:
        raise ValueError(f"SceneObject {shape_name} expects {expected} values, got {len(args)}")

    name = args[1]
    values = _floats(args[2 : 2 + OBJECT_NUMBER_COUNT], "object field")
    transform = Transform(
        position=_triple(values, 0),
        rotation=_triple(values, 3),
        scale=_triple(values, 6),
    )
    material = Material(
        kd=_triple(values, 9),
        ks=_triple(values, 12),
        ke=_triple(values, 15),
        reflective=values[18],
        specular_exp=values[19],
    )

    triangles = None
    if shape == ShapeType.TRIANGLE_MESH:
        mesh_path = Path(args[-1])
        if not mesh_path.is_absolute():
            mesh_path = base_dir / mesh_path
        triangles = load_obj(mesh_path)

    scene.add_object(name, shape, transform, material, triangles)


def _parse_point_light(args: list[str], scene: SceneManager) -> None:
    if len(args) not in (5, 8):
        raise ValueError(f"PointLight expects 5 or 8 values, got {len(args)}")
    values = _floats(args[1:], "light field")
    color = _triple(values, 4) if len(values) == 7 else (1.0, 1.0, 1.0)
    scene.add_point_light(args[0], _triple(values, 0), values[3], color)


def build_scene_from_file(
    path: str | Path,
    scene: SceneManager,
    aspect_ratio: float = 1.0,
) -> PinholeCamera | None:
    """Populate a scene from a scene description file.

    Args:
        path: Path to the scene file.
        scene: Scene to add objects and lights to. It is not cleared first.
        aspect_ratio: Aspect ratio given to the camera.

    Returns:
        The camera described by the file, a default camera if the file has
        none, or None if the file cannot be read.
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        logger.error("Unable to read scene file %s: %s", path, e)
        return None

    logger.info("Reading scene data from %s", path)
    camera = None
    skipped = 0

    for line_num, line in enumerate(text.splitlines(), 1):
        tokens = line.split()
        if not tokens or tokens[0].startswith("#"):
            continue

        record, args = tokens[0], tokens[1:]
        try:
            if record == "Camera":
                if camera is not None:
                    logger.warning("%s:%d: camera redefined", path, line_num)
                camera = _parse_camera(args, aspect_ratio)
            elif record == "SceneObject":
                _parse_scene_object(args, scene, path.parent)
            elif record == "PointLight":
                _parse_point_light(args, scene)
            else:
                raise ValueError(f"unknown record type {record!r}")
        except (ValueError, RuntimeError, OSError) as e:
            skipped += 1
            logger.warning("%s:%d: %s; line skipped: %s", path, line_num, e, line.strip())

    if camera is None:
        logger.warning("%s has no Camera record, using the default camera", path)
        camera = PinholeCamera(aspect_ratio=aspect_ratio)

    logger.info(
        "Loaded %d objects and %d lights from %s (%d lines skipped)",
        scene.get_object_count(),
        scene.get_light_count(),
        path,
        skipped,
    )
    return camera
