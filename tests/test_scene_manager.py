"""Unit tests for the SceneManager.

Tests cover:
- Adding each primitive with its transform and material
- Emissive objects registered as lights
- Point lights
- Lookup by name
- Validation and scene clearing
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestObjects:
    """Tests for adding objects."""

    def test_add_each_shape(self, fresh_scene):
        from pathtracer.scene.intersection import get_object_count
        from pathtracer.scene.manager import ShapeType

        tri = np.array([[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]])
        assert fresh_scene.add_sphere("s") == 0
        assert fresh_scene.add_plane("p") == 1
        assert fresh_scene.add_square("q") == 2
        assert fresh_scene.add_triangle_mesh("m", tri) == 3

        assert fresh_scene.get_object_count() == 4
        assert get_object_count() == 4
        assert fresh_scene.get_object_info("q").shape == ShapeType.SQUARE
        assert fresh_scene.get_object_info("m").triangle_count == 1

    def test_transform_and_material_uploaded(self, fresh_scene):
        from pathtracer.geometry.transform import Transform
        from pathtracer.materials.blinn_phong import Material, material_kd, material_reflective
        from pathtracer.scene.intersection import object_material_ids, object_to_world

        idx = fresh_scene.add_sphere(
            "ball",
            Transform(position=(1.0, 2.0, 3.0)),
            Material(kd=(0.2, 0.4, 0.6), reflective=0.25),
        )
        info = fresh_scene.get_object_info("ball")
        assert info.object_index == idx
        assert object_material_ids[idx] == info.material_id

        m = object_to_world[idx].to_numpy()
        assert np.allclose(m[:3, 3], [1.0, 2.0, 3.0])
        assert abs(material_kd[info.material_id][1] - 0.4) < 1e-6
        assert abs(material_reflective[info.material_id] - 0.25) < 1e-6

    def test_each_object_gets_its_own_material(self, fresh_scene):
        from pathtracer.materials.blinn_phong import Material, get_material_count

        shared = Material(kd=(0.5, 0.5, 0.5))
        fresh_scene.add_sphere("a", material=shared)
        fresh_scene.add_sphere("b", material=shared)
        assert get_material_count() == 2
        assert fresh_scene.get_object_info("b").material_id == 1

    def test_defaults(self, fresh_scene):
        from pathtracer.geometry.transform import Transform
        from pathtracer.materials.blinn_phong import Material

        fresh_scene.add_sphere("plain")
        info = fresh_scene.get_object_info("plain")
        assert info.transform == Transform()
        assert info.material == Material()

    def test_mesh_requires_triangles(self, fresh_scene):
        from pathtracer.scene.manager import ShapeType

        with pytest.raises(ValueError, match="needs triangles"):
            fresh_scene.add_object("m", ShapeType.TRIANGLE_MESH)

    def test_only_meshes_take_triangles(self, fresh_scene):
        from pathtracer.scene.manager import ShapeType

        with pytest.raises(ValueError, match="Only triangle meshes"):
            fresh_scene.add_object("s", ShapeType.SPHERE, triangles=np.zeros((1, 3, 3)))
        assert fresh_scene.get_object_count() == 0

    def test_unknown_shape_value(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_object("x", 42)

    def test_missing_name(self, fresh_scene):
        assert fresh_scene.get_object_info("nope") is None


class TestLights:
    """Tests for point and emissive lights."""

    def test_point_light(self, fresh_scene):
        from pathtracer.scene.lights import light_owners, light_positions
        from pathtracer.scene.manager import LightType

        idx = fresh_scene.add_point_light("key", (1.0, 5.0, 2.0), 0.8, color=(1.0, 0.9, 0.8))
        info = fresh_scene.get_light_info("key")
        assert info.light_type == LightType.POINT
        assert info.intensity == 0.8
        assert info.owner == -1
        assert light_owners[idx] == -1
        assert abs(light_positions[idx][1] - 5.0) < 1e-6

    def test_negative_intensity_rejected(self, fresh_scene):
        with pytest.raises(ValueError, match="non-negative"):
            fresh_scene.add_point_light("bad", (0.0, 0.0, 0.0), -1.0)
        assert fresh_scene.get_light_count() == 0

    def test_emissive_object_becomes_light(self, fresh_scene):
        from pathtracer.materials.blinn_phong import Material
        from pathtracer.scene.lights import get_light_count, light_intensities, light_owners
        from pathtracer.scene.manager import LightType

        fresh_scene.add_sphere("plain")
        obj = fresh_scene.add_square("panel", material=Material(ke=(1.0, 0.5, 0.25)))

        assert fresh_scene.get_light_count() == 1
        assert get_light_count() == 1
        info = fresh_scene.get_light_info("panel_EmissiveLight")
        assert info.light_type == LightType.EMISSIVE
        assert info.owner == obj
        assert info.intensity == 1.0
        assert info.color == (1.0, 0.5, 0.25)
        assert light_owners[info.light_index] == obj
        assert light_intensities[info.light_index] == 1.0

    def test_non_emissive_object_is_not_a_light(self, fresh_scene):
        fresh_scene.add_sphere("plain")
        assert fresh_scene.get_light_count() == 0

    def test_sample_emissive_light_on_owner_surface(self, fresh_scene):
        from pathtracer.core.ray import init_rng
        from pathtracer.geometry.transform import Transform
        from pathtracer.materials.blinn_phong import Material
        from pathtracer.scene.lights import sample_light

        fresh_scene.add_point_light("key", (0.0, 9.0, 0.0), 2.0)
        fresh_scene.add_sphere(
            "lamp",
            Transform(position=(0.0, 3.0, 0.0), scale=(0.5, 0.5, 0.5)),
            Material(ke=(0.4, 0.4, 0.4)),
        )

        n = 256
        positions = ti.field(dtype=ti.math.vec3, shape=(2, n))
        radiances = ti.field(dtype=ti.math.vec3, shape=2)
        owners = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                state = init_rng(ti.cast(0, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
                for light in ti.static(range(2)):
                    pos, radiance, owner, state = sample_light(light, state)
                    positions[light, i] = pos
                    if i == 0:
                        radiances[light] = radiance
                        owners[light] = owner

        test_kernel()
        pts = positions.to_numpy()
        assert np.allclose(pts[0], [0.0, 9.0, 0.0])
        assert np.allclose(np.linalg.norm(pts[1] - [0.0, 3.0, 0.0], axis=1), 0.5, atol=1e-4)
        assert np.allclose(radiances[0].to_numpy(), [2.0, 2.0, 2.0])
        assert np.allclose(radiances[1].to_numpy(), [0.4, 0.4, 0.4])
        assert owners[0] == -1
        assert owners[1] == 0


class TestClear:
    """Tests for clearing the scene."""

    def test_clear_resets_everything(self, fresh_scene):
        from pathtracer.materials.blinn_phong import Material, get_material_count
        from pathtracer.scene.intersection import get_object_count, get_triangle_count
        from pathtracer.scene.lights import get_light_count

        tri = np.array([[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]])
        fresh_scene.add_triangle_mesh("m", tri, material=Material(ke=(1.0, 1.0, 1.0)))
        fresh_scene.add_point_light("key", (0.0, 1.0, 0.0), 1.0)
        fresh_scene.clear()

        assert fresh_scene.get_object_count() == 0
        assert fresh_scene.get_light_count() == 0
        assert get_object_count() == 0
        assert get_triangle_count() == 0
        assert get_material_count() == 0
        assert get_light_count() == 0

    def test_new_manager_starts_empty(self):
        from pathtracer.scene.intersection import get_object_count
        from pathtracer.scene.manager import SceneManager

        SceneManager().add_sphere("leftover")
        assert get_object_count() == 1
        SceneManager()
        assert get_object_count() == 0
