"""Unit tests for host-side placement matrices."""

import numpy as np
import pytest


class TestMatrixBuilders:
    """Tests for translation, scale and rotation matrices."""

    def test_translation(self):
        from pathtracer.geometry.transform import translation_matrix

        m = translation_matrix((1.0, 2.0, 3.0))
        assert np.allclose(m @ [0.0, 0.0, 0.0, 1.0], [1.0, 2.0, 3.0, 1.0])
        # Directions ignore translation
        assert np.allclose(m @ [1.0, 0.0, 0.0, 0.0], [1.0, 0.0, 0.0, 0.0])

    def test_scale(self):
        from pathtracer.geometry.transform import scale_matrix

        m = scale_matrix((2.0, 3.0, 4.0))
        assert np.allclose(m @ [1.0, 1.0, 1.0, 1.0], [2.0, 3.0, 4.0, 1.0])

    @pytest.mark.parametrize(
        "degrees,vector,expected",
        [
            ((90.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)),
            ((0.0, 90.0, 0.0), (0.0, 0.0, 1.0), (1.0, 0.0, 0.0)),
            ((0.0, 0.0, 90.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)),
        ],
    )
    def test_single_axis_rotation(self, degrees, vector, expected):
        from pathtracer.geometry.transform import rotation_matrix

        result = rotation_matrix(degrees) @ np.array([*vector, 0.0])
        assert np.allclose(result[:3], expected, atol=1e-12)

    def test_rotation_applies_x_first(self):
        """(90, 90, 0): x turns +y into +z, then y turns +z into +x."""
        from pathtracer.geometry.transform import rotation_matrix

        result = rotation_matrix((90.0, 90.0, 0.0)) @ np.array([0.0, 1.0, 0.0, 0.0])
        assert np.allclose(result[:3], [1.0, 0.0, 0.0], atol=1e-12)

    def test_rotation_is_orthonormal(self):
        from pathtracer.geometry.transform import rotation_matrix

        r = rotation_matrix((30.0, -45.0, 120.0))[:3, :3]
        assert np.allclose(r @ r.T, np.eye(3), atol=1e-12)
        assert abs(np.linalg.det(r) - 1.0) < 1e-12


class TestTransform:
    """Tests for the Transform placement dataclass."""

    def test_default_is_identity(self):
        from pathtracer.geometry.transform import Transform

        xf = Transform()
        assert np.allclose(xf.matrix(), np.eye(4))
        assert np.allclose(xf.inverse_matrix(), np.eye(4))
        assert np.allclose(xf.normal_matrix(), np.eye(4))

    def test_scale_then_rotate_then_translate(self):
        from pathtracer.geometry.transform import Transform

        xf = Transform(position=(1.0, 2.0, 3.0), rotation=(0.0, 0.0, 90.0), scale=(2.0, 1.0, 1.0))
        # (1,0,0) -> scale (2,0,0) -> rotate (0,2,0) -> translate (1,4,3)
        assert np.allclose(xf.matrix() @ [1.0, 0.0, 0.0, 1.0], [1.0, 4.0, 3.0, 1.0])

    def test_inverse_round_trip(self):
        from pathtracer.geometry.transform import Transform

        xf = Transform(position=(-1.0, 0.5, 2.0), rotation=(10.0, 20.0, 30.0), scale=(1.0, 2.0, 0.5))
        assert np.allclose(xf.inverse_matrix() @ xf.matrix(), np.eye(4), atol=1e-12)

    def test_normal_matrix_keeps_normals_perpendicular(self):
        """A non-uniformly scaled sphere's normal stays perpendicular to its tangent."""
        from pathtracer.geometry.transform import Transform

        xf = Transform(scale=(4.0, 1.0, 1.0))
        local_point = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
        local_tangent = np.array([1.0, -1.0, 0.0, 0.0])
        world_tangent = (xf.matrix() @ local_tangent)[:3]
        world_normal = (xf.normal_matrix() @ np.array([*local_point, 0.0]))[:3]
        assert abs(np.dot(world_tangent, world_normal)) < 1e-12

    def test_zero_scale_rejected(self):
        from pathtracer.geometry.transform import Transform

        with pytest.raises(ValueError, match="non-zero"):
            Transform(scale=(1.0, 0.0, 1.0))
