"""Unit tests for Wavefront OBJ loading."""

import numpy as np
import pytest

CUBE_FACE = """\
# one square face
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vn 0 0 1
f 1//1 2//1 3//1 4//1
"""


class TestParseObj:
    """Tests for parse_obj."""

    def test_single_triangle(self):
        from pathtracer.geometry.mesh import parse_obj

        tris = parse_obj(["v 0 0 0", "v 1 0 0", "v 0 1 0", "f 1 2 3"])
        assert tris.shape == (1, 3, 3)
        assert tris.dtype == np.float32
        assert np.allclose(tris[0], [[0, 0, 0], [1, 0, 0], [0, 1, 0]])

    def test_quad_is_fan_triangulated(self):
        from pathtracer.geometry.mesh import parse_obj

        tris = parse_obj(CUBE_FACE.splitlines())
        assert tris.shape == (2, 3, 3)
        assert np.allclose(tris[0], [[0, 0, 0], [1, 0, 0], [1, 1, 0]])
        assert np.allclose(tris[1], [[0, 0, 0], [1, 1, 0], [0, 1, 0]])

    def test_slash_forms_and_negative_indices(self):
        from pathtracer.geometry.mesh import parse_obj

        lines = ["v 0 0 0", "v 2 0 0", "v 0 2 0", "vt 0 0", "f -3/1 -2/1/1 -1"]
        tris = parse_obj(lines)
        assert tris.shape == (1, 3, 3)
        assert np.allclose(tris[0][1], [2, 0, 0])

    def test_no_faces_gives_empty_array(self):
        from pathtracer.geometry.mesh import parse_obj

        tris = parse_obj(["v 0 0 0", "", "# nothing else"])
        assert tris.shape == (0, 3, 3)

    @pytest.mark.parametrize(
        "lines",
        [
            ["v 0 0"],
            ["v 0 0 0", "v 1 0 0", "f 1 2"],
            ["v 0 0 0", "v 1 0 0", "v 0 1 0", "f 1 2 4"],
            ["v 0 0 0", "v 1 0 0", "v 0 1 0", "f 0 1 2"],
            ["v a b c"],
        ],
    )
    def test_malformed_records_raise(self, lines):
        from pathtracer.geometry.mesh import parse_obj

        with pytest.raises(ValueError, match="line"):
            parse_obj(lines)


class TestLoadObj:
    """Tests for load_obj."""

    def test_load_from_file(self, tmp_path):
        from pathtracer.geometry.mesh import load_obj

        path = tmp_path / "face.obj"
        path.write_text(CUBE_FACE)
        assert load_obj(path).shape == (2, 3, 3)

    def test_missing_file(self, tmp_path):
        from pathtracer.geometry.mesh import load_obj

        with pytest.raises(OSError):
            load_obj(tmp_path / "missing.obj")

    def test_file_without_faces(self, tmp_path):
        from pathtracer.geometry.mesh import load_obj

        path = tmp_path / "points.obj"
        path.write_text("v 0 0 0\nv 1 0 0\n")
        with pytest.raises(ValueError, match="no faces"):
            load_obj(path)

    def test_example_pyramid(self):
        from pathlib import Path

        from pathtracer.geometry.mesh import load_obj

        path = Path(__file__).parent.parent / "examples" / "scenes" / "pyramid.obj"
        tris = load_obj(path)
        # Quad base plus four sides
        assert tris.shape == (6, 3, 3)
