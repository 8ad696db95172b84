import os
import shutil
import logging
import unittest
import numpy as np

from colmap_reader import Image
from colmap_reader.io.common import add_entity
from colmap_reader.utils import qvec2rotmat, detect_model_format, find_model_path
from .mock_data import MockDataTest


class TestUtils(unittest.TestCase):
    """Tests for utility functions."""

    def test_qvec2rotmat(self):
        R = qvec2rotmat(np.array([1.0, 0.0, 0.0, 0.0]))
        np.testing.assert_allclose(R, np.eye(3), rtol=1e-5)

        # Approximately 90 degrees around X
        R = qvec2rotmat((0.7071, 0.7071, 0.0, 0.0))
        R_expected = np.array([
            [1.0, 0.0, 0.0],
            [0.0, 0.0, -1.0],
            [0.0, 1.0, 0.0]
        ])
        np.testing.assert_allclose(R, R_expected, rtol=1e-4, atol=1e-4)

        with self.assertRaises(ValueError):
            qvec2rotmat(np.zeros(3))

    def test_image_pose_helpers(self):
        # 90 degrees around Z, stored as (x, y, z, w)
        s = np.sqrt(0.5)
        image = Image(id=1, name="a.jpg", camera_id=1, quat=(0.0, 0.0, s, s),
                      tvec=(1.0, 2.0, 3.0), xys=[], point3D_ids=[])

        R = image.get_rotation_matrix()
        np.testing.assert_allclose(R, [[0, -1, 0], [1, 0, 0], [0, 0, 1]], atol=1e-6)

        w2c = image.get_world_to_camera_matrix()
        c2w = image.get_camera_to_world_matrix()
        np.testing.assert_allclose(w2c @ c2w, np.eye(4), atol=1e-6)
        np.testing.assert_allclose(c2w[:3, 3], image.get_camera_center(), atol=1e-6)

    def test_image_length_invariant(self):
        with self.assertRaises(ValueError):
            Image(id=1, name="a.jpg", camera_id=1, quat=(0, 0, 0, 1), tvec=(0, 0, 0),
                  xys=[(1.0, 2.0)], point3D_ids=[])

    def test_duplicate_ids_keep_later_record(self):
        entities = {}
        add_entity(entities, 1, "first", "camera")
        with self.assertLogs("colmap_reader.io.common", level=logging.WARNING):
            add_entity(entities, 1, "second", "camera")
        self.assertEqual(entities, {1: "second"})


class TestModelDiscovery(unittest.TestCase):

    def setUp(self):
        self.mock_data = MockDataTest()
        self.temp_dir = self.mock_data.setup()

    def tearDown(self):
        self.mock_data.cleanup()

    def test_format_detection(self):
        self.assertEqual(detect_model_format(self.mock_data.binary_dir), ".bin")
        self.assertEqual(detect_model_format(self.mock_data.text_dir), ".txt")
        self.assertEqual(detect_model_format(self.temp_dir), "")
        self.assertEqual(detect_model_format(os.path.join(self.temp_dir, "missing")), "")

        # Incomplete binary set falls back to text
        for filename in ("cameras.txt", "images.txt", "points3D.txt"):
            shutil.copy(os.path.join(self.mock_data.text_dir, filename), self.mock_data.binary_dir)
        os.remove(os.path.join(self.mock_data.binary_dir, "images.bin"))
        self.assertEqual(detect_model_format(self.mock_data.binary_dir), ".txt")

    def test_find_model_path(self):
        self.assertEqual(find_model_path(self.mock_data.binary_dir), self.mock_data.binary_dir)
        self.assertIsNone(find_model_path(self.temp_dir))

        nested_dir = os.path.join(self.temp_dir, "project", "sparse", "0")
        shutil.copytree(self.mock_data.binary_dir, nested_dir)
        found_path = find_model_path(os.path.join(self.temp_dir, "project"))
        self.assertEqual(found_path, nested_dir)


if __name__ == "__main__":
    unittest.main()
