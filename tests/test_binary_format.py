import io
import struct
import unittest
import numpy as np

import colmap_reader
from colmap_reader.errors import (
    InvalidEncodingError,
    UnexpectedEofError,
    UnknownCameraModelError,
)
from colmap_reader.io.binary import POINT2D_DTYPE, READ_CHUNK_SIZE
from .mock_data import (
    IMAGES,
    cameras_binary,
    images_binary,
    points3D_binary,
)


class TestBinaryFormat(unittest.TestCase):
    """Tests specifically for binary format handling."""

    def test_pinhole_camera_record(self):
        data = struct.pack("<Q", 1) + struct.pack("<iiQQ", 1, 1, 800, 600) + \
               struct.pack("<4d", 500.0, 500.0, 400.0, 300.0)

        cameras = colmap_reader.read_cameras(io.BytesIO(data), binary=True)

        camera = cameras[1]
        self.assertEqual(camera.model_name, "PINHOLE")
        self.assertEqual((camera.width, camera.height), (800, 600))
        self.assertEqual(camera.focal(), (500.0, 500.0))
        self.assertEqual(camera.principal_point(), (400.0, 300.0))

    def test_read_cameras(self):
        cameras = colmap_reader.read_cameras(io.BytesIO(cameras_binary()), binary=True)
        self.assertEqual(len(cameras), 2)
        self.assertEqual(cameras[2].model_name, "SIMPLE_RADIAL")
        self.assertEqual(cameras[2].params[0], 1000.0)

    def test_empty_model(self):
        empty = struct.pack("<Q", 0)
        self.assertEqual(colmap_reader.read_cameras(io.BytesIO(empty), binary=True), {})
        self.assertEqual(colmap_reader.read_images(io.BytesIO(empty), binary=True), {})
        self.assertEqual(colmap_reader.read_points3D(io.BytesIO(empty), binary=True), {})

    def test_unknown_model_id(self):
        data = struct.pack("<Q", 1) + struct.pack("<iiQQ", 1, 11, 800, 600) + struct.pack("<4d", 1, 2, 3, 4)
        with self.assertRaises(UnknownCameraModelError):
            colmap_reader.read_cameras(io.BytesIO(data), binary=True)

    def test_truncated_cameras(self):
        data = cameras_binary()
        for cut in (4, 20, len(data) - 1):
            with self.subTest(cut=cut):
                with self.assertRaises(UnexpectedEofError):
                    colmap_reader.read_cameras(io.BytesIO(data[:cut]), binary=True)

    def test_truncation_is_also_eof_error(self):
        with self.assertRaises(EOFError):
            colmap_reader.read_points3D(io.BytesIO(points3D_binary()[:-3]), binary=True)

    def test_read_images(self):
        images = colmap_reader.read_images(io.BytesIO(images_binary()), binary=True)

        self.assertEqual(sorted(images), [1, 2, 3])
        image = images[2]
        self.assertEqual(image.name, "image2.jpg")
        self.assertEqual(image.camera_id, 2)
        self.assertEqual(image.quat.dtype, np.float32)
        np.testing.assert_array_equal(image.quat, np.array([0.1, 0.3, 0.1, 0.9], dtype=np.float32))
        np.testing.assert_array_equal(image.tvec, np.array([1.1, -0.2, 0.7], dtype=np.float32))
        np.testing.assert_array_equal(image.xys, np.array([[150.3, 250.7], [12.5, 13.25]], dtype=np.float32))
        np.testing.assert_array_equal(image.point3D_ids, [1, 2])
        self.assertEqual(images[3].num_observations(), 0)
        self.assertEqual(images[3].xys.shape, (0, 2))

    def test_invalid_utf8_name(self):
        data = images_binary(encode_name=lambda name: b"\xc3\x28" + name.encode("utf-8"))
        with self.assertRaises(InvalidEncodingError):
            colmap_reader.read_images(io.BytesIO(data), binary=True)

    def test_utf8_name(self):
        images = [(1, (1.0, 0.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1, "café_ß.jpg", [])]
        result = colmap_reader.read_images(io.BytesIO(images_binary(images)), binary=True)
        self.assertEqual(result[1].name, "café_ß.jpg")

    def test_unterminated_name(self):
        data = struct.pack("<Q", 1) + struct.pack("<idddddddi", 1, 1, 0, 0, 0, 0, 0, 0, 1) + b"abc"
        with self.assertRaises(UnexpectedEofError):
            colmap_reader.read_images(io.BytesIO(data), binary=True)

    def test_truncated_observations(self):
        data = images_binary(IMAGES[:1])
        with self.assertRaises(UnexpectedEofError):
            colmap_reader.read_images(io.BytesIO(data[:-5]), binary=True)

    def test_huge_observation_count(self):
        data = struct.pack("<Q", 1) + struct.pack("<idddddddi", 1, 1, 0, 0, 0, 0, 0, 0, 1) + \
               b"a.jpg\x00" + struct.pack("<Q", 2**62) + b"\x00" * 10
        with self.assertRaises(UnexpectedEofError):
            colmap_reader.read_images(io.BytesIO(data), binary=True)

    def test_huge_track_length(self):
        data = struct.pack("<Q", 1) + struct.pack("<qdddBBBd", 1, 0, 0, 0, 1, 2, 3, 0.5) + \
               struct.pack("<Q", 2**40)
        with self.assertRaises(UnexpectedEofError):
            colmap_reader.read_points3D(io.BytesIO(data), binary=True)

    def test_huge_record_counts(self):
        with self.assertRaises(UnexpectedEofError):
            colmap_reader.read_cameras(io.BytesIO(struct.pack("<Q", 2**63)), binary=True)
        with self.assertRaises(UnexpectedEofError):
            colmap_reader.read_points3D(io.BytesIO(struct.pack("<Q", 2**63)), binary=True)

    def test_payload_larger_than_one_chunk(self):
        num_points2D = 100000
        observations = np.zeros(num_points2D, dtype=POINT2D_DTYPE)
        observations["x"] = np.arange(num_points2D)
        observations["point3D_id"] = -1
        self.assertGreater(observations.nbytes, READ_CHUNK_SIZE)

        data = struct.pack("<Q", 1) + struct.pack("<idddddddi", 1, 1, 0, 0, 0, 0, 0, 0, 1) + \
               b"a.jpg\x00" + struct.pack("<Q", num_points2D) + observations.tobytes()
        images = colmap_reader.read_images(io.BytesIO(data), binary=True)

        self.assertEqual(images[1].num_observations(), num_points2D)
        self.assertEqual(images[1].xys[-1, 0], num_points2D - 1)
        with self.assertRaises(UnexpectedEofError):
            colmap_reader.read_images(io.BytesIO(data[:-1]), binary=True)

    def test_read_points3D(self):
        points3D = colmap_reader.read_points3D(io.BytesIO(points3D_binary()), binary=True)

        self.assertEqual(sorted(points3D), [1, 2, 3])
        point = points3D[2]
        np.testing.assert_array_equal(point.xyz, np.array([-0.1, 0.2, 5.3], dtype=np.float32))
        np.testing.assert_array_equal(point.rgb, [0, 128, 255])
        self.assertEqual(point.error, 1.25)
        self.assertEqual(point.get_track(), [(2, 1)])
        self.assertEqual(points3D[3].get_track_length(), 0)

    def test_negative_and_large_ids(self):
        data = struct.pack("<Q", 1) + struct.pack("<qdddBBBd", 2**40, 0, 0, 0, 1, 2, 3, 0.5) + \
               struct.pack("<Q", 1) + struct.pack("<ii", -7, 3)
        points3D = colmap_reader.read_points3D(io.BytesIO(data), binary=True)
        self.assertEqual(points3D[2**40].get_track(), [(-7, 3)])


if __name__ == "__main__":
    unittest.main()
