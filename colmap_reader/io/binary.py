import struct
import logging
import functools
import numpy as np
from typing import BinaryIO, Dict

from .common import add_entity
from ..camera import Camera
from ..image import Image
from ..point3d import Point3D
from ..types import camera_model_from_id
from ..errors import InvalidEncodingError, UnexpectedEofError

logger = logging.getLogger(__name__)

# Per-observation record of images.bin: x, y, point3D_id
POINT2D_DTYPE = np.dtype([("x", "<f8"), ("y", "<f8"), ("point3D_id", "<i8")])
# Per-track element record of points3D.bin: image_id, point2D_idx
TRACK_ELEM_DTYPE = np.dtype([("image_id", "<i4"), ("point2D_idx", "<i4")])

READ_CHUNK_SIZE = 1 << 20


@functools.lru_cache(maxsize=128)
def _get_struct(format_str: str) -> struct.Struct:
    return struct.Struct(format_str)


def _read_exact(fid: BinaryIO, num_bytes: int) -> bytes:
    # Counts come from the file, so never ask for more than READ_CHUNK_SIZE at once.
    if num_bytes <= READ_CHUNK_SIZE:
        data = fid.read(num_bytes)
    else:
        buffer = bytearray()
        while len(buffer) < num_bytes:
            chunk = fid.read(min(READ_CHUNK_SIZE, num_bytes - len(buffer)))
            if not chunk:
                break
            buffer.extend(chunk)
        data = bytes(buffer)

    if len(data) != num_bytes:
        raise UnexpectedEofError(f"Could not read {num_bytes} bytes, got {len(data)}. File truncated?")
    return data


def _read_next_bytes(fid: BinaryIO, num_bytes: int, format_char_sequence: str, endian: str = "<") -> tuple:
    """Read and unpack the next bytes from a binary file with cached struct objects."""
    data = _read_exact(fid, num_bytes)
    return _get_struct(endian + format_char_sequence).unpack(data)


def _read_name(fid: BinaryIO) -> str:
    """Read a NUL-terminated UTF-8 string, dropping the terminator."""
    name_bytes = bytearray()
    while True:
        byte = fid.read(1)
        if not byte:
            raise UnexpectedEofError("Stream ended inside a NUL-terminated image name.")
        if byte == b"\x00":
            break
        name_bytes.extend(byte)

    try:
        return name_bytes.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidEncodingError(f"Image name is not valid UTF-8: {bytes(name_bytes)!r}") from e


def read_cameras_binary(fid: BinaryIO) -> Dict[int, Camera]:
    """Read camera intrinsics from a COLMAP cameras.bin stream."""
    cameras: Dict[int, Camera] = {}
    num_cameras = _read_next_bytes(fid, 8, "Q")[0]

    for _ in range(num_cameras):
        cam_id, model_id, width, height = _read_next_bytes(fid, 24, "iiQQ")
        model = camera_model_from_id(model_id)
        params = _read_next_bytes(fid, 8 * model.num_params, f"{model.num_params}d")

        add_entity(cameras, cam_id, Camera(id=cam_id, model=model, width=width, height=height, params=params), "camera")

    logger.debug("Read %d cameras from binary model", len(cameras))
    return cameras


def read_images_binary(fid: BinaryIO) -> Dict[int, Image]:
    """Read image poses and observations from a COLMAP images.bin stream.

    Pose and observation coordinates are stored as doubles and narrowed to
    single precision.
    """
    images: Dict[int, Image] = {}
    num_reg_images = _read_next_bytes(fid, 8, "Q")[0]

    for _ in range(num_reg_images):
        img_id, qw, qx, qy, qz, tx, ty, tz, cam_id = _read_next_bytes(fid, 64, "idddddddi")
        name = _read_name(fid)

        num_points2D = _read_next_bytes(fid, 8, "Q")[0]
        points = np.frombuffer(_read_exact(fid, POINT2D_DTYPE.itemsize * num_points2D), dtype=POINT2D_DTYPE)

        image = Image(
            id=img_id,
            name=name,
            camera_id=cam_id,
            quat=(qx, qy, qz, qw),
            tvec=(tx, ty, tz),
            xys=np.stack((points["x"], points["y"]), axis=1),
            point3D_ids=points["point3D_id"],
        )
        add_entity(images, img_id, image, "image")

    logger.debug("Read %d images from binary model", len(images))
    return images


def read_points3D_binary(fid: BinaryIO) -> Dict[int, Point3D]:
    """Read the sparse point cloud and its tracks from a COLMAP points3D.bin stream."""
    points3D: Dict[int, Point3D] = {}
    num_points = _read_next_bytes(fid, 8, "Q")[0]

    for _ in range(num_points):
        p3d_id, x, y, z, r, g, b, error = _read_next_bytes(fid, 43, "qdddBBBd")

        track_len = _read_next_bytes(fid, 8, "Q")[0]
        track = np.frombuffer(_read_exact(fid, TRACK_ELEM_DTYPE.itemsize * track_len), dtype=TRACK_ELEM_DTYPE)

        point = Point3D(
            id=p3d_id,
            xyz=(x, y, z),
            rgb=(r, g, b),
            error=error,
            image_ids=track["image_id"],
            point2D_idxs=track["point2D_idx"],
        )
        add_entity(points3D, p3d_id, point, "point3D")

    logger.debug("Read %d 3D points from binary model", len(points3D))
    return points3D
