import os
import logging
import concurrent.futures
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from ..camera import Camera
from ..image import Image
from ..point3d import Point3D
from ..utils import MODEL_FILES, detect_model_format
from .common import Source, open_source
from .text import read_cameras_text, read_images_text, read_points3D_text
from .binary import read_cameras_binary, read_images_binary, read_points3D_binary

logger = logging.getLogger(__name__)

CameraMap = Dict[int, Camera]
ImageMap = Dict[int, Image]
Point3DMap = Dict[int, Point3D]

ReconstructionData = Tuple[CameraMap, ImageMap, Point3DMap]

__all__ = [
    "ModelReader",
    "TEXT_READER",
    "BINARY_READER",
    "get_model_reader",
    "read_cameras",
    "read_images",
    "read_points3D",
    "read_model",
]


class ModelReader(NamedTuple):
    """One encoding of the COLMAP model: a decoder per artifact kind."""
    name: str
    extension: str
    read_cameras: Callable[..., CameraMap]
    read_images: Callable[..., ImageMap]
    read_points3D: Callable[..., Point3DMap]


TEXT_READER = ModelReader("text", ".txt", read_cameras_text, read_images_text, read_points3D_text)
BINARY_READER = ModelReader("binary", ".bin", read_cameras_binary, read_images_binary, read_points3D_binary)


def get_model_reader(binary: bool) -> ModelReader:
    return BINARY_READER if binary else TEXT_READER


def read_cameras(source: Source, binary: bool) -> CameraMap:
    """
    Reads camera intrinsics from a cameras.bin / cameras.txt source.

    Args:
        source: Open binary stream or path to the file.
        binary: True for the binary encoding, False for text.

    Returns:
        Dictionary mapping camera IDs to Camera objects.

    Raises:
        ColmapFormatError: On the first malformed record; nothing is returned.
    """
    with open_source(source) as fid:
        return get_model_reader(binary).read_cameras(fid)


def read_images(source: Source, binary: bool) -> ImageMap:
    """
    Reads posed images and their 2D observations from an images.bin /
    images.txt source. See `read_cameras` for arguments and errors.
    """
    with open_source(source) as fid:
        return get_model_reader(binary).read_images(fid)


def read_points3D(source: Source, binary: bool) -> Point3DMap:
    """
    Reads the sparse point cloud and its tracks from a points3D.bin /
    points3D.txt source. See `read_cameras` for arguments and errors.
    """
    with open_source(source) as fid:
        return get_model_reader(binary).read_points3D(fid)


def read_model(path: str, file_format: Optional[str] = None) -> ReconstructionData:
    """
    Reads a COLMAP reconstruction model from a specified directory.

    Automatically detects the format (binary '.bin' or text '.txt') if not
    explicitly provided. The three files are read concurrently.

    Args:
        path: Directory containing model files (cameras, images, points3D).
        file_format: Optional explicit format ('.bin' or '.txt').

    Returns:
        A tuple (cameras, images, points3D) of dictionaries keyed by ID.

    Raises:
        FileNotFoundError: If path invalid or essential files missing.
        ValueError: If format unknown or undetectable.
        ColmapFormatError: If any of the files is malformed.
    """
    if not os.path.isdir(path):
        raise FileNotFoundError(f"Input path is not a valid directory: {path}")

    resolved_format = file_format
    if resolved_format is None:
        resolved_format = detect_model_format(path)
        if not resolved_format:
            raise ValueError(f"Could not auto-detect COLMAP model format in '{path}'.")

    if resolved_format not in MODEL_FILES:
        raise ValueError(f"Unsupported format '{resolved_format}'. Use '.bin' or '.txt'.")

    # Check for required files
    required_files = MODEL_FILES[resolved_format]
    missing_files = [f for f in required_files if not os.path.isfile(os.path.join(path, f))]
    if missing_files:
        raise FileNotFoundError(f"Missing required {resolved_format} model file(s) in '{path}': {', '.join(missing_files)}")

    cameras_path, images_path, points3D_path = (os.path.join(path, f) for f in required_files)
    binary = resolved_format == ".bin"
    logger.info("Reading %s COLMAP model from '%s'", get_model_reader(binary).name, path)

    with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
        future_cameras = executor.submit(read_cameras, cameras_path, binary)
        future_images = executor.submit(read_images, images_path, binary)
        future_points3D = executor.submit(read_points3D, points3D_path, binary)

        # .result() re-raises whatever the reader raised
        cameras = future_cameras.result()
        images = future_images.result()
        points3D = future_points3D.result()

    logger.info("Loaded %d cameras, %d images, %d 3D points", len(cameras), len(images), len(points3D))
    return cameras, images, points3D
