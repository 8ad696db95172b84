import logging

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "Camera",
    "Image",
    "Point3D",
    "Reconstruction",
    # Types & Constants
    "CameraModel",
    "CameraModelType",
    "CAMERA_MODELS",
    "CAMERA_MODEL_IDS",
    "CAMERA_MODEL_NAMES",
    "INVALID_POINT3D_ID",
    "camera_model_from_id",
    "camera_model_from_name",
    # Errors
    "ColmapFormatError",
    "UnknownCameraModelError",
    "ParamCountMismatchError",
    "MalformedRecordError",
    "UnexpectedEofError",
    "InvalidEncodingError",
    "ParseError",
    # IO Functions
    "read_cameras",
    "read_images",
    "read_points3D",
    "read_model",
    # Utility functions
    "qvec2rotmat",
    "find_model_path",
    "detect_model_format",
]

from .camera import Camera
from .image import Image
from .point3d import Point3D
from .reconstruction import Reconstruction
from .types import (
    CameraModel,
    CameraModelType,
    CAMERA_MODELS,
    CAMERA_MODEL_IDS,
    CAMERA_MODEL_NAMES,
    INVALID_POINT3D_ID,
    camera_model_from_id,
    camera_model_from_name,
)
from .errors import (
    ColmapFormatError,
    UnknownCameraModelError,
    ParamCountMismatchError,
    MalformedRecordError,
    UnexpectedEofError,
    InvalidEncodingError,
    ParseError,
)
from .io import read_cameras, read_images, read_points3D, read_model
from .utils import qvec2rotmat, find_model_path, detect_model_format

# Library logging stays silent unless the application configures handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())
