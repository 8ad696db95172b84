from enum import Enum
from typing import Tuple

from .errors import UnknownCameraModelError

# A special value representing an invalid point3D ID
INVALID_POINT3D_ID = -1

class CameraModelType(Enum):
    """Enumeration of camera model types supported by COLMAP."""
    SIMPLE_PINHOLE = 0
    PINHOLE = 1
    SIMPLE_RADIAL = 2
    RADIAL = 3
    OPENCV = 4
    OPENCV_FISHEYE = 5
    FULL_OPENCV = 6
    FOV = 7
    SIMPLE_RADIAL_FISHEYE = 8
    RADIAL_FISHEYE = 9
    THIN_PRISM_FISHEYE = 10

class CameraModel:
    """Camera model information.

    Besides the parameter count, every model records where its focal
    length(s) and principal point live inside the flat parameter vector.
    """

    __slots__ = ['model_id', 'model_name', 'num_params',
                 'focal_indices', 'principal_point_indices']

    model_id: int
    model_name: str
    num_params: int
    focal_indices: Tuple[int, int]
    principal_point_indices: Tuple[int, int]

    def __init__(self, model_id: int, model_name: str, num_params: int,
                 focal_indices: Tuple[int, int], principal_point_indices: Tuple[int, int]):
        """Initialize a camera model.

        Args:
            model_id: Numeric ID of the camera model
            model_name: String name of the camera model
            num_params: Number of parameters for this model
            focal_indices: Offsets of (fx, fy) in the parameter vector
            principal_point_indices: Offsets of (cx, cy) in the parameter vector
        """
        self.model_id = model_id
        self.model_name = model_name
        self.num_params = num_params
        self.focal_indices = focal_indices
        self.principal_point_indices = principal_point_indices

    @property
    def type(self) -> CameraModelType:
        return CameraModelType(self.model_id)

    def __repr__(self) -> str:
        return f"CameraModel({self.model_name}, id={self.model_id}, num_params={self.num_params})"


# Single-focal models repeat index 0 for fy.
CAMERA_MODELS = [
    CameraModel(CameraModelType.SIMPLE_PINHOLE.value, "SIMPLE_PINHOLE", 3, (0, 0), (1, 2)),
    CameraModel(CameraModelType.PINHOLE.value, "PINHOLE", 4, (0, 1), (2, 3)),
    CameraModel(CameraModelType.SIMPLE_RADIAL.value, "SIMPLE_RADIAL", 4, (0, 0), (1, 2)),
    CameraModel(CameraModelType.RADIAL.value, "RADIAL", 5, (0, 0), (1, 2)),
    CameraModel(CameraModelType.OPENCV.value, "OPENCV", 8, (0, 1), (2, 3)),
    CameraModel(CameraModelType.OPENCV_FISHEYE.value, "OPENCV_FISHEYE", 8, (0, 1), (2, 3)),
    CameraModel(CameraModelType.FULL_OPENCV.value, "FULL_OPENCV", 12, (0, 1), (2, 3)),
    CameraModel(CameraModelType.FOV.value, "FOV", 5, (0, 1), (2, 3)),
    CameraModel(CameraModelType.SIMPLE_RADIAL_FISHEYE.value, "SIMPLE_RADIAL_FISHEYE", 4, (0, 0), (1, 2)),
    CameraModel(CameraModelType.RADIAL_FISHEYE.value, "RADIAL_FISHEYE", 5, (0, 0), (1, 2)),
    CameraModel(CameraModelType.THIN_PRISM_FISHEYE.value, "THIN_PRISM_FISHEYE", 12, (0, 1), (2, 3)),
]

MAX_CAMERA_PARAMS = max(model.num_params for model in CAMERA_MODELS)
CAMERA_MODEL_IDS = {model.model_id: model for model in CAMERA_MODELS}
CAMERA_MODEL_NAMES = {model.model_name: model for model in CAMERA_MODELS}


def camera_model_from_id(model_id: int) -> CameraModel:
    """Look up a camera model by its numeric id as stored in binary models."""
    try:
        return CAMERA_MODEL_IDS[model_id]
    except KeyError:
        raise UnknownCameraModelError(model_id) from None


def camera_model_from_name(model_name: str) -> CameraModel:
    """Look up a camera model by its exact name as stored in text models."""
    try:
        return CAMERA_MODEL_NAMES[model_name]
    except KeyError:
        raise UnknownCameraModelError(model_name) from None
