import numpy as np
from typing import Union, List, Tuple
from numpy.typing import NDArray

from .errors import ParamCountMismatchError
from .types import CameraModel, CameraModelType, camera_model_from_name


class Camera:
    """
    Represents a camera in a COLMAP reconstruction, holding intrinsic parameters.
    Instances are created once by the camera readers and never mutated; the
    parameter array is read-only.
    """

    id: int
    model: CameraModel
    width: int
    height: int
    params: NDArray[np.float64] # Shape (N,) where N is model.num_params

    def __init__(self, id: int, model: Union[CameraModel, str], width: int, height: int,
                 params: Union[NDArray[np.float64], List[float], Tuple[float, ...]]):
        """
        Initializes a Camera instance.

        Args:
            id: Unique camera identifier.
            model: Camera model, or its COLMAP name.
            width: Image width in pixels.
            height: Image height in pixels.
            params: Camera intrinsic parameters, laid out as the model dictates.

        Raises:
            UnknownCameraModelError: If the model name is unknown.
            ParamCountMismatchError: If the number of parameters does not
                                     match the specified model.
        """
        if isinstance(model, str):
            model = camera_model_from_name(model)

        params_array = np.array(params, dtype=np.float64).reshape(-1)
        if params_array.shape[0] != model.num_params:
            raise ParamCountMismatchError(model.model_name, model.num_params, params_array.shape[0])
        params_array.setflags(write=False)

        self.id = id
        self.model = model
        self.width = width
        self.height = height
        self.params = params_array

    @property
    def model_name(self) -> str:
        return self.model.model_name

    def focal(self) -> Tuple[float, float]:
        """Returns the focal lengths (fx, fy). Single-focal models return f twice."""
        ix, iy = self.model.focal_indices
        return float(self.params[ix]), float(self.params[iy])

    def principal_point(self) -> Tuple[float, float]:
        """Returns the principal point (cx, cy)."""
        ix, iy = self.model.principal_point_indices
        return float(self.params[ix]), float(self.params[iy])

    def get_calibration_matrix(self) -> np.ndarray:
        """Returns the 3x3 camera calibration matrix (K)."""
        fx, fy = self.focal()
        cx, cy = self.principal_point()
        K = np.eye(3, dtype=np.float64)
        K[0, 0] = fx; K[1, 1] = fy; K[0, 2] = cx; K[1, 2] = cy
        return K

    def get_distortion_params(self) -> np.ndarray:
        """
        Returns the parameters following the principal point, i.e. the
        distortion coefficients. Empty for the pinhole models.
        """
        return self.params[self.model.principal_point_indices[1] + 1:]

    def has_distortion(self) -> bool:
        """Checks if the camera model includes distortion parameters."""
        return self.model.type not in (CameraModelType.SIMPLE_PINHOLE, CameraModelType.PINHOLE)

    def __repr__(self) -> str:
        params_str = np.array2string(self.params, precision=3, separator=', ', suppress_small=True)
        return (f"Camera(id={self.id}, model='{self.model.model_name}', "
                f"width={self.width}, height={self.height}, "
                f"params={params_str})")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Camera):
            return NotImplemented
        return self.id == other.id and \
               self.model is other.model and \
               self.width == other.width and \
               self.height == other.height and \
               np.array_equal(self.params, other.params)

    def __hash__(self) -> int:
        return hash((self.id, self.model.model_id, self.width, self.height, self.params.tobytes()))
