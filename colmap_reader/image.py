import numpy as np
from typing import Tuple, List, Sequence, Union
from numpy.typing import NDArray

from .utils import qvec2rotmat
from .types import INVALID_POINT3D_ID


class Image:
    """
    Represents image extrinsic parameters and features.

    The rotation is kept as a unit quaternion in (x, y, z, w) order, the
    order rendering code consumes. COLMAP stores it as (w, x, y, z); `qvec`
    gives that view back. Pose and observations are single precision.
    Features (`xys`, `point3D_ids`) are provided as read-only NumPy arrays.
    """

    id: int
    name: str
    camera_id: int

    quat: NDArray[np.float32] # Shape: (4,) [x, y, z, w]
    tvec: NDArray[np.float32] # Shape: (3,) [x, y, z]

    xys: NDArray[np.float32] # Shape: (N, 2)
    point3D_ids: NDArray[np.int64] # Shape: (N,), -1 for unmatched features

    def __init__(self, id: int, name: str, camera_id: int,
                 quat: Union[NDArray[np.float32], Sequence[float]],
                 tvec: Union[NDArray[np.float32], Sequence[float]],
                 xys: Union[NDArray[np.float32], Sequence[Sequence[float]]],
                 point3D_ids: Union[NDArray[np.int64], Sequence[int]]):
        """
        Initializes an Image instance. Typically called by the image readers.

        Args:
            id: Unique image identifier.
            name: Image file name.
            camera_id: ID of the camera used for this image. Not checked
                       against any camera mapping.
            quat: Quaternion rotation in [x, y, z, w] order.
            tvec: Translation vector [x, y, z].
            xys: (N, 2) 2D feature points.
            point3D_ids: (N,) corresponding 3D point IDs.
        """
        quat_arr = np.array(quat, dtype=np.float32)
        tvec_arr = np.array(tvec, dtype=np.float32)
        xys_arr = np.array(xys, dtype=np.float32)
        point3D_ids_arr = np.array(point3D_ids, dtype=np.int64)
        if xys_arr.size == 0:
            xys_arr = xys_arr.reshape(0, 2)

        if quat_arr.shape != (4,) or tvec_arr.shape != (3,):
             raise ValueError("quat must have shape (4,) and tvec shape (3,)")
        if xys_arr.ndim != 2 or xys_arr.shape[1] != 2:
             raise ValueError("xys must be an Nx2 array")
        if point3D_ids_arr.ndim != 1 or point3D_ids_arr.shape[0] != xys_arr.shape[0]:
            raise ValueError(f"Number of 2D points ({xys_arr.shape[0]}) does not match number of 3D point IDs ({point3D_ids_arr.shape[0]})")

        for arr in (quat_arr, tvec_arr, xys_arr, point3D_ids_arr):
            arr.setflags(write=False)

        self.id = id
        self.name = name
        self.camera_id = camera_id
        self.quat = quat_arr
        self.tvec = tvec_arr
        self.xys = xys_arr
        self.point3D_ids = point3D_ids_arr

    @property
    def qvec(self) -> np.ndarray:
        """Quaternion in COLMAP's [w, x, y, z] order."""
        x, y, z, w = self.quat
        return np.array([w, x, y, z], dtype=np.float32)

    def get_rotation_matrix(self) -> np.ndarray:
        """Get rotation matrix from quaternion."""
        return qvec2rotmat(self.qvec.astype(np.float64))

    def get_world_to_camera_matrix(self) -> np.ndarray:
        """Get world-to-camera transformation matrix.

        Returns:
            4x4 transformation matrix
        """
        transform = np.eye(4, dtype=np.float64)
        transform[:3, :3] = self.get_rotation_matrix()
        transform[:3, 3] = self.tvec
        return transform

    def get_camera_to_world_matrix(self) -> np.ndarray:
        """Get camera-to-world transformation matrix.

        Returns:
            4x4 transformation matrix
        """
        R_T = self.get_rotation_matrix().T

        # C2W = [R.T | -R.T @ t]
        transform = np.eye(4, dtype=np.float64)
        transform[:3, :3] = R_T
        transform[:3, 3] = -R_T @ self.tvec.astype(np.float64)
        return transform

    def get_camera_center(self) -> np.ndarray:
        """Get camera center in world coordinates.

        Returns:
            Camera center as (x, y, z)
        """
        # C = -R' * t
        return -self.get_rotation_matrix().T @ self.tvec.astype(np.float64)

    def num_observations(self) -> int:
        """Counts the number of 2D features in this image."""
        return self.xys.shape[0]

    def num_valid_observations(self) -> int:
        """Counts the number of 2D features with valid 3D correspondences."""
        return int(np.sum(self.point3D_ids != INVALID_POINT3D_ID))

    def get_valid_points3D(self) -> List[Tuple[int, Tuple[float, float]]]:
        """
        Returns (point3D_id, (x, y)) for every feature that has a valid 3D
        point correspondence.
        """
        valid_mask = self.point3D_ids != INVALID_POINT3D_ID
        valid_ids = self.point3D_ids[valid_mask]
        valid_xys = self.xys[valid_mask]
        return [(int(p3d_id), (float(xy[0]), float(xy[1]))) for p3d_id, xy in zip(valid_ids, valid_xys)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented

        # Check shapes first for arrays
        if self.xys.shape != other.xys.shape:
             return False

        return self.id == other.id and \
               self.name == other.name and \
               self.camera_id == other.camera_id and \
               np.allclose(self.quat, other.quat) and \
               np.allclose(self.tvec, other.tvec) and \
               np.allclose(self.xys, other.xys) and \
               np.array_equal(self.point3D_ids, other.point3D_ids)

    def __hash__(self) -> int:
        return hash((self.id, self.name))

    def __repr__(self) -> str:
        return f"Image(id={self.id}, name='{self.name}', camera_id={self.camera_id}, {self.num_observations()} features)"
