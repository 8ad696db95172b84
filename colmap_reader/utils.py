import os
import numpy as np
from typing import Optional

MODEL_FILES = {
    ".bin": ("cameras.bin", "images.bin", "points3D.bin"),
    ".txt": ("cameras.txt", "images.txt", "points3D.txt"),
}


def detect_model_format(path: str) -> str:
    """Detect COLMAP model format in a directory.

    Returns '.bin' or '.txt' when all three model files of that encoding
    are present (binary wins if both are), otherwise an empty string.
    """
    if not os.path.isdir(path):
        return ""

    for ext, filenames in MODEL_FILES.items():
        if all(os.path.isfile(os.path.join(path, f)) for f in filenames):
            return ext

    return ""


def find_model_path(base_path: str) -> Optional[str]:
    """Find a COLMAP model in common directories.

    Args:
        base_path: Base directory to search in

    Returns:
        Path to the directory containing the model files, or None if not found
    """
    # common model locations
    candidates = [
        os.path.join(base_path, "sparse", "0"),
        os.path.join(base_path, "sparse"),
        base_path
    ]

    for candidate in candidates:
        if detect_model_format(candidate):
            return candidate

    return None


def qvec2rotmat(qvec: np.ndarray) -> np.ndarray:
    """Convert quaternion to rotation matrix.

    Args:
        qvec: Quaternion as (w, x, y, z)

    Returns:
        3x3 rotation matrix
    """
    qvec = np.asarray(qvec, dtype=np.float64)
    if qvec.shape != (4,):
        raise ValueError("qvec must have shape (4,)")

    w, x, y, z = qvec
    R = np.zeros((3, 3), dtype=np.float64)

    R[0, 0] = 1 - 2 * y**2 - 2 * z**2
    R[0, 1] = 2 * x * y - 2 * w * z
    R[0, 2] = 2 * x * z + 2 * w * y

    R[1, 0] = 2 * x * y + 2 * w * z
    R[1, 1] = 1 - 2 * x**2 - 2 * z**2
    R[1, 2] = 2 * y * z - 2 * w * x

    R[2, 0] = 2 * x * z - 2 * w * y
    R[2, 1] = 2 * y * z + 2 * w * x
    R[2, 2] = 1 - 2 * x**2 - 2 * y**2

    return R
