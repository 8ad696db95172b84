import logging
import numpy as np
from typing import Dict, List, Optional

from .image import Image
from .camera import Camera
from .point3d import Point3D

from .io import read_model
from .utils import find_model_path
from .types import INVALID_POINT3D_ID

logger = logging.getLogger(__name__)

# Limit on reference problems written to the log after a load
MAX_LOGGED_ISSUES = 10


class Reconstruction:
    """
    Read-only view of a COLMAP reconstruction loaded from disk.

    Cross references between the three mappings (image -> camera,
    image -> point3D, point3D -> image observation) are plain integer keys.
    They are not checked while reading; `verify_references` reports the
    ones that do not resolve.

    Attributes:
        path (str): Directory the model files were loaded from.
        cameras (Dict[int, Camera]): Camera ID -> Camera.
        images (Dict[int, Image]): Image ID -> Image.
        points3D (Dict[int, Point3D]): Point3D ID -> Point3D.
    """
    path: str
    cameras: Dict[int, Camera]
    images: Dict[int, Image]
    points3D: Dict[int, Point3D]

    def __init__(self, reconstruction_path: str, verify_integrity: bool = True,
                 file_format: Optional[str] = None) -> None:
        """
        Loads a COLMAP reconstruction from a specified path.

        Searches for the model files in standard locations ('sparse/0',
        'sparse', root) within `reconstruction_path`.

        Args:
            reconstruction_path: The path to the COLMAP project directory.
            verify_integrity: Log a warning for every cross reference that
                              does not resolve. Never fails the load.
            file_format: Optional explicit format ('.bin' or '.txt').

        Raises:
            FileNotFoundError: If no model directory can be found.
            ColmapFormatError: If a model file is malformed.
        """
        model_dir = find_model_path(reconstruction_path)

        if model_dir is None:
            raise FileNotFoundError(f"Could not find COLMAP model in standard locations within '{reconstruction_path}'")

        self.path = model_dir
        self.cameras, self.images, self.points3D = read_model(model_dir, file_format=file_format)
        self._image_name_to_id = {image.name: image_id for image_id, image in self.images.items()}

        if verify_integrity:
            issues = self.verify_references()
            if issues:
                logger.warning("Inconsistencies found in the reconstruction at '%s':", model_dir)
                for issue in issues[:MAX_LOGGED_ISSUES]:
                    logger.warning("  - %s", issue)
                if len(issues) > MAX_LOGGED_ISSUES:
                    logger.warning("  ... (%d more)", len(issues) - MAX_LOGGED_ISSUES)

    def get_image(self, image_id: Optional[int] = None, name: Optional[str] = None) -> Optional[Image]:
        """
        Retrieves an Image object by its filename or by id.
        """
        if image_id is None and name is None:
            raise ValueError("Must provide either image_id or name.")

        image_id = image_id if image_id is not None else self._image_name_to_id.get(name)  # type: ignore[arg-type]
        return self.images.get(image_id) if image_id is not None else None

    def get_points3D(self, image_id: int) -> List[Point3D]:
        """
        Returns the 3D points observed by an image, skipping unmatched
        features and references to points that are not in the model.
        """
        image = self.images[image_id]
        return [self.points3D[int(p3d_id)] for p3d_id in image.point3D_ids
                if p3d_id != INVALID_POINT3D_ID and int(p3d_id) in self.points3D]

    def get_statistics(self) -> Dict[str, float]:
        """Calculates basic statistics about the reconstruction."""
        mean_track_length = 0.0
        mean_reprojection_error = 0.0
        if self.points3D:
            mean_track_length = float(np.mean([p.get_track_length() for p in self.points3D.values()]))
            mean_reprojection_error = float(np.mean([p.error for p in self.points3D.values()]))

        mean_observations = 0.0
        mean_valid_observations = 0.0
        if self.images:
            mean_observations = float(np.mean([img.num_observations() for img in self.images.values()]))
            mean_valid_observations = float(np.mean([img.num_valid_observations() for img in self.images.values()]))

        return {
            "num_cameras": float(len(self.cameras)),
            "num_images": float(len(self.images)),
            "num_points3D": float(len(self.points3D)),
            "mean_track_length": mean_track_length,
            "mean_observations_per_image": mean_observations,
            "mean_valid_observations_per_image": mean_valid_observations,
            "mean_reprojection_error": mean_reprojection_error,
        }

    def verify_references(self) -> List[str]:
        """
        Checks that every cross reference resolves against the loaded mappings.

        Returns:
            List of problems. Empty if every reference resolves.
        """
        issues: List[str] = []

        for image_id, image in self.images.items():
            if image.camera_id not in self.cameras:
                issues.append(f"Image {image_id} references missing Camera {image.camera_id}")
            for p3d_id in image.point3D_ids:
                if p3d_id != INVALID_POINT3D_ID and int(p3d_id) not in self.points3D:
                    issues.append(f"Image {image_id} references missing Point3D {p3d_id}")

        for p3d_id, point in self.points3D.items():
            for img_id, p2d_idx in point.get_track():
                image = self.images.get(img_id)
                if image is None:
                    issues.append(f"Point3D {p3d_id} track references missing Image {img_id}")
                    continue
                if not 0 <= p2d_idx < image.num_observations():
                    issues.append(f"Point3D {p3d_id} track references out-of-bounds point2D index {p2d_idx} "
                                  f"for image {img_id} (size {image.num_observations()})")
                    continue
                # The observation has to point back to this 3D point
                if image.point3D_ids[p2d_idx] != p3d_id:
                    issues.append(f"Point3D {p3d_id} track inconsistency: Image {img_id} feature {p2d_idx} "
                                  f"points to Point3D {image.point3D_ids[p2d_idx]} instead")

        return issues

    def __str__(self) -> str:
        stats = self.get_statistics()
        return (
            f"Reconstruction(path='{self.path}', "
            f"cameras={int(stats['num_cameras'])}, images={int(stats['num_images'])}, "
            f"points3D={int(stats['num_points3D'])}, "
            f"mean_track_len={stats['mean_track_length']:.2f}, "
            f"mean_reproj_err={stats['mean_reprojection_error']:.2f})"
        )

    def __repr__(self) -> str:
        return self.__str__()
