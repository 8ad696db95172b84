import re
import logging
import numpy as np
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple, Union

from .common import add_entity
from ..camera import Camera
from ..image import Image
from ..point3d import Point3D
from ..types import camera_model_from_name
from ..errors import (
    InvalidEncodingError,
    MalformedRecordError,
    ParamCountMismatchError,
    ParseError,
)

logger = logging.getLogger(__name__)

INT32_RANGE = (-2**31, 2**31 - 1)
INT64_RANGE = (-2**63, 2**63 - 1)
UINT64_RANGE = (0, 2**64 - 1)
UINT8_RANGE = (0, 255)

# ASCII-only number forms; int()/float() alone would also take "1_0" and non-ASCII digits.
INT_PATTERN = re.compile(r"[+-]?[0-9]+")
FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


def _parse_int(token: str, field: str, line_number: int,
               bounds: Tuple[int, int] = INT64_RANGE) -> int:
    if not INT_PATTERN.fullmatch(token):
        raise ParseError(token, field, line_number)
    value = int(token)
    if not bounds[0] <= value <= bounds[1]:
        raise ParseError(token, field, line_number)
    return value


def _parse_float(token: str, field: str, line_number: int) -> float:
    if not FLOAT_PATTERN.fullmatch(token):
        raise ParseError(token, field, line_number)
    return float(token)


def _iter_lines(fid: Union[BinaryIO, Iterator[str]]) -> Iterator[Tuple[int, str]]:
    """Yield (line_number, line) with the line decoded and its newline stripped."""
    for line_number, raw in enumerate(fid, start=1):
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidEncodingError(f"line {line_number} is not valid UTF-8") from e
        yield line_number, raw.rstrip("\r\n")


def _is_skippable(line: str) -> bool:
    # Only a '#' in the very first column marks a comment.
    return line.startswith("#") or not line.strip()


def read_cameras_text(fid: BinaryIO) -> Dict[int, Camera]:
    """Read camera parameters from a COLMAP cameras.txt stream.

    Each record is one line: CAMERA_ID MODEL WIDTH HEIGHT PARAMS[]
    """
    cameras: Dict[int, Camera] = {}

    for line_number, line in _iter_lines(fid):
        if _is_skippable(line):
            continue

        elems = line.split()
        if len(elems) < 4:
            raise MalformedRecordError(
                f"camera record needs at least 4 fields, got {len(elems)}", line_number)

        camera_id = _parse_int(elems[0], "camera_id", line_number, INT32_RANGE)
        model = camera_model_from_name(elems[1])
        width = _parse_int(elems[2], "width", line_number, UINT64_RANGE)
        height = _parse_int(elems[3], "height", line_number, UINT64_RANGE)
        params = [_parse_float(p, f"params[{i}]", line_number) for i, p in enumerate(elems[4:])]

        if len(params) != model.num_params:
            raise ParamCountMismatchError(model.model_name, model.num_params, len(params), line_number)

        add_entity(cameras, camera_id,
                   Camera(id=camera_id, model=model, width=width, height=height, params=params),
                   "camera")

    logger.debug("Read %d cameras from text model", len(cameras))
    return cameras


def _parse_points2D(line: str, line_number: int) -> Tuple[List[Tuple[float, float]], List[int]]:
    elems = line.split()
    if len(elems) % 3 != 0:
        raise MalformedRecordError(
            f"observation list has {len(elems)} tokens, not a multiple of 3", line_number)

    xys: List[Tuple[float, float]] = []
    point3D_ids: List[int] = []
    for i in range(0, len(elems), 3):
        xys.append((_parse_float(elems[i], "x", line_number),
                    _parse_float(elems[i + 1], "y", line_number)))
        point3D_ids.append(_parse_int(elems[i + 2], "point3D_id", line_number))
    return xys, point3D_ids


def read_images_text(fid: BinaryIO) -> Dict[int, Image]:
    """Read image data from a COLMAP images.txt stream.

    Every image takes two lines:
        IMAGE_ID QW QX QY QZ TX TY TZ CAMERA_ID NAME
        POINTS2D[] as (X Y POINT3D_ID)

    The second line always belongs to the record, even when it is empty.
    Comments and blank lines are only recognised between records.
    """
    images: Dict[int, Image] = {}
    lines = _iter_lines(fid)

    for line_number, line in lines:
        if _is_skippable(line):
            continue

        # NAME is the single token after CAMERA_ID; anything past it is ignored.
        elems = line.split()
        if len(elems) < 10:
            raise MalformedRecordError(
                f"image record needs 10 fields, got {len(elems)}", line_number)

        image_id = _parse_int(elems[0], "image_id", line_number, INT32_RANGE)
        qw, qx, qy, qz = (_parse_float(e, f, line_number) for e, f in zip(elems[1:5], ("qw", "qx", "qy", "qz")))
        tvec = [_parse_float(e, f, line_number) for e, f in zip(elems[5:8], ("tx", "ty", "tz"))]
        camera_id = _parse_int(elems[8], "camera_id", line_number, INT32_RANGE)
        name = elems[9]

        # A missing points line at end of file means no observations.
        next_line: Optional[Tuple[int, str]] = next(lines, None)
        xys: List[Tuple[float, float]] = []
        point3D_ids: List[int] = []
        if next_line is not None:
            xys, point3D_ids = _parse_points2D(next_line[1], next_line[0])

        image = Image(
            id=image_id,
            name=name,
            camera_id=camera_id,
            quat=(qx, qy, qz, qw),
            tvec=tvec,
            xys=np.array(xys, dtype=np.float32).reshape(-1, 2),
            point3D_ids=point3D_ids,
        )
        add_entity(images, image_id, image, "image")

    logger.debug("Read %d images from text model", len(images))
    return images


def read_points3D_text(fid: BinaryIO) -> Dict[int, Point3D]:
    """Read 3D points from a COLMAP points3D.txt stream.

    Each record is one line:
        POINT3D_ID X Y Z R G B ERROR TRACK[] as (IMAGE_ID POINT2D_IDX)
    """
    points3D: Dict[int, Point3D] = {}

    for line_number, line in _iter_lines(fid):
        if _is_skippable(line):
            continue

        elems = line.split()
        if len(elems) < 8:
            raise MalformedRecordError(
                f"point3D record needs at least 8 fields, got {len(elems)}", line_number)
        track_elems = elems[8:]
        if len(track_elems) % 2 != 0:
            raise MalformedRecordError(
                f"track has {len(track_elems)} tokens, expected (IMAGE_ID, POINT2D_IDX) pairs", line_number)

        point3D_id = _parse_int(elems[0], "point3D_id", line_number)
        xyz = [_parse_float(e, f, line_number) for e, f in zip(elems[1:4], ("x", "y", "z"))]
        rgb = [_parse_int(e, f, line_number, UINT8_RANGE) for e, f in zip(elems[4:7], ("r", "g", "b"))]
        error = _parse_float(elems[7], "error", line_number)

        image_ids = [_parse_int(e, "image_id", line_number, INT32_RANGE) for e in track_elems[0::2]]
        point2D_idxs = [_parse_int(e, "point2D_idx", line_number, INT32_RANGE) for e in track_elems[1::2]]

        point = Point3D(
            id=point3D_id,
            xyz=xyz,
            rgb=rgb,
            error=error,
            image_ids=image_ids,
            point2D_idxs=point2D_idxs,
        )
        add_entity(points3D, point3D_id, point, "point3D")

    logger.debug("Read %d 3D points from text model", len(points3D))
    return points3D
