"""Place a rendered surface on the output canvas and encode it as PNG."""

from __future__ import annotations

import math

import cv2
import numpy as np


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_rgba(surface: np.ndarray, expected_size: tuple[int, int] | None = None) -> np.ndarray:
    """Validate a surface and return it as ``H x W x 4`` uint8.

    RGB surfaces get an opaque alpha channel. ``expected_size`` is
    ``(width, height)``.
    """
    arr = np.asarray(surface)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"surface must be HxWx3 or HxWx4, got shape {arr.shape}")
    if arr.dtype != np.uint8:
        raise ValueError(f"surface must be uint8, got {arr.dtype}")
    if expected_size is not None:
        width, height = expected_size
        if arr.shape[0] != height or arr.shape[1] != width:
            raise ValueError(
                f"surface is {arr.shape[1]}x{arr.shape[0]}, source declares {width}x{height}"
            )
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr


def compose_frame(rgba: np.ndarray, target_width: int, target_height: int, content_scale: float = 1.0) -> np.ndarray:
    """Scale ``rgba`` by ``content_scale`` and centre it on a transparent canvas.

    Content larger than the canvas is clipped symmetrically.
    """
    src_h, src_w = rgba.shape[:2]
    scaled_w = max(1, _round_half_up(src_w * content_scale))
    scaled_h = max(1, _round_half_up(src_h * content_scale))
    if (scaled_w, scaled_h) != (src_w, src_h):
        interp = cv2.INTER_AREA if content_scale < 1.0 else cv2.INTER_LINEAR
        rgba = cv2.resize(rgba, (scaled_w, scaled_h), interpolation=interp)

    canvas = np.zeros((target_height, target_width, 4), dtype=np.uint8)
    off_x = _round_half_up((target_width - scaled_w) / 2)
    off_y = _round_half_up((target_height - scaled_h) / 2)

    x0, y0 = max(off_x, 0), max(off_y, 0)
    x1, y1 = min(off_x + scaled_w, target_width), min(off_y + scaled_h, target_height)
    if x1 > x0 and y1 > y0:
        canvas[y0:y1, x0:x1] = rgba[y0 - off_y:y1 - off_y, x0 - off_x:x1 - off_x]
    return canvas


def encode_png(rgba: np.ndarray, compression: int = 3) -> bytes:
    """PNG bytes with alpha. OpenCV expects BGRA channel order."""
    bgra = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)
    ok, buf = cv2.imencode(".png", bgra, [cv2.IMWRITE_PNG_COMPRESSION, compression])
    if not ok:
        raise RuntimeError("PNG encoding failed")
    return buf.tobytes()
