"""Sample frame sources for trying the exporter.

Both render straight from ``t`` with numpy/OpenCV onto a transparent RGBA
canvas, so every frame is a pure function of its time.
"""

from __future__ import annotations

import math

import cv2
import numpy as np


class RotatingSquareAnimation:
    """Gradient square turning once per loop, with a circle orbiting it.

    Exercises soft alpha edges: the square is semi-transparent and the
    circle fades out radially.
    """

    def __init__(self, width: int = 1920, height: int = 1080, duration: float = 5.0, size: int = 300):
        self.width = width
        self.height = height
        self.duration = duration
        self.size = size
        yy, xx = np.mgrid[0:size, 0:size].astype(np.float32) / max(size - 1, 1)
        self._gradient = self._build_gradient((xx + yy) / 2.0)

    @staticmethod
    def _build_gradient(ramp: np.ndarray) -> np.ndarray:
        # purple -> pink -> cyan
        stops = np.array([[99, 102, 241], [236, 72, 153], [34, 211, 238]], dtype=np.float32)
        lower = np.clip(ramp * 2.0, 0.0, 1.0)[..., None]
        upper = np.clip(ramp * 2.0 - 1.0, 0.0, 1.0)[..., None]
        rgb = stops[0] * (1 - lower) + stops[1] * lower
        rgb = rgb * (1 - upper) + stops[2] * upper
        alpha = np.full(ramp.shape + (1,), 0.85 * 255, dtype=np.float32)
        return np.concatenate([rgb, alpha], axis=2).astype(np.uint8)

    def render_at(self, t: float) -> np.ndarray:
        canvas = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        angle = (t / self.duration) * 360.0 if self.duration > 0 else 0.0
        cx, cy = self.width / 2.0, self.height / 2.0

        rot = cv2.getRotationMatrix2D((self.size / 2.0, self.size / 2.0), -angle, 1.0)
        rot[0, 2] += cx - self.size / 2.0
        rot[1, 2] += cy - self.size / 2.0
        cv2.warpAffine(
            self._gradient,
            rot,
            (self.width, self.height),
            dst=canvas,
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_TRANSPARENT,
        )

        theta = math.radians(angle * 2)
        ox = int(round(cx + math.cos(theta) * 200))
        oy = int(round(cy + math.sin(theta) * 100))
        self._draw_soft_circle(canvas, ox, oy, 80)
        return canvas

    @staticmethod
    def _draw_soft_circle(canvas: np.ndarray, x: int, y: int, radius: int) -> None:
        h, w = canvas.shape[:2]
        x0, x1 = max(x - radius, 0), min(x + radius + 1, w)
        y0, y1 = max(y - radius, 0), min(y + radius + 1, h)
        if x1 <= x0 or y1 <= y0:
            return
        yy, xx = np.mgrid[y0:y1, x0:x1]
        dist = np.sqrt((xx - x) ** 2 + (yy - y) ** 2) / radius
        alpha = np.clip(1.0 - dist, 0.0, 1.0) * 0.8
        patch = canvas[y0:y1, x0:x1].astype(np.float32)
        src = np.array([255, 255, 255], dtype=np.float32)
        a = alpha[..., None]
        patch[..., :3] = src * a + patch[..., :3] * (1 - a)
        patch[..., 3] = 255 * (alpha + patch[..., 3] / 255 * (1 - alpha))
        canvas[y0:y1, x0:x1] = patch.astype(np.uint8)


class PulsingRingAnimation:
    """Opaque-edged ring whose radius and opacity pulse once per loop."""

    def __init__(self, width: int = 1080, height: int = 1080, duration: float = 2.0):
        self.width = width
        self.height = height
        self.duration = duration

    def render_at(self, t: float) -> np.ndarray:
        canvas = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        phase = (t / self.duration) if self.duration > 0 else 0.0
        pulse = 0.5 - 0.5 * math.cos(2 * math.pi * phase)
        base = min(self.width, self.height)
        radius = int(base * (0.2 + 0.15 * pulse))
        thickness = max(2, base // 30)
        opacity = int(120 + 135 * pulse)
        cv2.circle(
            canvas,
            (self.width // 2, self.height // 2),
            radius,
            (250, 204, 21, opacity),
            thickness,
            lineType=cv2.LINE_AA,
        )
        return canvas
