"""XOR gradient and Julia-set escape-time rasters, computed in float32."""

import logging
from typing import Tuple

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

GRADIENT_SIZE = (1000, 1000)
FRACTAL_SIZE = (800, 800)

CHANNEL_SCALE = np.float32(0.3)

JULIA_C = (np.float32(-0.4), np.float32(0.6))
MAX_ITERATIONS = 255
ESCAPE_RADIUS = np.float32(2.0)
PLANE_SPAN = np.float32(3.0)
PLANE_OFFSET = np.float32(1.5)


def narrow_u8(values: np.ndarray) -> np.ndarray:
    """Truncate non-negative float values to integers and wrap them into 0..255."""
    return (np.floor(values).astype(np.int64) % 256).astype(np.uint8)


def _scaled_channel(coords: np.ndarray) -> np.ndarray:
    return narrow_u8(CHANNEL_SCALE * np.asarray(coords, dtype=np.float32))


def _pixel_grid(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    ys, xs = np.indices((height, width), dtype=np.int64)
    return xs, ys


def generate_gradient() -> np.ndarray:
    width, height = GRADIENT_SIZE
    xs, ys = _pixel_grid(width, height)
    raster = np.empty((height, width, 3), dtype=np.uint8)
    raster[..., 0] = _scaled_channel(xs)
    raster[..., 1] = _scaled_channel(xs ^ ys)
    raster[..., 2] = _scaled_channel(ys)
    logger.debug("generated %dx%d gradient", width, height)
    return raster


def plane_point(x, y, width: int = FRACTAL_SIZE[0], height: int = FRACTAL_SIZE[1]):
    # real part from the row, imaginary part from the column
    scale_x = PLANE_SPAN / np.float32(width)
    scale_y = PLANE_SPAN / np.float32(height)
    re = np.asarray(y, dtype=np.float32) * scale_x - PLANE_OFFSET
    im = np.asarray(x, dtype=np.float32) * scale_y - PLANE_OFFSET
    return re, im


def escape_time(re, im) -> int:
    """Iterate ``z <- z*z + c`` from ``(re, im)`` for a single point."""
    re, im = np.float32(re), np.float32(im)
    c_re, c_im = JULIA_C
    count = 0
    while count < MAX_ITERATIONS and np.hypot(re, im) <= ESCAPE_RADIUS:
        re, im = re * re - im * im + c_re, re * im + im * re + c_im
        count += 1
    return count


def escape_counts(re: np.ndarray, im: np.ndarray) -> np.ndarray:
    # escaped points stay frozen, so the mask only shrinks
    re = np.array(re, dtype=np.float32)
    im = np.array(im, dtype=np.float32)
    c_re, c_im = JULIA_C
    counts = np.zeros(re.shape, dtype=np.uint8)
    active = np.ones(re.shape, dtype=bool)
    for _ in range(MAX_ITERATIONS):
        active &= np.hypot(re, im) <= ESCAPE_RADIUS
        if not active.any():
            break
        a_re = re[active]
        a_im = im[active]
        re[active] = a_re * a_re - a_im * a_im + c_re
        im[active] = a_re * a_im + a_im * a_re + c_im
        counts[active] += 1
    return counts


def render_fractal() -> np.ndarray:
    width, height = FRACTAL_SIZE
    xs, ys = _pixel_grid(width, height)
    raster = np.empty((height, width, 3), dtype=np.uint8)
    raster[..., 0] = _scaled_channel(xs)
    raster[..., 2] = _scaled_channel(ys)
    re, im = plane_point(xs, ys, width, height)
    raster[..., 1] = escape_counts(re, im)
    logger.debug("rendered %dx%d julia set, c=%s", width, height, JULIA_C)
    return raster


def to_image(raster: np.ndarray) -> Image.Image:
    return Image.fromarray(raster)
