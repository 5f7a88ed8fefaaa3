import logging
import math
import os
import uuid
from pathlib import Path
from typing import Callable, Optional

import numpy as np
from PIL import Image, ImageFilter, ImageOps

logger = logging.getLogger(__name__)

FORMAT_ALIASES = {"JPG": "JPEG", "TIF": "TIFF"}
NO_ALPHA_FORMATS = {"JPEG", "BMP", "PPM"}

# Pillow only offers counter-clockwise transposes.
CLOCKWISE_ROTATIONS = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


class ImagingError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def _to_8bit(source: Image.Image) -> Image.Image:
    # Pillow clips wide samples to 255 on convert instead of scaling them.
    if source.mode.startswith("I;16") or source.mode == "I":
        samples = np.clip(np.asarray(source, dtype=np.int64), 0, 65535) >> 8
        return Image.fromarray(samples.astype(np.uint8))
    if source.mode == "F":
        samples = np.asarray(source, dtype=np.float64)
        peak = 1.0 if np.nanmax(samples, initial=0.0) <= 1.0 else 255.0
        samples = np.nan_to_num(samples) / peak * 255.0
        return Image.fromarray(np.clip(samples, 0, 255).astype(np.uint8))
    return source


def open_image(path: Path) -> Image.Image:
    path = Path(path)
    if not path.exists():
        raise ImagingError("NOT_FOUND", f"File not found: {path}")
    try:
        with Image.open(path) as source:
            source.load()
            has_alpha = source.mode in {"RGBA", "LA", "PA"} or "transparency" in source.info
            image = _to_8bit(source).convert("RGBA" if has_alpha else "RGB")
    except (OSError, ValueError) as exc:
        raise ImagingError("READ_FAILED", f"Failed to open {path}: {exc}") from exc
    logger.info("opened %s (%dx%d %s)", path, image.width, image.height, image.mode)
    return image


def resolve_format(output: Path, fmt: Optional[str] = None) -> str:
    Image.init()
    if fmt:
        name = fmt.strip().upper().lstrip(".")
        name = FORMAT_ALIASES.get(name, name)
    else:
        name = Image.registered_extensions().get(output.suffix.lower(), "")
    if not name or name not in Image.SAVE:
        target = fmt or output.suffix or str(output)
        raise ImagingError("WRITE_FAILED", f"Unsupported output format: {target}")
    return name


def save_image(image: Image.Image, output: Path, fmt: Optional[str] = None) -> Path:
    """Encode ``image`` into ``output`` without ever leaving a partial file behind.

    The encoder writes to a hidden sibling which is renamed over ``output``
    only once encoding succeeded.
    """
    output = Path(output)
    name = resolve_format(output, fmt)
    if name in NO_ALPHA_FORMATS and image.mode not in {"RGB", "L"}:
        image = image.convert("RGB")

    staging = output.with_name(f".{output.name}.{uuid.uuid4().hex[:8]}.tmp")
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with staging.open("wb") as handle:
            image.save(handle, format=name)
        os.replace(staging, output)
    except (OSError, ValueError, KeyError) as exc:
        raise ImagingError("WRITE_FAILED", f"Failed to write {output}: {exc}") from exc
    finally:
        staging.unlink(missing_ok=True)
    logger.info("wrote %s (%s, %dx%d)", output, name, image.width, image.height)
    return output


def _per_color_band(image: Image.Image, fn: Callable[[Image.Image], Image.Image]) -> Image.Image:
    bands = list(image.split())
    alpha = [bands.pop()] if image.mode in {"RGBA", "LA"} else []
    return Image.merge(image.mode, [fn(band) for band in bands] + alpha)


def blur(image: Image.Image, sigma: float) -> Image.Image:
    if not math.isfinite(sigma) or sigma < 0:
        raise ImagingError("INVALID_INPUT", "sigma must be a finite number >= 0")
    if sigma > max(image.size):
        raise ImagingError("INVALID_INPUT", f"sigma must not exceed the largest image side ({max(image.size)})")
    return image.filter(ImageFilter.GaussianBlur(radius=sigma))


def brighten(image: Image.Image, value: int) -> Image.Image:
    def shift(band: Image.Image) -> Image.Image:
        return band.point(lambda v: max(0, min(255, v + value)))

    return _per_color_band(image, shift)


def crop(image: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
    if x < 0 or y < 0:
        raise ImagingError("INVALID_INPUT", "x and y must be >= 0")
    if width <= 0 or height <= 0:
        raise ImagingError("INVALID_INPUT", "width and height must be > 0")
    left = min(x, image.width)
    top = min(y, image.height)
    right = min(left + width, image.width)
    bottom = min(top + height, image.height)
    if right <= left or bottom <= top:
        raise ImagingError("INVALID_INPUT", f"Crop rectangle lies outside the {image.width}x{image.height} image")
    return image.crop((left, top, right, bottom))


def rotate(image: Image.Image, degrees: int) -> Image.Image:
    if degrees not in CLOCKWISE_ROTATIONS:
        raise ImagingError("INVALID_INPUT", "degrees must be one of 90, 180, 270")
    return image.transpose(CLOCKWISE_ROTATIONS[degrees])


def invert(image: Image.Image) -> Image.Image:
    return _per_color_band(image, ImageOps.invert)


def grayscale(image: Image.Image) -> Image.Image:
    return image.convert("LA" if image.mode == "RGBA" else "L")
