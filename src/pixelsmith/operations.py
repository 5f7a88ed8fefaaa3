import hashlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict

import numpy as np

from pixelsmith import __version__
from pixelsmith.core import generate, imaging
from pixelsmith.core.config import resolve_overwrite
from pixelsmith.core.imaging import ImagingError

logger = logging.getLogger(__name__)


class OperationError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


ACTION_METHODS = [
    "system.version",
    "system.actions",
    "image.blur",
    "image.brighten",
    "image.crop",
    "image.rotate",
    "image.invert",
    "image.grayscale",
    "generate.gradient",
    "generate.fractal",
]


def _require_path(path: str) -> Path:
    p = Path(path)
    if not str(path).strip() or not p.exists():
        raise OperationError("NOT_FOUND", f"File not found: {path}")
    return p


def _output_path(params: Dict[str, Any]) -> Path:
    raw = str(params.get("output") or "").strip()
    if not raw:
        raise OperationError("INVALID_INPUT", "output is required")
    output = Path(raw)
    if output.exists() and not resolve_overwrite(params.get("overwrite")):
        raise OperationError("INVALID_INPUT", f"Output exists (pass overwrite to replace): {output}")
    return output


def _int_param(params: Dict[str, Any], key: str) -> int:
    if key not in params:
        raise OperationError("INVALID_INPUT", f"{key} is required")
    try:
        return int(params[key])
    except (TypeError, ValueError) as exc:
        raise OperationError("INVALID_INPUT", f"{key} must be an integer") from exc


def _float_param(params: Dict[str, Any], key: str) -> float:
    if key not in params:
        raise OperationError("INVALID_INPUT", f"{key} is required")
    try:
        return float(params[key])
    except (TypeError, ValueError) as exc:
        raise OperationError("INVALID_INPUT", f"{key} must be a number") from exc


def _raster_sha256(raster: np.ndarray) -> str:
    return hashlib.sha256(raster.tobytes()).hexdigest()


def _transform(params: Dict[str, Any], label: str, fn: Callable[..., Any], **kwargs: Any) -> Dict[str, Any]:
    image_path = _require_path(str(params.get("image", "")))
    output = _output_path(params)
    try:
        source = imaging.open_image(image_path)
        result = fn(source, **kwargs)
        imaging.save_image(result, output, params.get("format"))
    except ImagingError as exc:
        raise OperationError(exc.code, exc.message) from exc
    logger.info("%s: %s -> %s", label, image_path, output)
    return {
        **kwargs,
        "image": str(image_path),
        "output": str(output),
        "width": result.width,
        "height": result.height,
        "mode": result.mode,
    }


def _generate(params: Dict[str, Any], label: str, fn: Callable[[], np.ndarray]) -> Dict[str, Any]:
    output = _output_path(params)
    raster = fn()
    try:
        imaging.save_image(generate.to_image(raster), output, params.get("format"))
    except ImagingError as exc:
        raise OperationError(exc.code, exc.message) from exc
    height, width = raster.shape[:2]
    logger.info("%s: wrote %dx%d raster to %s", label, width, height, output)
    return {"output": str(output), "width": width, "height": height, "sha256": _raster_sha256(raster)}


def handle_method(method: str, params: Dict[str, Any]) -> Dict[str, Any]:
    if method == "system.version":
        return {"packageVersion": __version__}
    if method == "system.actions":
        return {"actions": ACTION_METHODS}
    if method == "image.blur":
        return _transform(params, "blur", imaging.blur, sigma=_float_param(params, "sigma"))
    if method == "image.brighten":
        return _transform(params, "brighten", imaging.brighten, value=_int_param(params, "value"))
    if method == "image.crop":
        return _transform(
            params,
            "crop",
            imaging.crop,
            x=_int_param(params, "x"),
            y=_int_param(params, "y"),
            width=_int_param(params, "width"),
            height=_int_param(params, "height"),
        )
    if method == "image.rotate":
        return _transform(params, "rotate", imaging.rotate, degrees=_int_param(params, "degrees"))
    if method == "image.invert":
        return _transform(params, "invert", imaging.invert)
    if method == "image.grayscale":
        return _transform(params, "grayscale", imaging.grayscale)
    if method == "generate.gradient":
        return _generate(params, "gradient", generate.generate_gradient)
    if method == "generate.fractal":
        return _generate(params, "fractal", generate.render_fractal)
    raise OperationError("INVALID_INPUT", f"Unsupported method: {method}")
