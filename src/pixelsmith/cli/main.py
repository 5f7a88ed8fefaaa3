import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from pixelsmith import __version__
from pixelsmith.core.config import configure_logging
from pixelsmith.operations import OperationError, handle_method
from pixelsmith.protocol import ERROR_CODES, PROTOCOL_VERSION

app = typer.Typer(add_completion=False, help="Transform images and render procedural rasters")

logger = logging.getLogger(__name__)


def _print(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _ok(command: str, data: Dict[str, Any]) -> None:
    _print({"ok": True, "protocolVersion": PROTOCOL_VERSION, "command": command, "data": data})


def _fail(command: str, code: str, message: str, retryable: bool = False) -> None:
    _print(
        {
            "ok": False,
            "protocolVersion": PROTOCOL_VERSION,
            "command": command,
            "error": {"code": code, "message": message, "retryable": retryable},
        }
    )
    raise SystemExit(ERROR_CODES.get(code, 1))


def _call(command: str, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
    logger.debug("%s -> %s %s", command, method, params)
    try:
        return handle_method(method, params)
    except OperationError as exc:
        _fail(command, exc.code, exc.message)
    except Exception as exc:  # pragma: no cover
        logger.exception("%s failed", command)
        _fail(command, "ERROR", str(exc))
    raise RuntimeError("unreachable")


def _run(command: str, method: str, params: Dict[str, Any]) -> None:
    _ok(command, _call(command, method, params))


@app.callback()
def root(
    debug: int = typer.Option(0, "--debug", "-d", count=True, help="Repeat to raise log verbosity"),
) -> None:
    configure_logging(debug)


@app.command("blur")
def blur_image(
    image: Path,
    output: Path = typer.Option(..., "--output", "-o"),
    sigma: float = typer.Option(2.0, "--sigma", min=0.0),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run("blur", "image.blur", {"image": str(image), "output": str(output), "sigma": sigma, "overwrite": overwrite})


@app.command("brighten")
def brighten_image(
    image: Path,
    value: int = typer.Option(..., "--value", help="Positive brightens, negative darkens"),
    output: Path = typer.Option(..., "--output", "-o"),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run("brighten", "image.brighten", {"image": str(image), "output": str(output), "value": value, "overwrite": overwrite})


@app.command("crop")
def crop_image(
    image: Path,
    x: int = typer.Option(..., "--x"),
    y: int = typer.Option(..., "--y"),
    width: int = typer.Option(..., "--width"),
    height: int = typer.Option(..., "--height"),
    output: Path = typer.Option(..., "--output", "-o"),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run(
        "crop",
        "image.crop",
        {
            "image": str(image),
            "x": x,
            "y": y,
            "width": width,
            "height": height,
            "output": str(output),
            "overwrite": overwrite,
        },
    )


@app.command("rotate")
def rotate_image(
    image: Path,
    degrees: int = typer.Option(..., "--degrees", help="Clockwise: 90, 180 or 270"),
    output: Path = typer.Option(..., "--output", "-o"),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run("rotate", "image.rotate", {"image": str(image), "degrees": degrees, "output": str(output), "overwrite": overwrite})


@app.command("invert")
def invert_image(
    image: Path,
    output: Path = typer.Option(..., "--output", "-o"),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run("invert", "image.invert", {"image": str(image), "output": str(output), "overwrite": overwrite})


@app.command("grayscale")
def grayscale_image(
    image: Path,
    output: Path = typer.Option(..., "--output", "-o"),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run("grayscale", "image.grayscale", {"image": str(image), "output": str(output), "overwrite": overwrite})


@app.command("generate")
def generate_gradient(
    output: Path = typer.Option(..., "--output", "-o"),
    fmt: Optional[str] = typer.Option(None, "--format"),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run("generate", "generate.gradient", {"output": str(output), "format": fmt, "overwrite": overwrite})


@app.command("fractal")
def render_fractal(
    output: Path = typer.Option(..., "--output", "-o"),
    fmt: Optional[str] = typer.Option(None, "--format"),
    overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite"),
) -> None:
    _run("fractal", "generate.fractal", {"output": str(output), "format": fmt, "overwrite": overwrite})


@app.command("actions")
def actions() -> None:
    _run("actions", "system.actions", {})


@app.command("version")
def version() -> None:
    _ok("version", {"packageVersion": __version__, "protocolVersion": PROTOCOL_VERSION})


def main() -> None:
    app()
