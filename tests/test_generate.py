from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from pixelsmith.core import generate, imaging


@pytest.fixture(scope="module")
def fractal() -> np.ndarray:
    return generate.render_fractal()


def test_gradient_dimensions_and_dtype() -> None:
    raster = generate.generate_gradient()
    assert raster.shape == (1000, 1000, 3)
    assert raster.dtype == np.uint8


def test_gradient_corner_values() -> None:
    raster = generate.generate_gradient()
    assert tuple(raster[0, 0]) == (0, 0, 0)
    # 0.3 * 999 = 299.7 -> 299, wrapped to 43
    assert tuple(raster[0, 999]) == (43, 43, 0)
    assert tuple(raster[999, 0]) == (0, 43, 43)
    assert tuple(raster[999, 999]) == (43, 0, 43)


def test_gradient_wraps_instead_of_clamping() -> None:
    raster = generate.generate_gradient()
    red = raster[0, :, 0]
    assert red.max() == 255
    assert red[999] < red[850]
    for x in (100, 333, 700, 853, 854, 999):
        expected = int(np.floor(np.float32(0.3) * np.float32(x))) % 256
        assert red[x] == expected


def test_gradient_green_uses_xor_of_coordinates() -> None:
    raster = generate.generate_gradient()
    for x, y in [(5, 3), (512, 511), (640, 17), (999, 998)]:
        expected = int(np.floor(np.float32(0.3) * np.float32(x ^ y))) % 256
        assert raster[y, x, 1] == expected


def test_generators_are_deterministic(fractal: np.ndarray) -> None:
    assert np.array_equal(generate.generate_gradient(), generate.generate_gradient())
    assert np.array_equal(generate.render_fractal(), fractal)


def test_fractal_dimensions_and_background(fractal: np.ndarray) -> None:
    assert fractal.shape == (800, 800, 3)
    assert fractal.dtype == np.uint8
    assert tuple(fractal[0, 0, [0, 2]]) == (0, 0)
    assert tuple(fractal[799, 799, [0, 2]]) == (239, 239)
    assert tuple(fractal[10, 400, [0, 2]]) == (120, 3)


def test_plane_point_swaps_axes() -> None:
    re, im = generate.plane_point(0, 0)
    assert (float(re), float(im)) == (-1.5, -1.5)
    re, im = generate.plane_point(400, 0)
    assert float(re) == -1.5
    assert float(im) == pytest.approx(0.0, abs=1e-6)
    re, im = generate.plane_point(0, 400)
    assert float(re) == pytest.approx(0.0, abs=1e-6)
    assert float(im) == -1.5


def test_fractal_origin_pixel_escapes_immediately(fractal: np.ndarray) -> None:
    # |(-1.5, -1.5)| ~ 2.12 is already past the radius, so no iteration runs
    assert generate.escape_time(-1.5, -1.5) == 0
    assert fractal[0, 0, 1] == 0


def test_fractal_matches_scalar_reference(fractal: np.ndarray) -> None:
    coords = [(x, y) for x in range(0, 800, 97) for y in range(0, 800, 89)]
    coords += [(400, 400), (399, 401), (250, 520), (560, 300)]
    for x, y in coords:
        re, im = generate.plane_point(x, y)
        assert fractal[y, x, 1] == generate.escape_time(re, im), (x, y)


def test_escape_counts_cap_and_radius_boundary(monkeypatch) -> None:
    monkeypatch.setattr(generate, "JULIA_C", (np.float32(0.0), np.float32(0.0)))
    re = np.array([0.5, 2.0, 2.5, 1.2], dtype=np.float32)
    im = np.zeros(4, dtype=np.float32)
    counts = generate.escape_counts(re, im)
    # bounded orbit hits the cap; |z| == 2 still iterates once
    assert counts.tolist() == [255, 1, 0, 2]
    assert [generate.escape_time(r, 0.0) for r in re] == [255, 1, 0, 2]


def test_fractal_green_only_saturates_when_never_escaped(fractal: np.ndarray) -> None:
    green = fractal[..., 1]
    assert green.min() >= 0
    assert green.max() <= 255
    ys, xs = np.nonzero(green == 255)
    for x, y in list(zip(xs, ys))[:25]:
        re, im = generate.plane_point(x, y)
        assert generate.escape_time(re, im) == generate.MAX_ITERATIONS


def test_rasters_round_trip_through_png(tmp_path: Path, fractal: np.ndarray) -> None:
    for raster in (generate.generate_gradient(), fractal):
        first = imaging.save_image(generate.to_image(raster), tmp_path / "a.png")
        second = imaging.save_image(generate.to_image(raster), tmp_path / "b.png")
        with Image.open(first) as a, Image.open(second) as b:
            assert np.array_equal(np.asarray(a), np.asarray(b))
            assert np.array_equal(np.asarray(a), raster)
